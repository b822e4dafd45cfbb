"""Row storage facade.

`RowStore` is the only way request handlers and services touch the
database. It exposes a deliberately small surface, rows in and rows out
as plain dicts keyed by opaque string ids:

  select(table, filters, order)   equality filters + one ordering column
  select_one(table, filters)      first match or None
  count(table, filters)
  insert(table, row)
  update(table, id, changes)      partial update of one row
  bulk_update(table, {id: changes})   several rows, one transaction
  delete(table, id)
  subscribe(table, events, on_change) → Subscription

Each call opens its own session and commits before returning, so one
call is one transaction and is attempted exactly once. Driver and
connection failures surface as `RemoteCallError`; integrity violations
propagate unchanged so the API can report them as 422.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aibotclip.database import Base, async_session
from aibotclip.middleware.exceptions import RemoteCallError
from aibotclip.models.agent import Agent
from aibotclip.models.key_feature import KeyFeature
from aibotclip.models.user import User, UserRoleGrant
from aibotclip.store.changes import (
    DELETE,
    INSERT,
    UPDATE,
    ChangeBroker,
    ChangeCallback,
    ChangeEvent,
    Subscription,
)

logger = logging.getLogger(__name__)

TABLES: dict[str, type[Base]] = {
    "agents": Agent,
    "key_features": KeyFeature,
    "users": User,
    "user_roles": UserRoleGrant,
}


def _model_for(table: str) -> type[Base]:
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _column(model: type[Base], name: str):
    try:
        return model.__table__.c[name]
    except KeyError:
        raise ValueError(f"Unknown column {model.__tablename__}.{name}") from None


def _check_columns(model: type[Base], row: dict[str, Any], allow_id: bool = True) -> None:
    columns = set(model.__table__.c.keys())
    unknown = set(row) - columns
    if not allow_id and "id" in row:
        unknown.add("id")
    if unknown:
        raise ValueError(
            f"Unknown or read-only columns for {model.__tablename__}: "
            f"{', '.join(sorted(unknown))}"
        )


def _to_row(obj: Base) -> dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}


class RowStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broker: ChangeBroker | None = None,
    ):
        self._session_factory = session_factory
        self.broker = broker or ChangeBroker()

    @asynccontextmanager
    async def _call(self, operation: str, table: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
                await session.commit()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.warning("Storage %s on %s failed: %s", operation, table, exc)
            raise RemoteCallError(operation, table, str(exc)) from exc

    def _publish(self, table: str, kind: str, row_id: str, row: dict | None) -> None:
        self.broker.publish(ChangeEvent(table=table, kind=kind, row_id=row_id, row=row))

    # ── Reads ────────────────────────────────────────────────

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = _model_for(table)
        stmt = select(model)
        for key, value in (filters or {}).items():
            stmt = stmt.where(_column(model, key) == value)
        if order:
            col = _column(model, order)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit:
            stmt = stmt.limit(limit)

        async with self._call("select", table) as session:
            result = await session.execute(stmt)
            rows = [_to_row(obj) for obj in result.scalars().all()]
        return rows

    async def select_one(
        self, table: str, filters: dict[str, Any]
    ) -> dict[str, Any] | None:
        rows = await self.select(table, filters, limit=1)
        return rows[0] if rows else None

    async def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        model = _model_for(table)
        stmt = select(func.count()).select_from(model)
        for key, value in (filters or {}).items():
            stmt = stmt.where(_column(model, key) == value)

        async with self._call("count", table) as session:
            total = await session.scalar(stmt)
        return total or 0

    # ── Writes ───────────────────────────────────────────────

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        model = _model_for(table)
        _check_columns(model, row)

        async with self._call("insert", table) as session:
            obj = model(**row)
            session.add(obj)
            await session.flush()
            created = _to_row(obj)

        self._publish(table, INSERT, created["id"], created)
        return created

    async def update(
        self, table: str, row_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply a partial update. Returns the stored row, or None if `row_id` is unknown."""
        model = _model_for(table)
        _check_columns(model, changes, allow_id=False)

        updated = None
        async with self._call("update", table) as session:
            obj = await session.get(model, row_id)
            if obj is not None:
                for key, value in changes.items():
                    setattr(obj, key, value)
                await session.flush()
                updated = _to_row(obj)

        if updated is not None:
            self._publish(table, UPDATE, row_id, updated)
        return updated

    async def bulk_update(
        self, table: str, changes_by_id: dict[str, dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Update several rows in one transaction. Unknown ids are skipped."""
        model = _model_for(table)
        for changes in changes_by_id.values():
            _check_columns(model, changes, allow_id=False)

        updated: list[dict[str, Any]] = []
        async with self._call("bulk_update", table) as session:
            for row_id, changes in changes_by_id.items():
                obj = await session.get(model, row_id)
                if obj is None:
                    continue
                for key, value in changes.items():
                    setattr(obj, key, value)
            await session.flush()
            for row_id in changes_by_id:
                obj = await session.get(model, row_id)
                if obj is not None:
                    updated.append(_to_row(obj))

        for row in updated:
            self._publish(table, UPDATE, row["id"], row)
        return updated

    async def delete(self, table: str, row_id: str) -> bool:
        model = _model_for(table)

        deleted = False
        async with self._call("delete", table) as session:
            obj = await session.get(model, row_id)
            if obj is not None:
                await session.delete(obj)
                await session.flush()
                deleted = True

        if deleted:
            self._publish(table, DELETE, row_id, None)
        return deleted

    # ── Realtime ─────────────────────────────────────────────

    def subscribe(
        self,
        table: str,
        events: str | Iterable[str],
        on_change: ChangeCallback,
    ) -> Subscription:
        _model_for(table)
        return self.broker.subscribe(table, events, on_change)


_store: RowStore | None = None


def get_store() -> RowStore:
    """FastAPI dependency: the process-wide store bound to the app engine."""
    global _store
    if _store is None:
        _store = RowStore(async_session, ChangeBroker())
    return _store
