"""Live catalog: a refetch of active agents on every change to the agents table.

    async with CatalogFeed(store, on_refresh=push) as feed:
        ...   # feed.agents stays current while the block runs

The subscription is held only while the feed is active. A refetch that
resolves after `deactivate()` is dropped, and of two overlapping refetches
only the later one is applied.
"""

import logging
from typing import Awaitable, Callable, Optional, Union

from aibotclip.middleware.exceptions import RemoteCallError
from aibotclip.services.catalog import list_catalog
from aibotclip.store.changes import ChangeEvent, Subscription
from aibotclip.store.rows import RowStore

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[list[dict]], Union[None, Awaitable[None]]]


class CatalogFeed:
    def __init__(self, store: RowStore, on_refresh: Optional[RefreshCallback] = None):
        self._store = store
        self._on_refresh = on_refresh
        self._subscription: Subscription | None = None
        self._generation = 0
        self.agents: list[dict] = []

    @property
    def active(self) -> bool:
        return self._subscription is not None

    async def activate(self) -> list[dict]:
        if self._subscription is None:
            self._subscription = self._store.subscribe("agents", "*", self._on_change)
        try:
            return await self.refresh()
        except Exception:
            self.deactivate()
            raise

    def deactivate(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    async def refresh(self) -> list[dict]:
        self._generation += 1
        generation = self._generation

        agents = await list_catalog(self._store)
        if not self.active or generation != self._generation:
            logger.debug("Discarding stale catalog refetch")
            return self.agents

        self.agents = agents
        if self._on_refresh is not None:
            result = self._on_refresh(agents)
            if result is not None:
                await result
        return agents

    async def _on_change(self, event: ChangeEvent) -> None:
        try:
            await self.refresh()
        except RemoteCallError as exc:
            # Keep showing the last list; the next change retries
            logger.warning("Catalog refetch after %s failed: %s", event.kind, exc.reason)

    async def __aenter__(self) -> "CatalogFeed":
        await self.activate()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.deactivate()
