"""Ordered, editable lists with a dense 1-based display order.

`OrderedListEditor` holds a local draft of a collection and keeps every
item's order field equal to its position (1..N) after each mutation:

    editor = FeatureListEditor(agent["features"], persist=save_features)
    editor.add("feature")
    editor.update(item_id, title="Voice support")
    editor.reorder(2, "up")
    await editor.save()        # one replace-collection call

Nothing touches storage until `save()`. `save()` validates the whole list
first; a rejected list never reaches the persist callback. On a storage
failure the local draft is left as it was and the error propagates to the
caller, who may call `save()` again.

`delete()` renumbers the remaining items, the same as `reorder()`, so the
order invariant holds between any two calls.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, ClassVar, Generic, Iterable, Literal, TypeVar

from pydantic import BaseModel

from aibotclip.middleware.exceptions import FieldValidationError

logger = logging.getLogger(__name__)

Direction = Literal["up", "down"]

T = TypeVar("T", bound=BaseModel)

_last_id = 0


def new_item_id() -> str:
    """Client-style id: epoch milliseconds, bumped so consecutive ids never collide."""
    global _last_id
    candidate = time.time_ns() // 1_000_000
    if candidate <= _last_id:
        candidate = _last_id + 1
    _last_id = candidate
    return str(candidate)


class OrderedListEditor(Generic[T]):
    """Local draft of an ordered collection.

    Subclasses set `item_type`, the name of the order field, the defaults
    for each kind that `add()` accepts, and `validate_item()`.
    """

    item_type: ClassVar[type[BaseModel]]
    order_field: ClassVar[str] = "order"
    kinds: ClassVar[dict[str, dict[str, Any]]] = {}

    def __init__(
        self,
        items: Iterable[T | dict[str, Any]],
        persist: Callable[[list[T]], Awaitable[Iterable[T | dict[str, Any]] | None]] | None = None,
    ):
        self._items: list[T] = [self._coerce(item) for item in items]
        self._persist = persist
        self.saving = False

    def _coerce(self, item: T | dict[str, Any]) -> T:
        if isinstance(item, self.item_type):
            return item.model_copy()
        return self.item_type.model_validate(item)

    # ── Read access ──────────────────────────────────────────

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def orders(self) -> list[int]:
        return [getattr(item, self.order_field) for item in self._items]

    def index_of(self, item_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return None

    def dump(self) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self._items]

    # ── Mutations (local only) ───────────────────────────────

    def add(self, kind: str) -> T:
        if kind not in self.kinds:
            raise ValueError(
                f"Unknown kind {kind!r}; expected one of {', '.join(self.kinds)}"
            )
        existing = {item.id for item in self._items}
        item_id = new_item_id()
        while item_id in existing:
            item_id = new_item_id()

        data = {**self.kinds[kind], "id": item_id, self.order_field: len(self._items) + 1}
        item = self.item_type.model_validate(data)
        self._items.append(item)
        return item

    def update(self, item_id: str, **changes: Any) -> T | None:
        """Replace fields on one item. Unknown ids are a no-op.

        The id and order fields are managed by the editor and cannot be set
        here; every other change is validated by the item model.
        """
        index = self.index_of(item_id)
        if index is None:
            return None
        managed = {"id", self.order_field} & set(changes)
        if managed:
            raise ValueError(f"Managed fields cannot be updated: {', '.join(sorted(managed))}")

        current = self._items[index]
        unknown = set(changes) - set(type(current).model_fields)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
        updated = type(current).model_validate({**current.model_dump(), **changes})
        self._items[index] = updated
        return updated

    def delete(self, item_id: str) -> bool:
        index = self.index_of(item_id)
        if index is None:
            return False
        del self._items[index]
        self.renumber()
        return True

    def reorder(self, index: int, direction: Direction) -> bool:
        """Swap the item at `index` with its neighbour. Returns False at either boundary."""
        if direction not in ("up", "down"):
            raise ValueError(f"Unknown direction {direction!r}")
        if not 0 <= index < len(self._items):
            return False
        if (direction == "up" and index == 0) or (
            direction == "down" and index == len(self._items) - 1
        ):
            return False

        target = index - 1 if direction == "up" else index + 1
        self._items[index], self._items[target] = self._items[target], self._items[index]
        self.renumber()
        return True

    def renumber(self) -> None:
        for position, item in enumerate(self._items, start=1):
            if getattr(item, self.order_field) != position:
                self._items[position - 1] = item.model_copy(update={self.order_field: position})

    # ── Validation and save ──────────────────────────────────

    def validate_item(self, item: T) -> str | None:
        """Return an error message for an invalid item, or None."""
        return None

    def validate(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        for item in self._items:
            message = self.validate_item(item)
            if message:
                errors[item.id] = message
        return errors

    async def save(self) -> list[T]:
        """Persist the whole list in one call and adopt the confirmed result."""
        if self._persist is None:
            raise RuntimeError(f"{type(self).__name__} has no persist callback")

        errors = self.validate()
        if errors:
            # One message for the whole list, like the editor's toast
            raise FieldValidationError(errors, message=next(iter(errors.values())))

        self.renumber()
        self.saving = True
        try:
            confirmed = await self._persist(self.items)
        finally:
            self.saving = False

        if confirmed is not None:
            self._items = [self._coerce(item) for item in confirmed]
        logger.info("Saved %d %s items", len(self._items), self.item_type.__name__)
        return self.items
