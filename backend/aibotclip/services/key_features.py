"""Key-feature ordering for the admin list.

Key features are separate rows keyed by `display_order`. Moving one swaps
it with its neighbour, renumbers the whole list 1..N and writes every
changed order in one bulk update. Creates, deletes and explicit
`display_order` edits go through the same renumbering, so the stored
orders are always 1..N.
"""

import logging

from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.key_feature import KeyFeatureOut
from aibotclip.services.ordered_list import Direction, OrderedListEditor
from aibotclip.store.rows import RowStore

logger = logging.getLogger(__name__)


class KeyFeatureOrderEditor(OrderedListEditor[KeyFeatureOut]):
    item_type = KeyFeatureOut
    order_field = "display_order"

    def validate_item(self, item: KeyFeatureOut) -> str | None:
        if not item.title.strip() or not item.description.strip() or not item.icon.strip():
            return "Title, description and icon are required"
        return None


async def list_key_features(store: RowStore, active_only: bool = False) -> list[dict]:
    filters = {"is_active": True} if active_only else None
    return await store.select("key_features", filters, order="display_order")


def order_editor(store: RowStore, rows: list[dict]) -> KeyFeatureOrderEditor:
    stored = {row["id"]: row["display_order"] for row in rows}

    async def persist(items: list[KeyFeatureOut]) -> list[KeyFeatureOut]:
        changes = {
            item.id: {"display_order": item.display_order}
            for item in items
            if stored.get(item.id) != item.display_order
        }
        if changes:
            await store.bulk_update("key_features", changes)
            logger.info("Reordered %d key features", len(changes))
        return await list_key_features(store)

    return KeyFeatureOrderEditor(rows, persist=persist)


async def move_key_feature(
    store: RowStore, feature_id: str, direction: Direction
) -> list[KeyFeatureOut]:
    """Swap one key feature with its neighbour. A move past either end changes nothing."""
    rows = await list_key_features(store)
    editor = order_editor(store, rows)
    index = editor.index_of(feature_id)
    if index is None:
        raise ResourceNotFoundError("Key feature", feature_id)

    editor.reorder(index, direction)
    return await editor.save()


async def renumber_key_features(store: RowStore) -> list[KeyFeatureOut]:
    """Close gaps left by a delete so the list reads 1..N again."""
    editor = order_editor(store, await list_key_features(store))
    return await editor.save()


async def place_key_feature(
    store: RowStore, feature_id: str, position: int | None = None
) -> list[KeyFeatureOut]:
    """Put one key feature at a 1-based `position` and renumber the rest.

    No position (or 0, or one past the end) places it last.
    """
    rows = await list_key_features(store)
    feature = next((row for row in rows if row["id"] == feature_id), None)
    if feature is None:
        raise ResourceNotFoundError("Key feature", feature_id)

    others = [row for row in rows if row["id"] != feature_id]
    index = min(position, len(others) + 1) - 1 if position else len(others)
    others.insert(index, feature)
    return await order_editor(store, others).save()
