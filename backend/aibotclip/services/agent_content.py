"""Editors for the two collections stored on an agent row.

Feature cards and comparison rows are edited as local drafts and written
back as one replace-collection update of the agent row:

    editor = feature_editor(store, agent_id, agent["features"])
    editor.add("feature")
    await editor.save()
"""

import logging
from typing import Any, Awaitable, Callable, Iterable

from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.agent import (
    PRICING_TIERS,
    ComparisonRow,
    ComparisonTable,
    FeatureCard,
)
from aibotclip.services.ordered_list import OrderedListEditor
from aibotclip.store.rows import RowStore

logger = logging.getLogger(__name__)


class FeatureListEditor(OrderedListEditor[FeatureCard]):
    item_type = FeatureCard
    kinds = {
        "feature": {
            "icon": "✨",
            "title": "New Feature",
            "description": "Describe this feature...",
            "visible": True,
        },
    }

    def validate_item(self, item: FeatureCard) -> str | None:
        if not item.title.strip() or not item.description.strip():
            return "All features must have a title and description"
        return None


class ComparisonTableEditor(OrderedListEditor[ComparisonRow]):
    """Comparison rows plus the header list, which is carried through unchanged."""

    item_type = ComparisonRow
    kinds = {
        "section": {"type": "section", "label": "New Section", "values": ["", "", "", ""]},
        "feature": {"type": "feature", "label": "New Feature", "values": ["", "", "", ""]},
    }

    def __init__(
        self,
        headers: Iterable[str],
        rows: Iterable[ComparisonRow | dict[str, Any]],
        persist: Callable[[ComparisonTable], Awaitable[ComparisonTable | None]] | None = None,
    ):
        self.headers = list(headers)
        self._persist_table = persist
        super().__init__(rows, persist=self._save_table if persist else None)

    async def _save_table(self, rows: list[ComparisonRow]) -> list[ComparisonRow] | None:
        confirmed = await self._persist_table(ComparisonTable(headers=self.headers, rows=rows))
        if confirmed is None:
            return None
        self.headers = list(confirmed.headers)
        return confirmed.rows

    def set_value(self, item_id: str, index: int, value: str) -> ComparisonRow | None:
        """Set one tier cell of a row. Unknown ids are a no-op."""
        position = self.index_of(item_id)
        if position is None:
            return None
        if not 0 <= index < len(PRICING_TIERS):
            raise ValueError(f"Tier index out of range: {index}")

        row = self._items[position]
        values = list(row.values) + [""] * (len(PRICING_TIERS) - len(row.values))
        values[index] = value
        return self.update(item_id, values=values)

    def table(self) -> ComparisonTable:
        return ComparisonTable(headers=self.headers, rows=self.items)

    def validate_item(self, item: ComparisonRow) -> str | None:
        if not item.label.strip():
            return "All rows must have a label"
        return None


# ── Persistence ──────────────────────────────────────────────

async def save_features(
    store: RowStore, agent_id: str, features: list[FeatureCard]
) -> list[FeatureCard]:
    row = await store.update(
        "agents", agent_id, {"features": [f.model_dump(mode="json") for f in features]}
    )
    if row is None:
        raise ResourceNotFoundError("Agent", agent_id)
    logger.info("Agent %s features replaced (%d items)", agent_id, len(features))
    return [FeatureCard.model_validate(f) for f in row["features"] or []]


async def save_comparison(
    store: RowStore, agent_id: str, table: ComparisonTable
) -> ComparisonTable:
    row = await store.update(
        "agents", agent_id, {"comparison_table": table.model_dump(mode="json")}
    )
    if row is None:
        raise ResourceNotFoundError("Agent", agent_id)
    logger.info("Agent %s comparison table replaced (%d rows)", agent_id, len(table.rows))
    return ComparisonTable.model_validate(row["comparison_table"] or {})


def feature_editor(
    store: RowStore, agent_id: str, features: Iterable[FeatureCard | dict[str, Any]]
) -> FeatureListEditor:
    async def persist(items: list[FeatureCard]) -> list[FeatureCard]:
        return await save_features(store, agent_id, items)

    return FeatureListEditor(features, persist=persist)


def comparison_editor(
    store: RowStore, agent_id: str, table: ComparisonTable | dict[str, Any]
) -> ComparisonTableEditor:
    table = ComparisonTable.model_validate(table or {})

    async def persist(updated: ComparisonTable) -> ComparisonTable:
        return await save_comparison(store, agent_id, updated)

    return ComparisonTableEditor(table.headers, table.rows, persist=persist)
