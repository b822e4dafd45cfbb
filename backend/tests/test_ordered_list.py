"""Ordered list editor tests (feature cards as the concrete list)."""

import pytest

from aibotclip.middleware.exceptions import FieldValidationError, RemoteCallError
from aibotclip.schemas.agent import FeatureCard
from aibotclip.services.agent_content import FeatureListEditor
from aibotclip.services.ordered_list import new_item_id


def _cards(n: int) -> list[dict]:
    return [
        {"id": f"c{i}", "order": i, "title": f"Card {i}", "description": f"About card {i}"}
        for i in range(1, n + 1)
    ]


@pytest.mark.unit
class TestLocalMutations:
    def test_add_appends_with_defaults(self):
        editor = FeatureListEditor(_cards(2))
        item = editor.add("feature")

        assert item.order == 3
        assert item.icon == "✨"
        assert item.title == "New Feature"
        assert item.description == "Describe this feature..."
        assert item.visible is True
        assert editor.items[-1].id == item.id

    def test_add_unknown_kind_raises(self):
        editor = FeatureListEditor([])
        with pytest.raises(ValueError):
            editor.add("section")

    def test_added_ids_are_unique(self):
        editor = FeatureListEditor([])
        ids = {editor.add("feature").id for _ in range(50)}
        assert len(ids) == 50

    def test_new_item_id_is_monotonic(self):
        first, second = new_item_id(), new_item_id()
        assert int(second) > int(first)

    def test_update_replaces_fields(self):
        editor = FeatureListEditor(_cards(2))
        updated = editor.update("c2", title="Voice", visible=False)

        assert updated.title == "Voice"
        assert updated.visible is False
        assert editor.items[1].description == "About card 2"

    def test_update_unknown_id_is_noop(self):
        editor = FeatureListEditor(_cards(2))
        before = editor.dump()
        assert editor.update("missing", title="x") is None
        assert editor.dump() == before

    def test_update_rejects_managed_and_unknown_fields(self):
        editor = FeatureListEditor(_cards(2))
        with pytest.raises(ValueError):
            editor.update("c1", order=5)
        with pytest.raises(ValueError):
            editor.update("c1", colour="red")

    def test_delete_renumbers(self):
        editor = FeatureListEditor(_cards(4))
        assert editor.delete("c2") is True

        assert [i.id for i in editor.items] == ["c1", "c3", "c4"]
        assert editor.orders() == [1, 2, 3]

    def test_delete_unknown_id(self):
        editor = FeatureListEditor(_cards(2))
        assert editor.delete("missing") is False
        assert len(editor) == 2


@pytest.mark.unit
class TestReorder:
    def test_orders_are_dense_after_reorder(self):
        editor = FeatureListEditor(_cards(5))
        assert editor.reorder(3, "up") is True
        assert editor.reorder(0, "down") is True

        assert editor.orders() == [1, 2, 3, 4, 5]
        assert [i.id for i in editor.items] == ["c2", "c1", "c4", "c3", "c5"]

    def test_boundaries_are_noops(self):
        editor = FeatureListEditor(_cards(3))
        before = editor.dump()

        assert editor.reorder(0, "up") is False
        assert editor.reorder(2, "down") is False
        assert editor.dump() == before

    def test_reorder_fixes_gapped_orders(self):
        editor = FeatureListEditor([
            {"id": "a", "order": 10, "title": "A", "description": "a"},
            {"id": "b", "order": 20, "title": "B", "description": "b"},
        ])
        editor.reorder(1, "up")
        assert [(i.id, i.order) for i in editor.items] == [("b", 1), ("a", 2)]

    def test_bad_direction(self):
        editor = FeatureListEditor(_cards(2))
        with pytest.raises(ValueError):
            editor.reorder(0, "sideways")


@pytest.mark.unit
@pytest.mark.asyncio
class TestSave:
    async def test_invalid_list_never_reaches_storage(self):
        calls = []

        async def persist(items):
            calls.append(items)

        editor = FeatureListEditor(_cards(2), persist=persist)
        editor.update("c2", description="   ")

        with pytest.raises(FieldValidationError) as exc:
            await editor.save()
        assert exc.value.message == "All features must have a title and description"
        assert "c2" in exc.value.errors
        assert calls == []

    async def test_save_sends_whole_list_once(self):
        calls = []

        async def persist(items):
            calls.append([i.id for i in items])
            return None

        editor = FeatureListEditor(_cards(3), persist=persist)
        editor.reorder(2, "up")
        saved = await editor.save()

        assert calls == [["c1", "c3", "c2"]]
        assert [i.order for i in saved] == [1, 2, 3]

    async def test_save_adopts_confirmed_list(self):
        async def persist(items):
            return [item.model_dump() | {"title": item.title.upper()} for item in items]

        editor = FeatureListEditor(_cards(1), persist=persist)
        saved = await editor.save()

        assert saved[0].title == "CARD 1"
        assert isinstance(saved[0], FeatureCard)

    async def test_failed_save_keeps_draft(self):
        seen_saving = []

        async def persist(items):
            seen_saving.append(editor.saving)
            raise RemoteCallError("update", "agents", "connection reset")

        editor = FeatureListEditor(_cards(2), persist=persist)
        editor.add("feature")
        before = editor.dump()

        with pytest.raises(RemoteCallError):
            await editor.save()
        assert seen_saving == [True]
        assert editor.saving is False
        assert editor.dump() == before

    async def test_save_without_persist(self):
        with pytest.raises(RuntimeError):
            await FeatureListEditor(_cards(1)).save()
