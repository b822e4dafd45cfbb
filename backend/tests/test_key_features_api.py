"""Key feature routes: public list, admin CRUD and ordering."""

import pytest
from httpx import AsyncClient


async def _seed(store, *titles, **extra):
    rows = []
    for i, title in enumerate(titles, start=1):
        rows.append(await store.insert("key_features", {
            "title": title, "description": f"{title} description", "display_order": i, **extra,
        }))
    return rows


@pytest.mark.api
@pytest.mark.asyncio
class TestPublicKeyFeatures:
    async def test_active_in_display_order(self, client: AsyncClient, store):
        await store.insert("key_features", {"title": "Second", "description": "b", "display_order": 2})
        await store.insert("key_features", {"title": "First", "description": "a", "display_order": 1})
        await store.insert("key_features", {"title": "Off", "description": "c", "display_order": 0, "is_active": False})

        resp = await client.get("/api/key-features/")
        assert resp.status_code == 200
        assert [f["title"] for f in resp.json()] == ["First", "Second"]


@pytest.mark.api
@pytest.mark.asyncio
class TestAdminKeyFeatures:
    async def test_create_with_defaults_goes_last(self, client: AsyncClient, store, admin_headers):
        await _seed(store, "A", "B")
        resp = await client.post(
            "/api/admin/key-features/",
            headers=admin_headers,
            json={"title": "Always on", "description": "Runs 24/7"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["icon"] == "🤖"
        assert data["icon_bg_color"] == "#6366f1"
        assert data["display_order"] == 3
        assert data["is_active"] is True

    async def test_create_requires_text(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/admin/key-features/",
            headers=admin_headers,
            json={"title": " ", "description": "x"},
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_create_rejects_bad_color(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/admin/key-features/",
            headers=admin_headers,
            json={"title": "A", "description": "a", "icon_bg_color": "purple"},
        )
        assert resp.status_code == 422

    async def test_update_and_delete(self, client: AsyncClient, store, admin_headers):
        (row,) = await _seed(store, "A")
        resp = await client.patch(
            f"/api/admin/key-features/{row['id']}",
            headers=admin_headers,
            json={"title": "Renamed", "is_active": False},
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed"

        resp = await client.delete(f"/api/admin/key-features/{row['id']}", headers=admin_headers)
        assert resp.status_code == 204
        assert await store.count("key_features") == 0

    async def test_move_up(self, client: AsyncClient, store, admin_headers):
        a, b, c = await _seed(store, "A", "B", "C")
        resp = await client.post(
            f"/api/admin/key-features/{c['id']}/move",
            headers=admin_headers,
            json={"direction": "up"},
        )
        assert resp.status_code == 200
        assert [(f["title"], f["display_order"]) for f in resp.json()] == [
            ("A", 1), ("C", 2), ("B", 3),
        ]

    async def test_move_past_end_changes_nothing(self, client: AsyncClient, store, admin_headers):
        a, b = await _seed(store, "A", "B")
        resp = await client.post(
            f"/api/admin/key-features/{b['id']}/move",
            headers=admin_headers,
            json={"direction": "down"},
        )
        assert [(f["title"], f["display_order"]) for f in resp.json()] == [("A", 1), ("B", 2)]

    async def test_move_unknown(self, client: AsyncClient, admin_headers):
        resp = await client.post(
            "/api/admin/key-features/nope/move", headers=admin_headers, json={"direction": "up"}
        )
        assert resp.status_code == 404

    async def test_needs_admin(self, client: AsyncClient, user_headers):
        resp = await client.get("/api/admin/key-features/", headers=user_headers)
        assert resp.status_code == 403

    async def test_delete_then_create_keeps_orders_dense(
        self, client: AsyncClient, store, admin_headers
    ):
        a, b, c = await _seed(store, "A", "B", "C")
        resp = await client.delete(f"/api/admin/key-features/{b['id']}", headers=admin_headers)
        assert resp.status_code == 204

        resp = await client.post(
            "/api/admin/key-features/",
            headers=admin_headers,
            json={"title": "D", "description": "d"},
        )
        assert resp.json()["display_order"] == 3

        resp = await client.get("/api/admin/key-features/", headers=admin_headers)
        assert [(f["title"], f["display_order"]) for f in resp.json()] == [
            ("A", 1), ("C", 2), ("D", 3),
        ]

    async def test_create_at_position_shifts_the_rest(
        self, client: AsyncClient, store, admin_headers
    ):
        await _seed(store, "A", "B")
        resp = await client.post(
            "/api/admin/key-features/",
            headers=admin_headers,
            json={"title": "First", "description": "f", "display_order": 1},
        )
        assert resp.json()["display_order"] == 1

        resp = await client.get("/api/admin/key-features/", headers=admin_headers)
        assert [(f["title"], f["display_order"]) for f in resp.json()] == [
            ("First", 1), ("A", 2), ("B", 3),
        ]

    async def test_update_order_renumbers(self, client: AsyncClient, store, admin_headers):
        a, b, c = await _seed(store, "A", "B", "C")
        resp = await client.patch(
            f"/api/admin/key-features/{a['id']}",
            headers=admin_headers,
            json={"display_order": 99},
        )
        assert resp.status_code == 200
        assert resp.json()["display_order"] == 3

        resp = await client.get("/api/admin/key-features/", headers=admin_headers)
        assert [(f["title"], f["display_order"]) for f in resp.json()] == [
            ("B", 1), ("C", 2), ("A", 3),
        ]

    async def test_update_order_of_unknown(self, client: AsyncClient, admin_headers):
        resp = await client.patch(
            "/api/admin/key-features/nope", headers=admin_headers, json={"display_order": 1}
        )
        assert resp.status_code == 404
