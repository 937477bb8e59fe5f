"""Owner-scoped room scan CRUD over HTTP."""

import json

import pytest

from conftest import ROOM


class TestCreateRoom:
    @pytest.mark.asyncio
    async def test_create_returns_shaped_room(self, client, owner_a):
        resp = await client.post("/api/rooms", json=ROOM, headers=owner_a)
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Room scan saved successfully"
        room = body["room"]
        assert room["name"] == "Den"
        assert room["dimensions"] == {"width": 10, "length": 10, "height": 8}
        assert room["scan_data"] == "x"
        assert room["budget"] == {"min": 100, "max": 1000}
        assert resp.headers["X-Request-Id"]

    @pytest.mark.asyncio
    async def test_budget_min_above_max_writes_nothing(self, client, owner_a, store):
        resp = await client.post("/api/rooms", json={**ROOM, "budget": {"min": 900, "max": 100}}, headers=owner_a)
        assert resp.status_code == 400
        assert resp.json()["details"] == '"budget" min must be less than or equal to max'
        assert (await client.get("/api/rooms", headers=owner_a)).json() == {"rooms": []}

    @pytest.mark.asyncio
    async def test_overflowing_number_rejected(self, client, owner_a):
        raw = json.dumps(ROOM).replace('"width": 10', '"width": 1e400')
        assert "1e400" in raw
        resp = await client.post(
            "/api/rooms", content=raw, headers={**owner_a, "Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["details"].startswith('"dimensions.width"')
        assert (await client.get("/api/rooms", headers=owner_a)).json() == {"rooms": []}

    @pytest.mark.asyncio
    async def test_missing_token_checked_before_body(self, client):
        resp = await client.post("/api/rooms", json={})
        assert resp.status_code == 401


class TestOwnerScoping:
    @pytest.mark.asyncio
    async def test_other_owner_gets_not_found(self, client, owner_a, owner_b, room_id):
        for method in ("GET", "DELETE"):
            resp = await client.request(method, f"/api/rooms/{room_id}", headers=owner_b)
            assert resp.status_code == 404
            assert resp.json() == {"message": "Room not found"}

        resp = await client.put(f"/api/rooms/{room_id}", json={**ROOM, "name": "Hijack"}, headers=owner_b)
        assert resp.status_code == 404

        resp = await client.get(f"/api/rooms/{room_id}", headers=owner_a)
        assert resp.status_code == 200
        assert resp.json()["room"]["name"] == "Den"

    @pytest.mark.asyncio
    async def test_list_is_per_owner(self, client, owner_a, owner_b, room_id):
        assert [r["id"] for r in (await client.get("/api/rooms", headers=owner_a)).json()["rooms"]] == [room_id]
        assert (await client.get("/api/rooms", headers=owner_b)).json()["rooms"] == []


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, client, owner_a, room_id):
        resp = await client.put(
            f"/api/rooms/{room_id}",
            json={**ROOM, "name": "Study", "roomType": "office", "budget": {"min": 0, "max": 50}},
            headers=owner_a,
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Room updated successfully"
        room = resp.json()["room"]
        assert room["name"] == "Study"
        assert room["room_type"] == "office"
        assert room["budget"] == {"min": 0, "max": 50}
        assert room["updated_at"]

    @pytest.mark.asyncio
    async def test_update_validates_full_body(self, client, owner_a, room_id):
        resp = await client.put(f"/api/rooms/{room_id}", json={"name": "Study"}, headers=owner_a)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(self, client, owner_a, room_id):
        resp = await client.delete(f"/api/rooms/{room_id}", headers=owner_a)
        assert resp.status_code == 200
        assert resp.json() == {"message": "Room deleted successfully"}
        assert (await client.get(f"/api/rooms/{room_id}", headers=owner_a)).status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_id(self, client, owner_a):
        resp = await client.get("/api/rooms/does-not-exist", headers=owner_a)
        assert resp.status_code == 404
