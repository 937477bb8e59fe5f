import pytest


async def _design_id(client, headers, room_id):
    resp = await client.post(
        "/api/designs/generate",
        json={"roomId": room_id, "style": "scandinavian", "budget": {"min": 100, "max": 1000}},
        headers=headers,
    )
    return resp.json()["design"]["id"]


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_returns_products_and_total(self, client, owner_a):
        resp = await client.get("/api/products/search", params={"keywords": "oak table"}, headers=owner_a)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == len(body["products"]) == 3
        assert body["products"][0]["title"].startswith("oak table")

    @pytest.mark.asyncio
    async def test_sort_price_low(self, client, owner_a):
        resp = await client.get(
            "/api/products/search", params={"keywords": "chair", "sortBy": "price_low"}, headers=owner_a
        )
        prices = [p["price"]["amount"] for p in resp.json()["products"]]
        assert prices == sorted(prices)

    @pytest.mark.asyncio
    async def test_missing_keywords(self, client, owner_a):
        resp = await client.get("/api/products/search", headers=owner_a)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Validation error"

    @pytest.mark.asyncio
    async def test_requires_auth(self, client):
        resp = await client.get("/api/products/search", params={"keywords": "chair"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_details_placeholder(self, client, owner_a):
        resp = await client.get("/api/products/details/B000123", headers=owner_a)
        assert resp.status_code == 200
        assert resp.json()["asin"] == "B000123"
        assert resp.json()["placeholder"] is True


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_from_design(self, client, owner_a, room_id):
        design_id = await _design_id(client, owner_a, room_id)
        resp = await client.post("/api/products/recommendations", json={"designId": design_id}, headers=owner_a)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["recommendations"][0]["item"] == "scandinavian Sofa"

    @pytest.mark.asyncio
    async def test_from_items(self, client, owner_a):
        resp = await client.post(
            "/api/products/recommendations",
            json={"furnitureItems": [{"name": "Lamp", "estimatedPrice": 80}, {"name": "Rug"}]},
            headers=owner_a,
        )
        assert resp.status_code == 200
        assert [r["item"] for r in resp.json()["recommendations"]] == ["Lamp", "Rug"]

    @pytest.mark.asyncio
    async def test_needs_a_source(self, client, owner_a):
        resp = await client.post("/api/products/recommendations", json={}, headers=owner_a)
        assert resp.status_code == 400
        assert resp.json()["details"] == "Either designId or furnitureItems array is required"

    @pytest.mark.asyncio
    async def test_other_owners_design(self, client, owner_a, owner_b, room_id):
        design_id = await _design_id(client, owner_a, room_id)
        resp = await client.post("/api/products/recommendations", json={"designId": design_id}, headers=owner_b)
        assert resp.status_code == 404


class TestFavorites:
    @pytest.mark.asyncio
    async def test_add_list_remove(self, client, owner_a, owner_b):
        resp = await client.post(
            "/api/products/favorites",
            json={"asin": "B0001", "title": "Lamp", "price": 29.99, "imageUrl": "http://img/1"},
            headers=owner_a,
        )
        assert resp.status_code == 201
        assert resp.json()["message"] == "Product saved to favorites"
        assert resp.json()["favorite"]["product_asin"] == "B0001"

        favs = (await client.get("/api/products/favorites", headers=owner_a)).json()["favorites"]
        assert [f["product_title"] for f in favs] == ["Lamp"]
        assert (await client.get("/api/products/favorites", headers=owner_b)).json()["favorites"] == []

        # another owner removing the same asin leaves ours alone
        await client.delete("/api/products/favorites/B0001", headers=owner_b)
        assert len((await client.get("/api/products/favorites", headers=owner_a)).json()["favorites"]) == 1

        resp = await client.delete("/api/products/favorites/B0001", headers=owner_a)
        assert resp.status_code == 200
        assert resp.json() == {"message": "Product removed from favorites"}
        assert (await client.get("/api/products/favorites", headers=owner_a)).json()["favorites"] == []

    @pytest.mark.asyncio
    async def test_title_required(self, client, owner_a):
        resp = await client.post("/api/products/favorites", json={"asin": "B0001"}, headers=owner_a)
        assert resp.status_code == 400
        assert resp.json()["details"].startswith('"title"')


class TestFavoriteDesignLink:
    @pytest.mark.asyncio
    async def test_malformed_design_id_rejected(self, client, owner_a):
        resp = await client.post(
            "/api/products/favorites", json={"asin": "B0001", "title": "Lamp", "designId": "not-a-uuid"}, headers=owner_a
        )
        assert resp.status_code == 400
        assert resp.json()["details"].startswith('"designId"')
        assert (await client.get("/api/products/favorites", headers=owner_a)).json()["favorites"] == []

    @pytest.mark.asyncio
    async def test_design_id_stored_as_canonical_uuid(self, client, owner_a, room_id):
        design_id = await _design_id(client, owner_a, room_id)
        resp = await client.post(
            "/api/products/favorites",
            json={"asin": "B0001", "title": "Lamp", "designId": design_id.upper()},
            headers=owner_a,
        )
        assert resp.status_code == 201
        assert resp.json()["favorite"]["design_id"] == design_id
