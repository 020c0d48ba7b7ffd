"""Sneaker API tests.

Learn: Tests cover:
1. CRUD on one's own collection
2. Ownership isolation — another user's sneaker is indistinguishable from a missing one
3. Bulk delete is all-or-nothing
4. Update validation (at least one field, user_id ignored)
"""

import uuid

import pytest

from conftest import register_and_sign_in

AIR_MAX = {
    "brand": "Nike",
    "model": "Air Max 90",
    "price": 129.99,
    "color": "White",
    "size": 10.5,
}


async def add_sneaker(client, headers, **overrides) -> dict:
    r = await client.post(
        "/api/v1/sneakers", json={**AIR_MAX, **overrides}, headers=headers
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
async def alice(client):
    return await register_and_sign_in(client, "alice")


@pytest.fixture
async def bob(client):
    return await register_and_sign_in(client, "bob")


# ═══════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_sneaker(client, alice):
    sneaker = await add_sneaker(client, alice["headers"], brand="  Nike  ")
    assert sneaker["brand"] == "Nike"
    assert sneaker["in_stock"] is True
    assert "user_id" not in sneaker


@pytest.mark.asyncio
async def test_list_sneakers_newest_first(client, alice):
    first = await add_sneaker(client, alice["headers"], model="First One")
    second = await add_sneaker(client, alice["headers"], model="Second One")

    r = await client.get("/api/v1/sneakers", headers=alice["headers"])
    assert r.status_code == 200
    ids = [s["id"] for s in r.json()["sneakers"]]
    assert ids == [second["id"], first["id"]]


@pytest.mark.asyncio
async def test_responses_are_not_cached(client, alice):
    r = await client.get("/api/v1/sneakers", headers=alice["headers"])
    assert r.headers["Cache-Control"].startswith("no-store")


@pytest.mark.asyncio
async def test_get_sneaker(client, alice):
    sneaker = await add_sneaker(client, alice["headers"])
    r = await client.get(f"/api/v1/sneakers/{sneaker['id']}", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["model"] == "Air Max 90"


@pytest.mark.asyncio
async def test_update_sneaker(client, alice):
    sneaker = await add_sneaker(client, alice["headers"])
    r = await client.put(
        f"/api/v1/sneakers/{sneaker['id']}",
        json={"price": 99.0, "in_stock": False},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["price"] == 99.0
    assert r.json()["in_stock"] is False
    assert r.json()["brand"] == "Nike"


@pytest.mark.asyncio
async def test_update_with_id_in_body(client, alice):
    sneaker = await add_sneaker(client, alice["headers"])
    r = await client.put(
        "/api/v1/sneakers",
        json={"id": sneaker["id"], "color": "Black"},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["color"] == "Black"


@pytest.mark.asyncio
async def test_update_requires_a_field(client, alice):
    sneaker = await add_sneaker(client, alice["headers"])
    r = await client.put(
        f"/api/v1/sneakers/{sneaker['id']}",
        json={"user_id": str(uuid.uuid4())},
        headers=alice["headers"],
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_delete_sneaker(client, alice):
    sneaker = await add_sneaker(client, alice["headers"])
    r = await client.delete(
        f"/api/v1/sneakers/{sneaker['id']}", headers=alice["headers"]
    )
    assert r.status_code == 200
    assert r.json()["deleted_sneaker"]["id"] == sneaker["id"]

    r = await client.get(f"/api/v1/sneakers/{sneaker['id']}", headers=alice["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"price": -1},
        {"size": 3.5},
        {"size": 19},
        {"brand": "N"},
        {"color": ""},
    ],
)
async def test_create_validation(client, alice, overrides):
    r = await client.post(
        "/api/v1/sneakers", json={**AIR_MAX, **overrides}, headers=alice["headers"]
    )
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_users_only_see_their_own_sneakers(client, alice, bob):
    await add_sneaker(client, alice["headers"])

    r = await client.get("/api/v1/sneakers", headers=bob["headers"])
    assert r.json()["sneakers"] == []


@pytest.mark.asyncio
async def test_foreign_sneaker_looks_missing(client, alice, bob):
    sneaker = await add_sneaker(client, alice["headers"])
    url = f"/api/v1/sneakers/{sneaker['id']}"

    for r in (
        await client.get(url, headers=bob["headers"]),
        await client.put(url, json={"price": 1}, headers=bob["headers"]),
        await client.delete(url, headers=bob["headers"]),
    ):
        assert r.status_code == 404
        assert r.json()["detail"] == "Sneaker not found or unauthorized"

    # Still intact for its owner.
    r = await client.get(url, headers=alice["headers"])
    assert r.json()["price"] == AIR_MAX["price"]


@pytest.mark.asyncio
async def test_client_cannot_reassign_owner(client, alice, bob):
    sneaker = await add_sneaker(
        client, alice["headers"], user_id=bob["user"]["id"]
    )
    r = await client.get(f"/api/v1/sneakers/{sneaker['id']}", headers=alice["headers"])
    assert r.status_code == 200


# ═══════════════════════════════════════════════════════════
# Bulk delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_bulk_delete(client, alice):
    a = await add_sneaker(client, alice["headers"])
    b = await add_sneaker(client, alice["headers"], model="Jordan 1")

    r = await client.request(
        "DELETE",
        "/api/v1/sneakers",
        json={"ids": [a["id"], b["id"]]},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["count"] == 2

    r = await client.get("/api/v1/sneakers", headers=alice["headers"])
    assert r.json()["sneakers"] == []


@pytest.mark.asyncio
async def test_bulk_delete_is_all_or_nothing(client, alice, bob):
    mine = await add_sneaker(client, alice["headers"])
    theirs = await add_sneaker(client, bob["headers"])

    r = await client.request(
        "DELETE",
        "/api/v1/sneakers",
        json={"ids": [mine["id"], theirs["id"]]},
        headers=alice["headers"],
    )
    assert r.status_code == 400
    assert r.json()["detail"] == {
        "error": "Some sneaker IDs were not found",
        "found_count": 1,
        "requested_count": 2,
    }

    r = await client.get("/api/v1/sneakers", headers=alice["headers"])
    assert len(r.json()["sneakers"]) == 1


@pytest.mark.asyncio
async def test_bulk_delete_empty_list(client, alice):
    r = await client.request(
        "DELETE", "/api/v1/sneakers", json={"ids": []}, headers=alice["headers"]
    )
    assert r.status_code == 422
