"""Tests for the HTTP endpoints."""

import pytest
import pytest_asyncio
import httpx

from api import create_app
from auth import IdentityVerifier
from config import DEFAULTS, validate_settings
from database import MemoryStore
from identity import SequentialIdGenerator

SELLER = "seller-principal"
BUYER = "buyer-principal"
TREASURY = "treasury-principal"
PAYLOAD = {
    "name": "Mama Njeri Crafts",
    "location": "Westlands",
    "zipcode": "00800",
    "continent": "Africa",
    "country": "Kenya",
    "product_label": "handmade",
    "price": 40,
    "item_name": "Kiondo basket",
    "description": "Woven sisal basket"
}

@pytest.fixture
def settings():
    return validate_settings(dict(DEFAULTS, jwt_secret="test-secret", treasury_identities=TREASURY))

@pytest.fixture
def verifier(settings):
    return IdentityVerifier(settings['jwt_secret'], settings['jwt_algorithm'])

@pytest_asyncio.fixture
async def client(settings):
    store = MemoryStore()
    app = create_app(settings, store=store, id_generator=SequentialIdGenerator("id"))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await store.close()

def auth(verifier, identity):
    return {"Authorization": f"Bearer {verifier.create_token(identity)}"}

@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"

@pytest.mark.asyncio
async def test_requires_token(client):
    response = await client.get("/listings/")
    assert response.status_code in (401, 403)

@pytest.mark.asyncio
async def test_rejects_bad_token(client):
    response = await client.get("/listings/", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

@pytest.mark.asyncio
async def test_listing_endpoints(client, verifier):
    response = await client.post("/listings/", json=PAYLOAD, headers=auth(verifier, SELLER))
    assert response.status_code == 200
    listing = response.json()
    assert listing["id"] == "id-000001"
    assert listing["owner"] == SELLER
    assert listing["price"] == 40

    response = await client.get(f"/listings/{listing['id']}", headers=auth(verifier, BUYER))
    assert response.status_code == 200
    assert response.json() == listing

    response = await client.get("/listings/", headers=auth(verifier, BUYER))
    assert response.json() == [listing]

    response = await client.delete(f"/listings/{listing['id']}", headers=auth(verifier, BUYER))
    assert response.status_code == 403
    assert response.json()["detail"] == {"Forbidden": "only seller can delete the product"}

    response = await client.delete(f"/listings/{listing['id']}", headers=auth(verifier, SELLER))
    assert response.status_code == 200

    response = await client.get(f"/listings/{listing['id']}", headers=auth(verifier, BUYER))
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_create_listing_missing_field(client, verifier):
    payload = dict(PAYLOAD)
    del payload["description"]
    response = await client.post("/listings/", json=payload, headers=auth(verifier, SELLER))
    assert response.status_code == 400
    assert response.json()["detail"] == {"BadRequest": "description of product is missing"}

@pytest.mark.asyncio
async def test_purchase_and_feedback_endpoints(client, verifier):
    listing = (await client.post("/listings/", json=PAYLOAD, headers=auth(verifier, SELLER))).json()

    # Only treasury identities may credit
    response = await client.post(
        f"/accounts/{BUYER}/credit", json={"amount": 100}, headers=auth(verifier, BUYER)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/accounts/{BUYER}/credit", json={"amount": 100}, headers=auth(verifier, TREASURY)
    )
    assert response.json() == {"identity": BUYER, "balance": 100}

    response = await client.post(
        "/feedback/enquiries",
        json={"business_id": listing["id"], "question": "Is it waterproof?"},
        headers=auth(verifier, BUYER)
    )
    assert response.status_code == 200
    assert response.json()["author"] == BUYER

    response = await client.post(
        f"/listings/{listing['id']}/buy", json={"seller": SELLER}, headers=auth(verifier, SELLER)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/listings/{listing['id']}/buy", json={"seller": SELLER}, headers=auth(verifier, BUYER)
    )
    assert response.status_code == 200
    assert response.json() == listing

    response = await client.post(
        f"/listings/{listing['id']}/buy", json={"seller": SELLER}, headers=auth(verifier, BUYER)
    )
    assert response.status_code == 404

    response = await client.get(f"/accounts/{SELLER}", headers=auth(verifier, SELLER))
    assert response.json() == {"identity": SELLER, "balance": 40}

    response = await client.get(f"/listings/{listing['id']}/sale", headers=auth(verifier, SELLER))
    assert response.json() == {"item_id": listing["id"], "buyer": BUYER}

    response = await client.post(
        "/feedback/comments",
        json={"item_id": listing["id"], "seller_id": SELLER, "comment": "Great", "rate": 5},
        headers=auth(verifier, BUYER)
    )
    assert response.status_code == 200

    response = await client.get(f"/feedback/comments/{listing['id']}", headers=auth(verifier, SELLER))
    assert [c["comment"] for c in response.json()] == ["Great"]

    response = await client.get(f"/feedback/enquiries/{listing['id']}", headers=auth(verifier, SELLER))
    assert [e["question"] for e in response.json()] == ["Is it waterproof?"]

@pytest.mark.asyncio
async def test_insufficient_funds_endpoint(client, verifier):
    listing = (await client.post("/listings/", json=PAYLOAD, headers=auth(verifier, SELLER))).json()
    response = await client.post(
        f"/listings/{listing['id']}/buy", json={"seller": SELLER}, headers=auth(verifier, BUYER)
    )
    assert response.status_code == 400
    assert "insufficient funds" in response.json()["detail"]["BadRequest"]

@pytest.mark.asyncio
async def test_create_listing_boolean_price(client, verifier):
    response = await client.post(
        "/listings/", json=dict(PAYLOAD, price=True), headers=auth(verifier, SELLER)
    )
    assert response.status_code == 422

    response = await client.get("/listings/", headers=auth(verifier, SELLER))
    assert response.json() == []
