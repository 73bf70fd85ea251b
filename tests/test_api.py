from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from classifieds.app import app
from classifieds.repositories.sql_repository import SQLRepository

LISTING = {
    "title": "Honda Civic 2018",
    "description": "Single owner, full service records",
    "price": 7_500_000,
    "category": "Vehicles",
    "country": "Sri Lanka",
    "image": ["https://cdn.example/civic.jpg"],
}


@pytest.fixture()
def client(db_env):
    return TestClient(app)


def _register(client: TestClient, email: str, password: str = "s3cret-pass") -> dict:
    resp = client.post(
        "/api/users/register",
        json={"email": email, "password": password, "firstName": "Test", "lastName": email.split("@")[0]},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]


def _login(client: TestClient, email: str, password: str = "s3cret-pass") -> dict:
    resp = client.post("/api/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def _seller(client: TestClient, email: str = "seller@example.com") -> dict:
    _register(client, email)
    return _login(client, email)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_register_and_login_flow(client):
    user = _register(client, "New.User@Example.com")
    assert user["email"] == "new.user@example.com"
    assert user["role"] == "customer"
    assert "password" not in user and "password_hash" not in user

    dup = client.post(
        "/api/users/register",
        json={"email": "new.user@example.com", "password": "another-pass", "firstName": "A", "lastName": "B"},
    )
    assert dup.status_code == 409

    bad = client.post("/api/users/login", json={"email": "new.user@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "invalid_credentials"

    headers = _login(client, "new.user@example.com")
    me = client.get("/api/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["_id"] == user["_id"]


def test_blocked_user_cannot_login(client):
    user = _register(client, "blocked@example.com")
    SQLRepository().set_user_blocked(user["_id"], True)
    resp = client.post("/api/users/login", json={"email": "blocked@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 403


def test_create_listing_requires_token(client):
    resp = client.post("/api/listings/create", json=LISTING)
    assert resp.status_code == 401
    assert "login" in resp.json()["message"].lower()


def test_invalid_token_is_403_even_on_public_routes(client):
    resp = client.get("/api/listings/", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 403
    assert resp.json()["message"] == "Invalid token"


def test_listing_lifecycle(client):
    headers = _seller(client)
    created = client.post("/api/listings/create", json=LISTING, headers=headers)
    assert created.status_code == 201, created.text
    listing = created.json()["listing"]
    assert listing["listingId"] == "LST00001"
    assert listing["slug"] == "honda-civic-2018-lst00001"
    assert listing["currency"] == "LKR"
    assert listing["postedAgo"] == "just now"
    assert listing["userRef"]["email"] == "seller@example.com"

    legacy = client.post("/api/listings/", json={**LISTING, "title": "Toyota Aqua"}, headers=headers)
    assert legacy.status_code == 201
    assert legacy.json() == {"message": "Listing added successfully", "listingId": "LST00002"}

    listed = client.get("/api/listings/").json()
    assert listed["count"] == 2
    assert [item["listingId"] for item in listed["listings"]] == ["LST00002", "LST00001"]

    by_key = client.get("/api/listings/LST00001")
    assert by_key.status_code == 200
    assert by_key.json()["listing"]["_id"] == listing["_id"]
    assert client.get("/api/listings/honda-civic-2018-lst00001").status_code == 200
    assert client.get("/api/listings/LST09999").status_code == 404

    viewed = client.get(f"/api/listings/id/{listing['_id']}").json()["listing"]
    assert viewed["views"] == 1
    assert client.get("/api/listings/id/xyz").status_code == 400

    updated = client.put(f"/api/listings/{listing['_id']}", json={"price": 7_000_000, "urgent": True}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["listing"]["price"] == 7_000_000
    assert updated.json()["listing"]["listingId"] == "LST00001"

    deleted = client.delete(f"/api/listings/{listing['_id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["deletedListing"] == {
        "_id": listing["_id"],
        "listingId": "LST00001",
        "title": "Honda Civic 2018",
    }
    assert client.get("/api/listings/LST00001").status_code == 404


def test_non_owner_cannot_modify(client):
    owner = _seller(client, "owner@example.com")
    intruder = _seller(client, "intruder@example.com")
    listing = client.post("/api/listings/create", json=LISTING, headers=owner).json()["listing"]

    resp = client.put(f"/api/listings/{listing['_id']}", json={"price": 1}, headers=intruder)
    assert resp.status_code == 403
    resp = client.delete(f"/api/listings/{listing['_id']}", headers=intruder)
    assert resp.status_code == 403

    mine = client.get("/api/listings/mine", headers=intruder).json()
    assert mine["count"] == 0


def test_admin_features_and_lists_users(client):
    seller = _seller(client)
    admin_user = _register(client, "admin@example.com")
    repo = SQLRepository()
    repo.set_user_role(admin_user["_id"], "admin")
    admin = _login(client, "admin@example.com")

    listing = client.post("/api/listings/create", json=LISTING, headers=seller).json()["listing"]
    assert client.put(f"/api/listings/{listing['_id']}", json={"featured": True}, headers=seller).status_code == 403
    assert client.put(f"/api/listings/{listing['_id']}", json={"featured": True}, headers=admin).status_code == 200

    featured = client.get("/api/listings/featured").json()
    assert [item["listingId"] for item in featured["listings"]] == ["LST00001"]

    assert client.get("/api/users/all", headers=seller).status_code == 403
    assert client.get("/api/users/all").status_code == 401
    users = client.get("/api/users/all", headers=admin).json()
    assert users["count"] == 2


def test_search_endpoint(client):
    headers = _seller(client)
    client.post("/api/listings/create", json=LISTING, headers=headers)
    client.post(
        "/api/listings/create",
        json={**LISTING, "title": "Maths tuition", "category": "Education", "price": 3000},
        headers=headers,
    )

    hits = client.get("/api/listings/search/honda").json()
    assert [item["title"] for item in hits["listings"]] == ["Honda Civic 2018"]

    cheap = client.get("/api/listings/search", params={"maxPrice": "5000"}).json()
    assert [item["title"] for item in cheap["listings"]] == ["Maths tuition"]

    assert client.get("/api/listings/search", params={"minPrice": "lots"}).status_code == 400


def test_contact_messages(client):
    seller = _seller(client)
    buyer = _seller(client, "buyer@example.com")
    listing = client.post("/api/listings/create", json=LISTING, headers=seller).json()["listing"]

    assert client.post("/api/contacts/", json={"listingId": "LST00001", "message": "hi"}).status_code == 401

    sent = client.post(
        "/api/contacts/",
        json={"listingId": "LST00001", "subject": "Civic", "message": "Is the price negotiable?"},
        headers=buyer,
    )
    assert sent.status_code == 201, sent.text

    to_self = client.post("/api/contacts/", json={"listingId": listing["_id"], "message": "ping"}, headers=seller)
    assert to_self.status_code == 400

    missing = client.post("/api/contacts/", json={"listingId": "LST00042", "message": "ping"}, headers=buyer)
    assert missing.status_code == 404

    inbox = client.get("/api/contacts/", headers=seller).json()
    assert len(inbox) == 1
    assert inbox[0]["senderId"]["email"] == "buyer@example.com"
    assert inbox[0]["listingId"]["title"] == "Honda Civic 2018"
    assert client.get("/api/contacts/", headers=buyer).json() == []
