"""
tests/test_api_contact_routes.py -- Integration tests for /api/v1/contacts.

Coverage:
  - Auth failures: 401 on list/create without a Bearer token
  - CRUD happy path: POST 201, GET list with pagination envelope, GET detail,
    PATCH, PUT upsert (201 on create, 200 on replace), DELETE 204
  - Ownership: another user's contact is 404 for GET, PATCH, DELETE
  - Query validation: unknown sort_by -> 422
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.helpers import ApiHarness


def _auth_headers(client: TestClient, email: str) -> dict[str, str]:
    client.post("/api/v1/auth/register", json={"name": "Owner", "email": email, "password": "secret1"})
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": "secret1"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _create(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    body = {"name": "Alice", "phone_number": "+380501112233", "contact_type": "work"}
    body.update(overrides)
    resp = client.post("/api/v1/contacts", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestContactAuth:
    def test_list_requires_auth(self, api_client: ApiHarness) -> None:
        assert api_client.client.get("/api/v1/contacts").status_code == 401

    def test_create_requires_auth(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/contacts", json={"name": "Alice", "phone_number": "+3805"})
        assert resp.status_code == 401


class TestContactCrud:
    def test_create_and_get(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        created = _create(client, headers, email="alice@example.com", is_favourite=True)
        assert created["name"] == "Alice"
        assert created["is_favourite"] is True

        resp = client.get(f"/api/v1/contacts/{created['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@example.com"

    def test_list_is_paginated(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        for name in ("Alice", "Bobby", "Carol"):
            _create(client, headers, name=name)

        resp = client.get("/api/v1/contacts?page=1&per_page=2&sort_by=name&sort_order=desc", headers=headers)
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert [c["name"] for c in data["data"]] == ["Carol", "Bobby"]
        assert data["total_items"] == 3
        assert data["total_pages"] == 2
        assert data["has_next_page"] is True
        assert data["has_previous_page"] is False

    def test_unknown_sort_field_rejected(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        resp = client.get("/api/v1/contacts?sort_by=user_id", headers=headers)
        assert resp.status_code == 422

    def test_patch_updates_only_given_fields(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        created = _create(client, headers)
        resp = client.patch(f"/api/v1/contacts/{created['id']}", json={"is_favourite": True}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["is_favourite"] is True
        assert resp.json()["name"] == "Alice"

    def test_patch_null_on_required_field_rejected(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        created = _create(client, headers, email="alice@example.com")
        path = f"/api/v1/contacts/{created['id']}"

        for field in ("name", "phone_number", "is_favourite", "contact_type"):
            resp = client.patch(path, json={field: None}, headers=headers)
            assert resp.status_code == 422, field
            assert resp.json()["error"]["code"] == "validation_error"
        assert client.get(path, headers=headers).json()["name"] == "Alice"

        cleared = client.patch(path, json={"email": None}, headers=headers)
        assert cleared.status_code == 200
        assert cleared.json()["email"] is None

    def test_put_replaces_or_creates(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        created = _create(client, headers)
        body = {"name": "Alicia", "phone_number": "+380509999999", "contact_type": "home"}

        replaced = client.put(f"/api/v1/contacts/{created['id']}", json=body, headers=headers)
        assert replaced.status_code == 200
        assert replaced.json()["name"] == "Alicia"

        fresh = client.put("/api/v1/contacts/424242", json=body, headers=headers)
        assert fresh.status_code == 201
        assert fresh.json()["contact_type"] == "home"

    def test_delete(self, api_client: ApiHarness) -> None:
        client = api_client.client
        headers = _auth_headers(client, "owner@example.com")
        created = _create(client, headers)
        assert client.delete(f"/api/v1/contacts/{created['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/v1/contacts/{created['id']}", headers=headers).status_code == 404


class TestContactOwnership:
    def test_other_users_contact_is_not_found(self, api_client: ApiHarness) -> None:
        client = api_client.client
        owner = _auth_headers(client, "owner@example.com")
        intruder = _auth_headers(client, "intruder@example.com")
        created = _create(client, owner)
        path = f"/api/v1/contacts/{created['id']}"

        assert client.get(path, headers=intruder).status_code == 404
        assert client.patch(path, json={"name": "Hacked"}, headers=intruder).status_code == 404
        assert client.delete(path, headers=intruder).status_code == 404
        assert client.get("/api/v1/contacts", headers=intruder).json()["total_items"] == 0

        still_there = client.get(path, headers=owner)
        assert still_there.status_code == 200
        assert still_there.json()["name"] == "Alice"
