"""
tests/test_data_routes.py -- Integration tests for ownership-scoped /api/data.

Coverage:
  - Every route is 401 without a bearer token
  - Create: 201, validation 400
  - List: newest first, only the caller's records
  - Update/delete: owner succeeds; another identity gets exactly the 404 a
    nonexistent id gets
  - Store failures surface as a generic 500
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from conftest import bearer


def _create(client: TestClient, token: str, title: str = "Groceries", description: str = "Milk, eggs") -> dict:
    resp = client.post("/api/data", json={"title": title, "description": description}, headers=bearer(token))
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestDataAuthFailure:
    """Unauthenticated requests to every data route must return 401."""

    @pytest.mark.parametrize(
        ("method", "path"),
        [("GET", "/api/data"), ("POST", "/api/data"), ("PUT", "/api/data/1"), ("DELETE", "/api/data/1")],
    )
    def test_no_token(self, api_client: TestClient, method: str, path: str) -> None:
        resp = api_client.request(method, path, json={"title": "t", "description": "d"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Access token required"}

    def test_bad_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/data", headers=bearer("not-a-jwt"))
        assert resp.status_code == 401


class TestCreateAndList:
    def test_create_returns_record(self, api_client: TestClient, register_user) -> None:
        token, user = register_user()
        record = _create(api_client, token, "Title T", "Description D")
        assert record["title"] == "Title T"
        assert record["description"] == "Description D"
        assert record["owner_id"] == user["id"]
        assert isinstance(record["id"], int)
        assert record["created_at"]

    @pytest.mark.parametrize(
        "body",
        [{}, {"title": "only title"}, {"description": "only description"}, {"title": "  ", "description": "d"}],
    )
    def test_create_requires_title_and_description(self, api_client: TestClient, register_user, body: dict) -> None:
        token, _user = register_user()
        resp = api_client.post("/api/data", json=body, headers=bearer(token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Title and description are required"}

    def test_round_trip_visible_only_to_owner(self, api_client: TestClient, register_user) -> None:
        token_a, user_a = register_user(name="A")
        token_b, _user_b = register_user(name="B")
        _create(api_client, token_a, "T", "D")

        listed_a = api_client.get("/api/data", headers=bearer(token_a)).json()
        assert len(listed_a) == 1
        assert listed_a[0]["title"] == "T"
        assert listed_a[0]["description"] == "D"
        assert listed_a[0]["owner_id"] == user_a["id"]

        listed_b = api_client.get("/api/data", headers=bearer(token_b))
        assert listed_b.status_code == 200
        assert listed_b.json() == []

    def test_list_newest_first(self, api_client: TestClient, register_user) -> None:
        token, _user = register_user()
        ids = [_create(api_client, token, f"item-{i}")["id"] for i in range(3)]
        listed = api_client.get("/api/data", headers=bearer(token)).json()
        assert [r["id"] for r in listed] == list(reversed(ids))


class TestUpdate:
    def test_owner_can_update(self, api_client: TestClient, register_user) -> None:
        token, _user = register_user()
        record = _create(api_client, token)
        resp = api_client.put(
            f"/api/data/{record['id']}",
            json={"title": "Updated", "description": "Updated description"},
            headers=bearer(token),
        )
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        data = resp.json()
        assert data["id"] == record["id"]
        assert data["title"] == "Updated"
        assert data["description"] == "Updated description"

    def test_other_identity_gets_same_404_as_missing(self, api_client: TestClient, register_user) -> None:
        owner_token, _owner = register_user()
        intruder_token, _intruder = register_user()
        record = _create(api_client, owner_token)
        body = {"title": "hijack", "description": "hijack"}

        foreign = api_client.put(f"/api/data/{record['id']}", json=body, headers=bearer(intruder_token))
        missing = api_client.put("/api/data/999999", json=body, headers=bearer(intruder_token))
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json() == {"error": "Data item not found"}

        listed = api_client.get("/api/data", headers=bearer(owner_token)).json()
        assert listed[0]["title"] == "Groceries"

    def test_update_validates_body(self, api_client: TestClient, register_user) -> None:
        token, _user = register_user()
        record = _create(api_client, token)
        resp = api_client.put(f"/api/data/{record['id']}", json={"title": ""}, headers=bearer(token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Title and description are required"}

    @pytest.mark.parametrize("record_id", ["abc", "0", "-1", "1.5", "99999999999999999999999"])
    def test_unparseable_id_is_404(self, api_client: TestClient, register_user, record_id: str) -> None:
        token, _user = register_user()
        resp = api_client.put(f"/api/data/{record_id}", json={"title": "t", "description": "d"}, headers=bearer(token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Data item not found"}


class TestDelete:
    def test_owner_can_delete(self, api_client: TestClient, register_user) -> None:
        token, _user = register_user()
        record = _create(api_client, token)
        resp = api_client.delete(f"/api/data/{record['id']}", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json() == {"message": "Data item deleted successfully"}
        assert api_client.get("/api/data", headers=bearer(token)).json() == []

        again = api_client.delete(f"/api/data/{record['id']}", headers=bearer(token))
        assert again.status_code == 404

    def test_other_identity_cannot_delete(self, api_client: TestClient, register_user) -> None:
        owner_token, _owner = register_user()
        intruder_token, _intruder = register_user()
        record = _create(api_client, owner_token)

        resp = api_client.delete(f"/api/data/{record['id']}", headers=bearer(intruder_token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Data item not found"}
        assert len(api_client.get("/api/data", headers=bearer(owner_token)).json()) == 1

    @pytest.mark.parametrize("record_id", ["abc", "0", "99999999999999999999999", str(2**63)])
    def test_unparseable_id_is_404(self, api_client: TestClient, register_user, record_id: str) -> None:
        token, _user = register_user()
        resp = api_client.delete(f"/api/data/{record_id}", headers=bearer(token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Data item not found"}


class TestStoreFailure:
    def test_store_error_is_generic_500(self, api_client: TestClient, register_user, monkeypatch) -> None:
        token, _user = register_user()

        def broken(owner_id: int):
            raise OperationalError("SELECT * FROM records", {}, Exception("database is locked"))

        monkeypatch.setattr(api_client.app.state.record_store, "list_for_owner", broken)
        resp = api_client.get("/api/data", headers=bearer(token))
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error"}
        assert "locked" not in resp.text
