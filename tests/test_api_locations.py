"""
tests/test_api_locations.py -- Integration tests for /api/v1/locations.

The pinging user is always the token's subject; the body carries only the
position.
"""

from __future__ import annotations


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _me_id(client, token: str) -> int:
    return client.get("/api/v1/users/me", headers=_auth(token)).json()["user"]["id"]


class TestRecordPing:
    def test_ping_requires_token(self, api_client) -> None:
        client, _, _ = api_client
        assert client.post("/api/v1/locations", json={"lat": 1.0, "longitude": 2.0}).status_code == 401

    def test_ping_is_recorded_for_token_subject(self, api_client) -> None:
        client, _, user_token = api_client
        resp = client.post(
            "/api/v1/locations",
            json={"lat": 46.55, "longitude": 7.98, "accuracy_m": 12.5},
            headers=_auth(user_token),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["user_id"] == _me_id(client, user_token)
        assert body["lat"] == 46.55
        assert body["accuracy_m"] == 12.5
        assert body["recorded_at"]

    def test_user_id_in_body_is_ignored(self, api_client) -> None:
        client, admin_token, user_token = api_client
        resp = client.post(
            "/api/v1/locations",
            json={"lat": 1.0, "longitude": 1.0, "user_id": _me_id(client, admin_token)},
            headers=_auth(user_token),
        )
        assert resp.json()["user_id"] == _me_id(client, user_token)

    def test_invalid_position_is_400(self, api_client) -> None:
        client, _, user_token = api_client
        resp = client.post(
            "/api/v1/locations",
            json={"lat": 120, "longitude": 0, "accuracy_m": -1},
            headers=_auth(user_token),
        )
        assert resp.status_code == 400
        assert {"lat", "accuracy_m"} <= set(resp.json()["error"]["fields"])


class TestReadPings:
    def test_my_pings_newest_first(self, api_client) -> None:
        client, _, user_token = api_client
        for lat in (10.0, 20.0, 30.0):
            client.post("/api/v1/locations", json={"lat": lat, "longitude": 0.0}, headers=_auth(user_token))
        resp = client.get("/api/v1/locations/me", params={"limit": 3}, headers=_auth(user_token))
        assert resp.status_code == 200
        assert [p["lat"] for p in resp.json()["data"]] == [30.0, 20.0, 10.0]

    def test_my_pings_only_contain_mine(self, api_client) -> None:
        client, admin_token, user_token = api_client
        client.post("/api/v1/locations", json={"lat": 5.0, "longitude": 5.0}, headers=_auth(admin_token))
        mine = _me_id(client, user_token)
        data = client.get("/api/v1/locations/me", headers=_auth(user_token)).json()["data"]
        assert data
        assert all(p["user_id"] == mine for p in data)

    def test_limit_out_of_range_is_400(self, api_client) -> None:
        client, _, user_token = api_client
        resp = client.get("/api/v1/locations/me", params={"limit": 0}, headers=_auth(user_token))
        assert resp.status_code == 400

    def test_latest_is_admin_only(self, api_client) -> None:
        client, _, user_token = api_client
        assert client.get("/api/v1/locations/latest", headers=_auth(user_token)).status_code == 403
        assert client.get("/api/v1/locations/latest").status_code == 401

    def test_latest_has_one_ping_per_user(self, api_client) -> None:
        client, admin_token, user_token = api_client
        client.post("/api/v1/locations", json={"lat": 1.0, "longitude": 1.0}, headers=_auth(user_token))
        client.post("/api/v1/locations", json={"lat": 2.0, "longitude": 2.0}, headers=_auth(user_token))
        client.post("/api/v1/locations", json={"lat": 3.0, "longitude": 3.0}, headers=_auth(admin_token))

        resp = client.get("/api/v1/locations/latest", headers=_auth(admin_token))
        assert resp.status_code == 200
        data = resp.json()["data"]
        by_user = {p["user_id"]: p for p in data}
        assert len(by_user) == len(data)
        assert by_user[_me_id(client, user_token)]["lat"] == 2.0
        assert by_user[_me_id(client, admin_token)]["lat"] == 3.0
