import base64

import pytest

API = "/api/v0"


def _create(client, headers, name="Alice", nickname="Ace", **extra):
    resp = client.post(
        f"{API}/players",
        json={"name": name, "nickname": nickname, **extra},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_player_crud(client, auth_headers):
    avatar = base64.b64encode(b"\x89PNG-avatar").decode("ascii")
    created = _create(client, auth_headers, avatar=avatar)
    pid = created["id"]
    assert created["name"] == "Alice"
    assert created["avatar"] == avatar

    resp = client.get(f"{API}/players/{pid}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["nickname"] == "Ace"

    resp = client.put(
        f"{API}/players/{pid}", json={"nickname": "Queen"}, headers=auth_headers
    )
    assert resp.status_code == 200
    assert resp.json()["nickname"] == "Queen"
    assert resp.json()["name"] == "Alice"

    resp = client.put(f"{API}/players/{pid}", json={"avatar": ""}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["avatar"] is None

    resp = client.delete(f"{API}/players/{pid}", headers=auth_headers)
    assert resp.status_code == 204

    resp = client.get(f"{API}/players/{pid}", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == "player_not_found"

    resp = client.delete(f"{API}/players/{pid}", headers=auth_headers)
    assert resp.status_code == 404


def test_list_players_hides_deleted(client, auth_headers):
    keep = _create(client, auth_headers, name="Bob", nickname="B")
    gone = _create(client, auth_headers, name="Carol", nickname="C")
    client.delete(f"{API}/players/{gone['id']}", headers=auth_headers)

    resp = client.get(f"{API}/players", headers=auth_headers)
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [keep["id"]]


def test_update_requires_fields(client, auth_headers):
    pid = _create(client, auth_headers)["id"]
    resp = client.put(f"{API}/players/{pid}", json={}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "player_update_empty"


def test_update_missing_player(client, auth_headers):
    resp = client.put(
        f"{API}/players/missing", json={"name": "Zed"}, headers=auth_headers
    )
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "nickname": "A"},
        {"name": "   ", "nickname": "A"},
        {"name": "Alice"},
        {"name": "Alice", "nickname": "A", "avatar": "not base64!!"},
        {"name": "Alice", "nickname": "A", "email": "a@example.com"},
    ],
)
def test_create_rejects_invalid_payload(client, auth_headers, payload):
    resp = client.post(f"{API}/players", json=payload, headers=auth_headers)
    assert resp.status_code == 422


def test_create_accepts_data_url_avatar(client, auth_headers):
    raw = base64.b64encode(b"img").decode("ascii")
    created = _create(client, auth_headers, avatar=f"data:image/png;base64,{raw}")
    assert created["avatar"] == raw
