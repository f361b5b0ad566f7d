import base64
import uuid
from datetime import timedelta

from app.models import Game, ScoreEvent
from app.time_utils import utcnow_naive

API = "/api/v0"


def _player(client, headers, name):
    resp = client.post(
        f"{API}/players", json={"name": name, "nickname": name[:3]}, headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _active_tournament(client, headers, date="2025-06-01"):
    resp = client.post(f"{API}/tournaments", json={"date": date}, headers=headers)
    tid = resp.json()["id"]
    resp = client.post(f"{API}/tournaments/{tid}/start", headers=headers)
    assert resp.status_code == 200, resp.text
    return tid


def _events(marks):
    return [{"playerId": pid, "type": t} for pid, seq in marks for t in seq]


def test_create_and_get_game(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    bob = _player(client, auth_headers, "Bob")
    tid = _active_tournament(client, auth_headers)
    photo = base64.b64encode(b"jpeg-bytes").decode("ascii")

    resp = client.post(
        f"{API}/games",
        json={
            "tournamentId": tid,
            "events": _events([(alice, "IX"), (bob, "x")]),
            "comment": "close round",
            "photo": photo,
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    game = resp.json()
    assert game["tournament_id"] == tid
    assert game["comment"] == "close round"
    assert game["photo"] == photo

    # Game details are public.
    resp = client.get(f"{API}/games/{game['id']}")
    assert resp.status_code == 200
    detail = resp.json()
    assert [(e["playerId"], e["type"]) for e in detail["events"]] == [
        (alice, "I"),
        (alice, "X"),
        (bob, "X"),
    ]
    assert detail["events"][0]["player"]["name"] == "Alice"


def test_get_missing_game(client):
    resp = client.get(f"{API}/games/missing")
    assert resp.status_code == 404
    assert resp.json()["code"] == "game_not_found"


def test_create_game_requires_auth(client):
    resp = client.post(f"{API}/games", json={"tournamentId": "t", "events": []})
    assert resp.status_code == 401


def test_create_game_requires_events(client, auth_headers):
    tid = _active_tournament(client, auth_headers)
    resp = client.post(
        f"{API}/games", json={"tournamentId": tid, "events": []}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "game_invalid_events"


def test_create_game_rejects_unknown_event_type(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    resp = client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": [{"playerId": alice, "type": "Z"}]},
        headers=auth_headers,
    )
    assert resp.status_code == 422


def test_create_game_rejects_unknown_players(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    resp = client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": _events([(alice, "I"), ("ghost", "X")])},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "game_unknown_players"
    assert "ghost" in resp.json()["detail"]


def test_create_game_needs_active_tournament(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    resp = client.post(
        f"{API}/tournaments", json={"date": "2025-06-02"}, headers=auth_headers
    )
    draft = resp.json()["id"]

    resp = client.post(
        f"{API}/games",
        json={"tournamentId": draft, "events": _events([(alice, "I")])},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "tournament_not_active"

    resp = client.post(
        f"{API}/games",
        json={"tournamentId": "missing", "events": _events([(alice, "I")])},
        headers=auth_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "tournament_not_found"


def test_delete_recent_game(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    resp = client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": _events([(alice, "IIII")])},
        headers=auth_headers,
    )
    gid = resp.json()["id"]

    resp = client.delete(f"{API}/games/{gid}")
    assert resp.status_code == 401

    resp = client.delete(f"{API}/games/{gid}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Game deleted"}

    assert client.get(f"{API}/games/{gid}").status_code == 404
    resp = client.get(f"{API}/tournaments/{tid}/results")
    assert resp.json()["scores"] == []

    resp = client.delete(f"{API}/games/{gid}", headers=auth_headers)
    assert resp.status_code == 404


def test_delete_window_expired(client, auth_headers, run_db):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    gid = uuid.uuid4().hex
    created = utcnow_naive() - timedelta(minutes=5)

    async def _insert_old_game(session):
        session.add(Game(id=gid, tournament_id=tid, created_at=created))
        await session.flush()
        session.add(
            ScoreEvent(
                id=uuid.uuid4().hex,
                game_id=gid,
                player_id=alice,
                type="I",
                created_at=created,
            )
        )

    run_db(_insert_old_game)

    resp = client.delete(f"{API}/games/{gid}", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "game_delete_window_expired"
    assert client.get(f"{API}/games/{gid}").status_code == 200


def test_preview_matches_recording_the_game(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    bob = _player(client, auth_headers, "Bob")
    carol = _player(client, auth_headers, "Carol")
    tid = _active_tournament(client, auth_headers)

    client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": _events([(alice, "IIIIIII"), (bob, "XXX")])},
        headers=auth_headers,
    )
    pending = _events([(alice, "IX"), (bob, "X"), (carol, "IIII")])

    resp = client.post(
        f"{API}/games/preview",
        json={"tournamentId": tid, "events": pending},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    preview = {s["playerId"]: s for s in resp.json()["scores"]}
    assert preview[alice]["plusClusters"] == 2
    assert preview[alice]["plusRemainder"] == 0
    assert preview[alice]["minusRemainder"] == 1
    assert preview[bob]["minusClusters"] == 1
    assert preview[bob]["netScore"] == -1
    assert preview[carol]["netScore"] == 1

    # Previewing does not store anything.
    results = client.get(f"{API}/tournaments/{tid}/results").json()["scores"]
    assert {s["playerId"] for s in results} == {alice, bob}

    client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": pending},
        headers=auth_headers,
    )
    results = client.get(f"{API}/tournaments/{tid}/results").json()["scores"]
    assert {s["playerId"]: s for s in results} == preview


def test_preview_without_events_returns_current_standings(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    client.post(
        f"{API}/games",
        json={"tournamentId": tid, "events": _events([(alice, "IIIII")])},
        headers=auth_headers,
    )
    resp = client.post(
        f"{API}/games/preview",
        json={"tournamentId": tid, "events": []},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    (row,) = resp.json()["scores"]
    assert row["plusClusters"] == 1
    assert row["plusRemainder"] == 1


def test_preview_missing_tournament(client, auth_headers):
    resp = client.post(
        f"{API}/games/preview",
        json={"tournamentId": "missing", "events": []},
        headers=auth_headers,
    )
    assert resp.status_code == 404


def test_preview_requires_active_tournament(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    resp = client.post(
        f"{API}/tournaments", json={"date": "2025-06-03"}, headers=auth_headers
    )
    draft = resp.json()["id"]

    resp = client.post(
        f"{API}/games/preview",
        json={"tournamentId": draft, "events": _events([(alice, "I")])},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "tournament_not_active"


def test_preview_rejects_unknown_players(client, auth_headers):
    alice = _player(client, auth_headers, "Alice")
    tid = _active_tournament(client, auth_headers)
    resp = client.post(
        f"{API}/games/preview",
        json={"tournamentId": tid, "events": _events([(alice, "I"), ("ghost", "I")])},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "game_unknown_players"
    assert "ghost" in resp.json()["detail"]
