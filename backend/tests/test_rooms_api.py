from fastapi.testclient import TestClient

from app.services.join_code import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH

ROOM_PAYLOAD = {
    "play_date": "2026-03-05T19:30:00",
    "description": "Thursday five-a-side",
    "accepted_capacity": 10,
    "num_teams": 2,
    "players_per_team": 5,
    "play_mode": "league",
}


def _create_room(client: TestClient, headers, **overrides):
    response = client.post("/api/rooms", json={**ROOM_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_room(client: TestClient, owner_headers):
    room = _create_room(client, owner_headers)

    assert room["status"] == "open"
    assert room["created_by"] == owner_headers["X-User-Id"]
    assert len(room["code"]) == JOIN_CODE_LENGTH
    assert all(ch in JOIN_CODE_ALPHABET for ch in room["code"])
    assert room["effective_capacity"] == 10
    assert room["active_count"] == 0 and room["waiting_count"] == 0


def test_create_room_requires_identity(client: TestClient):
    response = client.post("/api/rooms", json=ROOM_PAYLOAD)
    assert response.status_code == 401


def test_create_room_validates_settings(client: TestClient, owner_headers):
    response = client.post("/api/rooms", json={**ROOM_PAYLOAD, "num_teams": 1}, headers=owner_headers)
    assert response.status_code == 422

    response = client.post("/api/rooms", json={**ROOM_PAYLOAD, "accepted_capacity": 0}, headers=owner_headers)
    assert response.status_code == 422


def test_get_room_by_id_and_code(client: TestClient, owner_headers):
    room = _create_room(client, owner_headers)

    assert client.get(f"/api/rooms/{room['id']}").json()["code"] == room["code"]
    by_code = client.get(f"/api/rooms/code/{room['code'].lower()}")
    assert by_code.status_code == 200
    assert by_code.json()["id"] == room["id"]


def test_unknown_room_is_404(client: TestClient):
    assert client.get("/api/rooms/999").status_code == 404
    assert client.get("/api/rooms/code/ZZZZZZ").status_code == 404


def test_list_rooms_mine(client: TestClient, owner_headers, other_headers):
    mine = _create_room(client, owner_headers)
    _create_room(client, other_headers)

    assert len(client.get("/api/rooms").json()) == 2
    listed = client.get("/api/rooms", params={"mine": True}, headers=owner_headers).json()
    assert [r["id"] for r in listed] == [mine["id"]]
    assert client.get("/api/rooms", params={"mine": True}).status_code == 401


def test_update_settings_recalculates_roster(client: TestClient, owner_headers):
    room = _create_room(client, owner_headers)
    for i in range(1, 11):
        client.post(f"/api/rooms/{room['id']}/players", json={"player_name": f"P{i}"}, headers=owner_headers)

    response = client.patch(
        f"/api/rooms/{room['id']}/settings",
        json={"accepted_capacity": 8, "description": "  moved indoors  "},
        headers=owner_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["effective_capacity"] == 8
    assert body["active_count"] == 8
    assert body["waiting_count"] == 2
    assert body["description"] == "moved indoors"


def test_update_settings_owner_only(client: TestClient, owner_headers, other_headers):
    room = _create_room(client, owner_headers)

    response = client.patch(f"/api/rooms/{room['id']}/settings", json={"num_teams": 3}, headers=other_headers)
    assert response.status_code == 403
    assert client.get(f"/api/rooms/{room['id']}").json()["num_teams"] == 2


def test_update_settings_rejects_invalid_values(client: TestClient, owner_headers):
    room = _create_room(client, owner_headers)

    response = client.patch(
        f"/api/rooms/{room['id']}/settings", json={"players_per_team": 0}, headers=owner_headers
    )
    assert response.status_code == 422


def test_set_status(client: TestClient, owner_headers, other_headers):
    room = _create_room(client, owner_headers)

    assert client.patch(
        f"/api/rooms/{room['id']}/status", json={"status": "completed"}, headers=other_headers
    ).status_code == 403

    response = client.patch(f"/api/rooms/{room['id']}/status", json={"status": "completed"}, headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = client.patch(f"/api/rooms/{room['id']}/status", json={"status": "open"}, headers=owner_headers)
    assert response.json()["status"] == "open"


def test_delete_room_cascades(client: TestClient, owner_headers):
    room = _create_room(client, owner_headers, num_teams=2, players_per_team=1, accepted_capacity=2)
    client.post(f"/api/rooms/{room['id']}/players", json={"player_name": "Ann"}, headers=owner_headers)
    client.post(f"/api/rooms/{room['id']}/players", json={"player_name": "Bob"}, headers=owner_headers)
    client.post(f"/api/rooms/{room['id']}/teams", headers=owner_headers)
    client.post(f"/api/rooms/{room['id']}/teams/allocate", headers=owner_headers)
    client.post(f"/api/rooms/{room['id']}/matches/generate", headers=owner_headers)

    response = client.delete(f"/api/rooms/{room['id']}", headers=owner_headers)

    assert response.status_code == 204
    assert client.get(f"/api/rooms/{room['id']}").status_code == 404
    assert client.get(f"/api/rooms/{room['id']}/players").status_code == 404


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
