"""
HTTP tests for the overlay server routers
"""
import asyncio
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from frc_overlay.core.notifier import ChangeNotifier
from frc_overlay.main import create_app
from frc_overlay.models import OverlayConfig
from frc_overlay.state import Services


@pytest.fixture
def client(tmp_path):
    config = OverlayConfig(static_dir=str(tmp_path / "no-static"), tournament_refresh_interval=60)
    with TestClient(create_app(config)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["mode"] == "starting-soon"
    assert body["watching"] is False


def test_config_advertises_sync_cadence(client):
    body = client.get("/config").json()
    assert body["sync"] == {"active_interval": 0.1, "idle_interval": 1.0, "reconnect_delay": 5.0}


def test_default_document(client):
    response = client.get("/api/overlay-state")
    assert response.status_code == 200
    assert "no-cache" in response.headers["cache-control"]
    doc = response.json()
    assert doc["mode"] == "starting-soon"
    assert doc["redScore"] == 0
    assert doc["field2RedScore"] == 0
    assert doc["matchTime"] == "00:00"
    assert doc["redOPR"] == []
    assert doc["field2Enabled"] is False
    assert isinstance(doc["lastUpdated"], int)


def test_post_then_get_reflects_patch(client):
    response = client.post("/api/overlay-state", json={"mode": "match", "field2RedAllianceName": "Team 254"})
    assert response.status_code == 200
    assert response.json()["mode"] == "match"

    doc = client.get("/api/overlay-state").json()
    assert doc["mode"] == "match"
    assert doc["field2RedAllianceName"] == "Team 254"


def test_get_is_stable_without_changes(client):
    first = client.get("/api/overlay-state").json()
    second = client.get("/api/overlay-state").json()
    assert first == second


def test_file_values_served(client, tmp_path):
    (tmp_path / "Score_R.txt").write_text("42")
    (tmp_path / "GameState.txt").write_text("TELEOP")
    client.post("/api/overlay-state", json={"gameFileLocation": str(tmp_path)})

    doc = client.get("/api/overlay-state").json()
    assert doc["redScore"] == 42
    assert doc["gameState"] == "TELEOP"


@pytest.mark.parametrize("payload", [["mode", "match"], "match", 7])
def test_non_object_patch_is_400(client, payload):
    before = client.get("/api/overlay-state").json()
    response = client.post("/api/overlay-state", json=payload)
    assert response.status_code == 400
    assert client.get("/api/overlay-state").json() == before


def test_unknown_key_is_400(client):
    response = client.post("/api/overlay-state", json={"mode": "match", "bogus": True})
    assert response.status_code == 400
    assert client.get("/api/overlay-state").json()["mode"] == "starting-soon"


def test_invalid_json_is_400(client):
    response = client.post(
        "/api/overlay-state",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid JSON"


def test_batch_update(client):
    before = client.get("/api/overlay-state").json()["lastUpdated"]
    response = client.post("/api/overlay-batch", json={"matchTitle": "Finals"})
    body = response.json()
    assert body["success"] is True
    assert body["lastUpdated"] > before
    assert client.get("/api/overlay-state").json()["matchTitle"] == "Finals"


def test_scores(client, tmp_path):
    (tmp_path / "Score_R.txt").write_text("5")
    (tmp_path / "Score_B.txt").write_text("3")
    body = client.get("/api/scores", params={"field1": str(tmp_path)}).json()
    assert body == {
        "field1": {"redScore": 5, "blueScore": 3},
        "field2": {"redScore": 0, "blueScore": 0},
    }


def test_read_file(client, tmp_path):
    (tmp_path / "Timer.txt").write_text(" 1:45 \n")
    client.post("/api/overlay-state", json={"gameFileLocation": str(tmp_path)})
    assert client.get("/api/read-file", params={"path": str(tmp_path / "Timer.txt")}).text == "1:45"
    assert client.get("/api/read-file", params={"path": str(tmp_path / "missing.txt")}).text == "0"


def test_read_file_outside_game_locations(client, tmp_path):
    """Files outside every configured location are never served"""
    field, elsewhere = tmp_path / "field1", tmp_path / "elsewhere"
    field.mkdir()
    elsewhere.mkdir()
    (elsewhere / "secret.txt").write_text("hunter2")
    (field / "Score_R.txt").write_text("8")

    assert client.get("/api/read-file", params={"path": str(elsewhere / "secret.txt")}).text == "0"

    client.post("/api/overlay-state", json={"gameFileLocation": str(field)})
    escaped = str(field / ".." / "elsewhere" / "secret.txt")
    assert client.get("/api/read-file", params={"path": escaped}).text == "0"
    assert client.get("/api/read-file", params={"path": str(field / "Score_R.txt")}).text == "8"
    assert client.get("/").json()["cached_files"] == 1


def test_game_files(client, tmp_path):
    (tmp_path / "b.txt").write_text("two")
    (tmp_path / "a.txt").write_text("one")
    (tmp_path / "notes.csv").write_text("skip")
    body = client.post("/api/game-files", json={"gameFileLocation": str(tmp_path)}).json()
    assert body["files"] == [{"name": "a.txt", "content": "one"}, {"name": "b.txt", "content": "two"}]


def test_game_files_errors_are_reported(client, tmp_path):
    missing = client.post("/api/game-files", json={"gameFileLocation": str(tmp_path / "nope")}).json()
    assert missing["files"] == []
    assert "error" in missing

    url = client.post("/api/game-files", json={"gameFileLocation": "http://example.com/files"}).json()
    assert url["files"] == []
    assert "URL" in url["error"]


def test_tournament_players_round_trip(client, tmp_path):
    response = client.post("/api/tournament-players", json={
        "playersPath": str(tmp_path),
        "team": "red",
        "players": ["alice", "bob"],
    })
    assert response.status_code == 200
    assert response.json()["message"] == "RedPlayers.txt updated successfully"

    body = client.get("/api/tournament-players", params={"path": str(tmp_path), "team": "red"}).json()
    assert body["players"] == ["alice", "bob"]


@pytest.mark.parametrize("params", [{}, {"path": "/tmp"}, {"path": "/tmp", "team": "green"}])
def test_tournament_players_bad_request(client, params):
    assert client.get("/api/tournament-players", params=params).status_code == 400


def test_tournament_players_post_validation(client, tmp_path):
    bad_team = {"playersPath": str(tmp_path), "team": "purple", "players": []}
    assert client.post("/api/tournament-players", json=bad_team).status_code == 400
    assert client.post("/api/tournament-players", json={"team": "red"}).status_code == 400


def test_differential_lifecycle(client):
    assert client.get("/api/differential").json()["active"] is False

    assert client.post("/api/differential/start").json() == {"success": True, "active": True}
    assert client.get("/api/differential").json()["active"] is True

    stopped = client.post("/api/differential/stop").json()
    assert stopped["active"] is False

    assert client.post("/api/differential/clear").json() == {"success": True}
    assert client.get("/api/differential").json()["points"] == []


def test_differential_start_with_location(client, tmp_path):
    client.post("/api/differential/start", json={"gameFileLocation": str(tmp_path)})
    assert client.get("/api/differential").json()["gameFileLocation"] == str(tmp_path)


def test_watch_start_and_stop(client, tmp_path):
    response = client.post("/api/overlay-watch", json={"action": "start", "paths": {"field1": str(tmp_path)}})
    assert response.json() == {"status": "watching started", "paths": {"field1": str(tmp_path)}}
    assert client.get("/").json()["watching"] is True

    assert client.post("/api/overlay-watch", json={"action": "stop"}).json() == {"status": "watching stopped"}
    assert client.get("/").json()["watching"] is False


@pytest.mark.parametrize("payload", [{"action": "pause"}, {"action": "start"}, ["start"]])
def test_watch_invalid_action(client, payload):
    assert client.post("/api/overlay-watch", json=payload).status_code == 400


class SlowObserver:
    """watchdog Observer stand-in that takes a while to start"""

    def schedule(self, handler, path, recursive=False):
        pass

    def start(self):
        time.sleep(0.3)

    def stop(self):
        pass

    def join(self, timeout=None):
        pass


def test_watch_start_does_not_block_other_requests(tmp_path):
    """Other requests are served while a watch is being set up"""
    config = OverlayConfig(static_dir=str(tmp_path / "no-static"))
    app = create_app(config)
    services = Services(config)
    services.notifier = ChangeNotifier(observer_factory=SlowObserver)
    app.state.services = services

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://overlay.test") as client:
            start = asyncio.create_task(client.post(
                "/api/overlay-watch",
                json={"action": "start", "paths": {"field1": str(tmp_path)}},
            ))
            await asyncio.sleep(0.05)
            response = await client.get("/config")
            still_starting = not start.done()
            return response.status_code, still_starting, (await start).json()

    status, still_starting, started = asyncio.run(scenario())
    assert status == 200
    assert still_starting is True
    assert started == {"status": "watching started", "paths": {"field1": str(tmp_path)}}
