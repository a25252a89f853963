"""
Tests for the FastAPI service in app.backend.
"""

import asyncio

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from app.backend import main  # noqa: E402
from app.backend.engine import SUBSCRIBER_QUEUE_SIZE, InMemoryPlaybackEngine  # noqa: E402
from fsm_core.config import ReplayConfig, SourcesConfig  # noqa: E402
from fsm_replay.session import PlaybackSession  # noqa: E402


@pytest.fixture
def client(sample_paths, monkeypatch):
    engine = InMemoryPlaybackEngine(session=PlaybackSession.from_files(*sample_paths))
    monkeypatch.setattr(main, "engine", engine)
    with TestClient(main.app) as c:
        yield c


class TestEndpoints:
    def test_root(self, client):
        assert client.get("/").json() == {"service": "fsm-replay", "status": "ok"}

    def test_initial_state(self, client):
        state = client.get("/fsm/state").json()
        assert state["phase"] == "ARMED"
        assert state["clock"] is None
        assert state["duration"] == 45.0
        assert state["visible"] == []
        assert state["dropped_keys"] == ["notes_misc"]
        assert state["config_error"] is None

    def test_clock_reveals_nodes(self, client):
        body = client.post("/fsm/clock", json={"t": 12.0}).json()

        assert body["phase"] == "PROGRESSING"
        assert body["revealed"] == ["coding_in_editor", "code_editor_editing", "terminal_activity"]
        assert len(body["nodes"]) == 3
        assert {e["data"]["label"] for e in body["edges"]} == {
            "start_typing", "open_terminal", "run_shortcut", "switch_back",
        }

        graph = client.get("/fsm/graph").json()
        assert [n["data"]["id"] for n in graph["nodes"]] == body["revealed"]

        state = client.get("/fsm/state").json()
        assert state["fired"] == [0, 1, 2]
        assert state["clock"] == 12.0

    def test_negative_clock_is_rejected(self, client):
        assert client.post("/fsm/clock", json={"t": -1}).status_code == 422

    def test_add_node(self, client):
        body = client.post("/fsm/nodes", json={}).json()
        assert [n["data"]["id"] for n in body["nodes"]] == ["state-1"]

        assert client.post("/fsm/nodes", json={"id": "state-1"}).status_code == 409

    def test_move_node(self, client):
        client.post("/fsm/clock", json={"t": 0})
        resp = client.post("/fsm/nodes/code_editor_editing/position", json={"x": 0, "y": 0})
        assert resp.status_code == 200

        assert client.post("/fsm/nodes/ghost/position", json={"x": 0, "y": 0}).status_code == 404

    def test_add_transition(self, client):
        client.post("/fsm/clock", json={"t": 30})
        body = client.post(
            "/fsm/transitions",
            json={"source": "coding_in_editor", "dest": "browser_docs", "trigger": "look_up"},
        ).json()

        assert body["added"] is True
        assert "look_up" in {e["data"]["label"] for e in body["edges"]}

        again = client.post(
            "/fsm/transitions",
            json={"source": "coding_in_editor", "dest": "browser_docs", "trigger": "look_up"},
        ).json()
        assert again["added"] is False

    def test_add_transition_to_hidden_node(self, client):
        client.post("/fsm/clock", json={"t": 0})
        resp = client.post(
            "/fsm/transitions",
            json={"source": "coding_in_editor", "dest": "test_run", "trigger": "run_tests"},
        )
        assert resp.status_code == 404

    def test_reset(self, client):
        client.post("/fsm/clock", json={"t": 45})
        body = client.post("/fsm/control", json={"cmd": "reset"}).json()

        assert body["ok"] is True
        assert body["nodes"] == []
        assert client.get("/fsm/state").json()["phase"] == "ARMED"

    def test_unknown_control_command(self, client):
        assert client.post("/fsm/control", json={"cmd": "rewind"}).status_code == 422


def test_engine_without_sources_starts_idle():
    engine = InMemoryPlaybackEngine(config=ReplayConfig(sources=SourcesConfig()))
    assert engine.state().phase == "IDLE"
    assert engine.graph() == {"nodes": [], "edges": []}


def test_slow_subscriber_queue_is_bounded(sample_paths):
    async def scenario():
        engine = InMemoryPlaybackEngine(session=PlaybackSession.from_files(*sample_paths))
        q = engine.subscribe()
        for i in range(SUBSCRIBER_QUEUE_SIZE + 10):
            await engine.tick(float(i))
        return q

    q = asyncio.run(scenario())
    assert q.qsize() == SUBSCRIBER_QUEUE_SIZE
