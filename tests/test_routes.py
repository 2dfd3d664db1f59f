"""End-to-end tests for the chat routes with fake collaborators."""

import logging

import pytest

from api.rate_limit import RateLimiter
from fakes import FakeTranscripts
from vidchat.chatbot import VideoContext
from vidchat.policy import SessionPolicy
from vidchat.sessions import IdentifierExhaustion, SessionStore

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def _start(client):
    resp = client.post("/api/startchat", json={"video_url": VIDEO_URL})
    assert resp.status_code == 200
    return resp.json()["session_id"]


def _say(client, session_id, message):
    return client.post("/api/chatroute", json={"session_id": session_id, "message": message})


class TestStartChat:
    def test_creates_session(self, client, store):
        resp = client.post("/api/startchat", json={"video_url": VIDEO_URL})
        assert resp.status_code == 200
        data = resp.json()

        assert data["message"] == "Chat session initialized."
        assert data["max_messages"] == 4
        assert data["transcript"] == "we're no strangers to love"
        assert data["info"]["id"] == "dQw4w9WgXcQ"
        assert data["info"]["channel"]["name"] == "Rick Astley"

        session = store.get(data["session_id"])
        assert isinstance(session.context, VideoContext)
        assert session.context.transcript == "we're no strangers to love"
        assert session.context.attribution.startswith("Author: Rick Astley")
        assert session.message_count == 0

    def test_invalid_url(self, client, store):
        resp = client.post("/api/startchat", json={"video_url": "https://bad.example/x"})
        assert resp.status_code == 400
        assert "Invalid YouTube URL" in resp.json()["detail"]
        assert store.size() == 0

    def test_missing_transcript(self, client, app, store):
        app.state.transcripts = FakeTranscripts(text="")
        resp = client.post("/api/startchat", json={"video_url": VIDEO_URL})
        assert resp.status_code == 400
        assert "transcript" in resp.json()["detail"]
        assert store.size() == 0

    def test_empty_url_rejected(self, client):
        assert client.post("/api/startchat", json={"video_url": ""}).status_code == 422
        assert client.post("/api/startchat", json={}).status_code == 422

    def test_id_exhaustion_is_logged(self, client, app, caplog):
        app.state.store = SessionStore(id_factory=lambda: "same", max_id_attempts=2)
        assert _start(client) == "same"

        with caplog.at_level(logging.CRITICAL, logger="api.routes"):
            with pytest.raises(IdentifierExhaustion):
                client.post("/api/startchat", json={"video_url": VIDEO_URL})

        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert app.state.store.size() == 1


class TestChatRoute:
    def test_answers_and_counts(self, client, chatbot):
        sid = _start(client)

        resp = _say(client, sid, "who sings?")
        assert resp.status_code == 200
        assert resp.json() == {
            "response": "answer to who sings?",
            "message_count": 2,
            "remaining_messages": 2,
        }

        _say(client, sid, "what year?")
        context, history, question = chatbot.calls[-1]
        assert question == "what year?"
        assert [(h.speaker, h.text) for h in history] == [
            ("user", "who sings?"),
            ("AI", "answer to who sings?"),
        ]
        assert context.video.title == "Never Gonna Give You Up"

    def test_quota_reached(self, client, chatbot, store):
        sid = _start(client)
        assert _say(client, sid, "one").status_code == 200
        assert _say(client, sid, "two").status_code == 200

        resp = _say(client, sid, "three")
        assert resp.status_code == 429
        assert len(chatbot.calls) == 2
        assert store.get(sid).message_count == 4

    def test_odd_quota_stops_without_calling_model(self, client, chatbot, store):
        sid = store.create("ctx", max_messages=3)
        assert _say(client, sid, "one").status_code == 200
        assert _say(client, sid, "two").status_code == 429
        assert len(chatbot.calls) == 1

    def test_default_quota_reports_whole_exchanges_left(self, client, app):
        app.state.policy = SessionPolicy()
        sid = _start(client)

        for i in range(7):
            resp = _say(client, sid, f"q{i}")
            assert resp.status_code == 200

        assert resp.json()["message_count"] == 14
        assert resp.json()["remaining_messages"] == 0
        assert _say(client, sid, "one more").status_code == 429

    def test_unknown_session(self, client):
        resp = _say(client, "does-not-exist", "hello")
        assert resp.status_code == 400
        assert "session" in resp.json()["detail"]

    def test_empty_message_rejected(self, client):
        sid = _start(client)
        assert _say(client, sid, "").status_code == 422

    def test_answer_failure_leaves_session_unchanged(self, client, chatbot, store):
        sid = _start(client)
        chatbot.fail = True

        resp = _say(client, sid, "hello")
        assert resp.status_code == 502
        assert store.get(sid).message_count == 0
        assert store.get(sid).history == []

    def test_session_ended_while_answering(self, client, chatbot, store):
        sid = _start(client)
        chatbot.before_return = lambda: store.remove(sid)

        resp = _say(client, sid, "hello")
        assert resp.status_code == 400
        assert sid not in store

    def test_quota_filled_while_answering(self, client, chatbot, store):
        sid = _start(client)
        _say(client, sid, "one")
        chatbot.before_return = lambda: store.append_exchange(sid, "racing", "reply")

        resp = _say(client, sid, "two")
        assert resp.status_code == 429
        assert [h.text for h in store.get(sid).history][-2:] == ["racing", "reply"]


class TestEndChat:
    def test_returns_history_and_removes(self, client, store):
        sid = _start(client)
        _say(client, sid, "hi")

        resp = client.post("/api/endchat", json={"session_id": sid})
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Chat session ended successfully."
        assert [(h["speaker"], h["text"]) for h in data["history"]] == [
            ("user", "hi"),
            ("AI", "answer to hi"),
        ]
        assert sid not in store

    def test_end_twice(self, client):
        sid = _start(client)
        assert client.post("/api/endchat", json={"session_id": sid}).status_code == 200

        resp = client.post("/api/endchat", json={"session_id": sid})
        assert resp.status_code == 400
        assert _say(client, sid, "still there?").status_code == 400

    def test_reaped_session_is_gone(self, client, store, clock, policy):
        sid = _start(client)
        clock.advance(policy.max_idle + 1)
        assert store.sweep_stale(policy.max_idle) == 1

        assert _say(client, sid, "hello?").status_code == 400
        assert client.post("/api/endchat", json={"session_id": sid}).status_code == 400


class TestHealthAndLimits:
    def test_health(self, client):
        _start(client)
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["active_sessions"] == 1
        assert data["reaper"]["running"] is False
        assert data["reaper"]["idle_timeout_seconds"] == 60.0
        assert data["usage"]["total_calls"] == 0

    def test_rate_limit(self, client, app, clock):
        app.state.rate_limiter = RateLimiter(limit=2, window=60.0, clock=clock)

        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health").status_code == 200
        resp = client.get("/api/health")
        assert resp.status_code == 429

        clock.advance(61)
        assert client.get("/api/health").status_code == 200
