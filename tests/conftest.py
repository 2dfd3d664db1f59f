"""Shared pytest fixtures."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.rate_limit import RateLimiter
from api.routes import router
from fakes import FakeChatBot, FakeClock, FakeTranscripts, FakeYouTube
from vidchat.policy import SessionPolicy
from vidchat.reaper import SessionReaper
from vidchat.sessions import SessionStore
from vidchat.token_tracker import TokenTracker


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(clock=clock)


@pytest.fixture
def policy():
    return SessionPolicy(max_messages=4, max_idle=60.0, sweep_interval=30.0)


@pytest.fixture
def chatbot():
    return FakeChatBot()


@pytest.fixture
def app(store, policy, clock, chatbot):
    app = FastAPI()
    app.include_router(router)
    app.state.store = store
    app.state.policy = policy
    app.state.tracker = TokenTracker()
    app.state.youtube = FakeYouTube()
    app.state.transcripts = FakeTranscripts()
    app.state.chatbot = chatbot
    app.state.reaper = SessionReaper(store, policy, clock=clock)
    app.state.rate_limiter = RateLimiter(limit=1000, window=60.0, clock=clock)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
