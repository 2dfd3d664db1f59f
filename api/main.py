"""FastAPI application for the video chat API."""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

load_dotenv()

from vidchat.chatbot import ChatBot
from vidchat.config import Settings
from vidchat.policy import SessionPolicy
from vidchat.reaper import SessionReaper
from vidchat.sessions import SessionStore
from vidchat.token_tracker import TokenTracker
from vidchat.transcript import TranscriptFetcher
from vidchat.youtube import YouTubeClient

from .rate_limit import RateLimiter
from .routes import router

logger = logging.getLogger(__name__)

settings = Settings.from_env()


@asynccontextmanager
async def lifespan(app: FastAPI):
    policy = SessionPolicy.from_settings(settings)
    store = SessionStore()
    tracker = TokenTracker()

    app.state.policy = policy
    app.state.store = store
    app.state.tracker = tracker
    app.state.youtube = YouTubeClient(api_key=settings.youtube_api_key)
    app.state.transcripts = TranscriptFetcher()
    app.state.chatbot = ChatBot(
        api_key=settings.openai_api_key,
        model=settings.chat_model,
        timeout=settings.llm_timeout_seconds,
        tracker=tracker,
    )
    app.state.rate_limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds)

    reaper = SessionReaper(store, policy)
    app.state.reaper = reaper
    reaper.start()
    logger.info("Ready: max %d messages per session.", policy.max_messages)

    yield

    await reaper.stop()
    app.state.youtube.close()
    dropped = store.clear()
    logger.info("Shut down, dropped %d live session(s).", dropped)


app = FastAPI(title="Video Chat API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
