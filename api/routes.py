"""API routes: start a chat about a video, ask questions, end the chat."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request

from vidchat.chatbot import AnswerError, build_context
from vidchat.sessions import IdentifierExhaustion, QuotaExceeded, SessionNotFound
from vidchat.transcript import TranscriptUnavailable
from vidchat.youtube import VideoLookupError

from .models import (
    ChannelResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    EndChatRequest,
    EndChatResponse,
    HistoryEntryResponse,
    StartChatRequest,
    StartChatResponse,
    VideoInfoResponse,
)
from .rate_limit import enforce_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", dependencies=[Depends(enforce_rate_limit)])


@router.post("/startchat", response_model=StartChatResponse)
def start_chat(req: StartChatRequest, request: Request):
    state = request.app.state
    logger.info("Initializing chat for %s", req.video_url)

    try:
        video = state.youtube.fetch_video(req.video_url)
    except VideoLookupError as e:
        logger.info("Video lookup rejected: %s", e)
        raise HTTPException(
            status_code=400, detail="Invalid YouTube URL or unable to fetch video info."
        ) from e

    try:
        transcript = state.transcripts.fetch(video.id)
    except TranscriptUnavailable as e:
        raise HTTPException(status_code=400, detail="Unable to fetch transcript for the video.") from e

    max_messages = state.policy.max_messages
    try:
        session_id = state.store.create(build_context(video, transcript), max_messages)
    except IdentifierExhaustion:
        logger.critical("Could not allocate a session id, %d live sessions", state.store.size())
        raise

    return StartChatResponse(
        message="Chat session initialized.",
        session_id=session_id,
        max_messages=max_messages,
        info=VideoInfoResponse(
            id=video.id,
            url=video.url,
            title=video.title,
            description=video.description,
            thumbnail=video.thumbnail,
            comment_count=video.comment_count,
            channel=ChannelResponse(
                name=video.channel.name,
                channel_id=video.channel.channel_id,
                url=video.channel.url,
                thumbnail=video.channel.thumbnail,
            ),
        ),
        transcript=transcript,
    )


@router.post("/chatroute", response_model=ChatMessageResponse)
def chat_message(req: ChatMessageRequest, request: Request):
    state = request.app.state
    policy = state.policy

    try:
        session = state.store.get(req.session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=400, detail="Invalid session id or session has ended.") from e

    if not policy.can_exchange(session):
        raise HTTPException(status_code=429, detail="Message limit reached for this chat session.")

    t0 = time.perf_counter()
    try:
        answer = state.chatbot.answer(session.context, session.history, req.message)
    except AnswerError as e:
        logger.error("session=%s answer failed: %s", req.session_id[:8], e)
        raise HTTPException(
            status_code=502, detail="Something went wrong while processing the chat."
        ) from e

    # The session may have ended, expired or filled up while we waited on the model.
    try:
        updated = state.store.append_exchange(req.session_id, req.message, answer)
    except SessionNotFound as e:
        raise HTTPException(status_code=400, detail="Invalid session id or session has ended.") from e
    except QuotaExceeded as e:
        raise HTTPException(status_code=429, detail="Message limit reached for this chat session.") from e

    logger.info(
        "session=%s messages=%d/%d answer=%.0fms",
        req.session_id[:8], updated.message_count, updated.max_messages,
        (time.perf_counter() - t0) * 1000,
    )

    return ChatMessageResponse(
        response=answer,
        message_count=updated.message_count,
        remaining_messages=policy.remaining_messages(updated),
    )


@router.post("/endchat", response_model=EndChatResponse)
def end_chat(req: EndChatRequest, request: Request):
    try:
        history = request.app.state.store.remove(req.session_id)
    except SessionNotFound as e:
        raise HTTPException(
            status_code=400, detail="Invalid session id or session has already ended."
        ) from e

    return EndChatResponse(
        message="Chat session ended successfully.",
        history=[
            HistoryEntryResponse(speaker=h.speaker, text=h.text, timestamp=h.timestamp)
            for h in history
        ],
    )


@router.get("/health")
def health(request: Request):
    state = request.app.state
    return {
        "status": "ok",
        "active_sessions": state.store.size(),
        "reaper": state.reaper.status(),
        "usage": state.tracker.summary(),
    }
