"""Pydantic request/response schemas for the chat API."""

from pydantic import BaseModel, Field


# ── Requests ───────────────────────────────────────────────────────────────

class StartChatRequest(BaseModel):
    video_url: str = Field(min_length=1)


class ChatMessageRequest(BaseModel):
    session_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


class EndChatRequest(BaseModel):
    session_id: str = Field(min_length=1)


# ── Responses ──────────────────────────────────────────────────────────────

class ChannelResponse(BaseModel):
    name: str
    channel_id: str
    url: str
    thumbnail: str | None


class VideoInfoResponse(BaseModel):
    id: str
    url: str
    title: str
    description: str
    thumbnail: str | None
    comment_count: int | None
    channel: ChannelResponse


class StartChatResponse(BaseModel):
    message: str
    session_id: str
    max_messages: int
    info: VideoInfoResponse
    transcript: str


class ChatMessageResponse(BaseModel):
    response: str
    message_count: int
    remaining_messages: int


class HistoryEntryResponse(BaseModel):
    speaker: str
    text: str
    timestamp: float


class EndChatResponse(BaseModel):
    message: str
    history: list[HistoryEntryResponse]
