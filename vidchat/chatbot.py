"""
Answers questions about a video using OpenAI chat completions.

The video's transcript, title, description and channel attribution are sent
as context on every call, followed by the conversation so far.
"""

import logging
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from openai import OpenAI, OpenAIError

from .sessions import AI, HistoryEntry
from .token_tracker import TokenTracker
from .youtube import ChannelInfo, VideoInfo

logger = logging.getLogger(__name__)

MODEL = "gpt-4o-mini"

SYSTEM_PROMPT = """\
You answer questions about a single YouTube video. Use the transcript, title,
description and channel details you are given. If the answer is not in that
material, say so plainly instead of guessing. Keep answers short and refer to
what is said in the video where it helps.
"""


class AnswerError(Exception):
    """The language model could not produce an answer."""


@dataclass(frozen=True)
class VideoContext:
    video: VideoInfo
    transcript: str
    attribution: str


def attribution_text(channel: ChannelInfo) -> str:
    return f"Author: {channel.name}\nchannel url: {channel.url}"


def build_context(video: VideoInfo, transcript: str) -> VideoContext:
    return VideoContext(video=video, transcript=transcript, attribution=attribution_text(video.channel))


def build_messages(context: VideoContext, history: Sequence[HistoryEntry], question: str) -> list[dict]:
    video = context.video
    context_block = (
        f"Here is the video transcript: {context.transcript}\n"
        f"The title: {video.title}\n"
        f"Description of the video: {video.description}\n"
        f"{context.attribution}"
    )

    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": context_block},
    ]
    for entry in history:
        role = "assistant" if entry.speaker == AI else "user"
        messages.append({"role": role, "content": entry.text})
    messages.append({"role": "user", "content": question})
    return messages


class ChatBot:
    def __init__(
        self,
        api_key: str | None = None,
        model: str = MODEL,
        timeout: float = 60.0,
        retries: int = 2,
        tracker: TokenTracker | None = None,
        client: OpenAI | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model = model
        self._client = client
        self._api_key = api_key
        self._timeout = timeout
        self._retries = retries
        self._tracker = tracker
        self._sleep = sleep

    def _get_client(self) -> OpenAI:
        # Built on first use so a missing key fails the request, not app startup.
        if self._client is None:
            try:
                self._client = OpenAI(
                    api_key=self._api_key or os.environ.get("OPENAI_API_KEY"),
                    timeout=self._timeout,
                    max_retries=0,
                )
            except OpenAIError as e:
                raise AnswerError("OpenAI API key is missing.") from e
        return self._client

    def answer(self, context: VideoContext, history: Sequence[HistoryEntry], question: str) -> str:
        messages = build_messages(context, history, question)
        client = self._get_client()

        attempts = self._retries + 1
        for attempt in range(attempts):
            try:
                response = client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=0.3,
                    max_tokens=800,
                )
                break
            except OpenAIError as e:
                if attempt < attempts - 1:
                    wait = 2 ** attempt
                    logger.warning("Chat API error: %s, retrying in %ds...", e, wait)
                    self._sleep(wait)
                else:
                    raise AnswerError("Something went wrong while processing the question.") from e

        usage = response.usage
        if usage is not None and self._tracker is not None:
            self._tracker.log(
                model=self.model,
                purpose="answer",
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens,
            )

        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise AnswerError("The model returned an empty answer.")
        return text
