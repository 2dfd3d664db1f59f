"""Transcript retrieval via youtube-transcript-api."""

import logging
import re
from collections.abc import Iterable

from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = ("en",)


class TranscriptUnavailable(Exception):
    pass


def join_snippets(snippets: Iterable) -> str:
    """Flatten caption snippets into one line of text."""
    text = " ".join(s.text for s in snippets if s.text)
    return re.sub(r"\s+", " ", text).strip()


class TranscriptFetcher:
    def __init__(self, languages: Iterable[str] = DEFAULT_LANGUAGES, api: YouTubeTranscriptApi | None = None):
        self._languages = tuple(languages)
        self._api = api or YouTubeTranscriptApi()

    def fetch(self, video_id: str) -> str:
        try:
            fetched = self._api.fetch(video_id, languages=self._languages)
        except (CouldNotRetrieveTranscript, OSError) as e:
            logger.warning("No transcript for %s: %s", video_id, type(e).__name__)
            raise TranscriptUnavailable(f"Unable to fetch transcript for video {video_id}") from e

        transcript = join_snippets(fetched)
        if not transcript:
            raise TranscriptUnavailable(f"Transcript for video {video_id} is empty")
        return transcript
