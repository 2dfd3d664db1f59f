"""
YouTube Data API client: resolves a video URL to its metadata.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

import httpx

logger = logging.getLogger(__name__)

API_URL = "https://www.googleapis.com/youtube/v3/videos"
API_PARTS = "snippet,contentDetails,statistics,status"

_WATCH_HOSTS = {"www.youtube.com", "youtube.com", "m.youtube.com"}
_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}


class VideoLookupError(Exception):
    """The URL does not name a video we can fetch metadata for."""


@dataclass
class ChannelInfo:
    name: str
    channel_id: str
    thumbnail: str | None = None

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/channel/{self.channel_id}"


@dataclass
class VideoInfo:
    id: str
    title: str
    description: str
    channel: ChannelInfo
    thumbnail: str | None = None
    comment_count: int | None = None

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"


def extract_video_id(url: str) -> str | None:
    """Pull the video id out of a watch, shorts, embed or youtu.be URL."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    path_parts = [p for p in parsed.path.split("/") if p]

    if host in _WATCH_HOSTS:
        if parsed.path == "/watch":
            ids = parse_qs(parsed.query).get("v")
            return ids[0] if ids and ids[0] else None
        if len(path_parts) >= 2 and path_parts[0] in ("shorts", "embed", "live"):
            return path_parts[1]
        return None

    if host in _SHORT_HOSTS and path_parts:
        return path_parts[0]

    return None


def _pick_thumbnail(thumbnails: dict) -> str | None:
    for size in ("high", "medium", "default"):
        if size in thumbnails:
            return thumbnails[size].get("url")
    return None


def _parse_video(item: dict) -> VideoInfo:
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    thumbnail = _pick_thumbnail(snippet.get("thumbnails") or {})

    comment_count = stats.get("commentCount")
    return VideoInfo(
        id=item["id"],
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        channel=ChannelInfo(
            name=snippet.get("channelTitle", ""),
            channel_id=snippet.get("channelId", ""),
            thumbnail=thumbnail,
        ),
        thumbnail=thumbnail,
        comment_count=int(comment_count) if comment_count is not None else None,
    )


class YouTubeClient:
    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self._api_key = api_key or os.environ.get("YOUTUBE_API_KEY")
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def fetch_video(self, url: str) -> VideoInfo:
        video_id = extract_video_id(url)
        if not video_id:
            raise VideoLookupError(f"Not a YouTube video URL: {url!r}")
        if not self._api_key:
            raise VideoLookupError("YouTube API key is missing.")

        try:
            response = self._http.get(
                API_URL,
                params={"id": video_id, "key": self._api_key, "part": API_PARTS},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("YouTube lookup failed for %s: %s", video_id, e)
            raise VideoLookupError(f"YouTube API request failed for {video_id}") from e

        items = response.json().get("items") or []
        if not items:
            raise VideoLookupError(f"No video found for id {video_id}")
        return _parse_video(items[0])
