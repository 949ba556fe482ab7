"""Video metadata lookup (YouTube Data API, yt-dlp, or a demo catalog)."""

import asyncio
import logging
import random
import re
from datetime import datetime, timedelta
from typing import Protocol

import httpx
import yt_dlp
from yt_dlp.utils import DownloadError

from .config import (
    METADATA_DELAY,
    METADATA_SOURCE_ENV,
    YOUTUBE_API_BASE_URL,
    get_api_key,
    get_simulated_delay,
    get_source,
)
from .models import VideoInfo

logger = logging.getLogger(__name__)


class InvalidInput(Exception):
    """The link has no recognizable video ID."""

    pass


class ProviderError(Exception):
    """A metadata or transcription provider failed."""

    pass


class NotFound(ProviderError):
    """Video not found, private, or unavailable."""

    pass


class QuotaExceeded(ProviderError):
    """Provider quota exhausted or API key rejected."""

    pass


VIDEO_ID_PATTERNS = [
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/)([^&\n?#]+)",
    r"youtube\.com/watch\?.*v=([^&\n?#]+)",
    r"youtube\.com/shorts/([^&\n?#/]+)",
]


def extract_video_id(url: str) -> str | None:
    """Extract video ID from YouTube URL."""
    for pattern in VIDEO_ID_PATTERNS:
        match = re.search(pattern, url)
        if match:
            return match.group(1)
    return None


def require_video_id(url: str) -> str:
    """Extract video ID or raise InvalidInput."""
    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidInput("Invalid YouTube URL. Please provide a valid YouTube video link.")
    return video_id


def format_seconds(total_seconds: int) -> str:
    """Format a duration as M:SS, or H:MM:SS when over an hour."""
    hours, rest = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_iso_duration(iso_duration: str) -> str:
    """Convert an ISO 8601 duration like PT1H2M3S to 1:02:03."""
    match = re.match(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$", iso_duration or "")
    if not match:
        return "0:00"
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return format_seconds(hours * 3600 + minutes * 60 + seconds)


class MetadataProvider(Protocol):
    async def get_video_info(self, url: str) -> VideoInfo: ...


class YouTubeApiMetadataProvider:
    """Metadata from the YouTube Data API v3."""

    def __init__(self, api_key: str, client: httpx.AsyncClient | None = None):
        self.api_key = api_key
        self._client = client

    async def get_video_info(self, url: str) -> VideoInfo:
        video_id = require_video_id(url)
        client = self._client or httpx.AsyncClient(timeout=10.0)
        try:
            response = await client.get(
                f"{YOUTUBE_API_BASE_URL}/videos",
                params={
                    "part": "snippet,contentDetails,statistics",
                    "id": video_id,
                    "key": self.api_key,
                },
            )
            response.raise_for_status()
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Failed to analyze video: malformed API response: {e}") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 403:
                raise QuotaExceeded("YouTube API quota exceeded or invalid API key") from e
            if e.response.status_code == 404:
                raise NotFound("Video not found") from e
            raise ProviderError(f"Failed to analyze video: {e}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Failed to analyze video: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        if not isinstance(data, dict):
            raise ProviderError("Failed to analyze video: malformed API response")
        items = data.get("items") or []
        if not items:
            raise NotFound("Video not found or is private/unavailable")

        snippet = items[0].get("snippet")
        if not isinstance(snippet, dict):
            raise ProviderError("Failed to analyze video: API response has no snippet")
        content_details = items[0].get("contentDetails", {})
        thumbnails = snippet.get("thumbnails", {})
        thumbnail = next(
            (thumbnails[size]["url"] for size in ("maxres", "high", "medium", "default")
             if size in thumbnails),
            "",
        )
        logger.info(f"Fetched YouTube metadata: {snippet.get('title')}")

        return VideoInfo(
            id=video_id,
            title=snippet.get("title", "Unknown"),
            description=snippet.get("description") or "No description available",
            duration=format_iso_duration(content_details.get("duration", "")),
            thumbnail=thumbnail,
            channel_title=snippet.get("channelTitle", ""),
            published_at=snippet.get("publishedAt"),
        )


def _parse_upload_date(upload_date: str | None) -> datetime | None:
    """Parse yt-dlp upload date string (YYYYMMDD) to datetime."""
    if not upload_date:
        return None
    try:
        return datetime.strptime(upload_date, "%Y%m%d")
    except ValueError:
        return None


def _extract_info(url: str) -> dict:
    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
    }
    with yt_dlp.YoutubeDL(ydl_opts) as ydl:
        return ydl.extract_info(url, download=False)


class YtDlpMetadataProvider:
    """Metadata scraped with yt-dlp (no API key needed)."""

    async def get_video_info(self, url: str) -> VideoInfo:
        video_id = require_video_id(url)
        try:
            info = await asyncio.to_thread(_extract_info, url)
        except DownloadError as e:
            raise NotFound(f"Video not found or is private/unavailable: {e}") from e

        return VideoInfo(
            id=info.get("id") or video_id,
            title=info.get("title", "Unknown"),
            description=info.get("description") or "No description available",
            duration=format_seconds(info.get("duration") or 0),
            thumbnail=info.get("thumbnail") or "",
            channel_title=info.get("channel") or info.get("uploader") or "",
            published_at=_parse_upload_date(info.get("upload_date")),
        )


# Demo catalog used when no real metadata source is configured
KNOWN_VIDEOS = {
    "dQw4w9WgXcQ": {
        "title": "Rick Astley - Never Gonna Give You Up (Official Video)",
        "description": "The official video for Rick Astley's 'Never Gonna Give You Up'.",
        "channel_title": "Rick Astley",
        "duration": "3:33",
    },
    "jNQXAC9IVRw": {
        "title": "Me at the zoo",
        "description": "The first video ever uploaded to YouTube.",
        "channel_title": "jawed",
        "duration": "0:19",
    },
    "kJQP7kiw5Fk": {
        "title": "Despacito",
        "description": "Luis Fonsi - Despacito ft. Daddy Yankee.",
        "channel_title": "Luis Fonsi",
        "duration": "4:42",
    },
}

DEMO_VIDEOS = [
    {
        "title": "How To Build A Big Brand? Complete Business Strategy Guide",
        "description": "Learn the essential strategies for building a successful brand from "
        "scratch: brand identity, marketing, customer engagement and scaling.",
        "channel_title": "Business Mastery",
        "duration": "21:46",
        "thumbnail": "https://images.pexels.com/photos/3184360/pexels-photo-3184360.jpeg",
    },
    {
        "title": "Complete React Tutorial - Build Modern Web Applications",
        "description": "Master React development: components, hooks, state management and "
        "real-world applications.",
        "channel_title": "CodeMaster Pro",
        "duration": "2:15:30",
        "thumbnail": "https://images.pexels.com/photos/2582937/pexels-photo-2582937.jpeg",
    },
    {
        "title": "Machine Learning Fundamentals - AI Explained Simply",
        "description": "Machine learning and artificial intelligence concepts without the "
        "complexity.",
        "channel_title": "AI Academy",
        "duration": "28:42",
        "thumbnail": "https://images.pexels.com/photos/3861969/pexels-photo-3861969.jpeg",
    },
    {
        "title": "Digital Marketing Strategy 2024 - Complete Guide",
        "description": "Proven strategies for social media, content marketing, SEO and paid "
        "advertising.",
        "channel_title": "Marketing Guru",
        "duration": "45:18",
        "thumbnail": "https://images.pexels.com/photos/4164418/pexels-photo-4164418.jpeg",
    },
    {
        "title": "Entrepreneurship Mindset - From Idea to Success",
        "description": "Develop the entrepreneurial mindset needed to turn ideas into "
        "successful businesses.",
        "channel_title": "Startup Stories",
        "duration": "33:25",
        "thumbnail": "https://images.pexels.com/photos/4348404/pexels-photo-4348404.jpeg",
    },
]


class SimulatedMetadataProvider:
    """Demo metadata picked deterministically from the video ID."""

    def __init__(self, delay_scale: float | None = None, rng: random.Random | None = None):
        self.delay_scale = delay_scale
        self.rng = rng or random.Random()

    async def get_video_info(self, url: str) -> VideoInfo:
        video_id = require_video_id(url)
        await asyncio.sleep(get_simulated_delay(METADATA_DELAY, self.delay_scale, self.rng))

        data = KNOWN_VIDEOS.get(video_id) or DEMO_VIDEOS[ord(video_id[0]) % len(DEMO_VIDEOS)]
        published_at = datetime.now() - timedelta(days=self.rng.uniform(0, 365))
        logger.debug(f"Simulated metadata for {video_id}: {data['title']}")

        return VideoInfo(
            id=video_id,
            title=data["title"],
            description=data["description"],
            duration=data["duration"],
            thumbnail=data.get("thumbnail") or f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
            channel_title=data["channel_title"],
            published_at=published_at,
        )


def get_metadata_provider() -> MetadataProvider:
    """Pick a metadata source: YouTube API if keyed, yt-dlp on request, else demo."""
    api_key = get_api_key("YOUTUBE_API_KEY")
    if api_key:
        logger.info("Using YouTube Data API for video metadata")
        return YouTubeApiMetadataProvider(api_key)
    if get_source(METADATA_SOURCE_ENV) == "ytdlp":
        logger.info("Using yt-dlp for video metadata")
        return YtDlpMetadataProvider()
    logger.info("YouTube API key not configured, using simulated metadata")
    return SimulatedMetadataProvider()
