import asyncio

import httpx
import pytest

from askvid.discovery import (
    InvalidInput,
    NotFound,
    ProviderError,
    QuotaExceeded,
    SimulatedMetadataProvider,
    YouTubeApiMetadataProvider,
    extract_video_id,
    format_iso_duration,
    get_metadata_provider,
    require_video_id,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/v/dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://www.youtube.com/shorts/dQw4w9WgXcQ",
    ],
)
def test_extract_video_id(url):
    assert extract_video_id(url) == "dQw4w9WgXcQ"


def test_unrecognized_link_is_invalid_input():
    assert extract_video_id("https://example.com/video") is None
    with pytest.raises(InvalidInput):
        require_video_id("not a link")


@pytest.mark.parametrize(
    "iso,expected",
    [("PT1H2M3S", "1:02:03"), ("PT4M5S", "4:05"), ("PT45S", "0:45"), ("PT2H", "2:00:00"), ("bogus", "0:00")],
)
def test_format_iso_duration(iso, expected):
    assert format_iso_duration(iso) == expected


def _api_provider(handler) -> YouTubeApiMetadataProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YouTubeApiMetadataProvider("test-key", client=client)


def test_youtube_api_metadata():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["id"] == "dQw4w9WgXcQ"
        assert request.url.params["key"] == "test-key"
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "snippet": {
                            "title": "Some Talk",
                            "description": "",
                            "channelTitle": "Some Channel",
                            "publishedAt": "2023-05-01T12:00:00Z",
                            "thumbnails": {"high": {"url": "https://img/high.jpg"}},
                        },
                        "contentDetails": {"duration": "PT12M30S"},
                    }
                ]
            },
        )

    info = asyncio.run(_api_provider(handler).get_video_info("https://youtu.be/dQw4w9WgXcQ"))

    assert info.id == "dQw4w9WgXcQ"
    assert info.title == "Some Talk"
    assert info.description == "No description available"
    assert info.duration == "12:30"
    assert info.thumbnail == "https://img/high.jpg"
    assert info.channel_title == "Some Channel"
    assert info.published_at.year == 2023


def test_youtube_api_quota_exceeded():
    provider = _api_provider(lambda request: httpx.Response(403, json={}))

    with pytest.raises(QuotaExceeded):
        asyncio.run(provider.get_video_info("https://youtu.be/dQw4w9WgXcQ"))


def test_youtube_api_empty_items_is_not_found():
    provider = _api_provider(lambda request: httpx.Response(200, json={"items": []}))

    with pytest.raises(NotFound):
        asyncio.run(provider.get_video_info("https://youtu.be/dQw4w9WgXcQ"))


def test_youtube_api_non_json_body_is_provider_error():
    provider = _api_provider(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderError):
        asyncio.run(provider.get_video_info("https://youtu.be/dQw4w9WgXcQ"))


def test_youtube_api_item_without_snippet_is_provider_error():
    provider = _api_provider(
        lambda request: httpx.Response(200, json={"items": [{"id": "dQw4w9WgXcQ"}]})
    )

    with pytest.raises(ProviderError):
        asyncio.run(provider.get_video_info("https://youtu.be/dQw4w9WgXcQ"))


def test_simulated_known_video(rng):
    provider = SimulatedMetadataProvider(delay_scale=0, rng=rng)

    info = asyncio.run(provider.get_video_info("https://www.youtube.com/watch?v=dQw4w9WgXcQ"))

    assert info.id == "dQw4w9WgXcQ"
    assert info.title.startswith("Rick Astley")


def test_simulated_demo_video_is_deterministic():
    first = asyncio.run(SimulatedMetadataProvider(delay_scale=0).get_video_info("https://youtu.be/abc123"))
    second = asyncio.run(SimulatedMetadataProvider(delay_scale=0).get_video_info("https://youtu.be/abc999"))

    assert first.title == second.title
    assert first.thumbnail


def test_simulated_rejects_invalid_link():
    with pytest.raises(InvalidInput):
        asyncio.run(SimulatedMetadataProvider(delay_scale=0).get_video_info("hello"))


def test_provider_selection(monkeypatch):
    assert isinstance(get_metadata_provider(), SimulatedMetadataProvider)

    monkeypatch.setenv("YOUTUBE_API_KEY", "real-key")
    assert isinstance(get_metadata_provider(), YouTubeApiMetadataProvider)
