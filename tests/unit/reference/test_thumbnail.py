"""Tests for mediaingest/reference/thumbnail.py and provider helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from mediaingest.config import DEFAULT_VIDEO_PLACEHOLDER, MediaIngestConfig
from mediaingest.models import MediaItem, MediaType
from mediaingest.reference.providers import (
    Platform,
    detect_platform,
    embed_url,
    provider_label,
)
from mediaingest.reference.thumbnail import (
    is_native_video,
    preview_source,
    resolve_thumbnail,
    video_thumbnail,
)


class TestVideoThumbnail:
    def test_youtube_uses_maxres_image(self):
        assert (
            video_thumbnail("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
            == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"
        )

    def test_youtube_short_link(self):
        assert video_thumbnail("https://youtu.be/ABC123").endswith("/vi/ABC123/maxresdefault.jpg")

    def test_vimeo_gets_placeholder(self):
        assert video_thumbnail("https://vimeo.com/123456") == DEFAULT_VIDEO_PLACEHOLDER

    def test_direct_video_gets_placeholder(self):
        assert video_thumbnail("https://cdn.example.com/tour.mp4") == DEFAULT_VIDEO_PLACEHOLDER

    def test_configured_placeholder(self):
        config = MediaIngestConfig(video_placeholder_url="https://cdn.example.com/poster.jpg")
        assert video_thumbnail("https://vimeo.com/1", config) == "https://cdn.example.com/poster.jpg"

    @pytest.mark.parametrize("junk", ["", "not a url", "https://[::1", "://"])
    def test_never_raises_on_junk(self, junk):
        assert video_thumbnail(junk) == DEFAULT_VIDEO_PLACEHOLDER

    def test_extraction_failure_falls_back(self):
        with patch(
            "mediaingest.reference.thumbnail.youtube_id",
            side_effect=RuntimeError("boom"),
        ):
            assert video_thumbnail("https://youtu.be/ABC123") == DEFAULT_VIDEO_PLACEHOLDER


class TestResolveThumbnail:
    def test_image_is_its_own_preview(self):
        item = MediaItem(url="https://example.com/a.jpg", type=MediaType.IMAGE)
        assert resolve_thumbnail(item) == "https://example.com/a.jpg"

    def test_video_item(self):
        item = MediaItem(url="https://youtu.be/ABC123", type=MediaType.VIDEO)
        assert resolve_thumbnail(item) == "https://img.youtube.com/vi/ABC123/maxresdefault.jpg"

    def test_bare_string_is_a_video(self):
        assert resolve_thumbnail("https://vimeo.com/5") == DEFAULT_VIDEO_PLACEHOLDER


class TestPreviewSource:
    def test_native_video_previews_itself(self):
        item = MediaItem(url="https://cdn.example.com/tour.mp4", type=MediaType.VIDEO)
        assert preview_source(item) == (item.url, DEFAULT_VIDEO_PLACEHOLDER)

    def test_platform_video_previews_thumbnail(self):
        item = MediaItem(
            url="https://www.youtube.com/watch?v=ABC123",
            type=MediaType.VIDEO,
            thumbnail="https://img.youtube.com/vi/ABC123/maxresdefault.jpg",
        )
        assert preview_source(item) == (item.thumbnail, DEFAULT_VIDEO_PLACEHOLDER)

    def test_storage_hosted_video_is_native(self):
        url = "https://res.cloudinary.com/demo/video/upload/v1/real_estate/videos/tour"
        assert is_native_video(url)
        assert not is_native_video("https://vimeo.com/123")


class TestProviders:
    @pytest.mark.parametrize(
        ("url", "platform"),
        [
            ("https://youtu.be/ABC123", Platform.YOUTUBE),
            ("https://vimeo.com/channels/staffpicks/123456", Platform.VIMEO),
            ("https://www.dailymotion.com/video/x7tgad0", Platform.DAILYMOTION),
            ("https://www.twitch.tv/videos/123", Platform.TWITCH),
            ("https://example.com/a.mp4", None),
        ],
    )
    def test_detect_platform(self, url, platform):
        assert detect_platform(url) == platform

    def test_embed_urls(self):
        assert embed_url("https://youtu.be/ABC123") == "https://www.youtube.com/embed/ABC123"
        assert embed_url("https://vimeo.com/123") == "https://player.vimeo.com/video/123"
        assert embed_url("https://example.com/a.mp4") == "https://example.com/a.mp4"

    @pytest.mark.parametrize(
        ("url", "label"),
        [
            ("https://youtu.be/ABC123", "YouTube"),
            ("https://vimeo.com/123", "Vimeo"),
            ("https://res.cloudinary.com/demo/video/upload/v1/tour.mp4", "Uploaded"),
            ("https://cdn.example.com/tour.mp4", "Video"),
        ],
    )
    def test_provider_label(self, url, label):
        assert provider_label(url) == label
