"""Shared test fixtures for the mediaingest test suite."""

from __future__ import annotations

import pytest

from mediaingest.config import MediaIngestConfig
from mediaingest.models import LocalFile

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_HEADER = b"\xff\xd8\xff\xe0" + b"\x00" * 28


@pytest.fixture
def config() -> MediaIngestConfig:
    """Test configuration with dummy credentials and instant retries."""
    return MediaIngestConfig(
        cloud_name="demo-cloud",
        upload_preset="listing-preset",
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
    )


@pytest.fixture
def png_file() -> LocalFile:
    return LocalFile(data=PNG_HEADER, name="kitchen.png", mime_type="image/png")


@pytest.fixture
def mp4_file() -> LocalFile:
    return LocalFile(data=b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 20, name="tour.mp4", mime_type="video/mp4")
