"""Pipeline configuration for mediaingest.

:class:`MediaIngestConfig` is a plain dataclass that captures every tuneable
knob of the pipeline.  One instance is shared by the classifier, the upload
transport and the collection builder.

Module-level constants define the defaults that are really configuration
rather than contract:

* :data:`DEFAULT_IMAGE_MIMES`: still-image formats accepted for upload.
* :data:`DEFAULT_TRUSTED_IMAGE_HOSTS`: hosts whose URLs are accepted as
  images without an image file extension.
* :data:`DEFAULT_VIDEO_PLACEHOLDER`: preview image used for videos that
  have no derivable thumbnail.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_IMAGE_MIMES: list[str] = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
    "image/svg+xml",
    "image/avif",
    "image/heic",
    "image/heif",
]
"""MIME types accepted for locally selected still images."""

DEFAULT_TRUSTED_IMAGE_HOSTS: list[str] = [
    "cloudinary.com",
    "unsplash.com",
]
"""Hosts (matched together with their subdomains) whose URLs are accepted
as images even when the path carries no image extension."""

DEFAULT_VIDEO_PLACEHOLDER = (
    "https://images.unsplash.com/photo-1574717024653-61fd2cf4d44d"
    "?w=400&h=300&fit=crop"
)

_MIB = 1024 * 1024


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class MediaIngestConfig:
    """Complete configuration for a media ingestion pipeline.

    Every parameter has a default; uploads additionally need
    ``cloud_name`` and ``upload_preset``.

    Parameters
    ----------
    cloud_name:
        Storage-provider account name, used as the first path segment of
        the upload endpoint.
    upload_preset:
        Unsigned upload preset identifier sent with every upload.  Masked in
        ``repr``.
    base_url:
        Upload API root.  Override for proxies or testing environments.
    image_folder / video_folder:
        Destination folders for uploaded images and videos.
    max_images / max_videos:
        Per-type ceilings of a media collection.
    image_max_size_bytes / video_max_size_bytes:
        Size ceilings for local files.  Defaults are 10 MiB and 100 MiB.
    image_allowed_mimes:
        Still-image MIME types accepted for upload.
    convert_heic_to:
        Format hint sent with HEIC/HEIF uploads so the provider delivers a
        browser-renderable file.  ``None`` disables the hint.
    quality_hint:
        Optional ``quality`` field sent with image uploads (e.g. ``"auto"``).
    trusted_image_hosts:
        See :data:`DEFAULT_TRUSTED_IMAGE_HOSTS`.
    storage_media_host:
        Delivery host of the storage provider.  Persisted URLs on this host
        are treated as uploads when a collection is hydrated, and its
        ``/video/upload/`` paths are recognized as direct videos.
    video_placeholder_url:
        Thumbnail for videos with no derivable preview image.
    max_concurrent_uploads:
        Maximum number of in-flight uploads within one batch.
    verify_pasted_urls:
        Probe pasted image URLs with a ``HEAD`` request and warn when they
        are unreachable or do not serve an image.
    retry_max_attempts:
        Total attempts per upload for retryable failures (5xx, 429,
        network errors).
    retry_base_delay / retry_max_delay / retry_jitter:
        Exponential backoff parameters.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~mediaingest.observability.MetricsHook`.
    debug_dump_payload:
        Write a redacted dump of each upload request/response to *stderr*.
    """

    # ── Storage provider ───────────────────────────────────────────────
    cloud_name: str = ""

    upload_preset: str = ""

    base_url: str = "https://api.cloudinary.com/v1_1"

    image_folder: str = "real_estate"

    video_folder: str = "real_estate/videos"

    storage_media_host: str = "res.cloudinary.com"

    # ── Collection ──────────────────────────────────────────────────────
    max_images: int = 10

    max_videos: int = 5

    # ── Admission ───────────────────────────────────────────────────────
    image_max_size_bytes: int = 10 * _MIB

    video_max_size_bytes: int = 100 * _MIB

    image_allowed_mimes: list[str] = field(
        default_factory=lambda: list(DEFAULT_IMAGE_MIMES),
    )

    trusted_image_hosts: list[str] = field(
        default_factory=lambda: list(DEFAULT_TRUSTED_IMAGE_HOSTS),
    )

    verify_pasted_urls: bool = False

    # ── Upload hints ────────────────────────────────────────────────────
    convert_heic_to: str | None = "jpg"

    quality_hint: str | None = None

    # ── Presentation ────────────────────────────────────────────────────
    video_placeholder_url: str = DEFAULT_VIDEO_PLACEHOLDER

    # ── Concurrency & retry ─────────────────────────────────────────────
    max_concurrent_uploads: int = 4

    retry_max_attempts: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter: bool = True

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 60.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS, or target localhost for testing."
            )

        if self.max_images < 1:
            raise ValueError(f"max_images must be >= 1, got {self.max_images}")
        if self.max_videos < 0:
            raise ValueError(f"max_videos must be >= 0, got {self.max_videos}")
        if self.image_max_size_bytes <= 0:
            raise ValueError(f"image_max_size_bytes must be > 0, got {self.image_max_size_bytes}")
        if self.video_max_size_bytes <= 0:
            raise ValueError(f"video_max_size_bytes must be > 0, got {self.video_max_size_bytes}")
        if self.max_concurrent_uploads < 1:
            raise ValueError(
                f"max_concurrent_uploads must be >= 1, got {self.max_concurrent_uploads}"
            )
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

        self.trusted_image_hosts = [h.lower().lstrip(".") for h in self.trusted_image_hosts]

    def upload_url(self, resource_type: str) -> str:
        """Return the upload endpoint for ``"image"`` or ``"video"``."""
        return f"{self.base_url.rstrip('/')}/{self.cloud_name}/{resource_type}/upload"

    def max_items(self, media_type: Any) -> int:
        """Return the ceiling for a :class:`~mediaingest.models.MediaType`."""
        if media_type == "video":
            return self.max_videos
        return self.max_images

    def max_size_bytes(self, media_type: Any) -> int:
        """Return the size ceiling for a :class:`~mediaingest.models.MediaType`."""
        if media_type == "video":
            return self.video_max_size_bytes
        return self.image_max_size_bytes

    def __repr__(self) -> str:
        """Mask the upload preset to keep it out of logs."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "upload_preset":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"upload_preset='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"MediaIngestConfig({', '.join(parts)})"
