"""Preview images for media items.

Videos need a still image for grids and carousels.  YouTube exposes one at a
predictable address; every other provider (Vimeo included, whose thumbnails
need an authenticated API call) gets the configured placeholder.  Nothing
in this module raises.
"""

from __future__ import annotations

from mediaingest.config import DEFAULT_VIDEO_PLACEHOLDER, MediaIngestConfig
from mediaingest.models import MediaItem, MediaType
from mediaingest.observability import get_logger

from .detect import VIDEO_URL_EXTENSIONS
from .providers import host_matches, split_url, youtube_id

log = get_logger("mediaingest.thumbnail")

YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{id}/maxresdefault.jpg"


def _placeholder(config: MediaIngestConfig | None) -> str:
    return config.video_placeholder_url if config is not None else DEFAULT_VIDEO_PLACEHOLDER


def video_thumbnail(url: str, config: MediaIngestConfig | None = None) -> str:
    """Return a displayable still-image URL for a video URL."""
    try:
        vid = youtube_id(url)
    except Exception as exc:  # noqa: BLE001
        log.debug(
            "Thumbnail id extraction failed",
            extra={"extra_fields": {"op": "thumbnail", "url": url, "error": str(exc)}},
        )
        vid = None
    if vid:
        return YOUTUBE_THUMBNAIL.format(id=vid)
    return _placeholder(config)


def resolve_thumbnail(
    item: MediaItem | str,
    config: MediaIngestConfig | None = None,
) -> str:
    """Return the preview image for *item*.

    Images are their own preview.  Bare strings are treated as video URLs.
    """
    if isinstance(item, MediaItem):
        if item.type == MediaType.IMAGE:
            return item.url
        return video_thumbnail(item.url, config)
    return video_thumbnail(item, config)


def is_native_video(url: str, config: MediaIngestConfig | None = None) -> bool:
    """``True`` for videos a ``<video>`` element can play directly."""
    parts = split_url(url)
    if parts is None:
        return False
    storage_host = (config.storage_media_host if config is not None else "res.cloudinary.com").lower()
    if host_matches(parts.host, (storage_host,)) and "/video/upload/" in parts.path:
        return True
    return any(parts.path.lower().endswith(ext) for ext in VIDEO_URL_EXTENSIONS)


def preview_source(
    item: MediaItem,
    config: MediaIngestConfig | None = None,
) -> tuple[str, str]:
    """Return ``(source, fallback)`` for rendering a preview tile.

    Native videos may be previewed with a player pointed at their own URL;
    the placeholder is the fallback when that fails to load.  Everything
    else renders its thumbnail, with the placeholder as fallback.
    """
    placeholder = _placeholder(config)
    if item.type == MediaType.VIDEO and is_native_video(item.url, config):
        return item.url, placeholder
    return item.thumbnail or resolve_thumbnail(item, config), placeholder
