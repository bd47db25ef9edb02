"""Reference handling: classify raw inputs, canonicalize URLs, derive previews.

Exports
-------
classify_reference
    Tag a file or pasted string as image/video file, image URL, direct or
    platform video URL, or rejected.
normalize_url
    Canonical, idempotent form of an accepted URL.
resolve_thumbnail
    Preview image for a media item.
embed_url / provider_label
    Player embed form and origin label of a video URL.
"""

from .detect import classify_file, classify_reference, classify_url, sniff_image_mime
from .normalize import dedup_key, normalize_url
from .providers import Platform, detect_platform, embed_url, provider_label
from .thumbnail import preview_source, resolve_thumbnail, video_thumbnail

__all__ = [
    "Platform",
    "classify_file",
    "classify_reference",
    "classify_url",
    "dedup_key",
    "detect_platform",
    "embed_url",
    "normalize_url",
    "preview_source",
    "provider_label",
    "resolve_thumbnail",
    "sniff_image_mime",
    "video_thumbnail",
]
