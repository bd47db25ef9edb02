"""Media reference classification.

Assigns every raw input (a :class:`~mediaingest.models.LocalFile` or a
:class:`~mediaingest.models.PastedUrl`) exactly one
:class:`~mediaingest.models.ReferenceKind` so the pipeline knows whether to
upload it, normalize it, or reject it.
"""

from __future__ import annotations

import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import unquote

from mediaingest.config import MediaIngestConfig
from mediaingest.errors import ErrorCode
from mediaingest.models import (
    Classification,
    LocalFile,
    MediaReference,
    MediaType,
    PastedUrl,
    ReferenceKind,
)

from .providers import detect_platform, ensure_scheme, host_matches, split_url

# Map of magic bytes to MIME types for sniffing.
_MAGIC_BYTES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"RIFF", "image/webp"),  # RIFF....WEBP (check further)
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"<svg", "image/svg+xml"),
    (b"<?xml", "image/svg+xml"),
    (b"BM", "image/bmp"),
]

# ISO-BMFF brands (bytes 8..12 after "ftyp") of still-image containers.
_FTYP_BRANDS: dict[bytes, str] = {
    b"heic": "image/heic",
    b"heix": "image/heic",
    b"hevc": "image/heic",
    b"hevx": "image/heic",
    b"heim": "image/heic",
    b"heis": "image/heic",
    b"mif1": "image/heif",
    b"msf1": "image/heif",
    b"heif": "image/heif",
    b"avif": "image/avif",
    b"avis": "image/avif",
}

_IMAGE_FILE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp",
    ".tif", ".tiff", ".svg", ".avif", ".heic", ".heif",
})

_EXTENSION_MIMES: dict[str, str] = {
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".avif": "image/avif",
    ".webp": "image/webp",
}

# Camera RAW formats are accepted on extension alone.
_RAW_MIMES: dict[str, str] = {
    ".cr2": "image/x-canon-cr2",
    ".cr3": "image/x-canon-cr3",
    ".nef": "image/x-nikon-nef",
    ".arw": "image/x-sony-arw",
    ".dng": "image/x-adobe-dng",
    ".orf": "image/x-olympus-orf",
    ".rw2": "image/x-panasonic-rw2",
    ".raf": "image/x-fuji-raf",
    ".srw": "image/x-samsung-srw",
    ".pef": "image/x-pentax-pef",
    ".raw": "image/x-raw",
}

VIDEO_URL_EXTENSIONS = frozenset({
    ".mp4", ".webm", ".mov", ".ogg", ".avi", ".wmv", ".m4v", ".3gp", ".flv",
})

IMAGE_URL_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".avif", ".svg",
})

# Any explicit scheme ("blob:", "data:", "ftp:") except a "host:port" prefix.
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*):(?!\d)")
_HOST_RE = re.compile(r"^[a-z0-9-]+(?:\.[a-z0-9-]+)+$")


def sniff_image_mime(data: bytes) -> str | None:
    """Attempt to detect a still-image MIME type from the leading bytes."""
    if len(data) >= 12 and data[4:8] == b"ftyp":
        return _FTYP_BRANDS.get(data[8:12])
    for magic, mime in _MAGIC_BYTES:
        if data[:len(magic)] == magic:
            # Extra check for WEBP: RIFF....WEBP
            if magic == b"RIFF" and data[8:12] != b"WEBP":
                continue
            return mime
    return None


def _guess_mime_from_name(name: str) -> str | None:
    suffix = PurePosixPath(name).suffix.lower()
    if suffix in _EXTENSION_MIMES:
        return _EXTENSION_MIMES[suffix]
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type


def classify_file(file: LocalFile, config: MediaIngestConfig) -> Classification:
    """Classify a locally selected file as ``image-file``, ``video-file`` or
    ``rejected: unsupported-format``.

    Still images win over videos: content sniffing, then the file extension
    (including camera RAW formats), then the declared MIME type.  A file is a
    video when its declared MIME type starts with ``video/`` (or, when the
    picker declared nothing, its extension implies a video type).
    """
    allowed = config.image_allowed_mimes
    declared = file.mime_type.split(";")[0].strip().lower()
    suffix = PurePosixPath(file.name).suffix.lower()

    def image(mime: str) -> Classification:
        return Classification(
            kind=ReferenceKind.IMAGE_FILE,
            reference=file,
            media_type=MediaType.IMAGE,
            mime_type=mime,
        )

    if suffix in _RAW_MIMES:
        return image(_RAW_MIMES[suffix])

    sniffed = sniff_image_mime(file.data[:32])
    if sniffed and sniffed in allowed:
        return image(sniffed)

    if suffix in _IMAGE_FILE_EXTENSIONS:
        guessed = _guess_mime_from_name(file.name)
        if guessed and guessed in allowed:
            return image(guessed)

    if declared in allowed:
        return image(declared)

    video_mime = declared
    if not declared:
        video_mime = _guess_mime_from_name(file.name) or ""
    if video_mime.startswith("video/"):
        return Classification(
            kind=ReferenceKind.VIDEO_FILE,
            reference=file,
            media_type=MediaType.VIDEO,
            mime_type=video_mime,
        )

    return Classification(
        kind=ReferenceKind.REJECTED,
        reference=file,
        mime_type=declared or None,
        reason=ErrorCode.UNSUPPORTED_FORMAT,
    )


def classify_url(text: str, config: MediaIngestConfig) -> Classification:
    """Classify pasted text as a platform video, direct video, image URL, or
    reject it as malformed/unrecognized.

    A missing scheme is tolerated (``https://`` is assumed); any other
    explicit scheme such as ``blob:`` or ``data:`` makes the text malformed.
    """
    reference = PastedUrl(text)
    raw = text.strip()

    def rejected(reason: ErrorCode) -> Classification:
        return Classification(kind=ReferenceKind.REJECTED, reference=reference, reason=reason)

    if not raw or any(ch.isspace() for ch in raw):
        return rejected(ErrorCode.MALFORMED_URL)

    scheme = _SCHEME_RE.match(raw)
    if scheme and scheme.group(1).lower() not in ("http", "https"):
        return rejected(ErrorCode.MALFORMED_URL)

    url = ensure_scheme(raw)
    parts = split_url(url)
    if parts is None or not _HOST_RE.match(parts.host):
        return rejected(ErrorCode.MALFORMED_URL)

    if detect_platform(url) is not None:
        return Classification(
            kind=ReferenceKind.PLATFORM_VIDEO_URL,
            reference=reference,
            media_type=MediaType.VIDEO,
            url=url,
        )

    path = unquote(parts.path).lower()
    suffix = PurePosixPath(path).suffix
    storage_video = (
        host_matches(parts.host, (config.storage_media_host.lower(),))
        and "/video/upload/" in path
    )
    if suffix in VIDEO_URL_EXTENSIONS or storage_video:
        return Classification(
            kind=ReferenceKind.DIRECT_VIDEO_URL,
            reference=reference,
            media_type=MediaType.VIDEO,
            url=url,
        )

    if suffix in IMAGE_URL_EXTENSIONS or host_matches(parts.host, config.trusted_image_hosts):
        return Classification(
            kind=ReferenceKind.IMAGE_URL,
            reference=reference,
            media_type=MediaType.IMAGE,
            url=url,
        )

    return rejected(ErrorCode.UNRECOGNIZED_URL)


def classify_reference(
    reference: MediaReference | str,
    config: MediaIngestConfig | None = None,
) -> Classification:
    """Classify one raw input.

    Parameters
    ----------
    reference:
        A :class:`LocalFile`, a :class:`PastedUrl`, or a bare string (treated
        as pasted text).
    config:
        Pipeline configuration; defaults are used when omitted.

    Returns
    -------
    Classification
        Exactly one tag, plus the payload the next stage needs, or
        ``rejected`` with a reason code.
    """
    config = config or MediaIngestConfig()
    if isinstance(reference, LocalFile):
        return classify_file(reference, config)
    if isinstance(reference, PastedUrl):
        return classify_url(reference.raw_text, config)
    return classify_url(str(reference), config)
