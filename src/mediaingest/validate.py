"""Admission and submission validation.

Admission checks run for each candidate before any network call: the file
must be non-empty and under the size ceiling of its media type, and a pasted
reference must have been accepted by the classifier.

Submission checks run over the whole collection right before it is handed to
the record store: anything that is not an absolute HTTPS URL is dropped (with
a notice), and at least one image must remain.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from mediaingest import notices
from mediaingest.config import MediaIngestConfig
from mediaingest.errors import (
    EmptyFileError,
    ErrorCode,
    MalformedUrlError,
    MediaReferenceError,
    MissingImageError,
    TooLargeError,
    UnrecognizedUrlError,
    UnsupportedFormatError,
)
from mediaingest.models import (
    Classification,
    LocalFile,
    MediaType,
    Notice,
    PersistedMedia,
    SubmissionResult,
)

_MIB = 1024 * 1024


def _format_size(size: int) -> str:
    if size % _MIB == 0:
        return f"{size // _MIB}MB"
    if size >= _MIB:
        return f"{size / _MIB:.1f}MB"
    return f"{size / 1024:.0f}KB"


def validate_local_file(
    file: LocalFile,
    media_type: MediaType,
    config: MediaIngestConfig,
) -> None:
    """Validate that *file* is non-empty and within its size ceiling.

    Raises
    ------
    EmptyFileError
        If the file has no content.
    TooLargeError
        If the file exceeds ``config.image_max_size_bytes`` or
        ``config.video_max_size_bytes``.
    """
    size = max(file.size_bytes, len(file.data))
    if size == 0:
        raise EmptyFileError(
            message=f"{file.name} is empty",
            context={"name": file.name},
        )

    max_bytes = config.max_size_bytes(media_type)
    if size > max_bytes:
        kind = "Video" if media_type == MediaType.VIDEO else "Image"
        raise TooLargeError(
            message=(
                f"{kind} {file.name} is too large. "
                f"Maximum size is {_format_size(max_bytes)}"
            ),
            context={"name": file.name, "size_bytes": size, "max_bytes": max_bytes},
        )


def rejection_error(classification: Classification) -> MediaReferenceError:
    """Build the typed error for a rejected classification."""
    label = classification.label
    context = {"reference": label}
    if classification.reason == ErrorCode.UNSUPPORTED_FORMAT:
        context["mime_type"] = classification.mime_type or ""
        return UnsupportedFormatError(
            message=f"{label} is not a supported image or video file",
            context=context,
        )
    if classification.reason == ErrorCode.MALFORMED_URL:
        return MalformedUrlError(
            message=f"{label or 'The entered text'} is not a valid URL",
            context=context,
        )
    return UnrecognizedUrlError(
        message=(
            f"{label} is not a recognized image or video link "
            "(use a direct image link, YouTube, Vimeo, or a direct video file)"
        ),
        context=context,
    )


def validate_reference(classification: Classification) -> Classification:
    """Pass accepted classifications through; raise for rejected ones.

    Raises
    ------
    UnsupportedFormatError / MalformedUrlError / UnrecognizedUrlError
        According to the classifier's reason code.
    """
    if classification.rejected:
        raise rejection_error(classification)
    return classification


def is_persistable_url(url: object) -> bool:
    """``True`` for an absolute ``https://`` URL with a host.

    Rejects local and temporary references (``blob:``, ``data:``,
    ``file:``), relative paths and non-strings.
    """
    if not isinstance(url, str) or not url or url != url.strip():
        return False
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return False
    return parts.scheme == "https" and bool(host)


def _filter(
    urls: list[str],
    media_type: MediaType,
    notices_out: list[Notice],
) -> list[str]:
    kept: list[str] = []
    for url in urls:
        if is_persistable_url(url):
            kept.append(url)
        else:
            notices_out.append(notices.dropped_reference(url, media_type))
    return kept


def validate_submission(
    images: list[str],
    videos: list[str],
) -> SubmissionResult:
    """Filter the collection for persistence and require an image.

    Parameters
    ----------
    images / videos:
        The combined, deduplicated URL lists of the collection.

    Returns
    -------
    SubmissionResult
        The persistable media plus one warning per dropped entry.

    Raises
    ------
    MissingImageError
        If no valid image remains.  The submit action must be blocked.
    """
    dropped: list[Notice] = []
    kept_images = _filter(list(images), MediaType.IMAGE, dropped)
    kept_videos = _filter(list(videos), MediaType.VIDEO, dropped)

    if not kept_images:
        raise MissingImageError(
            message="No valid images to save. Please add at least one image.",
            context={"dropped": len(dropped)},
        )

    return SubmissionResult(
        media=PersistedMedia(images=kept_images, videos=kept_videos),
        notices=dropped,
    )
