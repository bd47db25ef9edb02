"""User-visible message builders.

Every rejected or failed item yields exactly one :class:`Notice` naming the
offending file or URL and the reason.  Successful batches yield a single
aggregate notice with the count.  The wording is kept here so the upload
batch, the collection reducer and the submission check all speak the same
language.
"""

from __future__ import annotations

from mediaingest.errors import CapacityExceededError, ErrorCode, MediaIngestError
from mediaingest.models import MediaType, Notice, NoticeLevel, UploadOutcome


def _plural(count: int, media_type: MediaType) -> str:
    noun = media_type.value
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def rejected(error: MediaIngestError, subject: str | None = None) -> Notice:
    """An ERROR notice for a reference the pipeline refused."""
    return Notice(
        level=NoticeLevel.ERROR,
        message=error.message,
        code=ErrorCode(error.code),
        subject=subject,
    )


def capacity_exceeded(media_type: MediaType, limit: int, rejected_count: int) -> Notice:
    """One notice for all items turned away by a per-type ceiling."""
    message = f"Maximum {limit} {media_type.value}s allowed"
    if rejected_count:
        message += f"; {_plural(rejected_count, media_type)} not added"
    error = CapacityExceededError(
        message=message,
        context={
            "media_type": media_type.value,
            "limit": limit,
            "rejected": rejected_count,
        },
    )
    return rejected(error, subject=media_type.value)


def upload_failed(outcome: UploadOutcome, *, partial: bool) -> Notice:
    """Per-file failure notice.

    A WARNING when some of the batch still succeeded, an ERROR otherwise.
    """
    error = outcome.error
    if error is not None:
        message = error.message
        if outcome.name and outcome.name not in message:
            message = f"{outcome.name}: {message}"
        code = ErrorCode(error.code)
    else:
        message = f"Failed to upload {outcome.name}"
        code = ErrorCode.TRANSPORT_ERROR
    return Notice(
        level=NoticeLevel.WARNING if partial else NoticeLevel.ERROR,
        message=message,
        code=code,
        subject=outcome.name,
    )


def upload_succeeded(images: int, videos: int) -> Notice:
    """Aggregate success notice, e.g. ``Successfully uploaded 2 images``."""
    parts = []
    if images:
        parts.append(_plural(images, MediaType.IMAGE))
    if videos:
        parts.append(_plural(videos, MediaType.VIDEO))
    return Notice(
        level=NoticeLevel.INFO,
        message=f"Successfully uploaded {' and '.join(parts)}",
    )


def batch_failed(total: int) -> Notice:
    """Batch-level error when no file of the batch succeeded."""
    noun = "file" if total == 1 else "files"
    return Notice(
        level=NoticeLevel.ERROR,
        message=f"Failed to upload any of the {total} selected {noun}",
        code=ErrorCode.TRANSPORT_ERROR,
    )


def urls_added(media_type: MediaType, count: int) -> Notice:
    return Notice(
        level=NoticeLevel.INFO,
        message=f"Added {_plural(count, media_type)} from URL",
    )


def item_removed(media_type: MediaType, url: str) -> Notice:
    return Notice(
        level=NoticeLevel.INFO,
        message=f"Removed {media_type.value}",
        subject=url,
    )


def dropped_reference(url: object, media_type: MediaType) -> Notice:
    """Warning for a stored entry that cannot be persisted (``blob:``,
    ``data:``, relative paths, non-strings)."""
    shown = url if isinstance(url, str) else repr(url)
    if isinstance(url, str) and url.startswith("data:"):
        shown = "data: URI"
    return Notice(
        level=NoticeLevel.WARNING,
        message=(
            f"Removed {media_type.value} {shown}: "
            "only absolute https:// URLs can be saved"
        ),
        code=ErrorCode.MALFORMED_URL,
        subject=shown,
    )


def unreachable_url(url: str, detail: str) -> Notice:
    """Warning for a pasted image URL that failed the reachability probe."""
    return Notice(
        level=NoticeLevel.WARNING,
        message=f"Image URL {url} may not work: {detail}",
        code=ErrorCode.UNRECOGNIZED_URL,
        subject=url,
    )
