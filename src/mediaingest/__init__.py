"""mediaingest: turn mixed media references into one canonical collection.

Public re-exports
-----------------

* **Collection:** :class:`MediaCollectionBuilder`
* **Transports:** :class:`UploadTransport`, :class:`AsyncUploadTransport`
* **Configuration:** :class:`MediaIngestConfig`
* **Errors:** Every :class:`MediaIngestError` subclass and :class:`ErrorCode`
* **Models:** All result dataclasses, enums, and supporting types
* **Functions:** classification, normalization, thumbnails, validation

Usage::

    from mediaingest import MediaCollectionBuilder, MediaIngestConfig

    config = MediaIngestConfig(cloud_name="demo", upload_preset="listing")
    async with MediaCollectionBuilder(config) as builder:
        builder.add_url("youtu.be/dQw4w9WgXcQ")
        await builder.upload_files(files)
        document = builder.submit().media.to_document()
"""

from __future__ import annotations

# ── Collection ─────────────────────────────────────────────────────────
from mediaingest.collection import MediaCollectionBuilder

# ── Configuration ───────────────────────────────────────────────────────
from mediaingest.config import (
    DEFAULT_IMAGE_MIMES,
    DEFAULT_TRUSTED_IMAGE_HOSTS,
    DEFAULT_VIDEO_PLACEHOLDER,
    MediaIngestConfig,
)

# ── Errors ──────────────────────────────────────────────────────────────
from mediaingest.errors import (
    CapacityExceededError,
    EmptyFileError,
    ErrorCode,
    MalformedUrlError,
    MediaIngestError,
    MediaReferenceError,
    MediaValidationError,
    MissingImageError,
    TooLargeError,
    UnrecognizedUrlError,
    UnsupportedFormatError,
    UploadAuthError,
    UploadBadRequestError,
    UploadError,
    UploadTransportError,
)

# ── Models ──────────────────────────────────────────────────────────────
from mediaingest.models import (
    BatchResult,
    Classification,
    LocalFile,
    MediaItem,
    MediaType,
    Notice,
    NoticeLevel,
    PastedUrl,
    PersistedMedia,
    Provenance,
    ReferenceKind,
    SubmissionResult,
    UploadOutcome,
    UploadState,
)

# ── Functions ───────────────────────────────────────────────────────────
from mediaingest.reference import (
    classify_reference,
    embed_url,
    normalize_url,
    preview_source,
    provider_label,
    resolve_thumbnail,
)

# ── Transports ──────────────────────────────────────────────────────────
from mediaingest.upload import (
    AsyncUploadTransport,
    UploadTransport,
    async_upload_batch,
    upload_batch,
)
from mediaingest.validate import validate_submission

__all__ = [
    # Collection
    "MediaCollectionBuilder",
    # Transports
    "AsyncUploadTransport",
    "UploadTransport",
    "async_upload_batch",
    "upload_batch",
    # Configuration
    "DEFAULT_IMAGE_MIMES",
    "DEFAULT_TRUSTED_IMAGE_HOSTS",
    "DEFAULT_VIDEO_PLACEHOLDER",
    "MediaIngestConfig",
    # Errors
    "CapacityExceededError",
    "EmptyFileError",
    "ErrorCode",
    "MalformedUrlError",
    "MediaIngestError",
    "MediaReferenceError",
    "MediaValidationError",
    "MissingImageError",
    "TooLargeError",
    "UnrecognizedUrlError",
    "UnsupportedFormatError",
    "UploadAuthError",
    "UploadBadRequestError",
    "UploadError",
    "UploadTransportError",
    # Models
    "BatchResult",
    "Classification",
    "LocalFile",
    "MediaItem",
    "MediaType",
    "Notice",
    "NoticeLevel",
    "PastedUrl",
    "PersistedMedia",
    "Provenance",
    "ReferenceKind",
    "SubmissionResult",
    "UploadOutcome",
    "UploadState",
    # Functions
    "classify_reference",
    "embed_url",
    "normalize_url",
    "preview_source",
    "provider_label",
    "resolve_thumbnail",
    "validate_submission",
]

__version__ = "0.1.0"
