"""Public data models for the mediaingest pipeline.

This module contains every enum, reference variant, result type and notice
type referenced by the public API surface.  All types are plain dataclasses
with no behaviour beyond small derived properties; the ones that flow
through the collection reducer are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from mediaingest.errors import ErrorCode, MediaIngestError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MediaType(str, Enum):
    """The two kinds of media a collection holds."""

    IMAGE = "image"
    VIDEO = "video"


class Provenance(str, Enum):
    """How a resolved item entered the collection.  Only affects ordering."""

    UPLOADED = "uploaded"
    """Resolved by uploading a local file to the storage provider."""

    PASTED = "pasted"
    """Entered as a pasted remote URL."""


class ReferenceKind(str, Enum):
    """Classification tag assigned to one raw input."""

    IMAGE_FILE = "image-file"
    VIDEO_FILE = "video-file"
    IMAGE_URL = "image-url"
    DIRECT_VIDEO_URL = "direct-video-url"
    PLATFORM_VIDEO_URL = "platform-video-url"
    REJECTED = "rejected"


class UploadState(str, Enum):
    """Lifecycle states for one file inside an upload batch."""

    PENDING = "pending"
    """Classified and validated; transport call not started."""

    UPLOADING = "uploading"
    """The transport call is in flight."""

    UPLOADED = "uploaded"
    """The provider returned a canonical URL."""

    FAILED = "failed"
    """Validation or the transport call failed."""

    DISCARDED = "discarded"
    """The owning collection was closed before the result could be applied."""


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# References (pre-resolution)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocalFile:
    """A locally selected file, held in memory until it is uploaded.

    Attributes
    ----------
    data:
        Raw file bytes.
    name:
        File name as declared by the picker (e.g. ``"kitchen.heic"``).
    mime_type:
        MIME type as declared by the picker; may be empty.
    size_bytes:
        Declared size.  Defaults to ``len(data)``.
    """

    data: bytes = field(repr=False)
    name: str
    mime_type: str = ""
    size_bytes: int = -1

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            object.__setattr__(self, "size_bytes", len(self.data))


@dataclass(frozen=True)
class PastedUrl:
    """Text pasted into a URL field, not yet parsed."""

    raw_text: str


MediaReference = Union[LocalFile, PastedUrl]


@dataclass(frozen=True)
class Classification:
    """Result of classifying one :data:`MediaReference`.

    Attributes
    ----------
    kind:
        The assigned :class:`ReferenceKind`.
    reference:
        The input that was classified.
    media_type:
        ``IMAGE`` or ``VIDEO`` for accepted references, ``None`` when
        rejected.
    url:
        For URL references: the trimmed URL with a scheme, ready for the
        normalizer.  ``None`` for files.
    mime_type:
        For file references: the effective MIME type (sniffed, declared or
        guessed from the extension).
    reason:
        The rejection :class:`~mediaingest.errors.ErrorCode`, ``None`` when
        accepted.
    """

    kind: ReferenceKind
    reference: MediaReference
    media_type: MediaType | None = None
    url: str | None = None
    mime_type: str | None = None
    reason: ErrorCode | None = None

    @property
    def rejected(self) -> bool:
        return self.kind == ReferenceKind.REJECTED

    @property
    def label(self) -> str:
        """File name or raw URL text, for messages."""
        if isinstance(self.reference, LocalFile):
            return self.reference.name
        return self.reference.raw_text.strip()


# ---------------------------------------------------------------------------
# Resolved items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MediaItem:
    """One resolved media item: the unit stored and displayed.

    Attributes
    ----------
    url:
        Absolute HTTPS URL in canonical form.
    type:
        ``IMAGE`` or ``VIDEO``.
    thumbnail:
        Preview image URL for videos; ``None`` for images.
    provenance:
        Whether the item was uploaded or pasted.
    sequence:
        Global insertion counter assigned when the item is admitted.  Used
        only to interleave images and videos for the carousel; excluded
        from equality.
    """

    url: str
    type: MediaType
    thumbnail: str | None = None
    provenance: Provenance = Provenance.PASTED
    sequence: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Notice:
    """A user-visible message produced by the pipeline.

    Attributes
    ----------
    level:
        Severity.
    message:
        Specific, actionable text naming the offending file or URL.
    code:
        Error kind for warnings/errors, ``None`` for plain success notices.
    subject:
        The file name or URL the notice is about, if any.
    """

    level: NoticeLevel
    message: str
    code: ErrorCode | None = None
    subject: str | None = None


# ---------------------------------------------------------------------------
# Upload results
# ---------------------------------------------------------------------------

@dataclass
class UploadOutcome:
    """The settled result of one file in an upload batch.

    Attributes
    ----------
    index:
        Position of the file in the submitted batch.
    name:
        Declared file name.
    media_type:
        Classified type, ``None`` when the file was rejected as unsupported.
    url:
        Canonical HTTPS URL on success.
    error:
        The typed failure otherwise.
    discarded:
        The upload finished after its collection was closed; the URL is
        never applied.
    """

    index: int
    name: str
    media_type: MediaType | None = None
    url: str | None = None
    error: MediaIngestError | None = None
    discarded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.url is not None and not self.discarded

    @property
    def reason(self) -> str | None:
        """The error kind, e.g. ``"too-large"``."""
        if self.error is None:
            return None
        return str(getattr(self.error.code, "value", self.error.code))


@dataclass
class BatchResult:
    """All outcomes of one upload batch, in submission order.

    Attributes
    ----------
    outcomes:
        One :class:`UploadOutcome` per submitted file.
    notices:
        Messages for the batch: one per failure plus an aggregate success
        or batch-failure message.
    """

    outcomes: list[UploadOutcome] = field(default_factory=list)
    notices: list[Notice] = field(default_factory=list)

    @property
    def successes(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failures(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if o.error is not None]

    @property
    def discarded(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if o.discarded]

    @property
    def failed(self) -> bool:
        """``True`` when the batch had failures and nothing succeeded."""
        return bool(self.failures) and not self.successes

    @property
    def partial(self) -> bool:
        return bool(self.successes) and bool(self.failures)

    def urls(self, media_type: MediaType) -> list[str]:
        """Successful URLs of one type, in submission order."""
        return [o.url for o in self.successes if o.media_type == media_type and o.url]


# ---------------------------------------------------------------------------
# Persistence boundary
# ---------------------------------------------------------------------------

@dataclass
class PersistedMedia:
    """The flattened collection handed to the record store.

    Attributes
    ----------
    images:
        Canonical absolute HTTPS image URLs, in display order.
    videos:
        Canonical absolute HTTPS video URLs, in display order.
    """

    images: list[str] = field(default_factory=list)
    videos: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        """Return the record-store fields; ``videos`` is omitted when empty."""
        doc: dict[str, Any] = {"images": list(self.images)}
        if self.videos:
            doc["videos"] = list(self.videos)
        return doc


@dataclass
class SubmissionResult:
    """Output of submission-time validation.

    Attributes
    ----------
    media:
        The collection as it will be persisted.
    notices:
        One warning per entry that was filtered out.
    """

    media: PersistedMedia
    notices: list[Notice] = field(default_factory=list)
