"""Full error hierarchy for the mediaingest pipeline.

Every public error class inherits from MediaIngestError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum whose values are the error
*kinds* reported to callers (``"too-large"``, ``"auth-error"``, ...), so they
serialise naturally to JSON and compare with plain ``==``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error kinds for every failure the pipeline reports."""

    UNSUPPORTED_FORMAT = "unsupported-format"
    MALFORMED_URL = "malformed-url"
    UNRECOGNIZED_URL = "unrecognized-url"
    TOO_LARGE = "too-large"
    EMPTY_FILE = "empty-file"
    DUPLICATE = "duplicate"
    CAPACITY_EXCEEDED = "capacity-exceeded"
    AUTH_ERROR = "auth-error"
    BAD_REQUEST = "bad-request"
    TRANSPORT_ERROR = "transport-error"
    MISSING_IMAGE = "missing-image"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class MediaIngestError(Exception):
    """Base exception for all mediaingest errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error kind.
    message:
        A user-facing description of what went wrong, naming the offending
        file or URL where there is one.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Reference (classification) errors
# ---------------------------------------------------------------------------

class MediaReferenceError(MediaIngestError):
    """Base class for references rejected by the classifier.

    Context keys: ``reference`` (file name or raw URL text).
    """

    def __init__(
        self,
        code: str = ErrorCode.UNRECOGNIZED_URL,
        message: str = "Unrecognized media reference",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class UnsupportedFormatError(MediaReferenceError):
    """A local file is neither a supported still image nor a video.

    Context keys: ``reference``, ``mime_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_FORMAT,
            message=message,
            context=context,
            cause=cause,
        )


class MalformedUrlError(MediaReferenceError):
    """Pasted text could not be parsed as an absolute web URL.

    Context keys: ``reference``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_URL,
            message=message,
            context=context,
            cause=cause,
        )


class UnrecognizedUrlError(MediaReferenceError):
    """A well-formed URL points at neither a known image nor a known video.

    Context keys: ``reference``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNRECOGNIZED_URL,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

class MediaValidationError(MediaIngestError):
    """Base class for admission and submission constraint violations.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class TooLargeError(MediaValidationError):
    """The file exceeds the size ceiling for its media type, or the storage
    provider answered 413.

    Context keys: ``name``, ``size_bytes``, ``max_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TOO_LARGE,
            message=message,
            context=context,
            cause=cause,
        )


class EmptyFileError(MediaValidationError):
    """The file has no content.

    Context keys: ``name``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_FILE,
            message=message,
            context=context,
            cause=cause,
        )


class CapacityExceededError(MediaValidationError):
    """Admitting the items would exceed the per-type ceiling.

    Context keys: ``media_type``, ``limit``, ``rejected``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message=message,
            context=context,
            cause=cause,
        )


class MissingImageError(MediaValidationError):
    """The collection holds no valid image at submission time.

    Context keys: ``dropped`` (count of entries filtered out).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MISSING_IMAGE,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class UploadError(MediaIngestError):
    """Base class for failures reported by the storage provider.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.TRANSPORT_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class UploadAuthError(UploadError):
    """The storage provider returned 401/403: the upload preset or
    credentials are misconfigured.

    Context keys: ``name``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class UploadBadRequestError(UploadError):
    """The storage provider rejected the payload (400 or another
    non-retryable 4xx).

    Context keys: ``name``, ``status_code``, ``provider_message``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.BAD_REQUEST,
            message=message,
            context=context,
            cause=cause,
        )


class UploadTransportError(UploadError):
    """A network failure, a 5xx after retries, or an unusable response body.

    Context keys: ``name``, ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
