"""Tests for mediaingest/validate.py and the error hierarchy it raises."""

from __future__ import annotations

import pytest

from mediaingest.config import MediaIngestConfig
from mediaingest.errors import (
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
    UploadError,
)
from mediaingest.models import LocalFile, MediaType, NoticeLevel
from mediaingest.reference.detect import classify_reference
from mediaingest.validate import (
    is_persistable_url,
    validate_local_file,
    validate_reference,
    validate_submission,
)

_MIB = 1024 * 1024


class TestValidateLocalFile:
    def test_within_limit(self, config, png_file):
        validate_local_file(png_file, MediaType.IMAGE, config)

    def test_empty(self, config):
        with pytest.raises(EmptyFileError, match="empty.png"):
            validate_local_file(LocalFile(b"", "empty.png", "image/png"), MediaType.IMAGE, config)

    def test_image_too_large_by_declared_size(self, config):
        file = LocalFile(b"\x00" * 16, "big.jpg", "image/jpeg", size_bytes=11 * _MIB)
        with pytest.raises(TooLargeError) as exc_info:
            validate_local_file(file, MediaType.IMAGE, config)
        assert exc_info.value.message == "Image big.jpg is too large. Maximum size is 10MB"
        assert exc_info.value.context["max_bytes"] == 10 * _MIB

    def test_video_uses_video_ceiling(self, config):
        file = LocalFile(b"\x00" * 16, "tour.mp4", "video/mp4", size_bytes=50 * _MIB)
        validate_local_file(file, MediaType.VIDEO, config)

        file = LocalFile(b"\x00" * 16, "tour.mp4", "video/mp4", size_bytes=101 * _MIB)
        with pytest.raises(TooLargeError, match="Video tour.mp4 is too large. Maximum size is 100MB"):
            validate_local_file(file, MediaType.VIDEO, config)

    def test_small_ceiling_formatting(self):
        config = MediaIngestConfig(image_max_size_bytes=1024)
        with pytest.raises(TooLargeError, match="1KB"):
            validate_local_file(
                LocalFile(b"\x00" * 2048, "a.png", "image/png"), MediaType.IMAGE, config,
            )


class TestValidateReference:
    def test_accepted_passes_through(self):
        classification = classify_reference("https://example.com/a.jpg")
        assert validate_reference(classification) is classification

    @pytest.mark.parametrize(
        ("reference", "error"),
        [
            ("not a url", MalformedUrlError),
            ("blob:https://app.example.com/1", MalformedUrlError),
            ("https://example.com/about", UnrecognizedUrlError),
            (LocalFile(b"%PDF", "plan.pdf", "application/pdf"), UnsupportedFormatError),
        ],
    )
    def test_rejected_raise_typed_errors(self, reference, error):
        with pytest.raises(error) as exc_info:
            validate_reference(classify_reference(reference))
        assert isinstance(exc_info.value, MediaReferenceError)
        assert exc_info.value.context["reference"]

    def test_unsupported_names_file(self):
        with pytest.raises(UnsupportedFormatError, match="plan.pdf"):
            validate_reference(classify_reference(LocalFile(b"%PDF", "plan.pdf", "application/pdf")))


class TestIsPersistableUrl:
    @pytest.mark.parametrize("url", [
        "https://example.com/a.jpg",
        "https://res.cloudinary.com/demo/image/upload/v1/a.jpg",
    ])
    def test_accepts(self, url):
        assert is_persistable_url(url)

    @pytest.mark.parametrize("url", [
        "http://example.com/a.jpg",
        "blob:https://app.example.com/1",
        "data:image/png;base64,AAAA",
        "file:///tmp/a.jpg",
        "/images/a.jpg",
        "https://",
        " https://example.com/a.jpg",
        "",
        None,
        42,
    ])
    def test_rejects(self, url):
        assert not is_persistable_url(url)


class TestValidateSubmission:
    def test_filters_and_warns(self):
        result = validate_submission(
            ["https://example.com/a.jpg", "blob:https://app/1"],
            ["https://www.youtube.com/watch?v=ABC123", "/local.mp4"],
        )
        assert result.media.images == ["https://example.com/a.jpg"]
        assert result.media.videos == ["https://www.youtube.com/watch?v=ABC123"]
        assert len(result.notices) == 2
        assert all(n.level == NoticeLevel.WARNING for n in result.notices)
        assert all(n.code == ErrorCode.MALFORMED_URL for n in result.notices)

    def test_requires_an_image(self):
        with pytest.raises(MissingImageError) as exc_info:
            validate_submission(["data:image/png;base64,AAAA"], ["https://vimeo.com/1"])
        assert exc_info.value.code == ErrorCode.MISSING_IMAGE
        assert exc_info.value.context["dropped"] == 1

    def test_document_omits_empty_videos(self):
        result = validate_submission(["https://example.com/a.jpg"], [])
        assert result.media.to_document() == {"images": ["https://example.com/a.jpg"]}


class TestErrorHierarchy:
    def test_subclasses(self):
        assert issubclass(TooLargeError, MediaValidationError)
        assert issubclass(MissingImageError, MediaValidationError)
        assert issubclass(MalformedUrlError, MediaReferenceError)
        assert issubclass(UploadAuthError, UploadError)
        for cls in (MediaValidationError, MediaReferenceError, UploadError):
            assert issubclass(cls, MediaIngestError)

    def test_codes_compare_as_strings(self):
        err = EmptyFileError("a.png is empty")
        assert err.code == "empty-file"
        assert str(err) == "a.png is empty"

    def test_cause_is_chained(self):
        cause = OSError("reset")
        err = UploadAuthError("refused", cause=cause)
        assert err.__cause__ is cause
        assert "UploadAuthError" in repr(err)
