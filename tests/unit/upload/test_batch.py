"""Tests for mediaingest/upload/batch.py.

Covers failure isolation, submission ordering independent of completion
order, concurrency limits, notices and discarding of late results.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediaingest.config import MediaIngestConfig
from mediaingest.errors import ErrorCode, UploadAuthError, UploadTransportError
from mediaingest.models import LocalFile, MediaType, NoticeLevel
from mediaingest.upload.batch import async_upload_batch, upload_batch

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
MP4 = b"\x00\x00\x00\x18ftypisom" + b"\x00" * 20


def image(name: str, size: int | None = None) -> LocalFile:
    data = PNG if size is None else PNG + b"\x00" * (size - len(PNG))
    return LocalFile(data=data, name=name, mime_type="image/png")


def video(name: str) -> LocalFile:
    return LocalFile(data=MP4, name=name, mime_type="video/mp4")


def cdn(name: str, kind: str = "image") -> str:
    return f"https://res.cloudinary.com/demo/{kind}/upload/v1/{name}"


@pytest.fixture
def small_config() -> MediaIngestConfig:
    """Config with a 1 KiB image ceiling so oversize files stay small."""
    return MediaIngestConfig(
        cloud_name="demo",
        upload_preset="preset",
        image_max_size_bytes=1024,
        max_concurrent_uploads=4,
    )


class TestAsyncUploadBatch:
    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self, small_config):
        files = [image("a.png"), image("b.png", size=4096), image("c.png")]
        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=lambda f, t, **kw: cdn(f.name))

        result = await async_upload_batch(transport, files, small_config)

        assert [o.url for o in result.successes] == [cdn("a.png"), cdn("c.png")]
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.name == "b.png"
        assert failure.index == 1
        assert failure.reason == "too-large"
        assert "b.png" in failure.error.message
        assert result.partial
        assert not result.failed
        # the oversize file never reached the network
        assert transport.upload.await_count == 2

        warnings = [n for n in result.notices if n.level == NoticeLevel.WARNING]
        assert len(warnings) == 1
        assert warnings[0].subject == "b.png"
        assert warnings[0].code == ErrorCode.TOO_LARGE
        assert result.notices[-1].message == "Successfully uploaded 2 images"

    @pytest.mark.asyncio
    async def test_order_follows_submission_not_completion(self, small_config):
        delays = {"a.png": 0.03, "b.png": 0.0, "c.png": 0.015}

        async def slow_upload(file, media_type, **kwargs):
            await asyncio.sleep(delays[file.name])
            return cdn(file.name)

        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=slow_upload)
        files = [image("a.png"), image("b.png"), image("c.png")]

        result = await async_upload_batch(transport, files, small_config)

        assert [o.index for o in result.outcomes] == [0, 1, 2]
        assert result.urls(MediaType.IMAGE) == [cdn("a.png"), cdn("b.png"), cdn("c.png")]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        config = MediaIngestConfig(cloud_name="demo", upload_preset="p", max_concurrent_uploads=2)
        in_flight = 0
        peak = 0

        async def tracked(file, media_type, **kwargs):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.005)
            in_flight -= 1
            return cdn(file.name)

        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=tracked)
        await async_upload_batch(transport, [image(f"{i}.png") for i in range(6)], config)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_mixed_batch_routes_by_type(self, small_config):
        transport = MagicMock()
        transport.upload = AsyncMock(
            side_effect=lambda f, t, **kw: cdn(f.name, "video" if t == MediaType.VIDEO else "image"),
        )
        result = await async_upload_batch(
            transport, [video("tour.mp4"), image("a.png")], small_config,
        )
        assert result.urls(MediaType.VIDEO) == [cdn("tour.mp4", "video")]
        assert result.urls(MediaType.IMAGE) == [cdn("a.png")]
        assert result.notices[-1].message == "Successfully uploaded 1 image and 1 video"

    @pytest.mark.asyncio
    async def test_all_failed(self, small_config):
        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=UploadAuthError("Upload of a.png was refused"))
        result = await async_upload_batch(
            transport, [image("a.png"), LocalFile(b"%PDF", "doc.pdf", "application/pdf")],
            small_config,
        )
        assert result.failed
        assert {o.reason for o in result.failures} == {"auth-error", "unsupported-format"}
        errors = [n for n in result.notices if n.level == NoticeLevel.ERROR]
        assert len(errors) == 3
        assert errors[-1].message == "Failed to upload any of the 2 selected files"

    @pytest.mark.asyncio
    async def test_batch_failure_counts_selected_files(self, small_config):
        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=UploadTransportError("down"))
        result = await async_upload_batch(transport, [image("a.png")], small_config, selected=3)
        assert result.notices[-1].message == "Failed to upload any of the 3 selected files"

    @pytest.mark.asyncio
    async def test_empty_file(self, small_config):
        transport = MagicMock()
        transport.upload = AsyncMock()
        result = await async_upload_batch(transport, [LocalFile(b"", "empty.png", "image/png")], small_config)
        assert result.failures[0].reason == "empty-file"
        transport.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discarded_results(self, small_config):
        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=lambda f, t, **kw: cdn(f.name))
        result = await async_upload_batch(
            transport, [image("a.png")], small_config, should_discard=lambda: True,
        )
        assert result.successes == []
        assert len(result.discarded) == 1
        assert not result.failed
        assert result.notices == []

    @pytest.mark.asyncio
    async def test_metrics(self):
        metrics = MagicMock()
        config = MediaIngestConfig(cloud_name="demo", upload_preset="p", metrics=metrics)
        transport = MagicMock()
        transport.upload = AsyncMock(side_effect=[cdn("a.png"), UploadTransportError("down")])
        await async_upload_batch(transport, [image("a.png"), image("b.png")], config)

        names = [call.args[0] for call in metrics.increment.call_args_list]
        assert "mediaingest.upload_success_total" in names
        assert "mediaingest.upload_failure_total" in names
        metrics.timing.assert_called_once()
        assert metrics.timing.call_args.args[0] == "mediaingest.batch_duration_ms"


class TestSyncUploadBatch:
    def test_sequential_partial_failure(self, small_config):
        transport = MagicMock()
        transport.upload.side_effect = lambda f, t, **kw: cdn(f.name)
        files = [image("a.png"), image("b.png", size=4096), image("c.png")]

        result = upload_batch(transport, files, small_config)

        assert [o.ok for o in result.outcomes] == [True, False, True]
        assert result.failures[0].reason == "too-large"
        assert transport.upload.call_count == 2

    def test_passes_classified_mime(self, small_config):
        transport = MagicMock()
        transport.upload.return_value = cdn("a.png")
        upload_batch(transport, [LocalFile(PNG, "a.png", "")], small_config)
        _, kwargs = transport.upload.call_args
        assert kwargs["mime_type"] == "image/png"

    def test_empty_batch(self, small_config):
        result = upload_batch(MagicMock(), [], small_config)
        assert result.outcomes == []
        assert result.notices == []
        assert not result.failed
