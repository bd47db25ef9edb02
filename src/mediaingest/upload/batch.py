"""Batch upload orchestration.

Each file of a batch is classified, validated and uploaded independently:
a failure is recorded on that file's :class:`UploadOutcome` and never stops
its siblings.  Outcomes are buffered by input index, so the returned
:class:`BatchResult` lists them in submission order no matter which upload
finished first.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import Any

from mediaingest import notices
from mediaingest.config import MediaIngestConfig
from mediaingest.errors import MediaIngestError
from mediaingest.models import (
    BatchResult,
    Classification,
    LocalFile,
    MediaType,
    UploadOutcome,
    UploadState,
)
from mediaingest.observability import NoopMetricsHook, get_logger
from mediaingest.reference.detect import classify_file
from mediaingest.validate import rejection_error, validate_local_file

from .state import UploadStateMachine

log = get_logger("mediaingest.upload")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _metrics(config: MediaIngestConfig) -> Any:
    return config.metrics if config.metrics is not None else NoopMetricsHook()


def _admit(
    index: int,
    file: LocalFile,
    config: MediaIngestConfig,
    machine: UploadStateMachine,
) -> tuple[Classification, UploadOutcome | None]:
    """Classify and validate one file before any network call.

    Returns the classification plus a failed outcome when the file is
    refused, or ``None`` when it may be uploaded.
    """
    classification = classify_file(file, config)
    if classification.rejected:
        machine.transition(UploadState.FAILED)
        _metrics(config).increment(
            "mediaingest.references_rejected_total",
            tags={"reason": str(classification.reason.value if classification.reason else "")},
        )
        return classification, UploadOutcome(
            index=index,
            name=file.name,
            error=rejection_error(classification),
        )

    media_type = classification.media_type or MediaType.IMAGE
    try:
        validate_local_file(file, media_type, config)
    except MediaIngestError as exc:
        machine.transition(UploadState.FAILED)
        return classification, UploadOutcome(
            index=index,
            name=file.name,
            media_type=media_type,
            error=exc,
        )
    return classification, None


def _log_failure(outcome: UploadOutcome) -> None:
    log.warning(
        "Upload failed",
        extra={
            "extra_fields": {
                "op": "upload_batch",
                "index": outcome.index,
                "name": outcome.name,
                "reason": outcome.reason,
                "error": outcome.error.message if outcome.error else None,
            }
        },
    )


def _finish(
    outcomes: list[UploadOutcome],
    config: MediaIngestConfig,
    started: float,
    selected: int | None = None,
) -> BatchResult:
    """Attach notices and emit metrics for a settled batch.

    *selected* is the number of files the user picked, when some of them
    never reached the batch.
    """
    result = BatchResult(outcomes=outcomes)
    metrics = _metrics(config)
    successes = result.successes
    failures = result.failures

    for outcome in successes:
        metrics.increment(
            "mediaingest.upload_success_total",
            tags={"media_type": outcome.media_type.value if outcome.media_type else "unknown"},
        )
    for outcome in failures:
        metrics.increment(
            "mediaingest.upload_failure_total",
            tags={"reason": outcome.reason or "unknown"},
        )
        _log_failure(outcome)
        result.notices.append(notices.upload_failed(outcome, partial=bool(successes)))

    if successes:
        result.notices.append(notices.upload_succeeded(
            images=len(result.urls(MediaType.IMAGE)),
            videos=len(result.urls(MediaType.VIDEO)),
        ))
    elif failures:
        total = selected if selected is not None else len(failures)
        result.notices.append(notices.batch_failed(total))

    elapsed_ms = (time.monotonic() - started) * 1000
    metrics.timing("mediaingest.batch_duration_ms", elapsed_ms)
    log.info(
        "Upload batch settled",
        extra={
            "extra_fields": {
                "op": "upload_batch",
                "total": len(outcomes),
                "succeeded": len(successes),
                "failed": len(failures),
                "discarded": len(result.discarded),
                "duration_ms": round(elapsed_ms, 1),
            }
        },
    )
    return result


# ---------------------------------------------------------------------------
# Sync batch
# ---------------------------------------------------------------------------

def upload_batch(
    transport: Any,
    files: Sequence[LocalFile],
    config: MediaIngestConfig,
) -> BatchResult:
    """Upload *files* one after another.

    Parameters
    ----------
    transport:
        An :class:`~mediaingest.upload.transport.UploadTransport`.
    files:
        The selected files, in submission order.
    config:
        Pipeline configuration.

    Returns
    -------
    BatchResult
        One outcome per file, in submission order, plus the batch notices.
    """
    started = time.monotonic()
    outcomes: list[UploadOutcome] = []

    for index, file in enumerate(files):
        machine = UploadStateMachine(file.name)
        classification, outcome = _admit(index, file, config, machine)
        if outcome is None:
            media_type = classification.media_type or MediaType.IMAGE
            machine.transition(UploadState.UPLOADING)
            try:
                url = transport.upload(file, media_type, mime_type=classification.mime_type)
            except MediaIngestError as exc:
                machine.transition(UploadState.FAILED)
                outcome = UploadOutcome(index, file.name, media_type, error=exc)
            else:
                machine.transition(UploadState.UPLOADED)
                outcome = UploadOutcome(index, file.name, media_type, url=url)
        outcomes.append(outcome)

    return _finish(outcomes, config, started)


# ---------------------------------------------------------------------------
# Async batch
# ---------------------------------------------------------------------------

async def async_upload_batch(
    transport: Any,
    files: Sequence[LocalFile],
    config: MediaIngestConfig,
    *,
    should_discard: Callable[[], bool] | None = None,
    selected: int | None = None,
) -> BatchResult:
    """Upload *files* concurrently.

    At most ``config.max_concurrent_uploads`` uploads are in flight at a
    time.  All uploads are joined before the result is built.

    Parameters
    ----------
    transport:
        An :class:`~mediaingest.upload.transport.AsyncUploadTransport`.
    files:
        The selected files, in submission order.
    config:
        Pipeline configuration.
    should_discard:
        Checked when each upload settles; when it returns ``True`` the
        result is marked discarded instead of being reported as uploaded.
    selected:
        Total files picked by the user, counted in the batch-failure
        notice when some were held back before the batch.

    Returns
    -------
    BatchResult
        One outcome per file, in submission order, plus the batch notices.
    """
    started = time.monotonic()
    semaphore = asyncio.Semaphore(config.max_concurrent_uploads)
    settled: dict[int, UploadOutcome] = {}

    async def _process_one(index: int, file: LocalFile) -> None:
        machine = UploadStateMachine(file.name)
        classification, outcome = _admit(index, file, config, machine)
        if outcome is not None:
            settled[index] = outcome
            return

        media_type = classification.media_type or MediaType.IMAGE
        async with semaphore:
            machine.transition(UploadState.UPLOADING)
            try:
                url = await transport.upload(file, media_type, mime_type=classification.mime_type)
            except MediaIngestError as exc:
                machine.transition(UploadState.FAILED)
                settled[index] = UploadOutcome(index, file.name, media_type, error=exc)
                return
            machine.transition(UploadState.UPLOADED)

        outcome = UploadOutcome(index, file.name, media_type, url=url)
        if should_discard is not None and should_discard():
            machine.transition(UploadState.DISCARDED)
            outcome.discarded = True
            log.info(
                "Discarding upload result for closed collection",
                extra={"extra_fields": {"op": "upload_batch", "name": file.name, "url": url}},
            )
        settled[index] = outcome

    await asyncio.gather(*(_process_one(i, f) for i, f in enumerate(files)))

    return _finish([settled[i] for i in range(len(files))], config, started, selected)
