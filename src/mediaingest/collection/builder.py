"""Media collection builder.

:class:`MediaCollectionBuilder` owns one collection.  Every mutation is
recorded as an event and applied through the pure reducer in
:mod:`mediaingest.collection.state`; after each logical mutation the
owner's callbacks receive the full current URL list of every media type
that changed.

Usage::

    builder = MediaCollectionBuilder(
        config,
        on_images_upload=form.set_images,
        on_videos_upload=form.set_videos,
    )
    builder.hydrate(record["images"], record.get("videos", []))
    builder.add_url("https://youtu.be/dQw4w9WgXcQ")
    result = await builder.upload_files(selected_files)
    document = builder.submit().media.to_document()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from mediaingest import notices
from mediaingest.config import MediaIngestConfig
from mediaingest.errors import MediaIngestError
from mediaingest.models import (
    BatchResult,
    LocalFile,
    MediaItem,
    MediaType,
    Notice,
    PastedUrl,
    SubmissionResult,
)
from mediaingest.observability import NoopMetricsHook, get_logger
from mediaingest.reference.detect import classify_file, classify_reference
from mediaingest.reference.normalize import normalize_url
from mediaingest.upload.batch import async_upload_batch
from mediaingest.upload.transport import AsyncUploadTransport
from mediaingest.validate import rejection_error, validate_local_file, validate_submission

from .state import (
    CollectionState,
    Event,
    Hydrated,
    ItemRemoved,
    Transition,
    UploadSettled,
    UrlsAdded,
    reduce,
)

log = get_logger("mediaingest.collection")

UrlsCallback = Callable[[list[str]], Any]


def _passes_validation(file: LocalFile, media_type: MediaType, config: MediaIngestConfig) -> bool:
    try:
        validate_local_file(file, media_type, config)
    except MediaIngestError:
        return False
    return True


class MediaCollectionBuilder:
    """Build a deduplicated, ordered media collection from mixed inputs.

    Parameters
    ----------
    config:
        Pipeline configuration.  Defaults to :class:`MediaIngestConfig()`.
    on_images_upload / on_videos_upload:
        Called with the full current list of image / video URLs once per
        logical mutation that changed that list.
    transport:
        An :class:`~mediaingest.upload.transport.AsyncUploadTransport` (or
        compatible object).  When omitted, one is created on first use and
        closed by :meth:`close`.
    """

    def __init__(
        self,
        config: MediaIngestConfig | None = None,
        on_images_upload: UrlsCallback | None = None,
        on_videos_upload: UrlsCallback | None = None,
        transport: Any | None = None,
    ) -> None:
        self._config = config or MediaIngestConfig()
        self._callbacks: dict[MediaType, UrlsCallback | None] = {
            MediaType.IMAGE: on_images_upload,
            MediaType.VIDEO: on_videos_upload,
        }
        self._transport = transport
        self._owns_transport = False
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._state = CollectionState()
        self._events: list[Event] = []
        self._hydrated = False
        self._closed = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def events(self) -> tuple[Event, ...]:
        """Every event applied so far, oldest first."""
        return tuple(self._events)

    @property
    def closed(self) -> bool:
        return self._closed

    def images(self) -> list[str]:
        return self._state.urls(MediaType.IMAGE)

    def videos(self) -> list[str]:
        return self._state.urls(MediaType.VIDEO)

    def items(self) -> list[MediaItem]:
        """All images, then all videos."""
        return self._state.items()

    def carousel(self) -> list[MediaItem]:
        """Images and videos interleaved by insertion order."""
        return self._state.carousel()

    def remaining(self, media_type: MediaType) -> int:
        """How many more items of *media_type* the collection accepts."""
        used = len(self._state.combined(media_type))
        return max(self._config.max_items(media_type) - used, 0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Media collection is closed")

    def _apply(self, event: Event) -> Transition:
        transition = reduce(self._state, event, self._config)
        self._state = transition.state
        self._events.append(event)

        for media_type in (MediaType.IMAGE, MediaType.VIDEO):
            self._metrics.gauge(
                "mediaingest.collection_size",
                len(self._state.combined(media_type)),
                tags={"media_type": media_type.value},
            )
            if media_type not in transition.changed:
                continue
            callback = self._callbacks[media_type]
            if callback is not None:
                callback(self._state.urls(media_type))

        log.debug(
            "Collection updated",
            extra={
                "extra_fields": {
                    "op": type(event).__name__,
                    "changed": sorted(t.value for t in transition.changed),
                    "images": len(self._state.combined(MediaType.IMAGE)),
                    "videos": len(self._state.combined(MediaType.VIDEO)),
                }
            },
        )
        return transition

    def _get_transport(self) -> Any:
        if self._transport is None:
            self._transport = AsyncUploadTransport(self._config)
            self._owns_transport = True
        return self._transport

    def _reject(self, notice_list: list[Notice], error: MediaIngestError, subject: str) -> None:
        reason = str(getattr(error.code, "value", error.code))
        self._metrics.increment("mediaingest.references_rejected_total", tags={"reason": reason})
        log.info(
            "Reference rejected",
            extra={"extra_fields": {"op": "classify", "reference": subject, "reason": reason}},
        )
        notice_list.append(notices.rejected(error, subject=subject))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def hydrate(self, images: Iterable[object], videos: Iterable[object] = ()) -> list[Notice]:
        """Load persisted ``images``/``videos`` into the empty collection.

        Storage-hosted URLs count as uploads, everything else as pasted.
        Temporary or relative entries are dropped with a warning.  Both
        callbacks fire once.

        Raises
        ------
        RuntimeError
            If the collection was already hydrated or has been mutated.
        """
        self._check_open()
        if self._hydrated or self._events:
            raise RuntimeError("Media collection can only be hydrated once, before any change")
        self._hydrated = True
        transition = self._apply(Hydrated(images=tuple(images), videos=tuple(videos)))
        return list(transition.notices)

    def add_urls(self, raw_urls: Iterable[str]) -> list[Notice]:
        """Classify, normalize and admit pasted URLs.

        Rejected text produces one error notice each and leaves the
        collection untouched.  Each changed media type triggers its callback
        once for the whole call.
        """
        self._check_open()
        found: list[Notice] = []
        accepted: dict[MediaType, list[str]] = {MediaType.IMAGE: [], MediaType.VIDEO: []}

        for raw in raw_urls:
            classification = classify_reference(PastedUrl(raw), self._config)
            if classification.rejected or classification.url is None:
                self._reject(found, rejection_error(classification), classification.label)
                continue
            media_type = classification.media_type or MediaType.IMAGE
            accepted[media_type].append(normalize_url(classification.url))

        for media_type in (MediaType.IMAGE, MediaType.VIDEO):
            if accepted[media_type]:
                transition = self._apply(UrlsAdded(media_type, tuple(accepted[media_type])))
                found.extend(transition.notices)
        return found

    def add_url(self, raw: str) -> list[Notice]:
        """Single-URL form of :meth:`add_urls`."""
        return self.add_urls([raw])

    def settle_uploads(self, batch: BatchResult) -> list[Notice]:
        """Apply the successful URLs of a settled batch.

        Results are discarded when the collection has been closed.
        """
        if self._closed:
            log.info(
                "Discarding upload results for closed collection",
                extra={"extra_fields": {"op": "settle_uploads", "count": len(batch.successes)}},
            )
            return []
        found: list[Notice] = []
        for media_type in (MediaType.IMAGE, MediaType.VIDEO):
            urls = batch.urls(media_type)
            if urls:
                transition = self._apply(UploadSettled(media_type, tuple(urls)))
                found.extend(transition.notices)
        return found

    async def upload_files(self, files: Sequence[LocalFile]) -> BatchResult:
        """Upload *files* and admit the results.

        Files that pass validation but exceed the remaining capacity of
        their media type are not uploaded; they are reported by one capacity
        notice per type.  Files that fail validation take no room.  The
        callbacks fire once, after the whole batch has settled.

        Returns
        -------
        BatchResult
            Outcomes of the uploaded files (``index`` refers to *files*)
            and every notice of the operation.
        """
        self._check_open()
        room = {t: self.remaining(t) for t in (MediaType.IMAGE, MediaType.VIDEO)}
        over = {MediaType.IMAGE: 0, MediaType.VIDEO: 0}
        selected: list[tuple[int, LocalFile]] = []

        for index, file in enumerate(files):
            classification = classify_file(file, self._config)
            media_type = classification.media_type
            if media_type is not None and _passes_validation(file, media_type, self._config):
                if room[media_type] <= 0:
                    over[media_type] += 1
                    continue
                room[media_type] -= 1
            selected.append((index, file))

        capacity_notices = [
            notices.capacity_exceeded(t, self._config.max_items(t), count)
            for t, count in over.items()
            if count
        ]

        batch = await async_upload_batch(
            self._get_transport(),
            [file for _, file in selected],
            self._config,
            should_discard=lambda: self._closed,
            selected=len(files),
        )
        for outcome in batch.outcomes:
            outcome.index = selected[outcome.index][0]
        batch.notices[:0] = capacity_notices

        batch.notices.extend(self.settle_uploads(batch))
        return batch

    def remove(self, media_type: MediaType, index: int) -> list[Notice]:
        """Remove the item at *index* of the combined sequence of a type.

        Raises
        ------
        IndexError
            If *index* is out of range.
        """
        self._check_open()
        return list(self._apply(ItemRemoved(media_type, index)).notices)

    # ------------------------------------------------------------------
    # Checks & submission
    # ------------------------------------------------------------------

    async def check_pasted_images(self) -> list[Notice]:
        """Probe pasted image URLs with ``HEAD`` requests.

        Only runs when ``config.verify_pasted_urls`` is enabled.  Returns a
        warning for every URL that is unreachable or does not serve an
        image; the collection itself is not changed.
        """
        if not self._config.verify_pasted_urls:
            return []
        transport = self._get_transport()
        urls = [item.url for item in self._state.pasted(MediaType.IMAGE)]
        results = await asyncio.gather(*(transport.probe(url) for url in urls))

        found: list[Notice] = []
        for url, content_type in zip(urls, results):
            if content_type is None:
                found.append(notices.unreachable_url(url, "the link could not be reached"))
            elif not content_type.lower().startswith("image/"):
                shown = content_type.split(";")[0] or "unknown content"
                found.append(notices.unreachable_url(url, f"the link serves {shown}, not an image"))
        return found

    def submit(self) -> SubmissionResult:
        """Validate the collection for persistence.

        Raises
        ------
        MissingImageError
            If no valid image remains; the submit action must be blocked.
        """
        result = validate_submission(self.images(), self.videos())
        log.info(
            "Collection submitted",
            extra={
                "extra_fields": {
                    "op": "submit",
                    "images": len(result.media.images),
                    "videos": len(result.media.videos),
                    "dropped": len(result.notices),
                }
            },
        )
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the collection.  Upload results arriving later are discarded."""
        if self._closed:
            return
        self._closed = True
        if self._owns_transport and self._transport is not None:
            await self._transport.close()

    async def __aenter__(self) -> MediaCollectionBuilder:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
