"""Immutable collection state and its reducer.

A media collection is four ordered sub-lists: uploaded and pasted items for
each media type.  The combined sequence of a type is always
``uploaded ++ pasted``, and no two items of a type share a normalized URL.

All mutation goes through :func:`reduce`, a pure function from
``(state, event)`` to a :class:`Transition` carrying the new state, the
notices produced, and the set of media types whose URL list changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Union

from mediaingest import notices
from mediaingest.config import MediaIngestConfig
from mediaingest.models import MediaItem, MediaType, Notice, Provenance
from mediaingest.observability import get_logger
from mediaingest.reference.normalize import dedup_key, normalize_url
from mediaingest.reference.providers import host_matches, split_url
from mediaingest.reference.thumbnail import video_thumbnail
from mediaingest.validate import is_persistable_url

log = get_logger("mediaingest.collection")


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CollectionState:
    """Snapshot of a media collection.

    Attributes
    ----------
    uploaded_images / pasted_images / uploaded_videos / pasted_videos:
        The four sub-lists, each in insertion order.
    next_sequence:
        Insertion counter handed to the next admitted item.
    """

    uploaded_images: tuple[MediaItem, ...] = ()
    pasted_images: tuple[MediaItem, ...] = ()
    uploaded_videos: tuple[MediaItem, ...] = ()
    pasted_videos: tuple[MediaItem, ...] = ()
    next_sequence: int = 0

    def uploaded(self, media_type: MediaType) -> tuple[MediaItem, ...]:
        if media_type == MediaType.VIDEO:
            return self.uploaded_videos
        return self.uploaded_images

    def pasted(self, media_type: MediaType) -> tuple[MediaItem, ...]:
        if media_type == MediaType.VIDEO:
            return self.pasted_videos
        return self.pasted_images

    def combined(self, media_type: MediaType) -> tuple[MediaItem, ...]:
        """The display sequence of one type: uploaded items, then pasted."""
        return self.uploaded(media_type) + self.pasted(media_type)

    def urls(self, media_type: MediaType) -> list[str]:
        return [item.url for item in self.combined(media_type)]

    def items(self) -> list[MediaItem]:
        """All images, then all videos."""
        return list(self.combined(MediaType.IMAGE) + self.combined(MediaType.VIDEO))

    def carousel(self) -> list[MediaItem]:
        """Images and videos interleaved by insertion order."""
        return sorted(self.items(), key=lambda item: item.sequence)

    def with_lists(
        self,
        media_type: MediaType,
        uploaded: tuple[MediaItem, ...],
        pasted: tuple[MediaItem, ...],
        next_sequence: int | None = None,
    ) -> CollectionState:
        seq = self.next_sequence if next_sequence is None else next_sequence
        if media_type == MediaType.VIDEO:
            return replace(self, uploaded_videos=uploaded, pasted_videos=pasted, next_sequence=seq)
        return replace(self, uploaded_images=uploaded, pasted_images=pasted, next_sequence=seq)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Hydrated:
    """Persisted ``images``/``videos`` loaded into an empty collection."""

    images: tuple[object, ...] = ()
    videos: tuple[object, ...] = ()


@dataclass(frozen=True)
class UploadSettled:
    """Canonical URLs returned by the storage provider for one type."""

    media_type: MediaType
    urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class UrlsAdded:
    """Accepted pasted URLs of one type."""

    media_type: MediaType
    urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemRemoved:
    """Removal by position in the combined sequence of a type."""

    media_type: MediaType
    index: int


Event = Union[Hydrated, UploadSettled, UrlsAdded, ItemRemoved]


@dataclass(frozen=True)
class Transition:
    """Result of applying one event."""

    state: CollectionState
    notices: tuple[Notice, ...] = ()
    changed: frozenset[MediaType] = field(default_factory=frozenset)


# ---------------------------------------------------------------------------
# Reducer helpers
# ---------------------------------------------------------------------------

def _make_item(
    url: str,
    media_type: MediaType,
    provenance: Provenance,
    sequence: int,
    config: MediaIngestConfig,
) -> MediaItem:
    thumbnail = video_thumbnail(url, config) if media_type == MediaType.VIDEO else None
    return MediaItem(
        url=url,
        type=media_type,
        thumbnail=thumbnail,
        provenance=provenance,
        sequence=sequence,
    )


def _dedupe(
    uploaded: tuple[MediaItem, ...],
    pasted: tuple[MediaItem, ...],
) -> tuple[tuple[MediaItem, ...], tuple[MediaItem, ...]]:
    """Drop later duplicates across ``uploaded ++ pasted``; first one wins."""
    seen: set[str] = set()

    def keep(items: tuple[MediaItem, ...]) -> tuple[MediaItem, ...]:
        kept = []
        for item in items:
            key = dedup_key(item.url)
            if key in seen:
                log.debug(
                    "Duplicate suppressed",
                    extra={"extra_fields": {"op": "dedupe", "url": item.url}},
                )
                continue
            seen.add(key)
            kept.append(item)
        return tuple(kept)

    return keep(uploaded), keep(pasted)


def _admit(
    state: CollectionState,
    media_type: MediaType,
    provenance: Provenance,
    urls: tuple[str, ...],
    config: MediaIngestConfig,
) -> tuple[CollectionState, list[Notice], int]:
    """Append *urls* to one sub-list, skipping duplicates and honoring the
    ceiling.  Returns the new state, notices and the number admitted."""
    limit = config.max_items(media_type)
    uploaded = list(state.uploaded(media_type))
    pasted = list(state.pasted(media_type))
    target = uploaded if provenance == Provenance.UPLOADED else pasted
    seen = {dedup_key(item.url) for item in uploaded + pasted}
    sequence = state.next_sequence
    admitted = 0
    over = 0

    for url in urls:
        canonical = normalize_url(url)
        key = dedup_key(canonical)
        if key in seen:
            log.debug(
                "Duplicate suppressed",
                extra={"extra_fields": {"op": "admit", "url": canonical, "media_type": media_type.value}},
            )
            continue
        if len(uploaded) + len(pasted) >= limit:
            over += 1
            continue
        seen.add(key)
        target.append(_make_item(canonical, media_type, provenance, sequence, config))
        sequence += 1
        admitted += 1

    found: list[Notice] = []
    if over:
        found.append(notices.capacity_exceeded(media_type, limit, over))
        log.warning(
            "Capacity exceeded",
            extra={
                "extra_fields": {
                    "op": "admit",
                    "media_type": media_type.value,
                    "limit": limit,
                    "rejected": over,
                }
            },
        )

    new_uploaded, new_pasted = _dedupe(tuple(uploaded), tuple(pasted))
    return state.with_lists(media_type, new_uploaded, new_pasted, sequence), found, admitted


def _is_storage_hosted(url: str, config: MediaIngestConfig) -> bool:
    parts = split_url(url)
    return parts is not None and host_matches(parts.host, (config.storage_media_host.lower(),))


def _hydratable(entry: object) -> bool:
    """Persisted entries must be absolute web URLs; temporary references
    (``blob:``, ``data:``) and relative paths are dropped."""
    if not isinstance(entry, str):
        return False
    if not entry.strip().lower().startswith(("http://", "https://")):
        return False
    return is_persistable_url(normalize_url(entry))


def _hydrate(event: Hydrated, config: MediaIngestConfig) -> Transition:
    state = CollectionState()
    found: list[Notice] = []
    for media_type, entries in (
        (MediaType.IMAGE, event.images),
        (MediaType.VIDEO, event.videos),
    ):
        uploaded: list[str] = []
        pasted: list[str] = []
        for entry in entries:
            if not _hydratable(entry):
                found.append(notices.dropped_reference(entry, media_type))
                continue
            (uploaded if _is_storage_hosted(entry, config) else pasted).append(entry)

        state, admitted_notices, _ = _admit(
            state, media_type, Provenance.UPLOADED, tuple(uploaded), config,
        )
        found.extend(admitted_notices)
        state, admitted_notices, _ = _admit(
            state, media_type, Provenance.PASTED, tuple(pasted), config,
        )
        found.extend(admitted_notices)

    return Transition(
        state=state,
        notices=tuple(found),
        changed=frozenset({MediaType.IMAGE, MediaType.VIDEO}),
    )


def _remove(state: CollectionState, event: ItemRemoved) -> Transition:
    media_type = event.media_type
    uploaded = state.uploaded(media_type)
    pasted = state.pasted(media_type)
    total = len(uploaded) + len(pasted)
    if not 0 <= event.index < total:
        raise IndexError(
            f"{media_type.value} index {event.index} out of range "
            f"(collection holds {total})"
        )

    if event.index < len(uploaded):
        removed = uploaded[event.index]
        uploaded = uploaded[:event.index] + uploaded[event.index + 1:]
    else:
        offset = event.index - len(uploaded)
        removed = pasted[offset]
        pasted = pasted[:offset] + pasted[offset + 1:]

    return Transition(
        state=state.with_lists(media_type, uploaded, pasted),
        notices=(notices.item_removed(media_type, removed.url),),
        changed=frozenset({media_type}),
    )


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def reduce(
    state: CollectionState,
    event: Event,
    config: MediaIngestConfig,
) -> Transition:
    """Apply *event* to *state*.

    Parameters
    ----------
    state:
        The current snapshot; never modified.
    event:
        One of :class:`Hydrated`, :class:`UploadSettled`, :class:`UrlsAdded`
        or :class:`ItemRemoved`.
    config:
        Supplies the per-type ceilings, the storage host and the video
        placeholder.

    Returns
    -------
    Transition
        ``changed`` lists the media types whose URL list differs from
        before.  :class:`Hydrated` always reports both types.

    Raises
    ------
    IndexError
        If an :class:`ItemRemoved` index is outside the combined sequence.
    TypeError
        For an unknown event type.
    """
    if isinstance(event, Hydrated):
        return _hydrate(event, config)

    if isinstance(event, ItemRemoved):
        return _remove(state, event)

    if isinstance(event, UploadSettled):
        provenance = Provenance.UPLOADED
    elif isinstance(event, UrlsAdded):
        provenance = Provenance.PASTED
    else:
        raise TypeError(f"Unknown collection event: {type(event).__name__}")

    before = state.urls(event.media_type)
    new_state, found, admitted = _admit(
        state, event.media_type, provenance, tuple(event.urls), config,
    )
    if admitted and isinstance(event, UrlsAdded):
        found.append(notices.urls_added(event.media_type, admitted))

    changed = frozenset({event.media_type}) if new_state.urls(event.media_type) != before else frozenset()
    return Transition(state=new_state, notices=tuple(found), changed=changed)
