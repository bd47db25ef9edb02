"""Media collection: immutable state, reducer and the stateful builder."""

from .builder import MediaCollectionBuilder
from .state import (
    CollectionState,
    Hydrated,
    ItemRemoved,
    Transition,
    UploadSettled,
    UrlsAdded,
    reduce,
)

__all__ = [
    "CollectionState",
    "Hydrated",
    "ItemRemoved",
    "MediaCollectionBuilder",
    "Transition",
    "UploadSettled",
    "UrlsAdded",
    "reduce",
]
