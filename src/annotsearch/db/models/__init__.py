"""Database models for annotsearch."""

from .annotations import (
    AnnotationModel,
    BookmarkModel,
    CollectionModel,
    ListEntryModel,
    PageModel,
    TagModel,
)
from .base import Base, EpochMillis, PortableJSON, from_epoch_ms, to_epoch_ms

__all__ = [
    "AnnotationModel",
    "Base",
    "BookmarkModel",
    "CollectionModel",
    "EpochMillis",
    "ListEntryModel",
    "PageModel",
    "PortableJSON",
    "TagModel",
    "from_epoch_ms",
    "to_epoch_ms",
]
