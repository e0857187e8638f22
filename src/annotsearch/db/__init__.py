"""SQL storage for annotations, pages, tags, collections and bookmarks."""

from annotsearch.db.config import (
    create_engine,
    create_schema,
    create_session_factory,
    drop_schema,
    get_async_session,
)
from annotsearch.db.models import EpochMillis, from_epoch_ms, to_epoch_ms
from annotsearch.db.store import SqlDocumentStore, SqlPageLookup

__all__ = [
    "EpochMillis",
    "SqlDocumentStore",
    "SqlPageLookup",
    "create_engine",
    "create_schema",
    "create_session_factory",
    "drop_schema",
    "from_epoch_ms",
    "get_async_session",
    "to_epoch_ms",
]
