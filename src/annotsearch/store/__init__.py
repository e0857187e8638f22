"""Document store interfaces and the in-memory implementation."""

from annotsearch.store.memory import InMemoryDocumentStore, InMemoryPageLookup
from annotsearch.store.protocol import DocumentStore, PageLookup

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "InMemoryPageLookup",
    "PageLookup",
]
