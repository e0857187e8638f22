"""Document store protocol for annotation search.

This module defines the read capabilities the search engine needs from the
store holding annotations, pages, tags, collections and bookmarks, plus the
page lookup callers hand to the engine for page-grouped results.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from annotsearch.search.types import (
    Annotation,
    AnnotationQuery,
    BookmarkRecord,
    CollectionRecord,
    ListEntryRecord,
    Page,
)


@runtime_checkable
class DocumentStore(Protocol):
    """Interface all document stores must implement.

    Implementations own query execution (collection scans, index lookups,
    text matching). Any failure should surface as an exception; the search
    engine does not recover from store errors.

    Example implementation:
        class DexieStore:
            async def find_bookmarks(self, urls: Sequence[str]) -> list[BookmarkRecord]:
                rows = await self._db.bookmarks.where("url").any_of(urls)
                return [BookmarkRecord(url=row["url"]) for row in rows]
            ...
    """

    async def find_collections_by_name(self, names: Sequence[str]) -> list[CollectionRecord]:
        """Find collections whose name is any of ``names``."""
        ...

    async def find_list_entries_by_collection_ids(
        self, collection_ids: Sequence[int]
    ) -> list[ListEntryRecord]:
        """Find membership entries of the given collections."""
        ...

    async def find_tag_owners(self, tag_names: Sequence[str]) -> list[tuple[str, str]]:
        """Find ``(tag_name, url)`` pairs for urls tagged with any of ``tag_names``."""
        ...

    async def find_pages_by_hostname_or_domain(self, domains: Sequence[str]) -> list[str]:
        """Find urls of pages whose hostname or domain is any of ``domains``."""
        ...

    async def find_annotations(self, query: AnnotationQuery) -> list[Annotation]:
        """Find annotations matching a single field query.

        The store applies every constraint on ``query`` and returns at most
        ``query.limit`` annotations in its own order.
        """
        ...

    async def find_bookmarks(self, urls: Sequence[str]) -> list[BookmarkRecord]:
        """Find bookmark records whose url is any of ``urls``."""
        ...

    async def find_tags_for_url(self, url: str) -> list[str]:
        """Find the names of tags attached to ``url``."""
        ...


@runtime_checkable
class PageLookup(Protocol):
    """Resolves page urls to pages. Supplied by the caller of a search.

    Urls with no matching page are simply absent from the returned list.
    """

    async def __call__(self, urls: list[str]) -> list[Page]: ...
