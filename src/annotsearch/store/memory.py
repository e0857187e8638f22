"""In-memory document store.

Holds annotations, pages, tags, collections and bookmarks in plain
containers and answers the search engine's queries over them. Useful for
tests and for embedding small annotation sets without a database.
"""

from collections.abc import Sequence
from datetime import datetime

from annotsearch.search.types import (
    Annotation,
    AnnotationQuery,
    BookmarkRecord,
    CollectionRecord,
    ListEntryRecord,
    Page,
    SearchField,
)


class InMemoryDocumentStore:
    """Document store backed by in-process lists and dicts.

    Annotations are returned in insertion order. Term matching is a
    case-insensitive substring test on the queried field.

    Example:
        store = InMemoryDocumentStore()
        store.add_page(Page(url="https://example.com/a", hostname="example.com"))
        store.add_annotation(annotation)
        store.add_tag("rust", annotation.url)
    """

    def __init__(self) -> None:
        self._annotations: dict[str, Annotation] = {}
        self._pages: dict[str, Page] = {}
        self._collections: list[CollectionRecord] = []
        self._list_entries: list[ListEntryRecord] = []
        self._tags: list[tuple[str, str]] = []
        self._bookmarks: dict[str, BookmarkRecord] = {}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_annotation(self, annotation: Annotation) -> None:
        """Add or replace an annotation."""
        self._annotations[annotation.url] = annotation

    def add_page(self, page: Page) -> None:
        """Add or replace a page."""
        self._pages[page.url] = page

    def add_collection(self, name: str, urls: Sequence[str] = ()) -> CollectionRecord:
        """Create a collection and add urls to it.

        Args:
            name: Collection name.
            urls: Member urls.

        Returns:
            The new collection record.
        """
        collection = CollectionRecord(id=len(self._collections) + 1, name=name)
        self._collections.append(collection)
        for url in urls:
            self.add_to_collection(collection.id, url)
        return collection

    def add_to_collection(self, collection_id: int, url: str) -> None:
        """Add a url to an existing collection."""
        self._list_entries.append(ListEntryRecord(list_id=collection_id, url=url))

    def add_tag(self, name: str, url: str) -> None:
        """Tag a url. Tagging the same url twice with a name is a no-op."""
        if (name, url) not in self._tags:
            self._tags.append((name, url))

    def add_bookmark(self, url: str, created_when: datetime | None = None) -> None:
        """Bookmark a url."""
        self._bookmarks[url] = BookmarkRecord(url=url, created_when=created_when)

    def get_page(self, url: str) -> Page | None:
        """Get a page by url."""
        return self._pages.get(url)

    # -------------------------------------------------------------------------
    # DocumentStore
    # -------------------------------------------------------------------------

    async def find_collections_by_name(self, names: Sequence[str]) -> list[CollectionRecord]:
        wanted = set(names)
        return [c for c in self._collections if c.name in wanted]

    async def find_list_entries_by_collection_ids(
        self, collection_ids: Sequence[int]
    ) -> list[ListEntryRecord]:
        wanted = set(collection_ids)
        return [e for e in self._list_entries if e.list_id in wanted]

    async def find_tag_owners(self, tag_names: Sequence[str]) -> list[tuple[str, str]]:
        wanted = set(tag_names)
        return [(name, url) for name, url in self._tags if name in wanted]

    async def find_pages_by_hostname_or_domain(self, domains: Sequence[str]) -> list[str]:
        wanted = set(domains)
        return [
            page.url
            for page in self._pages.values()
            if page.hostname in wanted or page.domain in wanted
        ]

    async def find_annotations(self, query: AnnotationQuery) -> list[Annotation]:
        matches = [a for a in self._annotations.values() if _matches(query, a)]
        return matches[: max(query.limit, 0)]

    async def find_bookmarks(self, urls: Sequence[str]) -> list[BookmarkRecord]:
        return [self._bookmarks[url] for url in dict.fromkeys(urls) if url in self._bookmarks]

    async def find_tags_for_url(self, url: str) -> list[str]:
        return [name for name, tagged_url in self._tags if tagged_url == url]


class InMemoryPageLookup:
    """Page lookup over the pages of an :class:`InMemoryDocumentStore`.

    Pages are returned in the order their urls are requested.
    """

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store

    async def __call__(self, urls: list[str]) -> list[Page]:
        pages = (self._store.get_page(url) for url in urls)
        return [page.model_copy(deep=True) for page in pages if page is not None]


def _matches(query: AnnotationQuery, annotation: Annotation) -> bool:
    text = annotation.body if query.field == SearchField.BODY else annotation.comment
    if not text or query.term.lower() not in text.lower():
        return False

    if not query.start_date <= annotation.created_when <= query.end_date:
        return False

    if query.url_in is not None and annotation.url not in query.url_in:
        return False
    if query.url_not_in is not None and annotation.url in query.url_not_in:
        return False
    if query.page_url_in is not None and annotation.page_url not in query.page_url_in:
        return False
    if query.page_url_not_in is not None and annotation.page_url in query.page_url_not_in:
        return False

    return query.page_url is None or annotation.page_url == query.page_url
