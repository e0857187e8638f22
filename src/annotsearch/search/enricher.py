"""Bookmark and tag enrichment of search results."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from annotsearch.core.logging import get_logger
from annotsearch.search.types import Annotation

if TYPE_CHECKING:
    from annotsearch.store.protocol import DocumentStore

logger = get_logger(__name__)


class ResultEnricher:
    """Attaches bookmark status and tags to annotations.

    Bookmarks are applied first so that tags are only fetched for
    annotations that survive the bookmarks-only filter.
    """

    def __init__(self, store: DocumentStore) -> None:
        """Initialize the enricher.

        Args:
            store: Document store to query.
        """
        self._store = store

    async def enrich(
        self,
        annotations: Sequence[Annotation],
        *,
        bookmarks_only: bool = False,
    ) -> list[Annotation]:
        """Apply bookmark status then tags to annotations.

        Args:
            annotations: Deduplicated search results.
            bookmarks_only: Keep only annotations that are bookmarked.

        Returns:
            Enriched copies of the surviving annotations, in input order.
        """
        bookmarked = await self.apply_bookmarks(annotations, bookmarks_only=bookmarks_only)
        return await self.attach_tags(bookmarked)

    async def apply_bookmarks(
        self,
        annotations: Sequence[Annotation],
        *,
        bookmarks_only: bool = False,
    ) -> list[Annotation]:
        """Filter by and flag bookmarks.

        Bookmark records are looked up for the annotation urls. The
        bookmarks-only filter tests each annotation's own url, while the
        ``has_bookmark`` flag reports whether the annotation's page url is
        among the bookmarked urls.

        Args:
            annotations: Annotations to process.
            bookmarks_only: Keep only annotations whose own url is bookmarked.

        Returns:
            Copies of the surviving annotations with ``has_bookmark`` set.
        """
        bookmarks = await self._store.find_bookmarks([annotation.url for annotation in annotations])
        bookmarked_urls = {bookmark.url for bookmark in bookmarks}

        if bookmarks_only:
            annotations = [a for a in annotations if a.url in bookmarked_urls]

        return [
            annotation.model_copy(update={"has_bookmark": annotation.page_url in bookmarked_urls})
            for annotation in annotations
        ]

    async def attach_tags(self, annotations: Sequence[Annotation]) -> list[Annotation]:
        """Replace each annotation's tags with those stored for its url."""
        tag_lists = await asyncio.gather(
            *(self._store.find_tags_for_url(annotation.url) for annotation in annotations)
        )
        logger.debug("tags_attached", annotations=len(annotations))

        return [
            annotation.model_copy(update={"tags": tuple(tags)})
            for annotation, tags in zip(annotations, tag_lists, strict=True)
        ]
