"""Per-term annotation search.

Each term is matched against the highlight body and the comment of
annotations with one store query per field. Results are merged body
first, deduplicated by url and truncated to the search limit, first per
term and then across all terms. Store order is preserved; no relevance
ranking is applied.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from annotsearch.core.logging import get_logger
from annotsearch.search.filters import UrlConstraints
from annotsearch.search.types import Annotation, AnnotationQuery, SearchField, SearchParams

if TYPE_CHECKING:
    from annotsearch.store.protocol import DocumentStore

logger = get_logger(__name__)

DirectLinkPredicate = Callable[[Annotation], bool]


def url_prefix_predicate(prefixes: Sequence[str]) -> DirectLinkPredicate:
    """Build a direct-link predicate matching annotation urls by prefix.

    This is a heuristic: any annotation whose url starts with the host of a
    direct-link provider is treated as a direct link.

    Args:
        prefixes: Url prefixes of direct-link providers.

    Returns:
        Predicate returning True for direct-link annotations.
    """
    prefix_tuple = tuple(prefixes)

    def is_direct_link(annotation: Annotation) -> bool:
        return bool(prefix_tuple) and annotation.url.startswith(prefix_tuple)

    return is_direct_link


def unique_by_url(annotations: Iterable[Annotation]) -> list[Annotation]:
    """Drop annotations whose url was already seen, keeping the first."""
    seen: set[str] = set()
    unique: list[Annotation] = []
    for annotation in annotations:
        if annotation.url in seen:
            continue
        seen.add(annotation.url)
        unique.append(annotation)
    return unique


class TermSearcher:
    """Runs term queries against the store and merges their results."""

    def __init__(
        self,
        store: DocumentStore,
        is_direct_link: DirectLinkPredicate,
        max_concurrent_queries: int = 10,
    ) -> None:
        """Initialize the term searcher.

        Args:
            store: Document store to query.
            is_direct_link: Classifies annotations created via direct links.
            max_concurrent_queries: Bound on in-flight store queries per search.
        """
        self._store = store
        self._is_direct_link = is_direct_link
        self._max_concurrent_queries = max_concurrent_queries

    def build_queries(
        self,
        term: str,
        params: SearchParams,
        constraints: UrlConstraints,
    ) -> list[AnnotationQuery]:
        """Build the field queries for a term.

        Args:
            term: Term to match.
            params: Search parameters with defaults applied.
            constraints: Combined url constraints.

        Returns:
            Body query (if highlights are included) followed by comment query
            (if notes are included).
        """
        fields: list[SearchField] = []
        if params.include_highlights:
            fields.append(SearchField.BODY)
        if params.include_notes:
            fields.append(SearchField.COMMENT)

        return [
            AnnotationQuery(
                field=field,
                term=term,
                start_date=params.start_date,
                end_date=params.end_date,
                url_in=constraints.url_in,
                url_not_in=constraints.url_not_in,
                page_url_in=constraints.page_url_in,
                page_url_not_in=constraints.page_url_not_in,
                page_url=params.url or None,
                limit=params.limit,
            )
            for field in fields
        ]

    async def search(
        self,
        params: SearchParams,
        constraints: UrlConstraints,
    ) -> list[Annotation]:
        """Search every term concurrently and merge the results.

        Args:
            params: Search parameters with defaults applied.
            constraints: Combined url constraints.

        Returns:
            Deduplicated annotations, at most ``params.limit`` of them.
        """
        if not params.terms:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrent_queries)
        per_term = await asyncio.gather(
            *(self._search_term(term, params, constraints, semaphore) for term in params.terms)
        )

        merged = unique_by_url(annotation for results in per_term for annotation in results)
        return merged[: params.limit]

    async def _search_term(
        self,
        term: str,
        params: SearchParams,
        constraints: UrlConstraints,
        semaphore: asyncio.Semaphore,
    ) -> list[Annotation]:
        queries = self.build_queries(term, params, constraints)
        field_results = await asyncio.gather(
            *(self._run_query(query, params.include_direct_links, semaphore) for query in queries)
        )

        results = unique_by_url(annotation for results in field_results for annotation in results)
        logger.debug("term_searched", term=term, fields=len(queries), results=len(results))
        return results[: params.limit]

    async def _run_query(
        self,
        query: AnnotationQuery,
        include_direct_links: bool,
        semaphore: asyncio.Semaphore,
    ) -> list[Annotation]:
        async with semaphore:
            results = await self._store.find_annotations(query)

        if include_direct_links:
            return results
        return [annotation for annotation in results if not self._is_direct_link(annotation)]
