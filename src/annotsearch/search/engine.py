"""Search engine orchestrating filter resolution, term search and enrichment."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from annotsearch.config.settings import Settings, get_settings
from annotsearch.core.logging import LogContext, get_logger, log_exception
from annotsearch.search.enricher import ResultEnricher
from annotsearch.search.filters import FilterResolver
from annotsearch.search.grouping import group_by_page, project_annotations
from annotsearch.search.terms import DirectLinkPredicate, TermSearcher, url_prefix_predicate
from annotsearch.search.types import AnnotationResult, Page, SearchParams
from annotsearch.utils.exceptions import SearchError

if TYPE_CHECKING:
    from annotsearch.store.protocol import DocumentStore, PageLookup

logger = get_logger(__name__)


class AnnotationSearchEngine:
    """Engine for searching annotations in a document store.

    A search runs in stages: filter names are resolved to url sets, an
    inclusion filter that matched nothing ends the search with no results,
    terms are searched per field, results are flagged for bookmarks and
    tagged, and finally either grouped by page or projected to their public
    shape. Store errors are logged and re-raised unchanged.

    Usage:
        engine = AnnotationSearchEngine(store)

        results = await engine.search(SearchParams(terms=["rust"], domains_exc=["spam.com"]))

        pages = await engine.search(
            SearchParams(terms=["rust"], include_page_results=True),
            page_lookup=lookup,
        )
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings | None = None,
        is_direct_link: DirectLinkPredicate | None = None,
    ) -> None:
        """Initialize the search engine.

        Args:
            store: Document store to search.
            settings: Settings with search defaults (default: global settings).
            is_direct_link: Direct-link classifier (default: prefix match
                against ``settings.direct_link_providers``).
        """
        self._settings = settings or get_settings()
        self._store = store
        self._resolver = FilterResolver(store)
        self._term_searcher = TermSearcher(
            store,
            is_direct_link=is_direct_link
            or url_prefix_predicate(self._settings.direct_link_providers),
            max_concurrent_queries=self._settings.max_concurrent_queries,
        )
        self._enricher = ResultEnricher(store)

    async def search(
        self,
        params: SearchParams,
        page_lookup: PageLookup | None = None,
    ) -> list[AnnotationResult] | list[Page]:
        """Search annotations.

        Args:
            params: Search parameters.
            page_lookup: Resolves page urls to pages. Required when
                ``params.include_page_results`` is set.

        Returns:
            Pages carrying their annotations when page results are requested,
            otherwise annotation results.

        Raises:
            SearchError: If page results are requested without a page lookup.
            Exception: Any error raised by the store, unchanged.
        """
        if params.include_page_results and page_lookup is None:
            raise SearchError("A page lookup is required for page-grouped results")

        params = params.with_defaults(
            limit=self._settings.default_limit,
            max_annots_per_page=self._settings.max_annots_per_page,
            now=datetime.now(UTC),
        )

        with LogContext(search_id=str(uuid4())):
            logger.info(
                "search_started",
                terms=len(params.terms),
                limit=params.limit,
                page_results=params.include_page_results,
            )
            try:
                results = await self._run(params, page_lookup)
            except Exception as exc:
                log_exception(logger, exc, stage="search")
                raise

            logger.info("search_completed", results=len(results))
            return results

    async def _run(
        self,
        params: SearchParams,
        page_lookup: PageLookup | None,
    ) -> list[AnnotationResult] | list[Page]:
        filters = await self._resolver.resolve(params)
        if filters.is_unsatisfiable:
            logger.info("search_short_circuited", reason="inclusion_filter_matched_nothing")
            return []

        annotations = await self._term_searcher.search(params, filters.constraints())
        annotations = await self._enricher.enrich(annotations, bookmarks_only=params.bookmarks_only)

        if params.include_page_results and page_lookup is not None:
            return await group_by_page(annotations, params.max_annots_per_page, page_lookup)

        return project_annotations(annotations)
