"""Annotation search: filter resolution, term search, enrichment and grouping."""

from annotsearch.search.engine import AnnotationSearchEngine
from annotsearch.search.enricher import ResultEnricher
from annotsearch.search.filters import (
    UNCONSTRAINED,
    FilterMatch,
    FilterResolver,
    Matched,
    Unconstrained,
    UrlConstraints,
    UrlFilterSet,
)
from annotsearch.search.grouping import group_by_page, project_annotations
from annotsearch.search.terms import (
    DirectLinkPredicate,
    TermSearcher,
    unique_by_url,
    url_prefix_predicate,
)
from annotsearch.search.types import (
    Annotation,
    AnnotationQuery,
    AnnotationResult,
    BookmarkRecord,
    CollectionRecord,
    ListEntryRecord,
    Page,
    SearchField,
    SearchParams,
)

__all__ = [
    "UNCONSTRAINED",
    "Annotation",
    "AnnotationQuery",
    "AnnotationResult",
    "AnnotationSearchEngine",
    "BookmarkRecord",
    "CollectionRecord",
    "DirectLinkPredicate",
    "FilterMatch",
    "FilterResolver",
    "ListEntryRecord",
    "Matched",
    "Page",
    "ResultEnricher",
    "SearchField",
    "SearchParams",
    "TermSearcher",
    "Unconstrained",
    "UrlConstraints",
    "UrlFilterSet",
    "group_by_page",
    "project_annotations",
    "unique_by_url",
    "url_prefix_predicate",
]
