"""URL filter resolution and combination.

Collection, tag and domain names are resolved against the document store
into sets of urls, then combined into the url constraints applied to every
term query. Each filter dimension is either unconstrained (no names given)
or matched to a set of urls, which may be empty.

Tag filters constrain an annotation's own url. Domain and collection
filters constrain the url of the page the annotation sits on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from annotsearch.core.logging import get_logger
from annotsearch.search.types import SearchParams

if TYPE_CHECKING:
    from annotsearch.store.protocol import DocumentStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Unconstrained:
    """No names were given for a filter dimension."""


@dataclass(frozen=True)
class Matched:
    """Names were given and resolved to these urls."""

    urls: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.urls


FilterMatch = Unconstrained | Matched

UNCONSTRAINED = Unconstrained()


@dataclass(frozen=True)
class UrlConstraints:
    """Url constraints for a store query. ``None`` means no constraint."""

    url_in: frozenset[str] | None = None
    url_not_in: frozenset[str] | None = None
    page_url_in: frozenset[str] | None = None
    page_url_not_in: frozenset[str] | None = None


@dataclass(frozen=True)
class UrlFilterSet:
    """Resolved url filters for one search."""

    collections_inc: FilterMatch = UNCONSTRAINED
    domains_inc: FilterMatch = UNCONSTRAINED
    domains_exc: FilterMatch = UNCONSTRAINED
    tags_inc: FilterMatch = UNCONSTRAINED
    tags_exc: FilterMatch = UNCONSTRAINED

    @property
    def is_unsatisfiable(self) -> bool:
        """Whether an inclusion filter was given but matched nothing."""
        return any(
            isinstance(dimension, Matched) and dimension.is_empty
            for dimension in (self.collections_inc, self.tags_inc, self.domains_inc)
        )

    def constraints(self) -> UrlConstraints:
        """Combine the filters into url constraints for term queries.

        Page inclusion is the intersection of the domain and collection
        matches when both are given. Empty exclusion sets are dropped.
        """
        page_url_in: frozenset[str] | None = None
        for dimension in (self.collections_inc, self.domains_inc):
            match dimension:
                case Matched(urls=urls):
                    page_url_in = urls if page_url_in is None else page_url_in & urls
                case Unconstrained():
                    pass

        return UrlConstraints(
            url_in=_inclusion(self.tags_inc),
            url_not_in=_exclusion(self.tags_exc),
            page_url_in=page_url_in,
            page_url_not_in=_exclusion(self.domains_exc),
        )


def _inclusion(dimension: FilterMatch) -> frozenset[str] | None:
    match dimension:
        case Matched(urls=urls):
            return urls
        case _:
            return None


def _exclusion(dimension: FilterMatch) -> frozenset[str] | None:
    match dimension:
        case Matched(urls=urls) if urls:
            return urls
        case _:
            return None


class FilterResolver:
    """Resolves collection, tag and domain names to sets of urls."""

    def __init__(self, store: DocumentStore) -> None:
        """Initialize the resolver.

        Args:
            store: Document store to query.
        """
        self._store = store

    async def resolve_collections(self, names: Sequence[str]) -> FilterMatch:
        """Resolve collection names to the urls of their members."""
        if not names:
            return UNCONSTRAINED

        collections = await self._store.find_collections_by_name(names)
        entries = await self._store.find_list_entries_by_collection_ids(
            [collection.id for collection in collections]
        )
        return Matched(frozenset(entry.url for entry in entries))

    async def resolve_tags(self, names: Sequence[str]) -> FilterMatch:
        """Resolve tag names to the urls carrying any of them."""
        if not names:
            return UNCONSTRAINED

        owners = await self._store.find_tag_owners(names)
        return Matched(frozenset(url for _, url in owners))

    async def resolve_domains(self, domains: Sequence[str]) -> FilterMatch:
        """Resolve hostnames or domains to the urls of pages on them."""
        if not domains:
            return UNCONSTRAINED

        page_urls = await self._store.find_pages_by_hostname_or_domain(domains)
        return Matched(frozenset(page_urls))

    async def resolve(self, params: SearchParams) -> UrlFilterSet:
        """Resolve every filter dimension of a search concurrently.

        Args:
            params: Search parameters carrying the filter names.

        Returns:
            The resolved filter set.
        """
        collections_inc, tags_inc, tags_exc, domains_inc, domains_exc = await asyncio.gather(
            self.resolve_collections(params.collections),
            self.resolve_tags(params.tags_inc),
            self.resolve_tags(params.tags_exc),
            self.resolve_domains(params.domains_inc),
            self.resolve_domains(params.domains_exc),
        )

        filters = UrlFilterSet(
            collections_inc=collections_inc,
            domains_inc=domains_inc,
            domains_exc=domains_exc,
            tags_inc=tags_inc,
            tags_exc=tags_exc,
        )
        logger.debug(
            "filters_resolved",
            collections_inc=_describe(collections_inc),
            tags_inc=_describe(tags_inc),
            tags_exc=_describe(tags_exc),
            domains_inc=_describe(domains_inc),
            domains_exc=_describe(domains_exc),
        )
        return filters


def _describe(dimension: FilterMatch) -> int | None:
    # url count for logs, None when unconstrained
    return len(dimension.urls) if isinstance(dimension, Matched) else None
