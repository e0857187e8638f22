"""SQLAlchemy-backed document store.

Implements the search engine's store protocol over the tables in
:mod:`annotsearch.db.models`. Every call runs in its own session so that
concurrent queries from one search never share a connection.

Usage:
    engine = create_engine(settings)
    await create_schema(engine)
    store = SqlDocumentStore(create_session_factory(engine))

    results = await AnnotationSearchEngine(store).search(params)
"""

import time
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from annotsearch.core.logging import get_logger, log_database_query
from annotsearch.db.config import get_async_session
from annotsearch.db.models import (
    AnnotationModel,
    BookmarkModel,
    CollectionModel,
    ListEntryModel,
    PageModel,
    TagModel,
)
from annotsearch.search.types import (
    Annotation,
    AnnotationQuery,
    BookmarkRecord,
    CollectionRecord,
    ListEntryRecord,
    Page,
    SearchField,
)
from annotsearch.utils.exceptions import StoreError

logger = get_logger(__name__)


@asynccontextmanager
async def _query_session(
    session_factory: async_sessionmaker[AsyncSession],
    operation: str,
    table: str,
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session for one store query, logging its duration.

    Database errors are raised as :class:`StoreError` tagged with ``operation``.
    """
    started = time.perf_counter()
    try:
        async with get_async_session(session_factory) as session:
            yield session
    except SQLAlchemyError as exc:
        raise StoreError(str(exc), operation=operation) from exc
    finally:
        log_database_query(
            logger,
            query_type=operation,
            table=table,
            duration_ms=(time.perf_counter() - started) * 1000,
        )


class SqlDocumentStore:
    """Document store reading annotations from a SQL database.

    Text matching is a case-insensitive substring test with LIKE wildcards
    escaped. Annotations are returned newest first. Database failures are
    raised as :class:`StoreError`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory for sessions on the annotation database.
        """
        self._session_factory = session_factory

    def _session(self, operation: str, table: str):
        return _query_session(self._session_factory, operation, table)

    async def find_collections_by_name(self, names: Sequence[str]) -> list[CollectionRecord]:
        stmt = select(CollectionModel).where(CollectionModel.name.in_(list(names)))
        async with self._session("find_collections_by_name", CollectionModel.__tablename__) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [CollectionRecord(id=row.id, name=row.name) for row in rows]

    async def find_list_entries_by_collection_ids(
        self, collection_ids: Sequence[int]
    ) -> list[ListEntryRecord]:
        stmt = select(ListEntryModel).where(ListEntryModel.list_id.in_(list(collection_ids)))
        async with self._session(
            "find_list_entries_by_collection_ids", ListEntryModel.__tablename__
        ) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [ListEntryRecord(list_id=row.list_id, url=row.url) for row in rows]

    async def find_tag_owners(self, tag_names: Sequence[str]) -> list[tuple[str, str]]:
        stmt = select(TagModel.name, TagModel.url).where(TagModel.name.in_(list(tag_names)))
        async with self._session("find_tag_owners", TagModel.__tablename__) as session:
            rows = (await session.execute(stmt)).all()
        return [(name, url) for name, url in rows]

    async def find_pages_by_hostname_or_domain(self, domains: Sequence[str]) -> list[str]:
        domain_list = list(domains)
        stmt = select(PageModel.url).where(
            or_(PageModel.hostname.in_(domain_list), PageModel.domain.in_(domain_list))
        )
        async with self._session("find_pages_by_hostname_or_domain", PageModel.__tablename__) as session:
            return list((await session.execute(stmt)).scalars().all())

    async def find_annotations(self, query: AnnotationQuery) -> list[Annotation]:
        stmt = build_annotation_select(query)
        async with self._session("find_annotations", AnnotationModel.__tablename__) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_to_annotation(row) for row in rows]

    async def find_bookmarks(self, urls: Sequence[str]) -> list[BookmarkRecord]:
        stmt = select(BookmarkModel).where(BookmarkModel.url.in_(list(urls)))
        async with self._session("find_bookmarks", BookmarkModel.__tablename__) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [BookmarkRecord(url=row.url, created_when=row.created_when) for row in rows]

    async def find_tags_for_url(self, url: str) -> list[str]:
        stmt = select(TagModel.name).where(TagModel.url == url).order_by(TagModel.name)
        async with self._session("find_tags_for_url", TagModel.__tablename__) as session:
            return list((await session.execute(stmt)).scalars().all())


class SqlPageLookup:
    """Page lookup over the ``pages`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, urls: list[str]) -> list[Page]:
        stmt = select(PageModel).where(PageModel.url.in_(urls))
        async with _query_session(
            self._session_factory, "find_pages", PageModel.__tablename__
        ) as session:
            rows = (await session.execute(stmt)).scalars().all()

        by_url = {row.url: row for row in rows}
        return [
            Page(url=row.url, title=row.title, hostname=row.hostname, domain=row.domain)
            for row in (by_url[url] for url in urls if url in by_url)
        ]


def build_annotation_select(query: AnnotationQuery) -> Select[tuple[AnnotationModel]]:
    """Build the SELECT statement for a single field query.

    Args:
        query: Field query with url, page and time constraints.

    Returns:
        Statement selecting at most ``query.limit`` annotations, newest first.
    """
    column = AnnotationModel.body if query.field == SearchField.BODY else AnnotationModel.comment

    stmt = select(AnnotationModel).where(
        func.lower(column).contains(query.term.lower(), autoescape=True),
        AnnotationModel.created_when >= query.start_date,
        AnnotationModel.created_when <= query.end_date,
    )

    if query.url_in is not None:
        stmt = stmt.where(AnnotationModel.url.in_(sorted(query.url_in)))
    if query.url_not_in is not None:
        stmt = stmt.where(AnnotationModel.url.not_in(sorted(query.url_not_in)))
    if query.page_url_in is not None:
        stmt = stmt.where(AnnotationModel.page_url.in_(sorted(query.page_url_in)))
    if query.page_url_not_in is not None:
        stmt = stmt.where(AnnotationModel.page_url.not_in(sorted(query.page_url_not_in)))
    if query.page_url is not None:
        stmt = stmt.where(AnnotationModel.page_url == query.page_url)

    return stmt.order_by(AnnotationModel.created_when.desc(), AnnotationModel.url).limit(query.limit)


def _to_annotation(row: AnnotationModel) -> Annotation:
    return Annotation(
        url=row.url,
        page_url=row.page_url,
        page_title=row.page_title,
        body=row.body,
        comment=row.comment,
        created_when=row.created_when,
        last_edited=row.last_edited,
        selector=row.selector,
    )
