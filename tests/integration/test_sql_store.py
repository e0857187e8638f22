"""Integration tests for the SQL document store."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from structlog.testing import capture_logs

from annotsearch.config.settings import Settings
from annotsearch.db import (
    SqlDocumentStore,
    SqlPageLookup,
    create_engine,
    create_schema,
    create_session_factory,
    drop_schema,
    from_epoch_ms,
    get_async_session,
    to_epoch_ms,
)
from annotsearch.db.models import (
    AnnotationModel,
    BookmarkModel,
    CollectionModel,
    ListEntryModel,
    PageModel,
    TagModel,
)
from annotsearch.search.engine import AnnotationSearchEngine
from annotsearch.search.types import EPOCH, AnnotationQuery, Page, SearchField, SearchParams
from annotsearch.utils.exceptions import StoreError

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _query(term: str, field: SearchField = SearchField.BODY, **kwargs) -> AnnotationQuery:
    values = {"start_date": EPOCH, "end_date": NOW, "limit": 10}
    values.update(kwargs)
    return AnnotationQuery(field=field, term=term, **values)


@pytest.fixture
def sql_settings(mock_settings: Settings, tmp_path) -> Settings:
    """Settings pointing at a file database in the test's temp dir."""
    return mock_settings.model_copy(
        update={"database_url": f"sqlite+aiosqlite:///{tmp_path / 'annotations.db'}"}
    )


@pytest_asyncio.fixture
async def sql_engine(sql_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a database engine with the annotation schema."""
    engine = create_engine(sql_settings)
    await create_schema(engine)

    yield engine

    await drop_schema(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(sql_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return create_session_factory(sql_engine)


@pytest_asyncio.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> SqlDocumentStore:
    """Store over a database with pages, annotations, tags, collections and bookmarks."""
    async with get_async_session(session_factory) as session:
        session.add_all(
            [
                PageModel(url="https://blog.dev/rust", title="Rust", hostname="blog.dev", domain="blog.dev"),
                PageModel(
                    url="https://docs.blog.dev/cargo",
                    title="Cargo",
                    hostname="docs.blog.dev",
                    domain="blog.dev",
                ),
                PageModel(
                    url="https://spam.com/rust-deals",
                    title="Deals",
                    hostname="spam.com",
                    domain="spam.com",
                ),
                AnnotationModel(
                    url="https://blog.dev/rust#1",
                    page_url="https://blog.dev/rust",
                    page_title="Rust",
                    body="Rust ownership",
                    created_when=NOW - timedelta(minutes=3),
                    selector={"quote": "Rust ownership"},
                ),
                AnnotationModel(
                    url="https://blog.dev/rust#2",
                    page_url="https://blog.dev/rust",
                    body="100% safe rust",
                    comment="the RUST borrow checker",
                    created_when=NOW - timedelta(minutes=1),
                ),
                AnnotationModel(
                    url="https://docs.blog.dev/cargo#1",
                    page_url="https://docs.blog.dev/cargo",
                    body="cargo builds rust crates",
                    created_when=NOW - timedelta(minutes=2),
                ),
                AnnotationModel(
                    url="https://spam.com/rust-deals#1",
                    page_url="https://spam.com/rust-deals",
                    body="cheap rust",
                    created_when=NOW - timedelta(days=30),
                ),
                CollectionModel(id=1, name="Research"),
                CollectionModel(id=2, name="Reading"),
                ListEntryModel(list_id=1, url="https://blog.dev/rust"),
                ListEntryModel(list_id=2, url="https://docs.blog.dev/cargo"),
                TagModel(name="lang", url="https://blog.dev/rust#1"),
                TagModel(name="favourite", url="https://blog.dev/rust#1"),
                TagModel(name="lang", url="https://docs.blog.dev/cargo#1"),
                BookmarkModel(url="https://blog.dev/rust#2", created_when=NOW),
                BookmarkModel(url="https://blog.dev/rust"),
            ]
        )
        await session.commit()

    return SqlDocumentStore(session_factory)


# =============================================================================
# Timestamps
# =============================================================================


def test_epoch_ms_conversion():
    """Test timestamps convert to milliseconds and back as aware UTC values."""
    assert to_epoch_ms(NOW) == 1_709_294_400_000
    assert to_epoch_ms(NOW.replace(tzinfo=None)) == 1_709_294_400_000
    assert from_epoch_ms(1_709_294_400_000) == NOW


# =============================================================================
# Filter Lookups
# =============================================================================


@pytest.mark.asyncio
async def test_find_collections_by_name(seeded: SqlDocumentStore):
    """Test collections are found by exact name."""
    collections = await seeded.find_collections_by_name(["Research", "Missing"])

    assert [(c.id, c.name) for c in collections] == [(1, "Research")]


@pytest.mark.asyncio
async def test_find_list_entries_by_collection_ids(seeded: SqlDocumentStore):
    """Test list entries are returned for every requested collection."""
    entries = await seeded.find_list_entries_by_collection_ids([1, 2])

    assert {(e.list_id, e.url) for e in entries} == {
        (1, "https://blog.dev/rust"),
        (2, "https://docs.blog.dev/cargo"),
    }


@pytest.mark.asyncio
async def test_find_tag_owners(seeded: SqlDocumentStore):
    """Test tag owners are returned as name and url pairs."""
    owners = await seeded.find_tag_owners(["lang"])

    assert set(owners) == {
        ("lang", "https://blog.dev/rust#1"),
        ("lang", "https://docs.blog.dev/cargo#1"),
    }


@pytest.mark.asyncio
async def test_find_pages_by_hostname_or_domain(seeded: SqlDocumentStore):
    """Test pages match on either hostname or registrable domain."""
    by_domain = await seeded.find_pages_by_hostname_or_domain(["blog.dev"])
    by_hostname = await seeded.find_pages_by_hostname_or_domain(["docs.blog.dev"])

    assert set(by_domain) == {"https://blog.dev/rust", "https://docs.blog.dev/cargo"}
    assert by_hostname == ["https://docs.blog.dev/cargo"]


# =============================================================================
# Annotation Queries
# =============================================================================


@pytest.mark.asyncio
async def test_find_annotations_newest_first(seeded: SqlDocumentStore):
    """Test matches are case-insensitive and ordered newest first."""
    annotations = await seeded.find_annotations(_query("RUST"))

    assert [a.url for a in annotations] == [
        "https://blog.dev/rust#2",
        "https://docs.blog.dev/cargo#1",
        "https://blog.dev/rust#1",
        "https://spam.com/rust-deals#1",
    ]
    assert annotations[0].created_when == NOW - timedelta(minutes=1)


@pytest.mark.asyncio
async def test_find_annotations_maps_columns(seeded: SqlDocumentStore):
    """Test stored columns are mapped onto the annotation."""
    (annotation,) = await seeded.find_annotations(_query("ownership"))

    assert annotation.page_url == "https://blog.dev/rust"
    assert annotation.page_title == "Rust"
    assert annotation.selector == {"quote": "Rust ownership"}
    assert annotation.tags == ()
    assert annotation.has_bookmark is False


@pytest.mark.asyncio
async def test_find_annotations_comment_field(seeded: SqlDocumentStore):
    """Test comment queries only look at the comment column."""
    annotations = await seeded.find_annotations(_query("borrow", SearchField.COMMENT))
    body_matches = await seeded.find_annotations(_query("borrow", SearchField.BODY))

    assert [a.url for a in annotations] == ["https://blog.dev/rust#2"]
    assert body_matches == []


@pytest.mark.asyncio
async def test_find_annotations_escapes_wildcards(seeded: SqlDocumentStore):
    """Test LIKE wildcards in terms match literally."""
    literal = await seeded.find_annotations(_query("100%"))
    wildcard = await seeded.find_annotations(_query("%"))

    assert [a.url for a in literal] == ["https://blog.dev/rust#2"]
    assert [a.url for a in wildcard] == ["https://blog.dev/rust#2"]


@pytest.mark.asyncio
async def test_find_annotations_time_range(seeded: SqlDocumentStore):
    """Test annotations outside the time range are excluded."""
    annotations = await seeded.find_annotations(
        _query("rust", start_date=NOW - timedelta(days=1), end_date=NOW - timedelta(minutes=2))
    )

    assert [a.url for a in annotations] == [
        "https://docs.blog.dev/cargo#1",
        "https://blog.dev/rust#1",
    ]


@pytest.mark.asyncio
async def test_find_annotations_limit(seeded: SqlDocumentStore):
    """Test the query limit caps the rows returned."""
    annotations = await seeded.find_annotations(_query("rust", limit=2))
    assert len(annotations) == 2


@pytest.mark.asyncio
async def test_find_annotations_url_constraints(seeded: SqlDocumentStore):
    """Test url and page url inclusion and exclusion constraints."""
    annotations = await seeded.find_annotations(
        _query(
            "rust",
            url_not_in=frozenset({"https://blog.dev/rust#2"}),
            page_url_in=frozenset({"https://blog.dev/rust", "https://docs.blog.dev/cargo"}),
            page_url_not_in=frozenset({"https://docs.blog.dev/cargo"}),
        )
    )

    assert [a.url for a in annotations] == ["https://blog.dev/rust#1"]


@pytest.mark.asyncio
async def test_find_annotations_empty_inclusion_matches_nothing(seeded: SqlDocumentStore):
    """Test an empty inclusion set matches no rows."""
    assert await seeded.find_annotations(_query("rust", url_in=frozenset())) == []


@pytest.mark.asyncio
async def test_find_annotations_bound_page(seeded: SqlDocumentStore):
    """Test a bound page url restricts matches to that page."""
    annotations = await seeded.find_annotations(_query("rust", page_url="https://spam.com/rust-deals"))

    assert [a.url for a in annotations] == ["https://spam.com/rust-deals#1"]


# =============================================================================
# Enrichment Lookups
# =============================================================================


@pytest.mark.asyncio
async def test_find_bookmarks(seeded: SqlDocumentStore):
    """Test bookmarks are returned only for requested urls."""
    bookmarks = await seeded.find_bookmarks(["https://blog.dev/rust#1", "https://blog.dev/rust#2"])

    assert [b.url for b in bookmarks] == ["https://blog.dev/rust#2"]
    assert bookmarks[0].created_when == NOW


@pytest.mark.asyncio
async def test_find_tags_for_url(seeded: SqlDocumentStore):
    """Test tag names are returned sorted by name."""
    assert await seeded.find_tags_for_url("https://blog.dev/rust#1") == ["favourite", "lang"]
    assert await seeded.find_tags_for_url("https://blog.dev/rust#2") == []


@pytest.mark.asyncio
async def test_page_lookup_keeps_request_order(seeded: SqlDocumentStore, session_factory):
    """Test pages come back in request order and unknown urls are skipped."""
    lookup = SqlPageLookup(session_factory)

    pages = await lookup(["https://spam.com/rust-deals", "https://gone.dev", "https://blog.dev/rust"])

    assert [page.url for page in pages] == ["https://spam.com/rust-deals", "https://blog.dev/rust"]
    assert pages[1].title == "Rust"
    assert pages[1].annotations == []



@pytest.mark.asyncio
async def test_page_lookup_logs_query(seeded: SqlDocumentStore, session_factory):
    """Test page lookups are logged like the other store queries."""
    with capture_logs() as logs:
        await SqlPageLookup(session_factory)(["https://blog.dev/rust"])

    queries = [entry for entry in logs if entry["event"] == "database_query"]
    assert len(queries) == 1
    assert queries[0]["query_type"] == "find_pages"
    assert queries[0]["table"] == "pages"
    assert queries[0]["duration_ms"] >= 0


# =============================================================================
# Errors
# =============================================================================


@pytest.mark.asyncio
async def test_missing_schema_raises_store_error(sql_settings: Settings):
    """Test database errors are raised as StoreError naming the operation."""
    engine = create_engine(sql_settings)
    factory = create_session_factory(engine)
    try:
        with pytest.raises(StoreError) as exc_info:
            await SqlDocumentStore(factory).find_tags_for_url("https://blog.dev/rust#1")
        assert exc_info.value.operation == "find_tags_for_url"

        with pytest.raises(StoreError) as exc_info:
            await SqlPageLookup(factory)(["https://blog.dev/rust"])
        assert exc_info.value.operation == "find_pages"
    finally:
        await engine.dispose()


# =============================================================================
# Engine
# =============================================================================


@pytest.mark.asyncio
async def test_engine_search_over_sql(seeded: SqlDocumentStore, mock_settings: Settings):
    """Test a filtered search through the engine against the database."""
    engine = AnnotationSearchEngine(seeded, settings=mock_settings)

    results = await engine.search(
        SearchParams(terms=["rust"], domains_exc=["spam.com"], end_date=NOW)
    )

    assert [r.url for r in results] == [
        "https://blog.dev/rust#2",
        "https://docs.blog.dev/cargo#1",
        "https://blog.dev/rust#1",
    ]
    assert results[2].tags == ["favourite", "lang"]
    assert results[0].has_bookmark is False


@pytest.mark.asyncio
async def test_engine_collection_and_tag_filters_over_sql(
    seeded: SqlDocumentStore, mock_settings: Settings
):
    """Test collection and tag filters resolve against the database."""
    engine = AnnotationSearchEngine(seeded, settings=mock_settings)

    by_collection = await engine.search(
        SearchParams(terms=["rust"], collections=["Reading"], end_date=NOW)
    )
    by_tag = await engine.search(
        SearchParams(terms=["rust"], tags_inc=["favourite"], end_date=NOW)
    )
    missing = await engine.search(SearchParams(terms=["rust"], collections=["Nope"]))

    assert [r.url for r in by_collection] == ["https://docs.blog.dev/cargo#1"]
    assert [r.url for r in by_tag] == ["https://blog.dev/rust#1"]
    assert missing == []


@pytest.mark.asyncio
async def test_engine_page_results_over_sql(
    seeded: SqlDocumentStore, session_factory, mock_settings: Settings
):
    """Test page-grouped results with the SQL page lookup."""
    engine = AnnotationSearchEngine(seeded, settings=mock_settings)

    pages = await engine.search(
        SearchParams(
            terms=["rust"],
            domains_inc=["blog.dev"],
            end_date=NOW,
            include_page_results=True,
            max_annots_per_page=1,
        ),
        page_lookup=SqlPageLookup(session_factory),
    )

    assert all(isinstance(page, Page) for page in pages)
    assert {page.url: [a.url for a in page.annotations] for page in pages} == {
        "https://blog.dev/rust": ["https://blog.dev/rust#2"],
        "https://docs.blog.dev/cargo": ["https://docs.blog.dev/cargo#1"],
    }
