"""Pytest fixtures for annotsearch tests."""

from collections.abc import Callable, Generator
from contextlib import ExitStack
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
import structlog

from annotsearch.config.settings import Settings
from annotsearch.search.types import Annotation, Page
from annotsearch.store.memory import InMemoryDocumentStore, InMemoryPageLookup

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings for testing."""
    return Settings(
        environment="test",
        log_level="DEBUG",
        default_limit=5,
        max_annots_per_page=9,
        max_concurrent_queries=4,
    )


@pytest.fixture
def patch_settings(mock_settings: Settings) -> Generator[Settings, None, None]:
    """Patch get_settings to return mock settings wherever it is imported."""
    targets = [
        "annotsearch.config.settings.get_settings",
        "annotsearch.config.validation.get_settings",
        "annotsearch.core.logging.get_settings",
        "annotsearch.db.config.get_settings",
        "annotsearch.search.engine.get_settings",
    ]
    with ExitStack() as stack:
        for target in targets:
            stack.enter_context(patch(target, return_value=mock_settings))
        yield mock_settings


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def make_annotation() -> Callable[..., Annotation]:
    """Factory for annotations with sensible defaults.

    Each call without ``created_when`` is one minute older than the last.
    """
    counter = {"n": 0}

    def _make(
        url: str,
        page_url: str,
        body: str | None = None,
        comment: str | None = None,
        created_when: datetime | None = None,
        **kwargs,
    ) -> Annotation:
        counter["n"] += 1
        return Annotation(
            url=url,
            page_url=page_url,
            body=body,
            comment=comment,
            created_when=created_when or BASE_TIME - timedelta(minutes=counter["n"]),
            **kwargs,
        )

    return _make


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """Create an empty in-memory store."""
    return InMemoryDocumentStore()


@pytest.fixture
def page_lookup(memory_store: InMemoryDocumentStore) -> InMemoryPageLookup:
    """Page lookup over the in-memory store."""
    return InMemoryPageLookup(memory_store)


@pytest.fixture
def populated_store(
    memory_store: InMemoryDocumentStore,
    make_annotation: Callable[..., Annotation],
) -> InMemoryDocumentStore:
    """In-memory store with pages on three hosts and a handful of annotations.

    Pages:
        https://blog.dev/rust       (blog.dev)
        https://blog.dev/python     (blog.dev)
        https://spam.com/rust-deals (spam.com)

    Annotations mention "rust" in their body or comment, except the python one.
    """
    memory_store.add_page(
        Page(url="https://blog.dev/rust", title="Rust", hostname="blog.dev", domain="blog.dev")
    )
    memory_store.add_page(
        Page(url="https://blog.dev/python", title="Python", hostname="blog.dev", domain="blog.dev")
    )
    memory_store.add_page(
        Page(
            url="https://spam.com/rust-deals",
            title="Deals",
            hostname="spam.com",
            domain="spam.com",
        )
    )

    memory_store.add_annotation(
        make_annotation("https://blog.dev/rust#1", "https://blog.dev/rust", body="Rust ownership")
    )
    memory_store.add_annotation(
        make_annotation(
            "https://blog.dev/rust#2", "https://blog.dev/rust", comment="rust borrow checker"
        )
    )
    memory_store.add_annotation(
        make_annotation(
            "https://blog.dev/python#1", "https://blog.dev/python", body="python typing"
        )
    )
    memory_store.add_annotation(
        make_annotation(
            "https://spam.com/rust-deals#1", "https://spam.com/rust-deals", body="cheap rust"
        )
    )
    return memory_store
