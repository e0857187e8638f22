"""Data models for annotation search.

Annotations and pages as read from the document store, the public result
projection, the per-field store query, and the caller-facing search
parameters.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Interpret a naive datetime as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class SearchField(str, Enum):
    """Text fields of an annotation that term search can match."""

    BODY = "body"  # highlighted text
    COMMENT = "comment"  # user note


class Annotation(BaseModel):
    """A highlight or note attached to a web page.

    Frozen: enrichment steps produce copies via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    page_url: str
    page_title: str | None = None
    body: str | None = None
    comment: str | None = None
    created_when: datetime
    last_edited: datetime | None = None
    selector: dict[str, Any] | None = None  # in-page anchoring data
    tags: tuple[str, ...] = ()
    has_bookmark: bool = False

    @field_validator("created_when", "last_edited")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class AnnotationResult(BaseModel):
    """Public shape of an annotation returned from a flat search."""

    model_config = ConfigDict(frozen=True)

    url: str
    page_url: str
    body: str | None = None
    comment: str | None = None
    created_when: datetime
    tags: list[str] = Field(default_factory=list)
    has_bookmark: bool = False

    @classmethod
    def from_annotation(cls, annotation: Annotation) -> AnnotationResult:
        """Project an annotation down to its public fields."""
        return cls(
            url=annotation.url,
            page_url=annotation.page_url,
            body=annotation.body,
            comment=annotation.comment,
            created_when=annotation.created_when,
            tags=list(annotation.tags),
            has_bookmark=annotation.has_bookmark,
        )


class Page(BaseModel):
    """A web page, optionally carrying the annotations matched on it."""

    url: str
    title: str | None = None
    hostname: str | None = None
    domain: str | None = None
    annotations: list[Annotation] = Field(default_factory=list)


class CollectionRecord(BaseModel):
    """A named, user-curated collection."""

    id: int
    name: str


class ListEntryRecord(BaseModel):
    """Membership of a url in a collection."""

    list_id: int
    url: str


class BookmarkRecord(BaseModel):
    """A bookmark on a url."""

    url: str
    created_when: datetime | None = None


class AnnotationQuery(BaseModel):
    """A single field query against the annotation store.

    URL constraints are ``None`` when unconstrained. An empty set in an
    inclusion constraint matches nothing.
    """

    model_config = ConfigDict(frozen=True)

    field: SearchField
    term: str
    start_date: datetime
    end_date: datetime
    url_in: frozenset[str] | None = None
    url_not_in: frozenset[str] | None = None
    page_url_in: frozenset[str] | None = None
    page_url_not_in: frozenset[str] | None = None
    page_url: str | None = None  # exact page bound
    limit: int

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)


class SearchParams(BaseModel):
    """Parameters of a single annotation search.

    ``limit``, ``end_date`` and ``max_annots_per_page`` left as ``None`` are
    filled in by :meth:`with_defaults`. Values are not range-checked.
    """

    terms: list[str] = Field(default_factory=list)
    tags_inc: list[str] = Field(default_factory=list)
    tags_exc: list[str] = Field(default_factory=list)
    domains_inc: list[str] = Field(default_factory=list)
    domains_exc: list[str] = Field(default_factory=list)
    collections: list[str] = Field(default_factory=list)

    start_date: datetime = EPOCH
    end_date: datetime | None = None
    limit: int | None = None
    url: str | None = None  # restrict to one page

    bookmarks_only: bool = False
    include_highlights: bool = True
    include_notes: bool = True
    include_direct_links: bool = True
    include_page_results: bool = False
    max_annots_per_page: int | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime | None) -> datetime | None:
        """Interpret naive range bounds as UTC."""
        return as_utc(v)

    def with_defaults(
        self,
        *,
        limit: int,
        max_annots_per_page: int,
        now: datetime | None = None,
    ) -> SearchParams:
        """Return a copy with unset limits and end date filled in.

        Args:
            limit: Result cap to use when ``limit`` is unset.
            max_annots_per_page: Per-page cap to use when unset.
            now: End of the time range when ``end_date`` is unset.

        Returns:
            New SearchParams with no ``None`` limits or end date.
        """
        return self.model_copy(
            update={
                "limit": self.limit if self.limit is not None else limit,
                "max_annots_per_page": (
                    self.max_annots_per_page
                    if self.max_annots_per_page is not None
                    else max_annots_per_page
                ),
                "end_date": self.end_date or as_utc(now) or datetime.now(UTC),
            }
        )
