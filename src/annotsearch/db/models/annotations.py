"""Annotation store models.

Timestamps use :class:`EpochMillis` so that range filters behave the same
on every backend.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, EpochMillis, PortableJSON


class PageModel(Base):
    """A visited web page."""

    __tablename__ = "pages"

    url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    hostname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_pages_hostname", "hostname"),
        Index("idx_pages_domain", "domain"),
    )


class AnnotationModel(Base):
    """A highlight or note on a page."""

    __tablename__ = "annotations"

    url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    page_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    page_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_when: Mapped[datetime] = mapped_column(EpochMillis(), nullable=False)
    last_edited: Mapped[datetime | None] = mapped_column(EpochMillis(), nullable=True)
    selector: Mapped[dict | None] = mapped_column(PortableJSON(), nullable=True)

    __table_args__ = (
        Index("idx_annotations_page_url", "page_url"),
        Index("idx_annotations_created_when", "created_when"),
    )


class CollectionModel(Base):
    """A named collection."""

    __tablename__ = "custom_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class ListEntryModel(Base):
    """Membership of a url in a collection."""

    __tablename__ = "annot_list_entries"

    list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("custom_lists.id", ondelete="CASCADE"), primary_key=True
    )
    url: Mapped[str] = mapped_column(String(2048), primary_key=True)


class TagModel(Base):
    """A tag on a page or annotation url."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    url: Mapped[str] = mapped_column(String(2048), primary_key=True)

    __table_args__ = (Index("idx_tags_url", "url"),)


class BookmarkModel(Base):
    """A bookmarked url."""

    __tablename__ = "annot_bookmarks"

    url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    created_when: Mapped[datetime | None] = mapped_column(EpochMillis(), nullable=True)
