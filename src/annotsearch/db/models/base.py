"""Base models and column types for SQLAlchemy."""

from datetime import UTC, datetime

from sqlalchemy import JSON, BigInteger
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class PortableJSON(TypeDecorator):
    """JSON type that uses JSONB on PostgreSQL and JSON elsewhere."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class EpochMillis(TypeDecorator):
    """Datetime stored as epoch milliseconds in a BIGINT column.

    SQLite has no timezone-aware datetime type, so range filters compare
    integers on every backend. Values read back are aware UTC datetimes.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return to_epoch_ms(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return from_epoch_ms(value)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass
