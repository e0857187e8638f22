"""Utility modules for annotsearch."""

from annotsearch.utils.exceptions import (
    AnnotSearchError,
    ConfigurationError,
    SearchError,
    StoreError,
)

__all__ = [
    "AnnotSearchError",
    "ConfigurationError",
    "SearchError",
    "StoreError",
]
