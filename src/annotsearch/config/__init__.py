"""Configuration module for annotsearch."""

from annotsearch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
