"""Custom exceptions for annotsearch."""


class AnnotSearchError(Exception):
    """Base exception for all annotsearch errors."""

    pass


class StoreError(AnnotSearchError):
    """Error raised by a document store while executing a query.

    Attributes:
        operation: The store operation that failed (e.g., "find_annotations")
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        if self.operation:
            return f"StoreError({self.operation}): {self.args[0]}"
        return f"StoreError: {self.args[0]}"


class SearchError(AnnotSearchError):
    """Error during search orchestration."""

    pass


class ConfigurationError(AnnotSearchError):
    """Error in configuration or settings."""

    pass
