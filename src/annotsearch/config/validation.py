"""Configuration validation for startup checks.

Validates that search defaults and storage settings are usable before the
engine starts serving searches.

Usage:
    from annotsearch.config.validation import validate_configuration

    errors = validate_configuration()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from annotsearch.config.settings import Settings, get_settings
from annotsearch.core.logging import get_logger
from annotsearch.utils.exceptions import ConfigurationError

logger = get_logger("annotsearch.config")


class ValidationSeverity(str, Enum):
    """Severity of configuration validation issues."""

    ERROR = "error"  # Must be fixed, engine cannot start
    WARNING = "warning"  # Should be fixed, engine can start but may misbehave


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""

    field: str
    severity: ValidationSeverity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result


def validate_configuration(settings: Settings | None = None) -> list[ValidationResult]:
    """Validate application configuration.

    Runs all configuration checks and returns a list of validation results.

    Args:
        settings: Settings to validate (default: global settings)

    Returns:
        List of validation results (empty if all checks pass)
    """
    if settings is None:
        settings = get_settings()

    results: list[ValidationResult] = []

    results.extend(_validate_search_defaults(settings))
    results.extend(_validate_direct_links(settings))
    results.extend(_validate_database(settings))
    results.extend(_validate_environment(settings))

    return results


def validate_or_raise(settings: Settings | None = None) -> None:
    """Validate configuration and raise if errors found.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If any validation errors are found
    """
    results = validate_configuration(settings)
    errors = [r for r in results if r.severity == ValidationSeverity.ERROR]

    if errors:
        error_messages = "\n".join(str(e) for e in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{error_messages}")

    warnings = [r for r in results if r.severity == ValidationSeverity.WARNING]
    for warning in warnings:
        logger.warning("configuration_warning", detail=str(warning))


# =============================================================================
# Validators
# =============================================================================


def _validate_search_defaults(settings: Settings) -> list[ValidationResult]:
    """Validate result caps and concurrency bounds."""
    results: list[ValidationResult] = []

    if settings.default_limit < 1:
        results.append(
            ValidationResult(
                field="default_limit",
                severity=ValidationSeverity.ERROR,
                message=f"Default limit must be positive, got {settings.default_limit}",
                suggestion="Set DEFAULT_LIMIT to 1 or more",
            )
        )

    if settings.max_annots_per_page < 1:
        results.append(
            ValidationResult(
                field="max_annots_per_page",
                severity=ValidationSeverity.ERROR,
                message=f"Per-page cap must be positive, got {settings.max_annots_per_page}",
                suggestion="Set MAX_ANNOTS_PER_PAGE to 1 or more",
            )
        )

    if settings.max_concurrent_queries < 1:
        results.append(
            ValidationResult(
                field="max_concurrent_queries",
                severity=ValidationSeverity.ERROR,
                message="At least one concurrent query is required",
                suggestion="Set MAX_CONCURRENT_QUERIES to 1 or more",
            )
        )
    elif settings.max_concurrent_queries > 100:
        results.append(
            ValidationResult(
                field="max_concurrent_queries",
                severity=ValidationSeverity.WARNING,
                message=f"{settings.max_concurrent_queries} concurrent queries may exhaust the store",
                suggestion="Consider a value between 4 and 32",
            )
        )

    return results


def _validate_direct_links(settings: Settings) -> list[ValidationResult]:
    """Validate direct-link provider prefixes."""
    results: list[ValidationResult] = []

    for provider in settings.direct_link_providers:
        if not provider.startswith(("http://", "https://")):
            results.append(
                ValidationResult(
                    field="direct_link_providers",
                    severity=ValidationSeverity.WARNING,
                    message=f"Provider prefix is not an http(s) URL: {provider}",
                    suggestion="Prefixes are matched against annotation URLs verbatim",
                )
            )

    return results


def _validate_database(settings: Settings) -> list[ValidationResult]:
    """Validate database configuration."""
    results: list[ValidationResult] = []

    if not settings.database_url:
        results.append(
            ValidationResult(
                field="database_url",
                severity=ValidationSeverity.ERROR,
                message="Database URL is not configured",
                suggestion="Set DATABASE_URL environment variable",
            )
        )
    elif "+" not in settings.database_url.split("://", 1)[0]:
        results.append(
            ValidationResult(
                field="database_url",
                severity=ValidationSeverity.ERROR,
                message="Database URL does not name an async driver",
                suggestion="Use a URL such as sqlite+aiosqlite:///annotations.db",
            )
        )

    return results


def _validate_environment(settings: Settings) -> list[ValidationResult]:
    """Validate environment-specific settings."""
    results: list[ValidationResult] = []

    if settings.environment == "production" and settings.database_echo:
        results.append(
            ValidationResult(
                field="database_echo",
                severity=ValidationSeverity.WARNING,
                message="SQL echo in production logs every annotation query",
                suggestion="Set DATABASE_ECHO=false for production",
            )
        )

    if settings.environment == "production" and settings.log_level == "DEBUG":
        results.append(
            ValidationResult(
                field="log_level",
                severity=ValidationSeverity.WARNING,
                message="DEBUG log level in production logs search terms",
                suggestion="Use INFO or WARNING for production",
            )
        )

    return results


def get_configuration_summary(settings: Settings | None = None) -> dict[str, Any]:
    """Get a summary of current configuration (safe for logging).

    Args:
        settings: Settings to summarize

    Returns:
        Dictionary with configuration summary
    """
    if settings is None:
        settings = get_settings()

    return {
        "environment": settings.environment,
        "log_level": settings.log_level,
        "default_limit": settings.default_limit,
        "max_annots_per_page": settings.max_annots_per_page,
        "max_concurrent_queries": settings.max_concurrent_queries,
        "direct_link_providers_count": len(settings.direct_link_providers),
        "database_driver": settings.database_url.split("://", 1)[0],
    }
