"""
Error taxonomy for the OneNote to Notion import pipeline.

Fatal errors (SelectionError, ValidationError, ConnectivityError,
ExtractionError) abort a run. RateLimitError and PerItemError are recorded
against a single page and the run continues.
"""

from typing import List, Optional


class MigrationError(Exception):
    """Base class for all pipeline errors."""

    fatal = True


class SelectionError(MigrationError):
    """No items were selected, or the selection matched nothing."""


class ExtractionError(MigrationError):
    """The source hierarchy could not be read."""


class ValidationError(MigrationError):
    """Mapped hierarchy failed referential integrity checks."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        preview = "; ".join(self.errors[:3])
        if len(self.errors) > 3:
            preview += f" (+{len(self.errors) - 3} more)"
        super().__init__(f"Hierarchy validation failed: {preview}")


class ConnectivityError(MigrationError):
    """Authentication or the initial connectivity check failed."""


class PerItemError(MigrationError):
    """Failure confined to a single page (conversion or creation)."""

    fatal = False

    def __init__(self, message: str, page_id: Optional[str] = None, title: Optional[str] = None):
        self.page_id = page_id
        self.title = title
        super().__init__(message)


class RateLimitError(PerItemError):
    """Remote API kept rate limiting after all retries were used."""

    def __init__(self, attempts: int, page_id: Optional[str] = None, title: Optional[str] = None):
        self.attempts = attempts
        super().__init__(
            f"Rate limit still in effect after {attempts} attempts",
            page_id=page_id,
            title=title
        )


class CancelledError(MigrationError):
    """Import was cancelled by the caller."""

    fatal = False


__all__ = [
    'MigrationError',
    'SelectionError',
    'ExtractionError',
    'ValidationError',
    'ConnectivityError',
    'PerItemError',
    'RateLimitError',
    'CancelledError'
]
