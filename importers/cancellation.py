"""Cooperative cancellation for long-running imports."""

import threading
from typing import Optional


class CancellationToken:
    """Thread-safe flag checked between pipeline stages and page creations."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "Cancelled by user") -> None:
        """Request cancellation."""
        self.reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """
        Sleep up to timeout seconds, returning early on cancellation.

        Returns:
            True if cancellation was requested during (or before) the wait
        """
        return self._event.wait(timeout)


__all__ = ['CancellationToken']
