"""
Remote page creation with bounded rate-limit retry.

Wraps a single Notion "create page" call. Rate-limited attempts are retried
with exponential backoff up to a fixed number of retries; every other error is
raised to the caller straight away. When the page itself was created but
appending its remaining blocks hit a rate limit, only the append is retried
so the page is never posted twice.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from models import CreatedPage, TargetPage

from .cancellation import CancellationToken
from .errors import CancelledError, RateLimitError
from .notion_client import BlockAppendError, NotionClient


# Constants
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT_DELAY = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_MAX_DELAY = 30.0


class RemotePageCreator:
    """Creates Notion pages one at a time, retrying only on rate limits."""

    def __init__(
        self,
        client: NotionClient,
        database_id: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        max_delay: float = DEFAULT_MAX_DELAY,
        cancel_token: Optional[CancellationToken] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the page creator.

        Args:
            client: Remote client exposing create_page()
            database_id: Notion database used for pages without a remote parent
            max_retries: Retries after the first rate-limited attempt
            rate_limit_delay: Delay before the first retry, in seconds
            backoff_factor: Multiplier applied to the delay per retry
            max_delay: Upper bound for a single wait
            cancel_token: Interrupts backoff waits when cancelled
            sleep: Replacement for time.sleep (used when no cancel token is set)
            logger: Optional logger instance
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.client = client
        self.database_id = database_id
        self.max_retries = max_retries
        self.rate_limit_delay = rate_limit_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.cancel_token = cancel_token
        self._sleep = sleep
        self.logger = logger or logging.getLogger('onenote_notion_migrator.importers.page_creator')

        self.stats = {
            'requests_made': 0,
            'rate_limit_hits': 0,
            'retries': 0,
            'errors': 0,
            'pages_created': 0,
            'start_time': time.time()
        }

    def create_page(self, page: TargetPage, parent_remote_id: Optional[str] = None) -> CreatedPage:
        """
        Create one page, retrying on rate limits.

        Args:
            page: Mapped page to create
            parent_remote_id: Notion ID of the already-created parent page;
                pages without one are created in the configured database

        Returns:
            CreatedPage with the remote ID and URL

        Raises:
            RateLimitError: If still rate limited after max_retries retries
            CancelledError: If cancelled while waiting to retry
            BlockAppendError: If the page was created but its blocks could not be appended
            Exception: Any non-rate-limit error from the client, unchanged
        """
        if parent_remote_id:
            parent_id, parent_type = parent_remote_id, 'page_id'
        else:
            parent_id, parent_type = self.database_id, 'database_id'

        attempt = 0
        while True:
            attempt += 1
            self.stats['requests_made'] += 1
            try:
                response = self.client.create_page(
                    parent_id,
                    page.title,
                    page.content,
                    page.properties,
                    parent_type=parent_type
                )
            except BlockAppendError as e:
                # the page exists remotely; only its remaining blocks are retried
                self.stats['pages_created'] += 1
                self._finish_blocks(page, e)
                return CreatedPage(remote_id=e.page_id, url=e.url)
            except Exception as e:
                if not NotionClient.is_rate_limit_error(e):
                    self.stats['errors'] += 1
                    raise

                self.stats['rate_limit_hits'] += 1
                if attempt > self.max_retries:
                    self.stats['errors'] += 1
                    self.logger.error(
                        f"Giving up on '{page.title}' after {attempt} rate-limited attempts"
                    )
                    raise RateLimitError(attempt, page_id=page.id, title=page.title) from e

                self._backoff(page, attempt, e)
                continue

            self.stats['pages_created'] += 1
            self.logger.debug(f"Created page: {page.title} (ID: {response['id']})")
            return CreatedPage(remote_id=response['id'], url=response.get('url', ''))

    def _finish_blocks(self, page: TargetPage, error: BlockAppendError) -> None:
        """Retry appending blocks to an already created page, never the page itself."""
        attempt = 0
        while True:
            attempt += 1
            if not NotionClient.is_rate_limit_error(error.cause):
                self.stats['errors'] += 1
                raise error

            self.stats['rate_limit_hits'] += 1
            if attempt > self.max_retries:
                self.stats['errors'] += 1
                self.logger.error(
                    f"Giving up on blocks of '{page.title}' (ID: {error.page_id}) "
                    f"after {attempt} rate-limited attempts"
                )
                raise RateLimitError(attempt, page_id=page.id, title=page.title) from error

            self._backoff(page, attempt, error.cause)
            self.stats['requests_made'] += 1
            try:
                self.client.append_blocks(error.page_id, error.blocks)
            except BlockAppendError as e:
                e.url = error.url
                error = e
                continue

            self.logger.debug(f"Appended remaining blocks to '{page.title}' (ID: {error.page_id})")
            return

    def _backoff(self, page: TargetPage, attempt: int, error: Exception) -> None:
        delay = self._compute_delay(attempt, getattr(error, 'retry_after', None))
        self.logger.warning(
            f"Rate limited creating '{page.title}' (attempt {attempt}/{self.max_retries + 1}). "
            f"Retrying after {delay:.1f}s"
        )
        self.stats['retries'] += 1
        self._wait(delay)

    def _compute_delay(self, attempt: int, retry_after: Optional[float]) -> float:
        delay = self.rate_limit_delay * (self.backoff_factor ** (attempt - 1))
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay, self.max_delay)

    def _wait(self, delay: float) -> None:
        if self._sleep is not None:
            self._sleep(delay)
            cancelled = self.cancel_token is not None and self.cancel_token.is_cancelled
        elif self.cancel_token is not None:
            cancelled = self.cancel_token.wait(delay)
        else:
            time.sleep(delay)
            cancelled = False

        if cancelled:
            raise CancelledError(self.cancel_token.reason or "Cancelled during rate-limit backoff")

    def get_stats(self) -> Dict[str, Any]:
        """Return request counters plus uptime in seconds."""
        stats = dict(self.stats)
        stats['uptime'] = time.time() - self.stats['start_time']
        return stats


__all__ = ['RemotePageCreator']
