"""Structured logging infrastructure with verbosity levels and progress tracking."""

import copy
import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog


LOGGER_NAME = 'onenote_notion_migrator'

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

# chatty HTTP stack loggers kept at WARNING unless running at DEBUG
NOISY_LOGGERS = ('urllib3', 'requests')


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up the migrator's logger with colored console output and an optional log file.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to a rotating log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Explicit log level name; takes precedence over verbosity

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is not a known level name
    """
    log_level = _resolve_level(verbosity, level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.propagate = False

    logger.addHandler(_console_handler(log_level, log_format, date_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING)

    if log_file:
        try:
            logger.addHandler(_file_handler(log_file, log_level, log_format, date_format))
            logger.info(f"Logging to {log_file} at {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {e}")
    else:
        logger.debug(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


def _resolve_level(verbosity: int, level: Optional[str]) -> int:
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        return getattr(logging, level_upper)

    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def _console_handler(log_level: int, log_format: str, date_format: str) -> logging.Handler:
    handler = colorlog.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors=LOG_COLORS
    ))
    return handler


def _file_handler(log_file: str, log_level: int, log_format: str, date_format: str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
    return handler


class ProgressTracker:
    """Context manager that counts created, failed and skipped items and logs a summary."""
    
    def __init__(self, total_items: int, item_type: str = "items", logger: Optional[logging.Logger] = None):
        """
        Initialize progress tracker.
        
        Args:
            total_items: Number of items the run expects to process
            item_type: Label used in log lines (e.g., "pages")
            logger: Optional logger instance
        """
        self.total_items = total_items
        self.item_type = item_type
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.skipped_items = 0
        self.start_time: Optional[float] = None
        self.logger = logger or logging.getLogger(LOGGER_NAME)
    
    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.time()
        self.logger.info(f"Importing {self.total_items} {self.item_type}")
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log a one-block summary; level follows the outcome."""
        if self.start_time is None:
            return
        
        stats = self.get_stats()
        
        if exc_type is not None or (self.failed_items and not self.successful_items):
            log_method = self.logger.error
        elif self.failed_items or self.skipped_items:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info
        
        log_method(f"=== {self.item_type.upper()} SUMMARY ===")
        log_method(
            f"{stats['successful']} created, {stats['failed']} failed, {stats['skipped']} skipped "
            f"({stats['processed']}/{stats['total']} processed)"
        )
        log_method(f"Success Rate: {stats['success_rate']:.1f}%  Elapsed: {stats['elapsed_time_formatted']}")
        if exc_type is not None:
            log_method(f"Interrupted by {exc_type.__name__}")
    
    def increment(self, success: bool = True, skipped: bool = False) -> None:
        """
        Record one processed item.
        
        Args:
            success: Whether the item was created
            skipped: Item was never attempted because its parent failed
        """
        self.processed_items += 1
        
        if skipped:
            self.skipped_items += 1
        elif success:
            self.successful_items += 1
        else:
            self.failed_items += 1
        
        # every 10th item, and every failure
        if self.processed_items % 10 == 0 or not success:
            remaining = max(self.total_items - self.processed_items, 0)
            self.logger.info(
                f"{self.processed_items}/{self.total_items} {self.item_type} processed "
                f"({remaining} remaining)"
            )
    
    def get_stats(self) -> Dict[str, Any]:
        """Get current progress statistics."""
        elapsed = time.time() - self.start_time if self.start_time is not None else 0.0
        
        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'skipped': self.skipped_items,
            'success_rate': (self.successful_items / self.total_items * 100) if self.total_items else 0.0,
            'elapsed_time': elapsed,
            'elapsed_time_formatted': format_elapsed(elapsed)
        }


def format_elapsed(seconds: float) -> str:
    """Format elapsed time as '12.3s', '4m 5s' or '1h 2m 3s'."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def log_section(title: str) -> None:
    """Log a banner line for the start of a run stage."""
    logger = logging.getLogger(LOGGER_NAME)
    
    separator = "=" * 60
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)


def log_config(config: Dict[str, Any]) -> None:
    """
    Log sanitized configuration for debugging.
    
    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(LOGGER_NAME)
    
    sanitized_config = _sanitize_config(config)
    
    log_section("Configuration")
    
    # Log Notion settings
    notion = sanitized_config.get('notion', {})
    logger.info(f"Notion API URL: {notion.get('base_url', 'Not Set')}")
    logger.info(f"Notion Version: {notion.get('notion_version', 'Not Set')}")
    logger.info("API Token: ***REDACTED***" if notion.get('api_token') else "API Token: Not Set")
    logger.info(f"Workspace ID: {notion.get('workspace_id') or 'Not Set'}")
    logger.info(f"Database ID: {notion.get('database_id') or 'Not Set'}")
    logger.info(f"Request Timeout: {notion.get('request_timeout', 30)}s")
    
    logger.info("")
    
    # Log import settings
    import_settings = sanitized_config.get('import', {})
    logger.info(f"Max Depth: {import_settings.get('max_depth', 10)}")
    logger.info(f"Max Retries: {import_settings.get('max_retries', 3)}")
    logger.info(f"Rate Limit Delay: {import_settings.get('rate_limit_delay', 1.0)}s")
    logger.info(f"Backoff Factor: {import_settings.get('backoff_factor', 2.0)}")
    logger.info(f"Continue on Error: {import_settings.get('continue_on_error', True)}")
    logger.info(f"Dry Run: {import_settings.get('dry_run', False)}")


SENSITIVE_KEYS = ('token', 'secret', 'password', 'api_key', 'authorization')


def _sanitize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a copy of the configuration with credential values masked.
    
    Any string value whose key contains one of SENSITIVE_KEYS is replaced.
    """
    def mask(data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: "***REDACTED***"
                if isinstance(value, str) and value and any(s in str(key).lower() for s in SENSITIVE_KEYS)
                else mask(value)
                for key, value in data.items()
            }
        if isinstance(data, list):
            return [mask(item) for item in data]
        return data
    
    return mask(copy.deepcopy(config))


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'format_elapsed',
    'log_section',
    'log_config'
]
