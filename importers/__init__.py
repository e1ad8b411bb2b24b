"""Import package for OneNote to Notion migration.

This package provides the building blocks the import orchestrator composes:
selecting a subset of a OneNote hierarchy, mapping it to Notion pages,
validating the mapped tree, and creating pages through the Notion REST API.

Package Structure:
- selection_filter: Prunes a hierarchy to the selected notebooks/sections/pages
- hierarchy_mapper: Maps notebooks, sections and pages to Notion target pages
- hierarchy_validator: Checks mapped trees for dangling parents and cycles
- notion_client: REST client for Notion page creation and authentication
- page_creator: Single-page creation with bounded rate-limit retry
- content_converter: Converter interface and the default HTML-to-text converter
- cancellation: Cooperative cancellation token
- errors: Fatal and per-item error types

Configuration Referenced:
- notion.*: API token, database/workspace IDs, timeouts
- import.*: Depth limit and rate-limit retry settings
"""

from .cancellation import CancellationToken
from .content_converter import ContentConverter, ConvertedContent, PassthroughContentConverter
from .errors import (
    CancelledError,
    ConnectivityError,
    ExtractionError,
    MigrationError,
    PerItemError,
    RateLimitError,
    SelectionError,
    ValidationError
)
from .hierarchy_mapper import HierarchyMapper, HierarchyProgress
from .hierarchy_validator import HierarchyValidator
from .notion_client import BlockAppendError, NotionApiError, NotionClient, NotionConnectionError
from .page_creator import RemotePageCreator
from .selection_filter import SelectionFilter

__all__ = [
    'CancellationToken',
    'ContentConverter',
    'ConvertedContent',
    'PassthroughContentConverter',
    'HierarchyMapper',
    'HierarchyProgress',
    'HierarchyValidator',
    'BlockAppendError',
    'NotionClient',
    'NotionApiError',
    'NotionConnectionError',
    'RemotePageCreator',
    'SelectionFilter',
    # Errors
    'MigrationError',
    'SelectionError',
    'ExtractionError',
    'ValidationError',
    'ConnectivityError',
    'PerItemError',
    'RateLimitError',
    'CancelledError'
]
