"""
Import orchestrator for the OneNote to Notion pipeline.

Sequences one import run: Select → Count → (Dry run stops here) → Connect →
Map → Validate → Create pages parent-before-child → Result. Progress is pushed
to a caller-supplied listener at every stage boundary and after every page.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config_loader import get_nested
from extractors import HierarchyProvider
from importers import (
    CancellationToken,
    CancelledError,
    ConnectivityError,
    ContentConverter,
    HierarchyMapper,
    HierarchyProgress,
    HierarchyValidator,
    MigrationError,
    NotionApiError,
    NotionClient,
    NotionConnectionError,
    RemotePageCreator,
    SelectionError,
    SelectionFilter,
    ValidationError
)
from logger import ProgressTracker, log_section
from models import (
    ImportOptions,
    ImportProgress,
    ImportResult,
    ImportStatus,
    SourceHierarchy,
    TargetPage
)

ProgressListener = Callable[[ImportProgress], None]

# Progress windows (percent)
PROGRESS_SELECTING = 5
PROGRESS_CONNECTING = 10
PROGRESS_MAPPING = 20
PROGRESS_VALIDATING = 28
PROGRESS_IMPORT_START = 30
PROGRESS_IMPORT_SPAN = 60


@dataclass
class _RunState:
    """Mutable counters for a single run."""

    total_pages: int = 0
    processed_pages: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    created: Dict[str, str] = field(default_factory=dict)
    stopped: bool = False


class ImportOrchestrator:
    """Central coordinator for a OneNote → Notion import run."""

    def __init__(
        self,
        client: NotionClient,
        content_converter: ContentConverter,
        config: Optional[Dict[str, Any]] = None,
        page_creator: Optional[RemotePageCreator] = None,
        selection_filter: Optional[SelectionFilter] = None,
        mapper: Optional[HierarchyMapper] = None,
        validator: Optional[HierarchyValidator] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Remote client (authenticate/create_page)
            content_converter: Converter applied to every leaf page
            config: Configuration dictionary (see config_loader)
            page_creator: Pre-built page creator; built from config when omitted
            selection_filter: Selection filter (default instance when omitted)
            mapper: Hierarchy mapper (default instance when omitted)
            validator: Hierarchy validator (default instance when omitted)
            logger: Optional logger instance
        """
        self.client = client
        self.content_converter = content_converter
        self.config = config or {}
        self.page_creator = page_creator
        self.selection_filter = selection_filter or SelectionFilter()
        self.mapper = mapper or HierarchyMapper()
        self.validator = validator or HierarchyValidator()
        self.logger = logger or logging.getLogger('onenote_notion_migrator.orchestrator')

        self.converter_options = get_nested(self.config, 'import.converter', None) or {
            'include_metadata': True,
            'output_format': 'notion'
        }
        self.progress_history: List[ImportProgress] = []
        self._listener: Optional[ProgressListener] = None
        self._active_creator: Optional[RemotePageCreator] = None

    # ========================================================================
    # Entry points
    # ========================================================================

    def import_file(
        self,
        options: ImportOptions,
        provider: HierarchyProvider,
        on_progress: ProgressListener,
        cancel_token: Optional[CancellationToken] = None
    ) -> ImportResult:
        """
        Extract the hierarchy from options.file_path, then run the import.

        Extraction failures are fatal and reported like any other fatal error.
        """
        self._start_run(on_progress)
        state = _RunState()
        self._emit(state, ImportStatus.PROCESSING, "Processing OneNote file...", 0)

        try:
            if not options.file_path:
                raise MigrationError("No source file given")
            hierarchy = provider.extract(options.file_path)
        except MigrationError as e:
            return self._fail(str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error reading {options.file_path}: {e}", exc_info=True)
            return self._fail(str(e))

        return self._execute(hierarchy, options, cancel_token)

    def run_import(
        self,
        hierarchy: SourceHierarchy,
        options: ImportOptions,
        on_progress: ProgressListener,
        cancel_token: Optional[CancellationToken] = None
    ) -> ImportResult:
        """
        Run one import over an already-extracted hierarchy.

        Args:
            hierarchy: Full source hierarchy
            options: Selection, target IDs and dry-run flag
            on_progress: Listener receiving every ImportProgress update
            cancel_token: Optional token checked between stages and pages

        Returns:
            ImportResult; never raises for pipeline errors
        """
        self._start_run(on_progress)
        return self._execute(hierarchy, options, cancel_token)

    def get_api_stats(self) -> Dict[str, Any]:
        """Request counters of the page creator used by the last run."""
        creator = self._active_creator or self.page_creator
        return creator.get_stats() if creator else {}

    # ========================================================================
    # Stages
    # ========================================================================

    def _execute(
        self,
        hierarchy: SourceHierarchy,
        options: ImportOptions,
        cancel_token: Optional[CancellationToken]
    ) -> ImportResult:
        state = _RunState()
        log_section("OneNote to Notion import")
        self.logger.info(
            f"Starting import (dry_run={options.dry_run}, selected={len(options.selected_items)} items)"
        )
        self.logger.info(f"Target workspace: {options.workspace_id or '(scoped by API token)'}")

        try:
            self._emit(state, ImportStatus.PROCESSING, "Initializing import...", 0)
            self._check_cancelled(cancel_token)

            # Step 1: selection
            self._emit(state, ImportStatus.PROCESSING, "Selecting items...", PROGRESS_SELECTING)
            if not options.selected_items:
                raise SelectionError("No items selected for import")
            notebooks = self.selection_filter.filter(hierarchy.notebooks, options.selected_items)
            if not notebooks:
                raise SelectionError("None of the selected items exist in the source hierarchy")

            # Step 2: count
            state.total_pages = self.selection_filter.count_pages(notebooks)
            self._check_cancelled(cancel_token)

            # Step 3: dry run
            if options.dry_run:
                return self._dry_run(notebooks, options, state)

            # Step 4: connect
            self._emit(state, ImportStatus.PROCESSING, "Connecting to Notion...", PROGRESS_CONNECTING)
            self._connect()
            self._check_cancelled(cancel_token)

            # Step 5: map and validate
            roots = self._map_and_validate(notebooks, options, state)
            self._check_cancelled(cancel_token)

            # Step 6-7: create pages
            self._emit(state, ImportStatus.IMPORTING, "Converting content and creating pages...",
                       PROGRESS_IMPORT_START)
            creator = self.page_creator or self._build_page_creator(options, cancel_token)
            self._active_creator = creator

            with ProgressTracker(state.total_pages, "pages") as tracker:
                self._create_pages(roots, None, creator, state, options, cancel_token, tracker)

        except CancelledError as e:
            return self._cancelled(state, str(e))
        except MigrationError as e:
            self.logger.error(f"Import failed: {e}")
            return self._fail(str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error during import: {e}", exc_info=True)
            return self._fail(str(e))

        # Step 8: completion
        message = f"Import completed: {state.success_count}/{state.total_pages} pages successfully imported"
        if state.stopped:
            message += " (stopped after first error)"
        self._emit(state, ImportStatus.COMPLETED, "Import completed", 100)
        self.logger.info(message)

        return ImportResult(
            success=state.error_count == 0,
            total_pages=state.total_pages,
            success_count=state.success_count,
            error_count=state.error_count,
            errors=list(state.errors),
            message=message,
            created=dict(state.created)
        )

    def _dry_run(self, notebooks, options: ImportOptions, state: _RunState) -> ImportResult:
        """Map and validate locally, without touching the network."""
        self._map_and_validate(notebooks, options, state)

        state.processed_pages = state.total_pages
        state.success_count = state.total_pages
        self._emit(state, ImportStatus.COMPLETED, "Dry run completed", 100)

        message = f"Dry run completed: Would import {state.total_pages} pages to Notion"
        self.logger.info(f"[DRY RUN] {message}")
        return ImportResult(
            success=True,
            total_pages=state.total_pages,
            success_count=state.total_pages,
            error_count=0,
            errors=[],
            message=message
        )

    def _connect(self) -> None:
        token = get_nested(self.config, 'notion.api_token')
        try:
            connected = self.client.authenticate(token)
        except (NotionConnectionError, NotionApiError) as e:
            raise ConnectivityError(f"Failed to connect to Notion API: {e}") from e

        if not connected:
            raise ConnectivityError(
                "Failed to connect to Notion API. Please check your token and workspace ID."
            )

    def _map_and_validate(self, notebooks, options: ImportOptions, state: _RunState) -> List[TargetPage]:
        self._emit(state, ImportStatus.PROCESSING, "Mapping hierarchy to Notion...", PROGRESS_MAPPING)

        def on_mapping_progress(progress: HierarchyProgress) -> None:
            self._emit(state, ImportStatus.PROCESSING, progress.message, progress.percentage)

        roots = self.mapper.map_hierarchy(
            notebooks,
            options.max_depth,
            on_mapping_progress,
            base=PROGRESS_MAPPING,
            span=PROGRESS_VALIDATING - PROGRESS_MAPPING
        )

        self._emit(state, ImportStatus.PROCESSING, "Validating hierarchy...", PROGRESS_VALIDATING)
        validation = self.validator.validate(roots)
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        mapped_pages = sum(1 for page in HierarchyMapper.flatten(roots) if not page.is_container)
        if mapped_pages < state.total_pages:
            self.logger.warning(
                f"Depth limit {options.max_depth} left {state.total_pages - mapped_pages} pages unmapped"
            )
            state.total_pages = mapped_pages
        return roots

    def _create_pages(
        self,
        pages: List[TargetPage],
        parent_remote_id: Optional[str],
        creator: RemotePageCreator,
        state: _RunState,
        options: ImportOptions,
        cancel_token: Optional[CancellationToken],
        tracker: ProgressTracker
    ) -> None:
        """Create pages in pre-order so every parent exists before its children."""
        for page in pages:
            if state.stopped:
                return
            self._check_cancelled(cancel_token)

            if page.is_container:
                try:
                    created = creator.create_page(page, parent_remote_id)
                except CancelledError:
                    raise
                except Exception as e:
                    reason = f'Failed to create {page.kind.value} "{page.title}": {e}'
                    self.logger.error(reason)
                    state.error_count += 1
                    state.errors.append(reason)
                    self._skip_descendants(page, state, tracker)
                    if not options.continue_on_error:
                        state.stopped = True
                    continue

                state.created[page.id] = created.remote_id
                self.logger.info(f"Created {page.kind.value}: {page.title} (ID: {created.remote_id})")
                self._create_pages(page.children, created.remote_id, creator, state, options,
                                   cancel_token, tracker)
            else:
                self._create_leaf(page, parent_remote_id, creator, state, tracker)
                if state.error_count and not options.continue_on_error:
                    state.stopped = True

    def _create_leaf(
        self,
        page: TargetPage,
        parent_remote_id: Optional[str],
        creator: RemotePageCreator,
        state: _RunState,
        tracker: ProgressTracker
    ) -> None:
        try:
            converted = self.content_converter.convert(page, self.converter_options)
            prepared = dataclasses.replace(
                page,
                title=converted.title or page.title,
                content=converted.content,
                properties=converted.properties or page.properties,
                children=[]
            )
            created = creator.create_page(prepared, parent_remote_id)
        except CancelledError:
            raise
        except Exception as e:
            state.processed_pages += 1
            state.error_count += 1
            message = f'Failed to create page "{page.title}": {e}'
            state.errors.append(message)
            self.logger.error(message)
            tracker.increment(success=False)
        else:
            state.processed_pages += 1
            state.success_count += 1
            state.created[page.id] = created.remote_id
            self.logger.debug(f"Created page: {page.title} (ID: {created.remote_id})")
            tracker.increment(success=True)

        self._emit_page_progress(state, f"Processing page: {page.title}")

    def _skip_descendants(self, container: TargetPage, state: _RunState, tracker: ProgressTracker) -> None:
        for page in HierarchyMapper.flatten(container.children):
            if page.is_container:
                continue
            state.processed_pages += 1
            state.error_count += 1
            state.errors.append(f'Skipped page "{page.title}": parent "{container.title}" was not created')
            tracker.increment(success=False, skipped=True)
            self._emit_page_progress(state, f"Skipping page: {page.title}")

    def _build_page_creator(
        self,
        options: ImportOptions,
        cancel_token: Optional[CancellationToken]
    ) -> RemotePageCreator:
        database_id = options.database_id or get_nested(self.config, 'notion.database_id')
        if not database_id:
            raise MigrationError("No Notion database ID provided")

        return RemotePageCreator(
            self.client,
            database_id,
            max_retries=get_nested(self.config, 'import.max_retries', 3),
            rate_limit_delay=get_nested(self.config, 'import.rate_limit_delay', 1.0),
            backoff_factor=get_nested(self.config, 'import.backoff_factor', 2.0),
            max_delay=get_nested(self.config, 'import.max_delay', 30.0),
            cancel_token=cancel_token
        )

    # ========================================================================
    # Results and progress
    # ========================================================================

    def _fail(self, message: str) -> ImportResult:
        self._emit(_RunState(error_count=1, errors=[message]), ImportStatus.ERROR, "Import failed", 0)
        return ImportResult(
            success=False,
            total_pages=0,
            success_count=0,
            error_count=1,
            errors=[message],
            message=f"Import failed: {message}"
        )

    def _cancelled(self, state: _RunState, reason: str) -> ImportResult:
        message = (f"Import cancelled: {state.success_count}/{state.total_pages} "
                   f"pages imported before cancellation")
        self.logger.warning(f"{message} ({reason})")
        self._emit(state, ImportStatus.COMPLETED, "Import cancelled", self._page_progress(state))
        return ImportResult(
            success=False,
            total_pages=state.total_pages,
            success_count=state.success_count,
            error_count=state.error_count,
            errors=list(state.errors),
            message=message,
            created=dict(state.created),
            cancelled=True
        )

    @staticmethod
    def _check_cancelled(cancel_token: Optional[CancellationToken]) -> None:
        if cancel_token is not None and cancel_token.is_cancelled:
            raise CancelledError(cancel_token.reason or "Cancelled")

    @staticmethod
    def _page_progress(state: _RunState) -> float:
        if state.total_pages == 0:
            return PROGRESS_IMPORT_START + PROGRESS_IMPORT_SPAN
        return PROGRESS_IMPORT_START + (state.processed_pages / state.total_pages) * PROGRESS_IMPORT_SPAN

    def _emit_page_progress(self, state: _RunState, step: str) -> None:
        self._emit(state, ImportStatus.IMPORTING, step, self._page_progress(state))

    def _start_run(self, on_progress: ProgressListener) -> None:
        if on_progress is None:
            raise TypeError("on_progress listener is required")
        self.progress_history = []
        self._listener = on_progress
        self._active_creator = None

    def _emit(self, state: _RunState, status: ImportStatus, step: str, progress: float) -> None:
        update = ImportProgress(
            status=status,
            current_step=step,
            progress=round(progress, 2),
            total_pages=state.total_pages,
            processed_pages=state.processed_pages,
            success_count=state.success_count,
            error_count=state.error_count,
            errors=list(state.errors)
        )
        self.progress_history.append(update)
        self.logger.debug(f"[{status.value}] {progress:.0f}% {step}")
        if self._listener is not None:
            self._listener(update)


__all__ = ['ImportOrchestrator', 'ProgressListener']
