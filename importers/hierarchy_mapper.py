"""
Hierarchy Mapper for OneNote to Notion page trees.

Maps OneNote's notebook → section → page structure to a tree of Notion pages,
where notebooks and sections become container pages and every node carries a
'Type' property. Parent relationships are stored as ids, never as object
references.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from models import (
    HierarchyMappingResult,
    Notebook,
    NodeKind,
    Page,
    Section,
    TargetPage
)


# Constants
DEFAULT_MAX_DEPTH = 10
DEFAULT_PROGRESS_BASE = 30.0
DEFAULT_PROGRESS_SPAN = 60.0
UNKNOWN_AUTHOR = "Unknown"


@dataclass
class HierarchyProgress:
    """Progress report emitted while mapping notebooks."""

    stage: str
    percentage: float
    message: str
    current_item: Optional[int] = None
    total_items: Optional[int] = None


ProgressCallback = Callable[[HierarchyProgress], None]


class HierarchyMapper:
    """
    Converts OneNote notebooks into Notion target pages.

    Recursion is depth-limited: each level consumes one unit of ``max_depth``
    and children are only visited while more than one unit remains. Anything
    below the limit is skipped entirely rather than unlinked.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the hierarchy mapper.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('onenote_notion_migrator.importers.hierarchy_mapper')

    def map_hierarchy(
        self,
        notebooks: List[Notebook],
        max_depth: int,
        on_progress: ProgressCallback,
        base: float = DEFAULT_PROGRESS_BASE,
        span: float = DEFAULT_PROGRESS_SPAN
    ) -> List[TargetPage]:
        """
        Map notebooks to root target pages.

        Args:
            notebooks: (Pruned) source notebooks
            max_depth: Levels to map; 1 maps notebooks only, 3 maps the full tree
            on_progress: Callback receiving one report per notebook
            base: Start of the progress window this stage reports into
            span: Width of that progress window

        Returns:
            One root TargetPage per notebook, with nested children
        """
        roots: List[TargetPage] = []
        total = len(notebooks)

        for index, notebook in enumerate(notebooks):
            on_progress(HierarchyProgress(
                stage='mapping',
                percentage=base + (index / total) * span,
                message=f"Mapping notebook: {notebook.name}",
                current_item=index + 1,
                total_items=total
            ))
            roots.append(self.map_notebook(notebook, max_depth))

        self.logger.debug(f"Mapped {total} notebooks (max_depth={max_depth})")
        return roots

    def map_with_result(
        self,
        notebooks: List[Notebook],
        max_depth: int,
        on_progress: ProgressCallback,
        base: float = DEFAULT_PROGRESS_BASE,
        span: float = DEFAULT_PROGRESS_SPAN
    ) -> HierarchyMappingResult:
        """Map notebooks and return roots, flattened pages and counts."""
        start_time = time.time()
        roots = self.map_hierarchy(notebooks, max_depth, on_progress, base, span)
        flattened = self.flatten(roots)

        return HierarchyMappingResult(
            pages=roots,
            flattened=flattened,
            total_notebooks=sum(1 for p in flattened if p.kind is NodeKind.NOTEBOOK),
            total_sections=sum(1 for p in flattened if p.kind is NodeKind.SECTION),
            total_pages=sum(1 for p in flattened if p.kind is NodeKind.PAGE),
            processing_time=time.time() - start_time
        )

    def map_notebook(self, notebook: Notebook, max_depth: int = DEFAULT_MAX_DEPTH) -> TargetPage:
        """Map a notebook and, depth permitting, its sections."""
        notebook_page = TargetPage(
            id=notebook.id,
            title=notebook.name,
            content=f"Notebook: {notebook.name}",
            kind=NodeKind.NOTEBOOK,
            properties=self._base_properties(NodeKind.NOTEBOOK, notebook),
            metadata=dict(notebook.metadata)
        )

        if max_depth > 1:
            notebook_page.children = [
                self.map_section(section, notebook.id, max_depth - 1)
                for section in notebook.sections
            ]
        elif notebook.sections:
            self.logger.debug(f"Depth limit reached at notebook '{notebook.name}', skipping sections")

        return notebook_page

    def map_section(self, section: Section, parent_id: str, max_depth: int = DEFAULT_MAX_DEPTH) -> TargetPage:
        """Map a section and, depth permitting, its pages."""
        section_page = TargetPage(
            id=section.id,
            title=section.name,
            content=f"Section: {section.name}",
            kind=NodeKind.SECTION,
            properties=self._base_properties(NodeKind.SECTION, section),
            parent_id=parent_id,
            metadata=dict(section.metadata)
        )

        if max_depth > 1:
            section_page.children = [self.map_page(page, section.id) for page in section.pages]
        elif section.pages:
            self.logger.debug(f"Depth limit reached at section '{section.name}', skipping pages")

        return section_page

    def map_page(self, page: Page, parent_id: str) -> TargetPage:
        """Map a leaf page, copying source metadata into properties."""
        properties = self._base_properties(NodeKind.PAGE, page)
        properties['Author'] = page.metadata.get('author') or UNKNOWN_AUTHOR
        for key, value in page.metadata.items():
            # metadata must not overwrite the type tag
            if key != 'Type':
                properties[key] = value

        return TargetPage(
            id=page.id,
            title=page.title,
            content=page.content,
            kind=NodeKind.PAGE,
            properties=properties,
            parent_id=parent_id,
            metadata=dict(page.metadata)
        )

    @staticmethod
    def flatten(pages: List[TargetPage]) -> List[TargetPage]:
        """Pre-order traversal returning every page and its descendants."""
        flattened: List[TargetPage] = []
        stack = list(reversed(pages))
        while stack:
            page = stack.pop()
            flattened.append(page)
            stack.extend(reversed(page.children))
        return flattened

    @staticmethod
    def _base_properties(kind: NodeKind, node: Any) -> Dict[str, Any]:
        properties: Dict[str, Any] = {'Type': kind.type_name}
        if node.created_date is not None:
            properties['Created Date'] = node.created_date
        if node.last_modified_date is not None:
            properties['Last Modified'] = node.last_modified_date
        return properties


__all__ = ['HierarchyMapper', 'HierarchyProgress', 'ProgressCallback', 'DEFAULT_MAX_DEPTH']
