"""Data models for the OneNote to Notion import pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dateutil.parser import isoparse

logger = logging.getLogger('onenote_notion_migrator')


class NodeKind(Enum):
    """Discriminant for the three levels of a source hierarchy."""
    NOTEBOOK = "notebook"
    SECTION = "section"
    PAGE = "page"

    @property
    def type_name(self) -> str:
        """Value used for the 'Type' property on mapped pages."""
        return self.value.capitalize()


class ImportStatus(Enum):
    """States of a single import run."""
    IDLE = "idle"
    PROCESSING = "processing"
    IMPORTING = "importing"
    COMPLETED = "completed"
    ERROR = "error"


def _parse_date(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        return isoparse(str(value))
    except ValueError:
        logger.warning(f"Ignoring unparseable date value: {value!r}")
        return None


def _format_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Page:
    """A OneNote page (leaf of the source hierarchy)."""

    id: str
    title: str
    content: str = ""
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    kind: NodeKind = field(default=NodeKind.PAGE, init=False)

    @property
    def name(self) -> str:
        return self.title

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'createdDate': _format_date(self.created_date),
            'lastModifiedDate': _format_date(self.last_modified_date),
            'metadata': dict(self.metadata)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Page':
        """Deserialize page from dictionary."""
        return cls(
            id=str(data['id']),
            title=data.get('title') or 'Untitled',
            content=data.get('content') or '',
            created_date=_parse_date(data.get('createdDate')),
            last_modified_date=_parse_date(data.get('lastModifiedDate')),
            metadata=dict(data.get('metadata') or {})
        )


@dataclass(frozen=True)
class Section:
    """A OneNote section holding pages."""

    id: str
    name: str
    pages: List[Page] = field(default_factory=list)
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    kind: NodeKind = field(default=NodeKind.SECTION, init=False)

    @property
    def children(self) -> List[Page]:
        return self.pages

    def to_dict(self) -> Dict[str, Any]:
        """Serialize section to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'pages': [page.to_dict() for page in self.pages],
            'createdDate': _format_date(self.created_date),
            'lastModifiedDate': _format_date(self.last_modified_date),
            'metadata': dict(self.metadata)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        """Deserialize section (and its pages) from dictionary."""
        return cls(
            id=str(data['id']),
            name=data.get('name') or 'Untitled Section',
            pages=[Page.from_dict(p) for p in data.get('pages') or []],
            created_date=_parse_date(data.get('createdDate')),
            last_modified_date=_parse_date(data.get('lastModifiedDate')),
            metadata=dict(data.get('metadata') or {})
        )


@dataclass(frozen=True)
class Notebook:
    """A OneNote notebook holding sections."""

    id: str
    name: str
    sections: List[Section] = field(default_factory=list)
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    kind: NodeKind = field(default=NodeKind.NOTEBOOK, init=False)

    @property
    def children(self) -> List[Section]:
        return self.sections

    def to_dict(self) -> Dict[str, Any]:
        """Serialize notebook to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'sections': [section.to_dict() for section in self.sections],
            'createdDate': _format_date(self.created_date),
            'lastModifiedDate': _format_date(self.last_modified_date),
            'metadata': dict(self.metadata)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Notebook':
        """Deserialize notebook (and its sections) from dictionary."""
        return cls(
            id=str(data['id']),
            name=data.get('name') or 'Untitled Notebook',
            sections=[Section.from_dict(s) for s in data.get('sections') or []],
            created_date=_parse_date(data.get('createdDate')),
            last_modified_date=_parse_date(data.get('lastModifiedDate')),
            metadata=dict(data.get('metadata') or {})
        )


SourceNode = Union[Notebook, Section, Page]


@dataclass
class SourceHierarchy:
    """Complete extracted OneNote hierarchy."""

    notebooks: List[Notebook] = field(default_factory=list)

    @property
    def total_notebooks(self) -> int:
        return len(self.notebooks)

    @property
    def total_sections(self) -> int:
        return sum(len(nb.sections) for nb in self.notebooks)

    @property
    def total_pages(self) -> int:
        return sum(len(s.pages) for nb in self.notebooks for s in nb.sections)

    def iter_nodes(self):
        """Yield every node in pre-order."""
        for notebook in self.notebooks:
            yield notebook
            for section in notebook.sections:
                yield section
                yield from section.pages

    def get_node_by_id(self, node_id: str) -> Optional[SourceNode]:
        """Find a notebook, section or page by ID."""
        for node in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize hierarchy to dictionary."""
        return {
            'notebooks': [nb.to_dict() for nb in self.notebooks],
            'totalNotebooks': self.total_notebooks,
            'totalSections': self.total_sections,
            'totalPages': self.total_pages
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SourceHierarchy':
        """Deserialize from dictionary."""
        return cls(notebooks=[Notebook.from_dict(nb) for nb in data.get('notebooks') or []])


@dataclass
class TargetPage:
    """A Notion page produced by the hierarchy mapper."""

    id: str
    title: str
    content: str
    kind: NodeKind
    properties: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[str] = None
    children: List['TargetPage'] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_container(self) -> bool:
        """Notebooks and sections only group other pages."""
        return self.kind is not NodeKind.PAGE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'kind': self.kind.value,
            'properties': {k: _format_date(v) if isinstance(v, datetime) else v
                           for k, v in self.properties.items()},
            'parent_id': self.parent_id,
            'children': [child.to_dict() for child in self.children]
        }


@dataclass
class ValidationResult:
    """Outcome of validating a mapped hierarchy."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class HierarchyMappingResult:
    """Mapped roots plus statistics about the mapping run."""

    pages: List[TargetPage]
    flattened: List[TargetPage]
    total_notebooks: int = 0
    total_sections: int = 0
    total_pages: int = 0
    processing_time: float = 0.0


@dataclass
class CreatedPage:
    """Remote identity of a page created in Notion."""

    remote_id: str
    url: str


@dataclass
class ImportOptions:
    """Caller-supplied options for one import run."""

    workspace_id: str = ""
    database_id: str = ""
    selected_items: List[str] = field(default_factory=list)
    dry_run: bool = False
    file_path: Optional[str] = None
    max_depth: int = 10
    continue_on_error: bool = True


@dataclass
class ImportProgress:
    """Snapshot delivered to the progress callback."""

    status: ImportStatus
    current_step: str
    progress: float
    total_pages: int = 0
    processed_pages: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize progress to dictionary."""
        return {
            'status': self.status.value,
            'currentStep': self.current_step,
            'progress': self.progress,
            'totalPages': self.total_pages,
            'processedPages': self.processed_pages,
            'successCount': self.success_count,
            'errorCount': self.error_count,
            'errors': list(self.errors)
        }


@dataclass
class ImportResult:
    """Final outcome of an import run."""

    success: bool
    total_pages: int
    success_count: int
    error_count: int
    errors: List[str] = field(default_factory=list)
    message: str = ""
    created: Dict[str, str] = field(default_factory=dict)
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            'success': self.success,
            'totalPages': self.total_pages,
            'successCount': self.success_count,
            'errorCount': self.error_count,
            'errors': list(self.errors),
            'message': self.message,
            'created': dict(self.created),
            'cancelled': self.cancelled
        }


__all__ = [
    'NodeKind',
    'ImportStatus',
    'Page',
    'Section',
    'Notebook',
    'SourceNode',
    'SourceHierarchy',
    'TargetPage',
    'ValidationResult',
    'HierarchyMappingResult',
    'CreatedPage',
    'ImportOptions',
    'ImportProgress',
    'ImportResult'
]
