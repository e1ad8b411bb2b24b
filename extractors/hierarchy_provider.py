"""Abstract provider interface and the JSON/YAML export reader."""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

import yaml

from importers.errors import ExtractionError
from models import SourceHierarchy


class HierarchyProvider(ABC):
    """Abstract base class for source hierarchy providers."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('onenote_notion_migrator.extractors')

    @abstractmethod
    def extract(self, path: str) -> SourceHierarchy:
        """
        Read the notebook hierarchy stored at path.

        Raises:
            ExtractionError: If the file is missing or malformed
        """
        pass


class JsonHierarchyProvider(HierarchyProvider):
    """Reads a hierarchy export in JSON (or YAML) form."""

    YAML_EXTENSIONS = {'.yaml', '.yml'}

    def extract(self, path: str) -> SourceHierarchy:
        if not os.path.exists(path):
            raise ExtractionError(f"Source file not found: {path}")

        data = self._load(path)
        self._validate(data, path)

        try:
            hierarchy = SourceHierarchy.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise ExtractionError(f"Malformed hierarchy in {path}: {e}") from e

        self.logger.info(
            f"Loaded {hierarchy.total_notebooks} notebooks, {hierarchy.total_sections} sections, "
            f"{hierarchy.total_pages} pages from {path}"
        )
        return hierarchy

    def _load(self, path: str) -> Dict[str, Any]:
        extension = os.path.splitext(path)[1].lower()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if extension in self.YAML_EXTENSIONS:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ExtractionError(f"Could not parse {path}: {e}") from e
        except OSError as e:
            raise ExtractionError(f"Could not read {path}: {e}") from e

        # a bare list is accepted as the notebook list
        if isinstance(data, list):
            data = {'notebooks': data}
        if not isinstance(data, dict):
            raise ExtractionError(f"{path} must contain an object with a 'notebooks' list")
        return data

    @staticmethod
    def _validate(data: Dict[str, Any], path: str) -> None:
        """Reject missing ids and ids that appear twice anywhere in the tree."""
        notebooks = data.get('notebooks')
        if not isinstance(notebooks, list):
            raise ExtractionError(f"{path} has no 'notebooks' list")

        seen: Set[str] = set()

        def check(node: Any, level: str) -> None:
            if not isinstance(node, dict) or node.get('id') in (None, ''):
                raise ExtractionError(f"{path}: every {level} needs an 'id'")
            node_id = str(node['id'])
            if node_id in seen:
                raise ExtractionError(f"{path}: duplicate id '{node_id}'")
            seen.add(node_id)

        def children(node: Dict[str, Any], key: str) -> List[Any]:
            # null is treated as an empty list
            value = node.get(key) or []
            if not isinstance(value, list):
                raise ExtractionError(f"{path}: '{key}' of '{node['id']}' must be a list")
            return value

        for notebook in notebooks:
            check(notebook, 'notebook')
            for section in children(notebook, 'sections'):
                check(section, 'section')
                for page in children(section, 'pages'):
                    check(page, 'page')


__all__ = ['HierarchyProvider', 'JsonHierarchyProvider']
