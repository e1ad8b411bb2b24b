"""Referential integrity checks for mapped Notion page trees."""

import logging
from typing import Dict, List, Optional, Set

from models import TargetPage, ValidationResult

from .hierarchy_mapper import HierarchyMapper


class HierarchyValidator:
    """Checks a mapped tree for duplicate ids, dangling parents and cycles."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('onenote_notion_migrator.importers.hierarchy_validator')

    def validate(self, roots: List[TargetPage]) -> ValidationResult:
        """
        Validate a mapped hierarchy.

        Args:
            roots: Root pages, children nested

        Returns:
            ValidationResult with is_valid False when any error was found
        """
        errors: List[str] = []
        pages = HierarchyMapper.flatten(roots)

        by_id: Dict[str, TargetPage] = {}
        for page in pages:
            if page.id in by_id:
                errors.append(f"Duplicate page id {page.id}")
            else:
                by_id[page.id] = page

        for page in pages:
            if page.parent_id and page.parent_id not in by_id:
                errors.append(f"Page {page.id} references non-existent parent {page.parent_id}")

        limit = len(pages)
        for page in pages:
            if self._has_cycle(page, by_id, limit):
                errors.append(f"Circular reference detected involving page {page.id}")

        if errors:
            self.logger.warning(f"Hierarchy validation found {len(errors)} errors in {limit} pages")
        else:
            self.logger.debug(f"Hierarchy validation passed for {limit} pages")

        return ValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def _has_cycle(page: TargetPage, by_id: Dict[str, TargetPage], limit: int) -> bool:
        """Walk the parent chain from page; True when an id repeats."""
        visited: Set[str] = {page.id}
        current: Optional[TargetPage] = page
        steps = 0

        while current is not None and current.parent_id and steps <= limit:
            if current.parent_id in visited:
                return True
            visited.add(current.parent_id)
            current = by_id.get(current.parent_id)
            steps += 1

        return False


__all__ = ['HierarchyValidator']
