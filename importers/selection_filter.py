"""
Selection filter for OneNote hierarchies.

Prunes a full notebook list down to the items the user picked, keeping every
included page's section and notebook so the result is still a well-formed
three-level tree.
"""

import dataclasses
import logging
from typing import Iterable, List, Optional, Set

from models import Notebook, Section


class SelectionFilter:
    """Builds a pruned copy of a hierarchy from a set of selected IDs."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('onenote_notion_migrator.importers.selection_filter')

    def filter(self, notebooks: List[Notebook], selected_ids: Iterable[str]) -> List[Notebook]:
        """
        Keep only the selected notebooks, sections and pages.

        A selected notebook or section is kept whole. A section that is not
        selected itself survives only with its selected pages, and a notebook
        that is not selected survives only with its surviving sections.

        Args:
            notebooks: Full source hierarchy
            selected_ids: IDs of selected notebooks, sections and/or pages

        Returns:
            New notebook list; the input is never modified. Empty when nothing
            is selected.
        """
        selected: Set[str] = set(selected_ids)
        if not selected:
            self.logger.debug("Empty selection, nothing to filter")
            return []

        result: List[Notebook] = []
        for notebook in notebooks:
            if notebook.id in selected:
                result.append(notebook)
                continue

            sections = [s for s in (self._filter_section(section, selected)
                                    for section in notebook.sections) if s is not None]
            if sections:
                result.append(dataclasses.replace(notebook, sections=sections))

        self.logger.info(
            f"Selection kept {len(result)} notebooks, {self.count_sections(result)} sections, "
            f"{self.count_pages(result)} pages ({len(selected)} ids selected)"
        )
        return result

    @staticmethod
    def _filter_section(section: Section, selected: Set[str]) -> Optional[Section]:
        if section.id in selected:
            return section

        pages = [page for page in section.pages if page.id in selected]
        if not pages:
            return None
        return dataclasses.replace(section, pages=pages)

    @staticmethod
    def count_pages(notebooks: List[Notebook]) -> int:
        """Count leaf pages across notebooks."""
        return sum(len(section.pages) for notebook in notebooks for section in notebook.sections)

    @staticmethod
    def count_sections(notebooks: List[Notebook]) -> int:
        """Count sections across notebooks."""
        return sum(len(notebook.sections) for notebook in notebooks)


__all__ = ['SelectionFilter']
