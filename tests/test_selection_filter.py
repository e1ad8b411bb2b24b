"""Tests for pruning a hierarchy to the selected items."""

import random
import unittest

from importers.selection_filter import SelectionFilter
from sample_data import random_hierarchy, sample_hierarchy, two_page_hierarchy


class TestSelectionFilter(unittest.TestCase):
    def setUp(self):
        self.selection_filter = SelectionFilter()

    def test_single_page_selection_keeps_its_section_and_notebook(self):
        hierarchy = two_page_hierarchy()

        result = self.selection_filter.filter(hierarchy.notebooks, {"page-2"})

        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].name, "NB")
        self.assertEqual(len(result[0].sections), 1)
        self.assertEqual(result[0].sections[0].name, "Sec")
        self.assertEqual([p.id for p in result[0].sections[0].pages], ["page-2"])
        self.assertEqual(result[0].sections[0].pages[0].title, "page-2")

    def test_single_page_selection_on_random_trees(self):
        """Selecting any one page yields exactly one notebook, section and page."""
        rng = random.Random(1234)
        for trial in range(50):
            hierarchy = random_hierarchy(rng)
            page_ids = [p.id for nb in hierarchy.notebooks for s in nb.sections for p in s.pages]
            if not page_ids:
                continue
            selected = rng.choice(page_ids)
            with self.subTest(trial=trial, page=selected):
                result = self.selection_filter.filter(hierarchy.notebooks, [selected])
                self.assertEqual(len(result), 1)
                self.assertEqual(len(result[0].sections), 1)
                self.assertEqual([p.id for p in result[0].sections[0].pages], [selected])

    def test_selected_notebook_is_kept_whole(self):
        hierarchy = sample_hierarchy()

        result = self.selection_filter.filter(hierarchy.notebooks, ["nb-1"])

        self.assertEqual([nb.id for nb in result], ["nb-1"])
        self.assertEqual(self.selection_filter.count_sections(result), 2)
        self.assertEqual(self.selection_filter.count_pages(result), 4)

    def test_selected_section_is_kept_whole(self):
        hierarchy = sample_hierarchy()

        result = self.selection_filter.filter(hierarchy.notebooks, ["sec-1", "page-5"])

        self.assertEqual([nb.id for nb in result], ["nb-1", "nb-2"])
        self.assertEqual([s.id for s in result[0].sections], ["sec-1"])
        self.assertEqual(len(result[0].sections[0].pages), 3)
        self.assertEqual([p.id for p in result[1].sections[0].pages], ["page-5"])

    def test_input_is_not_modified(self):
        hierarchy = sample_hierarchy()
        before = hierarchy.to_dict()

        self.selection_filter.filter(hierarchy.notebooks, ["page-2"])

        self.assertEqual(hierarchy.to_dict(), before)

    def test_empty_selection_returns_nothing(self):
        hierarchy = sample_hierarchy()
        self.assertEqual(self.selection_filter.filter(hierarchy.notebooks, []), [])

    def test_unknown_ids_return_nothing(self):
        hierarchy = sample_hierarchy()
        self.assertEqual(self.selection_filter.filter(hierarchy.notebooks, ["missing"]), [])


if __name__ == '__main__':
    unittest.main()
