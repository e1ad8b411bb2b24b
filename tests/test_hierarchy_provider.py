"""Tests for reading OneNote hierarchy exports from JSON/YAML."""

import json
import os
import tempfile
import unittest

from extractors import JsonHierarchyProvider
from importers.errors import ExtractionError


EXPORT = {
    "notebooks": [{
        "id": "nb-1",
        "name": "Work",
        "sections": [{
            "id": "sec-1",
            "name": "Meetings",
            "pages": [
                {
                    "id": "page-1",
                    "title": "Standup",
                    "content": "<p>Notes</p>",
                    "createdDate": "2024-01-15T09:30:00Z",
                    "lastModifiedDate": "2024-02-01T17:00:00+00:00",
                    "metadata": {"author": "Ada"}
                },
                {"id": "page-2", "title": "Retro"}
            ]
        }]
    }]
}


class TestJsonHierarchyProvider(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.provider = JsonHierarchyProvider()

    def write(self, name, text):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def test_reads_json_export(self):
        hierarchy = self.provider.extract(self.write('export.json', json.dumps(EXPORT)))

        self.assertEqual(hierarchy.total_notebooks, 1)
        self.assertEqual(hierarchy.total_sections, 1)
        self.assertEqual(hierarchy.total_pages, 2)

        page = hierarchy.get_node_by_id("page-1")
        self.assertEqual(page.title, "Standup")
        self.assertEqual(page.metadata, {"author": "Ada"})
        self.assertEqual(page.created_date.year, 2024)
        self.assertEqual(page.created_date.utcoffset().total_seconds(), 0)
        self.assertIsNone(hierarchy.get_node_by_id("page-2").created_date)

    def test_reads_yaml_export(self):
        text = (
            "notebooks:\n"
            "  - id: nb\n"
            "    name: NB\n"
            "    sections:\n"
            "      - id: sec\n"
            "        name: Sec\n"
            "        pages:\n"
            "          - id: p\n"
            "            title: P\n"
        )
        hierarchy = self.provider.extract(self.write('export.yaml', text))
        self.assertEqual(hierarchy.total_pages, 1)

    def test_bare_list_is_notebook_list(self):
        hierarchy = self.provider.extract(self.write('export.json', json.dumps(EXPORT["notebooks"])))
        self.assertEqual(hierarchy.total_notebooks, 1)

    def test_missing_file(self):
        with self.assertRaises(ExtractionError):
            self.provider.extract(os.path.join(self.tmpdir.name, 'missing.json'))

    def test_invalid_json(self):
        with self.assertRaises(ExtractionError):
            self.provider.extract(self.write('broken.json', '{"notebooks": ['))

    def test_missing_notebooks_key(self):
        with self.assertRaises(ExtractionError):
            self.provider.extract(self.write('empty.json', '{"pages": []}'))

    def test_missing_id(self):
        data = {"notebooks": [{"name": "No id", "sections": []}]}
        with self.assertRaises(ExtractionError):
            self.provider.extract(self.write('noid.json', json.dumps(data)))

    def test_duplicate_ids(self):
        data = {"notebooks": [{"id": "x", "name": "A", "sections": [{"id": "x", "name": "B"}]}]}
        with self.assertRaises(ExtractionError) as ctx:
            self.provider.extract(self.write('dup.json', json.dumps(data)))
        self.assertIn("duplicate id 'x'", str(ctx.exception))

    def test_null_sections_and_pages_are_empty(self):
        data = {"notebooks": [
            {"id": "nb-1", "name": "A", "sections": None},
            {"id": "nb-2", "name": "B", "sections": [{"id": "sec", "name": "S", "pages": None}]}
        ]}

        hierarchy = self.provider.extract(self.write('nulls.json', json.dumps(data)))

        self.assertEqual(hierarchy.total_notebooks, 2)
        self.assertEqual(hierarchy.total_sections, 1)
        self.assertEqual(hierarchy.total_pages, 0)

    def test_non_list_children_rejected(self):
        data = {"notebooks": [{"id": "nb", "name": "A", "sections": 5}]}
        with self.assertRaises(ExtractionError) as ctx:
            self.provider.extract(self.write('bad.json', json.dumps(data)))
        self.assertIn("'sections' of 'nb' must be a list", str(ctx.exception))

    def test_unparseable_date_is_dropped(self):
        data = {"notebooks": [{"id": "nb", "name": "NB", "createdDate": "not a date", "sections": []}]}
        hierarchy = self.provider.extract(self.write('dates.json', json.dumps(data)))
        self.assertIsNone(hierarchy.notebooks[0].created_date)


if __name__ == '__main__':
    unittest.main()
