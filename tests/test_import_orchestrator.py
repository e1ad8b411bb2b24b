"""Tests for the import orchestrator pipeline."""

import unittest
from unittest.mock import MagicMock

from importers import (
    CancellationToken,
    ExtractionError,
    NotionApiError,
    NotionConnectionError,
    PassthroughContentConverter,
    RemotePageCreator
)
from models import ImportOptions, ImportStatus, NodeKind, Notebook, Section, SourceHierarchy, TargetPage
from orchestrator import ImportOrchestrator
from sample_data import make_page, sample_hierarchy


CONFIG = {
    'notion': {'api_token': 'secret-token', 'database_id': 'db-1'},
    'import': {'max_retries': 3, 'rate_limit_delay': 0.0}
}


class FakeNotion:
    """Stands in for NotionClient, recording every create_page call."""

    def __init__(self, fail_titles=(), rate_limit_once=(), authenticated=True, on_create=None):
        self.fail_titles = set(fail_titles)
        self.rate_limit_once = set(rate_limit_once)
        self.authenticated = authenticated
        self.on_create = on_create
        self.calls = []
        self.created = {}
        self._limited = set()

    def authenticate(self, api_token=None):
        return self.authenticated

    def create_page(self, parent_id, title, content="", properties=None, parent_type='database_id'):
        self.calls.append({
            'parent_id': parent_id,
            'title': title,
            'content': content,
            'properties': properties,
            'parent_type': parent_type
        })
        if title in self.rate_limit_once and title not in self._limited:
            self._limited.add(title)
            raise NotionApiError("Rate limited", status=429, code='rate_limited')
        if title in self.fail_titles:
            raise NotionApiError("boom", status=400, code='validation_error')

        remote_id = f"remote-{len(self.created) + 1}"
        self.created[title] = remote_id
        if self.on_create:
            self.on_create(title)
        return {'id': remote_id, 'url': f"https://notion.so/{remote_id}"}


def three_page_hierarchy():
    section = Section(id="sec", name="Sec", pages=[
        make_page("page-1", "Page 1"), make_page("page-2", "Page 2"), make_page("page-3", "Page 3")
    ])
    return SourceHierarchy(notebooks=[Notebook(id="nb", name="NB", sections=[section])])


class TestImportOrchestrator(unittest.TestCase):
    def setUp(self):
        self.updates = []

    def make_orchestrator(self, client, **kwargs):
        kwargs.setdefault('page_creator', RemotePageCreator(client, 'db-1', sleep=lambda delay: None))
        return ImportOrchestrator(client, PassthroughContentConverter(), CONFIG, **kwargs)

    def run_selection(self, orchestrator, hierarchy, selected, **option_kwargs):
        options = ImportOptions(database_id='db-1', selected_items=selected, **option_kwargs)
        return orchestrator.run_import(hierarchy, options, self.updates.append)

    def test_all_pages_created(self):
        client = FakeNotion()
        orchestrator = self.make_orchestrator(client)

        result = self.run_selection(orchestrator, three_page_hierarchy(), ["nb"])

        self.assertTrue(result.success)
        self.assertEqual(result.total_pages, 3)
        self.assertEqual(result.success_count, 3)
        self.assertEqual(result.error_count, 0)
        self.assertEqual(result.message, "Import completed: 3/3 pages successfully imported")
        self.assertEqual(set(result.created), {"nb", "sec", "page-1", "page-2", "page-3"})

    def test_failing_page_is_recorded_and_run_continues(self):
        client = FakeNotion(fail_titles={"Page 2"})
        orchestrator = self.make_orchestrator(client)

        result = self.run_selection(orchestrator, three_page_hierarchy(), ["sec"])

        self.assertFalse(result.success)
        self.assertEqual(result.success_count, 2)
        self.assertEqual(result.error_count, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertIn('"Page 2"', result.errors[0])
        self.assertTrue(result.errors[0].startswith('Failed to create page "Page 2": '))
        self.assertIn("Page 3", client.created)

    def test_rate_limit_then_success_counts_page_once(self):
        client = FakeNotion(rate_limit_once={"Page 1"})
        orchestrator = self.make_orchestrator(client)

        result = self.run_selection(orchestrator, three_page_hierarchy(), ["nb"])

        self.assertTrue(result.success)
        self.assertEqual(result.success_count, 3)
        self.assertEqual(result.error_count, 0)
        page_one_calls = [c for c in client.calls if c['title'] == "Page 1"]
        self.assertEqual(len(page_one_calls), 2)
        self.assertEqual(orchestrator.get_api_stats()['rate_limit_hits'], 1)

    def test_dry_run_never_creates_pages(self):
        client = MagicMock()
        creator = MagicMock()
        orchestrator = ImportOrchestrator(client, PassthroughContentConverter(), CONFIG, page_creator=creator)

        result = self.run_selection(orchestrator, sample_hierarchy(), ["nb-1"], dry_run=True)

        self.assertTrue(result.success)
        self.assertEqual(result.total_pages, 4)
        self.assertEqual(result.success_count, result.total_pages)
        self.assertEqual(result.error_count, 0)
        self.assertEqual(result.message, "Dry run completed: Would import 4 pages to Notion")
        creator.create_page.assert_not_called()
        client.authenticate.assert_not_called()
        client.create_page.assert_not_called()
        self.assertEqual(self.updates[-1].status, ImportStatus.COMPLETED)

    def test_empty_selection_is_fatal(self):
        client = FakeNotion()
        result = self.run_selection(self.make_orchestrator(client), sample_hierarchy(), [])

        self.assertFalse(result.success)
        self.assertEqual(result.error_count, 1)
        self.assertEqual(result.errors, ["No items selected for import"])
        self.assertEqual(result.message, "Import failed: No items selected for import")
        self.assertEqual(self.updates[-1].status, ImportStatus.ERROR)
        self.assertEqual(client.calls, [])

    def test_selection_matching_nothing_is_fatal(self):
        result = self.run_selection(self.make_orchestrator(FakeNotion()), sample_hierarchy(), ["missing"])

        self.assertFalse(result.success)
        self.assertEqual(result.error_count, 1)
        self.assertTrue(result.message.startswith("Import failed: "))

    def test_authentication_failure_is_fatal(self):
        client = FakeNotion(authenticated=False)

        result = self.run_selection(self.make_orchestrator(client), sample_hierarchy(), ["nb-1"])

        self.assertFalse(result.success)
        self.assertEqual(result.error_count, 1)
        self.assertIn("Failed to connect to Notion API", result.errors[0])
        self.assertEqual(client.calls, [])

    def test_connection_error_is_fatal(self):
        client = MagicMock()
        client.authenticate.side_effect = NotionConnectionError("unreachable")
        orchestrator = ImportOrchestrator(client, PassthroughContentConverter(), CONFIG)

        result = self.run_selection(orchestrator, sample_hierarchy(), ["nb-1"])

        self.assertFalse(result.success)
        self.assertIn("unreachable", result.errors[0])
        client.create_page.assert_not_called()

    def test_validation_failure_is_fatal(self):
        client = FakeNotion()
        mapper = MagicMock()
        mapper.map_hierarchy.return_value = [
            TargetPage(id="A", title="A", content="", kind=NodeKind.PAGE, parent_id="B"),
            TargetPage(id="B", title="B", content="", kind=NodeKind.PAGE, parent_id="A"),
        ]

        result = self.run_selection(self.make_orchestrator(client, mapper=mapper), sample_hierarchy(), ["nb-1"])

        self.assertFalse(result.success)
        self.assertEqual(result.error_count, 1)
        self.assertIn("Hierarchy validation failed", result.errors[0])
        self.assertIn("Circular reference", result.errors[0])
        self.assertEqual(client.calls, [])

    def test_parents_are_created_before_children(self):
        client = FakeNotion()

        self.run_selection(self.make_orchestrator(client), sample_hierarchy(), ["nb-1"])

        titles = [c['title'] for c in client.calls]
        self.assertEqual(titles, ["Work", "Meetings", "Page 1", "Page 2", "Page 3", "Ideas", "Page 4"])

        by_title = {c['title']: c for c in client.calls}
        self.assertEqual(by_title["Work"]['parent_type'], 'database_id')
        self.assertEqual(by_title["Work"]['parent_id'], 'db-1')
        self.assertEqual(by_title["Meetings"]['parent_id'], client.created["Work"])
        self.assertEqual(by_title["Meetings"]['parent_type'], 'page_id')
        self.assertEqual(by_title["Page 1"]['parent_id'], client.created["Meetings"])
        self.assertEqual(by_title["Page 4"]['parent_id'], client.created["Ideas"])

    def test_failed_container_skips_descendants(self):
        client = FakeNotion(fail_titles={"Meetings"})

        result = self.run_selection(self.make_orchestrator(client), sample_hierarchy(), ["nb-1"])

        self.assertFalse(result.success)
        self.assertEqual(result.total_pages, 4)
        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.error_count, 4)
        self.assertTrue(result.errors[0].startswith('Failed to create section "Meetings"'))
        self.assertIn('Skipped page "Page 1": parent "Meetings" was not created', result.errors)
        self.assertNotIn("Page 1", [c['title'] for c in client.calls])
        self.assertIn("Page 4", client.created)

    def test_failed_container_without_pages_fails_the_run(self):
        hierarchy = SourceHierarchy(notebooks=[
            Notebook(id="nb", name="NB", sections=[Section(id="sec", name="Empty")])
        ])
        client = FakeNotion(fail_titles={"NB"})

        result = self.run_selection(self.make_orchestrator(client), hierarchy, ["nb"])

        self.assertFalse(result.success)
        self.assertEqual(result.total_pages, 0)
        self.assertEqual(result.error_count, 1)
        self.assertTrue(result.errors[0].startswith('Failed to create notebook "NB"'))
        self.assertEqual([c['title'] for c in client.calls], ["NB"])

    def test_stop_after_first_error(self):
        client = FakeNotion(fail_titles={"Page 2"})

        result = self.run_selection(
            self.make_orchestrator(client), three_page_hierarchy(), ["nb"], continue_on_error=False
        )

        self.assertFalse(result.success)
        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.error_count, 1)
        self.assertNotIn("Page 3", [c['title'] for c in client.calls])

    def test_content_is_converted_before_creation(self):
        client = FakeNotion()

        self.run_selection(self.make_orchestrator(client), sample_hierarchy(), ["page-1"])

        page_call = next(c for c in client.calls if c['title'] == "Page 1")
        self.assertEqual(page_call['content'], "# Standup\nNotes")
        self.assertEqual(page_call['properties']['Type'], "Page")
        self.assertEqual(page_call['properties']['Author'], "Ada")

    def test_cancellation_between_pages(self):
        token = CancellationToken()

        def cancel_after_first_page(title):
            if title == "Page 1":
                token.cancel("user stop")

        client = FakeNotion(on_create=cancel_after_first_page)
        orchestrator = self.make_orchestrator(client)
        options = ImportOptions(database_id='db-1', selected_items=["nb"])

        result = orchestrator.run_import(three_page_hierarchy(), options, self.updates.append, token)

        self.assertTrue(result.cancelled)
        self.assertFalse(result.success)
        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.message, "Import cancelled: 1/3 pages imported before cancellation")
        self.assertNotIn("Page 2", [c['title'] for c in client.calls])
        self.assertEqual(self.updates[-1].status, ImportStatus.COMPLETED)

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        client = FakeNotion()
        options = ImportOptions(database_id='db-1', selected_items=["nb"])

        result = self.make_orchestrator(client).run_import(three_page_hierarchy(), options, self.updates.append, token)

        self.assertTrue(result.cancelled)
        self.assertEqual(client.calls, [])

    def test_progress_history(self):
        client = FakeNotion()
        orchestrator = self.make_orchestrator(client)

        self.run_selection(orchestrator, sample_hierarchy(), ["nb-1"])

        steps = [(u.progress, u.current_step) for u in self.updates]
        self.assertEqual(steps[0], (0, "Initializing import..."))
        self.assertIn((10, "Connecting to Notion..."), steps)
        self.assertIn((28, "Validating hierarchy..."), steps)
        self.assertIn((30, "Converting content and creating pages..."), steps)
        self.assertEqual(self.updates[-1].status, ImportStatus.COMPLETED)
        self.assertEqual(self.updates[-1].progress, 100)

        progress = [u.progress for u in self.updates]
        self.assertEqual(progress, sorted(progress))

        page_updates = [u for u in self.updates if u.current_step.startswith("Processing page")]
        self.assertEqual(len(page_updates), 4)
        self.assertTrue(all(30 < u.progress <= 90 for u in page_updates))
        self.assertEqual(page_updates[-1].progress, 90)
        self.assertEqual(orchestrator.progress_history, self.updates)

    def test_depth_limit_reduces_total(self):
        client = FakeNotion()

        result = self.run_selection(self.make_orchestrator(client), sample_hierarchy(), ["nb-1"], max_depth=2)

        self.assertTrue(result.success)
        self.assertEqual(result.total_pages, 0)
        self.assertEqual([c['title'] for c in client.calls], ["Work", "Meetings", "Ideas"])

    def test_page_creator_built_from_config(self):
        client = FakeNotion(rate_limit_once={"Page 1"})
        orchestrator = ImportOrchestrator(client, PassthroughContentConverter(), CONFIG)

        result = self.run_selection(orchestrator, three_page_hierarchy(), ["nb"])

        self.assertTrue(result.success)
        self.assertEqual(orchestrator.get_api_stats()['retries'], 1)

    def test_import_file_extracts_first(self):
        client = FakeNotion()
        provider = MagicMock()
        provider.extract.return_value = three_page_hierarchy()
        options = ImportOptions(database_id='db-1', selected_items=["nb"], file_path="export.json")

        result = self.make_orchestrator(client).import_file(options, provider, self.updates.append)

        provider.extract.assert_called_once_with("export.json")
        self.assertTrue(result.success)
        self.assertEqual(self.updates[0].current_step, "Processing OneNote file...")
        self.assertEqual(self.updates[0].status, ImportStatus.PROCESSING)

    def test_import_file_extraction_failure_is_fatal(self):
        provider = MagicMock()
        provider.extract.side_effect = ExtractionError("Source file not found: missing.json")
        options = ImportOptions(selected_items=["nb"], file_path="missing.json")

        result = self.make_orchestrator(FakeNotion()).import_file(options, provider, self.updates.append)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Import failed: Source file not found: missing.json")
        self.assertEqual(self.updates[-1].status, ImportStatus.ERROR)


if __name__ == '__main__':
    unittest.main()
