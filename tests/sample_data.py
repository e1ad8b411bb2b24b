"""Hierarchy builders shared by the test modules."""

import random
from datetime import datetime, timezone

from models import Notebook, Page, Section, SourceHierarchy


def make_page(page_id, title=None, content="", **metadata):
    return Page(
        id=page_id,
        title=title or page_id,
        content=content,
        created_date=datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
        last_modified_date=datetime(2024, 2, 1, 17, 0, tzinfo=timezone.utc),
        metadata=metadata
    )


def two_page_hierarchy():
    """1 notebook 'NB', 1 section 'Sec', pages page-1 and page-2."""
    section = Section(id="sec", name="Sec", pages=[make_page("page-1"), make_page("page-2")])
    return SourceHierarchy(notebooks=[Notebook(id="nb", name="NB", sections=[section])])


def sample_hierarchy():
    """
    nb-1 Work
        sec-1 Meetings: page-1, page-2, page-3
        sec-2 Ideas: page-4
    nb-2 Personal
        sec-3 Travel: page-5
    """
    work = Notebook(id="nb-1", name="Work", sections=[
        Section(id="sec-1", name="Meetings", pages=[
            make_page("page-1", "Page 1", "<h1>Standup</h1><p>Notes</p>", author="Ada"),
            make_page("page-2", "Page 2", "Second page"),
            make_page("page-3", "Page 3", "Third page"),
        ]),
        Section(id="sec-2", name="Ideas", pages=[make_page("page-4", "Page 4")]),
    ])
    personal = Notebook(id="nb-2", name="Personal", sections=[
        Section(id="sec-3", name="Travel", pages=[make_page("page-5", "Page 5")]),
    ])
    return SourceHierarchy(notebooks=[work, personal])


def random_hierarchy(rng: random.Random, max_notebooks=4, max_sections=4, max_pages=5):
    """Random tree with globally unique ids; sections and notebooks may be empty."""
    counter = iter(range(1, 1_000_000))
    notebooks = []
    for _ in range(rng.randint(1, max_notebooks)):
        sections = []
        for _ in range(rng.randint(0, max_sections)):
            pages = [make_page(f"page-{next(counter)}") for _ in range(rng.randint(0, max_pages))]
            sections.append(Section(id=f"sec-{next(counter)}", name="Section", pages=pages))
        notebooks.append(Notebook(id=f"nb-{next(counter)}", name="Notebook", sections=sections))
    return SourceHierarchy(notebooks=notebooks)
