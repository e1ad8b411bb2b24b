"""
Source hierarchy providers.

A provider turns an exported OneNote file into a SourceHierarchy. Binary
.one/.onepkg parsing lives outside this project; the bundled provider reads
JSON or YAML exports of the notebook → section → page tree.
"""

from .hierarchy_provider import HierarchyProvider, JsonHierarchyProvider

__all__ = [
    'HierarchyProvider',
    'JsonHierarchyProvider'
]
