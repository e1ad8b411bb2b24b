"""
Orchestration package for coordinating import runs.

This package sequences the import pipeline: Select → Map → Validate →
Create pages → Report. It turns a OneNote hierarchy into Notion pages and
summarizes the outcome.
"""

from .import_orchestrator import ImportOrchestrator, ProgressListener
from .import_report import ImportReport

__all__ = [
    'ImportOrchestrator',
    'ImportReport',
    'ProgressListener'
]
