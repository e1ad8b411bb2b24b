"""
Import report generator for summarizing an import run.

Builds a report dictionary from the ImportResult, the progress history and the
page creator's request counters, and formats it for console display or JSON
export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from logger import format_elapsed
from models import ImportProgress, ImportResult, ImportStatus


class ImportReport:
    """Generates import reports from a finished run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize import report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('onenote_notion_migrator.orchestrator')

    def generate_report(
        self,
        result: ImportResult,
        progress_history: List[ImportProgress],
        api_stats: Optional[Dict[str, Any]],
        duration: float
    ) -> Dict[str, Any]:
        """
        Generate import report.

        Args:
            result: Final ImportResult
            progress_history: Every progress update emitted during the run
            api_stats: Page creator counters (empty for dry runs)
            duration: Total run duration in seconds

        Returns:
            Report dictionary with summary, errors, api, stages and timestamp
        """
        self.logger.info("Generating import report")

        report = {
            'summary': self._build_summary(result, duration),
            'errors': self._build_error_summary(result),
            'api': self._build_api_stats(api_stats or {}),
            'stages': self._build_stage_list(progress_history),
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {result.success_count}/{result.total_pages} pages, "
            f"{result.error_count} errors"
        )
        return report

    def _build_summary(self, result: ImportResult, duration: float) -> Dict[str, Any]:
        if result.cancelled:
            status = 'cancelled'
        elif result.success:
            status = 'success'
        else:
            status = 'failed'

        summary = {
            'status': status,
            'message': result.message,
            'total_pages': result.total_pages,
            'success_count': result.success_count,
            'error_count': result.error_count,
            'remote_pages_created': len(result.created),
            'duration_seconds': duration,
            'duration_formatted': format_elapsed(duration)
        }

        if result.total_pages > 0:
            summary['success_rate'] = result.success_count / result.total_pages
        else:
            summary['success_rate'] = 1.0 if result.success else 0.0

        return summary

    @staticmethod
    def _build_error_summary(result: ImportResult) -> List[Dict[str, Any]]:
        errors = []
        for message in result.errors:
            if message.startswith('Skipped page'):
                kind = 'skipped'
            elif message.startswith('Failed to create'):
                kind = 'page'
            else:
                kind = 'fatal'
            errors.append({'type': kind, 'message': message})
        return errors

    @staticmethod
    def _build_api_stats(api_stats: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'requests_made': api_stats.get('requests_made', 0),
            'pages_created': api_stats.get('pages_created', 0),
            'rate_limit_hits': api_stats.get('rate_limit_hits', 0),
            'retries': api_stats.get('retries', 0),
            'errors': api_stats.get('errors', 0)
        }

    @staticmethod
    def _build_stage_list(progress_history: List[ImportProgress]) -> List[Dict[str, Any]]:
        """Collapse the history to one entry per stage, dropping per-page updates."""
        stages = []
        for update in progress_history:
            if update.status == ImportStatus.IMPORTING and stages and \
                    stages[-1]['status'] == ImportStatus.IMPORTING.value:
                continue
            stages.append({
                'status': update.status.value,
                'step': update.current_step,
                'progress': update.progress
            })
        return stages

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Import report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("IMPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        sections.append(f"  Status:      {summary.get('status', 'unknown').upper()}")
        sections.append(f"  Pages:       {summary.get('success_count', 0)}/{summary.get('total_pages', 0)}")
        sections.append(f"  Errors:      {summary.get('error_count', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        if 'success_rate' in summary:
            sections.append(f"  Success:     {summary['success_rate'] * 100:.1f}%")
        sections.append(f"  {summary.get('message', '')}")
        sections.append("")

        api = report.get('api', {})
        if api.get('requests_made'):
            sections.append("Notion API:")
            sections.append("-" * 60)
            sections.append(f"  Requests:    {api.get('requests_made', 0)}")
            sections.append(f"  Created:     {api.get('pages_created', 0)}")
            sections.append(f"  Rate limits: {api.get('rate_limit_hits', 0)} ({api.get('retries', 0)} retries)")
            sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append("Error Summary:")
            sections.append(f"  Total errors: {len(errors)}")
            for error in errors[:10]:
                sections.append(f"  - {error['message']}")
            if len(errors) > 10:
                sections.append(f"  ... and {len(errors) - 10} more")
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Import report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['ImportReport']
