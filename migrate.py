#!/usr/bin/env python3
"""
OneNote to Notion Import Tool - Main CLI Entry Point

This script provides the command-line interface for importing a OneNote
notebook export into a Notion database, keeping the notebook → section → page
structure as nested Notion pages.
"""

import argparse
import logging
import os
import signal
import sys
import time
from pathlib import Path
from typing import List

from tqdm import tqdm

# Add project root to Python path for relative imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

# Project imports
from config_loader import ConfigLoader, get_nested
from extractors import JsonHierarchyProvider
from importers import CancellationToken, ExtractionError, NotionClient, PassthroughContentConverter
from logger import log_config, log_section, setup_logging
from models import ImportOptions, ImportProgress, SourceHierarchy
from orchestrator import ImportOrchestrator, ImportReport

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Import OneNote notebooks, sections and pages into a Notion database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import everything in an export
  python migrate.py --file notebooks.json --all

  # Import one section and one loose page
  python migrate.py --file notebooks.json --select section-1,page-7

  # Preview without touching Notion
  python migrate.py --file notebooks.json --all --dry-run

  # Show the notebook tree with ids
  python migrate.py --file notebooks.json --list

  # Verbose logging and a JSON report
  python migrate.py --file notebooks.json --all -vv --report report.json
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--file',
        type=str,
        required=True,
        help='OneNote hierarchy export (.json, .yaml or .yml)'
    )

    parser.add_argument(
        '--select',
        action='append',
        default=[],
        metavar='ID[,ID...]',
        help='Notebook, section or page id to import (repeatable, comma separated)'
    )

    parser.add_argument(
        '--all',
        action='store_true',
        help='Import every notebook in the export'
    )

    parser.add_argument(
        '--list',
        action='store_true',
        help='Print the notebook tree with ids and exit'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Map and validate without creating pages'
    )

    parser.add_argument(
        '--database-id',
        type=str,
        help='Target Notion database id (overrides config)'
    )

    parser.add_argument(
        '--workspace-id',
        type=str,
        help='Notion workspace id (overrides config)'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum hierarchy depth to import (default: 10)'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON import report to this path'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def parse_selection(values: List[str]) -> List[str]:
    """Flatten repeated and comma-separated --select values, keeping order."""
    selected = []
    for value in values:
        for item in value.split(','):
            item = item.strip()
            if item and item not in selected:
                selected.append(item)
    return selected


def load_configuration(args: argparse.Namespace) -> dict:
    """Load the config file (if any), then apply env and CLI overrides."""
    if args.config:
        config = ConfigLoader.load(args.config)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config = ConfigLoader.load(DEFAULT_CONFIG_PATH)
    else:
        config = ConfigLoader.with_defaults({})

    config = ConfigLoader.apply_env_overrides(config)
    return ConfigLoader.merge_with_args(config, args)


def print_tree(hierarchy: SourceHierarchy) -> None:
    """Print the notebook tree with ids for use with --select."""
    for notebook in hierarchy.notebooks:
        print(f"{notebook.name}  [{notebook.id}]")
        for section in notebook.sections:
            print(f"  {section.name}  [{section.id}]")
            for page in section.pages:
                print(f"    {page.title}  [{page.id}]")
    print(
        f"\n{hierarchy.total_notebooks} notebooks, {hierarchy.total_sections} sections, "
        f"{hierarchy.total_pages} pages"
    )


def run_import(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute one import and print its report."""
    provider = JsonHierarchyProvider()
    try:
        hierarchy = provider.extract(args.file)
    except ExtractionError as e:
        logger.error(str(e))
        return 2

    if args.list:
        print_tree(hierarchy)
        return 0

    selected = parse_selection(args.select)
    if args.all:
        selected = [notebook.id for notebook in hierarchy.notebooks]
    if not selected:
        logger.error("Nothing selected. Use --select ID or --all (see --list for ids)")
        return 2

    options = ImportOptions(
        workspace_id=get_nested(config, 'notion.workspace_id') or '',
        database_id=get_nested(config, 'notion.database_id') or '',
        selected_items=selected,
        dry_run=bool(get_nested(config, 'import.dry_run', False)),
        file_path=args.file,
        max_depth=get_nested(config, 'import.max_depth', 10),
        continue_on_error=get_nested(config, 'import.continue_on_error', True)
    )

    orchestrator = ImportOrchestrator(
        NotionClient.from_config(config),
        PassthroughContentConverter(),
        config
    )

    cancel_token = CancellationToken()
    previous_handler = signal.signal(
        signal.SIGINT, lambda signum, frame: cancel_token.cancel("Interrupted by user")
    )

    start_time = time.time()
    with tqdm(total=100, desc="Importing", unit="%", disable=not sys.stderr.isatty()) as pbar:
        def on_progress(progress: ImportProgress) -> None:
            pbar.set_postfix_str(progress.current_step[:40])
            pbar.update(max(progress.progress - pbar.n, 0))

        try:
            result = orchestrator.run_import(hierarchy, options, on_progress, cancel_token)
        finally:
            signal.signal(signal.SIGINT, previous_handler)
    duration = time.time() - start_time

    report_generator = ImportReport(logger)
    report = report_generator.generate_report(
        result,
        orchestrator.progress_history,
        orchestrator.get_api_stats(),
        duration
    )
    print("\n" + report_generator.format_console_report(report))

    if args.report:
        report_generator.export_json_report(report, args.report)

    if result.cancelled:
        return 130
    return 0 if result.success else 1


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        # Minimal logging until the config is loaded
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('onenote_notion_migrator.cli')

        config = load_configuration(args)
        ConfigLoader.validate(config, dry_run=args.dry_run or args.list)

        # Reconfigure logging with config file settings
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )

        log_section("OneNote to Notion Import Tool")
        logger.info(f"Version: {__version__}")
        log_config(config)

        return run_import(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nImport interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
