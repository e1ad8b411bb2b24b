"""
OneNote to Notion Import Tool

A standalone tool for importing OneNote notebooks into a Notion database while
keeping the notebook → section → page hierarchy.

Features:
- Selection of whole notebooks, single sections or individual pages
- Hierarchy mapping with a configurable depth limit
- Pre-flight validation (dangling parents, cycles, duplicate ids)
- Parent-before-child page creation through the Notion REST API
- Bounded exponential backoff on Notion rate limits
- Dry-run mode, cancellation and progress reporting
- Console and JSON import reports

Basic Usage:
    1. Copy config.yaml.example to config.yaml
    2. Set NOTION_API_KEY and NOTION_DATABASE_ID (or fill in config.yaml)
    3. Run: python migrate.py --file notebooks.json --list
    4. Then: python migrate.py --file notebooks.json --select <id> [--dry-run]

Example Configuration (config.yaml):
    notion:
        api_token: ${NOTION_API_KEY}
        database_id: ${NOTION_DATABASE_ID}

    import:
        max_retries: 3
        rate_limit_delay: 1.0
"""

__version__ = "1.0.0"
__description__ = "OneNote to Notion import tool"

__all__ = [
    '__version__',
    '__description__',
]
