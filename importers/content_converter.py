"""
Content converter interface and default implementation.

The orchestrator calls a converter for every leaf page before creating it in
Notion. The default converter flattens OneNote HTML to text lines, keeping
headings and list items in the simple markdown-ish form the Notion client
turns into blocks.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from models import TargetPage


MAX_TITLE_LENGTH = 2000


@dataclass
class ConvertedContent:
    """Converter output for a single page."""

    content: str
    properties: Dict[str, Any] = field(default_factory=dict)
    title: Optional[str] = None


class ContentConverter(ABC):
    """Converts a mapped page's content into what gets sent to Notion."""

    @abstractmethod
    def convert(self, page: TargetPage, options: Optional[Dict[str, Any]] = None) -> ConvertedContent:
        """
        Convert one page.

        Args:
            page: Mapped leaf page
            options: Converter-specific options

        Returns:
            ConvertedContent; raising marks the page as failed
        """
        pass


class PassthroughContentConverter(ContentConverter):
    """Strips OneNote HTML down to text lines and passes properties through."""

    HEADING_PREFIXES = {'h1': '# ', 'h2': '## ', 'h3': '### '}

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('onenote_notion_migrator.importers.content_converter')

    def convert(self, page: TargetPage, options: Optional[Dict[str, Any]] = None) -> ConvertedContent:
        options = options or {}
        content = page.content or ''

        if '<' in content and '>' in content:
            content = self.html_to_text(content)

        properties = dict(page.properties)
        if not options.get('include_metadata', True):
            properties = {'Type': properties.get('Type', 'Page')}

        self.logger.debug(f"Converted '{page.title}': {len(content)} chars, {len(properties)} properties")
        return ConvertedContent(
            content=content.strip(),
            properties=properties,
            title=self.transform_title(page.title)
        )

    def html_to_text(self, html: str) -> str:
        """Flatten HTML into lines, marking headings and list items."""
        soup = BeautifulSoup(html, 'html.parser')

        for tag in soup(['script', 'style']):
            tag.decompose()

        lines = []
        for element in soup.find_all(['h1', 'h2', 'h3', 'li', 'p', 'pre']):
            # nested blocks are emitted by their innermost element
            if element.find(['p', 'li', 'h1', 'h2', 'h3']):
                continue
            text = ' '.join(element.get_text(' ').split())
            if not text:
                continue
            if element.name in self.HEADING_PREFIXES:
                text = self.HEADING_PREFIXES[element.name] + text
            elif element.name == 'li':
                text = '- ' + text
            lines.append(text)

        if not lines:
            text = soup.get_text('\n')
            lines = [' '.join(line.split()) for line in text.splitlines() if line.strip()]

        return '\n'.join(lines)

    def transform_title(self, title: str) -> str:
        """
        Sanitize and truncate a title for Notion.

        Args:
            title: Original page title

        Returns:
            Sanitized title (no control characters, max 2000 chars)
        """
        if not title:
            return "Untitled"

        sanitized = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', title).strip()

        if len(sanitized) > MAX_TITLE_LENGTH:
            self.logger.warning(f"Title truncated from {len(sanitized)} to {MAX_TITLE_LENGTH} chars")
            sanitized = sanitized[:MAX_TITLE_LENGTH]

        return sanitized or "Untitled"


__all__ = ['ContentConverter', 'ConvertedContent', 'PassthroughContentConverter']
