"""
Notion REST API client for the OneNote to Notion migrator.

This module provides a client wrapper for the Notion REST API, handling
authentication, transport retries for server errors, request timeouts, and
serialization of page titles, properties and content into Notion payloads.
Rate limiting (429) is surfaced as a classified NotionApiError so callers can
apply their own bounded retry policy.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('onenote_notion_migrator.importers.notion_client')


# Notion API limits
MAX_RICH_TEXT_LENGTH = 2000
MAX_BLOCKS_PER_REQUEST = 100


class NotionApiError(Exception):
    """Error response returned by the Notion API."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        retry_after: Optional[float] = None
    ):
        """
        Initialize API error.

        Args:
            message: Human-readable error message
            status: HTTP status code
            code: Notion error code (e.g. 'rate_limited', 'validation_error')
            retry_after: Seconds the server asked us to wait, if given
        """
        self.status = status
        self.code = code
        self.retry_after = retry_after
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """String representation of error."""
        return f"NotionApiError(status={self.status}, code={self.code}, message={self.message})"

    @property
    def is_rate_limit(self) -> bool:
        return NotionClient.is_rate_limit_error(self)


class NotionConnectionError(Exception):
    """Exception for connection/transport failures."""
    pass


class BlockAppendError(Exception):
    """A page was created but appending its remaining blocks failed."""

    def __init__(self, page_id: str, url: str, blocks: List[Dict[str, Any]], cause: Exception):
        """
        Args:
            page_id: ID of the page that now exists in Notion
            url: URL of that page
            blocks: Blocks that were not appended yet
            cause: Error raised by the failing append request
        """
        self.page_id = page_id
        self.url = url
        self.blocks = blocks
        self.cause = cause
        super().__init__(f"Page {page_id} created but {len(blocks)} blocks were not appended: {cause}")


class NotionClient:
    """Notion REST API client with transport retries and explicit timeouts."""

    DEFAULT_BASE_URL = "https://api.notion.com/v1"
    DEFAULT_NOTION_VERSION = "2022-06-28"
    DEFAULT_TIMEOUT = 30
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_BACKOFF = 0.5
    DEFAULT_TITLE_PROPERTY = "title"

    def __init__(
        self,
        api_token: str = "",
        base_url: str = DEFAULT_BASE_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff_factor: float = DEFAULT_RETRY_BACKOFF,
        title_property: str = DEFAULT_TITLE_PROPERTY
    ):
        """
        Initialize Notion client.

        Args:
            api_token: Internal integration token
            base_url: Notion API base URL
            notion_version: Value of the Notion-Version header
            verify_ssl: Whether to verify SSL certificates
            timeout: Per-request timeout in seconds
            max_retries: Transport retries for 5xx responses
            retry_backoff_factor: Backoff factor for transport retries
            title_property: Name of the database's title property
        """
        self.base_url = base_url.rstrip('/')
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.title_property = title_property

        self.session = requests.Session()
        self.session.headers.update({
            'Notion-Version': notion_version,
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        })
        if api_token:
            self._set_token(api_token)

        # 429 is deliberately absent: the page creator owns rate-limit retries
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            raise_on_status=False
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

        logger.debug(f"Initialized Notion client for {self.base_url} (timeout={timeout}s)")

    def _set_token(self, api_token: str) -> None:
        self.session.headers['Authorization'] = f'Bearer {api_token}'

    def _make_request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Make HTTP request and translate failures into client exceptions.

        Args:
            method: HTTP method (GET, POST, PATCH)
            endpoint: API endpoint path
            json: JSON payload
            params: Query parameters

        Returns:
            JSON response as dictionary

        Raises:
            NotionApiError: For non-2xx responses (including 429)
            NotionConnectionError: For transport failures and timeouts
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json,
                params=params,
                verify=self.verify_ssl,
                timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NotionConnectionError(f"Connection error during {method} {endpoint}: {e}") from e
        except requests.RequestException as e:
            raise NotionConnectionError(f"Request failed: {method} {endpoint}: {e}") from e

        logger.debug(f"Response status: {response.status_code}")

        if response.status_code >= 400:
            raise self._build_api_error(response)

        return response.json() if response.content else {}

    @staticmethod
    def _build_api_error(response: requests.Response) -> NotionApiError:
        code = None
        message = response.text[:500] if response.text else f"HTTP {response.status_code}"
        try:
            body = response.json()
            code = body.get('code')
            message = body.get('message', message)
        except ValueError:
            pass

        retry_after = None
        header = response.headers.get('Retry-After')
        if header:
            try:
                retry_after = float(header)
            except ValueError:
                retry_after = None

        if response.status_code == 429 and code is None:
            code = 'rate_limited'

        return NotionApiError(message, status=response.status_code, code=code, retry_after=retry_after)

    @staticmethod
    def is_rate_limit_error(error: BaseException) -> bool:
        """True for HTTP 429, Notion's 'rate_limited' code, or a rate-limit message."""
        if getattr(error, 'status', None) == 429:
            return True
        if getattr(error, 'code', None) == 'rate_limited':
            return True
        message = str(getattr(error, 'message', '') or error).lower()
        return 'rate limit' in message

    # ========================================================================
    # Authentication
    # ========================================================================

    def authenticate(self, api_token: Optional[str] = None) -> bool:
        """
        Install the token and verify it against the users/me endpoint.

        Returns:
            True if Notion accepted the token, False if it was rejected

        Raises:
            NotionConnectionError: If Notion could not be reached
        """
        if api_token is not None:
            if not api_token.strip():
                logger.error("Notion API token is empty")
                return False
            self._set_token(api_token)

        if 'Authorization' not in self.session.headers:
            logger.error("No Notion API token configured")
            return False

        return self.test_connection()

    def test_connection(self) -> bool:
        """Check connectivity and credentials."""
        try:
            user = self._make_request('GET', '/users/me')
        except NotionApiError as e:
            logger.error(f"Notion rejected credentials: {e.message}")
            return False

        logger.info(f"Connected to Notion as {user.get('name') or user.get('id', 'unknown bot')}")
        return True

    # ========================================================================
    # Pages
    # ========================================================================

    def create_page(
        self,
        parent_id: str,
        title: str,
        content: str = "",
        properties: Optional[Dict[str, Any]] = None,
        parent_type: str = 'database_id'
    ) -> Dict[str, str]:
        """
        Create a page under a database or another page.

        Database parents receive the converted properties; page parents only
        accept a title, so properties are rendered as leading paragraphs.

        Args:
            parent_id: Notion database or page ID
            title: Page title
            content: Plain/markdown-ish content converted to blocks
            properties: Extra properties
            parent_type: 'database_id' or 'page_id'

        Returns:
            Dict with 'id' and 'url' of the created page
        """
        properties = properties or {}
        title_value = {'title': self._rich_text(title or 'Untitled')}

        if parent_type == 'database_id':
            payload_properties = {self.title_property: title_value}
            for key, value in properties.items():
                payload_properties[key] = self.convert_property_value(value)
            blocks = self.content_to_blocks(content)
        else:
            payload_properties = {'title': title_value}
            blocks = self.properties_to_blocks(properties) + self.content_to_blocks(content)

        payload = {
            'parent': {parent_type: parent_id},
            'properties': payload_properties,
            'children': blocks[:MAX_BLOCKS_PER_REQUEST]
        }

        response = self._make_request('POST', '/pages', json=payload)
        page_id = response['id']

        url = response.get('url') or f"https://notion.so/{page_id.replace('-', '')}"

        remaining = blocks[MAX_BLOCKS_PER_REQUEST:]
        if remaining:
            try:
                self.append_blocks(page_id, remaining)
            except BlockAppendError as e:
                e.url = url
                raise

        return {'id': page_id, 'url': url}

    def append_blocks(self, block_id: str, blocks: List[Dict[str, Any]]) -> None:
        """
        Append blocks in chunks of MAX_BLOCKS_PER_REQUEST.

        Raises:
            BlockAppendError: Carrying the chunk that failed and everything after it
        """
        for start in range(0, len(blocks), MAX_BLOCKS_PER_REQUEST):
            try:
                self._make_request(
                    'PATCH',
                    f'/blocks/{block_id}/children',
                    json={'children': blocks[start:start + MAX_BLOCKS_PER_REQUEST]}
                )
            except (NotionApiError, NotionConnectionError) as e:
                raise BlockAppendError(block_id, '', blocks[start:], e) from e

    # ========================================================================
    # Serialization helpers
    # ========================================================================

    @staticmethod
    def _rich_text(text: str) -> List[Dict[str, Any]]:
        chunks = [text[i:i + MAX_RICH_TEXT_LENGTH] for i in range(0, len(text), MAX_RICH_TEXT_LENGTH)] or ['']
        return [{'type': 'text', 'text': {'content': chunk}} for chunk in chunks]

    @classmethod
    def convert_property_value(cls, value: Any) -> Dict[str, Any]:
        """Convert a Python value into a Notion property value."""
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return {'checkbox': value}
        if isinstance(value, (int, float)):
            return {'number': value}
        if isinstance(value, (datetime, date)):
            return {'date': {'start': value.isoformat()}}
        if isinstance(value, str):
            return {'rich_text': cls._rich_text(value)}
        return {'rich_text': cls._rich_text(str(value))}

    @classmethod
    def content_to_blocks(cls, content: str) -> List[Dict[str, Any]]:
        """Convert text content to Notion blocks, one block per non-empty line."""
        blocks = []
        for line in (content or '').split('\n'):
            if not line.strip():
                continue

            if line.startswith('### '):
                block_type, text = 'heading_3', line[4:]
            elif line.startswith('## '):
                block_type, text = 'heading_2', line[3:]
            elif line.startswith('# '):
                block_type, text = 'heading_1', line[2:]
            elif line.startswith('- '):
                block_type, text = 'bulleted_list_item', line[2:]
            else:
                block_type, text = 'paragraph', line

            blocks.append({
                'object': 'block',
                'type': block_type,
                block_type: {'rich_text': cls._rich_text(text)}
            })
        return blocks

    @classmethod
    def properties_to_blocks(cls, properties: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Render properties as 'Key: value' paragraphs for page-parented pages."""
        lines = []
        for key, value in properties.items():
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            lines.append(f"{key}: {value}")
        return cls.content_to_blocks('\n'.join(lines))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'NotionClient':
        """
        Create client from configuration dictionary.

        Args:
            config: Configuration dict with 'notion' section

        Returns:
            Configured NotionClient instance
        """
        notion_config = config.get('notion', {})
        advanced_config = config.get('advanced', {})

        return cls(
            api_token=notion_config.get('api_token') or '',
            base_url=notion_config.get('base_url', cls.DEFAULT_BASE_URL),
            notion_version=notion_config.get('notion_version', cls.DEFAULT_NOTION_VERSION),
            verify_ssl=advanced_config.get('verify_ssl', True),
            timeout=notion_config.get('request_timeout', cls.DEFAULT_TIMEOUT),
            max_retries=advanced_config.get('max_retries', cls.DEFAULT_MAX_RETRIES),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', cls.DEFAULT_RETRY_BACKOFF),
            title_property=notion_config.get('title_property', cls.DEFAULT_TITLE_PROPERTY)
        )


__all__ = ['BlockAppendError', 'NotionClient', 'NotionApiError', 'NotionConnectionError']
