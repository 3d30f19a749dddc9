"""Notion REST API client: authentication, transport and error translation."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('notion_markdown_mirror.client')

DEFAULT_BASE_URL = 'https://api.notion.com/v1/'
DEFAULT_API_VERSION = '2022-06-28'


class NotionApiError(Exception):
    """A failed Notion API call, carrying the API's error code when there is one."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"code={self.code}")
        if self.status:
            parts.append(f"status={self.status}")
        return ' '.join(parts)


class NotionClient:
    """Thin Notion REST client. Retrying on API errors is left to the caller."""

    def __init__(
        self,
        token: str,
        api_version: str = DEFAULT_API_VERSION,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        connect_retries: int = 2,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Notion client.

        Args:
            token: Integration secret
            api_version: Value of the Notion-Version header
            base_url: API root URL
            timeout: HTTP request timeout in seconds
            connect_retries: Connection-level retries done by urllib3
            session: Optional preconfigured session (tests)
        """
        if not token:
            raise ValueError("Notion client requires an integration token")

        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.timeout = timeout
        self.request_count = 0

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Notion-Version': api_version,
            'Content-Type': 'application/json',
        })

        # Only failed connections are retried here; status retries belong to the fetcher
        retry_strategy = Retry(
            total=connect_retries,
            connect=connect_retries,
            read=0,
            status=0,
            allowed_methods=["GET", "POST"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        logger.debug(f"Notion client configured: base={self.base_url}, version={api_version}, timeout={timeout}s")

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Make an API request and return the decoded JSON body.

        Raises:
            NotionApiError: For timeouts, connection failures and non-2xx responses
        """
        url = urljoin(self.base_url, endpoint.lstrip('/'))
        self.request_count += 1
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise NotionApiError(f"Request timeout after {self.timeout}s: {method} {url}",
                                 code='request_timeout') from e
        except requests.exceptions.ConnectionError as e:
            raise NotionApiError(f"Connection error: {method} {url} - {e}",
                                 code='connection_error') from e

        logger.debug(f"API Response: {response.status_code} {url}")

        if response.ok:
            return response.json()

        try:
            error_body = response.json()
        except ValueError:
            raise NotionApiError(
                f"HTTP {response.status_code} with non-JSON body: {response.text[:200]}",
                code='response_error',
                status=response.status_code
            )

        raise NotionApiError(
            error_body.get('message', f"HTTP {response.status_code}"),
            code=error_body.get('code'),
            status=error_body.get('status', response.status_code)
        )

    def get_page(self, page_id: str) -> Dict[str, Any]:
        """
        Retrieve a page object.

        Args:
            page_id: Notion page id (dashed or compact)

        Returns:
            Page dictionary with properties and parent
        """
        return self._request('GET', f'pages/{page_id}')

    def list_block_children(
        self,
        block_id: str,
        start_cursor: Optional[str] = None,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """
        Retrieve one page of a block's children.

        Args:
            block_id: Parent block or page id
            start_cursor: Continuation cursor from the previous page
            page_size: Maximum children per response

        Returns:
            Dictionary with 'results', 'next_cursor' and 'has_more'
        """
        params: Dict[str, Any] = {'page_size': page_size}
        if start_cursor:
            params['start_cursor'] = start_cursor
        return self._request('GET', f'blocks/{block_id}/children', params=params)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'NotionClient':
        """
        Initialize client from configuration dictionary.

        Args:
            config: Configuration dictionary with a 'notion' section

        Returns:
            NotionClient instance
        """
        notion_config = config.get('notion', {})

        return cls(
            token=notion_config.get('token'),
            api_version=notion_config.get('api_version', DEFAULT_API_VERSION),
            base_url=notion_config.get('base_url', DEFAULT_BASE_URL),
            timeout=notion_config.get('request_timeout', 30)
        )


__all__ = ['NotionApiError', 'NotionClient']
