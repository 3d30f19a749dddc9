"""Fetchers package: rate-limited, retrying access to the Notion outline."""

from .base_fetcher import (
    BaseSource,
    FatalFetchError,
    FetcherError,
    RetriesExceededError,
    RootPageUnreachableError,
    UnsupportedBlockError
)
from .rate_limiter import RateLimitedFetcher, TokenBucket, is_transient_error
from .remote_source import RemoteSource, number_numbered_list_items
from ..notion_client import NotionClient


def create_remote_source(config: dict) -> RemoteSource:
    """Build a RemoteSource with its client and shared fetcher from configuration.

    Args:
        config: Configuration dictionary

    Returns:
        RemoteSource instance
    """
    return RemoteSource(
        client=NotionClient.from_config(config),
        fetcher=RateLimitedFetcher.from_config(config)
    )


__all__ = [
    'BaseSource',
    'FatalFetchError',
    'FetcherError',
    'RateLimitedFetcher',
    'RemoteSource',
    'RetriesExceededError',
    'RootPageUnreachableError',
    'TokenBucket',
    'UnsupportedBlockError',
    'create_remote_source',
    'is_transient_error',
    'number_numbered_list_items'
]
