"""Abstract source interface and the fetch-layer exception hierarchy."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import Block, PageMetadata


class FetcherError(Exception):
    """Base exception for fetch-layer errors."""
    pass


class FatalFetchError(FetcherError):
    """An error that ends the run. Nothing retries or compensates it."""
    pass


class RetriesExceededError(FatalFetchError):
    """A transient failure kept happening until the retry ceiling was reached."""

    def __init__(self, label: str, attempts: int, last_error: Optional[BaseException]):
        super().__init__(
            f'Operation "{label}" failed after {attempts} retries: {last_error}'
        )
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


class UnsupportedBlockError(FatalFetchError):
    """A children listing contained a record that is not a full block."""

    def __init__(self, parent_id: str, block_ids: List[str]):
        super().__init__(
            f"The Notion API returned {len(block_ids)} partial block(s) under {parent_id} "
            f"({', '.join(block_ids) or 'no id'}). Partial blocks are not supported."
        )
        self.parent_id = parent_id
        self.block_ids = block_ids


class RootPageUnreachableError(FatalFetchError):
    """The outline root page could not be retrieved."""
    pass


class BaseSource(ABC):
    """Where pages and their block listings come from."""

    @abstractmethod
    def get_page_metadata(self, page_id: str) -> PageMetadata:
        """
        Fetch page-level metadata.

        Args:
            page_id: Notion page id

        Returns:
            Parsed PageMetadata
        """
        pass

    @abstractmethod
    def get_block_children(self, block_id: str) -> List[Block]:
        """
        Fetch every child block of a page or block, in remote order.

        Args:
            block_id: Notion page or block id

        Returns:
            Full ordered list of child blocks with numbered lists renumbered

        Raises:
            UnsupportedBlockError: If any listed child is a partial record
        """
        pass


__all__ = [
    'BaseSource',
    'FatalFetchError',
    'FetcherError',
    'RetriesExceededError',
    'RootPageUnreachableError',
    'UnsupportedBlockError'
]
