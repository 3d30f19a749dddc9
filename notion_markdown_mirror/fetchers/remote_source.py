"""Notion-backed source: page metadata and fully paginated block listings."""

import logging
from typing import Any, Dict, List, Optional

from ..models import Block, BlockKind, PageMetadata
from ..notion_client import NotionClient
from .base_fetcher import BaseSource, UnsupportedBlockError
from .rate_limiter import RateLimitedFetcher

logger = logging.getLogger('notion_markdown_mirror.fetcher.remote_source')


def number_numbered_list_items(blocks: List[Block]) -> None:
    """
    Number each run of numbered list items from 1, in place.

    Any other block ends the run. Needed because a listing assembled from
    several responses would otherwise restart numbering at page boundaries.
    """
    index = 0
    for block in blocks:
        if block.kind is BlockKind.NUMBERED_LIST_ITEM:
            index += 1
            block.number = index
        else:
            index = 0


class RemoteSource(BaseSource):
    """Fetches pages and block children through the rate-limited fetcher."""

    def __init__(self, client: NotionClient, fetcher: RateLimitedFetcher, page_size: int = 100):
        """
        Initialize the source.

        Args:
            client: Notion REST client
            fetcher: Shared rate-limited fetcher
            page_size: Children requested per listing call
        """
        self.client = client
        self.fetcher = fetcher
        self.page_size = page_size
        self.stats = {
            'pages_retrieved': 0,
            'listing_calls': 0,
            'blocks_listed': 0,
        }

    def get_page_metadata(self, page_id: str) -> PageMetadata:
        data = self.fetcher.execute(
            f"pages.retrieve({page_id})",
            lambda: self.client.get_page(page_id)
        )
        self.stats['pages_retrieved'] += 1
        return PageMetadata.from_api(data)

    def get_block_children(self, block_id: str) -> List[Block]:
        records: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            response = self.fetcher.execute(
                f"getBlockChildren({block_id})",
                lambda: self.client.list_block_children(block_id, start_cursor=cursor, page_size=self.page_size)
            )
            self.stats['listing_calls'] += 1
            records.extend(response.get('results') or [])

            cursor = response.get('next_cursor')
            if not cursor:
                break
            logger.debug(f"Fetched {len(records)} children of {block_id} so far...")

        blocks = [Block.from_record(record) for record in records]

        partial = [block.id for block in blocks if not block.is_full]
        if partial:
            logger.error(
                f"The Notion API returned some blocks under {block_id} that were not full blocks."
            )
            raise UnsupportedBlockError(block_id, partial)

        number_numbered_list_items(blocks)
        self.stats['blocks_listed'] += len(blocks)
        logger.debug(f"Fetched {len(blocks)} children for {block_id}")
        return blocks


__all__ = ['RemoteSource', 'number_numbered_list_items']
