"""Shared fixtures: an in-memory page source and Notion record builders."""

from typing import Any, Dict, List, Optional

import pytest

from notion_markdown_mirror.fetchers.base_fetcher import BaseSource
from notion_markdown_mirror.fetchers.remote_source import number_numbered_list_items
from notion_markdown_mirror.models import Block, PageMetadata
from notion_markdown_mirror.notion_client import NotionApiError


def make_id(n: int) -> str:
    """Compact 32-hex Notion id for a small integer."""
    return f"{n:032x}"


def dashed(page_id: str) -> str:
    return f"{page_id[:8]}-{page_id[8:12]}-{page_id[12:16]}-{page_id[16:20]}-{page_id[20:]}"


def rich_text(text: str, href: Optional[str] = None) -> List[Dict[str, Any]]:
    return [{
        'type': 'text',
        'plain_text': text,
        'href': href,
        'annotations': {},
        'text': {'content': text, 'link': {'url': href} if href else None},
    }]


def page_record(
    page_id: str,
    title: str,
    status: Optional[str] = None,
    slug: Optional[str] = None,
    last_edited_time: Optional[str] = None
) -> Dict[str, Any]:
    """A Notion page object as returned by GET /pages/{id}."""
    properties: Dict[str, Any] = {
        'title': {'id': 'title', 'type': 'title', 'title': rich_text(title)},
    }
    if status is not None:
        properties['Status'] = {'type': 'select', 'select': {'name': status}}
    if slug is not None:
        properties['Slug'] = {'type': 'rich_text', 'rich_text': rich_text(slug)}
    return {
        'object': 'page',
        'id': dashed(page_id),
        'parent': {'type': 'page_id', 'page_id': dashed(make_id(0))},
        'url': f"https://www.notion.so/{page_id}",
        'last_edited_time': last_edited_time,
        'properties': properties,
    }


def block_record(block_type: str, block_id: str = '', **payload) -> Dict[str, Any]:
    return {
        'object': 'block',
        'id': block_id or f"blk-{block_type}",
        'type': block_type,
        'has_children': False,
        block_type: payload,
    }


def paragraph(text: str, href: Optional[str] = None) -> Dict[str, Any]:
    return block_record('paragraph', rich_text=rich_text(text, href))


def numbered(text: str) -> Dict[str, Any]:
    return block_record('numbered_list_item', rich_text=rich_text(text))


def child_page(page_id: str, title: str = '') -> Dict[str, Any]:
    return block_record('child_page', block_id=page_id, title=title)


def link_to_page(page_id: str) -> Dict[str, Any]:
    return block_record('link_to_page', type='page_id', page_id=page_id)


class FakeSource(BaseSource):
    """Serves pages and block listings from dictionaries and records every call."""

    def __init__(self):
        self.pages: Dict[str, Dict[str, Any]] = {}
        self.children: Dict[str, List[Dict[str, Any]]] = {}
        self.metadata_calls: List[str] = []
        self.children_calls: List[str] = []

    def add_page(self, page_id: str, title: str, blocks: Optional[List[Dict[str, Any]]] = None, **kwargs) -> str:
        self.pages[page_id] = page_record(page_id, title, **kwargs)
        self.children[page_id] = list(blocks or [])
        return page_id

    def get_page_metadata(self, page_id: str) -> PageMetadata:
        self.metadata_calls.append(page_id)
        if page_id not in self.pages:
            raise NotionApiError(f"Could not find page with ID: {page_id}", code='object_not_found', status=404)
        metadata = PageMetadata.from_api(self.pages[page_id])
        # Callers look pages up by the compact id they were given
        metadata.id = page_id
        return metadata

    def get_block_children(self, block_id: str) -> List[Block]:
        self.children_calls.append(block_id)
        blocks = [Block.from_record(record) for record in self.children.get(block_id, [])]
        number_numbered_list_items(blocks)
        return blocks


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def guide_outline(source):
    """
    Root with one tab "Guide" holding A. A has content, a child page B and a link to C.

    C has a child page of its own that must never be crawled.
    """
    root, guide, a, b, c, c_child = (make_id(n) for n in range(1, 7))

    source.add_page(root, 'Outline', [child_page(guide)])
    source.add_page(guide, 'Guide', [child_page(a)])
    source.add_page(a, 'A', [paragraph('About A'), child_page(b), link_to_page(c)])
    source.add_page(b, 'B', [paragraph('About B')])
    source.add_page(c, 'C', [paragraph('About C'), child_page(c_child)], status='Publish')
    source.add_page(c_child, 'Hidden', [paragraph('Never crawled')])

    return {'root': root, 'guide': guide, 'a': a, 'b': b, 'c': c, 'c_child': c_child}
