"""Data models for the Notion outline to markdown mirror pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

if TYPE_CHECKING:
    from .exporters.layout_strategy import LayoutStrategy


def normalize_id(raw_id: str) -> str:
    """Compact form of a Notion id: lowercase, no dashes."""
    return raw_id.replace('-', '').lower()


class PageKind(Enum):
    """How a page was reached while walking the outline."""
    OUTLINE_CONTENT = "outline_content"
    DATABASE_LINK = "database_link"


class PageRole(Enum):
    """Structural role of a hydrated page within the outline."""
    CATEGORY_WITH_INDEX = "category_with_index"
    CATEGORY_WITHOUT_INDEX = "category_without_index"
    LEAF = "leaf"
    EMPTY = "empty"


def classify(has_content: bool, ref_count: int) -> PageRole:
    """
    Classify a page from its own body and the number of child pages plus links.

    Args:
        has_content: Whether the page body has anything besides child pages and links
        ref_count: Number of child page refs plus link refs

    Returns:
        One of the four PageRole values
    """
    if ref_count > 0:
        return PageRole.CATEGORY_WITH_INDEX if has_content else PageRole.CATEGORY_WITHOUT_INDEX
    return PageRole.LEAF if has_content else PageRole.EMPTY


class BlockKind(Enum):
    """Closed set of block kinds. OTHER is a full record of an unmodelled type,
    PARTIAL is a record the API returned without a type."""
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CALLOUT = "callout"
    CODE = "code"
    DIVIDER = "divider"
    IMAGE = "image"
    BOOKMARK = "bookmark"
    EMBED = "embed"
    EQUATION = "equation"
    TABLE = "table"
    TABLE_ROW = "table_row"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    LINK_TO_PAGE = "link_to_page"
    SYNCED_BLOCK = "synced_block"
    OTHER = "other"
    PARTIAL = "partial"


_KNOWN_KINDS = {kind.value: kind for kind in BlockKind if kind not in (BlockKind.OTHER, BlockKind.PARTIAL)}


@dataclass
class Block:
    """One child block record from a block-children listing."""

    id: str
    kind: BlockKind
    type_name: Optional[str] = None
    has_children: bool = False
    payload: Dict[str, Any] = field(default_factory=dict)
    number: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Block':
        """Build a Block from a raw API record."""
        type_name = record.get('type')
        if not type_name:
            return cls(id=record.get('id', ''), kind=BlockKind.PARTIAL, raw=record)

        return cls(
            id=record.get('id', ''),
            kind=_KNOWN_KINDS.get(type_name, BlockKind.OTHER),
            type_name=type_name,
            has_children=bool(record.get('has_children', False)),
            payload=record.get(type_name) or {},
            raw=record
        )

    @property
    def is_full(self) -> bool:
        return self.kind is not BlockKind.PARTIAL

    @property
    def linked_page_id(self) -> Optional[str]:
        """Target page id of a link_to_page block pointing at a page."""
        if self.kind is BlockKind.LINK_TO_PAGE and self.payload.get('type') == 'page_id':
            return self.payload.get('page_id')
        return None


@dataclass(frozen=True)
class PageRef:
    """Reference to a page nested or linked under another, with its sibling rank."""
    id: str
    order: int


@dataclass
class ContentInfo:
    """What a page's block listing says about its structure."""

    has_content: bool = False
    child_refs: List[PageRef] = field(default_factory=list)
    link_refs: List[PageRef] = field(default_factory=list)

    @classmethod
    def from_blocks(cls, blocks: Sequence[Block]) -> 'ContentInfo':
        """
        Split a listing into child pages, links, and body content.

        The order of each ref is its index in the full listing, so gaps left by
        body blocks between pages are kept.
        """
        info = cls()
        for index, block in enumerate(blocks):
            if block.kind is BlockKind.CHILD_PAGE:
                info.child_refs.append(PageRef(id=block.id, order=index))
            elif block.linked_page_id:
                info.link_refs.append(PageRef(id=block.linked_page_id, order=index))
            else:
                info.has_content = True
        return info

    @property
    def ref_count(self) -> int:
        return len(self.child_refs) + len(self.link_refs)

    @property
    def role(self) -> PageRole:
        return classify(self.has_content, self.ref_count)


@dataclass
class PageMetadata:
    """Page-level metadata from the pages endpoint."""

    id: str
    title: str
    parent_id: Optional[str] = None
    parent_type: Optional[str] = None
    status: Optional[str] = None
    slug: Optional[str] = None
    url: Optional[str] = None
    last_edited_time: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'PageMetadata':
        """Parse a Notion page object."""
        properties = data.get('properties') or {}
        parent = data.get('parent') or {}
        parent_type = parent.get('type')

        title = ''
        for prop in properties.values():
            if isinstance(prop, dict) and prop.get('type') == 'title':
                title = _plain_text(prop.get('title'))
                break

        status = None
        status_prop = properties.get('Status')
        if isinstance(status_prop, dict):
            option = status_prop.get(status_prop.get('type', ''))
            if isinstance(option, dict):
                status = option.get('name')

        slug = None
        slug_prop = properties.get('Slug')
        if isinstance(slug_prop, dict) and slug_prop.get('type') == 'rich_text':
            slug = _plain_text(slug_prop.get('rich_text')).strip() or None

        return cls(
            id=data.get('id', ''),
            title=title or 'Untitled',
            parent_id=parent.get(parent_type) if parent_type else None,
            parent_type=parent_type,
            status=status,
            slug=slug,
            url=data.get('url'),
            last_edited_time=data.get('last_edited_time'),
            raw=data
        )


def _plain_text(rich_text: Optional[List[Dict[str, Any]]]) -> str:
    return ''.join(item.get('plain_text', '') for item in rich_text or [])


@dataclass
class NotionPage:
    """A page placed in a tab's registry."""

    id: str
    parent_id: str
    order: int
    title: str
    kind: PageKind = PageKind.OUTLINE_CONTENT
    layout_context: str = ''
    has_content: Optional[bool] = None  # None when the body was never inspected (link pages)
    child_refs: List[PageRef] = field(default_factory=list)
    link_refs: List[PageRef] = field(default_factory=list)
    status: Optional[str] = None
    explicit_slug: Optional[str] = None
    is_category_index: bool = False
    url: Optional[str] = None
    last_edited_time: Optional[str] = None

    @classmethod
    def from_metadata(
        cls,
        metadata: PageMetadata,
        parent_id: str,
        order: int,
        layout_context: str = '',
        kind: PageKind = PageKind.OUTLINE_CONTENT,
        content: Optional[ContentInfo] = None
    ) -> 'NotionPage':
        page = cls(
            id=metadata.id,
            parent_id=parent_id,
            order=order,
            title=metadata.title,
            kind=kind,
            layout_context=layout_context,
            status=metadata.status,
            explicit_slug=metadata.slug,
            url=metadata.url,
            last_edited_time=metadata.last_edited_time
        )
        if content is not None:
            page.has_content = content.has_content
            page.child_refs = list(content.child_refs)
            page.link_refs = list(content.link_refs)
        return page

    @property
    def slug(self) -> str:
        """URL-safe identifier: the explicit Slug property, else the compact page id."""
        if self.explicit_slug:
            return self.explicit_slug.strip('/')
        return normalize_id(self.id)

    def matches_link_id(self, link_id: str) -> bool:
        """True when a link target names this page by id (any dash form) or slug."""
        candidate = link_id.strip('/')
        if not candidate:
            return False
        if normalize_id(candidate) == normalize_id(self.id):
            return True
        return bool(self.explicit_slug) and candidate == self.explicit_slug.strip('/')

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page to dictionary."""
        return {
            'id': self.id,
            'parent_id': self.parent_id,
            'order': self.order,
            'title': self.title,
            'slug': self.slug,
            'kind': self.kind.value,
            'layout_context': self.layout_context,
            'has_content': self.has_content,
            'is_category_index': self.is_category_index,
            'status': self.status,
            'child_refs': [ref.id for ref in self.child_refs],
            'link_refs': [ref.id for ref in self.link_refs],
        }


@dataclass
class CrawlCounts:
    """Per-run page counters consumed by reporting."""

    output_normally: int = 0
    skipped_because_empty: int = 0
    skipped_because_status: int = 0

    def merge(self, other: 'CrawlCounts') -> None:
        self.output_normally += other.output_normally
        self.skipped_because_empty += other.skipped_because_empty
        self.skipped_because_status += other.skipped_because_status

    def to_dict(self) -> Dict[str, int]:
        return {
            'output_normally': self.output_normally,
            'skipped_because_empty': self.skipped_because_empty,
            'skipped_because_status': self.skipped_because_status,
        }


@dataclass
class Tab:
    """An independently laid-out top-level subtree of the outline."""

    name: str
    title: str
    page_id: str
    root_directory: str
    layout: 'LayoutStrategy'
    pages: List[NotionPage] = field(default_factory=list)
    counts: CrawlCounts = field(default_factory=CrawlCounts)

    def find_page(self, link_id: str) -> Optional[NotionPage]:
        for page in self.pages:
            if page.matches_link_id(link_id):
                return page
        return None


@dataclass
class CrawlResult:
    """All tabs found under the outline root, in crawl order."""

    root_id: str
    root_title: str = ''
    tabs: Dict[str, Tab] = field(default_factory=dict)

    def pages_by_tab(self) -> Dict[str, List[NotionPage]]:
        return {name: tab.pages for name, tab in self.tabs.items()}

    @property
    def counts(self) -> CrawlCounts:
        """Totals across every tab."""
        total = CrawlCounts()
        for tab in self.tabs.values():
            total.merge(tab.counts)
        return total

    @property
    def total_pages(self) -> int:
        return sum(len(tab.pages) for tab in self.tabs.values())


__all__ = [
    'Block',
    'BlockKind',
    'ContentInfo',
    'CrawlCounts',
    'CrawlResult',
    'NotionPage',
    'PageKind',
    'PageMetadata',
    'PageRef',
    'PageRole',
    'Tab',
    'classify',
    'normalize_id'
]
