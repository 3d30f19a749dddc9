"""Recursive outline crawler that classifies pages and registers them per tab."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from ..exporters.layout_strategy import LayoutStrategy, create_layout_strategy, sanitize_name
from ..fetchers.base_fetcher import (
    BaseSource,
    FatalFetchError,
    FetcherError,
    RootPageUnreachableError,
    UnsupportedBlockError
)
from ..models import (
    ContentInfo,
    CrawlCounts,
    CrawlResult,
    NotionPage,
    PageKind,
    PageRef,
    PageRole,
    Tab,
    classify
)
from ..notion_client import NotionApiError

logger = logging.getLogger('notion_markdown_mirror.crawler.outline_crawler')

ROOT_CONTEXT = ''


@dataclass
class CrawlContext:
    """State of one tab's crawl, passed explicitly through every recursive call."""

    tab: Tab
    layout: LayoutStrategy
    pages: List[NotionPage]
    counts: CrawlCounts

    @classmethod
    def for_tab(cls, tab: Tab) -> 'CrawlContext':
        return cls(tab=tab, layout=tab.layout, pages=tab.pages, counts=tab.counts)

    def register(self, page: NotionPage) -> None:
        self.pages.append(page)


class OutlineCrawler:
    """
    Walks the outline from its root page and builds one page registry per tab.

    The root's child pages are the tabs. Inside a tab every page is hydrated
    (metadata plus a full children listing), classified from its own content and
    the number of pages nested or linked under it, and either opens a new layout
    level, is registered as a page, or is skipped as empty. Linked pages are
    registered where the link appears and never descended into.
    """

    def __init__(
        self,
        source: BaseSource,
        output_root: str,
        layout_name: str = 'numbered',
        extension: str = '.md',
        dry_run: bool = False,
        max_depth: int = 50
    ):
        """
        Initialize the crawler.

        Args:
            source: Where page metadata and block listings come from
            output_root: Directory under which each tab gets its own folder
            layout_name: Registered layout strategy name
            extension: Managed output file extension
            dry_run: Let layout strategies skip directory creation
            max_depth: Maximum nesting depth before the outline is treated as cyclic
        """
        self.source = source
        self.output_root = Path(output_root)
        self.layout_name = layout_name
        self.extension = extension
        self.dry_run = dry_run
        self.max_depth = max_depth
        self.stats = {
            'pages_hydrated': 0,
            'links_hydrated': 0,
            'levels_created': 0,
            'crawl_time_seconds': 0.0,
        }

    def crawl(self, root_id: str) -> CrawlResult:
        """
        Crawl the outline under root_id.

        Args:
            root_id: Notion id of the outline root page

        Returns:
            CrawlResult with one Tab per child page of the root, in remote order

        Raises:
            RootPageUnreachableError: If the root page cannot be retrieved
            FatalFetchError: On any other unrecoverable fetch failure
        """
        start_time = time.time()
        root_title, tab_refs = self._read_root(root_id)
        logger.info(f"Outline root '{root_title}' has {len(tab_refs)} tab(s)")

        result = CrawlResult(root_id=root_id, root_title=root_title)
        for ref in tab_refs:
            tab = self._crawl_tab(root_id, ref, set(result.tabs))
            result.tabs[tab.name] = tab

        self.stats['crawl_time_seconds'] = time.time() - start_time
        logger.info(
            f"Crawl complete: {result.total_pages} pages in {len(result.tabs)} tab(s), "
            f"{result.counts.skipped_because_empty} empty page(s) skipped"
        )
        return result

    def _read_root(self, root_id: str) -> Tuple[str, List[PageRef]]:
        try:
            metadata = self.source.get_page_metadata(root_id)
            blocks = self.source.get_block_children(root_id)
        except UnsupportedBlockError:
            raise
        except (FetcherError, NotionApiError) as e:
            raise RootPageUnreachableError(
                f"Could not retrieve the outline root page {root_id}: {e}. "
                f"Check that the page id is correct and that the page is shared "
                f"with the integration whose token is configured."
            ) from e

        content = ContentInfo.from_blocks(blocks)
        if content.link_refs:
            logger.warning(
                f"Ignoring {len(content.link_refs)} link(s) directly under the outline root; "
                f"only child pages become tabs"
            )
        return metadata.title, content.child_refs

    def _crawl_tab(self, root_id: str, ref: PageRef, taken_names: set) -> Tab:
        page = self._hydrate(ref.id, root_id, ref.order, ROOT_CONTEXT)
        name = self._unique_tab_name(page.title, taken_names)
        root_directory = self.output_root / name

        layout = create_layout_strategy(
            self.layout_name, str(root_directory), extension=self.extension, dry_run=self.dry_run
        )
        layout.snapshot_existing_files()

        tab = Tab(
            name=name,
            title=page.title,
            page_id=page.id,
            root_directory=str(root_directory),
            layout=layout
        )
        context = CrawlContext.for_tab(tab)
        logger.info(f"Crawling tab '{page.title}' into {root_directory}")

        if page.has_content:
            # Landing page of the tab
            page.is_category_index = True
            context.register(page)
        elif not page.child_refs and not page.link_refs:
            logger.warning(f"Tab '{page.title}' is empty")
            context.counts.skipped_because_empty += 1

        self._descend(context, page, ROOT_CONTEXT, depth=1)

        logger.info(f"Tab '{name}': {len(tab.pages)} page(s) registered")
        return tab

    @staticmethod
    def _unique_tab_name(title: str, taken_names: set) -> str:
        base = sanitize_name(title)
        name = base
        suffix = 2
        while name in taken_names:
            name = f"{base}-{suffix}"
            suffix += 1
        return name

    def _walk(
        self,
        context: CrawlContext,
        parent_context: str,
        parent_id: str,
        ref: PageRef,
        depth: int
    ) -> None:
        """Hydrate one child page, classify it, and register or descend."""
        if depth > self.max_depth:
            logger.error(f"Maximum depth {self.max_depth} exceeded at page {ref.id}")
            raise FatalFetchError("Page hierarchy too deep or cyclic reference detected")

        page = self._hydrate(ref.id, parent_id, ref.order, parent_context)
        role = self._classify(page)
        logger.debug(f"{'  ' * depth}{page.title} ({page.id}): {role.value}")

        if role is PageRole.EMPTY:
            logger.warning(f"Skipping empty page '{page.title}' ({page.id})")
            context.counts.skipped_because_empty += 1
            return

        if role is PageRole.LEAF:
            context.register(page)
            return

        level = context.layout.new_level(
            str(context.tab.root_directory), page.order, parent_context, page.title
        )
        self.stats['levels_created'] += 1

        if role is PageRole.CATEGORY_WITH_INDEX:
            page.layout_context = level
            page.is_category_index = True
            context.register(page)

        self._descend(context, page, level, depth + 1)

    def _descend(self, context: CrawlContext, page: NotionPage, level: str, depth: int) -> None:
        for child_ref in page.child_refs:
            self._walk(context, level, page.id, child_ref, depth)
        for link_ref in page.link_refs:
            self._register_link(context, level, page.id, link_ref)

    def _register_link(self, context: CrawlContext, level: str, parent_id: str, ref: PageRef) -> None:
        """Linked pages are leaves at the level of the link, whatever they contain."""
        metadata = self.source.get_page_metadata(ref.id)
        self.stats['links_hydrated'] += 1
        page = NotionPage.from_metadata(
            metadata,
            parent_id=parent_id,
            order=ref.order,
            layout_context=level,
            kind=PageKind.DATABASE_LINK
        )
        logger.debug(f"Registering linked page '{page.title}' ({page.id}) at '{level}'")
        context.register(page)

    def _hydrate(self, page_id: str, parent_id: str, order: int, layout_context: str) -> NotionPage:
        """Fetch fresh metadata and children for a page; nothing is cached between calls."""
        metadata = self.source.get_page_metadata(page_id)
        content = ContentInfo.from_blocks(self.source.get_block_children(page_id))
        self.stats['pages_hydrated'] += 1
        return NotionPage.from_metadata(
            metadata,
            parent_id=parent_id,
            order=order,
            layout_context=layout_context,
            kind=PageKind.OUTLINE_CONTENT,
            content=content
        )

    @staticmethod
    def _classify(page: NotionPage) -> PageRole:
        return classify(bool(page.has_content), len(page.child_refs) + len(page.link_refs))

    def get_stats(self) -> Dict[str, float]:
        return dict(self.stats)


__all__ = ['CrawlContext', 'OutlineCrawler', 'ROOT_CONTEXT']
