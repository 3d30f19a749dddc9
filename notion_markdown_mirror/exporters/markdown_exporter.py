"""Markdown exporter: renders every registered page and writes the file tree."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from tqdm import tqdm

from ..fetchers.base_fetcher import BaseSource
from ..logger import ProgressTracker
from ..models import CrawlResult, NotionPage, PageKind, Tab
from .block_renderer import BlockRenderer, PlainTextBlockRenderer
from .link_resolver import LinkResolver

ALL_STATUSES = '*'


class MarkdownExporter:
    """
    Writes a crawled outline to local markdown files.

    For each tab, in registry order, this exporter:
    1. Skips linked database pages whose status does not match the status tag
    2. Fetches the page's blocks and renders them
    3. Rewrites Notion links to local paths
    4. Writes the file with YAML front matter at the layout strategy's path
    5. Removes files from earlier runs that no page was written to
    """

    def __init__(
        self,
        config: Dict[str, Any],
        source: BaseSource,
        renderer: Optional[BlockRenderer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary with export settings
            source: Source used to fetch each page's blocks
            renderer: Block renderer (PlainTextBlockRenderer when omitted)
            logger: Logger instance
        """
        self.config = config
        self.source = source
        self.logger = logger or logging.getLogger('notion_markdown_mirror.exporters.markdown_exporter')
        self.renderer = renderer or PlainTextBlockRenderer(logger=self.logger)

        export_config = config.get('export', {})
        self.status_tag = export_config.get('status_tag', ALL_STATUSES)
        self.cleanup_stale_files = export_config.get('cleanup_stale_files', True)
        self.show_progress = export_config.get('show_progress', True)

        self.link_resolver: Optional[LinkResolver] = None
        self.stats = {
            'pages_written': 0,
            'pages_skipped_status': 0,
            'links_rewritten': 0,
            'links_broken': 0,
            'stale_files_removed': 0,
            'tabs_processed': 0
        }

    def export(self, crawl_result: CrawlResult) -> Dict[str, Any]:
        """
        Export every tab of a completed crawl.

        Args:
            crawl_result: Completed crawl; its registries must not change anymore

        Returns:
            Statistics dictionary with export results
        """
        self.logger.info(f"Starting markdown export of {crawl_result.total_pages} pages")
        self.link_resolver = LinkResolver(crawl_result.tabs, logger=self.logger)

        with ProgressTracker(total_items=crawl_result.total_pages, item_type='pages') as tracker:
            for tab in crawl_result.tabs.values():
                self._export_tab(tab, tracker)
                self.stats['tabs_processed'] += 1

        self._log_export_summary()
        return self.stats.copy()

    def preview(self, crawl_result: CrawlResult) -> Dict[str, Any]:
        """
        Plan an export without fetching or writing anything.

        Every page that passes the status filter has its path marked as emitted,
        so afterwards each tab's stale_files() lists exactly the files a real
        export would remove.

        Args:
            crawl_result: Completed crawl

        Returns:
            Statistics dictionary with the planned results
        """
        stats = {'pages_planned': 0, 'pages_skipped_status': 0, 'stale_files': 0}

        for tab in crawl_result.tabs.values():
            for page in tab.pages:
                if self.should_export(page):
                    tab.layout.mark_emitted(tab.layout.get_path_for_page(page))
                    stats['pages_planned'] += 1
                else:
                    stats['pages_skipped_status'] += 1

            if self.cleanup_stale_files:
                stats['stale_files'] += len(tab.layout.stale_files())

        self.logger.info(
            f"Dry run: {stats['pages_planned']} page(s) would be written, "
            f"{stats['stale_files']} stale file(s) would be removed"
        )
        return stats

    def _export_tab(self, tab: Tab, tracker: ProgressTracker) -> None:
        self.logger.info(f"Exporting tab '{tab.title}' to {tab.root_directory}")
        Path(tab.root_directory).mkdir(parents=True, exist_ok=True)

        pages_iter = tqdm(
            tab.pages,
            desc=f"Tab: {tab.title[:30]}",
            unit="page",
            leave=False,
            disable=not self.show_progress
        )
        for page in pages_iter:
            written = self.export_page(tab, page)
            tracker.increment(written=written)

        if self.cleanup_stale_files:
            removed = tab.layout.remove_stale_files()
            self.stats['stale_files_removed'] += len(removed)
            if removed:
                self.logger.info(f"Removed {len(removed)} stale file(s) from tab '{tab.name}'")

    def should_export(self, page: NotionPage) -> bool:
        """Status filtering applies only to linked database pages."""
        if page.kind is not PageKind.DATABASE_LINK or self.status_tag == ALL_STATUSES:
            return True
        return page.status == self.status_tag

    def export_page(self, tab: Tab, page: NotionPage) -> bool:
        """
        Render and write one page.

        Args:
            tab: Tab the page is registered in
            page: Registered page

        Returns:
            True if the page was written, False if the status filter skipped it
        """
        if not self.should_export(page):
            self.logger.info(
                f"Skipping page '{page.title}' because status is '{page.status}', "
                f"not '{self.status_tag}'"
            )
            tab.counts.skipped_because_status += 1
            self.stats['pages_skipped_status'] += 1
            return False

        blocks = self.source.get_block_children(page.id)
        body = self.renderer.render(blocks, page, self.link_resolver.resolve)
        body, rewritten, broken = self.link_resolver.rewrite_links(body)
        self.stats['links_rewritten'] += rewritten
        self.stats['links_broken'] += broken

        frontmatter = self._generate_frontmatter(tab, page)
        page_file = tab.layout.get_path_for_page(page)
        page_file.parent.mkdir(parents=True, exist_ok=True)
        page_file.write_text(f"{frontmatter}\n\n{body}", encoding='utf-8')

        tab.layout.mark_emitted(page_file)
        tab.counts.output_normally += 1
        self.stats['pages_written'] += 1
        self.logger.debug(f"Wrote '{page.title}' to {page_file}")
        return True

    def _generate_frontmatter(self, tab: Tab, page: NotionPage) -> str:
        """
        Generate YAML front matter for a page.

        Args:
            tab: Tab the page belongs to
            page: Page being written

        Returns:
            Front matter block including the --- delimiters
        """
        frontmatter = {
            'title': page.title,
            'sidebar_position': page.order,
            'slug': tab.layout.get_link_path_for_page(page),
            'notion_id': page.id,
        }
        if page.last_edited_time:
            frontmatter['last_update'] = {'date': page.last_edited_time}

        yaml_str = yaml.dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000  # Prevent line wrapping
        )

        return f"---\n{yaml_str}---"

    def _log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Tabs processed: {self.stats['tabs_processed']}")
        self.logger.info(f"Pages written: {self.stats['pages_written']}")
        self.logger.info(f"Pages skipped by status: {self.stats['pages_skipped_status']}")
        self.logger.info(f"Links rewritten: {self.stats['links_rewritten']}")
        if self.stats['links_broken'] > 0:
            self.logger.warning(f"Broken links: {self.stats['links_broken']}")
        self.logger.info(f"Stale files removed: {self.stats['stale_files_removed']}")
        self.logger.info("=" * 60)


__all__ = ['MarkdownExporter']
