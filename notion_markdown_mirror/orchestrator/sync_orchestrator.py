"""
Sync orchestrator for coordinating the complete mirror pipeline.

This module provides the central coordinator that sequences the phases:
Crawl → Export → Report. Every registry is complete before export starts,
so links to pages found late in the crawl still resolve.
"""

import logging
import time
from typing import Any, Dict, Optional

from ..crawler import OutlineCrawler
from ..exporters import BlockRenderer, MarkdownExporter
from ..fetchers import BaseSource, create_remote_source
from ..logger import log_section
from ..models import CrawlResult
from .sync_report import SyncReport


class SyncOrchestrator:
    """Central coordinator sequencing the phases: Crawl → Export → Report."""

    def __init__(
        self,
        config: Dict[str, Any],
        source: Optional[BaseSource] = None,
        renderer: Optional[BlockRenderer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize sync orchestrator.

        Args:
            config: Validated configuration dictionary
            source: Page source (a Notion-backed RemoteSource when omitted)
            renderer: Block renderer passed to the exporter
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger('notion_markdown_mirror.orchestrator.sync_orchestrator')
        self.source = source or create_remote_source(config)
        self.renderer = renderer
        self.report_generator = SyncReport(logger=self.logger)

        self.crawl_result: Optional[CrawlResult] = None
        self.crawler: Optional[OutlineCrawler] = None
        self.exporter: Optional[MarkdownExporter] = None

    def run(self, dry_run: bool = False) -> Dict[str, Any]:
        """
        Run the pipeline.

        Args:
            dry_run: Crawl only; nothing is written or deleted

        Returns:
            Sync report dictionary

        Raises:
            FatalFetchError: When the crawl or an export fetch cannot complete
        """
        start_time = time.time()
        phase_stats: Dict[str, Any] = {}

        notion_config = self.config.get('notion', {})
        export_config = self.config.get('export', {})

        log_section("Crawl")
        self.crawler = OutlineCrawler(
            self.source,
            output_root=export_config.get('output_directory', './tabs'),
            layout_name=export_config.get('layout', 'numbered'),
            extension=export_config.get('extension', '.md'),
            dry_run=dry_run
        )
        self.crawl_result = self.crawler.crawl(notion_config['root_page'])
        phase_stats['crawl'] = self.crawler.get_stats()

        self.exporter = MarkdownExporter(
            self.config, self.source, renderer=self.renderer, logger=self.logger
        )
        if dry_run:
            log_section("Preview")
            phase_stats['preview'] = self.exporter.preview(self.crawl_result)
        else:
            log_section("Export")
            phase_stats['export'] = self.exporter.export(self.crawl_result)

        fetcher = getattr(self.source, 'fetcher', None)
        if fetcher is not None:
            phase_stats['fetch'] = dict(fetcher.stats)
        if hasattr(self.source, 'stats'):
            phase_stats['source'] = dict(self.source.stats)

        duration = time.time() - start_time
        report = self.report_generator.generate_report(
            self.crawl_result, phase_stats, duration, dry_run=dry_run
        )

        report_path = self.config.get('report', {}).get('path')
        if report_path:
            self.report_generator.export_json_report(report, report_path)

        return report

    def format_report(self, report: Dict[str, Any]) -> str:
        return self.report_generator.format_console_report(report)


__all__ = ['SyncOrchestrator']
