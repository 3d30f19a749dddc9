"""
Sync report generator for aggregating statistics and formatting reports.

This module builds the end-of-run report from the crawl result and the stats
of each stage, formatting it for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models import CrawlResult


class SyncReport:
    """Aggregates crawl, export and fetch statistics into one report."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize sync report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('notion_markdown_mirror.orchestrator.sync_report')

    def generate_report(
        self,
        crawl_result: CrawlResult,
        phase_stats: Dict[str, Any],
        duration: float,
        dry_run: bool = False
    ) -> Dict[str, Any]:
        """
        Generate the sync report.

        Args:
            crawl_result: Completed crawl
            phase_stats: Stats keyed by stage ('crawl', 'export', 'fetch', 'source')
            duration: Total run duration in seconds
            dry_run: Whether files were written

        Returns:
            Report dictionary
        """
        counts = crawl_result.counts
        export_stats = phase_stats.get('export', {})
        fetch_stats = phase_stats.get('fetch', {})

        report = {
            'summary': {
                'root_page': crawl_result.root_id,
                'root_title': crawl_result.root_title,
                'tabs': len(crawl_result.tabs),
                'pages': crawl_result.total_pages,
                'output_normally': counts.output_normally,
                'skipped_because_empty': counts.skipped_because_empty,
                'skipped_because_status': counts.skipped_because_status,
                'stale_files_removed': export_stats.get('stale_files_removed', 0),
                'links_rewritten': export_stats.get('links_rewritten', 0),
                'links_broken': export_stats.get('links_broken', 0),
                'api_calls': fetch_stats.get('attempts', 0),
                'retries': fetch_stats.get('retries', 0),
                'duration_seconds': round(duration, 2),
                'duration_formatted': self._format_duration(duration),
                'dry_run': dry_run
            },
            'tabs': self._build_tab_breakdown(crawl_result),
            'phases': phase_stats,
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {report['summary']['pages']} pages in "
            f"{report['summary']['tabs']} tab(s)"
        )
        return report

    def _build_tab_breakdown(self, crawl_result: CrawlResult) -> List[Dict[str, Any]]:
        """Build per-tab statistics."""
        return [
            {
                'name': tab.name,
                'title': tab.title,
                'directory': tab.root_directory,
                'pages': len(tab.pages),
                **tab.counts.to_dict()
            }
            for tab in crawl_result.tabs.values()
        ]

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Sync report dictionary

        Returns:
            Formatted console string
        """
        sections = []
        summary = report.get('summary', {})

        sections.append("=" * 60)
        sections.append("SYNC REPORT (DRY RUN)" if summary.get('dry_run') else "SYNC REPORT")
        sections.append("=" * 60)
        sections.append("")

        sections.append("Summary:")
        sections.append(f"  Root:        {summary.get('root_title', '')} ({summary.get('root_page', '')})")
        sections.append(f"  Tabs:        {summary.get('tabs', 0)}")
        sections.append(f"  Pages:       {summary.get('pages', 0)}")
        sections.append(f"  Written:     {summary.get('output_normally', 0)}")
        sections.append(f"  Empty:       {summary.get('skipped_because_empty', 0)} skipped")
        sections.append(f"  Status:      {summary.get('skipped_because_status', 0)} skipped")
        sections.append(f"  API calls:   {summary.get('api_calls', 0)} ({summary.get('retries', 0)} retries)")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append("")

        sections.append("Links:")
        sections.append(f"  Rewritten:   {summary.get('links_rewritten', 0)}")
        if summary.get('links_broken', 0) > 0:
            sections.append(f"  Broken:      {summary['links_broken']}")
        sections.append(f"  Stale files: {summary.get('stale_files_removed', 0)} removed")
        sections.append("")

        tabs = report.get('tabs', [])
        if tabs:
            sections.append("Tab Breakdown:")
            sections.append("-" * 60)
            for tab in tabs:
                sections.append(f"  {tab['title']} -> {tab['directory']}")
                sections.append(
                    f"    Pages: {tab['pages']} registered, "
                    f"{tab['output_normally']} written, "
                    f"{tab['skipped_because_empty']} empty, "
                    f"{tab['skipped_because_status']} filtered"
                )
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Sync report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['SyncReport']
