"""Tests for the crawl/export pipeline and its report."""

import json
from unittest.mock import MagicMock

from notion_markdown_mirror.config_loader import ConfigLoader
from notion_markdown_mirror.orchestrator import SyncOrchestrator, SyncReport


def make_config(tmp_path, root, **export):
    export_config = {'output_directory': str(tmp_path / 'site'), 'show_progress': False}
    export_config.update(export)
    return ConfigLoader.with_defaults({
        'notion': {'token': 'secret', 'root_page': root},
        'export': export_config,
        'report': {'path': str(tmp_path / 'report.json')},
    })


class TestSyncOrchestrator:
    """Crawl → Export → Report."""

    def test_full_run(self, source, guide_outline, tmp_path):
        orchestrator = SyncOrchestrator(make_config(tmp_path, guide_outline['root']), source=source)

        report = orchestrator.run()

        summary = report['summary']
        assert summary['tabs'] == 1
        assert summary['pages'] == 3
        assert summary['output_normally'] == 3
        assert summary['dry_run'] is False
        assert (tmp_path / 'site' / 'guide' / '00-a' / 'index.md').exists()
        assert set(report['phases']) == {'crawl', 'export'}

    def test_report_file_written(self, source, guide_outline, tmp_path):
        SyncOrchestrator(make_config(tmp_path, guide_outline['root']), source=source).run()

        saved = json.loads((tmp_path / 'report.json').read_text(encoding='utf-8'))
        assert saved['summary']['root_title'] == 'Outline'
        assert saved['tabs'][0]['name'] == 'guide'

    def test_dry_run_writes_nothing(self, source, guide_outline, tmp_path):
        orchestrator = SyncOrchestrator(make_config(tmp_path, guide_outline['root']), source=source)

        report = orchestrator.run(dry_run=True)

        assert report['summary']['dry_run'] is True
        assert report['summary']['pages'] == 3
        assert 'export' not in report['phases']
        assert not (tmp_path / 'site').exists()
        assert report['phases']['preview']['pages_planned'] == 3

    def test_dry_run_after_export_has_no_stale_files(self, source, guide_outline, tmp_path):
        config = make_config(tmp_path, guide_outline['root'])
        SyncOrchestrator(config, source=source).run()

        orchestrator = SyncOrchestrator(config, source=source)
        report = orchestrator.run(dry_run=True)

        assert report['phases']['preview']['stale_files'] == 0
        assert orchestrator.crawl_result.tabs['guide'].layout.stale_files() == []

    def test_status_counts_reach_report(self, source, guide_outline, tmp_path):
        config = make_config(tmp_path, guide_outline['root'], status_tag='Draft')

        summary = SyncOrchestrator(config, source=source).run()['summary']

        assert summary['skipped_because_status'] == 1
        assert summary['output_normally'] == 2


class TestSyncReport:
    """Report formatting."""

    def test_console_report(self, source, guide_outline, tmp_path):
        orchestrator = SyncOrchestrator(make_config(tmp_path, guide_outline['root']), source=source)
        report = orchestrator.run()

        text = orchestrator.format_report(report)

        assert 'SYNC REPORT' in text
        assert 'Pages:       3' in text
        assert 'Guide -> ' in text
        assert 'Broken:' not in text

    def test_format_duration(self):
        report = SyncReport()

        assert report._format_duration(12.34) == '12.3s'
        assert report._format_duration(125) == '2m 5s'
        assert report._format_duration(3725) == '1h 2m 5s'

    def test_export_failure_is_logged(self, tmp_path):
        logger = MagicMock()

        SyncReport(logger=logger).export_json_report({'summary': {}}, str(tmp_path / 'missing' / 'report.json'))

        assert 'Failed to export JSON report' in logger.error.call_args.args[0]
