"""Tests for logging setup, progress tracking and config redaction."""

import logging
from unittest.mock import MagicMock

import pytest

from notion_markdown_mirror.logger import LOGGER_NAME, ProgressTracker, _sanitize_config, setup_logging


class TestProgressTracker:
    """Counting and the closing summary."""

    def test_counts_written_and_skipped(self):
        with ProgressTracker(total_items=3, item_type='pages') as tracker:
            tracker.logger = MagicMock()
            tracker.increment()
            tracker.increment(written=False)
            tracker.increment()

        assert (tracker.processed_items, tracker.successful_items, tracker.skipped_items) == (3, 2, 1)
        summary = tracker.logger.warning.call_args.args[0]
        assert summary.startswith('Pages: 3/3 processed, 2 written, 1 skipped')

    def test_clean_run_logs_info(self):
        with ProgressTracker(total_items=1) as tracker:
            tracker.logger = MagicMock()
            tracker.increment()

        tracker.logger.info.assert_called_once()
        tracker.logger.warning.assert_not_called()


class TestSetupLogging:
    def test_verbosity_levels(self):
        assert setup_logging(verbosity=0).level == logging.WARNING
        assert setup_logging(verbosity=2).level == logging.DEBUG
        assert setup_logging(verbosity=2, level='error').level == logging.ERROR
        assert logging.getLogger(LOGGER_NAME).propagate is False

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            setup_logging(level='LOUD')

    def test_log_file(self, tmp_path):
        log_file = tmp_path / 'mirror.log'

        logger = setup_logging(verbosity=1, log_file=str(log_file))
        logger.info('hello file')
        for handler in logger.handlers:
            handler.flush()

        assert 'hello file' in log_file.read_text(encoding='utf-8')
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_sanitize_config_masks_secrets():
    config = {'notion': {'token': 'secret_abc', 'root_page': 'abc'}, 'report': {'path': None}}

    sanitized = _sanitize_config(config)

    assert sanitized['notion']['token'] == '***REDACTED***'
    assert sanitized['notion']['root_page'] == 'abc'
    assert config['notion']['token'] == 'secret_abc'
