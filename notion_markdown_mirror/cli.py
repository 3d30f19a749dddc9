"""
Notion Markdown Mirror - Main CLI Entry Point

This module provides the command-line interface for mirroring a Notion outline
into a local markdown tree for a static-site generator, keeping sidebar order,
folder nesting and links between pages.
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config_loader import LAYOUT_CHOICES, ConfigLoader, get_nested
from .exporters import MarkdownExporter
from .fetchers import FatalFetchError, RootPageUnreachableError
from .logger import log_config, log_section, setup_logging
from .models import CrawlResult, PageKind
from .notion_client import NotionApiError
from .orchestrator import SyncOrchestrator

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='notion-markdown-mirror',
        description="Mirror a Notion outline into a markdown file tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mirror using config.yaml
  notion-markdown-mirror --config config.yaml

  # Override the root page and output directory
  notion-markdown-mirror --root-page 0123456789abcdef0123456789abcdef --output-dir ./docs

  # Only publish linked database pages tagged "Publish"
  notion-markdown-mirror --status-tag Publish

  # Dry-run mode (crawl and preview the tree, write nothing)
  notion-markdown-mirror --dry-run

  # Verbose logging
  notion-markdown-mirror -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )

    parser.add_argument(
        '--root-page',
        type=str,
        help='Id of the Notion page whose child pages are the tabs'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Directory the tabs are written under'
    )

    parser.add_argument(
        '--status-tag',
        type=str,
        help='Only export linked database pages with this Status ("*" exports all)'
    )

    parser.add_argument(
        '--layout',
        choices=list(LAYOUT_CHOICES),
        help='File tree layout (default: numbered)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Crawl and preview the file tree without writing or deleting files'
    )

    parser.add_argument(
        '--no-cleanup',
        action='store_true',
        help='Keep files from earlier runs that no page was written to'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def run_sync(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the crawl and export pipeline."""
    dry_run = bool(args.dry_run)
    logger.info(f"Root page: {config['notion']['root_page']}, Dry-run: {dry_run}")

    try:
        orchestrator = SyncOrchestrator(config, logger=logger)
        report = orchestrator.run(dry_run=dry_run)

        if dry_run:
            _print_tree_preview(orchestrator.crawl_result, orchestrator.exporter)
            logger.info("Dry-run complete. No changes made.")

        print("\n" + orchestrator.format_report(report))

        broken = report.get('summary', {}).get('links_broken', 0)
        if broken > 0:
            logger.warning(f"Sync completed with {broken} broken link(s)")
        else:
            logger.info("Sync completed successfully")
        return EXIT_OK

    except KeyboardInterrupt:
        logger.error("Sync interrupted by user")
        return EXIT_INTERRUPTED
    except RootPageUnreachableError as e:
        logger.error(str(e))
        return EXIT_RUN_FAILED
    except (FatalFetchError, NotionApiError) as e:
        logger.error(f"Sync failed: {str(e)}")
        return EXIT_RUN_FAILED
    except OSError as e:
        logger.error(f"Sync failed writing output: {str(e)}", exc_info=True)
        return EXIT_RUN_FAILED


def _print_tree_preview(crawl_result: Optional[CrawlResult], exporter: MarkdownExporter) -> None:
    """Print the file tree a real run would write and the files it would remove."""
    if crawl_result is None:
        return

    print("\n" + "=" * 60)
    print("SYNC PREVIEW (DRY RUN)")
    print("=" * 60)
    print(f"\nRoot: {crawl_result.root_title}")
    print(f"Tabs: {len(crawl_result.tabs)}")
    print(f"Total pages: {crawl_result.total_pages}")

    for tab in crawl_result.tabs.values():
        print(f"\n{tab.title} -> {tab.root_directory}")
        print("-" * 60)
        for line in _preview_lines(crawl_result, tab.name, exporter):
            print(line)

    print("\n" + "=" * 60)


def _preview_lines(crawl_result: CrawlResult, tab_name: str, exporter: MarkdownExporter) -> List[str]:
    # Expects exporter.preview() to have marked the planned paths
    tab = crawl_result.tabs[tab_name]
    lines = []
    for page in tab.pages:
        path = tab.layout.get_path_for_page(page)
        relative = path.relative_to(tab.layout.root_directory)
        marker = ' (link)' if page.kind is PageKind.DATABASE_LINK else ''
        if not exporter.should_export(page):
            marker += f" [skipped: status '{page.status}']"
        lines.append(f"  {relative}  {page.title}{marker}")
    if exporter.cleanup_stale_files:
        for path in tab.layout.stale_files():
            lines.append(f"  [stale] {path}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('notion_markdown_mirror.cli')

        log_section("Notion Markdown Mirror")
        logger.info(f"Version: {__version__}")

        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load(args.config)

        # CLI takes precedence over the config file
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        # Reconfigure logging with config file settings
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=None if args.verbose else get_nested(config, 'logging.level')
        )
        logger = logging.getLogger('notion_markdown_mirror.cli')

        log_config(config)

        return run_sync(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
