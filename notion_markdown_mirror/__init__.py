"""
Notion Markdown Mirror

Mirrors a Notion outline (pages, sub-pages and links between them) into a local
markdown file tree for a static-site generator, keeping sidebar order, folder
nesting and inter-page links.
"""

__version__ = "1.0.0"

from .config_loader import ConfigLoader
from .crawler import OutlineCrawler
from .exporters import LinkResolver, MarkdownExporter, create_layout_strategy
from .fetchers import RateLimitedFetcher, RemoteSource, TokenBucket, create_remote_source
from .models import CrawlResult, NotionPage, PageKind, PageRole, Tab
from .notion_client import NotionApiError, NotionClient
from .orchestrator import SyncOrchestrator, SyncReport

__all__ = [
    '__version__',
    'ConfigLoader',
    'CrawlResult',
    'LinkResolver',
    'MarkdownExporter',
    'NotionApiError',
    'NotionClient',
    'NotionPage',
    'OutlineCrawler',
    'PageKind',
    'PageRole',
    'RateLimitedFetcher',
    'RemoteSource',
    'SyncOrchestrator',
    'SyncReport',
    'Tab',
    'TokenBucket',
    'create_layout_strategy',
    'create_remote_source'
]
