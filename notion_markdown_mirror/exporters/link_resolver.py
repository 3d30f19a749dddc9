"""Link resolver that rewrites Notion page references into local site paths."""

import logging
import re
from typing import Dict, Optional, Tuple

from ..models import NotionPage, Tab

MAX_CHARS_BETWEEN_BRACKETS = 1000  # Prevent catastrophic backtracking

BROKEN_LINK_MARKER = '[broken link]'
MENTION_LABEL = 'mention'
IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.svg')

NOTION_URL_PATTERN = re.compile(
    r'^https://(?:www\.)?notion\.so/(?P<path>[^?#\s]+)(?:\?[^#\s]*)?(?P<fragment>#\S*)?$'
)
NOTION_ID_PATTERN = re.compile(
    r'(?P<id>[0-9a-f]{32}|[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})$',
    re.IGNORECASE
)
MARKDOWN_LINK_PATTERN = re.compile(
    r'\[([^\]]{0,' + str(MAX_CHARS_BETWEEN_BRACKETS) + r'})\]'
    r'\((?!mailto:)(https://(?:www\.)?notion\.so/[^)\s]+|/[^),\s]+)\)'
)


def parse_link_id(full_link_id: str) -> Tuple[str, str]:
    """
    Split a link target into its base id and fragment.

    Returns:
        Tuple of (base_link_id, fragment) where fragment keeps its leading '#'
    """
    hash_index = full_link_id.find('#')
    if hash_index >= 0:
        return full_link_id[:hash_index], full_link_id[hash_index:]
    return full_link_id, ''


class LinkResolver:
    """
    Resolves Notion references against the page registries of every tab.

    Registries must be complete before any link is resolved: a page may link
    to another that the crawl only reached later.
    """

    def __init__(self, tabs: Dict[str, Tab], logger: Optional[logging.Logger] = None):
        """
        Initialize the resolver.

        Args:
            tabs: Completed tabs keyed by tab name, in crawl order
            logger: Logger instance
        """
        self.tabs = tabs
        self.logger = logger or logging.getLogger('notion_markdown_mirror.exporters.link_resolver')
        self.stats = {
            'links_rewritten': 0,
            'links_broken': 0,
            'links_unparseable': 0,
        }

    def find_page(self, link_id: str) -> Tuple[Optional[str], Optional[NotionPage]]:
        """First tab (in iteration order) whose registry holds link_id, and the page."""
        for tab_name, tab in self.tabs.items():
            page = tab.find_page(link_id)
            if page is not None:
                return tab_name, page
        return None, None

    def build_href(self, tab_name: str, page: NotionPage, fragment: str = '') -> str:
        """Local href for a page in a tab, with the fragment appended verbatim."""
        link_path = self.tabs[tab_name].layout.get_link_path_for_page(page)
        href = re.sub(r'/{2,}', '/', f"/{tab_name}{link_path}")
        if fragment:
            self.logger.debug(f"Keeping fragment {fragment} on link to '{page.title}'")
        return href + fragment

    def extract_link_id(self, url: str) -> Optional[Tuple[str, str]]:
        """
        Pull the page id and fragment out of a Notion URL.

        Returns:
            Tuple of (link_id, fragment), or None if url is not a Notion page URL
        """
        match = NOTION_URL_PATTERN.match(url.strip())
        if match is None:
            return None

        path = match.group('path').rstrip('/')
        last_segment = path.rsplit('/', 1)[-1]
        id_match = NOTION_ID_PATTERN.search(last_segment)
        if id_match is None:
            return None
        return id_match.group('id'), match.group('fragment') or ''

    def convert_url(self, url: str) -> str:
        """
        Convert a full Notion URL into a local path.

        Args:
            url: e.g. https://www.notion.so/Setup-0123456789abcdef0123456789abcdef#heading

        Returns:
            The local href, the broken-link placeholder if the page is unknown, or
            the url unchanged if it cannot be parsed
        """
        parsed = self.extract_link_id(url)
        if parsed is None:
            self.logger.warning(f"Could not parse link {url} as a Notion URL")
            self.stats['links_unparseable'] += 1
            return url

        link_id, fragment = parsed
        tab_name, page = self.find_page(link_id)
        if page is None:
            self.logger.warning(
                f"Could not find the target of this link. Links to outline sections are not supported. {url}."
            )
            self.stats['links_broken'] += 1
            return f"{link_id}{BROKEN_LINK_MARKER}"

        self.stats['links_rewritten'] += 1
        return self.build_href(tab_name, page, fragment)

    def convert_markdown_link(self, markdown_link: str) -> str:
        """
        Convert a rendered markdown link whose target is a Notion page.

        Image links and links that do not look like Notion references are
        returned unchanged. A "mention" label becomes the target page title.
        """
        match = MARKDOWN_LINK_PATTERN.search(markdown_link)
        if match is None:
            self.logger.warning(f"Could not parse link {markdown_link}")
            self.stats['links_unparseable'] += 1
            return markdown_link
        return self._convert_link_match(match)

    def _convert_link_match(self, match: 're.Match') -> str:
        label = match.group(1) or ''
        href = match.group(2)

        if href.lower().endswith(IMAGE_EXTENSIONS):
            self.logger.debug(f"{href} is an internal image link and will be skipped.")
            return match.group(0)

        if href.startswith('/'):
            link_id, fragment = parse_link_id(href)
            link_id = link_id.strip('/').rsplit('/', 1)[-1]
            id_match = NOTION_ID_PATTERN.search(link_id)
            if id_match is not None:
                link_id = id_match.group('id')
        else:
            parsed = self.extract_link_id(href)
            if parsed is None:
                self.logger.warning(f"Could not parse link {match.group(0)}")
                self.stats['links_unparseable'] += 1
                return match.group(0)
            link_id, fragment = parsed

        tab_name, page = self.find_page(link_id)
        if page is None:
            self.logger.warning(f"Could not find a local target for {link_id}.")
            self.stats['links_broken'] += 1
            return f"{label or link_id}{BROKEN_LINK_MARKER}"

        self.stats['links_rewritten'] += 1
        if label == MENTION_LABEL:
            label = page.title
        return f"[{label}]({self.build_href(tab_name, page, fragment)})"

    def resolve(self, reference: str) -> str:
        """Resolve either a bare Notion URL or a markdown link containing one."""
        if reference.lstrip().startswith('['):
            return self.convert_markdown_link(reference)
        return self.convert_url(reference)

    def rewrite_links(self, markdown: str) -> Tuple[str, int, int]:
        """
        Rewrite every Notion page link in a markdown document.

        Args:
            markdown: Rendered markdown

        Returns:
            Tuple of (rewritten markdown, links rewritten, links broken)
        """
        rewritten_before = self.stats['links_rewritten']
        broken_before = self.stats['links_broken']

        def replace_link(match):
            # Leave images alone: ![alt](url)
            if match.start() > 0 and markdown[match.start() - 1] == '!':
                return match.group(0)
            return self._convert_link_match(match)

        result = MARKDOWN_LINK_PATTERN.sub(replace_link, markdown)
        return (
            result,
            self.stats['links_rewritten'] - rewritten_before,
            self.stats['links_broken'] - broken_before
        )


__all__ = ['BROKEN_LINK_MARKER', 'LinkResolver', 'parse_link_id']
