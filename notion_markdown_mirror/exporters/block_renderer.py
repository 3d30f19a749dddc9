"""Block-to-markdown rendering boundary."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import Block, BlockKind, NotionPage, normalize_id

LinkCallback = Callable[[str], str]

MENTION_LABEL = 'mention'
NOTION_PAGE_URL = 'https://www.notion.so/{}'

STRUCTURAL_KINDS = {BlockKind.CHILD_PAGE, BlockKind.LINK_TO_PAGE, BlockKind.CHILD_DATABASE}

HEADING_PREFIXES = {
    BlockKind.HEADING_1: '# ',
    BlockKind.HEADING_2: '## ',
    BlockKind.HEADING_3: '### ',
}


class BlockRenderer(ABC):
    """Turns a page's normalized block listing into a markdown body."""

    @abstractmethod
    def render(self, blocks: Sequence[Block], page: NotionPage, resolve_link: LinkCallback) -> str:
        """
        Render blocks to markdown.

        Args:
            blocks: Ordered child blocks of the page
            page: The page being rendered
            resolve_link: Callback that maps a Notion URL or markdown link to a local one

        Returns:
            Markdown body without front matter
        """
        pass


def render_rich_text(rich_text: Optional[List[Dict[str, Any]]]) -> str:
    """
    Flatten a Notion rich text array into inline markdown.

    Page mentions become [mention](url) so that link resolution can swap in
    the target's title.
    """
    parts = []
    for item in rich_text or []:
        text = item.get('plain_text', '')
        href = item.get('href')

        if item.get('type') == 'mention':
            mention = item.get('mention') or {}
            if mention.get('type') == 'page':
                page_id = (mention.get('page') or {}).get('id', '')
                url = href or NOTION_PAGE_URL.format(normalize_id(page_id))
                parts.append(f"[{MENTION_LABEL}]({url})")
                continue

        annotations = item.get('annotations') or {}
        if text.strip():
            if annotations.get('code'):
                text = f"`{text}`"
            if annotations.get('bold'):
                text = f"**{text}**"
            if annotations.get('italic'):
                text = f"*{text}*"
            if annotations.get('strikethrough'):
                text = f"~~{text}~~"

        if href:
            text = f"[{text}]({href})"
        parts.append(text)

    return ''.join(parts)


class PlainTextBlockRenderer(BlockRenderer):
    """
    Minimal renderer: headings, paragraphs, list items, quotes, code and dividers.

    Nested children are not fetched, so only top-level blocks of a page are
    rendered. Any other block contributes its rich text, if it has any.

    Links are emitted exactly as Notion returns them and resolve_link is never
    called: MarkdownExporter rewrites every link of the rendered body in one
    pass with LinkResolver.rewrite_links, which also keeps the link counters.
    Renderers that need resolved links while rendering can call resolve_link.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('notion_markdown_mirror.exporters.block_renderer')

    def render(self, blocks: Sequence[Block], page: NotionPage, resolve_link: LinkCallback) -> str:
        lines: List[str] = []
        previous_kind: Optional[BlockKind] = None

        for block in blocks:
            if block.kind in STRUCTURAL_KINDS:
                continue

            line = self.render_block(block)
            if line is None:
                continue

            # Consecutive list items stay together, everything else is a paragraph
            if lines and not (block.kind == previous_kind and _is_list(block.kind)):
                lines.append('')
            lines.append(line)
            previous_kind = block.kind

        markdown = '\n'.join(lines)
        self.logger.debug(f"Rendered {len(blocks)} blocks for '{page.title}'")
        return markdown + '\n' if markdown else ''

    def render_block(self, block: Block) -> Optional[str]:
        """Render one block to a single markdown chunk, or None to drop it."""
        text = render_rich_text(block.payload.get('rich_text'))

        if block.kind in HEADING_PREFIXES:
            return HEADING_PREFIXES[block.kind] + text
        if block.kind is BlockKind.BULLETED_LIST_ITEM:
            return f"- {text}"
        if block.kind is BlockKind.NUMBERED_LIST_ITEM:
            return f"{block.number or 1}. {text}"
        if block.kind is BlockKind.TO_DO:
            mark = 'x' if block.payload.get('checked') else ' '
            return f"- [{mark}] {text}"
        if block.kind in (BlockKind.QUOTE, BlockKind.CALLOUT):
            return f"> {text}"
        if block.kind is BlockKind.CODE:
            language = block.payload.get('language', '')
            return f"```{language}\n{text}\n```"
        if block.kind is BlockKind.DIVIDER:
            return '---'

        return text or None


def _is_list(kind: BlockKind) -> bool:
    return kind in (BlockKind.BULLETED_LIST_ITEM, BlockKind.NUMBERED_LIST_ITEM, BlockKind.TO_DO)


__all__ = ['BlockRenderer', 'PlainTextBlockRenderer', 'render_rich_text']
