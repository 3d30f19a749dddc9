"""Exporters package: layout strategies, link resolution, rendering and file output."""

from .block_renderer import BlockRenderer, PlainTextBlockRenderer
from .layout_strategy import (
    CATEGORY_FILE_NAME,
    HierarchicalNamedLayoutStrategy,
    LayoutStrategy,
    NumberedLayoutStrategy,
    create_layout_strategy,
    sanitize_name
)
from .link_resolver import BROKEN_LINK_MARKER, LinkResolver
from .markdown_exporter import MarkdownExporter

__all__ = [
    'BROKEN_LINK_MARKER',
    'BlockRenderer',
    'CATEGORY_FILE_NAME',
    'HierarchicalNamedLayoutStrategy',
    'LayoutStrategy',
    'LinkResolver',
    'MarkdownExporter',
    'NumberedLayoutStrategy',
    'PlainTextBlockRenderer',
    'create_layout_strategy',
    'sanitize_name'
]
