"""File tree layout strategies.

As the outline is walked and files are written, a layout strategy decides where
each page lands and what it is called. Every tab owns its own strategy, rooted at
the tab's output directory, and with it the snapshot of files that existed before
the run so that pages renamed or removed upstream can be cleaned up afterwards.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Set, Tuple

from ..models import NotionPage

logger = logging.getLogger('notion_markdown_mirror.exporters.layout_strategy')

CATEGORY_FILE_NAME = '_category_.json'
INDEX_FILE_STEM = 'index'
MAX_NAME_LENGTH = 100


def sanitize_name(label: str) -> str:
    """
    Convert a label to a filesystem-safe name.

    Args:
        label: Page or level title

    Returns:
        Lowercase name using only [a-z0-9-_]
    """
    if not label:
        return "untitled"

    sanitized = label.lower()
    sanitized = re.sub(r'[^a-z0-9\-_]', '-', sanitized)
    sanitized = re.sub(r'-+', '-', sanitized)
    sanitized = sanitized.strip('-')

    if len(sanitized) > MAX_NAME_LENGTH:
        sanitized = sanitized[:MAX_NAME_LENGTH].rstrip('-')

    return sanitized or "untitled"


def join_context(*parts: str) -> str:
    """Join context segments into a '/'-separated token with no empty segments."""
    segments = []
    for part in parts:
        segments.extend(segment for segment in part.split('/') if segment)
    return '/'.join(segments)


class LayoutStrategy(ABC):
    """Maps outline levels and pages to paths under one tab's root directory."""

    def __init__(self, root_directory: str, extension: str = '.md', dry_run: bool = False):
        """
        Initialize the strategy.

        Args:
            root_directory: Directory this tab's files are written under
            extension: Managed file extension, dot included
            dry_run: Compute contexts and paths without touching the filesystem
        """
        self.root_directory = Path(root_directory)
        self.extension = extension
        self.dry_run = dry_run
        self._existing_files: Set[Path] = set()
        # (parent context, folder) pairs already handed out
        self._allocated: Set[Tuple[str, str]] = set()

    @abstractmethod
    def folder_name(self, order: int, label: str) -> str:
        """Directory name for a new level."""

    @abstractmethod
    def file_stem(self, page: NotionPage) -> str:
        """File name, without extension, for a non-index page."""

    def new_level(self, root_dir: str, order: int, parent_context: str, label: str) -> str:
        """
        Allocate a nesting level and create its directory.

        Args:
            root_dir: Output root the level is created under
            order: Sibling rank of the page that opens the level
            parent_context: Context of the enclosing level ('' at the top)
            label: Display title of the level

        Returns:
            Context token for the new level
        """
        folder = self._claim_folder(parent_context, self.folder_name(order, label))
        context = join_context(parent_context, folder)

        if not self.dry_run:
            level_dir = Path(root_dir) / context
            level_dir.mkdir(parents=True, exist_ok=True)
            self._write_category_metadata(level_dir, order, label)

        logger.debug(f"New level '{label}' at {context} (position {order})")
        return context

    def _claim_folder(self, parent_context: str, folder: str) -> str:
        """Suffix the folder when an earlier level already took it under this parent."""
        candidate = folder
        suffix = 2
        while (parent_context, candidate) in self._allocated:
            candidate = f"{folder}-{suffix}"
            suffix += 1
        self._allocated.add((parent_context, candidate))
        return candidate

    def _write_category_metadata(self, level_dir: Path, order: int, label: str) -> None:
        data = {'position': order, 'label': label}
        (level_dir / CATEGORY_FILE_NAME).write_text(json.dumps(data), encoding='utf-8')

    def get_path_for_page(self, page: NotionPage, extension: Optional[str] = None) -> Path:
        """
        Output file path for a page.

        Args:
            page: Registered page with its layout context assigned
            extension: Extension override, dot included

        Returns:
            Path under the root directory
        """
        extension = extension or self.extension
        stem = INDEX_FILE_STEM if page.is_category_index else self.file_stem(page)
        directory = self.root_directory / page.layout_context if page.layout_context else self.root_directory
        return directory / f"{stem}{extension}"

    def get_link_path_for_page(self, page: NotionPage) -> str:
        """Root-relative link to a page, as used in front matter slugs and links."""
        return re.sub(r'/{2,}', '/', '/' + page.slug)

    def snapshot_existing_files(self) -> List[Path]:
        """Remember every managed file already under the root directory."""
        if self.root_directory.is_dir():
            self._existing_files = {
                path for path in self.root_directory.rglob(f'*{self.extension}') if path.is_file()
            }
        else:
            self._existing_files = set()
        logger.debug(f"Found {len(self._existing_files)} existing files under {self.root_directory}")
        return sorted(self._existing_files)

    def mark_emitted(self, path: Path) -> None:
        """Record that a page was written to path during this run."""
        self._existing_files.discard(Path(path))

    def stale_files(self) -> List[Path]:
        """Files from the snapshot that no page of this run was written to."""
        return sorted(self._existing_files)

    def remove_stale_files(self, dry_run: bool = False) -> List[Path]:
        """
        Delete files left over from previous runs.

        Args:
            dry_run: Only report what would be deleted

        Returns:
            Stale paths (deleted unless dry_run)
        """
        dry_run = dry_run or self.dry_run
        stale = self.stale_files()
        for path in stale:
            if dry_run:
                logger.info(f"Would remove stale file {path}")
                continue
            logger.info(f"Removing stale file {path}")
            path.unlink(missing_ok=True)
            self._existing_files.discard(path)
        return stale


class NumberedLayoutStrategy(LayoutStrategy):
    """Prefixes levels and pages with their two-digit sibling order ("03-setup")."""

    def folder_name(self, order: int, label: str) -> str:
        return f"{order:02d}-{sanitize_name(label)}"

    def file_stem(self, page: NotionPage) -> str:
        return f"{page.order:02d}-{sanitize_name(page.slug)}"


class HierarchicalNamedLayoutStrategy(LayoutStrategy):
    """Names levels after their label; order lives only in the category file."""

    def folder_name(self, order: int, label: str) -> str:
        return sanitize_name(label)

    def file_stem(self, page: NotionPage) -> str:
        return sanitize_name(page.slug)


LAYOUT_STRATEGIES = {
    'numbered': NumberedLayoutStrategy,
    'named': HierarchicalNamedLayoutStrategy,
}


def create_layout_strategy(
    name: str,
    root_directory: str,
    extension: str = '.md',
    dry_run: bool = False
) -> LayoutStrategy:
    """Instantiate the strategy registered under name."""
    try:
        strategy_class = LAYOUT_STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown layout '{name}'. Must be one of: {sorted(LAYOUT_STRATEGIES)}")
    return strategy_class(root_directory, extension=extension, dry_run=dry_run)


__all__ = [
    'HierarchicalNamedLayoutStrategy',
    'LAYOUT_STRATEGIES',
    'LayoutStrategy',
    'NumberedLayoutStrategy',
    'create_layout_strategy',
    'join_context',
    'sanitize_name'
]
