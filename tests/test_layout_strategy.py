"""Tests for layout strategies: levels, page paths, link paths and stale files."""

import json

import pytest

from conftest import make_id
from notion_markdown_mirror.exporters.layout_strategy import (
    HierarchicalNamedLayoutStrategy,
    NumberedLayoutStrategy,
    create_layout_strategy,
    join_context,
    sanitize_name
)
from notion_markdown_mirror.models import NotionPage


def make_page(order=1, title='Page', layout_context='', slug=None, is_category_index=False, page_id=None):
    return NotionPage(
        id=page_id or make_id(42),
        parent_id='parent',
        order=order,
        title=title,
        layout_context=layout_context,
        explicit_slug=slug,
        is_category_index=is_category_index
    )


class TestSanitizeName:
    """Filesystem-safe names."""

    def test_lowercases_and_replaces(self):
        assert sanitize_name('Getting Started: Part 1!') == 'getting-started-part-1'

    def test_collapses_and_trims(self):
        assert sanitize_name('  --Hello___World--  ') == 'hello___world'

    def test_empty_becomes_untitled(self):
        assert sanitize_name('') == 'untitled'
        assert sanitize_name('???') == 'untitled'

    def test_truncates(self):
        assert len(sanitize_name('a' * 300)) == 100

    def test_join_context(self):
        assert join_context('', '01-a') == '01-a'
        assert join_context('01-a/', '/02-b') == '01-a/02-b'


class TestNewLevel:
    """Nesting levels."""

    def test_numbered_level(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path))

        context = layout.new_level(str(tmp_path), 3, '', 'Getting Started')

        assert context == '03-getting-started'
        category = tmp_path / '03-getting-started' / '_category_.json'
        assert json.loads(category.read_text(encoding='utf-8')) == {'position': 3, 'label': 'Getting Started'}

    def test_nested_level(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path))

        parent = layout.new_level(str(tmp_path), 1, '', 'Guide')
        child = layout.new_level(str(tmp_path), 4, parent, 'Install')

        assert child == '01-guide/04-install'
        assert (tmp_path / '01-guide' / '04-install').is_dir()

    def test_same_input_same_context(self, tmp_path):
        first = NumberedLayoutStrategy(str(tmp_path)).new_level(str(tmp_path), 2, '', 'Setup')
        second = NumberedLayoutStrategy(str(tmp_path)).new_level(str(tmp_path), 2, '', 'Setup')

        assert first == second

    def test_named_collisions_get_suffix(self, tmp_path):
        layout = HierarchicalNamedLayoutStrategy(str(tmp_path))

        first = layout.new_level(str(tmp_path), 0, '', 'Set up')
        second = layout.new_level(str(tmp_path), 1, '', 'Set-up')
        third = layout.new_level(str(tmp_path), 2, '', 'SET UP')

        assert [first, second, third] == ['set-up', 'set-up-2', 'set-up-3']

    def test_named_same_folder_under_other_parent_is_fine(self, tmp_path):
        layout = HierarchicalNamedLayoutStrategy(str(tmp_path))

        assert layout.new_level(str(tmp_path), 0, 'a', 'Setup') == 'a/setup'
        assert layout.new_level(str(tmp_path), 0, 'b', 'Setup') == 'b/setup'

    def test_dry_run_touches_nothing(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path / 'out'), dry_run=True)

        assert layout.new_level(str(tmp_path / 'out'), 0, '', 'Guide') == '00-guide'
        assert not (tmp_path / 'out').exists()


class TestPagePaths:
    """Page and link paths."""

    def test_numbered_page_path(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path))
        page = make_page(order=5, layout_context='01-guide', slug='install')

        assert layout.get_path_for_page(page) == tmp_path / '01-guide' / '05-install.md'

    def test_named_page_path_and_extension_override(self, tmp_path):
        layout = HierarchicalNamedLayoutStrategy(str(tmp_path), extension='.mdx')
        page = make_page(layout_context='guide', slug='install')

        assert layout.get_path_for_page(page) == tmp_path / 'guide' / 'install.mdx'
        assert layout.get_path_for_page(page, '.md') == tmp_path / 'guide' / 'install.md'

    def test_index_page_path_is_inside_its_level(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path))
        context = layout.new_level(str(tmp_path), 1, '', 'Guide')
        page = make_page(order=1, layout_context=context, is_category_index=True)

        path = layout.get_path_for_page(page)

        assert path == tmp_path / '01-guide' / 'index.md'
        assert path == layout.get_path_for_page(page)

    def test_link_path(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path))

        assert layout.get_link_path_for_page(make_page(slug='/docs//setup/')) == '/docs/setup'
        assert layout.get_link_path_for_page(make_page()) == '/' + make_id(42)


class TestStaleFiles:
    """Reconciliation of earlier output."""

    def test_untouched_file_is_stale(self, tmp_path):
        kept = tmp_path / '01-guide' / '01-install.md'
        orphan = tmp_path / 'old' / 'removed.md'
        other = tmp_path / 'notes.txt'
        for path in (kept, orphan, other):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('x', encoding='utf-8')

        layout = NumberedLayoutStrategy(str(tmp_path))
        assert layout.snapshot_existing_files() == sorted([kept, orphan])

        page = make_page(order=1, layout_context='01-guide', slug='install')
        layout.mark_emitted(layout.get_path_for_page(page))

        assert layout.stale_files() == [orphan]
        assert layout.remove_stale_files() == [orphan]
        assert kept.exists()
        assert not orphan.exists()
        assert other.exists()

    def test_dry_run_removal_keeps_files(self, tmp_path):
        orphan = tmp_path / 'old.md'
        orphan.write_text('x', encoding='utf-8')
        layout = NumberedLayoutStrategy(str(tmp_path))
        layout.snapshot_existing_files()

        assert layout.remove_stale_files(dry_run=True) == [orphan]
        assert orphan.exists()

    def test_missing_root_has_no_snapshot(self, tmp_path):
        layout = NumberedLayoutStrategy(str(tmp_path / 'missing'))

        assert layout.snapshot_existing_files() == []


class TestFactory:
    def test_known_layouts(self, tmp_path):
        assert isinstance(create_layout_strategy('numbered', str(tmp_path)), NumberedLayoutStrategy)
        assert isinstance(create_layout_strategy('named', str(tmp_path)), HierarchicalNamedLayoutStrategy)

    def test_unknown_layout(self, tmp_path):
        with pytest.raises(ValueError):
            create_layout_strategy('flat', str(tmp_path))
