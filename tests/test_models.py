"""Tests for page classification, content info and page identity."""

import pytest

from conftest import child_page, dashed, link_to_page, make_id, page_record, paragraph
from notion_markdown_mirror.models import (
    Block,
    BlockKind,
    ContentInfo,
    CrawlCounts,
    NotionPage,
    PageMetadata,
    PageRole,
    classify
)


def blocks_from(*records):
    return [Block.from_record(record) for record in records]


class TestClassify:
    """Four-way classification table."""

    @pytest.mark.parametrize('has_content,ref_count,expected', [
        (True, 1, PageRole.CATEGORY_WITH_INDEX),
        (True, 5, PageRole.CATEGORY_WITH_INDEX),
        (False, 1, PageRole.CATEGORY_WITHOUT_INDEX),
        (True, 0, PageRole.LEAF),
        (False, 0, PageRole.EMPTY),
    ])
    def test_table(self, has_content, ref_count, expected):
        assert classify(has_content, ref_count) is expected


class TestContentInfo:
    """Splitting a listing into children, links and content."""

    def test_orders_are_listing_indexes_with_gaps(self):
        info = ContentInfo.from_blocks(blocks_from(
            child_page(make_id(1)),
            paragraph('between'),
            paragraph('more'),
            child_page(make_id(2)),
            link_to_page(make_id(3)),
        ))

        assert [(ref.id, ref.order) for ref in info.child_refs] == [(make_id(1), 0), (make_id(2), 3)]
        assert [(ref.id, ref.order) for ref in info.link_refs] == [(make_id(3), 4)]
        assert info.has_content is True
        assert info.role is PageRole.CATEGORY_WITH_INDEX

    def test_only_pages_means_no_content(self):
        info = ContentInfo.from_blocks(blocks_from(child_page(make_id(1)), link_to_page(make_id(2))))

        assert info.has_content is False
        assert info.ref_count == 2
        assert info.role is PageRole.CATEGORY_WITHOUT_INDEX

    def test_empty_listing(self):
        assert ContentInfo.from_blocks([]).role is PageRole.EMPTY

    def test_link_to_database_is_content(self):
        record = {
            'object': 'block', 'id': 'l1', 'type': 'link_to_page',
            'link_to_page': {'type': 'database_id', 'database_id': make_id(4)},
        }
        info = ContentInfo.from_blocks(blocks_from(record))

        assert info.link_refs == []
        assert info.has_content is True


class TestBlock:
    """Block records."""

    def test_partial_record(self):
        block = Block.from_record({'object': 'block', 'id': 'x'})

        assert block.kind is BlockKind.PARTIAL
        assert not block.is_full

    def test_linked_page_id(self):
        block = Block.from_record(link_to_page(make_id(5)))

        assert block.linked_page_id == make_id(5)


class TestNotionPage:
    """Identity and slugs."""

    def make_page(self, page_id, slug=None):
        metadata = PageMetadata.from_api(page_record(page_id, 'Setup', slug=slug))
        return NotionPage.from_metadata(metadata, parent_id='parent', order=2)

    def test_matches_dashed_and_compact_ids(self):
        page = self.make_page(make_id(10))

        assert page.matches_link_id(make_id(10))
        assert page.matches_link_id(dashed(make_id(10)))
        assert page.matches_link_id(make_id(10).upper())
        assert not page.matches_link_id(make_id(11))
        assert not page.matches_link_id('')

    def test_matches_explicit_slug(self):
        page = self.make_page(make_id(10), slug='/setup/')

        assert page.slug == 'setup'
        assert page.matches_link_id('setup')
        assert page.matches_link_id('/setup')

    def test_slug_defaults_to_compact_id(self):
        page = self.make_page(make_id(10))

        assert page.slug == make_id(10)

    def test_link_pages_have_unknown_content(self):
        page = self.make_page(make_id(10))

        assert page.has_content is None
        assert page.child_refs == []

    def test_to_dict(self):
        data = self.make_page(make_id(10)).to_dict()

        assert data['title'] == 'Setup'
        assert data['order'] == 2
        assert data['kind'] == 'outline_content'
        assert data['is_category_index'] is False


class TestCrawlCounts:
    def test_merge(self):
        total = CrawlCounts(output_normally=1)
        total.merge(CrawlCounts(output_normally=2, skipped_because_empty=1, skipped_because_status=3))

        assert total.to_dict() == {
            'output_normally': 3,
            'skipped_because_empty': 1,
            'skipped_because_status': 3,
        }
