"""Crawler package: walks the Notion outline and builds per-tab page registries."""

from .outline_crawler import ROOT_CONTEXT, CrawlContext, OutlineCrawler

__all__ = ['CrawlContext', 'OutlineCrawler', 'ROOT_CONTEXT']
