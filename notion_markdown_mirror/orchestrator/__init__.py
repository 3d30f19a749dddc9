"""Orchestrator package for coordinating the crawl, export and report phases."""

from .sync_orchestrator import SyncOrchestrator
from .sync_report import SyncReport

__all__ = ['SyncOrchestrator', 'SyncReport']
