"""Reporting helpers for counter snapshots."""

from . import save_results, summarize

__all__ = ["save_results", "summarize"]
