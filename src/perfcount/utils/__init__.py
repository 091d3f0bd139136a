"""Utility helpers for the :mod:`perfcount` package."""

from .logging import setup_logging

__all__ = ["setup_logging"]
