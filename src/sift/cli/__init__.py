"""Command line interface for Sift."""

from .app import app

__all__ = ["app"]
