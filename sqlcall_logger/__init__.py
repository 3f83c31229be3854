"""Structured, timed logging of database driver calls on statements, rows and results."""

__version__ = "0.1.0"