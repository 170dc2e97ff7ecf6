"""Pipe graph-description text from stdin into a single rendered browser page."""

__version__ = "0.1.0"
