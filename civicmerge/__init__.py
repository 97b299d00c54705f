"""Spatial + semantic deduplication of citizen problem reports."""

__version__ = "0.1.0"
