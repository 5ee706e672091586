"""Snapshot lifecycle engine: capture, compaction, search and evolution tracking."""

__version__ = "0.4.0"
