"""Compaction of active snapshots into archive bundles."""

from __future__ import annotations

from history_engine.compaction.bundle import BundleEntry, render_bundle, split_bundle
from history_engine.compaction.engine import MANIFEST_NAME, CompactionEngine

__all__ = [
    "BundleEntry",
    "CompactionEngine",
    "MANIFEST_NAME",
    "render_bundle",
    "split_bundle",
]
