"""
Storage module for clipvault.

This module provides SQLite-based persistence for the clipboard history.
Every captured text is kept once (deduplicated by fingerprint) in a single
`record` table and ordered by when it was last seen.

Design principles:
    - Dedup: re-captured text is touched, never duplicated
    - Atomic: check-then-write sequences run in one transaction
    - Bounded: retention trims back to capacity past an overflow margin
    - Self-contained: one .sqlite file holds the whole history
"""

from clipvault.store.db import EVICTION_MARGIN, HistoryStore, now_ms

__all__ = [
    "EVICTION_MARGIN",
    "HistoryStore",
    "now_ms",
]
