# This is free software for the public good of a permacomputer hosted at
# permacomputer.com, an always-on computer by the people, for the people.
# One which is durable, easy to repair, & distributed like tap water
# for machine learning intelligence.
#
# The permacomputer is community-owned infrastructure optimized around
# four values:
#
#   TRUTH      First principles, math & science, open source code freely distributed
#   FREEDOM    Voluntary partnerships, freedom from tyranny & corporate control
#   HARMONY    Minimal waste, self-renewing systems with diverse thriving connections
#   LOVE       Be yourself without hurting others, cooperation through natural law
#
# This software contributes to that vision by enabling code execution across 42+ programming languages through a unified interface, accessible to all.
# Code is seeds to sprout on any abandoned technology.

"""
benchtrack - CI benchmark history and regression checks

Example usage:
    from benchtrack import HistoryStore, aggregate_samples, compare_entry

    bench = aggregate_samples("busybox-pullTaskDuration", samples, percentile=90, skip=1)
    store = HistoryStore("data.json")
    store.append("busybox", entry)
    report = compare_entry(store.query("busybox"), entry, threshold=20)
"""

from .aggregator import (
    aggregate_samples,
    aggregate_run,
    compute_percentile,
    summarize_samples,
)
from .compare import (
    Polarity,
    compare_entry,
    format_report,
    polarity_for,
    select_baseline,
)
from .config import Settings, resolve_settings
from .errors import (
    BenchtrackError,
    ConcurrentWriteConflict,
    ConfigError,
    InsufficientSamples,
    ResultsFormatError,
    StoreCorruption,
    UnitMismatch,
    ValidationError,
)
from .pipeline import ingest, ingest_batch
from .results import load_candidates
from .store import HistoryStore
from .validator import validate_entry

__version__ = "1.0.0"
__all__ = [
    "aggregate_samples",
    "aggregate_run",
    "compute_percentile",
    "summarize_samples",
    "Polarity",
    "compare_entry",
    "format_report",
    "polarity_for",
    "select_baseline",
    "Settings",
    "resolve_settings",
    "BenchtrackError",
    "ConcurrentWriteConflict",
    "ConfigError",
    "InsufficientSamples",
    "ResultsFormatError",
    "StoreCorruption",
    "UnitMismatch",
    "ValidationError",
    "ingest",
    "ingest_batch",
    "load_candidates",
    "HistoryStore",
    "validate_entry",
]
