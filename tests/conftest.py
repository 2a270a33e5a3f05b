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
Pytest configuration and shared fixtures
"""

import copy
import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from benchtrack.config import resolve_settings  # noqa: E402
from benchtrack.store import HistoryStore  # noqa: E402

BUSYBOX = "SociFullECR-public-busybox"
BUSYBOX_COMMIT = "184d1715fe4985936018f8013dd81c54019ae4e4"
BUSYBOX_DATE = 1692038787627


def make_entry(commit=BUSYBOX_COMMIT, date=BUSYBOX_DATE, tool="customSmallerIsBetter", values=None, unit="Seconds", suite=BUSYBOX):
    """Build an entry shaped like the dashboard data, one bench per value."""
    values = values or {"lazyTaskDuration": 0.011, "localTaskDuration": 0.015, "pullTaskDuration": 1.165}
    return {
        "commit": {
            "author": {"email": "dev@example.com", "name": "Dev One"},
            "id": commit,
            "message": "Add benchmark visualization workflow",
            "timestamp": "2023-08-14T14:24:40-04:00",
        },
        "date": date,
        "tool": tool,
        "benches": [
            {"name": f"{suite}-{name}", "value": value, "unit": unit, "extra": "P90"}
            for name, value in values.items()
        ],
    }


@pytest.fixture
def entry_factory():
    """Provide the entry builder."""
    return make_entry


@pytest.fixture
def busybox_entry():
    """Provide the first recorded busybox entry."""
    return copy.deepcopy(make_entry())


@pytest.fixture
def store_path(tmp_path):
    """Provide a path for a fresh JSON history store."""
    return tmp_path / "benchmark-data.json"


@pytest.fixture
def store(store_path):
    """Provide an empty history store with a short lock timeout."""
    return HistoryStore(store_path, lock_timeout=2)


@pytest.fixture
def settings():
    """Provide default settings, isolated from env and config files."""
    return resolve_settings(env={}, config_paths=[])


@pytest.fixture
def framework_results():
    """Provide benchmark framework output for two tests."""
    return {
        "commit": "9d0c2a1b7f3e4c5d6a7b8c9d0e1f2a3b4c5d6e7f",
        "benchmarkTests": [
            {
                "testName": BUSYBOX,
                "numberOfTests": 5,
                "fullRunStats": {"BenchmarkTimes": [2.1, 1.3, 1.2, 1.25, 1.22]},
                "pullStats": {"BenchmarkTimes": [5.9, 1.15, 1.0, 0.95, 0.8]},
                "lazyTaskStats": {"BenchmarkTimes": [0.059, 0.0115, 0.010, 0.0095, 0.008]},
                "localTaskStats": {"BenchmarkTimes": [0.02, 0.015, 0.014, 0.016, 0.013]},
            },
            {
                "testName": "SociFullECR-public-rabbitmq",
                "numberOfTests": 5,
                "pullStats": {"BenchmarkTimes": [9.0, 2.0, 2.2, 2.1, 2.4]},
                "lazyTaskStats": {"BenchmarkTimes": [0.5, 0.1, 0.2, 0.1, 0.3]},
                "localTaskStats": {"BenchmarkTimes": None},
            },
        ],
    }
