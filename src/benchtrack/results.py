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
Turn CI result files into candidate entries.

Two shapes are understood:

    Entry records - {"commit": {...}, "date": ..., "tool": ..., "benches": [...]}
        (or a list of them). A bench carries either a final "value" or raw
        "samples", which are aggregated here.

    Benchmark framework output - {"commit": "<sha>", "benchmarkTests": [...]}
        One candidate per test; suite name is the test name and the pull,
        lazy-task and local-task stats blocks become three benches.
"""

import copy
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .aggregator import DEFAULT_UNIT, aggregate_run
from .errors import BenchtrackError, ResultsFormatError

# (stats block in framework output, bench name suffix)
FRAMEWORK_STATS = [
    ("lazyTaskStats", "lazyTaskDuration"),
    ("localTaskStats", "localTaskDuration"),
    ("pullStats", "pullTaskDuration"),
]
FRAMEWORK_UNIT = "Seconds"

Candidate = Tuple[str, Dict[str, Any], List[BenchtrackError]]


def now_ms() -> int:
    return int(time.time() * 1000)


def read_json(path) -> Any:
    """Read a JSON file, mapping every failure to ResultsFormatError."""
    try:
        return json.loads(Path(path).read_text())
    except FileNotFoundError:
        raise ResultsFormatError(f"Results file not found: {path}")
    except (OSError, ValueError) as e:
        raise ResultsFormatError(f"Cannot parse results file {path}: {e}")


def _commit(base: Any, override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(base, str):
        commit = {"id": base}
    elif isinstance(base, dict):
        commit = copy.deepcopy(base)
    else:
        commit = {}
    if override:
        commit.update(override)
    return commit


def _from_framework(data, settings, commit, date) -> List[Candidate]:
    tests = data.get("benchmarkTests")
    if not isinstance(tests, list):
        raise ResultsFormatError("benchmarkTests must be a list")

    candidates = []
    for test in tests:
        if not isinstance(test, dict) or not test.get("testName"):
            raise ResultsFormatError(f"benchmark test without testName: {test!r}")
        suite = test["testName"]
        raw = []
        for stats_key, suffix in FRAMEWORK_STATS:
            stats = test.get(stats_key)
            if not isinstance(stats, dict):
                continue
            raw.append({
                "name": f"{suite}-{suffix}",
                "samples": stats.get("BenchmarkTimes") or [],
                "unit": FRAMEWORK_UNIT,
            })
        benches, errors = aggregate_run(raw, settings.percentile, settings.skip)
        entry = {
            "commit": _commit(data.get("commit"), commit),
            "date": date if date is not None else now_ms(),
            "tool": settings.tool_for(suite),
            "benches": benches,
        }
        candidates.append((suite, entry, errors))
    return candidates


def _from_record(record, settings, suite, commit, date) -> Candidate:
    if not isinstance(record, dict):
        raise ResultsFormatError(f"Entry record must be an object, got {type(record).__name__}")
    entry = copy.deepcopy(record)
    suite = suite or entry.pop("suite", None)
    entry.pop("suite", None)
    if not suite:
        raise ResultsFormatError("A suite name is required for entry records (use --suite)")

    benches = []
    errors = []
    raw_benches = entry.get("benches")
    if isinstance(raw_benches, list):
        for bench in raw_benches:
            if isinstance(bench, dict) and "samples" in bench:
                raw = {"name": bench.get("name"), "samples": bench["samples"],
                       "unit": bench.get("unit", DEFAULT_UNIT)}
                aggregated, failed = aggregate_run([raw], settings.percentile, settings.skip)
                benches.extend(aggregated)
                errors.extend(failed)
            else:
                benches.append(bench)
        entry["benches"] = benches

    entry["commit"] = _commit(entry.get("commit"), commit)
    if date is not None:
        entry["date"] = date
    elif entry.get("date") is None:
        entry["date"] = now_ms()
    if not entry.get("tool"):
        entry["tool"] = settings.tool_for(suite)
    return suite, entry, errors


def parse_candidates(
    data: Any,
    settings,
    suite: Optional[str] = None,
    commit: Optional[Dict[str, Any]] = None,
    date: Optional[int] = None,
) -> List[Candidate]:
    """Candidates from already-decoded result data."""
    if isinstance(data, dict) and "benchmarkTests" in data:
        return _from_framework(data, settings, commit, date)
    if isinstance(data, list):
        return [_from_record(r, settings, suite, commit, date) for r in data]
    if isinstance(data, dict):
        return [_from_record(data, settings, suite, commit, date)]
    raise ResultsFormatError(f"Unrecognised results document: {type(data).__name__}")


def load_candidates(path, settings, suite=None, commit=None, date=None) -> List[Candidate]:
    """Read a results file and return `(suite, entry, bench_errors)` triples."""
    return parse_candidates(read_json(path), settings, suite=suite, commit=commit, date=date)


def load_commit_metadata(path) -> Dict[str, Any]:
    """Commit metadata (author, committer, message, ...) prepared by the caller."""
    data = read_json(path)
    if not isinstance(data, dict):
        raise ResultsFormatError(f"Commit metadata in {path} must be an object")
    return data
