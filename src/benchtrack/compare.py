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
Baseline selection and regression comparison.

The entry's `tool` decides polarity. Polarity is resolved once per entry and
the comparison itself only ever talks to the Polarity value.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_THRESHOLD = 20.0
DEFAULT_BASELINE = "previous"
BASELINE_POLICIES = ("previous", "previous-with-bench", "first")


class Polarity(Enum):
    """Which direction of change counts as worse."""

    SMALLER_IS_BETTER = "smaller"
    BIGGER_IS_BETTER = "bigger"

    def is_regression(self, percent_delta: Optional[float], threshold: float) -> bool:
        if percent_delta is None:
            return False
        if self is Polarity.SMALLER_IS_BETTER:
            return percent_delta > threshold
        return percent_delta < -threshold


TOOLS = {
    "customSmallerIsBetter": Polarity.SMALLER_IS_BETTER,
    "customBiggerIsBetter": Polarity.BIGGER_IS_BETTER,
}


def polarity_for(tool: str) -> Polarity:
    """Map a tool identifier to its polarity. Unknown tools raise ValueError."""
    try:
        return TOOLS[tool]
    except (KeyError, TypeError):
        raise ValueError(f"Unsupported tool: {tool!r} (expected one of {', '.join(TOOLS)})")


def commit_id(entry: Dict[str, Any]) -> str:
    commit = entry.get("commit")
    if isinstance(commit, dict):
        return commit.get("id") or ""
    return ""


def percent_delta(baseline: float, current: float) -> float:
    """(current - baseline) / baseline * 100, with a zero baseline mapped to 0 or +inf."""
    if baseline == 0:
        return 0.0 if current == 0 else math.inf
    return (current - baseline) / baseline * 100


def _bench_value(entry: Dict[str, Any], name: str) -> Optional[float]:
    for bench in entry.get("benches", []):
        if bench.get("name") == name:
            return bench.get("value")
    return None


def _earlier_entries(entries: List[Dict[str, Any]], entry: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Entries ahead of `entry` in the suite ordering, never including its own commit."""
    cid = commit_id(entry)
    for idx, candidate in enumerate(entries):
        if commit_id(candidate) == cid:
            return entries[:idx]
    # Not stored (dry run): place it by timestamp
    return [e for e in entries if commit_id(e) != cid and e.get("date", 0) <= entry.get("date", 0)]


def select_baseline(
    earlier: List[Dict[str, Any]],
    bench_name: str,
    policy: str = DEFAULT_BASELINE,
) -> Optional[Dict[str, Any]]:
    """Pick the baseline entry for one bench, or None when there is nothing to compare to."""
    if policy not in BASELINE_POLICIES:
        raise ValueError(f"Unknown baseline policy: {policy!r}")
    if not earlier:
        return None
    if policy == "previous":
        return earlier[-1]
    if policy == "first":
        return earlier[0]
    for candidate in reversed(earlier):
        if _bench_value(candidate, bench_name) is not None:
            return candidate
    return None


def compare_entry(
    entries: List[Dict[str, Any]],
    entry: Dict[str, Any],
    threshold: float = DEFAULT_THRESHOLD,
    policy: str = DEFAULT_BASELINE,
) -> Dict[str, Any]:
    """
    Build the regression report for `entry` against the suite history.

    `entries` is the suite's ordered history, normally already containing
    `entry` itself. Benches without a baseline are reported with
    baselineValue None and are never flagged.
    """
    polarity = polarity_for(entry.get("tool"))
    earlier = _earlier_entries(entries, entry)

    rows = []
    for bench in entry.get("benches", []):
        name = bench["name"]
        current = bench["value"]
        base_entry = select_baseline(earlier, name, policy)
        baseline = _bench_value(base_entry, name) if base_entry else None

        delta = percent_delta(baseline, current) if baseline is not None else None
        rows.append({
            "name": name,
            "unit": bench.get("unit"),
            "baselineValue": baseline,
            "baselineCommit": commit_id(base_entry) if baseline is not None else None,
            "currentValue": current,
            "percentDelta": delta,
            "flagged": polarity.is_regression(delta, threshold),
        })

    return {
        "commit": commit_id(entry),
        "tool": entry.get("tool"),
        "polarity": polarity.value,
        "threshold": threshold,
        "baseline": policy,
        "benches": rows,
        "regressed": any(r["flagged"] for r in rows),
        "hasBaseline": any(r["baselineValue"] is not None for r in rows),
    }


def bench_status(row: Dict[str, Any]) -> str:
    if row["baselineValue"] is None:
        return "NO BASELINE"
    return "REGRESSION" if row["flagged"] else "OK"


def format_bench(row: Dict[str, Any]) -> str:
    """One human-readable line per bench for CI logs."""
    status = bench_status(row)
    unit = row.get("unit") or ""
    if status == "NO BASELINE":
        return f"{status}: {row['name']} - current {row['currentValue']:g} {unit} (nothing to compare against)"
    delta = row["percentDelta"]
    delta_text = "+inf%" if math.isinf(delta) else f"{delta:+.1f}%"
    return (
        f"{status}: {row['name']} - baseline {row['baselineValue']:g} {unit}, "
        f"current {row['currentValue']:g} {unit} ({delta_text})"
    )


def format_report(report: Dict[str, Any]) -> str:
    lines = [format_bench(row) for row in report["benches"]]
    flagged = [r["name"] for r in report["benches"] if r["flagged"]]
    if flagged:
        lines.append(
            f"FAILED: {len(flagged)} bench(es) regressed beyond {report['threshold']:g}% threshold"
        )
    elif not report["hasBaseline"]:
        lines.append("NO BASELINE: first measurement for this suite, nothing compared")
    else:
        lines.append(f"PASSED: all benches within {report['threshold']:g}% threshold")
    return "\n".join(lines)
