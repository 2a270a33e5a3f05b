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
Ingestion validation for candidate entries.

Every violation is collected; nothing short-circuits on the first problem so
a CI job gets the full list in one round trip.
"""

import math
import time
from typing import Any, Dict, List, Optional

from .compare import TOOLS, commit_id
from .errors import InvalidBench, UnitMismatch, ValidationError, Violation

MIN_PLAUSIBLE_MS = 946684800000  # 2000-01-01T00:00:00Z
MAX_FUTURE_SKEW_MS = 24 * 3600 * 1000


class ValidationReport:
    """Outcome of validating one candidate entry."""

    def __init__(self, errors: Optional[List[Violation]] = None, warnings: Optional[List[str]] = None):
        self.errors = errors or []
        self.warnings = warnings or []

    @property
    def accepted(self) -> bool:
        return not self.errors

    @property
    def entry_errors(self) -> List[Violation]:
        return [e for e in self.errors if not e.bench_scoped]

    @property
    def bench_errors(self) -> List[Violation]:
        return [e for e in self.errors if e.bench_scoped]

    def rejected_benches(self) -> set:
        """Names of benches to drop; every bench carrying one of them goes."""
        return {e.bench for e in self.bench_errors if e.bench is not None}

    def rejected_indexes(self) -> set:
        """Positions of unnamed or malformed benches to drop."""
        return {e.index for e in self.bench_errors if e.index is not None}

    def accepted_benches(self, benches: List[Any]) -> List[Dict[str, Any]]:
        names = self.rejected_benches()
        indexes = self.rejected_indexes()
        return [b for idx, b in enumerate(benches) if idx not in indexes and b.get("name") not in names]

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def known_units(entries: List[Dict[str, Any]]) -> Dict[str, str]:
    """First recorded unit for every bench name in a suite."""
    units = {}
    for entry in entries:
        for bench in entry.get("benches", []):
            units.setdefault(bench.get("name"), bench.get("unit"))
    return units


def _check_recorded_at(entry: Dict[str, Any], entries: List[Dict[str, Any]], report: ValidationReport, now_ms: int) -> None:
    date = entry.get("date")
    if not _is_number(date) or not math.isfinite(date):
        report.errors.append(Violation(f"date must be an epoch-millisecond number, got {date!r}", field="date"))
        return
    if date < MIN_PLAUSIBLE_MS or date > now_ms + MAX_FUTURE_SKEW_MS:
        report.errors.append(Violation(f"date {date} is not a plausible epoch-millisecond timestamp", field="date"))
        return

    cid = commit_id(entry)
    newest = max((e.get("date", 0) for e in entries if commit_id(e) != cid), default=None)
    if newest is not None and date < newest:
        report.warnings.append(
            f"date {date} is older than the newest stored entry ({newest}); "
            "storing it out of order"
        )


def _check_benches(entry: Dict[str, Any], units: Dict[str, str], report: ValidationReport) -> None:
    benches = entry.get("benches")
    if not isinstance(benches, list) or not benches:
        report.errors.append(Violation("benches must be a non-empty list", field="benches"))
        return

    seen = set()
    for idx, bench in enumerate(benches):
        if not isinstance(bench, dict):
            report.errors.append(InvalidBench(f"benches[{idx}] is not an object", field="benches", index=idx))
            continue
        name = bench.get("name")
        if not isinstance(name, str) or not name.strip():
            report.errors.append(InvalidBench(f"benches[{idx}] has an empty name", field="name", index=idx))
            continue
        if name in seen:
            report.errors.append(InvalidBench(f"{name}: duplicate bench name in entry", field="name", bench=name))
            continue
        seen.add(name)

        value = bench.get("value")
        if not _is_number(value) or not math.isfinite(value) or value < 0:
            report.errors.append(InvalidBench(f"{name}: value must be a finite number >= 0, got {value!r}", field="value", bench=name))

        unit = bench.get("unit")
        if not isinstance(unit, str) or not unit:
            report.errors.append(InvalidBench(f"{name}: unit must be a non-empty string", field="unit", bench=name))
        elif name in units and units[name] != unit:
            report.errors.append(UnitMismatch(name, units[name], unit))


def validate_entry(
    entry: Dict[str, Any],
    entries: List[Dict[str, Any]],
    tool: str,
    now_ms: Optional[int] = None,
) -> ValidationReport:
    """
    Check a candidate entry against the suite's current history.

    `entries` is the stored suite sequence and `tool` the suite's configured
    tool identifier. Out-of-order timestamps only produce a warning.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    report = ValidationReport()

    if not isinstance(entry, dict):
        report.errors.append(Violation("entry must be an object"))
        return report

    cid = commit_id(entry)
    if not isinstance(cid, str) or not cid.strip():
        report.errors.append(Violation("commit.id must be a non-empty string", field="commit"))

    _check_recorded_at(entry, entries, report, now_ms)

    entry_tool = entry.get("tool")
    if not isinstance(entry_tool, str) or entry_tool not in TOOLS:
        report.errors.append(Violation(f"unsupported tool {entry_tool!r}", field="tool"))
    elif entry_tool != tool:
        report.errors.append(Violation(f"tool {entry_tool!r} does not match suite tool {tool!r}", field="tool"))

    _check_benches(entry, known_units(entries), report)
    return report
