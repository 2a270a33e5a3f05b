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
Ingest pipeline: validate -> upsert -> compare, one candidate at a time.

Validation and the upsert happen inside the store lock so the unit history a
candidate is checked against is the one it gets written next to.
"""

import math
from contextlib import nullcontext
from typing import Any, Dict, Iterable, List

from .compare import commit_id, compare_entry
from .errors import BenchtrackError, Violation
from .validator import validate_entry

EXIT_OK = 0
EXIT_REGRESSION = 1
EXIT_INVALID = 2


def ingest(store, suite: str, candidate: Dict[str, Any], settings, bench_errors: Iterable[BenchtrackError] = (), dry_run: bool = False) -> Dict[str, Any]:
    """
    Validate and store one candidate entry, then compare it to its baseline.

    Bench-scoped violations drop the offending benches and keep the rest;
    entry-scoped violations reject the entry. With `dry_run` the store is
    read but never written.
    """
    outcome = {
        "suite": suite,
        "commit": commit_id(candidate) if isinstance(candidate, dict) else "",
        "status": "rejected",
        "replaced": False,
        "errors": list(bench_errors),
        "warnings": [],
        "report": None,
    }

    context = nullcontext(store.load()) if dry_run else store.locked()
    with context as doc:
        validation = validate_entry(candidate, doc.query(suite), settings.tool_for(suite))
        outcome["errors"].extend(validation.errors)
        outcome["warnings"].extend(validation.warnings)
        if validation.entry_errors:
            return outcome

        accepted = dict(candidate)
        accepted["benches"] = validation.accepted_benches(candidate["benches"])
        if not accepted["benches"]:
            outcome["errors"].append(Violation("no valid benches left after validation", field="benches"))
            return outcome

        outcome["replaced"] = doc.append(suite, accepted)
        outcome["status"] = "stored"
        outcome["report"] = compare_entry(
            doc.query(suite),
            accepted,
            threshold=settings.threshold_for(suite),
            policy=settings.baseline,
        )
    return outcome


def ingest_batch(store, candidates, settings, dry_run: bool = False) -> List[Dict[str, Any]]:
    """Ingest `(suite, entry, bench_errors)` triples; a rejected entry never stops the rest."""
    return [
        ingest(store, suite, entry, settings, bench_errors=errors, dry_run=dry_run)
        for suite, entry, errors in candidates
    ]


def exit_code_for(outcomes: List[Dict[str, Any]]) -> int:
    """2 if anything was rejected, else 1 if anything regressed, else 0."""
    if any(o["status"] == "rejected" or o["errors"] for o in outcomes):
        return EXIT_INVALID
    if any(o["report"] and o["report"]["regressed"] for o in outcomes):
        return EXIT_REGRESSION
    return EXIT_OK


def _json_delta(delta):
    if delta is None or math.isfinite(delta):
        return delta
    if math.isnan(delta):
        return None
    return "+inf" if delta > 0 else "-inf"


def outcome_to_json(outcome: Dict[str, Any]) -> Dict[str, Any]:
    """
    Plain-JSON view of an outcome.

    Errors become their messages and an infinite `percentDelta` (zero
    baseline) becomes the string "+inf", so the result dumps with
    `allow_nan=False`.
    """
    data = dict(outcome)
    data["errors"] = [str(e) for e in outcome["errors"]]
    if outcome["report"] is not None:
        report = dict(outcome["report"])
        report["benches"] = [dict(row, percentDelta=_json_delta(row.get("percentDelta"))) for row in report["benches"]]
        data["report"] = report
    return data
