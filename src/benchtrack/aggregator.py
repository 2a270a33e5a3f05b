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
Sample aggregation: reduce raw per-iteration timings to one bench value.

The first `skip` samples of a run are cold-start noise (first image pull
after a cache flush, JIT warm-up) and are dropped before anything else.
"""

from typing import Any, Dict, Iterable, List, Tuple

import numpy as np

from .errors import BenchtrackError, InsufficientSamples, InvalidBench

DEFAULT_PERCENTILE = 90
DEFAULT_SKIP = 1
DEFAULT_UNIT = "Seconds"


def percentile_label(percentile: float) -> str:
    """Label for the `extra` field: 90 -> "P90", 99.9 -> "P99.9"."""
    return f"P{float(percentile):g}"


def _check_params(percentile: float, skip: int) -> None:
    if isinstance(percentile, bool) or not isinstance(percentile, (int, float)):
        raise ValueError(f"percentile must be a number, got {percentile!r}")
    if not 0 <= percentile <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {percentile}")
    if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
        raise ValueError(f"skip must be a non-negative integer, got {skip!r}")


def _remaining(name: str, samples: Iterable[float], skip: int) -> np.ndarray:
    values = [float(s) for s in samples]
    kept = values[skip:]
    if not kept:
        raise InsufficientSamples(name, len(values), skip)
    return np.sort(np.asarray(kept, dtype=float))


def compute_percentile(samples: Iterable[float], percentile: float, skip: int = 0, name: str = "") -> float:
    """
    Percentile of `samples` after dropping the first `skip` entries.

    Uses linear interpolation between ranks: rank = p/100 * (n-1). With a
    single remaining sample the result is that sample.
    """
    _check_params(percentile, skip)
    ordered = _remaining(name, samples, skip)
    return float(np.percentile(ordered, percentile))


def aggregate_samples(
    name: str,
    samples: Iterable[float],
    percentile: float = DEFAULT_PERCENTILE,
    skip: int = DEFAULT_SKIP,
    unit: str = DEFAULT_UNIT,
) -> Dict[str, Any]:
    """Reduce one benchmark's raw samples to a bench record."""
    value = compute_percentile(samples, percentile, skip, name=name)
    return {
        "name": name,
        "value": value,
        "unit": unit,
        "extra": percentile_label(percentile),
    }


def aggregate_run(
    raw_benches: List[Dict[str, Any]],
    percentile: float = DEFAULT_PERCENTILE,
    skip: int = DEFAULT_SKIP,
) -> Tuple[List[Dict[str, Any]], List[BenchtrackError]]:
    """
    Aggregate every `{"name", "samples", "unit"}` item of a run.

    A bench without enough samples, or with non-numeric samples, is reported
    in the error list; the rest of the run is still aggregated.
    """
    _check_params(percentile, skip)
    benches = []
    errors = []
    for raw in raw_benches:
        try:
            benches.append(aggregate_samples(
                raw["name"],
                raw["samples"],
                percentile=percentile,
                skip=skip,
                unit=raw.get("unit", DEFAULT_UNIT),
            ))
        except InsufficientSamples as e:
            errors.append(e)
        except (TypeError, ValueError):
            errors.append(InvalidBench(
                f"{raw['name']}: samples must be a list of numbers",
                field="samples",
                bench=raw["name"],
            ))
    return benches, errors


def summarize_samples(samples: Iterable[float], skip: int = 0, name: str = "") -> Dict[str, float]:
    """Descriptive statistics block (population std dev) for a sample set."""
    _check_params(0, skip)
    ordered = _remaining(name, samples, skip)
    pct = np.percentile(ordered, [25, 50, 75, 90])
    return {
        "mean": float(np.mean(ordered)),
        "stdDev": float(np.std(ordered)),
        "min": float(ordered[0]),
        "pct25": float(pct[0]),
        "pct50": float(pct[1]),
        "pct75": float(pct[2]),
        "pct90": float(pct[3]),
        "max": float(ordered[-1]),
    }
