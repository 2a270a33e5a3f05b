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
Exception taxonomy for benchtrack.

Errors are scoped to the smallest unit they affect: a single bench
(InsufficientSamples, UnitMismatch, InvalidBench), a single entry
(ValidationError), or the whole store (StoreCorruption).
"""

from typing import List, Optional


class BenchtrackError(Exception):
    """Base class for all benchtrack errors."""
    pass


class ConfigError(BenchtrackError):
    """Raised when a setting cannot be parsed or is out of range."""
    pass


class ResultsFormatError(BenchtrackError):
    """Raised when a CI results file cannot be read or has an unknown shape."""
    pass


class InsufficientSamples(BenchtrackError):
    """Raised when no sample survives cold-start skipping."""

    def __init__(self, name: str, total: int, skip: int):
        self.name = name
        self.total = total
        self.skip = skip
        super().__init__(
            f"{name}: {total} sample(s) with skip={skip} leaves nothing to aggregate"
        )


class Violation(BenchtrackError):
    """
    A single validation finding.

    `bench` is set when the violation concerns one named bench, `index` when
    it concerns a bench that has no usable name; entry-wide violations leave
    both as None.
    """

    def __init__(self, message: str, field: str = "", bench: Optional[str] = None, index: Optional[int] = None):
        self.field = field
        self.bench = bench
        self.index = index
        super().__init__(message)

    @property
    def bench_scoped(self) -> bool:
        return self.bench is not None or self.index is not None


class InvalidBench(Violation):
    """A bench failed a structural check (name, value, unit)."""
    pass


class UnitMismatch(Violation):
    """A known bench name arrived with a different unit than history records."""

    def __init__(self, bench: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{bench}: unit {actual!r} does not match recorded unit {expected!r}",
            field="unit",
            bench=bench,
        )


class ValidationError(BenchtrackError):
    """Raised when a candidate entry is rejected. Carries every violation found."""

    def __init__(self, errors: List[Violation]):
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} validation error(s):\n{lines}")


class ConcurrentWriteConflict(BenchtrackError):
    """Raised when the store lock cannot be taken in time. Safe to retry."""
    pass


class StoreCorruption(BenchtrackError):
    """Raised when the persisted history cannot be parsed. Never auto-repaired."""
    pass
