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
Settings resolution for benchtrack.

Priority (first hit wins, per key):
    1. Explicit overrides (CLI flags, function arguments)
    2. Environment variables (BENCHTRACK_*)
    3. ~/.benchtrack/config.json
    4. ./benchtrack.json
    5. Built-in defaults

Config files may also carry per-suite overrides:
    {"suites": {"SociFullECR-public-busybox": {"tool": "...", "threshold": 30}}}
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .aggregator import DEFAULT_PERCENTILE, DEFAULT_SKIP
from .compare import BASELINE_POLICIES, DEFAULT_BASELINE, DEFAULT_THRESHOLD, TOOLS
from .errors import ConfigError
from .store import DEFAULT_LOCK_TIMEOUT

DEFAULT_TOOL = "customSmallerIsBetter"
DEFAULT_STORE = "benchmark-data.json"

DEFAULTS = {
    "store": DEFAULT_STORE,
    "percentile": DEFAULT_PERCENTILE,
    "skip": DEFAULT_SKIP,
    "threshold": DEFAULT_THRESHOLD,
    "tool": DEFAULT_TOOL,
    "baseline": DEFAULT_BASELINE,
    "lock_timeout": DEFAULT_LOCK_TIMEOUT,
}

ENV_VARS = {
    "store": "BENCHTRACK_STORE",
    "percentile": "BENCHTRACK_PERCENTILE",
    "skip": "BENCHTRACK_SKIP",
    "threshold": "BENCHTRACK_THRESHOLD",
    "tool": "BENCHTRACK_TOOL",
    "baseline": "BENCHTRACK_BASELINE",
    "lock_timeout": "BENCHTRACK_LOCK_TIMEOUT",
}


def _get_benchtrack_dir() -> Path:
    """Get ~/.benchtrack directory path."""
    return Path.home() / ".benchtrack"


def default_config_paths() -> List[Path]:
    """Config files in priority order (highest first)."""
    return [_get_benchtrack_dir() / "config.json", Path("benchtrack.json")]


def _load_config_file(path: Path) -> Optional[Dict[str, Any]]:
    """Load one JSON config file; missing files are skipped, broken ones are errors."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _coerce(key: str, value: Any, source: str) -> Any:
    try:
        if key == "skip":
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            value = int(value)
            if value < 0:
                raise ValueError(value)
        elif key == "percentile":
            value = float(value)
            if not 0 <= value <= 100:
                raise ValueError(value)
        elif key in ("threshold", "lock_timeout"):
            value = float(value)
            if value < 0:
                raise ValueError(value)
        elif key == "tool":
            if value not in TOOLS:
                raise ValueError(value)
        elif key == "baseline":
            if value not in BASELINE_POLICIES:
                raise ValueError(value)
        else:
            value = str(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {key} from {source}: {value!r}")
    return value


class Settings:
    """Resolved settings plus per-suite overrides."""

    def __init__(self, values: Dict[str, Any], suites: Optional[Dict[str, Dict[str, Any]]] = None):
        self.values = values
        self.suites = suites or {}

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("values", {})
        if name in values:
            return values[name]
        raise AttributeError(name)

    def for_suite(self, suite: str, key: str) -> Any:
        override = self.suites.get(suite, {})
        if key in override:
            return _coerce(key, override[key], f"suite {suite!r}")
        return self.values[key]

    def tool_for(self, suite: str) -> str:
        return self.for_suite(suite, "tool")

    def threshold_for(self, suite: str) -> float:
        return self.for_suite(suite, "threshold")


def resolve_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
    config_paths: Optional[List[Path]] = None,
) -> Settings:
    """Resolve every setting through the priority tiers above."""
    overrides = overrides or {}
    env = os.environ if env is None else env
    paths = default_config_paths() if config_paths is None else config_paths

    files = []
    for path in paths:
        data = _load_config_file(Path(path))
        if data is not None:
            files.append((str(path), data))

    values = {}
    for key, default in DEFAULTS.items():
        if overrides.get(key) is not None:
            values[key] = _coerce(key, overrides[key], "arguments")
            continue
        env_value = env.get(ENV_VARS[key])
        if env_value:
            values[key] = _coerce(key, env_value, ENV_VARS[key])
            continue
        for source, data in files:
            if data.get(key) is not None:
                values[key] = _coerce(key, data[key], source)
                break
        else:
            values[key] = default

    # Lower-priority files first so higher ones win per suite key
    suites = {}
    for source, data in reversed(files):
        per_suite = data.get("suites") or {}
        if not isinstance(per_suite, dict):
            raise ConfigError(f"'suites' in {source} must be an object")
        for name, override in per_suite.items():
            if not isinstance(override, dict):
                raise ConfigError(f"suite {name!r} in {source} must be an object")
            suites.setdefault(name, {}).update(override)

    return Settings(values, suites)
