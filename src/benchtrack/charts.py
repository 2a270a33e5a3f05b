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
Render suite history as PNG trend charts (one line per bench).
"""

import re
from pathlib import Path
from typing import Any, Dict, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .compare import commit_id  # noqa: E402

PALETTE = ["#e94560", "#0f3460", "#533483", "#f39c12", "#27ae60", "#16a085"]


def _apply_theme() -> None:
    plt.style.use('dark_background')
    plt.rcParams['figure.facecolor'] = '#1a1a2e'
    plt.rcParams['axes.facecolor'] = '#16213e'
    plt.rcParams['axes.edgecolor'] = '#444'
    plt.rcParams['grid.color'] = '#333'
    plt.rcParams['font.size'] = 10


def chart_filename(suite: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9._-]+", "_", suite)
    return f"{safe}-trend.png"


def render_suite_chart(entries: List[Dict[str, Any]], suite: str, output_dir) -> Path:
    """Plot every bench of `suite` across its entries. Returns the PNG path."""
    if not entries:
        raise ValueError(f"Suite {suite!r} has no entries to chart")

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    _apply_theme()

    labels = [commit_id(e)[:7] for e in entries]
    x = np.arange(len(entries))

    series = {}
    units = {}
    for idx, entry in enumerate(entries):
        for bench in entry.get("benches", []):
            values = series.setdefault(bench["name"], np.full(len(entries), np.nan))
            values[idx] = bench["value"]
            units.setdefault(bench["name"], bench.get("unit", ""))

    fig, ax = plt.subplots(figsize=(12, 6))
    for i, (name, values) in enumerate(sorted(series.items())):
        label = name[len(suite) + 1:] if name.startswith(suite + "-") else name
        ax.plot(x, values, marker='o', linewidth=2, markersize=6,
                color=PALETTE[i % len(PALETTE)], label=f"{label} ({units[name]})")

    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha='right', fontsize=8)
    ax.set_xlabel('Commit', fontsize=12)
    ax.set_ylabel('Value', fontsize=12)
    ax.set_title(f'{suite} - history ({len(entries)} runs)', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)
    ax.legend(loc='upper left', facecolor='#1a1a2e', edgecolor='#444')
    plt.tight_layout()

    target = output_path / chart_filename(suite)
    plt.savefig(str(target), dpi=150, facecolor='#1a1a2e')
    plt.close(fig)
    return target


def render_store_charts(store, output_dir, suites=None) -> List[Path]:
    """Render one chart per suite (all suites unless `suites` is given)."""
    doc = store.load()
    names = suites or doc.suites()
    return [render_suite_chart(doc.query(name), name, output_dir) for name in names]
