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
benchtrack - CI benchmark history and regression gate

Usage:
  benchtrack check results.json [--store data.json] [--suite NAME] [options]
  benchtrack aggregate samples.json --name NAME [--percentile 90] [--skip 1]
  benchtrack query [--store data.json] [--suite NAME]
  benchtrack chart [--store data.json] --output DIR [--suite NAME]

Exit codes (check):
  0  no regression
  1  regression detected
  2  invalid input / validation failure
  3  store corrupted or locked by another writer
"""

import argparse
import json
import sys

from .aggregator import aggregate_run, summarize_samples
from .compare import bench_status, format_bench
from .config import resolve_settings
from .errors import (
    BenchtrackError,
    ConcurrentWriteConflict,
    ConfigError,
    ResultsFormatError,
    StoreCorruption,
)
from .pipeline import EXIT_INVALID, exit_code_for, ingest_batch, outcome_to_json
from .results import load_candidates, load_commit_metadata, read_json
from .store import HistoryStore

EXIT_STORE = 3

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RESET = "\033[0m"

STATUS_COLORS = {"REGRESSION": RED, "OK": GREEN, "NO BASELINE": YELLOW}


def _error(message: str) -> None:
    print(f"{RED}Error: {message}{RESET}", file=sys.stderr)


def _warn(message: str) -> None:
    print(f"{YELLOW}Warning: {message}{RESET}", file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="benchtrack",
        description="benchtrack - CI benchmark history and regression gate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  benchtrack check output/results.json --store gh-pages/dev/bench/data.js
  benchtrack check run.json --suite busybox --threshold 25 --commit-file commit.json
  benchtrack aggregate samples.json --name pullTaskDuration --stats
  benchtrack chart --store data.json --output charts/
""",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_store_option(p):
        p.add_argument("--store", metavar="PATH",
                       help="History store file (.json or data.js)")

    def add_aggregation_options(p):
        p.add_argument("-p", "--percentile", type=float, metavar="P",
                       help="Percentile reported per bench (default: 90)")
        p.add_argument("-k", "--skip", type=int, metavar="N",
                       help="Leading cold-start samples to discard (default: 1)")

    # Check subcommand
    check_parser = subparsers.add_parser("check", help="Ingest a CI result and check for regressions")
    check_parser.add_argument("results", metavar="RESULTS",
                              help="Results file (entry record or benchmark framework output)")
    add_store_option(check_parser)
    add_aggregation_options(check_parser)
    check_parser.add_argument("-s", "--suite", metavar="NAME",
                              help="Suite name for entry records")
    check_parser.add_argument("-t", "--threshold", type=float, metavar="PCT",
                              help="Regression threshold in percent (default: 20)")
    check_parser.add_argument("--tool", metavar="TOOL",
                              help="Suite tool (customSmallerIsBetter, customBiggerIsBetter)")
    check_parser.add_argument("--baseline", metavar="POLICY",
                              help="Baseline policy: previous, previous-with-bench, first")
    check_parser.add_argument("--commit-file", metavar="FILE",
                              help="JSON commit metadata merged into each entry")
    check_parser.add_argument("--commit-id", metavar="SHA",
                              help="Commit id to record (overrides the results file)")
    check_parser.add_argument("--date", type=int, metavar="EPOCH_MS",
                              help="Completion time to record (default: now)")
    check_parser.add_argument("--lock-timeout", type=float, metavar="SECONDS",
                              help="How long to wait for the store lock (default: 30)")
    check_parser.add_argument("-n", "--dry-run", action="store_true",
                              help="Validate and compare without writing the store")
    check_parser.add_argument("--json", action="store_true",
                              help="Print outcomes as JSON")
    check_parser.add_argument("--report", metavar="FILE",
                              help="Also write outcomes as JSON to FILE")

    # Aggregate subcommand
    aggregate_parser = subparsers.add_parser("aggregate", help="Reduce raw samples to bench values")
    aggregate_parser.add_argument("samples", metavar="SAMPLES",
                                  help="JSON list of samples, or object of name -> samples")
    aggregate_parser.add_argument("--name", metavar="NAME",
                                  help="Bench name when SAMPLES is a plain list")
    aggregate_parser.add_argument("--unit", default="Seconds", metavar="UNIT",
                                  help="Unit recorded on the bench (default: Seconds)")
    aggregate_parser.add_argument("--stats", action="store_true",
                                  help="Include descriptive statistics")
    add_aggregation_options(aggregate_parser)

    # Query subcommand
    query_parser = subparsers.add_parser("query", help="Print stored history")
    add_store_option(query_parser)
    query_parser.add_argument("-s", "--suite", metavar="NAME",
                              help="Suite to print (default: list suites)")

    # Chart subcommand
    chart_parser = subparsers.add_parser("chart", help="Render suite history charts")
    add_store_option(chart_parser)
    chart_parser.add_argument("-o", "--output", required=True, metavar="DIR",
                              help="Directory for PNG files")
    chart_parser.add_argument("-s", "--suite", action="append", metavar="NAME",
                              help="Suite to chart (can be used multiple times)")

    return parser


def _settings_from_args(args):
    overrides = {
        "store": getattr(args, "store", None),
        "percentile": getattr(args, "percentile", None),
        "skip": getattr(args, "skip", None),
        "threshold": getattr(args, "threshold", None),
        "tool": getattr(args, "tool", None),
        "baseline": getattr(args, "baseline", None),
        "lock_timeout": getattr(args, "lock_timeout", None),
    }
    return resolve_settings(overrides)


def _print_outcome(outcome) -> None:
    commit = str(outcome["commit"])[:12] if outcome["commit"] else "<no commit>"
    print(f"{BLUE}== {outcome['suite']} @ {commit}{RESET}")
    for warning in outcome["warnings"]:
        _warn(warning)
    for error in outcome["errors"]:
        _error(str(error))

    if outcome["status"] == "rejected":
        print(f"{RED}REJECTED: entry not stored{RESET}")
        return
    if outcome["replaced"]:
        print("Replaced existing entry for this commit")

    report = outcome["report"]
    for row in report["benches"]:
        color = STATUS_COLORS.get(bench_status(row), "")
        print(f"{color}{format_bench(row)}{RESET}")
    if report["regressed"]:
        print(f"{RED}FAILED: regression beyond {report['threshold']:g}% threshold{RESET}")
    elif not report["hasBaseline"]:
        print(f"{YELLOW}NO BASELINE: nothing to compare against yet{RESET}")
    else:
        print(f"{GREEN}PASSED: all benches within {report['threshold']:g}% threshold{RESET}")


def _handle_check_command(args) -> int:
    """Handle the regression check: load, validate, store, compare."""
    settings = _settings_from_args(args)

    commit = load_commit_metadata(args.commit_file) if args.commit_file else None
    if args.commit_id:
        commit = dict(commit or {}, id=args.commit_id)

    candidates = load_candidates(args.results, settings, suite=args.suite, commit=commit, date=args.date)
    if not candidates:
        _error(f"No benchmark results in {args.results}")
        return EXIT_INVALID

    store = HistoryStore(settings.store, lock_timeout=settings.lock_timeout)
    outcomes = ingest_batch(store, candidates, settings, dry_run=args.dry_run)

    payload = [outcome_to_json(o) for o in outcomes]
    if args.report:
        with open(args.report, "w") as f:
            json.dump(payload, f, indent=2, allow_nan=False)
    if args.json:
        print(json.dumps(payload, indent=2, allow_nan=False))
    else:
        for outcome in outcomes:
            _print_outcome(outcome)
        if args.dry_run:
            print("(dry run: store not modified)")

    return exit_code_for(outcomes)


def _handle_aggregate_command(args) -> int:
    """Handle sample aggregation without touching the store."""
    settings = _settings_from_args(args)
    data = read_json(args.samples)

    if isinstance(data, list):
        if not args.name:
            _error("--name is required when SAMPLES is a plain list")
            return EXIT_INVALID
        raw = [{"name": args.name, "samples": data, "unit": args.unit}]
    elif isinstance(data, dict):
        raw = [{"name": name, "samples": samples, "unit": args.unit} for name, samples in data.items()]
    else:
        _error("SAMPLES must be a JSON list or object")
        return EXIT_INVALID

    benches, errors = aggregate_run(raw, settings.percentile, settings.skip)
    if args.stats:
        samples_by_name = {r["name"]: r["samples"] for r in raw}
        for bench in benches:
            bench["stats"] = summarize_samples(samples_by_name[bench["name"]], skip=settings.skip, name=bench["name"])
    for error in errors:
        _error(str(error))
    print(json.dumps(benches, indent=2))
    return EXIT_INVALID if errors else 0


def _handle_query_command(args) -> int:
    """Handle history queries."""
    settings = _settings_from_args(args)
    store = HistoryStore(settings.store)
    if args.suite:
        print(json.dumps(store.query(args.suite), indent=2))
    else:
        for suite in store.suites():
            print(suite)
    return 0


def _handle_chart_command(args) -> int:
    """Handle chart rendering."""
    from .charts import render_store_charts

    settings = _settings_from_args(args)
    store = HistoryStore(settings.store)
    try:
        paths = render_store_charts(store, args.output, suites=args.suite)
    except ValueError as e:
        _error(str(e))
        return EXIT_INVALID
    for path in paths:
        print(f"✓ {path}")
    return 0


HANDLERS = {
    "check": _handle_check_command,
    "aggregate": _handle_aggregate_command,
    "query": _handle_query_command,
    "chart": _handle_chart_command,
}


def main(argv=None) -> int:
    """Run the CLI and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_INVALID

    try:
        return handler(args)
    except (ConfigError, ResultsFormatError) as e:
        _error(str(e))
        return EXIT_INVALID
    except (StoreCorruption, ConcurrentWriteConflict) as e:
        _error(str(e))
        return EXIT_STORE
    except BenchtrackError as e:
        _error(str(e))
        return EXIT_INVALID
    except OSError as e:
        _error(str(e))
        return EXIT_INVALID


def cli_main():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
