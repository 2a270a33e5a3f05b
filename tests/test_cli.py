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

"""Tests for the benchtrack command line"""

import json

import pytest

from benchtrack.cli import EXIT_STORE, _build_parser, main
from benchtrack.config import ENV_VARS

SUITE = "SociFullECR-public-busybox"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's config and BENCHTRACK_* variables out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)


def write_json(path, data):
    path.write_text(json.dumps(data))
    return str(path)


def check(tmp_path, results, *extra):
    store = str(tmp_path / "data.json")
    return main(["check", results, "--store", store, *extra])


class TestParser:
    def test_check_arguments(self):
        args = _build_parser().parse_args(
            ["check", "r.json", "--store", "s.json", "-p", "95", "-k", "2", "-t", "10"]
        )
        assert args.command == "check"
        assert args.percentile == 95.0
        assert args.skip == 2
        assert args.threshold == 10.0

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 2
        assert "usage" in capsys.readouterr().out


class TestCheckCommand:
    """Test exit codes of the regression check"""

    def test_first_run_then_regression(self, tmp_path, entry_factory, capsys):
        first = write_json(tmp_path / "first.json", entry_factory(commit="a" * 40, date=1692000001000, values={"pullTaskDuration": 0.706}))
        second = write_json(tmp_path / "second.json", entry_factory(commit="b" * 40, date=1692000002000, values={"pullTaskDuration": 24.7355}))

        assert check(tmp_path, first, "--suite", SUITE) == 0
        out = capsys.readouterr().out
        assert "NO BASELINE" in out

        assert check(tmp_path, second, "--suite", SUITE, "--threshold", "20") == 1
        out = capsys.readouterr().out
        assert "REGRESSION" in out
        assert "FAILED" in out

    def test_no_regression(self, tmp_path, entry_factory):
        first = write_json(tmp_path / "first.json", entry_factory(commit="a" * 40, date=1692000001000))
        second = write_json(tmp_path / "second.json", entry_factory(commit="b" * 40, date=1692000002000))
        assert check(tmp_path, first, "--suite", SUITE) == 0
        assert check(tmp_path, second, "--suite", SUITE) == 0

    def test_framework_results(self, tmp_path, framework_results):
        path = write_json(tmp_path / "results.json", framework_results)
        # rabbitmq has an empty localTaskStats block
        assert check(tmp_path, path, "--date", "1692038787627") == 2

        data = json.loads((tmp_path / "data.json").read_text())
        assert sorted(data["entries"]) == ["SociFullECR-public-busybox", "SociFullECR-public-rabbitmq"]

    def test_commit_file(self, tmp_path, framework_results):
        framework_results["benchmarkTests"] = framework_results["benchmarkTests"][:1]
        path = write_json(tmp_path / "results.json", framework_results)
        commit = write_json(tmp_path / "commit.json", {"author": {"name": "Dev One"}, "message": "Tune pulls"})

        assert check(tmp_path, path, "--commit-file", commit, "--commit-id", "c" * 40) == 0
        stored = json.loads((tmp_path / "data.json").read_text())["entries"][SUITE][0]
        assert stored["commit"]["id"] == "c" * 40
        assert stored["commit"]["message"] == "Tune pulls"

    def test_invalid_results_file(self, tmp_path):
        path = tmp_path / "results.json"
        path.write_text("not json")
        assert check(tmp_path, str(path)) == 2

    def test_validation_failure(self, tmp_path, entry_factory):
        path = write_json(tmp_path / "r.json", entry_factory(tool="customBiggerIsBetter"))
        assert check(tmp_path, path, "--suite", SUITE) == 2
        assert not (tmp_path / "data.json").exists()

    def test_corrupt_store(self, tmp_path, busybox_entry):
        (tmp_path / "data.json").write_text("{broken")
        path = write_json(tmp_path / "r.json", busybox_entry)
        assert check(tmp_path, path, "--suite", SUITE) == EXIT_STORE
        assert (tmp_path / "data.json").read_text() == "{broken"

    def test_malformed_stored_entry(self, tmp_path, busybox_entry):
        stored = dict(busybox_entry, date="yesterday")
        write_json(tmp_path / "data.json", {"entries": {SUITE: [stored]}})
        path = write_json(tmp_path / "r.json", busybox_entry)

        assert check(tmp_path, path, "--suite", SUITE) == EXIT_STORE

    def test_json_output_is_strict_with_zero_baseline(self, tmp_path, entry_factory, capsys):
        first = write_json(tmp_path / "first.json", entry_factory(commit="a" * 40, date=1692000001000, values={"pullTaskDuration": 0.0}))
        second = write_json(tmp_path / "second.json", entry_factory(commit="b" * 40, date=1692000002000, values={"pullTaskDuration": 1.0}))
        report = tmp_path / "report.json"
        assert check(tmp_path, first, "--suite", SUITE) == 0
        capsys.readouterr()

        assert check(tmp_path, second, "--suite", SUITE, "--json", "--report", str(report)) == 1

        def reject(token):
            raise ValueError(f"non-standard JSON token {token}")

        printed = json.loads(capsys.readouterr().out, parse_constant=reject)
        assert printed[0]["report"]["benches"][0]["percentDelta"] == "+inf"
        assert json.loads(report.read_text(), parse_constant=reject) == printed

    def test_json_output_and_report(self, tmp_path, busybox_entry, capsys):
        path = write_json(tmp_path / "r.json", busybox_entry)
        report = tmp_path / "report.json"
        assert check(tmp_path, path, "--suite", SUITE, "--json", "--report", str(report)) == 0

        printed = json.loads(capsys.readouterr().out)
        assert printed[0]["status"] == "stored"
        assert printed[0]["report"]["hasBaseline"] is False
        assert json.loads(report.read_text()) == printed

    def test_dry_run(self, tmp_path, busybox_entry):
        path = write_json(tmp_path / "r.json", busybox_entry)
        assert check(tmp_path, path, "--suite", SUITE, "--dry-run") == 0
        assert not (tmp_path / "data.json").exists()

    def test_store_from_env(self, tmp_path, monkeypatch, busybox_entry):
        store = tmp_path / "env-store.js"
        monkeypatch.setenv("BENCHTRACK_STORE", str(store))
        path = write_json(tmp_path / "r.json", busybox_entry)
        assert main(["check", path, "--suite", SUITE]) == 0
        assert store.read_text().startswith("window.BENCHMARK_DATA = ")

    def test_bad_setting(self, tmp_path, busybox_entry):
        path = write_json(tmp_path / "r.json", busybox_entry)
        assert check(tmp_path, path, "--suite", SUITE, "--baseline", "best") == 2


class TestOtherCommands:
    def test_aggregate(self, tmp_path, capsys):
        path = write_json(tmp_path / "samples.json", [0.059, 0.0115, 0.010, 0.0095, 0.008])
        assert main(["aggregate", path, "--name", "lazy", "--stats"]) == 0
        benches = json.loads(capsys.readouterr().out)
        assert benches[0]["value"] == pytest.approx(0.01105)
        assert benches[0]["extra"] == "P90"
        assert benches[0]["stats"]["max"] == pytest.approx(0.0115)

    def test_aggregate_requires_name(self, tmp_path):
        path = write_json(tmp_path / "samples.json", [1.0, 2.0])
        assert main(["aggregate", path]) == 2

    def test_aggregate_insufficient(self, tmp_path, capsys):
        path = write_json(tmp_path / "samples.json", {"pull": [1.0, 2.0, 3.0], "lazy": [0.1]})
        assert main(["aggregate", path, "--skip", "1"]) == 2
        benches = json.loads(capsys.readouterr().out)
        assert [b["name"] for b in benches] == ["pull"]

    def test_query(self, tmp_path, busybox_entry, capsys):
        path = write_json(tmp_path / "r.json", busybox_entry)
        check(tmp_path, path, "--suite", SUITE)
        capsys.readouterr()

        assert main(["query", "--store", str(tmp_path / "data.json")]) == 0
        assert capsys.readouterr().out.strip() == SUITE

        assert main(["query", "--store", str(tmp_path / "data.json"), "--suite", SUITE]) == 0
        assert json.loads(capsys.readouterr().out) == [busybox_entry]
