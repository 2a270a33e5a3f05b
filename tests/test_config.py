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

"""Tests for settings resolution"""

import json

import pytest

from benchtrack.config import DEFAULTS, _get_benchtrack_dir, default_config_paths, resolve_settings
from benchtrack.errors import ConfigError


def write_config(path, data):
    path.write_text(json.dumps(data))
    return path


class TestResolution:
    """Test the priority tiers"""

    def test_defaults(self):
        settings = resolve_settings(env={}, config_paths=[])
        assert settings.values == DEFAULTS
        assert settings.percentile == 90
        assert settings.skip == 1
        assert settings.threshold == 20.0
        assert settings.tool == "customSmallerIsBetter"
        assert settings.baseline == "previous"

    def test_env_overrides_defaults(self):
        env = {"BENCHTRACK_PERCENTILE": "95", "BENCHTRACK_SKIP": "2", "BENCHTRACK_STORE": "/tmp/x.js"}
        settings = resolve_settings(env=env, config_paths=[])
        assert settings.percentile == 95.0
        assert settings.skip == 2
        assert settings.store == "/tmp/x.js"

    def test_arguments_override_env(self):
        env = {"BENCHTRACK_THRESHOLD": "30"}
        settings = resolve_settings({"threshold": 5, "skip": None}, env=env, config_paths=[])
        assert settings.threshold == 5.0
        assert settings.skip == 1

    def test_config_file_order(self, tmp_path):
        home = write_config(tmp_path / "home.json", {"threshold": 15, "skip": 3})
        local = write_config(tmp_path / "local.json", {"threshold": 40, "baseline": "first"})

        settings = resolve_settings(env={}, config_paths=[home, local])
        assert settings.threshold == 15.0
        assert settings.skip == 3
        assert settings.baseline == "first"

    def test_env_beats_config_file(self, tmp_path):
        home = write_config(tmp_path / "home.json", {"tool": "customBiggerIsBetter"})
        settings = resolve_settings(env={"BENCHTRACK_TOOL": "customSmallerIsBetter"}, config_paths=[home])
        assert settings.tool == "customSmallerIsBetter"

    def test_missing_config_files_are_skipped(self, tmp_path):
        settings = resolve_settings(env={}, config_paths=[tmp_path / "missing.json"])
        assert settings.values == DEFAULTS

    def test_default_paths(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        paths = default_config_paths()
        assert paths[0] == tmp_path / ".benchtrack" / "config.json"
        assert _get_benchtrack_dir().name == ".benchtrack"
        assert paths[1].name == "benchtrack.json"


class TestPerSuite:
    """Test per-suite overrides"""

    def test_suite_overrides(self, tmp_path):
        home = write_config(tmp_path / "home.json", {"suites": {"gpu": {"threshold": 50, "tool": "customSmallerIsBetter"}}})
        local = write_config(tmp_path / "local.json", {"suites": {"gpu": {"threshold": 35}, "fps": {"tool": "customBiggerIsBetter"}}})

        settings = resolve_settings(env={}, config_paths=[home, local])
        assert settings.threshold_for("gpu") == 50.0
        assert settings.tool_for("fps") == "customBiggerIsBetter"
        assert settings.tool_for("busybox") == "customSmallerIsBetter"
        assert settings.threshold_for("busybox") == 20.0

    def test_bad_suite_override(self, tmp_path):
        local = write_config(tmp_path / "local.json", {"suites": {"gpu": {"tool": "nope"}}})
        settings = resolve_settings(env={}, config_paths=[local])
        with pytest.raises(ConfigError):
            settings.tool_for("gpu")


class TestInvalidValues:
    @pytest.mark.parametrize("env", [
        {"BENCHTRACK_PERCENTILE": "101"},
        {"BENCHTRACK_PERCENTILE": "p90"},
        {"BENCHTRACK_SKIP": "-1"},
        {"BENCHTRACK_SKIP": "1.5"},
        {"BENCHTRACK_THRESHOLD": "-5"},
        {"BENCHTRACK_TOOL": "pytest"},
        {"BENCHTRACK_BASELINE": "best"},
    ])
    def test_rejects_bad_env(self, env):
        with pytest.raises(ConfigError):
            resolve_settings(env=env, config_paths=[])

    def test_broken_config_file(self, tmp_path):
        path = tmp_path / "benchtrack.json"
        path.write_text("{oops")
        with pytest.raises(ConfigError):
            resolve_settings(env={}, config_paths=[path])

    def test_config_must_be_object(self, tmp_path):
        path = write_config(tmp_path / "benchtrack.json", [1, 2])
        with pytest.raises(ConfigError):
            resolve_settings(env={}, config_paths=[path])

    def test_unknown_attribute(self):
        settings = resolve_settings(env={}, config_paths=[])
        with pytest.raises(AttributeError):
            settings.nonexistent
