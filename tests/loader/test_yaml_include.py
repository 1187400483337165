"""Tests for YAML include: directive and --include CLI argument."""

import sys

import pytest

from vendorpatch.core.config import State
from vendorpatch.core.yaml_settings import YamlWithIncludesSettingsSource, _cli_includes


@pytest.fixture
def mock_argv(monkeypatch):
    """Start every test with an argv free of --include options."""
    monkeypatch.setattr(sys, "argv", ["prog"])


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def load(yaml_file=None):
    return YamlWithIncludesSettingsSource(State, yaml_file=yaml_file)()


def test_defaults_always_load(mock_argv):
    data = load()

    assert data["config"]["probe"]["timeout"] == 8.0
    assert "winuptp.exe" in data["config"]["bios"]["tools"]


def test_explicit_file_overrides_defaults(mock_argv, tmp_path):
    config_file = write(tmp_path / "site.yaml", "config:\n  run_name: lab\n")

    data = load(str(config_file))

    assert data["config"]["run_name"] == "lab"
    # Sibling keys from defaults survive the merge
    assert data["config"]["probe"]["timeout"] == 8.0


def test_include_directive(mock_argv, tmp_path):
    write(tmp_path / "proxy.yaml", (
        "config:\n"
        "  probe:\n"
        "    proxy:\n"
        "      url: http://proxy:8080\n"
    ))
    config_file = write(tmp_path / "site.yaml", (
        "include: proxy.yaml\n"
        "config:\n"
        "  run_name: lab\n"
    ))

    data = load(str(config_file))

    assert "include" not in data
    assert data["config"]["probe"]["proxy"]["url"] == "http://proxy:8080"
    assert data["config"]["probe"]["timeout"] == 8.0


def test_including_file_wins(mock_argv, tmp_path):
    write(tmp_path / "base.yaml", "config:\n  run_name: base\n  log-level: debug\n")
    config_file = write(tmp_path / "site.yaml", (
        "include: [base.yaml]\n"
        "config:\n"
        "  run_name: site\n"
    ))

    data = load(str(config_file))

    assert data["config"]["run_name"] == "site"
    assert data["config"]["log-level"] == "debug"


def test_nested_relative_includes(mock_argv, tmp_path):
    write(tmp_path / "shared" / "bios.yaml", "config:\n  bios:\n    tools: [afuwin.exe]\n")
    write(tmp_path / "shared" / "common.yaml", "include: bios.yaml\n")
    config_file = write(tmp_path / "site" / "site.yaml", "include: ../shared/common.yaml\n")

    data = load(str(config_file))

    assert data["config"]["bios"]["tools"] == ["afuwin.exe"]


def test_circular_include(mock_argv, tmp_path):
    write(tmp_path / "a.yaml", "include: b.yaml\n")
    write(tmp_path / "b.yaml", "include: a.yaml\n")

    with pytest.raises(ValueError, match="Circular include"):
        load(str(tmp_path / "a.yaml"))


def test_missing_include(mock_argv, tmp_path):
    config_file = write(tmp_path / "site.yaml", "include: nowhere.yaml\n")

    with pytest.raises(FileNotFoundError):
        load(str(config_file))


def test_missing_explicit_file(mock_argv, tmp_path):
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        load(str(tmp_path / "absent.yaml"))


def test_cli_include_loads_last(tmp_path, monkeypatch):
    base = write(tmp_path / "site.yaml", "config:\n  run_name: site\n")
    override = write(tmp_path / "override.yaml", "config:\n  run_name: override\n")
    monkeypatch.setattr(sys, "argv", ["prog", "--include", str(override)])

    data = load(str(base))

    assert data["config"]["run_name"] == "override"


def test_cli_includes_parsing():
    argv = ["prog", "install", "--include", "a.yaml", "--include=b.yaml", "--other", "x"]
    assert _cli_includes(argv) == ["a.yaml", "b.yaml"]


def test_trailing_include_flag_ignored():
    assert _cli_includes(["prog", "--include"]) == []
