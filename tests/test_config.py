"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from src.core import load_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("STREAM_ON_INVALID_PATCH", "STREAM_DEBUG", "UPSTREAM_URL"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = load_config(str(tmp_path / "missing.json"))
    assert config["port"] == 7860
    assert config["on_invalid_patch"] == "skip"
    assert config["upstream"]["url"] == ""


def test_file_values_merge_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"port": 9000, "upstream": {"url": "http://up.test"}}))
    config = load_config(str(path))
    assert config["port"] == 9000
    assert config["upstream"]["url"] == "http://up.test"
    assert config["upstream"]["timeout"] == 120.0


def test_invalid_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(str(path))["on_invalid_patch"] == "skip"


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STREAM_ON_INVALID_PATCH", "HALT")
    monkeypatch.setenv("STREAM_DEBUG", "true")
    monkeypatch.setenv("UPSTREAM_URL", "http://env.test")
    config = load_config(str(tmp_path / "missing.json"))
    assert config["on_invalid_patch"] == "halt"
    assert config["debug"] is True
    assert config["upstream"]["url"] == "http://env.test"


def test_unknown_policy_falls_back_to_skip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"on_invalid_patch": "explode"}))
    assert load_config(str(path))["on_invalid_patch"] == "skip"
