"""Tests for specgate.config -- project file, environment, and precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specgate.config import load_env_config, load_project_config, resolve_config
from specgate.exceptions import ConfigError
from specgate.models import ValidatorConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a value as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_load_valid_project_config(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgate.json", {"reject_missing": True})
        assert load_project_config() == {"reject_missing": True}

    def test_explicit_path_from_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        custom = isolated_config / "conf" / "gate.json"
        _write_json(custom, {"state_key": "openapi"})
        monkeypatch.setenv("SPECGATE_CONFIG", str(custom))
        assert load_project_config() == {"state_key": "openapi"}

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (isolated_config / "specgate.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_non_object_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgate.json", ["reject_missing"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestEnvConfig:
    def test_empty_when_unset(self, isolated_config: Path) -> None:
        assert load_env_config() == {}

    @pytest.mark.parametrize(
        "raw, expected",
        [("1", True), ("true", True), ("YES", True), ("on", True), ("0", False), ("off", False)],
    )
    def test_boolean_spellings(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
    ) -> None:
        monkeypatch.setenv("SPECGATE_REJECT_MISSING", raw)
        assert load_env_config() == {"reject_missing": expected}

    def test_string_field_passed_through(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECGATE_STATE_KEY", "contract")
        assert load_env_config() == {"state_key": "contract"}

    def test_empty_value_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECGATE_REJECT_INVALID", "")
        assert load_env_config() == {}

    def test_bad_boolean_raises(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECGATE_REJECT_INVALID", "sometimes")
        with pytest.raises(ConfigError, match="SPECGATE_REJECT_INVALID"):
            load_env_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config == ValidatorConfig()
        assert config.reject_invalid is True
        assert config.reject_missing is False
        assert config.ignore_unknown_formats is True
        assert config.ignore_unresolvable_refs is True
        assert config.state_key == "spec"

    def test_project_overrides_defaults(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgate.json", {"reject_missing": True})
        assert resolve_config().reject_missing is True

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "specgate.json", {"reject_missing": True})
        monkeypatch.setenv("SPECGATE_REJECT_MISSING", "false")
        assert resolve_config().reject_missing is False

    def test_overrides_win(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECGATE_REJECT_INVALID", "true")
        assert resolve_config(reject_invalid=False).reject_invalid is False

    def test_none_overrides_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECGATE_REJECT_MISSING", "true")
        assert resolve_config(reject_missing=None).reject_missing is True

    def test_unknown_key_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgate.json", {"reject_everything": True})
        with pytest.raises(ConfigError, match="Invalid specgate configuration"):
            resolve_config()

    def test_unknown_override_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError):
            resolve_config(strict=True)
