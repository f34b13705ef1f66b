"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
- resolve_snapshot_paths() function
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from callcheck.config.loader import (
    _deep_merge,
    _load_yaml,
    load_config,
    resolve_snapshot_paths,
)
from callcheck.config.models import CallCheckConfig, SnapshotConfig
from callcheck.core.errors import ConfigError


@pytest.fixture(autouse=True)
def _no_global_config(tmp_path: Path):
    """Point the global config at a file that does not exist."""
    with patch("callcheck.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
        yield


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "callcheck.yaml"
        yaml_file.write_text("checks:\n  max_chain_hops: 40\n")
        assert _load_yaml(yaml_file) == {"checks": {"max_chain_hops": 40}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("checks:\n  max_chain_hops:\n    - invalid: [unclosed")
        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_dicts_merge(self) -> None:
        base = {"checks": {"max_chain_hops": 20, "type_mismatch_is_error": False}}
        override = {"checks": {"max_chain_hops": 40}}
        assert _deep_merge(base, override) == {
            "checks": {"max_chain_hops": 40, "type_mismatch_is_error": False}
        }

    def test_base_is_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults_without_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert isinstance(config, CallCheckConfig)
        assert config.checks.max_chain_hops == 20
        assert config.snapshot.calls_path == "output/calls.json"

    def test_project_yaml_applies(self, tmp_path: Path) -> None:
        (tmp_path / "callcheck.yaml").write_text(
            "checks:\n  max_chain_hops: 40\nsnapshot:\n  calls_path: build/calls.json\n"
        )
        config = load_config(tmp_path)
        assert config.checks.max_chain_hops == 40
        assert config.snapshot.calls_path == "build/calls.json"

    def test_project_overrides_global(self, tmp_path: Path) -> None:
        global_file = tmp_path / "global.yaml"
        global_file.write_text("checks:\n  max_chain_hops: 30\n  type_mismatch_is_error: true\n")
        (tmp_path / "callcheck.yaml").write_text("checks:\n  max_chain_hops: 40\n")

        with patch("callcheck.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)

        assert config.checks.max_chain_hops == 40
        assert config.checks.type_mismatch_is_error is True

    def test_given_env_var_when_loading_then_env_beats_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Environment variables take precedence over YAML files."""
        # Given
        (tmp_path / "callcheck.yaml").write_text("logging:\n  level: INFO\n")
        monkeypatch.setenv("CALLCHECK__LOGGING__LEVEL", "DEBUG")

        # When
        config = load_config(tmp_path)

        # Then
        assert config.logging.level == "DEBUG"

    def test_kwargs_beat_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CALLCHECK__CHECKS__MAX_CHAIN_HOPS", "50")
        config = load_config(tmp_path, checks={"max_chain_hops": 7})
        assert config.checks.max_chain_hops == 7

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / "callcheck.yaml").write_text("checks:\n  max_chain_hops: 0\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert "max_chain_hops" in exc_info.value.details["field"]


class TestResolveSnapshotPaths:
    """Tests for resolve_snapshot_paths."""

    def test_relative_paths_resolve_against_project_dir(self, tmp_path: Path) -> None:
        config = CallCheckConfig(
            snapshot=SnapshotConfig(calls_path="out/calls.json", scip_path="out/index.json")
        )
        calls, scip = resolve_snapshot_paths(config, tmp_path)
        assert calls == tmp_path / "out" / "calls.json"
        assert scip == tmp_path / "out" / "index.json"

    def test_absolute_path_kept(self, tmp_path: Path) -> None:
        absolute = tmp_path / "elsewhere" / "calls.json"
        config = CallCheckConfig(snapshot=SnapshotConfig(calls_path=str(absolute)))
        calls, scip = resolve_snapshot_paths(config, Path("/unused"))
        assert calls == absolute
        assert scip is None
