"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CALLCHECK__SECTION__KEY)
3. Project config (callcheck.yaml in the working directory)
4. Global config (~/.config/callcheck/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from callcheck.config.models import (
    CallCheckConfig,
    ChecksConfig,
    LoggingConfig,
    SnapshotConfig,
)
from callcheck.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/callcheck/config.yaml").expanduser()
PROJECT_CONFIG_NAME = "callcheck.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class bound to one YAML source."""

    class CallCheckSettings(BaseSettings):
        """Root config. Env vars: CALLCHECK__LOGGING__LEVEL, CALLCHECK__CHECKS__MAX_CHAIN_HOPS."""

        model_config = SettingsConfigDict(
            env_prefix="CALLCHECK__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        snapshot: SnapshotConfig = SnapshotConfig()
        checks: ChecksConfig = ChecksConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CallCheckSettings


def load_config(project_dir: Path | None = None, **kwargs: Any) -> CallCheckConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_dir: Directory holding callcheck.yaml.
                     Defaults to current working directory.
        **kwargs: Override values (highest precedence), by section.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    project_dir = project_dir or Path.cwd()

    yaml_config = _load_yaml(GLOBAL_CONFIG_PATH)
    project_config = _load_yaml(project_dir / PROJECT_CONFIG_NAME)
    if project_config:
        yaml_config = _deep_merge(yaml_config, project_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return CallCheckConfig.model_validate(settings.model_dump())


def resolve_snapshot_paths(
    config: CallCheckConfig, project_dir: Path | None = None
) -> tuple[Path, Path | None]:
    """Get absolute calls.json and optional index.scip.json paths."""
    base = project_dir or Path.cwd()
    calls_path = Path(config.snapshot.calls_path).expanduser()
    if not calls_path.is_absolute():
        calls_path = base / calls_path
    scip_path: Path | None = None
    if config.snapshot.scip_path:
        scip_path = Path(config.snapshot.scip_path).expanduser()
        if not scip_path.is_absolute():
            scip_path = base / scip_path
    return calls_path, scip_path
