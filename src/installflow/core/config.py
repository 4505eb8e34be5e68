"""Configuration resolver with layered priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (INSTALLFLOW_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from installflow.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


class ConfigResolver:
    """Resolve configuration with strict priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'transition': {'duration_ms': 200}},
            user_config_path=Path('~/.config/installflow/config.yaml'),
        )

        value, source = resolver.resolve('transition.duration_ms')
        # value = 200, source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/installflow/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/installflow/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_optional(self, key: str, default: Any = None) -> Any:
        try:
            value, _src = self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return default
            raise
        return value

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a bool; environment strings are normalized."""
        value = self.resolve_optional(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            norm = value.strip().lower()
            if norm in _TRUE_VALUES:
                return True
            if norm in _FALSE_VALUES:
                return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_number(self, key: str, default: float = 0.0) -> float:
        value = self.resolve_optional(key, default)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be a number, got {value!r}")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise ConfigError(f"Config key '{key}' must be a number, got {value!r}")

    def resolve_str(self, key: str, default: str | None = None) -> str | None:
        value = self.resolve_optional(key, default)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        return value

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level (quiet|normal|verbose|debug)."""
        key = "logging.level"
        value = self.resolve_optional(key, DEFAULT_LOGGING_LEVEL)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def _from_env(self, key: str) -> Any | None:
        """Environment variable format: INSTALLFLOW_TRANSITION_DURATION_MS."""
        env_key = f"INSTALLFLOW_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        return {
            "logging": {"level": DEFAULT_LOGGING_LEVEL, "color": True},
            "transition": {"duration_ms": 420},
            "features": {
                "migration": True,
                "presets": True,
                "epic_login": True,
            },
            "migration": {"extension": "snrdata"},
            "progress": {"pipeline_watermark": 99},
            "pipeline": {"definition": None},
            "ui": {"locale": None},
        }


@dataclass(frozen=True)
class WizardConfig:
    """Resolved settings consumed by the install wizard."""

    transition_ms: float = 420.0
    migration_enabled: bool = True
    presets_enabled: bool = True
    epic_login_enabled: bool = True
    migration_extension: str = "snrdata"
    pipeline_watermark: float = 99.0
    pipeline_definition: Path | None = None
    locale: str | None = None

    @property
    def features(self) -> dict[str, bool]:
        return {
            "migration": self.migration_enabled,
            "presets": self.presets_enabled,
            "epic_login": self.epic_login_enabled,
        }

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> WizardConfig:
        transition_ms = resolver.resolve_number("transition.duration_ms", 420.0)
        if transition_ms < 0:
            raise ConfigError("Config key 'transition.duration_ms' must not be negative")

        watermark = resolver.resolve_number("progress.pipeline_watermark", 99.0)
        if not 0.0 <= watermark <= 100.0:
            raise ConfigError("Config key 'progress.pipeline_watermark' must be within 0-100")

        extension = (resolver.resolve_str("migration.extension", "snrdata") or "").strip()
        if not extension:
            raise ConfigError("Config key 'migration.extension' must not be empty")

        definition = resolver.resolve_str("pipeline.definition")
        return cls(
            transition_ms=transition_ms,
            migration_enabled=resolver.resolve_bool("features.migration", True),
            presets_enabled=resolver.resolve_bool("features.presets", True),
            epic_login_enabled=resolver.resolve_bool("features.epic_login", True),
            migration_extension=extension.lstrip("."),
            pipeline_watermark=watermark,
            pipeline_definition=Path(definition).expanduser() if definition else None,
            locale=resolver.resolve_str("ui.locale"),
        )
