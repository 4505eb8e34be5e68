"""Message catalog for user-facing prompts and status lines."""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Any, Protocol

import yaml

from installflow.core.errors import ConfigError

SUPPORTED_LOCALES = ("en", "ja")


class Translator(Protocol):
    def __call__(self, key: str, **params: Any) -> str: ...


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    flat: dict[str, str] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, path))
        else:
            flat[path] = str(value)
    return flat


class MessageCatalog:
    """Translate message keys for one active locale.

    Lookup order: active locale, default locale, then the key itself.
    """

    def __init__(self, locales: dict[str, dict[str, str]], default_locale: str = "en") -> None:
        if default_locale not in locales:
            raise ConfigError(f"Default locale '{default_locale}' missing from message catalog")
        self._locales = locales
        self.default_locale = default_locale
        self.locale = default_locale

    @classmethod
    def load(cls, path: Path | None = None) -> MessageCatalog:
        """Load a catalog from YAML (the packaged catalog when path is None)."""
        try:
            if path is None:
                text = (
                    resources.files("installflow.wizard")
                    .joinpath("definitions/messages.yaml")
                    .read_text(encoding="utf-8")
                )
            else:
                text = path.read_text(encoding="utf-8")
            data = yaml.safe_load(text)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load message catalog: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("locales"), dict):
            raise ConfigError("Message catalog must define a 'locales' mapping")

        locales = {
            str(code): _flatten(entries)
            for code, entries in data["locales"].items()
            if isinstance(entries, dict)
        }
        return cls(locales, default_locale=str(data.get("default_locale", "en")))

    @property
    def locales(self) -> list[str]:
        return sorted(self._locales)

    def set_locale(self, locale: str | None) -> str:
        """Switch locale; unknown or empty codes fall back to the default."""
        code = (locale or "").strip().lower()
        self.locale = code if code in self._locales else self.default_locale
        return self.locale

    def __call__(self, key: str, **params: Any) -> str:
        template = self._locales.get(self.locale, {}).get(key)
        if template is None:
            template = self._locales[self.default_locale].get(key)
        if template is None:
            return key
        return template.format_map(_KeepMissing(params))
