"""Message catalog loading."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from ..errors import TaskManagerError

SUPPORTED_LANGUAGES = ("en", "ja")
DEFAULT_LANGUAGE = "en"

_CATALOG_DIR = Path(__file__).resolve().parent
_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


class LocaleLoadError(TaskManagerError):
    """Raised when a message catalog cannot be read or parsed."""

    code = "LOCALE_LOAD_ERROR"


@dataclass(frozen=True, slots=True)
class Locale:
    """Immutable message catalog for one language."""

    language: str
    messages: Mapping[str, Any] = field(default_factory=dict)

    def lookup(self, key: str) -> Any:
        value: Any = self.messages
        for part in key.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            else:
                return None
        return value

    def translate(self, key: str, **params: Any) -> str:
        """Resolve a dotted key and fill ``{{name}}`` placeholders.

        Unknown keys come back unchanged so a missing message never hides
        the surrounding output.
        """

        value = self.lookup(key)
        if not isinstance(value, str):
            return key
        if not params:
            return value
        return _PLACEHOLDER.sub(
            lambda match: str(params[match.group(1)]) if match.group(1) in params else match.group(0),
            value,
        )

    def heading(self, name: str) -> str:
        return self.translate(f"headings.{name}")

    def default_list(self, name: str) -> list[str]:
        value = self.lookup(f"defaults.{name}")
        if isinstance(value, list):
            return [str(item) for item in value]
        return []


def detect_language(environ: Mapping[str, str] | None = None) -> str:
    """Pick the initial language from ``LANG``/``LANGUAGE``."""

    env = os.environ if environ is None else environ
    value = env.get("LANG") or env.get("LANGUAGE") or ""
    return "ja" if "ja" in value.lower() else DEFAULT_LANGUAGE


def load_locale(language: str | None = None, *, catalog_dir: Path | None = None) -> Locale:
    """Load the catalog for ``language``, falling back to English."""

    base = catalog_dir or _CATALOG_DIR
    requested = language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE
    path = base / f"{requested}.yaml"
    if not path.exists() and requested != DEFAULT_LANGUAGE:
        requested = DEFAULT_LANGUAGE
        path = base / f"{requested}.yaml"

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LocaleLoadError(f"Failed to load language file: {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise LocaleLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise LocaleLoadError(f"Language file {path} does not contain a mapping")

    return Locale(language=requested, messages=MappingProxyType(document))


__all__ = [
    "DEFAULT_LANGUAGE",
    "Locale",
    "LocaleLoadError",
    "SUPPORTED_LANGUAGES",
    "detect_language",
    "load_locale",
]
