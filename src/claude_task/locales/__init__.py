"""Localized message catalogs."""

from .catalog import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    Locale,
    LocaleLoadError,
    detect_language,
    load_locale,
)

__all__ = [
    "DEFAULT_LANGUAGE",
    "Locale",
    "LocaleLoadError",
    "SUPPORTED_LANGUAGES",
    "detect_language",
    "load_locale",
]
