"""JSON persistence for :class:`TaskConfig`."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import FileSystemError
from ..locales import SUPPORTED_LANGUAGES, Locale, load_locale
from .models import TaskConfig

logger = logging.getLogger(__name__)


def _stock_defaults(locale: Locale) -> dict[str, Any]:
    return {
        "title": locale.translate("defaults.task_title"),
        "prerequisites": locale.default_list("prerequisites"),
        "rules": locale.default_list("rules"),
        "tasks": locale.default_list("tasks"),
    }


def _is_stock_list(value: str | list[str] | None, candidates: list[list[str]]) -> bool:
    if isinstance(value, list):
        return value in candidates
    if isinstance(value, str):
        for items in candidates:
            rendered = {
                "\n".join(items),
                "\n".join(f"- {item}" for item in items),
                "\n".join(f"- [ ] {item}" for item in items),
            }
            if value in rendered:
                return True
    return False


class ConfigStore:
    """Reads and writes the project's flat JSON config file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> TaskConfig:
        """Return the stored config, or defaults when no file exists yet."""

        if not self._path.exists():
            return TaskConfig(created=datetime.now(timezone.utc).isoformat())

        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FileSystemError(
                f"Failed to read config: {exc}", self._path, "read"
            ) from exc

        if not isinstance(document, dict):
            raise FileSystemError("Failed to read config: expected a JSON object", self._path, "read")

        try:
            return TaskConfig.model_validate(document)
        except ValidationError as exc:
            raise FileSystemError(f"Failed to read config: {exc}", self._path, "read") from exc

    def save(self, config: TaskConfig) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(config.to_document(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise FileSystemError(f"Failed to update config: {exc}", self._path, "write") from exc

    def create_initial(self, locale: Locale) -> TaskConfig:
        """Write a fresh config whose defaults follow ``locale``."""

        stock = _stock_defaults(locale)
        config = TaskConfig(
            created=datetime.now(timezone.utc).isoformat(),
            task_template=locale.translate("task_template"),
            default_task_title=stock["title"],
            archive_dir="archive",
            language=locale.language,
            default_prerequisites=stock["prerequisites"],
            default_rules=stock["rules"],
            default_tasks=stock["tasks"],
        )
        self.save(config)
        logger.info("Created project config", extra={"path": str(self._path), "language": locale.language})
        return config

    def update(self, **changes: Any) -> TaskConfig:
        config = self.load().model_copy(update=changes)
        self.save(config)
        return config

    def set_language(self, language: str) -> tuple[TaskConfig, Locale]:
        """Switch language and re-derive every locale-dependent default.

        Defaults that still hold either language's stock value follow the
        new language; customised values are kept. The new record is
        written in one go.
        """

        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")

        current = self.load()
        locale = load_locale(language)
        if current.language == locale.language and self.exists():
            return current, locale

        stocks = [_stock_defaults(load_locale(code)) for code in SUPPORTED_LANGUAGES]
        target = _stock_defaults(locale)
        changes: dict[str, Any] = {"language": locale.language, "task_template": locale.translate("task_template")}

        if _is_stock_list(current.default_prerequisites, [stock["prerequisites"] for stock in stocks]):
            changes["default_prerequisites"] = target["prerequisites"]
        if _is_stock_list(current.default_rules, [stock["rules"] for stock in stocks]):
            changes["default_rules"] = target["rules"]
        if _is_stock_list(current.default_tasks, [stock["tasks"] for stock in stocks]):
            changes["default_tasks"] = target["tasks"]
        if current.default_task_title in {stock["title"] for stock in stocks}:
            changes["default_task_title"] = target["title"]

        config = current.model_copy(update=changes)
        self.save(config)
        logger.info("Changed project language", extra={"language": locale.language})
        return config, locale


__all__ = ["ConfigStore"]
