"""Labeler configuration - loaded once at startup and passed around explicitly."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path

from apscheduler.triggers.cron import CronTrigger

from . import constants
from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_BODY_CHAR_LIMIT,
    DEFAULT_CATEGORIES,
    DEFAULT_FALLBACK_CATEGORY,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCHEDULE,
)
from .errors import ConfigError


def _casefold(name: str) -> str:
    return name.strip().casefold()


@dataclass(frozen=True)
class LabelerConfig:
    """Immutable settings for one labeler process."""

    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    fallback_category: str = DEFAULT_FALLBACK_CATEGORY
    batch_size: int = DEFAULT_BATCH_SIZE
    body_char_limit: int = DEFAULT_BODY_CHAR_LIMIT
    poll_interval_minutes: int | None = None
    schedule: tuple[str, ...] = DEFAULT_SCHEDULE
    openai_model: str = DEFAULT_OPENAI_MODEL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        for key in ("categories", "schedule"):
            value = getattr(self, key)
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ConfigError(f"{key} must be a list, got {value!r}.")
            # JSON gives lists; keep the instance hashable.
            object.__setattr__(self, key, tuple(value))
        self.validate()

    @property
    def managed_categories(self) -> tuple[str, ...]:
        """Vocabulary plus the fallback, in order, without case-insensitive repeats."""
        if _casefold(self.fallback_category) in {_casefold(c) for c in self.categories}:
            return self.categories
        return self.categories + (self.fallback_category,)

    def validate(self) -> None:
        if not self.categories:
            raise ConfigError("At least one category is required.")
        if not isinstance(self.fallback_category, str) or not self.fallback_category.strip():
            raise ConfigError("fallback_category must be a non-empty string.")
        if not all(isinstance(name, str) and name.strip() for name in self.categories):
            raise ConfigError("Category names must be non-empty strings.")

        seen: set[str] = set()
        for name in self.managed_categories:
            if name != name.strip():
                raise ConfigError(f"Category {name!r} has leading or trailing whitespace.")
            if "/" in name:
                raise ConfigError(f"Category {name!r} contains '/', which Gmail treats as nesting.")
            key = _casefold(name)
            if key in seen:
                raise ConfigError(f"Duplicate category (case-insensitive): {name!r}")
            seen.add(key)

        for key in ("batch_size", "body_char_limit", "max_workers"):
            value = getattr(self, key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{key} must be a positive integer, got {value!r}.")

        if not isinstance(self.request_timeout, (int, float)) or self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout!r}.")

        if self.poll_interval_minutes is not None:
            if (
                not isinstance(self.poll_interval_minutes, int)
                or isinstance(self.poll_interval_minutes, bool)
                or self.poll_interval_minutes < 1
            ):
                raise ConfigError(
                    f"poll_interval_minutes must be a positive integer, got {self.poll_interval_minutes!r}."
                )
        elif not self.schedule:
            raise ConfigError("Either poll_interval_minutes or a schedule is required.")

        for expression in self.schedule:
            try:
                CronTrigger.from_crontab(expression)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid schedule expression {expression!r}: {exc}") from exc

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = list(value) if isinstance(value, tuple) else value
        return result


def load_config(path: Path | None = None) -> LabelerConfig:
    """Load configuration from a JSON file.

    A missing file yields the defaults. Unknown keys and invalid values raise
    ConfigError.
    """
    path = Path(path or constants.CONFIG_PATH)
    if not path.exists():
        return LabelerConfig()

    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object.")

    known = {f.name for f in fields(LabelerConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    try:
        return LabelerConfig(**raw)
    except TypeError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc
