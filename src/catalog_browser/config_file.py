"""Typed parsing and validation for catalog config files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class CatalogConfigFile:
    """Validated catalog config values loaded from a TOML file."""

    base_url: str | None = None
    timeout_seconds: float | None = None
    max_attempts: int | None = None
    cache_dir: str | None = None
    cache_ttl_minutes: float | None = None
    cache_max_bytes: int | None = None
    page_size: int | None = None
    detail_batch_size: int | None = None
    debounce_ms: int | None = None
    suggestion_limit: int | None = None
    log_level: str | None = None


class _CatalogSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str | None = None
    timeout_seconds: float | None = None
    max_attempts: int | None = None
    cache_dir: str | None = None
    cache_ttl_minutes: float | None = None
    cache_max_bytes: int | None = None
    page_size: int | None = None
    detail_batch_size: int | None = None
    debounce_ms: int | None = None
    suggestion_limit: int | None = None
    log_level: str | None = None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().rstrip("/")
        if not text.startswith(("http://", "https://")):
            raise ValueError
        return text

    @field_validator("cache_dir")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError
        return level

    @field_validator(
        "max_attempts",
        "cache_max_bytes",
        "page_size",
        "detail_batch_size",
        "suggestion_limit",
    )
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("timeout_seconds", "cache_ttl_minutes")
    @classmethod
    def _validate_positive_float(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0.0:
            raise ValueError
        return value

    @field_validator("debounce_ms")
    @classmethod
    def _validate_non_negative_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    catalog: _CatalogSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_catalog_config_file(*, path: Path) -> CatalogConfigFile:
    """Load and validate a catalog TOML config file."""
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.catalog
    return CatalogConfigFile(
        base_url=section.base_url,
        timeout_seconds=section.timeout_seconds,
        max_attempts=section.max_attempts,
        cache_dir=section.cache_dir,
        cache_ttl_minutes=section.cache_ttl_minutes,
        cache_max_bytes=section.cache_max_bytes,
        page_size=section.page_size,
        detail_batch_size=section.detail_batch_size,
        debounce_ms=section.debounce_ms,
        suggestion_limit=section.suggestion_limit,
        log_level=section.log_level,
    )
