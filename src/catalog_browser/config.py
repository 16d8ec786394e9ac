"""Centralised, injectable configuration for the catalog browser core."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .application.catalog_api import DEFAULT_BASE_URL
from .config_file import CatalogConfigFile


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class PositiveNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


@dataclass(frozen=True)
class CatalogConfig:
    """Immutable configuration object for the client, cache and coordinator.

    Load from environment with `CatalogConfig.from_env()` or construct directly for testing.
    """

    # Remote API
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 8.0
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0
    backoff_jitter_seconds: float = 1.0
    backoff_max_seconds: float = 30.0

    # Cache
    cache_dir: str = "data/cache"
    cache_ttl_minutes: float = 30.0
    cache_max_bytes: int | None = None

    # Coordinator
    page_size: int = 20
    detail_batch_size: int = 5
    debounce_ms: int = 400
    suggestion_limit: int = 5
    name_index_limit: int = 10000

    # Connectivity probe
    probe_host: str = "pokeapi.co"
    probe_port: int = 443
    probe_staleness_seconds: float = 5.0

    log_level: str = "INFO"

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_minutes * 60.0

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            CatalogConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            base_url=os.getenv("CATALOG_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/")
            or DEFAULT_BASE_URL,
            timeout_seconds=_parse_positive_float(
                os.getenv("CATALOG_TIMEOUT_SECONDS", "8"), env_name="CATALOG_TIMEOUT_SECONDS"
            ),
            max_attempts=_parse_positive_int(
                os.getenv("CATALOG_MAX_ATTEMPTS", "3"), env_name="CATALOG_MAX_ATTEMPTS"
            ),
            backoff_base_seconds=float(os.getenv("CATALOG_BACKOFF_BASE_SECONDS", "1")),
            backoff_jitter_seconds=float(os.getenv("CATALOG_BACKOFF_JITTER_SECONDS", "1")),
            backoff_max_seconds=float(os.getenv("CATALOG_BACKOFF_MAX_SECONDS", "30")),
            cache_dir=os.getenv("CATALOG_CACHE_DIR", "data/cache").strip() or "data/cache",
            cache_ttl_minutes=_parse_positive_float(
                os.getenv("CATALOG_CACHE_TTL_MINUTES", "30"),
                env_name="CATALOG_CACHE_TTL_MINUTES",
            ),
            cache_max_bytes=_parse_optional_positive_int(
                os.getenv("CATALOG_CACHE_MAX_BYTES", ""), env_name="CATALOG_CACHE_MAX_BYTES"
            ),
            page_size=_parse_positive_int(
                os.getenv("CATALOG_PAGE_SIZE", "20"), env_name="CATALOG_PAGE_SIZE"
            ),
            detail_batch_size=_parse_positive_int(
                os.getenv("CATALOG_DETAIL_BATCH_SIZE", "5"), env_name="CATALOG_DETAIL_BATCH_SIZE"
            ),
            debounce_ms=int(os.getenv("CATALOG_DEBOUNCE_MS", "400")),
            suggestion_limit=_parse_positive_int(
                os.getenv("CATALOG_SUGGESTION_LIMIT", "5"), env_name="CATALOG_SUGGESTION_LIMIT"
            ),
            name_index_limit=_parse_positive_int(
                os.getenv("CATALOG_NAME_INDEX_LIMIT", "10000"),
                env_name="CATALOG_NAME_INDEX_LIMIT",
            ),
            probe_host=os.getenv("CATALOG_PROBE_HOST", "pokeapi.co").strip() or "pokeapi.co",
            probe_port=_parse_positive_int(
                os.getenv("CATALOG_PROBE_PORT", "443"), env_name="CATALOG_PROBE_PORT"
            ),
            probe_staleness_seconds=float(os.getenv("CATALOG_PROBE_STALENESS_SECONDS", "5")),
            log_level=os.getenv("CATALOG_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        cache_dir: str | None = None,
        page_size: int | None = None,
        log_level: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            base_url=self.base_url if base_url is None else base_url.strip().rstrip("/"),
            cache_dir=self.cache_dir if cache_dir is None else cache_dir.strip(),
            page_size=self.page_size if page_size is None else page_size,
            log_level=self.log_level if log_level is None else log_level.strip().upper(),
        )

    def with_file_overrides(self, file_config: CatalogConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            base_url=self.base_url if file_config.base_url is None else file_config.base_url,
            timeout_seconds=self.timeout_seconds
            if file_config.timeout_seconds is None
            else file_config.timeout_seconds,
            max_attempts=self.max_attempts
            if file_config.max_attempts is None
            else file_config.max_attempts,
            cache_dir=self.cache_dir if file_config.cache_dir is None else file_config.cache_dir,
            cache_ttl_minutes=self.cache_ttl_minutes
            if file_config.cache_ttl_minutes is None
            else file_config.cache_ttl_minutes,
            cache_max_bytes=self.cache_max_bytes
            if file_config.cache_max_bytes is None
            else file_config.cache_max_bytes,
            page_size=self.page_size if file_config.page_size is None else file_config.page_size,
            detail_batch_size=self.detail_batch_size
            if file_config.detail_batch_size is None
            else file_config.detail_batch_size,
            debounce_ms=self.debounce_ms
            if file_config.debounce_ms is None
            else file_config.debounce_ms,
            suggestion_limit=self.suggestion_limit
            if file_config.suggestion_limit is None
            else file_config.suggestion_limit,
            log_level=self.log_level if file_config.log_level is None else file_config.log_level,
        )


def _parse_positive_int(value: str, *, env_name: str) -> int:
    """Parse a required positive integer from an environment variable."""
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse an optional positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return None
    return _parse_positive_int(text, env_name=env_name)


def _parse_positive_float(value: str, *, env_name: str) -> float:
    """Parse a required positive number from an environment variable."""
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise PositiveNumberEnvVarError(env_name) from exc
    if parsed <= 0.0:
        raise PositiveNumberEnvVarError(env_name)
    return parsed
