"""Custom exceptions for the catalog browser core.

Request failures are classified at the point of detection (status code,
timeout, cancellation token, connectivity check) into a closed set of
`ErrorKind` values that callers can switch on.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar, Self


class ErrorKind(StrEnum):
    """Stable, switchable classification of a failed request."""

    OFFLINE = "offline"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class CatalogError(Exception):
    """Base exception for all catalog browser errors."""

    pass


class RequestError(CatalogError):
    """Base class for failures of a single logical request."""

    kind: ClassVar[ErrorKind] = ErrorKind.UNKNOWN

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message)


class OfflineError(RequestError):
    """Raised without touching the network when the device is offline."""

    kind = ErrorKind.OFFLINE

    def __init__(self, url: str, reason: str = "device is offline") -> None:
        super().__init__(url, f"Request to {url} not completed: {reason}.")

    @classmethod
    def for_unreachable_host(cls, url: str) -> Self:
        return cls(url, "host unreachable")


class RequestTimeoutError(RequestError):
    """Raised when an attempt exceeds its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, url: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(url, f"Request to {url} timed out after {timeout_seconds:g}s.")


class HttpStatusError(RequestError):
    """Base class for failures carrying an HTTP status code."""

    def __init__(self, url: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(url, f"HTTP {status_code} from {url}.")


class ServerError(HttpStatusError):
    """Raised for upstream 5xx responses (retryable)."""

    kind = ErrorKind.SERVER_ERROR


class NotFoundError(HttpStatusError):
    """Raised for upstream 404 responses."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, url: str, status_code: int = 404) -> None:
        super().__init__(url, status_code)


class ClientError(HttpStatusError):
    """Raised for 4xx responses other than 404."""

    kind = ErrorKind.CLIENT_ERROR


class RequestCancelledError(RequestError):
    """Raised when the caller's cancellation token fires.

    Never surfaced to users; distinguished from `RequestTimeoutError` even
    though both abort the underlying call.
    """

    kind = ErrorKind.CANCELLED

    def __init__(self, url: str) -> None:
        super().__init__(url, f"Request to {url} was cancelled.")


class InvalidPayloadError(RequestError):
    """Raised when an upstream payload is not the JSON shape we expect."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, url: str, detail: str = "unexpected payload shape") -> None:
        super().__init__(url, f"Invalid payload from {url}: {detail}.")


class StorageFullError(CatalogError):
    """Raised by storage backends when a write exceeds available capacity."""

    def __init__(self, key: str, detail: str = "storage capacity exceeded") -> None:
        self.key = key
        super().__init__(f"Could not persist {key!r}: {detail}.")


class ConfigFileNotFoundError(CatalogError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(CatalogError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} could not be parsed: {detail}")


class ConfigFileValidationError(CatalogError):
    """Raised when a config file does not match the expected schema."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is invalid: {detail}")
