"""User-facing descriptions for classified request failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..exceptions import ErrorKind


class ErrorCategory(StrEnum):
    """Illustration bucket a UI can pick iconography from."""

    OFFLINE = "offline"
    NOT_FOUND = "not_found"
    SERVER = "server"
    TIMEOUT = "timeout"
    GENERIC = "generic"


@dataclass(frozen=True)
class UserMessage:
    """Displayable title, message and category for an error kind."""

    title: str
    message: str
    category: ErrorCategory


_MESSAGES: dict[ErrorKind, UserMessage] = {
    ErrorKind.OFFLINE: UserMessage(
        "No connection",
        "Check your internet connection and try again.",
        ErrorCategory.OFFLINE,
    ),
    ErrorKind.NOT_FOUND: UserMessage(
        "Not found",
        "We couldn't find anything matching that.",
        ErrorCategory.NOT_FOUND,
    ),
    ErrorKind.SERVER_ERROR: UserMessage(
        "Catalog unavailable",
        "The catalog service is unstable. Try again later.",
        ErrorCategory.SERVER,
    ),
    ErrorKind.TIMEOUT: UserMessage(
        "Taking too long",
        "Your connection is too slow right now.",
        ErrorCategory.TIMEOUT,
    ),
}

_GENERIC = UserMessage("Oops!", "Something unexpected went wrong.", ErrorCategory.GENERIC)


def describe_error(kind: ErrorKind | None) -> UserMessage | None:
    """Return the message for `kind`; cancellations and no-error yield None."""
    if kind is None or kind is ErrorKind.CANCELLED:
        return None
    return _MESSAGES.get(kind, _GENERIC)
