"""HTTP fakes for tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from catalog_browser.infrastructure.cancellation import CancellationToken
from catalog_browser.protocols import HttpClient
from tests.support.errors import FakeResponseMissingError


def _empty_responses() -> dict[str, object]:
    return {}


def _empty_calls() -> list[str]:
    return []


@dataclass
class FakeHttpClient(HttpClient):
    """Fake HTTP client that returns canned responses keyed by exact URL.

    A canned value that is an exception instance is raised instead.
    """

    responses: dict[str, object] = field(default_factory=_empty_responses)
    calls: list[str] = field(default_factory=_empty_calls)

    @override
    async def get_json(
        self,
        url: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> object:
        self.calls.append(url)
        if url not in self.responses:
            raise FakeResponseMissingError(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response
