"""Cooperative cancellation for in-flight requests.

Usage example:
    from catalog_browser.infrastructure.cancellation import CancellationToken

    token = CancellationToken()
    task = asyncio.create_task(client.get_json(url, cancel_token=token))
    token.cancel()  # the request fails with RequestCancelledError
"""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot signal shared between a request and whoever owns it."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
