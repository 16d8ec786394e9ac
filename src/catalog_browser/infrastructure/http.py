"""HTTP client implementation for infrastructure.

Usage example:
    import requests

    from catalog_browser.infrastructure.connectivity import ConnectivityMonitor
    from catalog_browser.infrastructure.http import ResilientHttpClient
    from catalog_browser.infrastructure.resilience import RetryPolicy

    client = ResilientHttpClient(
        session=requests.Session(),
        connectivity=ConnectivityMonitor(),
        retry_policy=RetryPolicy(max_attempts=3),
    )
    payload = await client.get_json("https://pokeapi.co/api/v2/pokemon/25")
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, override

import requests

from ..exceptions import (
    ClientError,
    InvalidPayloadError,
    NotFoundError,
    OfflineError,
    RequestCancelledError,
    RequestError,
    RequestTimeoutError,
    ServerError,
)
from ..observability import get_logger
from ..protocols import ConnectivityOracle, HttpClient, RetryPolicy
from .cancellation import CancellationToken
from .resilience import RetryPolicy as RetryPolicyImpl

logger = get_logger("catalog_browser.infrastructure.http")

Sleeper = Callable[[float], Awaitable[None]]


def build_http_client(
    *,
    connectivity: ConnectivityOracle,
    timeout_seconds: float,
    max_attempts: int,
    backoff_base_seconds: float,
    jitter_seconds: float,
    max_backoff_seconds: float,
) -> ResilientHttpClient:
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    retry_policy = RetryPolicyImpl(
        max_attempts=max_attempts,
        backoff_base_seconds=backoff_base_seconds,
        jitter_seconds=jitter_seconds,
        max_backoff_seconds=max_backoff_seconds,
    )
    return ResilientHttpClient(
        session=session,
        connectivity=connectivity,
        retry_policy=retry_policy,
        timeout_seconds=timeout_seconds,
    )


def classify_status(url: str, status_code: int) -> RequestError | None:
    """Map a non-success status code to its error, or None for 2xx/3xx."""
    if status_code == 404:
        return NotFoundError(url)
    if status_code >= 500:
        return ServerError(url, status_code)
    if status_code >= 400:
        return ClientError(url, status_code)
    return None


def _consume_result(task: asyncio.Future[Any]) -> None:
    # Abandoned attempts still finish in their worker thread.
    if not task.cancelled():
        task.exception()


class ResilientHttpClient(HttpClient):
    """HTTP client with timeout, retry/backoff, offline fail-fast and cancellation.

    Provides the following error handling:
    - Offline (per the injected oracle) raises OfflineError before any I/O
    - Timeouts and 5xx responses retry with exponential backoff and jitter
    - 404 raises NotFoundError, other 4xx raise ClientError, neither retried
    - A cancelled token raises RequestCancelledError, never retried
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        connectivity: ConnectivityOracle,
        retry_policy: RetryPolicy | None = None,
        timeout_seconds: float = 8.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.session = session
        self.connectivity = connectivity
        self.retry_policy = retry_policy or RetryPolicyImpl()
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

    @override
    async def get_json(
        self,
        url: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> object:
        """Fetch JSON from URL, retrying transient failures.

        Raises:
            OfflineError: If the device is offline or the host is unreachable
            RequestTimeoutError: If every attempt timed out
            ServerError: If every attempt returned 5xx
            NotFoundError: If the API returned 404
            ClientError: For other 4xx responses
            RequestCancelledError: If `cancel_token` fired
            InvalidPayloadError: If the body is not JSON
        """
        attempt = 1
        while True:
            if cancel_token is not None and cancel_token.cancelled:
                raise RequestCancelledError(url)

            # Fail fast rather than wait out a timeout
            await self.connectivity.refresh()
            if self.connectivity.is_offline():
                raise OfflineError(url)

            try:
                response = await self._attempt(url, cancel_token)
                error = classify_status(url, response.status_code)
                if error is not None:
                    raise error
            except RequestError as exc:
                retryable = self.retry_policy.is_retryable(exc)
                if not retryable or attempt >= self.retry_policy.max_attempts:
                    raise
                delay = self.retry_policy.compute_backoff(attempt)
                logger.warning(
                    "Attempt %s/%s for %s failed (%s); retrying in %.2fs",
                    attempt,
                    self.retry_policy.max_attempts,
                    url,
                    exc.kind,
                    delay,
                )
                await self._backoff(url, delay, cancel_token)
                attempt += 1
                continue

            try:
                return response.json()
            except ValueError as exc:
                raise InvalidPayloadError(url, "body is not JSON") from exc

    async def _attempt(
        self,
        url: str,
        cancel_token: CancellationToken | None,
    ) -> requests.Response:
        request_task: asyncio.Future[requests.Response] = asyncio.ensure_future(
            asyncio.to_thread(self.session.get, url, timeout=self.timeout_seconds)
        )
        waiters: set[asyncio.Future[Any]] = {request_task}
        cancel_task: asyncio.Future[None] | None = None
        if cancel_token is not None:
            cancel_task = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self.timeout_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            request_task.add_done_callback(_consume_result)
            raise
        finally:
            if cancel_task is not None:
                cancel_task.cancel()

        if request_task in done:
            try:
                return request_task.result()
            except requests.Timeout as exc:
                raise RequestTimeoutError(url, self.timeout_seconds) from exc
            except requests.ConnectionError as exc:
                raise OfflineError.for_unreachable_host(url) from exc
            except requests.RequestException as exc:
                raise InvalidPayloadError(url, str(exc)) from exc

        request_task.add_done_callback(_consume_result)
        if cancel_task is not None and cancel_task in done:
            raise RequestCancelledError(url)
        raise RequestTimeoutError(url, self.timeout_seconds)

    async def _backoff(
        self,
        url: str,
        delay: float,
        cancel_token: CancellationToken | None,
    ) -> None:
        if cancel_token is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        canceller = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait(
                {sleeper, canceller},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            sleeper.cancel()
            canceller.cancel()
        if canceller in done:
            raise RequestCancelledError(url)
