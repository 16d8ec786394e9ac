"""Retry policy for transient request failures.

Usage example:
    from catalog_browser.infrastructure.resilience import RetryPolicy

    policy = RetryPolicy(max_attempts=3, backoff_base_seconds=1.0, jitter_seconds=1.0)
    delay = policy.compute_backoff(attempt=1)
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import override

from ..exceptions import RequestError, RequestTimeoutError, ServerError
from ..protocols import RetryPolicy as RetryPolicyProtocol


@dataclass
class RetryPolicy(RetryPolicyProtocol):
    """Exponential backoff with additive jitter.

    `delay = base * 2 ** (attempt - 1) + uniform(0, jitter)`, capped at
    `max_backoff_seconds` before jitter is added.
    """

    max_attempts: int = 3
    backoff_base_seconds: float = 1.0
    jitter_seconds: float = 1.0
    max_backoff_seconds: float = 30.0
    retryable_errors: tuple[type[RequestError], ...] = (RequestTimeoutError, ServerError)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @override
    def compute_backoff(self, attempt: int) -> float:
        """Compute the delay to wait after failed attempt number `attempt` (1-based)."""
        base = min(self.max_backoff_seconds, self.backoff_base_seconds * (2 ** (attempt - 1)))
        if self.jitter_seconds > 0:
            base += random.uniform(0.0, self.jitter_seconds)
        return float(base)

    def is_retryable(self, error: RequestError) -> bool:
        return isinstance(error, self.retryable_errors)
