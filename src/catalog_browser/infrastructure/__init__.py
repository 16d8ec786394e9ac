"""Concrete infrastructure implementations and shared helpers."""

from .cache import ExpiringCache
from .cancellation import CancellationToken
from .connectivity import ConnectivityMonitor, ProbeConnectivity
from .http import ResilientHttpClient, build_http_client, classify_status
from .resilience import RetryPolicy
from .storage import DiskStorage

__all__ = [
    "CancellationToken",
    "ConnectivityMonitor",
    "DiskStorage",
    "ExpiringCache",
    "ProbeConnectivity",
    "ResilientHttpClient",
    "RetryPolicy",
    "build_http_client",
    "classify_status",
]
