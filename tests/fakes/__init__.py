"""Exports for test fakes."""

from .cache import InMemoryCache
from .catalog import FakeCatalog
from .connectivity import FakeConnectivity
from .http import FakeHttpClient
from .storage import InMemoryStorage

__all__ = [
    "FakeCatalog",
    "FakeConnectivity",
    "FakeHttpClient",
    "InMemoryCache",
    "InMemoryStorage",
]
