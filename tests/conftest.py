"""Pytest fixtures shared by every test module.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket

import pytest

from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block all network access in tests.

    Tests that need HTTP should use FakeHttpClient or a mocked requests.Session.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
