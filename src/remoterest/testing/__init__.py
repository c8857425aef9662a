"""Test utilities for Rest applications.

Provides an in-process ASGI test client::

    from remoterest.testing import TestClient
"""

from remoterest.testing.client import TestClient

__all__ = [
    "TestClient",
]
