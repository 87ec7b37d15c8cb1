"""Test utilities for apisrv applications.

Provides an in-process ASGI test client and JSON assertions::

    from apisrv.testing import TestClient, assert_json_error
"""

from apisrv.testing.assertions import (
    assert_closes_connection,
    assert_json,
    assert_json_error,
    assert_no_cache,
)
from apisrv.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_closes_connection",
    "assert_json",
    "assert_json_error",
    "assert_no_cache",
]
