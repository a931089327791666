"""Test helpers for ingest applications.

Usage::

    from ingest.testing import TestClient

    client = TestClient(gateway)
    result = await client.get("/user/42")
    assert result.status == 200
"""

from ingest.testing.client import TestClient, TestResponse

__all__ = ["TestClient", "TestResponse"]
