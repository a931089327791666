"""Tests for ingest.gateway.resolver — single-flight lazy loading."""

import asyncio
import threading

import pytest

from ingest.errors import EntryError
from ingest.gateway.resolver import LazyResolver, LazyTask, load_bundle
from ingest.http.request import Request
from ingest.http.response import Response


class TestLazyResolver:
    async def test_concurrent_first_calls_load_once(self) -> None:
        calls = 0
        lock = threading.Lock()

        def load() -> str:
            nonlocal calls
            with lock:
                calls += 1
            return "handler"

        resolver = LazyResolver("test", load)
        values = await asyncio.gather(*(resolver.resolve() for _ in range(8)))

        assert values == ["handler"] * 8
        assert calls == 1

    async def test_failure_not_cached(self) -> None:
        attempts: list[int] = []

        def load() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                raise EntryError("first load fails")
            return "ok"

        resolver = LazyResolver("flaky", load)
        with pytest.raises(EntryError):
            await resolver.resolve()
        assert not resolver.loaded
        assert await resolver.resolve() == "ok"

    async def test_task_invokes_resolved_handler(self) -> None:
        def handler(request: Request, response: Response) -> None:
            response.set_text("from bundle")

        task = LazyTask(LazyResolver("inline", lambda: handler))
        response = Response()
        await task(Request(), response)
        await task(Request(), response)

        assert response.body == "from bundle"
        assert "inline" in repr(task)


class TestLoadBundle:
    def test_requires_handle(self, tmp_path) -> None:
        path = tmp_path / "bundle.py"
        path.write_text("VALUE = 1\n")
        with pytest.raises(EntryError, match="handle"):
            load_bundle(str(path))

    def test_returns_handle(self, tmp_path) -> None:
        path = tmp_path / "bundle.py"
        path.write_text("def handle(request, response):\n    return 'ok'\n")
        assert load_bundle(str(path))(None, None) == "ok"
