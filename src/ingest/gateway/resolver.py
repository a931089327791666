"""Lazy artifact resolution.

A bundle is loaded the first time a request reaches it, then stays
resident for the life of the process. Resolution is single-flight:
concurrent first requests share one load, and later calls return the
cached handler without touching the filesystem.
"""

import logging
from collections.abc import Callable
from typing import Any

import anyio
import anyio.to_thread

from ingest._internal.invoke import invoke
from ingest.errors import EntryError
from ingest.filesystem import DEFAULT_ATTRIBUTE, load_module
from ingest.runtime import run_action

logger = logging.getLogger("ingest.gateway")


class LazyResolver:
    """Memoized, single-flight ``load()`` call.

    A failed load is not cached; the next call retries.
    """

    __slots__ = ("_load", "_lock", "_loaded", "_value", "name")

    def __init__(self, name: str, load: Callable[[], Any]) -> None:
        self.name = name
        self._load = load
        self._lock: anyio.Lock | None = None
        self._loaded = False
        self._value: Any = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def resolve(self) -> Any:
        if self._loaded:
            return self._value
        # Created on first use so the lock binds to the serving event loop
        if self._lock is None:
            self._lock = anyio.Lock()
        async with self._lock:
            if not self._loaded:
                logger.debug("Loading %s", self.name)
                self._value = await anyio.to_thread.run_sync(self._load)
                self._loaded = True
        return self._value


class LazyTask:
    """Router task that resolves its handler on first call.

    With ``hooks=True`` the handler runs wrapped in the ``request`` and
    ``response`` hook events.
    """

    __slots__ = ("hooks", "resolver")

    def __init__(self, resolver: LazyResolver, *, hooks: bool = False) -> None:
        self.resolver = resolver
        self.hooks = hooks

    def __repr__(self) -> str:
        return f"LazyTask({self.resolver.name!r})"

    async def __call__(self, request: Any, response: Any) -> Any:
        handler = await self.resolver.resolve()
        if self.hooks:
            return await run_action(handler, request, response, hooks=True)
        return await invoke(handler, request, response)


def load_bundle(path: str) -> Callable[..., Any]:
    """Import a bundle file and return its entry handler."""
    module = load_module(path)
    handler = getattr(module, DEFAULT_ATTRIBUTE, None)
    if handler is None or not callable(handler):
        msg = f"Bundle {path!r} does not define a callable {DEFAULT_ATTRIBUTE!r}"
        raise EntryError(msg)
    return handler
