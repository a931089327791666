"""Build-time router — registrations by entry reference.

Tasks are registered as entry strings rather than callables, so the
registration table can be compiled into bundles. The router is still a
full ``EventRouter``: emitting on it imports each action lazily, which
is how the development server serves requests without a build. Endpoint
tasks run wrapped in the ``request`` and ``response`` hook events, as
their generated bundles do.
"""

import re
from functools import partial
from typing import Any

from ingest.build.types import BuildInfo, BuildTask
from ingest.filesystem import FileLoader
from ingest.gateway.resolver import LazyResolver, LazyTask
from ingest.routing.pattern import ANY_METHOD, Matcher, compile_route, from_regex, serialize
from ingest.routing.router import EventRouter


class BuildtimeRouter(EventRouter):
    """Records a ``BuildInfo`` per event key alongside normal registration."""

    __slots__ = ("_builds", "_resolvers", "loader")

    def __init__(self, loader: FileLoader) -> None:
        super().__init__()
        self.loader = loader
        self._builds: dict[tuple[str, str], BuildInfo] = {}
        self._resolvers: dict[str, LazyResolver] = {}

    @property
    def builds(self) -> list[BuildInfo]:
        """Build records in registration order."""
        return list(self._builds.values())

    def _task(self, entry: Any, *, hooks: bool = False) -> tuple[str, LazyTask]:
        if not isinstance(entry, str):
            msg = f"Build-time tasks are entry references, got {type(entry).__name__}"
            raise TypeError(msg)
        entry = self.loader.normalize(entry)
        resolver = self._resolvers.get(entry)
        if resolver is None:
            resolver = LazyResolver(entry, partial(self.loader.import_entry, entry))
            self._resolvers[entry] = resolver
        return entry, LazyTask(resolver, hooks=hooks)

    def on(
        self,
        key: str | Matcher | re.Pattern[str],
        handler: Any,
        priority: int = 0,
    ) -> "BuildtimeRouter":
        entry, task = self._task(handler)
        if isinstance(key, re.Pattern):
            key = from_regex(key)
        super().on(key, task, priority)
        if isinstance(key, Matcher):
            identity = ("pattern", serialize(key))
            info = BuildInfo("event", ANY_METHOD, key.source, key.source, key)
        else:
            identity = ("literal", key)
            info = BuildInfo("event", ANY_METHOD, key, key)
        self._builds.setdefault(identity, info).tasks.append(BuildTask(entry, priority))
        return self

    def route(
        self,
        method: str,
        path: str,
        handler: Any,
        priority: int = 0,
        *,
        pattern: Matcher | None = None,
    ) -> "BuildtimeRouter":
        entry, task = self._task(handler, hooks=True)
        method = method.upper()
        matcher = pattern if pattern is not None else compile_route(method, path)
        super().route(method, path, task, priority, pattern=matcher)
        identity = ("pattern", serialize(matcher))
        info = BuildInfo("endpoint", method, f"{method} {path}", path, matcher)
        self._builds.setdefault(identity, info).tasks.append(BuildTask(entry, priority))
        return self
