"""Event router with priority-ordered, abortable dispatch.

Entries are registered during setup under a literal key or a compiled
pattern. ``emit()`` selects every entry whose key equals the event or
whose pattern matches it, then runs each entry's tasks one at a time in
priority order until a task raises the abort signal.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ingest._internal.invoke import invoke
from ingest._internal.types import EntryKind, TaskHandler
from ingest.routing.pattern import (
    ANY_METHOD,
    Matcher,
    PatternMatch,
    compile_route,
    from_regex,
    serialize,
)
from ingest.routing.queue import TaskQueue
from ingest.status import ABORT, NOT_FOUND, OK, Status

if TYPE_CHECKING:
    from ingest.http.request import Request
    from ingest.http.response import Response

logger = logging.getLogger("ingest.router")

METHODS = ("CONNECT", "DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT", "TRACE")


@dataclass(slots=True)
class EventEntry:
    """Tasks registered under one key.

    ``key`` is a literal event name (exact match) or a ``Matcher``.
    """

    key: str | Matcher
    kind: EntryKind
    tasks: TaskQueue[TaskHandler] = field(default_factory=TaskQueue)

    def test(self, event: str) -> PatternMatch | None:
        """Return the captures if *event* selects this entry, else ``None``."""
        if isinstance(self.key, Matcher):
            return self.key.match(event)
        if self.key == event:
            return PatternMatch()
        return None


def _identity(key: str | Matcher) -> tuple[str, str]:
    if isinstance(key, Matcher):
        return ("pattern", serialize(key))
    return ("literal", key)


class EventRouter:
    """Registry of event keys to ordered task lists.

    Usage::

        router = EventRouter()
        router.on("user-created", send_welcome)
        router.get("/user/:id", load_user, priority=10)
        status = await router.emit("GET /user/42", request, response)
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], EventEntry] = {}
        self._frozen = False

    # -- Registration --

    def on(
        self,
        key: str | Matcher | re.Pattern[str],
        handler: TaskHandler,
        priority: int = 0,
    ) -> "EventRouter":
        """Register an event listener under a literal or pattern key."""
        if isinstance(key, re.Pattern):
            key = from_regex(key)
        self._add(key, handler, priority, "event")
        return self

    def route(
        self,
        method: str,
        path: str,
        handler: TaskHandler,
        priority: int = 0,
        *,
        pattern: Matcher | None = None,
    ) -> "EventRouter":
        """Register an endpoint under ``"{METHOD} {path}"``.

        The path is compiled here, so malformed patterns raise
        ``PatternError`` before anything is registered. A precompiled
        *pattern* skips compilation (the gateway passes the one it
        read from the manifest).
        """
        matcher = pattern if pattern is not None else compile_route(method, path)
        self._add(matcher, handler, priority, "endpoint")
        return self

    def _add(
        self,
        key: str | Matcher,
        handler: TaskHandler,
        priority: int,
        kind: EntryKind,
    ) -> EventEntry:
        if self._frozen:
            msg = "Cannot register tasks after the router is frozen."
            raise RuntimeError(msg)
        if not callable(handler):
            msg = f"Task for {key!s} must be callable, got {type(handler).__name__}"
            raise TypeError(msg)
        identity = _identity(key)
        entry = self._entries.get(identity)
        if entry is None:
            entry = EventEntry(key=key, kind=kind)
            self._entries[identity] = entry
        entry.tasks.add(handler, priority)
        return entry

    # -- Method helpers --

    def _method(
        self,
        method: str,
        path: str,
        handler: TaskHandler | None,
        priority: int,
    ) -> Any:
        if handler is not None:
            return self.route(method, path, handler, priority)

        def decorator(func: TaskHandler) -> TaskHandler:
            self.route(method, path, func, priority)
            return func

        return decorator

    def all(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        """Register for every method. Usable directly or as a decorator."""
        return self._method(ANY_METHOD, path, handler, priority)

    def connect(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("CONNECT", path, handler, priority)

    def delete(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("DELETE", path, handler, priority)

    def get(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("GET", path, handler, priority)

    def head(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("HEAD", path, handler, priority)

    def options(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("OPTIONS", path, handler, priority)

    def patch(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("PATCH", path, handler, priority)

    def post(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("POST", path, handler, priority)

    def put(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("PUT", path, handler, priority)

    def trace(self, path: str, handler: TaskHandler | None = None, priority: int = 0) -> Any:
        return self._method("TRACE", path, handler, priority)

    # -- Lifecycle --

    def freeze(self) -> None:
        """Lock the table. Later registrations raise ``RuntimeError``."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Introspection --

    @property
    def entries(self) -> list[EventEntry]:
        """Entries in registration order."""
        return list(self._entries.values())

    def listeners(self, event: str) -> list[tuple[EventEntry, PatternMatch]]:
        """Entries selected by *event*, in registration order, with captures."""
        selected: list[tuple[EventEntry, PatternMatch]] = []
        for entry in self._entries.values():
            found = entry.test(event)
            if found is not None:
                selected.append((entry, found))
        return selected

    def __len__(self) -> int:
        return len(self._entries)

    # -- Dispatch --

    async def emit(self, event: str, request: "Request", response: "Response") -> Status:
        """Run every task selected by *event*, sequentially.

        Returns ``NOT_FOUND`` when no entry was selected, ``ABORT`` when a
        task stopped the chain (``response.stop()`` or returning ``False``),
        else ``OK``. Task exceptions propagate to the caller.
        """
        request.context = self
        selected = self.listeners(event)
        if not selected:
            logger.debug("No listeners for %r", event)
            return NOT_FOUND

        for entry, found in selected:
            request.bind(found)
            for task in entry.tasks:
                result = await invoke(task, request, response)
                if result is False or response.aborted:
                    logger.debug("Dispatch of %r aborted by %s", event, _name(task))
                    return ABORT
        return OK


def _name(task: Callable[..., Any]) -> str:
    return getattr(task, "__qualname__", None) or repr(task)
