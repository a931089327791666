"""Helpers imported by generated bundles.

A bundle lists its action entries and hands them to ``load_actions`` at
import time, then forwards each request to ``run_chain``.

Endpoint chains are pluggable: around every action the router that
dispatched the request emits ``"request"`` before and ``"response"``
after, so listeners registered with ``on("request", ...)`` see every
endpoint call. Either hook aborting stops the chain.
"""

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from ingest._internal.invoke import invoke
from ingest._internal.types import EntryRef
from ingest.filesystem import FileLoader
from ingest.status import ABORT

REQUEST_EVENT = "request"
RESPONSE_EVENT = "response"


def load_actions(
    entries: Iterable[EntryRef], root: str | Path
) -> tuple[Callable[..., Any], ...]:
    """Import every action entry, in order, resolving file paths against *root*."""
    loader = FileLoader(root)
    return tuple(loader.import_entry(entry) for entry in entries)


async def emit_hook(event: str, request: Any, response: Any) -> bool:
    """Emit *event* on the dispatching router. Returns ``False`` on abort.

    The captures of the entry being dispatched survive the nested emit.
    """
    router = getattr(request, "context", None)
    if router is None:
        return True
    params, args = request.params, request.args
    try:
        status = await router.emit(event, request, response)
    finally:
        request.params, request.args = params, args
    return status != ABORT


async def run_action(
    action: Callable[..., Any],
    request: Any,
    response: Any,
    *,
    hooks: bool = False,
) -> bool:
    """Run one action, wrapped in the hook events when *hooks* is set."""
    if hooks and not await emit_hook(REQUEST_EVENT, request, response):
        return False
    result = await invoke(action, request, response)
    if result is False or response.aborted:
        return False
    if hooks and not await emit_hook(RESPONSE_EVENT, request, response):
        return False
    return True


async def run_chain(
    actions: Iterable[Callable[..., Any]],
    request: Any,
    response: Any,
    *,
    hooks: bool = False,
) -> bool:
    """Run *actions* in order. Returns ``False`` if one stopped the chain."""
    for action in actions:
        if not await run_action(action, request, response, hooks=hooks):
            return False
    return True
