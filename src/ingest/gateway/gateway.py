"""Gateway — a routing table rebuilt from the manifest alone.

The gateway never sees the original registrations. At construction it
reads the manifest, parses every stored pattern, and registers one lazy
bundle task per element into a fresh router, which is then frozen.

The table is all-or-nothing: if the manifest is missing, unreadable,
not JSON, not an array, or holds a malformed element, the gateway boots
with an empty table and answers 404 for everything.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from ingest._internal.asgi import Receive, Scope, Send
from ingest.build.manifest import load_manifest
from ingest.build.types import BuildResult
from ingest.errors import IngestError
from ingest.filesystem import FileSystem, LocalFileSystem
from ingest.gateway.resolver import LazyResolver, LazyTask, load_bundle
from ingest.routing.router import EventRouter
from ingest.server.handler import handle_request

if TYPE_CHECKING:
    from pounce.server import Server

    from ingest.config import IngestConfig

logger = logging.getLogger("ingest.gateway")


def read_manifest(path: str | Path, fs: FileSystem) -> list[BuildResult]:
    """Read *path* into build results.

    Raises ``ManifestError`` for malformed content and ``OSError`` when the
    file cannot be read.
    """
    if not fs.exists(path):
        msg = f"Manifest {str(path)!r} does not exist"
        raise FileNotFoundError(msg)
    return load_manifest(fs.read_text(path))


def build_router(results: Iterable[BuildResult]) -> EventRouter:
    """Register one lazy bundle task per result into a fresh router.

    Results that share a bundle share one resolver, so the bundle is
    loaded once.
    """
    router = EventRouter()
    resolvers: dict[str, LazyResolver] = {}
    for result in results:
        resolver = resolvers.get(result.entry)
        if resolver is None:
            resolver = LazyResolver(result.entry, partial(load_bundle, result.entry))
            resolvers[result.entry] = resolver
        task = LazyTask(resolver)
        if result.kind == "endpoint":
            router.route(result.method, result.route_pattern, task, pattern=result.pattern)
        else:
            router.on(result.pattern or result.event_key, task)
    return router


class Gateway:
    """ASGI application serving from a build manifest.

    Usage::

        gateway = Gateway(config.manifest_path)
        gateway.create_server(config).run()
    """

    __slots__ = ("manifest", "results", "router")

    def __init__(self, manifest: str | Path, fs: FileSystem | None = None) -> None:
        self.manifest = Path(manifest)
        try:
            self.results = read_manifest(self.manifest, fs or LocalFileSystem())
            self.router = build_router(self.results)
        except (OSError, UnicodeDecodeError, IngestError) as exc:
            logger.warning("Manifest %s unusable (%s); serving an empty table", self.manifest, exc)
            self.results = []
            self.router = EventRouter()
        self.router.freeze()
        logger.info("Gateway loaded %d route(s) from %s", len(self.results), self.manifest)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await handle_request(scope, receive, send, router=self.router)

    def create_server(self, config: IngestConfig | None = None) -> Server:
        """Wrap this gateway in a pounce server bound per *config*."""
        from ingest.server.dev import create_server

        return create_server(self, config)
