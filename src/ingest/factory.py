"""One-call wiring of the build-time router, builder, and gateway.

Every component receives the same ``IngestConfig``, so the builder writes
the manifest exactly where the gateway reads it.
"""

from dataclasses import dataclass, field

from ingest.build.manifest import BuildOutput, Manifest
from ingest.build.router import BuildtimeRouter
from ingest.build.transpile import transpile as default_transpile
from ingest.build.types import Transpiler
from ingest.config import IngestConfig
from ingest.filesystem import FileLoader, FileSystem, LocalFileSystem
from ingest.gateway.gateway import Gateway
from ingest.server.dev import RouterApp


@dataclass(slots=True)
class Ingest:
    """Build-time registrations plus the means to build and serve them.

    Usage::

        server = http(IngestConfig(cwd=root))
        server.get("/user/:id", "routes/user.py")
        server.build()
        app = server.gateway()   # ASGI app over the fresh manifest
    """

    config: IngestConfig
    fs: FileSystem = field(default_factory=LocalFileSystem)
    router: BuildtimeRouter = field(init=False)

    def __post_init__(self) -> None:
        self.router = BuildtimeRouter(FileLoader(self.config.root, self.fs))

    # -- Registration (delegates to the build-time router) --

    def on(self, event: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.on(event, entry, priority)

    def route(self, method: str, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.route(method, path, entry, priority)

    def all(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.all(path, entry, priority)

    def get(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.get(path, entry, priority)

    def post(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.post(path, entry, priority)

    def put(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.put(path, entry, priority)

    def patch(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.patch(path, entry, priority)

    def delete(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.delete(path, entry, priority)

    def connect(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.connect(path, entry, priority)

    def head(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.head(path, entry, priority)

    def options(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.options(path, entry, priority)

    def trace(self, path: str, entry: str, priority: int = 0) -> BuildtimeRouter:
        return self.router.trace(path, entry, priority)

    # -- Build and serve --

    def manifest(self) -> Manifest:
        return Manifest(self.router, self.config, fs=self.fs)

    def build(self, transpile: Transpiler = default_transpile) -> BuildOutput:
        return self.manifest().build(transpile)

    def gateway(self) -> Gateway:
        """A gateway over the manifest at ``config.manifest_path``."""
        return Gateway(self.config.manifest_path, self.fs)

    def develop(self) -> RouterApp:
        """ASGI app that dispatches straight from the registrations."""
        return RouterApp(self.router)


def http(config: IngestConfig | None = None, fs: FileSystem | None = None) -> Ingest:
    """Create an ``Ingest`` bound to *config*."""
    return Ingest(config or IngestConfig(), fs or LocalFileSystem())
