"""Pounce-backed server for any ingest ASGI application.

``create_server`` binds an application (a ``Gateway`` in production, a
``RouterApp`` over a ``BuildtimeRouter`` in development) to a pounce
``Server`` configured from ``IngestConfig``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ingest._internal.asgi import Receive, Scope, Send
from ingest.config import IngestConfig
from ingest.routing.router import EventRouter
from ingest.server.handler import handle_request

if TYPE_CHECKING:
    from pounce.server import Server

    from ingest._internal.asgi import ASGIApp


class RouterApp:
    """ASGI application over a live router (no manifest, no build).

    Usage::

        router = BuildtimeRouter(FileLoader(root))
        router.get("/", "routes/home.py")
        create_server(RouterApp(router)).run()
    """

    __slots__ = ("router",)

    def __init__(self, router: EventRouter) -> None:
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await handle_request(scope, receive, send, router=self.router)


def create_server(app: ASGIApp, config: IngestConfig | None = None) -> Server:
    """Wrap *app* in a pounce ``Server``. Call ``.run()`` to serve.

    Pounce is imported here so building and testing never require it.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = config or IngestConfig()
    server_config = ServerConfig(
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level,
        request_timeout=config.request_timeout,
    )
    return Server(server_config, app)


def run_server(app: ASGIApp, config: IngestConfig | None = None) -> None:
    """Serve *app* until interrupted."""
    create_server(app, config).run()
