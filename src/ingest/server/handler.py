"""ASGI handler — the only component that touches raw ASGI for requests.

Builds a Request from the scope, emits ``"{METHOD} {path}"`` on the
router, and sends whatever the tasks produced. When no task produced a
response the client gets the plain-text 404 fallback.
"""

import logging

from ingest._internal.asgi import Receive, Scope, Send
from ingest.http.request import Request
from ingest.http.response import Response
from ingest.routing.router import EventRouter
from ingest.server.sender import not_found, send_response

logger = logging.getLogger("ingest.server")


async def handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge the ASGI lifespan protocol. The table is built already."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: EventRouter,
) -> None:
    """Process a single request through the router.

    Task exceptions are logged and re-raised: translating failures into
    responses belongs to the transport in front of the router.
    """
    if scope["type"] == "lifespan":
        await handle_lifespan(receive, send)
        return
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = Response()
    await request.load()

    try:
        status = await router.emit(request.event, request, response)
    except Exception:
        logger.exception("Unhandled error while dispatching %s", request.event)
        raise
    logger.debug("%s -> %s", request.event, status)

    if response.sent:
        return
    if not response.handled:
        not_found(response)
    await send_response(response, send)
