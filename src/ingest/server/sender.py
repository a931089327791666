"""ASGI response sending — translates an ingest Response to ASGI messages."""

import logging

from ingest._internal.asgi import Send
from ingest.http.response import Response
from ingest.status import NOT_FOUND

logger = logging.getLogger("ingest.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


def not_found(response: Response) -> Response:
    """Turn *response* into the plain-text ``404 Not Found`` fallback."""
    response.set_status(NOT_FOUND.code, NOT_FOUND.status)
    response.mimetype = "text/plain"
    response.body = str(NOT_FOUND)
    return response


async def send_response(response: Response, send: Send) -> None:
    """Translate *response* into ASGI ``send()`` calls and mark it sent."""
    status, content_type, body = response.render()
    if not _body_allowed(status):
        body = b""

    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", content_type.encode("latin-1")),
    ]
    for name, value in response.headers.items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
    response.sent = True
