"""Request abstraction handed to every task.

Metadata is fixed when the transport creates the request. Route captures
are rebound by the router for each entry it dispatches to, and the body is
read once on ``load()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ingest._internal.asgi import Receive, Scope
from ingest.http.forms import decode_body, query_to_dict

if TYPE_CHECKING:
    from ingest.routing.pattern import PatternMatch
    from ingest.routing.router import EventRouter


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(slots=True)
class Request:
    """An inbound request.

    ``params`` and ``args`` hold the captures of the entry currently being
    dispatched. ``post`` is filled by ``load()``.
    """

    method: str = "GET"
    path: str = "/"
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    args: list[str] = field(default_factory=list)
    post: dict[str, Any] = field(default_factory=dict)
    body: bytes | None = None
    query_string: str = ""
    # Router currently dispatching this request, set by ``emit``
    context: EventRouter | None = field(default=None, repr=False, compare=False)
    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)

    @property
    def event(self) -> str:
        """The event key this request dispatches under."""
        return f"{self.method} {self.path}"

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @property
    def mimetype(self) -> str:
        return self.headers.get("content-type", "text/plain")

    @property
    def data(self) -> dict[str, Any]:
        """Query, decoded body, and route params merged, later wins."""
        return {**self.query, **self.post, **self.params}

    def bind(self, found: PatternMatch) -> None:
        """Expose the captures of the entry being dispatched."""
        self.params = dict(found.params)
        self.args = list(found.args)

    async def load(self) -> bytes:
        """Read and decode the body. Later calls return the cached bytes."""
        if self.body is not None:
            return self.body
        chunks: list[bytes] = []
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                chunks.append(chunk)
            if not message.get("more_body", False):
                break
        self.body = b"".join(chunks)
        self.post = decode_body(self.mimetype, self.body)
        return self.body

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers: dict[str, str] = {}
        for name, value in scope.get("headers", ()):
            headers[name.decode("latin-1").lower()] = value.decode("latin-1")
        query_string = scope.get("query_string", b"").decode("latin-1")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            query=query_to_dict(query_string),
            headers=headers,
            query_string=query_string,
            _receive=receive,
        )
