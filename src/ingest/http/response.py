"""Response abstraction shared by every task in a dispatch.

Tasks mutate one Response in sequence, so unlike a value object it is
changed in place. ``stop()`` raises the abort signal the router checks
after each task.
"""

import json as json_module
from dataclasses import dataclass, field
from typing import Any

from ingest.status import BAD_REQUEST, reason_phrase


@dataclass(slots=True)
class Response:
    """An outbound response under construction.

    ``code == 0`` and ``body is None`` mean no task produced anything.
    """

    code: int = 0
    status: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    mimetype: str | None = None
    error: str | None = None
    errors: dict[str, Any] = field(default_factory=dict)
    total: int = 0
    aborted: bool = False
    sent: bool = False

    # -- Abort signal --

    def stop(self) -> None:
        """Stop dispatch after the current task."""
        self.aborted = True

    # -- State --

    @property
    def handled(self) -> bool:
        """True once a task set a status or a body."""
        return self.code != 0 or self.body is not None

    def set_status(self, code: int, status: str | None = None) -> "Response":
        self.code = code
        self.status = status if status is not None else reason_phrase(code)
        return self

    def set_header(self, name: str, value: str) -> "Response":
        self.headers[name] = value
        return self

    # -- Bodies --

    def set_text(self, text: str, code: int = 200) -> "Response":
        self.mimetype = "text/plain"
        self.body = text
        return self.set_status(code)

    def set_html(self, html: str, code: int = 200) -> "Response":
        self.mimetype = "text/html"
        self.body = html
        return self.set_status(code)

    def set_json(self, value: Any, code: int = 200) -> "Response":
        """Send *value* as JSON verbatim (no result envelope)."""
        self.mimetype = "application/json"
        self.body = json_module.dumps(value)
        return self.set_status(code)

    def set_results(self, results: Any, total: int | None = None) -> "Response":
        """Send *results* inside the ``{code, status, results}`` envelope."""
        self.body = results
        if total is not None:
            self.total = total
        return self.set_status(200)

    def set_error(
        self,
        error: str,
        errors: dict[str, Any] | None = None,
        code: int = BAD_REQUEST.code,
    ) -> "Response":
        self.error = error
        self.errors = dict(errors or {})
        return self.set_status(code)

    def redirect(self, url: str, code: int = 302) -> "Response":
        self.headers["Location"] = url
        return self.set_status(code)

    # -- Rendering --

    def render(self) -> tuple[int, str, bytes]:
        """Return ``(status code, content type, body bytes)``.

        Dicts and lists are wrapped in the result envelope. A response
        with only an error renders the envelope without results.
        """
        code = self.code or 200
        mimetype = self.mimetype or "text/plain"
        body = self.body
        if isinstance(body, bytes):
            return code, mimetype, body
        if isinstance(body, str):
            return code, mimetype, body.encode("utf-8")
        if isinstance(body, dict | list) or (body is None and self.error is not None):
            envelope: dict[str, Any] = {"code": code, "status": self.status or reason_phrase(code)}
            if body is not None:
                envelope["results"] = body
            if self.error is not None:
                envelope["error"] = self.error
            if self.errors:
                envelope["errors"] = self.errors
            if self.total > 0:
                envelope["total"] = self.total
            return code, "application/json", json_module.dumps(envelope).encode("utf-8")
        if body is None:
            return code, mimetype, b""
        return code, mimetype, str(body).encode("utf-8")
