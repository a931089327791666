"""Status codes shared by the dispatcher and the HTTP layer.

``ABORT`` (309) is not an HTTP status on the wire. It is the code
``EventRouter.emit()`` reports when a task raised the abort signal.
"""

from dataclasses import dataclass
from http import HTTPStatus


@dataclass(frozen=True, slots=True)
class Status:
    """A status code paired with its reason phrase."""

    code: int
    status: str

    def __str__(self) -> str:
        return f"{self.code} {self.status}"


OK = Status(200, "OK")
ABORT = Status(309, "Aborted")
BAD_REQUEST = Status(400, "Bad Request")
NOT_FOUND = Status(404, "Not Found")


def reason_phrase(code: int) -> str:
    """Return the standard reason phrase for *code*, or ``""`` if unknown."""
    if code == ABORT.code:
        return ABORT.status
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""
