"""Request body decoding — JSON, URL-encoded and multipart.

Turns a raw body into a plain dict according to its content type.
Bracketed keys nest: ``user[name]=ada&tags[]=a&tags[]=b`` decodes to
``{"user": {"name": "ada"}, "tags": ["a", "b"]}``.

A body that does not decode (bad JSON, bad UTF-8, a broken multipart
stream) yields an empty dict; the raw bytes stay on the request.

``python-multipart`` is an optional dependency (``pip install ingest[forms]``).
JSON and URL-encoded bodies use the standard library.
"""

import json as json_module
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

from ingest.errors import ConfigurationError

_BRACKETS = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart body, held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


def _key_path(key: str) -> list[str]:
    found = _BRACKETS.match(key)
    if found is None or not found.group(2):
        return [key]
    return [found.group(1), *found.group(2)[1:-1].split("][")]


def _store(target: dict[str, Any], key: str, value: Any) -> None:
    if key not in target:
        target[key] = value
    elif isinstance(target[key], list):
        target[key].append(value)
    else:
        target[key] = [target[key], value]


def _assign(target: dict[str, Any], path: list[str], value: Any) -> None:
    head, *rest = path
    if not rest:
        _store(target, head, value)
        return
    if rest == [""]:
        existing = target.get(head)
        if existing is None:
            target[head] = [value]
        elif isinstance(existing, list):
            existing.append(value)
        else:
            target[head] = [existing, value]
        return
    child = target.get(head)
    if not isinstance(child, dict):
        child = {}
        target[head] = child
    _assign(child, rest, value)


def nest(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Fold ``(key, value)`` pairs into a dict, expanding bracketed keys.

    Repeated keys collapse into a list.
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        _assign(result, _key_path(key), value)
    return result


def query_to_dict(query: str | bytes) -> dict[str, Any]:
    """Parse a query string into a nested dict."""
    if isinstance(query, bytes):
        query = query.decode("latin-1")
    query = query.removeprefix("?")
    if not query:
        return {}
    return nest(parse_qsl(query, keep_blank_values=True))


def _parse_multipart(body: bytes, content_type: str) -> dict[str, Any]:
    """Parse multipart form data using python-multipart.

    Raises ``ConfigurationError`` if ``python-multipart`` is not installed
    and ``ValueError`` if the body cannot be parsed.
    """
    try:
        from multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install ingest[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    pairs: list[tuple[str, Any]] = []
    headers: dict[str, str] = {}
    current = bytearray()
    pending_field = ""
    field_name: str | None = None
    filename: str | None = None

    def on_part_begin() -> None:
        nonlocal current, field_name, filename
        headers.clear()
        current = bytearray()
        field_name = None
        filename = None

    def on_part_data(data: bytes, start: int, end: int) -> None:
        current.extend(data[start:end])

    def on_part_end() -> None:
        if field_name is None:
            return
        if filename is not None:
            pairs.append(
                (
                    field_name,
                    UploadFile(
                        filename=filename,
                        content_type=headers.get("content-type", "application/octet-stream"),
                        content=bytes(current),
                    ),
                )
            )
        else:
            pairs.append((field_name, current.decode("utf-8", errors="replace")))

    def on_header_field(data: bytes, start: int, end: int) -> None:
        nonlocal pending_field
        pending_field = data[start:end].decode("latin-1").lower()

    def on_header_value(data: bytes, start: int, end: int) -> None:
        nonlocal field_name, filename
        value = data[start:end].decode("latin-1")
        headers[pending_field] = value
        if pending_field == "content-disposition":
            _, params = parse_options_header(value.encode("latin-1"))
            name = params.get(b"name")
            if name is not None:
                field_name = name.decode("utf-8")
            fname = params.get(b"filename")
            if fname is not None:
                filename = fname.decode("utf-8")

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }
    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()
    return nest(pairs)


def decode_body(content_type: str, body: bytes) -> dict[str, Any]:
    """Decode *body* into a dict based on *content_type*.

    Malformed bodies decode to ``{}``. Only a missing multipart parser
    raises (``ConfigurationError``).
    """
    mimetype = content_type.split(";", 1)[0].strip().lower()
    try:
        if mimetype.endswith("/json"):
            text = body.decode("utf-8").strip()
            if not text.startswith("{"):
                return {}
            return json_module.loads(text)
        if mimetype.endswith("/x-www-form-urlencoded"):
            return query_to_dict(body.decode("utf-8"))
        if mimetype == "multipart/form-data":
            return _parse_multipart(body, content_type)
    except (ValueError, RecursionError):
        return {}
    return {}
