"""Tests for ingest.http — Request, Response, and body decoding."""

import json

import pytest

from ingest.http.forms import UploadFile, decode_body, query_to_dict
from ingest.http.request import Request
from ingest.http.response import Response
from ingest.routing.pattern import PatternMatch


def _receiver(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive() -> dict:
        return messages.pop(0)

    return receive


class TestQueryAndBody:
    def test_query_single_and_repeated(self) -> None:
        assert query_to_dict("?a=1&b=2&b=3") == {"a": "1", "b": ["2", "3"]}

    def test_query_empty(self) -> None:
        assert query_to_dict(b"") == {}

    def test_json_object(self) -> None:
        assert decode_body("application/json; charset=utf-8", b'{"a": 1}') == {"a": 1}

    def test_json_non_object_ignored(self) -> None:
        assert decode_body("application/json", b"[1, 2]") == {}

    @pytest.mark.parametrize(
        ("content_type", "body"),
        [
            ("application/json", b"{nope"),
            ("application/json", b"\xff\xfe"),
            ("application/x-www-form-urlencoded", b"name=\xff"),
            ("multipart/form-data", b"--x\r\n"),
        ],
    )
    def test_malformed_body_decodes_empty(self, content_type: str, body: bytes) -> None:
        assert decode_body(content_type, body) == {}

    def test_urlencoded(self) -> None:
        assert decode_body("application/x-www-form-urlencoded", b"name=ada") == {"name": "ada"}

    def test_other_types_empty(self) -> None:
        assert decode_body("text/plain", b"hello") == {}

    def test_bracketed_keys_nest(self) -> None:
        assert query_to_dict("user[name]=ada&user[role]=admin&tags[]=a&tags[]=b&x=1") == {
            "user": {"name": "ada", "role": "admin"},
            "tags": ["a", "b"],
            "x": "1",
        }

    def test_single_bracket_list(self) -> None:
        assert query_to_dict("ids[]=7") == {"ids": ["7"]}

    def test_urlencoded_body_nests(self) -> None:
        body = b"profile[first]=Ada&profile[last]=Lovelace"
        assert decode_body("application/x-www-form-urlencoded", body) == {
            "profile": {"first": "Ada", "last": "Lovelace"}
        }


def _multipart(boundary: str, *parts: tuple[str, str, str | None, bytes]) -> bytes:
    lines: list[bytes] = []
    for name, content_type, filename, content in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        lines.append(f"--{boundary}\r\n".encode())
        lines.append(f"Content-Disposition: {disposition}\r\n".encode())
        if content_type:
            lines.append(f"Content-Type: {content_type}\r\n".encode())
        lines.append(b"\r\n" + content + b"\r\n")
    lines.append(f"--{boundary}--\r\n".encode())
    return b"".join(lines)


class TestMultipart:
    def test_fields_and_files(self) -> None:
        body = _multipart(
            "XyZ",
            ("user[name]", "", None, b"ada"),
            ("tags[]", "", None, b"a"),
            ("tags[]", "", None, b"b"),
            ("avatar", "image/png", "me.png", b"\x89PNG"),
        )

        data = decode_body("multipart/form-data; boundary=XyZ", body)

        assert data["user"] == {"name": "ada"}
        assert data["tags"] == ["a", "b"]
        avatar = data["avatar"]
        assert isinstance(avatar, UploadFile)
        assert avatar.filename == "me.png"
        assert avatar.content_type == "image/png"
        assert avatar.content == b"\x89PNG"
        assert avatar.size == 4

    def test_missing_boundary_decodes_empty(self) -> None:
        assert decode_body("multipart/form-data", b"whatever") == {}

    async def test_request_load_decodes_multipart(self) -> None:
        body = _multipart("b0und", ("title", "", None, b"hello"))
        request = Request(
            method="POST",
            headers={"content-type": "multipart/form-data; boundary=b0und"},
            _receive=_receiver(body),
        )
        await request.load()
        assert request.post == {"title": "hello"}


class TestRequest:
    def test_from_asgi(self) -> None:
        scope = {
            "type": "http",
            "method": "post",
            "path": "/user/1",
            "query_string": b"x=1",
            "headers": [(b"Content-Type", b"application/json")],
        }
        request = Request.from_asgi(scope, _receiver(b""))
        assert request.method == "POST"
        assert request.event == "POST /user/1"
        assert request.url == "/user/1?x=1"
        assert request.query == {"x": "1"}
        assert request.mimetype == "application/json"

    async def test_load_reads_chunks_once(self) -> None:
        request = Request(
            method="POST",
            headers={"content-type": "application/json"},
            _receive=_receiver(b'{"name":', b' "ada"}'),
        )
        assert await request.load() == b'{"name": "ada"}'
        assert request.post == {"name": "ada"}
        # receive is exhausted; the cached body is returned
        assert await request.load() == b'{"name": "ada"}'

    def test_bind_replaces_captures(self) -> None:
        request = Request()
        request.bind(PatternMatch(args=["a"], params={"id": "1"}))
        request.bind(PatternMatch(args=[], params={"slug": "x"}))
        assert request.params == {"slug": "x"}
        assert request.args == []

    def test_data_merges_sources(self) -> None:
        request = Request(query={"a": "q", "b": "q"}, post={"b": "p"}, params={"c": "r"})
        assert request.data == {"a": "q", "b": "p", "c": "r"}


class TestResponse:
    def test_unhandled_by_default(self) -> None:
        assert not Response().handled

    def test_stop_sets_abort_signal(self) -> None:
        response = Response()
        response.stop()
        assert response.aborted

    def test_text(self) -> None:
        response = Response().set_text("hi")
        assert response.render() == (200, "text/plain", b"hi")
        assert response.status == "OK"

    def test_json_verbatim(self) -> None:
        code, mimetype, body = Response().set_json([1, 2]).render()
        assert (code, mimetype) == (200, "application/json")
        assert json.loads(body) == [1, 2]

    def test_results_envelope(self) -> None:
        code, mimetype, body = Response().set_results({"id": 1}, total=3).render()
        assert mimetype == "application/json"
        assert json.loads(body) == {
            "code": 200,
            "status": "OK",
            "results": {"id": 1},
            "total": 3,
        }

    def test_error_envelope(self) -> None:
        response = Response().set_error("Invalid", {"name": "required"})
        code, _, body = response.render()
        assert code == 400
        assert json.loads(body) == {
            "code": 400,
            "status": "Bad Request",
            "error": "Invalid",
            "errors": {"name": "required"},
        }

    def test_redirect(self) -> None:
        response = Response().redirect("/login")
        assert response.code == 302
        assert response.headers["Location"] == "/login"
