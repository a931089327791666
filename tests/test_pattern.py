"""Tests for ingest.routing.pattern — tokenizer, matcher, text form."""

import re

import pytest

from ingest.errors import PatternError
from ingest.routing.pattern import (
    PatternMatch,
    TokenKind,
    compile_pattern,
    compile_route,
    from_regex,
    match,
    parse,
    serialize,
    tokenize,
)


class TestTokenize:
    def test_literal_only(self) -> None:
        tokens = tokenize("/users/all")
        assert [t.kind for t in tokens] == [TokenKind.LITERAL]
        assert tokens[0].value == "/users/all"

    def test_mixed(self) -> None:
        tokens = tokenize("/user/:id/files/**")
        assert [t.kind for t in tokens] == [
            TokenKind.LITERAL,
            TokenKind.NAMED,
            TokenKind.LITERAL,
            TokenKind.GLOBSTAR,
        ]
        assert tokens[1].value == "id"

    def test_name_allows_dash_and_underscore(self) -> None:
        tokens = tokenize("/:user-id_2")
        assert tokens[1].value == "user-id_2"

    def test_star(self) -> None:
        assert tokenize("/*")[1].kind is TokenKind.STAR

    @pytest.mark.parametrize(
        "pattern",
        ["/***", "/**:name", "/:a:b", "/*:id", "/:id*", "/:id**"],
    )
    def test_adjacent_or_overlong_wildcards_rejected(self, pattern: str) -> None:
        with pytest.raises(PatternError):
            tokenize(pattern)

    def test_bare_colon_rejected(self) -> None:
        with pytest.raises(PatternError, match="not followed by a name"):
            tokenize("/a/:/b")

    def test_wildcards_separated_by_literal_allowed(self) -> None:
        tokens = tokenize("/*/**")
        assert [t.kind for t in tokens] == [
            TokenKind.LITERAL,
            TokenKind.STAR,
            TokenKind.LITERAL,
            TokenKind.GLOBSTAR,
        ]


class TestCompileRoute:
    def test_named_param(self) -> None:
        found = compile_route("GET", "/user/:id").match("GET /user/42")
        assert found == PatternMatch(args=[], params={"id": "42"})

    def test_globstar_splits_segments(self) -> None:
        found = compile_route("GET", "/files/**").match("GET /files/a/b/c")
        assert found is not None
        assert found.args == ["a", "b", "c"]
        assert found.params == {}

    def test_globstar_needs_a_segment(self) -> None:
        matcher = compile_route("GET", "/files/**")
        assert matcher.match("GET /files/") is None
        assert matcher.match("GET /files") is None

    def test_star_is_single_segment(self) -> None:
        matcher = compile_route("GET", "/a/*/c")
        found = matcher.match("GET /a/b/c")
        assert found is not None
        assert found.args == ["b"]
        assert matcher.match("GET /a/b/x/c") is None

    def test_named_does_not_cross_slash(self) -> None:
        assert compile_route("GET", "/user/:id").match("GET /user/4/2") is None

    def test_method_must_match(self) -> None:
        assert compile_route("GET", "/user").match("POST /user") is None

    def test_all_matches_any_method(self) -> None:
        matcher = compile_route("ALL", "/user/:id")
        assert matcher.match("POST /user/1") is not None
        assert matcher.match("DELETE /user/1") is not None

    def test_method_is_upper_cased(self) -> None:
        assert compile_route("get", "/x").match("GET /x") is not None

    def test_anchored(self) -> None:
        matcher = compile_route("GET", "/user")
        assert matcher.match("GET /user/extra") is None
        assert matcher.match("XGET /user") is None

    def test_literal_characters_escaped(self) -> None:
        matcher = compile_route("GET", "/a.b")
        assert matcher.match("GET /a.b") is not None
        assert matcher.match("GET /axb") is None

    def test_mixed_captures_in_order(self) -> None:
        found = compile_route("GET", "/:org/*/files/**").match("GET /acme/repo/files/x/y")
        assert found == PatternMatch(args=["repo", "x", "y"], params={"org": "acme"})

    def test_duplicate_param_rejected(self) -> None:
        with pytest.raises(PatternError, match="duplicate"):
            compile_route("GET", "/:id/:id")

    def test_source_kept(self) -> None:
        assert compile_route("GET", "/user/:id").source == "GET /user/:id"


class TestCompilePattern:
    def test_no_prefix(self) -> None:
        found = compile_pattern("user.:action").match("user.created")
        assert found is not None
        assert found.params == {"action": "created"}

    def test_non_match_returns_none(self) -> None:
        assert match(compile_pattern("/a"), "/b") is None


PATTERNS = [
    ("GET", "/"),
    ("GET", "/user/:id"),
    ("POST", "/files/**"),
    ("ALL", "/a/*/c"),
    ("PUT", "/:org/*/files/**"),
    ("GET", "/with.dots/and+plus/:x"),
]

CANDIDATES = [
    "GET /",
    "GET /user/42",
    "GET /user/4/2",
    "POST /files/a/b/c",
    "POST /files/",
    "PATCH /a/b/c",
    "PUT /acme/repo/files/x/y",
    "GET /with.dots/and+plus/1",
    "GET /withxdots/and+plus/1",
]


class TestSerialization:
    @pytest.mark.parametrize(("method", "path"), PATTERNS)
    def test_round_trip_matches_identically(self, method: str, path: str) -> None:
        original = compile_route(method, path)
        restored = parse(serialize(original))
        for candidate in CANDIDATES:
            assert restored.match(candidate) == original.match(candidate), candidate

    def test_delimited_form(self) -> None:
        text = serialize(compile_route("GET", "/user/:id"))
        assert text.startswith("/^")
        assert text.endswith("/")

    def test_flags_round_trip(self) -> None:
        matcher = from_regex(re.compile(r"^user\.(\w+)$", re.IGNORECASE))
        text = serialize(matcher)
        assert text.endswith("/i")
        found = parse(text).match("USER.created")
        assert found is not None
        assert found.args == ["created"]

    def test_str_is_serialized_form(self) -> None:
        matcher = compile_route("GET", "/x")
        assert str(matcher) == serialize(matcher)

    def test_global_flag_ignored(self) -> None:
        found = parse("/(\\d+)/g").match("a1b22")
        assert found is not None
        assert found.args == ["1"]

    def test_named_groups_recovered(self) -> None:
        restored = parse(serialize(compile_route("GET", "/user/:id")))
        assert restored.groups == ("id",)

    @pytest.mark.parametrize("text", ["abc", "/abc", "x/abc/", "/abc/q", "/(/"])
    def test_malformed_text_rejected(self, text: str) -> None:
        with pytest.raises(PatternError):
            parse(text)

    @pytest.mark.parametrize(
        ("flags", "letters", "candidate"),
        [
            (re.VERBOSE, "x", "ab"),
            (re.ASCII | re.IGNORECASE, "ia", "AB"),
        ],
    )
    def test_verbose_and_ascii_flags_round_trip(
        self, flags: re.RegexFlag, letters: str, candidate: str
    ) -> None:
        matcher = from_regex(re.compile(r"^a b$" if flags & re.VERBOSE else r"^ab$", flags))
        text = serialize(matcher)
        assert text.endswith(f"/{letters}")
        assert parse(text).match(candidate) == matcher.match(candidate)
        assert matcher.match(candidate) is not None

    def test_byte_pattern_rejected(self) -> None:
        with pytest.raises(PatternError, match="byte"):
            from_regex(re.compile(rb"^a$"))  # type: ignore[arg-type]


class TestParamNames:
    @pytest.mark.parametrize(
        ("path", "candidate", "params"),
        [
            ("/user/:user-id", "GET /user/7", {"user-id": "7"}),
            ("/x/:1st", "GET /x/a", {"1st": "a"}),
            ("/:a_b/:a-b", "GET /1/2", {"a_b": "1", "a-b": "2"}),
            ("/:_p_x", "GET /v", {"_p_x": "v"}),
        ],
    )
    def test_compile_match_and_round_trip(
        self, path: str, candidate: str, params: dict[str, str]
    ) -> None:
        matcher = compile_route("GET", path)
        restored = parse(serialize(matcher))

        assert matcher.match(candidate) == PatternMatch(args=[], params=params)
        assert restored.match(candidate) == matcher.match(candidate)
        assert restored.groups == tuple(params)

    def test_plain_regex_group_names_pass_through(self) -> None:
        matcher = from_regex(re.compile(r"^(?P<_p_a_b>\w+)$"))
        assert matcher.groups == ("_p_a_b",)
