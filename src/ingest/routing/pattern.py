"""Route pattern compiler.

Translates path syntax into anchored matchers:

    ``/users``          literal segment
    ``/users/:id``      named single-segment capture (``params["id"]``)
    ``/users/*``        anonymous single-segment capture (``args``)
    ``/files/**``       anonymous capture of one or more segments (``args``,
                        split on ``/``)

Compilation is grammar-driven: the pattern is tokenized first, then the
regex is built token by token. Two captures with no literal between them
(``/*/**``, ``/:id*``) are rejected at compile time.

A ``Matcher`` crosses the build/run boundary as text: ``serialize()``
produces ``/body/flags`` and ``parse()`` reads it back into an equivalent
matcher.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from ingest.errors import PatternError

_NAME_CHARS = re.compile(r"[A-Za-z0-9_\-]+")

# Capture bodies per token kind
_SEGMENT = r"[^/]+"
_SEGMENTS = r"[^/]+(?:/[^/]+)*"

# Regex flag letters carried by the serialized form. "g" is accepted and
# ignored: only the first match is ever used.
_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "a": re.ASCII,
}

# Method prefix for routes registered under ALL
ANY_METHOD = "ALL"

# Param names may contain "-" or start with a digit, which Python group
# names cannot. Such names are stored as "_p_" + name with "_" doubled and
# "-" written as "_d", so the serialized form still carries them.
_MANGLE_PREFIX = "_p_"


class TokenKind(Enum):
    LITERAL = "literal"
    NAMED = "named"
    STAR = "star"
    GLOBSTAR = "globstar"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical unit of a route pattern."""

    kind: TokenKind
    value: str = ""

    @property
    def is_capture(self) -> bool:
        return self.kind is not TokenKind.LITERAL


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """Captured values from a successful match.

    ``args`` holds anonymous captures in order, with multi-segment captures
    split into one item per segment. ``params`` holds named captures.
    """

    args: list[str] = field(default_factory=list)
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Matcher:
    """A compiled pattern.

    ``groups`` has one item per capture group in the regex: the param name
    for named captures, ``None`` for anonymous ones.
    """

    regex: re.Pattern[str]
    groups: tuple[str | None, ...]
    source: str = ""

    def match(self, candidate: str) -> PatternMatch | None:
        return match(self, candidate)

    def __str__(self) -> str:
        return serialize(self)


def encode_name(name: str) -> str:
    """Return a regex group name that stands for param *name*."""
    if name.isidentifier() and not name.startswith(_MANGLE_PREFIX):
        return name
    return _MANGLE_PREFIX + name.replace("_", "__").replace("-", "_d")


def decode_name(group: str) -> str:
    """Inverse of ``encode_name``. Unmangled group names pass through."""
    if not group.startswith(_MANGLE_PREFIX):
        return group
    body = group[len(_MANGLE_PREFIX) :]
    chars: list[str] = []
    i = 0
    while i < len(body):
        if body[i] != "_":
            chars.append(body[i])
            i += 1
            continue
        escape = body[i + 1 : i + 2]
        if escape == "_":
            chars.append("_")
        elif escape == "d":
            chars.append("-")
        else:
            return group
        i += 2
    return "".join(chars)


def tokenize(pattern: str) -> list[Token]:
    """Split *pattern* into literal and capture tokens.

    Raises ``PatternError`` for a bare ``:``, a run of three or more ``*``,
    or two adjacent captures.
    """
    tokens: list[Token] = []
    literal: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == ":":
            name = _NAME_CHARS.match(pattern, i + 1)
            if name is None:
                raise PatternError(pattern, f"':' at offset {i} is not followed by a name")
            token = Token(TokenKind.NAMED, name.group())
            i = name.end()
        elif char == "*":
            end = i
            while end < len(pattern) and pattern[end] == "*":
                end += 1
            run = end - i
            if run > 2:
                raise PatternError(pattern, f"'{'*' * run}' at offset {i} is not a wildcard")
            token = Token(TokenKind.STAR if run == 1 else TokenKind.GLOBSTAR)
            i = end
        else:
            literal.append(char)
            i += 1
            continue

        if literal:
            tokens.append(Token(TokenKind.LITERAL, "".join(literal)))
            literal = []
        elif tokens and tokens[-1].is_capture:
            raise PatternError(
                pattern, f"captures must be separated by a literal (offset {i - 1})"
            )
        tokens.append(token)

    if literal:
        tokens.append(Token(TokenKind.LITERAL, "".join(literal)))
    return tokens


def _build(pattern: str, prefix: str, tokens: list[Token]) -> Matcher:
    parts = ["^", prefix]
    groups: list[str | None] = []
    seen: set[str] = set()
    for token in tokens:
        if token.kind is TokenKind.LITERAL:
            parts.append(re.escape(token.value))
        elif token.kind is TokenKind.NAMED:
            if token.value in seen:
                raise PatternError(pattern, f"duplicate parameter ':{token.value}'")
            seen.add(token.value)
            parts.append(f"(?P<{encode_name(token.value)}>{_SEGMENT})")
            groups.append(token.value)
        elif token.kind is TokenKind.STAR:
            parts.append(f"({_SEGMENT})")
            groups.append(None)
        else:
            parts.append(f"({_SEGMENTS})")
            groups.append(None)
    parts.append(r"\Z")
    try:
        regex = re.compile("".join(parts))
    except re.error as exc:
        raise PatternError(pattern, str(exc)) from exc
    return Matcher(regex=regex, groups=tuple(groups), source=pattern)


def compile_pattern(pattern: str) -> Matcher:
    """Compile a path pattern into an anchored matcher."""
    return _build(pattern, "", tokenize(pattern))


def compile_route(method: str, path: str) -> Matcher:
    """Compile the event key ``"{METHOD} {path}"`` for an endpoint.

    ``ALL`` matches any upper-case method name.
    """
    method = method.upper()
    prefix = "[A-Z]+ " if method == ANY_METHOD else re.escape(f"{method} ")
    return _build(f"{method} {path}", prefix, tokenize(path))


def from_regex(regex: re.Pattern[str]) -> Matcher:
    """Wrap an already compiled regex so it follows the Matcher contract."""
    if not isinstance(regex.pattern, str):
        raise PatternError(repr(regex.pattern), "byte patterns cannot be serialized")
    names = {index: decode_name(name) for name, index in regex.groupindex.items()}
    groups = tuple(names.get(index) for index in range(1, regex.groups + 1))
    return Matcher(regex=regex, groups=groups, source=regex.pattern)


def match(matcher: Matcher, candidate: str) -> PatternMatch | None:
    """Match *candidate* against *matcher*.

    Returns ``None`` when it does not match. Only the first match counts.
    """
    found = matcher.regex.search(candidate)
    if found is None:
        return None
    result = PatternMatch()
    for name, value in zip(matcher.groups, found.groups(), strict=True):
        if value is None:
            continue
        if name is not None:
            result.params[name] = value
        elif "/" in value:
            result.args.extend(value.split("/"))
        else:
            result.args.append(value)
    return result


def serialize(matcher: Matcher) -> str:
    """Render *matcher* as ``/body/flags``."""
    flags = "".join(
        letter for letter, flag in _FLAGS.items() if matcher.regex.flags & flag
    )
    return f"/{matcher.regex.pattern}/{flags}"


def parse(text: str) -> Matcher:
    """Rebuild a matcher from its ``/body/flags`` form.

    Raises ``PatternError`` if *text* is not delimited, carries an unknown
    flag, or the body does not compile.
    """
    first = text.find("/")
    last = text.rfind("/")
    if first != 0 or last == first:
        raise PatternError(text, "expected '/body/flags'")
    body = text[first + 1 : last]
    flags = 0
    for letter in text[last + 1 :]:
        if letter == "g":
            continue
        if letter not in _FLAGS:
            raise PatternError(text, f"unknown flag {letter!r}")
        flags |= _FLAGS[letter]
    try:
        regex = re.compile(body, flags)
    except re.error as exc:
        raise PatternError(text, str(exc)) from exc
    return from_regex(regex)
