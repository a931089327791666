"""Build-time records and the manifest element they produce.

``BuildInfo`` exists only inside the build process. ``BuildResult`` is
the unit persisted in the manifest and the only record that reaches the
gateway.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from ingest._internal.types import EntryKind, EntryRef
from ingest.errors import ManifestError, PatternError
from ingest.routing.pattern import Matcher, parse, serialize

# Manifest wire names for each in-process kind
WireKind: TypeAlias = Literal["endpoint", "function"]
_TO_WIRE: dict[str, WireKind] = {"endpoint": "endpoint", "event": "function"}
_FROM_WIRE: dict[str, EntryKind] = {"endpoint": "endpoint", "function": "event", "event": "event"}


@dataclass(frozen=True, slots=True)
class BuildTask:
    """One action reference and its priority."""

    entry: EntryRef
    priority: int = 0


@dataclass(slots=True)
class BuildInfo:
    """Everything registered under one event key."""

    kind: EntryKind
    method: str
    event_key: str
    route_pattern: str
    pattern: Matcher | None = None
    tasks: list[BuildTask] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TranspileInfo:
    """What a transpiler receives for each unique task chain."""

    id: str
    kind: EntryKind
    method: str
    event_key: str
    route_pattern: str
    pattern: Matcher | None
    actions: tuple[str, ...]


Transpiler: TypeAlias = Callable[[TranspileInfo], str]


@dataclass(frozen=True, slots=True)
class BuildResult:
    """One manifest element: a key and the bundle that serves it."""

    id: str
    kind: EntryKind
    method: str
    event_key: str
    route_pattern: str
    entry: str
    pattern: Matcher | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": _TO_WIRE[self.kind],
            "method": self.method,
            "eventKey": self.event_key,
            "routePattern": self.route_pattern,
        }
        if self.pattern is not None:
            data["pattern"] = serialize(self.pattern)
        data["entry"] = self.entry
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "BuildResult":
        """Parse one manifest element.

        Raises ``ManifestError`` on a missing field, a wrong type, an
        unknown kind, or a pattern that does not parse.
        """
        if not isinstance(data, dict):
            msg = f"Manifest element must be an object, got {type(data).__name__}"
            raise ManifestError(msg)
        values: dict[str, str] = {}
        for name in ("id", "kind", "method", "eventKey", "routePattern", "entry"):
            value = data.get(name)
            if not isinstance(value, str):
                msg = f"Manifest element field {name!r} must be a string"
                raise ManifestError(msg)
            values[name] = value
        kind = _FROM_WIRE.get(values["kind"])
        if kind is None:
            msg = f"Unknown manifest kind {values['kind']!r}"
            raise ManifestError(msg)
        pattern: Matcher | None = None
        raw = data.get("pattern")
        if raw is not None:
            if not isinstance(raw, str):
                msg = "Manifest element field 'pattern' must be a string"
                raise ManifestError(msg)
            try:
                pattern = parse(raw)
            except PatternError as exc:
                raise ManifestError(str(exc)) from exc
        return cls(
            id=values["id"],
            kind=kind,
            method=values["method"],
            event_key=values["eventKey"],
            route_pattern=values["routePattern"],
            entry=values["entry"],
            pattern=pattern,
        )
