"""Manifest builder.

Compiles a ``BuildtimeRouter``'s registrations into content-addressed
bundles plus one JSON manifest:

1. each key's tasks are ordered by priority (stable),
2. the ordered entry list is hashed into the bundle id, so identical
   chains share one bundle no matter how many keys use them,
3. one virtual module per id is generated by the transpiler,
4. the bundler receives every virtual module in a single call,
5. the manifest lists one ``BuildResult`` per key.

A bundler failure aborts the build before the manifest is written.
"""

import hashlib
import json as json_module
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ingest.build.bundler import Bundler, BundleOutput, PythonBundler
from ingest.build.router import BuildtimeRouter
from ingest.build.transpile import transpile as default_transpile
from ingest.build.types import BuildInfo, BuildResult, TranspileInfo, Transpiler
from ingest.config import IngestConfig
from ingest.errors import BuildError, ManifestError
from ingest.filesystem import FileSystem, LocalFileSystem
from ingest.routing.queue import TaskQueue

logger = logging.getLogger("ingest.build")

ID_LENGTH = 16


def ordered_actions(info: BuildInfo) -> tuple[str, ...]:
    """Entry references of *info* in dispatch order."""
    queue = TaskQueue[str]()
    for task in info.tasks:
        queue.add(task.entry, task.priority)
    return tuple(queue)


def content_id(actions: Iterable[str]) -> str:
    """Deterministic id for an ordered chain of entry references."""
    encoded = json_module.dumps(list(actions), separators=(",", ":"))
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
    return digest[:ID_LENGTH]


def serialize_manifest(results: Iterable[BuildResult], *, minify: bool = False) -> str:
    """Encode results as a JSON array. Patterns become ``/body/flags``."""
    data = [result.to_dict() for result in results]
    if minify:
        return json_module.dumps(data, separators=(",", ":"))
    return json_module.dumps(data, indent=2)


def load_manifest(text: str) -> list[BuildResult]:
    """Decode a manifest. All elements parse, or ``ManifestError`` is raised."""
    try:
        data: Any = json_module.loads(text)
    except (ValueError, RecursionError) as exc:
        msg = f"Manifest is not valid JSON: {exc}"
        raise ManifestError(msg) from exc
    if not isinstance(data, list):
        msg = f"Manifest must be a JSON array, got {type(data).__name__}"
        raise ManifestError(msg)
    return [BuildResult.from_dict(item) for item in data]


@dataclass(frozen=True, slots=True)
class BuildOutput:
    """What one build produced."""

    results: tuple[BuildResult, ...]
    artifacts: BundleOutput
    sources: Mapping[str, str]
    manifest: Path


class Manifest:
    """Build-time compiler from router registrations to a manifest.

    Usage::

        router = BuildtimeRouter(FileLoader(root))
        router.get("/user/:id", "routes/user.py")
        output = Manifest(router, IngestConfig(cwd=root)).build()
    """

    __slots__ = ("bundler", "config", "fs", "router")

    def __init__(
        self,
        router: BuildtimeRouter,
        config: IngestConfig | None = None,
        *,
        bundler: Bundler | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self.router = router
        self.config = config or IngestConfig()
        self.fs: FileSystem = fs or LocalFileSystem()
        self.bundler: Bundler = bundler or PythonBundler(self.fs, minify=self.config.minify)

    @property
    def build_path(self) -> Path:
        return self.config.build_path

    @property
    def path(self) -> Path:
        return self.config.manifest_path

    def compile(self, transpile: Transpiler = default_transpile) -> tuple[list[BuildResult], dict[str, str]]:
        """Derive results and virtual sources without touching the disk."""
        results: list[BuildResult] = []
        sources: dict[str, str] = {}
        for info in self.router.builds:
            actions = ordered_actions(info)
            build_id = content_id(actions)
            entry = str(self.build_path / f"{build_id}.py")
            if entry not in sources:
                source = transpile(
                    TranspileInfo(
                        id=build_id,
                        kind=info.kind,
                        method=info.method,
                        event_key=info.event_key,
                        route_pattern=info.route_pattern,
                        pattern=info.pattern,
                        actions=actions,
                    )
                )
                if not isinstance(source, str):
                    msg = f"Transpiler returned {type(source).__name__} for {info.event_key!r}"
                    raise BuildError(msg)
                sources[entry] = source
            results.append(
                BuildResult(
                    id=build_id,
                    kind=info.kind,
                    method=info.method,
                    event_key=info.event_key,
                    route_pattern=info.route_pattern,
                    entry=entry,
                    pattern=info.pattern,
                )
            )
        return results, sources

    def build(self, transpile: Transpiler = default_transpile) -> BuildOutput:
        """Bundle every unique chain and write the manifest.

        Raises ``BuildError`` (``BundleError`` for compile failures) with
        nothing persisted.
        """
        results, sources = self.compile(transpile)
        artifacts = self.bundler.bundle(sources, self.build_path)
        self.fs.mkdir(self.build_path)
        self.fs.write_text(self.path, serialize_manifest(results, minify=self.config.minify))
        logger.info(
            "Built %d route(s) into %d bundle(s) at %s",
            len(results),
            len(sources),
            self.path,
        )
        return BuildOutput(
            results=tuple(results),
            artifacts=artifacts,
            sources=sources,
            manifest=self.path,
        )

    def to_list(self) -> list[dict[str, Any]]:
        """Current registrations as manifest elements (no bundling)."""
        results, _ = self.compile()
        return [result.to_dict() for result in results]

    def to_json(self, minify: bool = False) -> str:
        results, _ = self.compile()
        return serialize_manifest(results, minify=minify)
