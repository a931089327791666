"""Bundler seam and the default Python bundler.

The build step hands the bundler every virtual source at once together
with an output directory. A bundler either emits all files or raises
``BundleError`` without writing anything.
"""

import ast
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ingest.errors import BundleError
from ingest.filesystem import FileSystem, LocalFileSystem

logger = logging.getLogger("ingest.build")


@dataclass(frozen=True, slots=True)
class BundleOutput:
    """Files a bundler wrote, in input order."""

    files: tuple[Path, ...]


class Bundler(Protocol):
    def bundle(self, sources: Mapping[str, str], outdir: Path) -> BundleOutput: ...


class PythonBundler:
    """Checks every virtual module compiles, then writes them to *outdir*.

    Virtual sources are resolved from the mapping, never from disk. With
    ``minify=True`` each module is normalized through ``ast`` (comments and
    blank lines dropped).
    """

    __slots__ = ("fs", "minify")

    def __init__(self, fs: FileSystem | None = None, *, minify: bool = False) -> None:
        self.fs: FileSystem = fs or LocalFileSystem()
        self.minify = minify

    def _prepare(self, path: str, source: str) -> str:
        if self.minify:
            source = ast.unparse(ast.parse(source, filename=path)) + "\n"
        compile(source, path, "exec")
        return source

    def bundle(self, sources: Mapping[str, str], outdir: Path) -> BundleOutput:
        prepared: dict[Path, str] = {}
        failures: dict[str, str] = {}
        for path, source in sources.items():
            try:
                text = self._prepare(path, source)
            except SyntaxError as exc:
                failures[path] = f"line {exc.lineno}: {exc.msg}"
                continue
            prepared[outdir / Path(path).name] = text

        if failures:
            raise BundleError(failures)

        self.fs.mkdir(outdir)
        for destination, text in prepared.items():
            self.fs.write_text(destination, text)
        logger.debug("Wrote %d bundle(s) to %s", len(prepared), outdir)
        return BundleOutput(files=tuple(prepared))
