"""File access and entry loading.

The build step and the gateway never touch ``open()`` directly: they go
through a ``FileSystem`` so tests and hosts can substitute their own.
``FileLoader`` resolves relative paths against an explicit root and
imports action entries.

Entry references take two forms::

    "myapp.routes.users:load"      # importable module + attribute
    "routes/users.py:load"         # file path (relative to root) + attribute

The attribute defaults to ``handle`` when omitted.
"""

import hashlib
import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from ingest.errors import EntryError

DEFAULT_ATTRIBUTE = "handle"


@runtime_checkable
class FileSystem(Protocol):
    """Minimal file operations the build step and gateway need."""

    def exists(self, path: str | Path) -> bool: ...

    def read_text(self, path: str | Path) -> str: ...

    def write_text(self, path: str | Path, content: str) -> None: ...

    def mkdir(self, path: str | Path) -> None: ...


class LocalFileSystem:
    """``FileSystem`` backed by the local disk."""

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def read_text(self, path: str | Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: str | Path, content: str) -> None:
        Path(path).write_text(content, encoding="utf-8")

    def mkdir(self, path: str | Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)


def split_entry(entry: str) -> tuple[str, str]:
    """Split an entry reference into ``(target, attribute)``."""
    target, sep, attribute = entry.rpartition(":")
    if sep and attribute.isidentifier():
        return target, attribute
    return entry, DEFAULT_ATTRIBUTE


def load_module(path: str | Path) -> ModuleType:
    """Execute the Python file at *path* as a fresh, unregistered module."""
    path = Path(path)
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    spec = importlib.util.spec_from_file_location(f"_ingest_{path.stem}_{digest}", path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load module from {str(path)!r}"
        raise EntryError(msg)
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except FileNotFoundError as exc:
        msg = f"Module file {str(path)!r} does not exist"
        raise EntryError(msg) from exc
    return module


class FileLoader:
    """Resolves paths against *root* and imports entries."""

    __slots__ = ("fs", "root")

    def __init__(self, root: str | Path, fs: FileSystem | None = None) -> None:
        self.root = Path(root)
        self.fs: FileSystem = fs or LocalFileSystem()

    def absolute(self, path: str | Path) -> Path:
        """Resolve *path* against the loader root."""
        path = Path(path)
        if path.is_absolute():
            return path
        return (self.root / path).resolve()

    def normalize(self, entry: str) -> str:
        """Return *entry* with any file path made absolute.

        Build output must not depend on the working directory of the
        process that later loads it.
        """
        target, attribute = split_entry(entry)
        if target.endswith(".py"):
            return f"{self.absolute(target)}:{attribute}"
        return f"{target}:{attribute}"

    def import_entry(self, entry: str) -> Any:
        """Load the callable an entry reference points to.

        Raises ``EntryError`` if the module or attribute is missing.
        """
        target, attribute = split_entry(entry)
        if target.endswith(".py"):
            module = load_module(self.absolute(target))
        else:
            try:
                module = importlib.import_module(target)
            except ModuleNotFoundError as exc:
                msg = f"Cannot import {target!r} for entry {entry!r}"
                raise EntryError(msg) from exc
        try:
            return getattr(module, attribute)
        except AttributeError as exc:
            msg = f"Entry {entry!r} has no attribute {attribute!r}"
            raise EntryError(msg) from exc
