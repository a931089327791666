"""Shared type aliases used across ingest modules."""

from collections.abc import Callable
from typing import Any, Literal, TypeAlias

# Task body — (request, response) -> None | False, sync or async
TaskHandler: TypeAlias = Callable[..., Any]

# In-process entry classification
EntryKind: TypeAlias = Literal["endpoint", "event"]

# Handler identifier at build time: "package.module:attr" or "path/file.py:attr"
EntryRef: TypeAlias = str
