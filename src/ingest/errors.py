"""Ingest exception hierarchy.

Shared across the router, the build step, and the gateway so every module
raises and catches the same types.
"""

from collections.abc import Mapping


class IngestError(Exception):
    """Base for all ingest-specific errors."""


class ConfigurationError(IngestError):
    """Raised when configuration or a registration is invalid."""


class PatternError(IngestError):
    """Raised when a route pattern or its serialized form is malformed.

    Surfaces synchronously at registration time, never at request time.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class EntryError(IngestError):
    """Raised when an action or bundle entry cannot be loaded."""


class ManifestError(IngestError):
    """Raised when a manifest document does not describe a valid build."""


class BuildError(IngestError):
    """Raised when a build is aborted. Nothing is persisted."""


class BundleError(BuildError):
    """The bundler rejected one or more virtual sources.

    ``failures`` maps each failing virtual path to its compiler message.
    """

    def __init__(self, failures: Mapping[str, str]) -> None:
        self.failures = dict(failures)
        lines = [f"  {path}: {message}" for path, message in sorted(self.failures.items())]
        super().__init__(
            f"Bundling failed for {len(self.failures)} file(s):\n" + "\n".join(lines)
        )
