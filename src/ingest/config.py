"""Ingest configuration.

IngestConfig is a frozen dataclass: immutable after creation, threaded
explicitly into the build step and the gateway. Nothing reads the process
working directory after construction.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ingest.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class IngestConfig:
    """Build and serve configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = IngestConfig(cwd="/srv/app", build_dir=".http", port=3000)
    """

    # Paths
    cwd: str | Path = field(default_factory=Path.cwd)
    build_dir: str | Path = ".build"
    manifest_name: str = "manifest.json"

    # Bundling
    minify: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 1
    log_level: str = "info"
    # Timeouts belong to the listener; dispatch itself never times out
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.manifest_name or Path(self.manifest_name).name != self.manifest_name:
            msg = f"manifest_name must be a bare file name, got {self.manifest_name!r}"
            raise ConfigurationError(msg)
        if self.workers < 1:
            msg = f"workers must be at least 1, got {self.workers}"
            raise ConfigurationError(msg)

    @property
    def root(self) -> Path:
        """The project root every relative path resolves against."""
        return Path(self.cwd).resolve()

    @property
    def build_path(self) -> Path:
        """Absolute directory that receives bundles and the manifest."""
        build_dir = Path(self.build_dir)
        if build_dir.is_absolute():
            return build_dir
        return self.root / build_dir

    @property
    def manifest_path(self) -> Path:
        """Absolute path of the serialized manifest."""
        return self.build_path / self.manifest_name
