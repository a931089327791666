"""Ingest — event routing compiled ahead of time into deployable bundles.

Register routes and events against entry references, build them into
content-addressed bundles plus a JSON manifest, then serve from the
manifest alone.

Basic usage::

    from ingest import IngestConfig, http

    server = http(IngestConfig(cwd="."))
    server.get("/user/:id", "routes/user.py")
    server.build()

    app = server.gateway()  # ASGI application

In-process routing without a build::

    from ingest import EventRouter

    router = EventRouter()
    router.get("/user/:id", load_user)
    await router.emit("GET /user/42", request, response)
"""

__version__ = "0.1.0"
__all__ = [
    "BuildError",
    "BuildtimeRouter",
    "EventRouter",
    "Gateway",
    "IngestConfig",
    "IngestError",
    "Manifest",
    "PatternError",
    "Request",
    "Response",
    "compile_pattern",
    "http",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "BuildError": "ingest.errors",
    "BuildtimeRouter": "ingest.build.router",
    "EventRouter": "ingest.routing.router",
    "Gateway": "ingest.gateway.gateway",
    "IngestConfig": "ingest.config",
    "IngestError": "ingest.errors",
    "Manifest": "ingest.build.manifest",
    "PatternError": "ingest.errors",
    "Request": "ingest.http.request",
    "Response": "ingest.http.response",
    "compile_pattern": "ingest.routing.pattern",
    "http": "ingest.factory",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import ingest`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    import importlib

    return getattr(importlib.import_module(module_name), name)
