"""Default source generator for bundles — plain Python strings.

No template engine here: ``str.format()`` substitution into one module
template. Entries are embedded with ``repr()`` so any path survives
quoting. Endpoint bundles run their chain with the request/response
hook events; event bundles do not.
"""

from ingest.build.types import TranspileInfo

BUNDLE_PY = '''\
"""Bundle {id} for {kind} {event_key!r}.

Generated by ingest. Do not edit.
"""

from pathlib import Path

from ingest.runtime import load_actions, run_chain

ACTIONS = load_actions(
    (
{entries}
    ),
    Path(__file__).resolve().parent,
)


async def handle(request, response):
    return await run_chain(ACTIONS, request, response, hooks={hooks})
'''


def transpile(info: TranspileInfo) -> str:
    """Generate a bundle module that runs ``info.actions`` in order."""
    entries = "\n".join(f"        {entry!r}," for entry in info.actions)
    return BUNDLE_PY.format(
        id=info.id,
        kind=info.kind,
        event_key=info.event_key,
        entries=entries,
        hooks=info.kind == "endpoint",
    )
