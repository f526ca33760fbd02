"""Produce the change-detection fingerprint of a resource configuration.

The fingerprint is a plain mapping the plan engine stores and compares across
runs. It is derived from the configuration alone: no file is read, no URL is
fetched and the cluster is never consulted. Opaque manifest content has no
field in `State` and never contributes to the fingerprint.
"""

from typing import Any

from .manifest import Inline, Local, Opaque, Remote, ResourceSpec, State

__all__ = [
    "fingerprint",
    "resource_state",
]


def resource_state(spec: ResourceSpec) -> State:
    """Return the serializable state of the resource configuration."""
    source = spec.source
    manifest: bytes | None = None
    manifest_path: str | None = None
    manifest_url: str | None = None
    if isinstance(source, Inline):
        manifest = source.content
    elif isinstance(source, Remote):
        manifest_url = source.url
    elif isinstance(source, Local):
        manifest_path = str(source.path)
    elif not isinstance(source, Opaque):
        raise TypeError(f"Unsupported manifest source {type(source).__name__}")
    return State(
        manifest=manifest,
        manifest_path=manifest_path,
        manifest_url=manifest_url,
        namespace=spec.namespace,
        wait_condition=spec.wait_condition,
    )


def fingerprint(spec: ResourceSpec) -> dict[str, Any]:
    """Return the fingerprint mapping of the resource configuration."""
    return resource_state(spec).to_dict()
