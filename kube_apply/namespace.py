"""Library for moving the objects of a manifest into a target namespace.

This example moves a ConfigMap into the `prod` namespace:
```python
from kube_apply import namespace

content = namespace.with_namespace(b"kind: ConfigMap\\nmetadata:\\n  name: x\\n", "prod")
```

An empty result means the manifest has nothing to rewrite, for example when it
only contains cluster-scoped objects like a CustomResourceDefinition.
"""

from collections.abc import Callable
import logging
from typing import Any

import yaml

from .exceptions import RewriteError

__all__ = [
    "Rewriter",
    "with_namespace",
]

_LOGGER = logging.getLogger(__name__)


Rewriter = Callable[[bytes, str], bytes]
"""Rewrites manifest content into a namespace, returning b"" when not applicable."""


CLUSTER_SCOPED_KINDS = frozenset(
    {
        "APIService",
        "CertificateSigningRequest",
        "ClusterRole",
        "ClusterRoleBinding",
        "CSIDriver",
        "CSINode",
        "CustomResourceDefinition",
        "IngressClass",
        "MutatingWebhookConfiguration",
        "Namespace",
        "Node",
        "PersistentVolume",
        "PriorityClass",
        "RuntimeClass",
        "StorageClass",
        "ValidatingWebhookConfiguration",
        "VolumeAttachment",
    }
)


def is_namespaced(doc: dict[str, Any]) -> bool:
    """Return True if the document looks like a namespace-scoped object."""
    if not isinstance(doc, dict) or not (kind := doc.get("kind")):
        return False
    if kind in CLUSTER_SCOPED_KINDS:
        return False
    metadata = doc.get("metadata")
    return isinstance(metadata, dict) and "name" in metadata


def update_namespace(doc: dict[str, Any], namespace: str) -> dict[str, Any]:
    """Update the namespace of the specified document."""
    doc["metadata"]["namespace"] = namespace
    return doc


def with_namespace(content: bytes, namespace: str) -> bytes:
    """Return the manifest with every namespace-scoped object moved to namespace.

    Returns b"" when no object in the manifest is namespace-scoped.
    """
    try:
        docs = [doc for doc in yaml.safe_load_all(content) if doc is not None]
    except yaml.YAMLError as err:
        raise RewriteError(f"Unable to parse manifest: {err}") from err

    updated = 0
    for doc in docs:
        if is_namespaced(doc):
            update_namespace(doc, namespace)
            updated += 1
    if not updated:
        _LOGGER.debug("No namespace-scoped objects to move to %s", namespace)
        return b""
    _LOGGER.debug("Moved %d objects to namespace %s", updated, namespace)
    if len(docs) == 1:
        return yaml.dump(docs[0], sort_keys=False).encode("utf-8")
    return yaml.dump_all(docs, sort_keys=False, explicit_start=True).encode("utf-8")
