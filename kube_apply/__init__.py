"""
kube-apply applies Kubernetes manifests as nodes of a provisioning plan.
"""

from . import apply  # noqa: F401

__all__ = [
    "apply",
    "command",
    "exceptions",
    "fingerprint",
    "manifest",
    "namespace",
    "plan",
    "source",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
