"""Tests for the resource fingerprint."""

from pathlib import Path

from kube_apply.fingerprint import fingerprint, resource_state
from kube_apply.manifest import Inline, Local, Opaque, Remote, ResourceSpec, State

CONFIG_MAP = b"kind: ConfigMap\nmetadata:\n  name: x\n"


def test_opaque_excluded() -> None:
    """Test specs differing only in opaque content share a fingerprint."""
    first = ResourceSpec(Opaque.of(b"password: one"), namespace="prod")
    second = ResourceSpec(Opaque.of(b"password: two"), namespace="prod")
    assert fingerprint(first) == fingerprint(second)
    assert fingerprint(first) == {"namespace": "prod"}


def test_opaque_no_fields() -> None:
    """Test opaque content alone produces an empty fingerprint."""
    assert fingerprint(ResourceSpec(Opaque.of(b"password: one"))) == {}


def test_inline_included() -> None:
    """Test specs differing in inline content have different fingerprints."""
    first = ResourceSpec(Inline(CONFIG_MAP))
    second = ResourceSpec(Inline(CONFIG_MAP.replace(b"x", b"y")))
    assert fingerprint(first) != fingerprint(second)
    assert set(fingerprint(first)) == {"manifest"}
    assert State.from_dict(fingerprint(first)).manifest == CONFIG_MAP


def test_remote() -> None:
    """Test the fingerprint of a remote manifest."""
    spec = ResourceSpec(
        Remote("https://example.com/crds.yaml"),
        wait_condition="condition=established",
    )
    assert fingerprint(spec) == {
        "manifestURL": "https://example.com/crds.yaml",
        "afterApplyWaitsFor": "condition=established",
    }


def test_local() -> None:
    """Test the fingerprint of a local manifest does not read the file."""
    spec = ResourceSpec(Local(Path("/does/not/exist.yaml")), namespace="prod")
    assert fingerprint(spec) == {
        "manifestPath": "/does/not/exist.yaml",
        "namespace": "prod",
    }


def test_deterministic() -> None:
    """Test equal specs always produce equal fingerprints."""
    spec = ResourceSpec(Inline(CONFIG_MAP), namespace="prod")
    assert fingerprint(spec) == fingerprint(
        ResourceSpec(Inline(bytes(CONFIG_MAP)), namespace="prod")
    )
    assert resource_state(spec) == resource_state(spec)
