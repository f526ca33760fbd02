"""Representation of a resource that applies a manifest to the cluster.

A `ResourceSpec` names exactly one place the manifest content comes from,
using one of the `ManifestSource` variants:

```python
from kube_apply.manifest import Inline, Remote, ResourceSpec

spec = ResourceSpec(Inline(b"kind: ConfigMap\\nmetadata:\\n  name: x\\n"), namespace="prod")
crd = ResourceSpec(
    Remote("https://example.com/crds.yaml"),
    wait_condition="condition=established",
)
```

Specs may also be parsed from a plan document, which uses the same keys as
the serialized `State` of the resource plus `opaqueManifest`:

```yaml
manifestURL: https://example.com/crds.yaml
afterApplyWaitsFor: condition=established
```
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .exceptions import ApplyException, ConfigurationError

__all__ = [
    "Inline",
    "Opaque",
    "OpaqueBytes",
    "Remote",
    "Local",
    "ManifestSource",
    "ResourceSpec",
    "State",
    "ApplyOutcome",
    "ApplyPhase",
]

_LOGGER = logging.getLogger(__name__)


MANIFEST = "manifest"
OPAQUE_MANIFEST = "opaqueManifest"
MANIFEST_PATH = "manifestPath"
MANIFEST_URL = "manifestURL"
NAMESPACE = "namespace"
WAIT_CONDITION = "afterApplyWaitsFor"

_DOC_KEYS = {
    MANIFEST,
    OPAQUE_MANIFEST,
    MANIFEST_PATH,
    MANIFEST_URL,
    NAMESPACE,
    WAIT_CONDITION,
}


class OpaqueBytes:
    """Secret-bearing manifest content that is never rendered or serialized."""

    __slots__ = ("_content",)

    def __init__(self, content: bytes) -> None:
        """Initialize OpaqueBytes."""
        self._content = content

    def reveal(self) -> bytes:
        """Return the wrapped content."""
        return self._content

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OpaqueBytes):
            return NotImplemented
        return self._content == other._content

    def __hash__(self) -> int:
        return hash(self._content)

    def __repr__(self) -> str:
        return "OpaqueBytes(**redacted**)"


@dataclass(frozen=True)
class Inline:
    """Manifest content provided directly in the resource configuration."""

    content: bytes


@dataclass(frozen=True)
class Opaque:
    """Manifest content that must not appear in a serialized plan."""

    content: OpaqueBytes

    @classmethod
    def of(cls, content: bytes) -> "Opaque":
        """Wrap raw bytes as opaque content."""
        return cls(OpaqueBytes(content))


@dataclass(frozen=True)
class Remote:
    """Manifest content fetched from a URL."""

    url: str


@dataclass(frozen=True)
class Local:
    """Manifest content read from a local file."""

    path: Path


ManifestSource = Inline | Opaque | Remote | Local


@dataclass(frozen=True)
class ResourceSpec:
    """Immutable configuration of a manifest to apply."""

    source: ManifestSource
    """Where the manifest content comes from."""

    namespace: str | None = None
    """Namespace to move namespace-scoped objects into before applying."""

    wait_condition: str | None = None
    """Condition passed to `kubectl wait --for` after applying."""

    def __post_init__(self) -> None:
        if not isinstance(self.source, (Inline, Opaque, Remote, Local)):
            raise ConfigurationError(
                f"Invalid manifest source {type(self.source).__name__}"
            )

    @classmethod
    def from_fields(
        cls,
        manifest: bytes | None = None,
        opaque_manifest: bytes | None = None,
        manifest_path: str | Path | None = None,
        manifest_url: str | None = None,
        namespace: str | None = None,
        wait_condition: str | None = None,
    ) -> "ResourceSpec":
        """Build a spec from individually optional source fields.

        At most one source should be set. When several are, the first of
        manifest, opaque manifest, URL and path wins and the rest are ignored.
        """
        candidates: list[tuple[str, ManifestSource]] = []
        if manifest is not None:
            candidates.append((MANIFEST, Inline(manifest)))
        if opaque_manifest is not None:
            candidates.append((OPAQUE_MANIFEST, Opaque.of(opaque_manifest)))
        if manifest_url:
            candidates.append((MANIFEST_URL, Remote(manifest_url)))
        if manifest_path:
            candidates.append((MANIFEST_PATH, Local(Path(manifest_path))))
        if not candidates:
            raise ConfigurationError("no content provided")
        if len(candidates) > 1:
            _LOGGER.warning(
                "Multiple manifest sources configured; using %s and ignoring %s",
                candidates[0][0],
                ", ".join(name for name, _ in candidates[1:]),
            )
        return cls(
            source=candidates[0][1],
            namespace=namespace or None,
            wait_condition=wait_condition or None,
        )

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ResourceSpec":
        """Parse a ResourceSpec from a plan document."""
        if not isinstance(doc, dict):
            raise ConfigurationError(f"Invalid resource document: {doc!r}")
        if unknown := set(doc) - _DOC_KEYS:
            raise ConfigurationError(
                f"Invalid resource document unknown keys: {sorted(unknown)}"
            )
        return cls.from_fields(
            manifest=_doc_bytes(doc, MANIFEST),
            opaque_manifest=_doc_bytes(doc, OPAQUE_MANIFEST),
            manifest_path=_doc_str(doc, MANIFEST_PATH),
            manifest_url=_doc_str(doc, MANIFEST_URL),
            namespace=_doc_str(doc, NAMESPACE),
            wait_condition=_doc_str(doc, WAIT_CONDITION),
        )


def _doc_bytes(doc: dict[str, Any], key: str) -> bytes | None:
    if (value := doc.get(key)) is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bytes):
        return value
    raise ConfigurationError(f"Invalid resource document {key} must be a string")


def _doc_str(doc: dict[str, Any], key: str) -> str | None:
    if (value := doc.get(key)) is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid resource document {key} must be a string")
    return value


@dataclass(frozen=True)
class State(DataClassDictMixin):
    """Serializable snapshot of a resource configuration.

    Used by the plan engine to decide whether a resource changed between runs.
    """

    manifest: bytes | None = None
    """Inline manifest content."""

    manifest_path: str | None = field(
        default=None, metadata=field_options(alias=MANIFEST_PATH)
    )
    """Path of a local manifest file."""

    manifest_url: str | None = field(
        default=None, metadata=field_options(alias=MANIFEST_URL)
    )
    """URL of a remote manifest."""

    namespace: str | None = None
    """Target namespace."""

    wait_condition: str | None = field(
        default=None, metadata=field_options(alias=WAIT_CONDITION)
    )
    """Condition waited for after applying."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


class ApplyPhase(str, Enum):
    """States an apply moves through before reaching Done or Failed."""

    UNAPPLIED = "Unapplied"
    CONTENT_RESOLVED = "ContentResolved"
    NAMESPACE_REWRITTEN = "NamespaceRewritten"
    UNCHANGED = "Unchanged"
    SUBMITTED = "Submitted"
    WAIT_SATISFIED = "WaitSatisfied"
    WAIT_SKIPPED = "WaitSkipped"
    WAIT_TIMED_OUT = "WaitTimedOut"


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of applying a resource."""

    changed: bool
    """True when the manifest was applied and any wait condition was met."""

    error: ApplyException | None = None
    """The error that aborted the apply, if any."""

    phase: ApplyPhase = ApplyPhase.UNAPPLIED
    """Last state reached before the apply finished."""
