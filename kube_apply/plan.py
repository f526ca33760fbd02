"""Interfaces between plan resources and the plan engine that runs them.

The plan engine owns ordering and execution of plan nodes. Each node holds a
`Resource`, which exposes the `State` the engine compares across runs and an
`apply` the engine calls to realize it. Resource classes register themselves
by name so plan documents can be turned into resources:

```python
from kube_apply import plan

resource = plan.parse_resource("ApiserverApply", {"manifestPath": "crds.yaml"})
outcome = await resource.apply(runner, plan.Diff.of(None, resource.state()))
```
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Any, TypeVar

from .command import Runner
from .exceptions import ConfigurationError
from .manifest import ApplyOutcome, State

__all__ = [
    "Resource",
    "Diff",
    "register_resource",
    "resource_types",
    "parse_resource",
]

_LOGGER = logging.getLogger(__name__)

_RESOURCES: dict[str, type["Resource"]] = {}

_T = TypeVar("_T", bound=type["Resource"])


@dataclass(frozen=True)
class Diff:
    """Comparison of the stored and desired state of a plan node."""

    current: dict[str, Any] | None
    """State recorded by the previous run, if any."""

    desired: dict[str, Any]
    """State of the resource as currently configured."""

    @classmethod
    def of(cls, current: State | None, desired: State) -> "Diff":
        """Build a Diff from two resource states."""
        return cls(
            current=current.to_dict() if current is not None else None,
            desired=desired.to_dict(),
        )

    @property
    def changed(self) -> bool:
        """Return True if the configuration differs from the previous run."""
        return self.current != self.desired


class Resource(ABC):
    """A plan node that can be applied to the target environment."""

    @classmethod
    @abstractmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Resource":
        """Parse the resource from a plan document."""

    @abstractmethod
    def state(self) -> State:
        """Return the configuration state used for change detection."""

    @abstractmethod
    async def apply(self, runner: Runner, diff: Diff | None = None) -> ApplyOutcome:
        """Apply the resource using the runner."""


def register_resource(cls: _T) -> _T:
    """Register a resource class under its class name."""
    name = cls.__name__
    if (existing := _RESOURCES.get(name)) is not None and existing is not cls:
        raise ValueError(f"Resource type {name} already registered")
    _RESOURCES[name] = cls
    return cls


def resource_types() -> list[str]:
    """Return the names of all registered resource types."""
    return sorted(_RESOURCES)


def parse_resource(type_name: str, doc: dict[str, Any]) -> Resource:
    """Build a registered resource from a plan document."""
    if not (cls := _RESOURCES.get(type_name)):
        raise ConfigurationError(
            f"Unknown resource type '{type_name}', expected one of {resource_types()}"
        )
    _LOGGER.debug("Parsing %s resource", type_name)
    return cls.parse_doc(doc)
