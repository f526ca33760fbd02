"""Library for applying a manifest to the cluster with kubectl.

`ApiserverApply` is a plan resource that resolves its manifest content,
optionally moves it into a namespace, submits it with `kubectl apply` and
optionally blocks on `kubectl wait` until the object satisfies a condition:

```python
from pathlib import Path

from kube_apply.apply import ApiserverApply
from kube_apply.command import LocalRunner
from kube_apply.manifest import Local, ResourceSpec

resource = ApiserverApply(
    ResourceSpec(Local(Path("crds.yaml")), wait_condition="condition=established")
)
outcome = await resource.apply(LocalRunner(timeout=300))
if outcome.error:
    print(f"Apply failed in phase {outcome.error.phase}: {outcome.error}")
```

The resource does not observe remote state: every successful apply reports
`changed=True`, whether or not the cluster already matched the manifest.
Telling a no-op apart would require the control plane to report it.
"""

from collections.abc import Generator
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Any

import httpx

from . import source
from .command import Command, Runner
from .config import ApplyConfig
from .exceptions import (
    ApplyError,
    ApplyException,
    CommandException,
    RewriteError,
    WaitError,
)
from .fingerprint import resource_state
from .manifest import ApplyOutcome, ApplyPhase, ResourceSpec, State
from .namespace import Rewriter, with_namespace
from .plan import Diff, Resource, register_resource

__all__ = [
    "ApiserverApply",
    "apiserver_apply",
]

_LOGGER = logging.getLogger(__name__)

STDIN = "-"


@contextmanager
def _trace(label: str) -> Generator[None, None, None]:
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, (perf_counter() - t1))


def _min_timeout(*timeouts: float | None) -> float | None:
    values = [timeout for timeout in timeouts if timeout is not None]
    return min(values) if values else None


async def apiserver_apply(
    runner: Runner,
    content: bytes,
    wait_condition: str | None = None,
    config: ApplyConfig | None = None,
    phase: ApplyPhase = ApplyPhase.UNCHANGED,
) -> ApplyOutcome:
    """Submit the manifest with `kubectl apply` and wait for the condition.

    The phase is the state of the content before submission and is reported
    on the outcome if the submission fails.
    """
    config = config or ApplyConfig()
    try:
        if not content:
            raise ApplyError("Manifest content must be non-empty")
        with _trace("kubectl apply"):
            await _remote_apply(runner, content, config)
        phase = ApplyPhase.SUBMITTED
        if not wait_condition:
            phase = ApplyPhase.WAIT_SKIPPED
        else:
            with _trace(f"kubectl wait {wait_condition}"):
                await _remote_wait(runner, content, wait_condition, config)
            phase = ApplyPhase.WAIT_SATISFIED
    except CommandException as err:
        if isinstance(err, WaitError):
            phase = ApplyPhase.WAIT_TIMED_OUT
        return ApplyOutcome(changed=False, error=err, phase=phase)
    return ApplyOutcome(changed=True, phase=phase)


async def _remote_apply(runner: Runner, content: bytes, config: ApplyConfig) -> None:
    cmd = Command(config.kubectl("apply", "-f", STDIN), exc=ApplyError)
    out = await runner.run_command(cmd, stdin=content)
    _LOGGER.debug("kubectl apply: %s", out.strip())


async def _remote_wait(
    runner: Runner, content: bytes, wait_condition: str, config: ApplyConfig
) -> None:
    cmd = Command(
        config.kubectl(
            "wait",
            f"--for={wait_condition}",
            f"--timeout={config.wait_seconds}s",
            "-f",
            STDIN,
        ),
        exc=WaitError,
    )
    out = await runner.run_command(cmd, stdin=content)
    _LOGGER.debug("kubectl wait: %s", out.strip())


@register_resource
class ApiserverApply(Resource):
    """A resource applying the configured manifest on every run."""

    def __init__(
        self,
        spec: ResourceSpec,
        config: ApplyConfig | None = None,
        rewriter: Rewriter = with_namespace,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize ApiserverApply.

        The transport overrides how a remote manifest is fetched.
        """
        self._spec = spec
        self._config = config or ApplyConfig()
        self._rewriter = rewriter
        self._transport = transport

    @property
    def spec(self) -> ResourceSpec:
        """Return the resource configuration."""
        return self._spec

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ApiserverApply":
        """Parse an ApiserverApply from a plan document."""
        return cls(ResourceSpec.parse_doc(doc))

    def state(self) -> State:
        """Return the configuration state used for change detection."""
        return resource_state(self._spec)

    async def content(self, runner: Runner) -> bytes:
        """Resolve the manifest content, bounded by the runner deadline."""
        timeout = _min_timeout(self._config.fetch_timeout, runner.remaining())
        with _trace("resolve manifest"):
            return await source.resolve(
                self._spec.source, timeout=timeout, transport=self._transport
            )

    def rewrite(self, content: bytes) -> tuple[bytes, ApplyPhase]:
        """Move the manifest into the configured namespace, if any."""
        if not (namespace := self._spec.namespace):
            return content, ApplyPhase.UNCHANGED
        try:
            rewritten = self._rewriter(content, namespace)
        except RewriteError:
            raise
        except Exception as err:
            raise RewriteError(
                f"Unable to set namespace {namespace} on manifest: {err}"
            ) from err
        if not rewritten:
            return content, ApplyPhase.UNCHANGED
        return rewritten, ApplyPhase.NAMESPACE_REWRITTEN

    async def apply(self, runner: Runner, diff: Diff | None = None) -> ApplyOutcome:
        """Apply the manifest, ignoring the diff.

        The runner deadline restarts for this apply. Errors are reported on
        the outcome rather than raised. Cancellation propagates; anything
        the control plane already accepted stays applied.
        """
        runner.start()
        phase = ApplyPhase.UNAPPLIED
        try:
            content = await self.content(runner)
            phase = ApplyPhase.CONTENT_RESOLVED
            content, phase = self.rewrite(content)
        except ApplyException as err:
            _LOGGER.info("Failed to prepare manifest: %s", err)
            return ApplyOutcome(changed=False, error=err, phase=phase)

        outcome = await apiserver_apply(
            runner,
            content,
            wait_condition=self._spec.wait_condition,
            config=self._config,
            phase=phase,
        )
        if outcome.error:
            _LOGGER.info("Failed to apply manifest: %s", outcome.error)
        return outcome
