"""Configuration objects for kube-apply."""

from dataclasses import dataclass
import math

from .exceptions import ConfigurationError

DEFAULT_WAIT_TIMEOUT = 60.0
DEFAULT_FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class ApplyConfig:
    """Configuration for invoking the control plane client."""

    kubectl_bin: str = "kubectl"
    """Path or name of the kubectl binary."""

    kubeconfig: str | None = None
    """Optional kubeconfig file passed to every kubectl invocation."""

    context: str | None = None
    """Optional kubeconfig context passed to every kubectl invocation."""

    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    """Seconds `kubectl wait` blocks before giving up."""

    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    """Seconds allowed for fetching a remote manifest."""

    def __post_init__(self) -> None:
        if not 0 < self.wait_timeout < math.inf:
            raise ConfigurationError(
                f"Invalid wait timeout {self.wait_timeout}, must be positive"
            )
        if not 0 < self.fetch_timeout < math.inf:
            raise ConfigurationError(
                f"Invalid fetch timeout {self.fetch_timeout}, must be positive"
            )

    @property
    def wait_seconds(self) -> int:
        """Return the wait timeout rounded up to whole seconds."""
        return math.ceil(self.wait_timeout)

    def kubectl(self, *args: str) -> list[str]:
        """Return the argv for a kubectl invocation."""
        cmd = [self.kubectl_bin]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            cmd.extend(["--context", self.context])
        cmd.extend(args)
        return cmd
