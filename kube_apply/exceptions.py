"""Exceptions related to kube-apply.

Every exception raised while applying a resource records the phase that
produced it, so callers can tell a manifest that never reached the cluster
apart from one that was accepted but never became ready.
"""

__all__ = [
    "ApplyException",
    "InputException",
    "ConfigurationError",
    "FetchError",
    "ReadError",
    "RewriteError",
    "CommandException",
    "ApplyError",
    "WaitError",
]


PHASE_RESOLVE = "resolve"
PHASE_REWRITE = "rewrite"
PHASE_SUBMIT = "submit"
PHASE_WAIT = "wait"


class ApplyException(Exception):
    """Generic base exception used for this library."""

    phase: str | None = None
    """The apply phase that produced the error."""

    @property
    def reached_cluster(self) -> bool:
        """Return True if the manifest was accepted by the control plane."""
        return self.phase == PHASE_WAIT

    def __str__(self) -> str:
        """Render the error prefixed with its phase."""
        message = super().__str__()
        if self.phase:
            return f"{self.phase}: {message}"
        return message


class InputException(ApplyException):
    """Raised when the input files or values are not formatted as expected."""


class ConfigurationError(InputException):
    """Raised when the resource configuration has no usable manifest source."""

    phase = PHASE_RESOLVE


class FetchError(ApplyException):
    """Raised when a remote manifest could not be fetched."""

    phase = PHASE_RESOLVE


class ReadError(ApplyException):
    """Raised when a local manifest file could not be read."""

    phase = PHASE_RESOLVE


class RewriteError(ApplyException):
    """Raised when the manifest namespace could not be rewritten."""

    phase = PHASE_REWRITE


class CommandException(ApplyException):
    """Raised when there is a failure running a subcommand."""


class ApplyError(CommandException):
    """Raised when the control plane rejected the manifest."""

    phase = PHASE_SUBMIT


class WaitError(CommandException):
    """Raised when the applied object did not reach its wait condition."""

    phase = PHASE_WAIT
