"""Library for issuing commands against the target environment using asyncio.

A `Runner` is the collaborator the apply logic uses to reach the control
plane. The `LocalRunner` runs commands as local subprocesses and enforces a
deadline shared by every blocking step of a single apply:

```python
from kube_apply.command import Command, LocalRunner

runner = LocalRunner(timeout=120)
out = await runner.run_command(Command(["kubectl", "version"]))
```
"""

import asyncio
from abc import ABC, abstractmethod
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
import os
import time

from .exceptions import CommandException

__all__ = [
    "Command",
    "Runner",
    "LocalRunner",
]

_LOGGER = logging.getLogger(__name__)

_CONCURRENCY = 20
_SEM = asyncio.Semaphore(_CONCURRENCY)


def format_path(path: Path) -> str:
    """Format path for debugging."""
    if path.is_absolute():
        cwd = Path.cwd()
        if path.is_relative_to(cwd):
            rel_path = str(path.relative_to(cwd))
            return f"{rel_path} (abs)"
    return str(path)


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    cwd: Path | None = None
    """Current working directory."""

    exc: type[CommandException] = CommandException
    """Exception to throw in case of an error."""

    env: dict[str, str] | None = None
    """Environment variables for the subprocess."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        cwd: str = ""
        if self.cwd:
            cwd = f"({format_path(self.cwd)}) "
        return f"{cwd}{self.string}"

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the command, returning stdout and stderr combined.

        The child process is killed if the caller is cancelled while waiting.
        """
        _LOGGER.debug("Running command: %s", self)
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
                env=env,
            )
        except OSError as err:
            raise self.exc(f"Command '{self}' failed to start: {err}") from err
        try:
            out, _ = await proc.communicate(stdin)
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        if proc.returncode:
            errors = [f"Command '{self}' failed with return code {proc.returncode}"]
            if out:
                errors.append(out.decode("utf-8", errors="replace"))
            _LOGGER.debug("\n".join(errors))
            raise self.exc("\n".join(errors))
        return out


class Runner(ABC):
    """Executes command-like actions against the target environment."""

    @abstractmethod
    async def run_command(self, cmd: Command, stdin: bytes | None = None) -> str:
        """Run the command and return its combined output.

        A non-zero exit, transport failure or expired deadline raises the
        exception class of the command.
        """

    def start(self) -> None:
        """Start the deadline for a new apply."""

    def remaining(self) -> float | None:
        """Return the seconds left before the deadline, or None if unbounded."""
        return None


class LocalRunner(Runner):
    """A runner that executes commands as local subprocesses.

    The deadline covers every blocking step of one apply. It starts when the
    runner is created and restarts on each call to `start`, so a single
    runner may be shared across plan nodes.
    """

    def __init__(
        self, timeout: float | None = None, env: dict[str, str] | None = None
    ) -> None:
        """Initialize LocalRunner with an optional per-apply deadline in seconds."""
        self._timeout = timeout
        self._env = env
        self._deadline: float | None = None
        self.start()

    def start(self) -> None:
        """Restart the deadline for a new apply."""
        if self._timeout is not None:
            self._deadline = time.monotonic() + self._timeout

    def remaining(self) -> float | None:
        """Return the seconds left before the deadline, or None if unbounded."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    async def run_command(self, cmd: Command, stdin: bytes | None = None) -> str:
        """Run the command, bounded by the concurrency limit and deadline."""
        if self._env:
            cmd = Command(
                cmd.cmd, cwd=cmd.cwd, exc=cmd.exc, env={**self._env, **(cmd.env or {})}
            )
        timeout = self.remaining()
        if timeout is not None and timeout <= 0:
            raise cmd.exc(f"Command '{cmd}' not started, deadline exceeded")
        async with _SEM:
            try:
                out = await asyncio.wait_for(cmd.run(stdin), timeout)
            except asyncio.TimeoutError as err:
                raise cmd.exc(f"Command '{cmd}' timed out") from err
        return out.decode("utf-8", errors="replace") if out else ""
