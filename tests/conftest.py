"""Test fixtures for kube-apply."""

import asyncio
from collections.abc import AsyncGenerator

import pytest

from kube_apply.command import Command, Runner


class FakeRunner(Runner):
    """A runner that records kubectl invocations instead of running them."""

    def __init__(self, failures: dict[str, str] | None = None) -> None:
        """Initialize FakeRunner with kubectl verbs that should fail."""
        self.calls: list[tuple[list[str], bytes | None]] = []
        self._failures = failures or {}

    @property
    def verbs(self) -> list[str]:
        """Return the kubectl verbs invoked so far."""
        return [cmd[1] for cmd, _ in self.calls]

    async def run_command(self, cmd: Command, stdin: bytes | None = None) -> str:
        self.calls.append((cmd.cmd, stdin))
        verb = cmd.cmd[1]
        if (message := self._failures.get(verb)) is not None:
            raise cmd.exc(message)
        return f"{verb} ok\n"


@pytest.fixture
def runner() -> FakeRunner:
    """Create a runner that succeeds for every command."""
    return FakeRunner()


@pytest.fixture
async def stalled_url(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[str, None]:
    """Serve a URL on a local server that accepts connections but never responds."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv(var.lower(), raising=False)
    release = asyncio.Event()

    async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await release.wait()
        writer.close()

    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}/manifest.yaml"
    release.set()
    server.close()
    await server.wait_closed()
