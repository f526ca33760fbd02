"""Tests for command library."""

import asyncio
from pathlib import Path

import pytest

from kube_apply.command import Command, LocalRunner
from kube_apply.exceptions import ApplyError, CommandException


async def test_command() -> None:
    """Test stdout parsing of a command."""
    result = await LocalRunner().run_command(Command(["echo", "Hello"]))
    assert result == "Hello\n"


async def test_command_stdin() -> None:
    """Test passing stdin to a command."""
    result = await LocalRunner().run_command(
        Command(["sed", "s/Hello/Goodbye/"]), stdin=b"Hello\n"
    )
    assert result == "Goodbye\n"


async def test_combined_output() -> None:
    """Test stderr is included in the command output."""
    result = await LocalRunner().run_command(Command(["sh", "-c", "echo oops >&2"]))
    assert result == "oops\n"


async def test_failed_command() -> None:
    """Test a failing command."""
    with pytest.raises(CommandException, match="return code 1"):
        await LocalRunner().run_command(Command(["/bin/false"]))


async def test_failed_command_exception_class() -> None:
    """Test a failing command raises the exception class of the command."""
    with pytest.raises(ApplyError, match="return code 3.*failed here"):
        await LocalRunner().run_command(
            Command(["sh", "-c", "echo failed here; exit 3"], exc=ApplyError)
        )


async def test_command_timeout() -> None:
    """Test a command that outlives the runner deadline."""
    runner = LocalRunner(timeout=0.2)
    with pytest.raises(ApplyError, match="timed out"):
        await runner.run_command(Command(["sleep", "10"], exc=ApplyError))


async def test_deadline_exceeded() -> None:
    """Test no command is started once the deadline has passed."""
    runner = LocalRunner(timeout=0)
    assert runner.remaining() == 0
    with pytest.raises(CommandException, match="deadline exceeded"):
        await runner.run_command(Command(["echo", "Hello"]))


async def test_runner_env() -> None:
    """Test environment variables of the runner are passed to commands."""
    runner = LocalRunner(env={"GREETING": "Hello"})
    assert runner.remaining() is None
    result = await runner.run_command(Command(["sh", "-c", "echo $GREETING"]))
    assert result == "Hello\n"


def test_command_string() -> None:
    """Test rendering a command for debugging."""
    cmd = Command(["kubectl", "wait", "--for=condition=Ready pod"])
    assert str(cmd) == "kubectl wait '--for=condition=Ready pod'"


async def test_missing_binary() -> None:
    """Test a command whose binary does not exist."""
    with pytest.raises(ApplyError, match="failed to start"):
        await LocalRunner().run_command(
            Command(["/nonexistent/kubectl", "apply"], exc=ApplyError)
        )


async def test_binary_not_executable(tmp_path: Path) -> None:
    """Test a command whose binary cannot be executed."""
    binary = tmp_path / "kubectl"
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o644)
    with pytest.raises(CommandException, match="failed to start"):
        await LocalRunner().run_command(Command([str(binary)]))


async def test_start_restarts_deadline() -> None:
    """Test a shared runner gets a fresh deadline for each apply."""
    runner = LocalRunner(timeout=0.2)
    await asyncio.sleep(0.3)
    assert runner.remaining() == 0
    runner.start()
    remaining = runner.remaining()
    assert remaining is not None
    assert 0.1 < remaining <= 0.2
    result = await runner.run_command(Command(["echo", "Hello"]))
    assert result == "Hello\n"
