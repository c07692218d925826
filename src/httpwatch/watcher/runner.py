"""Runs the watched command once and collects its combined output."""

from __future__ import annotations

import asyncio
import logging
import signal

from httpwatch.watcher.models import CommandOutput, CommandSpec

logger = logging.getLogger(__name__)

# Seconds a cancelled command gets between SIGTERM and SIGKILL.
TERMINATE_GRACE = 1.0


async def run_command(command: CommandSpec) -> CommandOutput:
    """Run ``command`` to completion with stderr merged into stdout.

    A nonzero exit or a failure to start is reported in
    ``CommandOutput.failure`` rather than raised. If the calling task is
    cancelled the child process is terminated before the cancellation
    propagates.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command.program,
            *command.args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.debug("Failed to start %s: %s", command.program, e)
        return CommandOutput(failure=f"exec: {command.program!r}: {e.strerror or e}")

    try:
        data, _ = await proc.communicate()
    except asyncio.CancelledError:
        await _terminate(proc)
        raise

    rc = proc.returncode
    return CommandOutput(data=data, returncode=rc, failure=describe_returncode(rc))


def describe_returncode(returncode: int | None) -> str | None:
    """Describe an unsuccessful exit, or return None for success."""
    if returncode is None or returncode == 0:
        return None
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Stop a still-running child, escalating to SIGKILL after a grace period."""
    if proc.returncode is not None:
        return
    logger.debug("Terminating command (pid=%d)", proc.pid)
    try:
        proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=TERMINATE_GRACE)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
    except ProcessLookupError:
        pass
