"""Shared test fixtures for the httpwatch test suite.

Provides a watched command that runs the current interpreter, a
WatchState around it, matching settings, and a scripted runner that
stands in for real subprocesses.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from typing import Callable

import pytest

from httpwatch.config.settings import Settings, WatchConfig
from httpwatch.watcher.models import CommandOutput, CommandSpec, ExecutionResult
from httpwatch.watcher.state import WatchState


# ---------------------------------------------------------------------------
# Command / State Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def echo_command() -> CommandSpec:
    """A portable command that prints 'hi'."""
    return CommandSpec(argv=(sys.executable, "-c", "print('hi')"))


@pytest.fixture
def watch_config(echo_command: CommandSpec) -> WatchConfig:
    return WatchConfig(interval=1.0, command=echo_command.argv)


@pytest.fixture
def settings(watch_config: WatchConfig) -> Settings:
    return Settings(watch=watch_config)


@pytest.fixture
def watch_state(echo_command: CommandSpec) -> WatchState:
    return WatchState(echo_command, interval=1.0)


@pytest.fixture
def published_state(watch_state: WatchState) -> WatchState:
    """A WatchState that already holds one completed cycle."""
    watch_state.publish(
        ExecutionResult(
            output="hi<br/>",
            completed_at=datetime(2025, 1, 1, 12, 0, 0),
            cycle=1,
        )
    )
    return watch_state


# ---------------------------------------------------------------------------
# Runner Fixtures
# ---------------------------------------------------------------------------


class ScriptedRunner:
    """Runner double that returns ``output_for(n)`` for the n-th call.

    Records the event loop time of every call and can be told to block
    until released, to simulate a long-running command.
    """

    def __init__(
        self,
        output_for: Callable[[int], CommandOutput] | None = None,
        delay: float = 0.0,
    ) -> None:
        self._output_for = output_for or (
            lambda n: CommandOutput(data=f"run {n}\n".encode(), returncode=0)
        )
        self.delay = delay
        self.calls: list[float] = []
        self.started = asyncio.Event()
        self.cancelled = False

    async def __call__(self, command: CommandSpec) -> CommandOutput:
        self.calls.append(asyncio.get_running_loop().time())
        self.started.set()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self._output_for(len(self.calls))


@pytest.fixture
def scripted_runner() -> type[ScriptedRunner]:
    return ScriptedRunner
