"""Tests for the shared WatchState cell."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from httpwatch.config.settings import ConfigurationError
from httpwatch.watcher.models import CommandSpec, ExecutionResult
from httpwatch.watcher.state import WatchState

EPOCH = datetime(2025, 1, 1)


def _result(n: int) -> ExecutionResult:
    return ExecutionResult(
        output=f"out {n}",
        failure=None if n % 2 else f"exit status {n}",
        completed_at=EPOCH + timedelta(seconds=n),
        cycle=n,
    )


class TestWatchState:
    def test_initial_snapshot_is_empty(self, watch_state: WatchState) -> None:
        result = watch_state.snapshot()
        assert result.output == ""
        assert result.failure is None
        assert result.completed_at is None
        assert result.cycle == 0

    def test_exposes_command_and_interval(self, echo_command: CommandSpec) -> None:
        state = WatchState(echo_command, interval=1.5)
        assert state.command is echo_command
        assert state.interval == 1.5
        assert state.interval_ms == 1500

    @pytest.mark.parametrize("interval", [float("nan"), float("inf")])
    def test_rejects_non_finite_interval(self, echo_command: CommandSpec, interval: float) -> None:
        with pytest.raises(ConfigurationError):
            WatchState(echo_command, interval=interval)

    def test_publish_replaces_whole_result(self, watch_state: WatchState) -> None:
        watch_state.publish(_result(2))
        watch_state.publish(_result(3))
        result = watch_state.snapshot()
        assert result == _result(3)
        assert result.failure is None

    def test_concurrent_readers_never_see_torn_results(self, watch_state: WatchState) -> None:
        cycles = 2000
        torn: list[ExecutionResult] = []
        done = threading.Event()

        def writer() -> None:
            for n in range(1, cycles + 1):
                watch_state.publish(_result(n))
            done.set()

        def reader() -> None:
            last = 0
            while not done.is_set():
                result = watch_state.snapshot()
                if result.cycle == 0:
                    continue
                if result != _result(result.cycle) or result.cycle < last:
                    torn.append(result)
                last = result.cycle

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        writer()
        for t in readers:
            t.join(timeout=10)

        assert torn == []
        assert watch_state.snapshot().cycle == cycles


class TestModels:
    def test_command_spec_requires_program(self) -> None:
        with pytest.raises(ValidationError):
            CommandSpec(argv=())

    def test_command_spec_display(self) -> None:
        spec = CommandSpec(argv=["ls", "-l", "/tmp"])
        assert spec.program == "ls"
        assert spec.args == ("-l", "/tmp")
        assert spec.display == "ls -l /tmp"

    def test_execution_result_ok(self) -> None:
        assert ExecutionResult().ok
        assert not ExecutionResult(failure="exit status 1").ok
