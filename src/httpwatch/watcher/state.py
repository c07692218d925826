"""Shared latest-result cell for the watch loop and HTTP handlers."""

from __future__ import annotations

import logging
import threading

from httpwatch.config.settings import parse_duration
from httpwatch.watcher.models import CommandSpec, ExecutionResult

logger = logging.getLogger(__name__)


class WatchState:
    """Holds the most recent ExecutionResult for a single watched command.

    There is one writer (the watch loop) and any number of readers. Results
    are immutable and swapped by reference under a lock, so a snapshot is
    always one complete cycle and readers never hold the lock while they
    render.
    """

    def __init__(self, command: CommandSpec, interval: float) -> None:
        self._command = command
        self._interval = parse_duration(interval)
        self._result = ExecutionResult()
        self._lock = threading.Lock()

    @property
    def command(self) -> CommandSpec:
        return self._command

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def interval_ms(self) -> int:
        return int(round(self._interval * 1000))

    def snapshot(self) -> ExecutionResult:
        """Return the latest published result."""
        with self._lock:
            return self._result

    def publish(self, result: ExecutionResult) -> None:
        """Replace the current result with ``result``."""
        with self._lock:
            self._result = result
        logger.debug("Published cycle %d", result.cycle)
