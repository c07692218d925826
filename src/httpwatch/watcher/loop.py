"""Watch loop that runs the command on a fixed schedule."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from httpwatch.config.settings import MIN_INTERVAL, WatchConfig, parse_duration
from httpwatch.watcher.models import CommandOutput, CommandSpec, ExecutionResult
from httpwatch.watcher.output import format_output
from httpwatch.watcher.runner import run_command
from httpwatch.watcher.state import WatchState

logger = logging.getLogger(__name__)

Runner = Callable[[CommandSpec], Awaitable[CommandOutput]]


def effective_interval(interval: float) -> float:
    """Clamp ``interval`` to the minimum supported interval.

    Raises ConfigurationError for nan or infinite intervals.
    """
    return max(parse_duration(interval), MIN_INTERVAL)


class WatchLoop:
    """Runs the watched command every interval and publishes each result.

    The first run starts immediately. Later runs are due at
    ``start + n * interval`` on the event loop clock, so a slow command
    delays the next run instead of shifting the whole schedule; when the
    loop is behind it runs again without waiting.
    """

    def __init__(
        self,
        state: WatchState,
        config: WatchConfig,
        runner: Runner = run_command,
    ) -> None:
        self._state = state
        self._color = config.color
        self._interval = effective_interval(state.interval)
        self._runner = runner
        self._cycle = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def cycles(self) -> int:
        """Number of results published so far."""
        return self._cycle

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Run the loop in a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="httpwatch-loop")
        return self._task

    async def stop(self) -> None:
        """Cancel the background task, killing any command in flight."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run(self) -> None:
        """Run until cancelled."""
        loop = asyncio.get_running_loop()
        command = self._state.command
        logger.info("Watching %r every %.3gs", command.display, self._interval)

        deadline = loop.time()
        try:
            while True:
                await self._run_once()
                deadline += self._interval
                delay = deadline - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)
                else:
                    logger.debug("Behind schedule by %.3fs", -delay)
        except asyncio.CancelledError:
            logger.info("Watch loop stopped after %d cycles", self._cycle)
            raise

    async def _run_once(self) -> None:
        try:
            outcome = await self._runner(self._state.command)
            output = format_output(outcome.data, color=self._color)
        except Exception:
            logger.exception("Cycle %d failed", self._cycle + 1)
            return

        if outcome.failure:
            logger.debug("Command failed: %s", outcome.failure)

        self._cycle += 1
        self._state.publish(
            ExecutionResult(
                output=output,
                failure=outcome.failure,
                completed_at=datetime.now(),
                cycle=self._cycle,
            )
        )
