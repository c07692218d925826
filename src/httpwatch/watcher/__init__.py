"""Periodic command execution and the shared latest-result cell."""

from httpwatch.watcher.loop import WatchLoop
from httpwatch.watcher.models import CommandSpec, ExecutionResult
from httpwatch.watcher.state import WatchState

__all__ = ["CommandSpec", "ExecutionResult", "WatchLoop", "WatchState"]
