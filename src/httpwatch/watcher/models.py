"""Domain models for watched command executions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommandSpec(BaseModel):
    """The program and arguments to run on every cycle."""

    model_config = ConfigDict(frozen=True)

    argv: tuple[str, ...] = Field(min_length=1)

    @property
    def program(self) -> str:
        return self.argv[0]

    @property
    def args(self) -> tuple[str, ...]:
        return self.argv[1:]

    @property
    def display(self) -> str:
        return " ".join(self.argv)


class ExecutionResult(BaseModel):
    """Outcome of a single execution cycle.

    ``output`` is already markup (escaped or ANSI-converted, with line
    breaks normalized); ``failure`` describes a nonzero exit or a failure
    to start the command.
    """

    model_config = ConfigDict(frozen=True)

    output: str = ""
    failure: str | None = None
    completed_at: datetime | None = None
    cycle: int = Field(default=0, ge=0)

    @property
    def ok(self) -> bool:
        return self.failure is None


class CommandOutput(BaseModel):
    """Raw result of running the command once, before formatting."""

    model_config = ConfigDict(frozen=True)

    data: bytes = b""
    returncode: int | None = None
    failure: str | None = None
