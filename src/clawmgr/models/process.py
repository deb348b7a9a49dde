"""Pydantic models for the command registry and managed process snapshots."""

from datetime import datetime

from pydantic import Field

from clawmgr.models.common import CamelModel


class CommandDefinition(CamelModel):
    id: str
    title: str
    description: str
    command: str
    args: list[str] = Field(default_factory=list)
    cwd: str
    allow_run: bool = True

    def format_command(self, args: list[str] | None = None) -> str:
        return " ".join([self.command, *(self.args if args is None else args)])


class ProcessSnapshot(CamelModel):
    id: str
    title: str
    description: str
    command: str
    cwd: str
    running: bool = False
    pid: int | None = None
    started_at: datetime | None = None
    exit_code: int | None = None
    last_lines: list[str] = Field(default_factory=list)


class ProcessResult(CamelModel):
    ok: bool
    process: ProcessSnapshot | None = None
    error: str | None = None
