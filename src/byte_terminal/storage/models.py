"""Data models for byte-terminal."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

SHELLS: frozenset[str] = frozenset({"sh", "bash"})


class ExecutionMode(Enum):
    """How the engine runs a command."""

    CAPTURED = "captured"
    STATUS_ONLY = "status_only"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class CommandSpec:
    """Immutable description of a command to run.

    Attributes:
        program: Binary name, or a shell from ``SHELLS`` for shell commands.
        args: Arguments passed to the program.
        working_dir: Directory the process starts in.
        env: Variables merged over the inherited environment.
        mode: Captured, status-only or interactive execution.
        log_category: Overrides the categorizer when writing the log.
        timeout: Declared limit in seconds. Not enforced by the engine.
    """

    program: str
    args: tuple[str, ...] = ()
    working_dir: Path | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    mode: ExecutionMode = ExecutionMode.CAPTURED
    log_category: str | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        # Read-only copy: a validated spec cannot change what it runs with.
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def shell_text(self) -> str | None:
        """Text handed to the shell for ``sh -c TEXT`` specs, else None."""
        if self.program in SHELLS and len(self.args) == 2 and self.args[0] == "-c":
            return self.args[1]
        return None

    @property
    def display(self) -> str:
        """Original invocation text, for logs and the UI."""
        text = self.shell_text
        if text is not None:
            return text
        return shlex.join([self.program, *self.args])


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single execution."""

    command_display: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class BuildStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
    RUNNING = "Running"


@dataclass
class BuildState:
    """Last known build outcome for a project."""

    timestamp: int
    status: BuildStatus
    task: str


@dataclass
class LogEntry:
    """A command log file on disk."""

    path: Path
    category: str
    timestamp: float
    filename: str


@dataclass
class ProjectCommand:
    """A named command declared in a project's byte.toml."""

    name: str
    command: str
    description: str = ""
    task: str | None = None
