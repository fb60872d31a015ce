"""Application context tying the supervisor, gate and log writer together."""

from __future__ import annotations

import logging
import time
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable

from byte_terminal.config import AppConfig
from byte_terminal.errors import BusyError
from byte_terminal.services.categorizer import Category, categorize
from byte_terminal.services.command import CommandBuilder, build_spec
from byte_terminal.services.engine import ExecutionEngine
from byte_terminal.services.gate import AnimationGate, GateState
from byte_terminal.services.policy import SecurityPolicy
from byte_terminal.services.supervisor import PendingExecution, Supervisor
from byte_terminal.storage.logs import LogWriter
from byte_terminal.storage.models import CommandResult, CommandSpec, ExecutionMode
from byte_terminal.utils.system import find_editor

logger = logging.getLogger(__name__)

TerminalHandoff = Callable[[], AbstractContextManager[None]]


class Workbench:
    """Runs one foreground command for a project and settles its result.

    ``pending`` is the only in-flight execution. ``start`` refuses to run a
    second command until ``poll`` has handed the first result over.
    """

    def __init__(
        self,
        config: AppConfig,
        project_path: str | Path,
        engine: ExecutionEngine | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.project_path = Path(project_path).expanduser()
        self.engine = engine or ExecutionEngine()
        self.policy = SecurityPolicy(trusted_config_source=config.exec.trusted_config_source)
        self.supervisor = Supervisor(self.engine, self.policy)
        self.gate = AnimationGate(config.exec.min_visible_ms / 1000, clock=clock)
        self.writer = LogWriter(self.project_path, keep=config.logs.keep, tool_dir=config.logs.tool_dir)
        self.pending: PendingExecution | None = None
        self.last_log: Path | None = None
        self._task: str | None = None

    @property
    def running(self) -> bool:
        return self.gate.active

    def spec_for(self, command: str) -> CommandSpec:
        builder = CommandBuilder.shell(command, shell=self.config.exec.shell).working_dir(self.project_path)
        if self.config.exec.timeout:
            builder.timeout(self.config.exec.timeout)
        return builder.build()

    def check(self, command: str) -> tuple[bool, str]:
        """Policy verdict for ``command`` without running it."""
        return self.policy.check(build_spec(command, self.project_path, shell=self.config.exec.shell))

    def start(self, command: str, task: str | None = None) -> PendingExecution:
        """Validate and spawn ``command`` in the project directory.

        Raises:
            BusyError: A command is still running or its result is buffered.
            ValidationError: The policy rejected the command.
        """
        if self.pending is not None:
            raise BusyError(self.pending.spec.display)

        spec = self.spec_for(command)
        pending = self.supervisor.spawn(spec)

        self.pending = pending
        self._task = task
        self.gate.begin()

        if categorize(command) is Category.BUILD:
            try:
                self.writer.mark_running(task or command)
            except OSError:
                logger.exception("Failed to save running build state")
        return pending

    def poll(self) -> CommandResult | None:
        """Non-blocking. Returns the result once it may be shown, then persists it."""
        if self.pending is None:
            return None

        result = self.gate.poll(self.supervisor, self.pending)
        if result is None:
            return None

        spec = self.pending.spec
        self.pending = None
        self.last_log = self.writer.record(result, task=self._task, log_category=spec.log_category)
        self._task = None

        if result.success:
            logger.info("Success: %s", result.command_display)
        else:
            logger.error("Failed: %s (exit %d)", result.command_display, result.exit_code)
        return result

    def elapsed(self) -> float:
        return self.gate.elapsed() if self.gate.state is not GateState.IDLE else 0.0

    def close(self) -> None:
        """Tear down. A running worker finishes on its own and is discarded."""
        if self.pending is not None:
            self.supervisor.abandon()
            self.pending = None
        self.gate.reset()

    def open_in_editor(self, path: str | Path, handoff: TerminalHandoff, editor: str | None = None) -> bool:
        """Open ``path`` in an editor, handing the terminal over for the duration.

        The handoff context manager releases the terminal on enter and takes
        it back on exit, including when the editor fails to start.
        """
        spec = (
            CommandBuilder(editor or find_editor(self.engine))
            .arg(str(path))
            .working_dir(self.project_path)
            .mode(ExecutionMode.INTERACTIVE)
            .build()
        )
        self.policy.validate(spec)
        with handoff():
            return self.engine.run_interactive(spec)
