"""Process execution engine."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from datetime import datetime

from byte_terminal.errors import SpawnError
from byte_terminal.storage.models import CommandResult, CommandSpec, ExecutionMode

logger = logging.getLogger(__name__)

SIGNAL_EXIT_CODE = -1


class ExecutionEngine:
    """Spawn processes in captured, status-only or interactive mode.

    The engine trusts that the spec was validated. It never changes terminal
    modes: for interactive runs the caller hands the terminal over first.
    """

    def run(self, spec: CommandSpec) -> CommandResult:
        """Run a spec according to its mode and always return a result."""
        if spec.mode is ExecutionMode.CAPTURED:
            return self.run_captured(spec)

        start = time.monotonic()
        started_at = datetime.now()
        if spec.mode is ExecutionMode.STATUS_ONLY:
            ok = self.run_status(spec)
        else:
            ok = self.run_interactive(spec)
        return CommandResult(
            command_display=spec.display,
            exit_code=0 if ok else 1,
            started_at=started_at,
            duration=time.monotonic() - start,
        )

    def run_captured(self, spec: CommandSpec) -> CommandResult:
        """Wait for the process and collect stdout/stderr as text."""
        started_at = datetime.now()
        start = time.monotonic()
        completed = self._spawn(spec, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        duration = time.monotonic() - start

        return CommandResult(
            command_display=spec.display,
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
            exit_code=_exit_code(completed.returncode),
            started_at=started_at,
            duration=duration,
        )

    def run_status(self, spec: CommandSpec) -> bool:
        """Run for the exit status only. Output is discarded."""
        completed = self._spawn(spec, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        return completed.returncode == 0

    def run_interactive(self, spec: CommandSpec) -> bool:
        """Run with inherited stdin/stdout/stderr and report success."""
        completed = self._spawn(spec, stdout=None, stderr=None)
        if completed.returncode != 0:
            logger.info(
                "Interactive command '%s' exited with %d",
                spec.display,
                _exit_code(completed.returncode),
            )
        return completed.returncode == 0

    def _spawn(self, spec: CommandSpec, stdout, stderr) -> subprocess.CompletedProcess:
        if spec.timeout is not None:
            logger.debug("Timeout of %ss on '%s' is not enforced", spec.timeout, spec.display)

        env = os.environ.copy()
        env.update(spec.env)

        logger.info("Executing: %s in %s", spec.display, spec.working_dir or os.getcwd())
        try:
            return subprocess.run(
                [spec.program, *spec.args],
                cwd=str(spec.working_dir) if spec.working_dir is not None else None,
                env=env,
                stdout=stdout,
                stderr=stderr,
                check=False,
            )
        except OSError as e:
            logger.error("Spawn failed for '%s': %s", spec.display, e)
            raise SpawnError(spec.program, e.strerror or str(e)) from e


def _exit_code(returncode: int) -> int:
    # Negative return codes mean the process was killed by a signal.
    return SIGNAL_EXIT_CODE if returncode < 0 else returncode
