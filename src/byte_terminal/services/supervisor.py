"""Run the execution engine off the UI thread, one command at a time."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime

from byte_terminal.errors import BusyError, SpawnError
from byte_terminal.services.engine import ExecutionEngine
from byte_terminal.services.policy import SecurityPolicy, default_policy
from byte_terminal.storage.models import CommandResult, CommandSpec

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PendingExecution:
    """Handle for a command running on a worker thread.

    The channel is a one-shot queue: the worker puts exactly one
    CommandResult on it and exits.
    """

    spec: CommandSpec
    started_at: float
    channel: queue.Queue[CommandResult] = field(default_factory=lambda: queue.Queue(maxsize=1))
    worker: threading.Thread | None = None


class Supervisor:
    """Owns the worker thread for the single foreground command."""

    def __init__(
        self,
        engine: ExecutionEngine | None = None,
        policy: SecurityPolicy | None = None,
    ) -> None:
        self.engine = engine or ExecutionEngine()
        self.policy = policy or default_policy
        self._pending: PendingExecution | None = None

    @property
    def pending(self) -> PendingExecution | None:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def spawn(self, spec: CommandSpec) -> PendingExecution:
        """Validate the spec and start it on a worker thread.

        Raises:
            BusyError: A previous result has not been taken yet.
            ValidationError: The policy rejected the spec.
        """
        if self._pending is not None:
            raise BusyError(self._pending.spec.display)

        self.policy.validate(spec)

        pending = PendingExecution(spec=spec, started_at=time.monotonic())
        worker = threading.Thread(
            target=self._run_worker,
            args=(spec, pending.channel),
            name=f"byte-exec-{spec.program}",
            daemon=True,
        )
        pending.worker = worker
        self._pending = pending
        worker.start()
        logger.debug("Spawned worker for: %s", spec.display)
        return pending

    def try_take(self, pending: PendingExecution) -> CommandResult | None:
        """Return the result if the worker is done, without blocking."""
        try:
            result = pending.channel.get_nowait()
        except queue.Empty:
            return None

        if self._pending is pending:
            self._pending = None
        return result

    def abandon(self) -> None:
        """Forget the pending execution. The worker runs to completion unobserved."""
        if self._pending is not None:
            logger.info("Abandoning command: %s", self._pending.spec.display)
        self._pending = None

    def _run_worker(self, spec: CommandSpec, channel: queue.Queue[CommandResult]) -> None:
        started_at = datetime.now()
        start = time.monotonic()
        try:
            result = self.engine.run(spec)
        except SpawnError as e:
            result = CommandResult(
                command_display=spec.display,
                stderr=str(e),
                exit_code=-1,
                started_at=started_at,
                duration=time.monotonic() - start,
            )
        except Exception as e:
            logger.exception("Worker failed for: %s", spec.display)
            result = CommandResult(
                command_display=spec.display,
                stderr=f"Command execution failed: {e}",
                exit_code=-1,
                started_at=started_at,
                duration=time.monotonic() - start,
            )
        channel.put(result)
