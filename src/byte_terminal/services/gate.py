"""Minimum-duration gate between command completion and the UI."""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

from byte_terminal.services.supervisor import PendingExecution, Supervisor
from byte_terminal.storage.models import CommandResult

MIN_VISIBLE_DURATION = 0.5


class GateState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    RESULT_BUFFERED = "result_buffered"
    SETTLED = "settled"


class AnimationGate:
    """Hold a finished result until the running state has been visible long enough.

    A command that exits in a millisecond would otherwise flash the progress
    indicator for a single frame.
    """

    def __init__(
        self,
        min_visible: float = MIN_VISIBLE_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_visible = min_visible
        self._clock = clock
        self.state = GateState.IDLE
        self.start_time: float | None = None
        self._buffered: CommandResult | None = None

    @property
    def active(self) -> bool:
        return self.state in (GateState.RUNNING, GateState.RESULT_BUFFERED)

    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return self._clock() - self.start_time

    def begin(self) -> None:
        if self.active:
            raise RuntimeError(f"Gate is already {self.state.value}")
        self.state = GateState.RUNNING
        self.start_time = self._clock()
        self._buffered = None

    def offer(self, result: CommandResult) -> None:
        if self.state is not GateState.RUNNING:
            raise RuntimeError(f"Cannot buffer a result while {self.state.value}")
        self._buffered = result
        self.state = GateState.RESULT_BUFFERED

    def release(self) -> CommandResult | None:
        """Hand over the buffered result once the minimum duration has passed."""
        if self.state is not GateState.RESULT_BUFFERED:
            return None
        if self.elapsed() < self.min_visible:
            return None

        result, self._buffered = self._buffered, None
        self.state = GateState.SETTLED
        return result

    def poll(self, supervisor: Supervisor, pending: PendingExecution) -> CommandResult | None:
        """Called once per UI tick. Never blocks."""
        if self.state is GateState.RUNNING:
            result = supervisor.try_take(pending)
            if result is not None:
                self.offer(result)
        return self.release()

    def reset(self) -> None:
        """Drop back to idle, discarding any buffered result."""
        self.state = GateState.IDLE
        self.start_time = None
        self._buffered = None
