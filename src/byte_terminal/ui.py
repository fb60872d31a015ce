"""Live terminal display for a running command."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from rich.console import Console, RenderableType
from rich.live import Live
from rich.spinner import Spinner
from rich.text import Text

from byte_terminal.app import Workbench
from byte_terminal.storage.models import CommandResult
from byte_terminal.utils.formatting import format_duration


class LiveDisplay:
    """Owns the terminal while a command runs.

    ``suspend`` is the handoff for interactive programs: the live region is
    stopped before the child starts and restarted afterwards, even on error.
    """

    def __init__(self, console: Console, transient: bool = True) -> None:
        self.console = console
        self._live = Live(console=console, transient=transient, auto_refresh=False)

    def __enter__(self) -> LiveDisplay:
        self._live.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._live.stop()

    def update(self, renderable: RenderableType) -> None:
        self._live.update(renderable, refresh=True)

    @contextmanager
    def suspend(self) -> Iterator[None]:
        self._live.stop()
        try:
            yield
        finally:
            self._live.start()


def render_running(workbench: Workbench, spinner: Spinner) -> RenderableType:
    command = workbench.pending.spec.display if workbench.pending else ""
    spinner.update(text=Text.assemble((command, "bold"), "  ", (format_duration(workbench.elapsed()), "dim")))
    return spinner


def wait_for_result(
    workbench: Workbench,
    display: LiveDisplay,
    tick_ms: int,
) -> CommandResult:
    """Render every tick until the workbench hands over the result."""
    spinner = Spinner("dots", style="cyan")
    tick = tick_ms / 1000
    while True:
        result = workbench.poll()
        if result is not None:
            return result
        display.update(render_running(workbench, spinner))
        time.sleep(tick)
