"""Per-category command logs and build state updates."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from byte_terminal.services.categorizer import Category, categorize
from byte_terminal.storage.atomic import atomic_write_text
from byte_terminal.storage.build_state import save_build_state
from byte_terminal.storage.models import BuildState, BuildStatus, CommandResult, LogEntry
from byte_terminal.utils.formatting import command_slug, format_duration

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 20
LOG_SUFFIX = ".log"


class LogWriter:
    """Write command logs under ``<project>/<tool_dir>/logs/commands/<category>/``."""

    def __init__(self, project_path: str | Path, keep: int = DEFAULT_KEEP, tool_dir: str = ".byte") -> None:
        self.project_path = Path(project_path).expanduser()
        self.keep = keep
        self.tool_dir = tool_dir

    @property
    def commands_dir(self) -> Path:
        return self.project_path / self.tool_dir / "logs" / "commands"

    def write_log(self, category: str, result: CommandResult) -> Path:
        """Write one log file for ``result`` and apply retention."""
        log_dir = self.commands_dir / category
        log_dir.mkdir(parents=True, exist_ok=True)

        stamp = result.started_at.strftime("%Y-%m-%d-%H%M%S-%f")
        slug = command_slug(result.command_display)
        path = log_dir / f"{stamp}-{slug}{LOG_SUFFIX}"
        counter = 1
        while path.exists():
            path = log_dir / f"{stamp}-{slug}-{counter}{LOG_SUFFIX}"
            counter += 1

        lines = [
            f"Command: {result.command_display}",
            f"Timestamp: {result.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"Exit Code: {result.exit_code}",
            f"Working Directory: {self.project_path}",
            f"Duration: {format_duration(result.duration)}",
        ]
        if not result.success:
            lines += ["", "--- STDOUT ---", result.stdout.rstrip("\n"), "--- STDERR ---", result.stderr.rstrip("\n")]

        atomic_write_text(path, "\n".join(lines) + "\n")
        self.cleanup_old_logs(category)
        return path

    def cleanup_old_logs(self, category: str) -> int:
        """Keep only the newest ``keep`` logs in a category. Returns files removed."""
        log_dir = self.commands_dir / category
        if not log_dir.is_dir():
            return 0

        entries = sorted(
            (p for p in log_dir.iterdir() if p.suffix == LOG_SUFFIX and p.is_file()),
            key=lambda p: (p.stat().st_mtime_ns, p.name),
            reverse=True,
        )

        removed = 0
        for path in entries[self.keep :]:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
        if removed:
            logger.debug("Removed %d old %s logs", removed, category)
        return removed

    def recent_logs(self, category: str | None = None, limit: int = 10) -> list[LogEntry]:
        """Newest log files first, in one category or across all of them."""
        if not self.commands_dir.is_dir():
            return []

        if category is not None:
            dirs = [self.commands_dir / category]
        else:
            dirs = [d for d in self.commands_dir.iterdir() if d.is_dir()]

        logs: list[LogEntry] = []
        for log_dir in dirs:
            if not log_dir.is_dir():
                continue
            for path in log_dir.iterdir():
                if path.suffix != LOG_SUFFIX:
                    continue
                logs.append(
                    LogEntry(
                        path=path,
                        category=log_dir.name,
                        timestamp=path.stat().st_mtime,
                        filename=path.name,
                    )
                )

        logs.sort(key=lambda e: (e.timestamp, e.filename), reverse=True)
        return logs[:limit]

    def mark_running(self, task: str) -> None:
        self._save_state(BuildStatus.RUNNING, task)

    def update_build_state(self, result: CommandResult, task: str | None = None) -> None:
        status = BuildStatus.SUCCESS if result.success else BuildStatus.FAILED
        self._save_state(status, task or result.command_display)

    def record(self, result: CommandResult, task: str | None = None, log_category: str | None = None) -> Path | None:
        """Persist a settled result. Write failures are logged, never raised."""
        category = categorize(result.command_display)
        path: Path | None = None
        try:
            path = self.write_log(log_category or category.value, result)
        except OSError:
            logger.exception("Failed to write command log for: %s", result.command_display)

        if category is Category.BUILD:
            try:
                self.update_build_state(result, task)
            except OSError:
                logger.exception("Failed to update build state for: %s", result.command_display)
        return path

    def _save_state(self, status: BuildStatus, task: str) -> None:
        state = BuildState(timestamp=int(time.time()), status=status, task=task)
        save_build_state(self.project_path, state, self.tool_dir)
