"""Persisted build state (.byte/state/build.json)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from byte_terminal.storage.atomic import atomic_write_text
from byte_terminal.storage.models import BuildState, BuildStatus

logger = logging.getLogger(__name__)

STATE_FILE = Path("state") / "build.json"


def state_path(project_path: str | Path, tool_dir: str = ".byte") -> Path:
    return Path(project_path).expanduser() / tool_dir / STATE_FILE


def save_build_state(project_path: str | Path, state: BuildState, tool_dir: str = ".byte") -> Path:
    """Atomically replace the build state file."""
    path = state_path(project_path, tool_dir)
    data = {
        "timestamp": state.timestamp,
        "status": state.status.value,
        "task": state.task,
    }
    atomic_write_text(path, json.dumps(data, indent=2) + "\n")
    logger.debug("Build state saved: %s -> %s", state.task, state.status.value)
    return path


def load_build_state(project_path: str | Path, tool_dir: str = ".byte") -> BuildState | None:
    """Load the build state, or None if missing or unreadable."""
    path = state_path(project_path, tool_dir)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return BuildState(
            timestamp=int(data["timestamp"]),
            status=BuildStatus(data["status"]),
            task=str(data["task"]),
        )
    except (OSError, ValueError, KeyError, TypeError):
        logger.warning("Ignoring unreadable build state: %s", path)
        return None
