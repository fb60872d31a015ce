"""System utility checks."""

from __future__ import annotations

import os
from pathlib import Path

from byte_terminal.errors import SpawnError
from byte_terminal.services.command import CommandBuilder
from byte_terminal.services.engine import ExecutionEngine
from byte_terminal.storage.models import ExecutionMode

FALLBACK_EDITORS = ("vim", "nano", "vi", "emacs")


def check_project_dir(path: str) -> tuple[bool, str]:
    """Validate a project directory path."""
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        return False, f"Directory not found: {resolved}"
    if not resolved.is_dir():
        return False, f"Not a directory: {resolved}"
    return True, str(resolved)


def command_exists(name: str, engine: ExecutionEngine | None = None) -> bool:
    """Ask ``which`` whether a program is on PATH."""
    spec = CommandBuilder("which").arg(name).mode(ExecutionMode.STATUS_ONLY).build()
    try:
        return (engine or ExecutionEngine()).run_status(spec)
    except SpawnError:
        return False


def find_editor(engine: ExecutionEngine | None = None) -> str:
    """$EDITOR, then $VISUAL, then the first common editor found, else vi."""
    for var in ("EDITOR", "VISUAL"):
        if editor := os.environ.get(var):
            return editor
    for editor in FALLBACK_EDITORS:
        if command_exists(editor, engine):
            return editor
    return "vi"
