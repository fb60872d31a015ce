"""Text formatting helpers for results and log files."""

from __future__ import annotations

from byte_terminal.services.categorizer import strip_cd_prefix
from byte_terminal.storage.models import CommandResult

MAX_SLUG_LENGTH = 40


def format_duration(seconds: float) -> str:
    """Format seconds to human-readable duration."""
    ms = int(seconds * 1000)
    if ms < 1000:
        return f"{ms}ms"
    elif ms < 60000:
        return f"{ms / 1000:.1f}s"
    else:
        minutes = ms // 60000
        secs = (ms % 60000) // 1000
        return f"{minutes}m {secs}s"


def command_slug(command: str) -> str:
    """Short filename-safe name for a command.

    ``cargo build --release`` -> ``build``, ``make`` -> ``make``.
    """
    parts = strip_cd_prefix(command).split()
    word = parts[1] if len(parts) >= 2 else (parts[0] if parts else "")
    slug = "".join(c for c in word if c.isalnum() or c == "-")[:MAX_SLUG_LENGTH]
    return slug or "cmd"


def format_result(result: CommandResult) -> str:
    """One-line status for a finished command."""
    elapsed = format_duration(result.duration)
    if result.success:
        return f"✓ {result.command_display} ({elapsed})"
    return f"✗ {result.command_display} failed with exit code {result.exit_code} ({elapsed})"


def tail(text: str, lines: int = 20) -> str:
    """Last ``lines`` lines of output."""
    return "\n".join(text.rstrip("\n").splitlines()[-lines:])
