"""Command allow-list policy - checked before anything is spawned."""

from __future__ import annotations

import logging
import re
import shlex
from pathlib import PurePath

from byte_terminal.errors import (
    EmptyCommandError,
    NotWhitelistedError,
    UntrustedShellSyntaxError,
    ValidationError,
)
from byte_terminal.services.categorizer import strip_cd_prefix
from byte_terminal.storage.models import SHELLS, CommandSpec, ExecutionMode

logger = logging.getLogger(__name__)

ALLOWED_PROGRAMS: frozenset[str] = frozenset(
    {
        # Rust
        "cargo", "rustc", "rustfmt", "clippy-driver",
        # Go
        "go", "gofmt",
        # JavaScript
        "bun", "npm", "node", "npx", "pnpm", "yarn",
        # Python
        "python", "python3", "pip", "uv", "pytest",
        # Native
        "make", "cmake",
        "git",
        "which",
    }
)

ALLOWED_EDITORS: frozenset[str] = frozenset({"vim", "nvim", "nano", "vi", "emacs"})

# Accepted as the first word of a shell command, never as a direct program.
SHELL_BUILTINS: frozenset[str] = frozenset({"echo", "exit", "true", "false"})

_ENV_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_SHELL_OPERATORS = ("&&", "||", "&", ";", "|", ">", "<", "`", "$(", "\n", "\r")


class SecurityPolicy:
    """Allow-list validator for command specs.

    ``trusted_config_source`` means command text comes from a developer's
    byte.toml, so pipes, chaining and redirection are allowed in shell mode.
    The first executed word is still checked against the allow-list.
    """

    def __init__(self, trusted_config_source: bool = True) -> None:
        self.trusted_config_source = trusted_config_source

    def validate(self, spec: CommandSpec) -> None:
        """Raise a ValidationError subclass if the spec must not run."""
        if not spec.program.strip():
            raise EmptyCommandError()

        if spec.mode is ExecutionMode.INTERACTIVE:
            self._validate_editor(spec)
            return

        if spec.program in SHELLS:
            # Only the exact ``sh -c TEXT`` form; flags like -l or -e are refused.
            text = spec.shell_text
            if text is None:
                self._reject(spec.display, f"'{spec.program}' only runs as '{spec.program} -c TEXT'")
                raise NotWhitelistedError(spec.program)
            self._validate_shell_text(text)
            return

        if spec.program not in ALLOWED_PROGRAMS:
            self._reject(spec.display, f"'{spec.program}' not whitelisted")
            raise NotWhitelistedError(spec.program)

    def check(self, spec: CommandSpec) -> tuple[bool, str]:
        """Non-raising form of validate. Returns (allowed, reason)."""
        try:
            self.validate(spec)
        except ValidationError as e:
            return False, str(e)
        return True, ""

    def _validate_shell_text(self, text: str) -> None:
        if not text.strip():
            raise EmptyCommandError()

        if not self.trusted_config_source:
            for operator in _SHELL_OPERATORS:
                if operator in text:
                    self._reject(text, f"shell operator {operator!r}")
                    raise UntrustedShellSyntaxError(operator)

        program = first_program(text)
        if program is None:
            raise EmptyCommandError()
        if program not in ALLOWED_PROGRAMS and program not in SHELL_BUILTINS:
            self._reject(text, f"'{program}' not whitelisted")
            raise NotWhitelistedError(program)

    def _validate_editor(self, spec: CommandSpec) -> None:
        editor = PurePath(spec.program).name
        if editor not in ALLOWED_EDITORS:
            self._reject(spec.display, f"editor '{editor}' not whitelisted")
            raise NotWhitelistedError(spec.program)
        if len(spec.args) != 1:
            raise ValidationError(f"Editor '{editor}' takes exactly one file path")

    @staticmethod
    def _reject(command: str, reason: str) -> None:
        logger.warning("Rejected command: %s (reason: %s)", command, reason)


def first_program(text: str) -> str | None:
    """Return the first word the shell would execute, or None if there is none."""
    remainder = strip_cd_prefix(text)
    lexer = shlex.shlex(remainder, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    try:
        words = list(lexer)
    except ValueError:
        # Unbalanced quotes: fall back to plain whitespace splitting.
        words = remainder.split()

    for word in words:
        if _ENV_ASSIGNMENT.match(word):
            continue
        return word
    return None


default_policy = SecurityPolicy()
