"""Exception types raised by the command execution layer."""

from __future__ import annotations


class ByteTerminalError(Exception):
    """Base class for byte-terminal errors."""


class ValidationError(ByteTerminalError):
    """A command was rejected by the security policy before spawning."""


class NotWhitelistedError(ValidationError):
    """The program (or first shell word) is not on the allow-list."""

    def __init__(self, program: str) -> None:
        super().__init__(f"Command '{program}' is not in the allow-list")
        self.program = program


class EmptyCommandError(ValidationError):
    """The command has no program or the shell text is blank."""

    def __init__(self) -> None:
        super().__init__("Command is empty")


class UntrustedShellSyntaxError(ValidationError):
    """Shell metacharacters used while the config source is not trusted."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Shell operator '{token}' not allowed from an untrusted source")
        self.token = token


class SpawnError(ByteTerminalError):
    """The OS refused to create the process."""

    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"Failed to execute '{program}': {reason}")
        self.program = program
        self.reason = reason


class BusyError(ByteTerminalError):
    """A command is already in flight."""

    def __init__(self, running: str) -> None:
        super().__init__(f"Another command is still running: {running}")
        self.running = running
