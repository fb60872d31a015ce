"""Fluent builder for command specs."""

from __future__ import annotations

from pathlib import Path

from byte_terminal.storage.models import CommandSpec, ExecutionMode


class CommandBuilder:
    """Build an immutable CommandSpec step by step.

    Example::

        spec = (
            CommandBuilder("cargo")
            .arg("build")
            .working_dir("~/projects/app")
            .env("RUST_LOG", "debug")
            .build()
        )
    """

    def __init__(self, program: str) -> None:
        self._program = program
        self._args: list[str] = []
        self._working_dir: Path | None = None
        self._env: dict[str, str] = {}
        self._mode = ExecutionMode.CAPTURED
        self._log_category: str | None = None
        self._timeout: float | None = None

    @classmethod
    def shell(cls, command: str, shell: str = "sh") -> CommandBuilder:
        """Run ``command`` through ``shell -c``. Prefer direct execution."""
        return cls(shell).arg("-c").arg(command)

    @classmethod
    def git(cls, subcommand: str) -> CommandBuilder:
        return cls("git").arg(subcommand)

    def arg(self, value: str) -> CommandBuilder:
        self._args.append(value)
        return self

    def args(self, *values: str) -> CommandBuilder:
        self._args.extend(values)
        return self

    def working_dir(self, path: str | Path) -> CommandBuilder:
        self._working_dir = Path(path).expanduser()
        return self

    def env(self, key: str, value: str) -> CommandBuilder:
        self._env[key] = value
        return self

    def mode(self, mode: ExecutionMode) -> CommandBuilder:
        self._mode = mode
        return self

    def log_as(self, category: str) -> CommandBuilder:
        self._log_category = category
        return self

    def timeout(self, seconds: float) -> CommandBuilder:
        """Declare a timeout. Recorded on the spec but not enforced."""
        self._timeout = seconds
        return self

    def build(self) -> CommandSpec:
        return CommandSpec(
            program=self._program,
            args=tuple(self._args),
            working_dir=self._working_dir,
            env=dict(self._env),
            mode=self._mode,
            log_category=self._log_category,
            timeout=self._timeout,
        )


def build_spec(
    command: str,
    working_dir: str | Path | None = None,
    *,
    shell: str = "sh",
    env: dict[str, str] | None = None,
    mode: ExecutionMode = ExecutionMode.CAPTURED,
    log_category: str | None = None,
) -> CommandSpec:
    """Shortcut for a shell command spec from config text."""
    builder = CommandBuilder.shell(command, shell=shell).mode(mode)
    if working_dir is not None:
        builder.working_dir(working_dir)
    for key, value in (env or {}).items():
        builder.env(key, value)
    if log_category:
        builder.log_as(log_category)
    return builder.build()
