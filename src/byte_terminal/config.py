"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

from byte_terminal.storage.models import ProjectCommand

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "byte"
CONFIG_FILE = CONFIG_DIR / "config.toml"
PROJECT_FILE = "byte.toml"

DEFAULT_GIT_COMMANDS: list[ProjectCommand] = [
    ProjectCommand(name="git status", command="git status", description="Show git status"),
    ProjectCommand(name="git diff", command="git diff", description="Show uncommitted changes"),
]


@dataclass
class WorkspaceConfig:
    path: str = "~/projects"


@dataclass
class ExecConfig:
    shell: str = "sh"
    min_visible_ms: int = 500
    tick_ms: int = 16
    trusted_config_source: bool = True
    timeout: int = 0  # declared only; never enforced


@dataclass
class LogsConfig:
    keep: int = 20
    tool_dir: str = ".byte"


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = "~/.byte/logs/byte.log"


@dataclass
class AppConfig:
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    exec: ExecConfig = field(default_factory=ExecConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        workspace = data.get("workspace", {})
        config.workspace.path = workspace.get("path", config.workspace.path)

        exec_cfg = data.get("exec", {})
        config.exec.shell = exec_cfg.get("shell", config.exec.shell)
        config.exec.min_visible_ms = exec_cfg.get("min_visible_ms", config.exec.min_visible_ms)
        config.exec.tick_ms = exec_cfg.get("tick_ms", config.exec.tick_ms)
        config.exec.trusted_config_source = exec_cfg.get(
            "trusted_config_source", config.exec.trusted_config_source
        )
        config.exec.timeout = exec_cfg.get("timeout", config.exec.timeout)

        logs = data.get("logs", {})
        config.logs.keep = logs.get("keep", config.logs.keep)
        config.logs.tool_dir = logs.get("tool_dir", config.logs.tool_dir)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_workspace := os.environ.get("BYTE_WORKSPACE"):
        config.workspace.path = env_workspace
    if env_shell := os.environ.get("BYTE_SHELL"):
        config.exec.shell = env_shell
    if env_min_visible := os.environ.get("BYTE_MIN_VISIBLE_MS"):
        config.exec.min_visible_ms = int(env_min_visible)
    if env_tick := os.environ.get("BYTE_TICK_MS"):
        config.exec.tick_ms = int(env_tick)
    if env_keep := os.environ.get("BYTE_LOG_KEEP"):
        config.logs.keep = int(env_keep)
    if env_log_level := os.environ.get("BYTE_LOG_LEVEL"):
        config.logging.level = env_log_level

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "workspace": {
            "path": config.workspace.path,
        },
        "exec": {
            "shell": config.exec.shell,
            "min_visible_ms": config.exec.min_visible_ms,
            "tick_ms": config.exec.tick_ms,
            "trusted_config_source": config.exec.trusted_config_source,
            "timeout": config.exec.timeout,
        },
        "logs": {
            "keep": config.logs.keep,
            "tool_dir": config.logs.tool_dir,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)


def load_project_commands(project_path: str | Path) -> list[ProjectCommand]:
    """Read ``[build]`` and ``[commands]`` from a project's byte.toml.

    Build tasks are listed as ``build: <name>``. The git defaults are always
    appended.
    """
    commands: list[ProjectCommand] = []
    project_file = Path(project_path).expanduser() / PROJECT_FILE

    if project_file.exists():
        try:
            with open(project_file, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error("Invalid %s: %s", project_file, e)
            data = {}

        for name, cmd in data.get("build", {}).items():
            commands.append(
                ProjectCommand(
                    name=f"build: {name}",
                    command=str(cmd),
                    description=f"Run build task: {name}",
                    task=name,
                )
            )
        for name, cmd in data.get("commands", {}).items():
            commands.append(ProjectCommand(name=name, command=str(cmd), description=f"Run: {name}"))

    commands.extend(
        ProjectCommand(name=c.name, command=c.command, description=c.description)
        for c in DEFAULT_GIT_COMMANDS
    )
    return commands


# Global singleton
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or load the global config singleton."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global config (for testing)."""
    global _config
    _config = None
