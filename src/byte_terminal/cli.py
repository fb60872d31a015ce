"""CLI entry point using typer."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from byte_terminal import __version__
from byte_terminal.app import Workbench
from byte_terminal.config import (
    CONFIG_FILE,
    AppConfig,
    load_config,
    load_project_commands,
    save_config,
)
from byte_terminal.errors import ByteTerminalError
from byte_terminal.services.categorizer import Category, categorize
from byte_terminal.storage.build_state import load_build_state
from byte_terminal.storage.models import BuildStatus
from byte_terminal.ui import LiveDisplay, wait_for_result
from byte_terminal.utils.formatting import format_result, tail
from byte_terminal.utils.system import check_project_dir

app = typer.Typer(
    name="byte-terminal",
    help="Run a project's build, test, lint and git commands.",
    add_completion=False,
)
console = Console()

CATEGORY_STYLES = {
    Category.BUILD: "yellow",
    Category.TEST: "magenta",
    Category.LINT: "blue",
    Category.GIT: "green",
    Category.OTHER: "white",
}


def _setup_logging(config: AppConfig) -> None:
    log_path = Path(config.logging.file).expanduser()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(str(log_path)))
    except OSError as e:
        console.print(f"[yellow]Cannot open log file {log_path}: {e}[/yellow]")

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _resolve_project(project: str | None, config: AppConfig) -> Path:
    """Current directory by default. A bare name is looked up under workspace.path."""
    target = project or "."
    if project and not Path(project).expanduser().exists():
        candidate = Path(config.workspace.path).expanduser() / project
        if candidate.exists():
            target = str(candidate)

    valid, resolved = check_project_dir(target)
    if not valid:
        console.print(f"[red]{resolved}[/red]")
        raise typer.Exit(1)
    return Path(resolved)


@app.command()
def commands(
    project: str = typer.Argument(None, help="Project directory (default: current)"),
    filter_: str = typer.Option(None, "--filter", "-f", help="build, test, lint, git or other"),
) -> None:
    """List the commands declared in byte.toml."""
    config = load_config()
    project_path = _resolve_project(project, config)
    workbench = Workbench(config, project_path)

    wanted: Category | None = None
    if filter_:
        try:
            wanted = Category(filter_.lower())
        except ValueError:
            console.print(f"[red]Unknown category: {filter_}[/red]")
            raise typer.Exit(1)

    table = Table(title=f"Commands - {project_path.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Command")
    table.add_column("Category")
    table.add_column("Allowed")

    for cmd in load_project_commands(project_path):
        category = categorize(cmd.command)
        if wanted is not None and category is not wanted:
            continue
        allowed, reason = workbench.check(cmd.command)
        table.add_row(
            cmd.name,
            cmd.command,
            f"[{CATEGORY_STYLES[category]}]{category.label}[/]",
            "[green]yes[/green]" if allowed else f"[red]{reason}[/red]",
        )

    console.print(table)


@app.command()
def run(
    name: str = typer.Argument(..., help="Command name from byte.toml, or text with --raw"),
    project: str = typer.Option(None, "--project", "-p", help="Project directory"),
    raw: bool = typer.Option(False, "--raw", help="Treat NAME as the command text"),
) -> None:
    """Run one project command and wait for it."""
    config = load_config()
    _setup_logging(config)
    project_path = _resolve_project(project, config)

    task: str | None = None
    if raw:
        command = name
    else:
        declared = {c.name: c for c in load_project_commands(project_path)}
        if name not in declared and f"build: {name}" in declared:
            name = f"build: {name}"
        if name not in declared:
            console.print(f"[red]Unknown command: {name}[/red]")
            console.print("Run [bold]byte-terminal commands[/bold] to list them.")
            raise typer.Exit(1)
        command = declared[name].command
        task = declared[name].task

    workbench = Workbench(config, project_path)
    try:
        workbench.start(command, task=task)
    except ByteTerminalError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        with LiveDisplay(console) as display:
            result = wait_for_result(workbench, display, config.exec.tick_ms)
    except KeyboardInterrupt:
        workbench.close()
        console.print("\n[dim]Stopped waiting. The command keeps running in the background.[/dim]")
        raise typer.Exit(130)

    if result.success:
        console.print(f"[green]{format_result(result)}[/green]")
    else:
        console.print(f"[red]{format_result(result)}[/red]")
        output = tail(result.stderr) or tail(result.stdout)
        if output:
            console.print(output, markup=False, highlight=False)
    if workbench.last_log is not None:
        console.print(f"[dim]Log: {workbench.last_log}[/dim]")

    if result.exit_code != 0:
        raise typer.Exit(result.exit_code if result.exit_code > 0 else 1)


@app.command()
def logs(
    project: str = typer.Argument(None, help="Project directory (default: current)"),
    category: str = typer.Option(None, "--category", "-c", help="Only this category"),
    lines: int = typer.Option(10, "--lines", "-n", help="Number of logs"),
    open_: bool = typer.Option(False, "--open", "-o", help="Open the newest log in your editor"),
) -> None:
    """List recent command logs."""
    config = load_config()
    project_path = _resolve_project(project, config)
    workbench = Workbench(config, project_path)

    entries = workbench.writer.recent_logs(category=category, limit=lines)
    if not entries:
        console.print("[dim]No command logs found.[/dim]")
        return

    if open_:
        try:
            with LiveDisplay(console) as display:
                display.update(f"Opening {entries[0].filename}...")
                ok = workbench.open_in_editor(entries[0].path, display.suspend)
        except ByteTerminalError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        if not ok:
            console.print("[yellow]Editor exited with an error.[/yellow]")
        return

    table = Table(title="Recent command logs")
    table.add_column("When", style="dim")
    table.add_column("Category")
    table.add_column("File", style="cyan")
    for entry in entries:
        when = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(when, entry.category, entry.filename)
    console.print(table)


@app.command()
def status(
    project: str = typer.Argument(None, help="Project directory (default: current)"),
) -> None:
    """Show the last build state of a project."""
    config = load_config()
    project_path = _resolve_project(project, config)

    state = load_build_state(project_path, config.logs.tool_dir)
    if state is None:
        console.print("[dim]No build recorded.[/dim]")
        return

    style = {
        BuildStatus.SUCCESS: "green",
        BuildStatus.FAILED: "red",
        BuildStatus.RUNNING: "yellow",
    }[state.status]
    when = datetime.fromtimestamp(state.timestamp).strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"Build: [{style}]{state.status.value}[/{style}]")
    console.print(f"Task: {state.task}")
    console.print(f"At: {when}")


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., exec.min_visible_ms)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    cfg = load_config()
    section_map = {"workspace": cfg.workspace, "exec": cfg.exec, "logs": cfg.logs, "logging": cfg.logging}

    if key is None:
        # Show all config
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for section, obj in section_map.items():
            for attr, current in vars(obj).items():
                table.add_row(f"{section}.{attr}", str(current))
        console.print(table)
        if not CONFIG_FILE.exists():
            console.print("[dim]Defaults shown; no config file yet.[/dim]")
        return

    if value is None:
        console.print("[red]Usage: byte-terminal config <key> <value>[/red]")
        raise typer.Exit(1)

    parts = key.split(".")
    if len(parts) != 2:
        console.print("[red]Key format: section.key (e.g., exec.tick_ms)[/red]")
        raise typer.Exit(1)

    section, attr = parts
    if section not in section_map:
        console.print(f"[red]Unknown section: {section}[/red]")
        raise typer.Exit(1)

    obj = section_map[section]
    if not hasattr(obj, attr):
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    # Type coercion
    current = getattr(obj, attr)
    try:
        if isinstance(current, bool):
            typed_value = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            typed_value = int(value)
        else:
            typed_value = value
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    setattr(obj, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {typed_value}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"byte-terminal v{__version__}")
    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


if __name__ == "__main__":
    app()
