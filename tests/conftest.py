"""Shared test fixtures."""

from __future__ import annotations

import pytest

from byte_terminal.config import AppConfig, ExecConfig, LoggingConfig, LogsConfig, WorkspaceConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        workspace=WorkspaceConfig(path=str(tmp_path)),
        exec=ExecConfig(shell="sh", min_visible_ms=500, tick_ms=5),
        logs=LogsConfig(keep=20, tool_dir=".byte"),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def clock():
    return FakeClock()
