"""Tests for the execution supervisor."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

import pytest

from byte_terminal.errors import BusyError, NotWhitelistedError, SpawnError
from byte_terminal.services.command import build_spec
from byte_terminal.services.engine import ExecutionEngine
from byte_terminal.services.supervisor import Supervisor
from byte_terminal.storage.models import CommandResult


class BlockingEngine(ExecutionEngine):
    """Engine whose runs finish only when released."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.calls = 0

    def run(self, spec):
        self.calls += 1
        self.release.wait(timeout=5)
        return CommandResult(command_display=spec.display, stdout="done", exit_code=0)


def take(supervisor, pending, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = supervisor.try_take(pending)
        if result is not None:
            return result
        time.sleep(0.005)
    raise AssertionError("worker did not deliver a result")


class TestSpawn:
    def test_returns_immediately(self):
        engine = BlockingEngine()
        supervisor = Supervisor(engine)
        pending = supervisor.spawn(build_spec("cargo build"))
        assert supervisor.try_take(pending) is None
        assert supervisor.busy
        engine.release.set()
        assert take(supervisor, pending).stdout == "done"

    def test_second_spawn_is_busy(self):
        engine = BlockingEngine()
        supervisor = Supervisor(engine)
        first = supervisor.spawn(build_spec("cargo build"))

        with pytest.raises(BusyError) as exc:
            supervisor.spawn(build_spec("cargo test"))
        assert exc.value.running == "cargo build"
        assert supervisor.pending is first

        engine.release.set()
        take(supervisor, first)
        assert not supervisor.busy

        second = supervisor.spawn(build_spec("cargo test"))
        assert second is not first
        take(supervisor, second)
        assert engine.calls == 2

    def test_busy_even_after_worker_finished(self):
        engine = BlockingEngine()
        engine.release.set()
        supervisor = Supervisor(engine)
        pending = supervisor.spawn(build_spec("make"))
        pending.worker.join(timeout=5)

        with pytest.raises(BusyError):
            supervisor.spawn(build_spec("make"))

    def test_not_whitelisted_never_spawns(self):
        engine = MagicMock(spec=ExecutionEngine)
        supervisor = Supervisor(engine)
        with pytest.raises(NotWhitelistedError):
            supervisor.spawn(build_spec("curl http://example.com"))
        engine.run.assert_not_called()
        assert supervisor.pending is None


class TestWorker:
    def test_exactly_one_result(self):
        supervisor = Supervisor()
        pending = supervisor.spawn(build_spec("echo hi"))
        result = take(supervisor, pending)
        assert result.stdout == "hi\n"
        pending.worker.join(timeout=5)
        assert supervisor.try_take(pending) is None

    def test_failed_command_is_a_result(self):
        supervisor = Supervisor()
        pending = supervisor.spawn(build_spec("exit 1"))
        result = take(supervisor, pending)
        assert result.exit_code == 1
        assert not result.success

    def test_spawn_error_becomes_failed_result(self):
        engine = MagicMock(spec=ExecutionEngine)
        engine.run.side_effect = SpawnError("sh", "No such file or directory")
        supervisor = Supervisor(engine)
        pending = supervisor.spawn(build_spec("make"))

        result = take(supervisor, pending)
        assert result.exit_code == -1
        assert "No such file or directory" in result.stderr
        assert result.command_display == "make"
        engine.run.assert_called_once()

    def test_unexpected_error_becomes_failed_result(self):
        engine = MagicMock(spec=ExecutionEngine)
        engine.run.side_effect = RuntimeError("boom")
        supervisor = Supervisor(engine)
        pending = supervisor.spawn(build_spec("make"))
        result = take(supervisor, pending)
        assert not result.success
        assert "boom" in result.stderr


class TestAbandon:
    def test_abandon_frees_slot(self):
        engine = BlockingEngine()
        supervisor = Supervisor(engine)
        old = supervisor.spawn(build_spec("cargo build"))
        supervisor.abandon()
        assert supervisor.pending is None

        new = supervisor.spawn(build_spec("cargo test"))
        engine.release.set()
        take(supervisor, new)
        old.worker.join(timeout=5)
        assert not old.worker.is_alive()
