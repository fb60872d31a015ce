"""Tests for the process execution engine."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from byte_terminal.errors import SpawnError
from byte_terminal.services.command import CommandBuilder, build_spec
from byte_terminal.services.engine import ExecutionEngine
from byte_terminal.storage.models import ExecutionMode


@pytest.fixture
def engine():
    return ExecutionEngine()


class TestCaptured:
    def test_success(self, engine):
        result = engine.run_captured(build_spec("echo hello"))
        assert result.success
        assert result.exit_code == 0
        assert result.stdout == "hello\n"
        assert result.stderr == ""
        assert result.command_display == "echo hello"
        assert result.duration >= 0

    def test_exit_code(self, engine):
        result = engine.run_captured(build_spec("exit 1"))
        assert not result.success
        assert result.exit_code == 1

    def test_stderr_captured(self, engine):
        result = engine.run_captured(build_spec("echo oops >&2; exit 3"))
        assert result.exit_code == 3
        assert result.stderr == "oops\n"

    def test_working_dir(self, engine, tmp_path):
        (tmp_path / "marker.txt").write_text("x")
        result = engine.run_captured(build_spec("ls", tmp_path))
        assert "marker.txt" in result.stdout

    def test_env_override(self, engine):
        spec = build_spec("echo $BYTE_TEST_VAR", env={"BYTE_TEST_VAR": "from-spec"})
        assert engine.run_captured(spec).stdout.strip() == "from-spec"

    def test_inherits_environment(self, engine, monkeypatch):
        monkeypatch.setenv("BYTE_INHERITED", "yes")
        assert engine.run_captured(build_spec("echo $BYTE_INHERITED")).stdout.strip() == "yes"

    def test_invalid_utf8_is_replaced(self, engine):
        result = engine.run_captured(build_spec(r"printf '\377ok'"))
        assert result.stdout.endswith("ok")
        assert "\ufffd" in result.stdout

    def test_killed_by_signal_maps_to_minus_one(self, engine):
        result = engine.run_captured(build_spec("kill -9 $$"))
        assert result.exit_code == -1
        assert not result.success

    def test_missing_binary(self, engine):
        spec = CommandBuilder("byte-terminal-no-such-binary").build()
        with pytest.raises(SpawnError) as exc:
            engine.run_captured(spec)
        assert exc.value.program == "byte-terminal-no-such-binary"

    def test_missing_working_dir(self, engine, tmp_path):
        with pytest.raises(SpawnError):
            engine.run_captured(build_spec("true", tmp_path / "missing"))

    def test_timeout_is_not_enforced(self, engine):
        spec = CommandBuilder.shell("exit 0").timeout(0.001).build()
        with patch("byte_terminal.services.engine.subprocess.run", wraps=subprocess.run) as run:
            result = engine.run_captured(spec)
        assert result.success
        assert "timeout" not in run.call_args.kwargs


class TestStatusOnly:
    def test_true(self, engine):
        assert engine.run_status(build_spec("echo noise", mode=ExecutionMode.STATUS_ONLY)) is True

    def test_false(self, engine):
        assert engine.run_status(build_spec("exit 2", mode=ExecutionMode.STATUS_ONLY)) is False

    def test_output_discarded(self, engine, capfd):
        engine.run_status(build_spec("echo should-not-appear"))
        out, _ = capfd.readouterr()
        assert "should-not-appear" not in out

    def test_missing_binary(self, engine):
        with pytest.raises(SpawnError):
            engine.run_status(CommandBuilder("byte-terminal-no-such-binary").build())


class TestInteractive:
    def test_success(self, engine):
        spec = CommandBuilder("sh").args("-c", "exit 0").mode(ExecutionMode.INTERACTIVE).build()
        assert engine.run_interactive(spec) is True

    def test_failure(self, engine):
        spec = CommandBuilder("sh").args("-c", "exit 4").mode(ExecutionMode.INTERACTIVE).build()
        assert engine.run_interactive(spec) is False

    def test_streams_inherited(self, engine):
        spec = CommandBuilder("sh").args("-c", "true").mode(ExecutionMode.INTERACTIVE).build()
        with patch("byte_terminal.services.engine.subprocess.run") as run:
            run.return_value.returncode = 0
            engine.run_interactive(spec)
        kwargs = run.call_args.kwargs
        assert kwargs["stdout"] is None
        assert kwargs["stderr"] is None
        assert "stdin" not in kwargs


class TestRunDispatch:
    def test_status_only_result(self, engine):
        result = engine.run(build_spec("exit 5", mode=ExecutionMode.STATUS_ONLY))
        assert not result.success
        assert result.stdout == ""

    def test_captured_result(self, engine):
        result = engine.run(build_spec("echo hi"))
        assert result.stdout == "hi\n"
