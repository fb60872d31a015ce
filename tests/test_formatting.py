"""Tests for result and log formatting utilities."""

from __future__ import annotations

from byte_terminal.storage.models import CommandResult
from byte_terminal.utils.formatting import command_slug, format_duration, format_result, tail


class TestFormatDuration:
    def test_milliseconds(self):
        assert format_duration(0.5) == "500ms"

    def test_seconds(self):
        assert format_duration(5.3) == "5.3s"

    def test_minutes(self):
        assert format_duration(125.0) == "2m 5s"

    def test_zero(self):
        assert format_duration(0) == "0ms"


class TestCommandSlug:
    def test_subcommand(self):
        assert command_slug("cargo build --release") == "build"

    def test_single_word(self):
        assert command_slug("make") == "make"

    def test_cd_prefix(self):
        assert command_slug("cd web && npm run build") == "run"

    def test_unsafe_characters_removed(self):
        assert command_slug("go ./...") == "cmd"
        assert command_slug("git log/../x") == "logx"

    def test_length_capped(self):
        assert len(command_slug("npm " + "a" * 100)) == 40

    def test_empty(self):
        assert command_slug("   ") == "cmd"


class TestFormatResult:
    def test_success(self):
        result = CommandResult(command_display="cargo build", exit_code=0, duration=1.5)
        assert format_result(result) == "✓ cargo build (1.5s)"

    def test_failure(self):
        result = CommandResult(command_display="cargo test", exit_code=101, duration=0.25)
        assert format_result(result) == "✗ cargo test failed with exit code 101 (250ms)"


class TestTail:
    def test_short_text(self):
        assert tail("one\ntwo\n") == "one\ntwo"

    def test_last_lines(self):
        text = "\n".join(str(i) for i in range(50))
        assert tail(text, lines=3) == "47\n48\n49"

    def test_empty(self):
        assert tail("") == ""
