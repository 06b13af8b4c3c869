"""Tests for the logsink module."""

from __future__ import annotations

import io
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError
from rich.console import Console

from vendor_update.errors import FatalError, LogSinkError
from vendor_update.logsink import (
    LogSink,
    get_documents_dir,
    read_last_lines,
    resolve_log_path,
)
from vendor_update.models import LogConfig, LogEvent, LogLevel

STAMP = datetime(2026, 3, 14, 9, 26, 53)


def make_sink(tmp_path: Path, **config: object) -> LogSink:
    log_config = LogConfig(application_name="TestApp", log_dir=tmp_path / "Logs", **config)
    console = Console(file=io.StringIO(), width=200, color_system=None)
    return LogSink(log_config, console=console, clock=lambda: STAMP)


class TestLogEvent:
    """Tests for LogEvent rendering."""

    def test_render_format(self) -> None:
        event = LogEvent(timestamp=STAMP, level=LogLevel.INFO, message="Installing DriverA")
        assert event.render() == "[2026-03-14 09:26:53] [INFO] Installing DriverA"

    def test_render_error(self) -> None:
        event = LogEvent(timestamp=STAMP, level=LogLevel.ERROR, message="boom")
        assert event.render() == "[2026-03-14 09:26:53] [ERROR] boom"

    def test_event_is_immutable(self) -> None:
        event = LogEvent(timestamp=STAMP, level=LogLevel.INFO, message="x")
        with pytest.raises(ValidationError):
            event.message = "y"


class TestLogPath:
    """Tests for resolving the log file location."""

    def test_file_name_from_application_name(self) -> None:
        assert LogConfig(application_name="DellUpdate").file_name == "DellUpdate_Log.txt"

    def test_log_dir_override(self, tmp_path: Path) -> None:
        config = LogConfig(application_name="App", log_dir=tmp_path)
        assert resolve_log_path(config) == tmp_path / "App_Log.txt"

    def test_default_under_documents_logs(self, tmp_path: Path) -> None:
        environ = {"XDG_DOCUMENTS_DIR": str(tmp_path / "Docs")}
        path = resolve_log_path(LogConfig(), environ)
        assert path == tmp_path / "Docs" / "Logs" / "VendorUpdate_Log.txt"

    def test_synced_documents_preferred(self, tmp_path: Path) -> None:
        (tmp_path / "OneDrive" / "Documents").mkdir(parents=True)
        environ = {
            "OneDrive": str(tmp_path / "OneDrive"),
            "XDG_DOCUMENTS_DIR": str(tmp_path / "Docs"),
        }
        assert get_documents_dir(environ) == tmp_path / "OneDrive" / "Documents"

    def test_commercial_sync_wins_over_personal(self, tmp_path: Path) -> None:
        (tmp_path / "Work" / "Documents").mkdir(parents=True)
        (tmp_path / "Home" / "Documents").mkdir(parents=True)
        environ = {
            "OneDriveCommercial": str(tmp_path / "Work"),
            "OneDrive": str(tmp_path / "Home"),
        }
        assert get_documents_dir(environ) == tmp_path / "Work" / "Documents"

    def test_synced_root_without_documents_is_ignored(self, tmp_path: Path) -> None:
        environ = {
            "OneDrive": str(tmp_path / "OneDrive"),
            "XDG_DOCUMENTS_DIR": str(tmp_path / "Docs"),
        }
        assert get_documents_dir(environ) == tmp_path / "Docs"

    def test_falls_back_to_home(self) -> None:
        assert get_documents_dir({}) == Path.home() / "Documents"


class TestInitialize:
    """Tests for creating the log directory and file."""

    def test_creates_directory_and_file(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)
        assert not sink.initialized

        path = sink.initialize()

        assert path == tmp_path / "Logs" / "TestApp_Log.txt"
        assert path.is_file()
        assert sink.initialized

    def test_existing_file_is_kept(self, tmp_path: Path) -> None:
        (tmp_path / "Logs").mkdir()
        (tmp_path / "Logs" / "TestApp_Log.txt").write_text("old line\n")

        sink = make_sink(tmp_path)
        sink.initialize()

        assert sink.path.read_text() == "old line\n"

    def test_directory_failure_is_fatal(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        config = LogConfig(application_name="TestApp", log_dir=blocker / "Logs")
        sink = LogSink(config, console=Console(file=io.StringIO()))

        with pytest.raises(LogSinkError) as exc_info:
            sink.initialize()

        assert isinstance(exc_info.value, FatalError)

    def test_log_propagates_directory_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config = LogConfig(application_name="TestApp", log_dir=blocker)
        sink = LogSink(config, console=Console(file=io.StringIO()))

        with pytest.raises(LogSinkError):
            sink.info("never written")

        assert sink.events == ()


class TestLog:
    """Tests for writing events."""

    def test_appends_rendered_line(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)

        sink.info("Script execution started")
        sink.error("Failed to install DriverA: exit code 1603")

        assert sink.path.read_text().splitlines() == [
            "[2026-03-14 09:26:53] [INFO] Script execution started",
            "[2026-03-14 09:26:53] [ERROR] Failed to install DriverA: exit code 1603",
        ]

    def test_appends_to_existing_content(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)
        sink.initialize()
        sink.path.write_text("previous run\n")

        sink.info("next run")

        assert sink.path.read_text().splitlines()[0] == "previous run"
        assert len(sink.path.read_text().splitlines()) == 2

    def test_returns_and_records_event(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)

        event = sink.log("hello", LogLevel.INFO)

        assert event.message == "hello"
        assert event.timestamp == STAMP
        assert sink.events == (event,)

    def test_writes_to_console(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)

        sink.info("Installing [bold]DriverA[/bold]")

        output = sink._console.file.getvalue()
        assert "[INFO] Installing [bold]DriverA[/bold]" in output

    def test_errors_go_to_error_console(self, tmp_path: Path) -> None:
        out = Console(file=io.StringIO(), width=200)
        err = Console(file=io.StringIO(), width=200)
        config = LogConfig(application_name="TestApp", log_dir=tmp_path)
        sink = LogSink(config, console=out, error_console=err, clock=lambda: STAMP)

        sink.info("fine")
        sink.error("broken")

        assert "fine" in out.file.getvalue()
        assert "broken" not in out.file.getvalue()
        assert "[ERROR] broken" in err.file.getvalue()

    def test_accepts_level_string(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)
        event = sink.log("x", "ERROR")  # type: ignore[arg-type]
        assert event.level == LogLevel.ERROR

    def test_event_recorded_when_rotation_fails(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)

        with (
            patch.object(LogSink, "rotate_if_needed", side_effect=OSError("disk full")),
            pytest.raises(LogSinkError, match="Cannot rotate log file"),
        ):
            sink.info("Installed DriverA")

        assert [event.message for event in sink.events] == ["Installed DriverA"]
        assert sink.path.read_text().endswith("[INFO] Installed DriverA\n")


class TestRotation:
    """Tests for size-bounded rotation."""

    def test_no_rotation_below_cap(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=1000, lines_to_keep=2)
        sink.initialize()
        sink.path.write_bytes(b"a\nb\nc\n")

        assert sink.rotate_if_needed() is False
        assert sink.path.read_bytes() == b"a\nb\nc\n"

    def test_keeps_most_recent_lines(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=50, lines_to_keep=4)
        sink.initialize()
        sink.path.write_bytes(b"".join(f"line {i}\n".encode() for i in range(10)))

        assert sink.rotate_if_needed() is True
        assert sink.path.read_text().splitlines() == ["line 6", "line 7", "line 8", "line 9"]

    def test_drops_more_lines_when_kept_lines_exceed_cap(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=20, lines_to_keep=4)
        sink.initialize()
        sink.path.write_bytes(b"".join(f"line {i}\n".encode() for i in range(10)))

        sink.rotate_if_needed()

        assert sink.path.read_text().splitlines() == ["line 8", "line 9"]
        assert sink.path.stat().st_size <= 20

    def test_size_bounded_after_every_write(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=200, lines_to_keep=3)

        for i in range(25):
            sink.info(f"event {i}")
            assert sink.path.stat().st_size <= 200

        lines = sink.path.read_text().splitlines()
        assert lines[-1].endswith("event 24")
        assert len(lines) <= 5

    def test_rotation_keeps_whole_lines(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=120, lines_to_keep=2)

        for i in range(10):
            sink.info(f"message number {i}")

        for line in sink.path.read_text().splitlines():
            assert line.startswith("[2026-03-14 09:26:53] [INFO] message number ")

    def test_non_ascii_sizes_counted_in_bytes(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=150, lines_to_keep=10)

        for _ in range(6):
            sink.info("Gerätetreiber für Grafikkarte")

        assert sink.path.stat().st_size <= 150


class TestReadLastLines:
    """Tests for reading a file from its end."""

    def test_reads_across_chunks(self, tmp_path: Path) -> None:
        path = tmp_path / "big.txt"
        path.write_bytes(b"".join(f"entry {i:04d}\n".encode() for i in range(1000)))

        lines = read_last_lines(path, 3, chunk_size=16)

        assert lines == [b"entry 0997\n", b"entry 0998\n", b"entry 0999\n"]

    def test_short_file_returned_whole(self, tmp_path: Path) -> None:
        path = tmp_path / "short.txt"
        path.write_bytes(b"a\nb\n")

        assert read_last_lines(path, 10, chunk_size=1) == [b"a\n", b"b\n"]

    def test_missing_final_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "open.txt"
        path.write_bytes(b"first\nsecond\nthird")

        assert read_last_lines(path, 2, chunk_size=4) == [b"second\n", b"third"]

    def test_rotation_reads_only_the_end(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path, max_bytes=1000, lines_to_keep=1)
        sink.initialize()
        sink.path.write_bytes(b"x" * 200_000 + b"\n" + b"tail\n")

        with patch.object(Path, "read_bytes", side_effect=AssertionError("whole file read")):
            assert sink.rotate_if_needed() is True

        assert sink.path.read_bytes() == b"tail\n"

    def test_zero_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "any.txt"
        path.write_bytes(b"a\n")
        assert read_last_lines(path, 0) == []


class TestTail:
    """Tests for reading back the log."""

    def test_tail_missing_file(self, tmp_path: Path) -> None:
        assert make_sink(tmp_path).tail() == []

    def test_tail_returns_last_lines(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)
        for i in range(5):
            sink.info(f"event {i}")

        tail = sink.tail(2)

        assert len(tail) == 2
        assert tail[0].endswith("event 3")
        assert tail[1].endswith("event 4")

    def test_tail_zero(self, tmp_path: Path) -> None:
        sink = make_sink(tmp_path)
        sink.info("event")
        assert sink.tail(0) == []

