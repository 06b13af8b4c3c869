"""Append-only audit log with size-bounded rotation.

Every decision the orchestrator makes is written through a ``LogSink``:
once to the console (level-coloured) and once appended to a log file under
the user's documents folder. When the file grows past ``max_bytes`` it is
cut down to its most recent ``lines_to_keep`` lines. Rotation is a hard cap,
not an archive: older lines are discarded.

A log call either fully succeeds or raises ``LogSinkError``. There is no
path where an event is silently dropped.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path

import structlog
from rich.console import Console

from .errors import LogSinkError
from .models import LogConfig, LogEvent, LogLevel

logger = structlog.get_logger(__name__)

LOG_SUBDIR = "Logs"
READ_CHUNK_SIZE = 64 * 1024

LEVEL_STYLES = {
    LogLevel.INFO: "green",
    LogLevel.ERROR: "bold red",
}


def get_documents_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Get the user's preferred documents directory.

    A cloud-synced documents folder wins when one is configured, so logs
    follow the user across machines.

    Args:
        environ: Environment mapping. Uses ``os.environ`` if not provided.

    Returns:
        Path to the documents directory (not created).
    """
    env = os.environ if environ is None else environ

    for variable in ("OneDriveCommercial", "OneDrive"):
        root = env.get(variable)
        if root:
            documents = Path(root) / "Documents"
            if documents.is_dir():
                return documents

    xdg_documents = env.get("XDG_DOCUMENTS_DIR")
    if xdg_documents:
        return Path(xdg_documents)

    return Path.home() / "Documents"


def resolve_log_path(config: LogConfig, environ: Mapping[str, str] | None = None) -> Path:
    """Resolve the log file path for a configuration.

    Returns:
        ``<log_dir>/<application_name>_Log.txt``; ``log_dir`` defaults to
        ``<documents>/Logs``.
    """
    directory = config.log_dir or get_documents_dir(environ) / LOG_SUBDIR
    return directory / config.file_name


def read_last_lines(path: Path, count: int, chunk_size: int = READ_CHUNK_SIZE) -> list[bytes]:
    """Read the last ``count`` lines of a file without loading all of it.

    The file is read backwards in ``chunk_size`` blocks until enough line
    breaks have been seen.

    Returns:
        Lines with their line endings, oldest first.
    """
    if count <= 0:
        return []

    with path.open("rb") as fh:
        position = fh.seek(0, os.SEEK_END)
        data = b""
        while position > 0 and data.count(b"\n") <= count:
            step = min(chunk_size, position)
            position -= step
            fh.seek(position)
            data = fh.read(step) + data

    lines = data.splitlines(keepends=True)
    if position > 0:
        # first line may start before the block that was read
        lines = lines[1:]
    return lines[-count:]


class LogSink:
    """Timestamped, levelled audit log written to console and file."""

    def __init__(
        self,
        config: LogConfig | None = None,
        *,
        console: Console | None = None,
        error_console: Console | None = None,
        clock: Callable[[], datetime] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the log sink.

        Nothing touches the filesystem until ``initialize()`` or the first
        ``log()`` call.

        Args:
            config: Log configuration. Uses defaults if not provided.
            console: Console for INFO events.
            error_console: Console for ERROR events. Defaults to ``console``
                when one is given, stderr otherwise.
            clock: Returns the current time. Defaults to ``datetime.now``.
            environ: Environment used to resolve the documents folder.
        """
        self.config = config or LogConfig()
        self._console = console or Console(highlight=False)
        if error_console is not None:
            self._error_console = error_console
        elif console is not None:
            self._error_console = console
        else:
            self._error_console = Console(stderr=True, highlight=False)
        self._clock = clock or datetime.now
        self._environ = environ
        self._path: Path | None = None
        self._events: list[LogEvent] = []
        self._log = logger.bind(component="log_sink")

    @property
    def path(self) -> Path:
        """Path of the log file."""
        if self._path is None:
            self._path = resolve_log_path(self.config, self._environ)
        return self._path

    @property
    def initialized(self) -> bool:
        """Whether the log file has been created by this sink."""
        return self._path is not None and self._path.is_file()

    @property
    def events(self) -> tuple[LogEvent, ...]:
        """Events logged through this sink, oldest first."""
        return tuple(self._events)

    def initialize(self) -> Path:
        """Create the log directory and file if they do not exist.

        Returns:
            Path of the log file.

        Raises:
            LogSinkError: If the directory or file cannot be created.
        """
        path = self.path
        directory = path.parent

        if not directory.is_dir():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LogSinkError(f"Cannot create log directory {directory}: {e}") from e
            self._log.debug("log_directory_created", path=str(directory))

        if not path.is_file():
            try:
                path.touch(exist_ok=True)
            except OSError as e:
                raise LogSinkError(f"Cannot create log file {path}: {e}") from e
            self._log.debug("log_file_created", path=str(path))

        return path

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> LogEvent:
        """Write an event to the console and append it to the log file.

        Args:
            message: Event message.
            level: INFO or ERROR.

        Returns:
            The event that was written.

        Raises:
            LogSinkError: If the log file cannot be created or written.
        """
        path = self.initialize()

        event = LogEvent(timestamp=self._clock(), level=LogLevel(level), message=message)
        line = event.render()

        console = self._error_console if event.level == LogLevel.ERROR else self._console
        console.print(line, style=LEVEL_STYLES[event.level], markup=False, highlight=False)

        try:
            with path.open("ab") as fh:
                fh.write((line + "\n").encode("utf-8"))
        except OSError as e:
            raise LogSinkError(f"Cannot write log file {path}: {e}") from e
        self._events.append(event)

        try:
            self.rotate_if_needed()
        except OSError as e:
            raise LogSinkError(f"Cannot rotate log file {path}: {e}") from e
        return event

    def info(self, message: str) -> LogEvent:
        """Log an INFO event."""
        return self.log(message, LogLevel.INFO)

    def error(self, message: str) -> LogEvent:
        """Log an ERROR event."""
        return self.log(message, LogLevel.ERROR)

    def rotate_if_needed(self) -> bool:
        """Truncate the log to its most recent lines once it exceeds the cap.

        Keeps the last ``lines_to_keep`` lines. If those still exceed
        ``max_bytes``, further oldest lines are dropped until the file fits.

        Returns:
            True if the file was rotated.
        """
        path = self.path
        size = path.stat().st_size
        if size <= self.config.max_bytes:
            return False

        kept = read_last_lines(path, self.config.lines_to_keep)

        start = 0
        total = sum(len(line) for line in kept)
        while start < len(kept) and total > self.config.max_bytes:
            total -= len(kept[start])
            start += 1
        kept = kept[start:]

        path.write_bytes(b"".join(kept))
        self._log.debug(
            "log_rotated",
            path=str(path),
            previous_size=size,
            new_size=total,
            kept_lines=len(kept),
        )
        return True

    def tail(self, lines: int = 20) -> list[str]:
        """Return the last lines of the log file.

        Args:
            lines: Maximum number of lines to return.

        Returns:
            Lines without trailing newlines, oldest first. Empty if the log
            file does not exist yet.
        """
        if lines <= 0 or not self.path.is_file():
            return []
        return [
            line.decode("utf-8", errors="replace").rstrip("\r\n")
            for line in read_last_lines(self.path, lines)
        ]
