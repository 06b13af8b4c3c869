"""Shared test fixtures for core tests."""

from __future__ import annotations

import io
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

from vendor_update.errors import ProviderError
from vendor_update.interfaces import Rebooter, UpdateProvider
from vendor_update.logsink import LogSink
from vendor_update.models import InstallResult, LogConfig, UpdateRecord

FIXED_TIME = datetime(2026, 3, 14, 9, 26, 53)


class FakeProvider(UpdateProvider):
    """Provider double with scripted failures and call recording."""

    def __init__(
        self,
        records: Iterable[UpdateRecord] = (),
        *,
        fail_titles: Iterable[str] = (),
        raise_titles: Iterable[str] = (),
        fail_listing: bool = False,
        prerequisite_version: str | None = None,
        prerequisite_error: Exception | None = None,
    ) -> None:
        self.records = list(records)
        self.fail_titles = set(fail_titles)
        self.raise_titles = set(raise_titles)
        self.fail_listing = fail_listing
        self.prerequisite_version = prerequisite_version
        self.prerequisite_error = prerequisite_error
        self.list_calls = 0
        self.install_calls: list[str] = []
        self.prerequisite_installs: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def list_updates(self) -> list[UpdateRecord]:
        self.list_calls += 1
        if self.fail_listing:
            raise ProviderError("catalog unreachable")
        return [r.model_copy() for r in self.records]

    async def install(self, record: UpdateRecord) -> InstallResult:
        self.install_calls.append(record.title)
        if record.title in self.raise_titles:
            raise RuntimeError("installer crashed")
        if record.title in self.fail_titles:
            return InstallResult(success=False, error_message="exit code 1603")
        return InstallResult(success=True)

    async def get_prerequisite_version(self, name: str) -> str | None:  # noqa: ARG002
        return self.prerequisite_version

    async def install_prerequisite(self, name: str, minimum_version: str) -> None:
        self.prerequisite_installs.append((name, minimum_version))
        if self.prerequisite_error is not None:
            raise self.prerequisite_error
        self.prerequisite_version = minimum_version


class FakeSession:
    """Session classifier double.

    Accepts a single answer or a sequence of answers consumed one per call;
    the last answer repeats.
    """

    def __init__(self, interactive: bool | list[bool]) -> None:
        self._answers = interactive if isinstance(interactive, list) else [interactive]
        self.calls = 0

    def is_interactive_session(self) -> bool:
        answer = self._answers[min(self.calls, len(self._answers) - 1)]
        self.calls += 1
        return answer


class FakeRebooter(Rebooter):
    """Rebooter double that counts restarts."""

    def __init__(self, error: Exception | None = None) -> None:
        self.reboots = 0
        self.error = error

    def reboot(self) -> None:
        if self.error is not None:
            raise self.error
        self.reboots += 1


class ScriptedConfirm:
    """Confirm callable answering from a fixed list."""

    def __init__(self, *answers: bool) -> None:
        self._answers = list(answers)
        self.questions: list[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return self._answers.pop(0)


@pytest.fixture
def log_config(tmp_path: Path) -> LogConfig:
    """Log configuration writing below the test's temporary directory."""
    return LogConfig(application_name="TestApp", log_dir=tmp_path / "Logs")


@pytest.fixture
def console() -> Console:
    """Console capturing output in memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def sink(log_config: LogConfig, console: Console) -> LogSink:
    """Log sink writing to a temporary file and an in-memory console."""
    return LogSink(log_config, console=console, clock=lambda: FIXED_TIME)


@pytest.fixture
def provider_class() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def session_class() -> type[FakeSession]:
    return FakeSession


@pytest.fixture
def rebooter() -> FakeRebooter:
    return FakeRebooter()


@pytest.fixture
def confirm_class() -> type[ScriptedConfirm]:
    return ScriptedConfirm


@pytest.fixture
def rebooter_class() -> type[FakeRebooter]:
    return FakeRebooter
