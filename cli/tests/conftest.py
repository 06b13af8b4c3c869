"""Shared test fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog
from rich.console import Console

from vendor_update_cli import main

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_user_dirs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Isolate tests from the real configuration and documents folders.

    Sets XDG_CONFIG_HOME and XDG_DOCUMENTS_DIR to temporary directories so
    that tests never read the user's configuration or append to a real
    audit log.
    """
    config_home = tmp_path / "xdg_config"
    documents = tmp_path / "Documents"
    config_home.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("XDG_DOCUMENTS_DIR", str(documents))
    for variable in ("OneDriveCommercial", "OneDrive"):
        monkeypatch.delenv(variable, raising=False)

    yield tmp_path

    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def wide_consoles(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use wide consoles so table cells are not truncated."""
    monkeypatch.setattr(main, "console", Console(width=200, color_system=None))
    monkeypatch.setattr(
        main, "err_console", Console(stderr=True, width=200, color_system=None)
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Configuration running the mock provider without privilege checks."""
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""
global:
  provider: mock
  require_admin: false
log:
  application_name: CliTest
  log_dir: {tmp_path / "Logs"}
"""
    )
    return path


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    """Audit log written when running with ``config_file``."""
    return tmp_path / "Logs" / "CliTest_Log.txt"
