"""Manifest-driven provider.

Reads the pending updates from a YAML manifest and installs each one by
running its command. A manifest looks like::

    prerequisites:
      NuGet:
        version_command: [powershell, -Command, "(Get-PackageProvider NuGet).Version"]
        install_command: [powershell, -Command, "Install-PackageProvider NuGet -Force"]
    updates:
      - title: Chipset Driver 10.1.19444
        id: chipset-10.1.19444
        category: driver
        requires_reboot: false
        requires_interaction: false
        command: [msiexec, /i, C:/Drivers/chipset.msi, /qn]

Install commands may contain ``{version}`` which is replaced with the
requested minimum version for prerequisites.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog
import yaml

from vendor_update.errors import ProviderError
from vendor_update.interfaces import UpdateProvider
from vendor_update.models import InstallResult, UpdateRecord

logger = structlog.get_logger(__name__)


class ManifestUpdateProvider(UpdateProvider):
    """Provider that installs updates listed in a YAML manifest."""

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize the manifest provider.

        Args:
            path: Path to the manifest file. Must be set before listing.
        """
        self.path = Path(path) if path is not None else None
        self._installed: set[str] = set()

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "manifest"

    def _load(self) -> dict[str, Any]:
        """Load and minimally validate the manifest."""
        if self.path is None:
            raise ProviderError("No manifest path configured (providers.manifest.path)")

        try:
            data = yaml.safe_load(self.path.read_text())
        except OSError as e:
            raise ProviderError(f"Cannot read manifest {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise ProviderError(f"Invalid manifest {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ProviderError(f"Invalid manifest {self.path}: expected a mapping")
        return data

    def _entries(self) -> list[dict[str, Any]]:
        entries = self._load().get("updates") or []
        if not isinstance(entries, list):
            raise ProviderError(f"Invalid manifest {self.path}: 'updates' must be a list")
        return [entry for entry in entries if isinstance(entry, dict) and entry.get("title")]

    async def list_updates(self) -> list[UpdateRecord]:
        """List manifest updates that were not installed by this provider yet."""
        records = []
        for entry in self._entries():
            title = str(entry["title"])
            if title in self._installed:
                continue
            records.append(
                UpdateRecord(
                    title=title,
                    identifier=entry.get("id"),
                    category=entry.get("category"),
                    size_bytes=entry.get("size_bytes"),
                    requires_interaction=bool(entry.get("requires_interaction", False)),
                    requires_reboot=bool(entry.get("requires_reboot", False)),
                )
            )
        return records

    async def install(self, record: UpdateRecord) -> InstallResult:
        """Run the install command of a manifest update."""
        entry = next((e for e in self._entries() if str(e["title"]) == record.title), None)
        if entry is None:
            return InstallResult(success=False, error_message="Update not found in manifest")

        command = entry.get("command")
        if not command:
            return InstallResult(success=False, error_message="No install command in manifest")

        return_code, _stdout, stderr = await self._run_command([str(c) for c in command])
        if return_code != 0:
            detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
            message = f"Installer exited with code {return_code}"
            return InstallResult(
                success=False,
                error_message=f"{message}: {detail}" if detail else message,
            )

        self._installed.add(record.title)
        return InstallResult(success=True)

    async def get_prerequisite_version(self, name: str) -> str | None:
        """Run the prerequisite's version command and return its output."""
        command = self._prerequisite(name).get("version_command")
        if not command:
            return None

        return_code, stdout, _stderr = await self._run_command([str(c) for c in command])
        version = stdout.strip()
        if return_code != 0 or not version:
            return None
        return version.splitlines()[-1].strip()

    async def install_prerequisite(self, name: str, minimum_version: str) -> None:
        """Run the prerequisite's install command.

        Raises:
            ProviderError: If no install command is declared or it fails.
        """
        command = self._prerequisite(name).get("install_command")
        if not command:
            raise ProviderError(f"No install command declared for prerequisite {name}")

        cmd = [str(c).replace("{version}", minimum_version) for c in command]
        return_code, _stdout, stderr = await self._run_command(cmd)
        if return_code != 0:
            raise ProviderError(
                f"Installing {name} exited with code {return_code}: {stderr.strip()}"
            )

    def _prerequisite(self, name: str) -> dict[str, Any]:
        prerequisites = self._load().get("prerequisites") or {}
        declared = prerequisites.get(name) if isinstance(prerequisites, dict) else None
        return declared if isinstance(declared, dict) else {}

    async def _run_command(self, cmd: list[str]) -> tuple[int, str, str]:
        """Run a command to completion.

        Args:
            cmd: Command and arguments as a list.

        Returns:
            Tuple of (return_code, stdout, stderr).

        Raises:
            ProviderError: If the command cannot be started.
        """
        log = logger.bind(command=cmd[0] if cmd else "")
        log.debug("running_command", cmd=cmd)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProviderError(f"Cannot start {cmd[0]}: {e}") from e

        stdout, stderr = await process.communicate()

        return_code = process.returncode or 0
        stdout_str = stdout.decode("utf-8", errors="replace")
        stderr_str = stderr.decode("utf-8", errors="replace")

        log.debug(
            "command_completed",
            return_code=return_code,
            stdout_len=len(stdout_str),
            stderr_len=len(stderr_str),
        )
        return return_code, stdout_str, stderr_str
