"""Core interfaces for vendor-update.

This module defines abstract base classes for update providers, rebooters
and configuration loaders. Concrete providers live outside the core; the
orchestrator only depends on these contracts.
"""

from __future__ import annotations

import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Any

import structlog

from .models import InstallResult, ProviderMetadata, UpdateRecord

logger = structlog.get_logger(__name__)


class UpdateProvider(ABC):
    """Abstract base class for update providers.

    A provider enumerates applicable updates and installs them one at a time.
    Providers can be instantiated without arguments for metadata access.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name.

        Returns:
            Unique provider identifier
        """
        ...

    @property
    def metadata(self) -> ProviderMetadata:
        """Return provider metadata.

        Default implementation returns basic metadata from the name property.
        """
        return ProviderMetadata(name=self.name)

    @abstractmethod
    async def list_updates(self) -> list[UpdateRecord]:
        """Enumerate currently applicable updates.

        The order carries no priority. May be empty.

        Raises:
            ProviderError: If updates cannot be enumerated.
        """
        ...

    @abstractmethod
    async def install(self, record: UpdateRecord) -> InstallResult:
        """Install a single update.

        Failure may be reported through the result or by raising; the
        orchestrator treats both the same way.
        """
        ...

    async def get_prerequisite_version(self, name: str) -> str | None:  # noqa: ARG002
        """Return the installed version of a prerequisite.

        Default implementation reports the prerequisite as not installed.

        Args:
            name: Prerequisite name.

        Returns:
            Installed version string, or None if not installed.
        """
        return None

    async def install_prerequisite(self, name: str, minimum_version: str) -> None:
        """Install or upgrade a prerequisite to at least ``minimum_version``.

        Raises:
            NotImplementedError: If the provider manages no prerequisites.
        """
        raise NotImplementedError(
            f"Provider {self.name!r} cannot install prerequisite {name} {minimum_version}"
        )


class Rebooter(ABC):
    """Restarts the machine."""

    @abstractmethod
    def reboot(self) -> None:
        """Trigger an immediate restart."""
        ...


def default_reboot_command(platform: str | None = None) -> list[str]:
    """Return the restart command for a platform.

    Args:
        platform: ``sys.platform`` value. Uses the current platform if None.
    """
    platform = platform or sys.platform
    if platform == "win32":
        return ["shutdown", "/r", "/t", "0"]
    return ["shutdown", "-r", "now"]


class SystemRebooter(Rebooter):
    """Restarts the machine with the platform shutdown command."""

    def __init__(self, command: list[str] | None = None) -> None:
        """Initialize the rebooter.

        Args:
            command: Command to run. Uses the platform default if not provided.
        """
        self.command = command or default_reboot_command()

    def reboot(self) -> None:
        """Run the restart command.

        Raises:
            subprocess.CalledProcessError: If the command fails.
        """
        logger.info("reboot_command", command=self.command)
        subprocess.run(self.command, check=True, capture_output=True, text=True)


class ConfigLoader(ABC):
    """Abstract base class for configuration loaders."""

    @abstractmethod
    def load(self, path: str) -> dict[str, Any]:
        """Load configuration from a file.

        Args:
            path: Path to the configuration file.

        Returns:
            Configuration dictionary.
        """
        ...

    @abstractmethod
    def save(self, config: dict[str, Any], path: str) -> None:
        """Save configuration to a file.

        Args:
            config: Configuration dictionary.
            path: Path to save the configuration.
        """
        ...
