"""Mock provider for trying out runs without touching the system.

Serves a small fixed catalog of driver updates and simulates their
installation in memory.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import structlog

from vendor_update.errors import ProviderError
from vendor_update.interfaces import UpdateProvider
from vendor_update.models import InstallResult, UpdateRecord

logger = structlog.get_logger(__name__)


def demo_catalog() -> list[UpdateRecord]:
    """Return the demonstration catalog served by default."""
    return [
        UpdateRecord(
            title="Chipset Driver 10.1.19444",
            identifier="chipset-10.1.19444",
            category="driver",
        ),
        UpdateRecord(
            title="Realtek Audio Driver 6.0.9549",
            identifier="audio-6.0.9549",
            category="driver",
            requires_reboot=True,
        ),
        UpdateRecord(
            title="System BIOS 1.14.0",
            identifier="bios-1.14.0",
            category="bios",
            requires_interaction=True,
            requires_reboot=True,
        ),
    ]


class MockUpdateProvider(UpdateProvider):
    """In-memory provider with a configurable catalog and failures."""

    def __init__(
        self,
        updates: Iterable[UpdateRecord] | None = None,
        *,
        fail_titles: Iterable[str] = (),
        fail_listing: bool = False,
        install_delay: float = 0.0,
        prerequisites: dict[str, str] | None = None,
    ) -> None:
        """Initialize the mock provider.

        Args:
            updates: Catalog to serve. Uses ``demo_catalog()`` if not provided.
            fail_titles: Titles whose installation fails.
            fail_listing: Make ``list_updates()`` raise ProviderError.
            install_delay: Seconds each simulated install takes.
            prerequisites: Installed prerequisite versions keyed by name.
        """
        self._catalog = list(updates) if updates is not None else demo_catalog()
        self._fail_titles = set(fail_titles)
        self._fail_listing = fail_listing
        self._install_delay = install_delay
        self.prerequisites = dict(prerequisites or {})
        self.installed: list[str] = []
        self.install_calls: list[str] = []

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def list_updates(self) -> list[UpdateRecord]:
        """Return catalog entries that are not installed yet."""
        if self._fail_listing:
            raise ProviderError("Simulated enumeration failure")
        return [r.model_copy() for r in self._catalog if r.title not in self.installed]

    async def install(self, record: UpdateRecord) -> InstallResult:
        """Simulate installing one update."""
        self.install_calls.append(record.title)
        if self._install_delay:
            await asyncio.sleep(self._install_delay)

        if record.title in self._fail_titles:
            logger.debug("mock_install_failed", update=record.title)
            return InstallResult(success=False, error_message="Simulated installer failure")

        self.installed.append(record.title)
        logger.debug("mock_install_succeeded", update=record.title)
        return InstallResult(success=True)

    async def get_prerequisite_version(self, name: str) -> str | None:
        """Return the simulated installed version of a prerequisite."""
        return self.prerequisites.get(name)

    async def install_prerequisite(self, name: str, minimum_version: str) -> None:
        """Simulate installing a prerequisite at the minimum version."""
        self.prerequisites[name] = minimum_version
