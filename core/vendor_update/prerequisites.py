"""Package-index prerequisite check.

Providers often depend on a package-index component (a package provider or
module repository client) at a minimum version. Before the first listing the
installed version is compared against the configured minimum and upgraded
when it is missing or older.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from .version import needs_update

if TYPE_CHECKING:
    from .interfaces import UpdateProvider
    from .logsink import LogSink
    from .models import PrerequisiteConfig

logger = structlog.get_logger(__name__)


class PrerequisiteStatus(str, Enum):
    """Outcome of the prerequisite check."""

    NOT_REQUIRED = "not_required"
    UP_TO_DATE = "up_to_date"
    UPGRADED = "upgraded"
    FAILED = "failed"


async def ensure_prerequisite(
    provider: UpdateProvider,
    sink: LogSink,
    config: PrerequisiteConfig,
) -> PrerequisiteStatus:
    """Verify a prerequisite and upgrade it if older than the minimum.

    A failed upgrade is logged and reported, not raised: listing updates may
    still work, and if it does not, each phase records its own failure.

    Args:
        provider: Provider that owns the prerequisite.
        sink: Audit log.
        config: Prerequisite name and minimum version.

    Returns:
        PrerequisiteStatus describing what happened.
    """
    if not config.name:
        return PrerequisiteStatus.NOT_REQUIRED

    name = config.name
    minimum = config.minimum_version
    log = logger.bind(component="prerequisite", prerequisite=name, minimum=minimum)

    try:
        installed = await provider.get_prerequisite_version(name)
    except Exception as e:
        log.warning("prerequisite_version_failed", error=str(e))
        installed = None

    if not needs_update(installed, minimum):
        sink.info(f"{name} {installed} is up to date")
        return PrerequisiteStatus.UP_TO_DATE

    found = installed or "not installed"
    sink.info(f"Installing {name} {minimum} (found: {found})")

    try:
        await provider.install_prerequisite(name, minimum)
    except Exception as e:
        log.warning("prerequisite_install_failed", error=str(e))
        sink.error(f"Failed to install {name} {minimum}: {e}")
        return PrerequisiteStatus.FAILED

    log.info("prerequisite_installed", previous=installed)
    return PrerequisiteStatus.UPGRADED
