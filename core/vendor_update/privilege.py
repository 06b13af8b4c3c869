"""Administrative privilege checks.

Installing prerequisites and updates requires administrative rights. Running
without them is a fatal, logged condition rather than a silent downgrade.
"""

from __future__ import annotations

import ctypes
import os
import sys
from typing import TYPE_CHECKING

import structlog

from .errors import PrivilegeError

if TYPE_CHECKING:
    from .logsink import LogSink

logger = structlog.get_logger(__name__)


def is_admin(platform: str | None = None) -> bool:
    """Check whether the current process has administrative rights.

    Args:
        platform: ``sys.platform`` value. Uses the current platform if None.

    Returns:
        True when running as root (POSIX) or elevated (Windows).
    """
    platform = platform or sys.platform

    if platform == "win32":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError) as e:
            logger.warning("admin_check_failed", error=str(e))
            return False

    return os.geteuid() == 0


def require_admin(sink: LogSink, *, platform: str | None = None) -> None:
    """Stop unless the process has administrative rights.

    Args:
        sink: Audit log the failure is recorded in.
        platform: ``sys.platform`` value. Uses the current platform if None.

    Raises:
        PrivilegeError: If the process is not elevated.
    """
    if is_admin(platform):
        logger.debug("admin_check_passed")
        return

    message = "Administrative privileges are required; run this tool as an administrator"
    sink.error(message)
    raise PrivilegeError(message)
