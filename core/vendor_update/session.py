"""Interactive session detection.

Decides whether a local, logged-in user is attached to the current process
and can therefore answer prompts. Remote sessions (SSH, RDP) and service
contexts are never interactive. The answer is computed fresh on every call.
"""

from __future__ import annotations

import getpass
import os
import sys
from collections.abc import Callable, Mapping
from typing import Any, TextIO

import psutil
import structlog

logger = structlog.get_logger(__name__)

REMOTE_SHELL_VARIABLES = ("SSH_CONNECTION", "SSH_CLIENT", "SSH_TTY")
# sudo keeps the invoking user in SUDO_USER while USER and LOGNAME become root
LOGIN_NAME_VARIABLES = ("SUDO_USER", "LOGNAME", "USER")
WINDOWS_CONSOLE_SESSION = "console"


def is_local_host(host: str | None) -> bool:
    """Check whether a login host denotes a local logon.

    Local logons report no host, ``localhost`` or an X display (``:0``).
    """
    if not host:
        return True
    host = host.strip()
    return host in ("localhost", "127.0.0.1", "::1") or host.startswith(":")


def login_name(environ: Mapping[str, str]) -> str:
    """Return the name of the user who started the process.

    Checked in order: ``SUDO_USER``, ``LOGNAME``, ``USER``, then
    ``getpass.getuser()``.
    """
    for name in LOGIN_NAME_VARIABLES:
        value = environ.get(name)
        if value:
            return value
    return getpass.getuser()


class SessionClassifier:
    """Classifies the current execution context as interactive or not."""

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
        users: Callable[[], list[Any]] | None = None,
        username: str | None = None,
        platform: str | None = None,
    ) -> None:
        """Initialize the classifier.

        All arguments exist for substitution in tests; by default the live
        process state is inspected on every call.

        Args:
            environ: Environment mapping. Defaults to ``os.environ``.
            stdin: Input stream checked for a terminal. Defaults to ``sys.stdin``.
            users: Lists logged-in sessions. Defaults to ``psutil.users``.
            username: Current user name. Defaults to ``login_name(environ)``.
            platform: ``sys.platform`` value. Defaults to the current platform.
        """
        self._environ = environ
        self._stdin = stdin
        self._users = users or psutil.users
        self._username = username
        self._platform = platform
        self._log = logger.bind(component="session")

    def is_interactive_session(self) -> bool:
        """Return True if a local, non-remote interactive user is present."""
        environ = os.environ if self._environ is None else self._environ
        platform = self._platform or sys.platform

        if platform == "win32":
            session_name = environ.get("SESSIONNAME", "")
            interactive = session_name.lower() == WINDOWS_CONSOLE_SESSION
            self._log.debug("session_classified", session_name=session_name, interactive=interactive)
            return interactive

        remote = [name for name in REMOTE_SHELL_VARIABLES if environ.get(name)]
        if remote:
            self._log.debug("session_classified", interactive=False, reason="remote", variables=remote)
            return False

        stdin = self._stdin if self._stdin is not None else sys.stdin
        if stdin is None or not stdin.isatty():
            self._log.debug("session_classified", interactive=False, reason="no_tty")
            return False

        username = self._username or login_name(environ)
        try:
            sessions = self._users()
        except (OSError, psutil.Error) as e:
            self._log.warning("session_list_failed", error=str(e))
            return False

        interactive = any(
            session.name == username and is_local_host(session.host) for session in sessions
        )
        self._log.debug(
            "session_classified",
            interactive=interactive,
            user=username,
            sessions=len(sessions),
        )
        return interactive
