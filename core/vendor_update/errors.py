"""Exception hierarchy for vendor-update.

Fatal errors stop the process (the CLI exits with status 1). Everything else
is recovered where it occurs: logged to the audit log and the run continues.
"""

from __future__ import annotations


class VendorUpdateError(Exception):
    """Base class for all vendor-update errors."""


class FatalError(VendorUpdateError):
    """An error that must stop the process."""


class LogSinkError(FatalError):
    """The audit log directory or file could not be created or written."""


class PrivilegeError(FatalError):
    """Administrative privileges are required but not held."""


class ProviderError(VendorUpdateError):
    """An update provider failed to enumerate or install updates."""


class ConfigError(VendorUpdateError):
    """The configuration file is malformed or holds invalid values."""
