"""Vendor-Update Core Library.

Core library that sequences vendor software and driver updates on a managed
endpoint and decides whether to restart afterwards.

Module Overview:
    config: YAML-based configuration management (XDG spec compliant)
    errors: Exception hierarchy separating fatal from recoverable errors
    interfaces: Abstract base classes for update providers and rebooters
    logsink: Append-only audit log with size-bounded rotation
    models: Pydantic data models for records, events, results and configuration
    orchestrator: Unattended/interactive phase sequencing and reboot handling
    prerequisites: Package-index prerequisite version check and upgrade
    privilege: Administrative rights check
    reboot: Reboot decision and yes/no prompt state machine
    session: Local interactive session detection
    version: Dotted version parsing and comparison
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version

from vendor_update.config import (
    ConfigManager,
    YamlConfigLoader,
    get_config_dir,
    get_default_config_path,
)
from vendor_update.errors import (
    ConfigError,
    FatalError,
    LogSinkError,
    PrivilegeError,
    ProviderError,
    VendorUpdateError,
)
from vendor_update.interfaces import (
    ConfigLoader,
    Rebooter,
    SystemRebooter,
    UpdateProvider,
    default_reboot_command,
)
from vendor_update.logsink import (
    LogSink,
    get_documents_dir,
    resolve_log_path,
)
from vendor_update.models import (
    GlobalConfig,
    InstallOutcome,
    InstallResult,
    LogConfig,
    LogEvent,
    LogLevel,
    PhaseKind,
    PhaseResult,
    PrerequisiteConfig,
    ProviderMetadata,
    RebootAction,
    RebootConfig,
    RunState,
    RunSummary,
    SystemConfig,
    UpdateRecord,
)
from vendor_update.orchestrator import PhaseOrchestrator
from vendor_update.prerequisites import PrerequisiteStatus, ensure_prerequisite
from vendor_update.privilege import is_admin, require_admin
from vendor_update.reboot import (
    PromptState,
    YesNoPrompt,
    ask_yes_no,
    decide_reboot,
    parse_answer,
)
from vendor_update.session import SessionClassifier
from vendor_update.version import (
    VersionComponents,
    compare_versions,
    needs_update,
    parse_version,
)

try:
    __version__ = get_package_version("vendor-update")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "ConfigManager",
    "FatalError",
    "GlobalConfig",
    "InstallOutcome",
    "InstallResult",
    "LogConfig",
    "LogEvent",
    "LogLevel",
    "LogSink",
    "LogSinkError",
    "PhaseKind",
    "PhaseOrchestrator",
    "PhaseResult",
    "PrerequisiteConfig",
    "PrerequisiteStatus",
    "PrivilegeError",
    "PromptState",
    "ProviderError",
    "ProviderMetadata",
    "RebootAction",
    "RebootConfig",
    "Rebooter",
    "RunState",
    "RunSummary",
    "SessionClassifier",
    "SystemConfig",
    "SystemRebooter",
    "UpdateProvider",
    "UpdateRecord",
    "VendorUpdateError",
    "VersionComponents",
    "YamlConfigLoader",
    "YesNoPrompt",
    "ask_yes_no",
    "compare_versions",
    "decide_reboot",
    "default_reboot_command",
    "ensure_prerequisite",
    "get_config_dir",
    "get_default_config_path",
    "get_documents_dir",
    "is_admin",
    "needs_update",
    "parse_answer",
    "parse_version",
    "require_admin",
    "resolve_log_path",
]
