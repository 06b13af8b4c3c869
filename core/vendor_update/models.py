"""Core data models for vendor-update.

This module defines Pydantic models for update records, audit log events,
phase and run results, and configuration.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - needed at runtime by Pydantic
from enum import Enum
from pathlib import Path  # noqa: TC003 - needed at runtime by Pydantic
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class InstallOutcome(str, Enum):
    """Outcome of installing a single update."""

    PENDING = "pending"
    INSTALLED = "installed"
    FAILED = "failed"


class LogLevel(str, Enum):
    """Level of an audit log event."""

    INFO = "INFO"
    ERROR = "ERROR"


class PhaseKind(str, Enum):
    """Install phase an update belongs to."""

    UNATTENDED = "unattended"
    INTERACTIVE = "interactive"


class RunState(str, Enum):
    """States of the update run state machine."""

    IDLE = "idle"
    UNATTENDED_PHASE = "unattended_phase"
    INTERACTIVE_PHASE = "interactive_phase"
    SKIP_INTERACTIVE = "skip_interactive"
    REBOOT_DECISION = "reboot_decision"
    DONE = "done"


class RebootAction(str, Enum):
    """Terminal action picked by the reboot decision."""

    REBOOT = "reboot"
    PROMPT = "prompt"
    SKIP = "skip"


class UpdateRecord(BaseModel):
    """A pending or installed update reported by a provider."""

    title: str = Field(..., description="Human-readable update title")
    requires_interaction: bool = Field(
        default=False, description="Installer needs a visible user interaction"
    )
    requires_reboot: bool = Field(
        default=False, description="A restart is needed once installed"
    )
    install_outcome: InstallOutcome = Field(
        default=InstallOutcome.PENDING, description="Result of the install attempt"
    )

    # Provider metadata, never interpreted by the orchestrator
    identifier: str | None = Field(default=None, description="Provider-specific identifier")
    category: str | None = Field(default=None, description="Update category (driver, bios, ...)")
    size_bytes: int | None = Field(default=None, description="Download size in bytes")

    @property
    def phase(self) -> PhaseKind:
        """Phase this update is installed in."""
        return PhaseKind.INTERACTIVE if self.requires_interaction else PhaseKind.UNATTENDED


class InstallResult(BaseModel):
    """Result of one install call."""

    success: bool = Field(..., description="Whether the install succeeded")
    error_message: str | None = Field(default=None, description="Failure detail")


class ProviderMetadata(BaseModel):
    """Metadata about an update provider."""

    name: str = Field(..., description="Provider name")
    version: str = Field(default="0.1.0", description="Provider version")
    description: str = Field(default="", description="Provider description")
    supported_platforms: list[str] = Field(
        default_factory=lambda: ["linux", "win32"], description="Supported platforms"
    )


class LogEvent(BaseModel):
    """A single audit log entry. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    level: LogLevel
    message: str

    def render(self) -> str:
        """Render the event as a single log line (without newline)."""
        stamp = self.timestamp.strftime(LOG_TIMESTAMP_FORMAT)
        return f"[{stamp}] [{self.level.value}] {self.message}"


class PhaseResult(BaseModel):
    """Result of one install phase."""

    phase: PhaseKind
    records: list[UpdateRecord] = Field(
        default_factory=list, description="Records enumerated for this phase"
    )
    enumeration_failed: bool = Field(default=False, description="list_updates() raised")
    skipped: bool = Field(default=False, description="Phase was gated off")
    error_message: str | None = Field(default=None, description="Enumeration failure detail")

    @property
    def installed(self) -> list[UpdateRecord]:
        """Records installed successfully in this phase."""
        return [r for r in self.records if r.install_outcome == InstallOutcome.INSTALLED]

    @property
    def failed(self) -> list[UpdateRecord]:
        """Records whose install failed in this phase."""
        return [r for r in self.records if r.install_outcome == InstallOutcome.FAILED]

    @property
    def reboot_required(self) -> bool:
        """Whether an update installed in this phase needs a restart."""
        return any(r.requires_reboot for r in self.installed)


class RunSummary(BaseModel):
    """Summary of a complete update run."""

    run_id: str = Field(..., description="Unique run identifier")
    start_time: datetime = Field(..., description="Run start time")
    end_time: datetime | None = Field(default=None, description="Run end time")
    dry_run: bool = Field(default=False)
    phases: list[PhaseResult] = Field(default_factory=list)
    interactive_session: bool | None = Field(
        default=None, description="Session classification at the reboot decision"
    )
    reboot_action: RebootAction | None = Field(default=None)
    reboot_confirmed: bool | None = Field(
        default=None, description="Answer to the restart prompt, if one was shown"
    )
    rebooted: bool = Field(default=False, description="A reboot was triggered")
    states: list[RunState] = Field(
        default_factory=list, description="States visited, in order"
    )

    @property
    def installed_count(self) -> int:
        """Number of updates installed across phases."""
        return sum(len(p.installed) for p in self.phases)

    @property
    def failed_count(self) -> int:
        """Number of failed installs across phases."""
        return sum(len(p.failed) for p in self.phases)

    @property
    def reboot_required(self) -> bool:
        """Whether any update installed during the run needs a restart."""
        return any(p.reboot_required for p in self.phases)

    def phase(self, kind: PhaseKind) -> PhaseResult | None:
        """Return the result of the given phase, if it ran."""
        for result in self.phases:
            if result.phase == kind:
                return result
        return None


# =============================================================================
# Configuration
# =============================================================================


class LogConfig(BaseModel):
    """Configuration for the audit log."""

    application_name: str = Field(
        default="VendorUpdate", description="Used to name the log file"
    )
    log_dir: Path | None = Field(
        default=None, description="Override for the log directory. None = <documents>/Logs"
    )
    max_bytes: int = Field(
        default=100 * 1024 * 1024, gt=0, description="Size above which the log is rotated"
    )
    lines_to_keep: int = Field(
        default=500, gt=0, description="Number of most recent lines kept on rotation"
    )

    @property
    def file_name(self) -> str:
        """Log file name."""
        return f"{self.application_name}_Log.txt"


class PrerequisiteConfig(BaseModel):
    """A package-index prerequisite the provider needs at a minimum version."""

    name: str | None = Field(default=None, description="Prerequisite name. None = no check")
    minimum_version: str = Field(default="0", description="Minimum supported version")


class RebootConfig(BaseModel):
    """Reboot behaviour."""

    command: list[str] | None = Field(
        default=None, description="Command used to restart. None = platform default"
    )


class GlobalConfig(BaseModel):
    """Global configuration for vendor-update."""

    provider: str = Field(default="mock", description="Name of the update provider")
    dry_run: bool = Field(default=False, description="List updates without installing")
    require_admin: bool = Field(
        default=True, description="Refuse to install without administrative rights"
    )
    diagnostics_level: str = Field(
        default="warning", description="Level of structlog diagnostics on stderr"
    )


class SystemConfig(BaseModel):
    """Complete system configuration."""

    global_config: GlobalConfig = Field(default_factory=GlobalConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    prerequisite: PrerequisiteConfig = Field(default_factory=PrerequisiteConfig)
    reboot: RebootConfig = Field(default_factory=RebootConfig)
    providers: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Provider-specific options keyed by provider name"
    )
