"""Orchestrator for phased update installation.

This module provides the orchestrator that installs unattended updates,
then, when a local user is present, interactive updates, and finally
decides whether to restart the machine.

The run is a small state machine:

    IDLE -> UNATTENDED_PHASE -> (INTERACTIVE_PHASE | SKIP_INTERACTIVE)
         -> REBOOT_DECISION -> DONE

Updates are installed strictly one at a time in enumeration order. A failed
install is logged and the phase moves on to the next update. A failed
enumeration skips only that phase.
"""

from __future__ import annotations

import subprocess
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from .models import (
    InstallOutcome,
    InstallResult,
    PhaseKind,
    PhaseResult,
    PrerequisiteConfig,
    RebootAction,
    RunState,
    RunSummary,
    UpdateRecord,
)
from .prerequisites import ensure_prerequisite
from .privilege import require_admin
from .reboot import RESTART_QUESTION, ask_yes_no, decide_reboot

if TYPE_CHECKING:
    from collections.abc import Callable

    from .interfaces import Rebooter, UpdateProvider
    from .logsink import LogSink
    from .session import SessionClassifier

logger = structlog.get_logger(__name__)

COMPLETION_MESSAGE = "Script execution completed"


class PhaseOrchestrator:
    """Sequences update phases and the reboot decision for one run.

    The orchestrator is responsible for:
    - Checking privileges and the provider prerequisite
    - Installing unattended updates, then gated interactive updates
    - Recording every step in the audit log
    - Restarting, prompting or skipping once installs are done
    """

    def __init__(
        self,
        provider: UpdateProvider,
        sink: LogSink,
        session: SessionClassifier,
        rebooter: Rebooter,
        *,
        confirm: Callable[[str], bool] | None = None,
        prerequisite: PrerequisiteConfig | None = None,
        require_admin: bool = False,
        dry_run: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Enumerates and installs updates.
            sink: Audit log every decision is written to.
            session: Decides whether a local user can be prompted.
            rebooter: Restarts the machine.
            confirm: Asks a yes/no question. Defaults to reading stdin.
            prerequisite: Prerequisite verified before the first listing.
            require_admin: Stop unless running with administrative rights.
            dry_run: List updates without installing or restarting.
        """
        self.provider = provider
        self.sink = sink
        self.session = session
        self.rebooter = rebooter
        self.confirm = confirm or ask_yes_no
        self.prerequisite = prerequisite or PrerequisiteConfig()
        self.require_admin = require_admin
        self.dry_run = dry_run
        self._state = RunState.IDLE
        self._log = logger.bind(component="orchestrator", provider=provider.name)

    @property
    def state(self) -> RunState:
        """Current state of the run."""
        return self._state

    async def run(self) -> RunSummary:
        """Execute a complete update run.

        Returns:
            RunSummary with phase results and the reboot outcome.

        Raises:
            FatalError: If the audit log cannot be written or required
                privileges are missing.
        """
        run_id = str(uuid.uuid4())[:8]
        summary = RunSummary(
            run_id=run_id,
            start_time=datetime.now(tz=UTC),
            dry_run=self.dry_run,
            states=[RunState.IDLE],
        )
        self._state = RunState.IDLE

        self._log.info("run_started", run_id=run_id, dry_run=self.dry_run)
        self.sink.info(f"Script execution started (provider: {self.provider.name})")
        if self.dry_run:
            self.sink.info("Dry run: updates will be listed but not installed")

        await self._preflight()

        self._transition(RunState.UNATTENDED_PHASE, summary)
        summary.phases.append(await self.run_phase(PhaseKind.UNATTENDED))

        if self.session.is_interactive_session():
            self._transition(RunState.INTERACTIVE_PHASE, summary)
            summary.phases.append(await self.run_phase(PhaseKind.INTERACTIVE))
        else:
            self._transition(RunState.SKIP_INTERACTIVE, summary)
            self.sink.info("No interactive session detected; skipping interactive updates")
            summary.phases.append(PhaseResult(phase=PhaseKind.INTERACTIVE, skipped=True))

        self._transition(RunState.REBOOT_DECISION, summary)
        self._finish(summary)

        summary.end_time = datetime.now(tz=UTC)
        self._transition(RunState.DONE, summary)

        self._log.info(
            "run_completed",
            run_id=run_id,
            installed=summary.installed_count,
            failed=summary.failed_count,
            reboot_action=summary.reboot_action.value if summary.reboot_action else None,
            rebooted=summary.rebooted,
        )
        return summary

    async def run_phase(self, kind: PhaseKind) -> PhaseResult:
        """Enumerate and install the updates of one phase.

        Args:
            kind: UNATTENDED or INTERACTIVE.

        Returns:
            PhaseResult with the attempted records and their outcomes.
        """
        label = kind.value
        log = self._log.bind(phase=label)

        try:
            records = await self.provider.list_updates()
        except Exception as e:
            log.warning("enumeration_failed", error=str(e))
            self.sink.error(f"Unable to list {label} updates: {e}")
            return PhaseResult(phase=kind, enumeration_failed=True, error_message=str(e))

        selected = [record.model_copy() for record in records if record.phase == kind]
        log.debug("updates_enumerated", total=len(records), selected=len(selected))

        if not selected:
            self.sink.info(f"No {label} updates available")
            return PhaseResult(phase=kind)

        self.sink.info(f"Found {len(selected)} {label} update(s)")

        for record in selected:
            if self.dry_run:
                self.sink.info(f"Would install {record.title}")
                continue
            await self._install(record)

        result = PhaseResult(phase=kind, records=selected)
        if not self.dry_run:
            self.sink.info(
                f"{label.capitalize()} updates completed: "
                f"{len(result.installed)} installed, {len(result.failed)} failed"
            )
        return result

    async def _preflight(self) -> None:
        """Check privileges and the provider prerequisite before installing."""
        if self.dry_run:
            return
        if self.require_admin:
            require_admin(self.sink)
        await ensure_prerequisite(self.provider, self.sink, self.prerequisite)

    async def _install(self, record: UpdateRecord) -> None:
        """Install one update, recording the outcome on the record.

        Provider exceptions never escape this method.
        """
        log = self._log.bind(update=record.title)
        self.sink.info(f"Installing {record.title}")

        try:
            result = await self.provider.install(record)
        except Exception as e:
            log.warning("install_raised", error=str(e), error_type=type(e).__name__)
            result = InstallResult(success=False, error_message=str(e) or type(e).__name__)

        if result.success:
            record.install_outcome = InstallOutcome.INSTALLED
            self.sink.info(f"Installed {record.title}")
        else:
            record.install_outcome = InstallOutcome.FAILED
            detail = result.error_message or "unknown error"
            self.sink.error(f"Failed to install {record.title}: {detail}")

        log.debug("install_finished", outcome=record.install_outcome.value)

    def _finish(self, summary: RunSummary) -> None:
        """Decide and carry out the terminal action of the run."""
        interactive = self.session.is_interactive_session()
        action = decide_reboot(interactive, summary.reboot_required)
        summary.interactive_session = interactive
        summary.reboot_action = action
        self._log.info(
            "reboot_decided",
            action=action.value,
            interactive=interactive,
            reboot_required=summary.reboot_required,
        )

        if self.dry_run:
            self.sink.info(f"Dry run: reboot decision would be '{action.value}'; not acting on it")
            self.sink.info(COMPLETION_MESSAGE)
            return

        if action == RebootAction.SKIP:
            self.sink.info("No reboot needed")
            self.sink.info(COMPLETION_MESSAGE)
            return

        if action == RebootAction.PROMPT:
            confirmed = self.confirm(RESTART_QUESTION)
            summary.reboot_confirmed = confirmed
            if not confirmed:
                self.sink.info("No restart requested")
                self.sink.info(COMPLETION_MESSAGE)
                return
            self.sink.info("Restart requested; restarting computer")
        else:
            self.sink.info("No interactive session; restarting computer to complete installation")

        self.sink.info(COMPLETION_MESSAGE)
        self._reboot(summary)

    def _reboot(self, summary: RunSummary) -> None:
        """Trigger the restart, logging a failure instead of raising it."""
        try:
            self.rebooter.reboot()
        except (subprocess.CalledProcessError, OSError) as e:
            self._log.warning("reboot_failed", error=str(e))
            self.sink.error(f"Failed to restart computer: {e}")
            return
        summary.rebooted = True

    def _transition(self, state: RunState, summary: RunSummary) -> None:
        """Move the state machine to ``state`` and record it."""
        self._log.debug("state_transition", from_state=self._state.value, to_state=state.value)
        self._state = state
        summary.states.append(state)
