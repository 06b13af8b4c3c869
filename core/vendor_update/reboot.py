"""Post-install reboot decision.

The decision itself is a pure function of two inputs: whether an interactive
session is present and whether any update installed during the run needs a
restart. Asking the user is a separate small state machine fed by an
injected reader, so the decision can be exercised without real input.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from .models import RebootAction

RESTART_QUESTION = "A restart is required to complete installation. Restart now?"


def decide_reboot(interactive: bool, reboot_required: bool) -> RebootAction:
    """Pick the terminal action for a run.

    Without an interactive session nobody can answer a prompt, so the
    machine is restarted unconditionally, even when nothing required it.

    Args:
        interactive: Whether a local interactive user is present.
        reboot_required: Whether an update installed in this run needs a restart.

    Returns:
        RebootAction.REBOOT, PROMPT or SKIP.
    """
    if not interactive:
        return RebootAction.REBOOT
    if reboot_required:
        return RebootAction.PROMPT
    return RebootAction.SKIP


class PromptState(str, Enum):
    """States of the yes/no prompt."""

    AWAIT_INPUT = "await_input"
    PROCEED = "proceed"


def parse_answer(text: str) -> bool | None:
    """Parse a single-character yes/no answer, case-insensitively.

    Returns:
        True for ``y``, False for ``n``, None for anything else.
    """
    answer = text.strip().lower()
    if answer == "y":
        return True
    if answer == "n":
        return False
    return None


class YesNoPrompt:
    """Yes/no prompt that stays in AWAIT_INPUT until it receives y or n."""

    def __init__(self) -> None:
        self.state = PromptState.AWAIT_INPUT
        self.answer: bool | None = None
        self.attempts = 0

    def submit(self, text: str) -> PromptState:
        """Feed one line of input.

        Args:
            text: Raw user input.

        Returns:
            The state after processing the input.

        Raises:
            RuntimeError: If the prompt has already been answered.
        """
        if self.state == PromptState.PROCEED:
            raise RuntimeError("Prompt has already been answered")

        self.attempts += 1
        answer = parse_answer(text)
        if answer is not None:
            self.answer = answer
            self.state = PromptState.PROCEED
        return self.state


def ask_yes_no(
    question: str,
    read_input: Callable[[str], str] = input,
    on_invalid: Callable[[str], None] | None = None,
) -> bool:
    """Ask a yes/no question until a valid answer is given.

    Blocks for as long as the reader blocks; there is no timeout.

    Args:
        question: Question text, ``(y/n)`` is appended.
        read_input: Reads one line given a prompt string.
        on_invalid: Called with the rejected input after each invalid answer.

    Returns:
        True for yes, False for no.
    """
    prompt = YesNoPrompt()
    while True:
        text = read_input(f"{question} (y/n): ")
        if prompt.submit(text) == PromptState.PROCEED:
            return bool(prompt.answer)
        if on_invalid is not None:
            on_invalid(text)
