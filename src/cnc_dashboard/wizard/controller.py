"""
CNC Dashboard Wizard Controller

Owns the step position and enforces the navigation rules of the setup
wizard. Every transition is persisted and reported through the event port.
"""

import logging
from typing import Optional

from cnc_dashboard.wizard.events import EventSink, LoggingEventSink
from cnc_dashboard.wizard.exceptions import NavigationError
from cnc_dashboard.wizard.gate import StepCheck, WizardStep, check_step
from cnc_dashboard.wizard.models import Draft, DraftPatch, demo_draft
from cnc_dashboard.wizard.store import DraftStore, WizardPersistence


class WizardController:
    """State machine over the seven wizard steps."""

    def __init__(
        self,
        persistence: WizardPersistence,
        events: Optional[EventSink] = None,
        demo: bool = False
    ):
        """Initialize the controller and restore saved progress.

        Args:
            persistence: Resumable slot for step and draft
            events: Where transition events go (default: the dashboard logger)
            demo: Start from the demo draft when nothing is saved
        """
        self.events = events or LoggingEventSink()
        self.store = DraftStore(persistence, initial=demo_draft() if demo else Draft())
        step, _ = self.store.load()
        self.events.publish(
            "wizard.loaded",
            f"Wizard ready at step {step + 1} ({WizardStep(step).title})",
            step=step,
        )

    @property
    def position(self) -> WizardStep:
        return WizardStep(self.store.step)

    @property
    def draft(self) -> Draft:
        return self.store.get()

    @property
    def current_check(self) -> StepCheck:
        return check_step(self.position, self.store.get())

    @property
    def current_step_valid(self) -> bool:
        return self.current_check.is_valid

    def is_completed(self, step: int) -> bool:
        """A step is completed once the operator has moved past it."""
        return step < self.position

    def _move(self, target: int, event: str) -> None:
        origin = self.position
        self.store.set_step(target)
        self.events.publish(
            event,
            f"Moved from {origin.title} to {WizardStep(target).title}",
            origin=int(origin),
            target=int(target),
        )

    def _reject(self, reason: str, **data) -> bool:
        self.events.publish(
            "wizard.navigation_rejected",
            reason,
            level=logging.WARNING,
            step=int(self.position),
            **data,
        )
        return False

    def next(self) -> bool:
        """Advance one step if the current step passes its gate."""
        if self.position == WizardStep.VALIDATION:
            return self._reject("Already at the last step")

        check = self.current_check
        if not check.is_valid:
            return self._reject(
                f"{self.position.title} is incomplete: {'; '.join(check.reasons())}",
                failures=check.reasons(),
            )

        self._move(self.position + 1, "wizard.next")
        return True

    def previous(self) -> bool:
        """Go back one step; validity is not required."""
        if self.position == WizardStep.INTRODUCTION:
            return self._reject("Already at the first step")

        self._move(self.position - 1, "wizard.previous")
        return True

    def jump_to(self, step: int) -> bool:
        """Jump directly to a completed step."""
        if not 0 <= step < len(WizardStep) or not self.is_completed(step):
            return self._reject(f"Cannot jump to step {step + 1}: not completed yet", target=step)

        self._move(step, "wizard.jump")
        return True

    def update(self, patch: DraftPatch) -> Draft:
        """Merge a partial update into the draft; the position is unchanged."""
        draft = self.store.merge(patch)
        self.events.publish(
            "wizard.updated",
            f"Updated {', '.join(sorted(patch.changes()))}",
            level=logging.DEBUG,
            fields=sorted(patch.changes()),
        )
        return draft

    def reset(self) -> None:
        """Discard saved progress and return to the initial draft at step 1."""
        self.store.reset()
        self.events.publish("wizard.reset", "Setup progress cleared")

    def complete(self, orchestrator, runner):
        """Finish the wizard.

        Args:
            orchestrator: CompletionOrchestrator that promotes and dispatches the draft
            runner: ValidationRunner that ran the system checks of the last step

        Returns:
            CompletionResult from the orchestrator

        Raises:
            NavigationError: if not on the validation step, the checks have not
                finished, or they failed without an override
        """
        if self.position != WizardStep.VALIDATION:
            raise NavigationError(
                "Setup can only be completed from the validation step",
                step=int(self.position),
                remediation="Work through the remaining steps first"
            )
        if not runner.is_complete:
            raise NavigationError(
                "System validation has not finished",
                step=int(self.position),
                remediation="Run the system checks before completing setup"
            )

        override = None
        if runner.has_errors:
            override = runner.override_record
            if override is None:
                raise NavigationError(
                    "System validation reported errors",
                    step=int(self.position),
                    remediation="Fix the failed checks and retry, or choose 'continue anyway'"
                )

        self.events.publish("wizard.completing", "Completing setup")
        return orchestrator.complete(self.store.get(), override=override)
