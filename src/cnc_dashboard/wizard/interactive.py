"""
CNC Dashboard Interactive Wizard

Drives the wizard controller from the terminal: runs each step's handler,
re-asks a step until its gate passes, and completes setup from the
validation step.
"""

import signal
import sys
from typing import Callable, Dict, Optional

from rich.console import Console

from cnc_dashboard.wizard.controller import WizardController
from cnc_dashboard.wizard.exceptions import NavigationError
from cnc_dashboard.wizard.gate import WizardStep
from cnc_dashboard.wizard.models import Draft
from cnc_dashboard.wizard.orchestrator import CompletionOrchestrator, CompletionResult
from cnc_dashboard.wizard.runner import ValidationRunner
from cnc_dashboard.wizard.steps import WIZARD_STEPS
from cnc_dashboard.wizard.ui import WizardUI


def draft_summary(draft: Draft) -> Dict[str, str]:
    """Flatten the interesting parts of a draft for display."""
    features = draft.company_features
    enabled = [
        label for label, on in (
            ("JSON Analyzer", features.json_scanner),
            ("Tool Manager", features.tool_manager),
            ("Clamping Plates", features.clamping_plate_manager),
        ) if on
    ]
    auth = draft.authentication
    auth_value = {
        "file": auth.employee_file,
        "database": auth.database_connection,
        "ldap": auth.ldap_server,
    }.get(auth.method, "")

    summary = {
        "Company": draft.company_name,
        "Logo": draft.company_logo,
        "Modules": ", ".join(enabled),
        "Authentication": f"{auth.method}: {auth_value}" if auth_value else auth.method,
        "Base folder": draft.storage.base_path,
        "Theme": draft.features.theme_mode,
        "Auto scan": f"every {draft.features.auto_scan.interval} min" if draft.features.auto_scan.enabled else "off",
    }
    if draft.demo_mode:
        summary["Mode"] = "demo (test mode)"
    return summary


class InteractiveWizard:
    """Terminal front end over WizardController."""

    def __init__(
        self,
        controller: WizardController,
        orchestrator: CompletionOrchestrator,
        runner_factory: Callable[[Draft], ValidationRunner],
        console: Optional[Console] = None,
        assume_yes: bool = False
    ):
        """Initialize the wizard.

        Args:
            controller: Controller holding the draft and position
            orchestrator: Completes setup once validation passes
            runner_factory: Builds the validation runner for a draft
            console: Console to draw on
            assume_yes: Accept saved answers without prompting
        """
        self.controller = controller
        self.orchestrator = orchestrator
        self.runner_factory = runner_factory
        self.console = console or Console()
        self.ui = WizardUI(self.console, total_steps=len(WizardStep))
        self.assume_yes = assume_yes
        self.runner: Optional[ValidationRunner] = None
        self.handlers = {entry["step"]: entry["handler"] for entry in WIZARD_STEPS}

    def _handle_interrupt(self, signum, frame):
        self.console.print("\n")
        self.ui.print_warning("Setup interrupted. Your progress is saved.")
        self.console.print("[yellow]To continue, run:[/yellow]")
        self.console.print("[cyan]  cnc-dashboard setup[/cyan]")
        self.console.print()
        sys.exit(130)

    def make_runner(self) -> ValidationRunner:
        return self.runner_factory(self.controller.draft)

    def _offer_resume(self):
        position = self.controller.position
        if position == WizardStep.INTRODUCTION or self.assume_yes:
            return

        self.ui.print_info(f"Saved progress found at step {position + 1} ({position.title}).")
        if self.ui.prompt_confirm("Resume where you left off?", default=True):
            return
        if self.ui.prompt_confirm("Discard the saved progress and start over?", default=False):
            self.controller.reset()

    def _offer_review(self) -> bool:
        """Let the operator revisit a completed step. True if they jumped."""
        self.ui.show_summary_table("Configuration summary", draft_summary(self.controller.draft))
        if self.assume_yes or not self.ui.prompt_confirm("Change anything before the final check?", default=False):
            return False

        completed = [step for step in WizardStep if self.controller.is_completed(step)]
        titles = [step.title for step in completed]
        title = self.ui.prompt_choice("Go back to", titles, default=titles[-1])
        return self.controller.jump_to(completed[titles.index(title)])

    def _show_gate_result(self) -> None:
        check = self.controller.current_check
        for issue in check.warnings:
            self.ui.print_warning(str(issue))
        for issue in check.failures:
            self.ui.print_error(str(issue))

    def run(self) -> Optional[CompletionResult]:
        """Run the wizard to completion.

        Returns:
            CompletionResult, or None if the operator stopped early

        Raises:
            NavigationError: if a step cannot pass its gate without prompting
            CompletionError: if the configuration could not be saved
        """
        previous_handler = signal.signal(signal.SIGINT, self._handle_interrupt)
        try:
            return self._run_steps()
        finally:
            signal.signal(signal.SIGINT, previous_handler)

    def _run_steps(self) -> Optional[CompletionResult]:
        self.ui.print_header()
        self._offer_resume()

        while True:
            step = self.controller.position
            self.ui.print_step_header(step, step.title, step.description)

            if step == WizardStep.VALIDATION:
                if self._offer_review():
                    continue
                if not self.handlers[step](self):
                    return None
                return self.controller.complete(self.orchestrator, self.runner)

            # Saved answers are accepted as-is in non-interactive runs
            if not self.assume_yes and not self.handlers[step](self):
                return None

            self._show_gate_result()
            if self.controller.next():
                continue

            if self.assume_yes:
                raise NavigationError(
                    f"Step '{step.title}' is incomplete",
                    step=int(step),
                    details="; ".join(self.controller.current_check.reasons()),
                    remediation="Run 'cnc-dashboard setup' without --yes to fill it in"
                )

            if step > WizardStep.INTRODUCTION and self.ui.prompt_confirm(
                "Go back to the previous step instead?", default=False
            ):
                self.controller.previous()
