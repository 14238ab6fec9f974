"""
Validation Step

Run the final system checks and decide whether setup may be completed.
"""

from typing import TYPE_CHECKING

from cnc_dashboard.wizard.runner import ACTION_CONTINUE_ANYWAY, ACTION_PROCEED

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


CHOICE_RETRY = "Retry the checks"
CHOICE_CONTINUE = "Continue anyway (failures are recorded for follow-up)"
CHOICE_STOP = "Stop here and fix the configuration"


def validation_step(wizard: "InteractiveWizard") -> bool:
    """Run system checks until they pass or the operator overrides them.

    Returns:
        True when setup may be completed, False to stop
    """
    runner = wizard.make_runner()
    wizard.runner = runner

    while True:
        wizard.ui.show_progress("Running system checks...", runner.run)
        wizard.ui.show_system_checks(runner.checks)
        wizard.console.print()

        actions = runner.available_actions()
        if actions == [ACTION_PROCEED]:
            wizard.ui.print_success("All system checks passed")
            return True

        wizard.ui.print_warning(f"{len(runner.failed_checks)} system check(s) failed")
        if wizard.assume_yes:
            wizard.ui.print_info("Fix the failed checks, then run 'cnc-dashboard setup' again.")
            return False

        choice = wizard.ui.prompt_choice(
            "What would you like to do?",
            [CHOICE_RETRY, CHOICE_CONTINUE, CHOICE_STOP],
            default=CHOICE_RETRY
        )
        if choice == CHOICE_RETRY:
            continue
        if choice == CHOICE_CONTINUE and ACTION_CONTINUE_ANYWAY in actions:
            runner.override()
            return True

        wizard.ui.print_info("Progress saved. Run 'cnc-dashboard setup' to continue.")
        return False
