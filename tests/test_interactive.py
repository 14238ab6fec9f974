"""Tests for the interactive wizard and its step handlers."""

import signal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from rich.console import Console


def _controller_at(persistence, step, draft):
    from cnc_dashboard.wizard.controller import WizardController
    from cnc_dashboard.wizard.store import WizardSnapshot

    persistence.save(WizardSnapshot(step=step, draft=draft))
    return WizardController(persistence)


def _runner_factory(passing=True):
    from cnc_dashboard.wizard.runner import SystemCheck, ValidationRunner

    def make(draft):
        checks = [SystemCheck("disk", "Disk", "Disk check", lambda d: (passing, "checked"))]
        return ValidationRunner(draft, checks=checks, pause=0)
    return make


def _scripted_wizard(controller, runner_factory=None, assume_yes=False):
    """A stand-in for InteractiveWizard with a mocked UI."""
    ui = MagicMock()
    ui.show_progress.side_effect = lambda description, func: func()
    wizard = SimpleNamespace(
        controller=controller,
        ui=ui,
        console=Console(record=True),
        assume_yes=assume_yes,
        runner=None,
    )
    wizard.make_runner = lambda: (runner_factory or _runner_factory())(controller.draft)
    return wizard


class TestStepHandlers:
    """Test individual step handlers."""

    def test_organization_step(self, persistence):
        """Test answers land in the draft."""
        from cnc_dashboard.wizard.models import Draft
        from cnc_dashboard.wizard.steps import organization_step

        controller = _controller_at(persistence, 1, Draft())
        wizard = _scripted_wizard(controller)
        wizard.ui.prompt_text.side_effect = ["Acme Machining", "assets/acme.png"]

        assert organization_step(wizard) is True
        assert controller.draft.company_name == "Acme Machining"
        assert controller.draft.company_logo == "assets/acme.png"
        assert controller.current_step_valid is True

    def test_storage_step(self, persistence, valid_draft):
        """Test every storage folder is asked for."""
        from cnc_dashboard.wizard.steps import storage_step

        controller = _controller_at(persistence, 4, valid_draft)
        wizard = _scripted_wizard(controller)
        wizard.ui.prompt_text.side_effect = ["/data/cnc", "/data/logs", "", "", "/data/out"]

        assert storage_step(wizard) is True
        storage = controller.draft.storage
        assert storage.base_path == "/data/cnc"
        assert storage.logs_path == "/data/logs"
        assert storage.backup_path == ""
        assert storage.output_path == "/data/out"

    def test_storage_step_clears_saved_folder(self, persistence, valid_draft):
        """Test a cleared answer empties a saved folder."""
        from cnc_dashboard.wizard.steps import storage_step

        controller = _controller_at(persistence, 4, valid_draft)
        wizard = _scripted_wizard(controller)
        wizard.ui.prompt_text.side_effect = ["/srv/cnc/dashboard", "", "", "", ""]

        assert storage_step(wizard) is True
        assert controller.draft.storage.logs_path == ""
        assert all(c.kwargs["allow_clear"] for c in wizard.ui.prompt_text.call_args_list)

    def test_modules_step_shares_analyzer_folder(self, persistence, valid_draft):
        """Test both modules in auto mode are not asked for a second JSON folder."""
        from cnc_dashboard.wizard.steps import modules_step

        controller = _controller_at(persistence, 2, valid_draft)
        wizard = _scripted_wizard(controller)
        wizard.ui.prompt_confirm.return_value = True
        wizard.ui.prompt_choice.side_effect = ["auto", "auto", "auto"]
        wizard.ui.prompt_text.side_effect = [
            "/data/json",
            "/data/excel",
            "/data/excel/tools.xlsx",
            "/data/plates",
            "/data/plates/info.xlsx",
        ]

        assert modules_step(wizard) is True
        matrix = controller.draft.modules.matrix_tools
        assert matrix.paths.json_input_path == "/data/json"
        assert matrix.inventory_file == "/data/excel/tools.xlsx"
        assert wizard.ui.prompt_text.call_count == 5
        assert controller.current_step_valid is True

    def test_modules_step_manual_mode_asks_json_folder(self, persistence, valid_draft):
        """Test a manual tool manager keeps its own JSON folder."""
        from cnc_dashboard.wizard.steps import modules_step

        controller = _controller_at(persistence, 2, valid_draft)
        wizard = _scripted_wizard(controller)
        wizard.ui.prompt_confirm.return_value = True
        wizard.ui.prompt_choice.side_effect = ["auto", "manual", "auto"]
        wizard.ui.prompt_text.side_effect = [
            "/data/json",
            "/data/excel",
            "",
            "/data/tools/json",
            "/data/plates",
            "/data/plates/info.xlsx",
        ]

        assert modules_step(wizard) is True
        matrix = controller.draft.modules.matrix_tools
        assert matrix.mode == "manual"
        assert matrix.paths.json_input_path == "/data/tools/json"
        assert matrix.inventory_file == ""

    def test_introduction_declined(self, persistence):
        """Test declining the introduction stops the wizard."""
        from cnc_dashboard.wizard.models import Draft
        from cnc_dashboard.wizard.steps import introduction_step

        wizard = _scripted_wizard(_controller_at(persistence, 0, Draft()))
        wizard.ui.prompt_confirm.return_value = False
        assert introduction_step(wizard) is False


class TestValidationStep:
    """Test the validation step handler."""

    def test_passing_checks(self, persistence, valid_draft):
        """Test clean checks allow completion without questions."""
        from cnc_dashboard.wizard.steps import validation_step

        wizard = _scripted_wizard(_controller_at(persistence, 6, valid_draft))

        assert validation_step(wizard) is True
        assert wizard.runner.is_complete
        wizard.ui.prompt_choice.assert_not_called()

    def test_continue_anyway(self, persistence, valid_draft):
        """Test continuing past failures records an override."""
        from cnc_dashboard.wizard.steps import validation_step
        from cnc_dashboard.wizard.steps.validation import CHOICE_CONTINUE

        wizard = _scripted_wizard(_controller_at(persistence, 6, valid_draft), _runner_factory(passing=False))
        wizard.ui.prompt_choice.return_value = CHOICE_CONTINUE

        assert validation_step(wizard) is True
        assert wizard.runner.override_record is not None
        assert wizard.runner.override_record.checks[0]["id"] == "disk"

    def test_retry_then_stop(self, persistence, valid_draft):
        """Test retrying reruns the checks and stopping returns False."""
        from cnc_dashboard.wizard.steps import validation_step
        from cnc_dashboard.wizard.steps.validation import CHOICE_RETRY, CHOICE_STOP

        wizard = _scripted_wizard(_controller_at(persistence, 6, valid_draft), _runner_factory(passing=False))
        wizard.ui.prompt_choice.side_effect = [CHOICE_RETRY, CHOICE_STOP]

        assert validation_step(wizard) is False
        assert wizard.ui.show_progress.call_count == 2
        assert wizard.runner.override_record is None

    def test_failures_without_prompting(self, persistence, valid_draft):
        """Test non-interactive runs never override failed checks."""
        from cnc_dashboard.wizard.steps import validation_step

        wizard = _scripted_wizard(
            _controller_at(persistence, 6, valid_draft),
            _runner_factory(passing=False),
            assume_yes=True,
        )
        assert validation_step(wizard) is False
        assert wizard.runner.override_record is None


class TestInteractiveWizard:
    """Test the full wizard loop without prompts."""

    def _wizard(self, controller, repository, persistence, fake_client, passing=True):
        from cnc_dashboard.wizard.interactive import InteractiveWizard
        from cnc_dashboard.wizard.orchestrator import CompletionOrchestrator

        return InteractiveWizard(
            controller=controller,
            orchestrator=CompletionOrchestrator(fake_client, repository, persistence),
            runner_factory=_runner_factory(passing),
            console=Console(record=True),
            assume_yes=True,
        )

    def test_completes_from_saved_progress(self, backend, persistence, valid_draft, fake_client):
        """Test a valid saved draft runs through to completion."""
        from cnc_dashboard.wizard.store import ConfigRepository

        repository = ConfigRepository(backend)
        controller = _controller_at(persistence, 2, valid_draft)
        wizard = self._wizard(controller, repository, persistence, fake_client)

        result = wizard.run()

        assert result.all_succeeded
        assert sorted(result.outcomes) == ["clampingPlateManager", "jsonScanner", "toolManager"]
        assert repository.is_configured()
        assert persistence.load() is None

    def test_incomplete_step_raises(self, backend, persistence, fake_client):
        """Test an invalid saved step cannot pass without prompting."""
        from cnc_dashboard.wizard.exceptions import NavigationError
        from cnc_dashboard.wizard.models import Draft
        from cnc_dashboard.wizard.store import ConfigRepository

        controller = _controller_at(persistence, 1, Draft())
        wizard = self._wizard(controller, ConfigRepository(backend), persistence, fake_client)

        with pytest.raises(NavigationError, match="Company"):
            wizard.run()

    def test_failed_checks_stop(self, backend, persistence, valid_draft, fake_client):
        """Test failing checks end the run without completing."""
        from cnc_dashboard.wizard.store import ConfigRepository

        repository = ConfigRepository(backend)
        controller = _controller_at(persistence, 6, valid_draft)
        wizard = self._wizard(controller, repository, persistence, fake_client, passing=False)

        assert wizard.run() is None
        assert not repository.is_configured()
        assert fake_client.calls == []

    def test_interrupt_handler_restored(self, backend, persistence, valid_draft, fake_client):
        """Test the previous SIGINT handler is put back."""
        from cnc_dashboard.wizard.store import ConfigRepository

        before = signal.getsignal(signal.SIGINT)
        controller = _controller_at(persistence, 6, valid_draft)
        self._wizard(controller, ConfigRepository(backend), persistence, fake_client).run()
        assert signal.getsignal(signal.SIGINT) is before


class TestDraftSummary:
    """Test the summary shown before the final check."""

    def test_summary(self, valid_draft):
        """Test enabled modules and authentication are listed."""
        from cnc_dashboard.wizard.interactive import draft_summary

        summary = draft_summary(valid_draft)
        assert summary["Company"] == "Acme Machining"
        assert summary["Modules"] == "JSON Analyzer, Tool Manager, Clamping Plates"
        assert summary["Authentication"] == "file: /srv/cnc/employees.csv"
        assert "Mode" not in summary
