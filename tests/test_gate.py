"""Tests for the step validity gate."""

import itertools
from dataclasses import replace

import pytest


class TestModulesGate:
    """Test step 2."""

    @pytest.mark.parametrize("toggles", list(itertools.product([True, False], repeat=3)))
    def test_valid_iff_any_module_enabled(self, toggles):
        """Test every toggle combination."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import CompanyFeatures, Draft

        draft = Draft(company_features=CompanyFeatures(*toggles))
        assert is_step_valid(2, draft) is any(toggles)

    def test_no_module_names_reason(self):
        """Test the failure explains what is missing."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import CompanyFeatures, Draft

        check = check_step(2, Draft(company_features=CompanyFeatures(False, False, False)))
        assert check.failures[0].field == "company_features"
        assert "at least one module" in check.failures[0].message

    def test_bad_path_of_enabled_module_warns(self, valid_draft):
        """Test malformed module paths only warn."""
        from cnc_dashboard.wizard.gate import check_step

        modules = replace(
            valid_draft.modules,
            json_analyzer=replace(valid_draft.modules.json_analyzer, data_path="/srv/cnc/scan.json"),
        )
        check = check_step(2, replace(valid_draft, modules=modules))
        assert check.is_valid is True
        assert [w.field for w in check.warnings] == ["modules.json_analyzer.data_path"]

    def test_disabled_module_ignored(self, valid_draft):
        """Test settings of disabled modules are not inspected."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import CompanyFeatures

        modules = replace(
            valid_draft.modules,
            json_analyzer=replace(valid_draft.modules.json_analyzer, data_path="/srv/cnc/scan.json"),
        )
        draft = replace(
            valid_draft,
            modules=modules,
            company_features=CompanyFeatures(json_scanner=False),
        )
        assert check_step(2, draft).warnings == []

    def test_inventory_file_not_excel_warns(self, valid_draft):
        """Test a non-Excel inventory file only warns."""
        from cnc_dashboard.wizard.gate import check_step

        matrix = replace(valid_draft.modules.matrix_tools, inventory_file="/srv/cnc/tools.csv")
        draft = replace(valid_draft, modules=replace(valid_draft.modules, matrix_tools=matrix))
        check = check_step(2, draft)
        assert check.is_valid is True
        assert [w.field for w in check.warnings] == ["modules.matrix_tools.inventory_file"]

        matrix = replace(matrix, features=replace(matrix.features, excel_processing=False))
        draft = replace(valid_draft, modules=replace(valid_draft.modules, matrix_tools=matrix))
        assert check_step(2, draft).warnings == []


class TestOrganizationGate:
    """Test step 1."""

    def test_default_draft_fails_both_fields(self):
        """Test name and logo are both reported."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import Draft

        check = check_step(1, Draft())
        assert check.is_valid is False
        assert {f.field for f in check.failures} == {"company_name", "company_logo"}

    def test_name_and_logo_pass(self):
        """Test a complete organization step."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import Draft

        assert is_step_valid(1, Draft(company_name="Acme", company_logo="logo.png")) is True

    def test_short_name_fails(self):
        """Test the name length rule applies."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import Draft

        assert is_step_valid(1, Draft(company_name="A", company_logo="logo.png")) is False


class TestAuthenticationGate:
    """Test step 3."""

    def test_file_method_requires_employee_file(self):
        """Test the failure reason references the employee file."""
        from cnc_dashboard.wizard.gate import check_step, is_step_valid
        from cnc_dashboard.wizard.models import AuthenticationSettings, Draft

        draft = Draft(authentication=AuthenticationSettings(method="file"))
        assert is_step_valid(3, draft) is False

        check = check_step(3, draft)
        assert check.failures[0].field == "authentication.employee_file"
        assert "Employee file" in check.reasons()[0]

    def test_file_method_wrong_extension(self):
        """Test the employee file must be CSV or JSON."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import AuthenticationSettings, Draft

        draft = Draft(authentication=AuthenticationSettings(method="file", employee_file="staff.xlsx"))
        assert is_step_valid(3, draft) is False

    def test_stale_fields_of_other_methods_ignored(self):
        """Test only the active method's fields are read."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import AuthenticationSettings, Draft

        draft = Draft(authentication=AuthenticationSettings(
            method="ldap",
            employee_file="",
            database_connection="garbage",
            ldap_server="ldap://dc01.local",
        ))
        assert is_step_valid(3, draft) is True

    def test_database_method(self):
        """Test the database connection shape is checked."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import AuthenticationSettings, Draft

        bad = Draft(authentication=AuthenticationSettings(method="database", database_connection="db01"))
        good = Draft(authentication=AuthenticationSettings(
            method="database", database_connection="postgresql://db01/cnc"
        ))
        assert is_step_valid(3, bad) is False
        assert is_step_valid(3, good) is True


class TestStorageGate:
    """Test step 4."""

    def test_empty_base_path_tolerated(self):
        """Test storage may be left empty."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import Draft

        assert is_step_valid(4, Draft()) is True

    def test_base_path_must_be_directory(self):
        """Test a file as base path fails."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import Draft, StorageSettings

        check = check_step(4, Draft(storage=StorageSettings(base_path="/srv/cnc/config.yaml")))
        assert check.is_valid is False
        assert check.failures[0].field == "storage.base_path"

    def test_other_paths_only_warn(self):
        """Test secondary storage paths produce warnings."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import Draft, StorageSettings

        check = check_step(4, Draft(storage=StorageSettings(base_path="/srv/cnc", logs_path="/srv/log.txt")))
        assert check.is_valid is True
        assert [w.field for w in check.warnings] == ["storage.logs_path"]


class TestGate:
    """Test general gate behavior."""

    @pytest.mark.parametrize("step", [0, 5, 6])
    def test_always_valid_steps(self, step):
        """Test introduction, preferences and validation steps."""
        from cnc_dashboard.wizard.gate import is_step_valid
        from cnc_dashboard.wizard.models import Draft

        assert is_step_valid(step, Draft()) is True

    @pytest.mark.parametrize("step", [-1, 7])
    def test_unknown_step(self, step):
        """Test unknown steps raise ValueError."""
        from cnc_dashboard.wizard.gate import check_step
        from cnc_dashboard.wizard.models import Draft

        with pytest.raises(ValueError):
            check_step(step, Draft())

    def test_step_titles(self):
        """Test each step has a title and description."""
        from cnc_dashboard.wizard.gate import WizardStep

        assert len(WizardStep) == 7
        assert WizardStep.AUTHENTICATION.title == "Authentication"
        assert all(step.description for step in WizardStep)

    def test_demo_draft_passes_every_gate(self):
        """Test the demo draft can be walked through without edits."""
        from cnc_dashboard.wizard.gate import WizardStep, is_step_valid
        from cnc_dashboard.wizard.models import demo_draft

        draft = demo_draft()
        assert all(is_step_valid(step, draft) for step in WizardStep)
