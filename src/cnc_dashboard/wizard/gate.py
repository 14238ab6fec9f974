"""
CNC Dashboard Step Validity Gate

Decides whether the operator may advance past a wizard step, and reports
which requirement failed when they may not.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Tuple

from cnc_dashboard.wizard.models import Draft
from cnc_dashboard.wizard.validators import (
    Verdict,
    validate_company_name,
    validate_database_connection,
    validate_directory_path,
    validate_employee_file,
    validate_excel_file,
    validate_ldap_server,
    validate_logo,
    validate_plate_file,
)


class WizardStep(IntEnum):
    INTRODUCTION = 0
    ORGANIZATION = 1
    MODULES = 2
    AUTHENTICATION = 3
    STORAGE = 4
    PREFERENCES = 5
    VALIDATION = 6

    @property
    def title(self) -> str:
        return STEP_DEFINITIONS[self][0]

    @property
    def description(self) -> str:
        return STEP_DEFINITIONS[self][1]


STEP_DEFINITIONS: Dict[WizardStep, Tuple[str, str]] = {
    WizardStep.INTRODUCTION: ("Introduction", "Setup overview & guidelines"),
    WizardStep.ORGANIZATION: ("Company", "Company information"),
    WizardStep.MODULES: ("Modules", "Configure applications"),
    WizardStep.AUTHENTICATION: ("Authentication", "User management"),
    WizardStep.STORAGE: ("Storage", "Data & file paths"),
    WizardStep.PREFERENCES: ("Preferences", "Dashboard preferences"),
    WizardStep.VALIDATION: ("Validation", "Test & validate setup"),
}


@dataclass
class FieldIssue:
    """A named field and why it failed (or deserves a warning)."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class StepCheck:
    """Outcome of gating one step."""
    step: WizardStep
    failures: List[FieldIssue] = field(default_factory=list)
    warnings: List[FieldIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.failures

    def add(self, field_name: str, verdict: Verdict) -> None:
        """Record a verdict against a field."""
        if not verdict.is_valid:
            self.failures.append(FieldIssue(field_name, verdict.error or "Invalid value"))
        elif verdict.warning:
            self.warnings.append(FieldIssue(field_name, verdict.warning))

    def fail(self, field_name: str, message: str) -> None:
        self.failures.append(FieldIssue(field_name, message))

    def warn(self, field_name: str, message: str) -> None:
        self.warnings.append(FieldIssue(field_name, message))

    def reasons(self) -> List[str]:
        return [str(issue) for issue in self.failures]


def _always_valid(check: StepCheck, draft: Draft) -> None:
    pass


def _check_organization(check: StepCheck, draft: Draft) -> None:
    check.add("company_name", validate_company_name(draft.company_name))
    check.add("company_logo", validate_logo(draft.company_logo))


def _check_modules(check: StepCheck, draft: Draft) -> None:
    if not draft.company_features.any_enabled():
        check.fail("company_features", "Enable at least one module")
        return

    # Settings of disabled modules are never required
    modules = draft.modules
    paths = []
    if draft.company_features.json_scanner:
        paths.append(("modules.json_analyzer.data_path", modules.json_analyzer.data_path))
    if draft.company_features.tool_manager:
        paths.append(("modules.matrix_tools.paths.excel_input_path",
                      modules.matrix_tools.paths.excel_input_path))
        paths.append(("modules.matrix_tools.paths.json_input_path",
                      modules.matrix_tools.paths.json_input_path))
        inventory = modules.matrix_tools.inventory_file
        if modules.matrix_tools.features.excel_processing and inventory.strip():
            verdict = validate_excel_file(inventory)
            if not verdict.is_valid:
                check.warn("modules.matrix_tools.inventory_file", verdict.error)
    if draft.company_features.clamping_plate_manager:
        paths.append(("modules.plates_manager.models_path", modules.plates_manager.models_path))
        info_file = modules.plates_manager.plate_info_file
        if info_file.strip():
            verdict = validate_plate_file(info_file)
            if not verdict.is_valid:
                check.warn("modules.plates_manager.plate_info_file", verdict.error)

    for name, value in paths:
        if value.strip():
            verdict = validate_directory_path(value)
            if not verdict.is_valid:
                check.warn(name, verdict.error)


def _check_authentication(check: StepCheck, draft: Draft) -> None:
    auth = draft.authentication
    if auth.method == "file":
        check.add("authentication.employee_file", validate_employee_file(auth.employee_file))
    elif auth.method == "ldap":
        check.add("authentication.ldap_server", validate_ldap_server(auth.ldap_server))
    elif auth.method == "database":
        check.add("authentication.database_connection",
                  validate_database_connection(auth.database_connection))
    else:
        check.fail("authentication.method", f"Unknown authentication method '{auth.method}'")


def _check_storage(check: StepCheck, draft: Draft) -> None:
    storage = draft.storage
    if storage.base_path.strip():
        check.add("storage.base_path", validate_directory_path(storage.base_path))

    for name, value in storage.configured_paths().items():
        if name == "base_path":
            continue
        verdict = validate_directory_path(value)
        if not verdict.is_valid:
            check.warn(f"storage.{name}", verdict.error)


STEP_RULES: Dict[WizardStep, Callable[[StepCheck, Draft], None]] = {
    WizardStep.INTRODUCTION: _always_valid,
    WizardStep.ORGANIZATION: _check_organization,
    WizardStep.MODULES: _check_modules,
    WizardStep.AUTHENTICATION: _check_authentication,
    WizardStep.STORAGE: _check_storage,
    WizardStep.PREFERENCES: _always_valid,
    # Runs its own system checks instead, see runner.ValidationRunner
    WizardStep.VALIDATION: _always_valid,
}


def check_step(step: int, draft: Draft) -> StepCheck:
    """Apply the requirements of one step to a draft.

    Args:
        step: Step position (0-6)
        draft: The draft being edited

    Returns:
        StepCheck listing failed requirements and warnings

    Raises:
        ValueError: if the step does not exist
    """
    wizard_step = WizardStep(step)
    check = StepCheck(step=wizard_step)
    STEP_RULES[wizard_step](check, draft)
    return check


def is_step_valid(step: int, draft: Draft) -> bool:
    """True if the operator may advance past `step`."""
    return check_step(step, draft).is_valid
