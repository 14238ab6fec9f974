"""
CNC Dashboard Validation Step Runner

System checks run on the last wizard step: do the configured paths look
usable, is anything configured at all, and are the fields each enabled
feature depends on present. Checks run one at a time and never abort the
sequence.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from cnc_dashboard.wizard.events import EventSink, LoggingEventSink
from cnc_dashboard.wizard.exceptions import NavigationError
from cnc_dashboard.wizard.gate import WizardStep, check_step
from cnc_dashboard.wizard.models import Draft
from cnc_dashboard.wizard.validators import (
    validate_cad_file,
    validate_directory_path,
    validate_excel_file,
    validate_plate_file,
)

PENDING = "pending"
RUNNING = "running"
SUCCESS = "success"
ERROR = "error"

DEFAULT_PAUSE = 0.5

ACTION_RUN = "run"
ACTION_PROCEED = "proceed"
ACTION_RETRY = "retry"
ACTION_CONTINUE_ANYWAY = "continue_anyway"

CheckProbe = Callable[[Draft], Tuple[bool, str]]


@dataclass
class SystemCheck:
    """One system check and its latest status."""
    id: str
    name: str
    description: str
    probe: CheckProbe = field(repr=False, compare=False)
    status: str = PENDING
    error: Optional[str] = None
    message: str = ""

    def reset(self):
        self.status = PENDING
        self.error = None
        self.message = ""


@dataclass
class ValidationOverride:
    """Record of the operator continuing past failed system checks."""
    checks: List[Dict[str, str]]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


def check_folder_permissions(draft: Draft) -> Tuple[bool, str]:
    """Configured storage paths pass the directory rule and, where they exist, are read/writable."""
    paths = draft.storage.configured_paths()
    if not paths:
        return True, "No storage paths configured"

    problems = []
    for name, value in paths.items():
        verdict = validate_directory_path(value)
        if not verdict.is_valid:
            problems.append(f"{name}: {verdict.error}")
            continue

        path = Path(value.strip()).expanduser()
        if path.exists():
            if not path.is_dir():
                problems.append(f"{name}: {value} is not a directory")
            elif not os.access(path, os.R_OK | os.W_OK):
                problems.append(f"{name}: no read/write permission on {value}")

    if problems:
        return False, "; ".join(problems)
    return True, f"{len(paths)} storage path(s) look usable"


def check_folder_structure(draft: Draft) -> Tuple[bool, str]:
    """At least one storage path is configured."""
    paths = draft.storage.configured_paths()
    if not paths:
        return False, "No storage paths configured. Set at least a base path in the storage step"
    return True, f"Configured: {', '.join(sorted(paths))}"


def check_clamping_plate_files(draft: Draft) -> Tuple[bool, str]:
    if not draft.company_features.clamping_plate_manager:
        return True, "Clamping plate manager disabled, skipped"

    plates = draft.modules.plates_manager
    if not plates.models_path.strip() and not plates.plate_info_file.strip():
        return False, "Configure a models path or a plate info file for the clamping plate manager"

    if plates.plate_info_file.strip():
        verdict = validate_plate_file(plates.plate_info_file)
        if not verdict.is_valid:
            return False, verdict.error

    models = Path(plates.models_path.strip()).expanduser()
    if plates.models_path.strip() and models.is_dir():
        cad_files = [p for p in models.iterdir() if p.is_file() and validate_cad_file(p.name).is_valid]
        if not cad_files:
            return False, f"No CAD models found in {plates.models_path}"
        return True, f"{len(cad_files)} CAD model(s) found"

    return True, "Clamping plate files configured"


def check_tool_inventory_file(draft: Draft) -> Tuple[bool, str]:
    """The tool inventory file, when set, is an Excel workbook."""
    matrix = draft.modules.matrix_tools
    if not draft.company_features.tool_manager or not matrix.features.excel_processing:
        return True, "Excel processing disabled, skipped"

    if not matrix.inventory_file.strip():
        return True, "No inventory file set; the Excel folder is scanned instead"

    verdict = validate_excel_file(matrix.inventory_file)
    if not verdict.is_valid:
        return False, verdict.error
    return True, f"Inventory file: {matrix.inventory_file}"


def check_employee_file_structure(draft: Draft) -> Tuple[bool, str]:
    check = check_step(WizardStep.AUTHENTICATION, draft)
    if not check.is_valid:
        return False, "; ".join(issue.message for issue in check.failures)
    return True, f"Authentication method '{draft.authentication.method}' is configured"


def default_checks() -> List[SystemCheck]:
    """The standard system checks, in run order."""
    return [
        SystemCheck(
            "folder-permissions",
            "Folder Permissions Check",
            "Verify read/write permissions for all configured storage paths.",
            check_folder_permissions,
        ),
        SystemCheck(
            "folder-structure",
            "Required Folder Structure",
            "Check that at least one storage folder is configured.",
            check_folder_structure,
        ),
        SystemCheck(
            "clamping-plate-files",
            "Clamping Plate Info Files",
            "Validate the clamping plate models path and information file.",
            check_clamping_plate_files,
        ),
        SystemCheck(
            "tool-inventory-file",
            "Tool Inventory File",
            "Check the tool inventory file is an Excel workbook.",
            check_tool_inventory_file,
        ),
        SystemCheck(
            "employee-file-structure",
            "Employee File Structure",
            "Verify the fields required by the selected authentication method.",
            check_employee_file_structure,
        ),
    ]


def service_health_checks(client, draft: Draft) -> List[SystemCheck]:
    """One reachability check per enabled backend service.

    Args:
        client: ServiceClient used to probe status endpoints
        draft: Draft deciding which services are enabled

    Returns:
        List of SystemCheck
    """
    checks = []
    for service in draft.enabled_services():
        endpoint = client.endpoint(service)

        def probe(_draft: Draft, service: str = service) -> Tuple[bool, str]:
            return client.check_status(service)

        checks.append(SystemCheck(
            f"{service}-init",
            f"{endpoint.name} - Backend Initialization",
            f"Check that {endpoint.name} is running at {endpoint.base_url}.",
            probe,
        ))
    return checks


class ValidationRunner:
    """Runs system checks sequentially and tracks the outcome."""

    def __init__(
        self,
        draft: Draft,
        checks: Optional[List[SystemCheck]] = None,
        pause: float = DEFAULT_PAUSE,
        sleep: Callable[[float], None] = time.sleep,
        events: Optional[EventSink] = None
    ):
        self.draft = draft
        self.checks = checks if checks is not None else default_checks()
        self.pause = pause
        self.sleep = sleep
        self.events = events or LoggingEventSink()
        self.override_record: Optional[ValidationOverride] = None
        self._has_run = False
        self._running = False

    @property
    def is_complete(self) -> bool:
        return self._has_run and not self._running

    @property
    def has_errors(self) -> bool:
        return any(check.status == ERROR for check in self.checks)

    @property
    def failed_checks(self) -> List[SystemCheck]:
        return [check for check in self.checks if check.status == ERROR]

    def _run_one(self, check: SystemCheck) -> None:
        check.status = RUNNING
        self.events.publish("validation.check_started", f"Running {check.name}", check=check.id)

        try:
            passed, message = check.probe(self.draft)
        except Exception as e:
            self.events.publish(
                "validation.check_crashed",
                f"{check.name} raised {type(e).__name__}",
                level=logging.DEBUG,
                check=check.id,
            )
            passed, message = False, f"Check failed unexpectedly: {e}"

        if passed:
            check.status = SUCCESS
            check.message = message
            self.events.publish("validation.check_passed", f"{check.name}: {message}", check=check.id)
        else:
            check.status = ERROR
            check.error = message or "Check failed"
            self.events.publish(
                "validation.check_failed",
                f"{check.name}: {check.error}",
                level=logging.WARNING,
                check=check.id,
            )

    def run(self) -> List[SystemCheck]:
        """Run every check once, in order.

        Returns:
            The checks with their terminal statuses
        """
        for check in self.checks:
            check.reset()
        self.override_record = None
        self._running = True
        self.events.publish("validation.started", f"Running {len(self.checks)} system checks")

        try:
            for index, check in enumerate(self.checks):
                if index and self.pause > 0:
                    self.sleep(self.pause)
                self._run_one(check)
        finally:
            self._running = False
            self._has_run = True

        failed = len(self.failed_checks)
        self.events.publish(
            "validation.finished",
            f"System checks finished with {failed} error(s)" if failed else "All system checks passed",
            level=logging.WARNING if failed else logging.INFO,
            failed=[check.id for check in self.failed_checks],
        )
        return self.checks

    def available_actions(self) -> List[str]:
        """What the operator may do next."""
        if not self.is_complete:
            return [ACTION_RUN]
        if self.has_errors:
            return [ACTION_RETRY, ACTION_CONTINUE_ANYWAY]
        return [ACTION_PROCEED]

    def override(self) -> ValidationOverride:
        """Continue despite failed checks.

        Raises:
            NavigationError: if there are no failed checks to override
        """
        if not self.is_complete or not self.has_errors:
            raise NavigationError(
                "Nothing to override: system checks have not failed",
                step=int(WizardStep.VALIDATION)
            )

        self.override_record = ValidationOverride(checks=[
            {"id": check.id, "name": check.name, "error": check.error or ""}
            for check in self.failed_checks
        ])
        self.events.publish(
            "validation.overridden",
            f"Continuing with {len(self.failed_checks)} failed check(s)",
            level=logging.WARNING,
            checks=[check.id for check in self.failed_checks],
        )
        return self.override_record
