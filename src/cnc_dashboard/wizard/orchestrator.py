"""
CNC Dashboard Completion Orchestrator

Promotes the finished draft to the authoritative configuration, then sends
each enabled backend service its share of the configuration in parallel.
A failing service never stops the others; its failure is returned as a
value and flagged for retry.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cnc_dashboard.wizard.events import EventSink, LoggingEventSink
from cnc_dashboard.wizard.exceptions import CompletionError, PersistenceError
from cnc_dashboard.wizard.models import (
    CLAMPING_PLATE_MANAGER,
    JSON_SCANNER,
    SERVICE_IDS,
    TOOL_MANAGER,
    Draft,
)
from cnc_dashboard.wizard.runner import ValidationOverride
from cnc_dashboard.wizard.services import ServiceClient, ServiceOutcome
from cnc_dashboard.wizard.store import ConfigRepository, RemediationRecord, WizardPersistence


def _or_none(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def build_service_payloads(draft: Draft) -> Dict[str, Dict[str, Any]]:
    """Project the draft onto the payload each enabled service expects.

    Args:
        draft: The finished configuration

    Returns:
        Service id to payload; disabled services are absent
    """
    features = draft.company_features
    modules = draft.modules
    common = {
        "testMode": draft.demo_mode,
        "workingFolder": _or_none(draft.storage.base_path),
    }
    payloads = {}

    if features.json_scanner:
        payloads[JSON_SCANNER] = {
            **common,
            "scanPaths": {"jsonFiles": _or_none(modules.json_analyzer.data_path)},
            "autoRun": True,
        }

    if features.tool_manager:
        matrix = modules.matrix_tools
        json_files = _or_none(matrix.paths.json_input_path)
        if matrix.features.json_scanning:
            # Both modules in auto mode: the analyzer's folder replaces the tool manager's own
            json_files = draft.shared_json_folder() or json_files
            if json_files is None and features.json_scanner:
                json_files = _or_none(modules.json_analyzer.data_path)

        scan_paths = {"jsonFiles": json_files}
        if matrix.features.excel_processing:
            scan_paths["excelFiles"] = _or_none(matrix.paths.excel_input_path)

        payloads[TOOL_MANAGER] = {**common, "scanPaths": scan_paths, "autoRun": True}

    if features.clamping_plate_manager:
        payloads[CLAMPING_PLATE_MANAGER] = {
            **common,
            "platesPath": _or_none(modules.plates_manager.models_path),
            "autoRun": True,
        }

    return payloads


@dataclass
class CompletionResult:
    """Aggregate outcome of completing setup.

    `outcomes` has one entry per attempted service. A missing service id
    means the feature is disabled and nothing was sent.
    """
    configuration: Draft
    outcomes: Dict[str, ServiceOutcome] = field(default_factory=dict)
    override: Optional[ValidationOverride] = None

    @property
    def succeeded(self) -> List[str]:
        return [service for service, outcome in self.outcomes.items() if outcome.success]

    @property
    def failed(self) -> List[str]:
        return [service for service, outcome in self.outcomes.items() if not outcome.success]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "configuration": self.configuration.to_dict(),
            "outcomes": {service: outcome.to_dict() for service, outcome in self.outcomes.items()},
            "overriddenChecks": self.override.checks if self.override else [],
        }


class CompletionOrchestrator:
    """Finishes the wizard and configures the backend services.

    `deadline` bounds the whole dispatch in seconds; services that have not
    answered by then are reported as failed. None waits for every call.
    """

    def __init__(
        self,
        client: ServiceClient,
        repository: ConfigRepository,
        persistence: WizardPersistence,
        events: Optional[EventSink] = None,
        deadline: Optional[float] = None
    ):
        self.client = client
        self.repository = repository
        self.persistence = persistence
        self.events = events or LoggingEventSink()
        self.deadline = deadline

    def _promote(self, draft: Draft) -> Draft:
        if draft.is_configured:
            raise CompletionError(
                "This configuration has already been completed",
                remediation="Run 'cnc-dashboard reset' to start a new setup"
            )

        configuration = draft.mark_configured()
        try:
            self.repository.save(configuration)
        except (OSError, PersistenceError) as e:
            raise CompletionError(
                "Could not save the finished configuration",
                details=str(e)
            ) from e

        try:
            self.persistence.clear()
        except (OSError, PersistenceError) as e:
            # The configuration is saved but the draft would resume; undo the save
            self.repository.delete()
            raise CompletionError(
                "Could not clear the saved wizard progress",
                details=str(e)
            ) from e

        self.events.publish("completion.promoted", "Configuration saved and marked as configured")
        return configuration

    def _settle(self, outcomes: Dict[str, ServiceOutcome], service: str, outcome: ServiceOutcome) -> None:
        outcomes[service] = outcome
        if outcome.success:
            self.events.publish(
                "completion.service_configured",
                f"{service}: {outcome.message}",
                service=service,
            )
        else:
            self.events.publish(
                "completion.service_failed",
                f"{service}: {outcome.message}",
                level=logging.WARNING,
                service=service,
            )

    def _dispatch(self, payloads: Dict[str, Dict[str, Any]]) -> Dict[str, ServiceOutcome]:
        outcomes: Dict[str, ServiceOutcome] = {}
        if not payloads:
            return outcomes

        executor = ThreadPoolExecutor(max_workers=len(payloads))
        try:
            futures = {
                executor.submit(self.client.configure, service, payload): service
                for service, payload in payloads.items()
            }

            try:
                for future in as_completed(futures, timeout=self.deadline):
                    service = futures[future]
                    try:
                        outcome = future.result()
                    except Exception as e:
                        outcome = ServiceOutcome.failure(service, e)
                    self._settle(outcomes, service, outcome)
            except FuturesTimeout:
                for service in futures.values():
                    if service not in outcomes:
                        self._settle(outcomes, service, ServiceOutcome(
                            service=service,
                            success=False,
                            message=f"No response within {self.deadline:g}s",
                        ))
        finally:
            # Calls still running past the deadline finish in the background
            executor.shutdown(wait=False)

        # Report in dispatch order regardless of completion order
        return {service: outcomes[service] for service in SERVICE_IDS if service in outcomes}

    def _record_remediation(
        self,
        outcomes: Dict[str, ServiceOutcome],
        override: Optional[ValidationOverride]
    ) -> None:
        record = RemediationRecord(
            overridden_checks=list(override.checks) if override else [],
            failed_services=[service for service, outcome in outcomes.items() if not outcome.success],
        )
        try:
            self.repository.save_remediation(record)
        except (OSError, PersistenceError) as e:
            self.events.publish(
                "completion.remediation_not_saved",
                f"Could not save follow-up items: {e}",
                level=logging.ERROR,
            )

    def complete(self, draft: Draft, override: Optional[ValidationOverride] = None) -> CompletionResult:
        """Promote the draft and configure every enabled service.

        Args:
            draft: The finished draft
            override: Present when the operator continued past failed checks

        Returns:
            CompletionResult keyed by attempted service

        Raises:
            CompletionError: if the draft cannot be promoted; service
                failures never raise
        """
        configuration = self._promote(draft)

        payloads = build_service_payloads(configuration)
        self.events.publish(
            "completion.dispatching",
            f"Configuring {len(payloads)} backend service(s)",
            services=list(payloads),
        )
        outcomes = self._dispatch(payloads)

        self._record_remediation(outcomes, override)
        result = CompletionResult(configuration=configuration, outcomes=outcomes, override=override)
        self.events.publish(
            "completion.finished",
            f"Setup complete: {len(result.succeeded)} configured, {len(result.failed)} failed",
            level=logging.WARNING if result.failed else logging.INFO,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    def retry(self, services: Optional[List[str]] = None) -> Dict[str, ServiceOutcome]:
        """Re-send the saved configuration to services.

        Args:
            services: Service ids to retry (default: those flagged as failed)

        Returns:
            Outcomes of the retried services

        Raises:
            CompletionError: if setup has not been completed yet
        """
        configuration = self.repository.load()
        if configuration is None or not configuration.is_configured:
            raise CompletionError(
                "Setup has not been completed yet",
                remediation="Run 'cnc-dashboard setup' first"
            )

        record = self.repository.load_remediation()
        targets = services if services is not None else record.failed_services

        payloads = build_service_payloads(configuration)
        skipped = [service for service in targets if service not in payloads]
        for service in skipped:
            self.events.publish(
                "completion.retry_skipped",
                f"{service} is disabled in the configuration",
                level=logging.WARNING,
                service=service,
            )

        outcomes = self._dispatch({s: payloads[s] for s in targets if s in payloads})

        record.failed_services = [
            service for service in record.failed_services
            if not (service in outcomes and outcomes[service].success)
        ]
        for service, outcome in outcomes.items():
            if not outcome.success and service not in record.failed_services:
                record.failed_services.append(service)
        self.repository.save_remediation(record)
        return outcomes
