"""Shared fixtures for CNC dashboard tests."""

import pytest

from cnc_dashboard.wizard.events import EventLog
from cnc_dashboard.wizard.models import (
    AuthenticationSettings,
    Draft,
    JsonAnalyzerSettings,
    MatrixPaths,
    MatrixToolsSettings,
    ModuleSettings,
    PlatesManagerSettings,
    StorageSettings,
)
from cnc_dashboard.wizard.services import DEFAULT_ENDPOINTS, ServiceOutcome
from cnc_dashboard.wizard.store import MemoryBackend, SlotPersistence


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def persistence(backend):
    return SlotPersistence(backend)


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def valid_draft():
    """A draft that passes every step gate and every system check."""
    return Draft(
        company_name="Acme Machining",
        company_logo="assets/acme.png",
        modules=ModuleSettings(
            json_analyzer=JsonAnalyzerSettings(enabled=True, data_path="/srv/cnc/json"),
            matrix_tools=MatrixToolsSettings(
                enabled=True,
                paths=MatrixPaths(excel_input_path="/srv/cnc/excel", json_input_path=""),
            ),
            plates_manager=PlatesManagerSettings(
                enabled=True,
                models_path="/srv/cnc/plates",
                plate_info_file="/srv/cnc/plates/info.xlsx",
            ),
        ),
        authentication=AuthenticationSettings(method="file", employee_file="/srv/cnc/employees.csv"),
        storage=StorageSettings(base_path="/srv/cnc/dashboard", logs_path="/srv/cnc/logs"),
    )


class FakeServiceClient:
    """Stand-in for ServiceClient that records calls."""

    def __init__(self, failing=(), status=None):
        self.endpoints = dict(DEFAULT_ENDPOINTS)
        self.failing = set(failing)
        self.status = status or {}
        self.calls = []

    def endpoint(self, service):
        return self.endpoints[service]

    def configure(self, service, payload):
        self.calls.append((service, payload))
        if service in self.failing:
            return ServiceOutcome(service=service, success=False, message=f"{service} unreachable")
        return ServiceOutcome(service=service, success=True, message=f"{service} configured")

    def check_status(self, service):
        return self.status.get(service, (True, f"{service} is running"))


@pytest.fixture
def fake_client():
    return FakeServiceClient()


@pytest.fixture
def client_factory():
    return FakeServiceClient
