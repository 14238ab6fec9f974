"""Tests for CNC dashboard exceptions."""

import pytest


class TestDashboardError:
    """Test the base error."""

    def test_str_includes_remediation(self):
        """Test message, details and fix are all shown."""
        from cnc_dashboard.wizard.exceptions import DashboardError

        error = DashboardError("Something broke", remediation="Try again", details="errno 5")
        text = str(error)
        assert "Something broke" in text
        assert "Details: errno 5" in text
        assert "To fix: Try again" in text

    def test_plain_message(self):
        """Test an error without extras prints only the message."""
        from cnc_dashboard.wizard.exceptions import DashboardError

        assert str(DashboardError("Plain")) == "Plain"


class TestSubclasses:
    """Test specialised errors."""

    def test_config_error_remediation(self):
        """Test config errors point at the setting."""
        from cnc_dashboard.wizard.exceptions import ConfigError

        error = ConfigError("Bad timeout", config_key="CNC_SERVICE_TIMEOUT")
        assert "CNC_SERVICE_TIMEOUT" in error.remediation

    def test_persistence_error_suggests_reset(self):
        """Test persistence errors suggest a reset."""
        from cnc_dashboard.wizard.exceptions import DraftFormatError, PersistenceError

        error = DraftFormatError("Corrupt draft")
        assert isinstance(error, PersistenceError)
        assert "cnc-dashboard reset" in error.remediation

    def test_service_error_suggests_retry(self):
        """Test service errors suggest a retry of that service."""
        from cnc_dashboard.wizard.exceptions import ServiceError

        error = ServiceError("Rejected", service="toolManager")
        assert "cnc-dashboard retry toolManager" in error.remediation

    def test_completion_error(self):
        """Test completion errors keep the failed services."""
        from cnc_dashboard.wizard.exceptions import CompletionError

        error = CompletionError("Could not save", failed_services=["jsonScanner"])
        assert error.failed_services == ["jsonScanner"]
        assert error.remediation


class TestErrorCodes:
    """Test CLI exit codes."""

    @pytest.mark.parametrize("name,code", [
        ("ConfigError", 10),
        ("DraftFormatError", 12),
        ("PersistenceError", 12),
        ("NavigationError", 13),
        ("ServiceError", 14),
        ("NetworkError", 15),
        ("CompletionError", 16),
        ("DashboardError", 1),
    ])
    def test_codes(self, name, code):
        """Test each error maps to its exit code."""
        from cnc_dashboard.wizard import exceptions

        error = getattr(exceptions, name)("message")
        assert exceptions.get_error_code(error) == code

    def test_unknown_exception(self):
        """Test other exceptions map to 1."""
        from cnc_dashboard.wizard.exceptions import get_error_code

        assert get_error_code(RuntimeError("x")) == 1
