"""
CNC Dashboard Wizard Exceptions

Custom exception types carrying remediation hints for the operator.
"""

from typing import Optional, List


class DashboardError(Exception):
    """Base exception for all dashboard setup errors."""

    def __init__(
        self,
        message: str,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            remediation: Suggested fix for the operator
            details: Technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.remediation = remediation
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.remediation:
            parts.append(f"To fix: {self.remediation}")
        return "\n".join(parts)


class ConfigError(DashboardError):
    """Settings errors (settings.yaml, environment variables)."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.config_key = config_key
        if not remediation and config_key:
            remediation = f"Check '{config_key}' in settings.yaml or your environment"
        super().__init__(message, remediation, details)


class PersistenceError(DashboardError):
    """Unreadable or corrupt wizard state."""

    def __init__(
        self,
        message: str,
        slot: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.slot = slot
        if not remediation:
            remediation = "Run 'cnc-dashboard reset' to discard the saved wizard progress"
        super().__init__(message, remediation, details)


class DraftFormatError(PersistenceError):
    """A stored draft does not match the configuration schema."""


class NavigationError(DashboardError):
    """Illegal wizard transition (e.g. completing before validation ran)."""

    def __init__(
        self,
        message: str,
        step: Optional[int] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.step = step
        super().__init__(message, remediation, details)


class ServiceError(DashboardError):
    """A backend service rejected its configuration."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.service = service
        if not remediation and service:
            remediation = f"Check the {service} backend logs, then run: cnc-dashboard retry {service}"
        super().__init__(message, remediation, details)


class NetworkError(DashboardError):
    """Network-related errors (timeouts, refused connections)."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.endpoint = endpoint
        if not remediation:
            remediation = "Make sure the backend service is running and reachable, then retry."
        super().__init__(message, remediation, details)


class CompletionError(DashboardError):
    """The finished draft could not be promoted to the authoritative configuration."""

    def __init__(
        self,
        message: str,
        failed_services: Optional[List[str]] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.failed_services = failed_services or []
        if not remediation:
            remediation = "Your progress is still saved. Fix the storage problem and run 'cnc-dashboard setup' again."
        super().__init__(message, remediation, details)


# Error code mapping for CLI exit codes
ERROR_CODES = {
    ConfigError: 10,
    DraftFormatError: 12,
    PersistenceError: 12,
    NavigationError: 13,
    ServiceError: 14,
    NetworkError: 15,
    CompletionError: 16,
    DashboardError: 1,
}


def get_error_code(error: Exception) -> int:
    """Get the exit code for an error type."""
    for error_type, code in ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1
