"""
CNC Dashboard Backend Services

HTTP client for the three backend services that receive the finished
configuration. Every call returns a value; failures never raise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import requests

from cnc_dashboard.wizard.exceptions import NetworkError, ServiceError
from cnc_dashboard.wizard.logging_config import get_logger
from cnc_dashboard.wizard.models import CLAMPING_PLATE_MANAGER, JSON_SCANNER, TOOL_MANAGER

logger = get_logger("services")

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ServiceEndpoint:
    """Where one backend service listens."""
    service: str
    name: str
    base_url: str
    config_path: str = "/api/config"
    status_path: str = "/api/status"

    @property
    def config_url(self) -> str:
        return self.base_url.rstrip("/") + self.config_path

    @property
    def status_url(self) -> str:
        return self.base_url.rstrip("/") + self.status_path


DEFAULT_ENDPOINTS = {
    JSON_SCANNER: ServiceEndpoint(JSON_SCANNER, "JSON Analyzer", "http://localhost:3001"),
    TOOL_MANAGER: ServiceEndpoint(TOOL_MANAGER, "Matrix Tool Manager", "http://localhost:3002"),
    CLAMPING_PLATE_MANAGER: ServiceEndpoint(
        CLAMPING_PLATE_MANAGER, "Clamping Plate Manager", "http://localhost:3003",
        status_path="/api/health"
    ),
}


@dataclass
class ServiceOutcome:
    """Result of configuring one backend service."""
    service: str
    success: bool
    message: str
    config: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            "service": self.service,
            "success": self.success,
            "message": self.message,
            "config": self.config,
            "timestamp": self.timestamp,
        }

    @classmethod
    def failure(cls, service: str, error: Exception) -> "ServiceOutcome":
        """Failed outcome carrying the error's message."""
        message = error.message if hasattr(error, "message") else str(error)
        return cls(service=service, success=False, message=message or type(error).__name__)


def _response_json(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class ServiceClient:
    """Talks to the backend services over HTTP.

    Each call opens its own session, so one client can be used from the
    orchestrator's worker threads.
    """

    def __init__(
        self,
        endpoints: Optional[Dict[str, ServiceEndpoint]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session_factory: Callable[[], requests.Session] = requests.Session
    ):
        """Initialize the client.

        Args:
            endpoints: Service id to endpoint (default: the local ports)
            timeout: Per-request timeout in seconds
            session_factory: Builds the session for one call
        """
        self.endpoints = dict(endpoints or DEFAULT_ENDPOINTS)
        self.timeout = timeout
        self.session_factory = session_factory

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        session = self.session_factory()
        try:
            return getattr(session, method)(url, timeout=self.timeout, **kwargs)
        finally:
            session.close()

    def endpoint(self, service: str) -> ServiceEndpoint:
        try:
            return self.endpoints[service]
        except KeyError:
            raise ServiceError(f"Unknown service '{service}'", service=service) from None

    def _post_config(self, endpoint: ServiceEndpoint, payload: Dict[str, Any]) -> ServiceOutcome:
        try:
            response = self._send("post", endpoint.config_url, json=payload)
        except requests.Timeout as e:
            raise NetworkError(
                f"{endpoint.name} did not respond within {self.timeout:g}s",
                endpoint=endpoint.config_url,
                details=str(e)
            ) from e
        except requests.ConnectionError as e:
            raise NetworkError(
                f"Cannot connect to {endpoint.name} at {endpoint.base_url}",
                endpoint=endpoint.config_url,
                details=str(e)
            ) from e

        body = _response_json(response)
        if not response.ok:
            message = body.get("message") or body.get("error") or response.reason or ""
            raise ServiceError(
                f"{endpoint.name} returned status {response.status_code}"
                + (f": {message}" if message else ""),
                service=endpoint.service
            )
        if not body:
            raise ServiceError(f"{endpoint.name} returned an unreadable response", service=endpoint.service)
        if not body.get("success"):
            raise ServiceError(
                body.get("message") or f"{endpoint.name} rejected the configuration",
                service=endpoint.service
            )

        return ServiceOutcome(
            service=endpoint.service,
            success=True,
            message=body.get("message") or f"{endpoint.name} configured",
            config=body.get("config"),
            timestamp=body.get("timestamp") or datetime.now().isoformat(),
        )

    def configure(self, service: str, payload: Dict[str, Any]) -> ServiceOutcome:
        """Send a configuration payload to one service.

        Args:
            service: Service id (e.g. 'jsonScanner')
            payload: Configuration body

        Returns:
            ServiceOutcome; network errors, timeouts, non-2xx responses and
            `success: false` replies all become failed outcomes
        """
        try:
            endpoint = self.endpoint(service)
            outcome = self._post_config(endpoint, payload)
        except (ServiceError, NetworkError) as e:
            logger.warning("Configuring %s failed: %s", service, e.message)
            return ServiceOutcome.failure(service, e)
        except Exception as e:
            logger.exception("Unexpected error configuring %s", service)
            return ServiceOutcome(service=service, success=False, message=f"Unexpected error: {e}")

        logger.info("Configured %s: %s", service, outcome.message)
        return outcome

    def check_status(self, service: str) -> Tuple[bool, str]:
        """Probe a service's status endpoint.

        Returns:
            Tuple of (reachable, message)
        """
        try:
            endpoint = self.endpoint(service)
        except ServiceError as e:
            return False, e.message

        try:
            response = self._send("get", endpoint.status_url)
        except requests.Timeout:
            return False, f"{endpoint.name} timed out"
        except requests.ConnectionError:
            return False, f"Cannot connect to {endpoint.name} at {endpoint.base_url}"
        except Exception as e:
            return False, f"Status check failed: {str(e)}"

        if response.ok:
            return True, f"{endpoint.name} is running"
        return False, f"{endpoint.name} returned status {response.status_code}"
