"""
CNC Dashboard Settings

Runtime settings for the setup tool, resolved from (lowest first):
built-in defaults, `<state_dir>/settings.yaml`, a `.env` file, and
environment variables.

Usage:
    from cnc_dashboard.settings import load_settings

    settings = load_settings()
    client = ServiceClient(settings.endpoints(), timeout=settings.service_timeout)
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from cnc_dashboard.wizard.exceptions import ConfigError
from cnc_dashboard.wizard.logging_config import get_log_path, get_logger
from cnc_dashboard.wizard.models import CLAMPING_PLATE_MANAGER, JSON_SCANNER, SERVICE_IDS, TOOL_MANAGER
from cnc_dashboard.wizard.services import DEFAULT_ENDPOINTS, DEFAULT_TIMEOUT, ServiceEndpoint
from cnc_dashboard.wizard.runner import DEFAULT_PAUSE
from cnc_dashboard.wizard.store import DEFAULT_NAMESPACE

logger = get_logger("settings")

DEFAULT_STATE_DIR = Path.home() / ".cnc-dashboard"
SETTINGS_FILE = "settings.yaml"
STATE_FILE = "state.json"

# Environment variable -> service id
SERVICE_URL_VARS = {
    "CNC_JSON_SCANNER_URL": JSON_SCANNER,
    "CNC_TOOL_MANAGER_URL": TOOL_MANAGER,
    "CNC_PLATES_MANAGER_URL": CLAMPING_PLATE_MANAGER,
}

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass
class DashboardSettings:
    """Resolved settings."""
    state_dir: Path = DEFAULT_STATE_DIR
    debug: bool = False
    service_timeout: float = DEFAULT_TIMEOUT
    validation_pause: float = DEFAULT_PAUSE
    namespace: str = DEFAULT_NAMESPACE
    service_urls: Dict[str, str] = field(
        default_factory=lambda: {service: DEFAULT_ENDPOINTS[service].base_url for service in SERVICE_IDS}
    )

    @property
    def settings_file(self) -> Path:
        return self.state_dir / SETTINGS_FILE

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILE

    @property
    def log_file(self) -> Path:
        return get_log_path(self.state_dir)

    @property
    def dispatch_deadline(self) -> float:
        """Total wait for all services: one timeout to connect plus one to answer."""
        return 2 * self.service_timeout

    def endpoints(self) -> Dict[str, ServiceEndpoint]:
        """Service endpoints with configured base URLs."""
        return {
            service: replace(DEFAULT_ENDPOINTS[service], base_url=self.service_urls[service])
            for service in SERVICE_IDS
        }


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r}", config_key=key)


def _parse_seconds(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid number of seconds for {key}: {value!r}", config_key=key)
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid number of seconds for {key}: {value!r}", config_key=key) from None
    if seconds < 0:
        raise ConfigError(f"{key} must not be negative, got {seconds:g}", config_key=key)
    return seconds


def _parse_url(value: Any, key: str) -> str:
    url = str(value).strip()
    if not url.startswith(("http://", "https://")):
        raise ConfigError(
            f"Invalid service URL for {key}: {value!r}",
            config_key=key,
            remediation=f"Set {key} to an http:// or https:// URL, e.g. http://localhost:3001"
        )
    return url.rstrip("/")


def read_settings_file(path: Path) -> Dict[str, Any]:
    """Read settings.yaml.

    Returns:
        Parsed mapping, empty if the file does not exist

    Raises:
        ConfigError: if the file is unreadable or not a mapping
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", config_key=str(path), details=str(e)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", config_key=str(path), details=str(e)) from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings", config_key=str(path))
    logger.debug("Loaded settings from %s", path)
    return data


def _apply_file(settings: DashboardSettings, data: Dict[str, Any]) -> DashboardSettings:
    if "debug" in data:
        settings.debug = _parse_bool(data["debug"], "debug")
    if "service_timeout" in data:
        settings.service_timeout = _parse_seconds(data["service_timeout"], "service_timeout")
    if "validation_pause" in data:
        settings.validation_pause = _parse_seconds(data["validation_pause"], "validation_pause")
    if "namespace" in data:
        settings.namespace = str(data["namespace"])

    services = data.get("services") or {}
    if not isinstance(services, dict):
        raise ConfigError("'services' must map service ids to URLs", config_key="services")
    for service, url in services.items():
        if service not in SERVICE_IDS:
            raise ConfigError(
                f"Unknown service '{service}' in settings",
                config_key=f"services.{service}",
                remediation=f"Use one of: {', '.join(SERVICE_IDS)}"
            )
        settings.service_urls[service] = _parse_url(url, f"services.{service}")
    return settings


def _apply_environment(settings: DashboardSettings, environ: Mapping[str, str]) -> DashboardSettings:
    if "CNC_DASHBOARD_DEBUG" in environ:
        settings.debug = _parse_bool(environ["CNC_DASHBOARD_DEBUG"], "CNC_DASHBOARD_DEBUG")
    if "CNC_SERVICE_TIMEOUT" in environ:
        settings.service_timeout = _parse_seconds(environ["CNC_SERVICE_TIMEOUT"], "CNC_SERVICE_TIMEOUT")
    if "CNC_VALIDATION_PAUSE" in environ:
        settings.validation_pause = _parse_seconds(environ["CNC_VALIDATION_PAUSE"], "CNC_VALIDATION_PAUSE")
    for var, service in SERVICE_URL_VARS.items():
        if environ.get(var):
            settings.service_urls[service] = _parse_url(environ[var], var)
    return settings


def load_settings(
    state_dir: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    load_env_file: bool = True
) -> DashboardSettings:
    """Resolve settings.

    Args:
        state_dir: Override for the state directory (else CNC_DASHBOARD_HOME,
            else ~/.cnc-dashboard)
        environ: Environment to read (default: os.environ)
        load_env_file: Load `.env` from the state directory and the working
            directory into os.environ first

    Returns:
        DashboardSettings

    Raises:
        ConfigError: if a setting has an invalid value
    """
    if load_env_file:
        if state_dir is not None:
            load_dotenv(Path(state_dir) / ".env")
        load_dotenv(Path.cwd() / ".env")

    environ = os.environ if environ is None else environ

    if state_dir is None:
        home = environ.get("CNC_DASHBOARD_HOME")
        state_dir = Path(home).expanduser() if home else DEFAULT_STATE_DIR
        if load_env_file:
            load_dotenv(state_dir / ".env")

    settings = DashboardSettings(state_dir=Path(state_dir))
    settings = _apply_file(settings, read_settings_file(settings.settings_file))
    settings = _apply_environment(settings, environ)
    return settings
