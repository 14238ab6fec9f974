"""
CNC Dashboard Configuration Model

The configuration draft edited by the setup wizard, its sections, and the
partial-update type used to change it.
"""

import copy
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, Dict, List, Optional

from cnc_dashboard.wizard.exceptions import DraftFormatError


# Backend service identifiers, in dispatch order
JSON_SCANNER = "jsonScanner"
TOOL_MANAGER = "toolManager"
CLAMPING_PLATE_MANAGER = "clampingPlateManager"
SERVICE_IDS = [JSON_SCANNER, TOOL_MANAGER, CLAMPING_PLATE_MANAGER]

MODULE_MODES = ("auto", "manual")
AUTH_METHODS = ("file", "database", "ldap")
THEME_MODES = ("light", "dark", "system")
AUTO_SCAN_INTERVALS = (15, 30, 60, 120, 240, 480, 720, 1440)


@dataclass
class CompanyFeatures:
    """Which backend modules the organization uses."""
    json_scanner: bool = True
    tool_manager: bool = True
    clamping_plate_manager: bool = True

    def any_enabled(self) -> bool:
        return self.json_scanner or self.tool_manager or self.clamping_plate_manager


@dataclass
class JsonAnalyzerSettings:
    enabled: bool = False
    mode: str = "auto"
    data_path: str = ""
    auto_processing: bool = True


@dataclass
class MatrixFeatures:
    excel_processing: bool = True
    json_scanning: bool = True


@dataclass
class MatrixPaths:
    excel_input_path: str = ""
    json_input_path: str = ""


@dataclass
class MatrixToolsSettings:
    enabled: bool = False
    mode: str = "auto"
    inventory_file: str = ""
    features: MatrixFeatures = field(default_factory=MatrixFeatures)
    paths: MatrixPaths = field(default_factory=MatrixPaths)


@dataclass
class PlatesManagerSettings:
    enabled: bool = False
    mode: str = "auto"
    models_path: str = ""
    plate_info_file: str = ""


@dataclass
class ModuleSettings:
    json_analyzer: JsonAnalyzerSettings = field(default_factory=JsonAnalyzerSettings)
    matrix_tools: MatrixToolsSettings = field(default_factory=MatrixToolsSettings)
    plates_manager: PlatesManagerSettings = field(default_factory=PlatesManagerSettings)


@dataclass
class AuthenticationSettings:
    """Authentication block; only the fields of `method` are read."""
    method: str = "file"
    employee_file: str = ""
    database_connection: str = ""
    ldap_server: str = ""


@dataclass
class StorageSettings:
    base_path: str = ""
    logs_path: str = ""
    backup_path: str = ""
    temp_path: str = ""
    output_path: str = ""

    def configured_paths(self) -> Dict[str, str]:
        """Non-empty paths keyed by field name."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name).strip()}


@dataclass
class NotificationSettings:
    enabled: bool = True
    show_task_completion: bool = True
    show_errors: bool = True
    show_warnings: bool = True
    show_system_updates: bool = False


@dataclass
class AutoScanSettings:
    enabled: bool = False
    interval: int = 60  # minutes
    json_scanner_enabled: bool = True
    tool_manager_enabled: bool = True
    run_on_startup: bool = False


@dataclass
class Preferences:
    theme_mode: str = "system"
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    auto_backup: bool = True
    export_reports: bool = True
    auto_scan: AutoScanSettings = field(default_factory=AutoScanSettings)


# Allowed values for constrained string/int fields, keyed by (class, field)
_CHOICES = {
    (JsonAnalyzerSettings, "mode"): MODULE_MODES,
    (MatrixToolsSettings, "mode"): MODULE_MODES,
    (PlatesManagerSettings, "mode"): MODULE_MODES,
    (AuthenticationSettings, "method"): AUTH_METHODS,
    (Preferences, "theme_mode"): THEME_MODES,
    (AutoScanSettings, "interval"): AUTO_SCAN_INTERVALS,
}

# Keys written by older dashboard versions, read when the current key is absent
_LEGACY_KEYS = {
    (PlatesManagerSettings, "plate_info_file"): "plateDatabase",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _to_dict(obj: Any) -> Dict[str, Any]:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        result[_camel(f.name)] = _to_dict(value) if is_dataclass(value) else value
    return result


def _from_dict(cls, data: Any, path: str):
    if not isinstance(data, dict):
        raise DraftFormatError(f"Expected an object at '{path}'", details=repr(data)[:200])

    kwargs = {}
    for f in fields(cls):
        key = _camel(f.name)
        if key not in data:
            key = _LEGACY_KEYS.get((cls, f.name), key)
        if key not in data:
            continue  # fall back to the field default
        value = data[key]
        where = f"{path}.{key}" if path else key

        if is_dataclass(f.type):
            kwargs[f.name] = _from_dict(f.type, value, where)
            continue

        if value is None and f.type is str:
            value = ""
        if not isinstance(value, f.type) or (f.type is int and isinstance(value, bool)):
            raise DraftFormatError(
                f"Invalid value for '{where}'",
                details=f"expected {f.type.__name__}, got {type(value).__name__}"
            )
        choices = _CHOICES.get((cls, f.name))
        if choices and value not in choices:
            raise DraftFormatError(
                f"Invalid value for '{where}': {value!r}",
                details=f"expected one of {', '.join(str(c) for c in choices)}"
            )
        kwargs[f.name] = value

    return cls(**kwargs)


@dataclass
class Draft:
    """The configuration being built by the setup wizard."""
    company_name: str = ""
    company_logo: str = ""
    company_features: CompanyFeatures = field(default_factory=CompanyFeatures)
    modules: ModuleSettings = field(default_factory=ModuleSettings)
    authentication: AuthenticationSettings = field(default_factory=AuthenticationSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    features: Preferences = field(default_factory=Preferences)
    is_configured: bool = False
    demo_mode: bool = False

    def to_dict(self) -> dict:
        """Serialize using the dashboard's camelCase keys."""
        return _to_dict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Draft":
        """Build a draft from stored JSON; missing keys take their defaults.

        Raises:
            DraftFormatError: if a value has the wrong type or is out of range
        """
        return _from_dict(cls, data, "")

    def enabled_services(self) -> List[str]:
        """Service ids whose feature toggle is on."""
        toggles = {
            JSON_SCANNER: self.company_features.json_scanner,
            TOOL_MANAGER: self.company_features.tool_manager,
            CLAMPING_PLATE_MANAGER: self.company_features.clamping_plate_manager,
        }
        return [service for service in SERVICE_IDS if toggles[service]]

    def shared_json_folder(self) -> Optional[str]:
        """The analyzer folder the tool manager reads JSON from, if shared.

        Both modules enabled and both in auto mode means the tool manager
        scans the analyzer's data folder instead of its own.
        """
        features = self.company_features
        analyzer = self.modules.json_analyzer
        if not (features.json_scanner and features.tool_manager):
            return None
        if analyzer.mode != "auto" or self.modules.matrix_tools.mode != "auto":
            return None
        return analyzer.data_path.strip() or None

    def mark_configured(self) -> "Draft":
        """Copy of this draft promoted to the authoritative configuration."""
        return replace(copy.deepcopy(self), is_configured=True)


@dataclass
class DraftPatch:
    """Partial update of a draft.

    Every non-None field replaces the matching top-level field of the draft.
    Nested sections are replaced whole; callers wanting to change one nested
    value pass a full copy of the section (see `dataclasses.replace`).
    Only completion sets `is_configured`, so it has no patch field.
    """
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    company_features: Optional[CompanyFeatures] = None
    modules: Optional[ModuleSettings] = None
    authentication: Optional[AuthenticationSettings] = None
    storage: Optional[StorageSettings] = None
    features: Optional[Preferences] = None
    demo_mode: Optional[bool] = None

    @classmethod
    def organization(cls, name: Optional[str] = None, logo: Optional[str] = None) -> "DraftPatch":
        return cls(company_name=name, company_logo=logo)

    @classmethod
    def module_selection(
        cls,
        company_features: Optional[CompanyFeatures] = None,
        modules: Optional[ModuleSettings] = None
    ) -> "DraftPatch":
        return cls(company_features=company_features, modules=modules)

    @classmethod
    def auth(cls, authentication: AuthenticationSettings) -> "DraftPatch":
        return cls(authentication=authentication)

    @classmethod
    def storage_paths(cls, storage: StorageSettings) -> "DraftPatch":
        return cls(storage=storage)

    @classmethod
    def preferences(cls, features: Preferences) -> "DraftPatch":
        return cls(features=features)

    def changes(self) -> Dict[str, Any]:
        """The fields this patch sets."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def apply(self, draft: Draft) -> Draft:
        """Return a new draft with this patch applied."""
        return replace(draft, **copy.deepcopy(self.changes()))


def demo_draft() -> Draft:
    """A fully populated draft pointing at the bundled sample data."""
    working = "../BRK_CNC_CORE/test-data/working_data/BRK CNC Management Dashboard"
    json_files = "../BRK_CNC_CORE/test-data/source_data/json_files"
    plates = "../ClampingPlateManager/data/test_source_data"

    return Draft(
        company_name="BRK Manufacturing (Demo)",
        company_logo="assets/demo-logo.png",
        company_features=CompanyFeatures(),
        modules=ModuleSettings(
            json_analyzer=JsonAnalyzerSettings(enabled=True, data_path=json_files),
            matrix_tools=MatrixToolsSettings(
                enabled=True,
                inventory_file="../BRK_CNC_CORE/train-data/matrix_tools/E-Cut készlet.xlsx",
                paths=MatrixPaths(
                    excel_input_path="../BRK_CNC_CORE/train-data/matrix_tools",
                    json_input_path=json_files,
                ),
            ),
            plates_manager=PlatesManagerSettings(
                enabled=True,
                models_path=plates,
                plate_info_file=f"{plates}/Készülékek.xlsx",
            ),
        ),
        authentication=AuthenticationSettings(method="file", employee_file="./test_data/employees.json"),
        storage=StorageSettings(
            base_path=f"{working}/dashboard",
            logs_path=f"{working}/logs",
            backup_path=f"{working}/backups",
            temp_path=f"{working}/temp",
            output_path=f"{working}/output",
        ),
        features=Preferences(
            notifications=NotificationSettings(show_system_updates=True),
            auto_scan=AutoScanSettings(enabled=True),
        ),
        demo_mode=True,
    )
