"""
CNC Dashboard Wizard Validators

Field validation rules for the setup wizard. Every rule is a pure function
returning a Verdict; none of them touch the filesystem.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple


@dataclass(frozen=True)
class Verdict:
    """Result of validating one field or group."""
    is_valid: bool
    error: Optional[str] = None
    warning: Optional[str] = None

    def to_tuple(self) -> tuple:
        """Convert to (is_valid, message) tuple."""
        return (self.is_valid, self.error or self.warning or "")


VALID = Verdict(True)

COMPANY_NAME_MIN = 2
COMPANY_NAME_MAX = 100

PROTECTED_PATHS = [
    "/System",
    "/Library/System",
    "C:\\Windows",
    "C:\\Program Files",
    "C:\\Program Files (x86)",
]

IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp"]
EMPLOYEE_EXTENSIONS = [".csv", ".json"]
PLATE_EXTENSIONS = [".xlsx", ".xls", ".csv"]
EXCEL_EXTENSIONS = [".xlsx", ".xls"]
CAD_EXTENSIONS = [".xt", ".step", ".stp", ".dwg", ".dxf", ".iges", ".igs"]

DATABASE_PATTERNS = [
    re.compile(r"^mongodb://"),
    re.compile(r"^mysql://"),
    re.compile(r"^postgresql://"),
    re.compile(r"^sqlite:"),
    re.compile(r"^Server=.*Database=", re.IGNORECASE),
    re.compile(r"^Data Source=", re.IGNORECASE),
]

LDAP_PATTERN = re.compile(r"^ldaps?://[\w.-]+(?::\d+)?$", re.IGNORECASE)

_EXTENSION_RE = re.compile(r"\.[a-zA-Z0-9]+$")
_INVALID_PATH_CHARS = re.compile(r'[<>:"|?*]')
_DRIVE_PREFIX = re.compile(r"^[a-zA-Z]:")


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _extension(path: str) -> str:
    return os.path.splitext(path.strip())[1].lower()


def validate_company_name(name: Optional[str]) -> Verdict:
    """Validate the organization name.

    Args:
        name: Company name as entered

    Returns:
        Verdict; the trimmed name must be 2-100 characters
    """
    if _is_blank(name):
        return Verdict(False, error="Company name is required")

    length = len(name.strip())
    if length < COMPANY_NAME_MIN:
        return Verdict(False, error=f"Company name must be at least {COMPANY_NAME_MIN} characters")
    if length > COMPANY_NAME_MAX:
        return Verdict(False, error=f"Company name must be at most {COMPANY_NAME_MAX} characters")

    return VALID


def validate_logo(logo: Optional[str]) -> Verdict:
    """Validate that a company logo reference is present.

    Args:
        logo: Logo file path, URL or data reference

    Returns:
        Verdict; a non-image extension only produces a warning
    """
    if _is_blank(logo):
        return Verdict(False, error="Company logo is required")

    if _extension(logo) and not logo.startswith("data:"):
        image = validate_image_file(logo)
        if not image.is_valid:
            return Verdict(True, warning=f"Logo '{logo}' does not look like an image file. {image.error}")

    return VALID


def validate_directory_path(path: Optional[str]) -> Verdict:
    """Validate that a path looks like a usable directory.

    Args:
        path: Directory path

    Returns:
        Verdict; relative paths are valid but carry a warning
    """
    if _is_blank(path):
        return Verdict(False, error="Directory path is required")

    path = path.strip()

    # A trailing extension means the operator picked a file
    if _EXTENSION_RE.search(path):
        return Verdict(False, error="Please select a directory, not a file")

    # The colon of a drive designator is the only one allowed
    if _INVALID_PATH_CHARS.search(_DRIVE_PREFIX.sub("", path, count=1)):
        return Verdict(False, error="Directory path contains invalid characters")

    lowered = path.lower()
    if any(lowered.startswith(protected.lower()) for protected in PROTECTED_PATHS):
        return Verdict(
            False,
            error="Cannot use system or protected directories. Please choose a user directory."
        )

    if not (path.startswith(("/", "\\", "~")) or _DRIVE_PREFIX.match(path)):
        return Verdict(
            True,
            warning="Relative path will be resolved against the dashboard working directory"
        )

    return VALID


def _validate_file(path: Optional[str], label: str, extensions: list, message: str) -> Verdict:
    if _is_blank(path):
        return Verdict(False, error=f"{label} is required")
    if _extension(path) not in extensions:
        return Verdict(False, error=message)
    return VALID


def validate_employee_file(path: Optional[str]) -> Verdict:
    """Validate the employee data file used by file-based authentication."""
    return _validate_file(
        path, "Employee file", EMPLOYEE_EXTENSIONS,
        "Employee file must be CSV or JSON format"
    )


def validate_image_file(path: Optional[str]) -> Verdict:
    """Validate an image file selection."""
    return _validate_file(
        path, "Image file", IMAGE_EXTENSIONS,
        f"Invalid image format. Supported formats: {', '.join(IMAGE_EXTENSIONS)}"
    )


def validate_plate_file(path: Optional[str]) -> Verdict:
    """Validate a clamping plate information file."""
    return _validate_file(
        path, "Plate data file", PLATE_EXTENSIONS,
        "Plate data file must be Excel (.xlsx, .xls) or CSV format"
    )


def validate_excel_file(path: Optional[str]) -> Verdict:
    """Validate an Excel tool matrix file."""
    return _validate_file(
        path, "Excel file", EXCEL_EXTENSIONS,
        "File must be Excel format (.xlsx or .xls)"
    )


def validate_cad_file(path: Optional[str]) -> Verdict:
    """Validate a CAD model file for clamping plates."""
    return _validate_file(
        path, "CAD file", CAD_EXTENSIONS,
        f"Invalid CAD format. Supported: {', '.join(CAD_EXTENSIONS)}"
    )


def validate_database_connection(connection: Optional[str]) -> Verdict:
    """Validate a database connection string.

    Args:
        connection: URI (mongodb://, mysql://, postgresql://, sqlite:) or
            keyword form (Server=...;Database=..., Data Source=...)

    Returns:
        Verdict
    """
    if _is_blank(connection):
        return Verdict(False, error="Database connection string is required")

    if not any(pattern.search(connection) for pattern in DATABASE_PATTERNS):
        return Verdict(False, error="Invalid database connection string format")

    return VALID


def validate_ldap_server(address: Optional[str]) -> Verdict:
    """Validate a directory service address.

    Args:
        address: ldap://host[:port] or ldaps://host[:port]

    Returns:
        Verdict
    """
    if _is_blank(address):
        return Verdict(False, error="LDAP server address is required")

    if not LDAP_PATTERN.match(address):
        return Verdict(False, error="Invalid LDAP server format. Use ldap://server or ldaps://server")

    return VALID


FILE_TYPE_DESCRIPTIONS = {
    "image": "Image files (JPG, PNG, GIF, SVG, etc.)",
    "employee": "Employee data (CSV or JSON format)",
    "plate": "Plate data (Excel or CSV format)",
    "excel": "Excel files (XLSX or XLS format)",
    "cad": "CAD model files (XT, STEP, DWG, etc.)",
    "directory": "Directory/Folder path",
}


def get_file_type_description(kind: str) -> str:
    """Describe the expected input for a field kind."""
    return FILE_TYPE_DESCRIPTIONS.get(kind, "Valid file format")


# Map of field kinds to validators
FIELD_VALIDATORS = {
    "company_name": validate_company_name,
    "logo": validate_logo,
    "directory": validate_directory_path,
    "employee": validate_employee_file,
    "image": validate_image_file,
    "plate": validate_plate_file,
    "excel": validate_excel_file,
    "cad": validate_cad_file,
    "database": validate_database_connection,
    "ldap": validate_ldap_server,
}


def validate_field(kind: str, value: Optional[str]) -> Verdict:
    """Validate a value by field kind.

    Args:
        kind: The kind of field (e.g., 'directory', 'ldap')
        value: The value to check

    Returns:
        Verdict; unknown kinds are always valid
    """
    validator = FIELD_VALIDATORS.get(kind)
    if validator:
        return validator(value)
    return VALID


def prompt_validator(kind: str) -> Callable[[str], Tuple[bool, str]]:
    """Adapt a field rule to the (is_valid, message) form WizardUI prompts expect."""
    return lambda value: validate_field(kind, value).to_tuple()
