"""
Authentication Step

Choose how operators sign in to the dashboard.
"""

from dataclasses import replace
from typing import TYPE_CHECKING

from cnc_dashboard.wizard.models import AUTH_METHODS, DraftPatch
from cnc_dashboard.wizard.validators import (
    get_file_type_description,
    prompt_validator,
    validate_database_connection,
)

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


METHOD_LABELS = {
    "file": "Employee file (CSV or JSON)",
    "database": "Database",
    "ldap": "LDAP directory",
}


def authentication_step(wizard: "InteractiveWizard") -> bool:
    """Collect the authentication method and its settings.

    Only the fields of the chosen method are asked for; values entered
    earlier for other methods are kept but ignored.

    Returns:
        True to continue, False to abort
    """
    ui = wizard.ui
    auth = wizard.controller.draft.authentication

    labels = [METHOD_LABELS[method] for method in AUTH_METHODS]
    label = ui.prompt_choice("How should operators authenticate?", labels,
                             default=METHOD_LABELS.get(auth.method))
    method = AUTH_METHODS[labels.index(label)]

    if method == "file":
        wizard.console.print(f"[dim]{get_file_type_description('employee')}[/dim]")
        auth = replace(auth, method=method, employee_file=ui.prompt_text(
            "Employee file",
            default=auth.employee_file,
            required=True,
            validator=prompt_validator("employee")
        ))
    elif method == "ldap":
        auth = replace(auth, method=method, ldap_server=ui.prompt_text(
            "LDAP server (ldap://host[:port])",
            default=auth.ldap_server,
            required=True,
            validator=prompt_validator("ldap")
        ))
    else:
        if auth.database_connection:
            ui.print_info("A connection string is already saved; leave empty to keep it.")
        connection = ui.prompt_password("Database connection string",
                                        required=not auth.database_connection)
        connection = connection or auth.database_connection
        is_valid, message = validate_database_connection(connection).to_tuple()
        if not is_valid:
            ui.print_error(message)
        auth = replace(auth, method=method, database_connection=connection)

    wizard.controller.update(DraftPatch.auth(auth))
    return True
