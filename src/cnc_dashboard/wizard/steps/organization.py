"""
Organization Step

Collect the company name and logo.
"""

from typing import TYPE_CHECKING

from cnc_dashboard.wizard.models import DraftPatch
from cnc_dashboard.wizard.validators import prompt_validator

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


def organization_step(wizard: "InteractiveWizard") -> bool:
    """Collect organization identity.

    Returns:
        True to continue, False to abort
    """
    draft = wizard.controller.draft

    name = wizard.ui.prompt_text(
        "Company name",
        default=draft.company_name,
        required=True,
        validator=prompt_validator("company_name")
    )

    wizard.console.print("[dim]Path or URL of the logo shown in the dashboard header.[/dim]")
    logo = wizard.ui.prompt_text(
        "Company logo",
        default=draft.company_logo,
        required=True,
        validator=prompt_validator("logo")
    )

    wizard.controller.update(DraftPatch.organization(name=name, logo=logo))
    return True
