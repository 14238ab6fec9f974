"""
Storage Step

Collect the dashboard's storage folders.
"""

from dataclasses import fields, replace
from typing import TYPE_CHECKING

from cnc_dashboard.wizard.models import DraftPatch
from cnc_dashboard.wizard.ui import CLEAR_ANSWER
from cnc_dashboard.wizard.validators import prompt_validator

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


PATH_PROMPTS = {
    "base_path": "Base folder (working folder for all services)",
    "logs_path": "Logs folder",
    "backup_path": "Backup folder",
    "temp_path": "Temporary files folder",
    "output_path": "Output folder",
}


def storage_step(wizard: "InteractiveWizard") -> bool:
    """Collect storage paths. Every path is optional.

    Returns:
        True to continue, False to abort
    """
    storage = wizard.controller.draft.storage

    wizard.console.print(
        f"[dim]Leave a new folder empty, or answer '{CLEAR_ANSWER}' to clear a saved one, "
        "to use the service defaults.[/dim]"
    )
    wizard.console.print()

    values = {}
    for f in fields(storage):
        values[f.name] = wizard.ui.prompt_text(
            PATH_PROMPTS[f.name],
            default=getattr(storage, f.name),
            validator=prompt_validator("directory"),
            allow_clear=True
        )

    wizard.controller.update(DraftPatch.storage_paths(replace(storage, **values)))
    return True
