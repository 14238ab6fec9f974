"""
CNC Dashboard Wizard Steps

Interactive handlers for each wizard step.
"""

from cnc_dashboard.wizard.gate import WizardStep
from cnc_dashboard.wizard.steps.introduction import introduction_step
from cnc_dashboard.wizard.steps.organization import organization_step
from cnc_dashboard.wizard.steps.modules import modules_step
from cnc_dashboard.wizard.steps.authentication import authentication_step
from cnc_dashboard.wizard.steps.storage import storage_step
from cnc_dashboard.wizard.steps.preferences import preferences_step
from cnc_dashboard.wizard.steps.validation import validation_step

# Step handlers, indexed by WizardStep
WIZARD_STEPS = [
    {
        "step": WizardStep.INTRODUCTION,
        "name": "introduction",
        "handler": introduction_step,
    },
    {
        "step": WizardStep.ORGANIZATION,
        "name": "organization",
        "handler": organization_step,
    },
    {
        "step": WizardStep.MODULES,
        "name": "modules",
        "handler": modules_step,
    },
    {
        "step": WizardStep.AUTHENTICATION,
        "name": "authentication",
        "handler": authentication_step,
    },
    {
        "step": WizardStep.STORAGE,
        "name": "storage",
        "handler": storage_step,
    },
    {
        "step": WizardStep.PREFERENCES,
        "name": "preferences",
        "handler": preferences_step,
    },
    {
        "step": WizardStep.VALIDATION,
        "name": "validation",
        "handler": validation_step,
    },
]

__all__ = [
    "introduction_step",
    "organization_step",
    "modules_step",
    "authentication_step",
    "storage_step",
    "preferences_step",
    "validation_step",
    "WIZARD_STEPS",
]
