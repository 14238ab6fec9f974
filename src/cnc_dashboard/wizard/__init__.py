"""
CNC Dashboard Setup Wizard

Step-by-step configuration of the dashboard and its backend services.
"""

from cnc_dashboard.wizard.controller import WizardController
from cnc_dashboard.wizard.orchestrator import CompletionOrchestrator, CompletionResult
from cnc_dashboard.wizard.runner import ValidationRunner
from cnc_dashboard.wizard.ui import WizardUI

__all__ = [
    "WizardController",
    "CompletionOrchestrator",
    "CompletionResult",
    "ValidationRunner",
    "WizardUI",
]
