"""
Introduction Step

Explain what the setup wizard will configure.
"""

from typing import TYPE_CHECKING
from rich.panel import Panel

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


INTRODUCTION_TEXT = """
[bold]Welcome to the CNC Management Dashboard setup![/bold]

The dashboard coordinates three manufacturing support services:

• [cyan]JSON Analyzer[/cyan] scans machining program exports
• [cyan]Matrix Tool Manager[/cyan] tracks the tool inventory
• [cyan]Clamping Plate Manager[/cyan] tracks fixture plates and their models

[bold]This wizard will configure:[/bold]

1. Your company name and logo
2. Which modules you use and where their data lives
3. How operators authenticate
4. Storage folders for logs, backups and output
5. Dashboard preferences
6. A final system check before the services are configured

[dim]Progress is saved after every answer. Press Ctrl+C at any time and
run 'cnc-dashboard setup' again to continue.[/dim]
"""

DEMO_NOTE = """
[yellow]Demo mode:[/yellow] the wizard is pre-filled with sample data from
the BRK test folders. Services will be configured in test mode.
"""


def introduction_step(wizard: "InteractiveWizard") -> bool:
    """Show the setup overview.

    Returns:
        True to continue, False to abort
    """
    text = INTRODUCTION_TEXT
    if wizard.controller.draft.demo_mode:
        text += DEMO_NOTE

    wizard.console.print(Panel(text, border_style="blue", padding=(1, 2)))
    wizard.console.print()

    if wizard.assume_yes:
        return True

    if not wizard.ui.prompt_confirm("Ready to begin?", default=True):
        wizard.ui.print_info("Setup paused. Run 'cnc-dashboard setup' when ready.")
        return False

    return True
