"""
CNC Dashboard Wizard UI Components

Reusable terminal components for the setup wizard using the rich library.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table


# Key names that indicate a secret value
SECRET_PATTERNS = [
    "password", "pwd", "secret", "token", "credential",
    "api_key", "apikey", "bearer",
]

# Regex patterns for common secret formats
SECRET_REGEXES = [
    # user:password@host inside connection URIs
    (re.compile(r"(\b[a-z][a-z0-9+.-]*://[^:/@\s]+:)([^@\s]+)(@)", re.IGNORECASE), r"\1{mask}\3"),
]

# Answer that clears a saved optional value (an empty answer keeps it)
CLEAR_ANSWER = "-"

STATUS_ICONS = {
    "pending": "[dim]○[/dim]",
    "running": "[yellow]▶[/yellow]",
    "success": "[green]✓[/green]",
    "error": "[red]✗[/red]",
}


def mask_secrets(text: str, mask: str = "********") -> str:
    """Mask secrets in a string.

    Args:
        text: The text that may contain secrets
        mask: The string to replace secrets with

    Returns:
        Text with secrets masked
    """
    if not text:
        return text

    result = text

    # key=value and key: value forms, including Password=...; in connection strings
    for pattern in SECRET_PATTERNS:
        regex = rf'({pattern}["\']?\s*[=:]\s*["\']?)([^"\'\s;]+)(["\']?)'
        result = re.sub(regex, rf'\1{mask}\3', result, flags=re.IGNORECASE)

    for regex, replacement in SECRET_REGEXES:
        result = regex.sub(replacement.format(mask=mask), result)

    return result


def is_secret_key(key: str) -> bool:
    """Check if a key name indicates it holds a secret value."""
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in SECRET_PATTERNS)


class WizardUI:
    """UI components for the CNC dashboard setup wizard."""

    def __init__(self, console: Optional[Console] = None, total_steps: int = 7):
        self.console = console or Console()
        self._total_steps = total_steps

    def print_header(self, title: str = "CNC Dashboard Setup"):
        """Print the wizard header."""
        self.console.print()
        self.console.print(Panel(
            f"[bold blue]{title}[/bold blue]",
            border_style="blue",
            padding=(0, 2)
        ))
        self.console.print()

    def print_step_header(self, step_num: int, title: str, description: str = ""):
        """Print a step header with number and title."""
        self.console.print()
        self.console.print(
            f"[bold cyan]Step {step_num + 1}/{self._total_steps}:[/bold cyan] [bold]{title}[/bold]"
        )
        if description:
            self.console.print(f"[dim]{description}[/dim]")
        self.console.print()

    def print_success(self, message: str):
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str):
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str):
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str):
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def prompt_text(
        self,
        prompt: str,
        default: str = "",
        required: bool = False,
        validator: Optional[Callable[[str], Tuple[bool, str]]] = None,
        allow_clear: bool = False
    ) -> str:
        """Prompt for text input.

        Args:
            prompt: Question shown to the operator
            default: Pre-filled answer
            required: Reject empty answers
            validator: Returns (is_valid, message); invalid answers are asked again
            allow_clear: Answering CLEAR_ANSWER returns "" instead of the default

        Returns:
            The entered text
        """
        if allow_clear and default and not required:
            prompt = f"{prompt} [dim]('{CLEAR_ANSWER}' to clear)[/dim]"

        while True:
            value = Prompt.ask(prompt, default=default if default else None, console=self.console)
            value = (value or "").strip()

            if allow_clear and not required and value == CLEAR_ANSWER:
                return ""

            if required and not value:
                self.print_error("This field is required")
                continue

            if validator and value:
                is_valid, message = validator(value)
                if not is_valid:
                    self.print_error(message)
                    continue
                if message:
                    self.print_warning(message)

            return value

    def prompt_password(self, prompt: str, required: bool = False) -> str:
        """Prompt for secret input such as a connection string."""
        while True:
            value = Prompt.ask(prompt, password=True, console=self.console)

            if required and not value:
                self.print_error("This field is required")
                continue

            return value

    def prompt_confirm(self, prompt: str, default: bool = False) -> bool:
        """Prompt for yes/no confirmation."""
        return Confirm.ask(prompt, default=default, console=self.console)

    def prompt_choice(
        self,
        prompt: str,
        choices: List[str],
        default: Optional[str] = None
    ) -> str:
        """Prompt for a choice from a list."""
        self.console.print(f"\n{prompt}")
        for i, choice in enumerate(choices, 1):
            marker = "[bold green]→[/bold green]" if choice == default else " "
            self.console.print(f"  {marker} [{i}] {choice}")

        while True:
            selection = Prompt.ask(
                "Enter number or name",
                default=str(choices.index(default) + 1) if default in choices else None,
                console=self.console
            )
            selection = (selection or "").strip()

            try:
                idx = int(selection) - 1
                if 0 <= idx < len(choices):
                    return choices[idx]
            except ValueError:
                pass

            for choice in choices:
                if choice.lower() == selection.lower():
                    return choice

            self.print_error(f"Invalid selection. Choose 1-{len(choices)}")

    def show_progress(self, description: str, task_func: Callable[[], Any]) -> Any:
        """Show a spinner while executing a task."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=self.console
        ) as progress:
            progress.add_task(description, total=None)
            return task_func()

    def show_system_checks(self, checks: List[Any]):
        """Render validation checks (anything with name/status/error/description)."""
        table = Table(show_header=False, box=None)
        table.add_column("Status", width=3)
        table.add_column("Check")
        table.add_column("Message", style="dim")

        for check in checks:
            icon = STATUS_ICONS.get(check.status, "?")
            name = f"[bold]{check.name}[/bold]" if check.status == "running" else check.name
            message = check.error if check.status == "error" else check.description
            table.add_row(icon, name, message or "")

        self.console.print(table)

    def show_service_outcomes(self, outcomes: Dict[str, Any], names: Optional[Dict[str, str]] = None):
        """Render per-service configuration outcomes."""
        names = names or {}
        table = Table(title="Backend services", border_style="blue")
        table.add_column("Service", style="cyan")
        table.add_column("Result")
        table.add_column("Message", style="white")

        for service, outcome in outcomes.items():
            result = "[green]configured[/green]" if outcome.success else "[red]failed[/red]"
            table.add_row(names.get(service, service), result, mask_secrets(outcome.message))

        self.console.print(table)

    def show_summary_table(self, title: str, data: Dict[str, str]):
        """Show a summary table with secrets masked."""
        table = Table(title=title, border_style="blue")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        for key, value in data.items():
            if is_secret_key(key):
                display_value = "********" if value else "[dim]not set[/dim]"
            else:
                display_value = mask_secrets(value) if value else "[dim]not set[/dim]"
            table.add_row(key, display_value)

        self.console.print(table)

    def show_completion_panel(
        self,
        title: str,
        content: str,
        next_steps: List[str],
        success: bool = True
    ):
        """Show a completion panel with next steps."""
        color = "green" if success else "yellow"
        self.console.print()
        self.console.print(Panel(
            f"[bold {color}]{title}[/bold {color}]\n\n{content}",
            border_style=color,
            padding=(1, 2)
        ))

        if next_steps:
            self.console.print()
            self.console.print("[bold]Next Steps:[/bold]")
            for i, step in enumerate(next_steps, 1):
                self.console.print(f"  {i}. {step}")
