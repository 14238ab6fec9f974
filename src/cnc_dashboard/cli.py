"""
CNC Dashboard Command Line Interface

Main entry point for the cnc-dashboard CLI.
"""

import sys
from typing import Optional, Tuple

import click
from rich.console import Console

from cnc_dashboard.wizard.models import SERVICE_IDS

console = Console()


def _fail(error) -> None:
    """Print a DashboardError and exit with its code."""
    from cnc_dashboard.wizard.exceptions import get_error_code

    console.print(f"[red]Error:[/red] {error.message}")
    if error.details:
        console.print(f"[dim]{error.details}[/dim]")
    if error.remediation:
        console.print(f"[yellow]To fix:[/yellow] {error.remediation}")
    sys.exit(get_error_code(error))


def _load_settings():
    from cnc_dashboard.settings import load_settings
    from cnc_dashboard.wizard.exceptions import ConfigError
    from cnc_dashboard.wizard.logging_config import setup_logging

    try:
        settings = load_settings()
    except ConfigError as e:
        _fail(e)

    # Console output comes from the UI; the log file gets everything
    setup_logging(log_file=settings.log_file, quiet=not settings.debug, debug=settings.debug)
    return settings


def _open_state(settings):
    from cnc_dashboard.wizard.store import ConfigRepository, JsonFileBackend, SlotPersistence

    backend = JsonFileBackend(settings.state_file)
    return (
        ConfigRepository(backend, settings.namespace),
        SlotPersistence(backend, settings.namespace),
    )


def _unreadable_state(settings, error: OSError):
    from cnc_dashboard.wizard.exceptions import PersistenceError

    return PersistenceError(
        f"Cannot read the state file {settings.state_file}",
        slot=str(settings.state_file),
        remediation="Check that the state file is a readable file, or set CNC_DASHBOARD_HOME",
        details=str(error)
    )


def _service_names(settings) -> dict:
    return {service: endpoint.name for service, endpoint in settings.endpoints().items()}


@click.group()
@click.version_option(package_name="cnc-dashboard")
def main():
    """CNC Dashboard: setup wizard and backend service configuration"""
    pass


@main.command()
@click.option("--demo", is_flag=True, help="Start from the demo configuration (test mode)")
@click.option("--check-services", is_flag=True, help="Also check that the backend services are running")
@click.option("--yes", "-y", is_flag=True, help="Accept saved answers without prompting")
def setup(demo: bool, check_services: bool, yes: bool):
    """Run the setup wizard.

    Progress is saved after every answer, so an interrupted setup
    continues where it stopped.

    Examples:
        cnc-dashboard setup                  # Guided setup
        cnc-dashboard setup --demo           # Pre-filled with sample data
        cnc-dashboard setup --demo --yes     # Demo setup without prompts
    """
    from cnc_dashboard.wizard.controller import WizardController
    from cnc_dashboard.wizard.events import LoggingEventSink
    from cnc_dashboard.wizard.exceptions import DashboardError
    from cnc_dashboard.wizard.interactive import InteractiveWizard
    from cnc_dashboard.wizard.orchestrator import CompletionOrchestrator
    from cnc_dashboard.wizard.runner import ValidationRunner, default_checks, service_health_checks
    from cnc_dashboard.wizard.services import ServiceClient
    from cnc_dashboard.wizard.ui import WizardUI

    settings = _load_settings()
    repository, persistence = _open_state(settings)
    ui = WizardUI(console)

    try:
        if repository.is_configured():
            ui.print_info("The dashboard is already configured.")
            console.print("Run 'cnc-dashboard status' to see it, or 'cnc-dashboard reset --all' to start over.")
            sys.exit(0)

        events = LoggingEventSink()
        client = ServiceClient(settings.endpoints(), timeout=settings.service_timeout)

        def make_runner(draft):
            checks = default_checks()
            if check_services:
                checks += service_health_checks(client, draft)
            return ValidationRunner(draft, checks=checks, pause=settings.validation_pause, events=events)

        wizard = InteractiveWizard(
            controller=WizardController(persistence, events=events, demo=demo),
            orchestrator=CompletionOrchestrator(
                client, repository, persistence, events=events, deadline=settings.dispatch_deadline
            ),
            runner_factory=make_runner,
            console=console,
            assume_yes=yes,
        )
        result = wizard.run()
    except DashboardError as e:
        _fail(e)
    except OSError as e:
        _fail(_unreadable_state(settings, e))

    if result is None:
        sys.exit(1)

    if result.outcomes:
        ui.show_service_outcomes(result.outcomes, _service_names(settings))
    else:
        ui.print_warning("No backend modules are enabled; nothing was sent.")

    next_steps = ["Start the dashboard; it will open with the saved configuration"]
    if result.failed:
        next_steps.insert(0, f"Start the failed services, then run: cnc-dashboard retry {' '.join(result.failed)}")
    if result.override:
        next_steps.append("Fix the overridden system checks listed by 'cnc-dashboard status'")

    ui.show_completion_panel(
        "Setup complete!" if result.all_succeeded else "Setup complete with warnings",
        f"Configuration saved to {settings.state_file}\n"
        f"{len(result.succeeded)} service(s) configured, {len(result.failed)} failed.",
        next_steps,
        success=result.all_succeeded and result.override is None,
    )


@main.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def status(json_output: bool):
    """Show configuration status and follow-up items."""
    import json

    from cnc_dashboard.wizard.exceptions import PersistenceError
    from cnc_dashboard.wizard.gate import WizardStep
    from cnc_dashboard.wizard.ui import WizardUI

    settings = _load_settings()
    repository, persistence = _open_state(settings)

    try:
        configuration = repository.load()
        metadata = repository.metadata()
        remediation = repository.load_remediation()
    except PersistenceError as e:
        _fail(e)
    except OSError as e:
        _fail(_unreadable_state(settings, e))

    try:
        snapshot = persistence.load()
        progress_error = None
    except PersistenceError as e:
        snapshot = None
        progress_error = e.message
    except OSError as e:
        snapshot = None
        progress_error = str(e)

    status_data = {
        "configured": bool(configuration and configuration.is_configured),
        "stateFile": str(settings.state_file),
        "savedAt": metadata.get("savedAt"),
        "savedBy": metadata.get("savedBy"),
        "companyName": configuration.company_name if configuration else None,
        "enabledServices": configuration.enabled_services() if configuration else [],
        "wizardStep": snapshot.step if snapshot else None,
        "wizardProgressError": progress_error,
        "remediation": remediation.to_dict(),
    }

    if json_output:
        print(json.dumps(status_data, indent=2))
        return

    ui = WizardUI(console)
    console.print("[bold blue]CNC Dashboard Status[/bold blue]")
    console.print()

    if status_data["configured"]:
        ui.print_success(f"Configured for {configuration.company_name}")
        if metadata:
            console.print(f"[dim]Saved {metadata.get('savedAt', '?')} by {metadata.get('savedBy', '?')}[/dim]")
        names = _service_names(settings)
        console.print(f"[bold]Services:[/bold] {', '.join(names[s] for s in configuration.enabled_services()) or 'none'}")
    else:
        ui.print_warning("Not configured yet")

    if snapshot:
        step = WizardStep(snapshot.step)
        ui.print_info(f"Setup in progress at step {step + 1} ({step.title}). Run 'cnc-dashboard setup' to continue.")
    elif progress_error:
        ui.print_error(f"Saved setup progress is unreadable: {progress_error}")

    if not remediation.is_empty():
        console.print()
        console.print("[bold]Follow-up needed:[/bold]")
        for check in remediation.overridden_checks:
            ui.print_warning(f"{check.get('name', check.get('id'))}: {check.get('error', '')}")
        for service in remediation.failed_services:
            ui.print_error(f"{service} was not configured. Run: cnc-dashboard retry {service}")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--all", "reset_all", is_flag=True, help="Also delete the finished configuration")
def reset(yes: bool, reset_all: bool):
    """Discard saved setup progress and start over."""
    from cnc_dashboard.wizard.exceptions import PersistenceError

    settings = _load_settings()
    repository, persistence = _open_state(settings)

    if reset_all:
        console.print("[bold red]This will delete the saved setup progress and the finished configuration.[/bold red]")
    else:
        console.print("[bold red]This will delete the saved setup progress.[/bold red]")

    if not yes:
        if not click.confirm("Are you sure you want to start over?"):
            console.print("[dim]Cancelled.[/dim]")
            sys.exit(0)

    try:
        persistence.clear()
        if reset_all:
            repository.delete()
    except (OSError, PersistenceError) as e:
        console.print(f"[red]Failed to reset:[/red] {e}")
        sys.exit(1)

    console.print("[green]Setup progress cleared.[/green] Run 'cnc-dashboard setup' to begin again.")


@main.command()
@click.argument("services", nargs=-1, type=click.Choice(SERVICE_IDS))
def retry(services: Tuple[str, ...]):
    """Re-send the configuration to backend services.

    Without arguments, retries the services that failed during setup.

    Examples:
        cnc-dashboard retry
        cnc-dashboard retry toolManager
    """
    from cnc_dashboard.wizard.exceptions import DashboardError
    from cnc_dashboard.wizard.events import LoggingEventSink
    from cnc_dashboard.wizard.orchestrator import CompletionOrchestrator
    from cnc_dashboard.wizard.services import ServiceClient
    from cnc_dashboard.wizard.ui import WizardUI

    settings = _load_settings()
    repository, persistence = _open_state(settings)
    ui = WizardUI(console)

    orchestrator = CompletionOrchestrator(
        ServiceClient(settings.endpoints(), timeout=settings.service_timeout),
        repository,
        persistence,
        events=LoggingEventSink(),
        deadline=settings.dispatch_deadline,
    )

    targets: Optional[list] = list(services) or None
    try:
        if targets is None and not repository.load_remediation().failed_services:
            ui.print_success("No failed services to retry.")
            return
        outcomes = ui.show_progress("Configuring backend services...", lambda: orchestrator.retry(targets))
    except DashboardError as e:
        _fail(e)
    except OSError as e:
        _fail(_unreadable_state(settings, e))

    if not outcomes:
        ui.print_warning("None of the requested services are enabled in the configuration.")
        sys.exit(1)

    ui.show_service_outcomes(outcomes, _service_names(settings))
    if any(not outcome.success for outcome in outcomes.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
