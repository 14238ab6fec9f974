"""
Preferences Step

Collect dashboard preferences: theme, notifications and automatic scans.
"""

from dataclasses import replace
from typing import TYPE_CHECKING

from cnc_dashboard.wizard.models import AUTO_SCAN_INTERVALS, THEME_MODES, DraftPatch

if TYPE_CHECKING:
    from cnc_dashboard.wizard.interactive import InteractiveWizard


def _interval_label(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes"
    hours = minutes // 60
    return "1 hour" if hours == 1 else f"{hours} hours"


def preferences_step(wizard: "InteractiveWizard") -> bool:
    """Collect preferences.

    Returns:
        True to continue, False to abort
    """
    ui = wizard.ui
    prefs = wizard.controller.draft.features

    theme = ui.prompt_choice("Theme", list(THEME_MODES), default=prefs.theme_mode)

    notifications = prefs.notifications
    enabled = ui.prompt_confirm("Show notifications?", default=notifications.enabled)
    if enabled:
        notifications = replace(
            notifications,
            enabled=True,
            show_task_completion=ui.prompt_confirm("  Task completion", default=notifications.show_task_completion),
            show_errors=ui.prompt_confirm("  Errors", default=notifications.show_errors),
            show_warnings=ui.prompt_confirm("  Warnings", default=notifications.show_warnings),
            show_system_updates=ui.prompt_confirm("  System updates", default=notifications.show_system_updates),
        )
    else:
        notifications = replace(notifications, enabled=False)

    auto_scan = prefs.auto_scan
    if ui.prompt_confirm("Scan for new files automatically?", default=auto_scan.enabled):
        labels = [_interval_label(minutes) for minutes in AUTO_SCAN_INTERVALS]
        label = ui.prompt_choice("Scan interval", labels, default=_interval_label(auto_scan.interval))
        auto_scan = replace(
            auto_scan,
            enabled=True,
            interval=AUTO_SCAN_INTERVALS[labels.index(label)],
            json_scanner_enabled=ui.prompt_confirm("  Include JSON Analyzer", default=auto_scan.json_scanner_enabled),
            tool_manager_enabled=ui.prompt_confirm("  Include Tool Manager", default=auto_scan.tool_manager_enabled),
            run_on_startup=ui.prompt_confirm("  Also scan when the dashboard starts", default=auto_scan.run_on_startup),
        )
    else:
        auto_scan = replace(auto_scan, enabled=False)

    prefs = replace(
        prefs,
        theme_mode=theme,
        notifications=notifications,
        auto_backup=ui.prompt_confirm("Back up configuration automatically?", default=prefs.auto_backup),
        export_reports=ui.prompt_confirm("Allow report exports?", default=prefs.export_reports),
        auto_scan=auto_scan,
    )

    wizard.controller.update(DraftPatch.preferences(prefs))
    return True
