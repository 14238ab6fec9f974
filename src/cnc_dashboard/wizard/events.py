"""
CNC Dashboard Wizard Events

Structured progress events emitted by the controller, the validation runner
and the completion orchestrator.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from cnc_dashboard.wizard.logging_config import get_logger


@dataclass
class WizardEvent:
    """One progress event."""
    name: str
    message: str
    level: int = logging.INFO
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class EventSink:
    """Receives wizard events. Subclasses override `emit`."""

    def emit(self, event: WizardEvent) -> None:
        raise NotImplementedError

    def publish(
        self,
        name: str,
        message: str,
        level: int = logging.INFO,
        **data: Any
    ) -> WizardEvent:
        """Build an event and emit it."""
        event = WizardEvent(name=name, message=message, level=level, data=data)
        self.emit(event)
        return event


class LoggingEventSink(EventSink):
    """Writes events to the dashboard logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("events")

    def emit(self, event: WizardEvent) -> None:
        self.logger.log(event.level, "[%s] %s", event.name, event.message)


class EventLog(EventSink):
    """Keeps every event in memory and optionally forwards it."""

    def __init__(
        self,
        forward: Optional[EventSink] = None,
        listener: Optional[Callable[[WizardEvent], None]] = None
    ):
        self.events: List[WizardEvent] = []
        self.forward = forward
        self.listener = listener

    def emit(self, event: WizardEvent) -> None:
        self.events.append(event)
        if self.forward:
            self.forward.emit(event)
        if self.listener:
            self.listener(event)

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def clear(self):
        self.events.clear()
