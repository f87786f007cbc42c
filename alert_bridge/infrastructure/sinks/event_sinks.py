import logging
from typing import List

from alert_bridge.core.entities.event import LogEntry
from alert_bridge.core.interfaces.event_sink import IEventSink

events_logger = logging.getLogger("alert_bridge.events")


class LoggingEventSink(IEventSink):
    """Writes each trading event as an indented JSON document to the log."""

    def __init__(self, logger: logging.Logger = events_logger):
        self.logger = logger

    def emit(self, entry: LogEntry) -> None:
        self.logger.info("TRADING EVENT LOG: %s", entry.model_dump_json(indent=2))


class MemoryEventSink(IEventSink):
    def __init__(self):
        self.entries: List[LogEntry] = []

    def emit(self, entry: LogEntry) -> None:
        self.entries.append(entry)
