from abc import ABC, abstractmethod

from alert_bridge.core.entities.event import LogEntry


class IEventSink(ABC):
    @abstractmethod
    def emit(self, entry: LogEntry) -> None:
        pass
