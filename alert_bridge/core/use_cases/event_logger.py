import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional

from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.event import LogEntry
from alert_bridge.core.entities.execution import ExecutionResult
from alert_bridge.core.interfaces.event_sink import IEventSink
from alert_bridge.core.use_cases.alert_normalizer import now_ms

logger = logging.getLogger(__name__)


def new_log_id() -> str:
    # log_<epoch ms> plus a random suffix so concurrent requests never collide
    return f"log_{now_ms()}_{secrets.token_hex(3)}"


class EventLogger:
    """
    Builds the trading event record and hands it to the sink.
    Sink failures are logged and swallowed.
    """

    def __init__(self, sink: IEventSink):
        self.sink = sink

    def record(
        self,
        alert: CanonicalAlert,
        analysis: Analysis,
        execution: Optional[ExecutionResult] = None,
        defaulted_fields: Optional[List[str]] = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=new_log_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            alert=alert,
            analysis=analysis,
            execution=execution,
            defaultedFields=defaulted_fields or [],
        )
        try:
            self.sink.emit(entry)
        except Exception as e:
            logger.warning(f"Failed to emit trading event {entry.id}: {e}")
        return entry
