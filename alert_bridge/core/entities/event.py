"""
Trading event log entities and HTTP envelopes.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult


class LogEntry(BaseModel):
    """
    Write-once record of one pipeline run. Emitted to a sink, never read back.
    """
    id: str
    timestamp: str  # ISO-8601, UTC
    alert: CanonicalAlert
    analysis: Analysis
    execution: Optional[ExecutionResult] = None
    defaultedFields: List[str] = Field(default_factory=list)


class WebhookResponse(BaseModel):
    success: bool = True
    message: str
    logId: Optional[str] = None
    analysis: Analysis
    execution: Optional[ExecutionResult] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None
