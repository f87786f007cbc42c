from typing import Any, Dict, List


class AlertBridgeError(Exception):
    """Base error for the alert bridge."""


class AlertValidationError(AlertBridgeError):
    """
    Inbound alert failed schema validation.
    `errors` holds one {path, message, code} dict per offending field.
    """

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e["path"]) or "<root>" for e in errors)
        super().__init__(f"Invalid webhook data: {fields}")


class CollaboratorError(AlertBridgeError):
    """An external service (agent, price feed, execution API) failed."""


class AgentTimeoutError(CollaboratorError):
    """The agent stream did not complete within the configured timeout."""


class TradeExecutionError(CollaboratorError):
    """The execution provider rejected or failed a trade submission."""
