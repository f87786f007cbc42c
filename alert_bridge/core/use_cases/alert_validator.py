from typing import Any, Dict, List
from pydantic import ValidationError

from alert_bridge.core.entities.alert import RawAlert
from alert_bridge.core.exceptions import AlertValidationError


def validate_alert(payload: Any) -> RawAlert:
    """
    Checks an inbound webhook body against the alert schema.
    Returns a RawAlert or raises AlertValidationError listing every bad field.
    """
    try:
        return RawAlert.model_validate(payload)
    except ValidationError as e:
        raise AlertValidationError(_to_issues(e)) from e


def _to_issues(error: ValidationError) -> List[Dict[str, Any]]:
    issues = []
    for err in error.errors(include_url=False, include_context=False, include_input=False):
        issues.append({
            "path": list(err["loc"]),
            "message": err["msg"],
            "code": err["type"],
        })
    return issues
