"""
Turns the agent's free-text reply into structured analysis fields.

Extraction is best-effort. Whatever cannot be recovered falls back to the
conservative defaults (confidence 50, hold, medium risk) so unparseable
output never leads to a trade.
"""
import json
import logging
import math
import re
from typing import Annotated, Any, Dict, Optional

from pydantic import Field, TypeAdapter, ValidationError

from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import (
    Analysis,
    Extraction,
    RecommendedAction,
    RiskLevel,
)
from alert_bridge.core.interfaces.extractor import IResponseExtractor

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 50
DEFAULT_ACTION = "hold"
DEFAULT_RISK = "medium"
DEFAULT_TIMEFRAME = "1h"

CONFIDENCE_RE = re.compile(r"confidence[:\s*]*(\d+)%", re.IGNORECASE)
ACTION_RE = re.compile(r"recommended action[:\s*]*(buy|sell|hold)", re.IGNORECASE)
RISK_RE = re.compile(r"risk level[:\s*]*(low|medium|high)", re.IGNORECASE)

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.IGNORECASE | re.DOTALL)
BARE_JSON_RE = re.compile(r"\{[^{}]*\}")


class RegexResponseExtractor(IResponseExtractor):
    """
    Legacy marker scraping: `Confidence: NN%`, `Recommended Action: buy`,
    `Risk Level: low`. First match of each wins.
    """

    def extract(self, text: str) -> Extraction:
        defaulted = []

        m = CONFIDENCE_RE.search(text)
        if m:
            confidence = min(int(m.group(1)), 100)
        else:
            confidence = DEFAULT_CONFIDENCE
            defaulted.append("confidence")

        m = ACTION_RE.search(text)
        if m:
            action = m.group(1).lower()
        else:
            action = DEFAULT_ACTION
            defaulted.append("recommendedAction")

        m = RISK_RE.search(text)
        if m:
            risk = m.group(1).lower()
        else:
            risk = DEFAULT_RISK
            defaulted.append("riskLevel")

        return Extraction(
            confidence=confidence,
            recommendedAction=action,
            riskLevel=risk,
            defaulted=defaulted,
        )


# Per-field adapters so one bad value in the verdict doesn't discard the rest
_VERDICT_FIELDS: Dict[str, TypeAdapter] = {
    "recommendedAction": TypeAdapter(RecommendedAction),
    "confidence": TypeAdapter(Annotated[float, Field(strict=True, ge=0, le=100)]),
    "riskLevel": TypeAdapter(RiskLevel),
    "targetPrice": TypeAdapter(Annotated[float, Field(strict=True, gt=0)]),
    "stopLoss": TypeAdapter(Annotated[float, Field(strict=True, gt=0)]),
    "positionSize": TypeAdapter(Annotated[float, Field(strict=True, ge=0, le=100)]),
}


class StructuredResponseExtractor(IResponseExtractor):
    """
    Reads the JSON verdict block the agent is asked to append, falling back
    to marker scraping for any field the block lacks or gets wrong.
    """

    def __init__(self, fallback: Optional[IResponseExtractor] = None):
        self.fallback = fallback or RegexResponseExtractor()

    def extract(self, text: str) -> Extraction:
        verdict = self._parse_verdict(text)
        base = self.fallback.extract(text)
        if not verdict:
            return base

        fields = base.model_dump()
        defaulted = set(base.defaulted)
        for name, adapter in _VERDICT_FIELDS.items():
            raw = verdict.get(name)
            if raw is None:
                continue
            if isinstance(raw, str) and name in ("recommendedAction", "riskLevel"):
                raw = raw.strip().lower()
            try:
                value = adapter.validate_python(raw)
            except ValidationError:
                logger.debug(f"Ignoring invalid verdict field {name}={raw!r}")
                continue
            if name == "confidence":
                # never round up across the execution threshold
                value = math.floor(value)
            fields[name] = value
            defaulted.discard(name)

        fields["defaulted"] = [f for f in base.defaulted if f in defaulted]
        return Extraction(**fields)

    def _parse_verdict(self, text: str) -> Optional[Dict[str, Any]]:
        candidates = FENCED_JSON_RE.findall(text) or BARE_JSON_RE.findall(text)
        for candidate in reversed(candidates):
            try:
                data = json.loads(candidate)
            except ValueError:
                continue
            if isinstance(data, dict):
                return data
        return None


def build_analysis(alert: CanonicalAlert, text: str, extraction: Extraction) -> Analysis:
    return Analysis(
        symbol=alert.symbol,
        currentPrice=alert.price,
        recommendedAction=extraction.recommendedAction,
        confidence=extraction.confidence,
        reasoning=text,
        riskLevel=extraction.riskLevel,
        targetPrice=extraction.targetPrice,
        stopLoss=extraction.stopLoss,
        positionSize=extraction.positionSize,
        timeframe=alert.timeframe or DEFAULT_TIMEFRAME,
    )
