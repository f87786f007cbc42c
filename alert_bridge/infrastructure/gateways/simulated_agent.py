import asyncio
import json
import logging
import random
import re
from typing import AsyncIterator, Dict, List, Optional

from alert_bridge.core.interfaces.agent import IAgentInvoker
from alert_bridge.core.use_cases.prompt_builder import format_number

logger = logging.getLogger(__name__)

_FIELD_RE = {
    "symbol": re.compile(r"^- Symbol: (.+)$", re.MULTILINE),
    "price": re.compile(r"^- Price: \$([0-9.eE+-]+)$", re.MULTILINE),
    "action": re.compile(r"^- Action: (buy|sell|alert)$", re.MULTILINE),
    "timeframe": re.compile(r"^- Timeframe: (.+)$", re.MULTILINE),
    "message": re.compile(r"^- Message: (.+)$", re.MULTILINE),
}


class SimulatedAgent(IAgentInvoker):
    """
    Offline stand-in for the hosted agent, for demos and local runs.
    Reads the alert back out of the prompt and streams a canned analysis
    that follows the alert's direction with 70-99% confidence.
    """

    def __init__(self, rng: Optional[random.Random] = None, delay_s: float = 0.0, chunk_size: int = 64):
        self.rng = rng or random.Random()
        self.delay_s = delay_s
        self.chunk_size = chunk_size

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        prompt = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
        text = self._compose(prompt)
        logger.info(f"Simulating AI analysis ({len(text)} chars)")

        for i in range(0, len(text), self.chunk_size):
            if self.delay_s:
                await asyncio.sleep(self.delay_s)
            yield text[i:i + self.chunk_size]

    def _compose(self, prompt: str) -> str:
        fields = {k: _find(rx, prompt) for k, rx in _FIELD_RE.items()}
        symbol = fields["symbol"] or "UNKNOWN"
        price = float(fields["price"]) if fields["price"] else 0.0
        action = {"buy": "buy", "sell": "sell"}.get(fields["action"] or "", "hold")
        timeframe = fields["timeframe"] if fields["timeframe"] not in (None, "Not specified") else "1h"
        note = fields["message"] if fields["message"] not in (None, "No additional message") else "No additional message provided."

        confidence = self.rng.randint(70, 99)
        if action == "sell":
            target, stop = price * 0.95, price * 1.02
        else:
            target, stop = price * 1.05, price * 0.98
        position_size = 2.0

        verdict = {
            "recommendedAction": action,
            "confidence": confidence,
            "riskLevel": "medium",
            "targetPrice": round(target, 8),
            "stopLoss": round(stop, 8),
            "positionSize": position_size,
        }
        return (
            f"Simulated analysis for {symbol} on the {timeframe} timeframe.\n\n"
            f"Based on the TradingView alert for {symbol}, the system recommends a {action} "
            f"action at ${format_number(price)}. {note}\n\n"
            f"Target price: ${format_number(round(target, 8))}\n"
            f"Stop loss: ${format_number(round(stop, 8))}\n"
            f"Position size: {format_number(position_size)}% of portfolio\n\n"
            f"Recommended Action: {action}\n"
            f"Confidence: {confidence}%\n"
            f"Risk Level: medium\n\n"
            f"```json\n{json.dumps(verdict)}\n```\n"
        )


def _find(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    return m.group(1).strip() if m else None
