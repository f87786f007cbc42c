import enum
import logging
from typing import Optional, Tuple

from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult
from alert_bridge.core.interfaces.executor import ITradeExecutor
from alert_bridge.core.use_cases.alert_normalizer import now_ms

logger = logging.getLogger(__name__)

# Fixed policy, not configuration
CONFIDENCE_THRESHOLD = 70


class GateDecision(str, enum.Enum):
    WOULD_EXECUTE = "would_execute"
    SKIP = "skip"


def evaluate(analysis: Analysis) -> Tuple[GateDecision, str]:
    """Returns the gate decision and a human readable reason."""
    if analysis.recommendedAction == "hold":
        return GateDecision.SKIP, "Hold recommendation"
    if analysis.confidence < CONFIDENCE_THRESHOLD:
        return GateDecision.SKIP, f"Low confidence ({analysis.confidence}% < {CONFIDENCE_THRESHOLD}%)"
    return GateDecision.WOULD_EXECUTE, f"{analysis.recommendedAction} at {analysis.confidence}% confidence"


class DecisionGate:
    """
    Converts an Analysis into an ExecutionResult. Trade submission is delegated
    to the executor; its failures come back as executed=False, never raised.
    """

    def __init__(self, executor: Optional[ITradeExecutor] = None):
        self.executor = executor

    async def run(self, analysis: Analysis) -> ExecutionResult:
        decision, reason = evaluate(analysis)
        logger.info(f"Gate decision for {analysis.symbol}: {decision.value} ({reason})")

        if decision is GateDecision.SKIP:
            return ExecutionResult(
                executed=False,
                message=f"Trade not executed: {reason}",
                timestamp=now_ms(),
            )

        if self.executor is None:
            return ExecutionResult(
                executed=False,
                message="Trade not executed: execution disabled",
                timestamp=now_ms(),
            )

        try:
            return await self.executor.execute(analysis)
        except Exception as e:
            logger.warning(f"Trade execution failed for {analysis.symbol}: {e}")
            return ExecutionResult(
                executed=False,
                message=f"Trade execution failed: {e}",
                timestamp=now_ms(),
            )
