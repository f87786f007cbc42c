import logging
import secrets

from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult
from alert_bridge.core.interfaces.executor import ITradeExecutor
from alert_bridge.core.use_cases.alert_normalizer import now_ms
from alert_bridge.core.use_cases.prompt_builder import format_number

logger = logging.getLogger(__name__)


class PaperTradeExecutor(ITradeExecutor):
    """Simulated fills: nothing leaves the process."""

    async def execute(self, analysis: Analysis) -> ExecutionResult:
        ts = now_ms()
        trade_id = f"trade_{ts}_{secrets.token_hex(3)}"
        logger.info(f"Paper trade {trade_id}: {analysis.recommendedAction} {analysis.symbol}")
        return ExecutionResult(
            executed=True,
            tradeId=trade_id,
            message=(
                f"Trade executed: {analysis.recommendedAction} {analysis.symbol} "
                f"at ${format_number(analysis.currentPrice)}"
            ),
            timestamp=ts,
        )
