import logging
from typing import Dict, Optional, Tuple

import httpx

from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult
from alert_bridge.core.exceptions import TradeExecutionError
from alert_bridge.core.interfaces.executor import ITradeExecutor
from alert_bridge.core.use_cases.alert_normalizer import now_ms
from alert_bridge.core.use_cases.prompt_builder import build_execution_prompt, format_number
from alert_bridge.infrastructure.gateways.common import base_asset, excerpt

logger = logging.getLogger(__name__)


class RecallTradeExecutor(ITradeExecutor):
    """
    Submits trades to the Recall competitions sandbox.
    Buys spend the quote token for the symbol's token, sells do the reverse.
    """

    def __init__(
        self,
        api_key: str,
        token_map: Dict[str, str],
        quote_token: str,
        amount: str = "100",
        base_url: str = "https://api.sandbox.competitions.recall.network/api",
        timeout_s: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key.strip()
        self.token_map = {k.upper(): v for k, v in token_map.items()}
        self.quote_token = quote_token
        self.amount = amount
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_s)
        self.transport = transport
        logger.info(f"RecallTradeExecutor initialized. URL: {self.base_url}")

    def _tokens_for(self, analysis: Analysis) -> Tuple[str, str]:
        asset = base_asset(analysis.symbol)
        token = self.token_map.get(analysis.symbol.upper()) or self.token_map.get(asset)
        if not token:
            raise TradeExecutionError(f"No token address configured for {analysis.symbol}")
        if analysis.recommendedAction == "buy":
            return self.quote_token, token
        return token, self.quote_token

    async def execute(self, analysis: Analysis) -> ExecutionResult:
        if not self.api_key:
            raise TradeExecutionError("RECALL_API_KEY is not configured")

        from_token, to_token = self._tokens_for(analysis)
        body = {
            "fromToken": from_token,
            "toToken": to_token,
            "amount": self.amount,
            "reason": build_execution_prompt(analysis),
        }
        headers = {
            "accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/trade/execute", headers=headers, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise TradeExecutionError(
                f"Recall Execute Trade API error: {e.response.status_code} "
                f"{excerpt(e.response.text)!r}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TradeExecutionError(f"Recall Execute Trade request failed: {e}") from e

        if not isinstance(data, dict) or data.get("success") is False:
            error = data.get("error") if isinstance(data, dict) else data
            raise TradeExecutionError(f"Recall rejected trade: {error}")

        transaction = data.get("transaction") or {}
        trade_id = transaction.get("id") or f"trade_{now_ms()}"
        logger.info(f"Recall trade {trade_id}: {analysis.recommendedAction} {analysis.symbol}")
        return ExecutionResult(
            executed=True,
            tradeId=str(trade_id),
            message=(
                f"Trade executed: {analysis.recommendedAction} {analysis.symbol} "
                f"at ${format_number(analysis.currentPrice)}"
            ),
            timestamp=now_ms(),
        )
