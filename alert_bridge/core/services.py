import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult
from alert_bridge.core.entities.market import MarketSnapshot
from alert_bridge.core.exceptions import AgentTimeoutError, AlertBridgeError, CollaboratorError
from alert_bridge.core.interfaces.agent import IAgentInvoker
from alert_bridge.core.interfaces.event_sink import IEventSink
from alert_bridge.core.interfaces.executor import ITradeExecutor
from alert_bridge.core.interfaces.extractor import IResponseExtractor
from alert_bridge.core.interfaces.market_data import IMarketData
from alert_bridge.core.use_cases.alert_normalizer import normalize_alert
from alert_bridge.core.use_cases.alert_validator import validate_alert
from alert_bridge.core.use_cases.analysis_extractor import RegexResponseExtractor, build_analysis
from alert_bridge.core.use_cases.decision_gate import DecisionGate
from alert_bridge.core.use_cases.event_logger import EventLogger
from alert_bridge.core.use_cases.prompt_builder import build_analysis_messages

logger = logging.getLogger(__name__)

# --- Output Models ---

class PipelineOutcome(BaseModel):
    alert: CanonicalAlert
    analysis: Analysis
    execution: ExecutionResult
    log_id: str
    defaulted: List[str] = []

# --- Business Logic Services ---

class TradingPipeline:
    """
    Alert -> prompt -> agent -> extraction -> decision gate -> event log.
    One instance can serve concurrent requests; all state is per call.
    """

    def __init__(
        self,
        agent: IAgentInvoker,
        sink: IEventSink,
        executor: Optional[ITradeExecutor] = None,
        extractor: Optional[IResponseExtractor] = None,
        market_data: Optional[IMarketData] = None,
        agent_timeout_s: float = 45.0,
        structured: bool = False,
    ):
        self.agent = agent
        self.extractor = extractor or RegexResponseExtractor()
        self.gate = DecisionGate(executor)
        self.events = EventLogger(sink)
        self.market_data = market_data
        self.agent_timeout_s = agent_timeout_s
        self.structured = structured

    async def process(self, payload: Any) -> PipelineOutcome:
        """Validates a raw webhook body and runs it through the pipeline."""
        raw = validate_alert(payload)
        alert = normalize_alert(raw)
        logger.info(f"Processed alert data: {alert.model_dump_json()}")
        return await self.process_alert(alert)

    async def process_alert(self, alert: CanonicalAlert) -> PipelineOutcome:
        market = await self._market_snapshot(alert.symbol)
        messages = build_analysis_messages(
            alert,
            market=market,
            include_market=self.market_data is not None,
            structured=self.structured,
        )

        text = await self._ask_agent(messages)
        logger.info(f"Trading analysis result for {alert.symbol}: {len(text)} chars")

        extraction = self.extractor.extract(text)
        if extraction.defaulted:
            logger.warning(
                f"Agent reply for {alert.symbol} had no usable value for "
                f"{', '.join(extraction.defaulted)}; conservative defaults applied"
            )
        analysis = build_analysis(alert, text, extraction)
        logger.info(
            f"Analysis for {alert.symbol}: {analysis.recommendedAction} "
            f"confidence={analysis.confidence} risk={analysis.riskLevel}"
        )

        execution = await self.gate.run(analysis)
        entry = self.events.record(alert, analysis, execution, extraction.defaulted)

        return PipelineOutcome(
            alert=alert,
            analysis=analysis,
            execution=execution,
            log_id=entry.id,
            defaulted=extraction.defaulted,
        )

    async def _ask_agent(self, messages: List[Dict[str, str]]) -> str:
        # The whole stream must arrive before anything is extracted
        try:
            return await asyncio.wait_for(self._collect(messages), timeout=self.agent_timeout_s)
        except asyncio.TimeoutError as e:
            raise AgentTimeoutError(f"Agent did not respond within {self.agent_timeout_s:g}s") from e
        except AlertBridgeError:
            raise
        except Exception as e:
            raise CollaboratorError(f"Agent call failed: {e}") from e

    async def _collect(self, messages: List[Dict[str, str]]) -> str:
        parts = []
        stream = self.agent.stream(messages)
        try:
            async for fragment in stream:
                parts.append(fragment)
        finally:
            # On timeout or cancellation, close the generator so the HTTP stream is released now
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return "".join(parts)

    async def _market_snapshot(self, symbol: str) -> Optional[MarketSnapshot]:
        if self.market_data is None:
            return None
        try:
            return await self.market_data.get_snapshot(symbol)
        except Exception as e:
            logger.warning(f"Market data unavailable for {symbol}: {e}")
            return None
