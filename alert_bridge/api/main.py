import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

# --- Imports ---
from alert_bridge.config import Settings, get_settings
from alert_bridge.core.entities.event import ErrorResponse, WebhookResponse
from alert_bridge.core.exceptions import AlertValidationError
from alert_bridge.core.interfaces.agent import IAgentInvoker
from alert_bridge.core.interfaces.executor import ITradeExecutor
from alert_bridge.core.interfaces.market_data import IMarketData
from alert_bridge.core.services import PipelineOutcome, TradingPipeline
from alert_bridge.core.use_cases.alert_normalizer import now_ms
from alert_bridge.core.use_cases.analysis_extractor import (
    RegexResponseExtractor,
    StructuredResponseExtractor,
)
from alert_bridge.infrastructure.gateways.coingecko_market import CoinGeckoMarketData
from alert_bridge.infrastructure.gateways.openai_agent import OpenAIChatAgent
from alert_bridge.infrastructure.gateways.paper_executor import PaperTradeExecutor
from alert_bridge.infrastructure.gateways.recall_executor import RecallTradeExecutor
from alert_bridge.infrastructure.gateways.simulated_agent import SimulatedAgent
from alert_bridge.infrastructure.sinks.event_sinks import LoggingEventSink

# Setup Logging
logging.basicConfig(level=get_settings().log_level.upper())
logger = logging.getLogger("AlertBridge")

app = FastAPI(
    title="AlertBridge API",
    version="1.0.0",
    description="Receives TradingView alerts, asks an AI agent for an analysis and gates simulated trades",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

T = TypeVar("T")

SAMPLE_ALERT: Dict[str, Any] = {
    "symbol": "BTCUSDT",
    "price": 45000,
    "action": "buy",
    "strategy": "RSI Oversold",
    "timeframe": "1h",
    "exchange": "binance",
    "message": "Test alert from manual trigger",
    "volume": 1000000,
    "rsi": 30,
    "macd": "bullish",
}

# HTTP 499: client closed request
CLIENT_CLOSED_REQUEST = 499


class ClientDisconnected(Exception):
    pass

# --- Dependency Injection ---

def build_agent(settings: Settings) -> IAgentInvoker:
    if settings.agent_mode == "openai":
        return OpenAIChatAgent(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            temperature=settings.agent_temperature,
            timeout_s=settings.agent_timeout_s,
        )
    return SimulatedAgent()


def build_executor(settings: Settings) -> Optional[ITradeExecutor]:
    if settings.execution_mode == "recall":
        return RecallTradeExecutor(
            api_key=settings.recall_api_key,
            token_map=settings.recall_token_map,
            quote_token=settings.recall_quote_token,
            amount=settings.recall_trade_amount,
            base_url=settings.recall_base_url,
            timeout_s=settings.recall_timeout_s,
        )
    if settings.execution_mode == "paper":
        return PaperTradeExecutor()
    return None


def build_market_data(settings: Settings) -> Optional[IMarketData]:
    if not settings.market_data_enabled:
        return None
    return CoinGeckoMarketData(
        api_key=settings.coingecko_api_key,
        base_url=settings.coingecko_base_url,
        timeout_s=settings.coingecko_timeout_s,
    )


@lru_cache
def get_pipeline() -> TradingPipeline:
    settings = get_settings()
    extractor = StructuredResponseExtractor() if settings.structured_output else RegexResponseExtractor()
    logger.info(
        f"Pipeline: agent={settings.agent_mode} execution={settings.execution_mode} "
        f"structured={settings.structured_output} market_data={settings.market_data_enabled}"
    )
    return TradingPipeline(
        agent=build_agent(settings),
        sink=LoggingEventSink(),
        executor=build_executor(settings),
        extractor=extractor,
        market_data=build_market_data(settings),
        agent_timeout_s=settings.agent_timeout_s,
        structured=settings.structured_output,
    )


async def run_until_disconnect(request: Request, work: Awaitable[T], poll_s: float) -> T:
    """
    Awaits `work` while watching the client connection. If the client goes
    away first, the work is cancelled and ClientDisconnected is raised.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.warning("Client disconnected, abandoning analysis")
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
            # let the agent stream and HTTP clients tear down before responding
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(f"Analysis failed while being cancelled: {e}")


def _success(message: str, outcome: PipelineOutcome) -> JSONResponse:
    body = WebhookResponse(
        message=message,
        logId=outcome.log_id,
        analysis=outcome.analysis,
        execution=outcome.execution,
    )
    return JSONResponse(status_code=200, content=body.model_dump())


def _failure(status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None, error: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

# --- Endpoints ---

@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.service_name,
    }


@app.post("/webhook/tradingview")
async def tradingview_webhook(
    request: Request,
    pipeline: TradingPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Receives a TradingView alert, runs the analysis pipeline and returns the
    analysis plus the decision gate outcome.
    """
    try:
        payload = await request.json()
    except ValueError:
        return _failure(
            400,
            "Invalid webhook data",
            errors=[{"path": [], "message": "Request body is not valid JSON", "code": "json_invalid"}],
        )

    logger.info(f"Received TradingView webhook: {payload}")

    try:
        outcome = await run_until_disconnect(request, pipeline.process(payload), settings.disconnect_poll_s)
    except AlertValidationError as e:
        logger.warning(f"Rejected webhook: {e}")
        return _failure(400, "Invalid webhook data", errors=e.errors)
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception as e:
        logger.error(f"Error processing TradingView webhook: {e}")
        return _failure(500, "Internal server error", error=str(e) or type(e).__name__)

    return _success("TradingView alert processed successfully", outcome)


@app.post("/test/trigger-analysis")
async def trigger_test_analysis(
    request: Request,
    pipeline: TradingPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Runs the pipeline against a fixed sample alert.
    """
    payload = dict(SAMPLE_ALERT, timestamp=now_ms())
    logger.info(f"Triggering test analysis with data: {payload}")

    try:
        outcome = await run_until_disconnect(request, pipeline.process(payload), settings.disconnect_poll_s)
    except ClientDisconnected:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception as e:
        logger.error(f"Error executing test analysis: {e}")
        return _failure(500, "Error executing test analysis", error=str(e) or type(e).__name__)

    return _success("Test analysis executed successfully", outcome)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"TradingView webhook handler running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
