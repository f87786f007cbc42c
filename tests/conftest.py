"""
Pytest configuration and shared fixtures.
"""
import asyncio
from typing import List, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from alert_bridge.api.main import app, get_pipeline
from alert_bridge.core.interfaces.agent import IAgentInvoker
from alert_bridge.core.services import TradingPipeline
from alert_bridge.core.use_cases.analysis_extractor import RegexResponseExtractor
from alert_bridge.infrastructure.gateways.paper_executor import PaperTradeExecutor
from alert_bridge.infrastructure.sinks.event_sinks import MemoryEventSink

MARKED_REPLY = (
    "Market looks oversold after the RSI dip.\n"
    "Recommended Action: buy\n"
    "Confidence: 85%\n"
    "Risk Level: low\n"
)
UNMARKED_REPLY = "The market is uncertain and I would rather not commit to a view."

VALID_ALERT = {
    "symbol": "BTCUSDT",
    "price": 45000,
    "action": "buy",
    "timeframe": "1h",
    "exchange": "binance",
    "message": "RSI below 30",
}


class StubAgent(IAgentInvoker):
    """Streams a fixed reply in small fragments and records every call."""

    def __init__(self, reply: str = MARKED_REPLY, delay_s: float = 0.0, error: Optional[Exception] = None):
        self.reply = reply
        self.delay_s = delay_s
        self.error = error
        self.calls: List[list] = []
        self.closed = False

    async def stream(self, messages):
        self.calls.append(messages)
        try:
            for i in range(0, len(self.reply), 10):
                if self.delay_s:
                    await asyncio.sleep(self.delay_s)
                yield self.reply[i:i + 10]
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sink():
    return MemoryEventSink()


@pytest.fixture
def agent():
    return StubAgent()


@pytest.fixture
def pipeline(agent, sink):
    return TradingPipeline(
        agent=agent,
        sink=sink,
        executor=PaperTradeExecutor(),
        extractor=RegexResponseExtractor(),
        agent_timeout_s=2.0,
    )


@pytest.fixture
async def client(pipeline):
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
