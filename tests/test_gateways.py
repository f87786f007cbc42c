"""
Tests for the collaborator gateways, using httpx.MockTransport in place of
the real providers.
"""
import json
import random

import httpx
import pytest

from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.exceptions import CollaboratorError, TradeExecutionError
from alert_bridge.infrastructure.gateways.coingecko_market import CoinGeckoMarketData, coin_id_for
from alert_bridge.infrastructure.gateways.common import base_asset, excerpt
from alert_bridge.infrastructure.gateways.openai_agent import OpenAIChatAgent
from alert_bridge.infrastructure.gateways.recall_executor import RecallTradeExecutor
from alert_bridge.infrastructure.gateways.simulated_agent import SimulatedAgent

MESSAGES = [{"role": "user", "content": "hi"}]
BTC_TOKEN = "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def _sse(*fragments):
    lines = [": keep-alive", ""]
    for fragment in fragments:
        chunk = {"choices": [{"index": 0, "delta": {"content": fragment}}]}
        lines += [f"data: {json.dumps(chunk)}", ""]
    lines += ['data: {"choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}]}', "", "data: [DONE]", ""]
    return "\n".join(lines).encode()


async def _collect(agent):
    return "".join([f async for f in agent.stream(MESSAGES)])


def _analysis(symbol="BTCUSDT", action="buy"):
    return Analysis(symbol=symbol, currentPrice=45000, recommendedAction=action, confidence=90, reasoning="x" * 300)


# --- OpenAI-compatible agent ---

@pytest.mark.anyio
async def test_openai_agent_streams_fragments():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=_sse("Recommended ", "Action: buy"))

    agent = OpenAIChatAgent(api_key="sk-test", base_url="https://llm.test/v1/", transport=httpx.MockTransport(handler))
    assert await _collect(agent) == "Recommended Action: buy"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["stream"] is True
    assert seen["body"]["messages"] == MESSAGES


@pytest.mark.anyio
async def test_openai_agent_http_error_includes_status():
    transport = httpx.MockTransport(lambda r: httpx.Response(429, text="Rate limit " + "y" * 900))
    agent = OpenAIChatAgent(api_key="sk-test", transport=transport)
    with pytest.raises(CollaboratorError, match="status=429") as exc_info:
        await _collect(agent)
    assert len(str(exc_info.value)) < 600


@pytest.mark.anyio
async def test_openai_agent_requires_key():
    agent = OpenAIChatAgent(api_key="  ")
    with pytest.raises(CollaboratorError, match="OPENAI_API_KEY"):
        await _collect(agent)


@pytest.mark.anyio
async def test_openai_agent_transport_error_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    agent = OpenAIChatAgent(api_key="sk-test", transport=httpx.MockTransport(handler))
    with pytest.raises(CollaboratorError, match="connection refused"):
        await _collect(agent)


@pytest.mark.anyio
async def test_openai_agent_stream_error_event():
    body = b'data: {"error": {"message": "model overloaded"}}\n\n'
    agent = OpenAIChatAgent(api_key="sk-test", transport=httpx.MockTransport(lambda r: httpx.Response(200, content=body)))
    with pytest.raises(CollaboratorError, match="model overloaded"):
        await _collect(agent)


# --- Simulated agent ---

@pytest.mark.anyio
async def test_simulated_agent_mirrors_alert():
    prompt = "ALERT DATA:\n- Symbol: ETHUSDT\n- Price: $3000\n- Action: alert\n- Timeframe: 4h\n- Message: No additional message"
    agent = SimulatedAgent(rng=random.Random(1), chunk_size=16)
    fragments = [f async for f in agent.stream([{"role": "user", "content": prompt}])]
    text = "".join(fragments)

    assert len(fragments) > 1
    assert "Recommended Action: hold" in text
    assert "ETHUSDT" in text and "4h" in text
    assert '"recommendedAction": "hold"' in text


# --- Recall executor ---

@pytest.mark.anyio
async def test_recall_executor_buy():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "transaction": {"id": "tx-123"}})

    executor = RecallTradeExecutor(
        api_key="rk",
        token_map={"btc": BTC_TOKEN},
        quote_token=USDC,
        amount="250",
        base_url="https://recall.test/api",
        transport=httpx.MockTransport(handler),
    )
    result = await executor.execute(_analysis())

    assert result.executed is True
    assert result.tradeId == "tx-123"
    assert seen["url"] == "https://recall.test/api/trade/execute"
    assert (seen["body"]["fromToken"], seen["body"]["toToken"]) == (USDC, BTC_TOKEN)
    assert seen["body"]["amount"] == "250"
    assert seen["body"]["reason"].startswith("Execute a buy trade for BTCUSDT")
    assert seen["body"]["reason"].endswith("x" * 200 + "...")


@pytest.mark.anyio
async def test_recall_executor_sell_reverses_tokens():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "transaction": {"id": 7}})

    executor = RecallTradeExecutor("rk", {"BTC": BTC_TOKEN}, USDC, transport=httpx.MockTransport(handler))
    result = await executor.execute(_analysis(action="sell"))
    assert (seen["body"]["fromToken"], seen["body"]["toToken"]) == (BTC_TOKEN, USDC)
    assert result.tradeId == "7"


@pytest.mark.anyio
@pytest.mark.parametrize("response, match", [
    (httpx.Response(401, text="bad key"), "401"),
    (httpx.Response(200, json={"success": False, "error": "Insufficient balance"}), "Insufficient balance"),
    (httpx.Response(200, text="not json"), "request failed"),
])
async def test_recall_executor_failures(response, match):
    executor = RecallTradeExecutor("rk", {"BTC": BTC_TOKEN}, USDC, transport=httpx.MockTransport(lambda r: response))
    with pytest.raises(TradeExecutionError, match=match):
        await executor.execute(_analysis())


@pytest.mark.anyio
async def test_recall_executor_unknown_symbol_and_missing_key():
    with pytest.raises(TradeExecutionError, match="No token address"):
        await RecallTradeExecutor("rk", {}, USDC).execute(_analysis())
    with pytest.raises(TradeExecutionError, match="RECALL_API_KEY"):
        await RecallTradeExecutor("", {"BTC": BTC_TOKEN}, USDC).execute(_analysis())


# --- CoinGecko market data ---

@pytest.mark.anyio
async def test_coingecko_snapshot():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        seen["key"] = request.headers.get("x-cg-demo-api-key")
        return httpx.Response(200, json={"bitcoin": {"usd": 45100.0, "usd_24h_change": 1.25, "usd_24h_vol": 2.5e10}})

    market = CoinGeckoMarketData(api_key="cg", transport=httpx.MockTransport(handler))
    snapshot = await market.get_snapshot("BTCUSDT")

    assert seen["params"]["ids"] == "bitcoin"
    assert seen["key"] == "cg"
    assert snapshot.priceUsd == 45100.0
    assert snapshot.change24hPct == 1.25


@pytest.mark.anyio
async def test_coingecko_unknown_coin_returns_none():
    market = CoinGeckoMarketData(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    assert await market.get_snapshot("FOOUSDT") is None


@pytest.mark.anyio
async def test_coingecko_http_error():
    market = CoinGeckoMarketData(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="down")))
    with pytest.raises(CollaboratorError, match="503"):
        await market.get_snapshot("ETHUSDT")


# --- Helpers ---

@pytest.mark.parametrize("symbol, asset", [
    ("BTCUSDT", "BTC"),
    ("ETH/USD", "ETH"),
    ("BINANCE:SOLUSDT", "SOL"),
    ("DOGE-PERP", "DOGE"),
    ("USDT", "USDT"),
])
def test_base_asset(symbol, asset):
    assert base_asset(symbol) == asset


def test_coin_id_lookup():
    assert coin_id_for("AVAXUSDT") == "avalanche-2"
    assert coin_id_for("PEPEUSDT") == "pepe"


def test_excerpt():
    assert excerpt("  a \n\n b  ") == "a b"
    assert excerpt("") == "<empty>"
    assert len(excerpt("z" * 1000)) == 500
