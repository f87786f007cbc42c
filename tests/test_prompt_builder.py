from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.use_cases.prompt_builder import (
    build_analysis_messages,
    build_analysis_prompt,
    build_execution_prompt,
    format_number,
)

BARE = CanonicalAlert(symbol="BTCUSDT", price=45000, action="buy", timestamp=1)
FULL = CanonicalAlert(
    symbol="ETHUSDT", price=3012.75, action="sell", strategy="MACD Cross", timeframe="4h",
    exchange="bybit", timestamp=1, message="Bearish cross", volume=1500, rsi=71.2, macd="bearish",
)


def test_missing_fields_render_placeholders():
    prompt = build_analysis_prompt(BARE)
    for line in [
        "- Symbol: BTCUSDT",
        "- Price: $45000",
        "- Action: buy",
        "- Strategy: Not specified",
        "- Timeframe: Not specified",
        "- Exchange: Not specified",
        "- Volume: Not available",
        "- RSI: Not available",
        "- MACD: Not available",
        "- Message: No additional message",
    ]:
        assert line in prompt


def test_prompts_are_structurally_uniform():
    bare = [l.split(":")[0] for l in build_analysis_prompt(BARE).splitlines()]
    full = [l.split(":")[0] for l in build_analysis_prompt(FULL).splitlines()]
    assert bare == full


def test_full_alert_and_instructions():
    prompt = build_analysis_prompt(FULL)
    assert "- Price: $3012.75" in prompt
    assert "- RSI: 71.2" in prompt
    assert "- Volume: 1500" in prompt
    assert "4. Recommended action (buy/sell/hold) with confidence level" in prompt
    assert "7. Reasoning for the recommendation" in prompt
    assert "```json" not in prompt


def test_zero_values_are_not_placeholders():
    alert = CanonicalAlert(symbol="X", price=0, action="buy", timestamp=1, rsi=0, volume=0)
    prompt = build_analysis_prompt(alert)
    assert "- RSI: 0" in prompt
    assert "- Volume: 0" in prompt


def test_structured_trailer_and_messages():
    messages = build_analysis_messages(BARE, structured=True)
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "```json" in messages[1]["content"]
    assert "Confidence: <0-100>%" in messages[1]["content"]


def test_market_block_only_when_requested():
    assert "MARKET DATA" not in build_analysis_prompt(BARE)
    assert "- Spot Price (USD): Not available" in build_analysis_prompt(BARE, include_market=True)


def test_execution_prompt_truncates_reasoning():
    analysis = Analysis(symbol="BTCUSDT", currentPrice=45000, recommendedAction="buy",
                        confidence=88, reasoning="r" * 500, riskLevel="low")
    prompt = build_execution_prompt(analysis)
    assert prompt.startswith("Execute a buy trade for BTCUSDT:")
    assert "- Confidence: 88%" in prompt
    assert prompt.endswith("r" * 200 + "...")


def test_format_number():
    assert format_number(45000.0) == "45000"
    assert format_number(0.00012) == "0.00012"
    assert format_number(-2.5) == "-2.5"
