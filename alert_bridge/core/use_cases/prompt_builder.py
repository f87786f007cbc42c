from typing import Dict, List, Optional

from alert_bridge.core.entities.alert import CanonicalAlert
from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.market import MarketSnapshot

SYSTEM_INSTRUCTIONS = """You are a crypto trading assistant that provides accurate crypto trading information and helps users make trading decisions.

For every alert you receive:
- Summarise the current state of the coin and the market around it.
- Provide a trading strategy and a risk assessment.
- Provide entry, target and stop levels where they apply.
- Be explicit about your confidence. Never invent data you were not given."""

ANALYSIS_REQUEST = """Please provide a comprehensive analysis including:
1. Current market sentiment for this symbol
2. Technical analysis based on the alert data
3. Risk assessment
4. Recommended action (buy/sell/hold) with confidence level
5. Target price and stop loss if applicable
6. Position sizing recommendation
7. Reasoning for the recommendation

Format your response as a structured analysis that can be used for automated trading decisions."""

STRUCTURED_TRAILER = """
End your answer with these three lines, exactly in this form:
Recommended Action: <buy|sell|hold>
Confidence: <0-100>%
Risk Level: <low|medium|high>

Then add a fenced JSON block with your verdict:
```json
{"recommendedAction": "buy|sell|hold", "confidence": 0, "riskLevel": "low|medium|high", "targetPrice": null, "stopLoss": null, "positionSize": null}
```
positionSize is the percentage of the portfolio to commit."""


def format_number(value: float) -> str:
    """Renders 45000.0 as 45000 and keeps real decimals."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _or(value, placeholder: str) -> str:
    if value is None or value == "":
        return placeholder
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def build_analysis_prompt(
    alert: CanonicalAlert,
    market: Optional[MarketSnapshot] = None,
    include_market: bool = False,
    structured: bool = False,
) -> str:
    """
    Renders the alert into the analysis prompt. Every field is always present;
    missing optional values render as explicit placeholders.
    """
    lines = [
        "Analyze this TradingView alert and provide a detailed trading recommendation:",
        "",
        "ALERT DATA:",
        f"- Symbol: {alert.symbol}",
        f"- Price: ${format_number(alert.price)}",
        f"- Action: {alert.action}",
        f"- Strategy: {_or(alert.strategy, 'Not specified')}",
        f"- Timeframe: {_or(alert.timeframe, 'Not specified')}",
        f"- Exchange: {_or(alert.exchange, 'Not specified')}",
        f"- Volume: {_or(alert.volume, 'Not available')}",
        f"- RSI: {_or(alert.rsi, 'Not available')}",
        f"- MACD: {_or(alert.macd, 'Not available')}",
        f"- Message: {_or(alert.message, 'No additional message')}",
    ]

    if include_market or market is not None:
        lines += [
            "",
            "MARKET DATA:",
            f"- Spot Price (USD): {_or(market.priceUsd if market else None, 'Not available')}",
            f"- 24h Change (%): {_or(market.change24hPct if market else None, 'Not available')}",
            f"- 24h Volume (USD): {_or(market.volume24hUsd if market else None, 'Not available')}",
        ]

    prompt = "\n".join(lines) + "\n\n" + ANALYSIS_REQUEST
    if structured:
        prompt += "\n" + STRUCTURED_TRAILER
    return prompt


def build_analysis_messages(
    alert: CanonicalAlert,
    market: Optional[MarketSnapshot] = None,
    include_market: bool = False,
    structured: bool = False,
) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_INSTRUCTIONS},
        {
            "role": "user",
            "content": build_analysis_prompt(alert, market, include_market, structured),
        },
    ]


def build_execution_prompt(analysis: Analysis) -> str:
    """Summary handed to the execution provider as the trade reason."""
    reasoning = analysis.reasoning[:200]
    return (
        f"Execute a {analysis.recommendedAction} trade for {analysis.symbol}:\n\n"
        "Analysis Summary:\n"
        f"- Symbol: {analysis.symbol}\n"
        f"- Current Price: ${format_number(analysis.currentPrice)}\n"
        f"- Action: {analysis.recommendedAction}\n"
        f"- Confidence: {analysis.confidence}%\n"
        f"- Risk Level: {analysis.riskLevel}\n"
        f"- Reasoning: {reasoning}..."
    )
