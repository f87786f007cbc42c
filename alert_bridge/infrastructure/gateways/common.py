"""Helpers shared by the HTTP gateways."""
import re

QUOTE_SUFFIXES = ("USDT", "USDC", "BUSD", "USD", "PERP")


def base_asset(symbol: str) -> str:
    """BTCUSDT -> BTC, ETH/USD -> ETH, BINANCE:SOLUSDT -> SOL."""
    s = symbol.upper().split(":")[-1].replace("/", "").replace("-", "")
    for suffix in QUOTE_SUFFIXES:
        if s.endswith(suffix) and len(s) > len(suffix):
            return s[: -len(suffix)]
    return s


def excerpt(raw_text: str, limit: int = 500) -> str:
    """Collapses whitespace and truncates a response body for error messages."""
    compact = re.sub(r"\s+", " ", raw_text).strip()
    if not compact:
        return "<empty>"
    return compact[:limit]
