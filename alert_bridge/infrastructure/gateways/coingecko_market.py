import logging
from typing import Dict, Optional

import httpx

from alert_bridge.core.entities.market import MarketSnapshot
from alert_bridge.core.exceptions import CollaboratorError
from alert_bridge.core.interfaces.market_data import IMarketData
from alert_bridge.infrastructure.gateways.common import base_asset, excerpt

logger = logging.getLogger(__name__)

# Tickers whose CoinGecko id is not simply the lower-cased ticker
COIN_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "LINK": "chainlink",
    "LTC": "litecoin",
    "ARB": "arbitrum",
    "OP": "optimism",
}


def coin_id_for(symbol: str) -> str:
    asset = base_asset(symbol)
    return COIN_IDS.get(asset, asset.lower())


class CoinGeckoMarketData(IMarketData):
    """
    Spot quotes from CoinGecko's /simple/price endpoint.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout_s: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_s)
        self.transport = transport

    async def get_snapshot(self, symbol: str) -> Optional[MarketSnapshot]:
        coin_id = coin_id_for(symbol)
        params = {
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_24hr_vol": "true",
        }
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/simple/price", params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(
                f"CoinGecko API error: {e.response.status_code} {excerpt(e.response.text)!r}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError(f"CoinGecko request failed: {e}") from e

        quote = data.get(coin_id) if isinstance(data, dict) else None
        if not quote or "usd" not in quote:
            logger.info(f"No CoinGecko quote for {symbol} (id={coin_id})")
            return None

        return MarketSnapshot(
            symbol=symbol,
            priceUsd=float(quote["usd"]),
            change24hPct=quote.get("usd_24h_change"),
            volume24hUsd=quote.get("usd_24h_vol"),
        )
