from pydantic import BaseModel
from typing import Optional


class MarketSnapshot(BaseModel):
    """
    Spot quote from the price-data provider, used to enrich the prompt.
    """
    symbol: str
    priceUsd: float
    change24hPct: Optional[float] = None
    volume24hUsd: Optional[float] = None
