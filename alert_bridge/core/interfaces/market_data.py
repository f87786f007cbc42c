from abc import ABC, abstractmethod
from typing import Optional

from alert_bridge.core.entities.market import MarketSnapshot


class IMarketData(ABC):
    @abstractmethod
    async def get_snapshot(self, symbol: str) -> Optional[MarketSnapshot]:
        """
        Returns the current quote for a trading symbol, or None if unknown.
        """
        pass
