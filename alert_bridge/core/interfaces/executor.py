from abc import ABC, abstractmethod

from alert_bridge.core.entities.analysis import Analysis
from alert_bridge.core.entities.execution import ExecutionResult


class ITradeExecutor(ABC):
    @abstractmethod
    async def execute(self, analysis: Analysis) -> ExecutionResult:
        """
        Submits the recommended trade. Raises TradeExecutionError on failure.
        """
        pass
