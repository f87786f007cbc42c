from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List


class IAgentInvoker(ABC):
    @abstractmethod
    def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """
        Sends role-tagged messages to the agent and yields reply text fragments.
        The iterator is finite and cannot be restarted.
        """
        pass
