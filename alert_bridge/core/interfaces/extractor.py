from abc import ABC, abstractmethod

from alert_bridge.core.entities.analysis import Extraction


class IResponseExtractor(ABC):
    @abstractmethod
    def extract(self, text: str) -> Extraction:
        """
        Recovers confidence, action and risk level from agent text.
        Must never raise on unparseable text; missing fields take defaults.
        """
        pass
