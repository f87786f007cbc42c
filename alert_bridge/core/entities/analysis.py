from pydantic import BaseModel, Field
from typing import List, Literal, Optional

RecommendedAction = Literal["buy", "sell", "hold"]
RiskLevel = Literal["low", "medium", "high"]


class Analysis(BaseModel):
    """
    Trading analysis derived from a CanonicalAlert plus the agent's reply.
    """
    symbol: str
    currentPrice: float
    recommendedAction: RecommendedAction = "hold"
    confidence: int = Field(default=50, ge=0, le=100)
    reasoning: str
    riskLevel: RiskLevel = "medium"
    targetPrice: Optional[float] = None
    stopLoss: Optional[float] = None
    positionSize: Optional[float] = None  # % of portfolio
    timeframe: str = "1h"


class Extraction(BaseModel):
    """
    Fields recovered from agent text. `defaulted` names the fields that
    fell back to the conservative defaults.
    """
    confidence: int = 50
    recommendedAction: RecommendedAction = "hold"
    riskLevel: RiskLevel = "medium"
    targetPrice: Optional[float] = None
    stopLoss: Optional[float] = None
    positionSize: Optional[float] = None
    defaulted: List[str] = Field(default_factory=list)
