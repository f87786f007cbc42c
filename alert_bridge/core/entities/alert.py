"""
Alert entities for the TradingView bridge.

RawAlert is the validated wire payload; CanonicalAlert is the normalised
record the rest of the pipeline works with.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

AlertAction = Literal["buy", "sell", "alert"]


class RawAlert(BaseModel):
    """
    TradingView webhook payload as accepted on the wire.
    Unknown keys are dropped. Known keys are checked strictly, so "45000"
    or true never pass as a number.
    """
    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        str_strip_whitespace=True,
        allow_inf_nan=False,
        json_schema_extra={
            "example": {
                "symbol": "BTCUSDT",
                "price": 45000,
                "action": "buy",
                "timeframe": "1h",
                "exchange": "binance",
                "message": "RSI below 30, potential buy signal",
            }
        },
    )

    symbol: str = Field(min_length=1)
    price: float
    action: AlertAction
    strategy: Optional[str] = None
    timeframe: Optional[str] = None
    exchange: Optional[str] = None
    timestamp: Optional[float] = None
    message: Optional[str] = None
    volume: Optional[float] = None
    rsi: Optional[float] = None
    macd: Optional[str] = None

    # Extra fields TradingView templates commonly send
    alert_name: Optional[str] = None
    chart_time: Optional[float] = None
    bar_index: Optional[float] = None
    bar_time: Optional[float] = None
    close: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    volume_24h: Optional[float] = None


class CanonicalAlert(BaseModel):
    """
    Normalised alert, produced once per request and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    action: AlertAction
    strategy: Optional[str] = None
    timeframe: Optional[str] = None
    exchange: Optional[str] = None
    timestamp: int  # epoch ms
    message: Optional[str] = None
    volume: Optional[float] = None
    rsi: Optional[float] = None
    macd: Optional[str] = None
