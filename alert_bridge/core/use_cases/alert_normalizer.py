import time
from typing import Optional, TypeVar

from alert_bridge.core.entities.alert import CanonicalAlert, RawAlert

T = TypeVar("T")


def _coalesce(*values: Optional[T]) -> Optional[T]:
    # None-coalescing only: a 0 price or an empty message is kept as sent
    for value in values:
        if value is not None:
            return value
    return None


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_alert(raw: RawAlert, current_ms: Optional[int] = None) -> CanonicalAlert:
    """
    Maps TradingView's varying field names onto the canonical alert record.
    Pure apart from reading the clock when neither timestamp nor bar_time is set.
    """
    timestamp = _coalesce(raw.timestamp, raw.bar_time)
    if timestamp is None:
        timestamp = current_ms if current_ms is not None else now_ms()

    return CanonicalAlert(
        symbol=raw.symbol,
        price=_coalesce(raw.price, raw.close, 0.0),
        action=raw.action,
        strategy=_coalesce(raw.strategy, raw.alert_name),
        timeframe=raw.timeframe,
        exchange=raw.exchange,
        timestamp=int(timestamp),
        message=raw.message,
        volume=_coalesce(raw.volume, raw.volume_24h),
        rsi=raw.rsi,
        macd=raw.macd,
    )
