"""Server-side chart seed: the current price plus the 24h range.

Longer price history is accumulated by the client from polling snapshots.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from catdash.data.types import MarketStats
from catdash.merge import utc_now_iso

CHART_TIMEFRAMES = ("1D", "7D", "1M", "1Y", "ALL")
MIN_TOKEN_ID_LENGTH = 10


class ChartPoint(BaseModel):
    timestamp: str
    price: float
    volume: Optional[float] = None


class ChartData(BaseModel):
    token_id: str = Field(alias="tokenId")
    timeframe: str
    data_points: List[ChartPoint] = Field(alias="dataPoints")
    fetched_at: str = Field(alias="fetchedAt")

    model_config = ConfigDict(populate_by_name=True)


def is_valid_timeframe(value: Optional[str]) -> bool:
    return value in CHART_TIMEFRAMES


def is_valid_token_id(value: Optional[str]) -> bool:
    return bool(value) and len(value) >= MIN_TOKEN_ID_LENGTH


def build_chart_seed(market: MarketStats, timeframe: str = "1D", now: Optional[datetime] = None) -> ChartData:
    if not is_valid_timeframe(timeframe):
        raise ValueError(f"Invalid timeframe. Must be one of: {', '.join(CHART_TIMEFRAMES)}")
    now = now or datetime.now(timezone.utc)
    points: List[ChartPoint] = []
    if market.high_daily and market.low_daily:
        points.append(ChartPoint(timestamp=utc_now_iso(now - timedelta(hours=24)), price=market.low_daily))
        points.append(ChartPoint(timestamp=utc_now_iso(now - timedelta(hours=12)), price=market.high_daily))
    points.append(ChartPoint(timestamp=utc_now_iso(now), price=market.last_price, volume=market.volume_daily))
    return ChartData(token_id=market.id, timeframe=timeframe, data_points=points, fetched_at=utc_now_iso(now))


__all__ = [
    "CHART_TIMEFRAMES",
    "ChartData",
    "ChartPoint",
    "build_chart_seed",
    "is_valid_timeframe",
    "is_valid_token_id",
]
