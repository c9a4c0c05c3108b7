from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DENOM = 1000

PriceSource = Literal["orderbook", "amm", "lastTrade", "none"]
PRICE_SOURCE_ORDERBOOK: PriceSource = "orderbook"
PRICE_SOURCE_AMM: PriceSource = "amm"
PRICE_SOURCE_LAST_TRADE: PriceSource = "lastTrade"
PRICE_SOURCE_NONE: PriceSource = "none"


class TokenMetadata(BaseModel):
    id: str
    code: str
    name: str
    icon: Optional[str] = None
    denom: int = DEFAULT_DENOM

    model_config = ConfigDict(frozen=True)


class MarketStats(BaseModel):
    id: str
    name: Optional[str] = None
    code: Optional[str] = None
    pair_id: str = ""
    last_price: float = 0.0
    change_daily: float = 0.0
    change_weekly: float = 0.0
    volume_daily: float = 0.0
    volume_weekly: float = 0.0
    high_daily: float = 0.0
    low_daily: float = 0.0
    depth_liquidity: float = 0.0

    model_config = ConfigDict(frozen=True)


class LiquidityPoolInfo(BaseModel):
    asset_id: str
    name: Optional[str] = None
    short_name: Optional[str] = None
    image_url: Optional[str] = None
    pair_id: str = ""
    xch_reserve: float = 0.0
    token_reserve: float = 0.0
    liquidity: float = 0.0

    model_config = ConfigDict(frozen=True)


class LastTradeRecord(BaseModel):
    token_id: str
    price_xch: float
    completed_at: str
    token_symbol: str = ""

    model_config = ConfigDict(frozen=True)


class DashboardToken(BaseModel):
    id: str
    symbol: str
    name: str
    icon_url: str = Field(alias="iconUrl")
    price_xch: float = Field(default=0.0, alias="priceXch")
    price_usd: float = Field(default=0.0, alias="priceUsd")
    change_24h: float = Field(default=0.0, alias="change24h")
    change_7d: float = Field(default=0.0, alias="change7d")
    volume_24h_xch: float = Field(default=0.0, alias="volume24hXch")
    volume_24h_usd: float = Field(default=0.0, alias="volume24hUsd")
    volume_7d_xch: float = Field(default=0.0, alias="volume7dXch")
    volume_7d_usd: float = Field(default=0.0, alias="volume7dUsd")
    liquidity_xch: float = Field(default=0.0, alias="liquidityXch")
    liquidity_usd: float = Field(default=0.0, alias="liquidityUsd")
    high_24h: float = Field(default=0.0, alias="high24h")
    low_24h: float = Field(default=0.0, alias="low24h")
    pair_id: str = Field(default="", alias="pairId")
    last_updated: str = Field(alias="lastUpdated")
    has_market: bool = Field(default=True, alias="hasMarket")
    price_source: PriceSource = Field(alias="priceSource")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class DashboardSnapshot(BaseModel):
    tokens: List[DashboardToken] = Field(default_factory=list)
    fiat_rate: float = Field(alias="fiatRate")
    fetched_at: str = Field(alias="fetchedAt")
    is_stale: bool = Field(default=False, alias="isStale")

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "DEFAULT_DENOM",
    "DashboardSnapshot",
    "DashboardToken",
    "LastTradeRecord",
    "LiquidityPoolInfo",
    "MarketStats",
    "PRICE_SOURCE_AMM",
    "PRICE_SOURCE_LAST_TRADE",
    "PRICE_SOURCE_NONE",
    "PRICE_SOURCE_ORDERBOOK",
    "PriceSource",
    "TokenMetadata",
]
