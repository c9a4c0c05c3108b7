from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DexieToken(BaseModel):
    id: str
    code: str
    name: str
    denom: Optional[int] = None
    icon: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class DexieTokensResponse(BaseModel):
    success: bool
    tokens: List[Dict[str, Any]]


class DexieChange(BaseModel):
    daily: Optional[float] = None
    weekly: Optional[float] = None
    monthly: Optional[float] = None
    yearly: Optional[float] = None


class DexieVolume(BaseModel):
    daily: Optional[float] = None
    weekly: Optional[float] = None
    monthly: Optional[float] = None
    yearly: Optional[float] = None


class DexieLastPrice(BaseModel):
    price: Optional[float] = None
    date: Optional[str] = None
    change: Optional[DexieChange] = None

    model_config = ConfigDict(extra="allow")


class DexieDailyValue(BaseModel):
    daily: Optional[float] = None


class DexiePrices(BaseModel):
    last: Optional[DexieLastPrice] = None
    high: Optional[DexieDailyValue] = None
    low: Optional[DexieDailyValue] = None

    model_config = ConfigDict(extra="allow")


class DexieLiquidity(BaseModel):
    ask: List[float] = Field(default_factory=list)
    bid: List[float] = Field(default_factory=list)


class DexieMarket(BaseModel):
    id: str
    name: Optional[str] = None
    code: Optional[str] = None
    pair_id: Optional[str] = None
    volume: Dict[str, DexieVolume] = Field(default_factory=dict)
    prices: Optional[DexiePrices] = None
    liquidity: Optional[DexieLiquidity] = None

    model_config = ConfigDict(extra="allow")


class DexieMarketGroups(BaseModel):
    xch: List[Dict[str, Any]]

    model_config = ConfigDict(extra="allow")


class DexieMarketsResponse(BaseModel):
    success: bool
    markets: DexieMarketGroups


class DexieOfferAsset(BaseModel):
    id: str
    code: Optional[str] = None
    name: Optional[str] = None
    amount: float = 0.0

    model_config = ConfigDict(extra="allow")


class DexieKnownTaker(BaseModel):
    name: Optional[str] = None
    source: Optional[str] = None


class DexieOffer(BaseModel):
    id: str
    trade_id: Optional[str] = None
    status: Optional[int] = None
    price: Optional[float] = None
    date_found: Optional[str] = None
    date_completed: Optional[str] = None
    date_pending: Optional[str] = None
    offered: List[DexieOfferAsset] = Field(default_factory=list)
    requested: List[DexieOfferAsset] = Field(default_factory=list)
    known_taker: Optional[DexieKnownTaker] = None
    fees: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class DexieOffersResponse(BaseModel):
    success: Optional[bool] = None
    offers: List[DexieOffer] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


__all__ = [
    "DexieKnownTaker",
    "DexieLiquidity",
    "DexieMarket",
    "DexieMarketGroups",
    "DexieMarketsResponse",
    "DexieOffer",
    "DexieOfferAsset",
    "DexieOffersResponse",
    "DexiePrices",
    "DexieToken",
    "DexieTokensResponse",
]
