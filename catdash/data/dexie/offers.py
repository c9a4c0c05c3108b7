"""Per-token offer history built from Dexie offers in both trade directions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from catdash.data.dexie.schemas import DexieOffer, DexieOfferAsset

QUOTE_ASSET_ID = "xch"
MAX_HISTORY_ITEMS = 50

OfferStatus = Literal["completed", "active", "pending", "cancelled"]

_STATUS_MAP: Dict[int, OfferStatus] = {
    0: "active",
    1: "pending",
    2: "cancelled",
    3: "cancelled",
    4: "completed",
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class OfferHistoryItem(BaseModel):
    id: str
    trade_id: str = Field(default="", alias="tradeId")
    type: Literal["buy", "sell"]
    status: OfferStatus
    price: float = 0.0
    amount_token: float = Field(default=0.0, alias="amountToken")
    amount_xch: float = Field(default=0.0, alias="amountXch")
    token_symbol: str = Field(default="", alias="tokenSymbol")
    date_created: Optional[str] = Field(default=None, alias="dateCreated")
    date_completed: Optional[str] = Field(default=None, alias="dateCompleted")
    taker: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class LastTradePrice(BaseModel):
    price: float
    price_xch: float = Field(alias="priceXch")
    date: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class OfferHistory(BaseModel):
    offers: List[OfferHistoryItem] = Field(default_factory=list)
    completed_count: int = Field(default=0, alias="completedCount")
    active_count: int = Field(default=0, alias="activeCount")
    last_trade_price: Optional[LastTradePrice] = Field(default=None, alias="lastTradePrice")

    model_config = ConfigDict(populate_by_name=True)


def parse_offer_date(value: Optional[str]) -> datetime:
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _find(assets: List[DexieOfferAsset], asset_id: str) -> Optional[DexieOfferAsset]:
    return next((asset for asset in assets if asset.id == asset_id), None)


def offer_history_item_from_dexie(offer: DexieOffer, token_id: str) -> OfferHistoryItem:
    token_offered = any(asset.id == token_id for asset in offer.offered)
    if token_offered:
        token_asset = _find(offer.offered, token_id)
        xch_asset = _find(offer.requested, QUOTE_ASSET_ID)
    else:
        token_asset = _find(offer.requested, token_id)
        xch_asset = _find(offer.offered, QUOTE_ASSET_ID)
    return OfferHistoryItem(
        id=offer.id,
        trade_id=offer.trade_id or "",
        type="sell" if token_offered else "buy",
        status=_STATUS_MAP.get(offer.status if offer.status is not None else 0, "active"),
        price=offer.price or 0.0,
        amount_token=token_asset.amount if token_asset else 0.0,
        amount_xch=xch_asset.amount if xch_asset else 0.0,
        token_symbol=(token_asset.code or "") if token_asset else "",
        date_created=offer.date_found,
        date_completed=offer.date_completed,
        taker=offer.known_taker.name if offer.known_taker and offer.known_taker.name else None,
    )


def build_offer_history(
    token_id: str, completed_offers: List[DexieOffer], active_offers: List[DexieOffer]
) -> OfferHistory:
    completed = [offer_history_item_from_dexie(offer, token_id) for offer in completed_offers]
    active = [offer_history_item_from_dexie(offer, token_id) for offer in active_offers]

    combined = sorted(
        completed + active,
        key=lambda item: parse_offer_date(item.date_completed or item.date_created),
        reverse=True,
    )

    last_trade: Optional[LastTradePrice] = None
    for item in completed:
        if item.status == "completed" and item.price > 0 and item.amount_token > 0:
            last_trade = LastTradePrice(
                price=item.price,
                price_xch=item.amount_xch / item.amount_token,
                date=item.date_completed,
            )
            break

    return OfferHistory(
        offers=combined[:MAX_HISTORY_ITEMS],
        completed_count=len(completed),
        active_count=len(active),
        last_trade_price=last_trade,
    )


__all__ = [
    "LastTradePrice",
    "OfferHistory",
    "OfferHistoryItem",
    "build_offer_history",
    "offer_history_item_from_dexie",
    "parse_offer_date",
]
