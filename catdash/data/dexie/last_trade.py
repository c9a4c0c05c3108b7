"""Last completed trade price per token, for tokens with no live market or pool."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from catdash.core.logging import get_logger
from catdash.core.result import Result
from catdash.data.dexie.offers import QUOTE_ASSET_ID
from catdash.data.dexie.request_factory import MAX_OFFERS_PAGE_SIZE, OFFER_STATUS_COMPLETED
from catdash.data.dexie.schemas import DexieOffer
from catdash.data.numbers import safe_number
from catdash.data.types import LastTradeRecord

log = get_logger("data.last_trade")


class OffersProvider(Protocol):
    async def get_offers(
        self,
        status: int = OFFER_STATUS_COMPLETED,
        page_size: int = MAX_OFFERS_PAGE_SIZE,
        offered: Optional[str] = None,
        requested: Optional[str] = None,
    ) -> List[DexieOffer]:
        ...


def last_trade_from_offer(offer: DexieOffer) -> Optional[LastTradeRecord]:
    if not offer.date_completed:
        return None
    legs = list(offer.offered) + list(offer.requested)
    quote_legs = [asset for asset in legs if asset.id == QUOTE_ASSET_ID]
    token_legs = [asset for asset in legs if asset.id != QUOTE_ASSET_ID]
    if len(quote_legs) != 1 or len(token_legs) != 1:
        return None
    quote_amount = safe_number(quote_legs[0].amount)
    token_amount = safe_number(token_legs[0].amount)
    if quote_amount <= 0 or token_amount <= 0:
        return None
    return LastTradeRecord(
        token_id=token_legs[0].id,
        price_xch=quote_amount / token_amount,
        completed_at=offer.date_completed,
        token_symbol=token_legs[0].code or "",
    )


def last_trade_prices_from_offers(offers: Iterable[DexieOffer]) -> Dict[str, LastTradeRecord]:
    # Offers arrive newest first, so the first record per token wins.
    records: Dict[str, LastTradeRecord] = {}
    for offer in offers:
        record = last_trade_from_offer(offer)
        if record is None or record.token_id in records:
            continue
        records[record.token_id] = record
    return records


class LastTradeSource:
    def __init__(self, provider: OffersProvider, page_size: int = MAX_OFFERS_PAGE_SIZE) -> None:
        self.provider = provider
        self.page_size = min(max(1, page_size), MAX_OFFERS_PAGE_SIZE)

    async def get_last_trade_prices(self) -> Dict[str, LastTradeRecord]:
        offers = await self.provider.get_offers(status=OFFER_STATUS_COMPLETED, page_size=self.page_size)
        records = last_trade_prices_from_offers(offers)
        log.info(f"Derived last-trade prices for {len(records)} tokens from {len(offers)} offers")
        return records

    async def fetch_last_trade_prices(self) -> Result[Dict[str, LastTradeRecord]]:
        return await Result.capture(self.get_last_trade_prices())


__all__ = [
    "LastTradeSource",
    "OffersProvider",
    "last_trade_from_offer",
    "last_trade_prices_from_offers",
]
