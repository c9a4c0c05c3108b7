from __future__ import annotations

from typing import Any, Dict, Optional

from catdash.core.request_spec import RequestSpec

DEXIE_BASE_URL = "https://api.dexie.space/v1"
MAX_OFFERS_PAGE_SIZE = 200

OFFER_STATUS_ACTIVE = 0
OFFER_STATUS_PENDING = 1
OFFER_STATUS_CANCELLING = 2
OFFER_STATUS_CANCELLED = 3
OFFER_STATUS_COMPLETED = 4
OFFER_STATUSES = {
    OFFER_STATUS_ACTIVE,
    OFFER_STATUS_PENDING,
    OFFER_STATUS_CANCELLING,
    OFFER_STATUS_CANCELLED,
    OFFER_STATUS_COMPLETED,
}


class DexieRequestError(ValueError):
    pass


class DexieRequestFactory:
    def __init__(self, base_url: str = DEXIE_BASE_URL) -> None:
        self.base_url = base_url.rstrip("/")

    def build_tokens_request(self) -> RequestSpec:
        return self._get("/tokens")

    def build_markets_request(self) -> RequestSpec:
        return self._get("/markets")

    def build_offers_request(
        self,
        status: int = OFFER_STATUS_COMPLETED,
        page_size: int = MAX_OFFERS_PAGE_SIZE,
        offered: Optional[str] = None,
        requested: Optional[str] = None,
    ) -> RequestSpec:
        if status not in OFFER_STATUSES:
            raise DexieRequestError(f"Unknown offer status: {status}")
        if page_size < 1 or page_size > MAX_OFFERS_PAGE_SIZE:
            raise DexieRequestError(f"page_size must be between 1 and {MAX_OFFERS_PAGE_SIZE}")
        query: Dict[str, Any] = {"status": int(status), "page_size": int(page_size)}
        if offered is not None:
            query["offered"] = offered
        if requested is not None:
            query["requested"] = requested
        return self._get("/offers", query)

    def build_xch_price_request(self) -> RequestSpec:
        return self._get("/prices/xch")

    def _get(self, path: str, query: Optional[Dict[str, Any]] = None) -> RequestSpec:
        return RequestSpec(
            method="GET",
            base_url=self.base_url,
            path=path,
            query=query or {},
            headers={"Accept": "application/json"},
        )


__all__ = [
    "DEXIE_BASE_URL",
    "DexieRequestError",
    "DexieRequestFactory",
    "MAX_OFFERS_PAGE_SIZE",
    "OFFER_STATUS_ACTIVE",
    "OFFER_STATUS_COMPLETED",
]
