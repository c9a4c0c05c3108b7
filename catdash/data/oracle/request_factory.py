from __future__ import annotations

from catdash.core.request_spec import RequestSpec

COINGECKO_BASE_URL = "https://api.coingecko.com"
COINGECKO_COIN_ID = "chia"
COINGECKO_VS_CURRENCY = "usd"


class CoinGeckoRequestFactory:
    def __init__(self, base_url: str = COINGECKO_BASE_URL) -> None:
        self.base_url = base_url.rstrip("/")

    def build_simple_price_request(
        self, coin_id: str = COINGECKO_COIN_ID, vs_currency: str = COINGECKO_VS_CURRENCY
    ) -> RequestSpec:
        return RequestSpec(
            method="GET",
            base_url=self.base_url,
            path="/api/v3/simple/price",
            query={"ids": coin_id, "vs_currencies": vs_currency},
            headers={"Accept": "application/json"},
        )


__all__ = ["COINGECKO_BASE_URL", "CoinGeckoRequestFactory"]
