from catdash.data.tibetswap.provider import (
    MockTibetSwapProvider,
    TibetSwapProvider,
    TibetSwapSettings,
    liquidity_from_reserve,
    pools_by_asset,
    price_from_reserves,
)
from catdash.data.tibetswap.request_factory import TibetSwapRequestFactory

__all__ = [
    "MockTibetSwapProvider",
    "TibetSwapProvider",
    "TibetSwapRequestFactory",
    "TibetSwapSettings",
    "liquidity_from_reserve",
    "pools_by_asset",
    "price_from_reserves",
]
