from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from catdash.config import config_value
from catdash.core.exceptions import UpstreamBadResponse
from catdash.core.fixtures import fixture_dir, load_fixture
from catdash.core.logging import get_logger
from catdash.core.result import Result
from catdash.data.http import UpstreamHttpClient, resolve_base_url
from catdash.data.numbers import mojos_to_xch, safe_number
from catdash.data.tibetswap.request_factory import TIBETSWAP_BASE_URL, TibetSwapRequestFactory
from catdash.data.tibetswap.schemas import TibetSwapPair
from catdash.data.types import DEFAULT_DENOM, LiquidityPoolInfo

log = get_logger("data.tibetswap")


@dataclass(frozen=True)
class TibetSwapSettings:
    base_url: str = TIBETSWAP_BASE_URL
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "TibetSwapSettings":
        return cls(
            base_url=resolve_base_url("TIBETSWAP_BASE_URL", "tibetswap_base_url", TIBETSWAP_BASE_URL),
            timeout=float(config_value("http.timeout_sec", 10.0)),
        )


def price_from_reserves(xch_reserve: float, token_reserve: float, denom: int = DEFAULT_DENOM) -> float:
    """XCH per token implied by the pool reserves; 0 when the pool holds no tokens."""
    if safe_number(token_reserve) == 0:
        return 0.0
    tokens_in_pool = safe_number(token_reserve) / (denom or DEFAULT_DENOM)
    if tokens_in_pool == 0:
        return 0.0
    return mojos_to_xch(xch_reserve) / tokens_in_pool


def liquidity_from_reserve(xch_reserve: float) -> float:
    # Both sides of the pool are worth roughly the same in XCH.
    return mojos_to_xch(xch_reserve) * 2


def pool_info_from_tibetswap(pair: TibetSwapPair) -> LiquidityPoolInfo:
    return LiquidityPoolInfo(
        asset_id=pair.asset_id,
        name=pair.asset_name,
        short_name=pair.asset_short_name,
        image_url=pair.asset_image_url,
        pair_id=pair.pair_id or pair.launcher_id or "",
        xch_reserve=safe_number(pair.xch_reserve),
        token_reserve=safe_number(pair.token_reserve),
        liquidity=safe_number(pair.liquidity),
    )


def parse_pairs_payload(payload: Any) -> List[LiquidityPoolInfo]:
    if not isinstance(payload, list):
        raise UpstreamBadResponse("TibetSwap pairs response invalid")
    pools: List[LiquidityPoolInfo] = []
    for raw in payload:
        try:
            pools.append(pool_info_from_tibetswap(TibetSwapPair.model_validate(raw)))
        except ValidationError:
            log.debug("Dropping malformed TibetSwap pair")
    return pools


def pools_by_asset(pools: Iterable[LiquidityPoolInfo]) -> Dict[str, LiquidityPoolInfo]:
    # First pair listed for an asset wins.
    by_asset: Dict[str, LiquidityPoolInfo] = {}
    for pool in pools:
        by_asset.setdefault(pool.asset_id, pool)
    return by_asset


class TibetSwapProvider:
    def __init__(
        self, settings: Optional[TibetSwapSettings] = None, http_client: Optional[UpstreamHttpClient] = None
    ) -> None:
        self.settings = settings or TibetSwapSettings()
        self.request_factory = TibetSwapRequestFactory(base_url=self.settings.base_url)
        self._client = http_client or UpstreamHttpClient(
            name="TibetSwap", timeout=self.settings.timeout, max_retries=0
        )
        self._owns_client = http_client is None

    async def __aenter__(self) -> "TibetSwapProvider":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_pairs(self) -> List[LiquidityPoolInfo]:
        payload = await self._client.request(self.request_factory.build_pairs_request())
        pools = parse_pairs_payload(payload)
        log.info(f"Fetched {len(pools)} TibetSwap pairs")
        return pools

    async def fetch_pairs(self) -> Result[List[LiquidityPoolInfo]]:
        return await Result.capture(self.get_pairs())


class MockTibetSwapProvider:
    def __init__(self, fixture_path: Optional[Path] = None, error_mode: Optional[str] = None) -> None:
        self.fixture_dir = fixture_path or fixture_dir("tibetswap")
        self.error_mode = error_mode
        self._pairs = load_fixture(self.fixture_dir, "pairs_success.json")

    async def aclose(self) -> None:
        return None

    async def get_pairs(self) -> List[LiquidityPoolInfo]:
        if self.error_mode == "pairs":
            return parse_pairs_payload(load_fixture(self.fixture_dir, "pairs_error.json"))
        return parse_pairs_payload(self._pairs)

    async def fetch_pairs(self) -> Result[List[LiquidityPoolInfo]]:
        return await Result.capture(self.get_pairs())


__all__ = [
    "MockTibetSwapProvider",
    "TibetSwapProvider",
    "TibetSwapSettings",
    "liquidity_from_reserve",
    "parse_pairs_payload",
    "pool_info_from_tibetswap",
    "pools_by_asset",
    "price_from_reserves",
]
