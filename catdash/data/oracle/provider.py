"""XCH/USD quote resolution.

Live quotes come from CoinGecko first and Dexie second. The last good value
is kept in a ``PriceCache`` owned by the caller; when every live source is
down the stale cached value is served, and with nothing cached the
configured fallback rate is used. ``fetch_quote_fiat_price`` therefore never
reports failure.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from catdash.config import config_value
from catdash.core.fixtures import fixture_dir, load_fixture
from catdash.core.logging import get_logger
from catdash.core.result import CAPTURED_ERRORS, Result
from catdash.data.dexie.request_factory import DEXIE_BASE_URL, DexieRequestFactory
from catdash.data.http import UpstreamHttpClient, resolve_base_url
from catdash.data.numbers import is_number
from catdash.data.oracle.request_factory import COINGECKO_BASE_URL, CoinGeckoRequestFactory
from catdash.data.oracle.schemas import CoinGeckoSimplePrice, DexieXchPrice

log = get_logger("data.oracle")

FALLBACK_XCH_USD = 25.0
CACHE_TTL_SEC = 60.0

Clock = Callable[[], float]


@dataclass
class PriceCache:
    """Last resolved quote; shared by every cycle of one aggregator."""

    ttl_sec: float = CACHE_TTL_SEC
    clock: Clock = time.monotonic
    value: Optional[float] = None
    timestamp: Optional[float] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def is_fresh(self) -> bool:
        if self.value is None or self.timestamp is None:
            return False
        return self.clock() - self.timestamp < self.ttl_sec

    def store(self, value: float) -> None:
        self.value = value
        self.timestamp = self.clock()

    def clear(self) -> None:
        self.value = None
        self.timestamp = None


@dataclass(frozen=True)
class OracleSettings:
    coingecko_base_url: str = COINGECKO_BASE_URL
    dexie_base_url: str = DEXIE_BASE_URL
    timeout: float = 10.0
    cache_ttl_sec: float = CACHE_TTL_SEC
    fallback_xch_usd: float = FALLBACK_XCH_USD

    @classmethod
    def from_env(cls) -> "OracleSettings":
        return cls(
            coingecko_base_url=resolve_base_url("COINGECKO_BASE_URL", "coingecko_base_url", COINGECKO_BASE_URL),
            dexie_base_url=resolve_base_url("DEXIE_BASE_URL", "dexie_base_url", DEXIE_BASE_URL),
            timeout=float(config_value("http.timeout_sec", 10.0)),
            cache_ttl_sec=float(config_value("oracle.cache_ttl_sec", CACHE_TTL_SEC)),
            fallback_xch_usd=float(config_value("oracle.fallback_xch_usd", FALLBACK_XCH_USD)),
        )


def positive_quote(value: Any) -> Optional[float]:
    if not is_number(value) or not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def quote_from_coingecko(payload: Any) -> Optional[float]:
    try:
        parsed = CoinGeckoSimplePrice.model_validate(payload)
    except ValidationError:
        return None
    return positive_quote(parsed.chia.usd) if parsed.chia else None


def quote_from_dexie(payload: Any) -> Optional[float]:
    try:
        parsed = DexieXchPrice.model_validate(payload)
    except ValidationError:
        return None
    return positive_quote(parsed.usd)


class PriceOracleBase:
    def __init__(self, cache: Optional[PriceCache] = None, fallback_xch_usd: float = FALLBACK_XCH_USD) -> None:
        self.cache = cache if cache is not None else PriceCache()
        self.fallback_xch_usd = fallback_xch_usd

    async def get_coingecko_payload(self) -> Any:
        raise NotImplementedError

    async def get_dexie_payload(self) -> Any:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None

    async def fetch_quote_fiat_price(self) -> Result[float]:
        async with self.cache.lock:
            return Result.ok(await self._resolve())

    async def _resolve(self) -> float:
        if self.cache.is_fresh():
            return self.cache.value  # type: ignore[return-value]

        for source, fetch, extract in (
            ("CoinGecko", self.get_coingecko_payload, quote_from_coingecko),
            ("Dexie", self.get_dexie_payload, quote_from_dexie),
        ):
            try:
                quote = extract(await fetch())
            except CAPTURED_ERRORS as exc:
                log.debug(f"{source} XCH/USD quote unavailable: {exc!r}")
                continue
            if quote is not None:
                self.cache.store(quote)
                return quote
            log.debug(f"{source} XCH/USD quote missing or not positive")

        if self.cache.value is not None:
            log.warning(f"Using expired cached XCH/USD price {self.cache.value}")
            return self.cache.value
        log.warning(f"Using fallback XCH/USD price {self.fallback_xch_usd}")
        return self.fallback_xch_usd


class PriceOracle(PriceOracleBase):
    def __init__(
        self,
        cache: Optional[PriceCache] = None,
        settings: Optional[OracleSettings] = None,
        http_client: Optional[UpstreamHttpClient] = None,
    ) -> None:
        self.settings = settings or OracleSettings()
        super().__init__(
            cache=cache if cache is not None else PriceCache(ttl_sec=self.settings.cache_ttl_sec),
            fallback_xch_usd=self.settings.fallback_xch_usd,
        )
        self.coingecko_requests = CoinGeckoRequestFactory(base_url=self.settings.coingecko_base_url)
        self.dexie_requests = DexieRequestFactory(base_url=self.settings.dexie_base_url)
        self._client = http_client or UpstreamHttpClient(name="Price oracle", timeout=self.settings.timeout)
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_coingecko_payload(self) -> Any:
        return await self._client.request(self.coingecko_requests.build_simple_price_request())

    async def get_dexie_payload(self) -> Any:
        return await self._client.request(self.dexie_requests.build_xch_price_request())


class MockPriceOracle(PriceOracleBase):
    def __init__(
        self,
        cache: Optional[PriceCache] = None,
        fixture_path: Optional[Path] = None,
        error_mode: Optional[str] = None,
        fallback_xch_usd: float = FALLBACK_XCH_USD,
    ) -> None:
        super().__init__(cache=cache, fallback_xch_usd=fallback_xch_usd)
        self.fixture_dir = fixture_path or fixture_dir("oracle")
        self.error_mode = error_mode

    async def get_coingecko_payload(self) -> Any:
        if self.error_mode in {"coingecko", "all"}:
            return {}
        return load_fixture(self.fixture_dir, "coingecko_success.json")

    async def get_dexie_payload(self) -> Any:
        if self.error_mode == "all":
            return {}
        return load_fixture(self.fixture_dir, "dexie_price_success.json")


__all__ = [
    "CACHE_TTL_SEC",
    "FALLBACK_XCH_USD",
    "MockPriceOracle",
    "OracleSettings",
    "PriceCache",
    "PriceOracle",
    "PriceOracleBase",
    "positive_quote",
    "quote_from_coingecko",
    "quote_from_dexie",
]
