import asyncio

import httpx
import pytest

from catdash.data.http import UpstreamHttpClient
from catdash.data.oracle.provider import (
    FALLBACK_XCH_USD,
    MockPriceOracle,
    OracleSettings,
    PriceCache,
    PriceOracle,
    quote_from_coingecko,
    quote_from_dexie,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _oracle(handler, cache=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = OracleSettings(coingecko_base_url="https://cg.test", dexie_base_url="https://dexie.test/v1")
    return PriceOracle(cache=cache, settings=settings, http_client=UpstreamHttpClient(async_client=client))


def _routes(coingecko=None, dexie=None, counter=None):
    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if counter is not None:
            counter[host] = counter.get(host, 0) + 1
        body = coingecko if host == "cg.test" else dexie
        if body is None:
            return httpx.Response(500)
        return httpx.Response(200, json=body)

    return handler


def test_quote_extractors():
    assert quote_from_coingecko({"chia": {"usd": 18.2}}) == 18.2
    assert quote_from_coingecko({"chia": {"usd": 0}}) is None
    assert quote_from_coingecko({"chia": {"usd": "18"}}) is None
    assert quote_from_coingecko({"bitcoin": {"usd": 1}}) is None
    assert quote_from_coingecko(["chia"]) is None
    assert quote_from_dexie({"usd": 19}) == 19.0
    assert quote_from_dexie({"usd": -1}) is None


def test_coingecko_first():
    counter = {}
    oracle = _oracle(_routes({"chia": {"usd": 30.0}}, {"usd": 20.0}, counter))
    result = asyncio.run(oracle.fetch_quote_fiat_price())
    assert result.success and result.data == 30.0
    assert counter == {"cg.test": 1}
    assert oracle.cache.value == 30.0


def test_dexie_when_coingecko_fails():
    oracle = _oracle(_routes(None, {"usd": 20.0}))
    assert asyncio.run(oracle.fetch_quote_fiat_price()).data == 20.0


def test_non_positive_live_value_falls_through():
    oracle = _oracle(_routes({"chia": {"usd": 0}}, {"usd": 21.5}))
    assert asyncio.run(oracle.fetch_quote_fiat_price()).data == 21.5


def test_fallback_when_everything_fails_and_no_cache():
    oracle = _oracle(_routes(None, None))
    result = asyncio.run(oracle.fetch_quote_fiat_price())
    assert result.success
    assert result.data == FALLBACK_XCH_USD == 25.0
    assert oracle.cache.value is None


def test_fresh_cache_skips_network():
    clock = FakeClock()
    cache = PriceCache(ttl_sec=60, clock=clock)
    cache.store(31.0)
    counter = {}
    oracle = _oracle(_routes({"chia": {"usd": 40.0}}, None, counter), cache=cache)
    clock.now += 59
    assert asyncio.run(oracle.fetch_quote_fiat_price()).data == 31.0
    assert counter == {}


def test_expired_cache_refreshes_then_serves_stale_on_outage():
    clock = FakeClock()
    cache = PriceCache(ttl_sec=60, clock=clock)
    cache.store(31.0)
    clock.now += 61
    refreshed = _oracle(_routes({"chia": {"usd": 33.0}}, None), cache=cache)
    assert asyncio.run(refreshed.fetch_quote_fiat_price()).data == 33.0

    clock.now += 61
    down = _oracle(_routes(None, None), cache=cache)
    result = asyncio.run(down.fetch_quote_fiat_price())
    assert result.success and result.data == 33.0


def test_concurrent_callers_resolve_once():
    counter = {}
    oracle = _oracle(_routes({"chia": {"usd": 27.0}}, None, counter))

    async def run():
        return await asyncio.gather(*(oracle.fetch_quote_fiat_price() for _ in range(5)))

    results = asyncio.run(run())
    assert [r.data for r in results] == [27.0] * 5
    assert counter == {"cg.test": 1}


def test_mock_oracle_modes():
    assert asyncio.run(MockPriceOracle().fetch_quote_fiat_price()).data == 25.5
    assert asyncio.run(MockPriceOracle(error_mode="coingecko").fetch_quote_fiat_price()).data == 24.75
    assert asyncio.run(MockPriceOracle(error_mode="all").fetch_quote_fiat_price()).data == FALLBACK_XCH_USD


def test_settings_from_config():
    settings = OracleSettings.from_env()
    assert settings.cache_ttl_sec == 60
    assert settings.fallback_xch_usd == pytest.approx(25.0)
