import asyncio

import httpx
import pytest

from catdash.core.exceptions import ProviderMisconfigured, UpstreamBadResponse
from catdash.data.dexie.provider import (
    DexieProvider,
    DexieSettings,
    MockDexieProvider,
    is_valid_market,
    is_valid_token_metadata,
    market_stats_from_dexie,
    parse_markets_payload,
    parse_tokens_payload,
)
from catdash.data.dexie.schemas import DexieMarket
from catdash.data.http import UpstreamHttpClient

SBX = "a1" * 32
GHOST = "9a" * 32


def test_mock_provider_tokens_drop_invalid_entries():
    provider = MockDexieProvider()
    result = asyncio.run(provider.fetch_tokens())
    assert result.success
    codes = [token.code for token in result.data]
    assert codes == ["SBX", "DBX", "HOA", "MWIF", "TVL", "BEPE"]
    assert all(token.denom == 1000 for token in result.data)
    assert result.data[1].icon is None


def test_mock_provider_markets_drop_invalid_entries():
    result = asyncio.run(MockDexieProvider().fetch_markets())
    assert result.success
    assert [market.code for market in result.data] == ["DBX", "SBX", "HOA", "GHOST"]
    sbx = result.data[1]
    assert sbx.last_price == pytest.approx(0.00002)
    assert sbx.change_daily == pytest.approx(0.05)
    assert sbx.volume_weekly == pytest.approx(900.0)
    assert sbx.depth_liquidity == pytest.approx(75.0)
    assert sbx.pair_id == "pair-sbx"
    ghost = result.data[3]
    assert ghost.change_weekly == 0.0
    assert ghost.depth_liquidity == 0.0


@pytest.mark.parametrize("mode,method", [("tokens", "fetch_tokens"), ("markets", "fetch_markets")])
def test_mock_provider_error_modes_fail(mode, method):
    provider = MockDexieProvider(error_mode=mode)
    result = asyncio.run(getattr(provider, method)())
    assert not result.success
    assert isinstance(result.error, UpstreamBadResponse)


def test_fetch_all_settles_both_sides():
    data = asyncio.run(MockDexieProvider(error_mode="markets").fetch_all())
    assert data.tokens.success
    assert not data.markets.success


def test_get_market_by_id():
    provider = MockDexieProvider()
    market = asyncio.run(provider.get_market(GHOST))
    assert market is not None and market.code == "GHOST"
    assert asyncio.run(provider.get_market("missing-token-id")) is None


def test_validation_predicates():
    assert is_valid_token_metadata({"id": "x", "code": "X", "name": "Ex"})
    assert not is_valid_token_metadata({"id": "x", "code": " ", "name": "Ex"})
    assert not is_valid_token_metadata({"id": "x", "code": "X"})
    assert not is_valid_token_metadata(["x"])
    assert is_valid_market({"id": "m", "prices": {"last": {"price": 0}}})
    assert not is_valid_market({"id": "m", "prices": {"last": {"price": "1.0"}}})
    assert not is_valid_market({"id": "m", "prices": {"last": {"price": True}}})
    assert not is_valid_market({"id": "m", "prices": {}})
    assert not is_valid_market({"prices": {"last": {"price": 1.0}}})


def test_market_stats_use_deepest_level_per_side():
    market = DexieMarket.model_validate(
        {
            "id": "A",
            "prices": {"last": {"price": 0.5, "change": {"daily": 0.02, "weekly": -0.01}}},
            "volume": {"xch": {"daily": 100, "weekly": 500}},
            "liquidity": {"ask": [10], "bid": [5]},
        }
    )
    stats = market_stats_from_dexie(market)
    assert stats.depth_liquidity == 15
    assert stats.volume_daily == 100
    assert stats.high_daily == 0.0


@pytest.mark.parametrize(
    "payload",
    [
        {"success": False, "tokens": []},
        {"success": True},
        {"success": True, "tokens": "nope"},
        [],
    ],
)
def test_malformed_token_envelopes_raise(payload):
    with pytest.raises(UpstreamBadResponse):
        parse_tokens_payload(payload)


def test_malformed_market_envelope_raises():
    with pytest.raises(UpstreamBadResponse):
        parse_markets_payload({"success": True, "markets": {"usd": []}})


def test_empty_envelopes_are_valid_empty_data():
    assert parse_tokens_payload({"success": True, "tokens": []}) == []
    assert parse_markets_payload({"success": True, "markets": {"xch": []}}) == []


async def _no_sleep(delay: float) -> None:
    return None


def _live_provider(async_client: httpx.AsyncClient) -> DexieProvider:
    settings = DexieSettings(base_url="https://dexie.test/v1")
    return DexieProvider(
        settings=settings,
        http_client=UpstreamHttpClient(name="Dexie", async_client=async_client, max_retries=2, sleep=_no_sleep),
        offers_client=UpstreamHttpClient(name="Dexie offers", async_client=async_client),
    )


def test_live_provider_retries_then_succeeds():
    attempts = {"tokens": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/tokens"
        attempts["tokens"] += 1
        if attempts["tokens"] < 3:
            return httpx.Response(502)
        return httpx.Response(200, json={"success": True, "tokens": [{"id": SBX, "code": "SBX", "name": "Spacebucks"}]})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as async_client:
            return await _live_provider(async_client).fetch_tokens()

    result = asyncio.run(run())
    assert result.success
    assert attempts["tokens"] == 3
    assert result.data[0].id == SBX


def test_live_provider_fails_after_retries():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        return httpx.Response(500)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as async_client:
            return await _live_provider(async_client).fetch_markets()

    result = asyncio.run(run())
    assert not result.success
    assert isinstance(result.error, UpstreamBadResponse)
    assert attempts["count"] == 3


def test_live_offers_are_single_shot():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        return httpx.Response(500)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as async_client:
            with pytest.raises(UpstreamBadResponse):
                await _live_provider(async_client).get_offers()

    asyncio.run(run())
    assert attempts["count"] == 1


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DEXIE_BASE_URL", "https://mirror.example/v1/ ")
    settings = DexieSettings.from_env()
    assert settings.base_url == "https://mirror.example/v1"
    assert settings.max_retries == 2
    assert settings.timeout == 10.0


def test_settings_reject_non_http_base_url(monkeypatch):
    monkeypatch.setenv("DEXIE_BASE_URL", "ftp://api.dexie.space/v1")
    with pytest.raises(ProviderMisconfigured):
        DexieSettings.from_env()
