import pytest

from catdash.composition import build_aggregator, build_providers, resolve_source_choice
from catdash.data.dexie.provider import DexieProvider, MockDexieProvider
from catdash.data.oracle.provider import MockPriceOracle, PriceCache, PriceOracle
from catdash.data.tibetswap.provider import MockTibetSwapProvider, TibetSwapProvider


def test_offline_flag_selects_mocks(monkeypatch):
    monkeypatch.delenv("CATDASH_SOURCES", raising=False)
    monkeypatch.setenv("CATDASH_OFFLINE", "1")
    providers = build_providers()
    assert isinstance(providers.order_book, MockDexieProvider)
    assert isinstance(providers.amm, MockTibetSwapProvider)
    assert isinstance(providers.oracle, MockPriceOracle)
    assert providers.last_trades.provider is providers.order_book


def test_live_by_default(monkeypatch):
    monkeypatch.delenv("CATDASH_SOURCES", raising=False)
    monkeypatch.delenv("CATDASH_OFFLINE", raising=False)
    cache = PriceCache()
    providers = build_providers(price_cache=cache)
    assert isinstance(providers.order_book, DexieProvider)
    assert isinstance(providers.amm, TibetSwapProvider)
    assert isinstance(providers.oracle, PriceOracle)
    assert providers.oracle.cache is cache
    assert providers.icon_base == "https://icons.dexie.space"


def test_explicit_choice_overrides_env(monkeypatch):
    monkeypatch.setenv("CATDASH_OFFLINE", "1")
    assert resolve_source_choice("LIVE") == "live"
    monkeypatch.setenv("CATDASH_SOURCES", "mock")
    assert resolve_source_choice() == "mock"


def test_unknown_choice_rejected():
    with pytest.raises(ValueError):
        resolve_source_choice("coingecko")


def test_build_aggregator_owns_cache():
    aggregator = build_aggregator("mock")
    assert isinstance(aggregator.price_cache, PriceCache)
    assert aggregator.price_cache is aggregator.oracle.cache


def test_configured_fallback_reaches_both_oracles(monkeypatch):
    overrides = {"oracle.fallback_xch_usd": 30.0}
    monkeypatch.setattr(
        "catdash.composition.config_value", lambda key, default=None: overrides.get(key, default)
    )
    monkeypatch.setattr(
        "catdash.data.oracle.provider.config_value", lambda key, default=None: overrides.get(key, default)
    )
    monkeypatch.delenv("CATDASH_SOURCES", raising=False)
    monkeypatch.delenv("CATDASH_OFFLINE", raising=False)
    assert build_providers("mock").oracle.fallback_xch_usd == 30.0
    assert build_providers("live").oracle.fallback_xch_usd == 30.0
