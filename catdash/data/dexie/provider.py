from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from catdash.config import config_value
from catdash.core.exceptions import UpstreamBadResponse
from catdash.core.fixtures import fixture_dir, load_fixture
from catdash.core.logging import get_logger
from catdash.core.result import Result
from catdash.data.dexie.offers import QUOTE_ASSET_ID, OfferHistory, build_offer_history
from catdash.data.dexie.request_factory import (
    DEXIE_BASE_URL,
    MAX_OFFERS_PAGE_SIZE,
    OFFER_STATUS_ACTIVE,
    OFFER_STATUS_COMPLETED,
    DexieRequestFactory,
)
from catdash.data.dexie.schemas import (
    DexieMarket,
    DexieMarketsResponse,
    DexieOffer,
    DexieOffersResponse,
    DexieToken,
    DexieTokensResponse,
)
from catdash.data.http import Sleeper, UpstreamHttpClient, resolve_base_url
from catdash.data.numbers import is_number, safe_number
from catdash.data.types import DEFAULT_DENOM, MarketStats, TokenMetadata

T = TypeVar("T", bound=BaseModel)

log = get_logger("data.dexie")

DEXIE_ICON_BASE = "https://icons.dexie.space"


@dataclass(frozen=True)
class DexieSettings:
    base_url: str = DEXIE_BASE_URL
    icon_base: str = DEXIE_ICON_BASE
    timeout: float = 10.0
    max_retries: int = 2
    backoff_sec: float = 1.0

    @classmethod
    def from_env(cls) -> "DexieSettings":
        return cls(
            base_url=resolve_base_url("DEXIE_BASE_URL", "dexie_base_url", DEXIE_BASE_URL),
            icon_base=resolve_base_url("DEXIE_ICON_BASE", "dexie_icon_base", DEXIE_ICON_BASE),
            timeout=float(config_value("http.timeout_sec", 10.0)),
            max_retries=int(config_value("http.max_retries", 2)),
            backoff_sec=float(config_value("http.backoff_sec", 1.0)),
        )


@dataclass(frozen=True)
class OrderBookData:
    tokens: Result[List[TokenMetadata]]
    markets: Result[List[MarketStats]]


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_valid_token_metadata(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    return _has_text(raw.get("id")) and _has_text(raw.get("code")) and _has_text(raw.get("name"))


def is_valid_market(raw: Any) -> bool:
    if not isinstance(raw, dict) or not _has_text(raw.get("id")):
        return False
    prices = raw.get("prices")
    if not isinstance(prices, dict):
        return False
    last = prices.get("last")
    if not isinstance(last, dict):
        return False
    return is_number(last.get("price"))


def _parse_dexie_response(payload: Any, model: Type[T], context: str) -> T:
    if isinstance(payload, dict) and payload.get("success") is False:
        message = payload.get("message") or f"Dexie {context} response unsuccessful"
        raise UpstreamBadResponse(message)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamBadResponse(f"Dexie {context} response invalid") from exc


def token_metadata_from_dexie(token: DexieToken) -> TokenMetadata:
    denom = token.denom if token.denom and token.denom > 0 else DEFAULT_DENOM
    return TokenMetadata(id=token.id, code=token.code, name=token.name, icon=token.icon or None, denom=denom)


def _deepest(levels: List[float]) -> float:
    return max((safe_number(level) for level in levels), default=0.0)


def market_stats_from_dexie(market: DexieMarket) -> MarketStats:
    prices = market.prices
    last = prices.last if prices else None
    change = last.change if last else None
    volume = market.volume.get(QUOTE_ASSET_ID)
    liquidity = market.liquidity
    depth = 0.0
    if liquidity is not None:
        depth = _deepest(liquidity.bid) + _deepest(liquidity.ask)
    return MarketStats(
        id=market.id,
        name=market.name,
        code=market.code,
        pair_id=market.pair_id or "",
        last_price=safe_number(last.price if last else None),
        change_daily=safe_number(change.daily if change else None),
        change_weekly=safe_number(change.weekly if change else None),
        volume_daily=safe_number(volume.daily if volume else None),
        volume_weekly=safe_number(volume.weekly if volume else None),
        high_daily=safe_number(prices.high.daily if prices and prices.high else None),
        low_daily=safe_number(prices.low.daily if prices and prices.low else None),
        depth_liquidity=depth,
    )


def parse_tokens_payload(payload: Any) -> List[TokenMetadata]:
    response = _parse_dexie_response(payload, DexieTokensResponse, "tokens")
    if not response.success:
        raise UpstreamBadResponse("Dexie tokens response unsuccessful")
    tokens: List[TokenMetadata] = []
    for raw in response.tokens:
        if not is_valid_token_metadata(raw):
            continue
        try:
            tokens.append(token_metadata_from_dexie(DexieToken.model_validate(raw)))
        except ValidationError:
            log.debug(f"Dropping malformed Dexie token {raw.get('id')}")
    return tokens


def parse_markets_payload(payload: Any) -> List[MarketStats]:
    response = _parse_dexie_response(payload, DexieMarketsResponse, "markets")
    if not response.success:
        raise UpstreamBadResponse("Dexie markets response unsuccessful")
    markets: List[MarketStats] = []
    for raw in response.markets.xch:
        if not is_valid_market(raw):
            continue
        try:
            markets.append(market_stats_from_dexie(DexieMarket.model_validate(raw)))
        except ValidationError:
            log.debug(f"Dropping malformed Dexie market {raw.get('id')}")
    return markets


def parse_offers_payload(payload: Any) -> List[DexieOffer]:
    return _parse_dexie_response(payload, DexieOffersResponse, "offers").offers


class OrderBookProviderBase:
    async def get_tokens(self) -> List[TokenMetadata]:
        raise NotImplementedError

    async def get_markets(self) -> List[MarketStats]:
        raise NotImplementedError

    async def get_offers(
        self,
        status: int = OFFER_STATUS_COMPLETED,
        page_size: int = MAX_OFFERS_PAGE_SIZE,
        offered: Optional[str] = None,
        requested: Optional[str] = None,
    ) -> List[DexieOffer]:
        raise NotImplementedError

    async def fetch_tokens(self) -> Result[List[TokenMetadata]]:
        return await Result.capture(self.get_tokens())

    async def fetch_markets(self) -> Result[List[MarketStats]]:
        return await Result.capture(self.get_markets())

    async def fetch_all(self) -> OrderBookData:
        tokens, markets = await asyncio.gather(self.fetch_tokens(), self.fetch_markets())
        return OrderBookData(tokens=tokens, markets=markets)

    async def get_market(self, token_id: str) -> Optional[MarketStats]:
        for market in await self.get_markets():
            if market.id == token_id:
                return market
        return None

    async def fetch_offer_history(self, token_id: str) -> OfferHistory:
        async def _both_directions(status: int, page_size: int) -> List[DexieOffer]:
            offered, requested = await asyncio.gather(
                Result.capture(
                    self.get_offers(status, page_size, offered=token_id, requested=QUOTE_ASSET_ID)
                ),
                Result.capture(
                    self.get_offers(status, page_size, offered=QUOTE_ASSET_ID, requested=token_id)
                ),
            )
            return offered.unwrap_or([]) + requested.unwrap_or([])

        completed, active = await asyncio.gather(
            _both_directions(OFFER_STATUS_COMPLETED, 50),
            _both_directions(OFFER_STATUS_ACTIVE, 20),
        )
        return build_offer_history(token_id, completed, active)


class DexieProvider(OrderBookProviderBase):
    """Dexie order book: token list and XCH markets retry; offer queries are single-shot."""

    def __init__(
        self,
        settings: Optional[DexieSettings] = None,
        http_client: Optional[UpstreamHttpClient] = None,
        offers_client: Optional[UpstreamHttpClient] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.settings = settings or DexieSettings()
        self.request_factory = DexieRequestFactory(base_url=self.settings.base_url)
        self._client = http_client or UpstreamHttpClient(
            name="Dexie",
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
            backoff_base=self.settings.backoff_sec,
            sleep=sleep,
        )
        self._offers_client = offers_client or UpstreamHttpClient(
            name="Dexie offers", timeout=self.settings.timeout, max_retries=0
        )
        self._owns_client = http_client is None
        self._owns_offers_client = offers_client is None

    async def __aenter__(self) -> "DexieProvider":
        await self._client.__aenter__()
        await self._offers_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        if self._owns_offers_client:
            await self._offers_client.aclose()

    async def get_tokens(self) -> List[TokenMetadata]:
        payload = await self._client.request(self.request_factory.build_tokens_request())
        tokens = parse_tokens_payload(payload)
        log.info(f"Fetched {len(tokens)} tokens from Dexie")
        return tokens

    async def get_markets(self) -> List[MarketStats]:
        payload = await self._client.request(self.request_factory.build_markets_request())
        markets = parse_markets_payload(payload)
        log.info(f"Fetched {len(markets)} XCH markets from Dexie")
        return markets

    async def get_offers(
        self,
        status: int = OFFER_STATUS_COMPLETED,
        page_size: int = MAX_OFFERS_PAGE_SIZE,
        offered: Optional[str] = None,
        requested: Optional[str] = None,
    ) -> List[DexieOffer]:
        spec = self.request_factory.build_offers_request(
            status=status, page_size=page_size, offered=offered, requested=requested
        )
        payload = await self._offers_client.request(spec)
        return parse_offers_payload(payload)


class MockDexieProvider(OrderBookProviderBase):
    def __init__(self, fixture_path: Optional[Path] = None, error_mode: Optional[str] = None) -> None:
        self.fixture_dir = fixture_path or fixture_dir("dexie")
        self.error_mode = error_mode
        self.settings = DexieSettings()
        self.request_factory = DexieRequestFactory()
        self._tokens = self._load("tokens_success.json")
        self._markets = self._load("markets_success.json")
        self._offers = self._load("offers_completed.json")

    async def aclose(self) -> None:
        return None

    async def get_tokens(self) -> List[TokenMetadata]:
        if self.error_mode == "tokens":
            return parse_tokens_payload(self._load("tokens_error.json"))
        return parse_tokens_payload(self._tokens)

    async def get_markets(self) -> List[MarketStats]:
        if self.error_mode == "markets":
            return parse_markets_payload(self._load("markets_error.json"))
        return parse_markets_payload(self._markets)

    async def get_offers(
        self,
        status: int = OFFER_STATUS_COMPLETED,
        page_size: int = MAX_OFFERS_PAGE_SIZE,
        offered: Optional[str] = None,
        requested: Optional[str] = None,
    ) -> List[DexieOffer]:
        self.request_factory.build_offers_request(status, page_size, offered, requested)
        offers = parse_offers_payload(self._offers)
        if status != OFFER_STATUS_COMPLETED:
            return []
        if offered is not None:
            offers = [offer for offer in offers if any(asset.id == offered for asset in offer.offered)]
        if requested is not None:
            offers = [offer for offer in offers if any(asset.id == requested for asset in offer.requested)]
        return offers[:page_size]

    def _load(self, name: str) -> Dict[str, Any]:
        return load_fixture(self.fixture_dir, name)


__all__ = [
    "DEXIE_ICON_BASE",
    "DexieProvider",
    "DexieSettings",
    "MockDexieProvider",
    "OrderBookData",
    "QUOTE_ASSET_ID",
    "is_valid_market",
    "is_valid_token_metadata",
    "market_stats_from_dexie",
    "parse_markets_payload",
    "parse_offers_payload",
    "parse_tokens_payload",
    "token_metadata_from_dexie",
]
