from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Literal, Optional

from catdash.data.types import DashboardToken

DEXIE_SITE_URL = "https://dexie.space"
TIBETSWAP_SITE_URL = "https://tibetswap.io"

Platform = Literal["dexie", "tibetswap"]
LinkType = Literal["swap", "liquidity"]

PLATFORM_NAMES: Dict[str, str] = {"dexie": "Dexie.space", "tibetswap": "TibetSwap"}


@dataclass(frozen=True)
class TradeLink:
    platform: Platform
    url: str
    type: LinkType

    def to_payload(self) -> Dict[str, str]:
        return asdict(self)


def dexie_swap_link(token: DashboardToken) -> TradeLink:
    return TradeLink("dexie", f"{DEXIE_SITE_URL}/offers/{token.symbol}/XCH", "swap")


def dexie_liquidity_link(token: DashboardToken) -> TradeLink:
    return TradeLink("dexie", f"{DEXIE_SITE_URL}/liquidity/{token.symbol}/XCH", "liquidity")


def tibetswap_swap_link(token: DashboardToken) -> TradeLink:
    return TradeLink("tibetswap", f"{TIBETSWAP_SITE_URL}/swap?from=xch&to={token.id}", "swap")


def tibetswap_liquidity_link(token: DashboardToken) -> TradeLink:
    return TradeLink("tibetswap", f"{TIBETSWAP_SITE_URL}/liquidity?asset={token.id}", "liquidity")


def trade_links(
    token: DashboardToken, platform: Optional[Platform] = None, link_type: Optional[LinkType] = None
) -> List[TradeLink]:
    links = [
        dexie_swap_link(token),
        dexie_liquidity_link(token),
        tibetswap_swap_link(token),
        tibetswap_liquidity_link(token),
    ]
    return [
        link
        for link in links
        if (platform is None or link.platform == platform) and (link_type is None or link.type == link_type)
    ]


def platform_display_name(platform: str) -> str:
    return PLATFORM_NAMES.get(platform, platform)


__all__ = [
    "PLATFORM_NAMES",
    "TradeLink",
    "dexie_liquidity_link",
    "dexie_swap_link",
    "platform_display_name",
    "tibetswap_liquidity_link",
    "tibetswap_swap_link",
    "trade_links",
]
