from __future__ import annotations

from datetime import datetime
from typing import Collection, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from catdash.data.types import DashboardToken
from catdash.merge import utc_now_iso

DEFAULT_THRESHOLD_PERCENT = 5.0


class PriceAlert(BaseModel):
    token_id: str = Field(alias="tokenId")
    token_symbol: str = Field(alias="tokenSymbol")
    token_name: str = Field(alias="tokenName")
    previous_price: float = Field(alias="previousPrice")
    current_price: float = Field(alias="currentPrice")
    change_percent: float = Field(alias="changePercent")
    direction: Literal["up", "down"]
    timestamp: str

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def describe(self) -> str:
        verb = "rose" if self.direction == "up" else "fell"
        return f"{self.token_symbol} ({self.token_name}) {verb} {abs(self.change_percent):.1f}%"


def detect_price_alerts(
    previous: Iterable[DashboardToken],
    current: Iterable[DashboardToken],
    enabled_ids: Collection[str],
    threshold_percent: float = DEFAULT_THRESHOLD_PERCENT,
    now: Optional[datetime] = None,
) -> List[PriceAlert]:
    """Alerts for enabled tokens whose XCH price moved by at least ``threshold_percent``."""
    if not enabled_ids:
        return []
    previous_prices = {token.id: token.price_xch for token in previous}
    timestamp = utc_now_iso(now)
    alerts: List[PriceAlert] = []
    for token in current:
        if token.id not in enabled_ids:
            continue
        before = previous_prices.get(token.id)
        if not before:
            continue
        change = (token.price_xch - before) / before * 100
        if abs(change) < threshold_percent:
            continue
        alerts.append(
            PriceAlert(
                token_id=token.id,
                token_symbol=token.symbol,
                token_name=token.name,
                previous_price=before,
                current_price=token.price_xch,
                change_percent=change,
                direction="up" if change >= 0 else "down",
                timestamp=timestamp,
            )
        )
    return alerts


__all__ = ["DEFAULT_THRESHOLD_PERCENT", "PriceAlert", "detect_price_alerts"]
