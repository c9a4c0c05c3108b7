from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class TibetSwapPair(BaseModel):
    asset_id: str
    pair_id: Optional[str] = None
    launcher_id: Optional[str] = None
    asset_name: Optional[str] = None
    asset_short_name: Optional[str] = None
    asset_image_url: Optional[str] = None
    xch_reserve: float = 0.0
    token_reserve: float = 0.0
    liquidity: float = 0.0

    model_config = ConfigDict(extra="allow")


__all__ = ["TibetSwapPair"]
