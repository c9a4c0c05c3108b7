from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class CoinGeckoQuote(BaseModel):
    usd: Any = None

    model_config = ConfigDict(extra="allow")


class CoinGeckoSimplePrice(BaseModel):
    chia: Optional[CoinGeckoQuote] = None

    model_config = ConfigDict(extra="allow")


class DexieXchPrice(BaseModel):
    usd: Any = None

    model_config = ConfigDict(extra="allow")


__all__ = ["CoinGeckoQuote", "CoinGeckoSimplePrice", "DexieXchPrice"]
