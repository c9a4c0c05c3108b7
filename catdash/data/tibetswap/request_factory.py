from __future__ import annotations

from catdash.core.request_spec import RequestSpec

TIBETSWAP_BASE_URL = "https://api.v2.tibetswap.io"


class TibetSwapRequestFactory:
    def __init__(self, base_url: str = TIBETSWAP_BASE_URL) -> None:
        self.base_url = base_url.rstrip("/")

    def build_pairs_request(self) -> RequestSpec:
        return RequestSpec(
            method="GET",
            base_url=self.base_url,
            path="/pairs",
            query={},
            headers={"Accept": "application/json"},
        )


__all__ = ["TIBETSWAP_BASE_URL", "TibetSwapRequestFactory"]
