from __future__ import annotations

import asyncio
import os
from typing import Any, Awaitable, Callable, Optional

import httpx

from catdash.config import config_value
from catdash.core.exceptions import ProviderMisconfigured, UpstreamBadResponse, UpstreamRateLimited
from catdash.core.logging import get_logger
from catdash.core.request_spec import RequestSpec

log = get_logger("data.http")

Sleeper = Callable[[float], Awaitable[None]]


def resolve_base_url(env_var: str, config_key: str, default: str) -> str:
    """Env var, then config key, then default; trailing slashes stripped."""
    value = str(os.getenv(env_var) or config_value(config_key, default)).strip().rstrip("/") or default
    if not value.startswith(("http://", "https://")):
        raise ProviderMisconfigured(f"{env_var} must be an http(s) URL, got {value!r}")
    return value


class UpstreamHttpClient:
    """GET/POST JSON against one upstream with a per-request timeout and linear retry backoff."""

    def __init__(
        self,
        name: str = "upstream",
        timeout: float = 10.0,
        max_retries: int = 0,
        backoff_base: float = 1.0,
        async_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.name = name
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff_base = max(0.0, backoff_base)
        self._client = async_client
        self._owns_client = async_client is None
        self._sleep = sleep or asyncio.sleep

    async def __aenter__(self) -> "UpstreamHttpClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(self, spec: RequestSpec) -> Any:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        last_error: Optional[BaseException] = None
        for attempt in range(self.max_retries + 1):
            retry_after: Optional[str] = None
            try:
                resp = await self._client.request(
                    spec.method,
                    spec.url,
                    params=spec.normalized_query(),
                    headers=spec.headers,
                    timeout=self.timeout,
                )
                if resp.status_code == 429:
                    retry_after = resp.headers.get("Retry-After")
                    last_error = UpstreamRateLimited(f"{self.name} rate limited", status_code=resp.status_code)
                elif not resp.is_success:
                    last_error = UpstreamBadResponse(
                        f"{self.name} HTTP {resp.status_code}", status_code=resp.status_code
                    )
                else:
                    try:
                        return resp.json()
                    except ValueError as exc:
                        raise UpstreamBadResponse(f"{self.name} returned invalid JSON") from exc
            except httpx.HTTPError as exc:
                last_error = exc

            if attempt < self.max_retries:
                log.warning(
                    f"{self.name} {spec.describe()} attempt {attempt + 1} failed ({last_error!r}); retrying"
                )
                await self._sleep_backoff(attempt, retry_after)

        if last_error:
            raise last_error
        raise RuntimeError(f"{self.name} request failed without a response")

    async def _sleep_backoff(self, attempt: int, retry_after: Optional[str] = None) -> None:
        if retry_after:
            try:
                await self._sleep(float(retry_after))
                return
            except ValueError:
                pass
        await self._sleep(self.backoff_base * (attempt + 1))


__all__ = ["Sleeper", "UpstreamHttpClient"]
