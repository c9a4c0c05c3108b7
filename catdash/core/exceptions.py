from __future__ import annotations

from typing import Optional


class ProviderMisconfigured(RuntimeError):
    pass


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimited(UpstreamError):
    pass


class UpstreamBadResponse(UpstreamError):
    pass


class AggregationError(RuntimeError):
    """Raised when a cycle cannot produce a dashboard at all."""

    def __init__(self, source: str, cause: BaseException) -> None:
        super().__init__(f"{source} failed: {cause}")
        self.source = source
        self.cause = cause
