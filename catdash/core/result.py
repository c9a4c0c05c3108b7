from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

import httpx

from catdash.core.exceptions import UpstreamError

T = TypeVar("T")

# Errors a source client reports as a failed Result instead of raising.
CAPTURED_ERRORS = (UpstreamError, httpx.HTTPError)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success/failure union returned by the source clients."""

    success: bool
    data: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: BaseException) -> "Result[T]":
        return cls(success=False, error=error)

    @classmethod
    async def capture(cls, awaitable: Awaitable[T]) -> "Result[T]":
        try:
            return cls.ok(await awaitable)
        except CAPTURED_ERRORS as exc:
            return cls.fail(exc)

    def unwrap_or(self, default: T) -> T:
        if self.success:
            return self.data  # type: ignore[return-value]
        return default

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__


__all__ = ["CAPTURED_ERRORS", "Result"]
