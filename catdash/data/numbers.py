from __future__ import annotations

import math
from typing import Any

MOJOS_PER_XCH = 1e12


def safe_number(value: Any, fallback: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if not math.isfinite(value):
        return fallback
    return float(value)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def mojos_to_xch(mojos: float) -> float:
    return safe_number(mojos) / MOJOS_PER_XCH


__all__ = ["MOJOS_PER_XCH", "is_number", "mojos_to_xch", "safe_number"]
