from __future__ import annotations

import copy
from typing import Any, Dict

from catdash.core.fixtures import fixture_dir, load_fixture


def generate_seed() -> Dict[str, Any]:
    """Upstream payloads served by the mock API, taken from the test fixtures."""
    dexie = fixture_dir("dexie")
    tibetswap = fixture_dir("tibetswap")
    oracle = fixture_dir("oracle")
    return {
        "tokens": load_fixture(dexie, "tokens_success.json"),
        "markets": load_fixture(dexie, "markets_success.json"),
        "offers": load_fixture(dexie, "offers_completed.json"),
        "pairs": load_fixture(tibetswap, "pairs_success.json"),
        "coingecko": load_fixture(oracle, "coingecko_success.json"),
        "dexie_price": load_fixture(oracle, "dexie_price_success.json"),
    }


def fresh_seed(seed: Dict[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(seed)
