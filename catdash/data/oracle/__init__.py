from catdash.data.oracle.provider import (
    FALLBACK_XCH_USD,
    MockPriceOracle,
    OracleSettings,
    PriceCache,
    PriceOracle,
)

__all__ = ["FALLBACK_XCH_USD", "MockPriceOracle", "OracleSettings", "PriceCache", "PriceOracle"]
