from catdash.core.exceptions import (
    AggregationError,
    ProviderMisconfigured,
    UpstreamBadResponse,
    UpstreamError,
    UpstreamRateLimited,
)
from catdash.core.fixtures import fixture_dir, load_fixture, load_json_fixture
from catdash.core.request_spec import RequestSpec, canonicalize_headers, canonicalize_query
from catdash.core.result import Result

__all__ = [
    "AggregationError",
    "ProviderMisconfigured",
    "RequestSpec",
    "Result",
    "UpstreamBadResponse",
    "UpstreamError",
    "UpstreamRateLimited",
    "canonicalize_headers",
    "canonicalize_query",
    "fixture_dir",
    "load_fixture",
    "load_json_fixture",
]
