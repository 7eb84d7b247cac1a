"""
OpenCage forward-geocoding client

- Geocoder: レート制限・キャッシュ付きクライアント
- GeoQuery: 構造化クエリ
- GeoResult / GeoPoint: 正規化済みの結果
"""

from .features.geocoding.domain.models import (
    GeoBounds,
    GeoCandidate,
    GeoPoint,
    GeoResult,
    GeoStatus,
    address_of,
    geo_of,
    is_ok,
)
from .features.geocoding.domain.query import DEFAULT_QUERY, GeoQuery
from .features.geocoding.providers.response_cache import ResponseCache, shared_cache
from .features.geocoding.services.geocoder import Geocoder
from .infrastructure.config.settings import DEFAULT_API_URL, GeocoderSettings
from .shared.exceptions.errors import (
    GeocoderError,
    HTTPError,
    PaceTimeoutError,
    PacerClosedError,
    PacerError,
)
from .shared.http.pacer import Pacer
from .shared.logging.config import get_logger, setup_logging

__all__ = [
    "Geocoder",
    "GeocoderSettings",
    "GeoQuery",
    "GeoResult",
    "GeoPoint",
    "GeoBounds",
    "GeoCandidate",
    "GeoStatus",
    "is_ok",
    "geo_of",
    "address_of",
    "ResponseCache",
    "shared_cache",
    "Pacer",
    "DEFAULT_QUERY",
    "DEFAULT_API_URL",
    "GeocoderError",
    "HTTPError",
    "PacerError",
    "PaceTimeoutError",
    "PacerClosedError",
    "setup_logging",
    "get_logger",
]
