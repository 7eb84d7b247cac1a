"""API応答 / 通信失敗を GeoResult に正規化"""
from typing import Any, Mapping, Optional

from ..domain.models import (
    GeoBounds,
    GeoCandidate,
    GeoPoint,
    GeoResult,
    GeoStatus,
    License,
    RateInfo,
    Timestamp,
    UNKNOWN_POINT,
)
from ....shared.logging.config import get_logger

logger = get_logger(__name__)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _point(value: Any) -> GeoPoint:
    data = _as_mapping(value)
    if not data:
        return UNKNOWN_POINT
    return GeoPoint(lat=_as_float(data.get("lat")), lng=_as_float(data.get("lng")))


def _bounds(value: Any) -> Optional[GeoBounds]:
    data = _as_mapping(value)
    if not data:
        return None
    return GeoBounds(northeast=_point(data.get("northeast")), southwest=_point(data.get("southwest")))


def _candidate(value: Any) -> GeoCandidate:
    data = _as_mapping(value)
    annotations = data.get("annotations")
    components = data.get("components")
    return GeoCandidate(
        geometry=_point(data.get("geometry")),
        formatted=_as_str(data.get("formatted")) or "",
        confidence=_as_int(data.get("confidence")),
        bounds=_bounds(data.get("bounds")),
        annotations=dict(annotations) if isinstance(annotations, Mapping) else None,
        components=dict(components) if isinstance(components, Mapping) else None,
    )


def from_json(data: Any) -> GeoResult:
    """
    パース済みJSON本文から GeoResult を構築

    フィールドごとに明示的に対応付け、欠落・型不一致の値は None / 空にする。

    Args:
        data: response.json() の戻り値

    Returns:
        GeoResult
    """
    body = _as_mapping(data)
    status = _as_mapping(body.get("status"))
    rate = body.get("rate")
    timestamp = body.get("timestamp")
    results = body.get("results")
    licenses = body.get("licenses")

    return GeoResult(
        status=GeoStatus(code=_as_int(status.get("code")), message=_as_str(status.get("message"))),
        total_results=_as_int(body.get("total_results")),
        results=tuple(_candidate(r) for r in results) if isinstance(results, list) else (),
        rate=(
            RateInfo(
                limit=_as_int(rate.get("limit")),
                remaining=_as_int(rate.get("remaining")),
                reset=_as_int(rate.get("reset")),
            )
            if isinstance(rate, Mapping)
            else None
        ),
        licenses=(
            tuple(
                License(name=_as_str(lic.get("name")) or "", url=_as_str(lic.get("url")) or "")
                for lic in licenses
                if isinstance(lic, Mapping)
            )
            if isinstance(licenses, list)
            else ()
        ),
        timestamp=(
            Timestamp(
                created_http=_as_str(timestamp.get("created_http")),
                created_unix=_as_int(timestamp.get("created_unix")),
            )
            if isinstance(timestamp, Mapping)
            else None
        ),
        documentation=_as_str(body.get("documentation")),
        thanks=_as_str(body.get("thanks")),
    )


def from_failure(code: Optional[int] = None, message: Optional[str] = None) -> GeoResult:
    """通信失敗から status のみの GeoResult を構築（ok は常に False）"""
    return GeoResult(status=GeoStatus(code=code, message=message))


def from_response(response: Any) -> tuple[GeoResult, bool]:
    """
    HTTPレスポンスを正規化

    Returns:
        (GeoResult, 本文をJSONとして解釈できたか)
    """
    try:
        data = response.json()
    except ValueError:
        code = _as_int(getattr(response, "status_code", None))
        reason = _as_str(getattr(response, "reason", None))
        logger.warning(f"Non-JSON response body (status={code}, reason={reason})")
        return from_failure(code, reason), False

    return from_json(data), True
