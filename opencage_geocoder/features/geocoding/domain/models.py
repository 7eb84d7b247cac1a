"""ジオコーディング機能のドメインモデル"""
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class GeoPoint:
    """地理座標（どちらも None の場合は位置不明）"""

    lat: Optional[float] = None  # 緯度
    lng: Optional[float] = None  # 経度

    def __repr__(self) -> str:
        return f"GeoPoint(lat={self.lat}, lng={self.lng})"

    @property
    def is_known(self) -> bool:
        return self.lat is not None and self.lng is not None

    def to_tuple(self) -> tuple[Optional[float], Optional[float]]:
        """(緯度, 経度)のタプルとして返す"""
        return (self.lat, self.lng)


# 位置不明を表す共有インスタンス
UNKNOWN_POINT = GeoPoint()


@dataclass(frozen=True)
class GeoBounds:
    """候補の外接矩形"""

    northeast: GeoPoint = UNKNOWN_POINT
    southwest: GeoPoint = UNKNOWN_POINT


@dataclass(frozen=True)
class GeoStatus:
    """APIステータス（通信失敗時は HTTP ステータス / 理由文字列）"""

    code: Optional[int] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class GeoCandidate:
    """ジオコーディング候補1件"""

    geometry: GeoPoint = UNKNOWN_POINT
    formatted: str = ""  # 整形済み住所
    confidence: Optional[int] = None  # 0〜10
    bounds: Optional[GeoBounds] = None
    annotations: Optional[dict[str, Any]] = None
    components: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class RateInfo:
    """APIの利用枠情報"""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None  # UNIX時刻


@dataclass(frozen=True)
class License:
    name: str = ""
    url: str = ""


@dataclass(frozen=True)
class Timestamp:
    created_http: Optional[str] = None
    created_unix: Optional[int] = None


@dataclass(frozen=True)
class GeoResult:
    """
    ジオコーディング結果（不変スナップショット）

    成功時は応答本文の各フィールドを保持する。通信失敗時は status のみが
    設定され、その他のフィールドは None / 空となる。

    ok / geo / address は保持せず、モジュール関数 is_ok / geo_of / address_of
    で都度導出する。
    """

    status: GeoStatus = field(default_factory=GeoStatus)
    total_results: Optional[int] = None
    results: tuple[GeoCandidate, ...] = ()
    rate: Optional[RateInfo] = None
    licenses: tuple[License, ...] = ()
    timestamp: Optional[Timestamp] = None
    documentation: Optional[str] = None
    thanks: Optional[str] = None

    @property
    def ok(self) -> bool:
        return is_ok(self)

    @property
    def geo(self) -> GeoPoint:
        return geo_of(self)

    @property
    def address(self) -> str:
        return address_of(self)


def is_ok(result: GeoResult) -> bool:
    """ステータス200かつ total_results が1件以上の場合のみ True"""
    return (
        result.status.code == 200
        and result.total_results is not None
        and result.total_results > 0
    )


def _first_candidate(result: GeoResult) -> Optional[GeoCandidate]:
    if is_ok(result) and result.results:
        return result.results[0]
    return None


def geo_of(result: GeoResult) -> GeoPoint:
    """先頭候補の座標。取得できない場合は位置不明の GeoPoint"""
    candidate = _first_candidate(result)
    return candidate.geometry if candidate else UNKNOWN_POINT


def address_of(result: GeoResult) -> str:
    """先頭候補の整形済み住所。取得できない場合は空文字"""
    candidate = _first_candidate(result)
    return candidate.formatted if candidate else ""
