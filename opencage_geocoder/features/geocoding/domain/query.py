"""クエリパラメータの組み立てとURLシリアライズ"""
import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

# encodeURIComponent と同じ非エスケープ文字集合
_UNRESERVED = "-_.!~*'()"

_KEY_PARAM = re.compile(r"([?&]key=)[^&]*", re.IGNORECASE)

DEFAULT_QUERY: Mapping[str, Any] = {
    "q": "",
    "limit": 1,
    "pretty": 0,
    "no_annotations": 1,
}


@dataclass(frozen=True)
class GeoQuery:
    """
    構造化クエリ

    None のフィールドは送信しない（デフォルト値がある場合はそれが使われる）。
    フィールドの意味は OpenCage API のパラメータに準ずる。
    """

    q: str
    abbrv: Optional[int] = None
    add_request: Optional[int] = None
    bounds: Optional[str] = None  # "min_lng,min_lat,max_lng,max_lat"
    countrycode: Optional[str] = None
    language: Optional[str] = None
    limit: Optional[int] = None
    min_confidence: Optional[int] = None
    no_annotations: Optional[int] = None
    no_dedupe: Optional[int] = None
    no_record: Optional[int] = None
    pretty: Optional[int] = None
    proximity: Optional[str] = None  # "lat,lng"
    roadinfo: Optional[int] = None

    def to_params(self) -> dict[str, Any]:
        """設定済みフィールドのみを宣言順で返す"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


QueryInput = Union[str, GeoQuery, Mapping[str, Any]]


def build_params(query: QueryInput, api_key: Optional[str] = None) -> dict[str, Any]:
    """
    デフォルト ∪ {key} ∪ 呼び出し側パラメータ をマージ

    呼び出し側の値が最優先。文字列クエリは前後の空白を除いて q に入る。
    辞書の挿入順（デフォルト → key → 新規キー）がシリアライズ順になる。
    入力値の検証は行わない。
    """
    params: dict[str, Any] = dict(DEFAULT_QUERY)

    if api_key:
        params["key"] = api_key

    if isinstance(query, str):
        params["q"] = query.strip()
    elif isinstance(query, GeoQuery):
        params.update(query.to_params())
    else:
        params.update(query)

    return params


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        value = int(value)
    return quote(str(value), safe=_UNRESERVED)


def serialize_params(params: Mapping[str, Any]) -> str:
    """キー・値をすべてパーセントエンコードし & で連結（None は除外）"""
    return "&".join(
        f"{_encode(key)}={_encode(value)}"
        for key, value in params.items()
        if value is not None
    )


def build_url(api_url: str, params: Mapping[str, Any]) -> str:
    return f"{api_url}?{serialize_params(params)}"


def redact_url(url: str) -> str:
    """ログ出力用に key パラメータの値を伏せる"""
    return _KEY_PARAM.sub(r"\1***", url)
