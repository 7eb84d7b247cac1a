"""ユニットテスト共通フィクスチャ"""

import json
import threading
from typing import Any, Callable, Optional

import pytest

from opencage_geocoder.features.geocoding.providers.response_cache import shared_cache
from opencage_geocoder.infrastructure.config.settings import GeocoderSettings
from opencage_geocoder.shared.exceptions.errors import HTTPError


class FakeResponse:
    """requests.Response の最小限の代替"""

    def __init__(
        self,
        body: Any = None,
        status_code: int = 200,
        reason: str = "OK",
        headers: Optional[dict[str, str]] = None,
        text: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = headers or {}
        self.text = text if text is not None else json.dumps(body)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeHTTPClient:
    """HTTPClient の代替。呼び出されたURLを記録し、handler の戻り値を返す"""

    def __init__(self, handler: Callable[[str], FakeResponse]) -> None:
        self.handler = handler
        self.urls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url: str, headers: Optional[dict[str, str]] = None, log_url: Optional[str] = None) -> FakeResponse:
        with self._lock:
            self.urls.append(url)
        return self.handler(url)

    def close(self) -> None:
        self.closed = True


def opencage_body(
    lat: float = 48.8566,
    lng: float = 2.3522,
    formatted: str = "Paris, France",
    total_results: int = 1,
    code: int = 200,
) -> dict[str, Any]:
    """OpenCage 形式の応答本文"""
    results = []
    if total_results > 0:
        results.append(
            {
                "bounds": {
                    "northeast": {"lat": 48.9021, "lng": 2.4699},
                    "southwest": {"lat": 48.8155, "lng": 2.2242},
                },
                "confidence": 6,
                "formatted": formatted,
                "geometry": {"lat": lat, "lng": lng},
                "components": {"country": "France", "city": "Paris"},
            }
        )
    return {
        "documentation": "https://opencagedata.com/api",
        "licenses": [{"name": "see attribution guide", "url": "https://opencagedata.com/credits"}],
        "rate": {"limit": 2500, "remaining": 2499, "reset": 1700000000},
        "results": results,
        "status": {"code": code, "message": "OK" if code == 200 else "Error"},
        "thanks": "For using an OpenCage API",
        "timestamp": {"created_http": "Mon, 01 Jan 2024 00:00:00 GMT", "created_unix": 1704067200},
        "total_results": total_results,
    }


def raise_network_error(url: str) -> FakeResponse:
    raise HTTPError("Failed to GET https://example.invalid: ConnectionError")


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """環境変数・.env・共有キャッシュの影響を遮断"""
    for name in ("OCD_API_KEY", "OCD_API_URL", "OCD_PACE_LIMIT", "OCD_PACE_INTERVAL", "OCD_CACHED"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    shared_cache().clear()


@pytest.fixture
def fast_settings() -> GeocoderSettings:
    """テスト用の短い時間窓"""
    return GeocoderSettings(api_key="test-key", pace_limit=10, pace_interval=0.05)


@pytest.fixture
def paris_client() -> FakeHTTPClient:
    return FakeHTTPClient(lambda url: FakeResponse(opencage_body()))
