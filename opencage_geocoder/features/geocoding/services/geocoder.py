"""ジオコーディングクライアント"""

from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Iterable, Optional

from pydantic import SecretStr
from tqdm import tqdm

from ....infrastructure.config.settings import GeocoderSettings
from ....shared.exceptions.errors import GeocoderError
from ....shared.http.client import HTTPClient
from ....shared.http.pacer import Pacer
from ....shared.logging.config import get_logger, setup_logging
from ..domain.models import GeoResult
from ..domain.query import QueryInput, build_params, build_url, redact_url
from ..providers.response_cache import ResponseCache, shared_cache
from ..providers.response_normalizer import from_failure, from_response

logger = get_logger(__name__)


def _completed(result: GeoResult) -> "Future[GeoResult]":
    future: "Future[GeoResult]" = Future()
    future.set_result(result)
    return future


class Geocoder:
    """
    OpenCage フォワードジオコーディングクライアント

    1回の呼び出しの流れ:
    URL組み立て → キャッシュ参照 → (ミス時) ペーサー経由でGET →
    JSON正規化 → キャッシュ保存。通信失敗は status のみの GeoResult になり、
    呼び出し側へ例外は送出しない。

    cached=True でキャッシュを明示しない場合は、プロセス共有の
    ResponseCache（shared_cache()）を全インスタンスで共有する。
    インスタンス専用にしたい場合は cache=ResponseCache() を渡す。
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        pace_limit: Optional[int] = None,
        cached: Optional[bool] = None,
        cache: Optional[ResponseCache] = None,
        settings: Optional[GeocoderSettings] = None,
        http_client: Optional[HTTPClient] = None,
        configure_logging: bool = False,
    ) -> None:
        """
        Args:
            api_key: APIキー（省略時は OCD_API_KEY、それも無ければ空）
            api_url: エンドポイント（省略時は OCD_API_URL、それも無ければ既定値）
            pace_limit: 時間窓あたりの最大リクエスト数（省略時は設定値、既定1）
            cached: キャッシュを使うか（省略時は設定値、既定True）
            cache: 使用するキャッシュ（省略時はプロセス共有キャッシュ）
            settings: 設定（省略時は環境変数から読み込む）
            http_client: HTTPクライアント（テスト用の差し替え）
            configure_logging: 設定の log_level でロギングを初期化するか
        """
        self.settings = settings or GeocoderSettings()

        if configure_logging:
            setup_logging(level=self.settings.log_level)

        # APIキーは SecretStr のまま保持し、repr やログに出さない
        self._api_key: SecretStr = SecretStr(api_key) if api_key else self.settings.api_key
        self.api_url = api_url or self.settings.api_url

        use_cache = self.settings.cached if cached is None else cached
        self.cache: Optional[ResponseCache] = None
        if use_cache:
            self.cache = cache if cache is not None else shared_cache()

        self.pacer = Pacer(
            limit=pace_limit or self.settings.pace_limit,
            interval=self.settings.pace_interval,
            parse_429=self.settings.parse_429,
        )

        self._owns_http_client = http_client is None
        self.http_client = http_client or HTTPClient(
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
        )

        logger.info(
            f"Geocoder initialized: url={self.api_url}, cache={self.cache is not None}, "
            f"pace={self.pacer.limit}/{self.pacer.interval}s, key={'set' if self._api_key.get_secret_value() else 'unset'}"
        )

    def __repr__(self) -> str:
        return (
            f"Geocoder(api_url={self.api_url!r}, cached={self.cache is not None}, "
            f"pace_limit={self.pacer.limit})"
        )

    def submit(self, query: QueryInput, admission_timeout: Optional[float] = None) -> "Future[GeoResult]":
        """
        ジオコーディングを非同期に開始

        Args:
            query: 検索文字列、GeoQuery、またはパラメータ辞書
            admission_timeout: ペーサーの許可待ち上限（秒）

        Returns:
            GeoResult で必ず完了する Future（例外で完了することはない）
        """
        try:
            params = build_params(query, self._api_key.get_secret_value())
            url = build_url(self.api_url, params)
        except Exception as e:
            logger.error(f"Failed to build request URL: {type(e).__name__}: {e}")
            return _completed(from_failure(None, f"{type(e).__name__}: {e}"))
        log_url = redact_url(url)

        cache_key: Optional[str] = None
        if self.cache is not None:
            cache_key = self.cache.make_key(url)
            cached_result = self.cache.get(cache_key)
            if cached_result is not None:
                logger.debug(f"Cache hit: {log_url}")
                return _completed(cached_result)
            logger.debug(f"Cache miss: {log_url}")

        result_future: "Future[GeoResult]" = Future()
        result_future.set_running_or_notify_cancel()

        pace_future = self.pacer.submit(
            lambda: self.http_client.get(url, log_url=log_url),
            timeout=admission_timeout,
        )
        pace_future.add_done_callback(
            lambda f: result_future.set_result(self._normalize(f, cache_key, log_url))
        )

        return result_future

    def geocode(self, query: QueryInput, timeout: Optional[float] = None) -> GeoResult:
        """
        ジオコーディング（完了まで待機）

        Args:
            query: 検索文字列、GeoQuery、またはパラメータ辞書
            timeout: 待機上限（秒）。超過時は失敗扱いの GeoResult を返す

        Returns:
            GeoResult
        """
        future = self.submit(query)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.warning(f"Geocoding timed out after {timeout}s")
            return from_failure(None, f"Timed out after {timeout}s")

    def geocode_batch(
        self, queries: Iterable[QueryInput], show_progress: bool = False
    ) -> list[GeoResult]:
        """
        複数クエリをまとめてジオコーディング

        すべてを一度に投入し（許可順は投入順）、入力と同じ順で結果を返す。

        Args:
            queries: クエリのリスト
            show_progress: プログレスバーを表示するか

        Returns:
            list[GeoResult]: 入力順の結果
        """
        futures = [self.submit(query) for query in queries]

        logger.info(f"Starting batch geocoding: {len(futures)} queries")

        iterator = tqdm(futures, desc="geocoding") if show_progress else futures
        results = [future.result() for future in iterator]

        ok_count = sum(1 for result in results if result.ok)
        logger.info(
            f"Batch geocoding completed: {ok_count} ok, {len(results) - ok_count} not ok"
        )

        return results

    def _normalize(self, pace_future: Future, cache_key: Optional[str], log_url: str) -> GeoResult:
        try:
            response = pace_future.result()
        except GeocoderError as e:
            logger.warning(f"Geocoding transport failure for {log_url}: {e}")
            return from_failure(None, str(e))
        except Exception as e:
            logger.error(f"Unexpected error during geocoding for {log_url}: {type(e).__name__}: {e}")
            return from_failure(None, f"{type(e).__name__}: {e}")

        try:
            result, parsed = from_response(response)
        except Exception as e:
            logger.error(f"Failed to normalize response for {log_url}: {type(e).__name__}: {e}")
            return from_failure(getattr(response, "status_code", None), str(e))

        # 2xx 応答のみ保存（429 や 5xx のJSON本文を固定しない）
        status_code = getattr(response, "status_code", None)
        cacheable = parsed and isinstance(status_code, int) and 200 <= status_code < 300
        if cacheable and cache_key is not None and self.cache is not None:
            self.cache.put(cache_key, result)

        return result

    def get_cache_stats(self) -> Optional[dict[str, float]]:
        """
        キャッシュ統計を取得（キャッシュ有効時のみ）

        Returns:
            Optional[dict[str, float]]: キャッシュ統計
        """
        if self.cache is not None:
            return self.cache.get_cache_stats()
        logger.warning("Cache stats are only available when caching is enabled")
        return None

    def clear_cache(self) -> None:
        """キャッシュをクリア（共有キャッシュの場合は他インスタンスにも影響する）"""
        if self.cache is not None:
            self.cache.clear()
        else:
            logger.warning("Cache clearing is only supported when caching is enabled")

    def close(self) -> None:
        """ペーサーとHTTPセッションを停止"""
        self.pacer.close()
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> "Geocoder":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
