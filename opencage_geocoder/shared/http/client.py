"""HTTPクライアント（requests.Session ラッパー）"""

from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions.errors import HTTPError
from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "opencage-geocoder/1.0 (+python-requests)"


class HTTPClient:
    """
    ジオコーディングAPI向けHTTPクライアント

    Features:
    - タイムアウト設定
    - セッション管理（コネクション再利用）
    - 5xx に対する任意のリトライ（デフォルト無効）

    ステータスコードによる例外送出は行わない。4xx/5xx でも
    レスポンスをそのまま返し、本文の解釈は呼び出し側に任せる。
    """

    def __init__(
        self,
        timeout: float = 20,
        max_retries: int = 0,
        backoff_factor: float = 0.5,
        status_forcelist: tuple[int, ...] = (500, 502, 503, 504),
        user_agent: Optional[str] = None,
    ):
        """
        Args:
            timeout: リクエストタイムアウト（秒）
            max_retries: 最大リトライ回数（0 でリトライなし）
            backoff_factor: バックオフ係数
            status_forcelist: リトライ対象のステータスコード
            user_agent: User-Agentヘッダー
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist
        self.user_agent = user_agent or DEFAULT_USER_AGENT

        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """セッションを作成"""
        session = requests.Session()

        # 429 はペーサー側で扱うためリトライ対象に含めない
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["HEAD", "GET"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})

        return session

    def get(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        log_url: Optional[str] = None,
    ) -> requests.Response:
        """
        GETリクエスト

        Args:
            url: クエリ文字列まで組み立て済みのリクエストURL
            headers: 追加ヘッダー
            log_url: ログ出力用のURL（APIキーを伏せたもの）。省略時は url

        Returns:
            レスポンスオブジェクト（ステータスコードは検査しない）

        Raises:
            HTTPError: ネットワーク障害・タイムアウト等で応答が得られなかった場合
        """
        shown = log_url or url
        try:
            logger.debug(f"GET request to {shown}")
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            logger.debug(f"GET request finished: {shown} (status={response.status_code})")
            return response

        except requests.RequestException as e:
            logger.error(f"GET request failed: {shown} - {type(e).__name__}")
            raise HTTPError(f"Failed to GET {shown}: {type(e).__name__}") from e

    def close(self) -> None:
        """セッションをクローズ"""
        if self.session:
            self.session.close()
            logger.debug("HTTP session closed")

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
