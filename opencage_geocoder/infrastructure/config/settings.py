"""ジオコーダー設定（Pydantic Settings）"""
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://api.opencagedata.com/geocode/v1/json"


class GeocoderSettings(BaseSettings):
    """
    ジオコーダー設定

    環境変数（接頭辞 OCD_）または .env ファイルから読み込む。
    例: OCD_API_KEY, OCD_API_URL, OCD_PACE_LIMIT
    """

    model_config = SettingsConfigDict(
        env_prefix="OCD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenCage APIキー（未設定の場合はkeyパラメータを付与しない）",
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="ジオコーディングAPIのエンドポイント",
    )
    timeout: float = Field(
        default=20.0,
        description="HTTPリクエストのタイムアウト（秒）",
    )
    max_retries: int = Field(
        default=0,
        description="5xx応答時のトランスポート層リトライ回数",
    )

    # Pacing
    pace_limit: int = Field(
        default=1,
        description="時間窓あたりの最大リクエスト数",
    )
    pace_interval: float = Field(
        default=1.0,
        description="レート制限の時間窓（秒）",
    )
    parse_429: bool = Field(
        default=True,
        description="HTTP 429 を検出してバックオフするか",
    )

    # Cache
    cached: bool = Field(
        default=True,
        description="レスポンスキャッシュを有効にするか",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)。Geocoder(configure_logging=True) 時に適用",
    )

    @field_validator("api_url")
    @classmethod
    def _default_when_blank(cls, value: str) -> str:
        return value.strip() or DEFAULT_API_URL

    @field_validator("pace_limit")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("pace_limit must be > 0")
        return value

    @field_validator("pace_interval")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("pace_interval must be > 0")
        return value

    @property
    def has_api_key(self) -> bool:
        """APIキーが設定されているか"""
        return bool(self.api_key.get_secret_value())
