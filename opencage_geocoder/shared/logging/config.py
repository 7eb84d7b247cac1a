"""ロギング設定"""
import logging
import re
import sys
from typing import Optional

# ロガー設定済みフラグ
_logger_configured = False

# URLクエリ中のAPIキー（key=...）
_KEY_PATTERN = re.compile(r"([?&]key=)[^&\s]*")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SecretRedactionFilter(logging.Filter):
    """ログメッセージ中のAPIキーを *** に置き換えるフィルタ"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _KEY_PATTERN.sub(r"\1***", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(
    level: str = "INFO",
    enable_cloud_logging: bool = False,
    project_id: Optional[str] = None,
) -> None:
    """
    ロギングを設定

    ライブラリとして利用する場合は呼び出し側の責任で一度だけ呼ぶ
    （または Geocoder(configure_logging=True) で設定の log_level を使う）。
    ライブラリ内部のモジュールは get_logger() のみを使用する。
    各ハンドラには SecretRedactionFilter を付け、サードパーティのログに
    含まれるリクエストURLからもAPIキーを除く。

    Args:
        level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_cloud_logging: Cloud Logging にも送るか（cloud extra が必要）
        project_id: Cloud Logging の送信先プロジェクト（省略時は環境から推定）
    """
    global _logger_configured

    if _logger_configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    redaction = SecretRedactionFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    console_handler.addFilter(redaction)
    root_logger.addHandler(console_handler)

    if enable_cloud_logging:
        try:
            from google.cloud import logging as cloud_logging

            cloud_handler = cloud_logging.handlers.CloudLoggingHandler(
                cloud_logging.Client(project=project_id), name="opencage_geocoder"
            )
            cloud_handler.setLevel(log_level)
            cloud_handler.addFilter(redaction)
            root_logger.addHandler(cloud_handler)
        except Exception as e:
            logging.warning(f"Cloud Logging unavailable, using console only: {type(e).__name__}: {e}")

    # urllib3 はDEBUGで接続先URL（キー付き）を出すため WARNING に抑える
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    _logger_configured = True
    logging.getLogger(__name__).debug(f"Logging configured with level: {logging.getLevelName(log_level)}")


def get_logger(name: str) -> logging.Logger:
    """名前付きロガーを取得（通常は __name__ を渡す）"""
    return logging.getLogger(name)
