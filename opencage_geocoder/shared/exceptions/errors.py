"""カスタム例外定義"""


class GeocoderError(Exception):
    """ジオコーダー基底例外"""

    pass


class HTTPError(GeocoderError):
    """HTTP通信エラー（ネットワーク障害・タイムアウト等）"""

    pass


class PacerError(GeocoderError):
    """ペーサー（レート制限キュー）関連のエラー"""

    pass


class PaceTimeoutError(PacerError):
    """許可待ちがタイムアウトした"""

    pass


class PacerClosedError(PacerError):
    """クローズ済みのペーサーにタスクが投入された、または待機中に破棄された"""

    pass

