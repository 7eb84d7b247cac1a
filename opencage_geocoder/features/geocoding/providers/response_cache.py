"""レスポンスキャッシュ（プロセス内メモリ）"""

import threading
from typing import Optional

from ....shared.logging.config import get_logger
from ..domain.models import GeoResult

logger = get_logger(__name__)


class ResponseCache:
    """
    リクエストURLをキーとした GeoResult のメモリ内キャッシュ

    キーは組み立て済みURL全体を小文字化したもの。パラメータ順や
    大文字小文字の違いはそのままヒット率に影響する。
    エビクション・TTL・サイズ上限はない。同一キーへの書き込みは後勝ち。
    """

    def __init__(self) -> None:
        self.cache: dict[str, GeoResult] = {}
        self.hit_count = 0
        self.miss_count = 0
        self._lock = threading.Lock()

    @staticmethod
    def make_key(url: str) -> str:
        """URLからキャッシュキーを生成"""
        return url.lower()

    def get(self, key: str) -> Optional[GeoResult]:
        """
        キャッシュ済みの結果を取得

        Returns:
            Optional[GeoResult]: ミスの場合は None
        """
        with self._lock:
            result = self.cache.get(key)
            if result is None:
                self.miss_count += 1
            else:
                self.hit_count += 1
            return result

    def put(self, key: str, result: GeoResult) -> None:
        """結果を無条件に保存（既存エントリは上書き）"""
        with self._lock:
            self.cache[key] = result

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self.cache

    def __len__(self) -> int:
        with self._lock:
            return len(self.cache)

    def clear(self) -> None:
        """キャッシュをクリア"""
        with self._lock:
            cache_size = len(self.cache)
            self.cache.clear()
            self.hit_count = 0
            self.miss_count = 0
        logger.info(f"Cache cleared: {cache_size} entries removed")

    def get_cache_stats(self) -> dict[str, float]:
        """
        キャッシュ統計を取得

        Returns:
            dict[str, float]: キャッシュ統計（サイズ、ヒット数、ミス数、ヒット率）
        """
        with self._lock:
            total_requests = self.hit_count + self.miss_count
            hit_rate = (self.hit_count / total_requests * 100) if total_requests > 0 else 0.0

            stats = {
                "cache_size": len(self.cache),
                "hit_count": self.hit_count,
                "miss_count": self.miss_count,
                "total_requests": total_requests,
                "hit_rate_percent": round(hit_rate, 2),
            }

        logger.debug(f"Cache stats: {stats}")

        return stats


# プロセス全体で共有するインスタンス（明示的に一度だけ生成）
_shared_cache = ResponseCache()


def shared_cache() -> ResponseCache:
    """プロセス共有のキャッシュを返す"""
    return _shared_cache
