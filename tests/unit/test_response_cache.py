"""レスポンスキャッシュのテスト"""

import threading

from opencage_geocoder.features.geocoding.domain.models import GeoResult, GeoStatus
from opencage_geocoder.features.geocoding.providers.response_cache import (
    ResponseCache,
    shared_cache,
)


class TestResponseCache:
    """ResponseCache のテスト"""

    def test_key_is_lower_cased_url(self) -> None:
        assert ResponseCache.make_key("https://H/p?q=PARIS") == "https://h/p?q=paris"

    def test_get_miss_returns_none(self) -> None:
        cache = ResponseCache()
        assert cache.get("missing") is None
        assert cache.miss_count == 1

    def test_put_then_get_returns_same_object(self) -> None:
        cache = ResponseCache()
        result = GeoResult(status=GeoStatus(200, "OK"), total_results=1)
        cache.put("k", result)

        assert cache.get("k") is result
        assert "k" in cache
        assert len(cache) == 1
        assert cache.hit_count == 1

    def test_put_overwrites(self) -> None:
        cache = ResponseCache()
        first = GeoResult(status=GeoStatus(200, "OK"), total_results=1)
        second = GeoResult(status=GeoStatus(200, "OK"), total_results=2)
        cache.put("k", first)
        cache.put("k", second)

        assert cache.get("k") is second
        assert len(cache) == 1

    def test_stats_and_clear(self) -> None:
        cache = ResponseCache()
        cache.put("a", GeoResult())
        cache.get("a")
        cache.get("b")

        stats = cache.get_cache_stats()
        assert stats == {
            "cache_size": 1,
            "hit_count": 1,
            "miss_count": 1,
            "total_requests": 2,
            "hit_rate_percent": 50.0,
        }

        cache.clear()
        assert len(cache) == 0
        assert cache.get_cache_stats()["total_requests"] == 0

    def test_concurrent_writers_last_write_wins(self) -> None:
        cache = ResponseCache()
        results = [GeoResult(total_results=i) for i in range(50)]

        threads = [threading.Thread(target=cache.put, args=("same", r)) for r in results]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 1
        assert cache.get("same") in results

    def test_shared_cache_is_single_instance(self) -> None:
        assert shared_cache() is shared_cache()
