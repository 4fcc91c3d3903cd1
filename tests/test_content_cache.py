"""
Tests for the TTL content cache.
"""

import threading
import time

import pytest

from card_service import ContentCache, StoreUnavailable
from conftest import FakeStore, make_item


class TestCacheFreshness:
    def test_first_call_loads_from_store(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        assert len(cache.get_candidates()) == 3
        assert fake_store.fetch_calls == 1

    def test_within_ttl_reuses_snapshot(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_clock.advance(299)
        cache.get_candidates()
        cache.get_candidates(language="en")
        assert fake_store.fetch_calls == 1
        assert cache.hits == 2
        assert cache.misses == 1

    def test_after_ttl_reloads(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_store.items.append(make_item("a4"))
        fake_clock.advance(300)
        assert len(cache.get_candidates()) == 4
        assert fake_store.fetch_calls == 2

    def test_store_changes_invisible_until_expiry(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_store.items.append(make_item("a4"))
        fake_clock.advance(10)
        assert len(cache.get_candidates()) == 3

    def test_invalidate_forces_reload(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        cache.invalidate()
        cache.get_candidates()
        assert fake_store.fetch_calls == 2

    def test_refresh_returns_size(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, clock=fake_clock)
        assert cache.refresh() == 3
        assert cache.refreshes == 1


class TestCacheFiltering:
    def test_language_filter_is_per_request(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, clock=fake_clock)
        assert [item.id for item in cache.get_candidates(language="fr")] == ["a3"]
        assert len(cache.get_candidates()) == 3
        assert fake_store.fetch_calls == 1

    def test_unknown_language_yields_empty_list(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, clock=fake_clock)
        assert cache.get_candidates(language="de") == []

    def test_image_filter_applied_to_snapshot(self, fake_clock):
        store = FakeStore([make_item("img", with_image=True), make_item("plain")])
        cache = ContentCache(store, only_with_images=True, clock=fake_clock)
        assert [item.id for item in cache.get_candidates()] == ["img"]

    def test_returned_list_is_a_copy(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, clock=fake_clock)
        candidates = cache.get_candidates()
        candidates.clear()
        assert len(cache.get_candidates()) == 3


class TestStaleFallback:
    def test_store_down_without_snapshot_raises(self, fake_store, fake_clock):
        fake_store.fail = True
        cache = ContentCache(fake_store, clock=fake_clock)
        with pytest.raises(StoreUnavailable):
            cache.get_candidates()

    def test_store_down_with_snapshot_serves_stale(self, fake_store, fake_clock, caplog):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_store.fail = True
        fake_clock.advance(301)

        with caplog.at_level("WARNING", logger="card_service.content_cache"):
            assert len(cache.get_candidates()) == 3
        assert cache.stale_serves == 1
        assert "stale snapshot" in caplog.text

    def test_stale_fallback_waits_another_ttl(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_store.fail = True
        fake_clock.advance(301)
        cache.get_candidates()
        cache.get_candidates()
        assert fake_store.fetch_calls == 2

    def test_recovers_after_store_returns(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        cache.get_candidates()
        fake_store.fail = True
        fake_clock.advance(301)
        cache.get_candidates()

        fake_store.fail = False
        fake_store.items.append(make_item("a4"))
        fake_clock.advance(301)
        assert len(cache.get_candidates()) == 4

    def test_stats(self, fake_store, fake_clock):
        cache = ContentCache(fake_store, ttl_seconds=300, clock=fake_clock)
        assert cache.stats()["populated"] is False
        cache.get_candidates()
        fake_clock.advance(5)
        stats = cache.stats()
        assert stats["size"] == 3
        assert stats["age_seconds"] == 5
        assert stats["misses"] == 1


class TestCacheConcurrency:
    def test_concurrent_expiry_loads_once(self, sample_items):
        class SlowStore(FakeStore):
            def fetch_all(self, only_with_images=False):
                time.sleep(0.05)
                return super().fetch_all(only_with_images)

        store = SlowStore(sample_items)
        cache = ContentCache(store, ttl_seconds=300)
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(len(cache.get_candidates()))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == [3] * 8
        assert store.fetch_calls == 1

    def test_hit_and_miss_counts_add_up_under_contention(self, fake_store):
        cache = ContentCache(fake_store, ttl_seconds=300)
        threads_count, calls_per_thread = 8, 500
        barrier = threading.Barrier(threads_count)

        def worker():
            barrier.wait()
            for _ in range(calls_per_thread):
                cache.get_candidates()

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cache.misses == 1
        assert cache.hits + cache.misses == threads_count * calls_per_thread
