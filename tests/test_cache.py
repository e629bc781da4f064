from datetime import date
from unittest import mock

import pytest
from django.core.cache.backends.base import DEFAULT_TIMEOUT
from django.core.cache.backends.locmem import LocMemCache

from analytics.cache import ResultCache
from analytics.window import DateWindow

from .helpers import at

JANUARY = DateWindow(date(2026, 1, 1), date(2026, 1, 31))
FEBRUARY = DateWindow(date(2026, 2, 1), date(2026, 2, 28))


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class BrokenBackend:

    def get(self, key, default=None):
        raise ConnectionError('redis is down')

    def get_many(self, keys):
        raise ConnectionError('redis is down')

    def add(self, key, value, timeout=None):
        raise ConnectionError('redis is down')

    def set(self, key, value, timeout=None):
        raise ConnectionError('redis is down')

    def delete(self, key):
        raise ConnectionError('redis is down')

    def delete_many(self, keys):
        raise ConnectionError('redis is down')

    def clear(self):
        raise ConnectionError('redis is down')


class InterleavingBackend(LocMemCache):
    """Runs ``on_set`` once, right after the next value is written."""

    def __init__(self):
        super().__init__('interleaving-tests', {})
        self.clear()
        self.on_set = None

    def set(self, key, value, timeout=DEFAULT_TIMEOUT, version=None):
        super().set(key, value, timeout, version)
        if self.on_set is not None:
            callback, self.on_set = self.on_set, None
            callback()


@pytest.fixture
def backend():
    cache = LocMemCache('result-cache-tests', {})
    cache.clear()
    return cache


class TestKeys:

    def test_deterministic(self):
        first = ResultCache.make_key('trends', JANUARY, {'category': 'hazardous', 'limit': 10})
        second = ResultCache.make_key('trends', JANUARY, {'limit': 10, 'category': 'hazardous'})
        assert first == second
        assert first.startswith('analytics:trends:')

    def test_empty_filters_are_ignored(self):
        bare = ResultCache.make_key('trends', JANUARY)
        assert ResultCache.make_key('trends', JANUARY, {'category': None}) == bare
        assert ResultCache.make_key('trends', JANUARY, {'category': 'all'}) == bare
        assert ResultCache.make_key('trends', JANUARY, {'category': ''}) == bare

    def test_distinct_queries_get_distinct_keys(self):
        keys = {
            ResultCache.make_key('trends', JANUARY),
            ResultCache.make_key('trends', FEBRUARY),
            ResultCache.make_key('drivers', JANUARY),
            ResultCache.make_key('trends', JANUARY, {'category': 'hazardous'}),
        }
        assert len(keys) == 4


class TestReadWrite:

    def test_miss_then_hit(self, backend):
        cache = ResultCache(backend)
        key = cache.make_key('trends', JANUARY)

        assert cache.get(key) is None
        cache.put(key, {'totalIncidents': 3}, endpoint='trends', window=JANUARY)
        assert cache.get(key) == {'totalIncidents': 3}

        stats = cache.stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hitRatio'] == 0.5
        assert stats['size'] == 1

    def test_empty_result_is_cached(self, backend):
        cache = ResultCache(backend)
        cache.put('k', {}, window=JANUARY)
        assert cache.get('k') == {}

    def test_disabled_cache_never_stores(self, backend):
        cache = ResultCache(backend, enabled=False)
        cache.put('k', {'a': 1}, window=JANUARY)
        assert cache.get('k') is None
        assert cache.stats()['enabled'] is False
        assert cache.stats()['size'] == 0

    def test_stale_generation_is_not_stored(self, backend):
        cache = ResultCache(backend)
        generation = cache.generation
        cache.invalidate_for_times([at('2026-01-10')])

        cache.put('k', {'a': 1}, window=JANUARY, generation=generation)
        assert cache.get('k') is None

    def test_expired_entries_leave_the_index(self, backend):
        clock = FakeClock()
        cache = ResultCache(backend, ttl=60, clock=clock)
        cache.put('k', {'a': 1}, window=JANUARY)
        assert cache.stats()['size'] == 1

        clock.now += 61
        assert cache.stats()['size'] == 0

    def test_put_prunes_expired_entries(self, backend):
        clock = FakeClock()
        cache = ResultCache(backend, ttl=60, clock=clock)
        cache.put('old', {'a': 1}, window=JANUARY)

        clock.now += 61
        cache.put('new', {'b': 2}, window=FEBRUARY)
        assert set(cache._index) == {'new'}


class TestInvalidation:

    def test_only_covering_windows_are_dropped(self, backend):
        cache = ResultCache(backend)
        january = cache.make_key('trends', JANUARY)
        february = cache.make_key('trends', FEBRUARY)
        cache.put(january, {'m': 'jan'}, endpoint='trends', window=JANUARY)
        cache.put(february, {'m': 'feb'}, endpoint='trends', window=FEBRUARY)

        removed = cache.invalidate_for_times([at('2026-01-15', 9)])

        assert removed == 1
        assert cache.get(january) is None
        assert cache.get(february) == {'m': 'feb'}

    def test_windowless_entries_are_always_dropped(self, backend):
        cache = ResultCache(backend)
        cache.put('global', {'a': 1})
        assert cache.invalidate_for_times([at('2030-01-01')]) == 1

    def test_no_moments_is_a_noop(self, backend):
        cache = ResultCache(backend)
        cache.put('k', {'a': 1}, window=JANUARY)
        assert cache.invalidate_for_times([None]) == 0
        assert cache.get('k') == {'a': 1}

    def test_invalidate_with_predicate_retires_shared_results(self, backend):
        cache = ResultCache(backend)
        cache.put('a', 1, endpoint='trends', window=JANUARY)
        cache.put('b', 2, endpoint='drivers', window=JANUARY)

        assert cache.invalidate(lambda entry: entry.endpoint == 'drivers') == 1
        assert cache.stats()['size'] == 1
        # Other processes cannot evaluate the predicate
        assert cache.get('a') is None
        assert cache.get('b') is None

    def test_invalidation_reaches_other_processes(self, backend):
        worker_a = ResultCache(backend)
        worker_b = ResultCache(backend)
        january = worker_b.make_key('trends', JANUARY)
        february = worker_b.make_key('trends', FEBRUARY)
        worker_b.put(january, {'m': 'jan'}, endpoint='trends', window=JANUARY)
        worker_b.put(february, {'m': 'feb'}, endpoint='trends', window=FEBRUARY)

        assert worker_a.invalidate_for_times([at('2026-01-15', 9)]) == 0

        assert worker_b.get(january) is None
        assert worker_a.get(january) is None
        assert worker_b.get(february) == {'m': 'feb'}
        assert worker_a.generation == 1

    def test_result_computed_before_invalidation_is_retired(self, backend):
        worker_a = ResultCache(backend)
        worker_b = ResultCache(backend)
        generation = worker_b.generation

        worker_a.invalidate_for_times([at('2026-01-10')])
        worker_b.put('k', {'a': 1}, window=JANUARY, generation=generation)
        worker_b.put('f', {'b': 2}, window=FEBRUARY, generation=generation)

        assert worker_b.get('k') is None
        assert worker_b.get('f') == {'b': 2}

    def test_invalidation_during_write_is_not_lost(self):
        backend = InterleavingBackend()
        cache = ResultCache(backend)
        other = ResultCache(backend)
        key = cache.make_key('trends', JANUARY)
        backend.on_set = lambda: cache.invalidate_for_times([at('2026-01-10')])

        cache.put(key, {'stale': True}, endpoint='trends', window=JANUARY, generation=cache.generation)

        assert cache.get(key) is None
        assert other.get(key) is None
        assert cache.stats()['size'] == 0

    def test_clear(self, backend):
        cache = ResultCache(backend)
        cache.put('a', 1, window=JANUARY)
        cache.put('b', 2, window=FEBRUARY)
        generation = cache.generation

        assert cache.clear() == 2
        assert cache.generation == generation + 1
        assert cache.get('a') is None
        assert cache.stats()['size'] == 0


class TestBackendFailures:

    def test_read_failure_is_a_miss(self):
        cache = ResultCache(BrokenBackend())
        assert cache.get('k') is None
        assert cache.stats()['misses'] == 1

    def test_write_failure_is_logged_not_raised(self):
        cache = ResultCache(BrokenBackend())
        with mock.patch('analytics.cache.logger') as logger:
            cache.put('k', {'a': 1}, window=JANUARY)
        logger.warning.assert_called_once()
        assert cache.stats()['size'] == 0

    def test_availability(self, backend):
        assert ResultCache(backend).is_available() is True
        assert ResultCache(BrokenBackend()).is_available() is False

    def test_clear_survives_backend_failure(self):
        assert ResultCache(BrokenBackend()).clear() == 0
