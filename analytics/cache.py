"""
Result cache for analytics queries.

Values are stored in a Django cache backend (``CACHES['analytics']``) that
every worker process shares. Next to the values the backend holds an
invalidation log: a generation counter and, per generation, the moments a
report change touched. Each stored result carries the generation it was
computed at, so a reader in any process replays the newer log records and
drops the result when one of them falls inside its window.

Each process also keeps an index of the keys it wrote together with the
query window, so that its own entries are deleted right away.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from .window import DateWindow

logger = logging.getLogger(__name__)

# Log record for an invalidation that cannot be narrowed to a window
INVALIDATE_ALL = 'all'


def window_covers(window, moments):
    # Window-less results depend on all data
    if window is None:
        return True
    return any(window.contains(moment) for moment in moments)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    endpoint: str
    window: Optional[DateWindow]
    expires_at: float

    def covers(self, moments):
        return window_covers(self.window, moments)


class ResultCache:
    """
    TTL cache of query results with window-aware invalidation.

    All index and counter updates happen under one lock; backend calls are
    made outside it. Backend failures are logged and treated as misses.
    """

    key_prefix = 'analytics'

    # Results older than this many invalidations are dropped without replay
    max_log_span = 500

    def __init__(self, backend, ttl=300, enabled=True, clock=time.time):
        self._backend = backend
        self.ttl = ttl
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._index = {}
        self._hits = 0
        self._misses = 0

    @property
    def generation_key(self):
        return f"{self.key_prefix}:generation"

    def _log_key(self, generation):
        return f"{self.key_prefix}:invalidation:{generation}"

    @property
    def generation(self):
        """Shared invalidation counter, or None when the backend is unreachable."""
        try:
            return self._backend.get(self.generation_key, 0)
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend read failed for {self.generation_key}: {exc}")
            return None

    @classmethod
    def make_key(cls, endpoint, window=None, filters=None):
        """Deterministic key; filters set to None, '' or 'all' are ignored."""
        canonical = {
            name: value
            for name, value in sorted((filters or {}).items())
            if value is not None and value != '' and value != 'all'
        }
        payload = json.dumps(
            {
                'endpoint': endpoint,
                'window': window.as_dict() if window else None,
                'filters': canonical,
            },
            sort_keys=True,
            default=str,
        )
        digest = hashlib.sha256(payload.encode('utf-8')).hexdigest()[:32]
        return f"{cls.key_prefix}:{endpoint}:{digest}"

    def _is_stale(self, generation, window, current):
        """True when an invalidation newer than ``generation`` may cover ``window``."""
        if current is None:
            return True
        if generation == current:
            return False
        # A cleared backend restarts the counter
        if generation > current or current - generation > self.max_log_span:
            return True

        keys = [self._log_key(number) for number in range(generation + 1, current + 1)]
        try:
            records = self._backend.get_many(keys)
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend read failed for the invalidation log: {exc}")
            return True

        for key in keys:
            moments = records.get(key)
            if moments is None or moments == INVALIDATE_ALL or window_covers(window, moments):
                return True
        return False

    def _discard(self, key):
        try:
            self._backend.delete(key)
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend delete failed for {key}: {exc}")

    def get(self, key):
        if not self.enabled:
            return None

        try:
            found = self._backend.get_many([key, self.generation_key])
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend read failed for {key}: {exc}")
            found = {}

        stored = found.get(key)
        if stored is not None:
            generation, window, _ = stored
            if self._is_stale(generation, window, found.get(self.generation_key, 0)):
                logger.debug(f"[ResultCache] Dropping invalidated result for {key}")
                self._discard(key)
                stored = None

        with self._lock:
            if stored is None:
                self._misses += 1
                self._index.pop(key, None)
                return None
            self._hits += 1
        return stored[2]

    def put(self, key, result, ttl=None, endpoint='', window=None, generation=None):
        """
        Store ``result`` computed at ``generation`` (the value read before the
        data was fetched; the current one when omitted).
        """
        if not self.enabled:
            return
        ttl = ttl or self.ttl

        if generation is None:
            generation = self.generation
            if generation is None:
                return

        # The underlying data changed while this result was being computed
        if self._is_stale(generation, window, self.generation):
            logger.debug(f"[ResultCache] Skipping stale result for {key}")
            return

        try:
            self._backend.set(key, (generation, window, result), ttl)
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend write failed for {key}: {exc}")
            return

        # An invalidation may have run between the check and the write
        if self._is_stale(generation, window, self.generation):
            logger.debug(f"[ResultCache] Result for {key} invalidated while written")
            self._discard(key)
            return

        with self._lock:
            self._prune_expired()
            self._index[key] = CacheEntry(
                key=key,
                endpoint=endpoint,
                window=window,
                expires_at=self._clock() + ttl,
            )

    def _publish(self, record):
        """Append ``record`` to the shared invalidation log."""
        try:
            self._backend.add(self.generation_key, 0, None)
            generation = self._backend.incr(self.generation_key)
            self._backend.touch(self.generation_key, None)
            log_key = self._log_key(generation)
            # Records outlive every result that could still replay them
            if not self._backend.add(log_key, record, 2 * self.ttl):
                # Another process drew the same generation
                self._backend.set(log_key, INVALIDATE_ALL, 2 * self.ttl)
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend write failed for the invalidation log: {exc}")

    def _drop_indexed(self, predicate):
        with self._lock:
            keys = [key for key, entry in self._index.items() if predicate(entry)]
            for key in keys:
                del self._index[key]

        if keys:
            try:
                self._backend.delete_many(keys)
            except Exception as exc:
                logger.warning(f"[ResultCache] Backend delete failed: {exc}")
            logger.info(f"[ResultCache] Invalidated {len(keys)} entries")
        return len(keys)

    def invalidate(self, predicate):
        """
        Drop every indexed entry for which ``predicate(entry)`` is true.

        Other processes cannot evaluate the predicate, so every shared result
        is retired as well. The return value counts this process's matches.
        """
        self._publish(INVALIDATE_ALL)
        return self._drop_indexed(predicate)

    def invalidate_for_times(self, moments):
        """Retire, in every process, the results whose window contains any of ``moments``."""
        moments = [moment for moment in moments if moment is not None]
        if not moments:
            return 0
        self._publish(moments)
        return self._drop_indexed(lambda entry: entry.covers(moments))

    def clear(self):
        with self._lock:
            count = len(self._index)
            self._index.clear()

        # The analytics backend is dedicated, so entries written by other
        # processes are dropped too
        try:
            self._backend.clear()
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend clear failed: {exc}")
        # Results still being computed must not land after the clear
        self._publish(INVALIDATE_ALL)
        logger.info(f"[ResultCache] Cleared {count} indexed entries")
        return count

    def _prune_expired(self):
        now = self._clock()
        expired = [key for key, entry in self._index.items() if entry.expires_at <= now]
        for key in expired:
            del self._index[key]

    def stats(self):
        with self._lock:
            self._prune_expired()
            lookups = self._hits + self._misses
            return {
                'enabled': self.enabled,
                'backend': self._backend.__class__.__name__,
                'size': len(self._index),
                'hits': self._hits,
                'misses': self._misses,
                'hitRatio': round(self._hits / lookups, 3) if lookups else 0.0,
                'ttl': self.ttl,
            }

    def is_available(self):
        try:
            self._backend.get(f"{self.key_prefix}:probe")
        except Exception as exc:
            logger.warning(f"[ResultCache] Backend unavailable: {exc}")
            return False
        return True
