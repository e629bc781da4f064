"""
Analytics service for CleanCity Backend.

One method per analytics query. Every query follows the same path:
parse the window, look up the result cache, and on a miss fetch from the
report store, filter to the window, aggregate under a deadline and cache
the result.

The service and its cache are built once by the analytics app config
(see ``AnalyticsConfig.ready``); use ``get_analytics_service()`` to reach
them.
"""

import logging
import time

from django.apps import apps
from django.conf import settings
from django.core.cache import caches
from django.utils import timezone

from .cache import ResultCache
from .cancellation import CancellationToken
from .distribution import status_distribution
from .drivers import driver_metrics
from .exceptions import DataSourceUnavailable, DriverNotFound
from .export import build_csv, export_filename
from .resolution import resolution_times
from .store import ReportLogStore
from .timeline import build_timeline, find_bottlenecks
from .transitions import analyze_transitions
from .trends import aggregate_trends, compare_periods
from .window import DateWindow, filter_reports, to_utc

logger = logging.getLogger(__name__)

# A database round-trip slower than this marks the database as slow
SLOW_DATABASE_MS = 1000


def _category_filter(category):
    return category if category and category != 'all' else None


class AnalyticsService:

    def __init__(self, store, cache, timeout=None, top_paths=10, trend_bucket='created'):
        self.store = store
        self.cache = cache
        self.timeout = timeout
        self.top_paths = top_paths
        self.trend_bucket = trend_bucket

    def _execute(self, endpoint, window, filters, compute):
        key = self.cache.make_key(endpoint, window, filters)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"[Analytics] Cache hit for {endpoint} {window.as_dict()}")
            return cached

        generation = self.cache.generation
        token = CancellationToken(self.timeout)
        started = time.monotonic()

        reports = self.store.fetch(window, category=filters.get('category'))
        token.check()
        filtered = filter_reports(reports, window, token)
        result = compute(filtered, token)
        token.check()

        self.cache.put(key, result, endpoint=endpoint, window=window, generation=generation)
        logger.info(
            f"[Analytics] {endpoint} computed over {len(filtered.valid)} reports "
            f"in {(time.monotonic() - started) * 1000:.1f}ms"
        )
        return result

    def trends(self, start_date, end_date, category=None, optimize=False, limit=10):
        window = DateWindow.from_params(start_date, end_date)
        filters = {'category': _category_filter(category), 'optimize': optimize, 'limit': limit}

        def compute(filtered, token):
            result = aggregate_trends(
                filtered.valid,
                window,
                limit=limit,
                include_breakdown=not optimize,
                bucket=self.trend_bucket,
                token=token,
            )
            result['dateRange'] = window.as_dict()
            result['dataQuality'] = filtered.data_quality()
            return result

        return self._execute('trends', window, filters, compute)

    def trends_comparison(self, period1_start, period1_end, period2_start, period2_end, category=None):
        """Compare incident totals of period 1 (current) against period 2 (previous)."""
        DateWindow.from_params(period1_start, period1_end)
        DateWindow.from_params(period2_start, period2_end)

        current = self.trends(period1_start, period1_end, category=category, optimize=True)
        previous = self.trends(period2_start, period2_end, category=category, optimize=True)

        return {
            'period1': current,
            'period2': previous,
            'comparison': compare_periods(current['totalIncidents'], previous['totalIncidents']),
        }

    def status_distribution(self, start_date, end_date, category=None):
        window = DateWindow.from_params(start_date, end_date)

        def compute(filtered, token):
            result = status_distribution(filtered.valid, token=token)
            result['dateRange'] = window.as_dict()
            return result

        return self._execute('status-distribution', window, {'category': _category_filter(category)}, compute)

    def status_transitions(self, start_date, end_date, category=None):
        window = DateWindow.from_params(start_date, end_date)

        def compute(filtered, token):
            return {
                'totalReports': len(filtered.valid),
                'validReports': len(filtered.valid),
                'excludedReports': filtered.excluded_count,
                'transitionAnalytics': analyze_transitions(filtered.valid, top_n=self.top_paths, token=token),
                'dateRange': window.as_dict(),
            }

        return self._execute('status-transitions', window, {'category': _category_filter(category)}, compute)

    def workflow_timeline(self, start_date, end_date, category=None, group_by='day', max_reports=100):
        window = DateWindow.from_params(start_date, end_date)
        filters = {'category': _category_filter(category), 'groupBy': group_by, 'maxReports': max_reports}

        def compute(filtered, token):
            result = build_timeline(filtered.valid, max_reports=max_reports, group_by=group_by, token=token)
            result['dateRange'] = window.as_dict()
            return result

        return self._execute('workflow-timeline', window, filters, compute)

    def workflow_bottlenecks(self, start_date, end_date, category=None):
        window = DateWindow.from_params(start_date, end_date)

        def compute(filtered, token):
            timeline = build_timeline(filtered.valid, token=token)
            result = find_bottlenecks(timeline['reportTimelines'], token=token)
            result['workflowMetrics'] = timeline['efficiencyMetrics']
            result['dateRange'] = window.as_dict()
            return result

        return self._execute('workflow-bottlenecks', window, {'category': _category_filter(category)}, compute)

    def drivers(self, start_date, end_date, driver_id=None):
        window = DateWindow.from_params(start_date, end_date)

        def compute(filtered, token):
            result = driver_metrics(filtered.valid, token=token)
            result['dateRange'] = window.as_dict()
            return result

        result = self._execute('drivers', window, {}, compute)
        if driver_id is None:
            return result

        # Single-driver view is cut from the shared all-drivers result
        driver_id = str(driver_id)
        metrics = [entry for entry in result['metrics'] if entry['driverId'] == driver_id]
        if not metrics:
            raise DriverNotFound()
        return {**result, 'driverCount': 1, 'metrics': metrics}

    def resolution_times(self, start_date, end_date, category=None):
        window = DateWindow.from_params(start_date, end_date)

        def compute(filtered, token):
            result = resolution_times(filtered.valid, token=token)
            result['dateRange'] = window.as_dict()
            return result

        return self._execute('resolution-times', window, {'category': _category_filter(category)}, compute)

    def export_csv(self, data_type, start_date, end_date, category=None, include_details=False):
        """Return ``(filename, content)`` for a CSV export of one query."""
        window = DateWindow.from_params(start_date, end_date)
        category = _category_filter(category)

        if data_type == 'trends':
            data = self.trends(start_date, end_date, category=category)
        elif data_type == 'status':
            data = self.status_distribution(start_date, end_date, category=category)
        elif data_type == 'drivers':
            data = self.drivers(start_date, end_date)
        elif data_type == 'resolution':
            data = self.resolution_times(start_date, end_date, category=category)
        else:
            raise ValueError(f"Unsupported export type: {data_type}")

        filters = {'category': category} if category else None
        content = build_csv(data_type, data, window, filters=filters, include_details=include_details)
        logger.info(f"[Analytics] Exported {data_type} for {window.as_dict()}")
        return export_filename(data_type, window), content

    def invalidate_for_report(self, report_id, moments):
        """Drop cached results whose window covers any of ``moments`` (creation and event times)."""
        removed = self.cache.invalidate_for_times(moments)
        logger.debug(f"[Analytics] Report {report_id} changed, {removed} cached results dropped")
        return removed

    def clear_cache(self):
        return self.cache.clear()

    def cache_stats(self):
        return self.cache.stats()

    def health(self):
        """
        Dependency health for the analytics subsystem.

        systemHealth is 'unhealthy' when the database cannot be reached and
        'degraded' when it is slow or the cache backend is down.
        """
        details = {}
        try:
            response_ms = self.store.ping()
            database = 'slow' if response_ms > SLOW_DATABASE_MS else 'connected'
            details['responseTimeMs'] = response_ms
            latest = self.store.latest_activity()
            details['dataFreshnessMinutes'] = (
                round((timezone.now() - to_utc(latest)).total_seconds() / 60, 1) if latest else None
            )
        except DataSourceUnavailable:
            logger.error("[Analytics] Health check: database unreachable")
            database = 'disconnected'

        if not self.cache.enabled:
            cache = 'disabled'
        elif self.cache.is_available():
            cache = 'available'
        else:
            cache = 'unavailable'

        if database == 'disconnected':
            system_health = 'unhealthy'
        elif database == 'slow' or cache == 'unavailable':
            system_health = 'degraded'
        else:
            system_health = 'healthy'

        details['cacheStats'] = self.cache.stats()
        return {
            'database': database,
            'cache': cache,
            'systemHealth': system_health,
            'details': details,
        }


def build_analytics_service():
    """Composition root: wire the store and cache from settings."""
    cache = ResultCache(
        caches['analytics'],
        ttl=settings.ANALYTICS_CACHE_TTL,
        enabled=settings.ANALYTICS_CACHE_ENABLED,
    )
    return AnalyticsService(
        store=ReportLogStore(),
        cache=cache,
        timeout=settings.ANALYTICS_QUERY_TIMEOUT_SECONDS,
        top_paths=settings.ANALYTICS_TOP_PATHS,
        trend_bucket=settings.ANALYTICS_TREND_BUCKET,
    )


def get_analytics_service():
    return apps.get_app_config('analytics').service
