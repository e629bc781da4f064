"""
Django management command to pre-compute frequently used analytics.

Computes the common dashboard queries for the last 7 and last 30 days
(overall and per category) so the first admin request is served from the
result cache.

Usage:
    python manage.py warm_analytics_cache
    python manage.py warm_analytics_cache --days 7 --days 90
    python manage.py warm_analytics_cache --dry-run --verbose

Warming only helps other processes when ANALYTICS_CACHE_URL points at a
shared Redis cache; with the default in-process cache the results are
discarded when the command exits.
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from analytics.exceptions import ComputationTimeout, DataSourceUnavailable
from analytics.services import get_analytics_service
from analytics.window import DateWindow
from reports.models import ReportCategory

DEFAULT_WINDOWS = [7, 30]


class Command(BaseCommand):
    help = 'Pre-compute common analytics queries into the result cache'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            action='append',
            help='Window length in days (repeatable; default: 7 and 30)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the queries that would be computed without running them',
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show each query as it is computed',
        )

    def handle(self, *args, **options):
        service = get_analytics_service()
        dry_run = options['dry_run']
        verbose = options['verbose']

        if not settings.ANALYTICS_CACHE_ENABLED:
            self.stdout.write(self.style.WARNING("Analytics cache is disabled; nothing to warm"))
            return

        if not settings.ANALYTICS_CACHE_URL:
            self.stdout.write(self.style.WARNING(
                "ANALYTICS_CACHE_URL is not set; warmed results stay in this process only"
            ))

        warmed_count = 0
        error_count = 0

        for days in options['days'] or DEFAULT_WINDOWS:
            window = DateWindow.last_days(days)
            start = window.start_date.isoformat()
            end = window.end_date.isoformat()

            self.stdout.write(self.style.NOTICE(f"Warming last {days} days ({start} to {end})"))

            for name, query in self._queries(service, start, end):
                if verbose or dry_run:
                    self.stdout.write(f"  {name}")
                if dry_run:
                    continue
                try:
                    query()
                    warmed_count += 1
                except (DataSourceUnavailable, ComputationTimeout) as e:
                    error_count += 1
                    self.stdout.write(self.style.ERROR(f"  Failed {name}: {e.message}"))

        # Summary
        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("=== Cache Warming Summary ==="))
        self.stdout.write(f"  Warmed: {warmed_count}")
        self.stdout.write(f"  Errors: {error_count}")

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - no queries were computed"))

    def _queries(self, service, start, end):
        yield 'trends', lambda: service.trends(start, end)
        for category in ReportCategory.ALL:
            yield f'trends[{category}]', lambda category=category: service.trends(start, end, category=category)
        yield 'status-distribution', lambda: service.status_distribution(start, end)
        yield 'status-transitions', lambda: service.status_transitions(start, end)
        yield 'workflow-bottlenecks', lambda: service.workflow_bottlenecks(start, end)
        yield 'drivers', lambda: service.drivers(start, end)
        yield 'resolution-times', lambda: service.resolution_times(start, end)
