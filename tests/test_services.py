import time

import pytest
from django.core.cache.backends.locmem import LocMemCache

from analytics.cache import ResultCache
from analytics.exceptions import (
    ComputationTimeout,
    DataSourceUnavailable,
    DriverNotFound,
    InvalidRangeError,
)
from analytics.services import AnalyticsService
from analytics.types import ReportSnapshot
from reports.models import ReportStatus

from .helpers import at, make_report

P, A, C = ReportStatus.PENDING, ReportStatus.ASSIGNED, ReportStatus.COMPLETED

DRIVER_ID = '0b5f7a52-1d0e-4e0c-9a43-6c7c2f1a9e10'


@pytest.fixture
def reports(fake_store):
    fake_store.reports = [
        make_report(
            [(P, at('2026-01-19', 10)), (A, at('2026-01-19', 11)), (C, at('2026-01-19', 13))],
            category='recyclable',
            report_id='r-1',
            driver_id=DRIVER_ID,
        ),
        make_report([(P, at('2026-01-20', 9))], category='hazardous', report_id='r-2'),
        # Malformed: status does not match history
        make_report([(P, at('2026-01-20', 9))], category='hazardous', report_id='r-3', current_status=C),
    ]
    return fake_store.reports


class TestQueries:

    def test_trends(self, service, reports):
        result = service.trends('2026-01-19', '2026-01-20')

        assert result['totalIncidents'] == 2
        assert result['dateRange'] == {'startDate': '2026-01-19', 'endDate': '2026-01-20'}
        assert result['dataQuality']['excludedReports'] == 1
        assert result['dataQuality']['exclusionReasons'] == {'status_mismatch': 1}

    def test_category_filter(self, service, fake_store, reports):
        result = service.trends('2026-01-19', '2026-01-20', category='recyclable')
        assert result['totalIncidents'] == 1
        assert result['categoryTotals'] == {'recyclable': 1}

        assert service.trends('2026-01-19', '2026-01-20', category='all')['totalIncidents'] == 2

    def test_repeated_query_is_served_from_cache(self, service, fake_store, reports):
        first = service.status_distribution('2026-01-19', '2026-01-20')
        second = service.status_distribution('2026-01-19', '2026-01-20')

        assert first == second
        assert fake_store.fetch_count == 1
        assert service.cache_stats()['hits'] == 1

    def test_invalid_range_never_reaches_the_store(self, service, fake_store):
        with pytest.raises(InvalidRangeError):
            service.trends('2026-02-01', '2026-01-01')
        with pytest.raises(InvalidRangeError):
            service.trends_comparison('2026-01-01', '2026-01-31', 'bad', '2025-12-31')
        assert fake_store.fetch_count == 0

    def test_trends_comparison(self, service, reports):
        result = service.trends_comparison('2026-01-20', '2026-01-20', '2026-01-19', '2026-01-19')
        assert result['comparison'] == {
            'currentCount': 1,
            'previousCount': 1,
            'percentageChange': 0.0,
            'trend': 'stable',
        }
        assert result['period1']['dateRange']['startDate'] == '2026-01-20'

    def test_status_transitions(self, service, reports):
        result = service.status_transitions('2026-01-19', '2026-01-20')
        assert result['totalReports'] == 2
        assert result['excludedReports'] == 1
        assert result['transitionAnalytics']['totalTransitions'] == 2

    def test_workflow_timeline(self, service, reports):
        result = service.workflow_timeline('2026-01-19', '2026-01-20', max_reports=1)
        assert result['totalReports'] == 2
        assert [timeline['reportId'] for timeline in result['reportTimelines']] == ['r-2']

    def test_workflow_bottlenecks(self, service, reports):
        result = service.workflow_bottlenecks('2026-01-19', '2026-01-20')
        assert [entry['status'] for entry in result['bottlenecks']] == [A, P]
        assert result['workflowMetrics']['closedReports'] == 1

    def test_resolution_times(self, service, reports):
        result = service.resolution_times('2026-01-19', '2026-01-20')
        assert result['totalResolved'] == 1
        assert result['overall']['avgMs'] == 3 * 60 * 60 * 1000

    def test_wide_range_honours_the_deadline(self, fake_store, memory_cache):
        service = AnalyticsService(store=fake_store, cache=memory_cache, timeout=0.05)
        started = time.monotonic()

        with pytest.raises(ComputationTimeout):
            service.trends('0001-01-01', '9999-12-31', optimize=True)
        assert time.monotonic() - started < 2


class TestDrivers:

    def test_all_drivers(self, service, reports):
        result = service.drivers('2026-01-19', '2026-01-20')
        assert result['driverCount'] == 1
        assert result['metrics'][0]['driverId'] == DRIVER_ID

    def test_single_driver(self, service, reports):
        result = service.drivers('2026-01-19', '2026-01-20', driver_id=DRIVER_ID)
        assert result['driverCount'] == 1
        assert result['metrics'][0]['completed'] == 1

    def test_unknown_driver(self, service, reports):
        with pytest.raises(DriverNotFound) as excinfo:
            service.drivers('2026-01-19', '2026-01-20', driver_id='7d1c1f38-0000-4000-8000-000000000000')
        assert excinfo.value.status_code == 404


class TestInvalidation:

    def test_transition_inside_window_is_reflected(self, service, fake_store):
        assigned = make_report(
            [(P, at('2026-01-19', 10)), (A, at('2026-01-19', 11))], report_id='r-1',
        )
        fake_store.reports = [assigned]
        before = service.status_distribution('2026-01-19', '2026-01-20')
        assert before['summary'] == {A: {'count': 1, 'percentage': 100.0}}

        completed = make_report(
            [(P, at('2026-01-19', 10)), (A, at('2026-01-19', 11)), (C, at('2026-01-20', 8))],
            report_id='r-1',
        )
        fake_store.reports = [completed]
        service.invalidate_for_report('r-1', [at('2026-01-19', 10), at('2026-01-20', 8)])

        after = service.status_distribution('2026-01-19', '2026-01-20')
        assert after['summary'] == {C: {'count': 1, 'percentage': 100.0}}
        assert fake_store.fetch_count == 2

    def test_other_windows_stay_cached(self, service, fake_store, reports):
        service.trends('2026-03-01', '2026-03-31')
        service.invalidate_for_report('r-1', [at('2026-01-19', 10)])
        service.trends('2026-03-01', '2026-03-31')
        assert fake_store.fetch_count == 1

    def test_transition_reaches_other_workers(self, fake_store):
        shared = LocMemCache('analytics-workers', {})
        shared.clear()
        worker_a = AnalyticsService(store=fake_store, cache=ResultCache(shared))
        worker_b = AnalyticsService(store=fake_store, cache=ResultCache(shared))

        fake_store.reports = [
            make_report([(P, at('2026-01-19', 10)), (A, at('2026-01-19', 11))], report_id='r-1'),
        ]
        worker_b.status_distribution('2026-01-19', '2026-01-20')
        worker_b.trends('2026-03-01', '2026-03-31')

        fake_store.reports = [
            make_report(
                [(P, at('2026-01-19', 10)), (A, at('2026-01-19', 11)), (C, at('2026-01-20', 8))],
                report_id='r-1',
            ),
        ]
        assert worker_a.invalidate_for_report('r-1', [at('2026-01-19', 10), at('2026-01-20', 8)]) == 0

        after = worker_b.status_distribution('2026-01-19', '2026-01-20')
        assert after['summary'] == {C: {'count': 1, 'percentage': 100.0}}
        worker_b.trends('2026-03-01', '2026-03-31')
        assert fake_store.fetch_count == 3

    def test_clear_cache(self, service, fake_store, reports):
        service.trends('2026-01-19', '2026-01-20')
        service.drivers('2026-01-19', '2026-01-20')
        assert service.clear_cache() == 2
        service.trends('2026-01-19', '2026-01-20')
        assert fake_store.fetch_count == 3


class TestExport:

    def test_trends_csv(self, service, reports):
        filename, content = service.export_csv('trends', '2026-01-19', '2026-01-20')

        assert filename.startswith('cleancity_trends_')
        assert filename.endswith('_2026-01-19_to_2026-01-20.csv')
        lines = content.splitlines()
        assert lines[0] == '# CleanCity Analytics Export'
        header_index = lines.index('#') + 1
        assert lines[header_index].startswith('Date,Total_Incidents,')
        assert lines[header_index + 1].startswith('2026-01-19,1,')
        assert len(lines) == header_index + 3

    def test_status_csv(self, service, reports):
        _, content = service.export_csv('status', '2026-01-19', '2026-01-20')
        assert 'Status,Count,Percentage' in content
        assert f"{C},1,50.0" in content
        assert f"{P},1,50.0" in content

    def test_drivers_csv_with_details(self, service, reports):
        _, content = service.export_csv('drivers', '2026-01-19', '2026-01-20', include_details=True)
        assert 'Rejected_Reports,In_Progress_Reports' in content
        assert f"{DRIVER_ID},1,1,100.0,3.0,0,0" in content

    def test_unknown_type(self, service):
        with pytest.raises(ValueError):
            service.export_csv('heatmap', '2026-01-19', '2026-01-20')


class TestHealth:

    def test_healthy(self, service, fake_store):
        fake_store.latest = at('2026-01-19')
        health = service.health()
        assert health['database'] == 'connected'
        assert health['cache'] == 'available'
        assert health['systemHealth'] == 'healthy'
        assert health['details']['dataFreshnessMinutes'] is not None

    def test_slow_database_is_degraded(self, service, fake_store):
        fake_store.ping_ms = 2500.0
        health = service.health()
        assert health['database'] == 'slow'
        assert health['systemHealth'] == 'degraded'

    def test_unreachable_database_is_unhealthy(self, service, fake_store):
        fake_store.error = DataSourceUnavailable()
        health = service.health()
        assert health['database'] == 'disconnected'
        assert health['systemHealth'] == 'unhealthy'

    def test_store_failure_propagates_from_queries(self, service, fake_store):
        fake_store.error = DataSourceUnavailable()
        with pytest.raises(DataSourceUnavailable):
            service.trends('2026-01-19', '2026-01-20')


def test_snapshots_are_immutable():
    report = make_report([(P, at('2026-01-19'))])
    assert isinstance(report, ReportSnapshot)
    with pytest.raises(AttributeError):
        report.current_status = C
