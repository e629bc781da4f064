from unittest import mock

import pytest
from django.urls import reverse

from analytics.exceptions import DataSourceUnavailable
from analytics.services import get_analytics_service
from reports.models import ReportCategory, ReportStatus
from reports.services import ReportWorkflowService

from .helpers import at

pytestmark = pytest.mark.django_db

WINDOW = {'startDate': '2026-01-19', 'endDate': '2026-01-20'}


@pytest.fixture
def reports(citizen_user, admin_user, driver_user):
    completed = ReportWorkflowService.create_report(
        citizen_user, ReportCategory.RECYCLABLE, '10 Market Street', created_at=at('2026-01-19', 10),
    )
    completed = ReportWorkflowService.transition(
        completed, ReportStatus.ASSIGNED, actor=admin_user, driver=driver_user, timestamp=at('2026-01-19', 11),
    )
    completed = ReportWorkflowService.transition(
        completed, ReportStatus.COMPLETED, actor=driver_user, timestamp=at('2026-01-19', 13),
    )
    pending = ReportWorkflowService.create_report(
        citizen_user, ReportCategory.HAZARDOUS, '22 Dock Lane', created_at=at('2026-01-20', 9),
    )
    return completed, pending


class TestAccess:

    def test_anonymous_is_rejected(self, api_client):
        response = api_client.get(reverse('analytics:trends'), WINDOW)
        assert response.status_code == 401
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'UNAUTHORIZED'

    @pytest.mark.parametrize('client_fixture', ['citizen_client', 'driver_client'])
    def test_non_admins_are_forbidden(self, request, client_fixture):
        client = request.getfixturevalue(client_fixture)
        response = client.get(reverse('analytics:status-distribution'), WINDOW)
        assert response.status_code == 403
        assert response.data['error']['code'] == 'FORBIDDEN'


class TestQueries:

    def test_trends_envelope(self, admin_client, reports):
        response = admin_client.get(reverse('analytics:trends'), WINDOW)

        assert response.status_code == 200
        assert response.data['success'] is True
        assert 'timestamp' in response.data
        data = response.data['data']
        assert data['totalIncidents'] == 2
        assert [day['count'] for day in data['dailyTrends']] == [1, 1]
        assert data['dateRange'] == WINDOW

    def test_trends_optimized(self, admin_client, reports):
        response = admin_client.get(reverse('analytics:trends'), {**WINDOW, 'optimize': 'true', 'limit': 1})
        data = response.data['data']
        assert 'categories' not in data['dailyTrends'][0]
        assert len(data['topCategories']) == 1

    def test_inverted_range(self, admin_client):
        response = admin_client.get(
            reverse('analytics:trends'), {'startDate': '2026-02-01', 'endDate': '2026-01-01'},
        )
        assert response.status_code == 400
        assert response.data['error']['code'] == 'INVALID_DATE_RANGE'
        assert response.data['error']['retryable'] is False

    def test_missing_range(self, admin_client):
        response = admin_client.get(reverse('analytics:status-transitions'))
        assert response.status_code == 400
        assert response.data['error']['code'] == 'INVALID_DATE_RANGE'

    def test_unknown_category(self, admin_client):
        response = admin_client.get(reverse('analytics:trends'), {**WINDOW, 'category': 'furniture'})
        assert response.status_code == 400
        assert response.data['error']['code'] == 'BAD_REQUEST'

    def test_comparison(self, admin_client, reports):
        response = admin_client.get(reverse('analytics:trends-comparison'), {
            'period1Start': '2026-01-20', 'period1End': '2026-01-20',
            'period2Start': '2026-01-19', 'period2End': '2026-01-19',
        })
        assert response.status_code == 200
        assert response.data['data']['comparison']['trend'] == 'stable'

    def test_status_distribution(self, admin_client, reports):
        data = admin_client.get(reverse('analytics:status-distribution'), WINDOW).data['data']
        assert data['totalReports'] == 2
        assert data['completionRate'] == 50.0

    def test_status_transitions(self, admin_client, reports):
        data = admin_client.get(reverse('analytics:status-transitions'), WINDOW).data['data']
        stats = {(entry['from'], entry['to']): entry['count'] for entry in data['transitionAnalytics']['transitionStats']}
        assert stats == {
            (ReportStatus.PENDING, ReportStatus.ASSIGNED): 1,
            (ReportStatus.ASSIGNED, ReportStatus.COMPLETED): 1,
        }

    def test_workflow_timeline(self, admin_client, reports):
        response = admin_client.get(reverse('analytics:workflow-timeline'), {**WINDOW, 'groupBy': 'week'})
        data = response.data['data']
        assert data['totalReports'] == 2
        assert data['aggregatedTimeline'][0]['period'] == '2026-W04'

    def test_workflow_bottlenecks(self, admin_client, reports):
        data = admin_client.get(reverse('analytics:workflow-bottlenecks'), WINDOW).data['data']
        assert data['bottlenecks'][0]['status'] == ReportStatus.ASSIGNED
        assert data['bottlenecks'][0]['avgDurationMs'] == 2 * 60 * 60 * 1000

    def test_drivers(self, admin_client, reports, driver_user):
        data = admin_client.get(reverse('analytics:drivers'), {**WINDOW, 'driverId': str(driver_user.id)}).data['data']
        assert data['metrics'][0]['completed'] == 1
        assert data['metrics'][0]['completionRate'] == 100.0

    def test_unknown_driver(self, admin_client, reports, other_driver):
        response = admin_client.get(reverse('analytics:drivers'), {**WINDOW, 'driverId': str(other_driver.id)})
        assert response.status_code == 404
        assert response.data['error']['code'] == 'DRIVER_NOT_FOUND'

    def test_resolution_times(self, admin_client, reports):
        data = admin_client.get(reverse('analytics:resolution-times'), WINDOW).data['data']
        assert data['totalResolved'] == 1
        assert data['byCategory'][0]['category'] == ReportCategory.RECYCLABLE


class TestExport:

    def test_csv_download(self, admin_client, reports):
        response = admin_client.post(
            reverse('analytics:export-csv'),
            {**WINDOW, 'dataType': 'status', 'includeDetails': True},
            format='json',
        )
        assert response.status_code == 200
        assert response['Content-Type'] == 'text/csv'
        assert response['Content-Disposition'].startswith('attachment; filename="cleancity_status_')

        content = response.content.decode()
        assert 'Status,Count,Percentage' in content
        assert 'Completed,1,50.0' in content

    def test_unknown_type(self, admin_client):
        response = admin_client.post(reverse('analytics:export-csv'), {**WINDOW, 'dataType': 'pdf'}, format='json')
        assert response.status_code == 400


class TestOperations:

    def test_health(self, admin_client, reports):
        response = admin_client.get(reverse('analytics:health'))
        assert response.status_code == 200
        assert response.data['data']['database'] == 'connected'
        assert response.data['data']['systemHealth'] in ('healthy', 'degraded')

    def test_health_without_database(self, admin_client):
        store = get_analytics_service().store
        with mock.patch.object(store, 'ping', side_effect=DataSourceUnavailable()):
            response = admin_client.get(reverse('analytics:health'))
        assert response.status_code == 503
        assert response.data['success'] is False
        assert response.data['data']['systemHealth'] == 'unhealthy'

    def test_cache_stats_and_clear(self, admin_client, reports):
        admin_client.get(reverse('analytics:trends'), WINDOW)
        admin_client.get(reverse('analytics:trends'), WINDOW)

        stats = admin_client.get(reverse('analytics:cache-stats')).data['data']
        assert stats['size'] == 1
        assert stats['hits'] >= 1

        response = admin_client.delete(reverse('analytics:cache-clear'))
        assert response.status_code == 200
        assert response.data['data'] == {'deletedKeys': 1}

    def test_unavailable_store_is_retryable(self, admin_client):
        store = get_analytics_service().store
        with mock.patch.object(store, 'fetch', side_effect=DataSourceUnavailable()):
            response = admin_client.get(reverse('analytics:trends'), WINDOW)
        assert response.status_code == 503
        assert response.data['error'] == {'code': 'DATA_SOURCE_UNAVAILABLE', 'retryable': True}


class TestReportWorkflowAPI:

    def test_admin_assigns_driver(self, admin_client, reports, driver_user):
        _, pending = reports
        response = admin_client.post(
            reverse('reports:report-transition', args=[pending.id]),
            {'status': ReportStatus.ASSIGNED, 'driverId': str(driver_user.id)},
            format='json',
        )
        assert response.status_code == 200
        assert response.data['data']['status'] == ReportStatus.ASSIGNED
        assert len(response.data['data']['status_history']) == 2

    def test_reject_without_message(self, admin_client, reports):
        _, pending = reports
        response = admin_client.post(
            reverse('reports:report-transition', args=[pending.id]),
            {'status': ReportStatus.REJECTED},
            format='json',
        )
        assert response.status_code == 400
        assert response.data['error']['code'] == 'REJECTION_MESSAGE_REQUIRED'

    def test_invalid_transition(self, admin_client, reports):
        completed, _ = reports
        response = admin_client.post(
            reverse('reports:report-transition', args=[completed.id]),
            {'status': ReportStatus.IN_PROGRESS},
            format='json',
        )
        assert response.status_code == 409
        assert response.data['error']['code'] == 'INVALID_TRANSITION'

    def test_citizen_cannot_transition(self, citizen_client, reports):
        _, pending = reports
        response = citizen_client.post(
            reverse('reports:report-transition', args=[pending.id]),
            {'status': ReportStatus.RESOLVED},
            format='json',
        )
        assert response.status_code == 403

    def test_history(self, driver_client, reports):
        completed, _ = reports
        response = driver_client.get(reverse('reports:report-history', args=[completed.id]))
        assert response.status_code == 200
        assert [event['to_status'] for event in response.data['data']['status_history']] == [
            ReportStatus.PENDING, ReportStatus.ASSIGNED, ReportStatus.COMPLETED,
        ]

    def test_transition_refreshes_cached_analytics(self, admin_client, reports,
                                                   django_capture_on_commit_callbacks):
        _, pending = reports
        before = admin_client.get(reverse('analytics:status-distribution'), WINDOW).data['data']
        assert before['rejectionRate'] == 0.0

        with django_capture_on_commit_callbacks(execute=True):
            admin_client.post(
                reverse('reports:report-transition', args=[pending.id]),
                {'status': ReportStatus.REJECTED, 'rejectionMessage': 'Outside service area'},
                format='json',
            )

        after = admin_client.get(reverse('analytics:status-distribution'), WINDOW).data['data']
        assert after['rejectionRate'] == 50.0
