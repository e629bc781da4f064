from io import StringIO

import pytest
from django.core.management import call_command

from analytics.services import get_analytics_service
from analytics.window import DateWindow, filter_reports
from authentication.models import User, UserRole
from reports.models import Report, ReportStatusHistory

pytestmark = pytest.mark.django_db


def test_seed_reports_builds_consistent_histories():
    out = StringIO()
    call_command('seed_reports', reports=25, days=10, seed=7, stdout=out)

    assert Report.objects.count() == 25
    assert User.objects.filter(role=UserRole.DRIVER).count() == 3
    assert 'Done! Created 25 reports' in out.getvalue()

    for report in Report.objects.all():
        latest = ReportStatusHistory.objects.filter(report=report).order_by('-timestamp', '-created_at').first()
        assert latest.to_status == report.status

    # Creation times reach back up to ten days before now
    window = DateWindow.last_days(11)
    result = filter_reports(get_analytics_service().store.fetch(window), window)
    assert result.excluded_count == 0
    assert len(result.valid) == 25


def test_seed_reports_is_rerunnable():
    call_command('seed_reports', reports=2, stdout=StringIO())
    out = StringIO()
    call_command('seed_reports', reports=2, stdout=out)

    assert User.objects.count() == 7
    assert 'Exists:' in out.getvalue()


def test_warm_cache_dry_run():
    out = StringIO()
    call_command('warm_analytics_cache', days=[7], dry_run=True, stdout=out)

    assert 'status-distribution' in out.getvalue()
    assert 'DRY RUN' in out.getvalue()
    assert get_analytics_service().cache_stats()['size'] == 0


def test_warm_cache_fills_the_cache():
    call_command('seed_reports', reports=5, days=3, seed=1, stdout=StringIO())
    out = StringIO()
    call_command('warm_analytics_cache', days=[7], stdout=out)

    assert 'Errors: 0' in out.getvalue()
    assert get_analytics_service().cache_stats()['size'] > 0
