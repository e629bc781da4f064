"""Status distribution over the reports valid for a window."""

from reports.models import ReportStatus

from .cancellation import ensure_token
from .metrics import percentage


def status_distribution(valid_reports, token=None):
    """
    Counts per current status as ``summary: {status: {count, percentage}}``.

    Only statuses that occur are listed; the summary is empty when there are
    no reports.
    """
    token = ensure_token(token)
    counts = {}
    for report in valid_reports:
        token.check()
        counts[report.current_status] = counts.get(report.current_status, 0) + 1

    total = sum(counts.values())
    if not total:
        return {
            'totalReports': 0,
            'summary': {},
            'completionRate': 0.0,
            'rejectionRate': 0.0,
        }

    # Canonical lifecycle order keeps the output stable across runs
    summary = {
        value: {'count': counts[value], 'percentage': percentage(counts[value], total)}
        for value in ReportStatus.ALL
        if value in counts
    }
    completed = sum(counts.get(value, 0) for value in ReportStatus.RESOLVED_STATES)

    return {
        'totalReports': total,
        'summary': summary,
        'completionRate': percentage(completed, total),
        'rejectionRate': percentage(counts.get(ReportStatus.REJECTED, 0), total),
    }
