"""Per-driver workload and performance over a window."""

from reports.models import ReportStatus

from .cancellation import ensure_token
from .metrics import average, percentage


def driver_metrics(valid_reports, token=None):
    """
    One scorecard per assigned driver.

    Unassigned reports are skipped. A driver with no closed reports has
    ``avgResolutionMs`` of None.
    """
    token = ensure_token(token)
    by_driver = {}

    for report in valid_reports:
        token.check()
        if not report.assigned_driver_id:
            continue

        stats = by_driver.setdefault(report.assigned_driver_id, {
            'assigned': 0,
            'completed': 0,
            'rejected': 0,
            'in_progress': 0,
            'resolution_times': [],
        })
        stats['assigned'] += 1

        if report.is_resolved:
            stats['completed'] += 1
        elif report.current_status == ReportStatus.REJECTED:
            stats['rejected'] += 1
        else:
            stats['in_progress'] += 1

        if report.is_closed:
            stats['resolution_times'].append(report.resolution_ms)

    metrics = [
        {
            'driverId': driver_id,
            'totalAssigned': stats['assigned'],
            'completed': stats['completed'],
            'rejected': stats['rejected'],
            'inProgress': stats['in_progress'],
            'completionRate': percentage(stats['completed'], stats['assigned']),
            'avgResolutionMs': average(stats['resolution_times']),
        }
        for driver_id, stats in by_driver.items()
    ]
    metrics.sort(key=lambda item: (-item['totalAssigned'], item['driverId']))

    return {
        'driverCount': len(metrics),
        'metrics': metrics,
    }
