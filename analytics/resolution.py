"""Resolution times of closed reports, overall and per category."""

from collections import defaultdict

from .cancellation import ensure_token
from .metrics import duration_stats


def resolution_times(valid_reports, token=None):
    token = ensure_token(token)
    overall = []
    grouped = defaultdict(list)

    for report in valid_reports:
        token.check()
        if not report.is_closed:
            continue
        overall.append(report.resolution_ms)
        grouped[(report.category, report.current_status)].append(report.resolution_ms)

    by_category = [
        {'category': category, 'status': status, **duration_stats(values)}
        for (category, status), values in sorted(grouped.items())
    ]

    return {
        'totalResolved': len(overall),
        'overall': duration_stats(overall),
        'byCategory': by_category,
    }
