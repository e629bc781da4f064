"""
Workflow timelines and bottleneck detection.

A report's timeline is its history turned into stages: the time spent in
each status before the next event. The last stage is still open and has no
duration. Bottlenecks are the statuses reports spend the longest in.
"""

from collections import defaultdict

from reports.models import ReportStatus

from .cancellation import ensure_token
from .metrics import HOUR_MS, average, median, percentage, percentile
from .types import duration_ms
from .window import to_utc

GROUP_BY_CHOICES = ('hour', 'day', 'week')

# Closed reports resolved within this many hours count as efficient
EFFICIENCY_TARGET_HOURS = 48

STATUS_RECOMMENDATIONS = {
    ReportStatus.PENDING: 'Consider automated assignment rules to reduce pending time',
    ReportStatus.ASSIGNED: 'Review driver workload distribution',
    ReportStatus.IN_PROGRESS: 'Analyze field completion challenges',
}


def build_report_timeline(report):
    history = report.status_history
    stages = []
    for index, event in enumerate(history):
        following = history[index + 1] if index + 1 < len(history) else None
        stages.append({
            'status': event.to_status,
            'enteredAt': to_utc(event.timestamp).isoformat(),
            'durationMs': duration_ms(event.timestamp, following.timestamp) if following else None,
        })

    return {
        'reportId': report.id,
        'category': report.category,
        'currentStatus': report.current_status,
        'createdAt': to_utc(report.created_at).isoformat(),
        'isClosed': report.is_closed,
        'resolutionMs': report.resolution_ms,
        'stages': stages,
    }


def efficiency_metrics(report_timelines):
    closed = [timeline for timeline in report_timelines if timeline['isClosed']]
    resolution_times = [timeline['resolutionMs'] for timeline in closed]
    resolved = sum(
        1 for timeline in report_timelines
        if timeline['currentStatus'] in ReportStatus.RESOLVED_STATES
    )
    target_ms = EFFICIENCY_TARGET_HOURS * HOUR_MS
    within_target = sum(1 for value in resolution_times if value <= target_ms)

    return {
        'avgResolutionMs': average(resolution_times),
        'medianResolutionMs': median(resolution_times),
        'closedReports': len(closed),
        'openReports': len(report_timelines) - len(closed),
        'completionRate': percentage(resolved, len(report_timelines)),
        'efficiencyScore': percentage(within_target, len(closed)),
    }


def period_key(moment, group_by):
    moment = to_utc(moment)
    if group_by == 'hour':
        return moment.strftime('%Y-%m-%dT%H:00')
    if group_by == 'week':
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    return moment.date().isoformat()


def aggregate_timeline(valid_reports, group_by='day', token=None):
    """Status entries per hour, day or ISO week, ascending by period."""
    token = ensure_token(token)
    periods = defaultdict(dict)
    for report in valid_reports:
        token.check()
        for event in report.status_history:
            counts = periods[period_key(event.timestamp, group_by)]
            counts[event.to_status] = counts.get(event.to_status, 0) + 1

    return [
        {
            'period': period,
            'statusCounts': counts,
            'totalEvents': sum(counts.values()),
        }
        for period, counts in sorted(periods.items())
    ]


def build_timeline(valid_reports, max_reports=None, group_by='day', token=None):
    """
    Per-report timelines plus efficiency metrics.

    Metrics always cover every valid report; ``max_reports`` only limits how
    many timelines are returned, newest first.
    """
    if group_by not in GROUP_BY_CHOICES:
        raise ValueError(f"group_by must be one of {GROUP_BY_CHOICES}")

    token = ensure_token(token)
    newest_first = sorted(
        valid_reports,
        key=lambda report: (to_utc(report.created_at), report.id),
        reverse=True,
    )
    timelines = []
    for report in newest_first:
        token.check()
        timelines.append(build_report_timeline(report))

    return {
        'totalReports': len(timelines),
        'reportTimelines': timelines[:max_reports] if max_reports is not None else timelines,
        'efficiencyMetrics': efficiency_metrics(timelines),
        'aggregatedTimeline': aggregate_timeline(valid_reports, group_by, token),
    }


def bottleneck_severity(avg_ms, p90_ms):
    if avg_ms > 72 * HOUR_MS or p90_ms > 168 * HOUR_MS:
        return 'high'
    if avg_ms > 24 * HOUR_MS or p90_ms > 72 * HOUR_MS:
        return 'medium'
    return 'low'


def bottleneck_recommendations(status, avg_ms, p90_ms):
    recommendations = [
        STATUS_RECOMMENDATIONS.get(
            status, f"Review {status.lower()} process for optimization opportunities"
        )
    ]
    if status == ReportStatus.PENDING and avg_ms > 24 * HOUR_MS:
        recommendations.append('Implement priority queuing for urgent incidents')
    elif status == ReportStatus.ASSIGNED and p90_ms > 72 * HOUR_MS:
        recommendations.append('Consider additional driver resources or reassignment policies')
    elif status == ReportStatus.IN_PROGRESS and avg_ms > 48 * HOUR_MS:
        recommendations.append('Provide additional tools or training for complex incidents')
    if avg_ms > 168 * HOUR_MS:
        recommendations.append('Critical: Implement escalation procedures for long-running cases')
    return recommendations


def find_bottlenecks(report_timelines, token=None):
    """Rank statuses by average time spent in them, slowest first."""
    token = ensure_token(token)
    durations = defaultdict(list)
    total_stages = 0

    for timeline in report_timelines:
        token.check()
        for stage in timeline['stages']:
            total_stages += 1
            if stage['durationMs'] is not None:
                durations[stage['status']].append(stage['durationMs'])

    bottlenecks = []
    for status, values in durations.items():
        avg_ms = average(values)
        p90_ms = percentile(values, 90)
        bottlenecks.append({
            'status': status,
            'avgDurationMs': avg_ms,
            'medianDurationMs': median(values),
            'p90DurationMs': p90_ms,
            'reportCount': len(values),
            'severity': bottleneck_severity(avg_ms, p90_ms),
            'recommendations': bottleneck_recommendations(status, avg_ms, p90_ms),
        })
    bottlenecks.sort(key=lambda item: (-item['avgDurationMs'], item['status']))

    closed_stages = sum(len(values) for values in durations.values())
    return {
        'bottlenecks': bottlenecks,
        'efficiencyMetrics': {
            'totalStages': total_stages,
            'closedStages': closed_stages,
            'openStages': total_stages - closed_stages,
        },
    }
