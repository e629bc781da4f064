"""
Trend aggregation: incidents per day and per category over a window.

Each report lands in exactly one day bucket and one category bucket, so
the daily series, the category totals and totalIncidents always agree.
"""

from collections import Counter

from .cancellation import ensure_token
from .metrics import percentage
from .window import to_utc

BUCKET_CREATED = 'created'
BUCKET_EVENT = 'event'


def bucket_day(report, window, bucket=BUCKET_CREATED):
    """UTC day a report is counted on, or None when it falls outside the window."""
    if bucket == BUCKET_EVENT:
        for event in report.status_history:
            if window.contains(event.timestamp):
                return to_utc(event.timestamp).date()
    if window.contains(report.created_at):
        return to_utc(report.created_at).date()
    return None


def aggregate_trends(valid_reports, window, limit=10, include_breakdown=True,
                     bucket=BUCKET_CREATED, token=None):
    token = ensure_token(token)
    day_counts = Counter()
    day_categories = {}
    category_totals = {}

    for report in valid_reports:
        token.check()
        day = bucket_day(report, window, bucket)
        if day is None:
            continue

        day_counts[day] += 1
        if report.category in category_totals:
            category_totals[report.category] += 1
        else:
            category_totals[report.category] = 1

        if include_breakdown:
            categories = day_categories.setdefault(day, {})
            categories[report.category] = categories.get(report.category, 0) + 1

    total = sum(category_totals.values())

    daily_trends = []
    for day in window.days():
        token.check()
        entry = {'date': day.isoformat(), 'count': day_counts.get(day, 0)}
        if include_breakdown:
            entry['categories'] = day_categories.get(day, {})
        daily_trends.append(entry)

    ranked = sorted(category_totals.items(), key=lambda item: (-item[1], item[0]))
    top_categories = [
        {'category': category, 'count': count, 'percentage': percentage(count, total)}
        for category, count in ranked[:limit]
    ]

    return {
        'totalIncidents': total,
        'dailyTrends': daily_trends,
        'categoryTotals': category_totals,
        'topCategories': top_categories,
        'totalDays': window.total_days,
    }


def compare_periods(current_count, previous_count):
    """Percentage change from ``previous_count`` to ``current_count``."""
    if previous_count == 0:
        change = 100.0 if current_count > 0 else 0.0
    else:
        change = round((current_count - previous_count) / previous_count * 100, 2)

    if change > 0:
        trend = 'increase'
    elif change < 0:
        trend = 'decrease'
    else:
        trend = 'stable'

    return {
        'currentCount': current_count,
        'previousCount': previous_count,
        'percentageChange': change,
        'trend': trend,
    }
