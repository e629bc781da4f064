"""Small numeric helpers shared by the aggregators."""

import math
import statistics

HOUR_MS = 60 * 60 * 1000


def average(values):
    if not values:
        return None
    return round(statistics.fmean(values), 2)


def median(values):
    if not values:
        return None
    return statistics.median(values)


def percentile(values, pct):
    """Nearest-rank percentile; None for an empty sample."""
    if not values:
        return None
    ordered = sorted(values)
    index = math.ceil(pct / 100 * len(ordered)) - 1
    return ordered[max(0, min(index, len(ordered) - 1))]


def percentage(part, whole, digits=1):
    if not whole:
        return 0.0
    return round(part / whole * 100, digits)


def duration_stats(values):
    """Summary block used by resolution-time endpoints."""
    return {
        'count': len(values),
        'avgMs': average(values),
        'medianMs': median(values),
        'minMs': min(values) if values else None,
        'maxMs': max(values) if values else None,
    }
