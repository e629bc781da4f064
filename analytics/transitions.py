"""
Transition analysis: how reports move between statuses.

The transition graph is a plain count table keyed by (from, to), filled by
a single pairwise fold over each report's history.
"""

from collections import Counter, defaultdict

from .cancellation import ensure_token
from .metrics import average
from .types import duration_ms


def status_path(report):
    """Ordered statuses a report went through, consecutive repeats collapsed."""
    path = []
    for event in report.status_history:
        if not path or path[-1] != event.to_status:
            path.append(event.to_status)
    return tuple(path)


def analyze_transitions(valid_reports, top_n=10, token=None):
    token = ensure_token(token)
    edge_counts = Counter()
    edge_durations = defaultdict(list)
    path_counts = Counter()

    for report in valid_reports:
        token.check()
        history = report.status_history
        for previous, current in zip(history, history[1:]):
            edge = (previous.to_status, current.to_status)
            edge_counts[edge] += 1
            edge_durations[edge].append(duration_ms(previous.timestamp, current.timestamp))
        path_counts[status_path(report)] += 1

    transition_stats = [
        {
            'from': source,
            'to': target,
            'count': count,
            'averageDurationMs': average(edge_durations[(source, target)]),
        }
        for (source, target), count in sorted(
            edge_counts.items(), key=lambda item: (-item[1], item[0][0], item[0][1])
        )
    ]

    ranked_paths = sorted(path_counts.items(), key=lambda item: (-item[1], len(item[0]), item[0]))
    common_paths = [
        {'path': list(path), 'count': count}
        for path, count in ranked_paths[:top_n]
    ]

    return {
        'transitionStats': transition_stats,
        'commonPaths': common_paths,
        'totalTransitions': sum(edge_counts.values()),
    }
