"""Builders for report snapshots and an in-memory report store."""

import uuid
from datetime import datetime, timezone

from analytics.types import ReportSnapshot, TransitionEvent
from analytics.window import filter_reports


def at(day, hour=0, minute=0):
    """Aware UTC datetime for an ISO ``day``."""
    return datetime.fromisoformat(f"{day}T{hour:02d}:{minute:02d}:00").replace(tzinfo=timezone.utc)


def make_report(steps, category='recyclable', report_id=None, created_at=None,
                driver_id=None, current_status=None):
    """
    Snapshot whose history follows ``steps``.

    Each step is ``(status, timestamp)`` or ``(status, timestamp, rejection_message)``;
    from_status is chained from the previous step.
    """
    events = []
    previous = None
    for step in steps:
        status, moment = step[0], step[1]
        message = step[2] if len(step) > 2 else ''
        events.append(TransitionEvent(
            to_status=status,
            timestamp=moment,
            from_status=previous,
            rejection_message=message,
        ))
        previous = status

    return ReportSnapshot(
        id=report_id or str(uuid.uuid4()),
        category=category,
        created_at=created_at or (steps[0][1] if steps else None),
        current_status=current_status or previous,
        status_history=tuple(events),
        assigned_driver_id=driver_id,
    )


class FakeStore:
    """Report store over a list of snapshots; counts fetches."""

    def __init__(self, reports=None, ping_ms=1.0, latest=None, error=None):
        self.reports = list(reports or [])
        self.ping_ms = ping_ms
        self.latest = latest
        self.error = error
        self.fetch_count = 0

    def fetch(self, window, category=None):
        self.fetch_count += 1
        if self.error:
            raise self.error
        return [
            report for report in self.reports
            if category is None or report.category == category
        ]

    def ping(self):
        if self.error:
            raise self.error
        return self.ping_ms

    def latest_activity(self):
        return self.latest


def valid_for(reports, window):
    return filter_reports(reports, window).valid
