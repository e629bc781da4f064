"""
Transition log store: reads reports and their history from the database.

Rows are converted into frozen snapshots so nothing downstream touches the
ORM. Database failures surface as DataSourceUnavailable.
"""

import logging
import time

from django.db import DatabaseError, connection
from django.db.models import Prefetch, Q

from reports.models import Report, ReportStatus, ReportStatusHistory

from .exceptions import DataSourceUnavailable
from .types import ReportSnapshot, TransitionEvent

logger = logging.getLogger(__name__)


def snapshot_from_report(report):
    """Build a ReportSnapshot from a Report with prefetched history."""
    history = list(report.status_history.all())
    events = []
    for index, row in enumerate(history):
        message = row.rejection_message
        # Older rows kept the rejection reason on the report only
        if (
            row.to_status == ReportStatus.REJECTED
            and not message
            and index == len(history) - 1
        ):
            message = report.rejection_message
        events.append(TransitionEvent(
            to_status=row.to_status,
            timestamp=row.timestamp,
            from_status=row.from_status,
            actor_id=str(row.actor_id) if row.actor_id else None,
            actor_role=row.actor_role,
            rejection_message=message,
        ))

    coordinates = None
    if report.has_location:
        coordinates = (float(report.latitude), float(report.longitude))

    return ReportSnapshot(
        id=str(report.id),
        category=report.category,
        created_at=report.created_at,
        current_status=report.status,
        status_history=tuple(events),
        assigned_driver_id=str(report.assigned_driver_id) if report.assigned_driver_id else None,
        address=report.address,
        coordinates=coordinates,
    )


class ReportLogStore:
    """Read-only access to reports touching a date window."""

    def fetch(self, window, category=None):
        queryset = Report.objects.filter(
            Q(created_at__range=(window.start, window.end))
            | Q(status_history__timestamp__range=(window.start, window.end))
        )
        if category:
            queryset = queryset.filter(category=category)

        queryset = queryset.distinct().prefetch_related(
            Prefetch(
                'status_history',
                queryset=ReportStatusHistory.objects.order_by('timestamp', 'created_at'),
            )
        )

        started = time.monotonic()
        try:
            reports = list(queryset)
        except DatabaseError as exc:
            logger.error(f"[ReportLogStore] Query failed for {window.as_dict()}: {exc}")
            raise DataSourceUnavailable() from exc

        logger.debug(
            f"[ReportLogStore] Loaded {len(reports)} reports in "
            f"{(time.monotonic() - started) * 1000:.1f}ms"
        )
        return [snapshot_from_report(report) for report in reports]

    def ping(self):
        """Return the round-trip time in milliseconds; raise when unreachable."""
        started = time.monotonic()
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
                cursor.fetchone()
        except DatabaseError as exc:
            raise DataSourceUnavailable() from exc
        return round((time.monotonic() - started) * 1000, 2)

    def latest_activity(self):
        try:
            return (
                ReportStatusHistory.objects
                .order_by('-timestamp')
                .values_list('timestamp', flat=True)
                .first()
            )
        except DatabaseError as exc:
            raise DataSourceUnavailable() from exc
