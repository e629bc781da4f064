"""
Read-only snapshots consumed by the analytics aggregators.

The store converts ORM rows into these frozen dataclasses so that every
aggregator is a pure function of its input and can be tested without a
database.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Tuple

from reports.models import ReportStatus


@dataclass(frozen=True)
class TransitionEvent:
    """One entry of a report's status history."""

    to_status: str
    timestamp: datetime
    from_status: Optional[str] = None
    actor_id: Optional[str] = None
    actor_role: str = 'system'
    rejection_message: str = ''


@dataclass(frozen=True)
class ReportSnapshot:
    """A report together with its full, timestamp-ordered history."""

    id: str
    category: Optional[str]
    created_at: Optional[datetime]
    current_status: Optional[str]
    status_history: Tuple[TransitionEvent, ...] = field(default_factory=tuple)
    assigned_driver_id: Optional[str] = None
    address: str = ''
    coordinates: Optional[Tuple[float, float]] = None

    @property
    def first_event(self):
        return self.status_history[0] if self.status_history else None

    @property
    def last_event(self):
        return self.status_history[-1] if self.status_history else None

    @property
    def is_closed(self):
        return self.current_status in ReportStatus.TERMINAL_STATES

    @property
    def is_resolved(self):
        return self.current_status in ReportStatus.RESOLVED_STATES

    @property
    def resolution_ms(self):
        """Milliseconds from the first to the last event, closed reports only."""
        if not self.is_closed or not self.status_history:
            return None
        return duration_ms(self.first_event.timestamp, self.last_event.timestamp)


def duration_ms(start, end):
    return (end - start) // timedelta(milliseconds=1)
