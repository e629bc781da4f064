"""
Time-window filter for report lifecycle analytics.

A report is analysed for a window when it is well-formed and either was
created inside the window or has at least one status event inside it.
Windows are whole UTC calendar days with inclusive bounds.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from reports.models import ReportCategory, ReportStatus

from .cancellation import ensure_token
from .exceptions import InvalidRangeError, MalformedReport

logger = logging.getLogger(__name__)


def to_utc(value):
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt_timezone.utc)
    return value.astimezone(dt_timezone.utc)


def _parse_day(value, param):
    if isinstance(value, datetime):
        return to_utc(value).date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise InvalidRangeError(f"{param} is required.")

    raw = str(value).strip()
    try:
        parsed = parse_date(raw)
        if parsed is None:
            moment = parse_datetime(raw)
            parsed = to_utc(moment).date() if moment else None
    except ValueError:
        parsed = None

    if parsed is None:
        raise InvalidRangeError(f"{param} must be an ISO date (YYYY-MM-DD).")
    return parsed


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of UTC calendar days."""

    start_date: date
    end_date: date

    @classmethod
    def from_params(cls, start, end):
        start_date = _parse_day(start, 'startDate')
        end_date = _parse_day(end, 'endDate')
        if start_date > end_date:
            raise InvalidRangeError(
                f"startDate ({start_date.isoformat()}) must not be after "
                f"endDate ({end_date.isoformat()})."
            )
        return cls(start_date, end_date)

    @classmethod
    def last_days(cls, days, today=None):
        """Window covering the last ``days`` days, today included."""
        today = today or timezone.now().date()
        return cls(today - timedelta(days=days - 1), today)

    @property
    def start(self):
        return datetime.combine(self.start_date, time.min, tzinfo=dt_timezone.utc)

    @property
    def end(self):
        return datetime.combine(self.end_date, time.max, tzinfo=dt_timezone.utc)

    @property
    def total_days(self):
        return (self.end_date - self.start_date).days + 1

    def days(self):
        for offset in range(self.total_days):
            yield self.start_date + timedelta(days=offset)

    def contains(self, moment):
        if moment is None:
            return False
        return self.start <= to_utc(moment) <= self.end

    def as_dict(self):
        return {
            'startDate': self.start_date.isoformat(),
            'endDate': self.end_date.isoformat(),
        }


@dataclass
class WindowFilterResult:
    valid: list
    excluded_count: int = 0
    exclusion_reasons: dict = field(default_factory=dict)
    total_records: int = 0

    @property
    def quality_score(self):
        if not self.total_records:
            return 100.0
        return round(len(self.valid) / self.total_records * 100, 1)

    def data_quality(self):
        return {
            'totalRecords': self.total_records,
            'validRecords': len(self.valid),
            'excludedReports': self.excluded_count,
            'qualityScore': self.quality_score,
            'exclusionReasons': dict(self.exclusion_reasons),
        }


def validate_report(report):
    """
    Check the history invariants of a single report.

    Raises:
        MalformedReport: with one of missing_data, invalid_category,
            invalid_status, unordered_history, history_gap,
            status_mismatch or missing_rejection_message.
    """
    history = report.status_history
    if (
        not report.id
        or report.created_at is None
        or not report.category
        or report.current_status is None
        or not history
    ):
        raise MalformedReport('missing_data', report.id)

    if report.category not in ReportCategory.ALL:
        raise MalformedReport('invalid_category', report.id)

    statuses = [report.current_status]
    for event in history:
        if event.timestamp is None:
            raise MalformedReport('missing_data', report.id)
        statuses.append(event.to_status)
        if event.from_status is not None:
            statuses.append(event.from_status)
    if any(value not in ReportStatus.ALL for value in statuses):
        raise MalformedReport('invalid_status', report.id)

    for previous, current in zip(history, history[1:]):
        if to_utc(current.timestamp) < to_utc(previous.timestamp):
            raise MalformedReport('unordered_history', report.id)
        if current.from_status is not None and current.from_status != previous.to_status:
            raise MalformedReport('history_gap', report.id)

    if report.current_status != history[-1].to_status:
        raise MalformedReport('status_mismatch', report.id)

    for event in history:
        if event.to_status == ReportStatus.REJECTED and not (event.rejection_message or '').strip():
            raise MalformedReport('missing_rejection_message', report.id)


def in_window(report, window):
    if window.contains(report.created_at):
        return True
    return any(window.contains(event.timestamp) for event in report.status_history)


def filter_reports(reports, window, token=None):
    """
    Split ``reports`` into those valid for ``window`` and a count of the rest.

    Malformed reports are logged and counted by reason; they never abort the
    query.
    """
    token = ensure_token(token)
    valid = []
    reasons = Counter()
    seen = set()
    total = 0

    for report in reports:
        token.check()
        total += 1

        if report.id and report.id in seen:
            reasons['duplicates'] += 1
            continue
        if report.id:
            seen.add(report.id)

        try:
            validate_report(report)
        except MalformedReport as exc:
            logger.warning(f"[WindowFilter] Excluding report {exc.report_id}: {exc.reason}")
            reasons[exc.reason] += 1
            continue

        if not in_window(report, window):
            reasons['outside_window'] += 1
            continue

        valid.append(report)

    excluded = sum(reasons.values())
    if excluded:
        logger.info(
            f"[WindowFilter] {len(valid)}/{total} reports valid for "
            f"{window.start_date}..{window.end_date}, excluded={dict(reasons)}"
        )

    return WindowFilterResult(
        valid=valid,
        excluded_count=excluded,
        exclusion_reasons=dict(reasons),
        total_records=total,
    )
