"""
Report models for CleanCity Backend.

Contains:
- Report: A citizen-submitted waste incident
- ReportStatusHistory: Append-only log of status transitions

Lifecycle:
- Creation writes one synthetic history event (None -> Pending)
- Every later status change appends exactly one event
- Reports are never deleted; Completed, Resolved and Rejected are terminal
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel


class ReportStatus:
    """Report lifecycle status constants."""

    PENDING = 'Pending'
    ASSIGNED = 'Assigned'
    IN_PROGRESS = 'In Progress'
    COMPLETED = 'Completed'
    RESOLVED = 'Resolved'
    REJECTED = 'Rejected'

    CHOICES = [
        (PENDING, 'Pending'),
        (ASSIGNED, 'Assigned'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
        (RESOLVED, 'Resolved'),
        (REJECTED, 'Rejected'),
    ]

    ALL = [value for value, _ in CHOICES]

    # Terminal states (no further status changes)
    TERMINAL_STATES = [COMPLETED, RESOLVED, REJECTED]

    # Terminal states that count as a successful resolution
    RESOLVED_STATES = [COMPLETED, RESOLVED]

    ALLOWED_TRANSITIONS = {
        PENDING: [ASSIGNED, RESOLVED, REJECTED],
        ASSIGNED: [IN_PROGRESS, COMPLETED, REJECTED],
        IN_PROGRESS: [COMPLETED, RESOLVED, REJECTED],
        COMPLETED: [],
        RESOLVED: [],
        REJECTED: [],
    }

    @classmethod
    def can_transition(cls, from_status, to_status):
        return to_status in cls.ALLOWED_TRANSITIONS.get(from_status, [])


class ReportCategory:
    """Waste incident category constants."""
    GENERAL_WASTE = 'general_waste'
    RECYCLABLE = 'recyclable'
    HAZARDOUS = 'hazardous'
    ILLEGAL_DUMPING = 'illegal_dumping'
    BULKY_ITEMS = 'bulky_items'

    CHOICES = [
        (GENERAL_WASTE, 'General Waste'),
        (RECYCLABLE, 'Recyclable'),
        (HAZARDOUS, 'Hazardous'),
        (ILLEGAL_DUMPING, 'Illegal Dumping'),
        (BULKY_ITEMS, 'Bulky Items'),
    ]

    ALL = [value for value, _ in CHOICES]


class ActorRole:
    """Who performed a status transition."""
    ADMIN = 'admin'
    DRIVER = 'driver'
    SYSTEM = 'system'

    CHOICES = [
        (ADMIN, 'Administrator'),
        (DRIVER, 'Driver'),
        (SYSTEM, 'System'),
    ]


class Report(BaseModel):
    """
    Waste incident reported by a citizen.

    `status` always mirrors the `to_status` of the newest history event;
    ReportWorkflowService is the only writer that keeps both in step.
    """

    # Creation time is settable once (imports, seeding) but never edited
    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        help_text="Timestamp when the report was submitted"
    )

    submitted_by = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='submitted_reports',
        help_text="Citizen who submitted the report"
    )

    category = models.CharField(
        max_length=30,
        choices=ReportCategory.CHOICES,
        default=ReportCategory.GENERAL_WASTE,
        db_index=True,
        help_text="Waste category"
    )

    address = models.CharField(
        max_length=255,
        help_text="Free-text address of the incident"
    )

    description = models.TextField(
        blank=True,
        help_text="Citizen's description of the incident"
    )

    # Present only when geocoding succeeded
    latitude = models.DecimalField(
        max_digits=10,
        decimal_places=7,
        null=True,
        blank=True,
    )

    longitude = models.DecimalField(
        max_digits=10,
        decimal_places=7,
        null=True,
        blank=True,
    )

    status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        default=ReportStatus.PENDING,
        db_index=True,
        help_text="Current report status"
    )

    assigned_driver = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='assigned_reports',
        help_text="Driver currently responsible for the report"
    )

    rejection_message = models.TextField(
        blank=True,
        help_text="Reason given when the report was rejected"
    )

    class Meta:
        db_table = 'reports'
        verbose_name = 'Report'
        verbose_name_plural = 'Reports'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_at', 'category'], name='reports_created_cat_idx'),
            models.Index(fields=['status', 'assigned_driver'], name='reports_status_driver_idx'),
            models.Index(fields=['created_at', 'status', 'category'], name='reports_created_status_idx'),
        ]

    def __str__(self):
        return f"Report {str(self.id)[:8]} ({self.status})"

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    @property
    def is_terminal(self):
        return self.status in ReportStatus.TERMINAL_STATES


class ReportStatusHistory(BaseModel):
    """
    Immutable status change event for a report.

    Rows are only ever inserted. `from_status` is null for the creation
    event; otherwise it equals the previous event's `to_status`.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.PROTECT,
        related_name='status_history',
        help_text="Report this event belongs to"
    )

    from_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        blank=True,
        null=True,
        help_text="Previous status (null for initial creation)"
    )

    to_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        help_text="New status"
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the transition happened"
    )

    actor = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='report_status_changes',
        help_text="User who changed the status (null for system events)"
    )

    actor_role = models.CharField(
        max_length=10,
        choices=ActorRole.CHOICES,
        default=ActorRole.SYSTEM,
    )

    rejection_message = models.TextField(
        blank=True,
        help_text="Required when to_status is Rejected"
    )

    class Meta:
        db_table = 'report_status_history'
        verbose_name = 'Report Status History'
        verbose_name_plural = 'Report Status Histories'
        ordering = ['timestamp', 'created_at']
        indexes = [
            models.Index(fields=['report', 'timestamp'], name='report_history_ts_idx'),
        ]

    def __str__(self):
        return f"Report {str(self.report_id)[:8]}: {self.from_status} -> {self.to_status}"
