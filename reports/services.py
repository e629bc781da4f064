"""
Report workflow service.

All report writes go through ReportWorkflowService so that:
- Every status change appends exactly one history event
- Report.status always matches the newest event
- Cached analytics covering the report are dropped once the write commits

Usage:
    from reports.services import ReportWorkflowService

    report = ReportWorkflowService.create_report(citizen, 'hazardous', '12 Main St')
    ReportWorkflowService.transition(report, ReportStatus.ASSIGNED, actor=admin, driver=driver)
"""

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework import status

from core.exceptions import CleanCityAPIException
from .models import ActorRole, Report, ReportStatus, ReportStatusHistory

logger = logging.getLogger(__name__)


class InvalidTransitionError(CleanCityAPIException):
    default_code = 'INVALID_TRANSITION'
    default_message = 'This status change is not allowed for the report.'
    default_status_code = status.HTTP_409_CONFLICT


class RejectionMessageRequired(CleanCityAPIException, ValueError):
    default_code = 'REJECTION_MESSAGE_REQUIRED'
    default_message = 'A rejection message is required to reject a report.'
    default_status_code = status.HTTP_400_BAD_REQUEST


class DriverRequired(CleanCityAPIException, ValueError):
    default_code = 'DRIVER_REQUIRED'
    default_message = 'Assigning a report requires an active driver.'
    default_status_code = status.HTTP_400_BAD_REQUEST


class NotAssignedDriver(CleanCityAPIException):
    default_code = 'NOT_ASSIGNED_DRIVER'
    default_message = 'Only the assigned driver can update this report.'
    default_status_code = status.HTTP_403_FORBIDDEN


def _actor_role(actor):
    if actor is None:
        return ActorRole.SYSTEM
    if actor.is_admin:
        return ActorRole.ADMIN
    if actor.is_driver:
        return ActorRole.DRIVER
    return ActorRole.SYSTEM


class ReportWorkflowService:
    """Creates reports and moves them through the status workflow."""

    @classmethod
    def _invalidate_on_commit(cls, report, moments, analytics=None):
        """Drop cached analytics touching ``moments`` after the transaction commits."""
        def invalidate():
            from analytics.services import get_analytics_service
            service = analytics or get_analytics_service()
            service.invalidate_for_report(str(report.pk), moments)

        transaction.on_commit(invalidate)

    @classmethod
    def create_report(cls, submitted_by, category, address, description='',
                      latitude=None, longitude=None, created_at=None, analytics=None):
        """
        Create a Pending report with its creation event.

        Args:
            submitted_by: Citizen submitting the report
            category: One of ReportCategory.ALL
            address: Free-text address
            created_at: Submission time (defaults to now; used for imports and seeding)
        """
        created_at = created_at or timezone.now()

        with transaction.atomic():
            report = Report.objects.create(
                submitted_by=submitted_by,
                category=category,
                address=address,
                description=description,
                latitude=latitude,
                longitude=longitude,
                status=ReportStatus.PENDING,
                created_at=created_at,
            )
            ReportStatusHistory.objects.create(
                report=report,
                from_status=None,
                to_status=ReportStatus.PENDING,
                timestamp=created_at,
                actor_role=ActorRole.SYSTEM,
            )

        logger.info(f"[Workflow] Report {str(report.id)[:8]} created ({category})")
        cls._invalidate_on_commit(report, [created_at], analytics)
        return report

    @classmethod
    def transition(cls, report, to_status, actor=None, rejection_message='',
                   driver=None, timestamp=None, analytics=None):
        """
        Move a report to ``to_status`` and append one history event.

        Raises:
            InvalidTransitionError: the move is not in ALLOWED_TRANSITIONS or
                ``timestamp`` precedes the latest event
            RejectionMessageRequired: rejecting without a message
            DriverRequired: assigning without a driver
            NotAssignedDriver: a driver acting on a report not assigned to them
        """
        rejection_message = (rejection_message or '').strip()
        moment = timestamp or timezone.now()

        with transaction.atomic():
            # Re-fetch with lock so concurrent transitions serialize
            locked = Report.objects.select_for_update().get(pk=report.pk)
            from_status = locked.status

            if not ReportStatus.can_transition(from_status, to_status):
                raise InvalidTransitionError(
                    f"Cannot move report from {from_status} to {to_status}."
                )

            if actor is not None and actor.is_driver and locked.assigned_driver_id != actor.id:
                raise NotAssignedDriver()

            if to_status == ReportStatus.REJECTED and not rejection_message:
                raise RejectionMessageRequired()

            update_fields = ['status', 'updated_at']
            if to_status == ReportStatus.ASSIGNED:
                if driver is None or not driver.is_driver or not driver.is_active:
                    raise DriverRequired()
                locked.assigned_driver = driver
                update_fields.append('assigned_driver')

            if to_status == ReportStatus.REJECTED:
                locked.rejection_message = rejection_message
                update_fields.append('rejection_message')

            moments = list(locked.status_history.values_list('timestamp', flat=True))
            if moments and moment < max(moments):
                raise InvalidTransitionError('Status changes must be recorded in time order.')

            locked.status = to_status
            locked.save(update_fields=update_fields)

            ReportStatusHistory.objects.create(
                report=locked,
                from_status=from_status,
                to_status=to_status,
                timestamp=moment,
                actor=actor,
                actor_role=_actor_role(actor),
                rejection_message=rejection_message if to_status == ReportStatus.REJECTED else '',
            )

        logger.info(
            f"[Workflow] Report {str(locked.id)[:8]}: {from_status} -> {to_status} "
            f"by {_actor_role(actor)}"
        )
        cls._invalidate_on_commit(locked, moments + [moment, locked.created_at], analytics)
        return locked
