"""
Report workflow views for CleanCity Backend.

Admins and drivers change report status here; every change goes through
ReportWorkflowService, which keeps the history log and the analytics
cache consistent.
"""

from django.shortcuts import get_object_or_404
from rest_framework import status, views
from rest_framework.response import Response

from authentication.permissions import IsAdminOrDriver
from .models import Report
from .serializers import ReportSerializer, StatusTransitionSerializer
from .services import ReportWorkflowService


class ReportTransitionView(views.APIView):
    """
    Change a report's status.

    POST /api/v1/reports/<report_id>/transition/

    Request:
    {
        "status": "Assigned",
        "driverId": "uuid",            # required for Assigned
        "rejectionMessage": "..."      # required for Rejected
    }
    """

    permission_classes = [IsAdminOrDriver]

    def post(self, request, report_id):
        report = get_object_or_404(Report, pk=report_id)
        serializer = StatusTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = ReportWorkflowService.transition(
            report,
            serializer.validated_data['status'],
            actor=request.user,
            rejection_message=serializer.validated_data['rejectionMessage'],
            driver=serializer.validated_data['driverId'],
        )
        return Response(
            {'success': True, 'data': ReportSerializer(updated).data},
            status=status.HTTP_200_OK,
        )


class ReportHistoryView(views.APIView):
    """
    Report with its full status history.

    GET /api/v1/reports/<report_id>/history/
    """

    permission_classes = [IsAdminOrDriver]

    def get(self, request, report_id):
        report = get_object_or_404(
            Report.objects.prefetch_related('status_history'), pk=report_id
        )
        return Response({'success': True, 'data': ReportSerializer(report).data})
