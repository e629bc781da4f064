"""
Serializers for the report workflow API.
"""

from rest_framework import serializers

from authentication.models import User, UserRole
from .models import Report, ReportStatus, ReportStatusHistory


class StatusTransitionSerializer(serializers.Serializer):
    """Request body for a status change."""

    status = serializers.ChoiceField(choices=ReportStatus.CHOICES)
    rejectionMessage = serializers.CharField(required=False, allow_blank=True, default='')
    driverId = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=UserRole.DRIVER, is_active=True),
        required=False,
        allow_null=True,
        default=None,
    )


class ReportStatusHistorySerializer(serializers.ModelSerializer):

    class Meta:
        model = ReportStatusHistory
        fields = ['id', 'from_status', 'to_status', 'timestamp', 'actor_role', 'rejection_message']


class ReportSerializer(serializers.ModelSerializer):
    status_history = ReportStatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Report
        fields = [
            'id', 'category', 'address', 'status', 'assigned_driver',
            'rejection_message', 'created_at', 'status_history',
        ]
