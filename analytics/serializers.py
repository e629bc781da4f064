"""
Query parameter serializers for the analytics API.

Dates are accepted as plain strings here and parsed by DateWindow so that
every range problem is reported the same way (INVALID_DATE_RANGE).
"""

from rest_framework import serializers

from reports.models import ReportCategory

from .timeline import GROUP_BY_CHOICES

CATEGORY_CHOICES = ReportCategory.ALL + ['all']


class WindowQuerySerializer(serializers.Serializer):
    startDate = serializers.CharField(required=False, allow_blank=True, default='')
    endDate = serializers.CharField(required=False, allow_blank=True, default='')


class CategoryWindowQuerySerializer(WindowQuerySerializer):
    category = serializers.ChoiceField(choices=CATEGORY_CHOICES, required=False, default='all')


class TrendsQuerySerializer(CategoryWindowQuerySerializer):
    optimize = serializers.BooleanField(required=False, default=False)
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=100)


class TrendComparisonQuerySerializer(serializers.Serializer):
    period1Start = serializers.CharField(required=False, allow_blank=True, default='')
    period1End = serializers.CharField(required=False, allow_blank=True, default='')
    period2Start = serializers.CharField(required=False, allow_blank=True, default='')
    period2End = serializers.CharField(required=False, allow_blank=True, default='')
    category = serializers.ChoiceField(choices=CATEGORY_CHOICES, required=False, default='all')


class TimelineQuerySerializer(CategoryWindowQuerySerializer):
    groupBy = serializers.ChoiceField(choices=GROUP_BY_CHOICES, required=False, default='day')
    maxReports = serializers.IntegerField(required=False, default=100, min_value=1, max_value=1000)


class DriversQuerySerializer(WindowQuerySerializer):
    driverId = serializers.UUIDField(required=False, allow_null=True, default=None)


class ExportRequestSerializer(CategoryWindowQuerySerializer):
    """Body of POST export/csv/."""

    DATA_TYPES = ['trends', 'status', 'drivers', 'resolution']

    dataType = serializers.ChoiceField(choices=DATA_TYPES)
    includeDetails = serializers.BooleanField(required=False, default=False)
