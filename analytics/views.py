"""
Analytics views for CleanCity Backend.

Read-only dashboards over the report lifecycle log:
- Incident trends and period comparison
- Status distribution and transition paths
- Workflow timelines and bottlenecks
- Driver performance and resolution times
- Cache maintenance and health

All endpoints are admin-only. Successful responses are wrapped as
{"success": true, "data": ..., "timestamp": ...}; errors are rendered by
core.exceptions.custom_exception_handler.
"""

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status, views
from rest_framework.response import Response

from authentication.permissions import IsAdmin

from .serializers import (
    CategoryWindowQuerySerializer,
    DriversQuerySerializer,
    ExportRequestSerializer,
    TimelineQuerySerializer,
    TrendComparisonQuerySerializer,
    TrendsQuerySerializer,
)
from .services import get_analytics_service


class AnalyticsAPIView(views.APIView):
    """Base view: admin only, query params validated by ``query_serializer_class``."""

    permission_classes = [IsAdmin]
    query_serializer_class = None

    @property
    def service(self):
        return get_analytics_service()

    def get_params(self, request):
        serializer = self.query_serializer_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def respond(self, data, status_code=status.HTTP_200_OK, success=True):
        return Response(
            {
                'success': success,
                'data': data,
                'timestamp': timezone.now().isoformat(),
            },
            status=status_code,
        )


class TrendsView(AnalyticsAPIView):
    """
    Incident trends by day and category.

    GET /api/v1/analytics/trends/?startDate=2026-01-01&endDate=2026-01-31

    Optional: category, optimize=true (omit per-day category breakdown),
    limit (number of top categories).
    """

    query_serializer_class = TrendsQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.trends(
            params['startDate'],
            params['endDate'],
            category=params['category'],
            optimize=params['optimize'],
            limit=params['limit'],
        ))


class TrendComparisonView(AnalyticsAPIView):
    """
    Compare incident totals of two periods.

    GET /api/v1/analytics/trends/comparison/?period1Start=...&period1End=...
        &period2Start=...&period2End=...

    period1 is treated as the current period, period2 as the previous one.
    """

    query_serializer_class = TrendComparisonQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.trends_comparison(
            params['period1Start'],
            params['period1End'],
            params['period2Start'],
            params['period2End'],
            category=params['category'],
        ))


class StatusDistributionView(AnalyticsAPIView):
    """GET /api/v1/analytics/status-distribution/"""

    query_serializer_class = CategoryWindowQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.status_distribution(
            params['startDate'], params['endDate'], category=params['category'],
        ))


class StatusTransitionsView(AnalyticsAPIView):
    """GET /api/v1/analytics/status-transitions/"""

    query_serializer_class = CategoryWindowQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.status_transitions(
            params['startDate'], params['endDate'], category=params['category'],
        ))


class WorkflowTimelineView(AnalyticsAPIView):
    """
    Per-report stage timelines.

    GET /api/v1/analytics/workflow-timeline/

    Optional: groupBy (hour|day|week), maxReports (timelines returned,
    newest first; metrics always cover the whole window).
    """

    query_serializer_class = TimelineQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.workflow_timeline(
            params['startDate'],
            params['endDate'],
            category=params['category'],
            group_by=params['groupBy'],
            max_reports=params['maxReports'],
        ))


class WorkflowBottlenecksView(AnalyticsAPIView):
    """GET /api/v1/analytics/workflow-bottlenecks/"""

    query_serializer_class = CategoryWindowQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.workflow_bottlenecks(
            params['startDate'], params['endDate'], category=params['category'],
        ))


class DriverPerformanceView(AnalyticsAPIView):
    """
    Driver scorecards.

    GET /api/v1/analytics/drivers/?startDate=...&endDate=...[&driverId=uuid]

    With driverId, returns only that driver or 404 when the driver has no
    assigned reports in the window.
    """

    query_serializer_class = DriversQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.drivers(
            params['startDate'], params['endDate'], driver_id=params['driverId'],
        ))


class ResolutionTimesView(AnalyticsAPIView):
    """GET /api/v1/analytics/resolution-times/"""

    query_serializer_class = CategoryWindowQuerySerializer

    def get(self, request):
        params = self.get_params(request)
        return self.respond(self.service.resolution_times(
            params['startDate'], params['endDate'], category=params['category'],
        ))


class ExportCSVView(AnalyticsAPIView):
    """
    Download analytics as CSV.

    POST /api/v1/analytics/export/csv/

    Request:
    {
        "dataType": "trends" | "status" | "drivers" | "resolution",
        "startDate": "2026-01-01",
        "endDate": "2026-01-31",
        "category": "all",
        "includeDetails": false
    }
    """

    def post(self, request):
        serializer = ExportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        filename, content = self.service.export_csv(
            params['dataType'],
            params['startDate'],
            params['endDate'],
            category=params['category'],
            include_details=params['includeDetails'],
        )
        response = HttpResponse(content, content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response


class AnalyticsHealthView(AnalyticsAPIView):
    """
    Health of the analytics dependencies.

    GET /api/v1/analytics/health/

    Returns 503 with success=false when the database is unreachable.
    """

    def get(self, request):
        health = self.service.health()
        if health['systemHealth'] == 'unhealthy':
            return self.respond(health, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, success=False)
        return self.respond(health)


class CacheStatsView(AnalyticsAPIView):
    """GET /api/v1/analytics/cache/stats/"""

    def get(self, request):
        return self.respond(self.service.cache_stats())


class CacheClearView(AnalyticsAPIView):
    """DELETE /api/v1/analytics/cache/"""

    def delete(self, request):
        deleted = self.service.clear_cache()
        return self.respond({'deletedKeys': deleted})
