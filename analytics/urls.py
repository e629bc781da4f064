"""
URL configuration for the analytics API.

All endpoints are under /api/v1/analytics/ and require an admin.
"""

from django.urls import path
from .views import (
    TrendsView,
    TrendComparisonView,
    StatusDistributionView,
    StatusTransitionsView,
    WorkflowTimelineView,
    WorkflowBottlenecksView,
    DriverPerformanceView,
    ResolutionTimesView,
    ExportCSVView,
    AnalyticsHealthView,
    CacheStatsView,
    CacheClearView,
)

app_name = 'analytics'

urlpatterns = [
    # Trends
    path('trends/', TrendsView.as_view(), name='trends'),
    path('trends/comparison/', TrendComparisonView.as_view(), name='trends-comparison'),

    # Status analytics
    path('status-distribution/', StatusDistributionView.as_view(), name='status-distribution'),
    path('status-transitions/', StatusTransitionsView.as_view(), name='status-transitions'),

    # Workflow
    path('workflow-timeline/', WorkflowTimelineView.as_view(), name='workflow-timeline'),
    path('workflow-bottlenecks/', WorkflowBottlenecksView.as_view(), name='workflow-bottlenecks'),

    # Performance
    path('drivers/', DriverPerformanceView.as_view(), name='drivers'),
    path('resolution-times/', ResolutionTimesView.as_view(), name='resolution-times'),

    # Export
    path('export/csv/', ExportCSVView.as_view(), name='export-csv'),

    # Operations
    path('health/', AnalyticsHealthView.as_view(), name='health'),
    path('cache/stats/', CacheStatsView.as_view(), name='cache-stats'),
    path('cache/', CacheClearView.as_view(), name='cache-clear'),
]
