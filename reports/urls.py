"""
URL configuration for the report workflow API.

All endpoints are under /api/v1/reports/
"""

from django.urls import path
from .views import ReportTransitionView, ReportHistoryView

app_name = 'reports'

urlpatterns = [
    path('<uuid:report_id>/transition/', ReportTransitionView.as_view(), name='report-transition'),
    path('<uuid:report_id>/history/', ReportHistoryView.as_view(), name='report-history'),
]
