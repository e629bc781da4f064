"""
URL configuration for CleanCity Backend.

API Structure:
- /api/v1/auth/      - Token authentication
- /api/v1/reports/   - Report workflow (status transitions)
- /api/v1/analytics/ - Report lifecycle analytics (admin only)
- /admin/            - Django admin (restricted)
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Health check endpoint for load balancers."""
    return JsonResponse({
        'status': 'healthy',
        'service': 'cleancity-backend'
    })


def api_root(request):
    """API root endpoint with version info."""
    return JsonResponse({
        'name': 'CleanCity API',
        'version': 'v1',
        'endpoints': {
            'auth': '/api/v1/auth/',
            'reports': '/api/v1/reports/',
            'analytics': '/api/v1/analytics/',
        }
    })


urlpatterns = [
    # Liveness probe (public); analytics has its own dependency-aware check
    path('health/', health_check, name='health-check'),

    # API root
    path('api/v1/', api_root, name='api-root'),

    # Authentication endpoints
    path('api/v1/auth/', include('authentication.urls', namespace='auth')),

    # Report workflow endpoints
    path('api/v1/reports/', include('reports.urls', namespace='reports')),

    # Analytics endpoints
    path('api/v1/analytics/', include('analytics.urls', namespace='analytics')),

    # Django admin (restricted access)
    path('admin/', admin.site.urls),
]
