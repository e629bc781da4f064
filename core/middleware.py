"""
Request logging middleware for CleanCity Backend.

Logs every API request with its outcome and duration so that slow
analytics queries are visible in the request log.
"""

import logging
import time
from django.utils import timezone

from core.exceptions import get_client_ip

request_logger = logging.getLogger('cleancity.requests')


class RequestLoggingMiddleware:
    """
    Middleware to log all API requests.

    Captures:
    - Request method and path
    - User information
    - Response status code
    - Request duration
    - Client IP address
    """

    skip_prefixes = (
        '/static/',
        '/media/',
        '/health/',
        '/favicon.ico',
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start_time = time.monotonic()

        response = self.get_response(request)

        duration = time.monotonic() - start_time

        if not request.path.startswith(self.skip_prefixes):
            self._log_request(request, response, duration)

        return response

    def _log_request(self, request, response, duration):
        """Log the request details."""
        user_id = 'anonymous'
        user_role = 'none'

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            user_id = str(user.id)
            user_role = getattr(user, 'role', 'none')

        log_data = {
            'timestamp': timezone.now().isoformat(),
            'method': request.method,
            'path': request.path,
            'query': request.META.get('QUERY_STRING', '')[:200],
            'user_id': user_id,
            'user_role': user_role,
            'status_code': response.status_code,
            'duration_ms': round(duration * 1000, 2),
            'ip_address': get_client_ip(request),
        }

        # Log at appropriate level based on status code
        if response.status_code >= 500:
            request_logger.error(f"API Request: {log_data}")
        elif response.status_code >= 400:
            request_logger.warning(f"API Request: {log_data}")
        else:
            request_logger.info(f"API Request: {log_data}")
