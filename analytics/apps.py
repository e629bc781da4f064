from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    name = 'analytics'
    verbose_name = 'Report Lifecycle Analytics'
    service = None

    def ready(self):
        from .services import build_analytics_service
        self.service = build_analytics_service()
