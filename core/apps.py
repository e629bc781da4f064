from django.apps import AppConfig
import logging
from django.conf import settings


class CoreConfig(AppConfig):
    name = 'core'

    def ready(self):
        """Log important runtime configuration on startup."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"ANALYTICS CACHE: enabled={settings.ANALYTICS_CACHE_ENABLED}, "
            f"ttl={settings.ANALYTICS_CACHE_TTL}s"
        )
