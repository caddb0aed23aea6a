# tracking_core/apps.py

from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class TrackingCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tracking_core"
    verbose_name = "Order item tracking"

    def ready(self):
        # Register Django system checks only
        try:
            from .checks import status_catalog  # noqa
        except Exception as exc:
            logger.warning(
                "Status catalog checks not registered: %s",
                exc,
            )
