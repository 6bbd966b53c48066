"""
Access app configuration.
"""
import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class AccessConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.access'
    verbose_name = 'Route Access Control'

    # Shared resolver, built once in ready()
    resolver = None

    def ready(self):
        """Build the catalog client and resolver used by every request."""
        from apps.access.catalog import DjangoCatalog
        from apps.access.resolver import PermissionResolver

        self.resolver = PermissionResolver(DjangoCatalog())

        if getattr(settings, 'RBAC_DISABLED', False):
            from apps.core.logging import SecurityLogger
            SecurityLogger.log_access_control_disabled(source='startup')
