"""
Django app configuration for context-rbac.

This module configures:
- Registration of the subjects and contexts listed in ``CONTEXT_RBAC``
- Cascade signals for role, permission, subject and context deletion
"""

import logging

from django.apps import AppConfig as BaseAppConfig

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for context-rbac."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "context_rbac"
    verbose_name = "Context RBAC"
    label = "context_rbac"

    def ready(self):
        """Initialize the application after Django has loaded."""
        try:
            from .registry import authorization_registry

            # Connects cascade signals for the default role/permission models
            authorization_registry.default_config
            registered = authorization_registry.load_from_settings()
            if registered:
                logger.info("Registered %s authorization entities from settings", registered)
        except Exception as e:
            logger.error(f"Error initializing context-rbac: {e}")
            if self._is_debug_mode():
                raise

    def _is_debug_mode(self):
        from django.conf import settings as django_settings

        return getattr(django_settings, "DEBUG", False)
