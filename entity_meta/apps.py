"""
Django app configuration for entity-meta.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.conf import settings

from .defaults import LIBRARY_DEFAULTS

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for entity-meta."""

    name = "entity_meta"
    verbose_name = "Entity Meta"
    label = "entity_meta"

    def ready(self):
        self._validate_configuration()

    def _validate_configuration(self):
        configured = getattr(settings, "ENTITY_MODEL", None) or {}
        if not isinstance(configured, dict):
            logger.warning("ENTITY_MODEL should be a dict, got %s", type(configured).__name__)
            return
        unknown = sorted(set(configured) - set(LIBRARY_DEFAULTS))
        if unknown:
            logger.warning("Unknown ENTITY_MODEL settings ignored: %s", ", ".join(unknown))
