"""
Configuration management for entity-meta.

Settings are resolved hierarchically:
1. Runtime overrides (via ``configure_settings``)
2. Global Django settings (``ENTITY_MODEL``)
3. Library defaults (``LIBRARY_DEFAULTS``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .defaults import LIBRARY_DEFAULTS, merge_settings

SETTINGS_NAME = "ENTITY_MODEL"

# Runtime overrides (avoids modifying Django settings)
_RUNTIME_SETTINGS: dict[str, Any] = {}


class SettingsProxy:
    """
    Proxy for accessing entity-meta settings with hierarchical resolution.

    Resolved values are cached; the cache is dropped whenever Django reports a
    change to ``ENTITY_MODEL`` or when runtime overrides are configured.
    """

    def __init__(self):
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value from the highest priority source.

        Args:
            key: Setting key to retrieve
            default: Value returned when no source defines the key

        Returns:
            The resolved setting value
        """
        if key in self._cache:
            return self._cache[key]

        value = _RUNTIME_SETTINGS.get(key)
        if value is None:
            value = self._get_django_setting(key)
        if value is None:
            value = LIBRARY_DEFAULTS.get(key)
        if value is None:
            value = default

        self._cache[key] = value
        return value

    def _get_django_setting(self, key: str) -> Any:
        configured = getattr(settings, SETTINGS_NAME, None) or {}
        if not isinstance(configured, dict):
            return None
        return configured.get(key)

    def as_dict(self) -> dict[str, Any]:
        configured = getattr(settings, SETTINGS_NAME, None) or {}
        merged = merge_settings(LIBRARY_DEFAULTS, configured)
        return merge_settings(merged, _RUNTIME_SETTINGS)

    def clear_cache(self) -> None:
        self._cache.clear()


entity_settings = SettingsProxy()


def configure_settings(**overrides: Any) -> None:
    """Apply runtime setting overrides, taking precedence over Django settings."""
    _RUNTIME_SETTINGS.update(overrides)
    entity_settings.clear_cache()


def reset_settings() -> None:
    """Drop every runtime override."""
    _RUNTIME_SETTINGS.clear()
    entity_settings.clear_cache()


@receiver(setting_changed)
def _clear_settings_cache(sender, setting=None, **kwargs):
    if setting in (SETTINGS_NAME, "LANGUAGE_CODE"):
        entity_settings.clear_cache()


@dataclass
class EntityModelSettings:
    """Resolved settings consumed by the model builders."""

    capitalize_words: bool = True
    use_default_prompt_value: bool = True
    plural_suffix: str = "s"
    default_decimal_precision: int = 2
    date_format: str = "%d-%m-%Y"
    datetime_format: str = "%d-%m-%Y %H:%M:%S"
    time_format: str = "%H:%M:%S"
    true_representation: str = "true"
    false_representation: str = "false"
    default_locale: Optional[str] = None
    translation_store: Optional[str] = None
    nesting_depth: int = 3
    skip_attributes: list[str] = field(default_factory=list)
    delegated_factories: list[str] = field(default_factory=list)
    search_case_sensitive: bool = False
    search_prefix_only: bool = False

    @classmethod
    def from_settings(cls, **overrides: Any) -> "EntityModelSettings":
        merged = merge_settings(entity_settings.as_dict(), overrides)
        valid_fields = set(cls.__dataclass_fields__.keys())
        instance = cls(**{k: v for k, v in merged.items() if k in valid_fields})
        if not instance.default_locale:
            instance.default_locale = getattr(settings, "LANGUAGE_CODE", "en")
        return instance

    @property
    def skipped_attribute_names(self) -> frozenset[str]:
        return frozenset(self.skip_attributes) | {"class"}
