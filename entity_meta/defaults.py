"""
Default configuration for entity-meta.

Every key the engine reads from ``settings.ENTITY_MODEL`` is listed here with
its library default, so this module is the single source of truth for what
can be configured.
"""

from __future__ import annotations

from typing import Any

LIBRARY_NAME = "entity-meta"

LIBRARY_DEFAULTS: dict[str, Any] = {
    # Derived display names
    "capitalize_words": True,
    "use_default_prompt_value": True,
    "plural_suffix": "s",
    # Formatting
    "default_decimal_precision": 2,
    "date_format": "%d-%m-%Y",
    "datetime_format": "%d-%m-%Y %H:%M:%S",
    "time_format": "%H:%M:%S",
    "true_representation": "true",
    "false_representation": "false",
    # Translation lookups; None falls back to settings.LANGUAGE_CODE
    "default_locale": None,
    "translation_store": "entity_meta.translation.GettextTranslationStore",
    # Model construction
    "nesting_depth": 3,
    "skip_attributes": ["version", "polymorphic_ctype"],
    "delegated_factories": [],
    # Search defaults
    "search_case_sensitive": False,
    "search_prefix_only": False,
}


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with every non-None value of ``override``."""
    result = dict(base)
    for key, value in (override or {}).items():
        if value is not None:
            result[key] = value
    return result
