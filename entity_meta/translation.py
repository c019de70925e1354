"""
Translation stores.

A translation store answers ``lookup(locale, key)`` with an override string
or ``None``. Keys follow the schema used by the builders:

- ``<reference>.<fieldKey>`` for entity level values
- ``<reference>.<attributePath>.<fieldKey>`` for attribute level values
- ``<reference>.attributeGroup.<N>.messageKey`` / ``.attributeNames``
- ``<reference>.<attributePath>.cascade.<N>`` / ``cascadeFilterPath.<N>`` /
  ``cascadeMode.<N>`` and ``<reference>.<attributePath>.cascadeOff``
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from django.utils import translation

logger = logging.getLogger(__name__)


class TranslationStore(Protocol):
    def lookup(self, locale: str, key: str) -> Optional[str]:
        ...


def locale_candidates(locale: Optional[str]) -> list[str]:
    """
    Locales to try for ``locale``, most specific first.

    ``pt-br`` and ``pt_BR`` both yield ``["pt_BR", "pt", ""]``; the empty
    string is the root bundle.
    """
    if not locale:
        return [""]
    normalized = translation.to_locale(locale)
    candidates = [normalized]
    language = normalized.split("_")[0]
    if language != normalized:
        candidates.append(language)
    candidates.append("")
    return candidates


class NullTranslationStore:
    """Store without any overrides."""

    def lookup(self, locale: str, key: str) -> Optional[str]:
        return None


class DictTranslationStore:
    """
    In-memory store keyed by locale then message key.

    Args:
        messages: ``{locale: {key: value}}``; the ``""`` locale is the root
                  bundle consulted last for every locale.
    """

    def __init__(self, messages: Optional[dict[str, dict[str, str]]] = None):
        self.messages: dict[str, dict[str, str]] = {}
        for locale, bundle in (messages or {}).items():
            self.messages[translation.to_locale(locale) if locale else ""] = dict(bundle)

    def lookup(self, locale: str, key: str) -> Optional[str]:
        for candidate in locale_candidates(locale):
            bundle = self.messages.get(candidate)
            if bundle and key in bundle:
                return bundle[key]
        return None

    def add(self, locale: str, key: str, value: str) -> None:
        bundle_locale = translation.to_locale(locale) if locale else ""
        self.messages.setdefault(bundle_locale, {})[key] = value


class GettextTranslationStore:
    """
    Store backed by Django's gettext catalogs.

    Message ids are the keys themselves; an untranslated key comes back
    unchanged from gettext and is reported as absent.
    """

    def lookup(self, locale: str, key: str) -> Optional[str]:
        with translation.override(locale):
            value = translation.gettext(key)
        if not value or value == key:
            return None
        return value
