"""
Shared helpers for building factories in tests.
"""

from entity_meta import DictTranslationStore, EntityModelFactory
from entity_meta.conf import EntityModelSettings


def make_factory(messages=None, locales=None, settings=None, **kwargs):
    """
    Factory with an in-memory translation store and library default settings.

    Args:
        messages: Root bundle entries, consulted for every locale
        locales: Extra ``{locale: {key: value}}`` bundles
        settings: EntityModelSettings; library defaults when omitted
    """
    bundles = {"": dict(messages or {})}
    bundles.update(locales or {})
    return EntityModelFactory(
        translation_store=DictTranslationStore(bundles),
        settings=settings or EntityModelSettings(),
        **kwargs,
    )
