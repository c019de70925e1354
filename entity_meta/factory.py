"""
Entity model factory.

``EntityModelFactory`` is the query surface consumers use:

    factory = EntityModelFactory()
    model = factory.get_model(Order)              # reference "Order"
    nested = factory.get_model("Order.customer", Customer)
    factory.has_model("Order")

A process-wide factory configured from ``settings.ENTITY_MODEL`` is available
through ``get_entity_model`` / ``has_entity_model``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional, Union

from django.utils.module_loading import import_string

from .builders import EntityModelBuilder
from .conf import EntityModelSettings
from .exceptions import ConfigurationError, ModelNotProvidedError
from .introspection import StructuralIntrospector, default_introspector
from .meta import EntityMetaReader, default_reader
from .registry import ModelRegistry
from .translation import NullTranslationStore, TranslationStore
from .types import EntityModel

logger = logging.getLogger(__name__)


def _load(path_or_object: Any) -> Any:
    """Instantiate a dotted path; objects are returned unchanged."""
    if isinstance(path_or_object, str):
        loaded = import_string(path_or_object)
        return loaded() if isinstance(loaded, type) else loaded
    return path_or_object


class EntityModelFactory:
    """
    Builds, caches and serves entity models.

    Args:
        translation_store: Store for locale keyed overrides; defaults to the
                           ``translation_store`` setting
        reader: Declarative configuration reader
        introspector: Structural introspector
        settings: Resolved settings; read from Django settings when omitted
        delegated_factories: Cooperating factories asked, in order, whether
                             they provide a reference before this one builds it
        provided_classes: When given, the only classes this factory claims in
                          ``can_provide_model``
        registry: Model cache, a fresh one per factory by default
        locale: Locale used for build-time translation lookups
    """

    def __init__(
        self,
        translation_store: Optional[TranslationStore] = None,
        reader: Optional[EntityMetaReader] = None,
        introspector: Optional[StructuralIntrospector] = None,
        settings: Optional[EntityModelSettings] = None,
        delegated_factories: Optional[Iterable[Any]] = None,
        provided_classes: Optional[Iterable[type]] = None,
        registry: Optional[ModelRegistry] = None,
        locale: Optional[str] = None,
    ):
        self.settings = settings or EntityModelSettings.from_settings()
        if translation_store is None:
            translation_store = (
                _load(self.settings.translation_store)
                if self.settings.translation_store
                else NullTranslationStore()
            )
        self.translation_store = translation_store
        self.reader = reader or default_reader
        self.introspector = introspector or default_introspector
        self.registry = registry or ModelRegistry()
        self.delegated_factories = [_load(f) for f in (delegated_factories or [])]
        self.provided_classes = frozenset(provided_classes) if provided_classes else None
        self.locale = locale or self.settings.default_locale

    def lookup(self, key: str) -> Optional[str]:
        """Translation store lookup in the build locale."""
        return self.translation_store.lookup(self.locale, key)

    def get_model(
        self,
        reference_or_class: Union[str, type],
        entity_class: Optional[Union[str, type]] = None,
    ) -> EntityModel:
        """
        Return the entity model for a class, building it on first request.

        Accepts ``get_model(cls)``, ``get_model(reference, cls)`` and
        ``get_model(cls, reference)``. A bare reference only returns models
        that were already built.
        """
        reference, cls = self._normalize(reference_or_class, entity_class)
        cached = self.registry.get(reference)
        if cached is not None:
            return cached
        if cls is None:
            raise ModelNotProvidedError(
                f"No entity model has been built for '{reference}'", reference=reference
            )

        delegate = self.find_delegate(reference, cls)
        if delegate is not None:
            logger.debug("Delegating %s to %s", reference, type(delegate).__name__)
            return delegate.get_model(reference, cls)
        if not self.can_provide_model(reference, cls):
            raise ModelNotProvidedError(
                f"No factory provides '{reference}' ({cls.__name__})", reference=reference
            )
        return self.build_model(reference, cls)

    def build_model(self, reference: str, entity_class: type) -> EntityModel:
        """Build (or fetch) a model in this factory's own registry."""
        return self.registry.get_or_build(reference, entity_class, self._construct)

    def _construct(self, reference: str, entity_class: type) -> EntityModel:
        return EntityModelBuilder(self).build(reference, entity_class)

    def has_model(self, reference: str) -> bool:
        return self.registry.has(reference)

    def can_provide_model(self, reference: str, entity_class: type) -> bool:
        if self.provided_classes is None:
            return True
        return entity_class in self.provided_classes

    def find_delegate(self, reference: str, entity_class: type) -> Optional[Any]:
        """First delegated factory that claims (reference, entity_class)."""
        for factory in self.delegated_factories:
            if factory is not self and factory.can_provide_model(reference, entity_class):
                return factory
        return None

    @staticmethod
    def _normalize(
        reference_or_class: Union[str, type], entity_class: Optional[Union[str, type]]
    ) -> tuple[str, Optional[type]]:
        if isinstance(reference_or_class, type):
            if entity_class is None:
                return reference_or_class.__name__, reference_or_class
            if isinstance(entity_class, str):
                return entity_class, reference_or_class
        elif isinstance(reference_or_class, str):
            if entity_class is None or isinstance(entity_class, type):
                return reference_or_class, entity_class
        raise ConfigurationError(
            f"Invalid model request ({reference_or_class!r}, {entity_class!r})"
        )


_default_factory: Optional[EntityModelFactory] = None
_default_factory_lock = threading.Lock()


def get_default_factory() -> EntityModelFactory:
    """Process-wide factory configured from Django settings."""
    global _default_factory
    if _default_factory is None:
        with _default_factory_lock:
            if _default_factory is None:
                settings = EntityModelSettings.from_settings()
                _default_factory = EntityModelFactory(
                    settings=settings,
                    delegated_factories=settings.delegated_factories,
                )
    return _default_factory


def reset_default_factory() -> None:
    """Forget the process-wide factory and every model it built."""
    global _default_factory
    with _default_factory_lock:
        _default_factory = None


def get_entity_model(
    reference_or_class: Union[str, type], entity_class: Optional[Union[str, type]] = None
) -> EntityModel:
    return get_default_factory().get_model(reference_or_class, entity_class)


def has_entity_model(reference: str) -> bool:
    return get_default_factory().has_model(reference)
