"""
Declarative configuration reader.

Domain classes describe their metadata with an inner ``EntityMeta`` class:

    class Order(models.Model):
        code = models.CharField(max_length=20)
        total = models.DecimalField(max_digits=10, decimal_places=2)
        lines = models.ManyToManyField(Product)

        class EntityMeta(EntityMeta):
            display_name = "Purchase order"
            sort_order = "code DESC"
            attribute_order = ["code", "total"]
            attribute_groups = {"general": ["code", "total"]}
            attributes = {
                "total": EntityMeta.Attribute(precision=3, currency=True),
                "lines": {"navigable": True},
            }

Dataclass based domain classes may also attach ``AttributeConfig`` or
``RelationshipMarker`` values through ``typing.Annotated``.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Any, Optional

from django.db import models

from ..introspection import PropertyDescriptor
from .builders import build_entity_config, merge_attribute_configs
from .config import (
    AttributeConfig,
    CascadeConfig,
    EntityConfig,
    RelationshipMarker,
)

logger = logging.getLogger(__name__)


class EntityMeta:
    """
    Optional base class for inner ``EntityMeta`` declarations.

    Subclassing only gives access to the configuration aliases; any class with
    the same attribute names is read the same way.
    """

    Attribute = AttributeConfig
    Cascade = CascadeConfig
    Marker = RelationshipMarker


def get_entity_meta(cls: type) -> Optional[type]:
    """Return the inner EntityMeta declaration of a class, if any."""
    return getattr(cls, "EntityMeta", None)


def _markers_from_field(field: Any) -> set[RelationshipMarker]:
    markers = set()
    if field is None:
        return markers
    if isinstance(field, models.BinaryField):
        markers.add(RelationshipMarker.LOB)
    if getattr(field, "is_relation", False) and (
        getattr(field, "many_to_many", False) or getattr(field, "one_to_many", False)
    ):
        markers.add(RelationshipMarker.TO_MANY)
    return markers


class EntityMetaReader:
    """
    Reads structural markers and attribute overrides for domain classes.

    Entity configurations are cached per class for the lifetime of the class.
    """

    _cache: "weakref.WeakKeyDictionary[type, EntityConfig]" = weakref.WeakKeyDictionary()
    _cache_lock = threading.Lock()

    def read_entity(self, cls: type) -> EntityConfig:
        with self._cache_lock:
            cached = self._cache.get(cls)
        if cached is not None:
            return cached
        config = build_entity_config(get_entity_meta(cls))
        with self._cache_lock:
            self._cache[cls] = config
        return config

    @classmethod
    def clear_cache(cls) -> None:
        with cls._cache_lock:
            cls._cache.clear()

    def read_attribute(
        self,
        cls: type,
        descriptor: PropertyDescriptor,
        root_class: Optional[type] = None,
        qualified_name: Optional[str] = None,
    ) -> tuple[frozenset[RelationshipMarker], AttributeConfig]:
        """
        Collect markers and overrides for one property.

        Args:
            cls: Class that declares the property (the embedded type for
                 embedded attributes)
            descriptor: Introspected property
            root_class: Entity class that embeds ``cls``, whose EntityMeta may
                        override embedded attributes by qualified name
            qualified_name: Name of the attribute within ``root_class``

        Returns:
            Tuple of (relationship markers, merged attribute configuration)
        """
        markers = _markers_from_field(descriptor.field)
        config = AttributeConfig()

        for item in descriptor.metadata:
            if isinstance(item, RelationshipMarker):
                markers.add(item)
            elif isinstance(item, AttributeConfig):
                config = merge_attribute_configs(config, item)

        own = self.read_entity(cls).attributes.get(descriptor.name)
        if own is not None:
            config = merge_attribute_configs(config, own)

        if root_class is not None and root_class is not cls and qualified_name:
            outer = self.read_entity(root_class).attributes.get(qualified_name)
            if outer is not None:
                config = merge_attribute_configs(config, outer)

        markers |= config.markers
        return frozenset(markers), config


default_reader = EntityMetaReader()
