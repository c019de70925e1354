"""
Declarative per-class configuration (``EntityMeta``).
"""

from .builders import (
    build_entity_config,
    coerce_attribute_config,
    coerce_cascade_config,
    merge_attribute_configs,
)
from .config import (
    OVERRIDE_FIELDS,
    AttributeConfig,
    CascadeConfig,
    EntityConfig,
    RelationshipMarker,
)
from .reader import EntityMeta, EntityMetaReader, default_reader, get_entity_meta

__all__ = [
    "AttributeConfig",
    "CascadeConfig",
    "EntityConfig",
    "EntityMeta",
    "EntityMetaReader",
    "OVERRIDE_FIELDS",
    "RelationshipMarker",
    "build_entity_config",
    "coerce_attribute_config",
    "coerce_cascade_config",
    "default_reader",
    "get_entity_meta",
    "merge_attribute_configs",
]
