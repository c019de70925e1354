"""
entity-meta: metadata models derived from Django models and annotated classes.

Entity models describe every exposable attribute of a domain class (kind,
formatting, visibility, search behaviour, ordering, grouping and nested
relationships) and are built once per reference, then cached.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationError,
    EntityModelError,
    IllegalStructureError,
    InvalidCombinationError,
    ModelNotProvidedError,
    UnresolvableReferenceError,
)
from .factory import (
    EntityModelFactory,
    get_default_factory,
    get_entity_model,
    has_entity_model,
    reset_default_factory,
)
from .lazy import LazyModelHandle
from .meta import AttributeConfig, CascadeConfig, EntityMeta, RelationshipMarker
from .registry import ModelRegistry
from .translation import DictTranslationStore, GettextTranslationStore, NullTranslationStore
from .types import (
    DEFAULT_GROUP,
    AttributeModel,
    CascadeMode,
    CascadeRule,
    DateKind,
    EditablePolicy,
    EntityModel,
    RelationshipKind,
    SearchPolicy,
    SelectMode,
    TextFieldMode,
)

__all__ = [
    "AttributeConfig",
    "AttributeModel",
    "CascadeConfig",
    "CascadeMode",
    "CascadeRule",
    "ConfigurationError",
    "DEFAULT_GROUP",
    "DateKind",
    "DictTranslationStore",
    "EditablePolicy",
    "EntityMeta",
    "EntityModel",
    "EntityModelError",
    "EntityModelFactory",
    "GettextTranslationStore",
    "IllegalStructureError",
    "InvalidCombinationError",
    "LazyModelHandle",
    "ModelNotProvidedError",
    "ModelRegistry",
    "NullTranslationStore",
    "RelationshipKind",
    "RelationshipMarker",
    "SearchPolicy",
    "SelectMode",
    "TextFieldMode",
    "UnresolvableReferenceError",
    "get_default_factory",
    "get_entity_model",
    "has_entity_model",
    "reset_default_factory",
]
