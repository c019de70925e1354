"""
GraphQL query surface for entity models.
"""

from .queries import EntityModelQuery
from .types import (
    AttributeGroupType,
    AttributeModelType,
    CascadeRuleType,
    EntityModelType,
    SortOrderType,
    serialize_attribute_model,
    serialize_entity_model,
)

__all__ = [
    "AttributeGroupType",
    "AttributeModelType",
    "CascadeRuleType",
    "EntityModelQuery",
    "EntityModelType",
    "SortOrderType",
    "serialize_attribute_model",
    "serialize_entity_model",
]
