"""
Builders turning domain classes into entity models.
"""

from .attributes import AttributeBuilder
from .entity import EntityModelBuilder
from .groups import GroupResolver, check_group_together
from .nested import NestedModelResolver
from .order import OrderResolver, parse_attribute_order, resolve_sort_order
from .overrides import (
    DEFAULT_PASSES,
    DeclarativeOverridePass,
    DerivedValuesPass,
    OverridePass,
    TranslationOverridePass,
)

__all__ = [
    "AttributeBuilder",
    "DEFAULT_PASSES",
    "DeclarativeOverridePass",
    "DerivedValuesPass",
    "EntityModelBuilder",
    "GroupResolver",
    "NestedModelResolver",
    "OrderResolver",
    "OverridePass",
    "TranslationOverridePass",
    "check_group_together",
    "parse_attribute_order",
    "resolve_sort_order",
]
