"""
Nested model resolution for relationship attributes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..introspection import is_simple_type
from ..lazy import LazyModelHandle
from ..types import AttributeModel, RelationshipKind

if TYPE_CHECKING:
    from ..factory import EntityModelFactory

logger = logging.getLogger(__name__)


def nested_reference(owning_reference: str, owning_class: type, attribute: AttributeModel) -> str:
    base = owning_reference or owning_class.__name__
    return f"{base}.{attribute.qualified_name}"


class NestedModelResolver:
    """
    Decides whether a relationship attribute gets a drill-down model.

    Resolution stops at the depth bound, does not rebuild a model for a self
    reference, does not re-enter a (reference, class) pair that is still being
    built, and defers to a cooperating factory when one claims the reference.
    """

    def __init__(self, factory: "EntityModelFactory"):
        self.factory = factory

    def target_class(self, attribute: AttributeModel) -> Optional[type]:
        if attribute.relationship_kind is RelationshipKind.TO_MANY:
            target = attribute.element_type
        elif attribute.relationship_kind is RelationshipKind.TO_ONE:
            target = attribute.declared_type
        else:
            return None
        if not isinstance(target, type) or is_simple_type(target):
            return None
        return target

    def resolve(
        self,
        attribute: AttributeModel,
        owning_reference: str,
        owning_class: type,
        max_depth: int,
    ) -> Optional[Any]:
        """
        Resolve the nested model of a relationship attribute.

        Args:
            attribute: Relationship attribute under construction
            owning_reference: Reference of the entity model being built
            owning_class: Class of the entity model being built
            max_depth: Maximum number of dots in a nested reference

        Returns:
            An EntityModel, a LazyModelHandle, or None when the attribute is
            left without a nested model
        """
        target = self.target_class(attribute)
        if target is None:
            return None

        if owning_reference.count(".") >= max_depth:
            logger.debug(
                "Depth bound %s reached for %s, no nested model", max_depth, attribute
            )
            return None

        if target is owning_class:
            # Self reference: point back at the model under construction.
            return LazyModelHandle(self.factory, owning_reference, owning_class)

        reference = nested_reference(owning_reference, owning_class, attribute)
        registry = self.factory.registry
        if registry.is_processing(reference, target):
            logger.debug("Cycle detected at %s, leaving %s shallow", reference, attribute)
            return None

        cached = registry.get(reference)
        if cached is not None:
            return cached

        delegate = self.factory.find_delegate(reference, target)
        if delegate is not None:
            logger.debug("Deferring %s to %s", reference, type(delegate).__name__)
            return LazyModelHandle(delegate, reference, target)

        return self.factory.build_model(reference, target)
