"""
Attribute model construction.

``AttributeBuilder`` turns one introspected property into attribute models:
seed structural defaults, classify the relationship kind, run the override
passes, validate, then either expand an embedded value into its own
attributes or hand relationship attributes to the nested model resolver.
"""

from __future__ import annotations

import datetime
import decimal
import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..exceptions import IllegalStructureError, InvalidCombinationError
from ..introspection import PropertyDescriptor, is_simple_type
from ..meta import AttributeConfig, RelationshipMarker
from ..naming import humanize
from ..types import (
    AttributeModel,
    DateKind,
    EditablePolicy,
    RelationshipKind,
    SearchPolicy,
    SelectMode,
)
from .overrides import DEFAULT_PASSES, AttributeContext, OverridePass

if TYPE_CHECKING:
    from ..factory import EntityModelFactory
    from .nested import NestedModelResolver

logger = logging.getLogger(__name__)


def determine_date_kind(value_type: Any) -> DateKind:
    if not isinstance(value_type, type):
        return DateKind.NONE
    if issubclass(value_type, datetime.datetime):
        return DateKind.TIMESTAMP
    if issubclass(value_type, datetime.date):
        return DateKind.DATE_ONLY
    if issubclass(value_type, datetime.time):
        return DateKind.TIME
    return DateKind.NONE


def is_integral_type(value_type: Any) -> bool:
    return (
        isinstance(value_type, type)
        and issubclass(value_type, int)
        and not issubclass(value_type, bool)
    )


def is_element_collection_type(value_type: Any) -> bool:
    return value_type is str or is_integral_type(value_type)


class AttributeBuilder:
    """
    Builds the attribute models of one entity reference.

    Args:
        factory: Factory providing settings, introspection, declarative
                 configuration and translation lookups
        nested_resolver: Resolver used for relationship attributes
        passes: Override passes, applied in order
    """

    def __init__(
        self,
        factory: "EntityModelFactory",
        nested_resolver: "NestedModelResolver",
        passes: Sequence[OverridePass] = DEFAULT_PASSES,
    ):
        self.factory = factory
        self.settings = factory.settings
        self.nested_resolver = nested_resolver
        self.passes = tuple(passes)

    def build(
        self,
        descriptor: PropertyDescriptor,
        entity_reference: str,
        parent_class: type,
        max_depth: int,
        entity_class: Optional[type] = None,
        prefix: Optional[str] = None,
        embedding_chain: tuple[type, ...] = (),
    ) -> list[AttributeModel]:
        """
        Build the attribute model(s) for one property.

        Args:
            descriptor: Introspected property
            entity_reference: Reference of the entity model being built
            parent_class: Class declaring the property
            max_depth: Maximum number of dots in nested references
            entity_class: Class of the entity model being built
            prefix: Qualified name of the embedding attribute, if any
            embedding_chain: Embedded types between the entity and parent_class

        Returns:
            A single attribute model, the flattened attributes of an embedded
            value, or an empty list for skipped infrastructure properties
        """
        if descriptor.name in self.settings.skipped_attribute_names:
            return []
        entity_class = entity_class or parent_class

        qualified_name = f"{prefix}.{descriptor.name}" if prefix else descriptor.name
        markers, config = self.factory.reader.read_attribute(
            parent_class, descriptor, root_class=entity_class, qualified_name=qualified_name
        )

        model = self._seed_defaults(descriptor, entity_reference, prefix)
        self._classify(model, descriptor, markers, config)

        context = AttributeContext(config, self.factory.lookup, self.settings)
        for override_pass in self.passes:
            override_pass.apply(model, context)

        self._validate(model)

        if model.relationship_kind is RelationshipKind.EMBEDDED_VALUE:
            return self._expand_embedded(
                model, entity_reference, entity_class, max_depth, embedding_chain
            )

        if model.relationship_kind.is_relationship:
            model.nested_model_ref = self.nested_resolver.resolve(
                model, entity_reference, entity_class, max_depth
            )
        return [model]

    def _seed_defaults(
        self, descriptor: PropertyDescriptor, entity_reference: str, prefix: Optional[str]
    ) -> AttributeModel:
        settings = self.settings
        display_name = humanize(descriptor.name, settings.capitalize_words)
        description = display_name
        field = descriptor.field
        verbose_name = getattr(field, "verbose_name", None)
        if verbose_name and str(verbose_name) != descriptor.name.replace("_", " "):
            display_name = description = str(verbose_name)[:1].upper() + str(verbose_name)[1:]
        help_text = getattr(field, "help_text", None)
        if help_text:
            description = str(help_text)

        date_kind = determine_date_kind(descriptor.declared_type)
        model = AttributeModel(
            name=descriptor.name,
            entity_reference=entity_reference,
            declared_type=descriptor.declared_type,
            element_type=descriptor.element_type,
            prefix=prefix,
            nested="." in entity_reference,
            display_name=display_name,
            description=description,
            prompt=display_name if settings.use_default_prompt_value else None,
            editable_policy=(
                EditablePolicy.EDITABLE if descriptor.settable else EditablePolicy.READ_ONLY
            ),
            search_policy=SearchPolicy.ALWAYS if descriptor.preferred else SearchPolicy.NEVER,
            main_attribute=descriptor.preferred and "." not in entity_reference,
            required=descriptor.required,
            precision=self._default_precision(descriptor),
            date_kind=date_kind,
            display_format=self._default_display_format(date_kind),
            true_representation=settings.true_representation,
            false_representation=settings.false_representation,
            search_case_sensitive=settings.search_case_sensitive,
            search_prefix_only=settings.search_prefix_only,
            min_length=descriptor.min_length,
            max_length=descriptor.max_length,
            min_value=descriptor.min_value,
            max_value=descriptor.max_value,
            image=descriptor.image,
            url=descriptor.url,
        )
        if descriptor.is_id and prefix is None:
            model.id_attribute = True
            model.visible = False
            model.editable_policy = EditablePolicy.READ_ONLY
        return model

    def _default_precision(self, descriptor: PropertyDescriptor) -> Optional[int]:
        value_type = descriptor.declared_type
        if not isinstance(value_type, type) or issubclass(value_type, bool):
            return None
        if issubclass(value_type, (decimal.Decimal, float)):
            if descriptor.precision is not None:
                return descriptor.precision
            return self.settings.default_decimal_precision
        if issubclass(value_type, int):
            return 0
        return None

    def _default_display_format(self, date_kind: DateKind) -> Optional[str]:
        if date_kind is DateKind.DATE_ONLY:
            return self.settings.date_format
        if date_kind is DateKind.TIMESTAMP:
            return self.settings.datetime_format
        if date_kind is DateKind.TIME:
            return self.settings.time_format
        return None

    def _classify(
        self,
        model: AttributeModel,
        descriptor: PropertyDescriptor,
        markers: frozenset[RelationshipMarker],
        config: AttributeConfig,
    ) -> None:
        kind = self.classify(descriptor, markers, config)
        model.relationship_kind = kind
        if config.member_type is not None:
            model.element_type = config.member_type

        if kind is RelationshipKind.TO_MANY:
            model.select_mode = model.search_select_mode = SelectMode.MULTI_SELECT
        elif kind is RelationshipKind.ELEMENT_COLLECTION:
            model.select_mode = model.search_select_mode = SelectMode.TOKEN
            model.collection_table = config.collection_table or descriptor.name
            model.collection_column = config.collection_column or descriptor.name

    def classify(
        self,
        descriptor: PropertyDescriptor,
        markers: frozenset[RelationshipMarker],
        config: AttributeConfig,
    ) -> RelationshipKind:
        """Decide the relationship kind of a property."""
        if RelationshipMarker.EMBEDDED in markers:
            return RelationshipKind.EMBEDDED_VALUE

        is_collection = descriptor.is_collection or config.member_type is not None
        if is_collection:
            element_type = config.member_type or descriptor.element_type
            if RelationshipMarker.ELEMENT_COLLECTION in markers:
                return RelationshipKind.ELEMENT_COLLECTION
            if RelationshipMarker.TO_MANY in markers:
                return RelationshipKind.TO_MANY
            if element_type is None:
                return RelationshipKind.SCALAR
            if is_element_collection_type(element_type):
                return RelationshipKind.ELEMENT_COLLECTION
            if is_simple_type(element_type):
                return RelationshipKind.SCALAR
            return RelationshipKind.TO_MANY

        if RelationshipMarker.LOB in markers:
            return RelationshipKind.LARGE_OBJECT
        declared_type = descriptor.declared_type
        if not isinstance(declared_type, type) or is_simple_type(declared_type):
            return RelationshipKind.SCALAR
        if not self.factory.introspector.is_entity(declared_type):
            return RelationshipKind.SCALAR
        return RelationshipKind.TO_ONE

    def _validate(self, model: AttributeModel) -> None:
        kind = model.relationship_kind

        def fail(message: str, setting: str) -> None:
            raise InvalidCombinationError(
                f"{message} (attribute {model.path})",
                reference=model.entity_reference,
                attribute_path=model.path,
                setting=setting,
            )

        if model.select_mode.is_multi_value and not kind.is_collection:
            fail(f"Select mode {model.select_mode.value} requires a collection", "select_mode")
        if kind is RelationshipKind.TO_MANY and model.select_mode in (
            SelectMode.COMBO,
            SelectMode.AUTO_COMPLETE,
        ):
            fail(
                f"Select mode {model.select_mode.value} cannot be used for a collection",
                "select_mode",
            )
        if model.default_value is not None and kind is not RelationshipKind.SCALAR:
            fail("Only simple attributes can have a default value", "default_value")
        if (
            model.multiple_search
            and model.is_explicit("search_select_mode")
            and model.search_select_mode in (SelectMode.COMBO, SelectMode.AUTO_COMPLETE)
        ):
            fail(
                f"Search select mode {model.search_select_mode.value} cannot be "
                f"combined with multiple search",
                "search_select_mode",
            )
        if kind is RelationshipKind.LARGE_OBJECT and model.searchable:
            fail("Searching on a large object is not allowed", "searchable")
        if model.navigable and not kind.is_relationship:
            fail("Only relationship attributes can be navigable", "navigable")
        if model.search_date_only and model.date_kind is not DateKind.TIMESTAMP:
            fail("Searching on date only requires a timestamp attribute", "search_date_only")
        if model.week and model.date_kind is not DateKind.DATE_ONLY:
            fail("Week display requires a date attribute", "week")
        if model.percentage and model.currency:
            fail("An attribute cannot be both a percentage and a currency", "currency")
        if kind is RelationshipKind.ELEMENT_COLLECTION and not is_element_collection_type(
            model.element_type
        ):
            fail(
                "Element collections may only contain strings or integral values",
                "element_collection",
            )

    def _expand_embedded(
        self,
        model: AttributeModel,
        entity_reference: str,
        entity_class: type,
        max_depth: int,
        embedding_chain: tuple[type, ...],
    ) -> list[AttributeModel]:
        embedded_type = model.declared_type
        if embedded_type is entity_class or embedded_type in embedding_chain:
            raise IllegalStructureError(
                f"Embedding a class in itself is not allowed (attribute {model.path})",
                reference=entity_reference,
                attribute_path=model.path,
            )
        chain = embedding_chain + (embedded_type,)
        result = []
        for child in self.factory.introspector.get_properties(embedded_type):
            result.extend(
                self.build(
                    child,
                    entity_reference,
                    embedded_type,
                    max_depth,
                    entity_class=entity_class,
                    prefix=model.qualified_name,
                    embedding_chain=chain,
                )
            )
        return result
