"""
Entity model construction.

``EntityModelBuilder`` orchestrates one build: entity level defaults and
overrides, attribute models for every property, ordering, grouping, the main
attribute fallback and the sort order. Registration and the in-progress
bookkeeping are done by the registry around ``build``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from django.utils.text import camel_case_to_spaces, capfirst

from ..meta import EntityConfig
from ..naming import humanize, pluralize
from ..types import AttributeModel, EntityModel, RelationshipKind
from .attributes import AttributeBuilder
from .groups import GroupResolver, check_group_together
from .nested import NestedModelResolver
from .order import OrderResolver, parse_attribute_order, resolve_sort_order
from .overrides import parse_bool, parse_int

if TYPE_CHECKING:
    from ..factory import EntityModelFactory

logger = logging.getLogger(__name__)

PERMISSION_FIELDS = (
    "list_allowed",
    "search_allowed",
    "create_allowed",
    "update_allowed",
    "delete_allowed",
)

# Entity translation key -> (model field, parser)
ENTITY_TRANSLATION_SETTINGS = {
    "nestingDepth": ("nesting_depth", parse_int),
    "maxSearchResults": ("max_search_results", parse_int),
    "listAllowed": ("list_allowed", parse_bool),
    "searchAllowed": ("search_allowed", parse_bool),
    "createAllowed": ("create_allowed", parse_bool),
    "updateAllowed": ("update_allowed", parse_bool),
    "deleteAllowed": ("delete_allowed", parse_bool),
}


class EntityModelBuilder:
    """Builds the entity model for one (reference, class) pair."""

    def __init__(self, factory: "EntityModelFactory"):
        self.factory = factory
        self.settings = factory.settings
        self.nested_resolver = NestedModelResolver(factory)
        self.attribute_builder = AttributeBuilder(factory, self.nested_resolver)
        self.order_resolver = OrderResolver()
        self.group_resolver = GroupResolver(factory)

    def build(self, reference: str, entity_class: type) -> EntityModel:
        config = self.factory.reader.read_entity(entity_class)
        model = self._create_entity_model(reference, entity_class, config)

        attributes: list[AttributeModel] = []
        first_string: Optional[AttributeModel] = None
        first_searchable: Optional[AttributeModel] = None
        for descriptor in self.factory.introspector.get_properties(entity_class):
            for attribute in self.attribute_builder.build(
                descriptor,
                reference,
                entity_class,
                model.nesting_depth,
                entity_class=entity_class,
            ):
                attributes.append(attribute)
                if first_string is None and self._is_string_scalar(attribute):
                    first_string = attribute
                if first_searchable is None and attribute.searchable:
                    first_searchable = attribute

        self.order_resolver.resolve(
            self._explicit_order(reference, "attributeOrder", config.attribute_order),
            attributes,
            reference,
        )
        attributes.sort(key=lambda a: a.order)
        model.grid_order_set = self.order_resolver.resolve(
            self._explicit_order(reference, "gridAttributeOrder", config.grid_attribute_order),
            attributes,
            reference,
            target="grid_order",
        )
        model.search_order_set = self.order_resolver.resolve(
            self._explicit_order(
                reference, "searchAttributeOrder", config.search_attribute_order
            ),
            attributes,
            reference,
            target="search_order",
        )

        model.attributes_by_group = self.group_resolver.partition(
            entity_class, reference, attributes
        )
        check_group_together(attributes, reference)

        model.id_attribute = next((a for a in attributes if a.id_attribute), None)
        self._assign_main_attribute(model, attributes, first_string, first_searchable)

        sort_order = self.factory.lookup(f"{reference}.sortOrder") or config.sort_order
        model.sort_order = resolve_sort_order(sort_order, attributes, reference)

        store = self.factory.translation_store
        model.bind_translations(store)
        for attribute in attributes:
            attribute.bind_translations(store)
        return model

    def _explicit_order(self, reference, key, declared):
        explicit_order = parse_attribute_order(self.factory.lookup(f"{reference}.{key}"))
        return declared if explicit_order is None else explicit_order

    def _create_entity_model(
        self, reference: str, entity_class: type, config: EntityConfig
    ) -> EntityModel:
        display_name, display_name_plural = self._default_names(entity_class)
        model = EntityModel(
            reference=reference,
            entity_class=entity_class,
            display_name=display_name,
            display_name_plural=display_name_plural,
            description=display_name,
            nesting_depth=(
                config.nesting_depth
                if config.nesting_depth is not None
                else self.settings.nesting_depth
            ),
        )

        overrides = {
            "display_name": config.display_name,
            "display_name_plural": config.display_name_plural,
            "description": config.description,
            "display_property": config.display_property,
        }
        translated = {
            "display_name": self.factory.lookup(f"{reference}.displayName"),
            "display_name_plural": self.factory.lookup(f"{reference}.displayNamePlural"),
            "description": self.factory.lookup(f"{reference}.description"),
            "display_property": self.factory.lookup(f"{reference}.displayProperty"),
        }
        for layer in (overrides, translated):
            for field_name, value in layer.items():
                if value:
                    setattr(model, field_name, value)
                    model.mark_explicit(field_name)

        for field_name in PERMISSION_FIELDS:
            declared = getattr(config, field_name)
            if declared is not None:
                setattr(model, field_name, bool(declared))
        if config.max_search_results is not None:
            model.max_search_results = config.max_search_results
        self._apply_translated_settings(model, reference)

        if model.is_explicit("display_name") and not model.is_explicit("description"):
            model.description = model.display_name
        return model

    def _apply_translated_settings(self, model: EntityModel, reference: str) -> None:
        for key, (field_name, parse) in ENTITY_TRANSLATION_SETTINGS.items():
            raw = self.factory.lookup(f"{reference}.{key}")
            if raw is None or raw == "":
                continue
            value = parse(raw)
            if value is None or (field_name == "nesting_depth" and value < 0):
                logger.warning("Ignoring unparseable value %r for %s.%s", raw, reference, key)
                continue
            setattr(model, field_name, value)

    def _default_names(self, entity_class: type) -> tuple[str, str]:
        display_name = humanize(entity_class.__name__, self.settings.capitalize_words)
        display_name_plural = pluralize(display_name, self.settings.plural_suffix)

        opts = getattr(entity_class, "_meta", None)
        verbose_name = getattr(opts, "verbose_name", None)
        if verbose_name and str(verbose_name) != camel_case_to_spaces(entity_class.__name__):
            display_name = capfirst(str(verbose_name))
            display_name_plural = pluralize(display_name, self.settings.plural_suffix)
        verbose_name_plural = getattr(opts, "verbose_name_plural", None)
        if verbose_name_plural and str(verbose_name_plural) != f"{verbose_name}s":
            display_name_plural = capfirst(str(verbose_name_plural))
        return display_name, display_name_plural

    @staticmethod
    def _is_string_scalar(attribute: AttributeModel) -> bool:
        return (
            attribute.relationship_kind is RelationshipKind.SCALAR
            and attribute.declared_type is str
            and not attribute.id_attribute
        )

    def _assign_main_attribute(
        self,
        model: EntityModel,
        attributes: list[AttributeModel],
        first_string: Optional[AttributeModel],
        first_searchable: Optional[AttributeModel],
    ) -> None:
        mains = [a for a in attributes if a.main_attribute]
        if len(mains) > 1:
            logger.warning(
                "%s declares several main attributes, keeping %s",
                model.reference,
                mains[0].qualified_name,
            )
            for extra in mains[1:]:
                extra.main_attribute = False
        if mains or model.nested:
            return

        fallback = first_string or first_searchable
        if fallback is None:
            fallback = next((a for a in attributes if not a.id_attribute), None)
        if fallback is not None:
            fallback.main_attribute = True
