"""GraphQL types for entity models.

Graphene ObjectTypes mirroring ``EntityModel`` and ``AttributeModel`` plus the
helpers that convert built models into them for a given locale.
"""

from typing import Any, Optional

import graphene

from ..types import AttributeModel, EntityModel


def _type_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "__name__", str(value))


def _enum_value(value: Any) -> Optional[str]:
    return getattr(value, "value", value)


class CascadeRuleType(graphene.ObjectType):
    """GraphQL type for a cascade applied to a dependent attribute."""

    attribute = graphene.String(required=True, description="Dependent attribute name")
    filter_path = graphene.String(required=True, description="Path filtered on")
    mode = graphene.String(required=True, description="SEARCH, EDIT or BOTH")


class AttributeModelType(graphene.ObjectType):
    """GraphQL type for attribute metadata."""

    name = graphene.String(required=True, description="Property name")
    qualified_name = graphene.String(
        required=True, description="Name within the entity, including embedded prefix"
    )
    path = graphene.String(required=True, description="Path from the root entity")
    relationship_kind = graphene.String(required=True, description="Relationship kind")
    declared_type = graphene.String(description="Declared python type")
    element_type = graphene.String(description="Element type of collections")
    order = graphene.Int(required=True, description="Position within the entity")
    grid_order = graphene.Int(required=True, description="Position in result grids")
    search_order = graphene.Int(required=True, description="Position in search forms")
    group = graphene.String(description="Attribute group")
    display_name = graphene.String(required=True, description="Localized display name")
    description = graphene.String(description="Localized description")
    prompt = graphene.String(description="Localized input prompt")
    visible = graphene.Boolean(required=True)
    visible_in_summary_view = graphene.Boolean(required=True)
    editable_policy = graphene.String(required=True)
    search_policy = graphene.String(required=True)
    sortable = graphene.Boolean(required=True)
    required = graphene.Boolean(required=True)
    required_for_search = graphene.Boolean(required=True)
    main_attribute = graphene.Boolean(required=True)
    id_attribute = graphene.Boolean(required=True)
    precision = graphene.Int()
    percentage = graphene.Boolean(required=True)
    currency = graphene.Boolean(required=True)
    date_kind = graphene.String(required=True)
    display_format = graphene.String()
    week = graphene.Boolean(required=True)
    true_representation = graphene.String()
    false_representation = graphene.String()
    min_length = graphene.Int()
    max_length = graphene.Int()
    select_mode = graphene.String(required=True)
    search_select_mode = graphene.String(required=True)
    multiple_search = graphene.Boolean(required=True)
    navigable = graphene.Boolean(required=True)
    already_grouped = graphene.Boolean(required=True)
    group_together_with = graphene.List(graphene.String)
    nested_reference = graphene.String(description="Reference of the nested entity model")
    cascades = graphene.List(CascadeRuleType)


class AttributeGroupType(graphene.ObjectType):
    """GraphQL type for an attribute group."""

    name = graphene.String(required=True, description="Group key")
    visible = graphene.Boolean(required=True, description="Whether any member is visible")
    attributes = graphene.List(graphene.String, description="Member attribute names")


class SortOrderType(graphene.ObjectType):
    attribute = graphene.String(required=True)
    ascending = graphene.Boolean(required=True)


class EntityModelType(graphene.ObjectType):
    """GraphQL type for entity metadata."""

    reference = graphene.String(required=True, description="Model reference")
    entity_name = graphene.String(required=True, description="Domain class name")
    display_name = graphene.String(required=True)
    display_name_plural = graphene.String(required=True)
    description = graphene.String()
    display_property = graphene.String()
    main_attribute = graphene.String(description="Name of the main attribute")
    id_attribute = graphene.String(description="Name of the identifier attribute")
    nesting_depth = graphene.Int(required=True)
    list_allowed = graphene.Boolean(required=True)
    search_allowed = graphene.Boolean(required=True)
    create_allowed = graphene.Boolean(required=True)
    update_allowed = graphene.Boolean(required=True)
    delete_allowed = graphene.Boolean(required=True)
    max_search_results = graphene.Int(description="Upper bound on search results")
    attributes = graphene.List(AttributeModelType)
    attribute_groups = graphene.List(AttributeGroupType)
    sort_order = graphene.List(SortOrderType)


def serialize_attribute_model(
    attribute: AttributeModel, locale: Optional[str] = None, group: Optional[str] = None
) -> AttributeModelType:
    nested = attribute.nested_model_ref
    return AttributeModelType(
        name=attribute.name,
        qualified_name=attribute.qualified_name,
        path=attribute.path,
        relationship_kind=attribute.relationship_kind.value,
        declared_type=_type_name(attribute.declared_type),
        element_type=_type_name(attribute.element_type),
        order=attribute.order,
        grid_order=attribute.grid_order,
        search_order=attribute.search_order,
        group=group,
        display_name=attribute.get_display_name(locale),
        description=attribute.get_description(locale),
        prompt=attribute.get_prompt(locale),
        visible=attribute.visible,
        visible_in_summary_view=attribute.visible_in_summary_view,
        editable_policy=attribute.editable_policy.value,
        search_policy=attribute.search_policy.value,
        sortable=attribute.sortable,
        required=attribute.required,
        required_for_search=attribute.required_for_search,
        main_attribute=attribute.main_attribute,
        id_attribute=attribute.id_attribute,
        precision=attribute.precision,
        percentage=attribute.percentage,
        currency=attribute.currency,
        date_kind=attribute.date_kind.value,
        display_format=attribute.display_format,
        week=attribute.week,
        true_representation=attribute.get_true_representation(locale),
        false_representation=attribute.get_false_representation(locale),
        min_length=attribute.min_length,
        max_length=attribute.max_length,
        select_mode=attribute.select_mode.value,
        search_select_mode=attribute.search_select_mode.value,
        multiple_search=attribute.multiple_search,
        navigable=attribute.navigable,
        already_grouped=attribute.already_grouped,
        group_together_with=list(attribute.group_together_with),
        nested_reference=getattr(nested, "reference", None) if nested is not None else None,
        cascades=[
            CascadeRuleType(
                attribute=name, filter_path=rule.filter_path, mode=_enum_value(rule.mode)
            )
            for name, rule in attribute.cascade_rules.items()
        ],
    )


def serialize_entity_model(model: EntityModel, locale: Optional[str] = None) -> EntityModelType:
    attributes = []
    groups = []
    for group, members in model.attributes_by_group.items():
        groups.append(
            AttributeGroupType(
                name=group,
                visible=model.is_attribute_group_visible(group),
                attributes=[m.qualified_name for m in members],
            )
        )
        attributes.extend(serialize_attribute_model(m, locale, group) for m in members)
    attributes.sort(key=lambda a: a.order)

    main = model.get_main_attribute_model()
    return EntityModelType(
        reference=model.reference,
        entity_name=model.entity_class.__name__,
        display_name=model.get_display_name(locale),
        display_name_plural=model.get_display_name_plural(locale),
        description=model.get_description(locale),
        display_property=model.display_property,
        main_attribute=main.qualified_name if main else None,
        id_attribute=model.id_attribute.qualified_name if model.id_attribute else None,
        nesting_depth=model.nesting_depth,
        list_allowed=model.list_allowed,
        search_allowed=model.search_allowed,
        create_allowed=model.create_allowed,
        update_allowed=model.update_allowed,
        delete_allowed=model.delete_allowed,
        max_search_results=model.max_search_results,
        attributes=attributes,
        attribute_groups=groups,
        sort_order=[
            SortOrderType(attribute=a.qualified_name, ascending=asc)
            for a, asc in model.sort_order.items()
        ],
    )
