"""
Entity Meta Configuration Dataclasses

This module contains the configuration dataclasses produced from a domain
class's inner ``EntityMeta`` declaration: entity level settings, attribute
level overrides, cascades and structural relationship markers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional, Union

from ..types import (
    CascadeMode,
    DateKind,
    EditablePolicy,
    SearchPolicy,
    SelectMode,
    TextFieldMode,
)


class RelationshipMarker(Enum):
    """Structural hints that decide how an attribute is classified."""

    EMBEDDED = "EMBEDDED"
    TO_MANY = "TO_MANY"
    ELEMENT_COLLECTION = "ELEMENT_COLLECTION"
    LOB = "LOB"


@dataclass
class CascadeConfig:
    """
    Filter applied to a dependent attribute when the configured one changes.

    Attributes:
        attribute: Name of the dependent attribute.
        filter_path: Path on the dependent attribute's entity to filter on.
        mode: Whether the cascade applies when searching, editing or both.
    """

    attribute: str
    filter_path: Optional[str] = None
    mode: Optional[CascadeMode] = CascadeMode.BOTH


@dataclass
class AttributeConfig:
    """
    Declarative overrides for a single attribute.

    Every override defaults to ``None`` which means "not configured"; only
    configured values replace the structural defaults. ``searchable`` and
    ``editable`` also accept booleans.

    The marker fields (``embedded``, ``element_collection``, ``lob``,
    ``to_many``, ``member_type``) describe structure rather than presentation
    and are read before any override is applied.
    """

    display_name: Optional[str] = None
    description: Optional[str] = None
    prompt: Optional[str] = None
    default_value: Optional[str] = None
    display_format: Optional[str] = None
    main: Optional[bool] = None
    read_only: Optional[bool] = None
    editable: Optional[Union[EditablePolicy, bool]] = None
    searchable: Optional[Union[SearchPolicy, bool]] = None
    required_for_search: Optional[bool] = None
    required: Optional[bool] = None
    sortable: Optional[bool] = None
    visible: Optional[bool] = None
    visible_in_summary_view: Optional[bool] = None
    complex_editable: Optional[bool] = None
    image: Optional[bool] = None
    locales_restricted: Optional[bool] = None
    week: Optional[bool] = None
    direct_navigation: Optional[bool] = None
    allowed_extensions: Optional[list[str]] = None
    group_together_with: Optional[list[str]] = None
    true_representation: Optional[str] = None
    false_representation: Optional[str] = None
    percentage: Optional[bool] = None
    precision: Optional[int] = None
    currency: Optional[bool] = None
    multiple_search: Optional[bool] = None
    select_mode: Optional[SelectMode] = None
    search_select_mode: Optional[SelectMode] = None
    date_kind: Optional[DateKind] = None
    search_case_sensitive: Optional[bool] = None
    search_prefix_only: Optional[bool] = None
    search_date_only: Optional[bool] = None
    search_exact_value: Optional[bool] = None
    text_field_mode: Optional[TextFieldMode] = None
    min_length: Optional[int] = None
    min_value: Optional[Any] = None
    max_length: Optional[int] = None
    max_length_in_table: Optional[int] = None
    max_value: Optional[Any] = None
    url: Optional[bool] = None
    replacement_search_path: Optional[str] = None
    replacement_sort_path: Optional[str] = None
    quick_add_property: Optional[str] = None
    thousands_grouping: Optional[bool] = None
    styles: Optional[str] = None
    navigable: Optional[bool] = None
    cascade: list[CascadeConfig] = field(default_factory=list)

    # Structural markers
    embedded: bool = False
    element_collection: bool = False
    lob: bool = False
    to_many: bool = False
    member_type: Optional[type] = None
    collection_table: Optional[str] = None
    collection_column: Optional[str] = None

    @property
    def markers(self) -> frozenset[RelationshipMarker]:
        found = set()
        if self.embedded:
            found.add(RelationshipMarker.EMBEDDED)
        if self.element_collection:
            found.add(RelationshipMarker.ELEMENT_COLLECTION)
        if self.lob:
            found.add(RelationshipMarker.LOB)
        if self.to_many or self.member_type is not None:
            found.add(RelationshipMarker.TO_MANY)
        return frozenset(found)

    def configured(self) -> dict[str, Any]:
        """Override values that were explicitly configured, in declaration order."""
        return {
            name: getattr(self, name)
            for name in OVERRIDE_FIELDS
            if getattr(self, name) is not None
        }


MARKER_FIELDS = frozenset(
    {
        "embedded",
        "element_collection",
        "lob",
        "to_many",
        "member_type",
        "collection_table",
        "collection_column",
    }
)

OVERRIDE_FIELDS: tuple[str, ...] = tuple(
    f.name
    for f in fields(AttributeConfig)
    if f.name not in MARKER_FIELDS and f.name != "cascade"
)


@dataclass
class EntityConfig:
    """
    Entity level configuration.

    Attributes:
        display_name: Singular display name.
        display_name_plural: Plural display name.
        description: Longer description of the entity.
        display_property: Attribute used to label instances referenced elsewhere.
        sort_order: Comma separated ``name [ASC|DESC]`` list.
        attribute_order: Attribute names that come first, in this order.
        grid_attribute_order: Attribute names that come first in result grids.
        search_attribute_order: Attribute names that come first in search forms.
        attribute_groups: Mapping of group key to member attribute names.
        nesting_depth: Per-entity override of the nested reference depth bound.
        list_allowed: Whether instances may be listed.
        search_allowed: Whether instances may be searched.
        create_allowed: Whether instances may be created.
        update_allowed: Whether instances may be updated.
        delete_allowed: Whether instances may be deleted.
        max_search_results: Upper bound on search results, ``None`` for no bound.
        attributes: Attribute overrides keyed by qualified attribute name.
    """

    display_name: Optional[str] = None
    display_name_plural: Optional[str] = None
    description: Optional[str] = None
    display_property: Optional[str] = None
    sort_order: Optional[str] = None
    attribute_order: Optional[list[str]] = None
    grid_attribute_order: Optional[list[str]] = None
    search_attribute_order: Optional[list[str]] = None
    attribute_groups: dict[str, list[str]] = field(default_factory=dict)
    nesting_depth: Optional[int] = None
    list_allowed: Optional[bool] = None
    search_allowed: Optional[bool] = None
    create_allowed: Optional[bool] = None
    update_allowed: Optional[bool] = None
    delete_allowed: Optional[bool] = None
    max_search_results: Optional[int] = None
    attributes: dict[str, AttributeConfig] = field(default_factory=dict)
