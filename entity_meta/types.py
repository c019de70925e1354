"""
Metadata model types.

``EntityModel`` and ``AttributeModel`` are built once per reference by the
builders in ``entity_meta.builders`` and frozen when they are registered.
Only locale dependent display strings are filled in afterwards, lazily and
memoized per locale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Optional

DEFAULT_GROUP = "default"


class RelationshipKind(Enum):
    """How an attribute relates to its owning entity."""

    SCALAR = "SCALAR"
    EMBEDDED_VALUE = "EMBEDDED_VALUE"
    TO_ONE = "TO_ONE"
    TO_MANY = "TO_MANY"
    ELEMENT_COLLECTION = "ELEMENT_COLLECTION"
    LARGE_OBJECT = "LARGE_OBJECT"

    @property
    def is_relationship(self) -> bool:
        return self in (RelationshipKind.TO_ONE, RelationshipKind.TO_MANY)

    @property
    def is_collection(self) -> bool:
        return self in (RelationshipKind.TO_MANY, RelationshipKind.ELEMENT_COLLECTION)


class EditablePolicy(Enum):
    EDITABLE = "EDITABLE"
    READ_ONLY = "READ_ONLY"
    CREATE_ONLY = "CREATE_ONLY"


class SearchPolicy(Enum):
    NEVER = "NEVER"
    ALWAYS = "ALWAYS"
    ON_DEMAND = "ON_DEMAND"


class DateKind(Enum):
    NONE = "NONE"
    DATE_ONLY = "DATE_ONLY"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"


class SelectMode(Enum):
    """Widget used to pick a value for an attribute."""

    COMBO = "COMBO"
    AUTO_COMPLETE = "AUTO_COMPLETE"
    LOOKUP = "LOOKUP"
    LIST = "LIST"
    TOKEN = "TOKEN"
    MULTI_SELECT = "MULTI_SELECT"

    @property
    def is_multi_value(self) -> bool:
        return self in (SelectMode.TOKEN, SelectMode.MULTI_SELECT)


class CascadeMode(Enum):
    SEARCH = "SEARCH"
    EDIT = "EDIT"
    BOTH = "BOTH"


class TextFieldMode(Enum):
    TEXTFIELD = "TEXTFIELD"
    TEXTAREA = "TEXTAREA"
    PASSWORD = "PASSWORD"


class VisibilityType(Enum):
    SHOW = "SHOW"
    HIDE = "HIDE"


@dataclass(frozen=True)
class CascadeRule:
    """Filter applied to a dependent attribute when this attribute changes."""

    filter_path: str
    mode: CascadeMode = CascadeMode.BOTH


class _ModelMixin:
    """Bookkeeping shared by entity and attribute models."""

    def mark_explicit(self, field_name: str) -> None:
        self._explicit.add(field_name)

    def is_explicit(self, field_name: str) -> bool:
        return field_name in self._explicit

    def bind_translations(self, store: Any) -> None:
        object.__setattr__(self, "_translations", store)

    def _localized(self, field_key: str, locale: Optional[str]) -> Optional[str]:
        if locale is None or self._translations is None:
            return None
        # Concurrent first lookups compute the same value; last write wins.
        cache = self._locale_cache.setdefault(field_key, {})
        if locale not in cache:
            cache[locale] = self._translations.lookup(
                locale, self.message_key(field_key)
            )
        return cache[locale]

    def _guard_frozen(self, name: str) -> None:
        if not name.startswith("_") and self.__dict__.get("_frozen", False):
            raise AttributeError(
                f"{type(self).__name__} '{self._identity()}' is read-only once registered"
            )


@dataclass(eq=False)
class AttributeModel(_ModelMixin):
    """Metadata describing one exposable attribute of an entity."""

    name: str
    entity_reference: str
    declared_type: Any = None
    element_type: Any = None
    prefix: Optional[str] = None
    relationship_kind: RelationshipKind = RelationshipKind.SCALAR

    # Presentation
    order: int = 0
    grid_order: int = 0
    search_order: int = 0
    visible: bool = True
    visible_in_summary_view: bool = True
    editable_policy: EditablePolicy = EditablePolicy.EDITABLE
    sortable: bool = True
    required: bool = False
    required_for_search: bool = False
    search_policy: SearchPolicy = SearchPolicy.NEVER
    main_attribute: bool = False
    id_attribute: bool = False
    nested: bool = False

    # Formatting
    precision: Optional[int] = None
    percentage: bool = False
    currency: bool = False
    thousands_grouping: bool = True
    date_kind: DateKind = DateKind.NONE
    display_format: Optional[str] = None
    week: bool = False

    # Display strings (default locale)
    display_name: str = ""
    description: str = ""
    prompt: Optional[str] = None
    true_representation: Optional[str] = None
    false_representation: Optional[str] = None
    default_value: Optional[str] = None

    # Input constraints
    text_field_mode: TextFieldMode = TextFieldMode.TEXTFIELD
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    max_length_in_table: Optional[int] = None
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    url: bool = False
    image: bool = False
    allowed_extensions: list[str] = field(default_factory=list)
    styles: Optional[str] = None
    locales_restricted: bool = False

    # Selection and search
    select_mode: SelectMode = SelectMode.COMBO
    search_select_mode: SelectMode = SelectMode.COMBO
    multiple_search: bool = False
    search_case_sensitive: bool = False
    search_prefix_only: bool = False
    search_exact_value: bool = False
    search_date_only: bool = False

    # Relationships
    navigable: bool = False
    direct_navigation: bool = False
    complex_editable: bool = False
    quick_add_property: Optional[str] = None
    replacement_search_path: Optional[str] = None
    replacement_sort_path: Optional[str] = None
    group_together_with: list[str] = field(default_factory=list)
    already_grouped: bool = False
    collection_table: Optional[str] = None
    collection_column: Optional[str] = None
    nested_model_ref: Any = None
    cascade_rules: dict[str, CascadeRule] = field(default_factory=dict)

    _translations: Any = field(default=None, init=False, repr=False)
    _explicit: set = field(default_factory=set, init=False, repr=False)
    _locale_cache: dict = field(default_factory=dict, init=False, repr=False)
    _frozen: bool = field(default=False, init=False, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        self._guard_frozen(name)
        object.__setattr__(self, name, value)

    def _identity(self) -> str:
        return f"{self.entity_reference}.{self.qualified_name}"

    def __str__(self) -> str:
        return self._identity()

    @property
    def qualified_name(self) -> str:
        """Name of the attribute within its entity, including any embedded prefix."""
        return f"{self.prefix}.{self.name}" if self.prefix else self.name

    @property
    def path(self) -> str:
        """Dotted path from the root entity of the owning reference."""
        head, sep, tail = self.entity_reference.partition(".")
        return f"{tail}.{self.qualified_name}" if sep else self.qualified_name

    def message_key(self, field_key: str) -> str:
        return f"{self.entity_reference}.{self.qualified_name}.{field_key}"

    @property
    def searchable(self) -> bool:
        return self.search_policy is not SearchPolicy.NEVER

    @property
    def read_only(self) -> bool:
        return self.editable_policy is EditablePolicy.READ_ONLY

    @property
    def nested_model(self) -> Optional["EntityModel"]:
        """The nested entity model, resolving deferred handles on first access."""
        ref = self.nested_model_ref
        if ref is not None and hasattr(ref, "resolve"):
            return ref.resolve()
        return ref

    def get_display_name(self, locale: Optional[str] = None) -> str:
        return self._localized("displayName", locale) or self.display_name

    def get_description(self, locale: Optional[str] = None) -> str:
        value = self._localized("description", locale)
        if value:
            return value
        if not self.is_explicit("description"):
            value = self._localized("displayName", locale)
            if value:
                return value
        return self.description

    def get_prompt(self, locale: Optional[str] = None) -> Optional[str]:
        value = self._localized("prompt", locale)
        if value:
            return value
        if self.prompt is not None and not self.is_explicit("prompt"):
            value = self._localized("displayName", locale)
            if value:
                return value
        return self.prompt

    def get_true_representation(self, locale: Optional[str] = None) -> Optional[str]:
        return self._localized("trueRepresentation", locale) or self.true_representation

    def get_false_representation(self, locale: Optional[str] = None) -> Optional[str]:
        return self._localized("falseRepresentation", locale) or self.false_representation

    def freeze(self) -> None:
        object.__setattr__(self, "group_together_with", tuple(self.group_together_with))
        object.__setattr__(self, "allowed_extensions", tuple(self.allowed_extensions))
        object.__setattr__(self, "cascade_rules", MappingProxyType(dict(self.cascade_rules)))
        object.__setattr__(self, "_frozen", True)


@dataclass(eq=False)
class EntityModel(_ModelMixin):
    """Metadata describing a domain class as seen from one reference."""

    reference: str
    entity_class: type
    display_name: str = ""
    display_name_plural: str = ""
    description: str = ""
    display_property: Optional[str] = None
    nesting_depth: int = 3
    list_allowed: bool = True
    search_allowed: bool = True
    create_allowed: bool = True
    update_allowed: bool = True
    delete_allowed: bool = False
    max_search_results: Optional[int] = None
    grid_order_set: bool = False
    search_order_set: bool = False
    attributes_by_group: dict[str, list[AttributeModel]] = field(default_factory=dict)
    sort_order: dict[AttributeModel, bool] = field(default_factory=dict)
    id_attribute: Optional[AttributeModel] = None

    _translations: Any = field(default=None, init=False, repr=False)
    _explicit: set = field(default_factory=set, init=False, repr=False)
    _locale_cache: dict = field(default_factory=dict, init=False, repr=False)
    _frozen: bool = field(default=False, init=False, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        self._guard_frozen(name)
        object.__setattr__(self, name, value)

    def _identity(self) -> str:
        return self.reference

    def __str__(self) -> str:
        return self.reference

    def message_key(self, field_key: str) -> str:
        return f"{self.reference}.{field_key}"

    @property
    def nested(self) -> bool:
        return "." in self.reference

    # Attribute queries

    @property
    def attribute_models(self) -> list[AttributeModel]:
        """All attributes ordered by their resolved position."""
        models = [m for group in self.attributes_by_group.values() for m in group]
        return sorted(models, key=lambda m: m.order)

    def __iter__(self) -> Iterator[AttributeModel]:
        return iter(self.attribute_models)

    def get_attribute_models_sorted_for_grid(self) -> list[AttributeModel]:
        """Attributes in grid order, or in form order when no grid order was configured."""
        if not self.grid_order_set:
            return self.attribute_models
        return sorted(self.attribute_models, key=lambda m: m.grid_order)

    def get_attribute_models_sorted_for_search(self) -> list[AttributeModel]:
        if not self.search_order_set:
            return self.attribute_models
        return sorted(self.attribute_models, key=lambda m: m.search_order)

    def get_attribute_model(self, path: str) -> Optional[AttributeModel]:
        """
        Look up an attribute by qualified name.

        Paths that do not match a direct attribute are followed through nested
        models, so ``customer.name`` finds ``name`` on the customer's model.
        """
        for model in self.attribute_models:
            if model.qualified_name == path:
                return model
        head, sep, tail = path.partition(".")
        if not sep:
            return None
        owner = self.get_attribute_model(head)
        if owner is None or owner.nested_model is None:
            return None
        return owner.nested_model.get_attribute_model(tail)

    def get_main_attribute_model(self) -> Optional[AttributeModel]:
        return next((m for m in self.attribute_models if m.main_attribute), None)

    def get_attribute_models_for_type(self, declared_type: type) -> list[AttributeModel]:
        return [
            m
            for m in self.attribute_models
            if isinstance(m.declared_type, type) and issubclass(m.declared_type, declared_type)
        ]

    def get_attribute_models_for_kind(self, kind: RelationshipKind) -> list[AttributeModel]:
        return [m for m in self.attribute_models if m.relationship_kind is kind]

    def get_cascade_attribute_models(self) -> list[AttributeModel]:
        return [m for m in self.attribute_models if m.cascade_rules]

    def get_required_for_search_attribute_models(self) -> list[AttributeModel]:
        return [m for m in self.attribute_models if m.required_for_search]

    # Groups

    @property
    def attribute_group_names(self) -> list[str]:
        return list(self.attributes_by_group.keys())

    def get_attribute_models_for_group(self, group: str) -> list[AttributeModel]:
        return list(self.attributes_by_group.get(group, []))

    def is_attribute_group_visible(self, group: str) -> bool:
        return any(m.visible for m in self.attributes_by_group.get(group, []))

    def uses_default_group_only(self) -> bool:
        return self.attribute_group_names == [DEFAULT_GROUP]

    # Localized strings

    def get_display_name(self, locale: Optional[str] = None) -> str:
        return self._localized("displayName", locale) or self.display_name

    def get_display_name_plural(self, locale: Optional[str] = None) -> str:
        return self._localized("displayNamePlural", locale) or self.display_name_plural

    def get_description(self, locale: Optional[str] = None) -> str:
        value = self._localized("description", locale)
        if value:
            return value
        if not self.is_explicit("description"):
            value = self._localized("displayName", locale)
            if value:
                return value
        return self.description

    def freeze(self) -> None:
        for model in self.attribute_models:
            model.freeze()
        object.__setattr__(
            self,
            "attributes_by_group",
            MappingProxyType({k: tuple(v) for k, v in self.attributes_by_group.items()}),
        )
        object.__setattr__(self, "sort_order", MappingProxyType(dict(self.sort_order)))
        object.__setattr__(self, "_frozen", True)
