"""
Attribute override passes.

An attribute model is seeded with structural defaults and then run through
an ordered list of passes. Each pass writes values with ``assign`` which
records the field as explicitly configured; the final ``DerivedValuesPass``
only fills fields that no earlier pass set explicitly. This is what lets a
display name override flow into the description and prompt without
clobbering a description configured on its own.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from ..exceptions import ConfigurationError, IllegalStructureError
from ..types import (
    AttributeModel,
    CascadeMode,
    CascadeRule,
    DateKind,
    EditablePolicy,
    RelationshipKind,
    SearchPolicy,
    SelectMode,
    TextFieldMode,
    VisibilityType,
)

logger = logging.getLogger(__name__)

# Overrides that have no meaning on attributes of nested (dotted) models.
NESTED_IGNORED_FIELDS = frozenset(
    {"main_attribute", "search_policy", "required_for_search", "visible_in_summary_view"}
)


def assign(model: AttributeModel, field_name: str, value: Any) -> bool:
    """Write an explicitly configured value onto a model under construction."""
    if model.nested and field_name in NESTED_IGNORED_FIELDS:
        return False
    setattr(model, field_name, value)
    model.mark_explicit(field_name)
    return True


def pair_select_modes(model: AttributeModel, written: set) -> None:
    """A select mode written by one layer is also its search select mode."""
    if "select_mode" in written and "search_select_mode" not in written:
        model.search_select_mode = model.select_mode


# --------------------------------------------------------------------------- #
# Value parsing for translation store entries
# --------------------------------------------------------------------------- #


def parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_number(value: str) -> Optional[Any]:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def enum_parser(enum_type) -> Callable[[str], Any]:
    def parse(value: str):
        try:
            return enum_type[value.strip().upper()]
        except KeyError:
            return None

    return parse


def coerce_search_policy(value: Any) -> SearchPolicy:
    if isinstance(value, SearchPolicy):
        return value
    if isinstance(value, bool):
        return SearchPolicy.ALWAYS if value else SearchPolicy.NEVER
    parsed = parse_bool(str(value))
    if parsed is not None:
        return coerce_search_policy(parsed)
    return SearchPolicy[str(value).strip().upper()]


def coerce_editable_policy(value: Any) -> EditablePolicy:
    if isinstance(value, EditablePolicy):
        return value
    if isinstance(value, bool):
        return EditablePolicy.EDITABLE if value else EditablePolicy.READ_ONLY
    parsed = parse_bool(str(value))
    if parsed is not None:
        return coerce_editable_policy(parsed)
    return EditablePolicy[str(value).strip().upper()]


def parse_visibility(value: str) -> Optional[bool]:
    parsed = parse_bool(value)
    if parsed is not None:
        return parsed
    try:
        return VisibilityType[value.strip().upper()] is VisibilityType.SHOW
    except KeyError:
        return None


def _safe(parser: Callable[[str], Any]) -> Callable[[str], Any]:
    def parse(value: str):
        try:
            return parser(value)
        except (KeyError, ValueError):
            return None

    return parse


# Translation field key -> (model field, parser)
TRANSLATION_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "displayName": ("display_name", str),
    "description": ("description", str),
    "prompt": ("prompt", str),
    "defaultValue": ("default_value", str),
    "displayFormat": ("display_format", str),
    "main": ("main_attribute", parse_bool),
    "readOnly": (
        "editable_policy",
        lambda v: None if parse_bool(v) is None else coerce_editable_policy(not parse_bool(v)),
    ),
    "editable": ("editable_policy", _safe(coerce_editable_policy)),
    "searchable": ("search_policy", _safe(coerce_search_policy)),
    "requiredForSearching": ("required_for_search", parse_bool),
    "required": ("required", parse_bool),
    "sortable": ("sortable", parse_bool),
    "visible": ("visible", parse_visibility),
    "showInTable": ("visible_in_summary_view", parse_visibility),
    "complexEditable": ("complex_editable", parse_bool),
    "image": ("image", parse_bool),
    "localesRestricted": ("locales_restricted", parse_bool),
    "week": ("week", parse_bool),
    "directNavigation": ("direct_navigation", parse_bool),
    "allowedExtensions": ("allowed_extensions", parse_list),
    "groupTogetherWith": ("group_together_with", parse_list),
    "trueRepresentation": ("true_representation", str),
    "falseRepresentation": ("false_representation", str),
    "percentage": ("percentage", parse_bool),
    "precision": ("precision", parse_int),
    "currency": ("currency", parse_bool),
    "multipleSearch": ("multiple_search", parse_bool),
    "selectMode": ("select_mode", enum_parser(SelectMode)),
    "searchSelectMode": ("search_select_mode", enum_parser(SelectMode)),
    "dateType": ("date_kind", enum_parser(DateKind)),
    "searchCaseSensitive": ("search_case_sensitive", parse_bool),
    "searchPrefixOnly": ("search_prefix_only", parse_bool),
    "searchDateOnly": ("search_date_only", parse_bool),
    "searchForExactValue": ("search_exact_value", parse_bool),
    "textFieldMode": ("text_field_mode", enum_parser(TextFieldMode)),
    "minLength": ("min_length", parse_int),
    "maxLength": ("max_length", parse_int),
    "maxLengthInTable": ("max_length_in_table", parse_int),
    "minValue": ("min_value", parse_number),
    "maxValue": ("max_value", parse_number),
    "url": ("url", parse_bool),
    "replacementSearchPath": ("replacement_search_path", str),
    "replacementSortPath": ("replacement_sort_path", str),
    "quickAddPropertyName": ("quick_add_property", str),
    "thousandsGrouping": ("thousands_grouping", parse_bool),
    "styles": ("styles", str),
    "navigable": ("navigable", parse_bool),
}


def enum_coercer(enum_type) -> Callable[[Any], Any]:
    def coerce(value: Any):
        if isinstance(value, enum_type):
            return value
        return enum_type[str(value).strip().upper()]

    return coerce


# Declarative config field -> (model field, coercion)
DECLARATIVE_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "select_mode": ("select_mode", enum_coercer(SelectMode)),
    "search_select_mode": ("search_select_mode", enum_coercer(SelectMode)),
    "date_kind": ("date_kind", enum_coercer(DateKind)),
    "text_field_mode": ("text_field_mode", enum_coercer(TextFieldMode)),
    "main": ("main_attribute", bool),
    "read_only": ("editable_policy", lambda v: coerce_editable_policy(not v)),
    "editable": ("editable_policy", coerce_editable_policy),
    "searchable": ("search_policy", coerce_search_policy),
    "allowed_extensions": ("allowed_extensions", list),
    "group_together_with": ("group_together_with", list),
}


class OverridePass:
    """One step of the attribute override pipeline."""

    name = "override"

    def apply(self, model: AttributeModel, context: "AttributeContext") -> None:
        raise NotImplementedError


class AttributeContext:
    """Inputs shared by the passes while building one attribute."""

    def __init__(self, config, lookup: Callable[[str], Optional[str]], settings):
        self.config = config
        self.lookup = lookup
        self.settings = settings
        self.cascades: dict[str, CascadeRule] = {}


class DeclarativeOverridePass(OverridePass):
    """Applies the values configured in ``EntityMeta`` declarations."""

    name = "declarative"

    def apply(self, model, context):
        written = set()
        for config_field, value in context.config.configured().items():
            model_field, coerce = DECLARATIVE_FIELDS.get(config_field, (config_field, None))
            if assign(model, model_field, coerce(value) if coerce else value):
                written.add(model_field)
        pair_select_modes(model, written)
        for cascade in context.config.cascade:
            if not cascade.filter_path or cascade.mode is None:
                raise IllegalStructureError(
                    f"Incomplete cascade definition for {model.path}",
                    reference=model.entity_reference,
                    attribute_path=model.path,
                )
            context.cascades[cascade.attribute] = CascadeRule(cascade.filter_path, cascade.mode)


class TranslationOverridePass(OverridePass):
    """Applies ``<reference>.<path>.<fieldKey>`` entries from the translation store."""

    name = "translation"

    def apply(self, model, context):
        written = set()
        for field_key, (model_field, parse) in TRANSLATION_FIELDS.items():
            raw = context.lookup(model.message_key(field_key))
            if raw is None or raw == "":
                continue
            value = parse(raw)
            if value is None:
                logger.warning(
                    "Ignoring unparseable value %r for %s", raw, model.message_key(field_key)
                )
                continue
            if assign(model, model_field, value):
                written.add(model_field)
        pair_select_modes(model, written)
        self._apply_cascades(model, context)

    def _apply_cascades(self, model, context):
        if parse_bool(context.lookup(model.message_key("cascadeOff")) or "") is True:
            context.cascades.clear()
            return

        index = 1
        while True:
            attribute = context.lookup(model.message_key(f"cascade.{index}"))
            if not attribute:
                break
            filter_path = context.lookup(model.message_key(f"cascadeFilterPath.{index}"))
            raw_mode = context.lookup(model.message_key(f"cascadeMode.{index}"))
            if not filter_path or not raw_mode:
                raise IllegalStructureError(
                    f"Incomplete cascade definition for {model.path}",
                    reference=model.entity_reference,
                    attribute_path=model.path,
                )
            mode = enum_parser(CascadeMode)(raw_mode)
            if mode is None:
                raise ConfigurationError(
                    f"Unknown cascade mode '{raw_mode}' for {model.path}",
                    reference=model.entity_reference,
                    attribute_path=model.path,
                )
            context.cascades[attribute.strip()] = CascadeRule(filter_path.strip(), mode)
            index += 1


class DerivedValuesPass(OverridePass):
    """Fills values derived from other fields unless they were set explicitly."""

    name = "derived"

    def apply(self, model, context):
        if model.is_explicit("display_name"):
            if not model.is_explicit("description"):
                model.description = model.display_name
            if not model.is_explicit("prompt") and context.settings.use_default_prompt_value:
                model.prompt = model.display_name

        if model.multiple_search and not model.is_explicit("search_select_mode"):
            model.search_select_mode = SelectMode.MULTI_SELECT
        if (
            model.is_explicit("search_select_mode")
            and model.search_select_mode.is_multi_value
            and model.relationship_kind in (RelationshipKind.SCALAR, RelationshipKind.TO_ONE)
        ):
            model.multiple_search = True

        if not model.is_explicit("visible_in_summary_view"):
            model.visible_in_summary_view = (
                model.visible
                and not model.nested
                and model.relationship_kind is RelationshipKind.SCALAR
            )

        model.cascade_rules = dict(context.cascades)


DEFAULT_PASSES: tuple[OverridePass, ...] = (
    DeclarativeOverridePass(),
    TranslationOverridePass(),
    DerivedValuesPass(),
)
