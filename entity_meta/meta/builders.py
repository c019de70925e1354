"""
Configuration Builders for Entity Meta

Functions that turn raw ``EntityMeta`` declarations into configuration
dataclass instances. Every section may be written either with the config
dataclasses or with plain dicts; both shapes are normalized here.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Optional

from ..exceptions import ConfigurationError
from ..types import CascadeMode
from .config import AttributeConfig, CascadeConfig, EntityConfig

logger = logging.getLogger(__name__)

_ATTRIBUTE_FIELDS = frozenset(f.name for f in fields(AttributeConfig))


def coerce_cascade_config(value: Any) -> CascadeConfig:
    if isinstance(value, CascadeConfig):
        return value
    if isinstance(value, dict):
        mode = value.get("mode", CascadeMode.BOTH)
        if isinstance(mode, str):
            mode = CascadeMode[mode.upper()]
        return CascadeConfig(
            attribute=value["attribute"],
            filter_path=value.get("filter_path"),
            mode=mode,
        )
    if isinstance(value, (tuple, list)) and len(value) in (2, 3):
        return coerce_cascade_config(dict(zip(("attribute", "filter_path", "mode"), value)))
    raise ConfigurationError(f"Invalid cascade declaration: {value!r}")


def coerce_attribute_config(value: Any, name: Optional[str] = None) -> AttributeConfig:
    """
    Normalize one attribute declaration.

    Args:
        value: AttributeConfig instance or dict of AttributeConfig field values
        name: Attribute name, used in error messages

    Returns:
        AttributeConfig instance
    """
    if isinstance(value, AttributeConfig):
        config = value
    elif isinstance(value, dict):
        unknown = set(value) - _ATTRIBUTE_FIELDS
        if unknown:
            raise ConfigurationError(
                f"Unknown attribute setting(s) {sorted(unknown)} for '{name}'",
                attribute_path=name,
            )
        config = AttributeConfig(**value)
    else:
        raise ConfigurationError(
            f"Attribute configuration for '{name}' must be a dict or AttributeConfig",
            attribute_path=name,
        )
    if config.cascade:
        config = replace(config, cascade=[coerce_cascade_config(c) for c in config.cascade])
    return config


def merge_attribute_configs(base: AttributeConfig, override: AttributeConfig) -> AttributeConfig:
    """Values configured on ``override`` replace those of ``base``."""
    changes = override.configured()
    if override.cascade:
        changes["cascade"] = list(override.cascade)
    for marker in ("embedded", "element_collection", "lob", "to_many"):
        if getattr(override, marker):
            changes[marker] = True
    for name in ("member_type", "collection_table", "collection_column"):
        if getattr(override, name) is not None:
            changes[name] = getattr(override, name)
    return replace(base, **changes)


def _coerce_attribute_groups(raw: Any) -> dict[str, list[str]]:
    if not raw:
        return {}
    if isinstance(raw, dict):
        return {str(group): list(names) for group, names in raw.items()}
    groups: dict[str, list[str]] = {}
    for entry in raw:
        group, names = entry
        groups[str(group)] = list(names)
    return groups


def _coerce_order(raw: Any) -> Optional[list[str]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return [name.strip() for name in raw.split(",") if name.strip()]
    return list(raw)


def build_entity_config(meta_config: Any) -> EntityConfig:
    """
    Construct entity configuration from an inner ``EntityMeta`` class.

    Args:
        meta_config: The domain class's EntityMeta declaration (or None)

    Returns:
        Normalized EntityConfig instance
    """
    if meta_config is None:
        return EntityConfig()

    raw_attributes = getattr(meta_config, "attributes", None) or {}
    if not isinstance(raw_attributes, dict):
        raise ConfigurationError("EntityMeta.attributes must be a dict")

    nesting_depth = getattr(meta_config, "nesting_depth", None)
    max_search_results = getattr(meta_config, "max_search_results", None)
    return EntityConfig(
        display_name=getattr(meta_config, "display_name", None),
        display_name_plural=getattr(meta_config, "display_name_plural", None),
        description=getattr(meta_config, "description", None),
        display_property=getattr(meta_config, "display_property", None),
        sort_order=getattr(meta_config, "sort_order", None),
        attribute_order=_coerce_order(getattr(meta_config, "attribute_order", None)),
        grid_attribute_order=_coerce_order(getattr(meta_config, "grid_attribute_order", None)),
        search_attribute_order=_coerce_order(
            getattr(meta_config, "search_attribute_order", None)
        ),
        attribute_groups=_coerce_attribute_groups(getattr(meta_config, "attribute_groups", None)),
        nesting_depth=int(nesting_depth) if nesting_depth is not None else None,
        list_allowed=getattr(meta_config, "list_allowed", None),
        search_allowed=getattr(meta_config, "search_allowed", None),
        create_allowed=getattr(meta_config, "create_allowed", None),
        update_allowed=getattr(meta_config, "update_allowed", None),
        delete_allowed=getattr(meta_config, "delete_allowed", None),
        max_search_results=(
            int(max_search_results) if max_search_results is not None else None
        ),
        attributes={
            name: coerce_attribute_config(value, name)
            for name, value in raw_attributes.items()
        },
    )


__all__ = [
    "build_entity_config",
    "coerce_attribute_config",
    "coerce_cascade_config",
    "merge_attribute_configs",
]
