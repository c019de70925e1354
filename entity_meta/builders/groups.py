"""
Attribute group resolution.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from ..exceptions import UnresolvableReferenceError
from ..types import DEFAULT_GROUP, AttributeModel

if TYPE_CHECKING:
    from ..factory import EntityModelFactory

logger = logging.getLogger(__name__)


class GroupResolver:
    """
    Maps attributes to display groups.

    Groups come from the class's ``EntityMeta.attribute_groups``, unless the
    translation store defines ``<reference>.attributeGroup.<N>.messageKey`` /
    ``.attributeNames`` entries, which replace the declared groups entirely.
    Attributes that no group mentions belong to the ``"default"`` group.
    """

    def __init__(self, factory: "EntityModelFactory"):
        self.factory = factory

    def read_groups(self, cls: type, reference: str) -> dict[str, list[str]]:
        """Group key -> member attribute names, in declaration order."""
        groups = self._translated_groups(reference)
        if groups:
            return groups
        return {
            group: list(names)
            for group, names in self.factory.reader.read_entity(cls).attribute_groups.items()
        }

    def _translated_groups(self, reference: str) -> dict[str, list[str]]:
        groups: dict[str, list[str]] = {}
        index = 1
        while True:
            message_key = self.factory.lookup(f"{reference}.attributeGroup.{index}.messageKey")
            if not message_key:
                break
            names = self.factory.lookup(f"{reference}.attributeGroup.{index}.attributeNames") or ""
            groups[message_key.strip()] = [n.strip() for n in names.split(",") if n.strip()]
            index += 1
        return groups

    def resolve(
        self,
        cls: type,
        reference: str,
        known_names: Optional[Iterable[str]] = None,
    ) -> dict[str, str]:
        """
        Compute the attribute name -> group mapping.

        Args:
            cls: Entity class
            reference: Entity reference
            known_names: When given, group members must be among these names
        """
        return self._map(self.read_groups(cls, reference), reference, known_names)

    @staticmethod
    def _map(
        groups: dict[str, list[str]], reference: str, known_names: Optional[Iterable[str]]
    ) -> dict[str, str]:
        known = set(known_names) if known_names is not None else None
        mapping: dict[str, str] = {}
        for group, names in groups.items():
            for name in names:
                if known is not None and name not in known:
                    raise UnresolvableReferenceError(
                        f"Attribute group {group} names unknown attribute {name}",
                        reference=reference,
                        attribute_name=name,
                    )
                mapping[name] = group
        return mapping

    def partition(
        self, cls: type, reference: str, attributes: list[AttributeModel]
    ) -> dict[str, list[AttributeModel]]:
        """Split ordered attributes into groups; the default group is always present."""
        groups = self.read_groups(cls, reference)
        mapping = self._map(groups, reference, [a.qualified_name for a in attributes])
        grouped: dict[str, list[AttributeModel]] = {group: [] for group in groups}
        grouped.setdefault(DEFAULT_GROUP, [])
        for attribute in attributes:
            grouped[mapping.get(attribute.qualified_name, DEFAULT_GROUP)].append(attribute)
        return grouped


def check_group_together(attributes: list[AttributeModel], reference: str) -> None:
    """
    Flag ambiguous "group together" relations.

    When an attribute asks to be grouped with one that precedes it, the earlier
    attribute is already rendered elsewhere; it is marked ``already_grouped``
    and a warning is logged.
    """
    by_name = {a.qualified_name: a for a in attributes}
    seen: set[str] = set()
    for attribute in attributes:
        seen.add(attribute.qualified_name)
        for together in attribute.group_together_with:
            if together in seen and together in by_name:
                by_name[together].already_grouped = True
                logger.warning(
                    "Incorrect groupTogetherWith in %s: %s refers to %s",
                    reference,
                    attribute.qualified_name,
                    together,
                )
