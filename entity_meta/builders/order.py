"""
Attribute ordering and sort order resolution.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..exceptions import UnresolvableReferenceError
from ..types import AttributeModel

logger = logging.getLogger(__name__)

DESCENDING_TOKENS = frozenset({"DESC", "DSC"})


class OrderResolver:
    """
    Assigns contiguous positions to the attributes of one entity.

    Attributes named explicitly come first, in the given order; the rest keep
    their current order. The same rule fills the form order (``order``), the
    grid order (``grid_order``) and the search form order (``search_order``).
    """

    def resolve(
        self,
        explicit_names: Optional[Sequence[str]],
        attributes: list[AttributeModel],
        reference: Optional[str] = None,
        target: str = "order",
    ) -> bool:
        """
        Write positions into ``target`` on every attribute.

        Returns:
            Whether an explicit order was given
        """
        by_name = {attribute.qualified_name: attribute for attribute in attributes}
        ordered: list[AttributeModel] = []
        for name in explicit_names or ():
            attribute = by_name.get(name)
            if attribute is None:
                raise UnresolvableReferenceError(
                    f"Attribute {name} is not known",
                    reference=reference,
                    attribute_name=name,
                )
            if attribute not in ordered:
                ordered.append(attribute)

        explicit = set(map(id, ordered))
        ordered.extend(a for a in attributes if id(a) not in explicit)
        for index, attribute in enumerate(ordered):
            setattr(attribute, target, index)
        return bool(explicit_names)


def parse_attribute_order(raw: Optional[str]) -> Optional[list[str]]:
    """Parse a comma separated attribute order, ignoring whitespace."""
    if raw is None:
        return None
    names = [name for name in "".join(raw.split()).split(",") if name]
    return names or None


def resolve_sort_order(
    raw: Optional[str],
    attributes: Sequence[AttributeModel],
    reference: Optional[str] = None,
) -> dict[AttributeModel, bool]:
    """
    Parse a ``"name [ASC|DESC], ..."`` list into an ordered mapping.

    Returns:
        Mapping of attribute model to ``True`` for ascending order. Names that
        do not match an attribute are skipped.
    """
    sort_order: dict[AttributeModel, bool] = {}
    if not raw:
        return sort_order

    by_name = {attribute.qualified_name: attribute for attribute in attributes}
    for token in raw.split(","):
        parts = token.split()
        if not parts:
            continue
        attribute = by_name.get(parts[0])
        if attribute is None:
            logger.warning("Sort order of %s names unknown attribute %s", reference, parts[0])
            continue
        ascending = not (len(parts) > 1 and parts[1].upper() in DESCENDING_TOKENS)
        sort_order[attribute] = ascending
    return sort_order
