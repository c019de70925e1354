"""
Unit tests for EntityMeta declarations and their normalization.
"""

from typing import Annotated

import pytest
from django.test import SimpleTestCase

from entity_meta.exceptions import ConfigurationError
from entity_meta.introspection import default_introspector
from entity_meta.meta import (
    AttributeConfig,
    CascadeConfig,
    EntityConfig,
    EntityMetaReader,
    RelationshipMarker,
    build_entity_config,
    coerce_attribute_config,
    coerce_cascade_config,
    merge_attribute_configs,
)
from entity_meta.types import CascadeMode
from tests.domain import Address, Person
from tests.models import Order, Product

pytestmark = pytest.mark.unit


class Ticket:
    subject: Annotated[str, AttributeConfig(display_name="Topic", sortable=False)]
    labels: Annotated[list, AttributeConfig(member_type=str)]

    class EntityMeta:
        attributes = {"subject": {"display_name": "Summary"}}


class TestCoercion(SimpleTestCase):
    def test_cascade_from_tuple_and_dict(self):
        cascade = coerce_cascade_config(("city", "country", "edit"))
        self.assertEqual(cascade, CascadeConfig("city", "country", CascadeMode.EDIT))

        cascade = coerce_cascade_config({"attribute": "city", "filter_path": "country"})
        self.assertEqual(cascade.mode, CascadeMode.BOTH)

    def test_invalid_cascade(self):
        with self.assertRaises(ConfigurationError):
            coerce_cascade_config("city")

    def test_attribute_from_dict(self):
        config = coerce_attribute_config(
            {"precision": 3, "cascade": [("lines", "order")]}, "total"
        )
        self.assertEqual(config.precision, 3)
        self.assertEqual(config.cascade, [CascadeConfig("lines", "order")])

    def test_unknown_attribute_setting(self):
        with self.assertRaises(ConfigurationError) as ctx:
            coerce_attribute_config({"precisoin": 3}, "total")
        self.assertEqual(ctx.exception.attribute_path, "total")
        self.assertIn("precisoin", str(ctx.exception))

    def test_configured_only_lists_set_values(self):
        config = AttributeConfig(visible=False, precision=0, embedded=True)
        self.assertEqual(config.configured(), {"visible": False, "precision": 0})
        self.assertEqual(config.markers, frozenset({RelationshipMarker.EMBEDDED}))

    def test_merge_prefers_override(self):
        merged = merge_attribute_configs(
            AttributeConfig(display_name="A", visible=True),
            AttributeConfig(display_name="B", lob=True),
        )
        self.assertEqual(merged.display_name, "B")
        self.assertTrue(merged.visible)
        self.assertTrue(merged.lob)


class TestBuildEntityConfig(SimpleTestCase):
    def test_missing_declaration(self):
        self.assertEqual(build_entity_config(None), EntityConfig())

    def test_full_declaration(self):
        class Meta:
            display_name = "Invoice"
            attribute_order = "number, date"
            attribute_groups = [("header", ["number"])]
            nesting_depth = "2"
            attributes = {"number": AttributeConfig(main=True)}

        config = build_entity_config(Meta)
        self.assertEqual(config.display_name, "Invoice")
        self.assertEqual(config.attribute_order, ["number", "date"])
        self.assertEqual(config.attribute_groups, {"header": ["number"]})
        self.assertEqual(config.nesting_depth, 2)
        self.assertTrue(config.attributes["number"].main)

    def test_attributes_must_be_a_dict(self):
        class Meta:
            attributes = [("number", {})]

        with self.assertRaises(ConfigurationError):
            build_entity_config(Meta)


class TestEntityMetaReader(SimpleTestCase):
    def setUp(self):
        self.reader = EntityMetaReader()

    def _descriptor(self, cls, name):
        return next(d for d in default_introspector.get_properties(cls) if d.name == name)

    def test_entity_config_is_cached(self):
        self.assertIs(self.reader.read_entity(Order), self.reader.read_entity(Order))
        self.assertEqual(self.reader.read_entity(Order).display_name, "Purchase order")

    def test_structural_markers_from_django_fields(self):
        markers, _ = self.reader.read_attribute(Product, self._descriptor(Product, "picture"))
        self.assertEqual(markers, frozenset({RelationshipMarker.LOB}))
        markers, _ = self.reader.read_attribute(Order, self._descriptor(Order, "products"))
        self.assertEqual(markers, frozenset({RelationshipMarker.TO_MANY}))

    def test_declaration_overrides_annotation(self):
        markers, config = self.reader.read_attribute(Ticket, self._descriptor(Ticket, "subject"))
        self.assertEqual(config.display_name, "Summary")
        self.assertFalse(config.sortable)
        self.assertEqual(markers, frozenset())

    def test_member_type_marks_to_many(self):
        markers, config = self.reader.read_attribute(Ticket, self._descriptor(Ticket, "labels"))
        self.assertIn(RelationshipMarker.TO_MANY, markers)
        self.assertIs(config.member_type, str)

    def test_embedding_class_overrides_by_qualified_name(self):
        _, config = self.reader.read_attribute(
            Address,
            self._descriptor(Address, "city"),
            root_class=Person,
            qualified_name="address.city",
        )
        self.assertEqual(config.display_name, "Town")

        _, config = self.reader.read_attribute(Address, self._descriptor(Address, "city"))
        self.assertIsNone(config.display_name)
