"""
Unit tests for attribute ordering, sort order and attribute groups.
"""

import pytest
from django.test import SimpleTestCase

from entity_meta import AttributeModel, UnresolvableReferenceError
from entity_meta.builders import (
    GroupResolver,
    OrderResolver,
    check_group_together,
    parse_attribute_order,
    resolve_sort_order,
)
from tests.models import Order
from tests.utils import make_factory

pytestmark = pytest.mark.unit


def attributes(*names):
    return [AttributeModel(name=name, entity_reference="Sample") for name in names]


class Ordered:
    a: str
    b: str
    c: str

    class EntityMeta:
        attribute_order = ["c", "a"]


class BadOrder:
    a: str

    class EntityMeta:
        attribute_order = ["a", "z"]


class BadGroup:
    a: str
    b: str

    class EntityMeta:
        attribute_groups = {"first": ["a", "missing"]}


class DefaultFirst:
    a: str
    b: str

    class EntityMeta:
        attribute_groups = {"default": ["b"], "extra": ["a"]}


class TestOrderResolver(SimpleTestCase):
    def test_explicit_names_come_first(self):
        a, b, c = attributes("a", "b", "c")
        OrderResolver().resolve(["b", "a"], [a, b, c])
        self.assertEqual((b.order, a.order, c.order), (0, 1, 2))

    def test_without_explicit_order(self):
        models = attributes("x", "y", "z")
        OrderResolver().resolve(None, models)
        self.assertEqual([m.order for m in models], [0, 1, 2])

    def test_duplicates_are_ignored(self):
        a, b = attributes("a", "b")
        OrderResolver().resolve(["b", "b"], [a, b])
        self.assertEqual((b.order, a.order), (0, 1))

    def test_unknown_name(self):
        with self.assertRaises(UnresolvableReferenceError) as ctx:
            OrderResolver().resolve(["nope"], attributes("a"), "Sample")
        self.assertEqual(ctx.exception.attribute_name, "nope")
        self.assertEqual(ctx.exception.reference, "Sample")
        self.assertIn("Attribute nope is not known", str(ctx.exception))

    def test_target_field(self):
        a, b = attributes("a", "b")
        self.assertTrue(OrderResolver().resolve(["b"], [a, b], target="grid_order"))
        self.assertEqual((b.grid_order, a.grid_order), (0, 1))
        self.assertEqual((a.order, b.order), (0, 0))
        self.assertFalse(OrderResolver().resolve(None, [a, b], target="search_order"))
        self.assertEqual((a.search_order, b.search_order), (0, 1))

    def test_parse_attribute_order(self):
        self.assertEqual(parse_attribute_order(" b , a ,"), ["b", "a"])
        self.assertIsNone(parse_attribute_order(None))
        self.assertIsNone(parse_attribute_order(" , "))


class TestEntityOrdering(SimpleTestCase):
    def test_declared_order(self):
        model = make_factory().get_model(Ordered)
        self.assertEqual([a.name for a in model], ["c", "a", "b"])
        self.assertEqual([a.order for a in model], [0, 1, 2])

    def test_translated_order_replaces_declared_order(self):
        model = make_factory({"Ordered.attributeOrder": "b"}).get_model(Ordered)
        self.assertEqual([a.name for a in model], ["b", "a", "c"])

    def test_unknown_declared_name(self):
        with self.assertRaises(UnresolvableReferenceError):
            make_factory().get_model(BadOrder)

    def test_orders_are_contiguous(self):
        order = make_factory().get_model(Order)
        orders = sorted(a.order for a in order.attribute_models)
        self.assertEqual(orders, list(range(len(orders))))


class TestSortOrder(SimpleTestCase):
    def test_parse(self):
        a, b, c = attributes("a", "b", "c")
        sort_order = resolve_sort_order("b DESC, a asc,c dsc", [a, b, c])
        self.assertEqual(list(sort_order.items()), [(b, False), (a, True), (c, False)])

    def test_unknown_names_are_skipped(self):
        (a,) = attributes("a")
        with self.assertLogs("entity_meta.builders.order", "WARNING"):
            sort_order = resolve_sort_order("nope, a", [a], "Sample")
        self.assertEqual(sort_order, {a: True})

    def test_empty(self):
        self.assertEqual(resolve_sort_order(None, attributes("a")), {})

    def test_declared_sort_order(self):
        order = make_factory().get_model(Order)
        sort_order = [(a.name, asc) for a, asc in order.sort_order.items()]
        self.assertEqual(sort_order, [("code", False), ("total", True)])

    def test_translated_sort_order(self):
        order = make_factory({"Order.sortOrder": "placed_on DESC"}).get_model(Order)
        sort_order = [(a.name, asc) for a, asc in order.sort_order.items()]
        self.assertEqual(sort_order, [("placed_on", False)])


class TestGroups(SimpleTestCase):
    def test_declared_groups(self):
        order = make_factory().get_model(Order)
        self.assertEqual(order.attribute_group_names, ["general", "amounts", "default"])
        self.assertEqual(
            [a.name for a in order.get_attribute_models_for_group("general")],
            ["code", "customer"],
        )
        self.assertEqual(
            [a.name for a in order.get_attribute_models_for_group("default")],
            ["id", "placed_on", "paid", "products"],
        )
        self.assertFalse(order.uses_default_group_only())
        self.assertTrue(order.is_attribute_group_visible("default"))
        self.assertFalse(order.is_attribute_group_visible("unknown"))

    def test_resolve_mapping(self):
        mapping = GroupResolver(make_factory()).resolve(Order, "Order")
        self.assertEqual(
            mapping,
            {"code": "general", "customer": "general", "quantity": "amounts", "total": "amounts"},
        )
        with self.assertRaises(UnresolvableReferenceError):
            GroupResolver(make_factory()).resolve(Order, "Order", known_names=["code"])

    def test_translated_groups_replace_declared_groups(self):
        order = make_factory(
            {
                "Order.attributeGroup.1.messageKey": "summary",
                "Order.attributeGroup.1.attributeNames": "code, total",
                "Order.attributeGroup.3.messageKey": "ignored after gap",
            }
        ).get_model(Order)
        self.assertEqual(order.attribute_group_names, ["summary", "default"])
        self.assertEqual(
            [a.name for a in order.get_attribute_models_for_group("summary")],
            ["code", "total"],
        )

    def test_default_group_only(self):
        model = make_factory().get_model(Ordered)
        self.assertTrue(model.uses_default_group_only())

    def test_declared_default_group_keeps_its_position(self):
        model = make_factory().get_model(DefaultFirst)
        self.assertEqual(model.attribute_group_names, ["default", "extra"])
        self.assertEqual([a.name for a in model.get_attribute_models_for_group("default")], ["b"])

    def test_unknown_group_member(self):
        with self.assertRaises(UnresolvableReferenceError) as ctx:
            make_factory().get_model(BadGroup)
        self.assertEqual(ctx.exception.attribute_name, "missing")

    def test_group_hidden_when_no_member_is_visible(self):
        order = make_factory(
            {"Order.code.visible": "false", "Order.customer.visible": "false"}
        ).get_model(Order)
        self.assertFalse(order.is_attribute_group_visible("general"))


class TestGroupTogether(SimpleTestCase):
    def test_reference_to_earlier_attribute_is_flagged(self):
        a, b, c = attributes("a", "b", "c")
        c.group_together_with = ["a"]
        with self.assertLogs("entity_meta.builders.groups", "WARNING") as logs:
            check_group_together([a, b, c], "Sample")
        self.assertTrue(a.already_grouped)
        self.assertFalse(c.already_grouped)
        self.assertIn("c refers to a", logs.output[0])

    def test_reference_to_later_attribute_is_fine(self):
        a, b = attributes("a", "b")
        a.group_together_with = ["b"]
        check_group_together([a, b], "Sample")
        self.assertFalse(a.already_grouped)
        self.assertFalse(b.already_grouped)

    def test_applied_during_build(self):
        order = make_factory({"Order.total.groupTogetherWith": "code"}).get_model(Order)
        self.assertTrue(order.get_attribute_model("code").already_grouped)
        self.assertEqual(order.get_attribute_model("total").group_together_with, ("code",))
