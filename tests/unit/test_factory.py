"""
Unit tests for the factory query surface, nested model resolution, the
registry and lazy model handles.
"""

import threading
import time
from collections import Counter
from unittest import mock

import pytest
from django.test import SimpleTestCase

from entity_meta import (
    ConfigurationError,
    IllegalStructureError,
    LazyModelHandle,
    ModelNotProvidedError,
    ModelRegistry,
)
from entity_meta.builders import NestedModelResolver
from entity_meta.conf import EntityModelSettings
from entity_meta.types import EntityModel
from tests.domain import Address
from tests.models import Author, Customer, Employee, Order, Product
from tests.utils import make_factory

pytestmark = pytest.mark.unit


class Site:
    name: str
    address: Address


class ShallowSite:
    name: str
    address: Address

    class EntityMeta:
        nesting_depth = 0


class TestQuerySurface(SimpleTestCase):
    def setUp(self):
        self.factory = make_factory()

    def test_repeated_requests_return_the_cached_instance(self):
        first = self.factory.get_model(Order)
        self.assertIs(self.factory.get_model(Order), first)
        self.assertIs(self.factory.get_model("Order", Order), first)
        self.assertIs(self.factory.get_model(Order, "Order"), first)
        self.assertIs(self.factory.get_model("Order"), first)
        self.assertEqual(first.reference, "Order")
        self.assertIs(first.entity_class, Order)

    def test_explicit_reference(self):
        model = self.factory.get_model("Customer.special", Customer)
        self.assertEqual(model.reference, "Customer.special")
        self.assertTrue(model.nested)
        self.assertTrue(self.factory.has_model("Customer.special"))
        self.assertFalse(self.factory.has_model("Customer"))

    def test_has_model(self):
        self.assertFalse(self.factory.has_model("Order"))
        self.factory.get_model(Order)
        self.assertTrue(self.factory.has_model("Order"))
        self.assertTrue(self.factory.has_model("Order.customer"))
        self.assertTrue(self.factory.has_model("Order.products"))

    def test_unknown_reference_without_class(self):
        with self.assertRaises(ModelNotProvidedError) as ctx:
            self.factory.get_model("Invoice")
        self.assertEqual(ctx.exception.reference, "Invoice")

    def test_invalid_request(self):
        with self.assertRaises(ConfigurationError):
            self.factory.get_model(42)
        with self.assertRaises(ConfigurationError):
            self.factory.get_model("Order", "Order")

    def test_can_provide_model(self):
        self.assertTrue(self.factory.can_provide_model("Order", Order))
        limited = make_factory(provided_classes=[Customer])
        self.assertTrue(limited.can_provide_model("Order.customer", Customer))
        self.assertFalse(limited.can_provide_model("Order", Order))
        with self.assertRaises(ModelNotProvidedError):
            limited.get_model(Order)


class TestNestedModels(SimpleTestCase):
    def test_relationships_get_nested_models(self):
        factory = make_factory()
        order = factory.get_model(Order)
        customer = order.get_attribute_model("customer").nested_model
        self.assertEqual(customer.reference, "Order.customer")
        self.assertIs(customer.entity_class, Customer)
        self.assertIs(customer, factory.get_model("Order.customer"))
        products = order.get_attribute_model("products").nested_model
        self.assertEqual(products.reference, "Order.products")
        self.assertIs(products.entity_class, Product)
        self.assertTrue(all(a.nested for a in customer.attribute_models))

    def test_annotated_relationships(self):
        site = make_factory().get_model(Site)
        address = site.get_attribute_model("address").nested_model
        self.assertEqual(address.reference, "Site.address")
        self.assertEqual([a.name for a in address], ["street", "city"])

    def test_depth_bound(self):
        factory = make_factory()
        factory.get_model(Order)
        deepest = factory.get_model("Order.customer.orders.customer")
        self.assertEqual(deepest.reference.count("."), 3)
        orders = deepest.get_attribute_model("orders")
        self.assertIsNone(orders.nested_model)
        self.assertEqual(orders.relationship_kind.value, "TO_MANY")
        self.assertFalse(factory.has_model("Order.customer.orders.customer.orders"))

    def test_depth_bound_setting(self):
        factory = make_factory(settings=EntityModelSettings(nesting_depth=1))
        order = factory.get_model(Order)
        customer = order.get_attribute_model("customer").nested_model
        self.assertIsNotNone(customer)
        self.assertIsNone(customer.get_attribute_model("orders").nested_model)

    def test_per_entity_depth(self):
        factory = make_factory()
        site = factory.get_model(ShallowSite)
        self.assertEqual(site.nesting_depth, 0)
        self.assertIsNone(site.get_attribute_model("address").nested_model)
        self.assertFalse(factory.has_model("ShallowSite.address"))

    def test_translated_depth(self):
        factory = make_factory({"Order.nestingDepth": "0"})
        order = factory.get_model(Order)
        self.assertEqual(order.nesting_depth, 0)
        self.assertIsNone(order.get_attribute_model("customer").nested_model)
        self.assertFalse(factory.has_model("Order.customer"))

    def test_negative_translated_depth_is_ignored(self):
        with self.assertLogs("entity_meta.builders.entity", "WARNING"):
            order = make_factory({"Order.nestingDepth": "-1"}).get_model(Order)
        self.assertEqual(order.nesting_depth, 3)

    def test_self_reference_terminates(self):
        factory = make_factory()
        employee = factory.get_model(Employee)
        manager = employee.get_attribute_model("manager")
        self.assertIsInstance(manager.nested_model_ref, LazyModelHandle)
        self.assertEqual(manager.nested_model_ref.reference, "Employee")
        self.assertIs(manager.nested_model, employee)
        self.assertEqual(factory.registry.references, ["Employee"])

    def test_two_sided_relationship(self):
        factory = make_factory()
        author = factory.get_model(Author)
        self.assertTrue(factory.has_model("Author"))
        self.assertTrue(factory.has_model("Author.books"))
        self.assertTrue(factory.has_model("Author.favourite_book"))
        book = author.get_attribute_model("books").nested_model
        self.assertIs(book.get_attribute_model("author").nested_model.entity_class, Author)

    def test_in_progress_pair_is_left_shallow(self):
        factory = make_factory()
        resolver = NestedModelResolver(factory)
        order = factory.get_model(Order)
        customer = order.get_attribute_model("customer")
        with mock.patch.object(factory.registry, "is_processing", return_value=True):
            with mock.patch.object(factory.registry, "get", return_value=None):
                self.assertIsNone(resolver.resolve(customer, "Invoice", Order, 3))


class TestDelegation(SimpleTestCase):
    def setUp(self):
        self.delegate = make_factory(provided_classes=[Customer])
        self.factory = make_factory(delegated_factories=[self.delegate])

    def test_nested_model_is_deferred_to_the_delegate(self):
        order = self.factory.get_model(Order)
        handle = order.get_attribute_model("customer").nested_model_ref
        self.assertIsInstance(handle, LazyModelHandle)
        self.assertFalse(handle.is_resolved)
        self.assertFalse(self.delegate.has_model("Order.customer"))

        customer = order.get_attribute_model("customer").nested_model
        self.assertTrue(handle.is_resolved)
        self.assertIs(customer, self.delegate.get_model("Order.customer"))
        self.assertFalse(self.factory.has_model("Order.customer"))
        self.assertEqual(handle.display_name, customer.display_name)

    def test_top_level_request_is_delegated(self):
        customer = self.factory.get_model(Customer)
        self.assertTrue(self.delegate.has_model("Customer"))
        self.assertFalse(self.factory.has_model("Customer"))
        self.assertIs(customer, self.delegate.get_model("Customer"))

    def test_delegates_from_dotted_paths(self):
        with mock.patch("entity_meta.factory.import_string", return_value=self.delegate):
            factory = make_factory(delegated_factories=["somewhere.delegate"])
        self.assertIs(factory.find_delegate("Customer", Customer), self.delegate)
        self.assertIsNone(factory.find_delegate("Order", Order))


class TestLazyModelHandle(SimpleTestCase):
    def test_resolution_is_memoized(self):
        provider = mock.Mock()
        handle = LazyModelHandle(provider, "Order.customer", Customer)
        self.assertIn("pending", repr(handle))
        first = handle.resolve()
        second = handle.resolve()
        self.assertIs(first, second)
        provider.get_model.assert_called_once_with("Order.customer", Customer)
        self.assertIn("resolved", repr(handle))

    def test_attribute_access_is_forwarded(self):
        model = EntityModel(reference="Order.customer", entity_class=Customer, display_name="Client")
        provider = mock.Mock()
        provider.get_model.return_value = model
        handle = LazyModelHandle(provider, "Order.customer", Customer)
        self.assertEqual(handle.display_name, "Client")
        self.assertTrue(handle.nested)


class TestRegistry(SimpleTestCase):
    def test_build_once_and_freeze(self):
        registry = ModelRegistry()
        build = mock.Mock(side_effect=lambda ref, cls: EntityModel(reference=ref, entity_class=cls))
        with self.assertLogs("entity_meta.registry", "INFO"):
            model = registry.get_or_build("Order", Order, build)
        self.assertIs(registry.get_or_build("Order", Order, build), model)
        build.assert_called_once_with("Order", Order)
        self.assertTrue(registry.has("Order"))
        self.assertIn("Order", registry)
        self.assertEqual(len(registry), 1)
        self.assertTrue(registry.is_processed("Order", Order))
        with self.assertRaises(AttributeError):
            model.display_name = "x"

    def test_in_progress_bookkeeping(self):
        registry = ModelRegistry()
        seen = {}

        def build(ref, cls):
            seen["processing"] = registry.is_processing(ref, cls)
            seen["other_class"] = registry.is_processing(ref, Customer)
            return EntityModel(reference=ref, entity_class=cls)

        registry.get_or_build("Order", Order, build)
        self.assertEqual(seen, {"processing": True, "other_class": False})
        self.assertFalse(registry.is_processing("Order", Order))

    def test_reentrant_request_for_the_same_reference(self):
        registry = ModelRegistry()

        def build(ref, cls):
            return registry.get_or_build(ref, cls, build)

        with self.assertRaises(IllegalStructureError):
            registry.get_or_build("Order", Order, build)
        self.assertFalse(registry.has("Order"))
        self.assertFalse(registry.is_processing("Order", Order))

    def test_failed_build_is_not_cached(self):
        registry = ModelRegistry()
        with self.assertRaises(ValueError):
            registry.get_or_build("Order", Order, mock.Mock(side_effect=ValueError("boom")))
        self.assertFalse(registry.has("Order"))


class TestConcurrency(SimpleTestCase):
    def test_concurrent_first_requests_build_once(self):
        factory = make_factory()
        construct = factory._construct
        calls = Counter()

        def slow_construct(reference, entity_class):
            calls[reference] += 1
            time.sleep(0.01)
            return construct(reference, entity_class)

        factory._construct = slow_construct
        results = []
        errors = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            try:
                results.append(factory.get_model(Order))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 8)
        self.assertTrue(all(result is results[0] for result in results))
        self.assertTrue(calls)
        self.assertTrue(all(count == 1 for count in calls.values()))
