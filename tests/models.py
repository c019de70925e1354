from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models

from entity_meta import EntityMeta


class Customer(models.Model):
    name = models.CharField(max_length=100, help_text="Full legal name")
    email = models.EmailField("e-mail address", blank=True)

    class Meta:
        app_label = "tests"


class Product(models.Model):
    label = models.CharField(max_length=80)
    price = models.DecimalField(max_digits=10, decimal_places=3)
    picture = models.BinaryField(null=True, blank=True)

    class Meta:
        app_label = "tests"


class Order(models.Model):
    code = models.CharField(max_length=20)
    quantity = models.IntegerField(default=0)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    placed_on = models.DateField(null=True, blank=True)
    paid = models.BooleanField(default=False)
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="orders")
    products = models.ManyToManyField(Product, blank=True)

    class Meta:
        app_label = "tests"

    class EntityMeta(EntityMeta):
        display_name = "Purchase order"
        sort_order = "code DESC, total"
        attribute_groups = {
            "general": ["code", "customer"],
            "amounts": ["quantity", "total"],
        }
        attributes = {
            "total": EntityMeta.Attribute(currency=True),
            "customer": {
                "navigable": True,
                "cascade": [("products", "supplier", "SEARCH")],
            },
        }


class Employee(models.Model):
    first_name = models.CharField(max_length=50)
    hired_on = models.DateTimeField(null=True, blank=True)
    manager = models.ForeignKey("self", null=True, blank=True, on_delete=models.SET_NULL)

    class Meta:
        app_label = "tests"


class Author(models.Model):
    name = models.CharField(max_length=100)
    favourite_book = models.ForeignKey(
        "tests.Book", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )

    class Meta:
        app_label = "tests"


class Book(models.Model):
    title = models.CharField(max_length=200)
    author = models.ForeignKey(Author, on_delete=models.CASCADE, related_name="books")

    class Meta:
        app_label = "tests"


class Rating(models.Model):
    score = models.IntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, validators=[MinLengthValidator(3)])

    class Meta:
        app_label = "tests"
