"""
Structural introspection of domain classes.

Introspectors turn a class into an ordered list of ``PropertyDescriptor``
objects. Django models are read through ``_meta.get_fields()``; dataclasses
and other annotated classes are read from their type hints and properties.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import inspect
import threading
import typing
import uuid
import weakref
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

from django.core import validators as django_validators
from django.db import models

SIMPLE_TYPES: tuple[type, ...] = (
    str,
    bool,
    int,
    float,
    decimal.Decimal,
    datetime.date,
    datetime.datetime,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    bytes,
    bytearray,
    dict,
)

COLLECTION_TYPES: tuple[type, ...] = (list, set, frozenset, tuple)

# Django field class name -> python type, matched along the field's MRO.
FIELD_PYTHON_TYPES: dict[str, type] = {
    "AutoField": int,
    "BigAutoField": int,
    "SmallAutoField": int,
    "CharField": str,
    "TextField": str,
    "SlugField": str,
    "URLField": str,
    "EmailField": str,
    "GenericIPAddressField": str,
    "FilePathField": str,
    "FileField": str,
    "UUIDField": uuid.UUID,
    "IntegerField": int,
    "SmallIntegerField": int,
    "BigIntegerField": int,
    "PositiveIntegerField": int,
    "PositiveSmallIntegerField": int,
    "PositiveBigIntegerField": int,
    "FloatField": float,
    "DecimalField": decimal.Decimal,
    "BooleanField": bool,
    "NullBooleanField": bool,
    "DateTimeField": datetime.datetime,
    "DateField": datetime.date,
    "TimeField": datetime.time,
    "DurationField": datetime.timedelta,
    "BinaryField": bytes,
    "JSONField": dict,
}


@dataclass
class PropertyDescriptor:
    """Plain description of one property of a domain class."""

    name: str
    declared_type: Any
    element_type: Any = None
    settable: bool = True
    preferred: bool = False
    required: bool = False
    is_id: bool = False
    max_length: Optional[int] = None
    min_length: Optional[int] = None
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    precision: Optional[int] = None
    image: bool = False
    url: bool = False
    field: Any = None
    metadata: tuple = ()

    @property
    def is_collection(self) -> bool:
        return isinstance(self.declared_type, type) and issubclass(
            self.declared_type, COLLECTION_TYPES
        )


class StructuralIntrospector(Protocol):
    def get_properties(self, cls: type) -> list[PropertyDescriptor]:
        ...

    def is_entity(self, cls: Any) -> bool:
        ...


def is_simple_type(value_type: Any) -> bool:
    """Whether a type is a plain value type rather than a structured one."""
    if not isinstance(value_type, type):
        return False
    return issubclass(value_type, SIMPLE_TYPES) or issubclass(value_type, enum.Enum)


def is_django_model(cls: Any) -> bool:
    return isinstance(cls, type) and issubclass(cls, models.Model)


def python_type_for_field(field: models.Field) -> type:
    """Map a Django model field to the python type of its values."""
    output_field = getattr(field, "output_field", None)
    if output_field is not None and output_field is not field:
        return python_type_for_field(output_field)
    for klass in type(field).__mro__:
        mapped = FIELD_PYTHON_TYPES.get(klass.__name__)
        if mapped is not None:
            return mapped
    return str


class DjangoModelIntrospector:
    """Describes the properties of Django models."""

    _cache: "weakref.WeakKeyDictionary[type, list[PropertyDescriptor]]" = (
        weakref.WeakKeyDictionary()
    )
    _cache_lock = threading.Lock()

    def get_properties(self, cls: type[models.Model]) -> list[PropertyDescriptor]:
        with self._cache_lock:
            cached = self._cache.get(cls)
        if cached is not None:
            return list(cached)
        descriptors = self._describe(cls)
        with self._cache_lock:
            self._cache[cls] = descriptors
        return list(descriptors)

    @classmethod
    def clear_cache(cls) -> None:
        with cls._cache_lock:
            cls._cache.clear()

    def is_entity(self, cls: Any) -> bool:
        return is_django_model(cls) and not cls._meta.abstract

    def _describe(self, cls: type[models.Model]) -> list[PropertyDescriptor]:
        descriptors = []
        for field in cls._meta.get_fields():
            if field.auto_created and not field.concrete:
                descriptor = self._describe_reverse(field)
            elif field.is_relation:
                descriptor = self._describe_relation(field)
            else:
                descriptor = self._describe_concrete(field)
            if descriptor is not None:
                descriptors.append(descriptor)
        descriptors.extend(self._describe_properties(cls))
        return descriptors

    def _describe_concrete(self, field: models.Field) -> Optional[PropertyDescriptor]:
        if not getattr(field, "concrete", False):
            return None
        declared_type = python_type_for_field(field)
        element_type = None
        if type(field).__name__ == "ArrayField":
            declared_type = list
            element_type = python_type_for_field(field.base_field)

        settable = bool(field.editable) and not isinstance(field, models.AutoField)
        descriptor = PropertyDescriptor(
            name=field.name,
            declared_type=declared_type,
            element_type=element_type,
            settable=settable,
            required=settable
            and not field.blank
            and not isinstance(field, models.BooleanField),
            is_id=bool(field.primary_key),
            max_length=getattr(field, "max_length", None),
            image=isinstance(field, models.ImageField),
            url=isinstance(field, models.URLField),
            field=field,
        )
        if isinstance(field, models.DecimalField):
            descriptor.precision = field.decimal_places
        self._apply_validators(descriptor, field)
        return descriptor

    def _apply_validators(self, descriptor: PropertyDescriptor, field: models.Field) -> None:
        for validator in getattr(field, "validators", []):
            if isinstance(validator, django_validators.MinValueValidator):
                descriptor.min_value = validator.limit_value
            elif isinstance(validator, django_validators.MaxValueValidator):
                descriptor.max_value = validator.limit_value
            elif isinstance(validator, django_validators.MinLengthValidator):
                descriptor.min_length = validator.limit_value

    def _describe_relation(self, field) -> Optional[PropertyDescriptor]:
        related_model = field.related_model
        # Generic foreign keys have no fixed target
        if related_model is None:
            return None
        if not field.many_to_many and not getattr(field, "concrete", False):
            return None
        if field.many_to_many:
            return PropertyDescriptor(
                name=field.name,
                declared_type=list,
                element_type=related_model,
                settable=bool(field.editable),
                required=not field.blank,
                field=field,
            )
        return PropertyDescriptor(
            name=field.name,
            declared_type=related_model,
            settable=bool(field.editable),
            required=not field.blank and not field.null,
            is_id=bool(field.primary_key),
            field=field,
        )

    def _describe_reverse(self, rel) -> Optional[PropertyDescriptor]:
        related_name = getattr(rel, "related_name", None)
        if not related_name or related_name.endswith("+"):
            return None
        if rel.one_to_one:
            return PropertyDescriptor(
                name=rel.get_accessor_name(),
                declared_type=rel.related_model,
                settable=False,
                field=rel,
            )
        return PropertyDescriptor(
            name=rel.get_accessor_name(),
            declared_type=list,
            element_type=rel.related_model,
            settable=False,
            field=rel,
        )

    def _describe_properties(self, cls: type) -> list[PropertyDescriptor]:
        """Annotated python properties declared on the model itself."""
        descriptors = []
        seen = set()
        for klass in cls.__mro__:
            if klass is models.Model or not issubclass(klass, models.Model):
                break
            for name, member in vars(klass).items():
                if name in seen or name.startswith("_") or not isinstance(member, property):
                    continue
                seen.add(name)
                descriptor = _describe_property(name, member)
                if descriptor is not None:
                    descriptors.append(descriptor)
        return descriptors


class AnnotatedClassIntrospector:
    """Describes dataclasses and other classes through their type hints."""

    def get_properties(self, cls: type) -> list[PropertyDescriptor]:
        try:
            hints = typing.get_type_hints(cls, include_extras=True)
        except (NameError, TypeError):
            hints = dict(getattr(cls, "__annotations__", {}))

        dataclass_fields = (
            {f.name: f for f in dataclasses.fields(cls)} if dataclasses.is_dataclass(cls) else {}
        )
        descriptors = []
        for name, hint in hints.items():
            if name.startswith("_") or typing.get_origin(hint) is typing.ClassVar:
                continue
            descriptor = _describe_hint(name, hint)
            dc_field = dataclass_fields.get(name)
            if dc_field is not None:
                descriptor.preferred = bool(dc_field.metadata.get("preferred", False))
                descriptor.required = (
                    dc_field.default is dataclasses.MISSING
                    and dc_field.default_factory is dataclasses.MISSING
                )
            descriptors.append(descriptor)

        known = {d.name for d in descriptors}
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                if name in known or name.startswith("_") or not isinstance(member, property):
                    continue
                descriptor = _describe_property(name, member)
                if descriptor is not None:
                    known.add(name)
                    descriptors.append(descriptor)
        return descriptors

    def is_entity(self, cls: Any) -> bool:
        if not isinstance(cls, type) or is_simple_type(cls):
            return False
        return (
            dataclasses.is_dataclass(cls)
            or hasattr(cls, "EntityMeta")
            or bool(getattr(cls, "__annotations__", None))
        )


def _unwrap_annotated(hint: Any) -> tuple[Any, tuple]:
    if typing.get_origin(hint) is typing.Annotated:
        base, *metadata = typing.get_args(hint)
        return base, tuple(metadata)
    return hint, ()


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) is Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _describe_hint(name: str, hint: Any) -> PropertyDescriptor:
    base, metadata = _unwrap_annotated(hint)
    base = _unwrap_optional(base)
    base, more = _unwrap_annotated(base)
    metadata += more

    declared_type, element_type = base, None
    origin = typing.get_origin(base)
    if origin is not None:
        args = typing.get_args(base)
        if isinstance(origin, type) and issubclass(origin, collections.abc.Mapping):
            declared_type = dict
        elif isinstance(origin, type) and issubclass(origin, collections.abc.Iterable):
            declared_type = origin if origin in COLLECTION_TYPES else list
            element_type = _unwrap_optional(args[0]) if args else None
        else:
            declared_type = origin

    return PropertyDescriptor(
        name=name,
        declared_type=declared_type,
        element_type=element_type,
        is_id=name == "id",
        metadata=metadata,
    )


def _describe_property(name: str, member: property) -> Optional[PropertyDescriptor]:
    if member.fget is None:
        return None
    return_type = inspect.signature(member.fget).return_annotation
    if return_type is inspect.Signature.empty:
        return None
    if isinstance(return_type, str):
        try:
            return_type = typing.get_type_hints(member.fget).get("return", return_type)
        except (NameError, TypeError):
            return None
    descriptor = _describe_hint(name, return_type)
    descriptor.settable = member.fset is not None
    return descriptor


class DefaultIntrospector:
    """Dispatches to the Django or annotation based introspector."""

    def __init__(self):
        self.django = DjangoModelIntrospector()
        self.annotated = AnnotatedClassIntrospector()

    def _for(self, cls: Any):
        return self.django if is_django_model(cls) else self.annotated

    def get_properties(self, cls: type) -> list[PropertyDescriptor]:
        return self._for(cls).get_properties(cls)

    def is_entity(self, cls: Any) -> bool:
        return self._for(cls).is_entity(cls)


default_introspector = DefaultIntrospector()
