"""Tests for field and method access strategies."""

import abc
import warnings
from dataclasses import dataclass
from typing import Protocol

import pytest

from graphclone.core.access import (
    MISSING,
    PortableAccessorFactory,
    direct_access_available,
    select_accessor_factory,
)
from graphclone.core.access import factory as factory_module
from graphclone.errors import FieldAccessError, IllegalArgumentError, InstantiationError


class Point:
    __slots__ = ("x", "y")

    x: int
    y: float


class Mixed:
    __slots__ = ("slot", "__dict__")

    slot: int
    label: str

    def __init__(self):
        raise AssertionError("__init__ must not run")


@dataclass(frozen=True)
class Frozen:
    value: int


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self): ...


class Greeter(Protocol):
    def greet(self) -> str: ...


class Tagged(list):
    def __init__(self, tag):
        super().__init__()
        self.tag = tag


class Base:
    def __eq__(self, other):
        return True

    __hash__ = object.__hash__

    def describe(self):
        return "base"

    @classmethod
    def make(cls):
        return cls.__name__

    @staticmethod
    def answer():
        return 42


class Derived(Base):
    label: str


def test_get_set_slot_field(accessor_factory):
    """Slot fields read and write through the bound accessor."""
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()
    x = accessor.field_accessor("x")

    assert not x.is_set(point)
    x.set(point, 3)
    assert x.get(point) == 3
    assert x.is_set(point)
    x.delete(point)
    assert x.get(point, None) is None


def test_unset_field_without_default_raises(accessor_factory):
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()

    with pytest.raises(FieldAccessError, match="Point.x"):
        accessor.field_accessor("x").get(point)


def test_unknown_field_raises(accessor_factory):
    with pytest.raises(FieldAccessError, match="no such declared field"):
        accessor_factory.get(Point).field_accessor("z")


def test_dict_field_ignores_class_default(accessor_factory):
    """A class-level default is not instance state.

    Why: both strategies must agree on whether a field is set.
    """

    class WithDefault:
        count: int = 5

    accessor = accessor_factory.get(WithDefault)
    instance = accessor.new_instance()
    count = accessor.field_accessor("count")

    assert not count.is_set(instance)
    count.set(instance, 7)
    assert instance.count == 7
    assert WithDefault.count == 5


def test_frozen_dataclass_written_without_setattr_hook(accessor_factory):
    """Frozen dataclasses forbid assignment; accessors bypass the hook."""
    accessor = accessor_factory.get(Frozen)
    instance = accessor.new_instance()
    accessor.field_accessor("value").set(instance, 9)

    assert instance.value == 9


def test_new_instance_skips_init(accessor_factory):
    instance = accessor_factory.get(Mixed).new_instance()

    assert type(instance) is Mixed
    assert instance.__dict__ == {}


def test_mixed_slot_and_dict_fields(accessor_factory):
    accessor = accessor_factory.get(Mixed)
    instance = accessor.new_instance()
    accessor.field_accessor("slot").set_int(instance, 1)
    accessor.field_accessor("label").set(instance, "a")

    assert list(accessor.field_accessors()) == ["slot", "label"]
    assert instance.slot == 1
    assert accessor.instance_dict(instance) == {"label": "a"}


def test_new_instance_of_builtin_subclass(accessor_factory):
    """Built-in subclasses are allocated through the built-in base's __new__."""
    instance = accessor_factory.get(Tagged).new_instance()

    assert type(instance) is Tagged
    assert instance == []


def test_new_instance_abstract_class_raises(accessor_factory):
    with pytest.raises(InstantiationError, match="abstract"):
        accessor_factory.get(Shape).new_instance()


def test_new_instance_protocol_raises(accessor_factory):
    with pytest.raises(InstantiationError, match="Protocol"):
        accessor_factory.get(Greeter).new_instance()


def test_typed_setters_follow_numeric_tower(accessor_factory):
    """float accepts int; int rejects float."""
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()

    accessor.field_accessor("y").set_float(point, 2)
    assert point.y == 2
    accessor.field_accessor("x").set_int(point, True)
    assert point.x is True

    with pytest.raises(IllegalArgumentError, match=r"Point\.x expects int, got float"):
        accessor.field_accessor("x").set_int(point, 1.5)


def test_typed_getters_validate_stored_value(accessor_factory):
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()
    point.x = "three"

    with pytest.raises(IllegalArgumentError):
        accessor.field_accessor("x").get_int(point)
    point.y = 1.5
    assert accessor.field_accessor("y").get_float(point) == 1.5
    assert accessor.field_accessor("y").get_complex(point) == 1.5


def test_set_primitive_dispatches_on_declared_type(accessor_factory):
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()

    accessor.field_accessor("y").set_primitive(point, 4)
    assert point.y == 4
    with pytest.raises(IllegalArgumentError):
        accessor.field_accessor("y").set_primitive(point, "4")


def test_set_primitive_on_object_field_raises(accessor_factory):
    accessor = accessor_factory.get(Mixed)
    instance = accessor.new_instance()

    with pytest.raises(IllegalArgumentError, match="not a primitive field"):
        accessor.field_accessor("label").set_primitive(instance, "x")


def test_dynamic_field_accessor(accessor_factory):
    accessor = accessor_factory.get(Derived)
    instance = accessor.new_instance()
    extra = accessor.dynamic_field_accessor("extra")
    extra.set(instance, [1])

    assert instance.extra == [1]
    assert accessor.dynamic_field_accessor("extra") is extra


def test_dynamic_field_accessor_without_dict_raises(accessor_factory):
    with pytest.raises(FieldAccessError, match="no __dict__"):
        accessor_factory.get(Point).dynamic_field_accessor("extra")


def test_method_accessors(accessor_factory):
    accessor = accessor_factory.get(Base)
    instance = Base()

    assert accessor.method_accessor("describe").invoke(instance) == "base"
    assert accessor.method_accessor("make").invoke() == "Base"
    assert accessor.method_accessor("answer").invoke() == 42
    assert accessor.method_accessor("__eq__").invoke(instance, object()) is True
    with pytest.raises(AttributeError):
        accessor.method_accessor("missing")


def test_provides_equals_and_hash_are_own_definitions(accessor_factory):
    """Only the class's own namespace counts, not inherited definitions."""
    base = accessor_factory.get(Base)
    derived = accessor_factory.get(Derived)

    assert base.provides_equals() and base.provides_hash()
    assert not derived.provides_equals()
    assert not derived.provides_hash()


def test_hash_set_to_none_is_not_provided(accessor_factory):
    class OnlyEq:
        def __eq__(self, other):
            return False

    accessor = accessor_factory.get(OnlyEq)

    assert accessor.provides_equals()
    assert not accessor.provides_hash()


def test_super_accessor_chain(accessor_factory):
    derived = accessor_factory.get(Derived)

    assert derived.super_accessor() is accessor_factory.get(Base)
    assert derived.super_accessor().super_accessor().target_class is object
    assert accessor_factory.get(object).super_accessor() is None


def test_factory_caches_accessors(accessor_factory):
    assert accessor_factory.get(Point) is accessor_factory.get(Point)


def test_select_portable():
    factory = select_accessor_factory("portable")

    assert isinstance(factory, PortableAccessorFactory)


def test_select_auto_prefers_direct():
    factory = select_accessor_factory("auto")

    assert factory.name == ("direct" if direct_access_available() else "portable")


def test_select_unknown_strategy_raises():
    with pytest.raises(ValueError, match="Unknown access strategy"):
        select_accessor_factory("unsafe")


def test_direct_unavailable_falls_back_with_warning(monkeypatch):
    """Explicitly requested direct access warns when the probe fails."""
    monkeypatch.setattr(factory_module, "direct_access_available", lambda: False)

    with pytest.warns(RuntimeWarning, match="falling back to portable"):
        factory = select_accessor_factory("direct")

    assert factory.name == "portable"


def test_auto_fallback_is_silent(monkeypatch):
    monkeypatch.setattr(factory_module, "direct_access_available", lambda: False)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        factory = select_accessor_factory("auto")

    assert factory.name == "portable"


def test_get_returns_the_given_default_for_unset_fields(accessor_factory):
    """MISSING passed as default comes back instead of raising."""
    accessor = accessor_factory.get(Point)
    point = accessor.new_instance()

    assert accessor.field_accessor("x").get(point, MISSING) is MISSING
    assert accessor.field_accessor("y").get(point, 0.0) == 0.0


def test_subclass_field_read_from_base_instance_raises(accessor_factory):
    """Both strategies report a FieldAccessError, never a raw TypeError."""

    class Point3(Point):
        __slots__ = ("z",)

    point = accessor_factory.get(Point).new_instance()

    with pytest.raises(FieldAccessError, match="Point3.z"):
        accessor_factory.get(Point3).field_accessor("z").get(point)
