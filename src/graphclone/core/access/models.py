"""Shared accessor behaviour: typed field access, method handles, allocation.

Concrete strategies only decide where a field's value lives; numeric-tower
validation, error reporting and class-level bookkeeping live here.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from graphclone.core.descriptor.introspection import DeclaredField, declared_fields, has_instance_dict
from graphclone.errors import FieldAccessError, IllegalArgumentError, InstantiationError, _qualified

if TYPE_CHECKING:
    from graphclone.core.access.protocol import ClassAccessor, ClassAccessorFactory, FieldAccessor

MISSING: Any = object()
"""Marker callers pass to `FieldAccessor.get` to receive back for an unset field."""

_NO_DEFAULT: Any = object()

# Numeric tower: a typed setter accepts its own type and anything narrower.
_ACCEPTED: dict[type, tuple[type, ...]] = {
    bool: (bool,),
    int: (int,),
    float: (float, int),
    complex: (complex, float, int),
}


class BaseFieldAccessor:
    """Field accessor skeleton; subclasses implement `_read`, `_write`, `_remove`.

    `_read` signals an unset field by raising AttributeError or KeyError.
    """

    __slots__ = ("declared_type", "name", "owner")

    def __init__(self, owner: type, name: str, declared_type: Any = None) -> None:
        self.owner = owner
        self.name = name
        self.declared_type = declared_type

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.owner.__qualname__}.{self.name})"

    def _read(self, instance: Any) -> Any:
        raise NotImplementedError

    def _write(self, instance: Any, value: Any) -> None:
        raise NotImplementedError

    def _remove(self, instance: Any) -> None:
        raise NotImplementedError

    def get(self, instance: Any, default: Any = _NO_DEFAULT) -> Any:
        try:
            return self._read(instance)
        except (AttributeError, KeyError) as e:
            if default is not _NO_DEFAULT:
                return default
            raise FieldAccessError(self.owner, self.name, "field is not set") from e
        except TypeError as e:
            # Descriptor applied to an instance of an unrelated class
            raise FieldAccessError(self.owner, self.name, str(e)) from e

    def set(self, instance: Any, value: Any) -> None:
        try:
            self._write(instance, value)
        except (AttributeError, TypeError) as e:
            raise FieldAccessError(self.owner, self.name, str(e)) from e

    def delete(self, instance: Any) -> None:
        try:
            self._remove(instance)
        except (AttributeError, KeyError) as e:
            raise FieldAccessError(self.owner, self.name, "field is not set") from e

    def is_set(self, instance: Any) -> bool:
        return self.get(instance, MISSING) is not MISSING

    # Typed access

    def get_int(self, instance: Any) -> int:
        return self._checked(self.get(instance), int)

    def get_float(self, instance: Any) -> float:
        return self._checked(self.get(instance), float)

    def get_bool(self, instance: Any) -> bool:
        return self._checked(self.get(instance), bool)

    def get_complex(self, instance: Any) -> complex:
        return self._checked(self.get(instance), complex)

    def set_int(self, instance: Any, value: int) -> None:
        self.set(instance, self._checked(value, int))

    def set_float(self, instance: Any, value: float) -> None:
        self.set(instance, self._checked(value, float))

    def set_bool(self, instance: Any, value: bool) -> None:
        self.set(instance, self._checked(value, bool))

    def set_complex(self, instance: Any, value: complex) -> None:
        self.set(instance, self._checked(value, complex))

    def set_primitive(self, instance: Any, value: Any) -> None:
        """Write through the typed setter matching the declared type.

        Raises:
            IllegalArgumentError: If the field is not primitive or the value
                does not fit the declared type.
        """
        setter = {
            bool: self.set_bool,
            int: self.set_int,
            float: self.set_float,
            complex: self.set_complex,
        }.get(self.declared_type)
        if setter is None:
            raise IllegalArgumentError(
                f"Field {_qualified(self.owner)}.{self.name} is not a primitive field"
            )
        setter(instance, value)

    def _checked(self, value: Any, expected: type) -> Any:
        if isinstance(value, _ACCEPTED[expected]):
            return value
        raise IllegalArgumentError(
            f"Field {_qualified(self.owner)}.{self.name} expects {expected.__name__}, "
            f"got {type(value).__name__}"
        )


@dataclass(frozen=True, slots=True)
class MethodAccessor:
    """Handle on a method defined in one class's own namespace.

    `invoke` calls it the way attribute lookup on the class would: plain
    functions and slot wrappers take the instance as first argument, class
    methods are bound to the owner.
    """

    owner: type
    name: str
    member: Any
    _bound: Callable[..., Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        getter = getattr(type(self.member), "__get__", None)
        bound = getter(self.member, None, self.owner) if getter is not None else self.member
        object.__setattr__(self, "_bound", bound)

    @property
    def function(self) -> Callable[..., Any]:
        """The underlying callable, unwrapped from staticmethod/classmethod."""
        return getattr(self.member, "__func__", self.member)

    def invoke(self, *args: Any, **kwargs: Any) -> Any:
        return self._bound(*args, **kwargs)


def _is_method(member: Any) -> bool:
    if isinstance(member, type):
        return False
    return callable(member) or isinstance(member, (staticmethod, classmethod))


def allocator_for(cls: type) -> Callable[[type], Any]:
    """The `__new__` of the nearest built-in base, `object.__new__` by default."""
    for klass in cls.__mro__:
        new = vars(klass).get("__new__")
        if isinstance(new, staticmethod):
            new = new.__func__
        if isinstance(new, types.BuiltinFunctionType):
            return new
    return object.__new__


class BaseClassAccessor:
    """Class accessor skeleton shared by both strategies.

    Args:
        cls: Class to bind.
        factory: Factory that created this accessor; resolves the base class.
    """

    def __init__(self, cls: type, factory: ClassAccessorFactory) -> None:
        self._type = cls
        self._factory = factory
        self._declared = tuple(declared_fields(cls))
        self._fields: dict[str, FieldAccessor] = {
            f.name: self._make_field_accessor(f) for f in self._declared
        }
        self._dynamic: dict[str, FieldAccessor] = {}
        self._methods = {
            name: MethodAccessor(cls, name, member)
            for name, member in vars(cls).items()
            if _is_method(member)
        }
        self._has_dict = has_instance_dict(cls)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._type.__qualname__})"

    def _make_field_accessor(self, declared: DeclaredField) -> FieldAccessor:
        raise NotImplementedError

    def _make_dynamic_accessor(self, name: str) -> FieldAccessor:
        raise NotImplementedError

    @property
    def target_class(self) -> type:
        return self._type

    @property
    def declared_fields(self) -> tuple[DeclaredField, ...]:
        return self._declared

    def new_instance(self) -> Any:
        """Allocate a bare instance without running `__init__`.

        Raises:
            InstantiationError: If the class is abstract, a Protocol, or the
                allocator refuses it.
        """
        cls = self._type
        if inspect.isabstract(cls):
            raise InstantiationError(cls, "class is abstract")
        if getattr(cls, "_is_protocol", False):
            raise InstantiationError(cls, "class is a Protocol")
        try:
            return allocator_for(cls)(cls)
        except TypeError as e:
            raise InstantiationError(cls, str(e)) from e

    def field_accessors(self) -> Mapping[str, FieldAccessor]:
        return types.MappingProxyType(self._fields)

    def field_accessor(self, name: str) -> FieldAccessor:
        try:
            return self._fields[name]
        except KeyError:
            raise FieldAccessError(self._type, name, "no such declared field") from None

    def dynamic_field_accessor(self, name: str) -> FieldAccessor:
        if not self._has_dict:
            raise FieldAccessError(self._type, name, "instances have no __dict__")
        accessor = self._dynamic.get(name)
        if accessor is None:
            accessor = self._dynamic.setdefault(name, self._make_dynamic_accessor(name))
        return accessor

    def method_accessors(self) -> Mapping[str, MethodAccessor]:
        return types.MappingProxyType(self._methods)

    def method_accessor(self, name: str) -> MethodAccessor:
        try:
            return self._methods[name]
        except KeyError:
            raise AttributeError(f"{_qualified(self._type)} does not define {name}()") from None

    def super_accessor(self) -> ClassAccessor | None:
        bases = self._type.__bases__
        if not bases:
            return None
        return self._factory.get(bases[0])

    def provides_equals(self) -> bool:
        return vars(self._type).get("__eq__") is not None

    def provides_hash(self) -> bool:
        return vars(self._type).get("__hash__") is not None
