"""Accessor protocols for swappable field-access strategies.

Two strategies implement these protocols:
- Portable: generic attribute protocol (`object.__getattribute__`/`__setattr__`)
- Direct: binds straight to slot member descriptors and instance dicts

Usage:
    factory = select_accessor_factory("auto")
    accessor = factory.get(Point)
    point = accessor.new_instance()
    accessor.field_accessor("x").set_int(point, 3)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from graphclone.core.access.models import MethodAccessor
    from graphclone.core.descriptor.introspection import DeclaredField


@runtime_checkable
class FieldAccessor(Protocol):
    """Capability bound to one field of one class."""

    name: str
    owner: type
    declared_type: Any

    def get(self, instance: Any, default: Any = ...) -> Any:
        """Read the field; return `default` (if given) when it is unset."""
        ...

    def set(self, instance: Any, value: Any) -> None:
        """Write the field, bypassing class-level `__setattr__` hooks."""
        ...

    def delete(self, instance: Any) -> None:
        """Unset the field."""
        ...

    def is_set(self, instance: Any) -> bool:
        """Check whether the instance holds a value for the field."""
        ...

    def set_primitive(self, instance: Any, value: Any) -> None:
        """Write using the typed setter for the declared primitive type."""
        ...


@runtime_checkable
class ClassAccessor(Protocol):
    """Capability bound to one class."""

    @property
    def target_class(self) -> type:
        """The class this accessor is bound to."""
        ...

    @property
    def declared_fields(self) -> tuple[DeclaredField, ...]:
        """Introspected fields declared by this class only."""
        ...

    def new_instance(self) -> Any:
        """Allocate a bare instance without running `__init__`."""
        ...

    def field_accessors(self) -> Mapping[str, FieldAccessor]:
        """Accessors for the fields declared by this class, in declaration order."""
        ...

    def field_accessor(self, name: str) -> FieldAccessor:
        """Accessor for one declared field."""
        ...

    def dynamic_field_accessor(self, name: str) -> FieldAccessor:
        """Accessor for an undeclared attribute stored in the instance dict."""
        ...

    def method_accessors(self) -> Mapping[str, MethodAccessor]:
        """Accessors for methods defined in this class's own namespace."""
        ...

    def method_accessor(self, name: str) -> MethodAccessor:
        """Accessor for one method defined in this class's own namespace."""
        ...

    def super_accessor(self) -> ClassAccessor | None:
        """Accessor for the primary base class, None for `object`."""
        ...

    def provides_equals(self) -> bool:
        """True iff this class itself defines `__eq__`."""
        ...

    def provides_hash(self) -> bool:
        """True iff this class itself defines a non-None `__hash__`."""
        ...

    def instance_dict(self, instance: Any) -> dict[str, Any] | None:
        """The instance `__dict__`, or None when instances have none."""
        ...


class ClassAccessorFactory(Protocol):
    """Creates and caches ClassAccessors for one access strategy."""

    name: str

    def get(self, cls: type) -> ClassAccessor:
        """Return the accessor bound to `cls`."""
        ...
