"""Portable access strategy built on the generic attribute protocol.

Slot fields go through `object.__getattribute__` / `object.__setattr__` /
`object.__delattr__`, which bypass class-level `__setattr__` overrides (frozen
dataclasses, for example). Dict fields go through the instance dict returned
by `object.__getattribute__(instance, "__dict__")`, so class-level defaults
are never mistaken for instance state. Works on any interpreter.
"""

from __future__ import annotations

from typing import Any

from graphclone.core.access.models import BaseClassAccessor, BaseFieldAccessor
from graphclone.core.access.protocol import ClassAccessor, FieldAccessor
from graphclone.core.descriptor.introspection import DeclaredField


class PortableFieldAccessor(BaseFieldAccessor):
    __slots__ = ()

    def _read(self, instance: Any) -> Any:
        return object.__getattribute__(instance, self.name)

    def _write(self, instance: Any, value: Any) -> None:
        object.__setattr__(instance, self.name, value)

    def _remove(self, instance: Any) -> None:
        object.__delattr__(instance, self.name)


class PortableDictFieldAccessor(BaseFieldAccessor):
    __slots__ = ()

    def _read(self, instance: Any) -> Any:
        return object.__getattribute__(instance, "__dict__")[self.name]

    def _write(self, instance: Any, value: Any) -> None:
        object.__getattribute__(instance, "__dict__")[self.name] = value

    def _remove(self, instance: Any) -> None:
        del object.__getattribute__(instance, "__dict__")[self.name]


class PortableClassAccessor(BaseClassAccessor):
    def _make_field_accessor(self, declared: DeclaredField) -> FieldAccessor:
        if declared.storage == "slot":
            return PortableFieldAccessor(self._type, declared.name, declared.annotation)
        return PortableDictFieldAccessor(self._type, declared.name, declared.annotation)

    def _make_dynamic_accessor(self, name: str) -> FieldAccessor:
        return PortableDictFieldAccessor(self._type, name)

    def instance_dict(self, instance: Any) -> dict[str, Any] | None:
        if not self._has_dict:
            return None
        return object.__getattribute__(instance, "__dict__")


class PortableAccessorFactory:
    """Creates PortableClassAccessors, one per class."""

    name = "portable"

    def __init__(self) -> None:
        self._accessors: dict[type, ClassAccessor] = {}

    def get(self, cls: type) -> ClassAccessor:
        accessor = self._accessors.get(cls)
        if accessor is None:
            accessor = self._accessors.setdefault(cls, PortableClassAccessor(cls, self))
        return accessor
