"""Direct access strategy bound to raw field storage.

Slot fields are read and written through the owning class's member
descriptor (the in-object slot offset); dict fields go straight to the
instance dict fetched through the `__dict__` getset descriptor. No attribute
lookup, `__getattr__` or data-descriptor shadowing is involved.

Requires interpreter support for member-descriptor storage access, checked
once by `direct_access_available()`.
"""

from __future__ import annotations

import types
from typing import Any

from graphclone.core.access.models import BaseClassAccessor, BaseFieldAccessor
from graphclone.core.access.protocol import ClassAccessor, FieldAccessor
from graphclone.core.descriptor.introspection import DeclaredField
from graphclone.errors import FieldAccessError


def direct_access_available() -> bool:
    """Probe whether slot member descriptors give raw storage access."""

    class _Probe:
        __slots__ = ("value",)

    member = vars(_Probe).get("value")
    if not isinstance(member, types.MemberDescriptorType):
        return False
    probe = object.__new__(_Probe)
    try:
        member.__set__(probe, 1)
        return member.__get__(probe, _Probe) == 1
    except (AttributeError, TypeError):
        return False


def _dict_getter(cls: type) -> types.GetSetDescriptorType | None:
    for klass in cls.__mro__:
        candidate = vars(klass).get("__dict__")
        if isinstance(candidate, types.GetSetDescriptorType):
            return candidate
    return None


class SlotFieldAccessor(BaseFieldAccessor):
    __slots__ = ("_member",)

    def __init__(self, owner: type, name: str, declared_type: Any = None) -> None:
        super().__init__(owner, name, declared_type)
        member = vars(owner).get(name)
        if not isinstance(member, types.MemberDescriptorType):
            raise FieldAccessError(owner, name, "slot has no member descriptor")
        self._member = member

    def _read(self, instance: Any) -> Any:
        return self._member.__get__(instance, self.owner)

    def _write(self, instance: Any, value: Any) -> None:
        self._member.__set__(instance, value)

    def _remove(self, instance: Any) -> None:
        self._member.__delete__(instance)


class DictFieldAccessor(BaseFieldAccessor):
    __slots__ = ("_dict_of",)

    def __init__(
        self,
        owner: type,
        name: str,
        dict_getter: types.GetSetDescriptorType,
        declared_type: Any = None,
    ) -> None:
        super().__init__(owner, name, declared_type)
        self._dict_of = dict_getter

    def _read(self, instance: Any) -> Any:
        return self._dict_of.__get__(instance)[self.name]

    def _write(self, instance: Any, value: Any) -> None:
        self._dict_of.__get__(instance)[self.name] = value

    def _remove(self, instance: Any) -> None:
        del self._dict_of.__get__(instance)[self.name]


class DirectClassAccessor(BaseClassAccessor):
    def __init__(self, cls: type, factory: DirectAccessorFactory) -> None:
        self._dict_getter = _dict_getter(cls)
        super().__init__(cls, factory)

    def _make_field_accessor(self, declared: DeclaredField) -> FieldAccessor:
        if declared.storage == "slot":
            return SlotFieldAccessor(self._type, declared.name, declared.annotation)
        return self._make_dict_accessor(declared.name, declared.annotation)

    def _make_dynamic_accessor(self, name: str) -> FieldAccessor:
        return self._make_dict_accessor(name, None)

    def _make_dict_accessor(self, name: str, declared_type: Any) -> FieldAccessor:
        if self._dict_getter is None:
            raise FieldAccessError(self._type, name, "instances have no __dict__")
        return DictFieldAccessor(self._type, name, self._dict_getter, declared_type)

    def instance_dict(self, instance: Any) -> dict[str, Any] | None:
        if not self._has_dict or self._dict_getter is None:
            return None
        return self._dict_getter.__get__(instance)


class DirectAccessorFactory:
    """Creates DirectClassAccessors, one per class."""

    name = "direct"

    def __init__(self) -> None:
        self._accessors: dict[type, ClassAccessor] = {}

    def get(self, cls: type) -> ClassAccessor:
        accessor = self._accessors.get(cls)
        if accessor is None:
            accessor = self._accessors.setdefault(cls, DirectClassAccessor(cls, self))
        return accessor
