"""Descriptor data models: per-field and per-class introspection results."""

from __future__ import annotations

import typing
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from graphclone.core.known_types import ARRAY_TYPES, PRIMITIVE_TYPES

if TYPE_CHECKING:
    from graphclone.cloning.models import CloneImplementor
    from graphclone.core.access.protocol import ClassAccessor, FieldAccessor


class FieldKind(Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def of(cls, declared_type: Any) -> FieldKind:
        """Classify a resolved annotation."""
        if declared_type in PRIMITIVE_TYPES:
            return cls.PRIMITIVE
        origin = typing.get_origin(declared_type) or declared_type
        if isinstance(origin, type) and origin in ARRAY_TYPES:
            return cls.ARRAY
        return cls.OBJECT


_ZERO_VALUES: dict[type, Any] = {bool: False, int: 0, float: 0.0, complex: 0j}


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One declared field of one class.

    Attributes:
        name: Storage name (private names mangled).
        owner: Class declaring the field.
        kind: Primitive, array or object.
        declared_type: Resolved annotation, None if unknown.
        is_transient: Listed in the owner's `__transient__` declaration.
        is_transient_annotated: `Annotated[T, Transient]` or registered transient.
        is_synthetic: Dunder name set by the runtime or a framework.
        is_private: Leading underscore.
        accessor: Bound accessor for the active strategy.
    """

    name: str
    owner: type
    kind: FieldKind
    declared_type: Any
    is_transient: bool
    is_transient_annotated: bool
    is_synthetic: bool
    is_private: bool
    accessor: FieldAccessor

    def zero_value(self) -> Any:
        """The declared type's zero value, None for object and array fields."""
        return _ZERO_VALUES.get(self.declared_type)


class ClassDescriptor:
    """Cached introspection result for one class.

    Built incrementally by the descriptor cache and sealed on publication;
    after that every attribute assignment raises AttributeError, which keeps
    published descriptors safe for unsynchronized reads.
    """

    __slots__ = (
        "_sealed",
        "accessor",
        "builtin_immutable",
        "custom_clone_operation",
        "declared_names",
        "detected_immutable",
        "fields",
        "flat",
        "has_instance_dict",
        "lineage",
        "non_cloneable",
        "overrides_equals",
        "overrides_hash",
        "reflectable",
        "super_descriptor",
        "target_class",
        "transient_annotated_names",
        "transient_names",
    )

    target_class: type
    accessor: ClassAccessor
    super_descriptor: ClassDescriptor | None
    lineage: tuple[ClassDescriptor, ...]
    fields: tuple[FieldDescriptor, ...]
    declared_names: frozenset[str]
    detected_immutable: bool
    builtin_immutable: bool
    non_cloneable: bool
    flat: bool
    custom_clone_operation: CloneImplementor | None
    overrides_equals: bool
    overrides_hash: bool
    has_instance_dict: bool
    reflectable: bool
    transient_names: frozenset[str]
    transient_annotated_names: frozenset[str]

    def __init__(self, target_class: type, accessor: ClassAccessor) -> None:
        self.target_class = target_class
        self.accessor = accessor
        self.super_descriptor = None
        self.lineage = ()
        self.fields = ()
        self.declared_names = frozenset()
        self.detected_immutable = False
        self.builtin_immutable = False
        self.non_cloneable = False
        self.flat = False
        self.custom_clone_operation = None
        self.overrides_equals = accessor.provides_equals()
        self.overrides_hash = accessor.provides_hash()
        self.has_instance_dict = False
        self.reflectable = False
        self.transient_names = frozenset()
        self.transient_annotated_names = frozenset()

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            raise AttributeError(
                f"ClassDescriptor for {self.target_class.__qualname__} is sealed; "
                f"cannot set {name!r}"
            )
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, "_sealed", False):
            raise AttributeError(f"ClassDescriptor for {self.target_class.__qualname__} is sealed")
        object.__delattr__(self, name)

    def __repr__(self) -> str:
        return f"ClassDescriptor({self.target_class.__qualname__})"

    @property
    def sealed(self) -> bool:
        return getattr(self, "_sealed", False)

    def seal(self) -> None:
        object.__setattr__(self, "_sealed", True)
