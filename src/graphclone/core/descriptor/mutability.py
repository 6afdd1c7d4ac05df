"""Static mutability analysis for frozen dataclasses and NamedTuples.

A class is proven immutable when it cannot be reassigned (frozen dataclass or
NamedTuple), every base either declares no fields or is itself immutable, and
every field's declared type is immutable. Analysis is conservative: anything
it cannot prove, such as an unresolved annotation, a bare `tuple` or a
mutable container, makes the class mutable.
"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal, Union

from graphclone.core.descriptor.introspection import own_annotations, unwrap_annotated
from graphclone.core.descriptor.registry import TypeRegistry
from graphclone.core.known_types import is_known_immutable

if TYPE_CHECKING:
    from graphclone.core.descriptor.models import ClassDescriptor

Resolver = Callable[[type], "ClassDescriptor"]


def is_namedtuple(cls: type) -> bool:
    return issubclass(cls, tuple) and isinstance(vars(cls).get("_fields"), tuple)


def is_frozen_dataclass(cls: type) -> bool:
    params = vars(cls).get("__dataclass_params__")
    return params is not None and params.frozen


def is_analysable(cls: type) -> bool:
    """Only classes that forbid reassignment are candidates."""
    return is_frozen_dataclass(cls) or is_namedtuple(cls)


def analyse(cls: type, resolve: Resolver, registry: TypeRegistry) -> bool:
    """Decide whether instances of an analysable class are deeply immutable.

    Args:
        cls: Frozen dataclass or NamedTuple.
        resolve: Descriptor lookup; returns a partial, mutable-looking
            descriptor for classes still under construction.
        registry: Type declarations consulted for registered immutables.

    Returns:
        True only if immutability is proven.
    """
    for base in cls.__mro__[1:]:
        if base is object or not _declares_state(base):
            continue
        if not _type_is_immutable(base, cls, resolve, registry):
            return False

    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__[:-1]):
        hints.update(own_annotations(klass))

    if is_namedtuple(cls):
        names = list(cls._fields)  # type: ignore[attr-defined]
    else:
        names = [f.name for f in dataclasses.fields(cls)]

    return all(_type_is_immutable(hints.get(name), cls, resolve, registry) for name in names)


def _declares_state(cls: type) -> bool:
    if dataclasses.is_dataclass(cls) and "__dataclass_fields__" in vars(cls):
        return bool(vars(cls)["__dataclass_fields__"])
    slots = vars(cls).get("__slots__")
    if slots:
        return True
    return cls in (list, dict, set, bytearray)


def _type_is_immutable(tp: Any, owner: type, resolve: Resolver, registry: TypeRegistry) -> bool:
    tp, _ = unwrap_annotated(tp)

    if tp is None or tp is type(None):
        return True
    if isinstance(tp, typing.ForwardRef):
        tp = tp.__forward_arg__
    if isinstance(tp, str):
        # Unresolved annotation: only a self-reference is accepted.
        return tp in (owner.__name__, owner.__qualname__)
    if tp is owner:
        return True

    origin = typing.get_origin(tp)
    if origin is not None:
        args = typing.get_args(tp)
        if origin is Union or origin is types.UnionType:
            return all(_type_is_immutable(a, owner, resolve, registry) for a in args)
        if origin is Literal:
            return True
        if origin in (tuple, frozenset):
            items = [a for a in args if a is not Ellipsis]
            return bool(items) and all(
                _type_is_immutable(a, owner, resolve, registry) for a in items
            )
        return False

    if not isinstance(tp, type):
        return False
    if is_known_immutable(tp) or issubclass(tp, enum.Enum):
        return True
    declaration = registry.declaration(tp)
    if declaration is not None and declaration.immutable:
        return True
    if tp in (tuple, frozenset):
        return False
    return resolve(tp).detected_immutable
