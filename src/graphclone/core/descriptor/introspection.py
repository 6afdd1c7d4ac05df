"""Class introspection: declared fields, annotations and instance layout.

A field is an instance attribute declared by a class, either as a `__slots__`
entry or as an annotation stored in the instance dict. Class attributes,
`ClassVar` and `InitVar` annotations are never fields.

Usage:
    @dataclass
    class Event:
        __transient__ = ("cache",)

        name: str
        stamp: Annotated[datetime, Transient]
        cache: dict | None = None

    [f.name for f in declared_fields(Event)]  # ["name", "stamp", "cache"]
"""

from __future__ import annotations

import dataclasses
import inspect
import sys
import typing
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Literal

FieldStorage = Literal["slot", "dict"]


class Transient:
    """Annotation marker for fields skipped unless transient cloning is enabled.

    Usage: `stamp: Annotated[datetime, Transient]`
    """


@dataclass(frozen=True, slots=True)
class DeclaredField:
    """One instance attribute declared by a single class."""

    name: str
    """Storage name, with private `__x` names mangled."""

    storage: FieldStorage
    annotation: Any = None
    """Resolved annotation without `Annotated` metadata, or None if unknown."""

    transient_annotated: bool = False


def mangle(cls: type, name: str) -> str:
    """Apply private name mangling the way the compiler does for `cls`."""
    if not name.startswith("__") or name.endswith("__"):
        return name
    owner = cls.__name__.lstrip("_")
    if not owner:
        return name
    return f"_{owner}{name}"


def is_synthetic_name(name: str) -> bool:
    """Dunder attributes are set by the runtime or frameworks, not by user code."""
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def has_instance_dict(cls: type) -> bool:
    return getattr(cls, "__dictoffset__", 0) != 0


def has_python_layout(cls: type) -> bool:
    """True when instances store state in slots or an instance dict.

    Extension types without either are opaque to field walking.
    """
    if has_instance_dict(cls):
        return True
    return any("__slots__" in vars(k) for k in cls.__mro__[:-1])


def declared_slot_names(cls: type) -> list[str]:
    slots = vars(cls).get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    return [mangle(cls, name) for name in slots if name not in ("__dict__", "__weakref__")]


def transient_names(cls: type) -> frozenset[str]:
    """Names listed in the class's own `__transient__` declaration."""
    names = vars(cls).get("__transient__", ())
    if isinstance(names, str):
        names = (names,)
    return frozenset(mangle(cls, name) for name in names)


def unwrap_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split `Annotated[T, *meta]` into `(T, meta)`."""
    if typing.get_origin(annotation) is Annotated:
        return annotation.__origin__, tuple(annotation.__metadata__)
    return annotation, ()


def own_annotations(cls: type) -> dict[str, Any]:
    """Annotations declared in the class body of `cls`, resolved where possible.

    When any string annotation cannot be evaluated, the class's annotations
    are returned unresolved.
    """
    module = sys.modules.get(cls.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(cls))
    localns.setdefault(cls.__name__, cls)
    try:
        return inspect.get_annotations(cls, globals=globalns, locals=localns, eval_str=True)
    except (NameError, AttributeError, SyntaxError, TypeError):
        pass
    try:
        return inspect.get_annotations(cls)
    except NameError:
        # Deferred annotations (3.14+) that reference undefined names.
        import annotationlib

        return annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF)


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    annotation, _ = unwrap_annotated(annotation)
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _is_init_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("InitVar", "dataclasses.InitVar"))
    return annotation is dataclasses.InitVar or isinstance(annotation, dataclasses.InitVar)


def declared_fields(cls: type) -> list[DeclaredField]:
    """Fields declared by `cls` itself, slots first, then annotated dict fields."""
    annotations = own_annotations(cls)
    slot_names = declared_slot_names(cls)
    fields: list[DeclaredField] = []

    for name in slot_names:
        fields.append(_declared(name, "slot", annotations.get(name)))

    if not has_instance_dict(cls):
        return fields

    taken = set(slot_names)
    for name, annotation in annotations.items():
        if name in taken or _is_class_var(annotation) or _is_init_var(annotation):
            continue
        fields.append(_declared(name, "dict", annotation))
    return fields


def _declared(name: str, storage: FieldStorage, annotation: Any) -> DeclaredField:
    base, metadata = unwrap_annotated(annotation)
    transient = any(m is Transient or isinstance(m, Transient) for m in metadata)
    if isinstance(base, (str, typing.ForwardRef)):
        base = None
    return DeclaredField(name=name, storage=storage, annotation=base, transient_annotated=transient)
