"""Out-of-band type declarations and the decorators that record them.

Declarations are configuration data attached to a class: whether it is
immutable, non-cloneable or flat, how it is cloned, and which of its
attributes are transient. They apply to the exact class registered.

Usage:
    @immutable
    class Money:
        __slots__ = ("amount", "currency")

    @flat
    @dataclass
    class Point:
        x: float
        y: float

    class Session:
        def __init__(self, user):
            self.user = user

        @cloner
        def copy(self) -> "Session":
            return Session(self.user)

    register_type(Config, transient=("secret",))
"""

from __future__ import annotations

import inspect
import threading
import weakref
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar, overload

from graphclone.core.descriptor.introspection import mangle

if TYPE_CHECKING:
    from graphclone.cloning.models import CloneImplementor

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class TypeDeclaration:
    """Declarations registered for one class."""

    immutable: bool = False
    non_cloneable: bool = False
    flat: bool = False
    clone_with: CloneImplementor | Callable[[Any], Any] | None = None
    """A CloneImplementor, or a callable taking the source and returning its copy."""

    transient: frozenset[str] = frozenset()


class TypeRegistry:
    """Process-wide mapping from classes to their clone declarations.

    Listeners are notified with the class after every change so caches can
    drop stale descriptors. Bound-method listeners are held weakly: a cache
    that is no longer used is collected and its listener dropped.
    """

    def __init__(self) -> None:
        self._declarations: dict[type, TypeDeclaration] = {}
        self._listeners: list[Callable[[], Callable[[type], None] | None]] = []
        self._lock = threading.Lock()

    def register(
        self,
        cls: type,
        *,
        immutable: bool | None = None,
        non_cloneable: bool | None = None,
        flat: bool | None = None,
        clone_with: CloneImplementor | Callable[[Any], Any] | None = None,
        transient: Iterable[str] = (),
    ) -> TypeDeclaration:
        """Record declarations for a class, merging with earlier ones.

        Args:
            cls: Class to declare.
            immutable: Instances are never copied.
            non_cloneable: Instances are returned by reference.
            flat: Instances never exhibit internal aliasing.
            clone_with: Clone hook used instead of field-by-field copying.
            transient: Attribute names treated as annotation-level transient.

        Returns:
            The merged declaration now in effect.

        Raises:
            TypeError: If cls is not a class.
        """
        if not isinstance(cls, type):
            raise TypeError(f"Expected a class, got {cls!r}")

        with self._lock:
            current = self._declarations.get(cls, TypeDeclaration())
            changes: dict[str, Any] = {}
            if immutable is not None:
                changes["immutable"] = immutable
            if non_cloneable is not None:
                changes["non_cloneable"] = non_cloneable
            if flat is not None:
                changes["flat"] = flat
            if clone_with is not None:
                changes["clone_with"] = clone_with
            names = frozenset(mangle(cls, name) for name in transient)
            if names:
                changes["transient"] = current.transient | names
            declaration = replace(current, **changes)
            self._declarations[cls] = declaration
            listeners = self._live_listeners()

        for listener in listeners:
            listener(cls)
        return declaration

    def unregister(self, cls: type) -> None:
        """Drop every declaration for a class."""
        with self._lock:
            removed = self._declarations.pop(cls, None)
            listeners = self._live_listeners()
        if removed is not None:
            for listener in listeners:
                listener(cls)

    def declaration(self, cls: type) -> TypeDeclaration | None:
        """Declarations for exactly this class, None if never registered."""
        return self._declarations.get(cls)

    def is_registered(self, cls: type) -> bool:
        return cls in self._declarations

    def add_listener(self, listener: Callable[[type], None]) -> None:
        """Call `listener(cls)` whenever declarations for `cls` change."""
        with self._lock:
            self._listeners.append(_reference(listener))

    def _live_listeners(self) -> list[Callable[[type], None]]:
        # Caller holds the lock
        live = []
        kept = []
        for reference in self._listeners:
            listener = reference()
            if listener is not None:
                live.append(listener)
                kept.append(reference)
        self._listeners[:] = kept
        return live


def _reference(listener: Callable[[type], None]) -> Callable[[], Callable[[type], None] | None]:
    if inspect.ismethod(listener):
        return weakref.WeakMethod(listener)
    return lambda: listener


# Module-level registry instance
_registry = TypeRegistry()


def get_type_registry() -> TypeRegistry:
    """Access the global type registry.

    Returns:
        The process-local TypeRegistry instance.
    """
    return _registry


def register_type(
    cls: type,
    *,
    immutable: bool | None = None,
    non_cloneable: bool | None = None,
    flat: bool | None = None,
    clone_with: CloneImplementor | Callable[[Any], Any] | None = None,
    transient: Iterable[str] = (),
) -> TypeDeclaration:
    """Declare clone behaviour for a class in the global registry.

    See `TypeRegistry.register` for the arguments.
    """
    return _registry.register(
        cls,
        immutable=immutable,
        non_cloneable=non_cloneable,
        flat=flat,
        clone_with=clone_with,
        transient=transient,
    )


def _declare(cls: type[T] | None, **flags: bool) -> type[T] | Callable[[type[T]], type[T]]:
    def decorator(c: type[T]) -> type[T]:
        _registry.register(c, **flags)
        return c

    if cls is None:
        return decorator
    return decorator(cls)


@overload
def immutable(cls: type[T]) -> type[T]: ...


@overload
def immutable(cls: None = None) -> Callable[[type[T]], type[T]]: ...


def immutable(cls: type[T] | None = None) -> type[T] | Callable[[type[T]], type[T]]:
    """Declare a class immutable: its instances are shared, never copied.

    Supports both forms:
        @immutable
        @immutable()
    """
    return _declare(cls, immutable=True)


@overload
def non_cloneable(cls: type[T]) -> type[T]: ...


@overload
def non_cloneable(cls: None = None) -> Callable[[type[T]], type[T]]: ...


def non_cloneable(cls: type[T] | None = None) -> type[T] | Callable[[type[T]], type[T]]:
    """Declare a class non-cloneable: its instances are returned by reference."""
    return _declare(cls, non_cloneable=True)


@overload
def flat(cls: type[T]) -> type[T]: ...


@overload
def flat(cls: None = None) -> Callable[[type[T]], type[T]]: ...


def flat(cls: type[T] | None = None) -> type[T] | Callable[[type[T]], type[T]]:
    """Declare a class flat: no sub-object below an instance is referenced twice.

    Children of flat instances skip the identity map. Aliasing below a flat
    instance is duplicated in the copy and cycles below it do not terminate.
    """
    return _declare(cls, flat=True)


CLONE_HOOK_ATTR = "__clone_hook__"


def cloner(func: F) -> F:
    """Mark a method (or `__init__` as a copy constructor) as the class's clone hook.

    A marked method is called on the class with the source instance and must
    return the copy; a marked `__init__` is called as `cls(source)`. A class
    may mark at most one hook.
    """
    target = getattr(func, "__func__", func)
    setattr(target, CLONE_HOOK_ATTR, True)
    return func
