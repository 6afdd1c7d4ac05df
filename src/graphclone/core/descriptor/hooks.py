"""Custom clone operations discovered from class declarations.

A class may name at most one clone hook: a `@cloner` method, a `@cloner`
copy constructor (`__init__`), or a `clone_with` registration.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from graphclone.core.descriptor.registry import CLONE_HOOK_ATTR, TypeDeclaration
from graphclone.errors import ConfigurationError, _qualified

if TYPE_CHECKING:
    from graphclone.cloning.models import CloneImplementor


class CopyConstructorOperation:
    """Clones by calling `cls(source)`."""

    def __init__(self, cls: type) -> None:
        self.cls = cls

    def clone(self, obj: Any, context: Any) -> Any:
        copy = self.cls(obj)
        context.record(obj, copy)
        return copy


class CloneMethodOperation:
    """Clones by calling `getattr(cls, name)(source)`."""

    def __init__(self, cls: type, name: str) -> None:
        self.cls = cls
        self.name = name
        self._method = getattr(cls, name)

    def clone(self, obj: Any, context: Any) -> Any:
        copy = self._method(obj)
        context.record(obj, copy)
        return copy


class CallableCloneOperation:
    """Adapts a registered `clone_with` callable taking only the source."""

    def __init__(self, func: Callable[[Any], Any]) -> None:
        self.func = func

    def clone(self, obj: Any, context: Any) -> Any:
        copy = self.func(obj)
        context.record(obj, copy)
        return copy


def _marked(member: Any) -> bool:
    target = getattr(member, "__func__", member)
    return getattr(target, CLONE_HOOK_ATTR, False) is True


def find_clone_operation(
    cls: type, declaration: TypeDeclaration | None
) -> CloneImplementor | None:
    """Resolve the clone hook declared for exactly `cls`.

    Raises:
        ConfigurationError: If more than one hook is declared, or the hook
            cannot be called with a single source argument.
    """
    hooks = [name for name, member in vars(cls).items() if _marked(member)]
    registered = declaration.clone_with if declaration is not None else None

    if len(hooks) > 1:
        raise ConfigurationError(
            f"{_qualified(cls)} declares more than one @cloner hook: {', '.join(sorted(hooks))}"
        )
    if hooks and registered is not None:
        raise ConfigurationError(
            f"{_qualified(cls)} declares both a @cloner hook ({hooks[0]}) and clone_with"
        )

    if registered is not None:
        if callable(getattr(registered, "clone", None)):
            return registered  # type: ignore[return-value]
        if not callable(registered):
            raise ConfigurationError(f"clone_with for {_qualified(cls)} is not callable")
        return CallableCloneOperation(registered)

    if not hooks:
        return None

    name = hooks[0]
    if name == "__init__":
        _check_arity(cls, cls.__init__, 2, "copy constructor")
        return CopyConstructorOperation(cls)
    _check_arity(cls, getattr(cls, name), 1, f"clone method {name}()")
    return CloneMethodOperation(cls, name)


def _check_arity(cls: type, func: Callable[..., Any], arity: int, what: str) -> None:
    try:
        inspect.signature(func).bind(*([None] * arity))
    except TypeError as e:
        raise ConfigurationError(
            f"{what} of {_qualified(cls)} must accept exactly the source instance: {e}"
        ) from e
    except ValueError:
        # No introspectable signature (builtin); accept as declared.
        pass
