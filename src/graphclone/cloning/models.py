"""Clone configuration and extension-point types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from graphclone.cloning.context import CloneContext


@dataclass(frozen=True, slots=True)
class CloneConfig:
    """Options for one clone operation.

    Attributes:
        clone_transient_fields: Copy fields listed in `__transient__`; when
            False they are set to their zero value.
        clone_transient_annotated_fields: Copy fields marked
            `Annotated[T, Transient]` or registered as transient.
        clone_synthetic_fields: Clone dunder fields instead of sharing them.
        clone_immutable: Copy user classes detected immutable (built-in
            immutables are always shared).
        use_custom_clone_operations: Honour `@cloner` hooks and `clone_with`.
        use_clone_implementors: Consult implementors registered on the driver.
        use_copy_protocol: Honour `__deepcopy__` defined by a class.
    """

    clone_transient_fields: bool = True
    clone_transient_annotated_fields: bool = False
    clone_synthetic_fields: bool = False
    clone_immutable: bool = False
    use_custom_clone_operations: bool = True
    use_clone_implementors: bool = True
    use_copy_protocol: bool = False


@runtime_checkable
class CloneImplementor(Protocol):
    """Clone strategy for one class, registered on a CloneDriver.

    Implementations must call `context.record(obj, copy)` before cloning any
    child through `context.clone`, so cycles back to `obj` resolve to `copy`.
    """

    def clone(self, obj: Any, context: CloneContext) -> Any:
        """Produce the copy of `obj`."""
        ...


class IdentityMap(dict[int, Any]):
    """Source identity to clone, scoped to one clone call.

    Keyed by `id(source)`, which also makes it a valid `copy.deepcopy` memo.
    Sources are kept alive in `keep_alive` so their ids are not reused while
    the call runs.
    """

    __slots__ = ("keep_alive",)

    def __init__(self) -> None:
        super().__init__()
        self.keep_alive: list[Any] = []

    def record(self, source: Any, copy: Any) -> None:
        self[id(source)] = copy
        self.keep_alive.append(source)
