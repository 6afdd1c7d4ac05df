"""Per-call clone state: identity map plus the pending population stack.

One CloneContext lives for exactly one top-level `clone()` call. Population
work is pushed onto a LIFO stack and drained by the driver, so arbitrarily
long chains of objects clone without deep recursion.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from graphclone.cloning.models import CloneConfig, IdentityMap
from graphclone.core.access.models import MISSING

if TYPE_CHECKING:
    from graphclone.cloning.driver import CloneDriver


class CloneContext:
    """Identity map and work stack shared by every node of one clone call.

    Args:
        driver: Driver resolving descriptors and implementors.
        config: Options for this call.
        identity_map: Shared map for views over the same call.
        work: Shared work stack for views over the same call.
        tracked: False for the view used below flat instances, which neither
            consults nor updates the identity map.
    """

    __slots__ = ("_untracked", "_work", "config", "driver", "identity_map", "tracked")

    def __init__(
        self,
        driver: CloneDriver,
        config: CloneConfig,
        identity_map: IdentityMap | None = None,
        work: deque[tuple[Callable[..., Any], tuple[Any, ...]]] | None = None,
        tracked: bool = True,
    ) -> None:
        self.driver = driver
        self.config = config
        self.identity_map = identity_map if identity_map is not None else IdentityMap()
        self._work = work if work is not None else deque()
        self.tracked = tracked
        self._untracked: CloneContext | None = None

    def clone(self, obj: Any) -> Any:
        """Clone one node. Children are scheduled, not cloned recursively."""
        return self.driver.clone_node(obj, self)

    def lookup(self, obj: Any) -> Any:
        """The clone already produced for `obj` in this call, or MISSING."""
        if not self.tracked:
            return MISSING
        return self.identity_map.get(id(obj), MISSING)

    def record(self, source: Any, copy: Any) -> None:
        """Map a source to its clone; a no-op in the untracked view."""
        if self.tracked:
            self.identity_map.record(source, copy)

    def defer(self, task: Callable[..., Any], *args: Any) -> None:
        """Schedule work; the most recently deferred task runs first."""
        self._work.append((task, args))

    def mark(self) -> int:
        """Current stack height, for draining only work scheduled after it."""
        return len(self._work)

    def drain(self, mark: int = 0) -> None:
        """Run scheduled work until the stack is back at `mark`."""
        work = self._work
        while len(work) > mark:
            task, args = work.pop()
            task(*args)

    def untracked(self) -> CloneContext:
        """View sharing this call's work stack but bypassing the identity map."""
        if not self.tracked:
            return self
        if self._untracked is None:
            self._untracked = CloneContext(
                self.driver, self.config, self.identity_map, self._work, tracked=False
            )
        return self._untracked

