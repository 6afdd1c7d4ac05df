from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated

from graphclone import (
    CloneConfig,
    CloneDriver,
    EqualsConfig,
    HashConfig,
    Transient,
    cloner,
    immutable,
    structural_equals,
    structural_hash,
)


class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@immutable
class Owner:
    """Shared by every copy: registered immutable."""

    def __init__(self, name: str) -> None:
        self.name = name


@dataclass
class Task:
    __transient__ = ("started_at",)

    description: str
    status: TaskStatus
    started_at: datetime | None = None
    depends_on: list["Task"] = field(default_factory=list)


@dataclass(eq=False)
class Board:
    """Compared field by field, so the transient render cache is ignored."""

    owner: Owner
    tasks: list[Task] = field(default_factory=list)
    render_cache: Annotated[dict, Transient] = field(default_factory=dict)


class Snapshot:
    """Custom clone hook: copies record the source they were taken from."""

    def __init__(self, board: Board) -> None:
        self.board = board
        self.taken_from: "Snapshot | None" = None

    @cloner
    def duplicate(self) -> "Snapshot":
        copy = Snapshot(self.board)
        copy.taken_from = self
        return copy


def main() -> None:
    owner = Owner("ana")
    collect = Task("Collect data", TaskStatus.COMPLETED, datetime(2024, 5, 1))
    analyse = Task("Analyze data", TaskStatus.IN_PROGRESS, datetime(2024, 5, 2), [collect])
    report = Task("Generate report", TaskStatus.PENDING, depends_on=[analyse, collect])
    board = Board(owner, [collect, analyse, report], {"html": "<ul>...</ul>"})

    driver = CloneDriver()
    copy = driver.clone(board)

    print(f"Distinct board: {copy is not board}")
    print(f"Owner shared: {copy.owner is owner}")
    print(f"Dependency shared inside copy: {copy.tasks[2].depends_on[1] is copy.tasks[0]}")
    print(f"Render cache dropped: {copy.render_cache is None}")

    # Transient fields are zeroed on request
    fresh = driver.clone(board, CloneConfig(clone_transient_fields=False))
    print(f"Start times reset: {[t.started_at for t in fresh.tasks]}")

    # Structural comparison ignores transient state
    deep = EqualsConfig(deep_reflect=True)
    print(f"Structurally equal: {structural_equals(board, copy, deep)}")
    print(f"Equal hashes: {structural_hash(board) == structural_hash(copy, HashConfig())}")

    snapshot = Snapshot(board)
    print(f"Snapshot hook used: {driver.clone(snapshot).taken_from is snapshot}")


if __name__ == "__main__":
    main()
