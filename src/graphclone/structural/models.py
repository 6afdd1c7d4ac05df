"""Structural equals and hash configuration."""

from __future__ import annotations

from dataclasses import dataclass

from graphclone.errors import IllegalArgumentError


@dataclass(frozen=True, slots=True)
class EqualsConfig:
    """Options for structural equality.

    Attributes:
        deep_reflect: Compare object-valued fields whose class does not
            define `__eq__` structurally instead of with `==`.
    """

    deep_reflect: bool = False


@dataclass(frozen=True, slots=True)
class HashConfig:
    """Options for structural hashing.

    Attributes:
        deep_reflect: Hash object-valued fields whose class does not define
            `__hash__` structurally instead of with `hash()`.
        seed: Initial running total; odd and non-zero.
        multiplier: Applied to the running total per contribution; odd and
            non-zero.

    Raises:
        IllegalArgumentError: If seed or multiplier is even or zero.
    """

    deep_reflect: bool = False
    seed: int = 17
    multiplier: int = 37

    def __post_init__(self) -> None:
        if self.seed == 0 or self.seed % 2 == 0:
            raise IllegalArgumentError(f"Hash seed must be an odd, non-zero number: {self.seed}")
        if self.multiplier == 0 or self.multiplier % 2 == 0:
            raise IllegalArgumentError(
                f"Hash multiplier must be an odd, non-zero number: {self.multiplier}"
            )
