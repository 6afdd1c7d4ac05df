"""Structural equals and hash over object graphs."""

from graphclone.structural.equals import StructuralEquals, structural_equals
from graphclone.structural.hashing import StructuralHash, structural_hash
from graphclone.structural.models import EqualsConfig, HashConfig

__all__ = [
    "EqualsConfig",
    "HashConfig",
    "StructuralEquals",
    "StructuralHash",
    "structural_equals",
    "structural_hash",
]
