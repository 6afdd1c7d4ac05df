"""Deep cloning of object graphs."""

from graphclone.cloning.context import CloneContext
from graphclone.cloning.driver import (
    CloneDriver,
    clone,
    get_default_driver,
    register_implementor,
    register_predicate_implementor,
)
from graphclone.cloning.implementors import ImplementorRegistry
from graphclone.cloning.models import CloneConfig, CloneImplementor, IdentityMap

__all__ = [
    "CloneConfig",
    "CloneContext",
    "CloneDriver",
    "CloneImplementor",
    "IdentityMap",
    "ImplementorRegistry",
    "clone",
    "get_default_driver",
    "register_implementor",
    "register_predicate_implementor",
]
