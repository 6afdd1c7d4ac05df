"""Field and method access strategies."""

from graphclone.core.access.direct import (
    DirectAccessorFactory,
    DirectClassAccessor,
    direct_access_available,
)
from graphclone.core.access.factory import AccessStrategy, select_accessor_factory
from graphclone.core.access.models import MISSING, MethodAccessor
from graphclone.core.access.portable import PortableAccessorFactory, PortableClassAccessor
from graphclone.core.access.protocol import ClassAccessor, ClassAccessorFactory, FieldAccessor

__all__ = [
    "MISSING",
    "AccessStrategy",
    "ClassAccessor",
    "ClassAccessorFactory",
    "DirectAccessorFactory",
    "DirectClassAccessor",
    "FieldAccessor",
    "MethodAccessor",
    "PortableAccessorFactory",
    "PortableClassAccessor",
    "direct_access_available",
    "select_accessor_factory",
]
