"""Core introspection machinery shared by cloning, equals and hashing."""

from graphclone.core.access import (
    ClassAccessor,
    ClassAccessorFactory,
    FieldAccessor,
    MethodAccessor,
    select_accessor_factory,
)
from graphclone.core.descriptor import (
    ClassDescriptor,
    DescriptorCache,
    FieldDescriptor,
    FieldKind,
    Transient,
    TypeRegistry,
    cloner,
    flat,
    get_descriptor_cache,
    get_type_registry,
    immutable,
    non_cloneable,
    register_type,
)

__all__ = [
    "ClassAccessor",
    "ClassAccessorFactory",
    "ClassDescriptor",
    "DescriptorCache",
    "FieldAccessor",
    "FieldDescriptor",
    "FieldKind",
    "MethodAccessor",
    "Transient",
    "TypeRegistry",
    "cloner",
    "flat",
    "get_descriptor_cache",
    "get_type_registry",
    "immutable",
    "non_cloneable",
    "register_type",
    "select_accessor_factory",
]
