"""Class descriptors: introspection, declarations and the descriptor cache."""

from graphclone.core.descriptor.cache import DescriptorCache, get_descriptor_cache
from graphclone.core.descriptor.hooks import find_clone_operation
from graphclone.core.descriptor.introspection import DeclaredField, Transient, declared_fields
from graphclone.core.descriptor.models import ClassDescriptor, FieldDescriptor, FieldKind
from graphclone.core.descriptor.mutability import analyse, is_analysable
from graphclone.core.descriptor.registry import (
    TypeDeclaration,
    TypeRegistry,
    cloner,
    flat,
    get_type_registry,
    immutable,
    non_cloneable,
    register_type,
)

__all__ = [
    "ClassDescriptor",
    "DeclaredField",
    "DescriptorCache",
    "FieldDescriptor",
    "FieldKind",
    "Transient",
    "TypeDeclaration",
    "TypeRegistry",
    "analyse",
    "cloner",
    "declared_fields",
    "find_clone_operation",
    "flat",
    "get_descriptor_cache",
    "get_type_registry",
    "immutable",
    "is_analysable",
    "non_cloneable",
    "register_type",
]
