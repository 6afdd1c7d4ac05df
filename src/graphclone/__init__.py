"""graphclone: reflective deep cloning, structural equals and structural hash.

Usage:
    from graphclone import clone, structural_equals, structural_hash, EqualsConfig

    class Node:
        def __init__(self, value, next=None):
            self.value = value
            self.next = next

    head = Node(1, Node(2))
    head.next.next = head  # cycles are fine

    copy = clone(head)
    assert copy is not head and copy.next.next is copy
    assert structural_equals(head, copy, EqualsConfig(deep_reflect=True))
"""

__version__ = "0.1.0"

# Cloning
from graphclone.cloning import (
    CloneConfig,
    CloneContext,
    CloneDriver,
    CloneImplementor,
    clone,
    get_default_driver,
    register_implementor,
    register_predicate_implementor,
)

# Configuration
from graphclone.config import EngineSettings

# Core declarations
from graphclone.core import (
    ClassDescriptor,
    DescriptorCache,
    FieldDescriptor,
    FieldKind,
    Transient,
    cloner,
    flat,
    get_descriptor_cache,
    get_type_registry,
    immutable,
    non_cloneable,
    register_type,
    select_accessor_factory,
)

# Errors
from graphclone.errors import (
    CloningError,
    ConfigurationError,
    FieldAccessError,
    IllegalArgumentError,
    InstantiationError,
)

# Structural equals and hash
from graphclone.structural import (
    EqualsConfig,
    HashConfig,
    StructuralEquals,
    StructuralHash,
    structural_equals,
    structural_hash,
)

__all__ = [
    # Version
    "__version__",
    # Cloning
    "clone",
    "CloneConfig",
    "CloneContext",
    "CloneDriver",
    "CloneImplementor",
    "get_default_driver",
    "register_implementor",
    "register_predicate_implementor",
    # Declarations
    "Transient",
    "cloner",
    "flat",
    "immutable",
    "non_cloneable",
    "register_type",
    "get_type_registry",
    # Descriptors
    "ClassDescriptor",
    "DescriptorCache",
    "FieldDescriptor",
    "FieldKind",
    "get_descriptor_cache",
    "select_accessor_factory",
    # Structural
    "structural_equals",
    "structural_hash",
    "EqualsConfig",
    "HashConfig",
    "StructuralEquals",
    "StructuralHash",
    # Configuration
    "EngineSettings",
    # Errors
    "CloningError",
    "ConfigurationError",
    "FieldAccessError",
    "IllegalArgumentError",
    "InstantiationError",
]
