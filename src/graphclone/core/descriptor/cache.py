"""Process-wide, thread-safe cache of ClassDescriptors.

Descriptors are built on first request and published sealed. Construction of
one class may request other classes (its bases, and the field types static
mutability analysis inspects); everything built during one outermost request
is published together once that request finishes, so another thread never
observes a descriptor whose lineage is still being assembled.

Usage:
    cache = get_descriptor_cache()
    descriptor = cache.get(Order)
    for level in descriptor.lineage:
        for field in level.fields:
            ...
"""

from __future__ import annotations

import logging
import threading
import typing
from collections.abc import Iterable
from typing import TYPE_CHECKING

from graphclone.core.descriptor.hooks import find_clone_operation
from graphclone.core.descriptor.introspection import (
    DeclaredField,
    has_instance_dict,
    has_python_layout,
    is_synthetic_name,
    transient_names,
)
from graphclone.core.descriptor.models import ClassDescriptor, FieldDescriptor, FieldKind
from graphclone.core.descriptor.mutability import analyse, is_analysable
from graphclone.core.descriptor.registry import TypeDeclaration, TypeRegistry, get_type_registry
from graphclone.core.known_types import is_known_immutable, is_runtime_non_cloneable

if TYPE_CHECKING:
    from graphclone.core.access.protocol import ClassAccessorFactory

logger = logging.getLogger(__name__)


class _BuildScope(threading.local):
    """Per-thread construction state."""

    def __init__(self) -> None:
        self.in_progress: dict[type, ClassDescriptor] = {}
        self.pending: dict[type, ClassDescriptor] = {}
        self.depth = 0


class DescriptorCache:
    """Memoized ClassDescriptor lookup bound to one access strategy.

    Args:
        accessor_factory: Strategy used to bind field and method accessors.
        registry: Type declarations; defaults to the global registry. The
            cache drops affected descriptors whenever declarations change.
    """

    def __init__(
        self,
        accessor_factory: ClassAccessorFactory,
        registry: TypeRegistry | None = None,
    ) -> None:
        self._factory = accessor_factory
        self._registry = registry if registry is not None else get_type_registry()
        self._descriptors: dict[type, ClassDescriptor] = {}
        self._scope = _BuildScope()
        self._registry.add_listener(self.invalidate)

    @property
    def accessor_factory(self) -> ClassAccessorFactory:
        return self._factory

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def __contains__(self, cls: type) -> bool:
        return cls in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, cls: type) -> ClassDescriptor:
        """Return the descriptor for a class, building it on first use.

        While a class is under construction on the current thread, requests
        for it return the partial descriptor, which reports
        `detected_immutable=False` until it is complete.

        Raises:
            ConfigurationError: If the class's clone declarations conflict.
        """
        descriptor = self._descriptors.get(cls)
        if descriptor is not None:
            return descriptor

        scope = self._scope
        partial = scope.in_progress.get(cls) or scope.pending.get(cls)
        if partial is not None:
            return partial

        scope.depth += 1
        try:
            descriptor = self._build(cls)
        except BaseException:
            scope.in_progress.clear()
            scope.pending.clear()
            raise
        finally:
            scope.depth -= 1

        if scope.depth == 0:
            descriptor = self._publish(cls)
        return descriptor

    def initialise_for(self, *classes: type) -> None:
        """Pre-build descriptors for classes and the classes their fields declare."""
        seen: set[type] = set()
        stack = list(classes)
        while stack:
            cls = stack.pop()
            if cls in seen:
                continue
            seen.add(cls)
            descriptor = self.get(cls)
            for level in descriptor.lineage:
                for field in level.fields:
                    stack.extend(_declared_classes(field.declared_type))

    def invalidate(self, cls: type | None = None) -> None:
        """Drop cached descriptors.

        Args:
            cls: Drop this class, its subclasses and every analysed class
                whose immutability might depend on it. None drops everything.
        """
        if cls is None:
            self._descriptors.clear()
            logger.debug("Descriptor cache cleared")
            return
        stale = [
            k
            for k in list(self._descriptors)
            if cls in k.__mro__ or is_analysable(k)
        ]
        for k in stale:
            self._descriptors.pop(k, None)
        logger.debug("Invalidated %d descriptors for %s", len(stale), cls.__qualname__)

    def _publish(self, cls: type) -> ClassDescriptor:
        scope = self._scope
        pending, scope.pending = scope.pending, {}
        for descriptor in pending.values():
            descriptor.seal()
        for klass, descriptor in pending.items():
            self._descriptors.setdefault(klass, descriptor)
        logger.debug("Published %d descriptors for %s", len(pending), cls.__qualname__)
        return self._descriptors[cls]

    def _build(self, cls: type) -> ClassDescriptor:
        scope = self._scope
        accessor = self._factory.get(cls)
        descriptor = ClassDescriptor(cls, accessor)
        scope.in_progress[cls] = descriptor
        try:
            declaration = self._registry.declaration(cls)
            self._populate(descriptor, declaration)
        finally:
            scope.in_progress.pop(cls, None)
        scope.pending[cls] = descriptor
        logger.debug("Built descriptor for %s", cls.__qualname__)
        return descriptor

    def _populate(self, descriptor: ClassDescriptor, declaration: TypeDeclaration | None) -> None:
        cls = descriptor.target_class
        declared = declaration if declaration is not None else TypeDeclaration()

        descriptor.builtin_immutable = is_known_immutable(cls)
        descriptor.non_cloneable = declared.non_cloneable or is_runtime_non_cloneable(cls)
        descriptor.flat = declared.flat
        descriptor.has_instance_dict = has_instance_dict(cls)
        descriptor.reflectable = has_python_layout(cls)

        bases = cls.__bases__
        descriptor.super_descriptor = self.get(bases[0]) if bases else None

        language_transient = transient_names(cls)
        descriptor.fields = tuple(
            _field_descriptor(cls, f, descriptor, language_transient, declared.transient)
            for f in descriptor.accessor.declared_fields
        )
        descriptor.lineage = (descriptor, *(self.get(k) for k in cls.__mro__[1:]))
        descriptor.declared_names = frozenset(
            f.name for level in descriptor.lineage for f in level.fields
        )
        for klass in cls.__mro__:
            descriptor.transient_names |= transient_names(klass)
            registered = self._registry.declaration(klass)
            if registered is not None:
                descriptor.transient_annotated_names |= registered.transient

        descriptor.custom_clone_operation = find_clone_operation(cls, declaration)
        descriptor.detected_immutable = (
            descriptor.builtin_immutable
            or declared.immutable
            or (is_analysable(cls) and analyse(cls, self.get, self._registry))
        )


def _field_descriptor(
    cls: type,
    declared: DeclaredField,
    descriptor: ClassDescriptor,
    language_transient: frozenset[str],
    registered_transient: frozenset[str],
) -> FieldDescriptor:
    return FieldDescriptor(
        name=declared.name,
        owner=cls,
        kind=FieldKind.of(declared.annotation),
        declared_type=declared.annotation,
        is_transient=declared.name in language_transient,
        is_transient_annotated=declared.transient_annotated or declared.name in registered_transient,
        is_synthetic=is_synthetic_name(declared.name),
        is_private=declared.name.startswith("_"),
        accessor=descriptor.accessor.field_accessor(declared.name),
    )


def _declared_classes(annotation: object) -> Iterable[type]:
    origin = typing.get_origin(annotation)
    if origin is None:
        if isinstance(annotation, type):
            yield annotation
        return
    if isinstance(origin, type):
        yield origin
    for arg in typing.get_args(annotation):
        yield from _declared_classes(arg)


# Module-level cache, created on first use
_cache: DescriptorCache | None = None
_lock = threading.Lock()


def get_descriptor_cache() -> DescriptorCache:
    """Access the process-wide descriptor cache.

    Created on first use with the access strategy named by
    `EngineSettings.access_strategy`.

    Returns:
        The shared DescriptorCache instance.
    """
    global _cache
    if _cache is None:
        with _lock:
            if _cache is None:
                from graphclone.config.settings import EngineSettings
                from graphclone.core.access.factory import select_accessor_factory

                strategy = EngineSettings().access_strategy
                _cache = DescriptorCache(select_accessor_factory(strategy))
    return _cache
