"""CloneDriver: deep copies of arbitrary object graphs preserving aliasing.

Usage:
    driver = CloneDriver()
    copy = driver.clone(order)

    # Per-call options
    copy = driver.clone(order, CloneConfig(clone_transient_fields=False))

    # Process-wide default driver configured from the environment
    copy = clone(order)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from graphclone.cloning.context import CloneContext
from graphclone.cloning.implementors import ImplementorRegistry, TypePredicate
from graphclone.cloning.models import CloneConfig, CloneImplementor
from graphclone.core.access.models import MISSING
from graphclone.core.descriptor.cache import DescriptorCache, get_descriptor_cache
from graphclone.core.descriptor.introspection import is_synthetic_name
from graphclone.core.descriptor.models import ClassDescriptor, FieldDescriptor, FieldKind
from graphclone.core.known_types import ATOMIC_TYPES


class CloneDriver:
    """Produces deep copies using class descriptors and clone implementors.

    Guarantees:
    - The copy is a distinct object unless its class is immutable or
      non-cloneable, in which case the same reference is returned.
    - Objects shared in the source are shared in the copy.
    - Cyclic graphs terminate.

    Args:
        config: Default options for `clone()` calls without explicit config.
        descriptors: Descriptor cache; defaults to the process-wide cache.
        include_builtin_implementors: Start with the built-in container
            implementors (disable only for fully custom drivers).
    """

    def __init__(
        self,
        config: CloneConfig | None = None,
        descriptors: DescriptorCache | None = None,
        include_builtin_implementors: bool = True,
    ) -> None:
        self._config = config if config is not None else CloneConfig()
        self._descriptors = descriptors if descriptors is not None else get_descriptor_cache()
        self._implementors = ImplementorRegistry(include_builtins=include_builtin_implementors)
        self._immutable_instances: dict[int, Any] = {}

    @classmethod
    def minimal(cls, descriptors: DescriptorCache | None = None) -> CloneDriver:
        """Driver that clones everything cloneable with no custom behaviour.

        Transient fields (both kinds) and immutable user classes are copied;
        clone hooks and custom implementors are ignored.
        """
        config = CloneConfig(
            clone_transient_fields=True,
            clone_transient_annotated_fields=True,
            clone_immutable=True,
            use_custom_clone_operations=False,
            use_clone_implementors=False,
        )
        return cls(config, descriptors)

    @property
    def config(self) -> CloneConfig:
        return self._config

    @property
    def descriptors(self) -> DescriptorCache:
        return self._descriptors

    # Extension points

    def register_implementor(self, cls: type, implementor: CloneImplementor) -> None:
        """Clone instances of exactly `cls` with `implementor`."""
        self._implementors.register(cls, implementor)

    def register_predicate_implementor(
        self, predicate: TypePredicate, implementor: CloneImplementor
    ) -> None:
        """Clone instances of every class matching `predicate` with `implementor`."""
        self._implementors.register_predicate(predicate, implementor)

    def register_immutable_instance(self, obj: Any) -> None:
        """Always return this particular object by reference."""
        self._immutable_instances[id(obj)] = obj

    def initialise_for(self, *classes: type) -> None:
        """Pre-build descriptors so the first clone of these classes pays no setup cost."""
        self._descriptors.initialise_for(*classes)

    def descriptor(self, cls: type) -> ClassDescriptor:
        return self._descriptors.get(cls)

    def new_instance(self, cls: type) -> Any:
        """Allocate a bare instance of `cls` without running `__init__`.

        Raises:
            InstantiationError: If the class cannot be allocated.
        """
        return self._descriptors.get(cls).accessor.new_instance()

    # Cloning

    def clone(self, obj: Any, config: CloneConfig | None = None) -> Any:
        """Deep-copy an object graph.

        Args:
            obj: Root of the graph.
            config: Options for this call; defaults to the driver's config.

        Returns:
            The copy of `obj`, with sharing and cycles preserved.

        Raises:
            InstantiationError: If a class in the graph cannot be allocated.
            IllegalArgumentError: If a primitive field holds a value of the
                wrong type.
            ConfigurationError: If a class's clone declarations conflict.
        """
        context = CloneContext(self, config if config is not None else self._config)
        result = context.clone(obj)
        context.drain()
        return result

    def clone_node(self, obj: Any, context: CloneContext) -> Any:
        """Clone one node; population of its children is deferred on the context."""
        if obj is None:
            return None
        cls = type(obj)
        if cls in ATOMIC_TYPES:
            return obj

        existing = context.lookup(obj)
        if existing is not MISSING:
            return existing
        if id(obj) in self._immutable_instances:
            return obj

        descriptor = self._descriptors.get(cls)
        config = context.config
        if _shared(descriptor, config):
            return obj

        if config.use_custom_clone_operations and descriptor.custom_clone_operation is not None:
            return descriptor.custom_clone_operation.clone(obj, context)

        if _uses_copy_protocol(cls, config):
            result = obj.__deepcopy__(context.identity_map)
            context.record(obj, result)
            return result

        implementor = self._implementors.lookup(cls, config.use_clone_implementors)
        if implementor is not None:
            return implementor.clone(obj, context)

        result = descriptor.accessor.new_instance()
        context.record(obj, result)
        context.defer(self._populate, obj, result, descriptor, context)
        return result

    def pending_implementor(self, obj: Any, context: CloneContext) -> CloneImplementor | None:
        """The implementor `clone_node` would hand `obj` to, or None if it decides earlier."""
        cls = type(obj)
        if obj is None or cls in ATOMIC_TYPES:
            return None
        if context.lookup(obj) is not MISSING or id(obj) in self._immutable_instances:
            return None
        descriptor = self._descriptors.get(cls)
        config = context.config
        if _shared(descriptor, config) or _uses_copy_protocol(cls, config):
            return None
        if config.use_custom_clone_operations and descriptor.custom_clone_operation is not None:
            return None
        return self._implementors.lookup(cls, config.use_clone_implementors)

    def populate(self, source: Any, target: Any, context: CloneContext) -> None:
        """Copy every field of `source` into the allocated `target`.

        Used by implementors that allocate an instance themselves and want
        the generic field-by-field population for it.
        """
        self._populate(source, target, self._descriptors.get(type(source)), context)

    def _populate(
        self, source: Any, target: Any, descriptor: ClassDescriptor, context: CloneContext
    ) -> None:
        children = context.untracked() if descriptor.flat else context
        for level in descriptor.lineage:
            for field in level.fields:
                value = field.accessor.get(source, MISSING)
                if value is not MISSING:
                    self._copy_field(field, value, target, children)

        if descriptor.has_instance_dict:
            self._copy_dynamic(source, target, descriptor, children)

    def _copy_field(
        self, field: FieldDescriptor, value: Any, target: Any, context: CloneContext
    ) -> None:
        config = context.config
        accessor = field.accessor
        if (field.is_transient and not config.clone_transient_fields) or (
            field.is_transient_annotated and not config.clone_transient_annotated_fields
        ):
            accessor.set(target, field.zero_value())
        elif field.is_synthetic and not config.clone_synthetic_fields:
            accessor.set(target, value)
        elif field.kind is FieldKind.PRIMITIVE:
            accessor.set_primitive(target, value)
        else:
            accessor.set(target, context.clone(value))

    def _copy_dynamic(
        self, source: Any, target: Any, descriptor: ClassDescriptor, context: CloneContext
    ) -> None:
        config = context.config
        class_accessor = descriptor.accessor
        attributes = class_accessor.instance_dict(source)
        if not attributes:
            return
        for name, value in list(attributes.items()):
            if name in descriptor.declared_names:
                continue
            accessor = class_accessor.dynamic_field_accessor(name)
            if (name in descriptor.transient_names and not config.clone_transient_fields) or (
                name in descriptor.transient_annotated_names
                and not config.clone_transient_annotated_fields
            ):
                accessor.set(target, None)
            elif is_synthetic_name(name) and not config.clone_synthetic_fields:
                accessor.set(target, value)
            else:
                accessor.set(target, context.clone(value))


def _shared(descriptor: ClassDescriptor, config: CloneConfig) -> bool:
    if descriptor.non_cloneable:
        return True
    return descriptor.detected_immutable and (
        descriptor.builtin_immutable or not config.clone_immutable
    )


def _uses_copy_protocol(cls: type, config: CloneConfig) -> bool:
    return config.use_copy_protocol and getattr(cls, "__deepcopy__", None) is not None


# Module-level default driver, created on first use
_default_driver: CloneDriver | None = None
_lock = threading.Lock()


def get_default_driver() -> CloneDriver:
    """Access the process-wide driver configured from `EngineSettings`.

    Returns:
        The shared CloneDriver instance.
    """
    global _default_driver
    if _default_driver is None:
        with _lock:
            if _default_driver is None:
                from graphclone.config.settings import EngineSettings

                _default_driver = CloneDriver(EngineSettings().clone_config())
    return _default_driver


def clone(value: Any, config: CloneConfig | None = None) -> Any:
    """Deep-copy `value` with the default driver.

    Args:
        value: Root of the object graph.
        config: Options for this call; defaults to the environment settings.

    Returns:
        The copy, preserving shared references and cycles.
    """
    return get_default_driver().clone(value, config)


def register_implementor(cls: type, implementor: CloneImplementor) -> None:
    """Register an exact-type implementor on the default driver."""
    get_default_driver().register_implementor(cls, implementor)


def register_predicate_implementor(
    predicate: Callable[[type], bool], implementor: CloneImplementor
) -> None:
    """Register a predicate implementor on the default driver."""
    get_default_driver().register_predicate_implementor(predicate, implementor)
