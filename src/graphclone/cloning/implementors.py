"""Built-in clone implementors and the implementor registry.

Container implementors record the new, empty container before any element is
cloned and fill it from a deferred task, so containers nested to any depth
clone iteratively and cycles through them resolve to the new container.
Hash-keyed insertion (dict keys, set members) is scheduled beneath the
population of the keys themselves and therefore runs after it: keys with
field-based hashes are complete by the time they are hashed.
Tuples and frozensets are built from their cloned elements; nested ones are
expanded on an explicit stack and built bottom-up.
"""

from __future__ import annotations

import array
import copy
import logging
from collections import OrderedDict, defaultdict, deque
from collections.abc import Callable, Iterator
from typing import Any

from graphclone.cloning.context import CloneContext
from graphclone.cloning.models import CloneImplementor
from graphclone.core.descriptor.introspection import has_instance_dict, has_python_layout
from graphclone.errors import InstantiationError

logger = logging.getLogger(__name__)

TypePredicate = Callable[[type], bool]


class ListImplementor:
    def clone(self, obj: list[Any], context: CloneContext) -> list[Any]:
        result: list[Any] = []
        context.record(obj, result)
        context.defer(_fill_sequence, obj, result.extend, context)
        return result


class DequeImplementor:
    def clone(self, obj: deque[Any], context: CloneContext) -> deque[Any]:
        result: deque[Any] = deque(maxlen=obj.maxlen)
        context.record(obj, result)
        context.defer(_fill_sequence, obj, result.extend, context)
        return result


class DictImplementor:
    """Clones `dict`, `OrderedDict` and `defaultdict` preserving their type and order."""

    def clone(self, obj: dict[Any, Any], context: CloneContext) -> dict[Any, Any]:
        if isinstance(obj, defaultdict):
            result: dict[Any, Any] = defaultdict(obj.default_factory)
        else:
            result = type(obj)()
        context.record(obj, result)
        context.defer(_fill_mapping, obj, result, context)
        return result


class SetImplementor:
    def clone(self, obj: set[Any], context: CloneContext) -> set[Any]:
        result: set[Any] = set()
        context.record(obj, result)
        context.defer(_fill_set, obj, result, context)
        return result


class TupleImplementor:
    """Built from cloned elements; a tuple whose elements all clone to themselves is shared."""

    def clone(self, obj: tuple[Any, ...], context: CloneContext) -> tuple[Any, ...]:
        return self.build(obj, _clone_elements(obj, context), context)

    def build(self, obj: tuple[Any, ...], items: list[Any], context: CloneContext) -> tuple[Any, ...]:
        if all(a is b for a, b in zip(items, obj, strict=True)):
            context.record(obj, obj)
            return obj
        result = tuple(items)
        context.record(obj, result)
        return result


class FrozensetImplementor:
    """Members are fully populated before the frozenset is built and hashed."""

    def clone(self, obj: frozenset[Any], context: CloneContext) -> frozenset[Any]:
        return self.build(obj, _clone_elements(obj, context), context)

    def build(self, obj: frozenset[Any], items: list[Any], context: CloneContext) -> frozenset[Any]:
        if all(a is b for a, b in zip(items, obj, strict=True)):
            context.record(obj, obj)
            return obj
        result = frozenset(items)
        context.record(obj, result)
        return result


class ArrayImplementor:
    """Primitive arrays are copied directly; their items are never objects."""

    def clone(self, obj: array.array[Any] | bytearray, context: CloneContext) -> Any:
        if isinstance(obj, bytearray):
            result: Any = bytearray(obj)
        else:
            result = array.array(obj.typecode, obj)
        context.record(obj, result)
        return result


class ContainerSubclassImplementor:
    """Subclasses of list, dict, set and deque: fields and elements are both cloned."""

    def clone(self, obj: Any, context: CloneContext) -> Any:
        driver = context.driver
        result = driver.new_instance(type(obj))
        context.record(obj, result)
        if isinstance(obj, deque):
            deque.__init__(result, (), obj.maxlen)
        if isinstance(obj, defaultdict):
            result.default_factory = obj.default_factory

        # The fill task is deferred first so that it runs after the fields.
        if isinstance(obj, dict):
            context.defer(_fill_mapping, obj, result, context)
        elif isinstance(obj, set):
            context.defer(_fill_set, obj, result, context)
        else:
            context.defer(_fill_sequence, obj, result.extend, context)
        context.defer(driver.populate, obj, result, context)
        return result


class ImmutableContainerSubclassImplementor:
    """Subclasses of tuple (NamedTuples included) and frozenset.

    Elements are cloned first and the instance is built from them; instance
    dict fields, if any, are populated afterwards.
    """

    def clone(self, obj: Any, context: CloneContext) -> Any:
        return self.build(obj, _clone_elements(obj, context), context)

    def build(self, obj: Any, items: list[Any], context: CloneContext) -> Any:
        cls = type(obj)
        if not has_instance_dict(cls) and all(a is b for a, b in zip(items, obj, strict=True)):
            context.record(obj, obj)
            return obj

        if callable(getattr(cls, "_make", None)):
            result = cls._make(items)
        elif isinstance(obj, frozenset):
            result = frozenset.__new__(cls, items)
        else:
            result = tuple.__new__(cls, items)
        context.record(obj, result)
        if has_instance_dict(cls):
            context.defer(context.driver.populate, obj, result, context)
        return result



class ValueSubclassImplementor:
    """Subclasses of int, float, complex, str and bytes keep their value and fields."""

    def clone(self, obj: Any, context: CloneContext) -> Any:
        cls = type(obj)
        base = next(k for k in cls.__mro__ if k in _VALUE_TYPES)
        result = base.__new__(cls, obj)
        context.record(obj, result)
        context.defer(context.driver.populate, obj, result, context)
        return result


class DeepcopyFallbackImplementor:
    """Opaque extension types with no Python-level layout go through `copy.deepcopy`.

    The identity map is passed as memo, so aliasing is shared with the rest
    of the graph.
    """

    def clone(self, obj: Any, context: CloneContext) -> Any:
        cls = type(obj)
        logger.debug("Falling back to copy.deepcopy for opaque type %s", cls.__qualname__)
        try:
            result = copy.deepcopy(obj, context.identity_map)
        except (TypeError, copy.Error, AttributeError) as e:
            raise InstantiationError(cls, f"copy.deepcopy failed: {e}") from e
        context.record(obj, result)
        return result


def _clone_elements(obj: tuple[Any, ...] | frozenset[Any], context: CloneContext) -> list[Any]:
    """Clone the elements of a tuple or frozenset.

    Nested tuples and frozensets bound for an element-built implementor are
    expanded on an explicit stack and built bottom-up, so nesting depth does
    not grow the call stack. A frozenset's members are populated before it
    is built.
    """
    driver = context.driver
    elements: list[Any] = []
    frames: list[tuple[Any, Iterator[Any], list[Any], int, Any]] = [
        (obj, iter(obj), elements, context.mark(), None)
    ]
    while frames:
        source, remaining, items, mark, builder = frames[-1]
        for item in remaining:
            implementor = driver.pending_implementor(item, context)
            if isinstance(implementor, _ELEMENT_BUILT):
                frames.append((item, iter(item), [], context.mark(), implementor))
                break
            items.append(context.clone(item))
        else:
            frames.pop()
            if isinstance(source, frozenset):
                context.drain(mark)
            if builder is not None:
                frames[-1][2].append(builder.build(source, items, context))
    return elements


def _fill_sequence(source: Any, extend: Callable[[list[Any]], None], context: CloneContext) -> None:
    extend([context.clone(item) for item in source])


def _fill_mapping(source: dict[Any, Any], target: dict[Any, Any], context: CloneContext) -> None:
    pairs: list[tuple[Any, Any]] = []
    context.defer(_insert_pairs, target, pairs)
    for key, value in source.items():
        pairs.append((context.clone(key), context.clone(value)))


def _insert_pairs(target: dict[Any, Any], pairs: list[tuple[Any, Any]]) -> None:
    for key, value in pairs:
        target[key] = value


def _fill_set(source: set[Any], target: set[Any], context: CloneContext) -> None:
    members: list[Any] = []
    context.defer(target.update, members)
    for member in source:
        members.append(context.clone(member))


def _is_container_subclass(cls: type) -> bool:
    return (
        cls not in _BUILTIN_CONTAINERS
        and issubclass(cls, (list, dict, set, deque))
        and has_python_layout(cls)
    )


def _is_immutable_container_subclass(cls: type) -> bool:
    return cls not in _BUILTIN_CONTAINERS and issubclass(cls, (tuple, frozenset))


def _is_value_subclass(cls: type) -> bool:
    return cls not in _VALUE_TYPES and issubclass(cls, _VALUE_TYPES)


def _is_opaque(cls: type) -> bool:
    return not has_python_layout(cls)


_BUILTIN_CONTAINERS: frozenset[type] = frozenset(
    {list, dict, OrderedDict, defaultdict, set, frozenset, tuple, deque, array.array, bytearray}
)

_VALUE_TYPES: tuple[type, ...] = (int, float, complex, str, bytes)

_ELEMENT_BUILT = (TupleImplementor, FrozensetImplementor, ImmutableContainerSubclassImplementor)


def builtin_implementors() -> dict[type, CloneImplementor]:
    """Exact-type implementors every driver starts with."""
    dict_implementor = DictImplementor()
    array_implementor = ArrayImplementor()
    return {
        list: ListImplementor(),
        dict: dict_implementor,
        OrderedDict: dict_implementor,
        defaultdict: dict_implementor,
        set: SetImplementor(),
        frozenset: FrozensetImplementor(),
        tuple: TupleImplementor(),
        deque: DequeImplementor(),
        array.array: array_implementor,
        bytearray: array_implementor,
    }


def builtin_predicate_implementors() -> list[tuple[TypePredicate, CloneImplementor]]:
    """Predicate implementors consulted after every exact-type match."""
    return [
        (_is_container_subclass, ContainerSubclassImplementor()),
        (_is_immutable_container_subclass, ImmutableContainerSubclassImplementor()),
        (_is_value_subclass, ValueSubclassImplementor()),
        (_is_opaque, DeepcopyFallbackImplementor()),
    ]


class ImplementorRegistry:
    """Resolves the implementor for a class.

    Lookup order: custom exact-type implementors and custom predicates (only
    when custom implementors are enabled), built-in exact types, then
    built-in predicates. Results are cached per class.
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._custom: dict[type, CloneImplementor] = {}
        self._custom_predicates: list[tuple[TypePredicate, CloneImplementor]] = []
        self._builtin = builtin_implementors() if include_builtins else {}
        self._builtin_predicates = builtin_predicate_implementors() if include_builtins else []
        self._cache: dict[tuple[type, bool], CloneImplementor | None] = {}

    def register(self, cls: type, implementor: CloneImplementor) -> None:
        if not isinstance(implementor, CloneImplementor):
            raise TypeError(f"{implementor!r} does not implement clone(obj, context)")
        self._custom[cls] = implementor
        self._cache.clear()

    def register_predicate(self, predicate: TypePredicate, implementor: CloneImplementor) -> None:
        if not isinstance(implementor, CloneImplementor):
            raise TypeError(f"{implementor!r} does not implement clone(obj, context)")
        self._custom_predicates.append((predicate, implementor))
        self._cache.clear()

    def lookup(self, cls: type, use_custom: bool = True) -> CloneImplementor | None:
        key = (cls, use_custom)
        try:
            return self._cache[key]
        except KeyError:
            pass
        implementor = self._resolve(cls, use_custom)
        self._cache[key] = implementor
        return implementor

    def _resolve(self, cls: type, use_custom: bool) -> CloneImplementor | None:
        if use_custom:
            if cls in self._custom:
                return self._custom[cls]
            for predicate, implementor in self._custom_predicates:
                if predicate(cls):
                    return implementor
        if cls in self._builtin:
            return self._builtin[cls]
        for predicate, implementor in self._builtin_predicates:
            if predicate(cls):
                return implementor
        return None
