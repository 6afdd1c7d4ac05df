"""Structural hashing consistent with structural equality.

A running 32-bit total starts at the seed and absorbs each contribution as
`total = total * multiplier + contribution`. Every container and reflected
object below the root is hashed into its own total, whose final value is the
contribution to its parent. Finished sub-hashes are memoised by identity, so
a shared sub-object is walked once yet contributes at each place it occurs:
graphs that compare equal hash equally regardless of sharing. An object met
again while it is still being walked contributes nothing, which makes cycles
terminate.

Usage:
    structural_hash(order)
    structural_hash(order, HashConfig(deep_reflect=True, seed=31, multiplier=17))
"""

from __future__ import annotations

import array
import math
import struct
from collections import OrderedDict, defaultdict, deque
from typing import Any

from graphclone.core.access.models import MISSING
from graphclone.core.descriptor.cache import DescriptorCache, get_descriptor_cache
from graphclone.core.descriptor.introspection import is_synthetic_name
from graphclone.core.descriptor.models import ClassDescriptor
from graphclone.errors import IllegalArgumentError
from graphclone.structural.models import HashConfig

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_SEQUENCE_TYPES = (list, tuple, deque)
_MAPPING_TYPES = (dict, OrderedDict, defaultdict)
_SET_TYPES = (set, frozenset)
_ARRAY_TYPES = (bytearray, array.array)

# Stack operations
_VALUE = 0
_FINISH = 1
_SUM_ITEM = 2
_SUM_APPEND = 3
_INVOKE = 4


class _Total:
    """Running 32-bit total."""

    __slots__ = ("multiplier", "value")

    def __init__(self, seed: int, multiplier: int) -> None:
        self.value = seed & _MASK32
        self.multiplier = multiplier

    def append(self, contribution: int) -> None:
        self.value = (self.value * self.multiplier + contribution) & _MASK32


class _Walk:
    """State of one hash call."""

    __slots__ = ("config", "memo", "on_path", "stack")

    def __init__(self, config: HashConfig) -> None:
        self.config = config
        self.memo: dict[int, int] = {}
        self.on_path: set[int] = set()
        self.stack: list[tuple[Any, ...]] = []

    def total(self) -> _Total:
        return _Total(self.config.seed, self.config.multiplier)


def _fold(value: int) -> int:
    value &= _MASK64
    return (value ^ (value >> 32)) & _MASK32


def _float_bits(value: float) -> int:
    if value == 0.0:
        value = 0.0
    elif math.isnan(value):
        value = math.nan
    return struct.unpack("<q", struct.pack("<d", value))[0]


def _signed32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


class StructuralHash:
    """Iterative structural hash bound to a descriptor cache.

    Args:
        descriptors: Descriptor cache; defaults to the process-wide cache.
    """

    def __init__(self, descriptors: DescriptorCache | None = None) -> None:
        self._descriptors = descriptors

    @property
    def descriptors(self) -> DescriptorCache:
        if self._descriptors is None:
            self._descriptors = get_descriptor_cache()
        return self._descriptors

    def hash(self, obj: Any, config: HashConfig | None = None) -> int:
        """Hash an object graph.

        Args:
            obj: Root of the graph.
            config: Seed, multiplier and deep-reflect options.

        Returns:
            Signed 32-bit structural hash.

        Raises:
            IllegalArgumentError: If obj is None.
        """
        if obj is None:
            raise IllegalArgumentError("Cannot build hashcode for null object")
        walk = _Walk(config if config is not None else HashConfig())

        root = walk.total()
        self._visit(obj, root, walk, root=True)
        stack = walk.stack
        while stack:
            op = stack.pop()
            kind = op[0]
            if kind == _VALUE:
                self._visit(op[1], op[2], walk)
            elif kind == _FINISH:
                _, key, node, parent = op
                walk.on_path.discard(key)
                walk.memo[key] = node.value
                if parent is not None:
                    parent.append(node.value)
            elif kind == _SUM_ITEM:
                _, accumulator, key_hash, sub = op
                accumulator[0] = (accumulator[0] + (key_hash ^ sub.value)) & _MASK32
            elif kind == _SUM_APPEND:
                op[2].append(op[1][0])
            elif kind == _INVOKE:
                _, level, target, total = op
                total.append(level.accessor.method_accessor("__hash__").invoke(target) & _MASK32)
        return _signed32(root.value)

    def _visit(self, value: Any, total: _Total, walk: _Walk, root: bool = False) -> None:
        """Add the contribution of `value` to `total`.

        The root is always reflected and hashed into `total` itself; anything
        below it is entered into a total of its own.
        """
        if value is None:
            total.append(0)
            return
        cls = type(value)
        if cls is bool:
            total.append(1 if value else 0)
        elif cls is int:
            total.append(_fold(value))
        elif cls is float:
            total.append(_fold(_float_bits(value)))
        elif cls is complex:
            total.append(_fold(_float_bits(value.real)))
            total.append(_fold(_float_bits(value.imag)))
        elif cls in _ARRAY_TYPES:
            for item in value:
                self._visit(item, total, walk)
        elif cls in _SET_TYPES:
            total.append(sum(_fold(hash(member)) for member in value) & _MASK32)
        elif cls in _SEQUENCE_TYPES or cls in _MAPPING_TYPES:
            self._enter(value, total, walk, root, None)
        elif root or walk.config.deep_reflect or cls.__hash__ is None:
            descriptor = self.descriptors.get(cls)
            if not descriptor.reflectable or descriptor.non_cloneable:
                total.append(hash(value) & _MASK32)
            else:
                self._enter(value, total, walk, root, descriptor)
        else:
            total.append(hash(value) & _MASK32)

    def _enter(
        self,
        obj: Any,
        parent: _Total,
        walk: _Walk,
        root: bool,
        descriptor: ClassDescriptor | None,
    ) -> None:
        key = id(obj)
        memoised = walk.memo.get(key)
        if memoised is not None:
            parent.append(memoised)
            return
        if key in walk.on_path:
            return
        walk.on_path.add(key)
        node = parent if root else walk.total()
        stack = walk.stack
        stack.append((_FINISH, key, node, None if root else parent))

        if descriptor is not None:
            stack.extend(reversed(self._field_ops(obj, node, descriptor)))
        elif type(obj) in _MAPPING_TYPES:
            accumulator = [0]
            stack.append((_SUM_APPEND, accumulator, node))
            for item_key, item in obj.items():
                sub = walk.total()
                stack.append((_SUM_ITEM, accumulator, _fold(hash(item_key)), sub))
                stack.append((_VALUE, item, sub))
        else:
            stack.extend((_VALUE, item, node) for item in reversed(obj))

    def _field_ops(self, obj: Any, node: _Total, descriptor: ClassDescriptor) -> list[tuple[Any, ...]]:
        ops: list[tuple[Any, ...]] = []
        hash_level: ClassDescriptor | None = None
        for level in descriptor.lineage:
            if level.target_class is object:
                break
            if level.overrides_hash:
                hash_level = level
                break
            for field in level.fields:
                if field.is_transient or field.is_transient_annotated or field.is_synthetic:
                    continue
                value = field.accessor.get(obj, MISSING)
                if value is not MISSING:
                    ops.append((_VALUE, value, node))

        if hash_level is not None:
            ops.append((_INVOKE, hash_level, obj, node))
        elif descriptor.has_instance_dict:
            for _name, value in _dynamic_attributes(obj, descriptor):
                ops.append((_VALUE, value, node))
        return ops


def _dynamic_attributes(obj: Any, descriptor: ClassDescriptor) -> list[tuple[str, Any]]:
    """Undeclared, non-transient, non-synthetic instance dict entries in name order."""
    attributes = descriptor.accessor.instance_dict(obj) or {}
    excluded = descriptor.declared_names | descriptor.transient_names | descriptor.transient_annotated_names
    return sorted(
        (
            (name, value)
            for name, value in attributes.items()
            if name not in excluded and not is_synthetic_name(name)
        ),
        key=lambda item: item[0],
    )


_default = StructuralHash()


def structural_hash(obj: Any, config: HashConfig | None = None) -> int:
    """Hash an object graph structurally with the process-wide descriptor cache.

    Args:
        obj: Root of the graph; must not be None.
        config: Seed, multiplier and deep-reflect options.

    Returns:
        Signed 32-bit hash. Equal graphs under `structural_equals` with the
        same `deep_reflect` hash equally.

    Raises:
        IllegalArgumentError: If obj is None.
    """
    return _default.hash(obj, config)
