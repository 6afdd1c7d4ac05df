"""Structural equality over object graphs.

The more specific runtime class of the pair is walked from the most derived
class upward. Levels that do not define `__eq__` are compared field by field;
the first level that does define it decides for everything above. Visited
pairs make cyclic graphs terminate: a pair met again counts as equal.

Usage:
    structural_equals(order, clone(order), EqualsConfig(deep_reflect=True))
"""

from __future__ import annotations

from collections import OrderedDict, defaultdict, deque
from typing import Any

from graphclone.core.access.models import MISSING
from graphclone.core.descriptor.cache import DescriptorCache, get_descriptor_cache
from graphclone.core.descriptor.introspection import is_synthetic_name
from graphclone.core.descriptor.models import ClassDescriptor, FieldDescriptor
from graphclone.core.known_types import ATOMIC_TYPES
from graphclone.structural.models import EqualsConfig

_SEQUENCE_TYPES = (list, tuple, deque)
_MAPPING_TYPES = (dict, OrderedDict, defaultdict)

_Pending = list[tuple[Any, Any, bool]]


class StructuralEquals:
    """Iterative structural comparison bound to a descriptor cache.

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

    def equals(self, lhs: Any, rhs: Any, config: EqualsConfig | None = None) -> bool:
        """Compare two object graphs.

        Args:
            lhs: First graph.
            rhs: Second graph.
            config: Comparison options; defaults to `EqualsConfig()`.

        Returns:
            True if the graphs are structurally equal.
        """
        config = config if config is not None else EqualsConfig()
        visited: set[tuple[int, int]] = set()
        pending: _Pending = [(lhs, rhs, True)]
        while pending:
            a, b, reflect = pending.pop()
            if not self._compare(a, b, reflect, config, visited, pending):
                return False
        return True

    def _compare(
        self,
        a: Any,
        b: Any,
        reflect: bool,
        config: EqualsConfig,
        visited: set[tuple[int, int]],
        pending: _Pending,
    ) -> bool:
        if a is b:
            return True
        if a is None or b is None:
            return False

        ta, tb = type(a), type(b)
        if ta in ATOMIC_TYPES or tb in ATOMIC_TYPES:
            return bool(a == b)

        deep = config.deep_reflect
        if ta is tb and ta in _SEQUENCE_TYPES:
            if len(a) != len(b):
                return False
            if _seen(a, b, visited):
                return True
            pending.extend((x, y, deep) for x, y in zip(a, b, strict=True))
            return True

        if ta is tb and ta in _MAPPING_TYPES:
            if a.keys() != b.keys():
                return False
            if _seen(a, b, visited):
                return True
            pending.extend((a[key], b[key], deep) for key in a)
            return True

        if not reflect:
            return bool(a == b)

        if issubclass(tb, ta):
            cls = tb
        elif issubclass(ta, tb):
            cls = ta
        else:
            return False

        descriptor = self.descriptors.get(cls)
        if not descriptor.reflectable or descriptor.non_cloneable:
            return bool(a == b)
        if _seen(a, b, visited):
            return True
        return self._reflect(a, b, descriptor, deep, pending)

    def _reflect(
        self, a: Any, b: Any, descriptor: ClassDescriptor, deep: bool, pending: _Pending
    ) -> bool:
        for level in descriptor.lineage:
            if level.target_class is object:
                break
            if level.overrides_equals:
                result = level.accessor.method_accessor("__eq__").invoke(a, b)
                return result is not NotImplemented and bool(result)
            fields = [field for field in level.fields if not _skipped(field)]
            if fields and not (isinstance(a, level.target_class) and isinstance(b, level.target_class)):
                # Fields declared below the common base exist on one side only
                return False
            for field in fields:
                va = field.accessor.get(a, MISSING)
                vb = field.accessor.get(b, MISSING)
                if va is MISSING or vb is MISSING:
                    if va is not vb:
                        return False
                    continue
                pending.append((va, vb, deep))

        if descriptor.has_instance_dict:
            da = _dynamic_attributes(a, descriptor)
            db = _dynamic_attributes(b, descriptor)
            if da.keys() != db.keys():
                return False
            pending.extend((da[name], db[name], deep) for name in da)
        return True


def _seen(a: Any, b: Any, visited: set[tuple[int, int]]) -> bool:
    key = (id(a), id(b))
    if key in visited:
        return True
    visited.add(key)
    return False


def _skipped(field: FieldDescriptor) -> bool:
    return field.is_transient or field.is_transient_annotated or field.is_synthetic


def _dynamic_attributes(obj: Any, descriptor: ClassDescriptor) -> dict[str, Any]:
    """Undeclared, non-transient, non-synthetic instance dict entries."""
    attributes = descriptor.accessor.instance_dict(obj) or {}
    excluded = descriptor.declared_names | descriptor.transient_names | descriptor.transient_annotated_names
    return {
        name: value
        for name, value in attributes.items()
        if name not in excluded and not is_synthetic_name(name)
    }


_default = StructuralEquals()


def structural_equals(lhs: Any, rhs: Any, config: EqualsConfig | None = None) -> bool:
    """Compare two object graphs structurally with the process-wide descriptor cache.

    Args:
        lhs: First graph.
        rhs: Second graph.
        config: Comparison options; `deep_reflect` recurses into object
            fields whose class does not define `__eq__`.

    Returns:
        True if the graphs are structurally equal.
    """
    return _default.equals(lhs, rhs, config)
