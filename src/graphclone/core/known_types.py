"""Built-in types with fixed clone semantics.

Immutable values are always returned by reference. Runtime-internal objects
(locks, threads, file handles, sockets, modules, frames, generators) are
non-cloneable and are also returned by reference.
"""

from __future__ import annotations

import _thread
import array
import contextvars
import datetime
import decimal
import enum
import fractions
import io
import ipaddress
import logging
import pathlib
import queue
import re
import socket
import threading
import types
import uuid
import weakref

ATOMIC_TYPES: frozenset[type] = frozenset(
    {type(None), int, float, bool, complex, str, bytes}
)
"""Types short-circuited before any descriptor lookup."""

PRIMITIVE_TYPES: tuple[type, ...] = (int, float, bool, complex)

ARRAY_TYPES: tuple[type, ...] = (list, tuple, bytearray, array.array)

KNOWN_IMMUTABLE_TYPES: frozenset[type] = ATOMIC_TYPES | frozenset(
    {
        range,
        slice,
        type(Ellipsis),
        type(NotImplemented),
        decimal.Decimal,
        fractions.Fraction,
        uuid.UUID,
        datetime.date,
        datetime.datetime,
        datetime.time,
        datetime.timedelta,
        datetime.timezone,
        re.Pattern,
        types.FunctionType,
        types.BuiltinFunctionType,
        types.MethodType,
        types.BuiltinMethodType,
        types.MethodWrapperType,
        types.WrapperDescriptorType,
        types.CodeType,
        types.GetSetDescriptorType,
        types.MemberDescriptorType,
        property,
        staticmethod,
        classmethod,
        weakref.ref,
        ipaddress.IPv4Address,
        ipaddress.IPv6Address,
        ipaddress.IPv4Network,
        ipaddress.IPv6Network,
        ipaddress.IPv4Interface,
        ipaddress.IPv6Interface,
    }
)

_IMMUTABLE_BASES: tuple[type, ...] = (
    type,
    enum.Enum,
    pathlib.PurePath,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.tzinfo,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
)
"""Subclasses of these are treated as immutable too."""

_NON_CLONEABLE_BASES: tuple[type, ...] = (
    _thread.LockType,
    type(threading.RLock()),
    threading.Thread,
    threading.Condition,
    threading.Event,
    threading.Semaphore,
    threading.Barrier,
    queue.Queue,
    io.IOBase,
    socket.socket,
    types.ModuleType,
    types.FrameType,
    types.TracebackType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    types.MappingProxyType,
    memoryview,
    contextvars.ContextVar,
    contextvars.Context,
    logging.Logger,
    logging.Handler,
)


def is_known_immutable(cls: type) -> bool:
    """True for built-in value types, enums, classes, paths and calendar values."""
    return cls in KNOWN_IMMUTABLE_TYPES or issubclass(cls, _IMMUTABLE_BASES)


def is_runtime_non_cloneable(cls: type) -> bool:
    """True for runtime-internal types whose state cannot be duplicated."""
    return issubclass(cls, _NON_CLONEABLE_BASES)
