"""Error taxonomy shared by cloning, equals and hashing.

All errors are fatal to the single top-level operation in progress. No partial
clone is returned and nothing is retried: these signal programming or
configuration mistakes, not transient conditions.
"""

from __future__ import annotations


class CloningError(Exception):
    """Base class for every error raised by the engine."""


class InstantiationError(CloningError, TypeError):
    """A bare instance of a class could not be allocated."""

    def __init__(self, cls: type, reason: str) -> None:
        super().__init__(f"Cannot instantiate {_qualified(cls)}: {reason}")
        self.target_class = cls


class FieldAccessError(CloningError, AttributeError):
    """A field could not be read or written under the active access strategy."""

    def __init__(self, cls: type, field_name: str, reason: str) -> None:
        super().__init__(f"Cannot access field {_qualified(cls)}.{field_name}: {reason}")
        self.target_class = cls
        self.field_name = field_name


class IllegalArgumentError(CloningError, ValueError):
    """A value has the wrong type for a field, or an argument is out of range."""


class ConfigurationError(CloningError):
    """Clone declarations on a class conflict or are malformed."""


def _qualified(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
