"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from datetime import datetime

from graphclone import CloneDriver, DescriptorCache, EqualsConfig
from graphclone.core.access import (
    DirectAccessorFactory,
    PortableAccessorFactory,
    direct_access_available,
)


class FixtureNode:
    """Singly linked node with a plain instance dict."""

    def __init__(self, value, next=None):
        self.value = value
        self.next = next


class FixtureHolder:
    def __init__(self, a=None, b=None):
        self.a = a
        self.b = b


class FixtureSlotted:
    __slots__ = ("count", "ratio", "label", "items")

    count: int
    ratio: float
    label: str
    items: list


class FixtureEvent:
    __transient__ = ("stamp",)

    def __init__(self, name, stamp=None):
        self.name = name
        self.stamp = stamp

    name: str
    stamp: datetime


def _factory(strategy):
    if strategy == "direct":
        if not direct_access_available():
            pytest.skip("direct field access unavailable on this interpreter")
        return DirectAccessorFactory()
    return PortableAccessorFactory()


@pytest.fixture(params=["portable", "direct"])
def strategy(request):
    """Name of the access strategy under test."""
    return request.param


@pytest.fixture
def accessor_factory(strategy):
    """Fresh accessor factory for the strategy under test."""
    return _factory(strategy)


@pytest.fixture
def descriptors(accessor_factory):
    """Fresh descriptor cache bound to the strategy under test."""
    return DescriptorCache(accessor_factory)


@pytest.fixture
def driver(descriptors):
    """CloneDriver with default configuration over a fresh cache."""
    return CloneDriver(descriptors=descriptors)


@pytest.fixture
def deep():
    return EqualsConfig(deep_reflect=True)


@pytest.fixture
def node_cls():
    return FixtureNode


@pytest.fixture
def holder_cls():
    return FixtureHolder


@pytest.fixture
def slotted_cls():
    return FixtureSlotted


@pytest.fixture
def event_cls():
    return FixtureEvent
