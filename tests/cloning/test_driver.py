"""Tests for CloneDriver: identity, sharing, cycles and per-class clone behaviour."""

import array
import re
import threading
import uuid
from collections import OrderedDict, defaultdict, deque
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePosixPath
from typing import Annotated, NamedTuple

import pytest

from graphclone import (
    CloneConfig,
    CloneDriver,
    IllegalArgumentError,
    InstantiationError,
    StructuralEquals,
    Transient,
    cloner,
    flat,
    register_type,
)


class Color(Enum):
    RED = 1


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class Basket:
    items: list


class Cached:
    data: list
    memo: Annotated[dict, Transient]

    def __init__(self, data):
        self.data = data
        self.memo = {"hits": 1}


@flat
class Row:
    def __init__(self, cells):
        self.cells = cells


class Session:
    def __init__(self, user):
        self.user = user

    @cloner
    def duplicate(self):
        return Session(self.user + "-copy")


class Ledger:
    @cloner
    def __init__(self, source=None):
        self.entries = list(source.entries) if source is not None else []
        self.copied = source is not None


class Token:
    def __init__(self, value):
        self.value = value


register_type(Token, clone_with=lambda token: Token(token.value + 1))


class Counter:
    def __init__(self, n):
        self.n = n


class SpecialCounter(Counter):
    pass


class ScalingImplementor:
    def clone(self, obj, context):
        result = type(obj)(obj.n * 10)
        context.record(obj, result)
        return result


class Journal:
    def __init__(self, pages):
        self.pages = pages
        self.via_deepcopy = False

    def __deepcopy__(self, memo):
        copy = Journal(list(self.pages))
        copy.via_deepcopy = True
        return copy


class Tag:
    def __init__(self, name):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Tag) and other.name == self.name

    def __hash__(self):
        return hash(self.name)


class Tagged(list):
    def __init__(self, tag):
        super().__init__()
        self.tag = tag


class Pair(NamedTuple):
    left: int
    right: str


class Box(NamedTuple):
    content: list


class Label(str):
    pass


class Lazy:
    cache: dict

    def __init__(self, name):
        self.name = name


def test_clone_is_distinct_and_structurally_equal(driver, node_cls, deep):
    node = node_cls(1, node_cls(2))
    copy = driver.clone(node)

    assert copy is not node
    assert copy.next is not node.next
    assert copy.next.value == 2
    assert StructuralEquals(driver.descriptors).equals(node, copy, deep)


def test_shared_references_stay_shared(driver, holder_cls):
    shared = [1, 2]
    copy = driver.clone(holder_cls(shared, shared))

    assert copy.a is copy.b
    assert copy.a is not shared
    assert copy.a == [1, 2]


def test_cycle_between_objects(driver, node_cls):
    a = node_cls(1)
    b = node_cls(2, a)
    a.next = b
    copy = driver.clone(a)

    assert copy.next.next is copy
    assert copy.next is not b


def test_cycle_through_container(driver, holder_cls):
    items = []
    items.append(holder_cls(items))
    copy = driver.clone(items)

    assert copy[0].a is copy
    assert copy is not items


def test_self_referencing_node(driver, node_cls):
    node = node_cls(1)
    node.next = node
    copy = driver.clone(node)

    assert copy.next is copy
    assert copy is not node


def test_self_containing_list(driver):
    items = []
    items.append(items)
    copy = driver.clone(items)

    assert copy[0] is copy


def test_atomic_values_are_returned_as_is(driver):
    text = "".join(["te", "xt"])
    big = 10**40

    assert driver.clone(None) is None
    assert driver.clone(text) is text
    assert driver.clone(big) is big


@pytest.mark.parametrize(
    "value",
    [
        Decimal("1.5"),
        datetime(2024, 1, 2, 3, 4, 5),
        Color.RED,
        Fraction(1, 3),
        uuid.UUID(int=7),
        PurePosixPath("/tmp/data"),
        range(3),
        int,
        len,
    ],
)
def test_builtin_immutables_are_shared(driver, value):
    assert driver.clone(value) is value


def test_strings_inside_containers_are_shared(driver):
    words = ["".join(["a", "b"]), "".join(["c", "d"])]
    copy = driver.clone(words)

    assert copy is not words
    assert all(a is b for a, b in zip(copy, words))


def test_detected_immutable_shared_unless_requested(driver):
    money = Money(Decimal("9.99"), "EUR")

    assert driver.clone(money) is money
    copy = driver.clone(money, CloneConfig(clone_immutable=True))
    assert copy is not money
    assert copy == money
    assert copy.amount is money.amount


def test_frozen_dataclass_with_mutable_field_is_cloned(driver):
    basket = Basket([1, 2])
    copy = driver.clone(basket)

    assert copy is not basket
    assert copy.items is not basket.items
    assert copy == basket


def test_transient_fields_follow_config(driver, event_cls):
    """Fields listed in __transient__ are copied by default and zeroed on request."""
    event = event_cls("launch", datetime(2020, 1, 1))

    assert driver.clone(event).stamp is event.stamp
    copy = driver.clone(event, CloneConfig(clone_transient_fields=False))
    assert copy.stamp is None
    assert copy.name == "launch"


def test_transient_annotated_fields_zeroed_by_default(driver):
    cached = Cached([1])

    assert driver.clone(cached).memo is None
    copy = driver.clone(cached, CloneConfig(clone_transient_annotated_fields=True))
    assert copy.memo == {"hits": 1}
    assert copy.memo is not cached.memo


def test_synthetic_attributes_shared_by_default(driver, holder_cls):
    holder = holder_cls()
    setattr(holder, "__meta__", [1])

    assert getattr(driver.clone(holder), "__meta__") is getattr(holder, "__meta__")
    copy = driver.clone(holder, CloneConfig(clone_synthetic_fields=True))
    assert getattr(copy, "__meta__") == [1]
    assert getattr(copy, "__meta__") is not getattr(holder, "__meta__")


def test_flat_class_does_not_track_children(driver):
    """Children of a flat instance are copied without identity tracking."""
    shared = [1]
    row = Row([shared, shared])
    copy = driver.clone(row)

    assert copy.cells[0] == [1]
    assert copy.cells[0] is not copy.cells[1]


def test_cloner_method(driver):
    session = Session("ana")

    assert driver.clone(session).user == "ana-copy"
    plain = driver.clone(session, CloneConfig(use_custom_clone_operations=False))
    assert plain.user == "ana"


def test_cloner_copy_constructor(driver):
    ledger = Ledger()
    ledger.entries.append(5)
    copy = driver.clone(ledger)

    assert copy.copied
    assert copy.entries == [5]
    assert copy.entries is not ledger.entries


def test_registered_clone_with(driver):
    assert driver.clone(Token(1)).value == 2


def test_custom_implementor(driver):
    driver.register_implementor(Counter, ScalingImplementor())

    assert driver.clone(Counter(2)).n == 20
    assert driver.clone(Counter(2), CloneConfig(use_clone_implementors=False)).n == 2
    assert driver.clone(SpecialCounter(2)).n == 2


def test_predicate_implementor(driver):
    driver.register_predicate_implementor(
        lambda cls: issubclass(cls, Counter), ScalingImplementor()
    )
    copy = driver.clone(SpecialCounter(3))

    assert type(copy) is SpecialCounter
    assert copy.n == 30


def test_register_non_implementor_raises(driver):
    with pytest.raises(TypeError):
        driver.register_implementor(Counter, object())


def test_copy_protocol_is_opt_in(driver):
    journal = Journal(["p1"])

    assert not driver.clone(journal).via_deepcopy
    copy = driver.clone(journal, CloneConfig(use_copy_protocol=True))
    assert copy.via_deepcopy
    assert copy.pages == ["p1"]


def test_minimal_driver_ignores_customisation(descriptors):
    driver = CloneDriver.minimal(descriptors)
    money = Money(Decimal("1"), "USD")

    assert driver.clone(money) is not money
    assert driver.clone(Session("bo")).user == "bo"
    assert driver.clone(Cached([1])).memo == {"hits": 1}


def test_registered_immutable_instance(driver, holder_cls):
    settings = {"debug": True}
    driver.register_immutable_instance(settings)

    assert driver.clone(holder_cls(settings)).a is settings


def test_runtime_objects_are_shared(driver, holder_cls):
    lock = threading.Lock()
    copy = driver.clone(holder_cls(lock))

    assert copy.a is lock


def test_dict_variants_keep_type_and_order(driver):
    ordered = OrderedDict([("b", [1]), ("a", [2])])
    grouped = defaultdict(list, {"x": [1]})
    copy = driver.clone(ordered)
    grouped_copy = driver.clone(grouped)

    assert type(copy) is OrderedDict
    assert list(copy) == ["b", "a"]
    assert copy["b"] is not ordered["b"]
    assert grouped_copy.default_factory is list
    assert grouped_copy["x"] == [1]
    assert grouped_copy["x"] is not grouped["x"]


def test_deque_keeps_maxlen(driver):
    window = deque([[1], [2]], maxlen=3)
    copy = driver.clone(window)

    assert copy.maxlen == 3
    assert list(copy) == [[1], [2]]
    assert copy[0] is not window[0]


def test_hash_keyed_containers_hash_populated_keys(driver):
    """Keys hashed by their fields are inserted after they are filled in."""
    tags = {Tag("a"), Tag("b")}
    index = {Tag("a"): [1]}
    frozen = frozenset({Tag("c")})

    tags_copy = driver.clone(tags)
    index_copy = driver.clone(index)
    frozen_copy = driver.clone(frozen)

    assert tags_copy == tags
    assert not any(t is s for t in tags_copy for s in tags)
    assert index_copy[Tag("a")] == [1]
    assert Tag("c") in frozen_copy
    assert frozen_copy is not frozen


def test_tuple_of_immutables_is_shared(driver):
    values = (1, "a", Decimal(1))
    nested = (1, [2])
    copy = driver.clone(nested)

    assert driver.clone(values) is values
    assert copy is not nested
    assert copy == (1, [2])
    assert copy[1] is not nested[1]


def test_primitive_arrays(driver):
    raw = bytearray(b"abc")
    numbers = array.array("i", [1, 2, 3])
    copy = driver.clone(raw)
    numbers_copy = driver.clone(numbers)

    assert copy == raw
    assert copy is not raw
    assert numbers_copy == numbers
    assert numbers_copy is not numbers


def test_container_subclass_keeps_fields_and_items(driver):
    tagged = Tagged("t")
    tagged.extend([[1], [2]])
    copy = driver.clone(tagged)

    assert type(copy) is Tagged
    assert copy.tag == "t"
    assert copy == [[1], [2]]
    assert copy[0] is not tagged[0]


def test_namedtuples(driver):
    pair = Pair(1, "a")
    box = Box([1])
    copy = driver.clone(box)

    assert driver.clone(pair) is pair
    assert type(copy) is Box
    assert copy.content == [1]
    assert copy.content is not box.content


def test_str_subclass_keeps_value_and_attributes(driver):
    label = Label("x")
    label.note = [1]
    copy = driver.clone(label)

    assert type(copy) is Label
    assert copy == "x"
    assert copy.note == [1]
    assert copy.note is not label.note


def test_opaque_objects_go_through_deepcopy(driver, holder_cls):
    match = re.match(r"a", "abc")
    copy = driver.clone(holder_cls(match, match))

    assert copy.a is copy.b


def test_abstract_class_cannot_be_cloned(driver):
    class Job:
        pass

    job = Job()
    Job.__abstractmethods__ = frozenset({"run"})

    with pytest.raises(InstantiationError, match="abstract"):
        driver.clone(job)


def test_primitive_field_type_mismatch_raises(driver, slotted_cls):
    slotted = slotted_cls()
    slotted.count = "three"

    with pytest.raises(IllegalArgumentError, match="expects int"):
        driver.clone(slotted)


def test_slotted_fields_are_copied(driver, slotted_cls):
    slotted = slotted_cls()
    slotted.count = 3
    slotted.ratio = 0.5
    slotted.items = [1]
    copy = driver.clone(slotted)

    assert (copy.count, copy.ratio, copy.items) == (3, 0.5, [1])
    assert copy.items is not slotted.items
    assert not hasattr(copy, "label")


def test_dynamic_attributes_are_cloned(driver, holder_cls):
    holder = holder_cls()
    holder.extra = {"k": [1]}
    copy = driver.clone(holder)

    assert copy.extra == {"k": [1]}
    assert copy.extra["k"] is not holder.extra["k"]


def test_init_is_not_called(driver):
    class Guarded:
        created = 0

        def __init__(self):
            type(self).created += 1
            self.value = [1]

    guarded = Guarded()
    copy = driver.clone(guarded)

    assert Guarded.created == 1
    assert copy.value == [1]


def test_unassigned_annotated_attribute_stays_unset(driver):
    lazy = Lazy("x")
    copy = driver.clone(lazy)

    assert copy.name == "x"
    assert "cache" not in vars(copy)


def test_nested_tuples_keep_sharing(driver):
    inner = ([1],)
    outer = (inner, inner, (inner,))
    copy = driver.clone(outer)

    assert copy == outer
    assert copy[0] is copy[1] is copy[2][0]
    assert copy[0] is not inner
    assert copy[0][0] is not inner[0]


def test_nested_tuples_of_immutables_are_shared(driver):
    value = ((1, ("a", None)), Decimal(2))

    assert driver.clone(value) is value


def test_frozensets_nested_in_tuples_hash_populated_members(driver):
    value = (frozenset({Tag("a")}), [frozenset({Tag("b")})])
    copy = driver.clone(value)

    assert Tag("a") in copy[0]
    assert Tag("b") in copy[1][0]
    assert next(iter(copy[0])) is not next(iter(value[0]))


def test_deep_tuple_nesting_does_not_recurse(driver):
    """CRITICAL: tuples nested far beyond the recursion limit still clone."""
    chain = None
    for i in range(20_000):
        chain = (i, [i], chain)

    copy = driver.clone(chain)

    count, cursor, source = 0, copy, chain
    while cursor is not None:
        assert cursor[0] == source[0]
        assert cursor[1] == source[1]
        assert cursor[1] is not source[1]
        cursor, source = cursor[2], source[2]
        count += 1
    assert count == 20_000


def test_frozenset_reached_again_from_its_members_is_copied_twice(driver, node_cls):
    """A frozenset cannot exist before its members, so a cycle back to it yields a second copy.

    Why: members are completed before the frozenset is built, and completing
    them reaches the frozenset again.
    """
    member = node_cls(1)
    group = frozenset({member})
    member.next = group

    copy = driver.clone(group)
    (member_copy,) = copy

    assert member_copy is not member
    assert member_copy.next is not copy
    assert member_copy.next == copy
    assert next(iter(member_copy.next)) is member_copy
