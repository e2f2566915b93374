"""Tests for the generic graph walker."""

from dataclasses import dataclass
from typing import Any, List, Optional

from asset_snapshot.kernel.walker import IdentitySet, iter_children, iter_fields, walk_graph


class Node:
    def __init__(self, name: str, link: Optional["Node"] = None):
        self.name = name
        self.link = link


class Slotted:
    __slots__ = ("value", "unset")

    def __init__(self, value):
        self.value = value


@dataclass
class Pair:
    left: Any
    right: Any


class SlottedBase:
    __slots__ = ("ok", "bad")

    def __init__(self):
        self.ok = "fine"


class Exploding(SlottedBase):
    @property
    def bad(self):
        raise RuntimeError("unreadable")


def _collect(root, descend=None) -> List[Any]:
    seen: List[Any] = []
    walk_graph(root, seen.append, descend)
    return seen


class TestIdentitySet:
    def test_equal_values_are_distinct_members(self):
        members = IdentitySet()
        a, b = [1], [1]
        assert members.add(a) is True
        assert members.add(b) is True
        assert members.add(a) is False
        assert len(members) == 2
        assert a in members


class TestWalkGraph:
    def test_cycle_terminates_and_visits_each_once(self):
        a = Node("A")
        b = Node("B", a)
        a.link = b
        visited = _collect(a)
        nodes = [v for v in visited if isinstance(v, Node)]
        assert len(nodes) == 2
        assert {n.name for n in nodes} == {"A", "B"}

    def test_shared_substructure_visited_once(self):
        shared = Node("shared")
        root = [shared, Pair(shared, shared)]
        visited = _collect(root)
        assert sum(1 for v in visited if v is shared) == 1

    def test_equal_but_distinct_values_are_both_visited(self):
        first, second = Node("same"), Node("same")
        visited = _collect([first, second])
        assert any(v is first for v in visited)
        assert any(v is second for v in visited)

    def test_mapping_keys_and_values_are_children(self):
        key_node = Pair("k", None)
        value_node = Node("v")
        visited = _collect({"plain": value_node, 3: key_node})
        assert any(v is value_node for v in visited)
        assert any(v is key_node for v in visited)

    def test_none_root_visits_nothing(self):
        assert walk_graph(None, lambda node: None) == 0

    def test_descend_filter_bounds_typed_records_only(self):
        inner = Node("inner")
        outer = Node("outer", inner)
        visited = _collect([outer], descend=lambda record: False)
        # The list is always expanded; the record is visited but not entered.
        assert any(v is outer for v in visited)
        assert not any(v is inner for v in visited)

    def test_returns_visited_count(self):
        assert walk_graph(Pair("x", "y"), lambda node: None) == 3


class TestIntrospection:
    def test_slots_are_read_and_unset_slots_skipped(self):
        fields = dict(iter_fields(Slotted(5)))
        assert fields == {"value": 5}

    def test_unreadable_property_does_not_break_walk(self):
        obj = Exploding()
        assert dict(iter_fields(obj)) == {"ok": "fine"}
        assert "fine" in _collect(obj)

    def test_scalars_have_no_children(self):
        assert iter_children("text") == []
        assert iter_children(42) == []
        assert iter_children(Node) == []
