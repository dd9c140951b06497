"""
Tests for the source graph objects.

These tests verify:
    - Identity semantics of nodes
    - Slot child enumeration (single, list, scalar)
    - Helper functions
"""

from mgdc.graph import Node, NodeCategory, is_scalar, lower_camel


class TestNodeIdentity:
    """Nodes compare by identity, never by value."""

    def test_structurally_equal_nodes_differ(self):
        a = Node("RealParameter", NodeCategory.PARAMETER, "p", {"value": [1.0]})
        b = Node("RealParameter", NodeCategory.PARAMETER, "p", {"value": [1.0]})
        assert a != b
        assert a == a

    def test_nodes_are_hashable(self):
        a = Node("RealParameter")
        b = Node("RealParameter")
        assert len({a, b, a}) == 2

    def test_default_category_is_other(self):
        assert Node("Thing").category is NodeCategory.OTHER


class TestSlots:
    """Slot values: scalars, child nodes, lists of either."""

    def test_children_in_slot_order_with_lists_expanded(self):
        x, y, z = Node("X"), Node("Y"), Node("Z")
        parent = Node("P", slots={"a": x, "n": 3, "items": [y, "s", z], "none": None})
        assert parent.children() == [x, y, z]

    def test_child_slots_yield_slot_names(self):
        x, y = Node("X"), Node("Y")
        parent = Node("P", slots={"a": x, "items": [y]})
        assert list(parent.child_slots()) == [("a", x), ("items", y)]

    def test_duplicate_references_kept(self):
        x = Node("X")
        parent = Node("P", slots={"a": x, "b": x})
        assert parent.children() == [x, x]

    def test_references(self):
        x = Node("X")
        parent = Node("P", slots={"items": [x]})
        assert parent.references(x)
        assert not parent.references(Node("X"))

    def test_slot_default(self):
        node = Node("P", slots={"a": 1})
        assert node.slot("a") == 1
        assert node.slot("missing", "d") == "d"


class TestHelpers:

    def test_lower_camel(self):
        assert lower_camel("RealParameter") == "realParameter"
        assert lower_camel("HKY") == "hKY"
        assert lower_camel("") == ""

    def test_is_scalar(self):
        assert is_scalar(1)
        assert is_scalar(True)
        assert is_scalar("x")
        assert not is_scalar(None)
        assert not is_scalar([1])

    def test_repr_mentions_type_and_name(self):
        text = repr(Node("Tree", NodeCategory.TREE, "tree"))
        assert "Tree" in text and "tree" in text
        assert "<unnamed>" in repr(Node("Tree"))
