"""
Tests for the Identifier Normalizer.

These tests verify:
    - Missing, illegal, reserved and duplicate names are rewritten
    - Renames follow first-seen order
    - Normalization is idempotent
    - Missing type names are input defects
"""

import pytest
from mgdc.errors import InputDefectError
from mgdc.graph import Node, NodeCategory
from mgdc.normalizer import is_legal_identifier, normalize_identifiers, sanitize_name


class TestSanitize:

    def test_illegal_characters_replaced(self):
        assert sanitize_name("birthRate.t:dna") == "birthRate_t_dna"

    def test_leading_digit_prefixed(self):
        assert sanitize_name("1kappa") == "_1kappa"

    def test_reserved_word_suffixed(self):
        assert sanitize_name("true") == "true_"
        assert sanitize_name("import") == "import_"

    def test_legality(self):
        assert is_legal_identifier("kappa_2")
        assert not is_legal_identifier("")
        assert not is_legal_identifier(None)
        assert not is_legal_identifier("a-b")
        assert not is_legal_identifier("null")


class TestNormalizeIdentifiers:

    def test_missing_name_uses_type(self):
        node = Node("LogNormalDistributionModel", NodeCategory.DISTRIBUTION)
        normalize_identifiers([node])
        assert node.name == "logNormalDistributionModel"

    def test_empty_name_uses_type(self):
        node = Node("RealParameter", NodeCategory.PARAMETER, "")
        normalize_identifiers([node])
        assert node.name == "realParameter"

    def test_duplicates_suffixed_in_first_seen_order(self):
        a = Node("RealParameter", name="p")
        b = Node("RealParameter", name="p")
        c = Node("RealParameter", name="p")
        root = Node("State", slots={"stateNode": [a, b, c]})
        normalize_identifiers([root])
        assert [a.name, b.name, c.name] == ["p", "p_2", "p_3"]

    def test_sanitized_name_colliding_with_legal_one(self):
        legal = Node("A", name="x_y")
        illegal = Node("A", name="x.y")
        root = Node("R", slots={"a": legal, "b": illegal})
        normalize_identifiers([root])
        assert legal.name == "x_y"
        assert illegal.name == "x_y_2"

    def test_report_lists_renames(self):
        node = Node("Tree", NodeCategory.TREE, "Tree.t:dna")
        report = normalize_identifiers([node])
        assert report.visited == 1
        assert report.changed == 1
        assert report.renames == [(node, "Tree.t:dna", "Tree_t_dna")]

    def test_idempotent(self):
        nodes = [Node("RealParameter", name=n) for n in ["a.b", None, "a.b", "true", "9x"]]
        root = Node("State", slots={"stateNode": nodes})
        normalize_identifiers([root])
        first = [n.name for n in nodes]
        report = normalize_identifiers([root])
        assert [n.name for n in nodes] == first
        assert report.changed == 0
        assert len(set(first)) == len(first)

    def test_slots_untouched(self):
        child = Node("X", name="c")
        root = Node("R", name="r.1", slots={"child": child, "n": 2})
        normalize_identifiers([root])
        assert root.slots == {"child": child, "n": 2}

    def test_cycle_terminates(self):
        a = Node("A", name="a")
        b = Node("B", name="b", slots={"a": a})
        a.slots["b"] = b
        report = normalize_identifiers([a])
        assert report.visited == 2

    def test_missing_type_name_is_input_defect(self):
        bad = Node("", name="x")
        with pytest.raises(InputDefectError) as info:
            normalize_identifiers([Node("R", slots={"bad": bad})])
        assert info.value.node is bad
