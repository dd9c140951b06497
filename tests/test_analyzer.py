"""
Tests for the Model Analyzer.

Tests verify that the analyzer correctly:
    - Inventories statements and annotations
    - Detects duplicate, undeclared and forward references
    - Finds reference cycles
    - Measures expression complexity
    - Checks completeness against node states
"""

from mgdc.analyzer import analyze_model, analyze_result
from mgdc.context import NodeState
from mgdc.examples import build_example_phylo_model
from mgdc.expressions import Argument, Identifier, Invocation, Literal
from mgdc.model import Annotated, Annotation, Declaration, DecompiledModel, DistributionAssignment
from mgdc.pipeline import decompile


def _decl(name, *refs):
    return Declaration("T", name, Invocation("T", [Argument(f"a{i}", Identifier(r)) for i, r in enumerate(refs)]))


def _model(*statements):
    model = DecompiledModel()
    for st in statements:
        model.add_statement(st)
    return model


def test_example_model_is_consistent():
    """The decompiled example has no defects and nothing to warn about."""
    mcmc, auxiliary = build_example_phylo_model()
    report = analyze_result(decompile(mcmc, auxiliary))

    assert report.is_consistent
    assert report.warnings == []
    assert report.total_statements == 19
    assert report.node_state_counts == {"emitted": 19, "inlined": 9, "suppressed": 10}
    assert report.annotation_counts == {"data": 1, "observed": 1, "calibration": 1}


def test_inventory():
    model = _model(
        _decl("a"),
        DistributionAssignment("RealParameter", "b", Identifier("a")),
        Annotated((Annotation("data"),), _decl("c")),
    )
    model.add_import("pkg")
    report = analyze_model(model)

    assert report.declarations == 2
    assert report.distribution_assignments == 1
    assert report.annotated_statements == 1
    assert report.total_imports == 1


def test_duplicate_identifiers():
    report = analyze_model(_model(_decl("a"), _decl("a")))
    assert report.duplicate_identifiers == {"a"}
    assert not report.is_consistent


def test_undeclared_reference():
    report = analyze_model(_model(_decl("a", "ghost")))
    assert report.undeclared_references == {"ghost"}
    assert any("ghost" in w for w in report.warnings)


def test_forward_reference():
    report = analyze_model(_model(_decl("b", "a"), _decl("a")))
    assert report.forward_references == ["b -> a"]
    assert not report.is_consistent


def test_observed_self_reference_allowed():
    """@observed(data=dna) on dna itself is not a forward reference."""
    st = Annotated(
        (Annotation("observed", {"data": Identifier("dna")}),),
        Declaration("Alignment", "dna", Literal(1)),
    )
    report = analyze_model(_model(st))
    assert report.forward_references == []
    assert not report.has_cycles


def test_body_self_reference_flagged():
    report = analyze_model(_model(_decl("a", "a")))
    assert report.forward_references == ["a -> a"]
    assert report.has_cycles


def test_cycle_detection():
    report = analyze_model(_model(_decl("a", "c"), _decl("b", "a"), _decl("c", "b")))
    assert report.has_cycles
    assert report.cycle_example[0] == report.cycle_example[-1]
    assert set(report.cycle_example) == {"a", "b", "c"}


def test_expression_complexity():
    deep = Literal(1)
    for i in range(7):
        deep = Invocation("Wrap", [Argument("x", deep)])
    report = analyze_model(_model(Declaration("T", "deep", deep)))
    assert report.max_expression_depth == 8
    assert any("complexity" in w for w in report.warnings)


class TestCompleteness:

    def test_all_emitted_present(self):
        states = {"a": NodeState.EMITTED, "x": NodeState.INLINED}
        report = analyze_model(_model(_decl("a")), states)
        assert report.is_consistent
        assert report.node_state_counts == {"emitted": 1, "inlined": 1}

    def test_missing_statement(self):
        states = {"a": NodeState.EMITTED, "b": NodeState.EMITTED}
        report = analyze_model(_model(_decl("a")), states)
        assert report.missing_statements == {"b"}

    def test_unexpected_statement(self):
        states = {"a": NodeState.INLINED}
        report = analyze_model(_model(_decl("a")), states)
        assert report.unexpected_statements == {"a"}

    def test_non_terminal_node(self):
        states = {"a": NodeState.EMITTED, "b": NodeState.DISCOVERED}
        report = analyze_model(_model(_decl("a")), states)
        assert report.non_terminal_nodes == {"b"}
        assert not report.is_consistent
