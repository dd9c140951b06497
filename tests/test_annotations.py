"""
Tests for the Annotation Synthesizer.
"""

import pytest
from mgdc.annotations import calibration_annotation, synthesize_annotations
from mgdc.config import DecompilerConfig
from mgdc.errors import ModelFrozenError
from mgdc.expressions import Argument, Identifier, Invocation, Literal
from mgdc.model import Annotated, Annotation, AnnotationKind, Declaration, DecompiledModel


def _model(*statements):
    model = DecompiledModel()
    for st in statements:
        model.add_statement(st)
    return model


def _data(name="dna"):
    return Annotated((Annotation("data"),), Declaration("Alignment", name, Invocation("Alignment")))


def _likelihood(data="dna", name="lik"):
    return Declaration("TreeLikelihood", name,
                       Invocation("TreeLikelihood", [Argument("data", Identifier(data))]))


def _calibration(name="cal", tree="tree", **extra):
    args = [
        Argument("tree", Identifier(tree)),
        Argument("taxonset", Identifier("ts")),
        Argument("distr", Identifier("uniform")),
    ]
    args.extend(Argument(k, Literal(v)) for k, v in extra.items())
    return Declaration("MRCAPrior", name, Invocation("MRCAPrior", args))


@pytest.fixture
def config():
    return DecompilerConfig()


class TestObserved:

    def test_data_statement_marked_observed(self, config):
        model = _model(_data(), _likelihood())
        assert synthesize_annotations(model, config) == 1
        st = model.get_statement("dna")
        assert [a.kind for a in st.annotations] == [AnnotationKind.DATA, AnnotationKind.OBSERVED]
        assert st.annotations[-1].parameters == {"data": Identifier("dna")}

    def test_plain_statement_gets_wrapped(self, config):
        model = _model(Declaration("Alignment", "dna", Invocation("Alignment")), _likelihood())
        synthesize_annotations(model, config)
        assert isinstance(model.statements[0], Annotated)

    def test_at_most_one_observed(self, config):
        model = _model(_data(), _likelihood(name="lik1"), _likelihood(name="lik2"))
        synthesize_annotations(model, config)
        observed = [a for a in model.get_statement("dna").annotations if a.kind is AnnotationKind.OBSERVED]
        assert len(observed) == 1

    def test_nested_likelihood_found(self, config):
        holder = Declaration("CompoundDistribution", "holder", Invocation("CompoundDistribution", [
            Argument("distribution", _likelihood().expression),
        ]))
        model = _model(_data(), holder)
        assert synthesize_annotations(model, config) == 1

    def test_unknown_target_skipped(self, config):
        model = _model(_likelihood(data="missing"))
        assert synthesize_annotations(model, config) == 0


class TestCalibration:

    def test_monophyletic_calibration(self, config):
        model = _model(Declaration("Tree", "tree", Invocation("Tree")), _calibration(monophyletic=True))
        synthesize_annotations(model, config)
        annotation = model.get_statement("tree").annotations[0]
        assert annotation == Annotation("calibration", {
            "taxonset": Identifier("ts"),
            "distribution": Identifier("uniform"),
            "monophyletic": Literal(True),
        })

    def test_leaf_calibration_is_not_monophyletic(self, config):
        inv = _calibration(tipsonly=True, monophyletic=True).expression
        annotation = calibration_annotation(inv, config)
        assert annotation.parameters["leaf"] == Literal(True)
        assert "monophyletic" not in annotation.parameters

    def test_distinct_calibrations_accumulate(self, config):
        second = Declaration("MRCAPrior", "cal2", Invocation("MRCAPrior", [
            Argument("tree", Identifier("tree")),
            Argument("taxonset", Identifier("ts2")),
        ]))
        model = _model(Declaration("Tree", "tree", Invocation("Tree")), _calibration(), second)
        assert synthesize_annotations(model, config) == 2
        assert len(model.get_statement("tree").annotations) == 2


class TestIdempotence:

    def test_second_run_adds_nothing(self, config):
        model = _model(_data(), Declaration("Tree", "tree", Invocation("Tree")),
                       _likelihood(), _calibration())
        assert synthesize_annotations(model, config) == 2
        before = list(model.statements)
        assert synthesize_annotations(model, config) == 0
        assert model.statements == before

    def test_never_reorders_or_resizes(self, config):
        model = _model(_likelihood(), _data())
        synthesize_annotations(model, config)
        assert [s.identifier for s in model.statements] == ["lik", "dna"]

    def test_frozen_model_rejects_new_annotation(self, config):
        model = _model(_data(), _likelihood())
        model.freeze()
        with pytest.raises(ModelFrozenError):
            synthesize_annotations(model, config)
