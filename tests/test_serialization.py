"""
Tests for serialization and deserialization of decompiled models.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `mgdc.serialization`.
"""

import json

import pytest
from mgdc.errors import UnknownAnnotationError
from mgdc.examples import build_example_phylo_model
from mgdc.expressions import Literal, LiteralKind, MapLiteral
from mgdc.model import Annotated
from mgdc.pipeline import decompile
from mgdc.serialization import (
    expr_from_dict,
    expr_to_dict,
    model_from_dict,
    model_from_json,
    model_from_yaml,
    model_to_dict,
    model_to_json,
    model_to_yaml,
    statement_from_dict,
)


def build_sample_model():
    mcmc, auxiliary = build_example_phylo_model()
    return decompile(mcmc, auxiliary).model


def test_json_round_trip():
    model = build_sample_model()
    restored = model_from_json(model_to_json(model))
    assert restored.statements == model.statements
    assert restored.imports == model.imports
    assert restored.frozen


def test_yaml_round_trip():
    model = build_sample_model()
    restored = model_from_yaml(model_to_yaml(model))
    assert restored.statements == model.statements


def test_dict_keeps_statement_order():
    model = build_sample_model()
    d = model_to_dict(model)
    assert [s.identifier for s in model_from_dict(d).statements] == [s.identifier for s in model.statements]


def test_map_order_survives_key_sorting():
    expr = MapLiteral({"zebra": Literal("A"), "ant": Literal("C")})
    dumped = json.loads(json.dumps(expr_to_dict(expr), sort_keys=True))
    assert list(expr_from_dict(dumped).entries) == ["zebra", "ant"]


def test_literal_kind_preserved():
    lit = Literal(1, LiteralKind.FLOAT)
    assert expr_from_dict(expr_to_dict(lit)).kind is LiteralKind.FLOAT


def test_annotations_restored():
    model = build_sample_model()
    restored = model_from_json(model_to_json(model))
    dna = restored.get_statement("dna")
    assert isinstance(dna, Annotated)
    assert [a.kind.value for a in dna.annotations] == ["data", "observed"]


def test_unknown_annotation_kind_rejected():
    d = {
        "type": "annotated",
        "annotations": [{"kind": "mystery", "parameters": []}],
        "statement": {"type": "declaration", "type_name": "A", "name": "a",
                      "expression": {"type": "lit", "value": 1, "kind": "int"}},
    }
    with pytest.raises(UnknownAnnotationError):
        statement_from_dict(d)


def test_unknown_expression_type_rejected():
    with pytest.raises(TypeError):
        expr_from_dict({"type": "lambda"})
