"""
Serialization helpers for decompiled models (Statement, Expression, etc.).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
This module intentionally keeps serialization structure stable and explicit.

Ordered mappings (map literals, annotation parameters) are written as
lists of [key, value] pairs so that key-sorting dumpers keep their order.

The symbol table is not part of a snapshot: it maps graph nodes, and a
snapshot must outlive the graph. A loaded model has an empty table.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from .expressions import (
    Argument,
    ArrayLiteral,
    Expression,
    Identifier,
    InlineSequenceData,
    Invocation,
    Literal,
    LiteralKind,
    LoadTabularData,
    MapLiteral,
)
from .model import (
    Annotated,
    Annotation,
    Declaration,
    DecompiledModel,
    DistributionAssignment,
    Statement,
)


def _arguments_to_list(arguments: List[Argument]) -> List[Dict[str, Any]]:
    return [{"name": a.name, "value": expr_to_dict(a.value)} for a in arguments]


def _arguments_from_list(items: List[Dict[str, Any]]) -> List[Argument]:
    return [Argument(item["name"], expr_from_dict(item["value"])) for item in items]


def expr_to_dict(expr: Expression) -> Any:
    if isinstance(expr, Identifier):
        return {"type": "id", "name": expr.name}
    if isinstance(expr, Literal):
        return {"type": "lit", "value": expr.value, "kind": expr.kind.value}
    if isinstance(expr, Invocation):
        return {
            "type": "call",
            "name": expr.type_name,
            "arguments": _arguments_to_list(expr.arguments),
        }
    if isinstance(expr, ArrayLiteral):
        return {"type": "array", "elements": [expr_to_dict(e) for e in expr.elements]}
    if isinstance(expr, MapLiteral):
        return {
            "type": "map",
            "entries": [[key, expr_to_dict(value)] for key, value in expr.entries.items()],
        }
    if isinstance(expr, LoadTabularData):
        return {"type": "load", "arguments": _arguments_to_list(expr.arguments)}
    if isinstance(expr, InlineSequenceData):
        return {"type": "inline", "arguments": _arguments_to_list(expr.arguments)}
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def expr_from_dict(d: Any) -> Expression:
    t = d.get("type")
    if t == "id":
        return Identifier(d["name"])
    if t == "lit":
        return Literal(d["value"], LiteralKind(d["kind"]) if d.get("kind") else None)
    if t == "call":
        return Invocation(d["name"], _arguments_from_list(d.get("arguments", [])))
    if t == "array":
        return ArrayLiteral([expr_from_dict(e) for e in d.get("elements", [])])
    if t == "map":
        return MapLiteral({key: expr_from_dict(value) for key, value in d.get("entries", [])})
    if t == "load":
        return LoadTabularData(_arguments_from_list(d.get("arguments", [])))
    if t == "inline":
        return InlineSequenceData(_arguments_from_list(d.get("arguments", [])))
    raise TypeError(f"Unsupported expression dict type: {t}")


def annotation_to_dict(a: Annotation) -> Dict[str, Any]:
    return {
        "kind": a.kind.value,
        "parameters": [[key, expr_to_dict(value)] for key, value in a.parameters.items()],
    }


def annotation_from_dict(d: Dict[str, Any]) -> Annotation:
    # an unknown kind raises UnknownAnnotationError here, like any construction
    return Annotation(d["kind"], {key: expr_from_dict(value) for key, value in d.get("parameters", [])})


def statement_to_dict(s: Statement) -> Dict[str, Any]:
    if isinstance(s, Annotated):
        return {
            "type": "annotated",
            "annotations": [annotation_to_dict(a) for a in s.annotations],
            "statement": statement_to_dict(s.statement),
        }
    if isinstance(s, Declaration):
        kind = "declaration"
    elif isinstance(s, DistributionAssignment):
        kind = "distribution"
    else:
        raise TypeError(f"Unsupported Statement type: {type(s)}")
    return {
        "type": kind,
        "type_name": s.type_name,
        "name": s.name,
        "expression": expr_to_dict(s.expression),
    }


def statement_from_dict(d: Dict[str, Any]) -> Statement:
    t = d.get("type")
    if t == "annotated":
        return Annotated(
            tuple(annotation_from_dict(a) for a in d.get("annotations", [])),
            statement_from_dict(d["statement"]),
        )
    if t == "declaration":
        return Declaration(d["type_name"], d["name"], expr_from_dict(d["expression"]))
    if t == "distribution":
        return DistributionAssignment(d["type_name"], d["name"], expr_from_dict(d["expression"]))
    raise TypeError(f"Unsupported statement dict type: {t}")


def model_to_dict(m: DecompiledModel) -> Dict[str, Any]:
    return {
        "imports": list(m.imports),
        "statements": [statement_to_dict(s) for s in m.statements],
        "frozen": m.frozen,
    }


def model_from_dict(d: Dict[str, Any]) -> DecompiledModel:
    m = DecompiledModel()
    m.imports = list(d.get("imports", []))
    m.statements = [statement_from_dict(s) for s in d.get("statements", [])]
    m.frozen = bool(d.get("frozen", False))
    return m


def model_to_json(m: DecompiledModel) -> str:
    return json.dumps(model_to_dict(m), sort_keys=True)


def model_from_json(s: str) -> DecompiledModel:
    d = json.loads(s)
    return model_from_dict(d)


def model_to_yaml(m: DecompiledModel) -> str:
    return yaml.safe_dump(model_to_dict(m))


def model_from_yaml(s: str) -> DecompiledModel:
    d = yaml.safe_load(s)
    return model_from_dict(d)
