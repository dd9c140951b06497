"""
Text writer for decompiled models.

Converts a DecompiledModel into the textual modeling language:

    import beast.base.inference.parameter.*;

    @data
    @observed(data=dna)
    Alignment dna = inlineSequenceData(sequences={human: "ACGT", chimp: "ACGA"});
    RealParameter kappa ~ LogNormalDistributionModel(M=1.0, S=1.25);
    HKY hky = HKY(kappa=kappa, frequencies=freqs);

Statement forms:
    - Declaration:             Type id = Expr;
    - DistributionAssignment:  Type id ~ Expr;
    - Annotated:               one @kind(key=value, ...) line per annotation,
                               then the wrapped statement
"""

import math
from typing import List

from ..expressions import (
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
from ..model import Annotated, Annotation, Declaration, DecompiledModel, DistributionAssignment, Statement
from ..normalizer import is_legal_identifier


def _quote(s: str) -> str:
    s = s.replace("\\", "\\\\")
    s = s.replace('"', '\\"')
    s = s.replace("\n", "\\n")
    return f'"{s}"'


def _render_literal(literal: Literal) -> str:
    if literal.kind is LiteralKind.BOOL:
        return "true" if literal.value else "false"
    if literal.kind is LiteralKind.STRING:
        return _quote(str(literal.value))
    if literal.kind is LiteralKind.FLOAT and not math.isfinite(literal.value):
        raise ValueError(f"Non-finite number {literal.value!r} has no literal form")
    return repr(literal.value)


def _render_arguments(arguments) -> str:
    return ", ".join(f"{a.name}={render_expression(a.value)}" for a in arguments)


def render_expression(expr: Expression) -> str:
    """Render one expression tree as source text."""
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Literal):
        return _render_literal(expr)
    if isinstance(expr, Invocation):
        return f"{expr.type_name}({_render_arguments(expr.arguments)})"
    if isinstance(expr, (LoadTabularData, InlineSequenceData)):
        return f"{expr.function_name}({_render_arguments(expr.arguments)})"
    if isinstance(expr, ArrayLiteral):
        return "[" + ", ".join(render_expression(e) for e in expr.elements) + "]"
    if isinstance(expr, MapLiteral):
        entries = []
        for key, value in expr.entries.items():
            rendered_key = key if is_legal_identifier(key) else _quote(key)
            entries.append(f"{rendered_key}: {render_expression(value)}")
        return "{" + ", ".join(entries) + "}"
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def render_annotation(annotation: Annotation) -> str:
    if not annotation.parameters:
        return f"@{annotation.kind.value}"
    params = ", ".join(f"{key}={render_expression(value)}"
                       for key, value in annotation.parameters.items())
    return f"@{annotation.kind.value}({params})"


def render_statement(statement: Statement) -> str:
    """Render a statement, annotation lines included."""
    if isinstance(statement, Annotated):
        lines = [render_annotation(a) for a in statement.annotations]
        lines.append(render_statement(statement.statement))
        return "\n".join(lines)
    if isinstance(statement, Declaration):
        return f"{statement.type_name} {statement.name} = {render_expression(statement.expression)};"
    if isinstance(statement, DistributionAssignment):
        return f"{statement.type_name} {statement.name} ~ {render_expression(statement.expression)};"
    raise TypeError(f"Unsupported Statement type: {type(statement)}")


def render_model(model: DecompiledModel) -> str:
    """
    Render the whole model: import lines, a blank line, then statements.

    Returns:
        Source text ending in a newline
    """
    lines: List[str] = [f"import {package}.*;" for package in model.imports]
    if lines:
        lines.append("")
    lines.extend(render_statement(s) for s in model.statements)
    return "\n".join(lines) + "\n"


def save_model_file(model: DecompiledModel, filename: str) -> None:
    """
    Render the model and save it to a file.

    Args:
        model: DecompiledModel to write
        filename: Output file path
    """
    with open(filename, "w") as f:
        f.write(render_model(model))


__all__ = ["render_expression", "render_annotation", "render_statement", "render_model", "save_model_file"]
