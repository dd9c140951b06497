"""
Graphviz DOT diagram generator for decompiled models.

Converts a DecompiledModel into Graphviz DOT format for visualization.
Each statement is a vertex; an edge u -> v means statement v references
the identifier declared by u (so edges follow declaration order).

Supports multiple modes:
    - SIMPLE: Identifiers and reference edges only
    - DETAILED: Types, '=' or '~', annotations, and dashed edges for
      references made from annotation parameters
"""

from enum import Enum
from typing import Set

from ..expressions import collect_identifiers
from ..model import (
    DecompiledModel,
    DistributionAssignment,
    annotations_of,
    statement_expression,
    unwrap,
)


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"          # Just the reference graph
    DETAILED = "detailed"      # Include types and annotations


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    # Escape backslashes first
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    # Literal newlines become DOT line breaks
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _escape_dot_id(identifier: str) -> str:
    """Escape/quote an identifier for DOT."""
    if identifier[0].isdigit() or not identifier.replace('_', '').isalnum():
        return f'"{identifier}"'
    return identifier


def generate_dot(model: DecompiledModel, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT format for a decompiled model.

    Args:
        model: DecompiledModel to visualize
        mode: Visualization mode (SIMPLE, DETAILED)

    Returns:
        String containing DOT graph definition
    """
    lines = []

    # Header
    lines.append("digraph model {")
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    declared: Set[str] = {s.identifier for s in model.statements}

    # =========================================================================
    # NODES (STATEMENTS)
    # =========================================================================

    for statement in model.statements:
        node_id = _escape_dot_id(statement.identifier)
        inner = unwrap(statement)
        attrs = []
        if isinstance(inner, DistributionAssignment):
            attrs.append("shape=ellipse")
            attrs.append("fillcolor=lightyellow")

        label = statement.identifier
        if mode == DotMode.DETAILED:
            operator = "~" if isinstance(inner, DistributionAssignment) else "="
            info = [f"{inner.type_name} {operator}"]
            info.extend(f"@{a.kind.value}" for a in annotations_of(statement))
            label = label + "\n" + "\n".join(info)
        attrs.append(f"label={_escape_dot_string(label)}")
        lines.append(f"  {node_id} [{', '.join(attrs)}];")

    # =========================================================================
    # EDGES (REFERENCES)
    # =========================================================================

    for statement in model.statements:
        own = statement.identifier
        target = _escape_dot_id(own)
        body_refs = collect_identifiers(statement_expression(statement))
        for name in body_refs:
            if name != own and name in declared:
                lines.append(f"  {_escape_dot_id(name)} -> {target};")

        if mode == DotMode.DETAILED:
            for annotation in annotations_of(statement):
                for value in annotation.parameters.values():
                    for name in collect_identifiers(value):
                        if name != own and name in declared and name not in body_refs:
                            label = _escape_dot_string(annotation.kind.value)
                            lines.append(
                                f"  {_escape_dot_id(name)} -> {target} [style=dashed, label={label}];"
                            )

    # Footer
    lines.append("}")

    return "\n".join(lines)


def save_dot_file(model: DecompiledModel, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        model: DecompiledModel to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(model, mode=mode)
    with open(filename, 'w') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
