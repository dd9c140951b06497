"""
Model Analyzer: post-hoc diagnostics and inventory of decompiled models.

This module provides lightweight analysis of DecompiledModel objects:
    - Statement and annotation inventory
    - Identifier uniqueness
    - Reference validity (declared, and declared earlier)
    - Reference cycles
    - Expression complexity metrics
    - Completeness against the node states of a run

IMPORTANT: This is the analysis layer. It does NOT modify the model.
It only produces read-only reports.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set

from .context import NodeState
from .expressions import Expression, Identifier, child_expressions
from .model import DecompiledModel, DistributionAssignment, annotations_of, statement_expression, unwrap


@dataclass
class ExpressionMetrics:
    """Metrics about a single expression tree."""
    depth: int = 0
    node_count: int = 0
    identifier_references: Set[str] = field(default_factory=set)


def _analyze_expression(expr: Expression | None) -> ExpressionMetrics:
    """Analyze an expression tree (iteratively, depth counted in nodes)."""
    metrics = ExpressionMetrics()
    if expr is None:
        return metrics

    stack = [(expr, 1)]
    while stack:
        current, depth = stack.pop()
        metrics.node_count += 1
        metrics.depth = max(metrics.depth, depth)
        if isinstance(current, Identifier):
            metrics.identifier_references.add(current.name)
        for child in child_expressions(current):
            stack.append((child, depth + 1))
    return metrics


def _find_cycle(graph: Dict[str, List[str]], start: str, visited: Set[str]) -> Optional[List[str]]:
    """Iterative DFS returning one cycle reachable from `start`, if any."""
    path: List[str] = []
    on_path: Set[str] = set()
    stack = [(start, iter(graph.get(start, [])))]
    visited.add(start)
    path.append(start)
    on_path.add(start)
    while stack:
        node, neighbors = stack[-1]
        advanced = False
        for neighbor in neighbors:
            if neighbor in on_path:
                return path[path.index(neighbor):] + [neighbor]
            if neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                on_path.add(neighbor)
                stack.append((neighbor, iter(graph.get(neighbor, []))))
                advanced = True
                break
        if not advanced:
            stack.pop()
            on_path.discard(path.pop())
    return None


@dataclass
class ModelReport:
    """Comprehensive analysis report for a decompiled model."""

    total_statements: int = 0
    declarations: int = 0
    distribution_assignments: int = 0
    annotated_statements: int = 0
    annotation_counts: Dict[str, int] = field(default_factory=dict)
    total_imports: int = 0

    # Identifiers and references
    duplicate_identifiers: Set[str] = field(default_factory=set)
    undeclared_references: Set[str] = field(default_factory=set)
    forward_references: List[str] = field(default_factory=list)   # "user -> used"
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    # Expression complexity
    max_expression_depth: int = 0
    avg_expression_depth: float = 0.0
    total_expression_nodes: int = 0

    # Completeness (only when node states are supplied)
    node_state_counts: Dict[str, int] = field(default_factory=dict)
    missing_statements: Set[str] = field(default_factory=set)
    unexpected_statements: Set[str] = field(default_factory=set)
    non_terminal_nodes: Set[str] = field(default_factory=set)

    # Warnings and flags
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def is_consistent(self) -> bool:
        return not (self.duplicate_identifiers or self.undeclared_references
                    or self.forward_references or self.missing_statements
                    or self.unexpected_statements or self.non_terminal_nodes)


def analyze_model(model: DecompiledModel,
                  node_states: Optional[Mapping[str, NodeState]] = None) -> ModelReport:
    """
    Perform comprehensive analysis of a DecompiledModel.

    Checks for:
    - Identifier uniqueness
    - References to undeclared or later-declared identifiers
      (annotation parameters may also reference the annotated statement)
    - Reference cycles
    - Expression complexity
    - With node_states: every EMITTED node has exactly one statement,
      no other statement exists, every node is terminal

    Returns a ModelReport with metrics and warnings.
    """
    report = ModelReport()
    report.total_statements = len(model.statements)
    report.total_imports = len(model.imports)

    # =========================================================================
    # 1. INVENTORY
    # =========================================================================

    annotation_counts: Dict[str, int] = defaultdict(int)
    for statement in model.statements:
        if isinstance(unwrap(statement), DistributionAssignment):
            report.distribution_assignments += 1
        else:
            report.declarations += 1
        annotations = annotations_of(statement)
        if annotations:
            report.annotated_statements += 1
        for annotation in annotations:
            annotation_counts[annotation.kind.value] += 1
    report.annotation_counts = dict(annotation_counts)

    # =========================================================================
    # 2. IDENTIFIERS AND REFERENCES
    # =========================================================================

    position: Dict[str, int] = {}
    for index, statement in enumerate(model.statements):
        if statement.identifier in position:
            report.duplicate_identifiers.add(statement.identifier)
        else:
            position[statement.identifier] = index

    depths = []
    graph: Dict[str, List[str]] = defaultdict(list)
    for index, statement in enumerate(model.statements):
        own = statement.identifier
        metrics = _analyze_expression(statement_expression(statement))
        depths.append(metrics.depth)
        report.total_expression_nodes += metrics.node_count

        annotation_refs: Set[str] = set()
        for annotation in annotations_of(statement):
            for value in annotation.parameters.values():
                annotation_refs.update(_analyze_expression(value).identifier_references)

        for name in sorted(metrics.identifier_references | annotation_refs):
            if name not in position:
                report.undeclared_references.add(name)
                continue
            if name == own and name not in metrics.identifier_references:
                continue
            graph[own].append(name)
            if position[name] >= index:
                report.forward_references.append(f"{own} -> {name}")

    if depths:
        report.max_expression_depth = max(depths)
        report.avg_expression_depth = sum(depths) / len(depths)

    visited: Set[str] = set()
    for identifier in list(graph.keys()):
        if identifier not in visited:
            cycle = _find_cycle(graph, identifier, visited)
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 3. COMPLETENESS
    # =========================================================================

    if node_states is not None:
        counts: Dict[str, int] = defaultdict(int)
        for state in node_states.values():
            counts[state.value] += 1
        report.node_state_counts = dict(counts)

        emitted = {name for name, state in node_states.items() if state is NodeState.EMITTED}
        report.missing_statements = emitted - set(position)
        report.unexpected_statements = set(position) - emitted
        report.non_terminal_nodes = {name for name, state in node_states.items()
                                     if state is NodeState.DISCOVERED}

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.duplicate_identifiers:
        report.add_warning(
            f"Duplicate identifiers: {', '.join(sorted(report.duplicate_identifiers))}"
        )

    if report.undeclared_references:
        report.add_warning(
            f"Undeclared references: {', '.join(sorted(report.undeclared_references))}"
        )

    if report.forward_references:
        report.add_warning(
            f"Used before declaration: {', '.join(report.forward_references)}"
        )

    if report.has_cycles:
        report.add_warning(
            f"Cycle detected: {' -> '.join(report.cycle_example)}"
        )

    if report.missing_statements:
        report.add_warning(
            f"Emitted nodes without a statement: {', '.join(sorted(report.missing_statements))}"
        )

    if report.unexpected_statements:
        report.add_warning(
            f"Statements for nodes not marked emitted: {', '.join(sorted(report.unexpected_statements))}"
        )

    if report.non_terminal_nodes:
        report.add_warning(
            f"Nodes never processed: {', '.join(sorted(report.non_terminal_nodes))}"
        )

    if report.max_expression_depth > 6:
        report.add_warning(
            f"High expression complexity: max depth {report.max_expression_depth}"
        )

    return report


def analyze_result(result) -> ModelReport:
    """Analyze a DecompilationResult: its model plus the node states of the run."""
    return analyze_model(result.model, result.node_states)
