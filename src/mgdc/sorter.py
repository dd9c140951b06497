"""
Dependency Sorter

Reorders statements so every identifier is declared before it is used.

Algorithm (Kahn, stable):
    - references of a statement = every Identifier in its expression and
      in its annotation parameters, minus identifiers no statement
      declares and minus its own identifier when only an annotation
      names it (@observed(data=dna) on dna)
    - a statement whose body names itself sits on a cycle of length one
    - ready statements leave through a min-heap keyed on original index,
      so independent statements keep their relative order
    - statements left over once the heap drains sit on a reference cycle;
      they are appended in original order and reported, never dropped

Input and output always have the same length.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .context import DecompilationContext, Phase
from .errors import NodeStateError
from .expressions import collect_identifiers
from .model import Statement, annotations_of, statement_expression

logger = logging.getLogger(__name__)


@dataclass
class SortResult:
    """
    Properties:
        statements: Reordered statements (same length as the input)
        unresolved: Identifiers of statements placed by the cycle fallback
    """

    statements: List[Statement] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.unresolved)


def statement_references(statement: Statement) -> List[str]:
    """Identifiers a statement uses, first occurrence order, self included."""
    names = collect_identifiers(statement_expression(statement))
    for annotation in annotations_of(statement):
        for value in annotation.parameters.values():
            for name in collect_identifiers(value):
                if name not in names:
                    names.append(name)
    return names


def sort_statements(statements: List[Statement]) -> SortResult:
    declared: Dict[str, int] = {}
    for index, statement in enumerate(statements):
        declared.setdefault(statement.identifier, index)

    dependents: Dict[int, List[int]] = {i: [] for i in range(len(statements))}
    pending = [0] * len(statements)
    for index, statement in enumerate(statements):
        own = statement.identifier
        body = collect_identifiers(statement_expression(statement))
        for name in statement_references(statement):
            if name not in declared:
                continue
            if name == own and name not in body:
                continue
            dependents[declared[name]].append(index)
            pending[index] += 1

    ready = [i for i, count in enumerate(pending) if count == 0]
    heapq.heapify(ready)
    order: List[int] = []
    while ready:
        index = heapq.heappop(ready)
        order.append(index)
        for dependent in dependents[index]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(ready, dependent)

    result = SortResult(statements=[statements[i] for i in order])
    if len(order) < len(statements):
        placed = set(order)
        residual = [i for i in range(len(statements)) if i not in placed]
        result.statements.extend(statements[i] for i in residual)
        result.unresolved = [statements[i].identifier for i in residual]
        logger.warning("Reference cycle among %d statements, kept in original order: %s",
                       len(residual), ", ".join(result.unresolved))
    return result


class DependencySortingPhase(Phase):
    name = "Dependency Sorting"
    description = "Orders statements so references are declared before use"

    def __init__(self):
        self._expected = 0

    def run(self, context: DecompilationContext) -> None:
        model = context.model
        self._expected = len(model.statements)
        result = sort_statements(model.statements)
        model.replace_statements(result.statements)
        if result.has_cycles:
            context.add_diagnostic(
                "Unresolved reference cycle: " + ", ".join(result.unresolved), log=False
            )

    def validate(self, context: DecompilationContext) -> None:
        if len(context.model.statements) != self._expected:
            raise NodeStateError(
                f"Sorting changed the statement count: "
                f"{self._expected} -> {len(context.model.statements)}"
            )
