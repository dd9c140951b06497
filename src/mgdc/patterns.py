"""
Pattern Detectors: structural classifiers over the discovered graph.

A detector looks at how OTHER nodes use a node, not at the node's own
declared semantics, and flags nodes that need a synthesized statement.

Each detector is a closed, deterministic predicate: it builds its
evidence index over the full node collection first, so the flagged set
does not depend on visitation order.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Set

from .config import DecompilerConfig
from .expressions import Argument, Invocation, Literal, LiteralKind
from .errors import InputDefectError
from .graph import Node, NodeCategory

logger = logging.getLogger(__name__)


class PatternDetector(ABC):
    name: str = "pattern"

    def __init__(self, config: DecompilerConfig):
        self.config = config

    @abstractmethod
    def detect(self, nodes: Iterable[Node]) -> Set[Node]:
        ...


def operator_index(nodes: Iterable[Node]) -> Dict[Node, List[Node]]:
    """Node -> operators referencing it in any slot (each operator once)."""
    index: Dict[Node, List[Node]] = defaultdict(list)
    for node in nodes:
        if node.category is not NodeCategory.OPERATOR:
            continue
        seen = set()
        for child in node.children():
            if child not in seen:
                seen.add(child)
                index[child].append(node)
    return index


class CompositionDetector(PatternDetector):
    """
    Flags integer vectors constrained to a fixed total.

    A parameter is flagged when:
        (a) it is an integer-valued vector, and
        (b) at least one operator acts on it, and
        (c) EVERY operator acting on it belongs to the configured family
            (type name contains e.g. "DeltaExchange") with the flag slot
            (e.g. integer=True) set.

    Such operators move mass between entries and preserve the sum, so
    the parameter is really a draw from a composition of n into k parts.
    """

    name = "composition"

    def detect(self, nodes: Iterable[Node]) -> Set[Node]:
        nodes = list(nodes)
        operators_on = operator_index(nodes)
        flagged: Set[Node] = set()

        for node in nodes:
            if not self.is_integer_vector(node):
                continue
            operators = operators_on.get(node, [])
            if not operators:
                logger.debug("%s: no operators, not a composition", node.name)
                continue
            if all(self.is_family_operator(op) for op in operators):
                logger.info("Composition parameter detected: %s", node.name)
                flagged.add(node)
            else:
                logger.debug("%s: operated on outside the %s family",
                             node.name, self.config.composition_operator_family)
        return flagged

    def is_integer_vector(self, node: Node) -> bool:
        if node.category is not NodeCategory.PARAMETER:
            return False
        values = node.slots.get(self.config.value_slot)
        if node.type_name in self.config.integer_parameter_types:
            return True
        return (isinstance(values, list) and bool(values)
                and all(isinstance(v, int) and not isinstance(v, bool) for v in values))

    def is_family_operator(self, operator: Node) -> bool:
        family = self.config.composition_operator_family
        flag = self.config.composition_operator_flag
        return family in operator.type_name and operator.slots.get(flag) is True


def composition_values(node: Node, config: DecompilerConfig) -> List[int]:
    values = node.slots.get(config.value_slot)
    if isinstance(values, (int, float)) and not isinstance(values, bool):
        values = [values]
    if not isinstance(values, list) or not values:
        raise InputDefectError(
            f"Composition parameter has no '{config.value_slot}' values", node
        )
    return [int(v) for v in values]


def composition_expression(node: Node, config: DecompilerConfig) -> Invocation:
    """
    Synthesize the composition distribution for a flagged node.

    n (the total) and k (the number of parts) do not exist as slots;
    they are derived from the node's current values.

    Example:
        value=[2, 3, 5]  ->  RandomComposition(n=10, k=3)
    """
    values = composition_values(node, config)
    return Invocation(config.composition_distribution, [
        Argument("n", Literal(sum(values), LiteralKind.INT)),
        Argument("k", Literal(len(values), LiteralKind.INT)),
    ])


def default_detectors(config: DecompilerConfig) -> List[PatternDetector]:
    return [CompositionDetector(config)]
