"""
Shared pipeline context.

One DecompilationContext is created per run and threaded through every
phase. It owns the discovered nodes, the symbol table, the growing model,
the per-node emission plan and the per-node state machine:

    DISCOVERED -> EMITTED      (own statement)
    DISCOVERED -> INLINED      (folded into exactly one ancestor statement)
    DISCOVERED -> SUPPRESSED   (no textual representation)

Terminal states are final and mutually exclusive.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .config import DecompilerConfig
from .datafiles import SequenceFileWriter
from .errors import NodeStateError
from .graph import Node
from .model import DecompiledModel, Statement

logger = logging.getLogger(__name__)


class NodeState(Enum):
    DISCOVERED = "discovered"
    EMITTED = "emitted"
    INLINED = "inlined"
    SUPPRESSED = "suppressed"


TERMINAL_STATES = frozenset({NodeState.EMITTED, NodeState.INLINED, NodeState.SUPPRESSED})


class Strategy(Enum):
    """How a node reaches the output. Exactly one per discovered node."""

    SUPPRESS = "suppress"
    DATA = "data"
    COMPOSITION = "composition"
    DISTRIBUTION = "distribution"
    INLINE = "inline"
    DECLARATION = "declaration"


class SuppressionReason(Enum):
    MACHINERY = "machinery"   # operators, containers: no textual form
    SUBSUMED = "subsumed"     # helper objects unwrapped into another statement


@dataclass
class DecompilationContext:
    """
    Mutable state shared by all phases of one run.

    Properties:
        roots: Root nodes handed to the driver
        config: DecompilerConfig
        nodes: Discovered nodes, discovery order
        model: Output DecompiledModel (owns the SymbolTable)
        states: Node -> NodeState
        plan: Node -> Strategy (filled by the planning phase)
        suppression: Node -> SuppressionReason for SUPPRESS nodes
        claimed: Nodes flagged by pattern detectors
        referrers: Node -> parents, one entry per referencing slot
        main_distribution: target node -> its main distribution node
        distribution_targets: main distribution node -> target node
        invocation_targets: Targets whose assignment is an inline invocation
        calibrations: Tree node -> calibration nodes constraining it
        data_writer: Side channel for large inline data (None: always inline)
        diagnostics: Non-fatal findings surfaced to the caller
    """

    roots: List[Node]
    config: DecompilerConfig
    nodes: List[Node] = field(default_factory=list)
    model: DecompiledModel = field(default_factory=DecompiledModel)
    states: Dict[Node, NodeState] = field(default_factory=dict)
    plan: Dict[Node, Strategy] = field(default_factory=dict)
    suppression: Dict[Node, SuppressionReason] = field(default_factory=dict)
    claimed: Set[Node] = field(default_factory=set)
    referrers: Dict[Node, List[Node]] = field(default_factory=lambda: defaultdict(list))
    main_distribution: Dict[Node, Node] = field(default_factory=dict)
    distribution_targets: Dict[Node, Node] = field(default_factory=dict)
    invocation_targets: Set[Node] = field(default_factory=set)
    calibrations: Dict[Node, List[Node]] = field(default_factory=dict)
    data_writer: Optional[SequenceFileWriter] = None
    diagnostics: List[str] = field(default_factory=list)
    data_files: List[str] = field(default_factory=list)

    @property
    def symbols(self):
        return self.model.symbols

    def identifier(self, node: Node) -> str:
        identifier = self.symbols.identifier_for(node)
        if identifier is None:
            raise NodeStateError(f"{node!r} was never discovered")
        return identifier

    # ------------------------------------------------------------------
    # Node state machine
    # ------------------------------------------------------------------

    def discover(self, node: Node) -> None:
        if node in self.states:
            raise NodeStateError(f"{node!r} discovered twice")
        self.states[node] = NodeState.DISCOVERED
        self.nodes.append(node)

    def state_of(self, node: Node) -> Optional[NodeState]:
        return self.states.get(node)

    def is_terminal(self, node: Node) -> bool:
        return self.states.get(node) in TERMINAL_STATES

    def _transition(self, node: Node, target: NodeState) -> None:
        current = self.states.get(node)
        if current is not NodeState.DISCOVERED:
            raise NodeStateError(
                f"Illegal transition for {node!r}: {current.value if current else 'undiscovered'}"
                f" -> {target.value}"
            )
        self.states[node] = target

    def mark_emitted(self, node: Node, statement: Statement) -> None:
        self._transition(node, NodeState.EMITTED)
        self.model.add_statement(statement)
        if node.package:
            self.model.add_import(node.package)

    def mark_inlined(self, node: Node) -> None:
        self._transition(node, NodeState.INLINED)
        if node.package:
            self.model.add_import(node.package)

    def mark_suppressed(self, node: Node) -> None:
        self._transition(node, NodeState.SUPPRESSED)

    # ------------------------------------------------------------------
    # Plan queries
    # ------------------------------------------------------------------

    def strategy(self, node: Node) -> Strategy:
        return self.plan.get(node, Strategy.DECLARATION)

    def reference_count(self, node: Node) -> int:
        return len(self.referrers.get(node, ()))

    def add_diagnostic(self, message: str, log: bool = True) -> None:
        """Record a non-fatal finding; log=False when the caller already logged it."""
        if message not in self.diagnostics:
            self.diagnostics.append(message)
            if log:
                logger.warning(message)

    def state_summary(self) -> Dict[str, NodeState]:
        """Identifier -> NodeState, detached from the graph."""
        return {self.identifier(node): self.states[node] for node in self.nodes}


class Phase(ABC):
    """
    One step of the decompilation pipeline.

    A phase reads and writes the shared context. It may override
    validate() to check the invariants it promises once run() returns.
    """

    name: str = "phase"
    description: str = ""

    @abstractmethod
    def run(self, context: DecompilationContext) -> None:
        ...

    def validate(self, context: DecompilationContext) -> None:
        pass
