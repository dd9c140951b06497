"""
Ordered Category Extractors

Four phases that turn the emission plan into statements, always in this
order:

    1. DataExtractionPhase          DATA nodes (observed input first)
    2. CompositionExtractionPhase   pattern-claimed nodes
    3. DistributionExtractionPhase  nodes sampled from a distribution
    4. RemainingNodesPhase          plain declarations, then suppression

Each phase walks the discovered nodes in discovery order and hands the
selected ones to the shared StatementEmitter, which emits dependencies
first regardless of which phase would otherwise have claimed them.
"""

import logging

from .context import DecompilationContext, NodeState, Phase, Strategy
from .emitter import StatementEmitter
from .errors import NodeStateError

logger = logging.getLogger(__name__)


class StrategyExtractionPhase(Phase):
    """Emits every node planned with `strategy`, in discovery order."""

    strategy: Strategy = Strategy.DECLARATION

    def run(self, context: DecompilationContext) -> None:
        emitter = StatementEmitter(context)
        before = len(context.model.statements)
        for node in context.nodes:
            if context.strategy(node) is self.strategy and not context.is_terminal(node):
                emitter.emit(node)
        logger.debug("%s: %d statements emitted", self.name,
                     len(context.model.statements) - before)

    def validate(self, context: DecompilationContext) -> None:
        pending = [n for n in context.nodes
                   if context.strategy(n) is self.strategy and not context.is_terminal(n)]
        if pending:
            raise NodeStateError(
                f"{self.name}: {len(pending)} {self.strategy.value} nodes left unprocessed"
            )


class DataExtractionPhase(StrategyExtractionPhase):
    name = "Data Extraction"
    description = "Emits @data statements, writing large alignments to files"
    strategy = Strategy.DATA


class CompositionExtractionPhase(StrategyExtractionPhase):
    name = "Composition Extraction"
    description = "Synthesizes distributions for composition-constrained parameters"
    strategy = Strategy.COMPOSITION


class DistributionExtractionPhase(StrategyExtractionPhase):
    name = "Distribution Extraction"
    description = "Emits '~' assignments for nodes sampled from a distribution"
    strategy = Strategy.DISTRIBUTION


class RemainingNodesPhase(StrategyExtractionPhase):
    """
    Emits plain declarations, then settles machinery.

    Afterwards every discovered node must be in a terminal state;
    a node left DISCOVERED means an inline expression was planned but
    never consumed, which is a bug in the plan, not in the input.
    """

    name = "Remaining Nodes"
    description = "Emits plain declarations and suppresses machinery"
    strategy = Strategy.DECLARATION

    def run(self, context: DecompilationContext) -> None:
        super().run(context)
        for node in context.nodes:
            if context.strategy(node) is Strategy.SUPPRESS and not context.is_terminal(node):
                context.mark_suppressed(node)

    def validate(self, context: DecompilationContext) -> None:
        super().validate(context)
        stuck = [n for n in context.nodes if context.state_of(n) is NodeState.DISCOVERED]
        if stuck:
            names = ", ".join(context.identifier(n) for n in stuck)
            raise NodeStateError(f"Nodes never reached a terminal state: {names}")
