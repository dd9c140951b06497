"""
Statement Emitter

Builds the statement for a node according to its planned Strategy and
emits, first, every dependency that needs a statement of its own.

Dependency-first emission is a post-order walk over a strategy-aware
child function:

    DISTRIBUTION  -> the distribution source + secondary slot children
    DATA          -> all slot children
    COMPOSITION   -> nothing (arguments are derived, not referenced)
    SUPPRESS      -> nothing
    otherwise     -> slot children (a main distribution skips its primary
                     slot, which points back at the node it samples)

Trees also depend on the taxon sets and distributions of the calibrations
that constrain them, so the @calibration annotation attached later only
references earlier statements.

Child references resolve to:
    INLINE child    -> nested expression (child marked INLINED)
    SUPPRESS child  -> argument dropped
    anything else   -> Identifier(child id)
"""

import logging
import math
from typing import List, Optional, Sequence, Set, Tuple

from .context import DecompilationContext, Strategy, SuppressionReason
from .errors import InputDefectError
from .expressions import (
    Argument,
    ArrayLiteral,
    Expression,
    Identifier,
    InlineSequenceData,
    Invocation,
    Literal,
    LoadTabularData,
    MapLiteral,
)
from .graph import Node, is_scalar
from .model import Annotated, Annotation, AnnotationKind, Declaration, DistributionAssignment, Statement
from .patterns import composition_expression
from .planner import is_fixed_parameter, secondary_slots
from .walker import WalkOrder, walk

logger = logging.getLogger(__name__)


class StatementEmitter:
    """
    Emits statements into context.model, dependencies first.

    The emitter keeps no state of its own: everything lives in the
    context, so a node that already reached a terminal state in an
    earlier phase is never built again.
    """

    def __init__(self, context: DecompilationContext):
        self.context = context
        self.config = context.config

    def emit(self, node: Node) -> None:
        walk([node], self._visit, order=WalkOrder.POST, children=self._dependencies)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _visit(self, node: Node) -> None:
        context = self.context
        if context.is_terminal(node):
            return
        strategy = context.strategy(node)
        if strategy in (Strategy.INLINE, Strategy.SUPPRESS):
            return
        statement = self._build(node, strategy)
        context.mark_emitted(node, statement)
        logger.debug("Emitted %s (%s)", statement.identifier, strategy.value)

    def _dependencies(self, node: Node) -> List[Node]:
        context = self.context
        if context.is_terminal(node):
            return []

        strategy = context.strategy(node)
        if strategy in (Strategy.COMPOSITION, Strategy.SUPPRESS):
            deps: List[Node] = []
        elif strategy is Strategy.DISTRIBUTION:
            deps = []
            source = self._distribution_source(node)
            if source is not None:
                deps.append(source)
            carried = set(secondary_slots(node, self.config))
            deps.extend(child for slot, child in node.child_slots() if slot in carried)
        else:
            skip = self._skipped_slots(node)
            deps = [child for slot, child in node.child_slots() if slot not in skip]

        for calibration in context.calibrations.get(node, ()):
            for key in ("taxonset", "distribution"):
                slot = self.config.calibration_slots.get(key)
                partner = calibration.slots.get(slot) if slot else None
                if isinstance(partner, Node):
                    deps.append(partner)
        return deps

    def _skipped_slots(self, node: Node) -> Set[str]:
        """A main distribution omits its primary slot."""
        if node in self.context.distribution_targets:
            return {self.config.primary_slot(node.type_name)}
        return set()

    def _distribution_source(self, target: Node) -> Optional[Node]:
        main = self.context.main_distribution[target]
        wrapper_slot = self.config.wrapper_slots.get(main.type_name)
        if wrapper_slot is None:
            return main
        inner = main.slots.get(wrapper_slot)
        return inner if isinstance(inner, Node) else None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _build(self, node: Node, strategy: Strategy) -> Statement:
        identifier = self.context.identifier(node)
        if strategy is Strategy.DATA:
            return self._data_statement(node, identifier)
        if strategy is Strategy.COMPOSITION:
            return DistributionAssignment(node.type_name, identifier,
                                          composition_expression(node, self.config))
        if strategy is Strategy.DISTRIBUTION:
            return self._distribution_statement(node, identifier)
        if is_fixed_parameter(node, self.context):
            return Declaration(node.type_name, identifier, self._parameter_literal(node))
        return Declaration(node.type_name, identifier,
                           Invocation(node.type_name, self._arguments(node, self._skipped_slots(node))))

    def _distribution_statement(self, target: Node, identifier: str) -> DistributionAssignment:
        context = self.context
        main = context.main_distribution[target]
        source = self._distribution_source(target)
        if source is None:
            raise InputDefectError(
                f"Wrapper distribution has no '{self.config.wrapper_slots[main.type_name]}' slot",
                main,
            )

        if target in context.invocation_targets:
            inner = self._inline_expression(source)
            context.mark_inlined(source)
            carried = []
            for slot in secondary_slots(target, self.config):
                value = self._slot_expression(target, slot, target.slots[slot])
                if value is not None:
                    carried.append(Argument(slot, value))
            expression: Expression = Invocation(inner.type_name, list(inner.arguments) + carried)
        else:
            expression = Identifier(context.identifier(source))
            dropped = secondary_slots(target, self.config)
            if dropped:
                context.add_diagnostic(
                    f"{identifier}: inputs {', '.join(dropped)} not carried, "
                    f"distribution {context.identifier(source)} is shared"
                )
        return DistributionAssignment(target.type_name, identifier, expression)

    def _data_statement(self, node: Node, identifier: str) -> Annotated:
        config = self.config
        context = self.context
        sequences = node.slots.get(config.sequence_slot)
        file_name = node.slots.get(config.file_slot)
        data_type = node.slots.get(config.data_type_slot)

        skip = {config.sequence_slot, config.file_slot}
        if isinstance(data_type, str):
            skip.add(config.data_type_slot)
        else:
            data_type = config.default_data_type

        inlined = self._sequences_inlined(sequences)
        if not inlined:
            skip.discard(config.sequence_slot)

        if isinstance(file_name, str) and file_name:
            self._consume_sequences(sequences)
            expression: Expression = LoadTabularData(
                [Argument("file", Literal(file_name))] + self._arguments(node, skip)
            )
        elif isinstance(sequences, list) and sequences and inlined:
            taxa = self._taxa(node, sequences)
            self._consume_sequences(sequences)
            typed = []
            if data_type != config.default_data_type:
                typed.append(Argument("dataType", Literal(data_type)))
            extras = self._arguments(node, skip)

            if context.data_writer is None or self._fits_inline(taxa):
                entries = {taxon: Literal(sequence) for taxon, sequence in taxa}
                expression = InlineSequenceData(
                    [Argument("sequences", MapLiteral(entries))] + typed + extras
                )
            else:
                path = context.data_writer.write(identifier, taxa, data_type)
                context.data_files.append(path)
                expression = LoadTabularData([Argument("file", Literal(path))] + typed + extras)
        else:
            expression = Invocation(node.type_name, self._arguments(node, set()))

        declaration = Declaration(node.type_name, identifier, expression)
        return Annotated((Annotation(AnnotationKind.DATA),), declaration)

    def _fits_inline(self, taxa: Sequence[Tuple[str, str]]) -> bool:
        sites = max((len(sequence) for _, sequence in taxa), default=0)
        return (len(taxa) <= self.config.inline_taxa_threshold
                and sites <= self.config.inline_length_threshold)

    def _taxa(self, node: Node, sequences: list) -> List[Tuple[str, str]]:
        taxon_slot = self.config.sequence_taxon_slot
        data_slot = self.config.sequence_data_slot
        taxa: List[Tuple[str, str]] = []
        seen = set()
        for sequence in sequences:
            if not isinstance(sequence, Node):
                raise InputDefectError(f"'{self.config.sequence_slot}' holds a non-node value", node)
            taxon = sequence.slots.get(taxon_slot)
            data = sequence.slots.get(data_slot)
            if not isinstance(taxon, str) or not taxon:
                raise InputDefectError(f"Sequence has no '{taxon_slot}' name", sequence)
            if not isinstance(data, str):
                raise InputDefectError(f"Sequence has no '{data_slot}' string", sequence)
            if taxon in seen:
                raise InputDefectError(f"Duplicate taxon '{taxon}'", node)
            seen.add(taxon)
            taxa.append((taxon, data))
        return taxa

    def _sequences_inlined(self, sequences) -> bool:
        """False when some sequence has a statement of its own and must be referenced."""
        if not isinstance(sequences, list):
            return True
        return all(self.context.strategy(s) is Strategy.INLINE
                   for s in sequences if isinstance(s, Node))

    def _consume_sequences(self, sequences) -> None:
        if not isinstance(sequences, list):
            return
        for sequence in sequences:
            if (isinstance(sequence, Node)
                    and self.context.strategy(sequence) is Strategy.INLINE
                    and not self.context.is_terminal(sequence)):
                self.context.mark_inlined(sequence)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _inline_expression(self, node: Node) -> Expression:
        if is_fixed_parameter(node, self.context):
            return self._parameter_literal(node)
        return Invocation(node.type_name, self._arguments(node, self._skipped_slots(node)))

    def _parameter_literal(self, node: Node) -> Expression:
        values = node.slots.get(self.config.value_slot)
        if isinstance(values, list):
            if len(values) == 1:
                values = values[0]
            else:
                return ArrayLiteral([self._scalar(node, v) for v in values])
        return self._scalar(node, values)

    def _scalar(self, node: Node, value) -> Literal:
        if not is_scalar(value):
            raise InputDefectError(f"Parameter value {value!r} is not a literal", node)
        return self._literal(node, value)

    def _literal(self, node: Node, value) -> Literal:
        if isinstance(value, float) and not math.isfinite(value):
            raise InputDefectError(f"Non-finite number {value!r} has no literal form", node)
        return Literal(value)

    def _arguments(self, node: Node, skip: Set[str]) -> List[Argument]:
        arguments = []
        for slot, value in node.slots.items():
            if slot in skip or value is None:
                continue
            if isinstance(value, list) and not value:
                continue
            expression = self._slot_expression(node, slot, value)
            if expression is not None:
                arguments.append(Argument(slot, expression))
        return arguments

    def _slot_expression(self, parent: Node, slot: str, value) -> Optional[Expression]:
        if isinstance(value, Node):
            return self._child_expression(parent, slot, value)
        if isinstance(value, list):
            elements = [self._slot_expression(parent, slot, item) for item in value]
            elements = [e for e in elements if e is not None]
            return ArrayLiteral(elements) if elements else None
        if is_scalar(value):
            return self._literal(parent, value)
        if value is None:
            return None
        raise InputDefectError(
            f"Unsupported value of type {type(value).__name__} in slot '{slot}'", parent
        )

    def _child_expression(self, parent: Node, slot: str, child: Node) -> Optional[Expression]:
        context = self.context
        strategy = context.strategy(child)
        if strategy is Strategy.INLINE:
            expression = self._inline_expression(child)
            context.mark_inlined(child)
            return expression
        if strategy is Strategy.SUPPRESS:
            if context.suppression.get(child) is SuppressionReason.SUBSUMED:
                context.add_diagnostic(
                    f"{context.identifier(parent)}.{slot}: dropped reference to "
                    f"unwrapped {context.identifier(child)}"
                )
            else:
                logger.debug("%s.%s: dropped machinery reference %s",
                             context.identifier(parent), slot, context.identifier(child))
            return None
        return Identifier(context.identifier(child))
