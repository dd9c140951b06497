"""
Emission planning: decide, once, how every discovered node is written.

The plan is a closed tag per node (context.Strategy). Extractors select
nodes by tag; the emitter dispatches on it. Rules, in precedence order:

    1. machinery categories               -> SUPPRESS (machinery)
    2. pattern-claimed nodes              -> COMPOSITION
       data-source nodes                  -> DATA
    3. state nodes sampled from a distribution -> DISTRIBUTION
         wrapper main distribution        -> SUPPRESS (subsumed)
         its inner distribution           -> INLINE (if referenced once)
         direct main distribution         -> INLINE when the target has
                                             secondary slots to carry,
                                             else its own DECLARATION
    4. sequences of a data node           -> INLINE
    5. fixed parameters referenced once   -> INLINE (written as literals)
    6. everything else                    -> DECLARATION
"""

import logging
from typing import List, Optional

from .config import DecompilerConfig
from .context import DecompilationContext, Phase, Strategy, SuppressionReason
from .errors import NodeStateError
from .graph import Node, NodeCategory

logger = logging.getLogger(__name__)


def distribution_target(node: Node, config: DecompilerConfig) -> Optional[Node]:
    """The node a distribution samples, via its primary slot, or None."""
    slot = config.primary_slot(node.type_name)
    if slot is None:
        return None
    target = node.slots.get(slot)
    return target if isinstance(target, Node) else None


def secondary_slots(node: Node, config: DecompilerConfig) -> List[str]:
    """Slots of a state node that travel with its distribution assignment."""
    names = []
    for slot_name, value in node.slots.items():
        if slot_name in config.state_node_skip_slots:
            continue
        if value is None or (isinstance(value, list) and not value):
            continue
        names.append(slot_name)
    return names


def is_fixed_parameter(node: Node, context: DecompilationContext) -> bool:
    """
    A parameter that is never estimated and can be written as a literal.

    A parameter holding child nodes (bounds, shared values) is never a
    literal. Otherwise estimate=False is decisive. Without an estimate
    slot, a parameter is fixed unless it is sampled from a distribution,
    claimed by a pattern, or acted on by an operator.
    """
    config = context.config
    if node.category is not NodeCategory.PARAMETER:
        return False
    if config.value_slot not in node.slots:
        return False
    if node in context.main_distribution or node in context.claimed:
        return False
    if node.children():
        return False
    estimate = node.slots.get(config.estimate_slot)
    if estimate is False:
        return True
    if estimate is True:
        return False
    return not any(parent.category is NodeCategory.OPERATOR
                   for parent in context.referrers.get(node, ()))


def _suppress(context: DecompilationContext, node: Node, reason: SuppressionReason) -> None:
    context.plan[node] = Strategy.SUPPRESS
    context.suppression[node] = reason


def _non_machinery_referrers(context: DecompilationContext, node: Node) -> List[Node]:
    return [parent for parent in context.referrers.get(node, ())
            if not context.config.is_machinery(parent.category)]


def plan_emission(context: DecompilationContext) -> None:
    config = context.config
    plan = context.plan

    for node in context.nodes:
        if config.is_machinery(node.category):
            _suppress(context, node, SuppressionReason.MACHINERY)
        elif node in context.claimed:
            plan[node] = Strategy.COMPOSITION
        elif node.category is NodeCategory.DATA_SOURCE:
            plan[node] = Strategy.DATA

    _plan_distributions(context)
    _plan_calibrations(context)

    for node in context.nodes:
        if plan.get(node) is not Strategy.DATA:
            continue
        sequences = node.slots.get(config.sequence_slot)
        if not isinstance(sequences, list):
            continue
        # all or nothing: one shared sequence keeps every sequence declared
        members = [s for s in sequences if isinstance(s, Node)]
        if all(s not in plan and context.reference_count(s) == 1 for s in members):
            for sequence in members:
                plan[sequence] = Strategy.INLINE

    for node in context.nodes:
        if node in plan or context.reference_count(node) != 1:
            continue
        if not is_fixed_parameter(node, context):
            continue
        parent = context.referrers[node][0]
        if plan.get(parent) in (Strategy.SUPPRESS, Strategy.COMPOSITION):
            continue
        if plan.get(parent) is Strategy.DISTRIBUTION:
            if parent not in context.invocation_targets:
                continue
            slot_names = {slot for slot, child in parent.child_slots() if child is node}
            if not slot_names & set(secondary_slots(parent, config)):
                continue
        plan[node] = Strategy.INLINE

    for node in context.nodes:
        plan.setdefault(node, Strategy.DECLARATION)

    counts = {}
    for strategy in plan.values():
        counts[strategy.value] = counts.get(strategy.value, 0) + 1
    logger.info("Emission plan: %s", ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))


def _plan_distributions(context: DecompilationContext) -> None:
    config = context.config
    plan = context.plan

    for node in context.nodes:
        if node in plan or node.category is not NodeCategory.DISTRIBUTION:
            continue
        if node.type_name in config.calibration_types or node.type_name in config.likelihood_types:
            continue
        target = distribution_target(node, config)
        if target is None or target not in context.states:
            continue
        if not config.is_distribution_target(target.category) or target in plan:
            continue
        context.main_distribution[target] = node
        context.distribution_targets[node] = target
        plan[target] = Strategy.DISTRIBUTION
        logger.debug("%s ~ %s", target.name, node.name)

    for target, main in context.main_distribution.items():
        wrapper_slot = config.wrapper_slots.get(main.type_name)
        has_secondary = bool(secondary_slots(target, config))
        if wrapper_slot is not None:
            _suppress(context, main, SuppressionReason.SUBSUMED)
            inner = main.slots.get(wrapper_slot)
            if (isinstance(inner, Node) and inner not in plan
                    and context.reference_count(inner) == 1):
                plan[inner] = Strategy.INLINE
                context.invocation_targets.add(target)
        elif has_secondary and not _non_machinery_referrers(context, main):
            plan[main] = Strategy.INLINE
            context.invocation_targets.add(target)


def _plan_calibrations(context: DecompilationContext) -> None:
    config = context.config
    tree_slot = config.calibration_slots.get("tree")
    for node in context.nodes:
        if node.type_name not in config.calibration_types or tree_slot is None:
            continue
        tree = node.slots.get(tree_slot)
        if isinstance(tree, Node):
            context.calibrations.setdefault(tree, []).append(node)


class EmissionPlanningPhase(Phase):
    name = "Emission Planning"
    description = "Tags every discovered node with the strategy that will emit it"

    def run(self, context: DecompilationContext) -> None:
        plan_emission(context)

    def validate(self, context: DecompilationContext) -> None:
        missing = [n for n in context.nodes if n not in context.plan]
        if missing:
            raise NodeStateError(f"{len(missing)} nodes left without a strategy")
