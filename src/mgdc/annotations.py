"""
Annotation Synthesizer

Runs after sorting. Derives annotations from the relationships between
already-emitted statements and wraps the annotated statements in place.

    Observed:
        TreeLikelihood treeLikelihood = TreeLikelihood(data=dna, ...);
        => the statement declaring `dna` gains @observed(data=dna)

    Calibration:
        MRCAPrior cal = MRCAPrior(tree=tree, taxonset=ts, distr=d, ...);
        => the statement declaring `tree` gains
           @calibration(taxonset=ts, distribution=d[, leaf=true | monophyletic=true])

ARCHITECTURAL RULE:
    Statements are only wrapped, never created, deleted or reordered.
    An annotation equal to one already present is not added again, and a
    statement carries at most one @observed.
"""

import logging
from typing import Dict, Iterator, Optional

from .config import DecompilerConfig
from .context import DecompilationContext, Phase
from .errors import NodeStateError
from .expressions import Expression, Identifier, Invocation, Literal, child_expressions
from .model import Annotated, Annotation, AnnotationKind, DecompiledModel, annotations_of, statement_expression

logger = logging.getLogger(__name__)


def _invocations(expr: Expression) -> Iterator[Invocation]:
    stack = [expr]
    while stack:
        current = stack.pop()
        if isinstance(current, Invocation):
            yield current
        stack.extend(reversed(list(child_expressions(current))))


def _is_true(expr: Optional[Expression]) -> bool:
    return isinstance(expr, Literal) and expr.value is True


def calibration_annotation(invocation: Invocation, config: DecompilerConfig) -> Annotation:
    """Build @calibration from the arguments of a calibration invocation."""
    slots = config.calibration_slots
    parameters: Dict[str, Expression] = {}
    for key in ("taxonset", "distribution"):
        value = invocation.argument(slots.get(key, key))
        if value is not None:
            parameters[key] = value
    leaf = _is_true(invocation.argument(slots.get("leaf", "leaf")))
    if leaf:
        parameters["leaf"] = Literal(True)
    elif _is_true(invocation.argument(slots.get("monophyletic", "monophyletic"))):
        parameters["monophyletic"] = Literal(True)
    return Annotation(AnnotationKind.CALIBRATION, parameters)


def _attach(model: DecompiledModel, identifier: str, annotation: Annotation) -> bool:
    index = model.index_of(identifier)
    if index is None:
        logger.debug("No statement declares %s, @%s skipped", identifier, annotation.kind.value)
        return False
    statement = model.statements[index]
    existing = annotations_of(statement)
    if annotation in existing:
        return False
    if annotation.kind is AnnotationKind.OBSERVED and any(
            a.kind is AnnotationKind.OBSERVED for a in existing):
        return False
    model.replace_statement(index, Annotated((annotation,), statement))
    logger.debug("@%s attached to %s", annotation.kind.value, identifier)
    return True


def synthesize_annotations(model: DecompiledModel, config: DecompilerConfig) -> int:
    """
    Attach @observed and @calibration annotations.

    Returns:
        Number of annotations attached by this call (0 on a second run)
    """
    tree_slot = config.calibration_slots.get("tree", "tree")
    attached = 0

    for statement in list(model.statements):
        for invocation in _invocations(statement_expression(statement)):
            data_slot = config.likelihood_types.get(invocation.type_name)
            if data_slot is not None:
                data = invocation.argument(data_slot)
                if isinstance(data, Identifier):
                    observed = Annotation(AnnotationKind.OBSERVED, {"data": data})
                    attached += _attach(model, data.name, observed)

            if invocation.type_name in config.calibration_types:
                tree = invocation.argument(tree_slot)
                if isinstance(tree, Identifier):
                    annotation = calibration_annotation(invocation, config)
                    attached += _attach(model, tree.name, annotation)

    logger.info("Attached %d annotations", attached)
    return attached


class AnnotationSynthesisPhase(Phase):
    name = "Annotation Synthesis"
    description = "Wraps statements in @observed and @calibration; freezes the model"

    def __init__(self):
        self._order = []

    def run(self, context: DecompilationContext) -> None:
        model = context.model
        self._order = [s.identifier for s in model.statements]
        synthesize_annotations(model, context.config)
        model.freeze()

    def validate(self, context: DecompilationContext) -> None:
        order = [s.identifier for s in context.model.statements]
        if order != self._order:
            raise NodeStateError("Annotation synthesis changed the statement order")
