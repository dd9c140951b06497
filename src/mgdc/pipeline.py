"""
Pipeline Driver

Runs the decompilation phases, strictly in sequence, over one shared
DecompilationContext:

    Identifier Normalization -> Discovery -> Pattern Detection
    -> Emission Planning -> Data -> Composition -> Distribution
    -> Remaining Nodes -> Dependency Sorting -> Annotation Synthesis

Every phase is timed and logged at INFO. Any exception raised by a phase
(or by its validate() check) aborts the run with a PipelineError that
names the phase and the phases completed before it. No partial model is
returned.

Usage:
    result = decompile(mcmc)
    print(render_model(result.model))
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .annotations import AnnotationSynthesisPhase
from .config import DecompilerConfig
from .context import DecompilationContext, NodeState, Phase
from .datafiles import SequenceFileWriter
from .errors import NodeStateError, PipelineError
from .extractors import (
    CompositionExtractionPhase,
    DataExtractionPhase,
    DistributionExtractionPhase,
    RemainingNodesPhase,
)
from .graph import Node
from .model import DecompiledModel
from .normalizer import normalize_identifiers
from .patterns import PatternDetector, default_detectors
from .planner import EmissionPlanningPhase
from .sorter import DependencySortingPhase
from .walker import WalkOrder, walk

logger = logging.getLogger(__name__)


class IdentifierNormalizationPhase(Phase):
    name = "Identifier Normalization"
    description = "Makes every reachable node name present, legal and unique"

    def run(self, context: DecompilationContext) -> None:
        report = normalize_identifiers(context.roots)
        for node, old, new in report.renames:
            logger.debug("%s: %r -> %r", node.type_name, old, new)


class DiscoveryPhase(Phase):
    """
    Visits every reachable node once, in discovery order.

    Assigns identifiers and records, for each node, the parents that
    reference it (one entry per referencing slot, so a node referenced
    from two slots of the same parent counts twice).
    """

    name = "Discovery"
    description = "Discovers reachable nodes and assigns identifiers"

    def run(self, context: DecompilationContext) -> None:
        def visit(node: Node) -> None:
            context.discover(node)
            context.symbols.generate(node)

        walk(context.roots, visit, order=WalkOrder.PRE)

        for node in context.nodes:
            for _, child in node.child_slots():
                context.referrers[child].append(node)
        logger.info("Discovered %d nodes", len(context.nodes))

    def validate(self, context: DecompilationContext) -> None:
        if len(context.symbols) != len(context.nodes):
            raise NodeStateError("Discovered nodes and identifiers differ in number")


class PatternDetectionPhase(Phase):
    name = "Pattern Detection"
    description = "Flags nodes whose statement must be synthesized"

    def __init__(self, detectors: Sequence[PatternDetector]):
        self.detectors = list(detectors)

    def run(self, context: DecompilationContext) -> None:
        for detector in self.detectors:
            flagged = detector.detect(context.nodes)
            logger.info("%s detector flagged %d nodes", detector.name, len(flagged))
            context.claimed.update(flagged)


@dataclass
class DecompilationResult:
    """
    Outcome of one successful run.

    Properties:
        model: Frozen DecompiledModel
        diagnostics: Non-fatal findings (cycles, dropped references)
        timings: Phase name -> seconds
        node_states: Identifier -> terminal NodeState of its node
        data_files: Paths written by the data side channel
    """

    model: DecompiledModel
    diagnostics: List[str] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)
    node_states: Dict[str, NodeState] = field(default_factory=dict)
    data_files: List[str] = field(default_factory=list)


class Decompiler:
    """
    Configured driver. Reusable: every decompile() call gets a fresh
    context, model and data-file namespace.
    """

    def __init__(self, config: Optional[DecompilerConfig] = None,
                 detectors: Optional[Sequence[PatternDetector]] = None):
        self.config = config or DecompilerConfig()
        self.detectors = list(detectors) if detectors is not None else default_detectors(self.config)

    def phases(self) -> List[Phase]:
        return [
            IdentifierNormalizationPhase(),
            DiscoveryPhase(),
            PatternDetectionPhase(self.detectors),
            EmissionPlanningPhase(),
            DataExtractionPhase(),
            CompositionExtractionPhase(),
            DistributionExtractionPhase(),
            RemainingNodesPhase(),
            DependencySortingPhase(),
            AnnotationSynthesisPhase(),
        ]

    def _data_writer(self) -> Optional[SequenceFileWriter]:
        if not self.config.write_data_files:
            return None
        return SequenceFileWriter(self.config.data_dir, self.config.data_file_extension)

    def decompile(self, root: Node, auxiliary: Iterable[Optional[Node]] = ()) -> DecompilationResult:
        """
        Decompile the graph reachable from `root` and `auxiliary`.

        Raises:
            PipelineError: a phase failed (the cause is chained)
        """
        roots = [root] + [node for node in auxiliary if node is not None]
        context = DecompilationContext(roots=roots, config=self.config,
                                       data_writer=self._data_writer())
        timings: Dict[str, float] = {}
        completed: List[str] = []

        for phase in self.phases():
            logger.info("Phase %s: started", phase.name)
            start = time.perf_counter()
            try:
                phase.run(context)
                phase.validate(context)
            except Exception as exc:
                logger.error("Phase %s failed: %s", phase.name, exc)
                raise PipelineError(phase.name, completed, exc) from exc
            timings[phase.name] = time.perf_counter() - start
            completed.append(phase.name)
            logger.info("Phase %s: done in %.4fs", phase.name, timings[phase.name])

        return DecompilationResult(
            model=context.model,
            diagnostics=list(context.diagnostics),
            timings=timings,
            node_states=context.state_summary(),
            data_files=list(context.data_files),
        )


def decompile(root: Node, auxiliary: Iterable[Optional[Node]] = (),
              config: Optional[DecompilerConfig] = None) -> DecompilationResult:
    """Convenience wrapper around Decompiler(config).decompile(...)."""
    return Decompiler(config).decompile(root, auxiliary)
