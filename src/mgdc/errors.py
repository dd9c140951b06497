"""
Error taxonomy for the decompiler.

    InputDefectError        the source graph is malformed (fatal)
    UnknownAnnotationError  annotation kind outside the recognized set (fatal)
    DataExtractionError     writing an external data file failed (fatal)
    PipelineError           a phase failed; carries phase name and progress

Residual reference cycles are NOT errors. The sorter recovers from them
locally and reports them as diagnostics.
"""

from typing import Any, List, Optional, Sequence


class DecompilerError(Exception):
    """Base class for every error raised by this package."""
    pass


class InputDefectError(DecompilerError):
    """Raised when a node lacks the naming or type information it needs."""

    def __init__(self, message: str, node: Any = None):
        self.node = node
        if node is not None:
            message = f"{message} (node: {node!r})"
        super().__init__(message)


class UnknownAnnotationError(DecompilerError, ValueError):
    """Raised when an annotation is built with an unrecognized kind."""
    pass


class DataExtractionError(DecompilerError):
    """Raised when an inline-data node cannot be written to its data file."""

    def __init__(self, path: str, identifier: str, reason: str = ""):
        self.path = path
        self.identifier = identifier
        message = f"Failed to write data file '{path}' for '{identifier}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NodeStateError(DecompilerError):
    """Raised on an illegal node state transition (e.g. emitted twice)."""
    pass


class SymbolConflictError(DecompilerError):
    """Raised when an identifier is claimed by two different nodes."""
    pass


class ModelFrozenError(DecompilerError):
    """Raised when a finished model is mutated."""
    pass


class ConfigError(DecompilerError):
    """Raised for malformed decompiler configuration."""
    pass


class PipelineError(DecompilerError):
    """
    Raised by the driver when a phase fails.

    Properties:
        phase_name: Name of the failing phase
        completed_phases: Phases that finished before the failure
        cause: The original exception (also chained as __cause__)
    """

    def __init__(self, phase_name: str, completed_phases: Sequence[str],
                 cause: Optional[BaseException] = None):
        self.phase_name = phase_name
        self.completed_phases: List[str] = list(completed_phases)
        self.cause = cause
        done = ", ".join(self.completed_phases) or "none"
        super().__init__(
            f"Phase '{phase_name}' failed after [{done}]: {cause}"
        )
