"""
Identifier Normalizer

Runs before every other phase. Rewrites the declared names of all
reachable nodes so that each one is:
    - present (never None or empty)
    - legal in the target language
    - unique across the whole reachable graph

Renaming rule:
    Missing name     -> lower-camel type name   (RealParameter -> realParameter)
    Illegal chars    -> replaced by "_"         (birthRate.t:dna -> birthRate_t_dna)
    Leading digit    -> "_" prefix              (1kappa -> _1kappa)
    Reserved word    -> "_" suffix              (true -> true_)
    Taken name       -> _2, _3, ... suffix in first-seen order

Only Node.name is touched; slot structure is never altered.
Running the normalizer on its own output changes nothing.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InputDefectError
from .graph import Node, lower_camel
from .walker import reachable_nodes

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ILLEGAL_CHAR_RE = re.compile(r"[^A-Za-z0-9_]")

RESERVED_WORDS = frozenset({"import", "requires", "true", "false", "null"})


def is_legal_identifier(name: Optional[str]) -> bool:
    return bool(name) and bool(IDENTIFIER_RE.match(name)) and name not in RESERVED_WORDS


def sanitize_name(name: str) -> str:
    """Make a non-empty name legal without making it unique."""
    cleaned = _ILLEGAL_CHAR_RE.sub("_", name)
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    if cleaned in RESERVED_WORDS:
        cleaned = cleaned + "_"
    return cleaned


@dataclass
class NormalizationReport:
    """Nodes visited and every rename performed (node, old name, new name)."""

    visited: int = 0
    renames: List[Tuple[Node, Optional[str], str]] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.renames)


def _base_name(node: Node) -> str:
    if node.name:
        return sanitize_name(node.name)
    return sanitize_name(lower_camel(node.type_name))


def normalize_identifiers(roots: Iterable[Optional[Node]]) -> NormalizationReport:
    """
    Normalize the names of every node reachable from `roots`.

    Raises:
        InputDefectError: a reachable node has no type name
    """
    nodes = reachable_nodes(roots)
    report = NormalizationReport(visited=len(nodes))
    taken: Dict[str, Node] = {}

    for node in nodes:
        if not node.type_name:
            raise InputDefectError("Node has no type name to derive an identifier from", node)

        current = node.name
        if is_legal_identifier(current) and current not in taken:
            taken[current] = node
            continue

        base = _base_name(node)
        candidate = base
        counter = 2
        while candidate in taken:
            candidate = f"{base}_{counter}"
            counter += 1

        taken[candidate] = node
        if candidate != current:
            node.name = candidate
            report.renames.append((node, current, candidate))
            logger.debug("Renamed %s: %r -> %r", node.type_name, current, candidate)

    logger.info("Normalized identifiers: %d nodes, %d renamed", report.visited, report.changed)
    return report
