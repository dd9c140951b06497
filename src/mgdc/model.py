"""
Decompiled Model Objects

Defines the output side of the decompiler:
    - Statements (Declaration, DistributionAssignment, Annotated)
    - Annotations (derived metadata blocks on statements)
    - SymbolTable (node <-> identifier)
    - DecompiledModel (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about the textual syntax
        - Never hold graph nodes inside statements or expressions
        - Are fully serializable
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .errors import ModelFrozenError, SymbolConflictError, UnknownAnnotationError
from .expressions import Expression
from .graph import Node, lower_camel


class AnnotationKind(Enum):
    """
    The closed set of annotation kinds.

    DATA:        the statement declares observed input data
    OBSERVED:    the data statement is conditioned on by a likelihood
    CALIBRATION: the tree statement carries a clade-age constraint
    """

    DATA = "data"
    OBSERVED = "observed"
    CALIBRATION = "calibration"


@dataclass(frozen=True)
class Annotation:
    """
    A named metadata block: @kind(key=value, ...)

    Properties:
        kind: AnnotationKind (a plain string is accepted and checked)
        parameters: Ordered mapping key -> Expression

    IMPORTANT:
        Unknown kinds raise UnknownAnnotationError.
        Annotations carry obligations for downstream consumers,
        so they are never silently dropped.
    """

    kind: AnnotationKind
    parameters: Dict[str, Expression] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.kind, AnnotationKind):
            try:
                kind = AnnotationKind(self.kind)
            except ValueError:
                allowed = ", ".join(k.value for k in AnnotationKind)
                raise UnknownAnnotationError(
                    f"Unknown annotation kind '{self.kind}' (expected one of: {allowed})"
                ) from None
            object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "parameters", dict(self.parameters))


class Statement:
    """Base class for emitted statements."""

    @property
    def identifier(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Declaration(Statement):
    """
    Plain construction:  Type id = Expr;

    Example:
        HKY hky = HKY(kappa=kappa, frequencies=freqs);
    """

    type_name: str
    name: str
    expression: Expression

    @property
    def identifier(self) -> str:
        return self.name


@dataclass(frozen=True)
class DistributionAssignment(Statement):
    """
    Value drawn from a distribution:  Type id ~ Expr;

    Example:
        RealParameter kappa ~ LogNormalDistributionModel(M=1.0, S=1.25);
    """

    type_name: str
    name: str
    expression: Expression

    @property
    def identifier(self) -> str:
        return self.name


@dataclass(frozen=True)
class Annotated(Statement):
    """
    A statement carrying zero or more annotations.

    Properties:
        annotations: tuple of Annotation, in attachment order
        statement: the wrapped Declaration or DistributionAssignment

    Nested Annotated wrappers are flattened on construction.
    """

    annotations: Tuple[Annotation, ...]
    statement: Statement

    def __post_init__(self):
        annotations = tuple(self.annotations)
        inner = self.statement
        if isinstance(inner, Annotated):
            annotations = inner.annotations + annotations
            inner = inner.statement
        object.__setattr__(self, "annotations", annotations)
        object.__setattr__(self, "statement", inner)

    @property
    def identifier(self) -> str:
        return self.statement.identifier

    def has_kind(self, kind: AnnotationKind) -> bool:
        return any(a.kind == kind for a in self.annotations)


def unwrap(statement: Statement) -> Statement:
    """The Declaration/DistributionAssignment under any annotations."""
    while isinstance(statement, Annotated):
        statement = statement.statement
    return statement


def annotations_of(statement: Statement) -> Tuple[Annotation, ...]:
    if isinstance(statement, Annotated):
        return statement.annotations
    return ()


def statement_expression(statement: Statement) -> Expression:
    return unwrap(statement).expression


class SymbolTable:
    """
    Bijective mapping node <-> identifier, built incrementally.

    Identifier rule (generate):
        1. the node's declared name, if present and free
        2. otherwise the lower-camel type name
        3. on collision: base_2, base_3, ... in first-seen order
    """

    def __init__(self):
        self._by_node: Dict[Node, str] = {}
        self._by_name: Dict[str, Node] = {}

    def __contains__(self, item: Union[Node, str]) -> bool:
        if isinstance(item, Node):
            return item in self._by_node
        return item in self._by_name

    def __len__(self) -> int:
        return len(self._by_node)

    def __iter__(self) -> Iterator[Tuple[Node, str]]:
        return iter(self._by_node.items())

    def assign(self, node: Node, identifier: str) -> str:
        owner = self._by_name.get(identifier)
        if owner is not None and owner is not node:
            raise SymbolConflictError(
                f"Identifier '{identifier}' already belongs to {owner!r}, cannot assign to {node!r}"
            )
        previous = self._by_node.get(node)
        if previous is not None and previous != identifier:
            del self._by_name[previous]
        self._by_node[node] = identifier
        self._by_name[identifier] = node
        return identifier

    def generate(self, node: Node) -> str:
        """Assign (or return the existing) identifier for `node`."""
        existing = self._by_node.get(node)
        if existing is not None:
            return existing
        base = node.name if node.name else lower_camel(node.type_name)
        return self.assign(node, self.unique_name(base))

    def unique_name(self, base: str) -> str:
        candidate = base
        counter = 2
        while candidate in self._by_name:
            candidate = f"{base}_{counter}"
            counter += 1
        return candidate

    def identifier_for(self, node: Node) -> Optional[str]:
        return self._by_node.get(node)

    def node_for(self, identifier: str) -> Optional[Node]:
        return self._by_name.get(identifier)

    def identifiers(self) -> List[str]:
        return list(self._by_name.keys())


@dataclass
class DecompiledModel:
    """
    Root container for the decompilation output.

    Properties:
        statements: Ordered Statement list
        symbols: SymbolTable used to build the statements
        imports: Packages of emitted node types, sorted

    LIFECYCLE:
        - append-only while extractors run
        - replaced wholesale (same length) by the dependency sorter
        - statements wrapped in place by the annotation synthesizer
        - frozen afterwards; every mutator then raises ModelFrozenError
    """

    statements: List[Statement] = field(default_factory=list)
    symbols: SymbolTable = field(default_factory=SymbolTable)
    imports: List[str] = field(default_factory=list)
    frozen: bool = False

    def _check_mutable(self) -> None:
        if self.frozen:
            raise ModelFrozenError("Decompiled model is frozen")

    def add_statement(self, statement: Statement) -> None:
        self._check_mutable()
        self.statements.append(statement)

    def add_import(self, package: str) -> None:
        self._check_mutable()
        if package and package not in self.imports:
            self.imports.append(package)
            self.imports.sort()

    def replace_statements(self, statements: List[Statement]) -> None:
        self._check_mutable()
        self.statements = list(statements)

    def replace_statement(self, index: int, statement: Statement) -> None:
        self._check_mutable()
        self.statements[index] = statement

    def freeze(self) -> None:
        self.frozen = True

    def get_statement(self, identifier: str) -> Optional[Statement]:
        """
        Retrieve a statement by the identifier it declares.

        Returns:
            Statement or None if not found
        """
        for statement in self.statements:
            if statement.identifier == identifier:
                return statement
        return None

    def index_of(self, identifier: str) -> Optional[int]:
        for index, statement in enumerate(self.statements):
            if statement.identifier == identifier:
                return index
        return None
