"""
Expression System for decompiled statements

Every right-hand side of an emitted statement is an Abstract Syntax Tree,
never a pre-rendered string.

This ensures:
    - Dependency extraction (walk the tree, collect Identifiers)
    - Renderer independence
    - Serialization capability

ARCHITECTURAL RULE:
    Expressions never hold graph nodes.
    A node is referenced only by its identifier (Identifier).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Iterator, List, Union


class Expression:
    """
    Base class for all AST expressions.

    Structure only. Rendering belongs in backends,
    reference analysis belongs in the sorter.
    """
    pass


class LiteralKind(Enum):
    """Literal value kinds of the target language."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"


def infer_literal_kind(value: Union[int, float, str, bool]) -> LiteralKind:
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return LiteralKind.BOOL
    if isinstance(value, int):
        return LiteralKind.INT
    if isinstance(value, float):
        return LiteralKind.FLOAT
    return LiteralKind.STRING


@dataclass(frozen=True)
class Identifier(Expression):
    """
    Back-reference to an already-declared statement.

    Example:
        kappa   (in  HKY(kappa=kappa))
    """

    name: str


@dataclass(frozen=True)
class Literal(Expression):
    """
    A constant value.

    Properties:
        value: int, float, str or bool
        kind: LiteralKind, inferred from value when omitted

    Examples:
        Literal(3)          -> INT
        Literal(0.5)        -> FLOAT
        Literal("ACGT")     -> STRING
        Literal(True)       -> BOOL
    """

    value: Union[int, float, str, bool]
    kind: LiteralKind = None

    def __post_init__(self):
        if self.kind is None:
            object.__setattr__(self, "kind", infer_literal_kind(self.value))
        elif not isinstance(self.kind, LiteralKind):
            object.__setattr__(self, "kind", LiteralKind(self.kind))


@dataclass(frozen=True)
class Argument:
    """A named argument of an invocation: name=value."""

    name: str
    value: Expression


@dataclass(frozen=True)
class Invocation(Expression):
    """
    Nested unnamed construction, emitted inline.

    Example:
        LogNormalDistributionModel(M=1.0, S=1.25)

    Becomes:
        Invocation(
            type_name="LogNormalDistributionModel",
            arguments=[Argument("M", Literal(1.0)), Argument("S", Literal(1.25))]
        )
    """

    type_name: str
    arguments: List[Argument] = field(default_factory=list)

    def argument(self, name: str) -> Union[Expression, None]:
        for arg in self.arguments:
            if arg.name == name:
                return arg.value
        return None


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    """[e1, e2, ...]"""

    elements: List[Expression] = field(default_factory=list)


@dataclass(frozen=True)
class MapLiteral(Expression):
    """
    {key: expr, ...} with insertion order preserved.

    Used for inline sequence data: {human: "ACGT...", chimp: "ACGA..."}
    """

    entries: Dict[str, Expression] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadTabularData(Expression):
    """Built-in: data loaded from an external file, loadTabularData(file="dna.nex")."""

    arguments: List[Argument] = field(default_factory=list)
    function_name: ClassVar[str] = "loadTabularData"


@dataclass(frozen=True)
class InlineSequenceData(Expression):
    """Built-in: data embedded in the statement, inlineSequenceData(sequences={...})."""

    arguments: List[Argument] = field(default_factory=list)
    function_name: ClassVar[str] = "inlineSequenceData"


def child_expressions(expr: Expression) -> Iterator[Expression]:
    """Direct sub-expressions of `expr`, in source order."""
    if isinstance(expr, (Invocation, LoadTabularData, InlineSequenceData)):
        for arg in expr.arguments:
            yield arg.value
    elif isinstance(expr, ArrayLiteral):
        yield from expr.elements
    elif isinstance(expr, MapLiteral):
        yield from expr.entries.values()


def collect_identifiers(expr: Expression) -> List[str]:
    """
    Every Identifier name in the tree, first occurrence order, no duplicates.

    Iterative so deeply nested expressions do not hit the recursion limit.
    """
    names: List[str] = []
    seen = set()
    stack = [expr]
    while stack:
        current = stack.pop()
        if isinstance(current, Identifier):
            if current.name not in seen:
                seen.add(current.name)
                names.append(current.name)
            continue
        stack.extend(reversed(list(child_expressions(current))))
    return names
