"""
Source Graph Objects

Defines the input side of the decompiler: the model object graph.

    - Nodes (identity-bearing vertices)
    - Slots (named edges to scalars, child nodes, or lists of either)
    - Categories (coarse node classification)

ARCHITECTURAL RULE:
    Nodes compare by IDENTITY, never by value.
    Two structurally equal parameters are still two parameters.
    Every visited-set and lookup table in this package relies on that.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union


class NodeCategory(Enum):
    """
    Coarse classification of graph nodes.

    OPERATOR and COMPOSITE are machinery: they drive inference or
    merely aggregate other nodes, and have no textual representation.
    """

    PARAMETER = "parameter"
    DISTRIBUTION = "distribution"
    DATA_SOURCE = "data_source"
    TREE = "tree"
    COMPOSITE = "composite"
    OPERATOR = "operator"
    OTHER = "other"


Scalar = Union[int, float, str, bool]
SlotValue = Union[Scalar, "Node", List[Union[Scalar, "Node"]], None]


@dataclass(eq=False)
class Node:
    """
    A vertex of the source model graph.

    Properties:
        type_name:
            Simple type name (e.g. "RealParameter", "YuleModel")
            Used for statement types and fallback identifiers

        category:
            NodeCategory tag

        name:
            Declared name, may be None, empty, or illegal in the
            target language until the normalizer has run

        slots:
            Ordered mapping slot name -> value
            Example: {"x": <Node kappa>, "distr": <Node logNormal>}

        package:
            Optional package the type lives in (drives import lines)

    IMPORTANT:
        eq=False keeps the default identity-based __eq__/__hash__.
    """

    type_name: str
    category: NodeCategory = NodeCategory.OTHER
    name: Optional[str] = None
    slots: Dict[str, SlotValue] = field(default_factory=dict)
    package: Optional[str] = None

    def children(self) -> List["Node"]:
        """Child nodes in slot order, list slots expanded, duplicates kept."""
        return [child for _, child in self.child_slots()]

    def child_slots(self) -> Iterator[Tuple[str, "Node"]]:
        """Yield (slot name, child node) pairs in slot order."""
        for slot_name, value in self.slots.items():
            if isinstance(value, Node):
                yield slot_name, value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield slot_name, item

    def references(self, other: "Node") -> bool:
        """True if any slot of this node points at `other`."""
        return any(child is other for child in self.children())

    def slot(self, slot_name: str, default: SlotValue = None) -> SlotValue:
        return self.slots.get(slot_name, default)

    def __repr__(self) -> str:
        label = self.name if self.name else "<unnamed>"
        return f"Node({self.type_name} {label} @{id(self):#x})"


def is_scalar(value: object) -> bool:
    return isinstance(value, (int, float, str, bool))


def lower_camel(type_name: str) -> str:
    """'IntegerParameter' -> 'integerParameter'."""
    if not type_name:
        return type_name
    return type_name[0].lower() + type_name[1:]
