"""Expression tree nodes.

Nodes are immutable and compared by identity. Structural sharing is the
job of :class:`irlift.ast.context.AstContext`, which interns nodes so two
structurally equal requests to the same context yield the same object.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NodeKind(str, Enum):
    """Kinds of expression tree nodes."""

    # Leaves
    BV = "bv"
    VARIABLE = "variable"

    # Bitvector arithmetic
    BVADD = "bvadd"
    BVSUB = "bvsub"
    BVMUL = "bvmul"
    BVSDIV = "bvsdiv"
    BVUDIV = "bvudiv"
    BVSREM = "bvsrem"
    BVUREM = "bvurem"

    # Shifts
    BVSHL = "bvshl"
    BVLSHR = "bvlshr"
    BVASHR = "bvashr"

    # Bitwise
    BVAND = "bvand"
    BVOR = "bvor"
    BVXOR = "bvxor"
    BSWAP = "bswap"

    # Width changes
    SX = "sx"
    ZX = "zx"
    EXTRACT = "extract"

    # Logical connectives
    LAND = "land"
    LOR = "lor"
    LXOR = "lxor"

    # Comparisons
    EQUAL = "equal"
    DISTINCT = "distinct"
    BVUGE = "bvuge"
    BVUGT = "bvugt"
    BVULE = "bvule"
    BVULT = "bvult"
    BVSGE = "bvsge"
    BVSGT = "bvsgt"
    BVSLE = "bvsle"
    BVSLT = "bvslt"

    # Conditional
    ITE = "ite"


@dataclass(frozen=True, eq=False)
class AstNode:
    """A node of the symbolic expression tree.

    Attributes:
        kind: Operation of this node
        size: Bit width of the result (1 for logical nodes)
        children: Operand nodes, in order
        params: Integer parameters (literal value, extension delta, extract bounds)
        name: Variable name for VARIABLE nodes
        logical: Whether the node is boolean-valued rather than a bitvector
    """

    kind: NodeKind
    size: int
    children: tuple["AstNode", ...] = ()
    params: tuple[int, ...] = ()
    name: Optional[str] = None
    logical: bool = False

    @property
    def is_logical(self) -> bool:
        return self.logical

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def value(self) -> int:
        """Literal value of a BV node."""
        if self.kind != NodeKind.BV:
            raise AttributeError(f"{self.kind.value} node has no literal value")
        return self.params[0]

    def __repr__(self) -> str:
        from irlift.ast.printer import to_smt

        return to_smt(self)
