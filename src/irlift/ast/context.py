"""Expression Context: builds, interns and types expression tree nodes.

Every builder validates its operands (width agreement, logical versus
bitvector operands, parameter ranges) before creating a node, and returns
an already existing node when an identical one was built before. The
context also owns the variable symbol table used to resolve argument
names.
"""

from __future__ import annotations

from typing import Optional

from irlift.ast.nodes import AstNode, NodeKind


class AstError(Exception):
    """Raised when a builder is called outside its contract."""


class UnknownVariableError(AstError):
    """Raised when a variable name is not registered in the context."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"AstContext::get_variable_node(): Variable not found: {name!r}")


class AstContext:
    """Factory and intern table for :class:`AstNode`.

    Interning key is (kind, size, child identities, params, name), which
    is enough because children are themselves interned.

    Example:
        ctx = AstContext()
        a = ctx.new_variable("a", 32)
        b = ctx.new_variable("b", 32)
        assert ctx.bvadd(a, b) is ctx.bvadd(a, b)
    """

    def __init__(self):
        self._nodes: dict[tuple, AstNode] = {}
        self._variables: dict[str, AstNode] = {}

    # ------------------------------------------------------------------
    # Bookkeeping

    @property
    def num_nodes(self) -> int:
        """Number of distinct nodes built so far."""
        return len(self._nodes)

    @property
    def variables(self) -> dict[str, AstNode]:
        return dict(self._variables)

    def _intern(
        self,
        kind: NodeKind,
        size: int,
        children: tuple[AstNode, ...] = (),
        params: tuple[int, ...] = (),
        name: Optional[str] = None,
        logical: bool = False,
    ) -> AstNode:
        key = (kind, size, tuple(id(c) for c in children), params, name)
        node = self._nodes.get(key)
        if node is None:
            node = AstNode(
                kind=kind,
                size=size,
                children=children,
                params=params,
                name=name,
                logical=logical,
            )
            self._nodes[key] = node
        return node

    def is_logical(self, node: AstNode) -> bool:
        """Whether ``node`` is boolean-valued."""
        return node.is_logical

    @staticmethod
    def _require_bv(op: str, *nodes: AstNode) -> None:
        for node in nodes:
            if node.is_logical:
                raise AstError(f"AstContext::{op}(): Operand must be a bitvector, got {node.kind.value}")

    @staticmethod
    def _require_logical(op: str, *nodes: AstNode) -> None:
        for node in nodes:
            if not node.is_logical:
                raise AstError(f"AstContext::{op}(): Operand must be logical, got {node.kind.value}")

    @staticmethod
    def _require_same_size(op: str, a: AstNode, b: AstNode) -> None:
        if a.size != b.size:
            raise AstError(f"AstContext::{op}(): Size mismatch ({a.size} vs {b.size})")

    def _binary_bv(self, kind: NodeKind, a: AstNode, b: AstNode) -> AstNode:
        self._require_bv(kind.value, a, b)
        self._require_same_size(kind.value, a, b)
        return self._intern(kind, a.size, (a, b))

    def _compare(self, kind: NodeKind, a: AstNode, b: AstNode) -> AstNode:
        self._require_bv(kind.value, a, b)
        self._require_same_size(kind.value, a, b)
        return self._intern(kind, 1, (a, b), logical=True)

    def _connective(self, kind: NodeKind, a: AstNode, b: AstNode) -> AstNode:
        self._require_logical(kind.value, a, b)
        return self._intern(kind, 1, (a, b), logical=True)

    # ------------------------------------------------------------------
    # Leaves

    def bv(self, value: int, size: int) -> AstNode:
        """Bitvector literal; ``value`` is reduced modulo ``2**size``."""
        if size < 1:
            raise AstError(f"AstContext::bv(): Invalid size {size}")
        return self._intern(NodeKind.BV, size, params=(value & ((1 << size) - 1),))

    def bvtrue(self) -> AstNode:
        """The 1-bit literal 1."""
        return self.bv(1, 1)

    def bvfalse(self) -> AstNode:
        """The 1-bit literal 0."""
        return self.bv(0, 1)

    def new_variable(self, name: str, size: int) -> AstNode:
        """Register a symbolic variable and return its node.

        Registering an existing name with the same size returns the
        existing node.
        """
        if size < 1:
            raise AstError(f"AstContext::new_variable(): Invalid size {size} for {name!r}")
        existing = self._variables.get(name)
        if existing is not None:
            if existing.size != size:
                raise AstError(
                    f"AstContext::new_variable(): {name!r} already registered "
                    f"with size {existing.size}"
                )
            return existing
        node = self._intern(NodeKind.VARIABLE, size, name=name)
        self._variables[name] = node
        return node

    def get_variable_node(self, name: str) -> AstNode:
        """Return the node of a registered variable."""
        try:
            return self._variables[name]
        except KeyError:
            raise UnknownVariableError(name) from None

    # ------------------------------------------------------------------
    # Bitvector operators

    def bvadd(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVADD, a, b)

    def bvsub(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVSUB, a, b)

    def bvmul(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVMUL, a, b)

    def bvsdiv(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVSDIV, a, b)

    def bvudiv(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVUDIV, a, b)

    def bvsrem(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVSREM, a, b)

    def bvurem(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVUREM, a, b)

    def bvshl(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVSHL, a, b)

    def bvlshr(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVLSHR, a, b)

    def bvashr(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVASHR, a, b)

    def bvand(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVAND, a, b)

    def bvor(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVOR, a, b)

    def bvxor(self, a: AstNode, b: AstNode) -> AstNode:
        return self._binary_bv(NodeKind.BVXOR, a, b)

    def bswap(self, node: AstNode) -> AstNode:
        """Reverse the byte order of ``node``."""
        self._require_bv("bswap", node)
        if node.size % 8 != 0:
            raise AstError(f"AstContext::bswap(): Size {node.size} is not a multiple of 8")
        return self._intern(NodeKind.BSWAP, node.size, (node,))

    # ------------------------------------------------------------------
    # Width changes

    def sx(self, delta: int, node: AstNode) -> AstNode:
        """Sign-extend ``node`` by ``delta`` bits."""
        self._require_bv("sx", node)
        if delta < 0:
            raise AstError(f"AstContext::sx(): Negative extension {delta}")
        return self._intern(NodeKind.SX, node.size + delta, (node,), (delta,))

    def zx(self, delta: int, node: AstNode) -> AstNode:
        """Zero-extend ``node`` by ``delta`` bits."""
        self._require_bv("zx", node)
        if delta < 0:
            raise AstError(f"AstContext::zx(): Negative extension {delta}")
        return self._intern(NodeKind.ZX, node.size + delta, (node,), (delta,))

    def extract(self, high: int, low: int, node: AstNode) -> AstNode:
        """Bits ``[high:low]`` of ``node``, both bounds inclusive."""
        self._require_bv("extract", node)
        if not 0 <= low <= high < node.size:
            raise AstError(
                f"AstContext::extract(): Bounds [{high}:{low}] outside a {node.size}-bit operand"
            )
        return self._intern(NodeKind.EXTRACT, high - low + 1, (node,), (high, low))

    # ------------------------------------------------------------------
    # Logical connectives

    def land(self, a: AstNode, b: AstNode) -> AstNode:
        return self._connective(NodeKind.LAND, a, b)

    def lor(self, a: AstNode, b: AstNode) -> AstNode:
        return self._connective(NodeKind.LOR, a, b)

    def lxor(self, a: AstNode, b: AstNode) -> AstNode:
        return self._connective(NodeKind.LXOR, a, b)

    # ------------------------------------------------------------------
    # Comparisons

    def equal(self, a: AstNode, b: AstNode) -> AstNode:
        if a.is_logical != b.is_logical:
            raise AstError("AstContext::equal(): Cannot compare logical and bitvector operands")
        self._require_same_size("equal", a, b)
        return self._intern(NodeKind.EQUAL, 1, (a, b), logical=True)

    def distinct(self, a: AstNode, b: AstNode) -> AstNode:
        if a.is_logical != b.is_logical:
            raise AstError("AstContext::distinct(): Cannot compare logical and bitvector operands")
        self._require_same_size("distinct", a, b)
        return self._intern(NodeKind.DISTINCT, 1, (a, b), logical=True)

    def bvuge(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVUGE, a, b)

    def bvugt(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVUGT, a, b)

    def bvule(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVULE, a, b)

    def bvult(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVULT, a, b)

    def bvsge(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVSGE, a, b)

    def bvsgt(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVSGT, a, b)

    def bvsle(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVSLE, a, b)

    def bvslt(self, a: AstNode, b: AstNode) -> AstNode:
        return self._compare(NodeKind.BVSLT, a, b)

    # ------------------------------------------------------------------
    # Conditional

    def ite(self, cond: AstNode, then: AstNode, other: AstNode) -> AstNode:
        """``if cond then then else other``; the branches must agree in type and size."""
        self._require_logical("ite", cond)
        if then.is_logical != other.is_logical:
            raise AstError("AstContext::ite(): Branches mix logical and bitvector operands")
        self._require_same_size("ite", then, other)
        return self._intern(NodeKind.ITE, then.size, (cond, then, other), logical=then.is_logical)


