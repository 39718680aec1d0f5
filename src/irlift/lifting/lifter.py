"""IR to expression tree lifter.

Translates the value returned by a straight-line function into a single
expression tree. Each IR value maps to exactly one node; children are
built first and combined through the :class:`AstContext` builders.

Two traversal strategies share the same per-value logic:

- recursive: plain recursive descent, one Python frame per nesting level
- worklist: explicit post-order stack, unbounded by the recursion limit

Both visit operands in the same order and fail at the same point. With
``memoize`` enabled, a value referenced several times is translated once
per conversion; the result is the same tree because the context interns
nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from irlift.ast.context import AstContext, AstError, UnknownVariableError
from irlift.ast.nodes import AstNode
from irlift.config import LiftConfig
from irlift.ir.base import (
    Argument,
    CallInstruction,
    ComparisonInstruction,
    ConstantInt,
    Instruction,
    IRError,
    IRValue,
    Module,
    Opcode,
    Predicate,
)
from irlift.lifting.base import LiftingError
from irlift.utils.logging import get_logger

logger = get_logger(__name__)


# The only callee translated: byte swap intrinsics (llvm.bswap.i16, .i32, ...)
BSWAP_INTRINSIC = "llvm.bswap.i"

# Opcode -> AstContext builder, no special cases
BINARY_BUILDERS = {
    Opcode.ADD: "bvadd",
    Opcode.SUB: "bvsub",
    Opcode.MUL: "bvmul",
    Opcode.SDIV: "bvsdiv",
    Opcode.UDIV: "bvudiv",
    Opcode.SREM: "bvsrem",
    Opcode.UREM: "bvurem",
    Opcode.LSHR: "bvlshr",
    Opcode.ASHR: "bvashr",
    Opcode.SHL: "bvshl",
}

# LLVM uses one opcode for the bitwise and the logical connective
CONNECTIVE_BUILDERS = {
    Opcode.AND: ("land", "bvand"),
    Opcode.OR: ("lor", "bvor"),
    Opcode.XOR: ("lxor", "bvxor"),
}

PREDICATE_BUILDERS = {
    Predicate.EQ: "equal",
    Predicate.NE: "distinct",
    Predicate.UGE: "bvuge",
    Predicate.UGT: "bvugt",
    Predicate.ULE: "bvule",
    Predicate.ULT: "bvult",
    Predicate.SGE: "bvsge",
    Predicate.SGT: "bvsgt",
    Predicate.SLE: "bvsle",
    Predicate.SLT: "bvslt",
}

UNARY_OPCODES = (Opcode.SEXT, Opcode.ZEXT, Opcode.TRUNC)


@dataclass
class _Frame:
    """A pending value in the worklist traversal."""

    value: IRValue
    operands: tuple[IRValue, ...]
    nodes: list[AstNode] = field(default_factory=list)


class IRToAstLifter:
    """Lifts a straight-line IR function into an expression tree.

    Args:
        ctx: Expression context used to build nodes and resolve argument names
        config: Traversal and caching options
    """

    def __init__(self, ctx: AstContext, config: Optional[LiftConfig] = None):
        self.ctx = ctx
        self.config = config or LiftConfig()
        self._cache: dict[IRValue, AstNode] = {}

    def convert(self, module: Module, function_name: str) -> AstNode:
        """Convert the value returned by ``function_name``.

        Args:
            module: Module containing the function
            function_name: Name of the function to lift

        Returns:
            Root node equivalent to the returned value
        """
        function = module.get_function(function_name)
        if function is None or function.is_declaration:
            raise LiftingError(f"Function not found: {function_name}", function=function_name)

        try:
            terminator = function.entry_block.terminator
        except IRError as e:
            raise LiftingError(str(e), function=function_name) from e

        logger.debug(
            f"Lifting {function_name} ({self.config.traversal}, memoize={self.config.memoize})"
        )
        self._cache = {}
        try:
            if self.config.traversal == "worklist":
                root = self._convert_worklist(terminator)
            else:
                root = self.do_convert(terminator)
        except LiftingError as e:
            if e.function is None:
                e.function = function_name
            logger.debug(f"Lifting {function_name} failed: {e}")
            raise
        except RecursionError as e:
            raise LiftingError(
                f"Operand chain of {function_name} is too deep for recursive lifting; "
                "use the worklist traversal",
                function=function_name,
            ) from e
        finally:
            self._cache = {}

        logger.debug(f"Lifted {function_name}: context holds {self.ctx.num_nodes} nodes")
        return root

    def do_convert(self, value: IRValue) -> AstNode:
        """Translate ``value`` and everything it depends on."""
        if self.config.memoize and value in self._cache:
            return self._cache[value]

        operands = self._operands(value)
        nodes = [self.do_convert(op) for op in operands]
        node = self._build(value, nodes)

        if self.config.memoize:
            self._cache[value] = node
        return node

    def _convert_worklist(self, root: IRValue) -> AstNode:
        stack = [_Frame(root, self._operands(root))]
        while True:
            frame = stack[-1]
            if len(frame.nodes) < len(frame.operands):
                child = frame.operands[len(frame.nodes)]
                if self.config.memoize and child in self._cache:
                    frame.nodes.append(self._cache[child])
                else:
                    stack.append(_Frame(child, self._operands(child)))
                continue

            node = self._build(frame.value, frame.nodes)
            if self.config.memoize:
                self._cache[frame.value] = node
            stack.pop()
            if not stack:
                return node
            stack[-1].nodes.append(node)

    # ------------------------------------------------------------------
    # Per-value logic

    def _operands(self, value: IRValue) -> tuple[IRValue, ...]:
        """Operands of ``value`` to translate, in translation order.

        Rejects unsupported shapes before any operand is translated.
        """
        if isinstance(value, CallInstruction):
            if BSWAP_INTRINSIC in value.callee:
                return (self._operand(value, 0),)
            raise LiftingError(f"Call not supported: @{value.callee}", value=value)

        if isinstance(value, Instruction):
            opcode = value.opcode
            if opcode in BINARY_BUILDERS or opcode in CONNECTIVE_BUILDERS:
                return (self._operand(value, 0), self._operand(value, 1))
            if opcode == Opcode.ICMP:
                if not isinstance(value, ComparisonInstruction):
                    raise LiftingError("Comparison without predicate not supported", value=value)
                return (self._operand(value, 0), self._operand(value, 1))
            if opcode in UNARY_OPCODES:
                return (self._operand(value, 0),)
            if opcode == Opcode.SELECT:
                return (
                    self._operand(value, 0),
                    self._operand(value, 1),
                    self._operand(value, 2),
                )
            if opcode == Opcode.RET:
                if value.num_operands == 0:
                    raise LiftingError("Return without value not supported", value=value)
                return (value.operands[0],)
            raise LiftingError(f"Instruction not supported: {value.opcode_name}", value=value)

        if isinstance(value, (ConstantInt, Argument)):
            return ()

        raise LiftingError(f"Value not supported: {value!r}", value=value)

    def _build(self, value: IRValue, nodes: list[AstNode]) -> AstNode:
        """Combine the translated operands of ``value`` into its node.

        Context contract violations are reported as translation failures of
        ``value``; unknown argument names propagate unchanged.
        """
        try:
            return self._build_node(value, nodes)
        except UnknownVariableError:
            raise
        except AstError as e:
            raise LiftingError(f"{e} (in {value!r})", value=value) from e

    def _as_bitvector(self, node: AstNode) -> AstNode:
        # i1 results of comparisons are logical; reuse them as a 1-bit vector
        if self.ctx.is_logical(node):
            return self.ctx.ite(node, self.ctx.bvtrue(), self.ctx.bvfalse())
        return node

    def _build_node(self, value: IRValue, nodes: list[AstNode]) -> AstNode:
        ctx = self.ctx
        to_bv = self._as_bitvector

        if isinstance(value, CallInstruction):
            return ctx.bswap(nodes[0])

        if isinstance(value, Instruction):
            opcode = value.opcode

            if opcode in BINARY_BUILDERS:
                return getattr(ctx, BINARY_BUILDERS[opcode])(to_bv(nodes[0]), to_bv(nodes[1]))

            if opcode in CONNECTIVE_BUILDERS:
                logical, bitwise = CONNECTIVE_BUILDERS[opcode]
                lhs, rhs = nodes
                if ctx.is_logical(lhs) and ctx.is_logical(rhs):
                    return ctx.ite(getattr(ctx, logical)(lhs, rhs), ctx.bvtrue(), ctx.bvfalse())
                return getattr(ctx, bitwise)(to_bv(lhs), to_bv(rhs))

            if opcode == Opcode.ICMP:
                builder = PREDICATE_BUILDERS.get(value.predicate)
                if builder is None:
                    raise LiftingError(
                        f"Predicate not supported: {value.predicate_name or '<none>'}",
                        value=value,
                    )
                lhs, rhs = nodes
                if builder not in ("equal", "distinct") or ctx.is_logical(lhs) != ctx.is_logical(rhs):
                    lhs, rhs = to_bv(lhs), to_bv(rhs)
                return getattr(ctx, builder)(lhs, rhs)

            if opcode == Opcode.SEXT:
                delta = self._width(value) - self._width(value.operands[0])
                return ctx.sx(delta, to_bv(nodes[0]))

            if opcode == Opcode.ZEXT:
                delta = self._width(value) - self._width(value.operands[0])
                return ctx.zx(delta, to_bv(nodes[0]))

            if opcode == Opcode.TRUNC:
                return ctx.extract(self._width(value) - 1, 0, to_bv(nodes[0]))

            if opcode == Opcode.SELECT:
                cond, then, other = nodes
                # An optimizer may have folded the comparison into a raw i1 constant
                if not ctx.is_logical(cond):
                    cond = ctx.equal(cond, ctx.bvtrue())
                if ctx.is_logical(then) != ctx.is_logical(other):
                    then, other = to_bv(then), to_bv(other)
                return ctx.ite(cond, then, other)

            # RET
            return nodes[0]

        if isinstance(value, ConstantInt):
            return ctx.bv(value.value, value.bit_width)

        # Argument; unknown names fail inside the context
        return ctx.get_variable_node(value.name)

    @staticmethod
    def _operand(instr: Instruction, idx: int) -> IRValue:
        try:
            return instr.operand(idx)
        except IRError as e:
            raise LiftingError(str(e), value=instr) from e

    @staticmethod
    def _width(value: IRValue) -> int:
        try:
            return value.type.bit_width
        except IRError as e:
            raise LiftingError(f"{e} (in {value!r})", value=value) from e
