"""Data structures for the source IR graph.

The lifter reads a straight-line LLVM-style computation: typed values
(arguments, integer constants, instruction results) linked by operand
references. Front ends build these objects once and never mutate them
afterwards. Values compare by identity so that a shared operand stays
recognisable when several instructions reference it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union


class IRError(Exception):
    """Raised when the IR graph cannot be built or queried."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


_INT_TYPE_RE = re.compile(r"^i(\d+)$")


@dataclass(frozen=True)
class IRType:
    """Type of an IR value.

    Only integer types carry a width; everything else (pointers, void,
    floating point, aggregates) is kept by name so diagnostics can show it.
    """

    name: str
    width: Optional[int] = None

    @classmethod
    def integer(cls, width: int) -> "IRType":
        """Create an integer type ``iN``."""
        if width < 1:
            raise IRError(f"Invalid integer width: {width}")
        return cls(name=f"i{width}", width=width)

    @classmethod
    def void(cls) -> "IRType":
        return cls(name="void")

    @classmethod
    def parse(cls, text: str) -> "IRType":
        """Parse a textual type such as ``i32`` or ``ptr``."""
        text = text.strip()
        match = _INT_TYPE_RE.match(text)
        if match:
            return cls.integer(int(match.group(1)))
        return cls(name=text)

    @property
    def is_integer(self) -> bool:
        return self.width is not None

    @property
    def bit_width(self) -> int:
        """Integer bit width; non-integer types have none."""
        if self.width is None:
            raise IRError(f"Type {self.name} is not an integer type")
        return self.width

    def __str__(self) -> str:
        return self.name


class Opcode(str, Enum):
    """Instruction opcodes understood by the lifter.

    Values are the LLVM mnemonics. Every other mnemonic maps to UNKNOWN;
    the instruction keeps its original text in ``opcode_name``.
    """

    # Arithmetic
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    SDIV = "sdiv"
    UDIV = "udiv"
    SREM = "srem"
    UREM = "urem"

    # Shifts
    SHL = "shl"
    LSHR = "lshr"
    ASHR = "ashr"

    # Bitwise / logical (LLVM does not tell them apart)
    AND = "and"
    OR = "or"
    XOR = "xor"

    # Comparison
    ICMP = "icmp"

    # Width changes
    SEXT = "sext"
    ZEXT = "zext"
    TRUNC = "trunc"

    # Other
    SELECT = "select"
    CALL = "call"
    RET = "ret"

    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str) -> "Opcode":
        """Map an LLVM mnemonic to an opcode, UNKNOWN if unsupported."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


class Predicate(str, Enum):
    """Integer comparison predicates."""

    EQ = "eq"
    NE = "ne"
    UGT = "ugt"
    UGE = "uge"
    ULT = "ult"
    ULE = "ule"
    SGT = "sgt"
    SGE = "sge"
    SLT = "slt"
    SLE = "sle"

    @classmethod
    def from_name(cls, name: str) -> Optional["Predicate"]:
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(eq=False)
class Argument:
    """A named function parameter. It has no producing instruction."""

    name: str
    type: IRType
    index: int = 0

    def __repr__(self) -> str:
        return f"{self.type} %{self.name}"


@dataclass(eq=False)
class ConstantInt:
    """A fixed-width integer literal.

    ``value`` is the stored bit pattern read as an unsigned integer, so an
    ``i8 -1`` is stored as 255.
    """

    type: IRType
    value: int

    @classmethod
    def of(cls, value: int, width: int) -> "ConstantInt":
        """Create a constant, wrapping ``value`` into ``width`` bits."""
        return cls(type=IRType.integer(width), value=value & ((1 << width) - 1))

    @property
    def bit_width(self) -> int:
        return self.type.bit_width

    def __repr__(self) -> str:
        return f"{self.type} {self.value}"


@dataclass(eq=False)
class Instruction:
    """An instruction: opcode, ordered operands and result type."""

    opcode: Opcode
    operands: tuple["IRValue", ...] = ()
    type: IRType = field(default_factory=IRType.void)
    name: Optional[str] = None
    opcode_name: str = ""

    def __post_init__(self):
        if not self.opcode_name:
            self.opcode_name = self.opcode.value

    def operand(self, idx: int) -> "IRValue":
        """Return operand ``idx``."""
        try:
            return self.operands[idx]
        except IndexError:
            raise IRError(
                f"{self.opcode_name} has {len(self.operands)} operand(s), no operand {idx}"
            ) from None

    @property
    def num_operands(self) -> int:
        return len(self.operands)

    def __repr__(self) -> str:
        parts = [self.opcode_name]
        if self.operands:
            parts.append(", ".join(_operand_ref(op) for op in self.operands))
        text = " ".join(parts)
        if self.name:
            return f"%{self.name} = {text}"
        return text


@dataclass(eq=False, repr=False)
class CallInstruction(Instruction):
    """A call; ``operands`` holds the call arguments only."""

    callee: str = ""

    def __repr__(self) -> str:
        args = ", ".join(_operand_ref(op) for op in self.operands)
        text = f"call {self.type} @{self.callee}({args})"
        if self.name:
            return f"%{self.name} = {text}"
        return text


@dataclass(eq=False, repr=False)
class ComparisonInstruction(Instruction):
    """An integer comparison.

    ``predicate`` is None when the front end met a predicate outside the
    integer set; the raw text stays in ``predicate_name``.
    """

    predicate: Optional[Predicate] = None
    predicate_name: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.predicate_name and self.predicate is not None:
            self.predicate_name = self.predicate.value

    def __repr__(self) -> str:
        args = ", ".join(_operand_ref(op) for op in self.operands)
        text = f"{self.opcode_name} {self.predicate_name} {args}"
        if self.name:
            return f"%{self.name} = {text}"
        return text


@dataclass(eq=False)
class OpaqueValue:
    """An operand shape the lifter does not model (global, undef, label, ...)."""

    kind: str
    text: str = ""
    type: IRType = field(default_factory=IRType.void)

    def __repr__(self) -> str:
        return f"<{self.kind} {self.text}>"


IRValue = Union[Argument, ConstantInt, Instruction, OpaqueValue]


def _operand_ref(value: IRValue) -> str:
    if isinstance(value, Instruction):
        return f"%{value.name}" if value.name else f"<{value.opcode_name}>"
    return repr(value)


@dataclass(eq=False)
class BasicBlock:
    """A basic block: straight-line instructions ending in a terminator."""

    name: str
    instructions: list[Instruction] = field(default_factory=list)

    @property
    def terminator(self) -> Instruction:
        if not self.instructions:
            raise IRError(f"Block {self.name!r} is empty")
        return self.instructions[-1]

    @property
    def num_instructions(self) -> int:
        return len(self.instructions)

    def __repr__(self) -> str:
        return f"Block({self.name}, {self.num_instructions} instrs)"


@dataclass(eq=False)
class Function:
    """A function: arguments and basic blocks, entry block first."""

    name: str
    arguments: list[Argument] = field(default_factory=list)
    blocks: list[BasicBlock] = field(default_factory=list)
    return_type: IRType = field(default_factory=IRType.void)

    @property
    def is_declaration(self) -> bool:
        return not self.blocks

    @property
    def entry_block(self) -> BasicBlock:
        if not self.blocks:
            raise IRError(f"Function {self.name!r} has no body")
        return self.blocks[0]

    @property
    def num_blocks(self) -> int:
        return len(self.blocks)

    def is_straight_line(self) -> bool:
        """True when the body is a single block ending in ``ret``."""
        if self.num_blocks != 1 or not self.entry_block.instructions:
            return False
        return self.entry_block.terminator.opcode == Opcode.RET

    def signature(self) -> str:
        args = ", ".join(repr(a) for a in self.arguments)
        return f"{self.return_type} @{self.name}({args})"

    def __repr__(self) -> str:
        return f"Function({self.name}, {self.num_blocks} blocks)"


@dataclass(eq=False)
class Module:
    """A read-only container of functions, looked up by name."""

    functions: dict[str, Function] = field(default_factory=dict)
    name: str = ""

    def add_function(self, function: Function) -> Function:
        if function.name in self.functions:
            raise IRError(f"Duplicate function name: {function.name}")
        self.functions[function.name] = function
        return function

    def get_function(self, name: str) -> Optional[Function]:
        return self.functions.get(name)

    def definitions(self) -> Iterator[Function]:
        """Iterate over functions that have a body."""
        for function in self.functions.values():
            if not function.is_declaration:
                yield function

    def __contains__(self, name: str) -> bool:
        return name in self.functions

    def __len__(self) -> int:
        return len(self.functions)
