"""LLVM IR front end using llvmlite.

Parses textual LLVM IR with ``llvmlite.binding`` and rebuilds it as the
read-only graph in :mod:`irlift.ir.base`. Only the pieces the lifter reads
are kept: opcodes, operand order, integer widths, constant values,
comparison predicates, callee names and argument names.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional, Union

import llvmlite.binding as llvm

from irlift.ir.base import (
    Argument,
    BasicBlock,
    CallInstruction,
    ComparisonInstruction,
    ConstantInt,
    Function,
    Instruction,
    IRError,
    IRType,
    IRValue,
    Module,
    OpaqueValue,
    Opcode,
    Predicate,
)
from irlift.utils.logging import get_logger

logger = get_logger(__name__)


_RESULT_NAME_RE = re.compile(r'^\s*%("[^"]*"|[-\w.$]+)\s*=')
_ICMP_RE = re.compile(r"\b[if]cmp\s+(\w+)")
_INT_LITERAL_RE = re.compile(r"^(-?\d+|true|false)$")


def _strip_sigil(name: str) -> str:
    name = name.lstrip("%@")
    if len(name) >= 2 and name[0] == name[-1] == '"':
        name = name[1:-1]
    return name


def parse_constant_text(text: str, ir_type: IRType) -> Optional[ConstantInt]:
    """Parse the textual form of an integer constant (``i32 -1``, ``i1 true``).

    Returns None when the text is not a plain integer literal (undef,
    poison, constant expressions).
    """
    if not ir_type.is_integer:
        return None
    literal = text.strip().rsplit(None, 1)[-1]
    if not _INT_LITERAL_RE.match(literal):
        return None
    if literal == "true":
        value = 1
    elif literal == "false":
        value = 0
    else:
        value = int(literal)
    return ConstantInt.of(value, ir_type.bit_width)


class LLVMFrontend:
    """Converts an llvmlite ``ModuleRef`` into an :class:`~irlift.ir.base.Module`.

    Instructions of a function are created in a first pass and wired in a
    second one, so an operand may refer to an instruction defined later
    in the function (phi inputs from other blocks).
    """

    def __init__(self):
        self._values: dict[str, Instruction] = {}
        self._arguments: dict[str, Argument] = {}

    def convert_module(self, module_ref: Any, name: str = "") -> Module:
        module = Module(name=name or getattr(module_ref, "name", ""))
        for function_ref in module_ref.functions:
            module.add_function(self.convert_function(function_ref))
        logger.debug(f"Loaded module {module.name!r} with {len(module)} functions")
        return module

    def convert_function(self, function_ref: Any) -> Function:
        self._values = {}
        self._arguments = {}

        function = Function(
            name=function_ref.name,
            return_type=self._return_type(function_ref),
        )

        for idx, arg_ref in enumerate(function_ref.arguments):
            arg = Argument(
                name=self._argument_name(arg_ref),
                type=IRType.parse(str(arg_ref.type)),
                index=idx,
            )
            function.arguments.append(arg)
            self._arguments[str(arg_ref).strip()] = arg

        if function_ref.is_declaration:
            return function

        # Pass 1: create every instruction without operands
        pending: list[tuple[Instruction, Any]] = []
        for idx, block_ref in enumerate(function_ref.blocks):
            block = BasicBlock(name=block_ref.name or f"bb{idx}")
            for instr_ref in block_ref.instructions:
                instr = self._create_instruction(instr_ref)
                block.instructions.append(instr)
                pending.append((instr, instr_ref))
                if instr.name:
                    self._values[str(instr_ref).strip()] = instr
            function.blocks.append(block)

        # Pass 2: wire operands
        for instr, instr_ref in pending:
            operand_refs = list(instr_ref.operands)
            if isinstance(instr, CallInstruction):
                # The callee is the last operand
                operand_refs = operand_refs[:-1]
            instr.operands = tuple(self._convert_operand(op) for op in operand_refs)

        return function

    def _return_type(self, function_ref: Any) -> IRType:
        # First line: "define <attrs> <type> @name(...)" or "declare ..."
        for line in str(function_ref).splitlines():
            line = line.strip()
            if line.startswith(("define", "declare")):
                head = line.split("@", 1)[0].split()
                if len(head) > 1:
                    return IRType.parse(head[-1])
                break
        return IRType.void()

    def _argument_name(self, arg_ref: Any) -> str:
        if arg_ref.name:
            return arg_ref.name
        # Unnamed arguments print as "i32 %0"
        return _strip_sigil(str(arg_ref).strip().rsplit(None, 1)[-1])

    def _create_instruction(self, instr_ref: Any) -> Instruction:
        opcode_name = instr_ref.opcode
        opcode = Opcode.from_name(opcode_name)
        ir_type = IRType.parse(str(instr_ref.type))
        text = str(instr_ref).strip()
        name = instr_ref.name or self._result_name(text)

        if opcode == Opcode.CALL:
            return CallInstruction(
                opcode=opcode,
                type=ir_type,
                name=name,
                opcode_name=opcode_name,
                callee=self._callee_name(instr_ref),
            )

        if opcode == Opcode.ICMP:
            match = _ICMP_RE.search(text)
            predicate_name = match.group(1) if match else ""
            return ComparisonInstruction(
                opcode=opcode,
                type=ir_type,
                name=name,
                opcode_name=opcode_name,
                predicate=Predicate.from_name(predicate_name),
                predicate_name=predicate_name,
            )

        return Instruction(
            opcode=opcode,
            type=ir_type,
            name=name,
            opcode_name=opcode_name,
        )

    @staticmethod
    def _result_name(text: str) -> Optional[str]:
        match = _RESULT_NAME_RE.match(text)
        if match:
            return _strip_sigil(match.group(1))
        return None

    @staticmethod
    def _callee_name(instr_ref: Any) -> str:
        operands = list(instr_ref.operands)
        if not operands:
            return ""
        callee = operands[-1]
        if callee.value_kind == llvm.ValueKind.function:
            return callee.name
        # Indirect call through a pointer
        return str(callee).strip()

    def _convert_operand(self, op_ref: Any) -> IRValue:
        # Operand refs only expose what they point at through value_kind
        kind = op_ref.value_kind
        text = str(op_ref).strip()

        if kind == llvm.ValueKind.instruction:
            instr = self._values.get(text)
            if instr is None:
                return OpaqueValue(kind="instruction", text=text)
            return instr

        if kind == llvm.ValueKind.argument:
            arg = self._arguments.get(text)
            if arg is None:
                return OpaqueValue(kind="argument", text=text)
            return arg

        if kind == llvm.ValueKind.function:
            return OpaqueValue(kind="function", text=op_ref.name)

        if kind == llvm.ValueKind.basic_block:
            return OpaqueValue(kind="block", text=op_ref.name)

        ir_type = IRType.parse(str(op_ref.type))
        if kind == llvm.ValueKind.constant_int:
            constant = parse_constant_text(text, ir_type)
            if constant is not None:
                return constant

        return OpaqueValue(kind=kind.name, text=text, type=ir_type)


def parse_module(text: str, verify: bool = True, name: str = "") -> Module:
    """Parse textual LLVM IR into a :class:`Module`.

    Args:
        text: LLVM IR assembly
        verify: Run the LLVM verifier before converting
        name: Optional module name for diagnostics

    Returns:
        The converted module
    """
    try:
        module_ref = llvm.parse_assembly(text)
        if verify:
            module_ref.verify()
    except RuntimeError as e:
        raise IRError("Failed to parse LLVM IR", detail=str(e)) from e

    return LLVMFrontend().convert_module(module_ref, name=name)


def load_module(path: Union[str, Path], verify: bool = True) -> Module:
    """Load a ``.ll`` file from disk."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise IRError(f"Cannot read {path}", detail=str(e)) from e
    return parse_module(text, verify=verify, name=path.name)
