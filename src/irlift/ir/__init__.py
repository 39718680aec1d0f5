"""Source IR graph for IRLIFT.

- base: read-only data model (values, instructions, functions, modules)
- llvm: front end building that model from textual LLVM IR via llvmlite
"""

from irlift.ir.base import (
    IRError,
    IRType,
    Opcode,
    Predicate,
    Argument,
    ConstantInt,
    Instruction,
    CallInstruction,
    ComparisonInstruction,
    OpaqueValue,
    IRValue,
    BasicBlock,
    Function,
    Module,
)
from irlift.ir.llvm import LLVMFrontend, parse_module, load_module

__all__ = [
    "IRError",
    "IRType",
    "Opcode",
    "Predicate",
    "Argument",
    "ConstantInt",
    "Instruction",
    "CallInstruction",
    "ComparisonInstruction",
    "OpaqueValue",
    "IRValue",
    "BasicBlock",
    "Function",
    "Module",
    "LLVMFrontend",
    "parse_module",
    "load_module",
]
