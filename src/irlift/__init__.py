"""
IRLIFT: straight-line LLVM IR to symbolic expression trees

Lifts the value computed by a branch-free LLVM function into a bitvector
and logical expression tree, the representation symbolic-execution
engines use for path constraints, taint tracking and constant folding.

Key Components:
    - ir: read-only source IR graph and the llvmlite front end
    - ast: Expression Context (node builders, interning, variables, printing)
    - lifting: the IR to expression tree translation
    - config: lifting options loaded from YAML

Example:
    >>> from irlift import AstContext, parse_module, lift_function, to_smt
    >>> module = parse_module(open("f.ll").read())
    >>> root = lift_function(module, "f", AstContext())
    >>> print(to_smt(root))
"""

__version__ = "0.1.0"
__author__ = "IRLIFT Team"

from irlift.ast import AstContext, AstNode, NodeKind, AstError, to_smt, to_dict, fingerprint
from irlift.config import LiftConfig, load_config
from irlift.ir import IRError, Module, parse_module, load_module
from irlift.lifting import IRToAstLifter, LiftingError, lift_function, lift_source

__all__ = [
    # Expression Context
    "AstContext",
    "AstNode",
    "NodeKind",
    "AstError",
    "to_smt",
    "to_dict",
    "fingerprint",
    # Configuration
    "LiftConfig",
    "load_config",
    # Source IR
    "IRError",
    "Module",
    "parse_module",
    "load_module",
    # Lifting
    "IRToAstLifter",
    "LiftingError",
    "lift_function",
    "lift_source",
]
