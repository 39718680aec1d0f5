"""Expression Context for IRLIFT.

Symbolic expression trees over bitvector and logical primitives:

- nodes: AstNode and NodeKind
- context: AstContext (node builders, interning, variable table)
- printer: SMT-LIB2 rendering, dict export and fingerprints
"""

from irlift.ast.nodes import AstNode, NodeKind
from irlift.ast.context import AstContext, AstError, UnknownVariableError
from irlift.ast.printer import to_smt, to_dict, fingerprint, count_nodes, iter_postorder

__all__ = [
    "AstNode",
    "NodeKind",
    "AstContext",
    "AstError",
    "UnknownVariableError",
    "to_smt",
    "to_dict",
    "fingerprint",
    "count_nodes",
    "iter_postorder",
]
