"""Rendering and fingerprinting of expression trees.

All walks here are iterative and visit each distinct node once, so deep
chains do not hit the recursion limit and shared subtrees are not
re-rendered for every reference.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterator, TypeVar

from irlift.ast.nodes import AstNode, NodeKind
from irlift.utils.hashing import compute_content_hash, combine_hashes

T = TypeVar("T")


# SMT-LIB2 function symbols for plain n-ary applications
SMT_SYMBOLS = {
    NodeKind.BVADD: "bvadd",
    NodeKind.BVSUB: "bvsub",
    NodeKind.BVMUL: "bvmul",
    NodeKind.BVSDIV: "bvsdiv",
    NodeKind.BVUDIV: "bvudiv",
    NodeKind.BVSREM: "bvsrem",
    NodeKind.BVUREM: "bvurem",
    NodeKind.BVSHL: "bvshl",
    NodeKind.BVLSHR: "bvlshr",
    NodeKind.BVASHR: "bvashr",
    NodeKind.BVAND: "bvand",
    NodeKind.BVOR: "bvor",
    NodeKind.BVXOR: "bvxor",
    NodeKind.LAND: "and",
    NodeKind.LOR: "or",
    NodeKind.LXOR: "xor",
    NodeKind.EQUAL: "=",
    NodeKind.DISTINCT: "distinct",
    NodeKind.BVUGE: "bvuge",
    NodeKind.BVUGT: "bvugt",
    NodeKind.BVULE: "bvule",
    NodeKind.BVULT: "bvult",
    NodeKind.BVSGE: "bvsge",
    NodeKind.BVSGT: "bvsgt",
    NodeKind.BVSLE: "bvsle",
    NodeKind.BVSLT: "bvslt",
    NodeKind.ITE: "ite",
}

_SIMPLE_SYMBOL_RE = re.compile(r"^[A-Za-z~!@$%^&*_+=<>.?/-][0-9A-Za-z~!@$%^&*_+=<>.?/-]*$")


def iter_postorder(root: AstNode) -> Iterator[AstNode]:
    """Yield every distinct node under ``root``, children before parents."""
    seen: set[int] = set()
    stack: list[tuple[AstNode, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if id(node) in seen:
            continue
        if expanded:
            seen.add(id(node))
            yield node
            continue
        stack.append((node, True))
        for child in reversed(node.children):
            if id(child) not in seen:
                stack.append((child, False))


def fold(root: AstNode, combine: Callable[[AstNode, list[T]], T]) -> T:
    """Bottom-up fold: ``combine(node, child_results)`` once per distinct node."""
    results: dict[int, T] = {}
    for node in iter_postorder(root):
        results[id(node)] = combine(node, [results[id(c)] for c in node.children])
    return results[id(root)]


def _symbol(name: str) -> str:
    if _SIMPLE_SYMBOL_RE.match(name):
        return name
    return f"|{name}|"


def _smt(node: AstNode, children: list[str]) -> str:
    kind = node.kind
    if kind == NodeKind.BV:
        return f"(_ bv{node.params[0]} {node.size})"
    if kind == NodeKind.VARIABLE:
        return _symbol(node.name or "")
    if kind == NodeKind.SX:
        return f"((_ sign_extend {node.params[0]}) {children[0]})"
    if kind == NodeKind.ZX:
        return f"((_ zero_extend {node.params[0]}) {children[0]})"
    if kind == NodeKind.EXTRACT:
        high, low = node.params
        return f"((_ extract {high} {low}) {children[0]})"
    if kind == NodeKind.BSWAP:
        # No SMT-LIB symbol; the lowest byte becomes the most significant one
        parts = [f"((_ extract {low + 7} {low}) {children[0]})" for low in range(0, node.size, 8)]
        rendered = parts[-1]
        for part in reversed(parts[:-1]):
            rendered = f"(concat {part} {rendered})"
        return rendered
    return f"({SMT_SYMBOLS[kind]} {' '.join(children)})"


def to_smt(node: AstNode) -> str:
    """Render ``node`` in SMT-LIB2 syntax."""
    return fold(node, _smt)


def _as_dict(node: AstNode, children: list[dict[str, Any]]) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": node.kind.value, "size": node.size}
    if node.name is not None:
        data["name"] = node.name
    if node.params:
        data["params"] = list(node.params)
    if children:
        data["children"] = children
    if node.is_logical:
        data["logical"] = True
    return data


def to_dict(node: AstNode) -> dict[str, Any]:
    """JSON-serializable nested representation of ``node``."""
    return fold(node, _as_dict)


def _hash(node: AstNode, children: list[str]) -> str:
    header = compute_content_hash(
        {
            "kind": node.kind.value,
            "size": node.size,
            "params": list(node.params),
            "name": node.name,
        }
    )
    return combine_hashes([header, *children])


def fingerprint(node: AstNode) -> str:
    """Structural content hash of the tree rooted at ``node``.

    Equal for structurally identical trees, even across contexts.
    """
    return fold(node, _hash)


def count_nodes(node: AstNode) -> int:
    """Number of distinct nodes reachable from ``node``."""
    return sum(1 for _ in iter_postorder(node))
