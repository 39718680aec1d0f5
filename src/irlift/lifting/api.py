"""Convenience entry points around :class:`IRToAstLifter`."""

from __future__ import annotations

from typing import Optional

from irlift.ast.context import AstContext
from irlift.ast.nodes import AstNode
from irlift.config import LiftConfig
from irlift.ir.base import Function, Module
from irlift.ir.llvm import parse_module
from irlift.lifting.base import LiftingError
from irlift.lifting.lifter import IRToAstLifter


def register_arguments(function: Function, ctx: AstContext) -> list[AstNode]:
    """Declare one symbolic variable per integer argument of ``function``.

    Non-integer arguments (pointers, floats) are skipped; a lifted tree
    that depends on one fails when the argument is looked up.

    Returns:
        The variable nodes, in argument order
    """
    nodes = []
    for arg in function.arguments:
        if arg.type.is_integer:
            nodes.append(ctx.new_variable(arg.name, arg.type.bit_width))
    return nodes


def lift_function(
    module: Module,
    function_name: str,
    ctx: Optional[AstContext] = None,
    config: Optional[LiftConfig] = None,
) -> AstNode:
    """Register the arguments of ``function_name`` and lift it.

    Args:
        module: Module containing the function
        function_name: Function to lift
        ctx: Context to build into (a fresh one if None)
        config: Lifting options

    Returns:
        Root of the lifted tree
    """
    ctx = ctx if ctx is not None else AstContext()

    function = module.get_function(function_name)
    if function is None:
        raise LiftingError(f"Function not found: {function_name}", function=function_name)

    register_arguments(function, ctx)
    return IRToAstLifter(ctx, config).convert(module, function_name)


def lift_source(
    text: str,
    function_name: str,
    ctx: Optional[AstContext] = None,
    config: Optional[LiftConfig] = None,
) -> AstNode:
    """Parse LLVM IR text and lift ``function_name`` from it."""
    config = config or LiftConfig()
    module = parse_module(text, verify=config.verify_module)
    return lift_function(module, function_name, ctx=ctx, config=config)
