"""Command-line interface for IRLIFT.

Provides commands for:
- Lifting a function from an LLVM IR file to an expression tree
- Listing the functions of a module and whether they can be lifted
- Showing supported opcodes and predicates
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="irlift",
    help="Lift straight-line LLVM IR to symbolic expression trees",
    add_completion=False,
)

console = Console()


@app.command()
def lift(
    ir_file: Path = typer.Argument(..., help="Path to an LLVM IR (.ll) file"),
    function: str = typer.Argument(..., help="Name of the function to lift"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: smt, json"),
    memoize: Optional[bool] = typer.Option(None, "--memoize/--no-memoize", help="Translate shared values once"),
    worklist: Optional[bool] = typer.Option(None, "--worklist/--recursive", help="Traversal strategy"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the tree to a file"),
):
    """Lift FUNCTION from IR_FILE and print its expression tree."""
    from irlift.ast import AstContext, AstError, to_dict, to_smt, fingerprint, count_nodes
    from irlift.config import LiftConfig, load_config
    from irlift.ir import IRError, load_module
    from irlift.lifting import LiftingError, lift_function
    from irlift.utils.logging import setup_logging, get_logger

    try:
        cfg = load_config(config) if config else LiftConfig()
        overrides = cfg.to_dict()
        if output_format is not None:
            overrides["output_format"] = output_format
        if memoize is not None:
            overrides["memoize"] = memoize
        if worklist is not None:
            overrides["traversal"] = "worklist" if worklist else "recursive"
        cfg = LiftConfig.from_dict(overrides)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1)

    setup_logging(level=cfg.log_level)
    logger = get_logger(__name__)

    try:
        module = load_module(ir_file, verify=cfg.verify_module)
        logger.info(f"Loaded {ir_file} ({len(module)} functions)")
        root = lift_function(module, function, AstContext(), cfg)
    except IRError as e:
        console.print(f"[red]Cannot load {ir_file}:[/red] {e}")
        if e.detail:
            console.print(e.detail, markup=False)
        raise typer.Exit(code=1)
    except (LiftingError, AstError) as e:
        console.print(f"[red]Lifting {function} failed:[/red] {e}")
        raise typer.Exit(code=1)

    if cfg.output_format == "json":
        rendered = json.dumps(
            {
                "function": function,
                "fingerprint": fingerprint(root),
                "tree": to_dict(root),
            },
            indent=2,
        )
    else:
        rendered = to_smt(root)

    if output:
        output.write_text(rendered + "\n")
        console.print(f"Saved tree to {output}")
    else:
        console.print(rendered, markup=False, highlight=False, soft_wrap=True)

    logger.info(
        f"{function}: {count_nodes(root)} distinct nodes, size {root.size}, "
        f"fingerprint {fingerprint(root)[:16]}"
    )


@app.command()
def functions(
    ir_file: Path = typer.Argument(..., help="Path to an LLVM IR (.ll) file"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip the LLVM verifier"),
):
    """List the functions of IR_FILE."""
    from irlift.ir import IRError, load_module

    try:
        module = load_module(ir_file, verify=not no_verify)
    except IRError as e:
        console.print(f"[red]Cannot load {ir_file}:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Functions in {ir_file.name}")
    table.add_column("Name", no_wrap=True)
    table.add_column("Signature", overflow="fold")
    table.add_column("Blocks", justify="right")
    table.add_column("Straight-line", no_wrap=True)

    for fn in module.functions.values():
        if fn.is_declaration:
            shape = "declaration"
        else:
            shape = "yes" if fn.is_straight_line() else "no"
        table.add_row(fn.name, fn.signature(), str(fn.num_blocks), shape)

    console.print(table)


@app.command()
def info():
    """Show IRLIFT version and supported IR."""
    from irlift import __version__
    from irlift.lifting.lifter import (
        BINARY_BUILDERS,
        BSWAP_INTRINSIC,
        CONNECTIVE_BUILDERS,
        PREDICATE_BUILDERS,
        UNARY_OPCODES,
    )

    console.print(f"IRLIFT v{__version__}")
    console.print()

    table = Table(title="Supported IR")
    table.add_column("Category")
    table.add_column("Members")

    table.add_row("Arithmetic / shifts", ", ".join(op.value for op in BINARY_BUILDERS))
    table.add_row("Bitwise / logical", ", ".join(op.value for op in CONNECTIVE_BUILDERS))
    table.add_row("Width changes", ", ".join(op.value for op in UNARY_OPCODES))
    table.add_row("Other", "icmp, select, ret")
    table.add_row("icmp predicates", ", ".join(p.value for p in PREDICATE_BUILDERS))
    table.add_row("Calls", f"{BSWAP_INTRINSIC}*")

    console.print(table)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
