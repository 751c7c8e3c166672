"""
exprset show command - Summarise a set directory.

Usage:
    exprset show results/eset
    exprset show results/eset --metadata-only
"""

import argparse
from pathlib import Path

from exprset.cli._common import report_error, setup_logging


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the show subcommand."""
    parser = subparsers.add_parser(
        "show",
        help="Summarise a set directory",
        description="Print dimensions, table columns with descriptions and the experiment record.",
    )
    parser.add_argument("input", type=Path, help="Set directory")
    parser.add_argument("--metadata-only", action="store_true",
                        help="Print only the experiment record")
    parser.add_argument("--head", type=int, default=0,
                        help="Also print the first N matrix rows (default: 0)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.set_defaults(func=run_show)


def run_show(args: argparse.Namespace) -> int:
    """Execute the show command."""
    from exprset.core import ExpressionSetError
    from exprset.io import read_expression_set

    setup_logging(args)

    try:
        eset = read_expression_set(args.input)
    except (ExpressionSetError, FileNotFoundError, OSError, ValueError) as e:
        return report_error(str(e))

    if args.metadata_only:
        print(eset.describe().render())
        return 0

    print(eset)
    if eset.has_pheno:
        print(f"\n{eset.pheno()!r}")
    if eset.has_features:
        print(f"\n{eset.features()!r}")
    print(f"\n{eset.describe().render()}")
    if args.head > 0:
        print(f"\n{eset.exprs().head(args.head)}")
    return 0
