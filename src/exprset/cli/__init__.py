"""
exprset CLI - Command-line interface for annotated expression sets.

Commands:
    exprset build   - Assemble a set from a matrix, tables and metadata
    exprset show    - Summarise a set directory
    exprset subset  - Subset a set by features and samples, keeping it aligned
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for exprset."""
    parser = argparse.ArgumentParser(
        prog="exprset",
        description="Annotated expression matrices that stay consistent under subsetting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  build    Assemble a set from a matrix, tables and metadata
  show     Summarise a set directory
  subset   Subset a set by features and samples, keeping it aligned

Examples:
  exprset build -m expression.csv -p targets.csv --pheno-labels labels.csv -o results/eset
  exprset show results/eset
  exprset subset results/eset --feature-range 0:15 --query "age < 30" -o results/young
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from exprset.cli import build, show, subset
    build.register_parser(subparsers)
    show.register_parser(subparsers)
    subset.register_parser(subparsers)

    raw_args = list(sys.argv[1:] if args is None else args)
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Raw tokens after the command name, for config override detection
    parsed_args.cli_args = raw_args[raw_args.index(parsed_args.command) + 1:]

    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
