"""
exprset build command - Assemble an annotated expression set.

Loads an expression matrix, a sample covariate table and optionally a
feature table and an experiment record, binds them (running every alignment
check) and writes the result as a set directory.

Usage:
    exprset build -m expression.csv -p targets.csv --pheno-labels labels.csv \\
        --metadata experiment.yaml -o results/eset
"""

import argparse
from pathlib import Path

from exprset.cli._common import apply_config, report_error, setup_logging


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the build subcommand."""
    parser = subparsers.add_parser(
        "build",
        help="Assemble a set from a matrix, tables and metadata",
        description=(
            "Bind an expression matrix to its sample covariates, feature "
            "annotations and experiment description, and write a set directory. "
            "Fails if the tables do not describe exactly the matrix's samples/features."
        )
    )

    # Input/output
    parser.add_argument("--matrix", "-m", type=Path, default=None,
                        help="Expression matrix (features x samples, first column feature ids)")
    parser.add_argument("--pheno", "-p", type=Path, default=None,
                        help="Sample covariate table (first column sample ids)")
    parser.add_argument("--pheno-labels", default=None,
                        help="Two-column file of sample column descriptions")
    parser.add_argument("--features", "-f", type=Path, default=None,
                        help="Feature annotation table (first column feature ids)")
    parser.add_argument("--features-labels", default=None,
                        help="Two-column file of feature column descriptions")
    parser.add_argument("--metadata", type=Path, default=None,
                        help="Experiment description (YAML or JSON)")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output set directory")

    # Parsing options
    parser.add_argument("--delimiter", default=None,
                        help="Field separator for input tables (default: sniffed)")
    parser.add_argument("--strict-labels", action="store_true",
                        help="Require a description for every table column")

    parser.add_argument("--config", type=Path, default=None,
                        help="YAML/JSON config file (CLI options override it)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")

    parser.set_defaults(func=run_build)


def run_build(args: argparse.Namespace) -> int:
    """Execute the build command."""
    from exprset.core import ExpressionSet, ExpressionSetError
    from exprset.io import (
        load_annotated_table,
        load_csv_matrix,
        load_metadata,
        write_expression_set,
    )

    logger = setup_logging(args)

    try:
        args = apply_config(args, logger)
    except (FileNotFoundError, ValueError) as e:
        return report_error(f"Config file error: {e}")

    # Validate required arguments (after config merge)
    if not args.matrix:
        return report_error("--matrix is required (via CLI or config file)")
    if not args.output:
        return report_error("--output is required (via CLI or config file)")

    try:
        logger.info(f"Loading matrix: {args.matrix}")
        exprs = load_csv_matrix(args.matrix, delimiter=args.delimiter)

        pheno = None
        if args.pheno:
            logger.info(f"Loading sample table: {args.pheno}")
            pheno = load_annotated_table(
                args.pheno,
                labels=args.pheno_labels,
                delimiter=args.delimiter,
                strict_labels=args.strict_labels,
            )

        features = None
        if args.features:
            logger.info(f"Loading feature table: {args.features}")
            features = load_annotated_table(
                args.features,
                labels=args.features_labels,
                delimiter=args.delimiter,
                strict_labels=args.strict_labels,
            )

        metadata = load_metadata(args.metadata) if args.metadata else None

        eset = ExpressionSet(exprs, pheno=pheno, features=features, metadata=metadata)
        write_expression_set(eset, args.output)
    except (ExpressionSetError, FileNotFoundError, OSError, ValueError) as e:
        logger.debug("build failed", exc_info=True)
        return report_error(str(e))

    print(eset)
    print(f"\nWrote set to {args.output}")
    return 0
