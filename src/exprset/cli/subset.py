"""
exprset subset command - Subset a set by features and samples.

Matrix, sample table and feature table are cut together; the result is
re-validated and written as a new set directory.

Usage:
    exprset subset results/eset --feature-range 0:15 --query "age < 30" -o results/young
    exprset subset results/eset --sample-ids sample3 sample1 -o results/reordered
"""

import argparse
from pathlib import Path

import numpy as np

from exprset.cli._common import apply_config, report_error, setup_logging
from exprset.cli._validators import _position_range


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the subset subcommand."""
    parser = subparsers.add_parser(
        "subset",
        help="Subset a set by features and samples, keeping it aligned",
        description=(
            "Select features by identifier or position range and samples by "
            "identifier or by a query over the covariate table. Identifier "
            "lists also reorder."
        )
    )
    parser.add_argument("input", type=Path, help="Set directory")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output set directory")

    # Feature selection
    features = parser.add_mutually_exclusive_group()
    features.add_argument("--feature-ids", nargs="+", default=None,
                          help="Feature identifiers to keep, in order")
    features.add_argument("--feature-range", type=_position_range, default=None,
                          help="0-based START:STOP feature positions (STOP exclusive)")

    # Sample selection
    samples = parser.add_mutually_exclusive_group()
    samples.add_argument("--sample-ids", nargs="+", default=None,
                         help="Sample identifiers to keep, in order")
    samples.add_argument("--query", default=None,
                         help="Expression over covariate columns, e.g. \"age < 30\"")

    parser.add_argument("--config", type=Path, default=None,
                        help="YAML/JSON config file (CLI options override it)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")

    parser.set_defaults(func=run_subset)


def _query_mask(pheno_data, query: str) -> np.ndarray:
    """Evaluate a covariate query to a boolean mask (one entry per sample)."""
    result = pheno_data.eval(query)
    mask = np.asarray(result)
    if mask.dtype != bool or mask.shape != (len(pheno_data),):
        raise ValueError(f"Query {query!r} does not yield one boolean per sample")
    return mask


def run_subset(args: argparse.Namespace) -> int:
    """Execute the subset command."""
    import pandas as pd

    from exprset.core import ALL, ExpressionSetError
    from exprset.io import read_expression_set, write_expression_set

    logger = setup_logging(args)

    try:
        args = apply_config(args, logger)
    except (FileNotFoundError, ValueError) as e:
        return report_error(f"Config file error: {e}")

    if not args.output:
        return report_error("--output is required (via CLI or config file)")

    feature_range = args.feature_range
    if isinstance(feature_range, str):
        try:
            feature_range = _position_range(feature_range)
        except argparse.ArgumentTypeError as e:
            return report_error(str(e))

    try:
        eset = read_expression_set(args.input)

        rows = ALL
        if args.feature_ids:
            rows = list(args.feature_ids)
        elif feature_range is not None:
            rows = feature_range

        cols = ALL
        if args.sample_ids:
            cols = list(args.sample_ids)
        elif args.query:
            if not eset.has_pheno:
                return report_error("--query needs a sample table in the input set")
            try:
                cols = _query_mask(eset.pheno().data, args.query)
            except (pd.errors.UndefinedVariableError, SyntaxError, TypeError) as e:
                return report_error(f"Invalid query {args.query!r}: {e}")

        result = eset.subset(rows, cols)
        write_expression_set(result, args.output)
    except (ExpressionSetError, FileNotFoundError, IndexError, OSError, ValueError) as e:
        logger.debug("subset failed", exc_info=True)
        return report_error(str(e))

    logger.info(f"Kept {result.n_features} of {eset.n_features} features, "
                f"{result.n_samples} of {eset.n_samples} samples")
    print(result)
    print(f"\nWrote set to {args.output}")
    return 0
