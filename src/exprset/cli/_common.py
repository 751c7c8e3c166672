"""Helpers shared by the exprset subcommands."""

from __future__ import annotations

import argparse
import logging
import sys

from exprset.cli.config import load_config, merge_config_with_args, validate_config


def setup_logging(args: argparse.Namespace) -> logging.Logger:
    """Configure root logging for a command run (INFO, or DEBUG with --verbose)."""
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, 'verbose', False) else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    return logging.getLogger("exprset.cli")


def apply_config(args: argparse.Namespace, logger: logging.Logger) -> argparse.Namespace:
    """
    Merge --config into args (explicit CLI options win).

    Raises:
        FileNotFoundError / ValueError: Unreadable or invalid config
    """
    if not getattr(args, 'config', None):
        return args
    logger.info(f"Loading configuration from: {args.config}")
    config = load_config(args.config)
    validate_config(config)
    cli_args = getattr(args, 'cli_args', None)
    if cli_args is None:
        cli_args = sys.argv[2:]
    return merge_config_with_args(config, args, cli_args)


def report_error(message: str) -> int:
    """Print a fatal error for the current command and return exit status 1."""
    print(f"error: {message}", file=sys.stderr)
    return 1
