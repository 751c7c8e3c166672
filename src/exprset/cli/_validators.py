"""Shared argparse type validators for CLI parameter checking.

Intended to be used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse


def _position_range(value: str) -> slice:
    """argparse type for ``START:STOP`` position ranges (0-based, STOP exclusive)."""
    parts = value.split(":")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"{value} is not a START:STOP range")
    try:
        start = int(parts[0]) if parts[0] else None
        stop = int(parts[1]) if parts[1] else None
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value} is not a START:STOP range of integers")
    if start is not None and stop is not None and stop <= start:
        raise argparse.ArgumentTypeError(f"{value} is an empty range")
    return slice(start, stop)
