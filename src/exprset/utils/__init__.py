"""Utility modules for expression-set persistence."""

from exprset.utils.fileio import (
    atomic_write_json,
    atomic_write_csv,
)

__all__ = [
    'atomic_write_json',
    'atomic_write_csv',
]
