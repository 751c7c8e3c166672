"""
Exception hierarchy for annotated expression containers.

Every error raised by the core derives from ExpressionSetError, itself a
ValueError, so callers that already guard with ``except ValueError`` keep
working. None of these are retryable: inputs are in-memory and deterministic,
and the core never drops or reorders data to paper over a mismatch.

Examples:
    >>> from exprset.core.errors import SampleMismatchError
    >>> try:
    ...     ExpressionSet(matrix, pheno=wrong_targets)
    ... except SampleMismatchError as e:
    ...     print(e.missing_in_table)
    ['sample10']
"""

from __future__ import annotations

from typing import Iterable, Sequence

__all__ = [
    'ExpressionSetError',
    'ShapeMismatchError',
    'DuplicateIdentifierError',
    'AlignmentError',
    'SampleMismatchError',
    'FeatureMismatchError',
    'MissingIdentifiersError',
    'UnknownIdentifierError',
    'ColumnLabelError',
]

# Identifier lists longer than this are truncated in messages
_MAX_SHOWN = 10


def _format_ids(ids: Sequence[str]) -> str:
    shown = ", ".join(repr(i) for i in ids[:_MAX_SHOWN])
    if len(ids) > _MAX_SHOWN:
        shown += f", ... ({len(ids) - _MAX_SHOWN} more)"
    return f"[{shown}]"


class ExpressionSetError(ValueError):
    """Base class for all container consistency errors."""


class ShapeMismatchError(ExpressionSetError):
    """A table or matrix has the wrong number of rows/columns for its identifiers."""


class DuplicateIdentifierError(ExpressionSetError):
    """An identifier sequence (table rows or a matrix axis) contains repeats."""

    def __init__(self, what: str, duplicates: Iterable[str]):
        self.duplicates = list(duplicates)
        super().__init__(
            f"{what} contain duplicate identifiers: {_format_ids(self.duplicates)}"
        )


class AlignmentError(ExpressionSetError):
    """
    Matrix axis identifiers and table rows denote different sets.

    Attributes:
        missing_in_table: Identifiers on the matrix axis with no table row
        extra_in_table: Table rows with no matching matrix axis identifier
    """

    axis = "axis"

    def __init__(self, missing_in_table: Sequence[str], extra_in_table: Sequence[str]):
        self.missing_in_table = list(missing_in_table)
        self.extra_in_table = list(extra_in_table)
        parts = []
        if self.missing_in_table:
            parts.append(
                f"in matrix but not in table: {_format_ids(self.missing_in_table)}"
            )
        if self.extra_in_table:
            parts.append(
                f"in table but not in matrix: {_format_ids(self.extra_in_table)}"
            )
        super().__init__(
            f"Matrix {self.axis} identifiers do not match table rows; "
            + "; ".join(parts)
        )


class SampleMismatchError(AlignmentError):
    """Matrix column identifiers disagree with the sample table rows."""

    axis = "sample"


class FeatureMismatchError(AlignmentError):
    """Matrix row identifiers disagree with the feature table rows."""

    axis = "feature"


class MissingIdentifiersError(ExpressionSetError):
    """A table was supplied for a matrix axis that carries no identifiers."""

    def __init__(self, axis: str):
        self.axis = axis
        super().__init__(
            f"Cannot attach a {axis} table: the matrix has no {axis} identifiers "
            f"to align against. Provide {axis[:-1]}_ids or use a labelled DataFrame."
        )


class UnknownIdentifierError(ExpressionSetError, KeyError):
    """A lookup or selection referenced identifiers that are not present."""

    def __init__(self, missing: Iterable[str], where: str = "table"):
        self.missing = list(missing)
        self.where = where
        super().__init__(
            f"Unknown identifiers in {where}: {_format_ids(self.missing)}"
        )

    # KeyError would otherwise repr() the message
    def __str__(self) -> str:
        return str(self.args[0])


class ColumnLabelError(ExpressionSetError):
    """Column descriptions cannot be reconciled with the table columns."""
