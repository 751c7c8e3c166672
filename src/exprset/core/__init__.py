"""
Core data structures for annotated expression data.

This module provides the foundational types that all other modules build upon:

1. ExpressionSet: Expression matrix bound to sample/feature tables and metadata
2. AnnotatedTable: Covariate or annotation table with per-column descriptions
3. ExperimentMetadata: Immutable free-text description of the experiment

Design Philosophy:
    - Immutability: subsetting returns new, re-validated instances
    - Fail fast: axis/table mismatches are errors at construction time
    - The matrix axis order is authoritative; tables follow it

Examples:
    >>> from exprset.core import ExpressionSet, AnnotatedTable, ExperimentMetadata
    >>>
    >>> eset = ExpressionSet(exprs_df, pheno=AnnotatedTable(targets))
    >>> young = eset.subset(cols=lambda rec: rec['age'] < 30)
"""

from exprset.core.annotated_table import AnnotatedTable
from exprset.core.errors import (
    AlignmentError,
    ColumnLabelError,
    DuplicateIdentifierError,
    ExpressionSetError,
    FeatureMismatchError,
    MissingIdentifiersError,
    SampleMismatchError,
    ShapeMismatchError,
    UnknownIdentifierError,
)
from exprset.core.expression_set import ExpressionSet
from exprset.core.metadata import ExperimentMetadata
from exprset.core.selectors import ALL, resolve_selector

__all__ = [
    'ExpressionSet',
    'AnnotatedTable',
    'ExperimentMetadata',
    'ALL',
    'resolve_selector',
    # Errors
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
