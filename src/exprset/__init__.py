"""
exprset - Annotated expression matrices that stay consistent under subsetting.

Binds an expression matrix, its sample covariates, its feature annotations
and a free-text experiment record into one immutable container.
"""

__version__ = "0.1.0"

from exprset.core.expression_set import ExpressionSet
from exprset.core.annotated_table import AnnotatedTable
from exprset.core.metadata import ExperimentMetadata

__all__ = [
    "ExpressionSet",
    "AnnotatedTable",
    "ExperimentMetadata",
]
