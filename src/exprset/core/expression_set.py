"""
Core data structure for annotated expression matrices.

ExpressionSet unifies numerical data (intensities/counts) with the tables that
describe it: sample covariates, feature annotations and a free-text experiment
record. All four travel together and stay aligned under subsetting.

Biological Context:
    Expression matrices are the fundamental data structure in genomics:
    - Rows = features (genes, probes, transcripts)
    - Columns = samples (patients, cell lines, time points)
    - Values = measurements (log intensities, counts)

    The classic failure mode when matrix and covariates live in separate
    variables is removing sample 9 from the matrix and sample 10 from the
    covariate table. Nothing complains, and every downstream group
    comparison is silently wrong. Binding the pieces into one object with a
    single subsetting operator makes that mistake unrepresentable.

Engineering Design:
    - Immutable: subset() returns a new instance built by the full
      constructor, so every derived object is re-validated
    - The matrix is authoritative: tables are reordered to match the matrix
      axis order, never the reverse
    - Fail fast: all alignment checks run at construction
    - NumPy array for data (private read-only copy), pandas for tables

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from exprset.core import ExpressionSet, AnnotatedTable
    >>>
    >>> exprs = pd.DataFrame(
    ...     np.random.normal(size=(30, 10)),
    ...     index=[f"gene{i}" for i in range(1, 31)],
    ...     columns=[f"sample{i}" for i in range(1, 11)],
    ... )
    >>> targets = AnnotatedTable(targets_df, labels=["Treatment/Control", "Age", "Sex"])
    >>> eset = ExpressionSet(exprs, pheno=targets)
    >>>
    >>> # First 15 genes of the samples younger than 30
    >>> young = eset.subset(slice(0, 15), lambda rec: rec['age'] < 30)
    >>> all(young.exprs().columns == young.pheno().rows)
    True
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

import numpy as np
import pandas as pd

from exprset.core.annotated_table import AnnotatedTable
from exprset.core.errors import (
    DuplicateIdentifierError,
    FeatureMismatchError,
    MissingIdentifiersError,
    SampleMismatchError,
    ShapeMismatchError,
)
from exprset.core.metadata import ExperimentMetadata
from exprset.core.selectors import ALL, Selector, as_identifiers, resolve_selector

__all__ = ['ExpressionSet']

logger = logging.getLogger(__name__)

MatrixLike = Union[np.ndarray, pd.DataFrame]


def _as_matrix(exprs: MatrixLike) -> tuple[np.ndarray, Optional[pd.Index], Optional[pd.Index]]:
    """Split a matrix-like input into (values, row labels, column labels)."""
    if isinstance(exprs, pd.DataFrame):
        row_labels = None if isinstance(exprs.index, pd.RangeIndex) else exprs.index
        col_labels = None if isinstance(exprs.columns, pd.RangeIndex) else exprs.columns
        return exprs.to_numpy(), row_labels, col_labels
    if isinstance(exprs, np.ndarray):
        return exprs, None, None
    raise TypeError(f"exprs must be np.ndarray or pd.DataFrame, got {type(exprs)}")


def _check_alignment(
    axis_ids: pd.Index, table: AnnotatedTable, error_cls: type
) -> None:
    if axis_ids.equals(table.rows):
        return
    axis_set = set(axis_ids)
    table_set = set(table.rows)
    if axis_set != table_set:
        raise error_cls(
            missing_in_table=[i for i in axis_ids if i not in table_set],
            extra_in_table=[i for i in table.rows if i not in axis_set],
        )


class ExpressionSet:
    """
    Immutable container for an expression matrix and its annotations.

    Attributes:
        data: Read-only expression values (features × samples)
        feature_ids: Row identifiers, or None when rows are positional
        sample_ids: Column identifiers, or None when columns are positional

    Alignment Invariants:
        - data.shape[0] == len(feature_ids) when feature_ids is set
        - data.shape[1] == len(sample_ids) when sample_ids is set
        - pheno().rows equals sample_ids, in order, when a sample table is bound
        - features().rows equals feature_ids, in order, when a feature table is bound

    There are no mutators. Derive new containers with subset().
    """

    def __init__(
        self,
        exprs: MatrixLike,
        pheno: Optional[AnnotatedTable] = None,
        features: Optional[AnnotatedTable] = None,
        metadata: Optional[ExperimentMetadata] = None,
        *,
        feature_ids: Optional[Iterable[Any]] = None,
        sample_ids: Optional[Iterable[Any]] = None,
    ):
        """
        Bind a matrix and its annotation tables, with validation.

        Args:
            exprs: Expression matrix (features × samples). A DataFrame supplies
                identifiers through its index/columns; a RangeIndex counts as
                "no identifiers".
            pheno: Sample covariate table, one row per matrix column
            features: Feature annotation table, one row per matrix row
            metadata: Experiment description
            feature_ids: Row identifiers, overriding any DataFrame index
            sample_ids: Column identifiers, overriding any DataFrame columns

        Raises:
            TypeError: Wrong input types or non-numeric matrix
            ShapeMismatchError: Matrix not 2-D/non-empty, or identifier counts
                differ from the matrix dimensions
            DuplicateIdentifierError: Repeated feature or sample identifiers
            MissingIdentifiersError: A table was supplied for an axis without identifiers
            SampleMismatchError: Sample table rows differ from matrix columns
            FeatureMismatchError: Feature table rows differ from matrix rows
        """
        data, row_labels, col_labels = _as_matrix(exprs)

        # (a) matrix well-formed
        if data.ndim != 2:
            raise ShapeMismatchError(f"exprs must be 2D, got shape {data.shape}")
        n_features, n_samples = data.shape
        if n_features == 0 or n_samples == 0:
            raise ShapeMismatchError(
                f"exprs must have at least one feature and one sample, got shape {data.shape}"
            )
        if data.dtype.kind in ("U", "S"):
            raise TypeError(f"exprs must be numeric, got string dtype {data.dtype}")
        if data.dtype == object and any(isinstance(v, (str, bytes)) for v in data.flat):
            raise TypeError("exprs must be numeric, got strings in an object array")
        if not (np.issubdtype(data.dtype, np.number) or data.dtype == bool):
            try:
                data = data.astype(float)
            except (TypeError, ValueError) as e:
                raise TypeError(f"exprs must be numeric, got dtype {data.dtype}") from e

        if feature_ids is not None:
            row_labels = feature_ids
        if sample_ids is not None:
            col_labels = sample_ids

        if row_labels is not None:
            row_labels = as_identifiers(row_labels, "feature ids")
            if len(row_labels) != n_features:
                raise ShapeMismatchError(
                    f"feature_ids length ({len(row_labels)}) must match data rows ({n_features})"
                )
        if col_labels is not None:
            col_labels = as_identifiers(col_labels, "sample ids")
            if len(col_labels) != n_samples:
                raise ShapeMismatchError(
                    f"sample_ids length ({len(col_labels)}) must match data columns ({n_samples})"
                )

        if pheno is not None and not isinstance(pheno, AnnotatedTable):
            raise TypeError(f"pheno must be AnnotatedTable, got {type(pheno)}")
        if features is not None and not isinstance(features, AnnotatedTable):
            raise TypeError(f"features must be AnnotatedTable, got {type(features)}")
        if metadata is not None and not isinstance(metadata, ExperimentMetadata):
            raise TypeError(f"metadata must be ExperimentMetadata, got {type(metadata)}")

        # (b) sample table against matrix columns
        if pheno is not None:
            if col_labels is None:
                raise MissingIdentifiersError("samples")
            _check_alignment(col_labels, pheno, SampleMismatchError)
            if not col_labels.equals(pheno.rows):
                logger.debug("Reordering sample table to matrix column order")
                pheno = pheno.select(col_labels)

        # (c) feature table against matrix rows
        if features is not None:
            if row_labels is None:
                raise MissingIdentifiersError("features")
            _check_alignment(row_labels, features, FeatureMismatchError)
            if not row_labels.equals(features.rows):
                logger.debug("Reordering feature table to matrix row order")
                features = features.select(row_labels)

        # Private read-only copy: callers keep no handle on our buffer
        data = np.array(data, copy=True)
        data.setflags(write=False)

        self._data = data
        self._feature_ids = row_labels
        self._sample_ids = col_labels
        self._pheno = pheno
        self._features = features
        self._metadata = metadata

    @property
    def data(self) -> np.ndarray:
        """Expression values (features × samples), read-only."""
        return self._data

    @property
    def feature_ids(self) -> Optional[pd.Index]:
        """Row identifiers, or None when rows are positional."""
        return self._feature_ids

    @property
    def sample_ids(self) -> Optional[pd.Index]:
        """Column identifiers, or None when columns are positional."""
        return self._sample_ids

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return self._data.shape

    @property
    def n_features(self) -> int:
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    def _row_axis(self) -> pd.Index:
        if self._feature_ids is not None:
            return self._feature_ids
        return pd.RangeIndex(self.n_features)

    def _col_axis(self) -> pd.Index:
        if self._sample_ids is not None:
            return self._sample_ids
        return pd.RangeIndex(self.n_samples)

    def exprs(self) -> pd.DataFrame:
        """
        Expression matrix as a DataFrame over the read-only values.

        Index holds feature identifiers (positions if absent), columns hold
        sample identifiers (positions if absent).
        """
        return pd.DataFrame(
            self._data, index=self._row_axis(), columns=self._col_axis(), copy=False
        )

    def pheno(self) -> AnnotatedTable:
        """Sample covariate table, or a zero-column table if none is bound."""
        if self._pheno is None:
            return AnnotatedTable.empty(self._col_axis())
        return self._pheno

    def features(self) -> AnnotatedTable:
        """Feature annotation table, or a zero-column table if none is bound."""
        if self._features is None:
            return AnnotatedTable.empty(self._row_axis())
        return self._features

    def describe(self) -> ExperimentMetadata:
        """Experiment description, or an empty record."""
        if self._metadata is None:
            return ExperimentMetadata()
        return self._metadata

    @property
    def has_pheno(self) -> bool:
        return self._pheno is not None

    @property
    def has_features(self) -> bool:
        return self._features is not None

    def subset(self, rows: Selector = ALL, cols: Selector = ALL) -> ExpressionSet:
        """
        Subset features (rows) and samples (columns), keeping every part aligned.

        Both selectors are resolved to concrete ordered positions first; the
        matrix and both tables are then cut with the same positions and the
        result is assembled by the full constructor, so invariants are
        re-verified rather than assumed.

        Args:
            rows: "all", slice, position(s), feature identifier(s) or boolean mask
            cols: As rows, plus a predicate over each sample's covariate
                record (pd.Series), e.g. ``lambda rec: rec['age'] < 30``

        Returns:
            New ExpressionSet (never self)

        Raises:
            UnknownIdentifierError: Selector names an absent identifier
            IndexError: Position outside the matrix
            ShapeMismatchError: Selection is empty on either axis
            DuplicateIdentifierError: Selection repeats an element

        Examples:
            >>> small = eset.subset(slice(0, 15), [0, 1, 2, 5, 6, 7])
            >>> young = eset.subset(cols=eset.pheno().data['age'] < 30)
            >>> reordered = eset.subset(cols=['sample3', 'sample1'])
        """
        row_pos = resolve_selector(
            rows, self._feature_ids, self.n_features, axis="features"
        )
        col_pos = resolve_selector(
            cols,
            self._sample_ids,
            self.n_samples,
            axis="samples",
            records=self.pheno().data,
        )
        for axis, positions in (("feature positions", row_pos), ("sample positions", col_pos)):
            seen, counts = np.unique(positions, return_counts=True)
            if (counts > 1).any():
                raise DuplicateIdentifierError(axis, [str(p) for p in seen[counts > 1]])

        feature_ids = None if self._feature_ids is None else self._feature_ids[row_pos]
        sample_ids = None if self._sample_ids is None else self._sample_ids[col_pos]

        # Same resolved identifier lists drive matrix and tables
        pheno = None if self._pheno is None else self._pheno.select(sample_ids)
        features = None if self._features is None else self._features.select(feature_ids)

        logger.debug(
            f"Subsetting {self.n_features}×{self.n_samples} -> {len(row_pos)}×{len(col_pos)}"
        )
        return ExpressionSet(
            self._data[np.ix_(row_pos, col_pos)],
            pheno=pheno,
            features=features,
            metadata=self._metadata,
            feature_ids=feature_ids,
            sample_ids=sample_ids,
        )

    def select_samples(self, selector: Selector) -> ExpressionSet:
        """
        Subset samples (columns), preserving all annotations.

        Examples:
            >>> ctl = eset.select_samples(eset.pheno().data['group'].str.startswith('CTL'))
        """
        return self.subset(ALL, selector)

    def select_features(self, selector: Selector) -> ExpressionSet:
        """
        Subset features (rows), preserving all annotations.

        Examples:
            >>> variances = np.var(eset.data, axis=1)
            >>> variable = eset.select_features(variances > np.percentile(variances, 90))
        """
        return self.subset(selector, ALL)

    def __getitem__(self, key: Any) -> ExpressionSet:
        """``eset[rows, cols]`` or ``eset[rows]`` shorthand for subset()."""
        if isinstance(key, tuple):
            if len(key) != 2:
                raise IndexError(f"ExpressionSet takes 2 indexers, got {len(key)}")
            rows, cols = key
        else:
            rows, cols = key, ALL
        if isinstance(rows, slice) and rows == slice(None):
            rows = ALL
        if isinstance(cols, slice) and cols == slice(None):
            cols = ALL
        return self.subset(rows, cols)

    def copy(self) -> ExpressionSet:
        """Content-equal, independent container."""
        return self.subset(ALL, ALL)

    def equals(self, other: object) -> bool:
        """Same values, identifiers, tables and metadata."""
        if not isinstance(other, ExpressionSet):
            return False

        def _same_ids(a: Optional[pd.Index], b: Optional[pd.Index]) -> bool:
            if a is None or b is None:
                return a is None and b is None
            return a.equals(b)

        def _same_table(a: Optional[AnnotatedTable], b: Optional[AnnotatedTable]) -> bool:
            if a is None or b is None:
                return a is None and b is None
            return a.equals(b)

        return (
            self.shape == other.shape
            and np.array_equal(
                self._data,
                other._data,
                equal_nan=bool(np.issubdtype(self._data.dtype, np.floating)),
            )
            and _same_ids(self._feature_ids, other._feature_ids)
            and _same_ids(self._sample_ids, other._sample_ids)
            and _same_table(self._pheno, other._pheno)
            and _same_table(self._features, other._features)
            and self._metadata == other._metadata
        )

    def __repr__(self) -> str:
        """String representation for debugging."""
        feature_axis = self._row_axis()
        sample_axis = self._col_axis()
        lines = [
            f"ExpressionSet ({self.n_features} features × {self.n_samples} samples)",
            f"  Features: {feature_axis[0]}...{feature_axis[-1]}"
            + ("" if self._feature_ids is not None else " (positional)"),
            f"  Samples: {sample_axis[0]}...{sample_axis[-1]}"
            + ("" if self._sample_ids is not None else " (positional)"),
            f"  Pheno columns: {self.pheno().columns}",
            f"  Feature columns: {self.features().columns}",
        ]
        if self._metadata is not None and self._metadata.title:
            lines.append(f"  Title: {self._metadata.title}")
        return "\n".join(lines)

    def __str__(self) -> str:
        """Human-readable string representation."""
        return self.__repr__()
