"""
Covariate/annotation table with per-column descriptions.

AnnotatedTable pairs a pandas DataFrame (one row per sample, or one row per
feature) with a human-readable description of each column, e.g. ``age`` ->
"Age at disease onset". It is the building block the ExpressionSet uses for
its sample table and its feature table.

Biological Context:
    Covariate tables arrive from spreadsheets and repository downloads with
    terse column names (``grp``, ``age_dx``, ``sex``). Keeping a description
    next to each column means plots and reports can be labelled correctly
    long after the original spreadsheet is gone.

Engineering Design:
    - Immutable: select() returns a new table, accessors return copies
    - Row identifiers are unique strings (pandas Index)
    - Missing descriptions default to the column name, unless
      strict_labels=True, in which case they are an error
    - Descriptions for columns that do not exist are always an error

Examples:
    >>> targets = pd.DataFrame(
    ...     {'group': ['CTL1', 'TR1'], 'age': [29, 34], 'sex': ['Male', 'Female']},
    ...     index=['sample1', 'sample2'],
    ... )
    >>> table = AnnotatedTable(
    ...     targets,
    ...     labels=["Treatment/Control", "Age at disease onset", "Sex of patient"],
    ... )
    >>> table.column_label('age')
    'Age at disease onset'
    >>> table.select(['sample2']).rows.tolist()
    ['sample2']
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from exprset.core.errors import (
    ColumnLabelError,
    ShapeMismatchError,
    UnknownIdentifierError,
)
from exprset.core.selectors import as_identifiers

__all__ = ['AnnotatedTable']

logger = logging.getLogger(__name__)

Labels = Union[Mapping[str, str], Sequence[str], pd.DataFrame, None]


def _normalize_labels(
    labels: Labels, columns: pd.Index, strict: bool
) -> dict[str, str]:
    """Reconcile user-supplied descriptions with the table columns."""
    if labels is None:
        labels = {}
    elif isinstance(labels, pd.DataFrame):
        # varMetadata-style frame: one row per column, 'labelDescription' column
        if 'labelDescription' not in labels.columns:
            raise ColumnLabelError(
                "Label frame must have a 'labelDescription' column, "
                f"got {list(labels.columns)}"
            )
        if isinstance(labels.index, pd.RangeIndex):
            labels = labels['labelDescription'].tolist()
        else:
            labels = labels['labelDescription'].to_dict()

    if not isinstance(labels, Mapping):
        labels = list(labels)
        if len(labels) != len(columns):
            raise ShapeMismatchError(
                f"Got {len(labels)} positional column labels for {len(columns)} columns"
            )
        labels = dict(zip(columns, labels))

    labels = {str(k): str(v) for k, v in labels.items()}

    unknown = [k for k in labels if k not in columns]
    if unknown:
        raise ColumnLabelError(f"Labels given for unknown columns: {unknown}")

    missing = [c for c in columns if c not in labels]
    if missing:
        if strict:
            raise ColumnLabelError(f"No description supplied for columns: {missing}")
        logger.debug(f"Defaulting labels to column names for: {missing}")

    # Column order drives label order
    return {c: labels.get(c, c) for c in columns}


class AnnotatedTable:
    """
    Table of per-row records with described columns.

    Attributes:
        rows: Row identifiers (unique strings)
        columns: Column names in table order
        labels: Column name -> description
        data: Copy of the underlying DataFrame (indexed by rows)

    Invariants:
        - rows are unique
        - data.index equals rows
        - labels has exactly one entry per column
    """

    def __init__(
        self,
        data: Union[pd.DataFrame, Mapping[str, Iterable[Any]], None] = None,
        rows: Optional[Iterable[Any]] = None,
        labels: Labels = None,
        strict_labels: bool = False,
    ):
        """
        Build and validate an annotated table.

        Args:
            data: DataFrame, or mapping of column name -> values. When rows is
                omitted a DataFrame's own index supplies the row identifiers.
            rows: Row identifiers, one per data row
            labels: Column descriptions, as a mapping, a positional sequence in
                column order, or a frame with a 'labelDescription' column
            strict_labels: Raise instead of defaulting missing descriptions

        Raises:
            DuplicateIdentifierError: Repeated row identifiers
            ShapeMismatchError: Row count differs from len(rows), or a
                positional label list has the wrong length
            ColumnLabelError: Labels for unknown columns, or (strict) missing labels
        """
        if data is None:
            data = pd.DataFrame(index=pd.Index([] if rows is None else list(rows)))
        elif not isinstance(data, pd.DataFrame):
            data = pd.DataFrame(dict(data))
        else:
            data = data.copy()

        if rows is None:
            rows = data.index
        else:
            rows = list(rows)
            if len(rows) != len(data):
                raise ShapeMismatchError(
                    f"Table has {len(data)} rows but {len(rows)} row identifiers were given"
                )

        row_index = as_identifiers(rows, "table rows")
        data.index = row_index
        data.columns = pd.Index([str(c) for c in data.columns], dtype=object)
        if data.columns.has_duplicates:
            raise ColumnLabelError(
                f"Duplicate column names: {data.columns[data.columns.duplicated()].tolist()}"
            )

        self._labels = _normalize_labels(labels, data.columns, strict_labels)
        self._data = data
        self._strict_labels = strict_labels

    @classmethod
    def empty(cls, rows: Iterable[Any] = ()) -> AnnotatedTable:
        """Zero-column table over the given rows."""
        return cls(pd.DataFrame(index=pd.Index(list(rows), dtype=object)))

    @classmethod
    def _from_validated(
        cls, data: pd.DataFrame, labels: dict[str, str], strict_labels: bool
    ) -> AnnotatedTable:
        # Skips re-validation: data comes from an existing table
        table = cls.__new__(cls)
        table._data = data
        table._labels = dict(labels)
        table._strict_labels = strict_labels
        return table

    @property
    def rows(self) -> pd.Index:
        """Row identifiers."""
        return self._data.index

    @property
    def columns(self) -> list[str]:
        """Column names in table order."""
        return list(self._data.columns)

    @property
    def labels(self) -> dict[str, str]:
        """Column name -> description."""
        return dict(self._labels)

    @property
    def data(self) -> pd.DataFrame:
        """Copy of the underlying table."""
        return self._data.copy()

    @property
    def shape(self) -> tuple[int, int]:
        return self._data.shape

    def __len__(self) -> int:
        return len(self._data)

    def get(self, row_id: Any) -> pd.Series:
        """
        Fetch one row record.

        Raises:
            UnknownIdentifierError: If row_id is not a row of this table
        """
        key = str(row_id)
        if key not in self._data.index:
            raise UnknownIdentifierError([key])
        return self._data.loc[key].copy()

    def select(self, row_ids: Iterable[Any]) -> AnnotatedTable:
        """
        Restrict to the given rows, in exactly the given order.

        Args:
            row_ids: Identifiers to keep; the result follows this order

        Returns:
            New AnnotatedTable (labels carried over)

        Raises:
            UnknownIdentifierError: Listing every requested id not present
            DuplicateIdentifierError: If an identifier is requested twice
        """
        wanted = as_identifiers(row_ids, "selected rows")
        positions = self._data.index.get_indexer(wanted)
        if (positions < 0).any():
            raise UnknownIdentifierError(wanted[positions < 0].tolist())
        return self.take(positions)

    def take(self, positions: Union[Sequence[int], np.ndarray]) -> AnnotatedTable:
        """Restrict to rows by position, in the given order."""
        subset = self._data.iloc[np.asarray(positions, dtype=np.intp)].copy()
        return AnnotatedTable._from_validated(subset, self._labels, self._strict_labels)

    def column_label(self, column: str) -> str:
        """
        Description of a column, or the column name if none was supplied.

        Raises:
            ColumnLabelError: If the column does not exist
        """
        if column not in self._labels:
            raise ColumnLabelError(f"Unknown column: {column!r}")
        return self._labels[column]

    def to_frame(self, with_labels: bool = False) -> pd.DataFrame:
        """
        Table as a DataFrame.

        With with_labels=True the columns are renamed to their descriptions,
        which is what report tables usually want.
        """
        if with_labels:
            return self._data.rename(columns=self._labels)
        return self._data.copy()

    def equals(self, other: object) -> bool:
        """Same rows, same values, same labels."""
        if not isinstance(other, AnnotatedTable):
            return False
        return self._labels == other._labels and self._data.equals(other._data)

    def __repr__(self) -> str:
        n_rows, n_cols = self._data.shape
        rows = self._data.index
        if n_rows == 0:
            row_names = "none"
        elif n_rows <= 4:
            row_names = ", ".join(rows)
        else:
            row_names = f"{rows[0]}, {rows[1]}, ..., {rows[-1]} ({n_rows} total)"
        lines = [
            f"AnnotatedTable ({n_rows} rows × {n_cols} columns)",
            f"  rowNames: {row_names}",
            f"  varLabels: {', '.join(self.columns) if n_cols else 'none'}",
        ]
        if n_cols:
            lines.append("  varMetadata: labelDescription")
            for column, label in self._labels.items():
                lines.append(f"    {column}: {label}")
        return "\n".join(lines)
