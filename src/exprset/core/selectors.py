"""
Identifier normalisation and selector resolution for container subsetting.

Every subset request is reduced to a concrete, ordered array of integer
positions along one axis before anything is sliced. Tables and matrix are
then cut with the same resolved positions, so the two can never drift apart.

Supported selectors:
    - ``"all"``, ``None`` or ``slice`` objects
    - a single position (int) or identifier (str)
    - an ordered sequence of positions (ints) or identifiers (strs);
      order is preserved, so selection doubles as reordering
    - a boolean mask with one entry per axis element (ndarray or Series)
      (a Series indexed by identifiers is matched by label, not position)
    - a callable predicate over an axis record (sample axis only), e.g.
      ``lambda rec: rec['age'] < 30``

Examples:
    >>> labels = pd.Index(["s1", "s2", "s3"])
    >>> resolve_selector(["s3", "s1"], labels, axis="samples")
    array([2, 0])
    >>> resolve_selector(slice(0, 2), labels, axis="samples")
    array([0, 1])
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Union

import numpy as np
import pandas as pd

from exprset.core.errors import (
    AlignmentError,
    DuplicateIdentifierError,
    FeatureMismatchError,
    SampleMismatchError,
    UnknownIdentifierError,
)

__all__ = ['ALL', 'Selector', 'as_identifiers', 'resolve_selector']

ALL = "all"

Selector = Union[str, int, slice, Iterable[Any], np.ndarray, pd.Series, Callable, None]

_MISMATCH_ERRORS = {"samples": SampleMismatchError, "features": FeatureMismatchError}


def as_identifiers(values: Iterable[Any], what: str) -> pd.Index:
    """
    Coerce labels to a unique string Index.

    Args:
        values: Any iterable of hashable labels
        what: Description used in error messages ("sample ids", ...)

    Raises:
        DuplicateIdentifierError: If any label occurs more than once
    """
    index = pd.Index([str(v) for v in values], dtype=object)
    if index.has_duplicates:
        raise DuplicateIdentifierError(what, index[index.duplicated()].unique())
    return index


def _is_all(selector: Any) -> bool:
    if selector is None:
        return True
    if isinstance(selector, str) and selector == ALL:
        return True
    return False


def _from_positions(positions: np.ndarray, n: int, axis: str) -> np.ndarray:
    out_of_range = positions[(positions < -n) | (positions >= n)]
    if out_of_range.size:
        raise IndexError(
            f"Positions out of range for {axis} axis of length {n}: "
            f"{out_of_range.tolist()}"
        )
    # Negative positions count from the end, as for lists
    return np.where(positions < 0, positions + n, positions).astype(np.intp)


def _align_series(
    selector: pd.Series, labels: Optional[pd.Index], axis: str
) -> np.ndarray:
    """
    Values of a labelled boolean Series, in axis order.

    A mask built from a sorted or filtered covariate frame keeps its own row
    order; it is matched to the axis by label, never by position.
    """
    if selector.dtype != bool or isinstance(selector.index, pd.RangeIndex) or labels is None:
        return selector.to_numpy()
    index = pd.Index([str(v) for v in selector.index], dtype=object)
    if index.has_duplicates:
        raise DuplicateIdentifierError(f"{axis} mask index", index[index.duplicated()].unique())
    in_mask, on_axis = set(index), set(labels)
    if in_mask != on_axis:
        error_cls = _MISMATCH_ERRORS.get(axis, AlignmentError)
        raise error_cls(
            missing_in_table=[v for v in labels if v not in in_mask],
            extra_in_table=[v for v in index if v not in on_axis],
        )
    return pd.Series(selector.to_numpy(), index=index).reindex(labels).to_numpy()


def _from_labels(
    wanted: list[str], labels: Optional[pd.Index], axis: str
) -> np.ndarray:
    if labels is None:
        raise UnknownIdentifierError(wanted, where=f"{axis} (axis has no identifiers)")
    positions = labels.get_indexer(wanted)
    if (positions < 0).any():
        missing = [w for w, p in zip(wanted, positions) if p < 0]
        raise UnknownIdentifierError(missing, where=axis)
    return positions.astype(np.intp)


def resolve_selector(
    selector: Selector,
    labels: Optional[pd.Index],
    n: Optional[int] = None,
    axis: str = "axis",
    records: Optional[pd.DataFrame] = None,
) -> np.ndarray:
    """
    Resolve a selector to ordered integer positions along one axis.

    Args:
        selector: Any of the selector forms described in the module docstring
        labels: Axis identifiers, or None when the axis is positional only
        n: Axis length (required when labels is None)
        axis: Axis name for error messages ("samples" or "features")
        records: Per-element covariate records, indexed in axis order.
            Required for callable predicates; None disables them.

    Returns:
        1-D intp array of positions in the requested order

    Raises:
        UnknownIdentifierError: Identifier not present on the axis
        IndexError: Position outside the axis
        TypeError: Unsupported selector, mixed positions/identifiers,
            or a predicate on an axis without records
        ValueError: Boolean mask of the wrong length
        SampleMismatchError / FeatureMismatchError: Labelled boolean Series
            whose index is not the axis identifiers
    """
    if n is None:
        if labels is None:
            raise ValueError("Axis length is required for positional axes")
        n = len(labels)

    if _is_all(selector):
        return np.arange(n, dtype=np.intp)

    if isinstance(selector, slice):
        return np.arange(n, dtype=np.intp)[selector]

    if callable(selector):
        if records is None:
            raise TypeError(
                f"Predicate selectors are only supported on the samples axis, got one for {axis}"
            )
        mask = np.fromiter(
            (bool(selector(record)) for _, record in records.iterrows()),
            dtype=bool,
            count=len(records),
        )
        return np.flatnonzero(mask).astype(np.intp)

    if isinstance(selector, (str, np.str_)):
        return _from_labels([str(selector)], labels, axis)

    if isinstance(selector, (int, np.integer)) and not isinstance(selector, (bool, np.bool_)):
        return _from_positions(np.array([selector]), n, axis)

    if isinstance(selector, pd.Series):
        selector = _align_series(selector, labels, axis)

    if isinstance(selector, np.ndarray):
        if selector.ndim != 1:
            raise TypeError(f"{axis} selector must be 1-D, got shape {selector.shape}")
        if selector.dtype == bool:
            return _mask_positions(selector, n, axis)
        if np.issubdtype(selector.dtype, np.integer):
            return _from_positions(selector, n, axis)
        if selector.dtype.kind in ("U", "S"):
            return _from_labels([str(v) for v in selector], labels, axis)
        items = selector.tolist()
    else:
        items = list(selector)

    if not items:
        return np.array([], dtype=np.intp)

    if all(isinstance(v, (bool, np.bool_)) for v in items):
        return _mask_positions(np.array(items, dtype=bool), n, axis)
    if all(isinstance(v, (str, np.str_)) for v in items):
        return _from_labels([str(v) for v in items], labels, axis)
    if all(
        isinstance(v, (int, np.integer)) and not isinstance(v, (bool, np.bool_))
        for v in items
    ):
        return _from_positions(np.array(items, dtype=np.intp), n, axis)

    kinds = sorted({type(v).__name__ for v in items})
    raise TypeError(f"{axis} selector mixes element types: {kinds}")


def _mask_positions(mask: np.ndarray, n: int, axis: str) -> np.ndarray:
    if len(mask) != n:
        raise ValueError(
            f"Boolean mask length ({len(mask)}) must match n_{axis} ({n})"
        )
    return np.flatnonzero(mask).astype(np.intp)
