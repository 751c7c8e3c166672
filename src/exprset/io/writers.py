"""
Writers for expression sets.

A set is persisted as a directory of plain files so it can be opened from R,
Excel or a text editor:

    exprs.csv      - Matrix (first column feature ids, header sample ids)
    pheno.csv      - Sample covariates (only if a sample table is bound)
    features.csv   - Feature annotations (only if a feature table is bound)
    manifest.json  - Format version, which axes carry identifiers, column
                     descriptions and types, and the experiment record

Files are written atomically; the manifest is written last, so a directory
with a manifest always has complete tables next to it.

Examples:
    >>> from exprset.io import write_expression_set, read_expression_set
    >>> write_expression_set(eset, Path("results/young_subset"))
    >>> reloaded = read_expression_set(Path("results/young_subset"))
    >>> reloaded.equals(eset)
    True
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

import pandas as pd

from exprset.core.annotated_table import AnnotatedTable
from exprset.core.expression_set import ExpressionSet
from exprset.io.loaders import FORMAT_NAME, FORMAT_VERSION, MANIFEST_NAME
from exprset.utils.fileio import atomic_write_csv, atomic_write_json

__all__ = ['write_expression_set', 'write_annotated_table', 'column_types']

logger = logging.getLogger(__name__)


def _json_scalar(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "item"):
        return value.item()
    return str(value)


def column_types(table: AnnotatedTable) -> dict[str, dict[str, Any]]:
    """
    Per-column type record for the manifest.

    Categorical columns keep their categories and ordering, so a factor
    such as ``sex`` is not reloaded as plain text.
    """
    types: dict[str, dict[str, Any]] = {}
    for column, dtype in table.to_frame().dtypes.items():
        if isinstance(dtype, pd.CategoricalDtype):
            types[column] = {
                'dtype': 'category',
                'categories': [_json_scalar(c) for c in dtype.categories],
                'ordered': bool(dtype.ordered),
            }
        else:
            types[column] = {'dtype': str(dtype)}
    return types


def write_annotated_table(table: AnnotatedTable, path: Union[str, Path]) -> None:
    """
    Write a table's data as CSV with row identifiers in the first column.

    Column descriptions are not part of the CSV; write_expression_set keeps
    them in the manifest.
    """
    if not isinstance(table, AnnotatedTable):
        raise TypeError(f"table must be AnnotatedTable, got {type(table)}")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_csv(path, table.to_frame(), index_label="")
    logger.info(f"Wrote table to {path}")


def write_expression_set(eset: ExpressionSet, directory: Union[str, Path]) -> Path:
    """
    Persist an ExpressionSet as a set directory.

    Args:
        eset: Set to write
        directory: Target directory (created if missing; existing set files
            are overwritten)

    Returns:
        Path of the written manifest

    Raises:
        TypeError: If eset is not an ExpressionSet
        OSError: If the directory is not writable
    """
    if not isinstance(eset, ExpressionSet):
        raise TypeError(f"eset must be ExpressionSet, got {type(eset)}")

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    manifest: dict[str, Any] = {
        'format': FORMAT_NAME,
        'version': FORMAT_VERSION,
        'shape': list(eset.shape),
        'exprs': 'exprs.csv',
        'has_feature_ids': eset.feature_ids is not None,
        'has_sample_ids': eset.sample_ids is not None,
        'pheno': None,
        'features': None,
        'metadata': None,
    }

    atomic_write_csv(directory / 'exprs.csv', eset.exprs(), index_label="")

    if eset.has_pheno:
        write_annotated_table(eset.pheno(), directory / 'pheno.csv')
        manifest['pheno'] = {
            'file': 'pheno.csv',
            'labels': eset.pheno().labels,
            'column_types': column_types(eset.pheno()),
        }
    if eset.has_features:
        write_annotated_table(eset.features(), directory / 'features.csv')
        manifest['features'] = {
            'file': 'features.csv',
            'labels': eset.features().labels,
            'column_types': column_types(eset.features()),
        }

    metadata = eset.describe()
    if not metadata.is_empty():
        manifest['metadata'] = metadata.to_dict()

    manifest_path = directory / MANIFEST_NAME
    atomic_write_json(manifest_path, manifest)
    logger.info(f"Wrote {eset.n_features}×{eset.n_samples} set to {directory}")
    return manifest_path
