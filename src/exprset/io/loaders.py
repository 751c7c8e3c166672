"""
Loaders for expression matrices, annotation tables and experiment records.

These are the "external collaborator" side of the core: they turn delimited
text and YAML/JSON files into the in-memory shapes ExpressionSet accepts,
and reassemble a set directory written by ``write_expression_set``.

Expected matrix layout:
    - First column: feature identifiers (header may be empty)
    - Header row: sample identifiers
    - Body: numeric values

    ```
    "","sample1","sample2"
    "gene1",7.21,6.98
    "gene2",3.05,3.40
    ```

Engineering Design:
    - Delimiter sniffed unless given (comma, tab, semicolon, pipe)
    - Identifier columns are read as strings, so "001" stays "001"
    - Duplicate identifiers are errors, never silently dropped
    - NaN is a warning (may be imputed later), inf is an error
    - read_expression_set re-runs every constructor invariant

Examples:
    >>> from exprset.io.loaders import load_csv_matrix, load_annotated_table
    >>> exprs = load_csv_matrix(Path("expression.csv"))
    >>> targets = load_annotated_table(Path("targets.csv"), labels=Path("labels.csv"))
    >>> eset = ExpressionSet(exprs, pheno=targets)
"""

from __future__ import annotations

import csv
import json
import logging
import warnings
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
import yaml

from exprset.core.annotated_table import AnnotatedTable
from exprset.core.errors import DuplicateIdentifierError, ExpressionSetError
from exprset.core.expression_set import ExpressionSet
from exprset.core.metadata import ExperimentMetadata

__all__ = [
    'sniff_delimiter',
    'load_csv_matrix',
    'load_annotated_table',
    'load_column_labels',
    'load_metadata',
    'read_mapping_file',
    'read_expression_set',
    'MANIFEST_NAME',
    'FORMAT_NAME',
    'FORMAT_VERSION',
]

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
FORMAT_NAME = "exprset"
FORMAT_VERSION = 1

PathLike = Union[str, Path]


def _require_file(path: PathLike, what: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")
    return path


def sniff_delimiter(path: PathLike, sample_size: int = 8192) -> str:
    """
    Auto-detect delimiter from file content.

    Uses csv.Sniffer, falling back to counting candidates in the header line.

    Raises:
        ValueError: If no candidate delimiter occurs in the header
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        sample = f.read(sample_size)

    try:
        dialect = csv.Sniffer().sniff(sample, delimiters='\t,;|')
        return dialect.delimiter
    except csv.Error:
        pass

    first_line = sample.split('\n')[0]
    counts = {d: first_line.count(d) for d in ('\t', ',', ';', '|')}
    if max(counts.values()) == 0:
        raise ValueError(
            f"Could not detect delimiter in {path}. Please pass delimiter explicitly"
        )
    return max(counts, key=counts.get)


def _read_indexed_table(
    path: Path, delimiter: Optional[str], as_text: bool = False
) -> pd.DataFrame:
    """
    Read a delimited table whose first column holds string identifiers.

    With as_text=True every cell stays a string and only empty cells become
    NaN, so values such as "001" or "NA" survive for later typed restoration.
    """
    sep = delimiter or sniff_delimiter(path)
    if as_text:
        options = dict(dtype=str, keep_default_na=False, na_values=[""])
    else:
        options = dict(converters={0: str}, float_precision="round_trip")
    try:
        df = pd.read_csv(path, sep=sep, **options)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"File is empty: {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to parse {path}: {e}") from e

    if df.shape[1] == 0:
        raise ValueError(f"File has no identifier column: {path}")

    id_col = df.columns[0]
    df = df.set_index(id_col)
    df.index.name = None if str(id_col).startswith("Unnamed") else id_col

    if df.index.has_duplicates:
        raise DuplicateIdentifierError(
            f"Row identifiers in {path.name}", df.index[df.index.duplicated()].unique()
        )
    return df


def load_csv_matrix(path: PathLike, delimiter: Optional[str] = None) -> pd.DataFrame:
    """
    Load a delimited expression matrix.

    Args:
        path: Matrix file (features × samples, first column feature ids)
        delimiter: Field separator; sniffed when None

    Returns:
        DataFrame of floats, index = feature ids, columns = sample ids

    Raises:
        FileNotFoundError: If path does not exist
        DuplicateIdentifierError: Repeated feature or sample identifiers
        ValueError: Empty file, no samples, non-numeric or infinite values
    """
    path = _require_file(path, "Matrix file")
    df = _read_indexed_table(path, delimiter)

    if df.shape[0] == 0:
        raise ValueError(f"Matrix contains no features (rows): {path}")
    if df.shape[1] == 0:
        raise ValueError(f"Matrix contains no samples (columns): {path}")

    # pandas renames repeated headers to "x.1"; check the raw header instead
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        header = next(csv.reader(f, delimiter=delimiter or sniff_delimiter(path)))
    sample_ids = pd.Index(header[1:])
    if sample_ids.has_duplicates:
        raise DuplicateIdentifierError(
            f"Sample identifiers in {path.name}", sample_ids[sample_ids.duplicated()].unique()
        )
    df.columns = sample_ids

    try:
        data = df.to_numpy(dtype=float)
    except (TypeError, ValueError) as e:
        non_numeric = []
        for feature, row in df.iterrows():
            for sample, value in row.items():
                try:
                    float(value)
                except (TypeError, ValueError):
                    non_numeric.append(f"row '{feature}', col '{sample}': {value!r}")
                if len(non_numeric) >= 5:
                    break
            if len(non_numeric) >= 5:
                break
        raise ValueError(
            "Matrix contains non-numeric values:\n"
            + "\n".join(f"  - {x}" for x in non_numeric)
            + ("\n  ..." if len(non_numeric) >= 5 else "")
        ) from e

    if np.isinf(data).any():
        raise ValueError(
            f"Matrix contains {int(np.isinf(data).sum())} infinite values. "
            "Please clean data before loading."
        )
    if np.isnan(data).any():
        n_nan = int(np.isnan(data).sum())
        warnings.warn(
            f"Found {n_nan:,} NaN values ({100 * n_nan / data.size:.2f}% of data).",
            UserWarning,
        )

    logger.info(f"Loaded matrix {path.name}: {data.shape[0]} features × {data.shape[1]} samples")
    return pd.DataFrame(data, index=df.index, columns=sample_ids)


def load_column_labels(path: PathLike, delimiter: Optional[str] = None) -> dict[str, str]:
    """
    Load column descriptions from a two-column file (column, labelDescription).

    A header row is expected; only the first two columns are used.
    """
    path = _require_file(path, "Label file")
    df = _read_indexed_table(path, delimiter)
    if df.shape[1] < 1:
        raise ValueError(f"Label file needs a description column: {path}")
    return {str(k): str(v) for k, v in df.iloc[:, 0].items()}


def load_annotated_table(
    path: PathLike,
    labels: Union[Mapping[str, str], Sequence[str], PathLike, None] = None,
    delimiter: Optional[str] = None,
    strict_labels: bool = False,
    column_types: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> AnnotatedTable:
    """
    Load a covariate/annotation table keyed by its first column.

    Args:
        path: Table file; first column holds row identifiers
        labels: Column descriptions (mapping, positional list, or a path to a
            label file readable by load_column_labels)
        delimiter: Field separator; sniffed when None
        strict_labels: Require a description for every column
        column_types: Column name -> {"dtype": ..., "categories": [...],
            "ordered": ...} as recorded by write_expression_set. When given,
            cells are read as text and cast to exactly these types instead
            of being inferred.

    Raises:
        FileNotFoundError: If a file does not exist
        DuplicateIdentifierError: Repeated row identifiers
        ColumnLabelError / ShapeMismatchError: Labels do not fit the columns
    """
    path = _require_file(path, "Table file")
    df = _read_indexed_table(path, delimiter, as_text=column_types is not None)
    if column_types is not None:
        df = _restore_column_types(df, column_types)
    if isinstance(labels, (str, Path)):
        labels = load_column_labels(labels)
    table = AnnotatedTable(df, labels=labels, strict_labels=strict_labels)
    logger.info(f"Loaded table {path.name}: {len(table)} rows, columns {table.columns}")
    return table


def _restore_column(values: pd.Series, spec: Mapping[str, Any]) -> pd.Series:
    dtype = spec["dtype"]
    if dtype == "category":
        categories = list(spec.get("categories", []))
        by_text = {str(c): c for c in categories}
        unknown = sorted(set(values.dropna()) - set(by_text))
        if unknown:
            raise ValueError(
                f"Column {values.name!r} holds values outside its categories: {unknown[:5]}"
            )
        restored = values.map(by_text)
        return pd.Series(
            pd.Categorical(restored, categories=categories, ordered=bool(spec.get("ordered"))),
            index=values.index,
            name=values.name,
        )
    if dtype in ("bool", "boolean"):
        return values.map({"True": True, "False": False}).astype(dtype)

    target = pd.api.types.pandas_dtype(dtype)
    if pd.api.types.is_float_dtype(target):
        return values.astype(float).astype(target)
    if pd.api.types.is_numeric_dtype(target):
        return pd.to_numeric(values).astype(target)
    if target == object:
        return values.astype(object)
    return values.astype(target)


def _restore_column_types(
    df: pd.DataFrame, column_types: Mapping[str, Mapping[str, Any]]
) -> pd.DataFrame:
    """Cast text columns back to the types recorded for them."""
    unknown = sorted(set(column_types) - set(df.columns))
    if unknown:
        raise ValueError(f"Recorded column types for absent columns: {unknown}")
    restored = df.copy()
    for column, spec in column_types.items():
        try:
            restored[column] = _restore_column(df[column], spec)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Cannot restore column {column!r} as {spec.get('dtype')}: {e}"
            ) from e
    return restored


def read_mapping_file(path: PathLike) -> dict[str, Any]:
    """
    Read a YAML (.yaml/.yml) or JSON (.json) file holding a mapping.

    Returns an empty dict for an empty file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: Unsupported suffix, invalid syntax or non-mapping content
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                content = yaml.safe_load(f)
            elif suffix == '.json':
                content = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported format: {suffix}. Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"{path} must contain a mapping at top level")
    return content


def load_metadata(path: PathLike) -> ExperimentMetadata:
    """
    Load an experiment description from YAML or JSON.

    Examples:
        ```yaml
        name: Alex Sanchez
        lab: Bioinformatics Lab
        contact: alex@somemail.com
        title: Practical Exercise on ExpressionSets
        ```
    """
    return ExperimentMetadata.from_dict(read_mapping_file(path))


def read_expression_set(directory: PathLike) -> ExpressionSet:
    """
    Reassemble a set directory written by write_expression_set.

    All constructor invariants are re-checked, so a directory whose tables
    were edited by hand out of step with the matrix fails to load.

    Raises:
        FileNotFoundError: Missing directory, manifest or table file
        ValueError: Unknown format or version in the manifest
        ExpressionSetError: Parts no longer agree with each other
    """
    directory = Path(directory)
    manifest_path = directory / MANIFEST_NAME
    if not manifest_path.exists():
        raise FileNotFoundError(f"No {MANIFEST_NAME} in {directory}")

    with open(manifest_path, 'r', encoding='utf-8') as f:
        manifest = json.load(f)

    if manifest.get('format') != FORMAT_NAME:
        raise ValueError(f"{manifest_path} is not an {FORMAT_NAME} manifest")
    if manifest.get('version') != FORMAT_VERSION:
        raise ValueError(
            f"Unsupported {FORMAT_NAME} version {manifest.get('version')} "
            f"(expected {FORMAT_VERSION})"
        )

    exprs = load_csv_matrix(directory / manifest['exprs'], delimiter=',')
    feature_ids = exprs.index if manifest.get('has_feature_ids', True) else None
    sample_ids = exprs.columns if manifest.get('has_sample_ids', True) else None

    tables = {}
    for key in ('pheno', 'features'):
        entry = manifest.get(key)
        if entry:
            tables[key] = load_annotated_table(
                directory / entry['file'],
                labels=entry.get('labels'),
                delimiter=',',
                column_types=entry.get('column_types'),
            )

    metadata = manifest.get('metadata')
    try:
        eset = ExpressionSet(
            exprs.to_numpy(),
            pheno=tables.get('pheno'),
            features=tables.get('features'),
            metadata=ExperimentMetadata.from_dict(metadata) if metadata else None,
            feature_ids=feature_ids,
            sample_ids=sample_ids,
        )
    except ExpressionSetError:
        logger.error(f"Set directory {directory} is internally inconsistent")
        raise

    logger.info(f"Read {eset.n_features}×{eset.n_samples} set from {directory}")
    return eset
