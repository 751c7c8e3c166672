"""
I/O module for loading and writing annotated expression data.

Key Functions:
    - load_csv_matrix: Load an expression matrix from delimited text
    - load_annotated_table: Load a covariate/annotation table (+ descriptions)
    - load_metadata: Load an experiment record from YAML/JSON
    - write_expression_set / read_expression_set: Persist a whole set as a
      directory of CSV files plus a JSON manifest

The core never parses files itself; these functions produce the matrices and
tables it accepts, and re-run its invariants on load.
"""

from exprset.io.loaders import (
    load_annotated_table,
    load_column_labels,
    load_csv_matrix,
    load_metadata,
    read_expression_set,
    read_mapping_file,
    sniff_delimiter,
)
from exprset.io.writers import write_annotated_table, write_expression_set

__all__ = [
    'load_csv_matrix',
    'load_annotated_table',
    'load_column_labels',
    'load_metadata',
    'read_mapping_file',
    'read_expression_set',
    'sniff_delimiter',
    'write_expression_set',
    'write_annotated_table',
]
