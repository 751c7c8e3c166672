"""
Pytest configuration and shared fixtures.

The fixtures mirror the classic ExpressionSet teaching example: 30 genes ×
10 samples, five controls and five treated, with age and sex covariates.
"""

import numpy as np
import pandas as pd
import pytest

from exprset import AnnotatedTable, ExperimentMetadata, ExpressionSet

SAMPLES = [f"sample{i}" for i in range(1, 11)]
GENES = [f"gene{i}" for i in range(1, 31)]

# sample1, 3, 5, 7 and 9 are younger than 30
AGES = [25, 31, 28, 40, 22, 35, 29, 33, 27, 38]
YOUNG = ["sample1", "sample3", "sample5", "sample7", "sample9"]

PHENO_LABELS = [
    "Treatment/Control",
    "Age at disease onset",
    "Sex of patient (Male/Female)",
]


@pytest.fixture
def expression_values():
    """30 × 10 normally distributed matrix labelled gene1.. × sample1.."""
    rng = np.random.default_rng(42)
    return pd.DataFrame(rng.normal(size=(30, 10)), index=GENES, columns=SAMPLES)


@pytest.fixture
def targets():
    """Sample covariates keyed by sample id."""
    return pd.DataFrame(
        {
            'group': [f"CTL{i}" for i in range(1, 6)] + [f"TR{i}" for i in range(1, 6)],
            'age': AGES,
            'sex': ["Male", "Female", "Female", "Male", "Male",
                    "Female", "Male", "Female", "Male", "Female"],
        },
        index=SAMPLES,
    )


@pytest.fixture
def gene_info():
    """Feature annotations keyed by gene id."""
    return pd.DataFrame(
        {
            'symbol': [f"SYM{i}" for i in range(1, 31)],
            'chromosome': [f"chr{1 + i % 22}" for i in range(30)],
        },
        index=GENES,
    )


@pytest.fixture
def pheno(targets):
    return AnnotatedTable(targets, labels=PHENO_LABELS)


@pytest.fixture
def features(gene_info):
    return AnnotatedTable(gene_info, labels={'symbol': "HGNC symbol"})


@pytest.fixture
def info():
    return ExperimentMetadata(
        name="Alex Sanchez",
        lab="Bioinformatics Lab",
        contact="alex@somemail.com",
        title="Practical Exercise on ExpressionSets",
    )


@pytest.fixture
def eset(expression_values, pheno, features, info):
    """Fully annotated set."""
    return ExpressionSet(expression_values, pheno=pheno, features=features, metadata=info)


@pytest.fixture
def set_files(tmp_path, expression_values, targets, gene_info):
    """The fixture tables written as CSV, plus a label file and YAML metadata."""
    paths = {
        'matrix': tmp_path / "expression.csv",
        'pheno': tmp_path / "targets.csv",
        'pheno_labels': tmp_path / "labels.csv",
        'features': tmp_path / "genes.csv",
        'metadata': tmp_path / "experiment.yaml",
    }
    expression_values.to_csv(paths['matrix'])
    targets.to_csv(paths['pheno'], index_label="sampleNames")
    gene_info.to_csv(paths['features'], index_label="gene")
    pd.DataFrame(
        {'labelDescription': PHENO_LABELS}, index=['group', 'age', 'sex']
    ).to_csv(paths['pheno_labels'], index_label="column")
    paths['metadata'].write_text(
        "name: Alex Sanchez\n"
        "lab: Bioinformatics Lab\n"
        "contact: alex@somemail.com\n"
        "title: Practical Exercise on ExpressionSets\n"
    )
    return paths
