"""Tests for ExpressionSet construction, validation and accessors."""

import numpy as np
import pandas as pd
import pytest

from exprset.core import (
    AnnotatedTable,
    DuplicateIdentifierError,
    ExperimentMetadata,
    ExpressionSet,
    ExpressionSetError,
    FeatureMismatchError,
    MissingIdentifiersError,
    SampleMismatchError,
    ShapeMismatchError,
)

from conftest import GENES, SAMPLES


class TestConstruction:

    def test_full_set(self, eset):
        assert eset.shape == (30, 10)
        assert eset.n_features == 30
        assert eset.n_samples == 10
        assert eset.feature_ids.tolist() == GENES
        assert eset.sample_ids.tolist() == SAMPLES

    def test_alignment_invariant(self, eset):
        assert eset.exprs().columns.tolist() == eset.pheno().rows.tolist()
        assert eset.exprs().index.tolist() == eset.features().rows.tolist()

    def test_matrix_only(self, expression_values):
        eset = ExpressionSet(expression_values.to_numpy())
        assert eset.shape == (30, 10)
        assert eset.feature_ids is None
        assert eset.sample_ids is None
        assert not eset.has_pheno
        assert not eset.has_features

    def test_ndarray_with_identifiers(self, expression_values, pheno):
        eset = ExpressionSet(
            expression_values.to_numpy(),
            pheno=pheno,
            feature_ids=GENES,
            sample_ids=SAMPLES,
        )
        assert eset.sample_ids.tolist() == SAMPLES
        assert eset.feature_ids.tolist() == GENES

    def test_reordered_sample_table_follows_matrix(self, expression_values, targets):
        shuffled = AnnotatedTable(targets.iloc[::-1])
        assert shuffled.rows[0] == "sample10"

        eset = ExpressionSet(expression_values, pheno=shuffled)

        assert eset.pheno().rows.tolist() == SAMPLES
        assert eset.pheno().get("sample1")['age'] == 25
        assert eset.pheno().data['age'].tolist() == targets['age'].tolist()

    def test_reordered_feature_table_follows_matrix(self, expression_values, gene_info):
        shuffled = AnnotatedTable(gene_info.sample(frac=1.0, random_state=0))
        eset = ExpressionSet(expression_values, features=shuffled)
        assert eset.features().rows.tolist() == GENES
        assert eset.features().get("gene7")['symbol'] == "SYM7"

    def test_matrix_is_a_private_copy(self, expression_values):
        eset = ExpressionSet(expression_values)
        original = eset.data[0, 0]
        expression_values.iloc[0, 0] = 999.0
        assert eset.data[0, 0] == original

    def test_matrix_is_read_only(self, eset):
        with pytest.raises(ValueError):
            eset.data[0, 0] = 1.0

    def test_integer_matrix(self):
        counts = pd.DataFrame([[1, 2], [3, 4]], index=["g1", "g2"], columns=["s1", "s2"])
        eset = ExpressionSet(counts)
        assert eset.data.dtype.kind == 'i'
        assert eset.equals(ExpressionSet(counts))


class TestValidation:

    def test_sample_table_missing_one_sample(self, expression_values, targets):
        # Classic slip: drop sample 10 from the covariates only
        pheno = AnnotatedTable(targets.drop(index="sample10"))
        with pytest.raises(SampleMismatchError) as excinfo:
            ExpressionSet(expression_values, pheno=pheno)
        assert excinfo.value.missing_in_table == ["sample10"]
        assert excinfo.value.extra_in_table == []
        assert "sample10" in str(excinfo.value)

    def test_wrong_row_removed_reports_both_sides(self, expression_values, targets):
        # Matrix drops sample 9, covariates drop sample 10
        new_express = expression_values.drop(columns="sample9")
        wrong_targets = AnnotatedTable(targets.drop(index="sample10"))
        with pytest.raises(SampleMismatchError) as excinfo:
            ExpressionSet(new_express, pheno=wrong_targets)
        assert excinfo.value.missing_in_table == ["sample10"]
        assert excinfo.value.extra_in_table == ["sample9"]

    def test_feature_mismatch(self, expression_values, gene_info):
        features = AnnotatedTable(gene_info.iloc[:29])
        with pytest.raises(FeatureMismatchError) as excinfo:
            ExpressionSet(expression_values, features=features)
        assert excinfo.value.missing_in_table == ["gene30"]

    def test_sample_table_without_sample_ids(self, expression_values, pheno):
        with pytest.raises(MissingIdentifiersError) as excinfo:
            ExpressionSet(expression_values.to_numpy(), pheno=pheno)
        assert excinfo.value.axis == "samples"

    def test_feature_table_without_feature_ids(self, expression_values, features):
        with pytest.raises(MissingIdentifiersError) as excinfo:
            ExpressionSet(expression_values.to_numpy(), features=features, sample_ids=SAMPLES)
        assert excinfo.value.axis == "features"

    def test_duplicate_sample_ids(self, expression_values):
        ids = SAMPLES[:9] + ["sample1"]
        with pytest.raises(DuplicateIdentifierError):
            ExpressionSet(expression_values.to_numpy(), sample_ids=ids)

    def test_duplicate_feature_ids_in_frame(self, expression_values):
        frame = expression_values.copy()
        frame.index = GENES[:29] + ["gene1"]
        with pytest.raises(DuplicateIdentifierError):
            ExpressionSet(frame)

    def test_identifier_length_mismatch(self, expression_values):
        with pytest.raises(ShapeMismatchError):
            ExpressionSet(expression_values.to_numpy(), sample_ids=SAMPLES[:9])
        with pytest.raises(ShapeMismatchError):
            ExpressionSet(expression_values.to_numpy(), feature_ids=GENES + ["gene31"])

    def test_empty_matrix(self):
        with pytest.raises(ShapeMismatchError):
            ExpressionSet(np.empty((0, 3)))
        with pytest.raises(ShapeMismatchError):
            ExpressionSet(np.empty((3, 0)))

    def test_one_dimensional_matrix(self):
        with pytest.raises(ShapeMismatchError):
            ExpressionSet(np.arange(5.0))

    def test_non_numeric_matrix(self):
        with pytest.raises(TypeError):
            ExpressionSet(np.array([["a", "b"], ["c", "d"]]))

    def test_numeric_strings_rejected(self, expression_values):
        with pytest.raises(TypeError):
            ExpressionSet(np.array([["1", "2"], ["3", "4"]]))
        with pytest.raises(TypeError):
            ExpressionSet(np.array([[1.0, "2"]], dtype=object))
        with pytest.raises(TypeError):
            ExpressionSet(expression_values.astype(str))

    def test_object_array_of_numbers(self):
        eset = ExpressionSet(np.array([[1, 2.5], [3, 4]], dtype=object))
        assert eset.data.dtype == float

    def test_wrong_types(self, expression_values, targets):
        with pytest.raises(TypeError):
            ExpressionSet(expression_values.values.tolist())
        with pytest.raises(TypeError):
            ExpressionSet(expression_values, pheno=targets)
        with pytest.raises(TypeError):
            ExpressionSet(expression_values, metadata={'name': "x"})

    def test_errors_are_value_errors(self, expression_values, targets):
        pheno = AnnotatedTable(targets.drop(index="sample1"))
        with pytest.raises(ValueError):
            ExpressionSet(expression_values, pheno=pheno)
        with pytest.raises(ExpressionSetError):
            ExpressionSet(expression_values, pheno=pheno)


class TestAccessors:

    def test_exprs_frame(self, eset, expression_values):
        frame = eset.exprs()
        assert isinstance(frame, pd.DataFrame)
        np.testing.assert_array_equal(frame.to_numpy(), expression_values.to_numpy())
        assert frame.index.tolist() == GENES

    def test_exprs_positional_axes(self, expression_values):
        eset = ExpressionSet(expression_values.to_numpy())
        frame = eset.exprs()
        assert frame.index.tolist() == list(range(30))
        assert frame.columns.tolist() == list(range(10))

    def test_pheno_without_table_is_empty(self, expression_values):
        eset = ExpressionSet(expression_values)
        pheno = eset.pheno()
        assert pheno.shape == (10, 0)
        assert pheno.rows.tolist() == SAMPLES

    def test_features_without_table_is_empty(self, expression_values):
        eset = ExpressionSet(expression_values)
        assert eset.features().shape == (30, 0)

    def test_describe(self, eset, expression_values):
        assert eset.describe().name == "Alex Sanchez"
        assert ExpressionSet(expression_values).describe().is_empty()

    def test_pheno_labels_survive_binding(self, eset):
        assert eset.pheno().column_label('group') == "Treatment/Control"

    def test_repr(self, eset):
        text = repr(eset)
        assert "30 features × 10 samples" in text
        assert "gene1...gene30" in text
        assert "['group', 'age', 'sex']" in text
        assert "Practical Exercise on ExpressionSets" in text
        assert str(eset) == text

    def test_repr_positional(self, expression_values):
        assert "(positional)" in repr(ExpressionSet(expression_values.to_numpy()))


class TestEquality:

    def test_equals_and_copy(self, eset):
        clone = eset.copy()
        assert clone is not eset
        assert clone.equals(eset)
        assert not np.shares_memory(clone.data, eset.data)

    def test_metadata_participates(self, expression_values, info):
        with_info = ExpressionSet(expression_values, metadata=info)
        without = ExpressionSet(expression_values)
        assert not with_info.equals(without)
        assert with_info.equals(ExpressionSet(expression_values, metadata=ExperimentMetadata(
            name="Alex Sanchez",
            lab="Bioinformatics Lab",
            contact="alex@somemail.com",
            title="Practical Exercise on ExpressionSets",
        )))

    def test_positional_vs_labelled(self, expression_values):
        labelled = ExpressionSet(expression_values)
        positional = ExpressionSet(expression_values.to_numpy())
        assert not labelled.equals(positional)

    def test_nan_values_compare_equal(self):
        values = np.array([[1.0, np.nan], [2.0, 3.0]])
        assert ExpressionSet(values).equals(ExpressionSet(values.copy()))
