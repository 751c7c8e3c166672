"""End-to-end tests for the exprset command line."""

import json

import pytest

from exprset.cli import main
from exprset.io import read_expression_set

from conftest import GENES, PHENO_LABELS, YOUNG


@pytest.fixture
def built_set(set_files, tmp_path):
    """Set directory produced by ``exprset build``."""
    output = tmp_path / "eset"
    status = main([
        "build",
        "-m", str(set_files['matrix']),
        "-p", str(set_files['pheno']),
        "--pheno-labels", str(set_files['pheno_labels']),
        "-f", str(set_files['features']),
        "--metadata", str(set_files['metadata']),
        "-o", str(output),
    ])
    assert status == 0
    return output


class TestBuild:

    def test_build_writes_set(self, set_files, tmp_path, capsys):
        output = tmp_path / "eset"
        status = main([
            "build", "-m", str(set_files['matrix']), "-p", str(set_files['pheno']),
            "--pheno-labels", str(set_files['pheno_labels']),
            "--metadata", str(set_files['metadata']), "-o", str(output),
        ])
        assert status == 0
        eset = read_expression_set(output)
        assert eset.shape == (30, 10)
        assert list(eset.pheno().labels.values()) == PHENO_LABELS
        assert eset.describe().name == "Alex Sanchez"
        assert "Wrote set to" in capsys.readouterr().out

    def test_misaligned_tables(self, set_files, targets, tmp_path, capsys):
        targets.drop(index="sample10").to_csv(set_files['pheno'])
        status = main([
            "build", "-m", str(set_files['matrix']), "-p", str(set_files['pheno']),
            "-o", str(tmp_path / "out"),
        ])
        assert status == 1
        err = capsys.readouterr().err
        assert err.startswith("error:")
        assert "sample10" in err
        assert not (tmp_path / "out").exists()

    def test_missing_matrix_option(self, tmp_path, capsys):
        assert main(["build", "-o", str(tmp_path / "out")]) == 1
        assert "--matrix is required" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path, capsys):
        status = main(["build", "-m", str(tmp_path / "absent.csv"), "-o", str(tmp_path / "out")])
        assert status == 1
        assert "not found" in capsys.readouterr().err

    def test_config_file(self, set_files, tmp_path):
        config = tmp_path / "build.yaml"
        config.write_text(
            f"matrix: {set_files['matrix']}\n"
            f"output: {tmp_path / 'from_config'}\n"
            "pheno:\n"
            f"  file: {set_files['pheno']}\n"
            "  labels:\n"
            "    group: Treatment/Control\n"
            "    age: Age at disease onset\n"
            "    sex: Sex of patient (Male/Female)\n"
        )
        assert main(["build", "--config", str(config)]) == 0
        eset = read_expression_set(tmp_path / "from_config")
        assert eset.pheno().column_label('sex') == "Sex of patient (Male/Female)"

    def test_cli_overrides_config(self, set_files, tmp_path):
        config = tmp_path / "build.json"
        config.write_text(json.dumps({
            'matrix': str(set_files['matrix']),
            'output': str(tmp_path / "from_config"),
        }))
        assert main(["build", "--config", str(config), "-o", str(tmp_path / "from_cli")]) == 0
        assert (tmp_path / "from_cli" / "manifest.json").exists()
        assert not (tmp_path / "from_config").exists()

    def test_invalid_config(self, tmp_path, capsys):
        config = tmp_path / "build.yaml"
        config.write_text("matrix: x.csv\nplots: true\n")
        assert main(["build", "--config", str(config)]) == 1
        assert "Config file error" in capsys.readouterr().err


class TestShow:

    def test_show(self, built_set, capsys):
        capsys.readouterr()
        assert main(["show", str(built_set), "--head", "3"]) == 0
        out = capsys.readouterr().out
        assert "ExpressionSet (30 features × 10 samples)" in out
        assert "age: Age at disease onset" in out
        assert "Experimenter name: Alex Sanchez" in out

    def test_metadata_only(self, built_set, capsys):
        capsys.readouterr()
        assert main(["show", str(built_set), "--metadata-only"]) == 0
        assert capsys.readouterr().out.startswith("Experiment data")

    def test_not_a_set(self, tmp_path, capsys):
        assert main(["show", str(tmp_path)]) == 1
        assert "manifest.json" in capsys.readouterr().err


class TestSubset:

    def test_range_and_query(self, built_set, tmp_path):
        output = tmp_path / "young"
        status = main([
            "subset", str(built_set), "--feature-range", "0:15",
            "--query", "age < 30", "-o", str(output),
        ])
        assert status == 0
        young = read_expression_set(output)
        assert young.shape == (15, 5)
        assert young.pheno().rows.tolist() == YOUNG
        assert young.features().rows.tolist() == GENES[:15]

    def test_identifiers_reorder(self, built_set, tmp_path):
        output = tmp_path / "picked"
        status = main([
            "subset", str(built_set), "--feature-ids", "gene3", "gene1",
            "--sample-ids", "sample2", "sample1", "-o", str(output),
        ])
        assert status == 0
        picked = read_expression_set(output)
        assert picked.feature_ids.tolist() == ["gene3", "gene1"]
        assert picked.pheno().rows.tolist() == ["sample2", "sample1"]

    def test_subset_config(self, built_set, tmp_path):
        config = tmp_path / "subset.yaml"
        config.write_text(
            f"output: {tmp_path / 'young'}\n"
            "subset:\n"
            "  feature_range: \"0:15\"\n"
            "  query: \"age < 30\"\n"
        )
        assert main(["subset", str(built_set), "--config", str(config)]) == 0
        assert read_expression_set(tmp_path / "young").shape == (15, 5)

    def test_unknown_sample(self, built_set, tmp_path, capsys):
        status = main([
            "subset", str(built_set), "--sample-ids", "sample42", "-o", str(tmp_path / "x"),
        ])
        assert status == 1
        assert "sample42" in capsys.readouterr().err

    def test_empty_query_result(self, built_set, tmp_path, capsys):
        status = main([
            "subset", str(built_set), "--query", "age > 100", "-o", str(tmp_path / "x"),
        ])
        assert status == 1
        assert capsys.readouterr().err.startswith("error:")

    def test_invalid_query(self, built_set, tmp_path, capsys):
        status = main([
            "subset", str(built_set), "--query", "height < 3", "-o", str(tmp_path / "x"),
        ])
        assert status == 1
        assert "Invalid query" in capsys.readouterr().err

    def test_query_type_error(self, built_set, tmp_path, capsys):
        status = main([
            "subset", str(built_set), "--query", "group < 3", "-o", str(tmp_path / "x"),
        ])
        assert status == 1
        assert "Invalid query" in capsys.readouterr().err

    def test_cli_query_beats_config_samples(self, built_set, tmp_path):
        config = tmp_path / "subset.yaml"
        config.write_text("subset:\n  samples: [sample2, sample4]\n")
        output = tmp_path / "young"
        status = main([
            "subset", str(built_set), "--query", "age < 30",
            "--config", str(config), "-o", str(output),
        ])
        assert status == 0
        assert read_expression_set(output).sample_ids.tolist() == YOUNG

    def test_bad_range(self, built_set, tmp_path):
        with pytest.raises(SystemExit):
            main(["subset", str(built_set), "--feature-range", "5:2", "-o", str(tmp_path / "x")])

    def test_exclusive_options(self, built_set, tmp_path):
        with pytest.raises(SystemExit):
            main([
                "subset", str(built_set), "--sample-ids", "sample1",
                "--query", "age < 30", "-o", str(tmp_path / "x"),
            ])

    def test_output_required(self, built_set, capsys):
        assert main(["subset", str(built_set)]) == 1
        assert "--output is required" in capsys.readouterr().err
