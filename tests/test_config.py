"""Tests for YAML configuration loading."""

from pathlib import Path
from typing import Dict

import numpy as np
import pytest
import yaml

from child_weight import LogisticIntake, ReferenceVariant, TableIntake
from child_weight.config import (
    ConfigError,
    build_model_from_config,
    load_config,
    parse_reference_values,
)

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def sample_config_dict() -> Dict:
    return {
        "cohort": {
            "age": [10.0, 8.5],
            "sex": [0, 1],
            "bmi_category": [2, 3],
            "FFM": [25.0, 22.0],
            "FM": [5.0, 7.5],
        },
        "simulation": {"dt": 1.0, "days": 5, "reference_values": "median"},
        "intake": {
            "mode": "logistic",
            "logistic": {"K": 2000, "Q": 1, "A": 2000, "B": 0, "nu": 1, "C": 1},
        },
    }


@pytest.fixture
def sample_config_file(temp_dir: Path, sample_config_dict: Dict) -> Path:
    path = temp_dir / "cohort.yaml"
    path.write_text(yaml.safe_dump(sample_config_dict))
    return path


class TestLoadConfig:
    def test_load_valid_config(self, sample_config_file: Path):
        cfg = load_config(sample_config_file)
        assert cfg["simulation"]["days"] == 5
        assert cfg["cohort"]["sex"] == [0, 1]

    def test_file_not_found(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(temp_dir / "nonexistent.yaml")

    def test_invalid_yaml(self, temp_dir: Path):
        bad = temp_dir / "bad.yaml"
        bad.write_text("invalid: yaml: content: [")
        with pytest.raises(ConfigError, match="Failed to load"):
            load_config(bad)

    def test_root_must_be_mapping(self, temp_dir: Path):
        bad = temp_dir / "list.yaml"
        bad.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(bad)


class TestBuildModel:
    def test_logistic_model(self, sample_config_dict: Dict):
        model, days = build_model_from_config(sample_config_dict)
        assert days == 5.0
        assert model.nind == 2
        assert isinstance(model.intake_source, LogisticIntake)
        assert model.reference_values == ReferenceVariant.MEDIAN
        assert model.check is True

    def test_inline_table(self, sample_config_dict: Dict):
        sample_config_dict["intake"] = {"mode": "table", "table": [[1800.0] * 6, [1700.0] * 6]}
        model, days = build_model_from_config(sample_config_dict)
        assert isinstance(model.intake_source, TableIntake)
        assert model.simulate(days).n_steps == 6

    def test_matrix_file_relative_to_config(self, temp_dir: Path, sample_config_dict: Dict):
        np.save(temp_dir / "intake.npy", np.full((2, 8), 1750.0))
        sample_config_dict["intake"] = {"mode": "table", "matrix_file": "intake.npy"}
        model, _ = build_model_from_config(sample_config_dict, base_dir=temp_dir)
        assert model.intake_source.matrix.shape == (2, 8)

    def test_csv_matrix_file(self, temp_dir: Path, sample_config_dict: Dict):
        np.savetxt(temp_dir / "intake.csv", np.full((2, 4), 1650.0), delimiter=",")
        sample_config_dict["intake"] = {"mode": "table", "matrix_file": "intake.csv"}
        model, _ = build_model_from_config(sample_config_dict, base_dir=temp_dir)
        np.testing.assert_allclose(model.intake(model.age), [1650.0, 1650.0])

    def test_missing_matrix_file(self, temp_dir: Path, sample_config_dict: Dict):
        sample_config_dict["intake"] = {"mode": "table", "matrix_file": "missing.npy"}
        with pytest.raises(FileNotFoundError):
            build_model_from_config(sample_config_dict, base_dir=temp_dir)

    def test_missing_cohort_field(self, sample_config_dict: Dict):
        del sample_config_dict["cohort"]["FM"]
        with pytest.raises(ConfigError, match="FM"):
            build_model_from_config(sample_config_dict)

    def test_missing_logistic_parameter(self, sample_config_dict: Dict):
        del sample_config_dict["intake"]["logistic"]["nu"]
        with pytest.raises(ConfigError, match="nu"):
            build_model_from_config(sample_config_dict)

    def test_unknown_intake_mode(self, sample_config_dict: Dict):
        sample_config_dict["intake"]["mode"] = "buffet"
        with pytest.raises(ConfigError, match="Unknown intake mode"):
            build_model_from_config(sample_config_dict)

    def test_missing_section(self, sample_config_dict: Dict):
        del sample_config_dict["simulation"]
        with pytest.raises(ConfigError, match="simulation"):
            build_model_from_config(sample_config_dict)


class TestReferenceValues:
    @pytest.mark.parametrize(
        "value, expected",
        [("mean", ReferenceVariant.MEAN), ("Median", ReferenceVariant.MEDIAN),
         (0, ReferenceVariant.MEAN), (1, ReferenceVariant.MEDIAN)],
    )
    def test_parse(self, value, expected):
        assert parse_reference_values(value) == expected

    @pytest.mark.parametrize("value", ["mode", 3, None])
    def test_reject(self, value):
        with pytest.raises(ConfigError):
            parse_reference_values(value)


class TestShippedExamples:
    """The example configurations build and run."""

    @pytest.mark.parametrize("name", ["cohort_logistic.yaml", "cohort_table.yaml"])
    def test_example_runs(self, name):
        path = EXAMPLES_DIR / name
        model, days = build_model_from_config(load_config(path), base_dir=path.parent)
        traj = model.simulate(min(days, 60.0))
        assert traj.correct_values
        np.testing.assert_allclose(traj.body_weight, traj.FFM + traj.FM)
