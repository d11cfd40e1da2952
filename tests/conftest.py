"""Shared fixtures for child weight model tests."""

import tempfile
from pathlib import Path
from typing import Dict, Generator

import numpy as np
import pytest

from child_weight import ChildModel


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def boy_inputs() -> Dict[str, np.ndarray]:
    """One 10-year-old boy of normal BMI, FFM 25 kg, FM 5 kg."""
    return {
        "age": np.array([10.0]),
        "sex": np.array([0.0]),
        "bmi_category": np.array([2]),
        "FFM": np.array([25.0]),
        "FM": np.array([5.0]),
    }


@pytest.fixture
def flat_boy(boy_inputs) -> ChildModel:
    """The boy with a flat logistic intake (A = K = 1900 kcal/day)."""
    return ChildModel.from_logistic(
        **boy_inputs, K=1900.0, Q=1.0, A=1900.0, B=0.0, nu=1.0, C=1.0, dt=1.0,
    )


@pytest.fixture
def cohort_inputs() -> Dict[str, np.ndarray]:
    """Three children spanning sex, age and BMI category."""
    return {
        "age": np.array([10.0, 8.5, 13.2]),
        "sex": np.array([0.0, 1.0, 0.0]),
        "bmi_category": np.array([2, 3, 4]),
        "FFM": np.array([25.0, 22.0, 40.0]),
        "FM": np.array([5.0, 7.5, 20.0]),
    }


@pytest.fixture
def logistic_cohort(cohort_inputs) -> ChildModel:
    return ChildModel.from_logistic(
        **cohort_inputs, K=2400.0, Q=1.0, A=1600.0, B=0.3, nu=1.0, C=1.0, dt=1.0,
    )
