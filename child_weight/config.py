"""
YAML configuration for cohort runs.

Expected layout:

    cohort:
      age: [10.0, 8.5]
      sex: [0, 1]
      bmi_category: [2, 3]
      FFM: [25.0, 22.0]
      FM: [5.0, 7.5]
    simulation:
      dt: 1.0
      days: 365
      reference_values: mean      # mean | median | 0 | 1
      check_values: true
    intake:
      mode: logistic              # logistic | table
      logistic: {K: 2000, Q: 1, A: 1800, B: 0.5, nu: 1, C: 1}
      table: [[...], [...]]       # (N, T) kcal/day, or
      matrix_file: intake.npy     # .npy or .csv, relative to the config file
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
import yaml

from .core import ChildModel, IntakeSource, LogisticIntake, TableIntake
from .reference import ReferenceVariant

logger = logging.getLogger(__name__)

COHORT_KEYS = ("age", "sex", "bmi_category", "FFM", "FM")
LOGISTIC_KEYS = ("K", "Q", "A", "B", "nu", "C")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load a cohort configuration from YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the YAML cannot be parsed or is not a mapping.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

    if not isinstance(cfg, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(cfg).__name__}")
    logger.info(f"Loaded config from: {config_path}")
    return cfg


def parse_reference_values(value: Any) -> ReferenceVariant:
    if isinstance(value, str):
        try:
            return ReferenceVariant[value.strip().upper()]
        except KeyError as e:
            raise ConfigError(f"Unknown reference_values '{value}' (use mean or median)") from e
    try:
        return ReferenceVariant(int(value))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Unknown reference_values {value!r} (use 0 or 1)") from e


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = cfg.get(name)
    if not isinstance(section, dict):
        raise ConfigError(f"Missing or invalid '{name}' section")
    return section


def build_intake(intake_cfg: Dict[str, Any], base_dir: Optional[Path] = None) -> IntakeSource:
    mode = str(intake_cfg.get("mode", "logistic")).lower()

    if mode == "logistic":
        params = intake_cfg.get("logistic")
        if not isinstance(params, dict):
            raise ConfigError("intake.mode is 'logistic' but intake.logistic is missing")
        missing = [k for k in LOGISTIC_KEYS if k not in params]
        if missing:
            raise ConfigError(f"Missing logistic intake parameters: {missing}")
        return LogisticIntake(**{k: float(params[k]) for k in LOGISTIC_KEYS})

    if mode == "table":
        if "table" in intake_cfg:
            matrix = np.asarray(intake_cfg["table"], dtype=float)
        elif "matrix_file" in intake_cfg:
            path = Path(intake_cfg["matrix_file"])
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            if not path.exists():
                raise FileNotFoundError(f"Intake matrix file not found: {path}")
            if path.suffix == ".npy":
                matrix = np.load(path)
            else:
                matrix = np.loadtxt(path, delimiter=",", ndmin=2)
        else:
            raise ConfigError("intake.mode is 'table' but neither 'table' nor 'matrix_file' is given")
        return TableIntake(matrix=np.atleast_2d(matrix))

    raise ConfigError(f"Unknown intake mode '{mode}' (use logistic or table)")


def build_model_from_config(
    cfg: Dict[str, Any],
    base_dir: Optional[Path] = None,
) -> Tuple[ChildModel, float]:
    """Return (model, days) for a loaded configuration."""
    cohort = _section(cfg, "cohort")
    missing = [k for k in COHORT_KEYS if k not in cohort]
    if missing:
        raise ConfigError(f"Missing cohort fields: {missing}")

    sim = _section(cfg, "simulation")
    for key in ("dt", "days"):
        if key not in sim:
            raise ConfigError(f"Missing simulation field '{key}'")

    intake = build_intake(_section(cfg, "intake"), base_dir=base_dir)

    model = ChildModel(
        age=np.asarray(cohort["age"], float),
        sex=np.asarray(cohort["sex"], float),
        bmi_category=np.asarray(cohort["bmi_category"], float),
        FFM=np.asarray(cohort["FFM"], float),
        FM=np.asarray(cohort["FM"], float),
        intake=intake,
        dt=float(sim["dt"]),
        reference_values=parse_reference_values(sim.get("reference_values", 0)),
        check_values=bool(sim.get("check_values", True)),
    )
    return model, float(sim["days"])
