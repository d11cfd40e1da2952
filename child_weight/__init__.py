"""
Child body-weight dynamics — cohort FFM/FM energy-balance model with fixed-step RK4

This package exposes the main model classes from `core.py` and `reference.py` for convenience.
"""

from .core import (
    ChildModel,
    ChildParams,
    CurveCoefficients,
    TableIntake,
    LogisticIntake,
    Trajectory,
    ChildModelError,
    ShapeMismatchError,
    InvalidCategoryError,
    IntakeIndexError,
    NonPhysicalStateError,
    rk4_step,
    simulate_batch,
)
from .reference import BMICategory, ReferenceVariant, ffm_reference, fm_reference
