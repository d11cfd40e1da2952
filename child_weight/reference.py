"""
reference.py — population reference curves for Fat-Free Mass and Fat Mass (children, 2–18 y)

The energy-balance model is calibrated against a reference child: for every age, sex and BMI
category there is a reference FFM and FM, and the intake that would reproduce that reference
growth is solved for algebraically in `core.py`.

Table layout (one row per integer age, 2..18 → 17 rows):

  - Ages 2–5   : a single (male, female) pair, shared by all BMI categories
  - Ages 6–18  : one (male, female) pair per BMI category
                 (1 = underweight, 2 = normal, 3 = overweight, 4 = obese)

Sex is a continuous blend weight:  value = male * (1 - sex) + female * sex.

Sources: Fomon et al. (1982) for ages 2–5; Haschke (1989) and Ellis et al. (2000) for ages 6–18,
stratified by BMI. Two complete variants exist (mean and median); the cohort selects one for
the whole run.

Between integer ages the curves are linearly interpolated; at 18 years and beyond they are
held constant at the 18-year row.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict

import numpy as np
from numpy.typing import ArrayLike


FIRST_AGE = 2
LAST_AGE = 18
N_ROWS = LAST_AGE - FIRST_AGE + 1  # 17
N_EARLY = 4                        # ages 2..5


class BMICategory(enum.IntEnum):
    UNDERWEIGHT = 1
    NORMAL = 2
    OVERWEIGHT = 3
    OBESE = 4


class ReferenceVariant(enum.IntEnum):
    """Which statistic the reference tables summarise."""

    MEAN = 0
    MEDIAN = 1


# ---------------------------------------------------------------------------
#  Reference table container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceTable:
    """
    Reference values for one quantity (FFM or FM) and one variant (mean or median).

      - early: (4, 2)      ages 2–5, columns (male, female)
      - late:  (13, 4, 2)  ages 6–18, BMI category (1..4), (male, female)
    """

    early: np.ndarray
    late: np.ndarray

    def __post_init__(self) -> None:
        assert self.early.shape == (N_EARLY, 2)
        assert self.late.shape == (N_ROWS - N_EARLY, len(BMICategory), 2)

    def rows(self, sex: ArrayLike, bmi_category: ArrayLike) -> np.ndarray:
        """
        Resolve the table for a cohort: returns an array of shape (17, N) where column i is
        the age profile of individual i (its sex blend and its own BMI branch).
        """
        sex = np.asarray(sex, dtype=float)
        codes = np.asarray(bmi_category)
        if sex.shape != codes.shape or sex.ndim != 1:
            raise ValueError(
                f"sex and bmi_category must be 1-D arrays of equal length, "
                f"got {sex.shape} and {codes.shape}"
            )

        out = np.full((N_ROWS, sex.shape[0]), np.nan, dtype=float)
        out[:N_EARLY] = _blend(self.early, sex)

        matched = np.zeros(sex.shape[0], dtype=bool)
        for category in BMICategory:
            mask = codes == category.value
            if not np.any(mask):
                continue
            out[N_EARLY:, mask] = _blend(self.late[:, category.value - 1, :], sex[mask])
            matched |= mask

        if not np.all(matched):
            bad = np.unique(codes[~matched])
            raise ValueError(f"Unknown BMI category code(s) {bad.tolist()}; expected 1, 2, 3 or 4")
        return out


def _blend(pairs: np.ndarray, sex: np.ndarray) -> np.ndarray:
    """(rows, 2) × (N,) → (rows, N) sex blend."""
    return pairs[:, :1] * (1.0 - sex[None, :]) + pairs[:, 1:] * sex[None, :]


# ---------------------------------------------------------------------------
#  Interpolation
# ---------------------------------------------------------------------------

def interpolate(rows: np.ndarray, t: ArrayLike) -> np.ndarray:
    """
    Piecewise-linear interpolation of a resolved (17, N) table at ages t (years, shape (N,)).

        t >= 18:  rows[16]
        else:     lower = max(floor(t), 2) - 2,  upper = min(lower + 1, 16)
                  rows[lower] + (t - floor(t)) * (rows[upper] - rows[lower])

    Ages below 2 fall on the 2-year segment with the fractional part of t as weight.
    """
    t = np.asarray(t, dtype=float)
    if t.shape != rows.shape[1:]:
        raise ValueError(f"Age vector of shape {t.shape} does not match table columns {rows.shape[1:]}")
    if not np.all(np.isfinite(t)):
        raise ValueError("Reference curves are undefined for non-finite ages")

    floor_t = np.floor(t)
    lower = np.clip(floor_t, FIRST_AGE, LAST_AGE - 1).astype(int) - FIRST_AGE
    upper = np.minimum(lower + 1, N_ROWS - 1)
    diff = t - floor_t

    cols = np.arange(t.shape[0])
    low_vals = rows[lower, cols]
    high_vals = rows[upper, cols]
    value = low_vals + diff * (high_vals - low_vals)
    return np.where(t >= LAST_AGE, rows[N_ROWS - 1], value)


def ffm_reference(
    t: ArrayLike,
    sex: ArrayLike,
    bmi_category: ArrayLike,
    variant: int = ReferenceVariant.MEAN,
) -> np.ndarray:
    """Reference Fat-Free Mass (kg) at ages t."""
    table = FFM_TABLES[ReferenceVariant(variant)]
    return interpolate(table.rows(sex, bmi_category), t)


def fm_reference(
    t: ArrayLike,
    sex: ArrayLike,
    bmi_category: ArrayLike,
    variant: int = ReferenceVariant.MEAN,
) -> np.ndarray:
    """Reference Fat Mass (kg) at ages t."""
    table = FM_TABLES[ReferenceVariant(variant)]
    return interpolate(table.rows(sex, bmi_category), t)


# ---------------------------------------------------------------------------
#  Tables
# ---------------------------------------------------------------------------
#  late rows: ((under_m, under_f), (normal_m, normal_f), (over_m, over_f), (obese_m, obese_f))

_FFM_EARLY = np.array([
    (10.134, 9.477),    # 2
    (12.099, 11.494),   # 3
    (14.0, 13.2),       # 4
    (15.72, 14.86),     # 5
])

_FM_EARLY = np.array([
    (2.456, 2.433),     # 2
    (2.576, 2.606),     # 3
    (2.7, 2.8),         # 4
    (3.66, 4.47),       # 5
])

_FFM_MEAN_LATE = np.array([
    ((13.78, 15.97), (17.59, 15.81), (19.43, 18.59), (21.87, 21.12)),  # 6
    ((17.59, 16.89), (18.97, 17.96), (21.84, 21.07), (24.88, 25.64)),  # 7
    ((17.84, 18.11), (20.72, 19.99), (25.18, 22.99), (28.81, 28.21)),  # 8
    ((19.88, 16.14), (23.46, 22.13), (27.45, 27.50), (32.39, 31.09)),  # 9
    ((23.36, 23.89), (25.35, 25.22), (30.94, 31.30), (35.98, 35.88)),  # 10
    ((23.89, 21.65), (28.65, 29.40), (33.65, 35.30), (39.31, 39.46)),  # 11
    ((27.80, 26.46), (33.08, 32.61), (39.48, 37.21), (44.78, 42.21)),  # 12
    ((31.85, 28.45), (38.71, 35.03), (42.83, 39.29), (47.03, 45.01)),  # 13
    ((34.02, 34.24), (42.24, 36.52), (48.24, 41.28), (54.66, 46.63)),  # 14
    ((34.97, 33.17), (45.14, 38.67), (50.03, 43.47), (55.64, 47.78)),  # 15
    ((39.77, 31.70), (47.04, 39.64), (53.71, 45.74), (58.05, 50.88)),  # 16
    ((42.10, 33.63), (48.25, 39.85), (55.36, 45.26), (60.13, 50.52)),  # 17
    ((44.56, 35.98), (49.11, 40.92), (56.32, 46.59), (61.05, 50.02)),  # 18
])

_FFM_MEDIAN_LATE = np.array([
    ((14.58, 14.61), (17.28, 15.67), (19.14, 19.07), (21.68, 20.68)),  # 6
    ((18.82, 16.14), (18.78, 17.94), (22.30, 20.92), (24.91, 25.33)),  # 7
    ((17.26, 18.20), (20.44, 20.16), (24.75, 22.76), (28.54, 27.93)),  # 8
    ((19.30, 16.31), (23.42, 21.85), (26.94, 27.04), (31.99, 30.77)),  # 9
    ((23.89, 23.89), (24.99, 25.32), (31.37, 31.09), (35.81, 35.76)),  # 10
    ((23.74, 21.20), (28.19, 29.95), (33.20, 35.68), (38.81, 39.30)),  # 11
    ((28.13, 25.50), (32.71, 33.00), (38.84, 36.92), (46.35, 42.30)),  # 12
    ((32.61, 28.45), (38.70, 35.08), (43.40, 38.67), (47.86, 44.98)),  # 13
    ((35.03, 37.22), (42.27, 36.28), (47.71, 41.50), (54.53, 46.94)),  # 14
    ((30.64, 32.87), (44.69, 38.99), (50.18, 43.76), (54.58, 47.37)),  # 15
    ((41.86, 31.44), (46.71, 39.61), (53.18, 46.38), (57.93, 50.98)),  # 16
    ((42.27, 34.11), (48.75, 39.49), (55.31, 45.69), (60.26, 50.13)),  # 17
    ((43.32, 35.98), (48.78, 41.66), (57.29, 46.94), (59.68, 49.72)),  # 18
])

_FM_MEAN_LATE = np.array([
    ((2.02, 2.77), (3.52, 3.99), (4.87, 6.01), (7.34, 9.10)),          # 6
    ((2.43, 2.92), (3.70, 4.51), (5.43, 6.79), (8.73, 11.60)),         # 7
    ((2.19, 3.02), (3.99, 4.89), (6.30, 7.40), (10.49, 12.71)),        # 8
    ((2.54, 2.37), (4.41, 5.23), (6.92, 9.09), (12.56, 14.88)),        # 9
    ((2.96, 4.00), (4.63, 6.07), (8.25, 10.95), (13.87, 17.80)),       # 10
    ((2.83, 3.62), (5.32, 7.33), (9.06, 12.84), (16.32, 22.61)),       # 11
    ((3.20, 4.35), (6.33, 8.59), (11.39, 14.45), (19.77, 24.10)),      # 12
    ((3.44, 4.38), (7.79, 9.73), (12.66, 15.46), (21.56, 29.22)),      # 13
    ((3.81, 5.44), (8.71, 9.89), (14.96, 16.18), (26.44, 27.85)),      # 14
    ((3.98, 5.17), (9.44, 10.85), (16.07, 17.81), (28.15, 29.34)),     # 15
    ((4.45, 4.95), (10.04, 11.16), (18.43, 19.81), (30.06, 32.58)),    # 16
    ((4.66, 5.19), (10.25, 10.94), (18.50, 19.14), (30.60, 30.37)),    # 17
    ((5.07, 5.04), (10.78, 11.02), (19.24, 19.53), (37.55, 31.50)),    # 18
])

_FM_MEDIAN_LATE = np.array([
    ((2.22, 2.57), (3.44, 3.97), (4.74, 6.00), (6.56, 8.57)),          # 6
    ((2.73, 2.93), (3.70, 4.52), (5.52, 6.73), (8.11, 10.80)),         # 7
    ((2.02, 3.06), (4.00, 4.99), (6.23, 7.22), (9.35, 11.84)),         # 8
    ((2.57, 2.79), (4.46, 4.98), (6.74, 8.82), (11.91, 13.08)),        # 9
    ((3.01, 4.01), (4.67, 5.86), (8.33, 10.68), (14.07, 16.46)),       # 10
    ((2.76, 3.57), (4.92, 7.33), (8.96, 12.53), (14.80, 20.96)),       # 11
    ((3.17, 4.18), (6.25, 8.59), (11.46, 14.09), (19.12, 22.63)),      # 12
    ((3.64, 4.38), (7.67, 9.94), (12.15, 14.67), (22.42, 28.20)),      # 13
    ((3.77, 5.88), (8.51, 9.54), (14.70, 15.84), (24.80, 25.32)),      # 14
    ((3.66, 5.30), (9.04, 10.93), (15.74, 17.67), (25.71, 28.37)),     # 15
    ((4.43, 4.99), (9.87, 11.09), (18.88, 19.74), (27.81, 31.11)),     # 16
    ((4.40, 5.36), (10.35, 10.43), (17.69, 18.50), (27.69, 29.70)),    # 17
    ((5.18, 5.05), (10.44, 11.10), (19.39, 18.70), (31.82, 28.55)),    # 18
])

FFM_TABLES: Dict[ReferenceVariant, ReferenceTable] = {
    ReferenceVariant.MEAN: ReferenceTable(early=_FFM_EARLY, late=_FFM_MEAN_LATE),
    ReferenceVariant.MEDIAN: ReferenceTable(early=_FFM_EARLY, late=_FFM_MEDIAN_LATE),
}

FM_TABLES: Dict[ReferenceVariant, ReferenceTable] = {
    ReferenceVariant.MEAN: ReferenceTable(early=_FM_EARLY, late=_FM_MEAN_LATE),
    ReferenceVariant.MEDIAN: ReferenceTable(early=_FM_EARLY, late=_FM_MEDIAN_LATE),
}
