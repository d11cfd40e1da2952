"""
core.py — Dynamic child body-weight model (FFM / FM energy balance, fixed-step RK4)

Implements the childhood growth and energy-balance model of Hall et al. (2013) for a *cohort*
of N children simulated in lockstep. Every per-step quantity is an elementwise numpy operation
over N-length arrays.

Structure:

  - Parameters:   sex-blended constants (K, δmax) and three named growth-curve families
                  ("growth", "growth_impact", "eb_impact"), computed once per cohort.
  - Kernel:       growth / energy-balance curves, ρFFM, partition coefficient p, δ(t),
                  reference intake, intake, expenditure.
  - Derivative:   dmass(t, FFM, FM) → (dFFM/dt, dFM/dt) in kg/day.
  - Integrator:   classical RK4 with a fixed step dt (days); age advances by dt/365 years.

Intake is a tagged union resolved once at construction:

  - TableIntake(matrix)             matrix[i, j] = kcal/day of individual i on simulated day j
  - LogisticIntake(K, Q, A, B, ν, C) generalized logistic (Richards) curve in age (years)

Units: masses in kg, energy in kcal/day, age in years, dt and elapsed time in days.

No adaptive step control: stability is governed by the caller's choice of dt. With
`check_values=True` (default) any non-positive or non-finite mass aborts the run with
NonPhysicalStateError; otherwise the run continues and the per-step `valid` flag records it.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from .reference import (
    FFM_TABLES,
    FM_TABLES,
    BMICategory,
    ReferenceVariant,
    interpolate,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

DAYS_PER_YEAR = 365.0
RHO_FM = 9.4 * 1000.0   # kcal/kg, energy density of fat mass
DELTA_MIN = 10.0        # kcal/kg/day
DELTA_P = 12.0          # years
DELTA_H = 10.0

# Tolerance used when mapping elapsed age back to a whole simulated day.
_INDEX_TOL = 1e-6


# ---------------------------------------------------------------------------
#  Errors
# ---------------------------------------------------------------------------

class ChildModelError(Exception):
    """Base class for all errors raised by the child weight model."""


class ShapeMismatchError(ChildModelError, ValueError):
    """Cohort arrays (or the intake matrix) do not share the same number of individuals."""


class InvalidCategoryError(ChildModelError, ValueError):
    """BMI category or reference variant code outside the supported set."""


class IntakeIndexError(ChildModelError, IndexError):
    """Table intake requested for a day the intake matrix does not cover."""


class NonPhysicalStateError(ChildModelError, ArithmeticError):
    """FFM or FM became non-positive or non-finite during integration."""


# ---------------------------------------------------------------------------
#  Growth-curve families
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CurveCoefficients:
    """
    Coefficients of one curve family (each a (N,) vector after sex blending):

        f(t) = A * exp(-(t - tA) / τA)
             + B * exp(-0.5 * ((t - tB) / τB)^2)
             + D * exp(-0.5 * ((t - tD) / τD)^2)

    t, tA, tB, tD in years.
    """

    A: np.ndarray
    B: np.ndarray
    D: np.ndarray
    tA: np.ndarray
    tB: np.ndarray
    tD: np.ndarray
    tauA: np.ndarray
    tauB: np.ndarray
    tauD: np.ndarray


#  name -> coefficient -> (male, female)
CURVE_TABLE: Dict[str, Dict[str, Tuple[float, float]]] = {
    "growth": {
        "A": (3.2, 2.3), "B": (9.6, 8.4), "D": (10.1, 1.1),
        "tA": (4.7, 4.5), "tB": (12.5, 11.7), "tD": (15.0, 16.2),
        "tauA": (2.5, 1.0), "tauB": (1.0, 0.9), "tauD": (1.5, 0.7),
    },
    "growth_impact": {
        "A": (3.2, 2.3), "B": (9.6, 8.4), "D": (10.0, 1.1),
        "tA": (4.7, 4.5), "tB": (12.5, 11.7), "tD": (15.0, 16.0),
        "tauA": (1.0, 1.0), "tauB": (0.94, 0.94), "tauD": (0.69, 0.69),
    },
    "eb_impact": {
        "A": (7.2, 16.5), "B": (30.0, 47.0), "D": (21.0, 41.0),
        "tA": (5.6, 4.8), "tB": (9.8, 9.1), "tD": (15.0, 13.5),
        "tauA": (15.0, 7.0), "tauB": (1.5, 1.0), "tauD": (2.0, 1.5),
    },
}


def sex_blend(male: float, female: float, sex: np.ndarray) -> np.ndarray:
    return male * (1.0 - sex) + female * sex


def general_curve(t: ArrayLike, c: CurveCoefficients) -> np.ndarray:
    """One-sided exponential decay plus two Gaussian bumps (see CurveCoefficients)."""
    t = np.asarray(t, dtype=float)
    return (
        c.A * np.exp(-(t - c.tA) / c.tauA)
        + c.B * np.exp(-0.5 * ((t - c.tB) / c.tauB) ** 2)
        + c.D * np.exp(-0.5 * ((t - c.tD) / c.tauD) ** 2)
    )


# ---------------------------------------------------------------------------
#  Cohort parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChildParams:
    """
    Per-cohort constants, computed once from the sex vector.

      - K:        (N,)  basal constant, kcal/day            (800 male, 700 female)
      - deltamax: (N,)  upper bound of δ(t), kcal/kg/day    (19 male, 17 female)
      - curves:   name → CurveCoefficients, names as in CURVE_TABLE
      - deltamin, P, h: shape of δ(t) = δmin + (δmax - δmin) / (1 + (t/P)^h)
      - rhoFM:    energy density of fat mass (kcal/kg)
    """

    K: np.ndarray
    deltamax: np.ndarray
    curves: Mapping[str, CurveCoefficients]
    deltamin: float = DELTA_MIN
    P: float = DELTA_P
    h: float = DELTA_H
    rhoFM: float = RHO_FM

    @classmethod
    def from_sex(cls, sex: ArrayLike) -> "ChildParams":
        sex = np.asarray(sex, dtype=float)
        curves = {
            name: CurveCoefficients(
                **{key: sex_blend(male, female, sex) for key, (male, female) in coeffs.items()}
            )
            for name, coeffs in CURVE_TABLE.items()
        }
        return cls(
            K=sex_blend(800.0, 700.0, sex),
            deltamax=sex_blend(19.0, 17.0, sex),
            curves=curves,
        )


# ---------------------------------------------------------------------------
#  Intake sources (tagged union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TableIntake:
    """
    Tabulated intake: matrix of shape (N, T), kcal/day, column j = simulated day j.

    The column for age t is floor(365 * (t - age0) / dt). RK4 evaluates the final stage of
    step i at column i, so a run of n steps needs T >= n + 1 columns.
    """

    matrix: np.ndarray

    @property
    def n_columns(self) -> int:
        return int(self.matrix.shape[1])

    def check_horizon(self, n_steps: int) -> None:
        if n_steps > 0 and n_steps + 1 > self.n_columns:
            raise IntakeIndexError(
                f"Intake matrix has {self.n_columns} day columns but {n_steps} steps "
                f"need {n_steps + 1}"
            )

    def __call__(self, t: np.ndarray, age0: np.ndarray, dt: float) -> np.ndarray:
        index = np.floor(DAYS_PER_YEAR * (t - age0) / dt + _INDEX_TOL).astype(int)
        if np.any(index < 0) or np.any(index >= self.n_columns):
            raise IntakeIndexError(
                f"Intake day index out of range [0, {self.n_columns}): "
                f"min={int(index.min())}, max={int(index.max())}"
            )
        return self.matrix[np.arange(self.matrix.shape[0]), index]


@dataclass(frozen=True)
class LogisticIntake:
    """
    Generalized logistic (Richards) intake curve, kcal/day, shared by the whole cohort:

        I(t) = A + (K - A) / (C + Q * exp(-B * t))^(1/ν)        t = age in years

    B = 0 gives a constant curve; A = K gives I(t) = K.
    """

    K: float
    Q: float
    A: float
    B: float
    nu: float
    C: float

    def __post_init__(self) -> None:
        values = {"K": self.K, "Q": self.Q, "A": self.A, "B": self.B, "nu": self.nu, "C": self.C}
        bad = [name for name, value in values.items() if not np.isfinite(value)]
        if bad:
            raise ValueError(f"Logistic intake parameters must be finite, got non-finite {bad}")
        if self.nu == 0.0:
            raise ValueError("Logistic intake shape parameter nu must be non-zero")

    def check_horizon(self, n_steps: int) -> None:
        pass

    def __call__(self, t: np.ndarray, age0: np.ndarray, dt: float) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return self.A + (self.K - self.A) / np.power(self.C + self.Q * np.exp(-self.B * t), 1.0 / self.nu)


IntakeSource = Union[TableIntake, LogisticIntake]


# ---------------------------------------------------------------------------
#  Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Trajectory:
    """
    Full recorded run, one column per step (S = floor(days/dt) + 1, step 0 = initial state).

      - time:        (S,)    elapsed days
      - age:         (N, S)  years
      - FFM, FM:     (N, S)  kg
      - body_weight: (N, S)  kg, FFM + FM
      - valid:       (S,)    every individual has finite, positive FFM and FM at that step
    """

    time: np.ndarray
    age: np.ndarray
    FFM: np.ndarray
    FM: np.ndarray
    body_weight: np.ndarray
    valid: np.ndarray
    model_type: str = "Children"

    @property
    def n_steps(self) -> int:
        return int(self.time.shape[0])

    @property
    def correct_values(self) -> bool:
        return bool(np.all(self.valid))

    def final(self) -> Dict[str, np.ndarray]:
        """Endpoint snapshot."""
        return {
            "time": self.time[-1],
            "age": self.age[:, -1],
            "FFM": self.FFM[:, -1],
            "FM": self.FM[:, -1],
            "body_weight": self.body_weight[:, -1],
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "Time": self.time.tolist(),
            "Age": self.age.tolist(),
            "Fat_Free_Mass": self.FFM.tolist(),
            "Fat_Mass": self.FM.tolist(),
            "Body_Weight": self.body_weight.tolist(),
            "Correct_Values": self.correct_values,
            "Model_Type": self.model_type,
        }


# ---------------------------------------------------------------------------
#  Generic fixed-step RK4
# ---------------------------------------------------------------------------

def rk4_step(
    f: Callable[[float, np.ndarray], np.ndarray],
    t: float,
    y: np.ndarray,
    dt: float,
) -> np.ndarray:
    """One classical Runge–Kutta 4 step of dy/dt = f(t, y)."""
    k1 = f(t, y)
    k2 = f(t + 0.5 * dt, y + 0.5 * dt * k1)
    k3 = f(t + 0.5 * dt, y + 0.5 * dt * k2)
    k4 = f(t + dt, y + dt * k3)
    return y + dt * (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


# ---------------------------------------------------------------------------
#  Core model
# ---------------------------------------------------------------------------

def _as_vector(name: str, values: ArrayLike) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise ShapeMismatchError(f"'{name}' must be one-dimensional, got shape {arr.shape}")
    return arr


class ChildModel:
    """
    Cohort of N children under a caloric-intake scenario.

    Construct directly with an intake source, or via `from_intake_matrix` / `from_logistic`.
    All cohort arrays must have the same length; everything derived from them is fixed at
    construction.
    """

    def __init__(
        self,
        age: ArrayLike,
        sex: ArrayLike,
        bmi_category: ArrayLike,
        FFM: ArrayLike,
        FM: ArrayLike,
        intake: IntakeSource,
        dt: float,
        reference_values: int = ReferenceVariant.MEAN,
        check_values: bool = True,
    ) -> None:
        inputs = {
            "age": _as_vector("age", age),
            "sex": _as_vector("sex", sex),
            "bmi_category": _as_vector("bmi_category", bmi_category),
            "FFM": _as_vector("FFM", FFM),
            "FM": _as_vector("FM", FM),
        }
        lengths = {name: arr.shape[0] for name, arr in inputs.items()}
        if len(set(lengths.values())) != 1:
            raise ShapeMismatchError(f"Cohort arrays must share one length, got {lengths}")

        self.nind: int = lengths["age"]
        if self.nind == 0:
            raise ShapeMismatchError("Cohort must contain at least one individual")

        self.age = inputs["age"]
        self.sex = inputs["sex"]
        self.FFM = inputs["FFM"]
        self.FM = inputs["FM"]

        codes = inputs["bmi_category"]
        valid_codes = [c.value for c in BMICategory]
        if not np.all(np.isin(codes, valid_codes)):
            bad = np.unique(codes[~np.isin(codes, valid_codes)])
            raise InvalidCategoryError(f"BMI category must be one of {valid_codes}, got {bad.tolist()}")
        self.bmi_category = codes.astype(int)

        try:
            code = float(reference_values)
            if code != int(code):
                raise ValueError(reference_values)
            self.reference_values = ReferenceVariant(int(code))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidCategoryError(
                f"reference_values must be 0 (mean) or 1 (median), got {reference_values!r}"
            ) from exc

        if not np.all(np.isfinite(self.age)):
            raise ValueError("age must be finite")
        if not np.all((self.sex >= 0.0) & (self.sex <= 1.0)):
            raise ValueError("sex must lie in [0, 1] (0 = male, 1 = female)")
        if not np.all(np.isfinite(self.FFM) & (self.FFM > 0.0)):
            raise ValueError("FFM must be finite and strictly positive")
        if not np.all(np.isfinite(self.FM) & (self.FM > 0.0)):
            raise ValueError("FM must be finite and strictly positive")

        self.dt = float(dt)
        if not np.isfinite(self.dt) or self.dt <= 0.0:
            raise ValueError(f"dt must be a positive number of days, got {dt!r}")

        if isinstance(intake, TableIntake):
            matrix = np.asarray(intake.matrix, dtype=float)
            if matrix.ndim != 2 or matrix.shape[0] != self.nind:
                raise ShapeMismatchError(
                    f"Intake matrix must have shape (N={self.nind}, T), got {matrix.shape}"
                )
            intake = TableIntake(matrix=matrix)
        elif not isinstance(intake, LogisticIntake):
            raise TypeError(f"Unsupported intake source: {type(intake).__name__}")
        self.intake_source: IntakeSource = intake
        self.check = bool(check_values)

        self.params = ChildParams.from_sex(self.sex)
        self._ffm_rows = FFM_TABLES[self.reference_values].rows(self.sex, self.bmi_category)
        self._fm_rows = FM_TABLES[self.reference_values].rows(self.sex, self.bmi_category)

        logger.debug(
            "Built cohort: N=%d, intake=%s, reference=%s, dt=%g days",
            self.nind, type(intake).__name__, self.reference_values.name, self.dt,
        )

    # ------------------------------------------------------------------
    #  Alternate constructors (the two construction modes)
    # ------------------------------------------------------------------

    @classmethod
    def from_intake_matrix(
        cls,
        age: ArrayLike,
        sex: ArrayLike,
        bmi_category: ArrayLike,
        FFM: ArrayLike,
        FM: ArrayLike,
        EI: ArrayLike,
        dt: float,
        reference_values: int = ReferenceVariant.MEAN,
        check_values: bool = True,
    ) -> "ChildModel":
        return cls(
            age, sex, bmi_category, FFM, FM,
            intake=TableIntake(matrix=np.asarray(EI, dtype=float)),
            dt=dt,
            reference_values=reference_values,
            check_values=check_values,
        )

    @classmethod
    def from_logistic(
        cls,
        age: ArrayLike,
        sex: ArrayLike,
        bmi_category: ArrayLike,
        FFM: ArrayLike,
        FM: ArrayLike,
        K: float,
        Q: float,
        A: float,
        B: float,
        nu: float,
        C: float,
        dt: float,
        reference_values: int = ReferenceVariant.MEAN,
        check_values: bool = True,
    ) -> "ChildModel":
        return cls(
            age, sex, bmi_category, FFM, FM,
            intake=LogisticIntake(K=float(K), Q=float(Q), A=float(A), B=float(B), nu=float(nu), C=float(C)),
            dt=dt,
            reference_values=reference_values,
            check_values=check_values,
        )

    # ------------------------------------------------------------------
    #  Kernel
    # ------------------------------------------------------------------

    def growth_dynamic(self, t: ArrayLike) -> np.ndarray:
        return general_curve(t, self.params.curves["growth"])

    def growth_impact(self, t: ArrayLike) -> np.ndarray:
        return general_curve(t, self.params.curves["growth_impact"])

    def eb_impact(self, t: ArrayLike) -> np.ndarray:
        return general_curve(t, self.params.curves["eb_impact"])

    @staticmethod
    def rho_ffm(FFM: ArrayLike) -> np.ndarray:
        """Energy density of fat-free mass, kcal/kg."""
        return 4.3 * np.asarray(FFM, dtype=float) + 837.0

    def partition_coefficient(self, FFM: ArrayLike, FM: ArrayLike) -> np.ndarray:
        """Forbes-type partition p: share of an energy imbalance directed to FFM."""
        C = 10.4 * self.rho_ffm(FFM) / self.params.rhoFM
        return C / (C + np.asarray(FM, dtype=float))

    def delta(self, t: ArrayLike) -> np.ndarray:
        p = self.params
        t = np.asarray(t, dtype=float)
        return p.deltamin + (p.deltamax - p.deltamin) * (1.0 / (1.0 + np.power(t / p.P, p.h)))

    def ffm_reference(self, t: ArrayLike) -> np.ndarray:
        return interpolate(self._ffm_rows, t)

    def fm_reference(self, t: ArrayLike) -> np.ndarray:
        return interpolate(self._fm_rows, t)

    def intake_reference(self, t: ArrayLike) -> np.ndarray:
        """Intake that reproduces the reference FFM/FM trajectory at age t."""
        EB = self.eb_impact(t)
        FFMref = self.ffm_reference(t)
        FMref = self.fm_reference(t)
        delta = self.delta(t)
        growth = self.growth_dynamic(t)
        p = self.partition_coefficient(FFMref, FMref)
        rhoFFM = self.rho_ffm(FFMref)
        rhoFM = self.params.rhoFM
        return (
            EB + self.params.K + (22.4 + delta) * FFMref + (4.5 + delta) * FMref
            + 230.0 / rhoFFM * (p * EB + growth)
            + 180.0 / rhoFM * ((1.0 - p) * EB - growth)
        )

    def intake(self, t: ArrayLike) -> np.ndarray:
        """Energy intake (kcal/day) at age t."""
        t = np.asarray(t, dtype=float)
        return np.broadcast_to(self.intake_source(t, self.age, self.dt), (self.nind,))

    def expenditure(
        self,
        t: ArrayLike,
        FFM: ArrayLike,
        FM: ArrayLike,
        intake: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Total energy expenditure (kcal/day), closed-form solution of

            E = K + (22.4 + δ) FFM + (4.5 + δ) FM + 0.24 (I - Iref)
                + 230/ρFFM (p (I - E) + G) + 180/ρFM ((1 - p)(I - E) - G)
        """
        FFM = np.asarray(FFM, dtype=float)
        FM = np.asarray(FM, dtype=float)
        if intake is None:
            intake = self.intake(t)
        delta = self.delta(t)
        delta_intake = intake - self.intake_reference(t)
        p = self.partition_coefficient(FFM, FM)
        rhoFFM = self.rho_ffm(FFM)
        rhoFM = self.params.rhoFM
        growth = self.growth_dynamic(t)

        share = 230.0 / rhoFFM * p + 180.0 / rhoFM * (1.0 - p)
        expend = (
            self.params.K + (22.4 + delta) * FFM + (4.5 + delta) * FM
            + 0.24 * delta_intake
            + share * intake
            + growth * (230.0 / rhoFFM - 180.0 / rhoFM)
        )
        return expend / (1.0 + share)

    # ------------------------------------------------------------------
    #  Right-hand side
    # ------------------------------------------------------------------

    def dmass(self, t: ArrayLike, FFM: ArrayLike, FM: ArrayLike) -> np.ndarray:
        """Return (2, N): row 0 = dFFM/dt, row 1 = dFM/dt, kg/day."""
        FFM = np.asarray(FFM, dtype=float)
        FM = np.asarray(FM, dtype=float)
        rhoFFM = self.rho_ffm(FFM)
        p = self.partition_coefficient(FFM, FM)
        growth = self.growth_dynamic(t)
        intake = self.intake(t)
        imbalance = intake - self.expenditure(t, FFM, FM, intake=intake)

        mass = np.empty((2, self.nind), dtype=float)
        mass[0] = (p * imbalance + growth) / rhoFFM
        mass[1] = ((1.0 - p) * imbalance - growth) / self.params.rhoFM
        return mass

    def _rhs(self, t: float, y: np.ndarray) -> np.ndarray:
        """
        dy/dt in the f(t, y) form used by `rk4_step` and `scipy.integrate.solve_ivp`.

        t is elapsed days since the start; y = [FFM (N), FM (N)].
        """
        age = self.age + t / DAYS_PER_YEAR
        return self.dmass(age, y[: self.nind], y[self.nind:]).ravel()

    def _state_valid(self, FFM: np.ndarray, FM: np.ndarray) -> np.ndarray:
        return np.isfinite(FFM) & np.isfinite(FM) & (FFM > 0.0) & (FM > 0.0)

    # ------------------------------------------------------------------
    #  Integration
    # ------------------------------------------------------------------

    def simulate(self, days: float) -> Trajectory:
        """
        Integrate the cohort for `days` days with fixed-step RK4.

        Records floor(days/dt) + 1 snapshots (step 0 = inputs). Step i+1 is computed from the
        fully updated step i for all individuals.
        """
        days = float(days)
        if not np.isfinite(days) or days < 0.0:
            raise ValueError(f"days must be a non-negative number, got {days!r}")

        nsims = int(np.floor(days / self.dt))
        self.intake_source.check_horizon(nsims)
        logger.info("Simulating %d individuals for %d steps (dt=%g days)", self.nind, nsims, self.dt)

        N = self.nind
        model_ffm = np.empty((N, nsims + 1), dtype=float)
        model_fm = np.empty((N, nsims + 1), dtype=float)
        ages = np.empty((N, nsims + 1), dtype=float)
        time = np.empty(nsims + 1, dtype=float)
        valid = np.ones(nsims + 1, dtype=bool)

        model_ffm[:, 0] = self.FFM
        model_fm[:, 0] = self.FM
        ages[:, 0] = self.age
        time[0] = 0.0

        y = np.concatenate([self.FFM, self.FM])
        for i in range(1, nsims + 1):
            y = rk4_step(self._rhs, time[i - 1], y, self.dt)

            model_ffm[:, i] = y[:N]
            model_fm[:, i] = y[N:]
            time[i] = time[i - 1] + self.dt
            ages[:, i] = ages[:, i - 1] + self.dt / DAYS_PER_YEAR

            ok = self._state_valid(y[:N], y[N:])
            if not np.all(ok):
                valid[i] = False
                bad = np.flatnonzero(~ok).tolist()
                if self.check:
                    raise NonPhysicalStateError(
                        f"Non-physical mass at step {i} (t={time[i]:g} days) "
                        f"for individual(s) {bad}"
                    )
                if valid[i - 1]:
                    logger.warning(
                        "Non-physical mass from step %d (t=%g days) for individual(s) %s",
                        i, time[i], bad,
                    )

        logger.info("Simulation finished: %d steps, correct_values=%s", nsims, bool(valid.all()))
        body_weight = model_ffm + model_fm
        for arr in (time, ages, model_ffm, model_fm, body_weight, valid):
            arr.flags.writeable = False
        return Trajectory(
            time=time,
            age=ages,
            FFM=model_ffm,
            FM=model_fm,
            body_weight=body_weight,
            valid=valid,
        )

    rk4 = simulate


# ---------------------------------------------------------------------------
#  Independent cohorts
# ---------------------------------------------------------------------------

def _simulate_one(job: Tuple[ChildModel, float]) -> Trajectory:
    model, days = job
    return model.simulate(days)


def simulate_batch(
    models: Sequence[ChildModel],
    days: float,
    processes: Optional[int] = None,
) -> List[Trajectory]:
    """
    Run independent cohorts, one process per cohort (results in input order).

    processes=1 runs serially in the calling process.
    """
    jobs = [(model, days) for model in models]
    if processes == 1 or len(jobs) <= 1:
        return [_simulate_one(job) for job in jobs]
    with mp.Pool(processes=processes) as pool:
        return pool.map(_simulate_one, jobs)
