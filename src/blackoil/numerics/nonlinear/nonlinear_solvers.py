"""Newton solver with relaxation for models exposing the nonlinear model interface.

The solver is generic: it only interacts with the model through the methods declared
in :class:`~blackoil.models.protocol.NonlinearModel`, so any discretization providing
them can be solved.

Each call to :meth:`NewtonSolver.step` assembles the residual, and iterates until the
model reports convergence. Residual norms per phase are recorded after every
assembly. When the norms of more than one phase alternate (they shrink over two
iterations, but grow in the latest one), the update is relaxed, either by damping or
by successive over-relaxation with the previous update. The relaxation factor is
lowered in steps of ``relax_increment`` each time oscillations are detected, but not
below ``relax_max``.

If convergence is not reached within ``max_iter`` iterations, the step returns
:attr:`NewtonSolver.FAILURE`. Restarting the step, typically with a shorter time
step, is left to the caller.

"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

import numpy as np

from blackoil.numerics.linalg.linear_solvers import LinearSolverConvergenceError
from blackoil.numerics.nonlinear.solver_statistics import NewtonSolverStatistics

if TYPE_CHECKING:
    from blackoil.models.protocol import NonlinearModel

__all__ = [
    "NewtonSolver",
    "OscillationDiagnosis",
    "RelaxType",
    "SolverParameters",
    "detect_newton_oscillations",
    "stabilize_newton",
]

# Module-wide logger
logger = logging.getLogger(__name__)


class RelaxType(Enum):
    """Relaxation schemes for the Newton update."""

    DAMPEN = "dampen"
    SOR = "sor"

    def __str__(self):
        return self.value

    @classmethod
    def from_str(cls, relax_type: str) -> RelaxType:
        """Convert a string to a RelaxType.

        Raises:
            ValueError: If the string does not name a relaxation scheme.

        """
        try:
            return cls(relax_type.strip().lower())
        except ValueError as err:
            raise ValueError(f"Unknown relaxation type {relax_type}.") from err


@dataclass(frozen=True)
class SolverParameters:
    """Parameters controlling the nonlinear Newton process."""

    relax_type: RelaxType = RelaxType.DAMPEN
    """Relaxation scheme applied when oscillations are detected."""
    relax_max: float = 0.5
    """Lower bound for the relaxation factor."""
    relax_increment: float = 0.1
    """Reduction of the relaxation factor each time oscillations are detected."""
    relax_rel_tol: float = 0.2
    """Relative tolerance for the oscillation detection."""
    max_iter: int = 15
    """Maximum number of Newton iterations."""
    min_iter: int = 1
    """Minimum number of Newton iterations."""

    def __post_init__(self) -> None:
        if isinstance(self.relax_type, str):
            object.__setattr__(self, "relax_type", RelaxType.from_str(self.relax_type))
        if not 0 < self.relax_max <= 1:
            raise ValueError("Expected 0 < relax_max <= 1.")
        if self.relax_increment < 0:
            raise ValueError("Relaxation increment cannot be negative.")
        if self.relax_rel_tol <= 0:
            raise ValueError("Relative tolerance for oscillations must be positive.")
        if self.max_iter <= 0:
            raise ValueError("Maximum number of iterations must be positive.")
        if self.min_iter < 0:
            raise ValueError("Minimum number of iterations cannot be negative.")

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> SolverParameters:
        """Read parameters from a dictionary, using defaults for missing keys.

        Parameters:
            params: Dictionary with any of the keys ``relax_type`` (``"dampen"`` or
                ``"sor"``), ``relax_max``, ``relax_increment``, ``relax_rel_tol``,
                ``max_iter`` and ``min_iter``.

        """
        defaults = cls()
        return cls(
            relax_type=params.get("relax_type", defaults.relax_type),
            relax_max=float(params.get("relax_max", defaults.relax_max)),
            relax_increment=float(
                params.get("relax_increment", defaults.relax_increment)
            ),
            relax_rel_tol=float(params.get("relax_rel_tol", defaults.relax_rel_tol)),
            max_iter=int(params.get("max_iter", defaults.max_iter)),
            min_iter=int(params.get("min_iter", defaults.min_iter)),
        )


@dataclass
class OscillationDiagnosis:
    """Result of the oscillation and stagnation detection."""

    oscillating_phases: np.ndarray
    """Boolean flag per phase."""
    stagnate: bool
    """True if no phase changed its residual norm noticeably between the two oldest
    of the inspected iterations. Not used to alter the iterations."""

    @property
    def oscillate(self) -> bool:
        """The iterations oscillate if more than one phase oscillates."""
        return int(np.count_nonzero(self.oscillating_phases)) > 1


def detect_newton_oscillations(
    residual_history: Sequence[Sequence[float]],
    iteration: int,
    relax_rel_tol: float,
    num_phases: Optional[int] = None,
) -> OscillationDiagnosis:
    """Detect oscillating or stagnating residual norms.

    With F0, F1 and F2 the residual norms of a phase in iteration ``iteration``,
    ``iteration - 1`` and ``iteration - 2``, the phase oscillates if

        |F0 - F2| / F0 < relax_rel_tol < |F0 - F1| / F0.

    Parameters:
        residual_history: Residual norms per phase, one entry per assembly. Entries
            may hold more values than phases (e.g. well equations); only the first
            ``num_phases`` are inspected.
        iteration: Current iteration. Nothing is detected before iteration 2.
        relax_rel_tol: Relative tolerance.
        num_phases: Number of phases. Defaults to the length of the latest entry.

    Returns:
        The diagnosis.

    """
    if num_phases is None:
        num_phases = len(residual_history[-1]) if len(residual_history) > 0 else 0

    if iteration < 2:
        return OscillationDiagnosis(np.zeros(num_phases, dtype=bool), False)

    F0 = np.asarray(residual_history[iteration][:num_phases], dtype=float)
    F1 = np.asarray(residual_history[iteration - 1][:num_phases], dtype=float)
    F2 = np.asarray(residual_history[iteration - 2][:num_phases], dtype=float)

    # Vanishing norms give nan or inf, which never flag a phase as oscillating.
    with np.errstate(divide="ignore", invalid="ignore"):
        d1 = np.abs((F0 - F2) / F0)
        d2 = np.abs((F0 - F1) / F0)
        oscillating = (d1 < relax_rel_tol) & (relax_rel_tol < d2)

        # Stagnation unless at least one phase exhibits a significant change.
        stagnate = not bool(np.any(np.abs((F1 - F2) / F2) > 1.0e-3))

    return OscillationDiagnosis(oscillating, stagnate)


def stabilize_newton(
    dx: np.ndarray,
    dx_old: np.ndarray,
    omega: float,
    relax_type: RelaxType,
) -> tuple[np.ndarray, np.ndarray]:
    """Relax a Newton update.

    Parameters:
        dx: Update from the current linear solve.
        dx_old: Unrelaxed update of the previous iteration.
        omega: Relaxation factor. For ``omega == 1`` no relaxation is applied.
        relax_type: Relaxation scheme. Damping scales the update by ``omega``,
            successive over-relaxation blends it with ``dx_old``.

    Raises:
        ValueError: If the relaxation scheme is not supported.

    Returns:
        The relaxed update, and the unrelaxed update to be passed as ``dx_old`` in
        the next iteration.

    """
    new_dx_old = np.array(dx, dtype=float, copy=True)

    if relax_type == RelaxType.DAMPEN:
        if omega == 1.0:
            return dx, new_dx_old
        return dx * omega, new_dx_old
    elif relax_type == RelaxType.SOR:
        if omega == 1.0:
            return dx, new_dx_old
        return dx * omega + (1.0 - omega) * dx_old, new_dx_old
    else:
        raise ValueError("Can only handle DAMPEN and SOR relaxation type.")


class NewtonSolver:
    """Newton solver for general fully implicit models.

    The solver takes ownership of the model: the model must not be modified by
    others while a step is in progress.

    Parameters:
        params: Parameters controlling the Newton process, either as a
            SolverParameters object or as a dictionary understood by
            :meth:`SolverParameters.from_params`. Defaults are used if None.
        model: Physical simulation model.
        statistics_path: If given, statistics are saved to this JSON file after
            every step.

    """

    FAILURE: int = -1
    """Returned by :meth:`step` if the step must be restarted."""

    def __init__(
        self,
        params: Optional[Union[SolverParameters, dict[str, Any]]],
        model: NonlinearModel,
        statistics_path: Optional[Path] = None,
    ) -> None:
        if params is None:
            params = SolverParameters()
        elif isinstance(params, dict):
            params = SolverParameters.from_params(params)
        self.params: SolverParameters = params
        self.model = model
        self.statistics = NewtonSolverStatistics(path=statistics_path)

    def step(self, dt: float, reservoir_state: Any, well_state: Any) -> int:
        """Take a single forward step, after which the states are modified according
        to the model.

        Parameters:
            dt: Time step size.
            reservoir_state: Reservoir state variables.
            well_state: Well state variables.

        Returns:
            Number of linear iterations used, or :attr:`FAILURE` if the iterations
            did not converge and the step must be restarted.

        """
        model = self.model
        params = self.params
        self.statistics.reset_step()

        # Do model-specific once-per-step calculations.
        model.prepare_step(dt, reservoir_state, well_state)

        # Residual norms of each active phase, one entry per assembly.
        residual_norms_history: list[list[float]] = []

        model.assemble(reservoir_state, well_state, True)
        self._record_residual_norms(residual_norms_history)

        omega = 1.0
        iteration = 0
        converged = model.get_convergence(dt, iteration)
        dx_old = np.zeros(model.size_non_linear())
        linear_iterations = 0

        while (not converged and iteration < params.max_iter) or (
            params.min_iter > iteration
        ):
            logger.debug(f"Newton iteration number {iteration} of {params.max_iter}")
            try:
                dx = model.solve_jacobian_system()
            except LinearSolverConvergenceError as err:
                logger.warning(
                    f"Linear solver failed in Newton iteration {iteration}: {err}"
                )
                return self._failure(omega)
            linear_iterations += model.linear_iterations_last_solve()

            diagnosis = detect_newton_oscillations(
                residual_norms_history,
                iteration,
                params.relax_rel_tol,
                model.num_phases(),
            )
            self.statistics.stagnated = diagnosis.stagnate
            if diagnosis.oscillate:
                omega = max(omega - params.relax_increment, params.relax_max)
                logger.info(f"Oscillating behavior detected: Relaxation set to {omega}")
            dx, dx_old = stabilize_newton(dx, dx_old, omega, params.relax_type)

            # The model may limit or chop the update.
            model.update_state(dx, reservoir_state, well_state)

            model.assemble(reservoir_state, well_state, False)
            self._record_residual_norms(residual_norms_history)

            iteration += 1
            converged = model.get_convergence(dt, iteration)

        if not converged:
            logger.warning(
                f"Failed to compute converged solution in {iteration} iterations."
            )
            return self._failure(omega)

        self.statistics.relaxation = omega
        self.statistics.log_success(iteration, linear_iterations)
        self.statistics.save()

        # Do model-specific post-step actions.
        model.after_step(dt, reservoir_state, well_state)

        logger.info(
            f"Newton converged in {iteration} iterations, "
            f"{linear_iterations} linear iterations."
        )
        return linear_iterations

    def newton_iterations(self) -> int:
        """Number of Newton iterations used in all successful calls to step()."""
        return self.statistics.newton_iterations

    def linear_iterations(self) -> int:
        """Number of linear solver iterations used in all successful calls to step()."""
        return self.statistics.linear_iterations

    def newton_iterations_last_step(self) -> int:
        """Number of Newton iterations used in the last successful call to step()."""
        return self.statistics.newton_iterations_last_step

    def linear_iterations_last_step(self) -> int:
        """Number of linear iterations used in the last successful call to step()."""
        return self.statistics.linear_iterations_last_step

    def _record_residual_norms(self, history: list[list[float]]) -> None:
        norms = list(self.model.compute_residual_norms())
        history.append(norms)
        self.statistics.log_residual_norms(norms)

    def _failure(self, omega: float) -> int:
        self.statistics.relaxation = omega
        self.statistics.log_failure()
        self.statistics.save()
        return self.FAILURE
