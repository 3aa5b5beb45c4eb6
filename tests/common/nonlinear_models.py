"""Models with scripted behavior for testing the Newton solver.

Implemented models:
    ScriptedModel: Reports prescribed residual norms and converges after a given
        number of iterations. All calls from the solver are recorded.

"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

import blackoil as bo


class ScriptedModel:
    """Nonlinear model with prescribed residual norms and Newton updates.

    Parameters:
        norms: Residual norms per phase, one entry per assembly. The last entry is
            repeated if more assemblies are made.
        converge_after: The model reports convergence from this iteration on. Never
            converges if None.
        size: Number of unknowns.
        update: Value of the Newton update returned by every linear solve.
        linear_iterations: Reported number of linear iterations per solve.
        fail_linear_solve: Raise a convergence error in this linear solve (counted
            from 1). Never fails if None.
        scripted_updates: Values of the Newton update, one entry per linear solve.
            The last entry is repeated if more solves are made. Overrides
            ``update`` if given.

    """

    def __init__(
        self,
        norms: Sequence[Sequence[float]] = ((1.0, 1.0),),
        converge_after: Optional[int] = None,
        size: int = 3,
        update: float = 1.0,
        linear_iterations: int = 2,
        fail_linear_solve: Optional[int] = None,
        scripted_updates: Optional[Sequence[float]] = None,
    ) -> None:
        self.norms = [list(n) for n in norms]
        self.converge_after = converge_after
        self.size = size
        self.update = update
        self.linear_iterations = linear_iterations
        self.fail_linear_solve = fail_linear_solve
        self.scripted_updates = scripted_updates

        self.num_prepare = 0
        self.num_assemblies = 0
        self.num_solves = 0
        self.num_after_step = 0
        self.initial_assembly_flags: list[bool] = []
        self.updates: list[np.ndarray] = []

    def prepare_step(self, dt, reservoir_state, well_state) -> None:
        self.num_prepare += 1

    def assemble(self, reservoir_state, well_state, initial_assembly) -> None:
        self.num_assemblies += 1
        self.initial_assembly_flags.append(initial_assembly)

    def compute_residual_norms(self) -> list[float]:
        index = min(self.num_assemblies, len(self.norms)) - 1
        return self.norms[index]

    def get_convergence(self, dt, iteration) -> bool:
        return self.converge_after is not None and iteration >= self.converge_after

    def size_non_linear(self) -> int:
        return self.size

    def solve_jacobian_system(self) -> np.ndarray:
        self.num_solves += 1
        if self.num_solves == self.fail_linear_solve:
            raise bo.LinearSolverConvergenceError("Scripted failure.")
        if self.scripted_updates is None:
            return np.full(self.size, self.update)
        index = min(self.num_solves, len(self.scripted_updates)) - 1
        return np.full(self.size, self.scripted_updates[index])

    def linear_iterations_last_solve(self) -> int:
        return self.linear_iterations

    def update_state(self, dx, reservoir_state, well_state) -> None:
        self.updates.append(np.array(dx, copy=True))

    def after_step(self, dt, reservoir_state, well_state) -> None:
        self.num_after_step += 1

    def num_phases(self) -> int:
        return len(self.norms[0])
