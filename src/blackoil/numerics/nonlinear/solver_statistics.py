"""Statistics object for the Newton solver."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class NewtonSolverStatistics:
    """Iteration counters and residual history of the Newton solver.

    Cumulative counters only include successful steps. The residual history and the
    relaxation data always refer to the most recent call to the solver, successful
    or not.

    """

    newton_iterations: int = 0
    """Number of Newton iterations in all successful steps."""
    linear_iterations: int = 0
    """Number of linear iterations in all successful steps."""
    newton_iterations_last_step: int = 0
    """Number of Newton iterations in the last successful step."""
    linear_iterations_last_step: int = 0
    """Number of linear iterations in the last successful step."""
    num_steps: int = 0
    """Number of successful steps."""
    num_failures: int = 0
    """Number of steps that failed to converge."""
    residual_norms: list[list[float]] = field(default_factory=list)
    """Residual norms per phase, one entry per assembly in the last step."""
    relaxation: float = 1.0
    """Relaxation factor at the end of the last step."""
    stagnated: bool = False
    """Whether stagnation was detected in the last iteration of the last step."""
    path: Optional[Path] = None
    """Path to save the statistics object to."""

    def reset_step(self) -> None:
        """Clear the data referring to a single step."""
        self.residual_norms = []
        self.relaxation = 1.0
        self.stagnated = False

    def log_residual_norms(self, norms: list[float]) -> None:
        self.residual_norms.append([float(n) for n in norms])

    def log_success(self, newton_iterations: int, linear_iterations: int) -> None:
        """Update the counters after a converged step.

        Parameters:
            newton_iterations: Newton iterations used in the step.
            linear_iterations: Linear iterations used in the step.

        """
        self.newton_iterations += newton_iterations
        self.linear_iterations += linear_iterations
        self.newton_iterations_last_step = newton_iterations
        self.linear_iterations_last_step = linear_iterations
        self.num_steps += 1

    def log_failure(self) -> None:
        self.num_failures += 1

    def save(self) -> None:
        """Save the statistics to a JSON file, if a path is set.

        Each call appends the current state under the key given by the number of
        steps taken so far.

        """
        if self.path is None:
            return

        if self.path.exists():
            with self.path.open("r") as file:
                data = json.load(file)
        else:
            data = {}

        data[str(self.num_steps + self.num_failures)] = {
            "newton_iterations": self.newton_iterations,
            "linear_iterations": self.linear_iterations,
            "newton_iterations_last_step": self.newton_iterations_last_step,
            "linear_iterations_last_step": self.linear_iterations_last_step,
            "num_failures": self.num_failures,
            "residual_norms": self.residual_norms,
            "relaxation": self.relaxation,
            "stagnated": self.stagnated,
        }

        with self.path.open("w") as file:
            json.dump(data, file, indent=4)
        logger.debug(f"Saved Newton solver statistics to {self.path}.")
