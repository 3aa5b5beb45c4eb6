"""   blackoil.

Root directory for the blackoil package. Contains the following sub-packages:

ad: Forward-mode automatic differentiation with block-partitioned Jacobians.

grids: Cell-centered grids and their topology.

geometry: Pore volumes and transmissibilities derived from grid and rock data.

numerics: Discrete operators (gradient, divergence, upwinding), linear solver
    wrappers and the Newton solver.

models: State containers, well topology, fluid property adapters and the
    discretizations (IMPES pressure assembly, fully implicit single-phase flow).

utils: Unit constants and logging.


isort:skip_file

"""

import configparser
import os
from pathlib import Path


__version__ = "0.1.0"

# Read the config file from the directory where the python process was launched.
# A missing file gives an empty configuration.
_cfg = configparser.ConfigParser()
_cfg.read(Path(os.getcwd()) / Path("blackoil.cfg"))
config = {key: dict(section) for key, section in _cfg.items()}

# ------------------------------------
# Simplified namespaces. Classes and modules that a user can be exposed to have a
# shortcut here.

from blackoil.utils.common_constants import *
from blackoil.utils.logging import time_logger

# Automatic differentiation
from blackoil import ad
from blackoil.ad.forward_mode import AdArray, BlockPatternError, initAdArrays

# Grids and geometry
from blackoil.grids.grid import Grid
from blackoil.grids.structured import CartGrid
from blackoil.geometry.derived_geology import DerivedGeology

# Numerics
from blackoil.numerics.fv.helper_ops import HelperOps
from blackoil.numerics.fv.upwind import UpwindSelector
from blackoil.numerics.linalg.linear_solvers import (
    LinearSolverConvergenceError,
    LinearSolverReport,
    ScipyLinearSolver,
)
from blackoil.numerics.nonlinear.solver_statistics import NewtonSolverStatistics
from blackoil.numerics.nonlinear.nonlinear_solvers import (
    NewtonSolver,
    OscillationDiagnosis,
    RelaxType,
    SolverParameters,
    detect_newton_oscillations,
    stabilize_newton,
)

# Models
from blackoil.models.states import BlackoilState, WellState
from blackoil.models.wells import Wells
from blackoil.models.fluid_data import PressureDependentFluidData
from blackoil.models.impes_tpfa import ImpesTpfaAd
from blackoil.models.compressible_flow import SinglePhaseCompressibleModel
