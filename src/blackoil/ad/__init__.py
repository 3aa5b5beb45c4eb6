"""Forward mode automatic differentiation with block-partitioned Jacobians."""
from . import forward_mode
from .forward_mode import AdArray, BlockPatternError, initAdArrays
from . import utils
from .utils import concatenate, spdiag, subset, superset
