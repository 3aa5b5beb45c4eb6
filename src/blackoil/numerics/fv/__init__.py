from .helper_ops import HelperOps
from .upwind import UpwindSelector
