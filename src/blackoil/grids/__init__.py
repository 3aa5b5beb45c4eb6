"""Cell-centered grids."""
from .grid import Grid
from .structured import CartGrid
