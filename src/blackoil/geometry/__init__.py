"""Geometric quantities derived from grids and rock properties."""
from .derived_geology import DerivedGeology
