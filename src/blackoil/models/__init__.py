"""Physical models, fluid property adapters and state containers."""
from . import protocol
from .states import BlackoilState, WellState
from .wells import Wells
from .fluid_data import PressureDependentFluidData
from .impes_tpfa import ImpesTpfaAd
from .compressible_flow import SinglePhaseCompressibleModel
