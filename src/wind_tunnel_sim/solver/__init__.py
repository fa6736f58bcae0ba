"""Staggered-grid smoke solver."""
from .configs import SolverParams
from .grid import FieldKind, GridStorage
from .sampling import FieldSampler, fixed_mod
from .smoke_solver import SmokeSolver, initialize_taichi_backend

__all__ = ["SmokeSolver", "SolverParams", "FieldKind", "GridStorage", "FieldSampler", "fixed_mod", "initialize_taichi_backend"]
