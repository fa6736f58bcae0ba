"""
Wind Tunnel Sim.

Copyright (c) 2026 Shuoqi Chen
SPDX-License-Identifier: MIT OR Apache-2.0
"""
from .solver.smoke_solver import SmokeSolver
from .solver.configs import SolverParams
from .solver.grid import FieldKind
from .solver.renderer import FieldRenderer
from .viewer import launch_viewer

__version__ = "1.0.0"
__author__ = "Shuoqi Chen"
__license__ = "MIT"
__all__ = ["SmokeSolver", "SolverParams", "FieldKind", "FieldRenderer", "launch_viewer"]
