"""
Pressure projection by in-place Gauss-Seidel over-relaxation.

Each cell's divergence is pushed onto its four faces in proportion to the
permeability of the neighbouring cells. Updates are visible to the next cell
in the same sweep, so the sweep has to run serially in row-major order.
"""
import numpy as np
import taichi as ti

from .grid import FieldKind, GridStorage, PERMEABILITY, VELOCITY_X, VELOCITY_Y
from .sampling import add_exact, sample_exact


@ti.data_oriented
class PressureProjector:
    def __init__(self, storage: GridStorage):
        self.storage = storage
        self.nx = storage.nx
        self.ny = storage.ny

    def project(self, overrelaxation: float, iterations: int = 1):
        """Runs ``iterations`` full relaxation sweeps over the grid."""
        s = self.storage
        self._sweep(
            s.field(FieldKind.VELOCITY_X),
            s.field(FieldKind.VELOCITY_Y),
            s.field(FieldKind.PERMEABILITY),
            float(overrelaxation),
            int(iterations),
        )

    def relax_cell(self, x: int, y: int, overrelaxation: float):
        """Relaxes a single cell; the sweep applies exactly this per cell."""
        s = self.storage
        self._relax_one(
            s.field(FieldKind.VELOCITY_X),
            s.field(FieldKind.VELOCITY_Y),
            s.field(FieldKind.PERMEABILITY),
            int(x),
            int(y),
            float(overrelaxation),
        )

    def divergence(self) -> np.ndarray:
        """Net outflow per cell, shape (nx, ny)."""
        vx = self.storage.to_numpy(FieldKind.VELOCITY_X)
        vy = self.storage.to_numpy(FieldKind.VELOCITY_Y)
        return (vx[1:, :] - vx[:-1, :]) + (vy[:, 1:] - vy[:, :-1])

    @ti.func
    def _relax_at(self, vx: ti.template(), vy: ti.template(), perm: ti.template(), ix: ti.i32, iy: ti.i32, omega: ti.f32):
        su0 = sample_exact(perm, PERMEABILITY.pad, ix - 1, iy)
        su1 = sample_exact(perm, PERMEABILITY.pad, ix + 1, iy)
        sv0 = sample_exact(perm, PERMEABILITY.pad, ix, iy - 1)
        sv1 = sample_exact(perm, PERMEABILITY.pad, ix, iy + 1)
        s = su0 + su1 + sv0 + sv1

        # Fully walled in: nothing can carry the correction
        if s != 0.0:
            u0 = sample_exact(vx, VELOCITY_X.pad, ix, iy)
            u1 = sample_exact(vx, VELOCITY_X.pad, ix + 1, iy)
            v0 = sample_exact(vy, VELOCITY_Y.pad, ix, iy)
            v1 = sample_exact(vy, VELOCITY_Y.pad, ix, iy + 1)
            d = omega * (u1 - u0 + v1 - v0)

            add_exact(vx, VELOCITY_X.pad, ix, iy, d * su0 / s)
            add_exact(vx, VELOCITY_X.pad, ix + 1, iy, -d * su1 / s)
            add_exact(vy, VELOCITY_Y.pad, ix, iy, d * sv0 / s)
            add_exact(vy, VELOCITY_Y.pad, ix, iy + 1, -d * sv1 / s)

    @ti.kernel
    def _sweep(self, vx: ti.template(), vy: ti.template(), perm: ti.template(), omega: ti.f32, iterations: ti.i32):
        ti.loop_config(serialize=True)
        for it in range(iterations):
            for iy in range(self.ny):
                for ix in range(self.nx):
                    self._relax_at(vx, vy, perm, ix, iy, omega)

    @ti.kernel
    def _relax_one(self, vx: ti.template(), vy: ti.template(), perm: ti.template(), ix: ti.i32, iy: ti.i32, omega: ti.f32):
        self._relax_at(vx, vy, perm, ix, iy, omega)
