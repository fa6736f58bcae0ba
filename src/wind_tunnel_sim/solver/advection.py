"""
Semi-Lagrangian advection on the staggered grid.

Every sample point is traced back one explicit Euler step through the
current velocity and the old field is interpolated there. Kernels only read
the current fields and only write the back buffers; the buffers are swapped
in once every component of a quantity has been written.
"""
import taichi as ti

from .grid import FieldKind, GridStorage, SMOKE_DENSITY, VELOCITY_X, VELOCITY_Y
from .sampling import sample_exact, sample_interp


@ti.data_oriented
class Advector:
    def __init__(self, storage: GridStorage, dt: float):
        self.storage = storage
        self.dt = float(dt)

    def advect_velocities(self):
        s = self.storage
        self._advect_velocity_kernel(
            s.field(FieldKind.VELOCITY_X),
            s.field(FieldKind.VELOCITY_Y),
            s.scratch(FieldKind.VELOCITY_X),
            s.scratch(FieldKind.VELOCITY_Y),
            self.dt,
        )
        s.swap(FieldKind.VELOCITY_X, FieldKind.VELOCITY_Y)

    def advect_smoke(self):
        s = self.storage
        self._advect_smoke_kernel(
            s.field(FieldKind.VELOCITY_X),
            s.field(FieldKind.VELOCITY_Y),
            s.field(FieldKind.SMOKE_DENSITY),
            s.scratch(FieldKind.SMOKE_DENSITY),
            self.dt,
        )
        s.swap(FieldKind.SMOKE_DENSITY)

    @ti.kernel
    def _advect_velocity_kernel(self, vx: ti.template(), vy: ti.template(),
                                vx_new: ti.template(), vy_new: ti.template(), dt: ti.f32):
        for ix, iy in vx_new:
            x = ti.cast(ix, ti.f32) - VELOCITY_X.offset_x
            y = ti.cast(iy, ti.f32) - VELOCITY_X.offset_y

            u = sample_exact(vx, VELOCITY_X.pad, ix, iy)
            v = sample_interp(vy, VELOCITY_Y.offset_x, VELOCITY_Y.offset_y, x, y)

            vx_new[ix, iy] = sample_interp(vx, VELOCITY_X.offset_x, VELOCITY_X.offset_y, x - u * dt, y - v * dt)

        for ix, iy in vy_new:
            x = ti.cast(ix, ti.f32) - VELOCITY_Y.offset_x
            y = ti.cast(iy, ti.f32) - VELOCITY_Y.offset_y

            u = sample_interp(vx, VELOCITY_X.offset_x, VELOCITY_X.offset_y, x, y)
            v = sample_exact(vy, VELOCITY_Y.pad, ix, iy)

            vy_new[ix, iy] = sample_interp(vy, VELOCITY_Y.offset_x, VELOCITY_Y.offset_y, x - u * dt, y - v * dt)

    @ti.kernel
    def _advect_smoke_kernel(self, vx: ti.template(), vy: ti.template(),
                             smoke: ti.template(), smoke_new: ti.template(), dt: ti.f32):
        for ix, iy in smoke_new:
            x = ti.cast(ix, ti.f32) - SMOKE_DENSITY.offset_x
            y = ti.cast(iy, ti.f32) - SMOKE_DENSITY.offset_y

            u = sample_interp(vx, VELOCITY_X.offset_x, VELOCITY_X.offset_y, x, y)
            v = sample_interp(vy, VELOCITY_Y.offset_x, VELOCITY_Y.offset_y, x, y)

            smoke_new[ix, iy] = sample_interp(smoke, SMOKE_DENSITY.offset_x, SMOKE_DENSITY.offset_y, x - u * dt, y - v * dt)
