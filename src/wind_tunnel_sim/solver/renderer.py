"""Maps solver fields to an RGB image and a velocity-arrow overlay."""
import numpy as np
import taichi as ti

from .grid import FieldKind, PERMEABILITY, SMOKE_DENSITY, VELOCITY_X, VELOCITY_Y
from .sampling import sample_exact, sample_interp

OBSTACLE_RGB = (50, 168, 82)
ARROW_STRIDE = 2       # overlay samples every 2nd cell
ARROW_SCALE = 0.1      # pixels per unit of velocity


@ti.func
def _clamp_01(x: ti.f32) -> ti.f32:
    return ti.min(1.0, ti.max(0.0, x))


@ti.data_oriented
class FieldRenderer:
    """Renders a ``SmokeSolver`` into ``width`` x ``height`` pixel fields.

    ``image`` (float RGB) feeds ``ti.ui`` canvases directly; ``render`` also
    returns an 8-bit copy. Pixel rows count up from the bottom of the window,
    so simulation row 0 is drawn at the top.
    """

    def __init__(self, solver, width: int, height: int):
        self.solver = solver
        self.width = int(width)
        self.height = int(height)
        self.nx = solver.nx
        self.ny = solver.ny

        self.image = ti.Vector.field(3, dtype=ti.f32, shape=(self.width, self.height))
        self._img_u8 = ti.field(dtype=ti.u8, shape=(self.width, self.height, 3))

        self.arrow_cols = (self.nx + ARROW_STRIDE - 1) // ARROW_STRIDE
        self.arrow_rows = (self.ny + ARROW_STRIDE - 1) // ARROW_STRIDE
        # Line-list vertices in normalized [0, 1] window coordinates
        self.arrows = ti.Vector.field(2, dtype=ti.f32, shape=2 * self.arrow_cols * self.arrow_rows)

    def render(self) -> np.ndarray:
        """Composites the current fields and returns a (width, height, 3) uint8 array."""
        self._draw_kernel(
            self.solver.field(FieldKind.SMOKE_DENSITY),
            self.solver.field(FieldKind.PERMEABILITY),
        )
        return self._img_u8.to_numpy()

    def overlay(self, scale: float = ARROW_SCALE):
        """Fills ``arrows`` with one segment per sampled cell centre."""
        self._build_overlay_kernel(
            self.solver.field(FieldKind.VELOCITY_X),
            self.solver.field(FieldKind.VELOCITY_Y),
            float(scale),
        )
        return self.arrows

    @ti.kernel
    def _draw_kernel(self, smoke: ti.template(), perm: ti.template()):
        for i, j in self.image:
            ix = ti.cast(ti.cast(i, ti.f32) / self.width * self.nx, ti.i32)
            iy = ti.cast(ti.cast(self.height - 1 - j, ti.f32) / self.height * self.ny, ti.i32)

            if sample_exact(perm, PERMEABILITY.pad, ix, iy) == 0.0:
                self._img_u8[i, j, 0] = ti.cast(OBSTACLE_RGB[0], ti.u8)
                self._img_u8[i, j, 1] = ti.cast(OBSTACLE_RGB[1], ti.u8)
                self._img_u8[i, j, 2] = ti.cast(OBSTACLE_RGB[2], ti.u8)
                self.image[i, j] = ti.Vector([OBSTACLE_RGB[0] / 255.0, OBSTACLE_RGB[1] / 255.0, OBSTACLE_RGB[2] / 255.0])
            else:
                c = _clamp_01(1.0 - sample_exact(smoke, SMOKE_DENSITY.pad, ix, iy))
                g = ti.cast(c * 255.0, ti.u8)
                self._img_u8[i, j, 0] = g
                self._img_u8[i, j, 1] = g
                self._img_u8[i, j, 2] = g
                self.image[i, j] = ti.Vector([c, c, c])

    @ti.kernel
    def _build_overlay_kernel(self, vx: ti.template(), vy: ti.template(), scale: ti.f32):
        for a, b in ti.ndrange(self.arrow_cols, self.arrow_rows):
            k = b * self.arrow_cols + a
            x = ti.cast(a * ARROW_STRIDE, ti.f32)
            y = ti.cast(b * ARROW_STRIDE, ti.f32)

            u = sample_interp(vx, VELOCITY_X.offset_x, VELOCITY_X.offset_y, x, y)
            v = sample_interp(vy, VELOCITY_Y.offset_x, VELOCITY_Y.offset_y, x, y)

            px = (x + 0.5) / self.nx
            py = 1.0 - (y + 0.5) / self.ny
            self.arrows[2 * k] = ti.Vector([px, py])
            self.arrows[2 * k + 1] = ti.Vector([px + u * scale / self.width, py - v * scale / self.height])
