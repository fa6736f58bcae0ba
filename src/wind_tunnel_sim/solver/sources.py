"""Inflow jet and the built-in circular obstacle."""
import taichi as ti

from .grid import FieldKind, GridStorage, PERMEABILITY, SMOKE_DENSITY, VELOCITY_X
from .sampling import set_exact

OBSTACLE_CENTER = (50, 50)
OBSTACLE_RADIUS = 10

SMOKE_SOURCE_WIDTH = 15     # smoke columns [0, 15)
INFLOW_COLUMNS = (4, 6)     # velocity_x faces [4, 6)


@ti.data_oriented
class SourceInjector:
    """Overwrites the inflow region every tick; values are never accumulated."""

    def __init__(self, storage: GridStorage):
        self.storage = storage
        self.nx = storage.nx
        self.ny = storage.ny

        # Smoke band covers the central 10% of the height
        self.band_lo = 9 * self.ny // 20
        self.band_hi = 11 * self.ny // 20
        self.source_hi = min(SMOKE_SOURCE_WIDTH, self.nx)
        self.inflow_lo = min(INFLOW_COLUMNS[0], self.nx + 1)
        self.inflow_hi = min(INFLOW_COLUMNS[1], self.nx + 1)

    def inject(self, source_density: float, inflow_velocity: float):
        s = self.storage
        self._inject_kernel(
            s.field(FieldKind.SMOKE_DENSITY),
            s.field(FieldKind.VELOCITY_X),
            float(source_density),
            float(inflow_velocity),
        )

    def carve_obstacle(self, center=OBSTACLE_CENTER, radius=OBSTACLE_RADIUS):
        """Marks interior cells strictly inside the disc as solid."""
        self._carve_disc_kernel(self.storage.field(FieldKind.PERMEABILITY), int(center[0]), int(center[1]), int(radius))

    @ti.kernel
    def _inject_kernel(self, smoke: ti.template(), vx: ti.template(), density: ti.f32, speed: ti.f32):
        for x, y in ti.ndrange((0, self.source_hi), (self.band_lo, self.band_hi)):
            set_exact(smoke, SMOKE_DENSITY.pad, x, y, density)
        for x, y in ti.ndrange((self.inflow_lo, self.inflow_hi), (0, self.ny)):
            set_exact(vx, VELOCITY_X.pad, x, y, speed)

    @ti.kernel
    def _carve_disc_kernel(self, perm: ti.template(), cx: ti.i32, cy: ti.i32, r: ti.i32):
        for x, y in ti.ndrange(self.nx, self.ny):
            if (x - cx) * (x - cx) + (y - cy) * (y - cy) < r * r:
                set_exact(perm, PERMEABILITY.pad, x, y, 0.0)
