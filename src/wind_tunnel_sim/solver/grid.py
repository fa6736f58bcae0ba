"""
Staggered (MAC) grid storage for the smoke solver.

Every quantity lives in its own fixed-size 2D Taichi field indexed ``[x, y]``:

- velocity_x:   (nx + 1) x ny        vertical cell faces
- velocity_y:   nx x (ny + 1)        horizontal cell faces
- permeability: (nx + 2) x (ny + 2)  cell centres, one cell of padding per side
- smoke:        nx x ny              cell centres

Field shapes, paddings and staggering offsets are described once by a
``FieldLayout`` and looked up through ``FieldKind``. Kernels and host code
both derive indices from these records.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np
import taichi as ti


@dataclass(frozen=True)
class FieldLayout:
    """Shape, padding and sampling offset of one grid quantity."""

    name: str
    extra_x: int      # storage columns beyond nx
    extra_y: int      # storage rows beyond ny
    pad: int          # exact cell (x, y) lives at storage index (x + pad, y + pad)
    offset_x: float   # added to a cell-centre coordinate to get a storage index
    offset_y: float

    def shape(self, nx: int, ny: int) -> Tuple[int, int]:
        return (nx + self.extra_x, ny + self.extra_y)

    def storage_index(self, x: int, y: int) -> Tuple[int, int]:
        return (x + self.pad, y + self.pad)

    def contains(self, i: int, j: int, nx: int, ny: int) -> bool:
        """True when storage index (i, j) lies inside the stored extent."""
        sx, sy = self.shape(nx, ny)
        return 0 <= i < sx and 0 <= j < sy


VELOCITY_X = FieldLayout("velocity_x", 1, 0, 0, 0.5, 0.0)
VELOCITY_Y = FieldLayout("velocity_y", 0, 1, 0, 0.0, 0.5)
PERMEABILITY = FieldLayout("permeability", 2, 2, 1, 1.0, 1.0)
SMOKE_DENSITY = FieldLayout("smoke_density", 0, 0, 0, 0.0, 0.0)


class FieldKind(Enum):
    VELOCITY_X = VELOCITY_X
    VELOCITY_Y = VELOCITY_Y
    PERMEABILITY = PERMEABILITY
    SMOKE_DENSITY = SMOKE_DENSITY

    @property
    def layout(self) -> FieldLayout:
        return self.value


# Fields replaced wholesale by advection carry a back buffer.
DOUBLE_BUFFERED = (FieldKind.VELOCITY_X, FieldKind.VELOCITY_Y, FieldKind.SMOKE_DENSITY)


class GridStorage:
    """Owns the four solver fields plus back buffers for the advected ones.

    Buffers are allocated once; ``swap`` only exchanges which allocation is
    the current one, so kernels must receive fields as template arguments
    rather than reading them off ``self``.
    """

    def __init__(self, nx: int, ny: int):
        self.nx = int(nx)
        self.ny = int(ny)

        self._front = {}
        self._back = {}
        for kind in FieldKind:
            shape = kind.layout.shape(self.nx, self.ny)
            self._front[kind] = ti.field(dtype=ti.f32, shape=shape)
            if kind in DOUBLE_BUFFERED:
                self._back[kind] = ti.field(dtype=ti.f32, shape=shape)

        self.reset()

    def field(self, kind: FieldKind):
        return self._front[kind]

    def scratch(self, kind: FieldKind):
        return self._back[kind]

    def swap(self, *kinds: FieldKind):
        """Promotes fully written back buffers to be the current fields."""
        for kind in kinds:
            self._front[kind], self._back[kind] = self._back[kind], self._front[kind]

    def shape(self, kind: FieldKind) -> Tuple[int, int]:
        return kind.layout.shape(self.nx, self.ny)

    def reset(self):
        """Zero velocity and smoke, fully open permeability (padding included)."""
        for kind in FieldKind:
            value = 1.0 if kind is FieldKind.PERMEABILITY else 0.0
            self._front[kind].fill(value)
            if kind in self._back:
                self._back[kind].fill(value)

    def to_numpy(self, kind: FieldKind) -> np.ndarray:
        return self._front[kind].to_numpy()

    def from_numpy(self, kind: FieldKind, values: np.ndarray):
        values = np.asarray(values, dtype=np.float32)
        self._front[kind].from_numpy(values)
