"""
Field access shared by every solver kernel.

Three access modes over grid storage:

- exact:        integer cell coordinates, padding applied, must be in range
- bounded:      integer storage indices, 0.0 outside the stored extent
- interpolated: real cell-centre coordinates, staggering offset applied,
                bilinear blend of four bounded samples

The module level ``ti.func`` helpers are what kernels call. ``FieldSampler``
exposes the same three modes to host code (renderers, tests).
"""
from typing import Tuple

import taichi as ti

from .grid import FieldKind, GridStorage


@ti.pyfunc
def fixed_mod(a, b):
    """Floor modulo: always in [0, b) for positive b, negative a included."""
    return ((a % b) + b) % b


@ti.func
def sample_exact(f: ti.template(), pad: ti.i32, x: ti.i32, y: ti.i32) -> ti.f32:
    return f[x + pad, y + pad]


@ti.func
def add_exact(f: ti.template(), pad: ti.i32, x: ti.i32, y: ti.i32, delta: ti.f32):
    f[x + pad, y + pad] += delta


@ti.func
def set_exact(f: ti.template(), pad: ti.i32, x: ti.i32, y: ti.i32, value: ti.f32):
    f[x + pad, y + pad] = value


@ti.func
def sample_bounded(f: ti.template(), i: ti.i32, j: ti.i32) -> ti.f32:
    value = 0.0
    if i >= 0 and j >= 0 and i < f.shape[0] and j < f.shape[1]:
        value = f[i, j]
    return value


@ti.func
def sample_interp(f: ti.template(), offset_x: ti.f32, offset_y: ti.f32, x: ti.f32, y: ti.f32) -> ti.f32:
    # Bilinear sampling in storage index space
    gx = x + offset_x
    gy = y + offset_y
    i = ti.cast(ti.floor(gx), ti.i32)
    j = ti.cast(ti.floor(gy), ti.i32)
    tx = fixed_mod(gx, 1.0)
    ty = fixed_mod(gy, 1.0)

    v00 = sample_bounded(f, i, j)
    v10 = sample_bounded(f, i + 1, j)
    v01 = sample_bounded(f, i, j + 1)
    v11 = sample_bounded(f, i + 1, j + 1)

    v0 = v00 * (1.0 - tx) + v10 * tx
    v1 = v01 * (1.0 - tx) + v11 * tx
    return v0 * (1.0 - ty) + v1 * ty


@ti.data_oriented
class FieldSampler:
    """Host-side access to grid storage through the kernel sampling helpers."""

    def __init__(self, storage: GridStorage):
        self.storage = storage

    def exact(self, kind: FieldKind, x: int, y: int) -> float:
        i, j = self._checked_index(kind, x, y)
        return float(self.storage.field(kind)[i, j])

    def set_exact(self, kind: FieldKind, x: int, y: int, value: float):
        i, j = self._checked_index(kind, x, y)
        self.storage.field(kind)[i, j] = value

    def bounded(self, kind: FieldKind, i: int, j: int) -> float:
        return float(self._bounded(self.storage.field(kind), int(i), int(j)))

    def interp(self, kind: FieldKind, x: float, y: float) -> float:
        layout = kind.layout
        return float(self._interp(self.storage.field(kind), layout.offset_x, layout.offset_y, float(x), float(y)))

    def velocity(self, x: float, y: float) -> Tuple[float, float]:
        return (self.interp(FieldKind.VELOCITY_X, x, y), self.interp(FieldKind.VELOCITY_Y, x, y))

    def _checked_index(self, kind: FieldKind, x: int, y: int) -> Tuple[int, int]:
        layout = kind.layout
        i, j = layout.storage_index(int(x), int(y))
        assert layout.contains(i, j, self.storage.nx, self.storage.ny), \
            f"exact access out of range: {kind.name} at ({x}, {y})"
        return i, j

    @ti.kernel
    def _bounded(self, f: ti.template(), i: ti.i32, j: ti.i32) -> ti.f32:
        return sample_bounded(f, i, j)

    @ti.kernel
    def _interp(self, f: ti.template(), offset_x: ti.f32, offset_y: ti.f32, x: ti.f32, y: ti.f32) -> ti.f32:
        return sample_interp(f, offset_x, offset_y, x, y)
