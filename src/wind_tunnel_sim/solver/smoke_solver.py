"""
This solver is a small, realtime wind-tunnel style smoke simulation.

High-level approach:
- Staggered (MAC) grid: velocity on cell faces, smoke and permeability at centres
- Pressure projection by Gauss-Seidel over-relaxation, weighted by permeability
- Semi-Lagrangian advection of velocity and smoke, double buffered
- A constant smoke/momentum jet on the left edge and a static circular obstacle

Inspired by classic building blocks from:
- Harlow & Welch 1965 (MAC grid)
- Stam 1999 (stable fluids, semi-Lagrangian advection)
- Bridson 2015 (Fluid Simulation for Computer Graphics, 2nd ed.)
"""


import time
from typing import Dict, Optional, Tuple

import numpy as np
import taichi as ti

from .advection import Advector
from .configs import SolverParams
from .grid import FieldKind, GridStorage
from .projection import PressureProjector
from .sampling import FieldSampler
from .sources import SourceInjector

_GLOBAL_TAICHI_INITIALIZED = False

def initialize_taichi_backend(arch: str = "cpu", use_profiler: bool = False):
    """Initializes the Taichi runtime once per process."""
    global _GLOBAL_TAICHI_INITIALIZED
    if _GLOBAL_TAICHI_INITIALIZED:
        return

    init_kwargs = {
        "offline_cache": True,
        "kernel_profiler": use_profiler,
        "default_fp": ti.f32,
    }

    ti_arch = ti.cpu
    if arch == "gpu":
        ti_arch = ti.gpu
    elif arch == "vulkan":
        ti_arch = ti.vulkan
    elif arch == "metal":
        ti_arch = ti.metal
    elif arch == "cuda":
        ti_arch = ti.cuda

    print(f"[SmokeSolver] Initializing Taichi with backend: {ti_arch}")
    ti.init(arch=ti_arch, **init_kwargs)

    print(f"[SmokeSolver] Taichi initialized. Backend: {ti.cfg.arch} | Profiler: {use_profiler}")
    _GLOBAL_TAICHI_INITIALIZED = True


class SmokeSolver:
    """Incompressible smoke flow around a static obstacle.

    Owns all grid state. The host calls ``step`` once per fixed tick and reads
    the fields between ticks; nothing here is safe to call concurrently.

    Fields (see ``GridStorage``):
    - velocity_x / velocity_y: face velocities in cells per second
    - permeability: 0 solid, 1 open, padded by one cell
    - smoke_density: passive tracer
    """

    def __init__(self, nx: int = 200, ny: int = 100, dt: float = 1.0 / 60.0,
                 params: Optional[SolverParams] = None, arch: str = "cpu", warmup: bool = True,
                 use_profiler: bool = False):
        try:
            initialize_taichi_backend(arch, use_profiler=use_profiler)
        except Exception as e:
            print(f"[SmokeSolver] {arch} init failed: {e}. Falling back to CPU.")
            initialize_taichi_backend("cpu", use_profiler=use_profiler)

        self.nx = int(nx)
        self.ny = int(ny)
        self.dt = float(dt)
        self.p = params if params is not None else SolverParams()

        self.timing_mode = False
        self._frame_count = 0

        self.storage = GridStorage(self.nx, self.ny)
        self.sampler = FieldSampler(self.storage)
        self.projector = PressureProjector(self.storage)
        self.advector = Advector(self.storage, self.dt)
        self.injector = SourceInjector(self.storage)

        self.reset()
        if warmup:
            self.warmup()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def update_params(self, **kwargs):
        for k, v in kwargs.items():
            if hasattr(self.p, k):
                setattr(self.p, k, v)

    def reset(self):
        """Zeroes velocity and smoke and restores the obstacle mask."""
        self.storage.reset()
        self.injector.carve_obstacle()
        self._frame_count = 0

    def step(self, steps: int = 1):
        """Advances the simulation by the specified number of ticks."""
        for _ in range(int(steps)):
            t0 = time.perf_counter() if self.timing_mode else 0

            # Phase 1: remove divergence before anything is transported
            self.projector.project(self.p.overrelaxation, int(self.p.projection_iterations))

            if self.timing_mode: ti.sync()
            t1 = time.perf_counter() if self.timing_mode else 0

            # Phase 2: transport velocity, then smoke through the new velocity
            self.advector.advect_velocities()
            self.advector.advect_smoke()

            # Phase 3: forced inflow, seen by the next tick's advection
            self.injector.inject(self.p.source_density, self.p.inflow_velocity)

            self._frame_count += 1

            if self.timing_mode and self._frame_count % 30 == 0:
                ti.sync()
                t2 = time.perf_counter()
                print(f"[SmokeSolver] Step: {(t1-t0)*1000:4.1f}ms (project) + {(t2-t1)*1000:4.1f}ms (advect+inject)")

    # ===============================
    # Read accessors for rendering
    # ===============================

    def smoke_density(self, x: int, y: int) -> float:
        return self.sampler.exact(FieldKind.SMOKE_DENSITY, x, y)

    def permeability(self, x: int, y: int) -> float:
        return self.sampler.exact(FieldKind.PERMEABILITY, x, y)

    def velocity_at(self, x: float, y: float) -> Tuple[float, float]:
        """Interpolated velocity at real cell-centre coordinates."""
        return self.sampler.velocity(x, y)

    def field(self, kind: FieldKind):
        return self.storage.field(kind)

    def snapshot(self) -> Dict[FieldKind, np.ndarray]:
        """Copies of all four fields, indexed [x, y]."""
        return {kind: self.storage.to_numpy(kind) for kind in FieldKind}

    def max_divergence(self) -> float:
        return float(np.abs(self.projector.divergence()).max())

    def warmup(self):
        """Trigger JIT compilation of all kernels by running one tick."""
        self.step(1)
        self.sampler.interp(FieldKind.SMOKE_DENSITY, 0.0, 0.0)
        self.sampler.bounded(FieldKind.SMOKE_DENSITY, 0, 0)
        self.reset()
        ti.sync()
        print(f"[SmokeSolver] Warmup complete ({self.nx}x{self.ny}).")

    def check_integrity(self, steps: int = 10) -> bool:
        """Verifies simulation state for stability (NaN / inf checks)."""
        self.reset()
        self.step(steps)

        ok = True
        for kind, values in self.snapshot().items():
            if not np.all(np.isfinite(values)):
                print(f"[SmokeSolver] INTEGRITY ERROR: non-finite values in {kind.layout.name}!")
                ok = False

        smoke = self.storage.to_numpy(FieldKind.SMOKE_DENSITY)
        if ok and smoke.min() < -1e-3:
            print(f"[SmokeSolver] INTEGRITY WARNING: negative smoke density {smoke.min():.4f}")

        if ok:
            print(f"[SmokeSolver] Integrity test passed. Max divergence: {self.max_divergence():.3e}")
        return ok
