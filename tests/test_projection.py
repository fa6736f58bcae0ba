import numpy as np
import pytest

from wind_tunnel_sim.solver import FieldKind, FieldSampler, GridStorage
from wind_tunnel_sim.solver.projection import PressureProjector

OMEGA = 1.9


def _random_flow(rng, nx, ny):
    storage = GridStorage(nx, ny)
    storage.from_numpy(FieldKind.VELOCITY_X, rng.uniform(-1.0, 1.0, size=storage.shape(FieldKind.VELOCITY_X)))
    storage.from_numpy(FieldKind.VELOCITY_Y, rng.uniform(-1.0, 1.0, size=storage.shape(FieldKind.VELOCITY_Y)))
    return storage


def test_relaxing_a_cell_scales_its_divergence(rng):
    storage = _random_flow(rng, 6, 6)
    projector = PressureProjector(storage)
    before = projector.divergence()[2, 3]

    projector.relax_cell(2, 3, OMEGA)

    after = projector.divergence()[2, 3]
    assert after == pytest.approx((1.0 - OMEGA) * before, rel=1e-4, abs=1e-5)


def test_relaxation_weights_faces_by_neighbour_permeability(rng):
    storage = _random_flow(rng, 6, 6)
    sampler = FieldSampler(storage)
    sampler.set_exact(FieldKind.PERMEABILITY, 1, 3, 0.0)
    sampler.set_exact(FieldKind.PERMEABILITY, 3, 3, 0.5)
    projector = PressureProjector(storage)

    u_left = sampler.exact(FieldKind.VELOCITY_X, 2, 3)
    u_right = sampler.exact(FieldKind.VELOCITY_X, 3, 3)
    before = projector.divergence()[2, 3]

    projector.relax_cell(2, 3, OMEGA)

    # The face towards the solid neighbour is left alone
    assert sampler.exact(FieldKind.VELOCITY_X, 2, 3) == u_left
    d = OMEGA * before
    assert sampler.exact(FieldKind.VELOCITY_X, 3, 3) == pytest.approx(u_right - d * 0.5 / 2.5, rel=1e-4, abs=1e-5)
    assert projector.divergence()[2, 3] == pytest.approx((1.0 - OMEGA) * before, rel=1e-4, abs=1e-5)


def test_fully_enclosed_cell_is_inert(rng):
    storage = _random_flow(rng, 6, 6)
    sampler = FieldSampler(storage)
    for x, y in [(1, 2), (3, 2), (2, 1), (2, 3)]:
        sampler.set_exact(FieldKind.PERMEABILITY, x, y, 0.0)
    projector = PressureProjector(storage)
    vx = storage.to_numpy(FieldKind.VELOCITY_X)
    vy = storage.to_numpy(FieldKind.VELOCITY_Y)

    projector.relax_cell(2, 2, OMEGA)

    assert np.array_equal(storage.to_numpy(FieldKind.VELOCITY_X), vx)
    assert np.array_equal(storage.to_numpy(FieldKind.VELOCITY_Y), vy)


def test_divergence_free_flow_is_unchanged():
    storage = GridStorage(5, 4)
    storage.field(FieldKind.VELOCITY_X).fill(3.0)
    projector = PressureProjector(storage)

    projector.project(OMEGA, iterations=10)

    assert np.all(storage.to_numpy(FieldKind.VELOCITY_X) == 3.0)
    assert np.all(storage.to_numpy(FieldKind.VELOCITY_Y) == 0.0)


def test_sweeps_drive_divergence_down(rng):
    storage = _random_flow(rng, 8, 8)
    projector = PressureProjector(storage)
    initial = np.abs(projector.divergence()).max()

    projector.project(OMEGA, iterations=1)
    one_pass = np.abs(projector.divergence()).max()
    projector.project(OMEGA, iterations=99)
    final = np.abs(projector.divergence()).max()

    assert final < 1e-2 * initial
    assert final < one_pass


def test_sweep_matches_sequential_cell_relaxation(rng):
    a = _random_flow(rng, 4, 3)
    b = GridStorage(4, 3)
    for kind in FieldKind:
        b.from_numpy(kind, a.to_numpy(kind))

    PressureProjector(a).project(OMEGA, iterations=1)
    relaxer = PressureProjector(b)
    for y in range(3):
        for x in range(4):
            relaxer.relax_cell(x, y, OMEGA)

    np.testing.assert_allclose(a.to_numpy(FieldKind.VELOCITY_X), b.to_numpy(FieldKind.VELOCITY_X), rtol=1e-6, atol=1e-6)
    np.testing.assert_allclose(a.to_numpy(FieldKind.VELOCITY_Y), b.to_numpy(FieldKind.VELOCITY_Y), rtol=1e-6, atol=1e-6)
