import numpy as np
import pytest

from wind_tunnel_sim import FieldKind, FieldRenderer, SmokeSolver
from wind_tunnel_sim.solver.renderer import OBSTACLE_RGB


@pytest.fixture
def solver():
    return SmokeSolver(64, 64, 1.0 / 60.0, warmup=False)


def test_render_maps_density_to_gray_and_obstacle_to_highlight(solver):
    solver.sampler.set_exact(FieldKind.SMOKE_DENSITY, 0, 0, 1.0)
    solver.sampler.set_exact(FieldKind.SMOKE_DENSITY, 10, 0, 0.5)
    renderer = FieldRenderer(solver, 64, 64)

    img = renderer.render()

    assert img.shape == (64, 64, 3)
    assert img.dtype == np.uint8
    # Simulation row 0 sits at the top of the window
    assert tuple(img[0, 63]) == (0, 0, 0)
    assert tuple(img[10, 63]) == (127, 127, 127)
    assert tuple(img[30, 30]) == (255, 255, 255)
    assert tuple(img[50, 63 - 50]) == OBSTACLE_RGB


def test_render_scales_cells_to_pixels(solver):
    renderer = FieldRenderer(solver, 128, 128)
    img = renderer.render()

    assert tuple(img[100, 127 - 100]) == OBSTACLE_RGB
    assert tuple(img[101, 127 - 101]) == OBSTACLE_RGB
    assert tuple(img[0, 0]) == (255, 255, 255)


def test_overlay_builds_one_segment_per_second_cell(solver):
    solver.sampler.set_exact(FieldKind.VELOCITY_X, 0, 0, 10.0)
    solver.sampler.set_exact(FieldKind.VELOCITY_X, 1, 0, 10.0)
    renderer = FieldRenderer(solver, 64, 64)

    arrows = renderer.overlay(scale=0.1).to_numpy()

    assert arrows.shape == (2 * 32 * 32, 2)
    start, end = arrows[0], arrows[1]
    assert start == pytest.approx([0.5 / 64, 1.0 - 0.5 / 64])
    assert end == pytest.approx([0.5 / 64 + 1.0 / 64, 1.0 - 0.5 / 64])
    # Still air elsewhere: zero-length segments
    assert arrows[2] == pytest.approx(arrows[3])
