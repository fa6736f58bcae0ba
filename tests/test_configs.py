from dataclasses import fields

import pytest

from wind_tunnel_sim import SolverParams
from wind_tunnel_sim.viewer import build_arg_parser


def test_defaults_match_the_reference_tunnel():
    p = SolverParams()
    assert p.overrelaxation == 1.9
    assert p.projection_iterations == 100
    assert p.inflow_velocity == 400.0
    assert p.source_density == 1.0


def test_every_param_carries_ui_metadata():
    for f in fields(SolverParams):
        assert f.metadata["help"]
        assert f.metadata["category"] in ("Normal", "Advanced")
        assert f.metadata["min"] <= f.default <= f.metadata["max"]


def test_cli_exposes_grid_and_params():
    args = build_arg_parser().parse_args(["--nx", "40", "--dt", "1/30", "--overrelaxation", "1.5", "--projection-iterations", "20"])

    assert args.nx == 40
    assert args.ny == 100
    assert args.dt == pytest.approx(1.0 / 30.0)
    assert args.overrelaxation == 1.5
    assert args.projection_iterations == 20
