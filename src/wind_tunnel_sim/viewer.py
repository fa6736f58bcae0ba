"""
Wind Tunnel Sim.

Copyright (c) 2026 Shuoqi Chen
SPDX-License-Identifier: MIT OR Apache-2.0
"""
import taichi as ti
import time
from fractions import Fraction
from .solver import SmokeSolver, SolverParams
from .solver.renderer import FieldRenderer

def _parse_dt(text):
    # Accepts "0.016" as well as "1/60"
    return float(Fraction(text))

def build_arg_parser():
    import argparse
    from dataclasses import fields

    parser = argparse.ArgumentParser(description="Wind Tunnel: realtime smoke around an obstacle")
    parser.add_argument("--nx", type=int, default=200, help="Grid cells along x (default: 200)")
    parser.add_argument("--ny", type=int, default=100, help="Grid cells along y (default: 100)")
    parser.add_argument("--dt", type=_parse_dt, default=1.0 / 60.0, help="Fixed tick duration, e.g. 1/60 (default: 1/60)")
    parser.add_argument("-c", "--scale", type=int, default=5, help="Window pixels per cell (default: 5)")
    parser.add_argument("-f", "--fps", type=int, default=60, help="Target FPS cap (default: 60)")
    parser.add_argument("-s", "--substeps", type=int, default=1, help="Solver ticks per frame (default: 1)")
    parser.add_argument("-a", "--arch", default="cpu", choices=["cpu", "gpu", "cuda", "vulkan", "metal"], help="Taichi backend (default: cpu)")
    parser.add_argument("--timing", action="store_true", help="Print per-phase step timings")

    # Add SolverParams as arguments automatically
    for f in fields(SolverParams):
        arg_name = f.name.replace('_', '-')
        arg_type = type(f.default) if f.default is not None else float
        parser.add_argument(f"--{arg_name}", type=arg_type, default=f.default, help=f.metadata.get('help', ''))

    return parser

def launch_viewer(argv=None):
    from dataclasses import fields

    args = build_arg_parser().parse_args(argv)

    width, height = args.nx * args.scale, args.ny * args.scale

    print(f"\n[Viewer] Starting Wind Tunnel")
    print(f" - Grid:       {args.nx}x{args.ny} (dt={args.dt:.5f})")
    print(f" - Window:     {width}x{height}")
    print(f" - Backend:    {args.arch.upper()}")
    print(f" - FPS Cap:    {args.fps}")
    print(f" - Substeps:   {args.substeps}")
    print(f"--------------------------------")

    params = SolverParams(**{f.name: getattr(args, f.name) for f in fields(SolverParams)})
    solver = SmokeSolver(args.nx, args.ny, args.dt, params=params, arch=args.arch)
    solver.timing_mode = args.timing
    renderer = FieldRenderer(solver, width, height)

    window = ti.ui.Window("Wind Tunnel (Smoke Simulation)", (width, height))
    canvas = window.get_canvas()
    gui = window.get_gui()

    print("\n[Controls]")
    print(" - Space: Pause / resume")
    print(" - V: Toggle velocity arrows")
    print(" - R: Reset flow")
    print(" - S: Save Screenshot")
    print(" - Tab: Toggle control panel")

    paused = False
    show_arrows = False
    show_ui = True
    show_advanced = False

    last_stat_time = time.time()
    ticks_since_stat = 0
    fps_limit = args.fps
    elapsed = 0.0

    while window.running:
        frame_start = time.time()

        for e in window.get_events(ti.ui.PRESS):
            if e.key == ti.ui.SPACE:
                paused = not paused
            elif e.key == 'v':
                show_arrows = not show_arrows
            elif e.key == 'r':
                solver.reset()
            elif e.key == 's':
                _save_screenshot(renderer)
            elif e.key == ti.ui.TAB:
                show_ui = not show_ui
            elif e.key == ti.ui.ESCAPE:
                window.running = False

        if show_ui:
            with gui.sub_window("Controls", 0.02, 0.02, 0.3, 0.5) as w:
                gui.text(f"Tick: {solver.frame_count} {'(PAUSED)' if paused else ''}")
                if gui.button("Pause" if not paused else "Resume"): paused = not paused
                if gui.button("Reset"): solver.reset()
                show_arrows = gui.checkbox("Velocity Arrows", show_arrows)

                for f in fields(SolverParams):
                    cat = f.metadata.get("category", "Normal")
                    if cat == "Advanced" and not show_advanced:
                        continue
                    display_name = f.name.replace("_", " ").title()
                    val = getattr(solver.p, f.name)
                    if isinstance(f.default, int):
                        new_val = gui.slider_int(display_name, val, f.metadata.get('min', 1), f.metadata.get('max', 100))
                    else:
                        new_val = gui.slider_float(display_name, val, f.metadata.get('min', 0.0), f.metadata.get('max', 1.0))
                    solver.update_params(**{f.name: new_val})

                show_advanced = gui.checkbox("Advanced Settings", show_advanced)

                if gui.button("Save Screenshot"):
                    _save_screenshot(renderer)

        if not paused:
            solver.step(args.substeps)
            ticks_since_stat += args.substeps

        renderer.render()
        canvas.set_image(renderer.image)
        if show_arrows:
            canvas.lines(renderer.overlay(), width=0.001, color=(0.0, 0.0, 0.0))

        window.show()

        # Performance stats monitor
        now = time.time()
        if now - last_stat_time > 2.0:
            fps_val = 1.0 / elapsed if elapsed > 0 else 0
            print(f"[Stats] Ticks/sec: {ticks_since_stat / (now - last_stat_time):.1f} | FPS: {fps_val:.1f} | Max div: {solver.max_divergence():.3e}")
            ticks_since_stat = 0
            last_stat_time = now

        # Enforce FPS cap to prevent resource hogging
        elapsed = time.time() - frame_start
        if elapsed < 1.0 / fps_limit:
            time.sleep(1.0 / fps_limit - elapsed)

def _save_screenshot(renderer):
    import numpy as np
    import PIL.Image
    img = renderer.render()
    # (width, height) with origin bottom-left -> (rows, cols) top-down
    PIL.Image.fromarray(np.ascontiguousarray(np.flipud(img.transpose(1, 0, 2)))).save(f"wind_tunnel_{int(time.time())}.png")
    print("[Viewer] Saved screenshot.")

if __name__ == "__main__":
    launch_viewer()
