import argparse
import logging

from sph2d.boundary import Domain
from sph2d.config import PRESETS, SimulationParams
from sph2d.particle_init import GridLayout
from sph2d.particles_loader import SnapshotExporter, import_snapshot
from sph2d.sim import SimulationState, initialize, step


def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in ("yes", "true", "t", "y", "1"):
        return True
    elif v.lower() in ("no", "false", "f", "n", "0"):
        return False
    else:
        raise argparse.ArgumentTypeError("Boolean value expected.")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Run a 2D SPH fluid simulation without a renderer.")

    parser.add_argument(
        "-p",
        "--preset",
        choices=sorted(PRESETS),
        default="default",
        help="Parameter preset (default: default)",
    )
    parser.add_argument(
        "-dt",
        "--timestep",
        type=float,
        default=1.0 / 60.0,
        help="Time step for the simulation (default: 1/60)",
    )
    parser.add_argument(
        "-s",
        "--steps",
        type=int,
        default=1000,
        help="Number of simulation steps (default: 1000)",
    )
    parser.add_argument(
        "-r",
        "--smoothing_radius",
        type=float,
        default=None,
        help="Override the preset smoothing radius",
    )

    # Layout & domain
    parser.add_argument(
        "--particles_x",
        type=int,
        default=40,
        help="Particles per row of the initial block (default: 40)",
    )
    parser.add_argument(
        "--particles_y",
        type=int,
        default=40,
        help="Rows of the initial block (default: 40)",
    )
    parser.add_argument(
        "--spacing",
        type=float,
        default=None,
        help="Distance between initial particles (default: 2.5 particle "
        "radii)",
    )
    parser.add_argument(
        "--staggered",
        type=str2bool,
        default=False,
        help="Shift every other row by half a spacing (default: false)",
    )
    parser.add_argument(
        "--domain",
        type=float,
        nargs=2,
        default=[16.0, 9.0],
        help="Domain width and height, centred on the origin "
        "(default: 16 9)",
    )
    parser.add_argument(
        "--use_grid",
        type=str2bool,
        default=True,
        help="Use the spatial hash grid for neighbour search "
        "(default: true)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed of the random source (default: unseeded)",
    )

    # Export and Import results for snapshots.
    parser.add_argument(
        "-e",
        "--export_results",
        type=str,
        default="",
        help="File name to export particle data (default: empty)",
    )
    parser.add_argument(
        "-ii",
        "--import_init",
        type=str,
        default="",
        help="File name to import initial particle configuration (default: emp"
        "ty)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log simulation details",
    )
    return parser


def build_state(args):
    overrides = {"use_spatial_grid": args.use_grid}
    if args.smoothing_radius is not None:
        overrides["smoothing_radius"] = args.smoothing_radius
    params = SimulationParams.from_preset(args.preset, **overrides)
    domain = Domain(*args.domain)

    if args.import_init:
        print(f"Importing initial configuration from file: {args.import_init}")
        particles = import_snapshot(args.import_init, sim_time=0.0)
        return SimulationState(particles, domain, params, rng=args.seed)

    spacing = args.spacing
    if spacing is None:
        spacing = params.particle_radius * 2.5
    layout = GridLayout(args.particles_x,
                        args.particles_y,
                        spacing,
                        staggered=args.staggered)
    return initialize(layout.count, layout, domain, params, rng=args.seed)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    state = build_state(args)
    print(f"Launching SPH simulation with {state.num_particles} particles...")

    exporter = SnapshotExporter(args.export_results) \
        if args.export_results else None
    try:
        for i in range(args.steps):
            step(state, args.timestep)
            if exporter is not None:
                exporter.export(state.particles, state.sim_time)
            if i % 100 == 0:
                print(f"Step {i}/{args.steps} complete, mean density "
                      f"{state.mean_density:.3f}.")
    finally:
        if exporter is not None:
            exporter.close()
    print("Simulation completed.")
    return state


if __name__ == "__main__":
    main()
