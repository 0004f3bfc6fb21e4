"""
trajviz command line.

Subcommands:
- gui: desktop visualizer
- scene: animated 3D scene of a built-in scenario
- plot: 3D and orbital parameter plots of a trajectory file
- events: list orbital events on a trajectory file
- ensemble: dispersion of a Monte Carlo ensemble
- summary: state and orbit summary of a trajectory file
"""

import argparse
import logging
import sys
from typing import List, Optional

from .data.events import Event
from .data.io import load_ensemble, load_trajectory
from .infra.utils import ensure_dir, format_duration
from .logging_config import setup_logging
from .physics.clock import PhysicsSettings
from .physics.elements import state_summary
from .scenarios import Scenario
from .utils.config import AppConfig, ConfigError, load_app_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='trajviz', description='Spacecraft trajectory visualization')
    parser.add_argument('--config', type=str, default=None,
                        help='YAML configuration file')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (overrides the configuration)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the log to this file')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('gui', help='Desktop visualizer')

    scene = subparsers.add_parser('scene', help='Animated 3D scene')
    scene.add_argument('--scenario', type=str, default=str(Scenario.ORBIT_DESIGN),
                       help='Scenario name (default: %(default)s)')
    scene.add_argument('--time-scale', type=float, default=None,
                       help='Scene seconds per wall-clock second')
    scene.add_argument('--steps', type=int, default=None,
                       help='Run this many physics steps headless and print the HUD instead of animating')

    plot = subparsers.add_parser('plot', help='Plot a trajectory file')
    plot.add_argument('file', type=str)
    plot.add_argument('--output', type=str, default=None,
                      help='Output directory (default: configuration output.directory)')
    plot.add_argument('--frame-3d', action='store_true',
                      help='Only produce the 3D trajectory plot')

    events = subparsers.add_parser('events', help='Find orbital events')
    events.add_argument('file', type=str)
    events.add_argument('--event', type=str, required=True,
                        help='periapsis, apoapsis, ta:<deg> or rmag:<km>')

    ensemble = subparsers.add_parser('ensemble', help='Monte Carlo ensemble dispersion')
    ensemble.add_argument('source', type=str, help='Directory of runs')
    ensemble.add_argument('--step', type=float, default=60.0,
                          help='Spacing of the common epochs in seconds')
    ensemble.add_argument('--nominal', type=str, default=None,
                          help='Name of the nominal run')
    ensemble.add_argument('--output', type=str, default=None,
                          help='Output directory for the table and plot')

    summary = subparsers.add_parser('summary', help='Summarize a trajectory file')
    summary.add_argument('file', type=str)

    return parser


def cmd_gui(args, config: AppConfig) -> int:
    from .gui.app import main as gui_main
    return gui_main(config)


def cmd_scene(args, config: AppConfig) -> int:
    from .gui.camera import Camera
    from .visualization.scene3d import SceneState, SceneViewer

    settings = config.physics.settings()
    if args.time_scale is not None:
        settings = PhysicsSettings(delta_time=settings.delta_time, time_scale=args.time_scale)
    state = SceneState(Scenario.from_name(args.scenario), settings,
                       prediction_steps=config.physics.prediction_steps(),
                       camera=Camera(fov_deg=config.view.fov_deg))

    if args.steps is not None:
        state.run_steps(args.steps)
        print("\n".join(state.hud_lines()))
        return 0

    SceneViewer(state).show()
    return 0


def cmd_plot(args, config: AppConfig) -> int:
    import matplotlib.pyplot as plt
    from .visualization.orbit_plots import plot_orbital_parameters, plot_trajectories_3d, save_figure

    trajectory = load_trajectory(args.file)
    output_dir = ensure_dir(args.output or config.output.directory)

    fig, _ = plot_trajectories_3d([trajectory], title=trajectory.name)
    save_figure(fig, output_dir / f'{trajectory.name}_3d.png', dpi=config.output.dpi)
    plt.close(fig)

    if not args.frame_3d:
        fig = plot_orbital_parameters(trajectory)
        save_figure(fig, output_dir / f'{trajectory.name}_parameters.png', dpi=config.output.dpi)
        plt.close(fig)
    return 0


def cmd_events(args, config: AppConfig) -> int:
    trajectory = load_trajectory(args.file)
    event = Event.parse(args.event)
    states = trajectory.find_all(event)

    print(f"{len(states)} {event} event(s) on {trajectory.name}")
    for state in states:
        stamp = trajectory.datetime_at(state.t)
        when = stamp.isoformat() if stamp is not None else f"t = {state.t:.3f} s"
        print(f"  {when}  |r| = {state.rmag:,.3f} km  |v| = {state.vmag:.4f} km/s")
    return 0


def cmd_ensemble(args, config: AppConfig) -> int:
    import matplotlib.pyplot as plt
    from .visualization.orbit_plots import plot_ensemble_dispersion, save_figure

    ensemble = load_ensemble(args.source, nominal=args.nominal)
    table = ensemble.dispersion(args.step)

    final = table.iloc[-1]
    print(f"{len(ensemble)} runs, {len(table)} epochs")
    print(f"Final position deviation: median {final['p50_dev_km']:.3f} km, "
          f"95th percentile {final['p95_dev_km']:.3f} km")

    if args.output:
        output_dir = ensure_dir(args.output)
        table.to_csv(output_dir / 'dispersion.csv', index=False)
        fig = plot_ensemble_dispersion(table)
        save_figure(fig, output_dir / 'dispersion.png', dpi=config.output.dpi)
        plt.close(fig)
    return 0


def cmd_summary(args, config: AppConfig) -> int:
    trajectory = load_trajectory(args.file)
    first, last = trajectory.first(), trajectory.last()

    print(repr(trajectory))
    print(f"Duration: {format_duration(trajectory.duration, 3)}")
    if trajectory.reference_epoch is not None:
        print(f"Start epoch: {trajectory.reference_epoch.isoformat()}")
    for title, state in (("Initial state", first), ("Final state", last)):
        print(f"{title}:")
        for line in state_summary(trajectory.mu, state.r, state.v):
            print(f"  {line}")
    return 0


COMMANDS = {
    'gui': cmd_gui,
    'scene': cmd_scene,
    'plot': cmd_plot,
    'events': cmd_events,
    'ensemble': cmd_ensemble,
    'summary': cmd_summary,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_app_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        setup_logging()
        logger.error("Configuration error: %s", e)
        return 1

    level = args.log_level or config.logging.level
    log_file = args.log_file or config.logging.file
    try:
        setup_logging(level, log_file)
    except ValueError as e:
        setup_logging()
        logger.error("%s", e)
        return 1

    try:
        return COMMANDS[args.command](args, config)
    except (ValueError, FileNotFoundError, RuntimeError, KeyError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
