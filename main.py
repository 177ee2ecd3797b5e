# main.py
"""
Main entry point for the Particle Life simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json` (or the --config path).
2. Initializes the logging system.
3. Sets up the interaction configuration, particles and simulation.
4. Runs the main loop, rendered or headless.
5. Handles clean shutdown.
"""
import argparse
import logging
import cProfile
import pstats
import io
from typing import Any, Dict, List, Optional

from constants import FPS
from utils import setup_logging, load_config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Particle Life simulation")
    parser.add_argument('--config', default='config.json', help="Path to the JSON configuration file.")
    parser.add_argument('--headless', action='store_true', help="Run without a window.")
    parser.add_argument('--steps', type=int, default=None, help="Override run_control.max_steps.")
    return parser.parse_args(argv)


def run_loop(sim, visualizer, run_params: Dict[str, Any]) -> int:
    """
    Steps the simulation until max_steps is reached or the window is closed.

    Returns:
        int: The number of steps executed.
    """
    log_throttle = max(1, run_params.get('log_throttle_steps', 100))
    max_steps = run_params.get('max_steps', 5000)
    warned_non_finite = False

    step_num = 0
    running = True
    while running and step_num < max_steps:
        sim.step()
        step_num += 1

        # The visualizer's draw method returns False if the user quits.
        if visualizer is not None:
            if not visualizer.draw(sim.particles, sim.config):
                running = False
            visualizer.tick(FPS)

        # Rule 2.4: Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Simulation step {step_num}/{max_steps}")
            logging.debug(f"Step {step_num} | Average Velocity: {sim.average_speed():.4f}")
            if not warned_non_finite and sim.has_non_finite():
                logging.warning(
                    f"Non-finite positions or velocities detected at step {step_num}; "
                    f"they are not clamped and will propagate."
                )
                warned_non_finite = True

    if step_num >= max_steps:
        logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
    return step_num


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main function to run the simulation.
    """
    args = parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return 1

    setup_logging(config)
    logging.info("--- Particle Life Simulation Starting ---")

    sim_params = dict(config['simulation_parameters'])
    run_params = dict(config['run_control'])
    vis_params = config['visualization']
    if args.steps is not None:
        run_params['max_steps'] = args.steps
    headless = args.headless or run_params.get('headless', False)

    from parameters import ConfigurationError, InteractionConfig
    from particle import ParticleSystem
    from simulation import Simulation

    visualizer = None
    try:
        # The visualizer determines the viewport, and with it the domain extent.
        if not headless:
            from visualization import Visualizer
            visualizer = Visualizer(
                particle_types=sim_params['particle_types'],
                colors=vis_params.get('particle_colors'),
                scales=vis_params.get('particle_scales'),
                fullscreen=vis_params.get('fullscreen', False),
                window_size=vis_params.get('window_size', (1500, 800))
            )
            sim_params.setdefault('domain_half_extent', list(visualizer.domain_half_extent))

        interaction_config = InteractionConfig(sim_params)
        particles = ParticleSystem(sim_params['particle_count'], sim_params['particle_types'])
        particles.initialize(
            sim_params['seed'],
            interaction_config.domain_half_extent,
            sim_params.get('species_assignment', 'hash')
        )
        sim = Simulation(particles, interaction_config)
    except ConfigurationError as e:
        logging.critical(f"Aborting: {e}")
        if visualizer is not None:
            visualizer.close()
        return 1

    profiler = cProfile.Profile() if run_params.get('profile', True) else None
    if profiler is not None:
        profiler.enable()
    try:
        run_loop(sim, visualizer, run_params)
    finally:
        if profiler is not None:
            profiler.disable()
        if visualizer is not None:
            visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Life Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
