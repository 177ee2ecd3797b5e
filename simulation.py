# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the Simulation class, which is responsible for
advancing the state of the particle system by one time step. Each step
computes inter-particle forces for every particle from the pre-step
state, then integrates velocities and positions and wraps particles
around the domain.
"""
import logging
import numpy as np
from numba import jit, prange
from typing import Optional

from constants import BASE_STEP_DURATION, BOUNDARY_MARGIN, COINCIDENT_EPSILON
from parameters import ConfigSnapshot, ConfigurationError, InteractionConfig
from particle import ParticleSystem

# --- Data Contracts ---
#
# interaction_weight(r, beta, k) -> float:
#   - Inputs: normalized distance r, transition radius beta in (0, 1),
#     species-pair coefficient k.
#   - Outputs: signed weight. Continuous at r = beta and vanishes at r = 1.
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, config: InteractionConfig):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - config: The shared InteractionConfig.
#     - Side Effects: Raises ConfigurationError if the particle system is
#       uninitialized or its species count differs from the matrix.
#
#   - step(self) -> None:
#     - Side Effects: Applies queued configuration edits, then modifies the
#       particle positions and velocities in place.
#     - Invariants: Particle count and species never change. Every force
#       of a step is computed before any particle is moved.

FALLBACK_NORMAL = 1.0 / np.sqrt(2.0)


@jit(nopython=True)
def interaction_weight(r, beta, k):
    """
    Weight of the force between two particles at normalized distance r.

    Below beta the particles always repel, linearly from -1 at r = 0 to 0
    at r = beta. Between beta and 1 the weight is a triangle scaled by k,
    peaking at the midpoint and zero at both ends.
    """
    if r < beta:
        return r / beta - 1.0
    elif r < 1.0:
        span = 1.0 - beta
        center = (1.0 + beta) * 0.5
        distance = abs(r - center) * 2.0 / span
        return k * (1.0 - distance)
    return 0.0


@jit(nopython=True, parallel=True)
def _accumulate_forces_numba(
    positions, types, interaction_matrix,
    interaction_radius, transition_radius, force_scale
):
    """
    Numba-jitted function to calculate the net force on every particle.

    Brute-force scan over all pairs. Each particle sums its own neighbors
    in index order, so the result does not depend on the thread schedule.
    The forces are not symmetric: particle i feels matrix[type_i, type_j].
    """
    particle_count = positions.shape[0]
    total_force = np.zeros((particle_count, 2), dtype=np.float64)

    for i in prange(particle_count):
        xi = positions[i, 0]
        yi = positions[i, 1]
        type_i = types[i]
        fx = 0.0
        fy = 0.0

        for j in range(particle_count):
            if i == j:
                continue

            dx = positions[j, 0] - xi
            dy = positions[j, 1] - yi
            dist = np.sqrt(dx * dx + dy * dy)

            if dist > interaction_radius:
                continue

            # Direction is FROM i TO j
            if dist > COINCIDENT_EPSILON:
                nx = dx / dist
                ny = dy / dist
            else:
                nx = FALLBACK_NORMAL
                ny = FALLBACK_NORMAL

            r = dist / interaction_radius
            k = interaction_matrix[type_i, types[j]]
            w = interaction_weight(r, transition_radius, k)

            fx += nx * w * force_scale
            fy += ny * w * force_scale

        total_force[i, 0] = fx
        total_force[i, 1] = fy
    return total_force


@jit(nopython=True, parallel=True)
def _integrate_numba(
    positions, velocities, forces, delta, friction_factor, bound_x, bound_y
):
    """
    Numba-jitted damped semi-implicit Euler update with a teleport boundary.

    At most one axis is wrapped per particle per step, checked in the order
    x-high, x-low, y-high, y-low.
    """
    particle_count = positions.shape[0]
    for i in prange(particle_count):
        vx = (velocities[i, 0] + forces[i, 0] * delta) * friction_factor
        vy = (velocities[i, 1] + forces[i, 1] * delta) * friction_factor
        px = positions[i, 0] + vx * delta
        py = positions[i, 1] + vy * delta

        if px > bound_x:
            px = -bound_x
        elif px < -bound_x:
            px = bound_x
        elif py > bound_y:
            py = -bound_y
        elif py < -bound_y:
            py = bound_y

        velocities[i, 0] = vx
        velocities[i, 1] = vy
        positions[i, 0] = px
        positions[i, 1] = py


class Simulation:
    """
    Advances the particle system one step at a time using brute-force
    all-pairs force evaluation.
    """
    def __init__(self, particles: ParticleSystem, config: InteractionConfig):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleSystem): The initialized particle system to simulate.
            config (InteractionConfig): Interaction matrix and scalar parameters.
        """
        if not particles.is_initialized:
            msg = "Configuration error: ParticleSystem must be initialized before simulating."
            logging.critical(msg)
            raise ConfigurationError(msg)
        if particles.particle_types != config.particle_types:
            msg = (
                f"Configuration error: ParticleSystem has {particles.particle_types} species "
                f"but the interaction matrix is {config.particle_types}x{config.particle_types}."
            )
            logging.critical(msg)
            raise ConfigurationError(msg)

        self.particles = particles
        self.config = config
        self.step_count = 0

        logging.info(
            f"Simulation logic initialized for {particles.particle_count} particles "
            f"(brute-force all-pairs scan)."
        )

    def compute_forces(self, snapshot: Optional[ConfigSnapshot] = None) -> np.ndarray:
        """
        Returns the (N, 2) net force on every particle for the current state.

        Reads positions and species only; the particle system is not modified.
        """
        if snapshot is None:
            snapshot = self.config.snapshot()
        return _accumulate_forces_numba(
            self.particles.positions, self.particles.types,
            snapshot.interaction_matrix,
            snapshot.interaction_radius, snapshot.transition_radius,
            snapshot.force_scale
        )

    def step(self) -> None:
        """
        Executes one time step of the simulation.
        """
        # 1. Configuration edits only take effect on a step boundary
        self.config.apply_pending()
        snapshot = self.config.snapshot()

        # 2. Calculate every force from the pre-step state into a separate buffer
        total_force = self.compute_forces(snapshot)

        # 3. Integrate velocities and positions, then wrap at the margin
        delta = BASE_STEP_DURATION * snapshot.time_scale
        half_x, half_y = snapshot.domain_half_extent
        _integrate_numba(
            self.particles.positions, self.particles.velocities, total_force,
            delta, snapshot.friction_factor,
            BOUNDARY_MARGIN * half_x, BOUNDARY_MARGIN * half_y
        )
        self.step_count += 1

    def run(self, steps: int) -> None:
        """Executes `steps` consecutive time steps."""
        for _ in range(steps):
            self.step()

    def average_speed(self) -> float:
        """Mean velocity magnitude over all particles."""
        return float(np.mean(np.linalg.norm(self.particles.velocities, axis=1)))

    def has_non_finite(self) -> bool:
        """True if any position or velocity is NaN or infinite."""
        return not (
            np.all(np.isfinite(self.particles.positions))
            and np.all(np.isfinite(self.particles.velocities))
        )
