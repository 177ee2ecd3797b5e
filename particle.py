# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, species) in
parallel NumPy arrays indexed by particle id.
"""
import logging
import numpy as np
from typing import Tuple

from parameters import ConfigurationError

# --- Data Contracts ---
#
# hash_uniform(values) -> np.ndarray:
#   - Inputs: Non-negative integers (scalar or array).
#   - Outputs: float64 array of the same shape, values in [0, 1).
#   - Invariants: Pure function; the same input always maps to the same output.
#
# class ParticleSystem:
#   - __init__(self, particle_count: int, particle_types: int):
#     - Side Effects: Allocates zeroed state arrays. Raises
#       ConfigurationError if either count is below 1.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float32.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float32.
#       - self.types is a NumPy array of shape (N,) of dtype int32,
#         with values in [0, particle_types).
#
#   - initialize(self, seed, domain_half_extent, species_assignment="hash"):
#     - Side Effects: Populates the state arrays. Runs once per system.

SPECIES_ASSIGNMENTS = ("hash", "stratified")

_HASH_MULTIPLIER = np.uint32(747796405)
_HASH_INCREMENT = np.uint32(2891336453)
_HASH_PERMUTE = np.uint32(277803737)
_SALT_LIMIT = 0xFFFFFF


def hash_uniform(values) -> np.ndarray:
    """
    Maps integers to uniform floats in [0, 1) with a PCG-style 32-bit hash.

    Each value is hashed independently, so no generator state is carried
    between particles.
    """
    raw = np.asarray(values)
    state = np.atleast_1d(raw).astype(np.uint32)
    state = state * _HASH_MULTIPLIER + _HASH_INCREMENT
    word = ((state >> ((state >> np.uint32(28)) + np.uint32(4))) ^ state) * _HASH_PERMUTE
    result = (word >> np.uint32(22)) ^ word
    return (result.astype(np.float64) / 2.0**32).reshape(raw.shape)


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, particle_count: int, particle_types: int):
        """
        Allocates the particle system.

        Args:
            particle_count (int): Number of particles, fixed for the run.
            particle_types (int): Number of species.
        """
        if particle_count < 1:
            msg = f"Configuration error: particle_count must be at least 1, got {particle_count}."
            logging.critical(msg)
            raise ConfigurationError(msg)
        if particle_types < 1:
            msg = f"Configuration error: particle_types must be at least 1, got {particle_types}."
            logging.critical(msg)
            raise ConfigurationError(msg)

        self.particle_count = int(particle_count)
        self.particle_types = int(particle_types)
        self.seed = None

        self.positions = np.zeros((self.particle_count, 2), dtype=np.float32)
        self.velocities = np.zeros((self.particle_count, 2), dtype=np.float32)
        self.types = np.zeros(self.particle_count, dtype=np.int32)
        self._initialized = False

        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Types shape: {self.types.shape}"
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(
        self,
        seed: int,
        domain_half_extent: Tuple[float, float],
        species_assignment: str = "hash",
        force: bool = False
    ) -> None:
        """
        Assigns every particle a hashed position, zero velocity and a species.

        Args:
            seed (int): Master seed. Two salts for the x and y coordinates
                are drawn from it, so the same seed reproduces the same state.
            domain_half_extent (Tuple[float, float]): Half width and half
                height of the visible domain.
            species_assignment (str): "hash" assigns floor(hash(i) * K);
                "stratified" gives every species an equal share (up to one),
                shuffled with the seeded generator.
            force (bool): Allow re-initializing an already initialized system.
        """
        if self._initialized and not force:
            raise RuntimeError("ParticleSystem is already initialized.")
        if species_assignment not in SPECIES_ASSIGNMENTS:
            msg = (
                f"Configuration error: species_assignment must be one of "
                f"{SPECIES_ASSIGNMENTS}, got '{species_assignment}'."
            )
            logging.critical(msg)
            raise ConfigurationError(msg)

        self.seed = seed
        # Rule 12: All randomness is controlled by a single master seed.
        rng = np.random.default_rng(seed)
        salt_x, salt_y = rng.integers(0, _SALT_LIMIT, size=2)
        # Equal salts would put every particle on the diagonal.
        if salt_x == salt_y:
            salt_y = (salt_y + 1) % _SALT_LIMIT

        half_x, half_y = domain_half_extent
        index = np.arange(self.particle_count, dtype=np.int64)

        self.positions[:, 0] = (hash_uniform(index + salt_x) - 0.5) * 2.0 * half_x
        self.positions[:, 1] = (hash_uniform(index + salt_y) - 0.5) * 2.0 * half_y
        self.velocities.fill(0.0)

        if species_assignment == "hash":
            species = np.floor(hash_uniform(index) * self.particle_types).astype(np.int32)
            self.types[:] = np.minimum(species, self.particle_types - 1)
        else:
            self.types[:] = rng.permutation(index % self.particle_types).astype(np.int32)

        self._initialized = True
        logging.info(
            f"ParticleSystem initialized with {self.particle_count} "
            f"particles of {self.particle_types} types (seed {seed}, {species_assignment} species)."
        )
        logging.debug(f"Species counts: {self.species_counts().tolist()}")

    def species_counts(self) -> np.ndarray:
        """Number of particles of each species."""
        return np.bincount(self.types, minlength=self.particle_types)
