"""
Shared pytest fixtures for the particle life simulation.

The modules live at the repository root, so the root is put on sys.path
for runs from a plain checkout.
"""
import logging
import pathlib
import sys

import numpy as np
import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from parameters import InteractionConfig  # noqa: E402
from particle import ParticleSystem  # noqa: E402
from simulation import Simulation  # noqa: E402


@pytest.fixture
def build_simulation():
    """
    Factory for a Simulation with hand-placed particles.

    Positions and species are written after initialization so tests can
    set up exact geometries.
    """
    def _build(positions, types, matrix, **overrides):
        params = {
            'particle_types': len(matrix),
            'interaction_matrix': matrix,
            'domain_half_extent': [1.0, 1.0],
        }
        params.update(overrides)
        config = InteractionConfig(params)
        particles = ParticleSystem(len(positions), len(matrix))
        particles.initialize(0, config.domain_half_extent)
        particles.positions[:] = np.asarray(positions, dtype=np.float32)
        particles.types[:] = np.asarray(types, dtype=np.int32)
        return Simulation(particles, config)
    return _build


@pytest.fixture
def seeded_simulation():
    """Factory for a hash-seeded Simulation with the default matrix."""
    def _build(particle_count=300, seed=7, **overrides):
        params = {'particle_types': 6}
        params.update(overrides)
        config = InteractionConfig(params)
        particles = ParticleSystem(particle_count, config.particle_types)
        particles.initialize(seed, config.domain_half_extent)
        return Simulation(particles, config)
    return _build


@pytest.fixture
def restore_logging():
    """Puts the root logger back the way it was after setup_logging runs."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
