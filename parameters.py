# parameters.py
"""
Holds the tunable configuration of the simulation.

This module defines the InteractionConfig class, which owns the species
interaction matrix and the scalar simulation parameters. External
controllers (the UI panel) never write these values directly: they queue
edits that are applied on a step boundary, and each step works from an
immutable snapshot.
"""
import logging
import math
import numbers
import threading
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from constants import (
    DEFAULT_DOMAIN_HALF_EXTENT, DEFAULT_FORCE_SCALE, DEFAULT_FRICTION_FACTOR,
    DEFAULT_INTERACTION_MATRIX, DEFAULT_INTERACTION_RADIUS,
    DEFAULT_TIME_SCALE, DEFAULT_TRANSITION_RADIUS
)

# --- Data Contracts ---
#
# class InteractionConfig:
#   - __init__(self, params: Dict[str, Any]):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "particle_types": int
#         - "interaction_matrix": List[List[float]] (optional)
#         - "interaction_radius", "transition_radius", "force_scale",
#           "time_scale", "friction_factor": float (optional)
#         - "domain_half_extent": float or [float, float] (optional)
#     - Side Effects: Raises ConfigurationError on invalid values.
#
#   - request_parameter / request_coefficient / request_matrix /
#     request_randomize / request_reset:
#     - Side Effects: Queue an edit. Nothing observable changes until
#       apply_pending() is called.
#
#   - pending_coefficient / pending_parameter -> float:
#     - Outputs: The value as it will be after the queued edits apply.
#
#   - apply_pending(self) -> int:
#     - Outputs: Number of edits applied.
#     - Invariants: Only called between steps.
#
#   - snapshot(self) -> ConfigSnapshot:
#     - Outputs: Immutable copy of every value a step reads.

SCALAR_PARAMETERS = (
    "interaction_radius",
    "transition_radius",
    "force_scale",
    "time_scale",
    "friction_factor",
)


class ConfigurationError(ValueError):
    """Raised when simulation parameters are invalid."""


class ConfigSnapshot(NamedTuple):
    """The configuration values a single step reads."""
    interaction_matrix: np.ndarray
    interaction_radius: float
    transition_radius: float
    force_scale: float
    time_scale: float
    friction_factor: float
    domain_half_extent: Tuple[float, float]


def _fail(msg: str) -> None:
    logging.critical(msg)
    raise ConfigurationError(msg)


def validate_scalar(name: str, value: Any) -> float:
    """
    Checks a single scalar parameter and returns it as a float.

    Raises:
        ConfigurationError: If the name is unknown or the value is out of range.
    """
    if name not in SCALAR_PARAMETERS:
        _fail(f"Configuration error: unknown parameter '{name}'.")
    try:
        value = float(value)
    except (TypeError, ValueError):
        _fail(f"Configuration error: {name} must be a number, got {value!r}.")
    if not math.isfinite(value):
        _fail(f"Configuration error: {name} must be finite, got {value}.")

    if name == "interaction_radius" and value <= 0.0:
        _fail(f"Configuration error: interaction_radius must be positive, got {value}.")
    if name == "transition_radius" and not 0.0 < value < 1.0:
        _fail(f"Configuration error: transition_radius must lie in (0, 1), got {value}.")
    if name == "friction_factor" and not 0.0 <= value <= 1.0:
        _fail(f"Configuration error: friction_factor must lie in [0, 1], got {value}.")
    return value


def validate_matrix(matrix: Any, particle_types: int) -> np.ndarray:
    """Converts a nested list to a float32 matrix and checks its shape and values."""
    try:
        array = np.array(matrix, dtype=np.float32)
    except (TypeError, ValueError) as e:
        _fail(f"Configuration error: interaction matrix is not numeric ({e}).")
    if array.shape != (particle_types, particle_types):
        _fail(
            f"Configuration error: Interaction matrix shape {array.shape} "
            f"does not match particle_types ({particle_types}). The matrix must be square "
            f"and its dimensions must equal the number of particle types."
        )
    if not np.all(np.isfinite(array)):
        _fail("Configuration error: interaction matrix contains non-finite values.")
    return array


def _parse_half_extent(value: Any) -> Tuple[float, float]:
    if isinstance(value, numbers.Real):
        extent = (float(value), 1.0)
    else:
        try:
            hx, hy = value
            extent = (float(hx), float(hy))
        except (TypeError, ValueError):
            _fail(f"Configuration error: domain_half_extent must be a number or a pair, got {value!r}.")
    if not all(math.isfinite(v) and v > 0.0 for v in extent):
        _fail(f"Configuration error: domain_half_extent must be positive, got {extent}.")
    return extent


class InteractionConfig:
    """
    Interaction matrix and scalar parameters shared by every step.
    """
    def __init__(self, params: Dict[str, Any]):
        """
        Initializes and validates the configuration.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
        """
        self.particle_types = int(params.get('particle_types', len(DEFAULT_INTERACTION_MATRIX)))
        if self.particle_types <= 0:
            _fail(f"Configuration error: particle_types must be at least 1, got {self.particle_types}.")

        self.interaction_matrix = validate_matrix(
            params.get('interaction_matrix', DEFAULT_INTERACTION_MATRIX),
            self.particle_types
        )
        self.interaction_radius = validate_scalar(
            'interaction_radius', params.get('interaction_radius', DEFAULT_INTERACTION_RADIUS))
        self.transition_radius = validate_scalar(
            'transition_radius', params.get('transition_radius', DEFAULT_TRANSITION_RADIUS))
        self.force_scale = validate_scalar(
            'force_scale', params.get('force_scale', DEFAULT_FORCE_SCALE))
        self.time_scale = validate_scalar(
            'time_scale', params.get('time_scale', DEFAULT_TIME_SCALE))
        self.friction_factor = validate_scalar(
            'friction_factor', params.get('friction_factor', DEFAULT_FRICTION_FACTOR))
        self.domain_half_extent = _parse_half_extent(
            params.get('domain_half_extent', DEFAULT_DOMAIN_HALF_EXTENT))

        # Edits from outside the step loop, applied in order on the next boundary.
        self._pending: List[Tuple[str, Any]] = []
        self._lock = threading.Lock()

        logging.info(
            f"Interaction configuration validated for {self.particle_types} species "
            f"(radius {self.interaction_radius:.3f}, transition {self.transition_radius:.3f})."
        )

    def coefficient(self, row: int, col: int) -> float:
        """Returns the coefficient felt by species `row` due to species `col`."""
        return float(self.interaction_matrix[row, col])

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _queue(self, kind: str, payload: Any) -> None:
        with self._lock:
            self._pending.append((kind, payload))

    def request_parameter(self, name: str, value: float) -> None:
        """Queues a change of one scalar parameter."""
        self._queue('parameter', (name, validate_scalar(name, value)))

    def request_coefficient(self, row: int, col: int, value: float) -> None:
        """Queues a change of one interaction matrix cell."""
        if not (0 <= row < self.particle_types and 0 <= col < self.particle_types):
            _fail(
                f"Configuration error: matrix cell ({row}, {col}) is outside a "
                f"{self.particle_types}x{self.particle_types} matrix."
            )
        try:
            value = float(value)
        except (TypeError, ValueError):
            _fail(f"Configuration error: interaction coefficient must be a number, got {value!r}.")
        if not math.isfinite(value):
            _fail(f"Configuration error: interaction coefficient must be finite, got {value}.")
        self._queue('coefficient', (row, col, value))

    def pending_coefficient(self, row: int, col: int) -> float:
        """Value of a matrix cell once the queued edits have been applied."""
        with self._lock:
            pending = list(self._pending)
        value = self.coefficient(row, col)
        for kind, payload in pending:
            if kind == 'coefficient' and payload[:2] == (row, col):
                value = payload[2]
            elif kind == 'matrix':
                value = float(payload[row, col])
        return value

    def pending_parameter(self, name: str) -> float:
        """Value of a scalar parameter once the queued edits have been applied."""
        with self._lock:
            pending = list(self._pending)
        value = getattr(self, name)
        for kind, payload in pending:
            if kind == 'parameter' and payload[0] == name:
                value = payload[1]
        return value

    def request_matrix(self, matrix: Sequence[Sequence[float]]) -> None:
        """Queues a replacement of the whole matrix. The species count cannot change."""
        self._queue('matrix', validate_matrix(matrix, self.particle_types))

    def request_randomize(self, rng: Optional[np.random.Generator] = None) -> None:
        """Queues a matrix of random coefficients between -1.0 and 1.0."""
        rng = rng if rng is not None else np.random.default_rng()
        n = self.particle_types
        self._queue('matrix', (rng.random((n, n)) * 2.0 - 1.0).astype(np.float32))

    def request_reset(self) -> None:
        """Queues a matrix of zeros (no species-dependent interaction)."""
        n = self.particle_types
        self._queue('matrix', np.zeros((n, n), dtype=np.float32))

    def apply_pending(self) -> int:
        """
        Applies every queued edit. Must only be called between steps.

        Returns:
            int: The number of edits applied.
        """
        with self._lock:
            pending, self._pending = self._pending, []

        for kind, payload in pending:
            if kind == 'parameter':
                name, value = payload
                old_value = getattr(self, name)
                setattr(self, name, value)
                logging.info(f"Parameter {name} updated. Old: {old_value:.3f}, New: {value:.3f}")
            elif kind == 'coefficient':
                row, col, value = payload
                old_value = self.interaction_matrix[row, col]
                self.interaction_matrix[row, col] = value
                logging.info(
                    f"Interaction matrix updated at ({row}, {col}). "
                    f"Old: {old_value:.3f}, New: {value:.3f}"
                )
            else:
                self.interaction_matrix = payload.copy()
                logging.info("Interaction matrix replaced.")
        return len(pending)

    def snapshot(self) -> ConfigSnapshot:
        """Returns a copy of every value one step reads."""
        return ConfigSnapshot(
            interaction_matrix=self.interaction_matrix.copy(),
            interaction_radius=self.interaction_radius,
            transition_radius=self.transition_radius,
            force_scale=self.force_scale,
            time_scale=self.time_scale,
            friction_factor=self.friction_factor,
            domain_half_extent=self.domain_half_extent,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Scalar parameters for display, keyed like config.json."""
        values = {name: getattr(self, name) for name in SCALAR_PARAMETERS}
        values['particle_types'] = self.particle_types
        values['domain_half_extent'] = list(self.domain_half_extent)
        return values
