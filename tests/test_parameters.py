import logging

import numpy as np
import pytest

from constants import DEFAULT_INTERACTION_MATRIX
from parameters import ConfigurationError, InteractionConfig


def _config(**overrides):
    params = {'particle_types': 2, 'interaction_matrix': [[0.1, -0.2], [0.3, 0.0]]}
    params.update(overrides)
    return InteractionConfig(params)


class TestConstruction:
    def test_defaults_match_reference_values(self):
        config = InteractionConfig({'particle_types': 6})
        assert config.interaction_radius == pytest.approx(0.2)
        assert config.transition_radius == pytest.approx(0.4)
        assert config.force_scale == pytest.approx(20.0)
        assert config.time_scale == pytest.approx(0.4)
        assert config.friction_factor == pytest.approx(0.7)
        assert config.interaction_matrix.shape == (6, 6)
        assert config.coefficient(5, 4) == pytest.approx(DEFAULT_INTERACTION_MATRIX[5][4])

    def test_matrix_is_read_row_then_column(self):
        config = _config()
        assert config.coefficient(0, 1) == pytest.approx(-0.2)
        assert config.coefficient(1, 0) == pytest.approx(0.3)

    def test_scalar_half_extent_sets_width_only(self):
        assert _config(domain_half_extent=1.5).domain_half_extent == (1.5, 1.0)
        assert _config(domain_half_extent=[2.0, 0.5]).domain_half_extent == (2.0, 0.5)

    @pytest.mark.parametrize("overrides", [
        {'particle_types': 0},
        {'particle_types': 3},
        {'interaction_matrix': [[0.1, 0.2]]},
        {'interaction_matrix': [[0.1, float('nan')], [0.0, 0.0]]},
        {'interaction_radius': 0.0},
        {'interaction_radius': -0.2},
        {'transition_radius': 0.0},
        {'transition_radius': 1.0},
        {'friction_factor': 1.5},
        {'force_scale': float('inf')},
        {'time_scale': 'fast'},
        {'domain_half_extent': [0.0, 1.0]},
    ])
    def test_rejects_invalid_configuration(self, overrides):
        with pytest.raises(ConfigurationError):
            _config(**overrides)

    def test_accepts_any_finite_coefficient(self):
        config = _config(interaction_matrix=[[-50.0, 1e-12], [0.0, 7.5]])
        assert config.coefficient(0, 0) == -50.0


class TestPendingEdits:
    def test_edits_are_invisible_until_applied(self):
        config = _config()
        config.request_parameter('time_scale', 0.9)
        config.request_coefficient(1, 1, 0.5)
        assert config.time_scale == pytest.approx(0.4)
        assert config.coefficient(1, 1) == 0.0
        assert config.pending_count == 2

        assert config.apply_pending() == 2
        assert config.time_scale == pytest.approx(0.9)
        assert config.coefficient(1, 1) == pytest.approx(0.5)
        assert config.pending_count == 0

    def test_edits_apply_in_request_order(self):
        config = _config()
        config.request_coefficient(0, 0, 0.9)
        config.request_reset()
        config.apply_pending()
        assert np.array_equal(config.interaction_matrix, np.zeros((2, 2), dtype=np.float32))

    def test_invalid_edits_are_rejected_immediately(self):
        config = _config()
        with pytest.raises(ConfigurationError):
            config.request_parameter('transition_radius', 1.2)
        with pytest.raises(ConfigurationError):
            config.request_parameter('gravity', 1.0)
        with pytest.raises(ConfigurationError):
            config.request_coefficient(2, 0, 0.1)
        with pytest.raises(ConfigurationError):
            config.request_coefficient(0, 0, float('inf'))
        with pytest.raises(ConfigurationError):
            config.request_matrix([[0.0] * 3] * 3)
        assert config.pending_count == 0

    def test_randomize_stays_within_unit_range(self):
        config = _config()
        config.request_randomize(np.random.default_rng(1))
        config.apply_pending()
        matrix = config.interaction_matrix
        assert matrix.dtype == np.float32
        assert np.all(matrix >= -1.0) and np.all(matrix <= 1.0)

    def test_request_matrix_copies_input(self):
        config = _config()
        replacement = [[1.0, 2.0], [3.0, 4.0]]
        config.request_matrix(replacement)
        config.apply_pending()
        replacement[0][0] = 99.0
        assert config.coefficient(0, 0) == 1.0


class TestSnapshot:
    def test_snapshot_is_isolated_from_later_edits(self):
        config = _config()
        snapshot = config.snapshot()
        config.request_coefficient(0, 0, 0.8)
        config.request_parameter('force_scale', 5.0)
        config.apply_pending()
        assert snapshot.interaction_matrix[0, 0] == pytest.approx(0.1)
        assert snapshot.force_scale == pytest.approx(20.0)

    def test_to_dict_lists_scalars(self):
        values = _config().to_dict()
        assert values['particle_types'] == 2
        assert values['interaction_radius'] == pytest.approx(0.2)
        assert values['domain_half_extent'] == [16.0 / 9.0, 1.0]


class TestQueuedValues:
    def test_pending_coefficient_follows_the_queue(self):
        config = _config()
        assert config.pending_coefficient(0, 1) == pytest.approx(-0.2)
        config.request_coefficient(0, 1, 0.4)
        config.request_coefficient(0, 1, 0.6)
        assert config.pending_coefficient(0, 1) == pytest.approx(0.6)
        assert config.coefficient(0, 1) == pytest.approx(-0.2)

        config.request_reset()
        assert config.pending_coefficient(0, 1) == 0.0
        config.request_coefficient(0, 1, -0.3)
        assert config.pending_coefficient(0, 1) == pytest.approx(-0.3)
        assert config.pending_coefficient(1, 0) == 0.0

    def test_pending_parameter_follows_the_queue(self):
        config = _config()
        assert config.pending_parameter('force_scale') == pytest.approx(20.0)
        config.request_parameter('force_scale', 30.0)
        config.request_parameter('time_scale', 0.1)
        assert config.pending_parameter('force_scale') == pytest.approx(30.0)
        assert config.force_scale == pytest.approx(20.0)


def test_numpy_scalar_half_extent_is_accepted():
    assert _config(domain_half_extent=np.float32(1.5)).domain_half_extent == (1.5, 1.0)
    assert _config(domain_half_extent=np.int64(2)).domain_half_extent == (2.0, 1.0)


@pytest.mark.parametrize("row, col, value", [
    (2, 0, 0.1),
    (0, -1, 0.1),
    (0, 0, float('inf')),
    (0, 0, 'strong'),
    (0, 0, None),
])
def test_invalid_coefficient_edits_are_logged_and_rejected(caplog, row, col, value):
    config = _config()
    with caplog.at_level(logging.CRITICAL):
        with pytest.raises(ConfigurationError):
            config.request_coefficient(row, col, value)
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)
    assert config.pending_count == 0
