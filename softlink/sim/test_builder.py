# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Tests for ModelBuilder and Model topology maintenance

import numpy as np
import pytest

from softlink.sim import (
    ConfigurationError,
    InvariantError,
    ModelBuilder,
    NO_BREAK_THRESHOLD,
    SimulationError,
)


def triangle_builder():
    builder = ModelBuilder()
    builder.add_node((0.0, 0.0), fixed=True)
    builder.add_node((3.0, 0.0))
    builder.add_node((3.0, 4.0), mass=2.0)
    return builder


def test_add_node_returns_indices():
    builder = triangle_builder()
    assert builder.node_count == 3
    assert builder.add_node((1.0, 1.0)) == 3


def test_default_rest_length_is_current_distance():
    builder = triangle_builder()
    builder.add_link(0, 2)
    model = builder.finalize()
    assert np.isclose(model.link_rest_length.numpy()[0], 5.0)


def test_finalize_uploads_arrays():
    builder = triangle_builder()
    builder.add_link(0, 1)
    builder.add_link(1, 2, rest_length=2.0, break_threshold=8.0)
    model = builder.finalize(device="cpu")

    assert model.particle_count == 3
    assert model.link_count == 2
    assert np.array_equal(model.particle_fixed.numpy(), [1, 0, 0])
    assert np.allclose(model.particle_inv_mass.numpy(), [1.0, 1.0, 0.5])
    assert np.array_equal(model.link_pairs(), [[0, 1], [1, 2]])
    assert np.allclose(model.link_break_threshold.numpy(), [NO_BREAK_THRESHOLD, 8.0])
    assert model.has_break_thresholds


def test_state_starts_at_rest():
    builder = triangle_builder()
    model = builder.finalize()
    state = model.state()
    assert np.array_equal(state.particle_q.numpy(), state.particle_q_prev.numpy())
    assert not state.particle_qd.numpy().any()
    assert not state.particle_f.numpy().any()


def test_duplicate_links_are_kept():
    builder = triangle_builder()
    builder.add_link(0, 1)
    builder.add_link(1, 0)
    assert builder.finalize().link_count == 2


def test_empty_topology_rejected():
    with pytest.raises(ConfigurationError):
        ModelBuilder().finalize()


@pytest.mark.parametrize("mass", [0.0, -1.0, float("inf"), float("nan")])
def test_invalid_mass_rejected(mass):
    builder = ModelBuilder()
    builder.add_node((0.0, 0.0), mass=mass)
    with pytest.raises(ConfigurationError):
        builder.finalize()


def test_non_finite_position_rejected():
    builder = ModelBuilder()
    builder.add_node((float("nan"), 0.0))
    with pytest.raises(ConfigurationError):
        builder.finalize()


def test_out_of_range_link_rejected():
    builder = triangle_builder()
    builder.add_link(0, 3, rest_length=1.0)
    with pytest.raises(ConfigurationError):
        builder.finalize()

    with pytest.raises(ConfigurationError):
        triangle_builder().add_link(0, 9)


def test_self_link_rejected():
    builder = triangle_builder()
    builder.add_link(1, 1, rest_length=1.0)
    with pytest.raises(ConfigurationError):
        builder.finalize()


def test_negative_rest_length_rejected():
    builder = triangle_builder()
    builder.add_link(0, 1, rest_length=-1.0)
    with pytest.raises(ConfigurationError):
        builder.finalize()


@pytest.mark.parametrize("threshold", [0.0, -2.0])
def test_non_positive_threshold_rejected(threshold):
    with pytest.raises(ConfigurationError):
        triangle_builder().add_link(0, 1, break_threshold=threshold)


def test_errors_share_base_class():
    assert issubclass(ConfigurationError, SimulationError)
    assert issubclass(InvariantError, SimulationError)
    assert issubclass(InvariantError, RuntimeError)


def test_pin_unreferenced_parks_orphans():
    builder = triangle_builder()
    builder.add_link(0, 1)

    parked = builder.pin_unreferenced(park_position=(-50.0, -50.0))
    model = builder.finalize()

    assert parked == 1
    assert model.particle_fixed.numpy()[2] == 1
    assert np.array_equal(model.particle_q.numpy()[2], [-50.0, -50.0])


def test_retain_links_preserves_order():
    builder = ModelBuilder()
    for i in range(5):
        builder.add_node((10.0 * i, 0.0))
    for i in range(4):
        builder.add_link(i, i + 1, rest_length=float(i + 1))
    model = builder.finalize()
    version = model.link_version

    removed = model.retain_links([True, False, True, False])

    assert removed == 2
    assert np.array_equal(model.link_pairs(), [[0, 1], [2, 3]])
    assert np.allclose(model.link_rest_length.numpy(), [1.0, 3.0])
    assert model.link_version == version + 1


def test_retain_links_all_kept_is_noop():
    builder = triangle_builder()
    builder.add_link(0, 1)
    model = builder.finalize()
    version = model.link_version
    assert model.retain_links([True]) == 0
    assert model.link_version == version


def test_retain_links_length_mismatch():
    builder = triangle_builder()
    builder.add_link(0, 1)
    model = builder.finalize()
    with pytest.raises(InvariantError):
        model.retain_links([True, True])


def test_check_node_index():
    model = triangle_builder().finalize()
    assert model.check_node_index(2) == 2
    with pytest.raises(InvariantError):
        model.check_node_index(3)
