# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Tests for the topology generators

import numpy as np
import pytest

from softlink.models import CircleModel, GridModel, RopeModel
from softlink.sim import ConfigurationError
from softlink.solvers import SolverRelaxation


# ============================================================================
# ROPE
# ============================================================================

def test_rope_counts_and_pinning():
    model = RopeModel(num_nodes=20, spacing=10.0, rest_length=12.5)

    assert model.particle_count == 20
    assert model.link_count == 19
    assert np.array_equal(np.flatnonzero(model.particle_fixed.numpy()), [0])
    assert np.allclose(model.link_rest_length.numpy(), 12.5)
    assert not model.has_break_thresholds


def test_rope_layout_follows_direction():
    model = RopeModel(num_nodes=3, spacing=5.0, origin=(10.0, 20.0), direction=(2.0, 0.0))
    assert np.allclose(model.particle_q.numpy(), [[10.0, 20.0], [15.0, 20.0], [20.0, 20.0]])


@pytest.mark.parametrize("pin, expected", [("both", [0, 4]), ("none", [])])
def test_rope_pin_patterns(pin, expected):
    model = RopeModel(num_nodes=5, pin=pin)
    assert list(np.flatnonzero(model.particle_fixed.numpy())) == expected


def test_rope_rejects_bad_arguments():
    with pytest.raises(ConfigurationError):
        RopeModel(num_nodes=0)
    with pytest.raises(ConfigurationError):
        RopeModel(pin="middle")
    with pytest.raises(ConfigurationError):
        RopeModel(direction=(0.0, 0.0))


# ============================================================================
# GRID
# ============================================================================

def test_grid_counts():
    model = GridModel(rows=3, cols=4, spacing=12.5)

    assert model.particle_count == 12
    # 3 rows x 3 horizontal + 2 x 4 vertical
    assert model.link_count == 17
    assert model.sub2ind(2, 3) == 11


def test_grid_shear_links():
    model = GridModel(rows=3, cols=4, with_shear=True)
    # One diagonal per cell
    assert model.link_count == 17 + 6
    assert np.isclose(model.link_rest_length.numpy().max(), 12.5 * np.sqrt(2))


def test_grid_pin_patterns():
    top = GridModel(rows=3, cols=7, pin="top", pin_stride=3)
    assert list(np.flatnonzero(top.particle_fixed.numpy())) == [0, 3, 6]

    corners = GridModel(rows=3, cols=7, pin="top_corners")
    assert list(np.flatnonzero(corners.particle_fixed.numpy())) == [0, 6]

    free = GridModel(rows=3, cols=7, pin="none")
    assert not free.particle_fixed.numpy().any()


def test_grid_breakage_thresholds():
    model = GridModel(rows=2, cols=2, with_shear=True, break_threshold=20.0)
    thresholds = model.link_break_threshold.numpy()
    assert np.allclose(sorted(thresholds), [20.0] * 4 + [20.0 * np.sqrt(2)])
    assert model.has_break_thresholds


def test_grid_mask_parks_unreferenced_nodes():
    mask = np.ones((3, 3), dtype=bool)
    mask[1, 1] = False
    model = GridModel(rows=3, cols=3, pin="none", mask=mask)

    assert model.link_count == 8
    fixed = model.particle_fixed.numpy()
    assert list(np.flatnonzero(fixed)) == [4]
    assert np.all(model.particle_q.numpy()[4] < -1000.0)


def test_grid_rejects_bad_arguments():
    with pytest.raises(ConfigurationError):
        GridModel(rows=0, cols=3)
    with pytest.raises(ConfigurationError):
        GridModel(pin="left")
    with pytest.raises(ConfigurationError):
        GridModel(rows=2, cols=2, mask=np.ones((3, 3), dtype=bool))


# ============================================================================
# CIRCLE
# ============================================================================

def test_circle_fan_without_rings():
    model = CircleModel(radius=50.0, num_boundary=12, num_rings=0, pin="none")

    # 12 boundary + center; Delaunay gives a fan of 12 triangles
    assert model.particle_count == 13
    assert model.link_count == 24


def test_circle_rest_lengths_match_layout():
    model = CircleModel(radius=80.0, num_boundary=16, num_rings=2)
    q = model.particle_q.numpy()
    pairs = model.link_pairs()
    lengths = np.linalg.norm(q[pairs[:, 1]] - q[pairs[:, 0]], axis=1)
    assert np.allclose(lengths, model.link_rest_length.numpy(), rtol=1e-5)
    assert np.all(pairs[:, 0] < pairs[:, 1])


def test_circle_pinning():
    top = CircleModel(radius=50.0, num_boundary=12, num_rings=0, center=(0.0, 0.0), pin="top")
    fixed = np.flatnonzero(top.particle_fixed.numpy())
    assert len(fixed) == 1
    assert np.isclose(top.particle_q.numpy()[fixed[0], 1], -50.0)

    center = CircleModel(radius=50.0, num_boundary=12, num_rings=0, pin="center")
    assert list(np.flatnonzero(center.particle_fixed.numpy())) == [12]


def test_circle_break_ratio():
    model = CircleModel(radius=50.0, num_boundary=12, num_rings=0, break_ratio=1.5)
    assert np.allclose(model.link_break_threshold.numpy(), 1.5 * model.link_rest_length.numpy())

    with pytest.raises(ConfigurationError):
        CircleModel(break_ratio=0.5)


def test_generated_models_start_relaxed():
    """A relaxation pass on a freshly generated topology does not move it"""
    for model in (RopeModel(num_nodes=8),
                  GridModel(rows=4, cols=4, with_shear=True),
                  CircleModel(radius=60.0, num_boundary=12, num_rings=1)):
        start = model.particle_q.numpy()
        solver = SolverRelaxation(model)
        state = model.state()
        solver.relax(state)
        assert np.allclose(state.particle_q.numpy(), start, atol=1e-4)
