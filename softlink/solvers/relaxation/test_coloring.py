# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Tests for link coloring

import numpy as np

from softlink.models import GridModel
from softlink.solvers.relaxation.coloring import flatten_color_groups, link_coloring_2d


def assert_valid_coloring(pairs, coloring):
    for color in np.unique(coloring):
        nodes = pairs[coloring == color].reshape(-1)
        assert len(nodes) == len(np.unique(nodes)), f"Color {color} has links sharing a node"


def test_chain_needs_two_colors():
    pairs = np.array([[i, i + 1] for i in range(9)])
    coloring, groups = link_coloring_2d(pairs, 10)

    assert list(coloring) == [0, 1] * 4 + [0]
    assert sorted(groups.keys()) == [0, 1]


def test_grid_coloring_is_valid():
    model = GridModel(rows=6, cols=7, with_shear=True)
    pairs = model.link_pairs()

    coloring, _ = link_coloring_2d(pairs, model.particle_count)

    assert np.all(coloring >= 0)
    assert_valid_coloring(pairs, coloring)


def test_duplicate_links_get_different_colors():
    pairs = np.array([[0, 1], [1, 0]])
    coloring, _ = link_coloring_2d(pairs, 2)
    assert coloring[0] != coloring[1]


def test_flatten_color_groups():
    groups = {1: [1, 3], 0: [0, 2, 4]}
    links, ranges = flatten_color_groups(groups)

    assert list(links) == [0, 2, 4, 1, 3]
    assert ranges == [(0, 3), (3, 2)]


def test_empty_link_set():
    coloring, groups = link_coloring_2d(np.zeros((0, 2), dtype=np.int32), 3)
    assert len(coloring) == 0
    assert groups == {}


def test_distribution_printed_only_when_verbose(capsys):
    pairs = np.array([[0, 1], [1, 2]])

    link_coloring_2d(pairs, 3)
    assert capsys.readouterr().out == ""

    link_coloring_2d(pairs, 3, verbose=True)
    assert "Link coloring: 2 colors" in capsys.readouterr().out
