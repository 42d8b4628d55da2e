# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
"""
Tests for Renderer

Draws into off-screen surfaces only; no window is opened.
"""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pygame

from pygame_renderer import Renderer


def test_world_to_screen_screen_space():
    renderer = Renderer(window_width=200, window_height=100, scale=2.0, offset=(10.0, 5.0))

    assert renderer.world_to_screen(3.0, 4.0) == (16, 13)
    assert renderer.screen_to_world(16, 13) == (3.0, 4.0)


def test_world_to_screen_flip_y():
    renderer = Renderer(window_width=200, window_height=100, flip_y=True)

    assert renderer.world_to_screen(0.0, 0.0) == (0, 100)
    assert renderer.world_to_screen(0.0, 30.0) == (0, 70)
    assert renderer.screen_to_world(0, 70) == (0.0, 30.0)


def test_world_to_screen_array_matches_scalar():
    renderer = Renderer(scale=1.5, offset=(3.0, 7.0))
    positions = np.array([[0.0, 0.0], [10.0, 20.0], [-4.0, 2.5]])

    screen = renderer.world_to_screen_array(positions)

    for p, s in zip(positions, screen):
        assert tuple(s) == renderer.world_to_screen(*p)


def test_diverging_color_endpoints():
    renderer = Renderer()

    assert renderer._get_diverging_color(0.0) == Renderer.LINK_COLORS[0]
    assert renderer._get_diverging_color(0.5) == Renderer.LINK_COLORS[1]
    assert renderer._get_diverging_color(1.0) == Renderer.LINK_COLORS[2]
    assert renderer._get_diverging_color(7.0) == Renderer.LINK_COLORS[2]


def test_normalize_strains_saturates():
    normalized = Renderer.normalize_strains(np.array([-0.5, -0.05, 0.0, 0.05, 0.5]), 0.1)
    assert np.allclose(normalized, [-1.0, -0.5, 0.0, 0.5, 1.0])


def test_link_visuals_thicken_with_strain():
    renderer = Renderer(link_min_width=1, link_max_width=4)
    colors, widths = renderer._compute_link_visuals(np.array([0.0, 1.0]))

    assert colors.shape == (2, 3)
    assert widths[0] == 1
    assert widths[1] == 4


def test_draw_scene():
    renderer = Renderer(window_width=120, window_height=80)
    canvas = renderer.create_canvas()

    positions = np.array([[10.0, 10.0], [60.0, 10.0], [60.0, 50.0], [-1e4, -1e4]])
    links = np.array([[0, 1], [1, 2]])
    fixed = np.array([True, False, False, True])

    renderer.draw_grid(canvas)
    renderer.draw_links(canvas, links, positions, np.array([0.0, 0.2]))
    renderer.draw_links(canvas, np.zeros((0, 2), dtype=np.int32), positions)
    renderer.draw_nodes(canvas, positions, fixed)

    assert canvas.get_at((10, 10))[:3] == Renderer.FIXED_FILL
    assert canvas.get_at((60, 50))[:3] == Renderer.NODE_FILL

    renderer.draw_cut_segment(canvas, (0.0, 0.0), (100.0, 70.0))
    renderer.draw_cut_segment(canvas, None, (100.0, 70.0))
    renderer.draw_pointer(canvas, (50.0, 40.0), 20.0, active=True)
    renderer.draw_strain_legend(canvas, 0.1)
    renderer.draw_info_text(canvas, [("Nodes: 4", Renderer.BLACK)])

    assert canvas.get_size() == (120, 80)


def teardown_module(module):
    pygame.quit()
