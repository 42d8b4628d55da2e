# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
"""
Pygame Renderer for 2D node-link simulations

Features:
1. Links colored and thickened by strain (diverging gradient)
2. Free and fixed nodes, fixed ones highlighted
3. Cut tool segment and pointer capture radius
4. Strain legend and info text overlay

Simulation coordinates are screen-like by default (x right, y down), so the
world-to-screen transform is a scale plus an offset. Pass ``flip_y=True`` for
y-up worlds.

Usage:
    from pygame_renderer import Renderer

    renderer = Renderer(window_width=800, window_height=600)

    # In render loop:
    snap = sim.snapshot()
    canvas = renderer.create_canvas()
    renderer.draw_grid(canvas)
    renderer.draw_links(canvas, snap.links, snap.positions, snap.strains)
    renderer.draw_nodes(canvas, snap.positions, snap.fixed)
    renderer.draw_cut_segment(canvas, pointer_prev, pointer)
    renderer.draw_strain_legend(canvas, strain_scale=0.1)
"""

import numpy as np
import pygame
from typing import List, Optional, Tuple


class Renderer:
    """
    Pygame renderer for node-link visualization.

    All methods work with pygame surfaces and numpy arrays.
    """

    # ========================================================================
    # COLOR CONSTANTS
    # ========================================================================

    # Standard colors
    WHITE = (255, 255, 255)
    BLACK = (0, 0, 0)
    GREY = (100, 100, 100)
    LIGHT_GREY = (230, 230, 230)

    # Node colors
    NODE_FILL = (50, 50, 255)      # Blue
    NODE_OUTLINE = (0, 0, 0)       # Black
    FIXED_FILL = (220, 30, 30)     # Red

    # Interaction colors
    CUT_COLOR = (255, 105, 180)    # Hot pink
    POINTER_COLOR = (0, 150, 200)  # Cyan

    # ========================================================================
    # STRAIN COLOR PALETTE (Diverging gradient)
    # ========================================================================

    # Link: Orange (compression) -> Yellow (rest) -> Red (tension)
    LINK_COLORS = [(255, 165, 0), (255, 255, 0), (255, 0, 0)]

    # ========================================================================
    # INITIALIZATION
    # ========================================================================

    def __init__(
        self,
        window_width: int = 800,
        window_height: int = 600,
        scale: float = 1.0,
        offset: Tuple[float, float] = (0.0, 0.0),
        flip_y: bool = False,
        node_radius: int = 3,
        node_outline: int = 4,
        link_min_width: int = 1,
        link_max_width: int = 4,
        grid_spacing: float = 50.0,
        font_size: int = 24,
        font_size_small: int = 18,
    ):
        """
        Initialize the renderer.

        Args:
            window_width: Window width in pixels
            window_height: Window height in pixels
            scale: Pixels per world unit
            offset: Screen position (pixels) of the world origin
            flip_y: If True, world y points up
            node_radius: Node fill circle radius
            node_outline: Node outline circle radius
            link_min_width: Minimum link line width
            link_max_width: Maximum link line width (high strain)
            grid_spacing: Background grid spacing in world units
            font_size: Main font size
            font_size_small: Small font size for labels
        """
        self.window_width = window_width
        self.window_height = window_height
        self.scale = scale
        self.offset = offset
        self.flip_y = flip_y

        # Visual parameters
        self.node_radius = node_radius
        self.node_outline = node_outline
        self.link_min_width = link_min_width
        self.link_max_width = link_max_width
        self.grid_spacing = grid_spacing

        # Fonts (initialized lazily)
        self._font = None
        self._font_small = None
        self._font_size = font_size
        self._font_size_small = font_size_small

    @property
    def font(self):
        """Lazy font initialization."""
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, self._font_size)
        return self._font

    @property
    def font_small(self):
        """Lazy small font initialization."""
        if self._font_small is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font_small = pygame.font.Font(None, self._font_size_small)
        return self._font_small

    # ========================================================================
    # COORDINATE CONVERSION
    # ========================================================================

    def world_to_screen(self, x: float, y: float) -> Tuple[int, int]:
        """Convert world coordinates to screen coordinates."""
        sx = self.offset[0] + x * self.scale
        if self.flip_y:
            sy = self.window_height - (self.offset[1] + y * self.scale)
        else:
            sy = self.offset[1] + y * self.scale
        return (int(sx), int(sy))

    def world_to_screen_array(self, positions: np.ndarray) -> np.ndarray:
        """
        Convert array of world positions to screen coordinates.

        Args:
            positions: Array of shape (N, 2) with [x, y] world coordinates

        Returns:
            Array of shape (N, 2) with [screen_x, screen_y] pixel coordinates
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        screen = np.zeros(positions.shape, dtype=np.int32)
        screen[:, 0] = (self.offset[0] + positions[:, 0] * self.scale).astype(int)
        if self.flip_y:
            screen[:, 1] = (self.window_height - (self.offset[1] + positions[:, 1] * self.scale)).astype(int)
        else:
            screen[:, 1] = (self.offset[1] + positions[:, 1] * self.scale).astype(int)
        return screen

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        """Convert a pixel position (e.g. the mouse) to world coordinates."""
        x = (sx - self.offset[0]) / self.scale
        if self.flip_y:
            y = (self.window_height - sy - self.offset[1]) / self.scale
        else:
            y = (sy - self.offset[1]) / self.scale
        return (x, y)

    # ========================================================================
    # CANVAS CREATION
    # ========================================================================

    def create_canvas(self, background_color=None) -> pygame.Surface:
        """
        Create a new canvas (pygame Surface) with background color.

        Args:
            background_color: RGB tuple or None for white

        Returns:
            pygame.Surface
        """
        canvas = pygame.Surface((self.window_width, self.window_height))
        canvas.fill(background_color or self.WHITE)
        return canvas

    # ========================================================================
    # GRID RENDERING
    # ========================================================================

    def draw_grid(self, canvas: pygame.Surface, color=None):
        """
        Draw background grid lines every ``grid_spacing`` world units.

        Args:
            canvas: pygame Surface to draw on
            color: Grid line color (default: light grey)
        """
        color = color or self.LIGHT_GREY
        step = self.grid_spacing * self.scale
        if step < 2:
            return

        # Vertical lines
        x_pos = self.offset[0] % step
        while x_pos < self.window_width:
            pygame.draw.line(canvas, color, (int(x_pos), 0), (int(x_pos), self.window_height), 1)
            x_pos += step

        # Horizontal lines
        y_pos = self.offset[1] % step
        while y_pos < self.window_height:
            pygame.draw.line(canvas, color, (0, int(y_pos)), (self.window_width, int(y_pos)), 1)
            y_pos += step

    # ========================================================================
    # LINK RENDERING
    # ========================================================================

    def draw_links(
        self,
        canvas: pygame.Surface,
        links: np.ndarray,
        positions: np.ndarray,
        strains: Optional[np.ndarray] = None,
        strain_scale: float = 0.1,
    ):
        """
        Draw links with strain-based coloring.

        Args:
            canvas: pygame Surface to draw on
            links: Array of shape (M, 2) with link endpoint node indices
            positions: Array of shape (N, 2) with node positions
            strains: Raw strain (L - L0) / L0 per link, or None
            strain_scale: Strain mapped to the ends of the color gradient
        """
        if links is None or len(links) == 0:
            return

        links = np.asarray(links).reshape(-1, 2)
        num_links = len(links)

        # Get strain-based colors and thicknesses
        if strains is not None:
            normalized = self.normalize_strains(strains, strain_scale)
            colors, thicknesses = self._compute_link_visuals(normalized)
        else:
            # Default: yellow, thin lines
            colors = np.full((num_links, 3), self.LINK_COLORS[1], dtype=np.uint8)
            thicknesses = np.full(num_links, self.link_min_width, dtype=np.int32)

        screen_a = self.world_to_screen_array(positions[links[:, 0]])
        screen_b = self.world_to_screen_array(positions[links[:, 1]])

        for i in range(num_links):
            pygame.draw.line(
                canvas,
                tuple(int(c) for c in colors[i]),
                tuple(screen_a[i]),
                tuple(screen_b[i]),
                int(thicknesses[i])
            )

    @staticmethod
    def normalize_strains(strains: np.ndarray, strain_scale: float) -> np.ndarray:
        """Map raw strains to [-1, 1], saturating at +-``strain_scale``."""
        strains = np.asarray(strains, dtype=np.float64)
        if strain_scale <= 0.0:
            return np.sign(strains)
        return np.clip(strains / strain_scale, -1.0, 1.0)

    def _compute_link_visuals(self, normalized_strains: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute link colors and thicknesses from normalized strain data.

        Args:
            normalized_strains: Strain values in [-1, 1]

        Returns:
            colors: RGB color array shape (N, 3)
            thicknesses: Line thickness array shape (N,)
        """
        # Map [-1, 1] to [0, 1] for color interpolation
        t_values = (normalized_strains + 1.0) / 2.0

        colors = np.array([self._get_diverging_color(t) for t in t_values], dtype=np.uint8).reshape(-1, 3)

        # Thickness based on absolute strain magnitude
        abs_strains = np.abs(normalized_strains)
        thickness_range = self.link_max_width - self.link_min_width
        thicknesses = np.clip(
            self.link_min_width + (abs_strains * thickness_range).astype(int),
            self.link_min_width,
            self.link_max_width
        )

        return colors, thicknesses

    # ========================================================================
    # NODE RENDERING
    # ========================================================================

    def draw_nodes(
        self,
        canvas: pygame.Surface,
        positions: np.ndarray,
        fixed: Optional[np.ndarray] = None,
        fill_color=None,
        outline_color=None,
    ):
        """
        Draw nodes as circles with outlines; fixed nodes are filled red.

        Args:
            canvas: pygame Surface to draw on
            positions: Array of shape (N, 2) with node positions
            fixed: Optional boolean array of shape (N,)
            fill_color: Free node fill color (default: blue)
            outline_color: Node outline color (default: black)
        """
        fill_color = fill_color or self.NODE_FILL
        outline_color = outline_color or self.NODE_OUTLINE

        screen = self.world_to_screen_array(positions)
        for i, pos in enumerate(positions):
            if np.isnan(pos[0]) or np.isnan(pos[1]):
                continue

            # Skip nodes parked off screen
            sx, sy = screen[i]
            if sx < -self.node_outline or sy < -self.node_outline:
                continue

            color = self.FIXED_FILL if fixed is not None and fixed[i] else fill_color
            pygame.draw.circle(canvas, outline_color, (int(sx), int(sy)), self.node_outline)
            pygame.draw.circle(canvas, color, (int(sx), int(sy)), self.node_radius)

    # ========================================================================
    # INTERACTION OVERLAYS
    # ========================================================================

    def draw_cut_segment(self, canvas: pygame.Surface, start, end, width: int = 2):
        """Draw the cut tool segment between two pointer samples (world coordinates)."""
        if start is None or end is None:
            return
        pygame.draw.line(canvas, self.CUT_COLOR, self.world_to_screen(*start), self.world_to_screen(*end), width)

    def draw_pointer(self, canvas: pygame.Surface, pointer, radius: float, active: bool = False):
        """Draw the pointer capture radius; filled outline when forcing is active."""
        if pointer is None:
            return
        r = max(1, int(radius * self.scale))
        pygame.draw.circle(canvas, self.POINTER_COLOR, self.world_to_screen(*pointer), r, 2 if active else 1)

    # ========================================================================
    # LEGEND AND TEXT
    # ========================================================================

    def draw_strain_legend(
        self,
        canvas: pygame.Surface,
        strain_scale: float = 0.1,
        position: Optional[Tuple[int, int]] = None,
        text_color=None,
    ):
        """
        Draw the link strain legend in the top-right corner.

        Args:
            canvas: pygame Surface to draw on
            strain_scale: Strain at the ends of the gradient
            position: Optional (x, y) top-left position
            text_color: Label color (default: black)
        """
        bar_height = 60
        bar_width = 25

        if position is None:
            x, y = self.window_width - 120, 10
        else:
            x, y = position

        text_color = text_color or self.BLACK

        canvas.blit(self.font_small.render("Strain:", True, text_color), (x, y))

        bar_x, bar_y = x + 5, y + 20

        # Draw gradient
        for y_offset in range(bar_height):
            t = 1.0 - (y_offset / bar_height)  # t=0 at bottom, t=1 at top
            pygame.draw.line(canvas, self._get_diverging_color(t),
                             (bar_x, bar_y + y_offset), (bar_x + bar_width, bar_y + y_offset), 1)

        # Draw border
        pygame.draw.rect(canvas, text_color, (bar_x, bar_y, bar_width, bar_height), 2)

        # Strain range labels (as percentage)
        max_pct = strain_scale * 100
        label_high = f"+{max_pct:.0f}%" if max_pct >= 1 else f"+{max_pct:.1f}%"
        label_low = f"-{max_pct:.0f}%" if max_pct >= 1 else f"-{max_pct:.1f}%"

        canvas.blit(self.font_small.render(label_high, True, text_color), (bar_x + bar_width + 3, bar_y - 5))
        canvas.blit(self.font_small.render(label_low, True, text_color), (bar_x + bar_width + 3, bar_y + bar_height - 10))

    def draw_info_text(
        self,
        canvas: pygame.Surface,
        lines: List[Tuple[str, Tuple[int, int, int]]],
        position: Tuple[int, int] = (10, 10),
        line_spacing: int = 17,
    ):
        """
        Draw multiple lines of info text.

        Args:
            canvas: pygame Surface to draw on
            lines: List of (text, color) tuples
            position: Top-left position
            line_spacing: Vertical spacing between lines
        """
        x, y = position

        for i, (text, color) in enumerate(lines):
            text_surface = self.font_small.render(text, True, color)
            canvas.blit(text_surface, (x, y + i * line_spacing))

    # ========================================================================
    # COLOR UTILITIES
    # ========================================================================

    def _get_diverging_color(self, t: float) -> Tuple[int, int, int]:
        """
        Get diverging gradient color for normalized position t in [0, 1].

        Three-point gradient:
            t=0.0 → Compression color
            t=0.5 → Rest color
            t=1.0 → Tension color
        """
        c0, c1, c2 = self.LINK_COLORS
        t = min(max(float(t), 0.0), 1.0)

        if t < 0.5:
            t2 = t * 2  # Map [0, 0.5] to [0, 1]
            lo, hi = c0, c1
        else:
            t2 = (t - 0.5) * 2  # Map [0.5, 1] to [0, 1]
            lo, hi = c1, c2

        r = int(lo[0] + (hi[0] - lo[0]) * t2)
        g = int(lo[1] + (hi[1] - lo[1]) * t2)
        b = int(lo[2] + (hi[2] - lo[2]) * t2)
        return r, g, b
