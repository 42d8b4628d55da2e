# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Grid-based cloth model

from typing import Optional

import numpy as np

from ..sim.builder import ModelBuilder
from ..sim.errors import ConfigurationError
from ..sim.model import Model


class GridModel(Model):
    """
    Cloth model with rectangular grid geometry.

    Creates a uniform grid with horizontal and vertical links and, optionally,
    checkerboard diagonal (shear) links. Node (r, c) has index r * cols + c and
    row 0 is the top row in screen space.

    Args:
        rows: Number of rows (height, Y direction). Default 20.
        cols: Number of columns (width, X direction). Default 30.
        spacing: Distance between adjacent nodes
        origin: Position of node (0, 0), the top-left corner
        mass: Mass of every node
        pin: Fixed-node pattern: 'top' (every ``pin_stride``-th node of row 0,
            plus the last one), 'top_corners', or 'none'
        pin_stride: Stride for the 'top' pattern
        with_shear: If True, add diagonal links (checkerboard pattern)
        break_threshold: Breakage length for horizontal/vertical links, or None.
            Diagonal links break at ``break_threshold * sqrt(2)``.
        mask: Optional boolean array [rows, cols]; links only join cells that are
            True. Nodes left without links are pinned and parked off screen.
        device: Warp device ('cpu' or 'cuda')

    Example:
        >>> model = GridModel(rows=20, cols=30, spacing=12.5, pin_stride=5)
        >>> model = GridModel(rows=4, cols=4, break_threshold=30.0)
        >>> state = model.state()
    """

    PIN_PATTERNS = ("top", "top_corners", "none")

    def __init__(self, rows: int = 20, cols: int = 30, spacing: float = 12.5,
                 origin: tuple = (100.0, 50.0), mass: float = 1.0,
                 pin: str = "top", pin_stride: int = 1, with_shear: bool = False,
                 break_threshold: Optional[float] = None, mask=None,
                 device='cpu'):

        super().__init__(device=device)

        if rows < 1 or cols < 1:
            raise ConfigurationError(f"Grid dimensions must be positive, got {rows}x{cols}")
        if pin not in self.PIN_PATTERNS:
            raise ConfigurationError(f"Unknown pin pattern {pin!r}; expected one of {self.PIN_PATTERNS}")
        if pin_stride < 1:
            raise ConfigurationError(f"Pin stride must be >= 1, got {pin_stride}")

        if mask is None:
            mask = np.ones((rows, cols), dtype=bool)
        else:
            mask = np.asarray(mask, dtype=bool)
            if mask.shape != (rows, cols):
                raise ConfigurationError(f"Mask shape {mask.shape} does not match grid {rows}x{cols}")

        self.grid_rows = rows
        self.grid_cols = cols
        self.spacing = spacing

        builder = ModelBuilder()

        # Nodes
        fixed = self._pinned_nodes(rows, cols, pin, pin_stride)
        for r in range(rows):
            for c in range(cols):
                pos = (origin[0] + c * spacing, origin[1] + r * spacing)
                builder.add_node(pos, mass=mass, fixed=(r, c) in fixed)

        # Links
        self._setup_links_on_builder(builder, rows, cols, spacing, with_shear, break_threshold, mask)

        parked = builder.pin_unreferenced() if not mask.all() else 0

        builder.finalize(model=self)

        print(f"✓ Created {self.link_count} links")
        if parked > 0:
            print(f"  ⚠ Parked {parked} unreferenced nodes off screen")
        if rows == cols:
            print(f"✓ Created {rows}x{cols} square grid = {self.particle_count} nodes")
        else:
            print(f"✓ Created {cols}x{rows} rectangular grid = {self.particle_count} nodes (wide x tall)")

    def sub2ind(self, r: int, c: int) -> int:
        """Node index of grid cell (r, c)."""
        return r * self.grid_cols + c

    def _pinned_nodes(self, rows, cols, pin, pin_stride):
        """Set of (r, c) cells that start fixed."""
        if pin == "none":
            return set()
        if pin == "top_corners":
            return {(0, 0), (0, cols - 1)}

        pinned = {(0, c) for c in range(0, cols, pin_stride)}
        pinned.add((0, cols - 1))
        return pinned

    def _setup_links_on_builder(self, builder, rows, cols, spacing, with_shear, break_threshold, mask):
        """Add horizontal, vertical and (optional) diagonal links."""
        def sub2ind(r, c):
            return r * cols + c

        diagonal_threshold = None if break_threshold is None else break_threshold * np.sqrt(2)

        # Horizontal links
        for r in range(rows):
            for c in range(cols - 1):
                if mask[r, c] and mask[r, c + 1]:
                    builder.add_link(sub2ind(r, c), sub2ind(r, c + 1),
                                     rest_length=spacing, break_threshold=break_threshold)

        # Vertical links
        for r in range(rows - 1):
            for c in range(cols):
                if mask[r, c] and mask[r + 1, c]:
                    builder.add_link(sub2ind(r, c), sub2ind(r + 1, c),
                                     rest_length=spacing, break_threshold=break_threshold)

        # Diagonal links (checkerboard pattern)
        if with_shear:
            for r in range(rows - 1):
                for c in range(cols - 1):
                    if (r + c) % 2 == 0:
                        i, j = (r, c), (r + 1, c + 1)
                    else:
                        i, j = (r + 1, c), (r, c + 1)
                    if mask[i] and mask[j]:
                        builder.add_link(sub2ind(*i), sub2ind(*j),
                                         rest_length=spacing * np.sqrt(2),
                                         break_threshold=diagonal_threshold)
